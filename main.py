import os
import logging
from flask import Flask, jsonify
from dotenv import load_dotenv
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException

import dependencies
from api.error_utils import create_error_response, error_from_exception
from celery_worker import celery_app
from exceptions import EcoNovaError
from extensions import limiter
from firebase_init import initialize_firebase
from logging_config import setup_logging

# --- SETUP & CONFIG ---
load_dotenv()
setup_logging()


def create_app(config_overrides=None):
    app = Flask(__name__)
    app.config.update(
        RATELIMIT_STORAGE_URI=os.environ.get('RATELIMIT_STORAGE_URI', 'memory://'),
        SCORE_SUBMISSIONS_ASYNC=dependencies.SCORE_SUBMISSIONS_ASYNC,
    )
    if config_overrides:
        app.config.update(config_overrides)

    # --- Initialize Extensions ---
    limiter.init_app(app)
    celery_app.conf.update(task_always_eager=app.config.get('CELERY_TASK_ALWAYS_EAGER', False))

    # Firebase is only needed for FCM unlock pushes
    if dependencies.FCM_ENABLED:
        initialize_firebase()

    # --- Import and Register Blueprints ---
    from api.catalog import catalog_bp
    from api.users import users_bp
    from api.submissions import submissions_bp
    from api.assignments import assignments_bp
    from api.status import status_bp

    app.register_blueprint(catalog_bp, url_prefix='/tasks', strict_slashes=False)
    app.register_blueprint(users_bp, url_prefix='/users', strict_slashes=False)
    app.register_blueprint(submissions_bp, url_prefix='/submissions', strict_slashes=False)
    app.register_blueprint(assignments_bp, url_prefix='/', strict_slashes=False)
    app.register_blueprint(status_bp, url_prefix='/', strict_slashes=False)

    # --- Global Error Handlers ---
    @app.errorhandler(EcoNovaError)
    def handle_econova_error(e):
        return error_from_exception(e)

    @app.errorhandler(PydanticValidationError)
    def handle_validation_error(e):
        return create_error_response(
            "VALIDATION_ERROR",
            details={"fields": e.errors(include_url=False, include_context=False, include_input=False)},
            status_code=400)

    @app.errorhandler(404)
    def resource_not_found(e):
        """Handles 404 Not Found errors for a clean API response."""
        return jsonify(error_code="NOT_FOUND", message="The requested resource was not found."), 404

    @app.errorhandler(429)
    def rate_limited(e):
        return create_error_response("RATE_LIMITED", str(e.description), status_code=429)

    @app.errorhandler(Exception)
    def internal_server_error(e):
        """Handles unexpected errors for a clean API response."""
        if isinstance(e, HTTPException):
            return jsonify(error_code="INVALID_REQUEST", message=e.description), e.code
        logging.critical(f"An unhandled exception occurred: {e}", exc_info=True)
        return jsonify(error_code="SERVER_ERROR", message="An unexpected error occurred on the server."), 500

    return app


app = create_app()
