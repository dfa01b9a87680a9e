import logging
from flask import Blueprint, request, jsonify

from dependencies import get_store, get_engine, get_notifier, get_pipeline
from extensions import limiter
from models import USERS, User
from .error_utils import create_error_response, not_found_error
from .pydantic_models import (
    CreateUserRequest,
    CompleteLevelRequest,
    AcknowledgeNotificationsRequest,
    UserResponse,
)
from .sanitization import sanitize_display_text, MAX_DISPLAY_NAME_LENGTH

users_bp = Blueprint('users_bp', __name__)

@users_bp.route('', methods=['POST'])
@limiter.limit("20 per minute")
def create_user():
    req_data = CreateUserRequest.model_validate(request.get_json())
    store = get_store()

    if store.get(USERS, req_data.userId) is not None:
        return create_error_response("USER_EXISTS", details={"userId": req_data.userId}, status_code=409)

    display_name = sanitize_display_text(req_data.displayName, MAX_DISPLAY_NAME_LENGTH) or "Anonymous"
    user = User(id=req_data.userId, displayName=display_name, role=req_data.role, fcmToken=req_data.fcmToken)
    saved = store.put(USERS, user.to_record())
    logging.info(f"Registered {user.role} {user.id}")
    return UserResponse.model_validate(saved).model_dump(), 201

@users_bp.route('/<user_id>', methods=['GET'])
def get_user(user_id):
    record = get_store().get(USERS, user_id)
    if record is None:
        return not_found_error("User not found")
    return UserResponse.model_validate(record).model_dump(), 200

@users_bp.route('/<user_id>/levels', methods=['POST'])
def complete_level(user_id):
    """Records a passed game level; only the first completion of a level earns points."""
    req_data = CompleteLevelRequest.model_validate(request.get_json())
    engine = get_engine()
    result = engine.complete_level(user_id, req_data.levelId, req_data.score)

    user = User(**get_store().get(USERS, user_id))
    events = result.events()
    if events:
        get_notifier().publish(user, events)

    return jsonify({
        "points": user.points,
        "completedLevels": user.completedLevels,
        "events": [e.model_dump() for e in events],
    }), 200

@users_bp.route('/<user_id>/achievements', methods=['GET'])
def get_achievements(user_id):
    return jsonify(get_engine().progress(user_id)), 200

@users_bp.route('/<user_id>/submissions', methods=['GET'])
def list_user_submissions(user_id):
    if get_store().get(USERS, user_id) is None:
        return not_found_error("User not found")
    submissions = get_pipeline().list_for_user(user_id)
    return jsonify([s.summary() for s in submissions]), 200

@users_bp.route('/<user_id>/notifications', methods=['GET'])
def get_notifications(user_id):
    if get_store().get(USERS, user_id) is None:
        return not_found_error("User not found")
    return jsonify(get_notifier().pending(user_id)), 200

@users_bp.route('/<user_id>/notifications/ack', methods=['POST'])
def acknowledge_notifications(user_id):
    req_data = AcknowledgeNotificationsRequest.model_validate(request.get_json())
    acknowledged = get_notifier().acknowledge(user_id, req_data.notificationIds)
    return jsonify({"acknowledged": acknowledged}), 200
