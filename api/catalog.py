from flask import Blueprint, request, jsonify

from dependencies import get_catalog
from .error_utils import not_found_error, bad_request_error

catalog_bp = Blueprint('catalog_bp', __name__)

DEFAULT_RANDOM_COUNT = 3
MAX_RANDOM_COUNT = 27

@catalog_bp.route('/categories', methods=['GET'])
def list_categories():
    return jsonify(get_catalog().categories()), 200

@catalog_bp.route('/difficulty-levels', methods=['GET'])
def list_difficulty_levels():
    return jsonify(get_catalog().difficulty_levels()), 200

@catalog_bp.route('', methods=['GET'])
def list_tasks():
    """Every task, optionally narrowed by ?category= and/or ?difficulty=."""
    catalog = get_catalog()
    category = request.args.get('category')
    difficulty = request.args.get('difficulty')

    tasks = catalog.by_category(category) if category else catalog.all()
    if difficulty:
        tasks = [t for t in tasks if t.difficulty == difficulty]
    return jsonify([t.model_dump() for t in tasks]), 200

@catalog_bp.route('/random', methods=['GET'])
def random_tasks():
    try:
        count = int(request.args.get('count', DEFAULT_RANDOM_COUNT))
    except ValueError:
        return bad_request_error("count must be an integer")
    count = min(count, MAX_RANDOM_COUNT)
    return jsonify([t.model_dump() for t in get_catalog().random(count)]), 200

@catalog_bp.route('/<task_id>', methods=['GET'])
def get_task(task_id):
    task = get_catalog().by_id(task_id)
    if task is None:
        return not_found_error(f"Task '{task_id}' not found")
    return jsonify(task.model_dump()), 200
