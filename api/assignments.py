from flask import Blueprint, request

from dependencies import get_registry
from .error_utils import result_response, bad_request_error
from .pydantic_models import CreateAssignmentRequest, UpdateAssignmentRequest
from .sanitization import sanitize_display_text, MAX_DESCRIPTION_LENGTH

assignments_bp = Blueprint('assignments_bp', __name__)

def _clean_text(value):
    return sanitize_display_text(value, MAX_DESCRIPTION_LENGTH) if isinstance(value, str) else value

@assignments_bp.route('/assignments', methods=['POST'])
def create_assignment():
    """Assigns a task to one student (studentId) or several at once (studentIds)."""
    req_data = CreateAssignmentRequest.model_validate(request.get_json())
    fields = dict(
        task_type=req_data.taskType,
        points=req_data.points,
        description=_clean_text(req_data.description),
        due_date=req_data.dueDate,
        template_id=req_data.templateId,
        assigned_by=req_data.assignedBy,
    )
    registry = get_registry()

    if req_data.studentIds is not None:
        return result_response(registry.create_bulk(req_data.studentIds, **fields), success_status=201)
    return result_response(registry.create(req_data.studentId, **fields), success_status=201)

@assignments_bp.route('/assignments', methods=['GET'])
def list_assignments():
    return result_response(get_registry().list_all(request.args.get('studentId')))

@assignments_bp.route('/students/<student_id>/assignments', methods=['GET'])
def list_student_assignments(student_id):
    return result_response(get_registry().list_for_student(student_id))

@assignments_bp.route('/assignments/<assignment_id>', methods=['GET'])
def get_assignment(assignment_id):
    return result_response(get_registry().get(assignment_id))

@assignments_bp.route('/assignments/<assignment_id>', methods=['PUT'])
def update_assignment(assignment_id):
    changes = UpdateAssignmentRequest.model_validate(request.get_json()).changes()
    if not changes:
        return bad_request_error("No fields to update")
    if 'description' in changes:
        changes['description'] = _clean_text(changes['description'])
    return result_response(get_registry().update(assignment_id, changes))

@assignments_bp.route('/assignments/<assignment_id>', methods=['DELETE'])
def delete_assignment(assignment_id):
    return result_response(get_registry().delete(assignment_id))
