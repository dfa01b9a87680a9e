import logging
from flask import Blueprint, current_app, request, jsonify

from dependencies import get_pipeline
from extensions import limiter
from .error_utils import create_error_response
from .pydantic_models import SubmissionRequest
from .sanitization import sanitize_string, MAX_DESCRIPTION_LENGTH

submissions_bp = Blueprint('submissions_bp', __name__)

@submissions_bp.route('', methods=['POST'])
@limiter.limit("30 per minute")
def create_submission():
    """
    Accepts task evidence. Scores it inline, or queues scoring on Celery
    when SCORE_SUBMISSIONS_ASYNC is set and returns the pending submission.
    """
    req_data = SubmissionRequest.model_validate(request.get_json())
    pipeline = get_pipeline()

    submission = pipeline.create_submission(
        user_id=req_data.userId,
        task_type=req_data.taskType,
        description=sanitize_string(req_data.description, MAX_DESCRIPTION_LENGTH),
        image_evidence=req_data.imageEvidence,
        task_id=req_data.taskId,
        assignment_id=req_data.assignmentId,
    )

    if current_app.config.get("SCORE_SUBMISSIONS_ASYNC"):
        from tasks import process_submission_task # Local import
        try:
            process_submission_task.delay(submission.id)
        except Exception as e:
            logging.error(f"Failed to queue scoring for submission {submission.id}: {e}", exc_info=True)
            return create_error_response("TASK_QUEUE_ERROR", details={"submissionId": submission.id}, status_code=500)
        return jsonify(submission.summary()), 202

    outcome = pipeline.process_submission(submission.id)
    return outcome.model_dump(mode='json'), 201

@submissions_bp.route('/<submission_id>', methods=['GET'])
def get_submission(submission_id):
    return jsonify(get_pipeline().get_submission(submission_id).summary()), 200
