"""
Submission pipeline: submission -> scoring -> persistence -> unlocks -> notification.

A submission is created 'pending' and scored exactly once. The scored status is
persisted before points are awarded so the progression engine counts the new
approval when it recomputes stats. An assignment pays out for the first approved
submission only; points are keyed by submission id so a retried award is not
counted twice.
"""

import logging
import uuid
from typing import List, Optional

from pydantic import BaseModel

from exceptions import NotFoundError, ValidationError
from models import ASSIGNMENTS, SUBMISSIONS, USERS, TaskSubmission, User
from progression import AchievementDefinition, BadgeDefinition, ProgressionResult, UnlockEvent
from submission_scorer import FAILED_MESSAGE, PASSED_MESSAGE, ScoreResult, count_keyword_matches
from timezone_utils import utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_TASK_POINTS = 10
ALREADY_COMPLETED_FEEDBACK = "This assignment was already completed by an earlier submission."


class SubmissionOutcome(BaseModel):
    submission: dict
    score: ScoreResult
    pointsAwarded: int = 0
    totalPoints: int = 0
    newAchievements: List[AchievementDefinition] = []
    newBadges: List[BadgeDefinition] = []
    events: List[UnlockEvent] = []


class SubmissionPipeline:
    def __init__(self, store, scorer, engine, registry, catalog, notifier=None):
        self.store = store
        self.scorer = scorer
        self.engine = engine
        self.registry = registry
        self.catalog = catalog
        self.notifier = notifier

    def _load_submission(self, submission_id: str) -> TaskSubmission:
        record = self.store.get(SUBMISSIONS, submission_id)
        if record is None:
            raise NotFoundError(f"Submission '{submission_id}' not found.", {"submissionId": submission_id})
        return TaskSubmission(**record)

    def get_submission(self, submission_id: str) -> TaskSubmission:
        return self._load_submission(submission_id)

    def list_for_user(self, user_id: str) -> List[TaskSubmission]:
        records = self.store.query(SUBMISSIONS, lambda r: r.get('userId') == user_id)
        return sorted((TaskSubmission(**r) for r in records), key=lambda s: s.submittedAt, reverse=True)

    def create_submission(self, user_id: str, task_type: Optional[str], description: str,
                          image_evidence: Optional[str] = None, task_id: Optional[str] = None,
                          assignment_id: Optional[str] = None) -> TaskSubmission:
        if self.store.get(USERS, user_id) is None:
            raise NotFoundError(f"User '{user_id}' not found.", {"userId": user_id})

        errors = {}
        if not description or not description.strip():
            errors['description'] = "Please describe what you did."

        if task_id is not None:
            template = self.catalog.by_id(task_id)
            if template is None:
                errors['taskId'] = f"Unknown task '{task_id}'."
            elif not task_type:
                task_type = template.category

        if assignment_id is not None:
            assignment = self.store.get(ASSIGNMENTS, assignment_id)
            if assignment is None:
                raise NotFoundError(f"Assignment '{assignment_id}' not found.", {"assignmentId": assignment_id})
            if assignment.get('studentId') != user_id:
                errors['assignmentId'] = "This task was not assigned to you."
            elif assignment.get('status') == 'completed':
                errors['assignmentId'] = "This assignment is already completed."
            elif not task_type:
                task_type = assignment.get('taskType')

        if not task_type or not task_type.strip():
            errors['taskType'] = "Task type is required."

        if errors:
            raise ValidationError("Submission validation failed.", errors)

        submission = TaskSubmission(
            id=str(uuid.uuid4()),
            userId=user_id,
            taskType=task_type.strip().lower(),
            description=description.strip(),
            imageEvidence=image_evidence or None,
            taskId=task_id,
            assignmentId=assignment_id,
            submittedAt=utc_now_iso(),
            status='pending',
        )
        saved = self.store.put(SUBMISSIONS, submission.to_record())
        logger.info(f"Created submission {submission.id} ({submission.taskType}) for user {user_id}")
        return TaskSubmission(**saved)

    def _points_for(self, submission: TaskSubmission) -> int:
        if submission.assignmentId:
            assignment = self.store.get(ASSIGNMENTS, submission.assignmentId)
            if assignment and assignment.get('points'):
                return assignment['points']
        if submission.taskId:
            template = self.catalog.by_id(submission.taskId)
            if template is not None:
                return template.points
        return DEFAULT_TASK_POINTS

    def _claim_assignment(self, submission: TaskSubmission) -> bool:
        """Marks the assignment completed by this submission. False if another submission got there first."""
        assignment = self.store.get(ASSIGNMENTS, submission.assignmentId)
        if assignment is None:
            logger.warning(f"Assignment {submission.assignmentId} no longer exists, scoring submission {submission.id} without it")
            return True
        if assignment.get('status') == 'completed':
            return assignment.get('submissionId') == submission.id

        result = self.registry.mark_completed(submission.assignmentId, submission.id)
        if not result.success:
            logger.warning(f"Could not complete assignment {submission.assignmentId}: {result.message}")
        return True

    def _score(self, submission: TaskSubmission) -> ScoreResult:
        score = self.scorer.score(submission.taskType, submission.description, submission.imageEvidence)

        if score.passed and submission.assignmentId and not self._claim_assignment(submission):
            logger.info(f"Submission {submission.id} lost assignment {submission.assignmentId} to an earlier submission")
            score = score.model_copy(update={
                'passed': False,
                'message': FAILED_MESSAGE,
                'feedback': ALREADY_COMPLETED_FEEDBACK,
            })

        submission.status = 'approved' if score.passed else 'rejected'
        submission.confidence = score.confidence
        submission.feedback = score.feedback
        if score.passed:
            submission.pointsAwarded = self._points_for(submission)
        self.store.put(SUBMISSIONS, submission.to_record())
        logger.info(f"Submission {submission.id} {submission.status} with confidence {score.confidence}")
        return score

    def _stored_score(self, submission: TaskSubmission) -> ScoreResult:
        """The score of an approval persisted by an earlier, interrupted run."""
        return ScoreResult(
            confidence=submission.confidence or 0.0,
            passed=True,
            message=PASSED_MESSAGE,
            feedback=submission.feedback or "",
            keywordMatches=count_keyword_matches(submission.taskType, submission.description),
        )

    def _award(self, submission: TaskSubmission) -> ProgressionResult:
        if submission.pointsAwarded > 0:
            progression = self.engine.award_points(
                submission.userId, submission.pointsAwarded, f"submission {submission.id}",
                award_key=submission.id)
        else:
            progression = self.engine.evaluate(submission.userId)

        submission.awarded = True
        self.store.put(SUBMISSIONS, submission.to_record())
        return progression

    def process_submission(self, submission_id: str) -> SubmissionOutcome:
        """Score a pending submission and apply an approval.

        An approval whose points were not yet applied (the store failed part way)
        is picked up again here without re-scoring.
        """
        submission = self._load_submission(submission_id)
        if submission.status == 'pending':
            score = self._score(submission)
        elif submission.status == 'approved' and not submission.awarded:
            logger.info(f"Resuming interrupted award for submission {submission_id}")
            score = self._stored_score(submission)
        else:
            raise ValidationError("Submission has already been scored.",
                                  {"submissionId": submission_id, "status": submission.status})

        progression = ProgressionResult()
        if submission.status == 'approved':
            progression = self._award(submission)

        user = User(**self.store.get(USERS, submission.userId))
        events = progression.events()
        if events and self.notifier is not None:
            self.notifier.publish(user, events)

        return SubmissionOutcome(
            submission=submission.summary(),
            score=score,
            pointsAwarded=submission.pointsAwarded,
            totalPoints=user.points,
            newAchievements=progression.newAchievements,
            newBadges=progression.newBadges,
            events=events,
        )

    def submit(self, user_id: str, task_type: Optional[str], description: str,
               image_evidence: Optional[str] = None, task_id: Optional[str] = None,
               assignment_id: Optional[str] = None) -> SubmissionOutcome:
        submission = self.create_submission(user_id, task_type, description, image_evidence,
                                            task_id, assignment_id)
        return self.process_submission(submission.id)
