import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from exceptions import EcoNovaError

# Collection names used by every record store backend
USERS = 'users'
SUBMISSIONS = 'submissions'
ASSIGNMENTS = 'assignments'
NOTIFICATIONS = 'notifications'

UserRole = Literal['student', 'teacher']
SubmissionStatus = Literal['pending', 'approved', 'rejected']
StoredAssignmentStatus = Literal['assigned', 'completed']
AssignmentStatus = Literal['assigned', 'completed', 'overdue']


class User(BaseModel):
    id: str
    displayName: str = "Anonymous"
    role: UserRole = 'student'
    points: int = Field(default=0, ge=0)
    achievements: List[str] = []
    badges: List[str] = []
    completedLevels: List[int] = []
    # Submission ids whose points are already in `points`
    pointAwards: List[str] = []
    fcmToken: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    def to_record(self) -> dict:
        return self.model_dump(mode='json')


class TaskSubmission(BaseModel):
    id: str
    userId: str
    taskType: str
    description: str
    imageEvidence: Optional[str] = None
    taskId: Optional[str] = None
    assignmentId: Optional[str] = None
    submittedAt: str
    status: SubmissionStatus = 'pending'
    confidence: Optional[float] = None
    feedback: Optional[str] = None
    pointsAwarded: int = 0
    # Set once the approval's points and unlocks have been applied
    awarded: bool = False
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    def to_record(self) -> dict:
        return self.model_dump(mode='json')

    def summary(self) -> dict:
        """The record without the (potentially large) image payload."""
        data = self.model_dump(mode='json', exclude={'imageEvidence'})
        data['hasImage'] = self.imageEvidence is not None
        return data


class Assignment(BaseModel):
    id: str
    studentId: str
    studentName: Optional[str] = None
    taskType: str
    points: int
    description: str
    dueDate: datetime.date
    # Only 'assigned' and 'completed' are ever stored; 'overdue' is a read-time label
    status: AssignmentStatus = 'assigned'
    templateId: Optional[str] = None
    assignedBy: Optional[str] = None
    assignedDate: Optional[str] = None
    completedAt: Optional[str] = None
    submissionId: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    def to_record(self) -> dict:
        return self.model_dump(mode='json')


class OperationResult(BaseModel):
    """Structured success/failure returned by CRUD operations instead of raising."""
    success: bool
    data: Optional[Any] = None
    error_code: Optional[str] = None
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> "OperationResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error: EcoNovaError) -> "OperationResult":
        return cls(
            success=False,
            error_code=error.error_code,
            message=error.message,
            details=error.details or None,
        )
