from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

# --- USERS ---
class CreateUserRequest(BaseModel):
    userId: str = Field(min_length=1, max_length=128)
    displayName: Optional[str] = None
    role: Literal['student', 'teacher'] = 'student'
    fcmToken: Optional[str] = None

class CompleteLevelRequest(BaseModel):
    levelId: int = Field(ge=1)
    score: int = Field(ge=0)

class AcknowledgeNotificationsRequest(BaseModel):
    notificationIds: List[str]

# --- SUBMISSIONS ---
class SubmissionRequest(BaseModel):
    userId: str
    taskType: Optional[str] = None
    description: str
    imageEvidence: Optional[str] = None
    taskId: Optional[str] = None
    assignmentId: Optional[str] = None

# --- ASSIGNMENTS ---
# Field types are loose on purpose: the registry reports field errors itself.
class CreateAssignmentRequest(BaseModel):
    studentId: Optional[str] = None
    studentIds: Optional[List[str]] = None
    taskType: Optional[str] = None
    points: Any = None
    description: Optional[str] = None
    dueDate: Optional[str] = None
    templateId: Optional[str] = None
    assignedBy: Optional[str] = None

class UpdateAssignmentRequest(BaseModel):
    model_config = {"extra": "allow"}

    def changes(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})

# --- RESPONSES ---
class UserResponse(BaseModel):
    id: str
    displayName: str
    role: str
    points: int
    achievements: List[str] = []
    badges: List[str] = []
    completedLevels: List[int] = []
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
