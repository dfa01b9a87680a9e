"""
Assignment Registry: teacher-to-student task assignments.

Every public operation returns an OperationResult. Validation and not-found
failures are reported through it and never raised. Store failures
(PersistenceError) are not absorbed. Only 'assigned' and 'completed' are ever
persisted; 'overdue' is a label derived when an assignment is read.
"""

import datetime
import logging
import uuid
from typing import Any, Callable, Dict, Iterable, List, Optional

from exceptions import NotFoundError, ValidationError
from models import ASSIGNMENTS, USERS, Assignment, OperationResult
from timezone_utils import get_current_date, parse_iso_date, utc_now_iso

logger = logging.getLogger(__name__)

STORED_STATUSES = ('assigned', 'completed')
EDITABLE_FIELDS = {'studentId', 'taskType', 'points', 'description', 'dueDate', 'status', 'templateId', 'assignedBy'}


def derive_status(assignment: dict, today: datetime.date) -> str:
    status = assignment.get('status', 'assigned')
    due = parse_iso_date(assignment.get('dueDate'))
    if status == 'assigned' and due is not None and today > due:
        return 'overdue'
    return status


class AssignmentRegistry:
    def __init__(self, store, catalog, today_provider: Callable[[], datetime.date] = get_current_date):
        self.store = store
        self.catalog = catalog
        self.today_provider = today_provider

    # --- validation helpers ---

    def _check_student(self, student_id, errors: Dict[str, str]) -> Optional[dict]:
        if not student_id or not isinstance(student_id, str):
            errors['studentId'] = "Student is required."
            return None
        student = self.store.get(USERS, student_id)
        if student is None:
            errors['studentId'] = f"Student '{student_id}' does not exist."
        elif student.get('role', 'student') != 'student':
            errors['studentId'] = f"User '{student_id}' is not a student."
        return student

    def _validate(self, fields: Dict[str, Any], partial: bool = False) -> Dict[str, str]:
        """Field-level checks. With partial=True only the keys present in fields are checked."""
        errors: Dict[str, str] = {}

        def present(key):
            return not partial or key in fields

        if present('studentId'):
            self._check_student(fields.get('studentId'), errors)

        if present('taskType'):
            task_type = fields.get('taskType')
            if not isinstance(task_type, str) or not task_type.strip():
                errors['taskType'] = "Task type is required."

        if present('points'):
            points = fields.get('points')
            if isinstance(points, bool) or not isinstance(points, int) or points <= 0:
                errors['points'] = "Points must be a positive integer."

        if present('description'):
            description = fields.get('description')
            if not isinstance(description, str) or not description.strip():
                errors['description'] = "Description is required."

        if present('dueDate'):
            try:
                due = parse_iso_date(fields.get('dueDate'))
            except (TypeError, ValueError):
                errors['dueDate'] = "Due date must be an ISO date (YYYY-MM-DD)."
            else:
                if due is None:
                    errors['dueDate'] = "Due date is required."
                elif due < self.today_provider():
                    errors['dueDate'] = "Due date cannot be in the past."

        template_id = fields.get('templateId')
        if template_id is not None:
            if not isinstance(template_id, str):
                errors['templateId'] = "Template id must be a string."
            elif self.catalog.by_id(template_id) is None:
                errors['templateId'] = f"Unknown task template '{template_id}'."

        assigned_by = fields.get('assignedBy')
        if assigned_by is not None:
            teacher = self.store.get(USERS, assigned_by) if isinstance(assigned_by, str) else None
            if teacher is None or teacher.get('role') != 'teacher':
                errors['assignedBy'] = "Assignments can only be created by a teacher."

        if 'status' in fields and fields['status'] not in STORED_STATUSES:
            errors['status'] = f"Status must be one of {list(STORED_STATUSES)}."

        return errors

    def _load(self, assignment_id: str) -> dict:
        record = self.store.get(ASSIGNMENTS, assignment_id)
        if record is None:
            raise NotFoundError(f"Assignment '{assignment_id}' not found.", {"assignmentId": assignment_id})
        return record

    def _view(self, record: dict) -> dict:
        view = dict(record)
        view['status'] = derive_status(record, self.today_provider())
        return view

    def _sorted_views(self, records: Iterable[dict]) -> List[dict]:
        return sorted((self._view(r) for r in records), key=lambda r: r.get('dueDate') or '')

    # --- operations ---

    def create(self, student_id: str, task_type: str, points: int, description: str, due_date,
               template_id: Optional[str] = None, assigned_by: Optional[str] = None) -> OperationResult:
        fields = {
            'studentId': student_id,
            'taskType': task_type,
            'points': points,
            'description': description,
            'dueDate': due_date,
            'templateId': template_id,
            'assignedBy': assigned_by,
        }
        try:
            errors = self._validate(fields)
            if errors:
                raise ValidationError("Assignment validation failed.", errors)

            student = self.store.get(USERS, student_id)
            assignment = Assignment(
                id=str(uuid.uuid4()),
                studentId=student_id,
                studentName=student.get('displayName'),
                taskType=task_type.strip(),
                points=points,
                description=description.strip(),
                dueDate=parse_iso_date(due_date),
                status='assigned',
                templateId=template_id,
                assignedBy=assigned_by,
                assignedDate=utc_now_iso(),
            )
        except ValidationError as e:
            logger.warning(f"Rejected assignment for student {student_id}: {e.details}")
            return OperationResult.fail(e)

        saved = self.store.put(ASSIGNMENTS, assignment.to_record())
        logger.info(f"Created assignment {saved['id']} for student {student_id}")
        return OperationResult.ok(self._view(saved), "Task assigned successfully.")

    def create_bulk(self, student_ids: List[str], **fields) -> OperationResult:
        """Assign the same task to several students; returns per-student outcomes."""
        if not student_ids:
            return OperationResult.fail(
                ValidationError("Select at least one student.", {"studentIds": "required"}))

        created, failed = [], []
        for student_id in dict.fromkeys(student_ids):
            result = self.create(student_id, **fields)
            if result.success:
                created.append(result.data)
            else:
                failed.append({"studentId": student_id, "error_code": result.error_code,
                               "message": result.message, "details": result.details})

        message = f"Assigned to {len(created)} of {len(created) + len(failed)} students."
        if failed:
            return OperationResult(success=False, data={"created": created, "failed": failed},
                                   error_code='VALIDATION_ERROR', message=message)
        return OperationResult.ok({"created": created, "failed": failed}, message)

    def get(self, assignment_id: str) -> OperationResult:
        try:
            return OperationResult.ok(self._view(self._load(assignment_id)))
        except NotFoundError as e:
            return OperationResult.fail(e)

    def update(self, assignment_id: str, changes: Dict[str, Any]) -> OperationResult:
        try:
            record = self._load(assignment_id)
            unknown = set(changes) - EDITABLE_FIELDS
            if unknown:
                raise ValidationError("Unknown assignment fields.", {f: "not editable" for f in sorted(unknown)})

            errors = self._validate(changes, partial=True)
            if errors:
                raise ValidationError("Assignment validation failed.", errors)
        except (NotFoundError, ValidationError) as e:
            return OperationResult.fail(e)

        updated = {**record, **changes}
        if 'dueDate' in changes:
            updated['dueDate'] = parse_iso_date(changes['dueDate']).isoformat()
        if 'studentId' in changes:
            updated['studentName'] = self.store.get(USERS, changes['studentId']).get('displayName')

        saved = self.store.put(ASSIGNMENTS, Assignment(**updated).to_record())
        logger.info(f"Updated assignment {assignment_id}: {sorted(changes)}")
        return OperationResult.ok(self._view(saved), "Task updated successfully.")

    def delete(self, assignment_id: str) -> OperationResult:
        if not self.store.delete(ASSIGNMENTS, assignment_id):
            return OperationResult.fail(
                NotFoundError(f"Assignment '{assignment_id}' not found.", {"assignmentId": assignment_id}))
        logger.info(f"Deleted assignment {assignment_id}")
        return OperationResult.ok({"id": assignment_id}, "Task deleted successfully.")

    def mark_completed(self, assignment_id: str, submission_id: Optional[str] = None) -> OperationResult:
        try:
            record = self._load(assignment_id)
        except NotFoundError as e:
            return OperationResult.fail(e)

        record.update({'status': 'completed', 'completedAt': utc_now_iso(), 'submissionId': submission_id})
        saved = self.store.put(ASSIGNMENTS, record)
        logger.info(f"Assignment {assignment_id} completed by submission {submission_id}")
        return OperationResult.ok(self._view(saved))

    def list_for_student(self, student_id: str) -> OperationResult:
        records = self.store.query(ASSIGNMENTS, lambda r: r.get('studentId') == student_id)
        return OperationResult.ok(self._sorted_views(records))

    def list_all(self, student_id: Optional[str] = None) -> OperationResult:
        if student_id:
            return self.list_for_student(student_id)
        return OperationResult.ok(self._sorted_views(self.store.get_all(ASSIGNMENTS)))
