"""Tests for the teacher assignment registry."""

import pytest

from assignments import derive_status
from exceptions import PersistenceError
from models import ASSIGNMENTS
from tests.conftest import TODAY


@pytest.fixture()
def people(make_user):
    make_user("student-1", display_name="Ana")
    make_user("student-2", display_name="Budi")
    make_user("teacher-1", role="teacher", display_name="Ms. Rahma")


def create(registry, **overrides):
    fields = dict(student_id="student-1", task_type="recycling", points=20,
                  description="Sort the recycling at home", due_date="2026-10-25")
    fields.update(overrides)
    return registry.create(**fields)


def test_create_persists_assigned(registry, store, people):
    result = create(registry, assigned_by="teacher-1", template_id="recycling-1")

    assert result.success
    saved = store.get(ASSIGNMENTS, result.data["id"])
    assert saved["status"] == "assigned"
    assert saved["studentName"] == "Ana"
    assert saved["dueDate"] == "2026-10-25"


def test_due_yesterday_is_rejected_and_nothing_persisted(registry, store, people):
    result = create(registry, due_date="2026-10-17")

    assert not result.success
    assert result.error_code == "VALIDATION_ERROR"
    assert "dueDate" in result.details
    assert store.get_all(ASSIGNMENTS) == []


def test_due_today_is_accepted(registry, people):
    assert create(registry, due_date=TODAY.isoformat()).success


def test_field_errors_are_collected(registry, store, people):
    result = create(registry, student_id="ghost", task_type="", points=0, description="  ", due_date="soon")

    assert result.error_code == "VALIDATION_ERROR"
    assert set(result.details) == {"studentId", "taskType", "points", "description", "dueDate"}
    assert store.get_all(ASSIGNMENTS) == []


def test_unknown_template_and_non_teacher_assigner(registry, people):
    result = create(registry, template_id="nope", assigned_by="student-2")

    assert set(result.details) == {"templateId", "assignedBy"}


def test_create_bulk_reports_per_student(registry, store, people):
    result = registry.create_bulk(["student-1", "student-2", "ghost"], task_type="water", points=10,
                                  description="Take shorter showers", due_date="2026-10-30")

    assert not result.success
    assert len(result.data["created"]) == 2
    assert [f["studentId"] for f in result.data["failed"]] == ["ghost"]
    assert len(store.get_all(ASSIGNMENTS)) == 2


def test_get_update_delete_not_found(registry):
    for result in (registry.get("missing"), registry.update("missing", {"points": 5}),
                   registry.delete("missing"), registry.mark_completed("missing")):
        assert not result.success
        assert result.error_code == "NOT_FOUND"


def test_update_validates_changed_fields(registry, people):
    assignment_id = create(registry).data["id"]

    assert registry.update(assignment_id, {"points": -1}).error_code == "VALIDATION_ERROR"
    assert registry.update(assignment_id, {"status": "overdue"}).error_code == "VALIDATION_ERROR"
    assert registry.update(assignment_id, {"secret": 1}).error_code == "VALIDATION_ERROR"

    updated = registry.update(assignment_id, {"points": 40, "dueDate": "2026-11-01"})
    assert updated.success
    assert updated.data["points"] == 40
    assert updated.data["dueDate"] == "2026-11-01"


def test_update_rejects_non_string_references(registry, people):
    assignment_id = create(registry).data["id"]

    result = registry.update(assignment_id, {"assignedBy": ["teacher-1"], "templateId": {"id": "water-1"}})

    assert result.error_code == "VALIDATION_ERROR"
    assert set(result.details) == {"assignedBy", "templateId"}


def test_delete(registry, store, people):
    assignment_id = create(registry).data["id"]

    assert registry.delete(assignment_id).success
    assert store.get(ASSIGNMENTS, assignment_id) is None


def test_overdue_is_derived_not_stored(registry, store, people):
    assignment_id = create(registry, due_date="2026-10-19").data["id"]
    registry.today_provider = lambda: TODAY.replace(day=20)

    assert registry.get(assignment_id).data["status"] == "overdue"
    assert store.get(ASSIGNMENTS, assignment_id)["status"] == "assigned"


def test_completed_is_never_overdue():
    record = {"status": "completed", "dueDate": "2026-10-01"}
    assert derive_status(record, TODAY) == "completed"
    assert derive_status({"status": "assigned", "dueDate": "2026-10-01"}, TODAY) == "overdue"


def test_mark_completed(registry, store, people):
    assignment_id = create(registry).data["id"]

    result = registry.mark_completed(assignment_id, "sub-1")

    assert result.data["status"] == "completed"
    assert store.get(ASSIGNMENTS, assignment_id)["submissionId"] == "sub-1"


def test_lists_sorted_by_due_date(registry, people):
    create(registry, due_date="2026-11-05")
    create(registry, due_date="2026-10-20")
    create(registry, student_id="student-2", due_date="2026-10-22")

    mine = registry.list_for_student("student-1").data
    assert [a["dueDate"] for a in mine] == ["2026-10-20", "2026-11-05"]
    assert [a["dueDate"] for a in registry.list_all().data] == ["2026-10-20", "2026-10-22", "2026-11-05"]


def test_persistence_error_propagates(registry, store, people, monkeypatch):
    def broken_write(collection, record):
        raise PersistenceError("disk full")

    monkeypatch.setattr(store, "_write", broken_write)
    with pytest.raises(PersistenceError):
        create(registry)
