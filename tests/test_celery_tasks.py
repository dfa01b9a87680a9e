"""Tests for the queued scoring task, called directly rather than through a broker."""

import pytest

import dependencies
from assignments import AssignmentRegistry
from exceptions import PersistenceError
from models import USERS, User
from progression import ProgressionEngine
from submission_pipeline import SubmissionPipeline
from submission_scorer import SubmissionScorer
from tasks import process_submission_task
from tests.conftest import RECYCLING_72, TODAY


@pytest.fixture()
def wired(store, catalog, registry, pipeline):
    dependencies.reset_services(store=store, catalog=catalog, registry=registry, pipeline=pipeline)
    yield pipeline
    dependencies.reset_services()


def test_scores_pending_submission(wired, make_user):
    make_user("u1")
    submission = wired.create_submission("u1", "recycling", RECYCLING_72)

    result = process_submission_task(submission.id)

    assert result["submission"]["status"] == "approved"
    assert result["pointsAwarded"] == 10


def test_already_scored_submission_is_skipped(wired, make_user):
    make_user("u1")
    submission = wired.create_submission("u1", "recycling", RECYCLING_72)
    process_submission_task(submission.id)

    assert process_submission_task(submission.id) is None


def test_unknown_submission_is_skipped(wired):
    assert process_submission_task("missing") is None


def test_store_failure_is_retried_and_retry_finishes_award(failing_store, catalog):
    pipeline = SubmissionPipeline(
        failing_store, SubmissionScorer(), ProgressionEngine(failing_store),
        AssignmentRegistry(failing_store, catalog, today_provider=lambda: TODAY), catalog)
    dependencies.reset_services(store=failing_store, catalog=catalog, pipeline=pipeline)
    failing_store.put(USERS, User(id="u1").to_record())
    submission = pipeline.create_submission("u1", "recycling", RECYCLING_72)

    failing_store.failures = 1
    try:
        with pytest.raises(PersistenceError):
            process_submission_task(submission.id)

        result = process_submission_task(submission.id)
    finally:
        dependencies.reset_services()

    assert result["pointsAwarded"] == 10
    assert failing_store.get(USERS, "u1")["points"] == 10
    assert failing_store.get(USERS, "u1")["achievements"] == ["first_task"]
