"""Pytest fixtures shared by the EcoNova backend tests."""

import datetime
import os

os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LOG_FILE_PATH", "/tmp/econova_test.log")
os.environ.setdefault("RATELIMIT_STORAGE_URI", "memory://")

import pytest

from assignments import AssignmentRegistry
from exceptions import PersistenceError
from gemini_service import EvidenceAnalysis
from models import USERS, User
from notifications import UnlockNotifier
from progression import ProgressionEngine
from record_store import InMemoryRecordStore
from submission_pipeline import SubmissionPipeline
from submission_scorer import SubmissionScorer
from task_catalog import TaskCatalog

TODAY = datetime.date(2026, 10, 18)

# 72 characters, four recycling keywords: scores exactly the default threshold
RECYCLING_72 = "I sorted plastic bottles and paper into the recycling bin at home today."


class StubAnalyzer:
    """Evidence analyzer double: returns a fixed analysis, or raises if given an exception."""

    def __init__(self, confidence=0.9, success=True, feedback="Image shows sorted recyclables.", raises=None):
        self.confidence = confidence
        self.success = success
        self.feedback = feedback
        self.raises = raises
        self.calls = []

    def analyze(self, image_evidence, task_type, description):
        self.calls.append((image_evidence, task_type, description))
        if self.raises is not None:
            raise self.raises
        if not self.success:
            return EvidenceAnalysis(success=False, error="model unavailable")
        return EvidenceAnalysis(success=True, confidence=self.confidence, feedback=self.feedback)


class FailingUserWrites(InMemoryRecordStore):
    """In-memory store whose next `failures` writes to the users collection raise PersistenceError."""

    def __init__(self):
        super().__init__()
        self.failures = 0

    def put(self, collection, record):
        if collection == USERS and self.failures:
            self.failures -= 1
            raise PersistenceError("disk full")
        return super().put(collection, record)


@pytest.fixture()
def today():
    return TODAY


@pytest.fixture()
def store():
    return InMemoryRecordStore()


@pytest.fixture()
def failing_store():
    return FailingUserWrites()


@pytest.fixture()
def catalog():
    return TaskCatalog()


@pytest.fixture()
def make_user(store):
    def _make_user(user_id="student-1", role="student", display_name="Ana", **fields):
        user = User(id=user_id, displayName=display_name, role=role, **fields)
        store.put(USERS, user.to_record())
        return user
    return _make_user


@pytest.fixture()
def engine(store):
    return ProgressionEngine(store)


@pytest.fixture()
def registry(store, catalog):
    return AssignmentRegistry(store, catalog, today_provider=lambda: TODAY)


@pytest.fixture()
def notifier(store):
    return UnlockNotifier(store)


@pytest.fixture()
def scorer():
    return SubmissionScorer()


@pytest.fixture()
def pipeline(store, scorer, engine, registry, catalog, notifier):
    return SubmissionPipeline(store, scorer, engine, registry, catalog, notifier)


@pytest.fixture()
def app(store, catalog, registry):
    import dependencies
    from main import create_app

    dependencies.reset_services(store=store, catalog=catalog, analyzer=None, registry=registry)
    flask_app = create_app({"TESTING": True, "RATELIMIT_ENABLED": False, "SCORE_SUBMISSIONS_ASYNC": False})
    yield flask_app
    dependencies.reset_services()


@pytest.fixture()
def client(app):
    return app.test_client()
