"""
Dependency injection container for the EcoNova backend.
Reads configuration from the environment once and builds the shared services
lazily, so importing this module never opens a connection.
"""

import logging
import os
import threading

import redis
from dotenv import load_dotenv
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from assignments import AssignmentRegistry
from gemini_service import DEFAULT_MODEL, GeminiEvidenceAnalyzer
from notifications import UnlockNotifier
from progression import ProgressionEngine
from record_store import FirestoreRecordStore, InMemoryRecordStore, MirroredRecordStore, SQLiteRecordStore
from remote_api import RemoteApiClient
from submission_pipeline import SubmissionPipeline
from submission_scorer import DEFAULT_THRESHOLD, SubmissionScorer
from task_catalog import TaskCatalog

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


# --- Environment variables ---
STORE_BACKEND = os.environ.get("STORE_BACKEND", "sqlite").lower()
SQLITE_PATH = os.environ.get("SQLITE_PATH", "econova.db")
REMOTE_API_BASE_URL = os.environ.get("REMOTE_API_BASE_URL")
REMOTE_API_TOKEN = os.environ.get("REMOTE_API_TOKEN")
REMOTE_API_TIMEOUT = float(os.environ.get("REMOTE_API_TIMEOUT", "10"))
VALIDATION_THRESHOLD = float(os.environ.get("VALIDATION_THRESHOLD", str(DEFAULT_THRESHOLD)))
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", DEFAULT_MODEL)
GEMINI_TIMEOUT_MS = int(os.environ.get("GEMINI_TIMEOUT_MS", "30000"))
REDIS_URL = os.environ.get("REDIS_URL")
FCM_ENABLED = _env_flag("FCM_ENABLED")
SCORE_SUBMISSIONS_ASYNC = _env_flag("SCORE_SUBMISSIONS_ASYNC")

# --- Gemini API Keys ---
GEMINI_API_KEYS = [os.environ.get(f"GEMINI_API_KEY_{i+1}") for i in range(4)]
ACTIVE_GEMINI_KEYS = [key for key in GEMINI_API_KEYS if key]

# --- Redis Connection Pool with Retry Logic ---
_redis_local = threading.local()

def get_redis_connection():
    """
    Get a thread-safe Redis connection from the pool with retry logic.
    Returns None when REDIS_URL is unset or the server is unreachable.
    """
    if not REDIS_URL:
        return None
    if not hasattr(_redis_local, 'connection'):
        try:
            retry = Retry(ExponentialBackoff(), retries=3)
            connection_pool = redis.ConnectionPool.from_url(
                REDIS_URL,
                decode_responses=True,
                retry=retry,
                max_connections=20,
                health_check_interval=30,
                socket_connect_timeout=5,
                socket_timeout=10
            )
            _redis_local.connection = redis.Redis(connection_pool=connection_pool)
            _redis_local.connection.ping()
            logging.info("Redis connection pool initialized successfully")
        except redis.exceptions.ConnectionError as e:
            logging.error(f"Failed to connect to Redis: {e}")
            _redis_local.connection = None
    return _redis_local.connection


def build_record_store():
    """Pick the record store backend once, from STORE_BACKEND, optionally mirrored to the remote API."""
    if STORE_BACKEND == "memory":
        store = InMemoryRecordStore()
    elif STORE_BACKEND == "sqlite":
        store = SQLiteRecordStore(SQLITE_PATH)
    elif STORE_BACKEND == "firestore":
        from google.cloud import firestore
        store = FirestoreRecordStore(firestore.Client())
    else:
        raise ValueError(f"Unknown STORE_BACKEND '{STORE_BACKEND}'. Use memory, sqlite or firestore.")

    if REMOTE_API_BASE_URL:
        remote = RemoteApiClient(REMOTE_API_BASE_URL, REMOTE_API_TOKEN, timeout=REMOTE_API_TIMEOUT)
        store = MirroredRecordStore(store, remote)
    logging.info(f"Using '{store.name}' record store")
    return store


# --- LAZY INITIALIZED SERVICES ---
_services = {}
_services_lock = threading.RLock()

def _get(name, factory):
    with _services_lock:
        if name not in _services:
            _services[name] = factory()
        return _services[name]

def get_store():
    return _get('store', build_record_store)

def get_catalog():
    return _get('catalog', TaskCatalog)

def get_evidence_analyzer():
    def factory():
        if not ACTIVE_GEMINI_KEYS:
            logging.warning("No GEMINI_API_KEY_n configured; image evidence will not be analyzed")
            return None
        return GeminiEvidenceAnalyzer(ACTIVE_GEMINI_KEYS, GEMINI_MODEL, get_redis_connection(), GEMINI_TIMEOUT_MS)
    return _get('analyzer', factory)

def get_scorer():
    return _get('scorer', lambda: SubmissionScorer(get_evidence_analyzer(), VALIDATION_THRESHOLD))

def get_engine():
    return _get('engine', lambda: ProgressionEngine(get_store()))

def get_registry():
    return _get('registry', lambda: AssignmentRegistry(get_store(), get_catalog()))

def get_notifier():
    return _get('notifier', lambda: UnlockNotifier(get_store(), FCM_ENABLED))

def get_pipeline():
    return _get('pipeline', lambda: SubmissionPipeline(
        get_store(), get_scorer(), get_engine(), get_registry(), get_catalog(), get_notifier()))

def reset_services(**overrides):
    """Drop every built service. Keyword overrides (store=, catalog=, analyzer=, ...) are installed as-is."""
    with _services_lock:
        _services.clear()
        _services.update(overrides)
