"""
Record Store: a collection-name -> {id -> record} key-value store.

Every backend honours the same contract (get / get_all / put / delete / query)
so the core never needs to know which medium it is talking to. The backend is
picked once by configuration in dependencies.build_record_store().
"""

import copy
import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from exceptions import ExternalServiceError, PersistenceError, ValidationError
from timezone_utils import utc_now_iso

logger = logging.getLogger(__name__)

Predicate = Callable[[dict], bool]


class RecordStore(ABC):
    """Base contract. put() is shared: it validates the id and stamps timestamps."""

    name = "abstract"

    @abstractmethod
    def get(self, collection: str, record_id: str) -> Optional[dict]:
        ...

    @abstractmethod
    def get_all(self, collection: str) -> List[dict]:
        ...

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> bool:
        ...

    @abstractmethod
    def _write(self, collection: str, record: dict) -> None:
        ...

    def query(self, collection: str, predicate: Predicate) -> List[dict]:
        return [record for record in self.get_all(collection) if predicate(record)]

    def put(self, collection: str, record: dict) -> dict:
        """Upsert by id. Stamps createdAt on first write and updatedAt on every write."""
        if not record or not record.get('id'):
            raise ValidationError("Item must have an id to be saved.", {"id": "required"})

        existing = self.get(collection, record['id'])
        now = utc_now_iso()
        stamped = dict(record)
        stamped['createdAt'] = (existing or {}).get('createdAt') or record.get('createdAt') or now
        stamped['updatedAt'] = now
        self._write(collection, stamped)
        return stamped

    def health_check(self) -> dict:
        try:
            self.get_all('__health__')
            return {"status": "OK", "details": f"{self.name} record store is readable."}
        except Exception as e:
            return {"status": "ERROR", "details": f"{self.name} record store failed: {e}"}


class InMemoryRecordStore(RecordStore):
    """Process-local store. Records are deep-copied in and out so callers cannot alias stored state."""

    name = "memory"

    def __init__(self):
        self._collections: Dict[str, Dict[str, dict]] = {}

    def get(self, collection, record_id):
        record = self._collections.get(collection, {}).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def get_all(self, collection):
        return [copy.deepcopy(r) for r in self._collections.get(collection, {}).values()]

    def delete(self, collection, record_id):
        return self._collections.get(collection, {}).pop(record_id, None) is not None

    def _write(self, collection, record):
        self._collections.setdefault(collection, {})[record['id']] = copy.deepcopy(record)

    def clear(self, collection: Optional[str] = None):
        if collection is None:
            self._collections.clear()
        else:
            self._collections.pop(collection, None)


class SQLiteRecordStore(RecordStore):
    """
    On-device structured store backed by a single SQLite table.
    Records are stored as JSON text keyed by (collection, id).
    """

    name = "sqlite"

    def __init__(self, db_path: str = "econova.db"):
        self.db_path = db_path
        self._lock = threading.Lock()
        self.init_db()

    def _connect(self):
        return sqlite3.connect(self.db_path)

    def init_db(self):
        """Create the records table if it does not exist yet."""
        try:
            conn = self._connect()
            cursor = conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS records (
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    PRIMARY KEY (collection, id)
                )
            ''')
            conn.commit()
            conn.close()
            logger.info(f"SQLite record store initialized at {self.db_path}")
        except sqlite3.Error as e:
            logger.error(f"Error initializing SQLite record store: {e}")
            raise PersistenceError(f"Could not initialize SQLite store: {e}") from e

    def _execute(self, sql, params=(), fetch=None):
        with self._lock:
            try:
                conn = self._connect()
            except sqlite3.Error as e:
                logger.error(f"Could not open SQLite database {self.db_path}: {e}")
                raise PersistenceError(f"SQLite operation failed: {e}") from e
            try:
                cursor = conn.cursor()
                cursor.execute(sql, params)
                if fetch == 'one':
                    result = cursor.fetchone()
                elif fetch == 'all':
                    result = cursor.fetchall()
                else:
                    result = cursor.rowcount
                conn.commit()
                return result
            except sqlite3.Error as e:
                logger.error(f"SQLite operation failed: {e}")
                raise PersistenceError(f"SQLite operation failed: {e}") from e
            finally:
                conn.close()

    def get(self, collection, record_id):
        row = self._execute(
            'SELECT data FROM records WHERE collection = ? AND id = ?',
            (collection, str(record_id)), fetch='one')
        return json.loads(row[0]) if row else None

    def get_all(self, collection):
        rows = self._execute(
            'SELECT data FROM records WHERE collection = ? ORDER BY rowid ASC',
            (collection,), fetch='all')
        return [json.loads(row[0]) for row in rows]

    def delete(self, collection, record_id):
        deleted = self._execute(
            'DELETE FROM records WHERE collection = ? AND id = ?',
            (collection, str(record_id)))
        return deleted > 0

    def _write(self, collection, record):
        self._execute(
            '''
            INSERT INTO records (collection, id, data) VALUES (?, ?, ?)
            ON CONFLICT(collection, id) DO UPDATE SET data = excluded.data
            ''',
            (collection, str(record['id']), json.dumps(record, default=str)))


class FirestoreRecordStore(RecordStore):
    """Remote document store: one Firestore collection per record collection, document id = record id."""

    name = "firestore"

    def __init__(self, client):
        self.db = client

    def get(self, collection, record_id):
        try:
            doc = self.db.collection(collection).document(str(record_id)).get()
        except Exception as e:
            logger.error(f"Firestore read failed for {collection}/{record_id}: {e}", exc_info=True)
            raise PersistenceError(f"Firestore read failed: {e}") from e
        return doc.to_dict() if doc.exists else None

    def get_all(self, collection):
        try:
            return [doc.to_dict() for doc in self.db.collection(collection).stream()]
        except Exception as e:
            logger.error(f"Firestore stream failed for {collection}: {e}", exc_info=True)
            raise PersistenceError(f"Firestore read failed: {e}") from e

    def delete(self, collection, record_id):
        try:
            doc_ref = self.db.collection(collection).document(str(record_id))
            if not doc_ref.get().exists:
                return False
            doc_ref.delete()
            return True
        except Exception as e:
            logger.error(f"Firestore delete failed for {collection}/{record_id}: {e}", exc_info=True)
            raise PersistenceError(f"Firestore delete failed: {e}") from e

    def _write(self, collection, record):
        try:
            self.db.collection(collection).document(str(record['id'])).set(record)
        except Exception as e:
            logger.error(f"Firestore write failed for {collection}/{record['id']}: {e}", exc_info=True)
            raise PersistenceError(f"Firestore write failed: {e}") from e


class MirroredRecordStore(RecordStore):
    """
    Wraps a local store and mirrors every write to the remote EcoNova API.
    Reads are always local. A failing remote is logged and the local write stands.
    Collections the remote API has no resource for stay local only.
    """

    def __init__(self, local: RecordStore, remote):
        self.local = local
        self.remote = remote
        self.name = f"{local.name}+remote"

    def get(self, collection, record_id):
        return self.local.get(collection, record_id)

    def get_all(self, collection):
        return self.local.get_all(collection)

    def query(self, collection, predicate):
        return self.local.query(collection, predicate)

    def put(self, collection, record):
        saved = self.local.put(collection, record)
        if not self.remote.mirrors(collection):
            return saved
        try:
            self.remote.upsert(collection, saved)
        except ExternalServiceError as e:
            logger.warning(f"Remote mirror unavailable, kept local write for {collection}/{saved['id']}: {e}")
        return saved

    def delete(self, collection, record_id):
        deleted = self.local.delete(collection, record_id)
        if deleted and self.remote.mirrors(collection):
            try:
                self.remote.delete(collection, record_id)
            except ExternalServiceError as e:
                logger.warning(f"Remote mirror unavailable, kept local delete for {collection}/{record_id}: {e}")
        return deleted

    def _write(self, collection, record):
        self.local._write(collection, record)

    def health_check(self):
        return self.local.health_check()
