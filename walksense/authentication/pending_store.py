# walksense/authentication/pending_store.py
"""
Key/value staging for registrations that are waiting on OTP confirmation.

Both stores expose ``get``, ``put`` (with a TTL) and ``delete``. Entries are
plain dicts; an expired entry behaves exactly like a missing one.
"""
import copy
import threading
from sqlalchemy.exc import SQLAlchemyError
from walksense import timeutils
from walksense.init_db import db
from walksense.authentication.models import PendingRegistration
from walksense.errors import PersistenceFailure
from walksense.logging_config import setup_logging

logger = setup_logging()


class MemoryPendingStore:
    """Process-local store, suitable for tests and single-worker deployments."""

    def __init__(self):
        self._entries = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            payload, expires_at = entry
            if timeutils.utcnow() >= expires_at:
                del self._entries[key]
                return None
            return copy.deepcopy(payload)

    def put(self, key, payload, ttl):
        with self._lock:
            self._entries[key] = (copy.deepcopy(payload), timeutils.utcnow() + ttl)

    def delete(self, key):
        with self._lock:
            self._entries.pop(key, None)


class DatabasePendingStore:
    """Stores pending registrations in the ``pending_registrations`` table."""

    def get(self, key):
        entry = db.session.get(PendingRegistration, key)
        if entry is None:
            return None
        if timeutils.utcnow() >= entry.expires_at:
            self.delete(key)
            return None
        return copy.deepcopy(entry.payload)

    def put(self, key, payload, ttl):
        try:
            entry = db.session.get(PendingRegistration, key)
            if entry is None:
                entry = PendingRegistration(key=key)
                db.session.add(entry)
            entry.payload = copy.deepcopy(payload)
            entry.expires_at = timeutils.utcnow() + ttl
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to stage pending registration {key}: {e}")
            raise PersistenceFailure('Registration failed', detail=str(e))

    def delete(self, key):
        try:
            PendingRegistration.query.filter_by(key=key).delete()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Failed to discard pending registration {key}: {e}")
            raise PersistenceFailure(detail=str(e))


def create_pending_store(kind):
    if kind == 'memory':
        return MemoryPendingStore()
    if kind == 'database':
        return DatabasePendingStore()
    raise ValueError(f"Unknown pending store: {kind}")
