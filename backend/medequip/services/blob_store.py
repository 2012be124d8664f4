# Overview: Persistent store adapter; named JSON blobs in a key-value backend.

from __future__ import annotations

import json
import logging
import time
from typing import Any

from sqlalchemy.exc import OperationalError, SQLAlchemyError

from ..extensions import db
from ..models import StateBlob
from medequip.time_utils import utcnow


logger = logging.getLogger(__name__)

KEY_DEPARTMENTS = "departments"
KEY_CATEGORIES = "categories"
KEY_EQUIPMENT = "equipment"
KEY_USAGE = "equipment_usage"
KEY_NOTIFICATIONS = "notifications"
KEY_EQUIPMENT_STATS = "equipment_stats"
KEY_DEPARTMENT_STATS = "department_stats"

ALL_KEYS = (
    KEY_DEPARTMENTS,
    KEY_CATEGORIES,
    KEY_EQUIPMENT,
    KEY_USAGE,
    KEY_NOTIFICATIONS,
    KEY_EQUIPMENT_STATS,
    KEY_DEPARTMENT_STATS,
)


class StoreError(Exception):
    """Raised when the backing store cannot be read or written."""
    pass


class BlobStore:
    """
    Contract shared by the store backends.

    load() returns None for a key that was never saved. save() replaces the
    whole value. Values must be JSON-serializable.
    """

    def load(self, key: str) -> Any | None:
        raise NotImplementedError

    def save(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def keys(self) -> list[str]:
        raise NotImplementedError


def _encode(key: str, value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise StoreError(f"Value for {key!r} is not JSON-serializable") from exc


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except ValueError as exc:
        raise StoreError(f"Stored value for {key!r} is not valid JSON") from exc


class MemoryBlobStore(BlobStore):
    """
    Dict-backed store.

    Values are kept JSON-encoded so callers never share objects with the
    store. Setting fail_writes / fail_reads makes the next calls raise
    StoreError, which is how the failure path is exercised. Keys listed in
    fail_keys fail on save while every other key still saves.
    """

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, str] = {}
        self.fail_writes = False
        self.fail_reads = False
        self.fail_keys: set[str] = set()
        self.save_count = 0
        for key, value in (initial or {}).items():
            self._data[key] = _encode(key, value)

    def load(self, key: str) -> Any | None:
        if self.fail_reads:
            raise StoreError("Store unavailable")
        raw = self._data.get(key)
        if raw is None:
            return None
        return _decode(key, raw)

    def save(self, key: str, value: Any) -> None:
        if self.fail_writes or key in self.fail_keys:
            raise StoreError("Store is full")
        self._data[key] = _encode(key, value)
        self.save_count += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


class SqlBlobStore(BlobStore):
    """
    SQLAlchemy-backed store; one StateBlob row per key.

    Must be used inside a Flask application context. Each save commits on
    its own, so a multi-key operation can be interrupted between keys.
    """

    def __init__(self, *, attempts: int = 3, backoff_base: float = 0.05):
        self.attempts = attempts
        self.backoff_base = backoff_base

    def _run(self, func):
        """
        Execute a DB operation with retry on lock-related failures.

        Other SQLAlchemy errors fail immediately. Either way the session is
        rolled back and the failure surfaces as StoreError.
        """
        for attempt in range(self.attempts):
            try:
                return func()
            except OperationalError as exc:
                db.session.rollback()
                if attempt >= self.attempts - 1:
                    raise StoreError("Store unavailable") from exc
                logger.warning("Store busy, retrying (attempt %d/%d)", attempt + 1, self.attempts)
                time.sleep(self.backoff_base * (2 ** attempt))
            except SQLAlchemyError as exc:
                db.session.rollback()
                raise StoreError("Store operation failed") from exc

    def load(self, key: str) -> Any | None:
        row = self._run(lambda: db.session.get(StateBlob, key))
        if row is None:
            return None
        return _decode(key, row.value_json)

    def save(self, key: str, value: Any) -> None:
        encoded = _encode(key, value)

        def _op():
            row = db.session.get(StateBlob, key)
            if row is None:
                db.session.add(StateBlob(key=key, value_json=encoded, updated_at=utcnow()))
            else:
                row.value_json = encoded
                row.updated_at = utcnow()
            db.session.commit()

        self._run(_op)

    def delete(self, key: str) -> None:
        def _op():
            db.session.query(StateBlob).filter_by(key=key).delete()
            db.session.commit()

        self._run(_op)

    def keys(self) -> list[str]:
        rows = self._run(lambda: db.session.query(StateBlob.key).order_by(StateBlob.key.asc()).all())
        return [r[0] for r in rows]

    def describe(self) -> list[dict]:
        rows = self._run(lambda: db.session.query(StateBlob).order_by(StateBlob.key.asc()).all())
        return [r.to_dict() for r in rows]
