from typing import Callable, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from party_cart.config import settings
from party_cart.db import SessionLocal
from party_cart.models.storage_entry import StorageEntry


class StorageError(Exception):
    pass


class QuotaExceededError(StorageError):
    """Raised by a backend when a write would exceed its quota."""
    pass


def _entry_size(key: str, value: str) -> int:
    return len(key) + len(value)


class MemoryStorageBackend:
    """
    Dict-backed store with the same contract as SqlStorageBackend:
    get_item / set_item / remove_item / keys, string values, optional quota.
    """

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(_entry_size(k, v) for k, v in self._data.items() if k != key)
            if used + _entry_size(key, value) > self.quota_bytes:
                raise QuotaExceededError(f"quota of {self.quota_bytes} bytes exceeded writing {key!r}")
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data.keys())


class SqlStorageBackend:
    """
    Durable store for one cart session, kept in the storage_entries table.

    Every call uses its own short-lived session and commits immediately, so the
    backend can be shared with background jobs that outlive the request.
    """

    def __init__(
        self,
        namespace: str,
        session_factory: Callable[[], Session] = SessionLocal,
        quota_bytes: Optional[int] = None,
    ):
        self.namespace = namespace
        self.session_factory = session_factory
        self.quota_bytes = settings.STORAGE_QUOTA_BYTES if quota_bytes is None else quota_bytes

    def _query(self, s: Session):
        return s.query(StorageEntry).filter(StorageEntry.namespace == self.namespace)

    def get_item(self, key: str) -> Optional[str]:
        with self.session_factory() as s:
            row = self._query(s).filter(StorageEntry.key == key).first()
            return row.value if row else None

    def _used_bytes(self, s: Session, excluding: str) -> int:
        used = (
            s.query(
                func.coalesce(
                    func.sum(func.length(StorageEntry.key) + func.length(StorageEntry.value)), 0
                )
            )
            .filter(StorageEntry.namespace == self.namespace, StorageEntry.key != excluding)
            .scalar()
        )
        return int(used or 0)

    def set_item(self, key: str, value: str) -> None:
        with self.session_factory() as s:
            if self.quota_bytes:
                if self._used_bytes(s, key) + _entry_size(key, value) > self.quota_bytes:
                    raise QuotaExceededError(
                        f"namespace {self.namespace!r} over quota of {self.quota_bytes} bytes writing {key!r}"
                    )
            row = self._query(s).filter(StorageEntry.key == key).first()
            if row:
                row.value = value
            else:
                s.add(StorageEntry(namespace=self.namespace, key=key, value=value))
            s.commit()

    def remove_item(self, key: str) -> None:
        with self.session_factory() as s:
            self._query(s).filter(StorageEntry.key == key).delete(synchronize_session=False)
            s.commit()

    def keys(self) -> List[str]:
        with self.session_factory() as s:
            rows = self._query(s).with_entities(StorageEntry.key).order_by(StorageEntry.id).all()
            return [r[0] for r in rows]
