from datetime import datetime, timezone

from party_cart.db import Base
from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint


def _utcnow():
    return datetime.now(timezone.utc)


class StorageEntry(Base):
    """One key of a cart session's durable store (JSON text value)."""

    __tablename__ = "storage_entries"
    __table_args__ = (UniqueConstraint("namespace", "key", name="uq_storage_ns_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    namespace = Column(String(64), nullable=False, index=True)  # cart session id
    key = Column(String(255), nullable=False)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
