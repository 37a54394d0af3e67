"""Key-value snapshot table and repository."""
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from sqlalchemy import Column, Integer, String, TIMESTAMP, JSON
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from journal.models.base import Base
from journal.utils.logging import get_logger

logger = get_logger(__name__)

class Snapshot(Base):
    """
    Full-state snapshots, one row per storage key.
    Every write overwrites the whole payload.
    """
    __tablename__ = 'snapshots'

    # Primary key
    id = Column(Integer, primary_key=True)
    key = Column(String(64), unique=True, nullable=False, index=True)

    # Payload
    version = Column(Integer, nullable=False, default=0)
    payload = Column(JSON, nullable=False)

    # Timestamps
    created_at = Column(TIMESTAMP, nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP, nullable=False, server_default=func.now(), onupdate=func.now())


class SnapshotRepository:
    """Load and overwrite snapshots, one short-lived session per call."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the stored payload for ``key`` or None."""
        db = self.session_factory()
        try:
            row = db.query(Snapshot).filter(Snapshot.key == key).first()
            return row.payload if row else None
        finally:
            db.close()

    def save(self, key: str, payload: Dict[str, Any], version: int = 0) -> None:
        """Overwrite the snapshot for ``key``."""
        db = self.session_factory()
        try:
            row = db.query(Snapshot).filter(Snapshot.key == key).first()
            if row is None:
                row = Snapshot(key=key)
                db.add(row)
            row.payload = payload
            row.version = version
            row.updated_at = datetime.utcnow()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to save snapshot {key}: {e}")
            raise
        finally:
            db.close()
