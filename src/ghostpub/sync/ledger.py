"""Sync ledger persistence: engine setup, per-note upsert and lookup"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Engine
from sqlmodel import Session, SQLModel, create_engine

from ghostpub.sync.models import SyncRecord


def make_engine(db_url: str) -> Engine:
    return create_engine(db_url, echo=False)


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


class SyncLedger:
    """Remembers what was last pushed for each note so identical payloads are not resent."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _session(self) -> Session:
        return Session(self._engine, expire_on_commit=False)

    def get(self, path: str) -> Optional[SyncRecord]:
        """Return the record for a note path, or None if it was never synced."""
        with self._session() as session:
            return session.get(SyncRecord, path)

    def record(
        self,
        path: str,
        *,
        content_hash: str,
        remote_id: Optional[str],
        slug: Optional[str],
        status: str,
        synced_at: Optional[datetime] = None,
        ) -> SyncRecord:
        """Insert or update the record for path and commit."""
        with self._session() as session:
            rec = session.get(SyncRecord, path)
            if rec is None:
                rec = SyncRecord(path=path, content_hash=content_hash, status=status)
            rec.content_hash = content_hash
            rec.remote_id = remote_id
            rec.slug = slug
            rec.status = status
            rec.synced_at = synced_at or datetime.now()
            session.add(rec)
            session.commit()
            return rec

    def forget(self, path: str) -> bool:
        """Delete the record for path. Returns False if there was none."""
        with self._session() as session:
            rec = session.get(SyncRecord, path)
            if rec is None:
                return False
            session.delete(rec)
            session.commit()
            return True
