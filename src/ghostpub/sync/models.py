"""Database table for the local sync ledger"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, DateTime, String, Text
from sqlmodel import Field, SQLModel


class SyncRecord(SQLModel, table=True):
    """Last payload successfully pushed to Ghost for one note"""
    __tablename__ = "sync_records"
    path: str = Field(..., sa_column=Column(Text, primary_key=True))
    remote_id: Optional[str] = Field(default=None, index=True, description="Ghost post id")
    slug: Optional[str] = Field(default=None)
    content_hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    status: str = Field(..., nullable=False, description="Ghost status after the sync")
    synced_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
