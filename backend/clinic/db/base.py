"""
Document table backing the repository gateway.

Each clinical record is one row: the camelCase payload is stored as JSON and
the fields the gateway filters on most (``doctorId``, ``patientId``) are
copied into indexed columns.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.ext.mutable import MutableDict
from sqlalchemy.orm import Mapped, mapped_column

from .session import Base


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(Base):
    """One record of a gateway collection."""

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    collection: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    doctor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    patient_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    payload: Mapped[Dict[str, Any]] = mapped_column(
        MutableDict.as_mutable(JSON), nullable=False, default=dict
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    __table_args__ = (
        Index("ix_documents_collection_doctor", "collection", "doctor_id"),
        Index("ix_documents_collection_patient", "collection", "patient_id"),
    )

    def to_record(self) -> Dict[str, Any]:
        record = dict(self.payload or {})
        record["id"] = self.id
        return record

    def __repr__(self):
        return f"<Document(collection='{self.collection}', id='{self.id}')>"
