"""SQLAlchemy table definitions for tasks and task notes."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskRow(Base):
    """Row of the ``tasks`` table."""

    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=_new_id)
    text = Column(Text, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    # Not constrained here, normalized when rows become domain objects
    priority = Column(String(16), nullable=True, default="medium")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    notes = relationship(
        "NoteRow",
        back_populates="task",
        order_by="NoteRow.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )


class NoteRow(Base):
    """Row of the ``task_notes`` table."""

    __tablename__ = "task_notes"

    id = Column(String(36), primary_key=True, default=_new_id)
    task_id = Column(
        String(36), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    task = relationship("TaskRow", back_populates="notes")
