"""Domain models for tasks and notes."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Priority(str, Enum):
    """Task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def coerce(cls, value: "Priority | str | None") -> "Priority":
        """Convert raw value to Priority, defaulting missing values to medium.

        Raises:
            ValueError: If value is not one of low/medium/high
        """
        if value is None or value == "":
            return cls.MEDIUM
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as e:
            raise ValueError(f"Invalid priority: {value!r}") from e

    @property
    def rank(self) -> int:
        """Sort weight, higher is more urgent."""
        return {Priority.LOW: 0, Priority.MEDIUM: 1, Priority.HIGH: 2}[self]


@dataclass
class Note:
    """Free-text annotation attached to a task."""

    id: str
    task_id: str
    content: str
    created_at: datetime


@dataclass
class Task:
    """To-do item with its notes (oldest note first)."""

    id: str
    text: str
    created_at: datetime
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    notes: list[Note] = field(default_factory=list)

    def __post_init__(self) -> None:
        # Rows written by other clients may carry a null priority
        self.priority = Priority.coerce(self.priority)
