"""API models for TaskFlow."""

from datetime import datetime

from pydantic import BaseModel, field_validator

from taskflow.models import Note, Priority, Task


def _not_blank(value: str) -> str:
    """Strip value and reject it if nothing is left."""
    stripped = value.strip()
    if not stripped:
        raise ValueError("must not be empty")
    return stripped


class NoteResponse(BaseModel):
    """API response model for notes."""

    id: str
    task_id: str
    content: str
    created_at: datetime


class TaskResponse(BaseModel):
    """API response model for tasks."""

    id: str
    text: str
    completed: bool
    priority: Priority
    created_at: datetime
    notes: list[NoteResponse] = []
    accepts_notes: bool = True  # False once the task shows the maximum number of notes


class CreateTaskRequest(BaseModel):
    """Body of ``POST /tasks``."""

    text: str
    priority: Priority = Priority.MEDIUM

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        return _not_blank(value)

    @field_validator("priority", mode="before")
    @classmethod
    def default_priority(cls, value: object) -> object:
        if value is None or value == "":
            return Priority.MEDIUM
        # Same case-insensitive rule as Priority.coerce
        return value.lower() if isinstance(value, str) else value


class CreateNoteRequest(BaseModel):
    """Body of ``POST /notes``."""

    task_id: str
    content: str

    @field_validator("task_id", "content")
    @classmethod
    def fields_not_blank(cls, value: str) -> str:
        return _not_blank(value)


class AddTaskRequest(CreateTaskRequest):
    """Body of ``POST /api/tasks`` sent by the browser."""

    enhance: bool = False


class AddTaskResponse(BaseModel):
    """Outcome of ``POST /api/tasks``."""

    status: str  # created, submitted or failed
    task: TaskResponse | None = None


class EditTaskRequest(BaseModel):
    """Body of ``PATCH /api/tasks/{task_id}``."""

    text: str

    @field_validator("text")
    @classmethod
    def text_not_blank(cls, value: str) -> str:
        return _not_blank(value)


class AddNoteRequest(BaseModel):
    """Body of ``POST /api/tasks/{task_id}/notes``."""

    content: str

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        return _not_blank(value)


def note_to_response(note: Note) -> NoteResponse:
    """Convert Note to NoteResponse."""
    return NoteResponse(
        id=note.id, task_id=note.task_id, content=note.content, created_at=note.created_at
    )


def task_to_response(task: Task, max_notes: int | None = None) -> TaskResponse:
    """Convert Task to TaskResponse.

    Args:
        task: Task to convert
        max_notes: Note limit shown to the user, None for no limit
    """
    return TaskResponse(
        id=task.id,
        text=task.text,
        completed=task.completed,
        priority=task.priority,
        created_at=task.created_at,
        notes=[note_to_response(n) for n in task.notes],
        accepts_notes=max_notes is None or len(task.notes) < max_notes,
    )
