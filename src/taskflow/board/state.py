"""In-memory board of tasks shown to browser clients."""

import logging
from dataclasses import replace

from taskflow.models import Note, Task

logger = logging.getLogger(__name__)


class TaskBoard:
    """Cache of the store's task list, newest first.

    The store is the source of truth. The board is changed only through the
    methods below, either from a confirmed store result or by replacing it
    wholesale after a refetch. All writes are keyed by id, so applying the
    same result twice (local update followed by a refetch) is harmless.
    """

    def __init__(self) -> None:
        """Initialize empty board."""
        self._tasks: list[Task] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def tasks(self) -> list[Task]:
        """Return a copy of the task list (newest first)."""
        return list(self._tasks)

    def get(self, task_id: str) -> Task | None:
        """Get task by ID."""
        index = self._index(task_id)
        return self._tasks[index] if index is not None else None

    def replace(self, tasks: list[Task]) -> None:
        """Replace the whole board with a fresh list from the store."""
        self._tasks = sorted(tasks, key=lambda t: t.created_at, reverse=True)
        logger.debug(f"[Board] Replaced with {len(self._tasks)} tasks")

    def insert(self, task: Task) -> None:
        """Add a task at the top, or replace it in place if already present."""
        index = self._index(task.id)
        if index is None:
            self._tasks.insert(0, task)
        else:
            self._tasks[index] = task

    def update(self, task: Task) -> bool:
        """Replace an existing task.

        Returns:
            False if the task is not on the board
        """
        index = self._index(task.id)
        if index is None:
            return False
        self._tasks[index] = task
        return True

    def remove(self, task_id: str) -> Task | None:
        """Remove task by ID and return it, or None if absent."""
        index = self._index(task_id)
        if index is None:
            return None
        return self._tasks.pop(index)

    def add_note(self, note: Note) -> bool:
        """Append note to its task (replacing a note with the same ID).

        Returns:
            False if the owning task is not on the board
        """
        index = self._index(note.task_id)
        if index is None:
            return False
        task = self._tasks[index]
        notes = [n for n in task.notes if n.id != note.id]
        notes.append(note)
        notes.sort(key=lambda n: n.created_at)
        self._tasks[index] = replace(task, notes=notes)
        return True

    def remove_note(self, task_id: str, note_id: str) -> bool:
        """Remove note from its task.

        Returns:
            False if the task or note is not on the board
        """
        index = self._index(task_id)
        if index is None:
            return False
        task = self._tasks[index]
        notes = [n for n in task.notes if n.id != note_id]
        if len(notes) == len(task.notes):
            return False
        self._tasks[index] = replace(task, notes=notes)
        return True

    def _index(self, task_id: str) -> int | None:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        return None
