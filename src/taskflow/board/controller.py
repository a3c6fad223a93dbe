"""User operations on the task board."""

import logging
from dataclasses import dataclass
from enum import Enum

from taskflow.board.state import TaskBoard
from taskflow.config import EnhanceMode
from taskflow.enhancement.webhook import EnhancementClient
from taskflow.errors import EnhancementError, StoreError
from taskflow.models import Note, Priority, Task
from taskflow.store.task_store import TaskStore

logger = logging.getLogger(__name__)


class AddStatus(str, Enum):
    """Outcome of adding a task."""

    CREATED = "created"
    SUBMITTED = "submitted"  # Handed to the webhook, which inserts the task itself
    FAILED = "failed"


@dataclass
class AddTaskResult:
    """Result of BoardController.add_task."""

    status: AddStatus
    task: Task | None = None


class BoardController:
    """Applies user actions to the store and mirrors confirmed results on the board.

    Failures never raise: they are logged and the board stays as it was.
    """

    def __init__(
        self,
        store: TaskStore,
        board: TaskBoard,
        enhancer: EnhancementClient | None = None,
        enhance_mode: EnhanceMode = EnhanceMode.REQUEST_RESPONSE,
    ) -> None:
        """Initialize controller.

        Args:
            store: Task store
            board: Board to keep in sync
            enhancer: Enhancement webhook client, None when not configured
            enhance_mode: How the webhook is used for enhanced creation
        """
        self.store = store
        self.board = board
        self.enhancer = enhancer
        self.enhance_mode = enhance_mode

    async def refresh(self) -> bool:
        """Refetch all tasks and replace the board."""
        try:
            tasks = await self.store.list_tasks()
        except StoreError as e:
            logger.error(f"[Board] Refresh failed: {e}")
            return False
        self.board.replace(tasks)
        return True

    async def add_task(
        self,
        text: str,
        priority: Priority | str | None = None,
        should_enhance: bool = False,
    ) -> AddTaskResult:
        """Create a task, optionally running its title through the enhancement webhook."""
        text = text.strip()
        if not text:
            logger.error("[Board] Refusing to add task with empty text")
            return AddTaskResult(AddStatus.FAILED)
        try:
            level = Priority.coerce(priority)
        except ValueError as e:
            logger.error(f"[Board] {e}")
            return AddTaskResult(AddStatus.FAILED)

        if should_enhance:
            if self.enhancer is None:
                logger.warning("[Board] Enhancement requested but no webhook configured")
            elif self.enhance_mode == EnhanceMode.FIRE_AND_FORGET:
                try:
                    await self.enhancer.submit(text, level)
                except EnhancementError as e:
                    logger.error(f"[Board] Enhancement submit failed, task dropped: {e}")
                    return AddTaskResult(AddStatus.FAILED)
                return AddTaskResult(AddStatus.SUBMITTED)
            else:
                try:
                    text = await self.enhancer.enhance(text, level)
                except EnhancementError as e:
                    logger.error(f"[Board] Enhancement failed, using original title: {e}")

        try:
            task = await self.store.insert_task(text, level)
        except StoreError as e:
            logger.error(f"[Board] Failed to add task: {e}")
            return AddTaskResult(AddStatus.FAILED)

        self.board.insert(task)
        return AddTaskResult(AddStatus.CREATED, task)

    async def toggle_task(self, task_id: str) -> Task | None:
        """Flip the completed flag of a task on the board."""
        current = self.board.get(task_id)
        if current is None:
            logger.error(f"[Board] Cannot toggle unknown task {task_id}")
            return None
        try:
            task = await self.store.update_task(task_id, completed=not current.completed)
        except StoreError as e:
            logger.error(f"[Board] Failed to toggle task {task_id}: {e}")
            return None
        self.board.update(task)
        return task

    async def edit_task(self, task_id: str, text: str) -> Task | None:
        """Replace the text of a task."""
        text = text.strip()
        if not text:
            logger.error(f"[Board] Refusing to set empty text on task {task_id}")
            return None
        try:
            task = await self.store.update_task(task_id, text=text)
        except StoreError as e:
            logger.error(f"[Board] Failed to edit task {task_id}: {e}")
            return None
        self.board.update(task)
        return task

    async def delete_task(self, task_id: str) -> bool:
        """Delete a task. A task not on the board is left alone."""
        if self.board.get(task_id) is None:
            logger.error(f"[Board] Cannot delete unknown task {task_id}")
            return False
        try:
            await self.store.delete_task(task_id)
        except StoreError as e:
            logger.error(f"[Board] Failed to delete task {task_id}: {e}")
            return False
        self.board.remove(task_id)
        return True

    async def add_note(self, task_id: str, content: str) -> Note | None:
        """Attach a note to a task.

        The per-task note limit is applied by the presentation layer only.
        """
        content = content.strip()
        if not content:
            logger.error(f"[Board] Refusing to add empty note to task {task_id}")
            return None
        try:
            note = await self.store.insert_note(task_id, content)
        except StoreError as e:
            logger.error(f"[Board] Failed to add note to task {task_id}: {e}")
            return None
        self.board.add_note(note)
        return note

    async def delete_note(self, task_id: str, note_id: str) -> bool:
        """Delete a note of a task."""
        try:
            await self.store.delete_note(note_id)
        except StoreError as e:
            logger.error(f"[Board] Failed to delete note {note_id}: {e}")
            return False
        self.board.remove_note(task_id, note_id)
        return True
