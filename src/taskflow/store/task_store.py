"""Persistent store for tasks and notes."""

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import delete, event, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from taskflow.errors import NotFoundError, StoreError
from taskflow.models import Note, Priority, Task
from taskflow.store.change_feed import ChangeEvent, ChangeFeed, ChangeType
from taskflow.store.tables import Base, NoteRow, TaskRow

logger = logging.getLogger(__name__)


class TaskStore(Protocol):
    """Protocol for the task store."""

    feed: ChangeFeed

    async def list_tasks(self) -> list[Task]:
        """List all tasks with their notes, newest first."""
        ...

    async def get_task(self, task_id: str) -> Task:
        """Read a specific task by ID."""
        ...

    async def insert_task(self, text: str, priority: Priority | str | None = None) -> Task:
        """Insert a new, uncompleted task."""
        ...

    async def update_task(
        self, task_id: str, *, text: str | None = None, completed: bool | None = None
    ) -> Task:
        """Update text and/or completed flag of a task."""
        ...

    async def delete_task(self, task_id: str) -> None:
        """Delete a task and its notes."""
        ...

    async def insert_note(self, task_id: str, content: str) -> Note:
        """Insert a note for a task."""
        ...

    async def delete_note(self, note_id: str) -> None:
        """Delete a note."""
        ...


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    """SQLite ignores FOREIGN KEY clauses unless enabled per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SqlTaskStore:
    """Task store backed by an async SQLAlchemy engine.

    Every committed mutation is published to ``feed``.
    """

    def __init__(self, database_url: str, feed: ChangeFeed | None = None) -> None:
        """Initialize store.

        Args:
            database_url: Async SQLAlchemy URL (e.g. sqlite+aiosqlite:///./taskflow.db)
            feed: Change feed to publish to (a new one is created if omitted)
        """
        self._engine = create_async_engine(
            database_url,
            echo=False,  # SQL logging stays off, use the sqlalchemy.engine logger instead
            future=True,
            pool_pre_ping=True,
        )
        if self._engine.dialect.name == "sqlite":
            event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self._sessionmaker = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )
        self.feed = feed or ChangeFeed()

    async def init_schema(self) -> None:
        """Create tables if missing."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            logger.error(f"[TaskStore] Failed to create schema: {e}")
            raise StoreError(f"Failed to create schema: {e}") from e
        logger.info("[TaskStore] Schema ready")

    async def close(self) -> None:
        """Dispose the engine and its connection pool."""
        await self._engine.dispose()

    async def list_tasks(self) -> list[Task]:
        """List all tasks with their notes, newest first."""
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(select(TaskRow).order_by(TaskRow.created_at.desc()))
                return [_row_to_task(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list tasks: {e}") from e

    async def get_task(self, task_id: str) -> Task:
        """Read a specific task by ID.

        Raises:
            NotFoundError: If no task has this ID
        """
        try:
            async with self._sessionmaker() as session:
                row = await session.get(TaskRow, task_id)
                if row is None:
                    raise NotFoundError(f"Task not found: {task_id}")
                return _row_to_task(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read task {task_id}: {e}") from e

    async def insert_task(self, text: str, priority: Priority | str | None = None) -> Task:
        """Insert a new, uncompleted task.

        Args:
            text: Task description
            priority: Priority, medium when omitted

        Returns:
            Created task with store-assigned id and created_at
        """
        level = Priority.coerce(priority)
        try:
            async with self._sessionmaker() as session:
                row = TaskRow(text=text, priority=level.value, completed=False)
                session.add(row)
                await session.commit()
                task = _row_to_task(row, include_notes=False)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to insert task: {e}") from e

        logger.info(f"[TaskStore] Inserted task {task.id}")
        await self.feed.publish(ChangeEvent(ChangeType.INSERT, "tasks", task.id))
        return task

    async def update_task(
        self, task_id: str, *, text: str | None = None, completed: bool | None = None
    ) -> Task:
        """Update text and/or completed flag of a task.

        Raises:
            NotFoundError: If no task has this ID
        """
        try:
            async with self._sessionmaker() as session:
                row = await session.get(TaskRow, task_id)
                if row is None:
                    raise NotFoundError(f"Task not found: {task_id}")
                if text is not None:
                    row.text = text
                if completed is not None:
                    row.completed = completed
                await session.commit()
                task = _row_to_task(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update task {task_id}: {e}") from e

        await self.feed.publish(ChangeEvent(ChangeType.UPDATE, "tasks", task_id))
        return task

    async def delete_task(self, task_id: str) -> None:
        """Delete a task; its notes are removed by the foreign key cascade.

        Raises:
            NotFoundError: If no task has this ID
        """
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(delete(TaskRow).where(TaskRow.id == task_id))
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete task {task_id}: {e}") from e

        if result.rowcount == 0:
            raise NotFoundError(f"Task not found: {task_id}")

        logger.info(f"[TaskStore] Deleted task {task_id}")
        await self.feed.publish(ChangeEvent(ChangeType.DELETE, "tasks", task_id))

    async def insert_note(self, task_id: str, content: str) -> Note:
        """Insert a note for a task.

        No per-task note limit is applied here.

        Raises:
            StoreError: If the task does not exist (foreign key) or the insert fails
        """
        try:
            async with self._sessionmaker() as session:
                row = NoteRow(task_id=task_id, content=content)
                session.add(row)
                await session.commit()
                note = _row_to_note(row)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to insert note: {e}") from e

        logger.info(f"[TaskStore] Inserted note {note.id} for task {task_id}")
        await self.feed.publish(ChangeEvent(ChangeType.INSERT, "task_notes", note.id))
        return note

    async def delete_note(self, note_id: str) -> None:
        """Delete a note.

        Raises:
            NotFoundError: If no note has this ID
        """
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(delete(NoteRow).where(NoteRow.id == note_id))
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete note {note_id}: {e}") from e

        if result.rowcount == 0:
            raise NotFoundError(f"Note not found: {note_id}")

        await self.feed.publish(ChangeEvent(ChangeType.DELETE, "task_notes", note_id))


def _utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for timezone-aware columns
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _row_to_note(row: NoteRow) -> Note:
    """Convert NoteRow to Note."""
    return Note(
        id=row.id, task_id=row.task_id, content=row.content, created_at=_utc(row.created_at)
    )


def _row_to_task(row: TaskRow, include_notes: bool = True) -> Task:
    """Convert TaskRow to Task.

    ``include_notes`` must be False for rows whose notes were never loaded,
    since lazy loading is not available outside the session's greenlet.
    """
    notes = [_row_to_note(n) for n in row.notes] if include_notes else []
    try:
        priority = Priority.coerce(row.priority)
    except ValueError:
        logger.warning(f"[TaskStore] Task {row.id} has unknown priority {row.priority!r}")
        priority = Priority.MEDIUM
    return Task(
        id=row.id,
        text=row.text,
        completed=bool(row.completed),
        priority=priority,
        created_at=_utc(row.created_at),
        notes=notes,
    )
