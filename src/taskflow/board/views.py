"""Filtering, searching and sorting of the task list."""

from enum import Enum

from taskflow.models import Task


class TaskFilter(str, Enum):
    """Which tasks to show."""

    ALL = "all"
    TODO = "todo"
    COMPLETED = "completed"


class TaskSort(str, Enum):
    """Order of shown tasks."""

    NEWEST = "newest"
    OLDEST = "oldest"
    PRIORITY = "priority"  # high first, then newest
    ALPHABETICAL = "alphabetical"


def apply_view(
    tasks: list[Task],
    task_filter: TaskFilter = TaskFilter.ALL,
    sort: TaskSort = TaskSort.NEWEST,
    search: str | None = None,
) -> list[Task]:
    """Select and order tasks for display.

    Args:
        tasks: Tasks in any order
        task_filter: Completion filter
        sort: Sort order
        search: Case-insensitive substring matched against task text and note content

    Returns:
        New list, input is not modified
    """
    if task_filter == TaskFilter.TODO:
        selected = [t for t in tasks if not t.completed]
    elif task_filter == TaskFilter.COMPLETED:
        selected = [t for t in tasks if t.completed]
    else:
        selected = list(tasks)

    needle = (search or "").strip().casefold()
    if needle:
        selected = [t for t in selected if _matches(t, needle)]

    if sort == TaskSort.OLDEST:
        return sorted(selected, key=lambda t: t.created_at)
    if sort == TaskSort.ALPHABETICAL:
        return sorted(selected, key=lambda t: t.text.casefold())

    newest_first = sorted(selected, key=lambda t: t.created_at, reverse=True)
    if sort == TaskSort.PRIORITY:
        # Stable sort keeps newest-first within each priority
        return sorted(newest_first, key=lambda t: t.priority.rank, reverse=True)
    return newest_first


def _matches(task: Task, needle: str) -> bool:
    if needle in task.text.casefold():
        return True
    return any(needle in note.content.casefold() for note in task.notes)
