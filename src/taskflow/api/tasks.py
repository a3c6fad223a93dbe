"""Task board API endpoints used by the browser UI."""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, Response

from taskflow.api.models import (
    AddNoteRequest,
    AddTaskRequest,
    AddTaskResponse,
    EditTaskRequest,
    NoteResponse,
    TaskResponse,
    note_to_response,
    task_to_response,
)
from taskflow.board.controller import AddStatus
from taskflow.board.views import TaskFilter, TaskSort, apply_view
from taskflow.factory import get_config, get_controller
from taskflow.models import Task

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/tasks", response_model=list[TaskResponse])
async def list_tasks(
    task_filter: Annotated[TaskFilter, Query(alias="filter")] = TaskFilter.ALL,
    sort: TaskSort = TaskSort.NEWEST,
    search: str | None = None,
) -> list[TaskResponse]:
    """List tasks on the board.

    Args:
        task_filter: all, todo or completed
        sort: newest, oldest, priority or alphabetical
        search: Case-insensitive text matched against task text and notes

    Returns:
        Tasks with their notes
    """
    board = get_controller().board
    max_notes = get_config().max_notes_per_task
    tasks = apply_view(board.tasks(), task_filter, sort, search)
    return [task_to_response(task, max_notes) for task in tasks]


@router.post("/tasks", response_model=AddTaskResponse, status_code=201)
async def add_task(request: AddTaskRequest, response: Response) -> AddTaskResponse:
    """Create a task, optionally enhancing its title first.

    Returns 201 with the task when it was created, 202 without a task when it
    was handed to the webhook for out-of-band creation.

    Raises:
        HTTPException: 502 if the task could not be created
    """
    logger.info(f"add_task called: priority={request.priority.value}, enhance={request.enhance}")
    controller = get_controller()
    result = await controller.add_task(request.text, request.priority, request.enhance)

    if result.status == AddStatus.SUBMITTED:
        response.status_code = 202
        return AddTaskResponse(status=result.status.value)
    if result.task is None:
        raise HTTPException(status_code=502, detail="Failed to add task")

    return AddTaskResponse(
        status=result.status.value,
        task=task_to_response(result.task, get_config().max_notes_per_task),
    )


@router.post("/tasks/refresh")
async def refresh_tasks() -> dict[str, int]:
    """Refetch all tasks from the store.

    Returns:
        {"count": <number of tasks on the board>}
    """
    controller = get_controller()
    if not await controller.refresh():
        raise HTTPException(status_code=502, detail="Failed to load tasks")
    return {"count": len(controller.board)}


@router.patch("/tasks/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task(task_id: str) -> TaskResponse:
    """Flip the completed flag of a task.

    Raises:
        HTTPException: 404 if the task is not on the board, 502 on store failure
    """
    controller = get_controller()
    _require_task(task_id)
    task = await controller.toggle_task(task_id)
    if task is None:
        raise HTTPException(status_code=502, detail="Failed to update task")
    return task_to_response(task, get_config().max_notes_per_task)


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
async def edit_task(task_id: str, request: EditTaskRequest) -> TaskResponse:
    """Replace the text of a task.

    Raises:
        HTTPException: 404 if the task is not on the board, 502 on store failure
    """
    controller = get_controller()
    _require_task(task_id)
    task = await controller.edit_task(task_id, request.text)
    if task is None:
        raise HTTPException(status_code=502, detail="Failed to update task")
    return task_to_response(task, get_config().max_notes_per_task)


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: str) -> dict[str, str]:
    """Delete a task and its notes.

    Raises:
        HTTPException: 404 if the task is not on the board, 502 on store failure
    """
    controller = get_controller()
    _require_task(task_id)
    if not await controller.delete_task(task_id):
        raise HTTPException(status_code=502, detail="Failed to delete task")
    return {"status": "success", "task_id": task_id}


@router.post("/tasks/{task_id}/notes", response_model=NoteResponse, status_code=201)
async def add_note(task_id: str, request: AddNoteRequest) -> NoteResponse:
    """Attach a note to a task.

    Raises:
        HTTPException: 404 if the task is not on the board, 502 on store failure
    """
    controller = get_controller()
    _require_task(task_id)
    note = await controller.add_note(task_id, request.content)
    if note is None:
        raise HTTPException(status_code=502, detail="Failed to add note")
    return note_to_response(note)


@router.delete("/tasks/{task_id}/notes/{note_id}")
async def delete_note(task_id: str, note_id: str) -> dict[str, str]:
    """Delete a note of a task.

    Raises:
        HTTPException: 404 if the task or note is not on the board, 502 on store failure
    """
    controller = get_controller()
    task = _require_task(task_id)
    if not any(note.id == note_id for note in task.notes):
        raise HTTPException(status_code=404, detail=f"Note not found: {note_id}")
    if not await controller.delete_note(task_id, note_id):
        raise HTTPException(status_code=502, detail="Failed to delete note")
    return {"status": "success", "task_id": task_id, "note_id": note_id}


def _require_task(task_id: str) -> Task:
    task = get_controller().board.get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")
    return task
