"""Authenticated insert endpoints used by external automations."""

import hmac
import logging
from typing import Annotated, Any, TypeVar

from fastapi import APIRouter, Depends, Header, Request
from pydantic import BaseModel, ValidationError

from taskflow.api.models import (
    CreateNoteRequest,
    CreateTaskRequest,
    NoteResponse,
    TaskResponse,
    note_to_response,
    task_to_response,
)
from taskflow.errors import ApiError, StoreError
from taskflow.factory import get_config, get_store

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def require_api_token(authorization: Annotated[str | None, Header()] = None) -> None:
    """Reject the request unless it carries ``Authorization: Bearer <api_token>``.

    Raises:
        ApiError: 401 if the header is missing or does not match exactly
    """
    token = get_config().api_token
    if not token:
        logger.warning("[Ingest] No API token configured, rejecting request")
        raise ApiError(401, "Unauthorized")

    expected = f"Bearer {token}".encode()
    if authorization is None or not hmac.compare_digest(authorization.encode(), expected):
        logger.info("[Ingest] Rejected request with bad or missing bearer token")
        raise ApiError(401, "Unauthorized")


router = APIRouter(dependencies=[Depends(require_api_token)])


@router.post(
    "/tasks",
    status_code=201,
    response_model=TaskResponse,
    response_model_exclude={"notes", "accepts_notes"},
)
async def create_task(request: Request) -> TaskResponse:
    """Insert a task.

    Body: ``{"text": str, "priority"?: "low"|"medium"|"high"}``

    Returns:
        Created task row

    Raises:
        ApiError: 400 on unparseable or invalid body, 500 on store failure
    """
    body = _parse_body(await _read_json_object(request), CreateTaskRequest)
    try:
        task = await get_store().insert_task(body.text, body.priority)
    except StoreError as e:
        logger.error(f"[Ingest] Store error creating task: {e}")
        raise ApiError(500, "Failed to create task", str(e)) from e
    return task_to_response(task)


@router.post("/notes", status_code=201, response_model=NoteResponse)
async def create_note(request: Request) -> NoteResponse:
    """Insert a note for an existing task.

    Body: ``{"task_id": str, "content": str}``. The task must exist
    (foreign key); no per-task note limit is applied.

    Raises:
        ApiError: 400 on unparseable or invalid body, 500 on store failure
    """
    body = _parse_body(await _read_json_object(request), CreateNoteRequest)
    try:
        note = await get_store().insert_note(body.task_id, body.content)
    except StoreError as e:
        logger.error(f"[Ingest] Store error creating note: {e}")
        raise ApiError(500, "Failed to create note", str(e)) from e
    return note_to_response(note)


async def _read_json_object(request: Request) -> dict[str, Any]:
    """Read body as a JSON object.

    Raises:
        ApiError: 400 if the body is not JSON or not an object
    """
    try:
        payload = await request.json()
    except ValueError as e:
        raise ApiError(400, "Invalid request body") from e
    if not isinstance(payload, dict):
        raise ApiError(400, "Invalid request body", "Expected a JSON object")
    return payload


_REQUIRED_MESSAGES = {
    CreateTaskRequest: "Task text is required",
    CreateNoteRequest: "task_id and content are required",
}


def _parse_body(payload: dict[str, Any], model: type[ModelT]) -> ModelT:
    """Validate payload against model.

    Raises:
        ApiError: 400 naming the offending fields
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        details = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        fields = {err["loc"][0] for err in e.errors() if err["loc"]}
        if fields == {"priority"}:
            message = "priority must be one of low, medium, high"
        else:
            message = _REQUIRED_MESSAGES.get(model, "Invalid request body")
        raise ApiError(400, message, details) from e
