"""Tests for BoardController."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from taskflow.board.controller import AddStatus, BoardController
from taskflow.board.state import TaskBoard
from taskflow.config import EnhanceMode
from taskflow.enhancement.webhook import EnhancementClient
from taskflow.errors import StoreError
from taskflow.models import Priority, Task
from taskflow.store.task_store import SqlTaskStore

WEBHOOK_URL = "https://automation.example.com/webhook/enhance"


def webhook(
    status: int = 200, body: dict[str, str] | None = None
) -> tuple[EnhancementClient, list[dict[str, str]]]:
    """Enhancement client backed by a mock transport, plus the list of received payloads."""
    received: list[dict[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append(json.loads(request.content))
        return httpx.Response(status, json=body or {})

    return EnhancementClient(WEBHOOK_URL, transport=httpx.MockTransport(handler)), received


def failing_store() -> MagicMock:
    """Store whose every call raises StoreError."""
    store = MagicMock()
    for name in (
        "list_tasks",
        "insert_task",
        "update_task",
        "delete_task",
        "insert_note",
        "delete_note",
    ):
        setattr(store, name, AsyncMock(side_effect=StoreError("store unavailable")))
    return store


@pytest.mark.asyncio
async def test_add_task_without_enhancement(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test "Buy milk" lands on top of the board with medium priority."""
    controller = BoardController(store, board)
    await controller.add_task("Walk dog")

    result = await controller.add_task("Buy milk")

    assert result.status == AddStatus.CREATED
    top = board.tasks()[0]
    assert (top.text, top.priority, top.completed) == ("Buy milk", Priority.MEDIUM, False)
    assert len(board) == 2
    assert (await store.get_task(top.id)).priority == Priority.MEDIUM


@pytest.mark.asyncio
async def test_add_task_rejects_empty_text(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test blank text is not inserted."""
    controller = BoardController(store, board)

    result = await controller.add_task("   ")

    assert result.status == AddStatus.FAILED
    assert await store.list_tasks() == []


@pytest.mark.asyncio
async def test_add_task_rejects_unknown_priority(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test unknown priority is not inserted."""
    controller = BoardController(store, board)

    result = await controller.add_task("Task", priority="urgent")

    assert result.status == AddStatus.FAILED
    assert len(board) == 0


@pytest.mark.asyncio
async def test_add_task_with_enhanced_title(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test request/response enhancement stores the enhanced title."""
    enhancer, received = webhook(body={"enhanced_title": "Purchase dairy products"})
    controller = BoardController(store, board, enhancer, EnhanceMode.REQUEST_RESPONSE)

    result = await controller.add_task("Buy milk", Priority.HIGH, should_enhance=True)

    assert result.status == AddStatus.CREATED
    assert result.task is not None
    assert result.task.text == "Purchase dairy products"
    assert (await store.get_task(result.task.id)).text == "Purchase dairy products"
    assert received == [{"title": "Buy milk", "priority": "high"}]


@pytest.mark.asyncio
async def test_add_task_enhancement_failure_uses_original(
    store: SqlTaskStore, board: TaskBoard
) -> None:
    """Test webhook failure falls back to the original title."""
    enhancer, _ = webhook(status=503)
    controller = BoardController(store, board, enhancer, EnhanceMode.REQUEST_RESPONSE)

    result = await controller.add_task("Buy milk", should_enhance=True)

    assert result.status == AddStatus.CREATED
    assert board.tasks()[0].text == "Buy milk"


@pytest.mark.asyncio
async def test_add_task_fire_and_forget(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test fire-and-forget mode posts to the webhook and inserts nothing locally."""
    enhancer, received = webhook(status=202)
    controller = BoardController(store, board, enhancer, EnhanceMode.FIRE_AND_FORGET)

    result = await controller.add_task("Buy milk", should_enhance=True)

    assert result.status == AddStatus.SUBMITTED
    assert result.task is None
    assert received == [{"title": "Buy milk", "priority": "medium"}]
    assert len(board) == 0
    assert await store.list_tasks() == []


@pytest.mark.asyncio
async def test_add_task_fire_and_forget_failure(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test a failed fire-and-forget submission drops the task."""
    enhancer, _ = webhook(status=500)
    controller = BoardController(store, board, enhancer, EnhanceMode.FIRE_AND_FORGET)

    result = await controller.add_task("Buy milk", should_enhance=True)

    assert result.status == AddStatus.FAILED
    assert await store.list_tasks() == []


@pytest.mark.asyncio
async def test_add_task_enhance_without_webhook(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test enhancement request without a configured webhook inserts the original title."""
    controller = BoardController(store, board, enhancer=None)

    result = await controller.add_task("Buy milk", should_enhance=True)

    assert result.status == AddStatus.CREATED
    assert board.tasks()[0].text == "Buy milk"


@pytest.mark.asyncio
async def test_toggle_twice_restores_state(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test toggling twice returns completed to its original value."""
    controller = BoardController(store, board)
    created = (await controller.add_task("Prepare sprint demo")).task
    assert created is not None

    first = await controller.toggle_task(created.id)
    assert first is not None and first.completed is True
    assert board.get(created.id).completed is True  # type: ignore[union-attr]

    second = await controller.toggle_task(created.id)
    assert second is not None and second.completed is False
    assert (await store.get_task(created.id)).completed is False


@pytest.mark.asyncio
async def test_toggle_unknown_task(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test toggling a task missing from the board is a no-op."""
    controller = BoardController(store, board)

    assert await controller.toggle_task("missing") is None


@pytest.mark.asyncio
async def test_edit_task(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test editing replaces text only."""
    controller = BoardController(store, board)
    created = (await controller.add_task("Write docs", Priority.LOW)).task
    assert created is not None

    edited = await controller.edit_task(created.id, "  Write API docs ")

    assert edited is not None
    assert edited.text == "Write API docs"
    assert edited.priority == Priority.LOW
    assert board.get(created.id).text == "Write API docs"  # type: ignore[union-attr]
    assert await controller.edit_task(created.id, "") is None


@pytest.mark.asyncio
async def test_delete_task(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test deleting removes the task from store and board."""
    controller = BoardController(store, board)
    created = (await controller.add_task("Temporary")).task
    assert created is not None

    assert await controller.delete_task(created.id) is True
    assert board.get(created.id) is None
    assert await store.list_tasks() == []


@pytest.mark.asyncio
async def test_delete_unknown_task_is_noop(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test deleting a task missing from the board does not raise or change the board."""
    controller = BoardController(store, board)
    await controller.add_task("Keep me")
    before = board.tasks()

    assert await controller.delete_task("missing") is False
    assert board.tasks() == before


@pytest.mark.asyncio
async def test_notes(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test adding and deleting notes keeps the board in sync."""
    controller = BoardController(store, board)
    created = (await controller.add_task("Plan trip")).task
    assert created is not None

    first = await controller.add_note(created.id, "book hotel")
    second = await controller.add_note(created.id, "rent car")
    assert first is not None and second is not None
    assert [n.content for n in board.get(created.id).notes] == [  # type: ignore[union-attr]
        "book hotel",
        "rent car",
    ]

    assert await controller.delete_note(created.id, first.id) is True
    assert [n.id for n in board.get(created.id).notes] == [second.id]  # type: ignore[union-attr]
    assert await controller.add_note(created.id, " ") is None


@pytest.mark.asyncio
async def test_controller_does_not_cap_notes(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test the five-note limit is not applied below the presentation layer."""
    controller = BoardController(store, board)
    created = (await controller.add_task("Chatty task")).task
    assert created is not None

    for i in range(6):
        assert await controller.add_note(created.id, f"note {i}") is not None

    assert len(board.get(created.id).notes) == 6  # type: ignore[union-attr]


@pytest.mark.asyncio
async def test_refresh_replaces_board(store: SqlTaskStore, board: TaskBoard) -> None:
    """Test refresh loads rows written by other clients."""
    controller = BoardController(store, board)
    await store.insert_task("Written elsewhere")

    assert await controller.refresh() is True
    assert [t.text for t in board.tasks()] == ["Written elsewhere"]


@pytest.mark.asyncio
async def test_refresh_during_insert_does_not_duplicate(
    store: SqlTaskStore, board: TaskBoard
) -> None:
    """Test a change-driven refetch racing the local insert leaves one entry."""
    controller = BoardController(store, board)

    async def refetch(event) -> None:  # type: ignore[no-untyped-def]
        await controller.refresh()

    store.feed.subscribe(refetch)

    await controller.add_task("Buy milk")

    assert [t.text for t in board.tasks()] == ["Buy milk"]


@pytest.mark.asyncio
async def test_store_failures_leave_board_unchanged(board: TaskBoard) -> None:
    """Test every operation is fail-soft on store errors."""
    controller = BoardController(failing_store(), board)
    board.replace([Task(id="a", text="Existing", created_at=datetime.now(timezone.utc))])
    before = board.tasks()

    assert (await controller.add_task("New")).status == AddStatus.FAILED
    assert await controller.toggle_task("a") is None
    assert await controller.edit_task("a", "Changed") is None
    assert await controller.delete_task("a") is False
    assert await controller.add_note("a", "note") is None
    assert await controller.delete_note("a", "n1") is False
    assert await controller.refresh() is False

    assert board.tasks() == before
