"""Dependency injection factory."""

import logging
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taskflow.board.controller import BoardController
from taskflow.board.state import TaskBoard
from taskflow.config import Config
from taskflow.enhancement.webhook import EnhancementClient
from taskflow.errors import ApiError
from taskflow.store.change_feed import ChangeEvent
from taskflow.store.task_store import SqlTaskStore
from taskflow.websocket.connection_manager import ConnectionManager

logger = logging.getLogger(__name__)

# Global instances for dependency injection
_config: Config | None = None
_store: SqlTaskStore | None = None
_controller: BoardController | None = None
_connection_manager: ConnectionManager | None = None

# Change feed subscriptions made during lifespan
_unsubscribers: list[Callable[[], None]] = []


def get_config() -> Config:
    """Get or create Config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def get_store() -> SqlTaskStore:
    """Get or create the task store singleton."""
    global _store
    if _store is None:
        _store = SqlTaskStore(get_config().database_url)
    return _store


def get_enhancement_client() -> EnhancementClient | None:
    """Create enhancement webhook client, None if no webhook URL is configured."""
    config = get_config()
    if not config.enhance_webhook_url:
        return None
    return EnhancementClient(config.enhance_webhook_url, timeout=config.enhance_timeout)


def get_controller() -> BoardController:
    """Get or create the board controller singleton (owns the board)."""
    global _controller
    if _controller is None:
        _controller = BoardController(
            get_store(),
            TaskBoard(),
            enhancer=get_enhancement_client(),
            enhance_mode=get_config().enhance_mode,
        )
    return _controller


def get_connection_manager() -> ConnectionManager:
    """Get or create ConnectionManager singleton."""
    global _connection_manager
    if _connection_manager is None:
        _connection_manager = ConnectionManager()
    return _connection_manager


def subscribe_to_changes() -> None:
    """Refetch the board and notify browsers on every store change."""
    store = get_store()
    controller = get_controller()
    connection_manager = get_connection_manager()

    async def refresh_board(event: ChangeEvent) -> None:
        await controller.refresh()

    # Board first, so browsers refetching on the notification see the change
    _unsubscribers.append(store.feed.subscribe(refresh_board))
    _unsubscribers.append(store.feed.subscribe(connection_manager.notify_change))
    logger.info("[Factory] Subscribed board and WebSocket clients to store changes")


def unsubscribe_from_changes() -> None:
    """Drop subscriptions made by subscribe_to_changes."""
    for unsubscribe in _unsubscribers:
        unsubscribe()
    _unsubscribers.clear()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle - startup and shutdown."""
    store = get_store()
    logger.info("[Lifespan] Preparing schema...")
    await store.init_schema()

    logger.info("[Lifespan] Loading board...")
    controller = get_controller()
    await controller.refresh()
    logger.info(f"[Lifespan] Board loaded with {len(controller.board)} tasks")

    subscribe_to_changes()
    try:
        yield
    finally:
        logger.info("[Lifespan] Unsubscribing and closing store...")
        unsubscribe_from_changes()
        await store.close()


async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render ApiError as ``{"error": ..., "details": ...}``."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def create_app() -> FastAPI:
    """Create FastAPI application (composition root)."""
    from taskflow.api.ingest import router as ingest_router
    from taskflow.api.tasks import router as tasks_router
    from taskflow.api.websocket import router as ws_router

    app = FastAPI(
        title="TaskFlow",
        description="Task management with notes, realtime updates and AI title enhancement",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(ApiError, _api_error_handler)  # type: ignore[arg-type]

    # Insert endpoints for automations (POST /tasks, POST /notes)
    app.include_router(ingest_router)
    # Browser board API
    app.include_router(tasks_router, prefix="/api")
    app.include_router(ws_router)  # WebSocket at /ws

    return app
