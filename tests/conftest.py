"""Test fixtures for TaskFlow."""

from collections.abc import AsyncGenerator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from taskflow.board.state import TaskBoard
from taskflow.config import Config
from taskflow.store.task_store import SqlTaskStore

API_TOKEN = "test-token"


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """SQLite database file in a temporary directory."""
    return f"sqlite+aiosqlite:///{tmp_path / 'taskflow.db'}"


@pytest_asyncio.fixture
async def store(database_url: str) -> AsyncGenerator[SqlTaskStore, None]:
    """Task store with a fresh schema."""
    task_store = SqlTaskStore(database_url)
    await task_store.init_schema()
    yield task_store
    await task_store.close()


@pytest.fixture
def board() -> TaskBoard:
    """Empty task board."""
    return TaskBoard()


@pytest.fixture
def test_config(database_url: str) -> Config:
    """Config pointing at the temporary database."""
    return Config(
        database_url=database_url,
        api_token=API_TOKEN,
        enhance_webhook_url=None,
        host="127.0.0.1",
        port=8000,
    )


@pytest.fixture
def test_client(test_config: Config, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    """Test client running the app lifespan against the temporary database."""
    from taskflow.factory import create_app

    # Override factory singletons so every test starts clean
    monkeypatch.setattr("taskflow.factory._config", test_config)
    monkeypatch.setattr("taskflow.factory._store", None)
    monkeypatch.setattr("taskflow.factory._controller", None)
    monkeypatch.setattr("taskflow.factory._connection_manager", None)

    app = create_app()
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Headers accepted by the insert endpoints."""
    return {"Authorization": f"Bearer {API_TOKEN}"}
