"""pytest fixtures for vizgen tests.

Provides:
- utc_timezone: Autouse fixture enforcing UTC timezone
- session_factory: Function-scoped SQLite database with the schema created
- session: Function-scoped database session
- uow_factory: Function-scoped UnitOfWork factory
- settings: Test settings (no polling delay)
- fake_provider: Scripted stand-in for the Ark client
"""

import os

# Settings validation is relaxed in test environments
os.environ.setdefault("APP_ENV", "test")

from typing import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from vizgen.core.config import Settings  # noqa: E402
from vizgen.core.database import create_schema, setup_db_session  # noqa: E402
from vizgen.services.generation.ark_client import TaskState, TaskStatus  # noqa: E402
from vizgen.uow import create_uow_factory  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def utc_timezone():
    """Enforce UTC timezone for all tests."""
    os.environ["TZ"] = "UTC"
    yield


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path):
    """Provide a session factory bound to a fresh SQLite database file."""
    factory = setup_db_session(f"sqlite+aiosqlite:///{tmp_path / 'vizgen_test.db'}")
    await create_schema(factory)

    yield factory

    await factory.kw["bind"].dispose()


@pytest_asyncio.fixture(scope="function")
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide function-scoped database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def uow_factory(session_factory):
    """Provide function-scoped UnitOfWork factory."""
    return create_uow_factory(session_factory)


@pytest.fixture
def settings() -> Settings:
    """Settings with the polling delay removed."""
    return Settings(  # type: ignore[call-arg]
        APP_ENV="test",
        ARK_API_KEY="test-key",
        DAILY_GENERATION_LIMIT=100,
        VIDEO_POLL_INTERVAL_SECONDS=0,
        VIDEO_MAX_POLLS=60,
    )


class FakeProvider:
    """Scripted provider client.

    ``task_statuses`` are returned by successive ``query_task`` calls; the
    last one repeats once the script runs out. With an empty script every
    query reports the task as running. Setting ``gate`` makes image
    generation wait on that event.
    """

    def __init__(
        self,
        image_url: str = "https://cdn.example.com/images/fox.png",
        task_id: str = "cgt-20250101-task",
        task_statuses: list[TaskStatus] | None = None,
        image_error: Exception | None = None,
        video_error: Exception | None = None,
    ):
        self.image_url = image_url
        self.task_id = task_id
        self.task_statuses = list(task_statuses or [])
        self.image_error = image_error
        self.video_error = video_error
        self.gate = None
        self.image_calls: list[dict] = []
        self.video_calls: list[dict] = []
        self.query_calls = 0

    async def generate_image(self, **kwargs) -> str:
        self.image_calls.append(kwargs)
        if self.gate is not None:
            await self.gate.wait()
        if self.image_error is not None:
            raise self.image_error
        return self.image_url

    async def generate_video(self, **kwargs) -> str:
        self.video_calls.append(kwargs)
        if self.video_error is not None:
            raise self.video_error
        return self.task_id

    async def query_task(self, task_id: str) -> TaskStatus:
        self.query_calls += 1
        if not self.task_statuses:
            return TaskStatus(state=TaskState.RUNNING)
        if len(self.task_statuses) > 1:
            return self.task_statuses.pop(0)
        return self.task_statuses[0]


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()
