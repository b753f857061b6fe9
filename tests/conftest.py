"""
pytest configuration and fixtures for the User Management API test suite
Every test gets its own data file and a controllable clock.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone

# Keep the app's default data file out of the working tree before settings load
os.environ.setdefault("DATA_FILE", os.path.join(tempfile.mkdtemp(prefix="users-api-"), "users.json"))
# Error responses are checked with the default (production) diagnostics
os.environ.pop("ENV", None)

import httpx
import pytest
import pytest_asyncio

from app import app
from services.users_service import UsersService, get_users_service
from storage.json_store import InMemoryUserStore, JsonFileUserStore


class FakeClock:
    """Deterministic clock; each tick moves time forward by one second"""

    def __init__(self, start: datetime = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float = 1.0):
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def data_file(tmp_path):
    """Path of a data file that does not exist yet"""
    return tmp_path / "data" / "users.json"


@pytest.fixture
def file_store(data_file):
    return JsonFileUserStore(data_file)


@pytest.fixture
def memory_store():
    return InMemoryUserStore()


@pytest.fixture
def users_service(memory_store, clock):
    return UsersService(memory_store, clock=clock)


@pytest.fixture
def file_users_service(file_store, clock):
    return UsersService(file_store, clock=clock)


@pytest_asyncio.fixture
async def failing_api_client():
    """HTTP client whose users service blows up with an unexpected exception"""
    def broken_service():
        raise RuntimeError("secret internals")

    app.dependency_overrides[get_users_service] = broken_service
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def api_client(file_users_service):
    """HTTP client bound to the app, with the users service pointed at a temporary file"""
    app.dependency_overrides[get_users_service] = lambda: file_users_service
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()
