import os
from pathlib import Path
from typing import AsyncGenerator
from typing import Generator
from typing import Optional

import dotenv
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import async_sessionmaker

from boss.config import ObjectStoreConfig
from boss.messages import MessageCatalog
from boss.objectstore.base import ObjectStore
from boss.objectstore.base import UnsupportedOperationError
from boss.objectstore.registry import ObjectStoreRegistry
from boss.orm.session import create_schema
from boss.orm.session import create_session_factory
from boss.orm.session import initialize_engine


SQLITE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="session", autouse=True)
def _load_test_env() -> Generator[None, None, None]:
    """Load test environment variables from base + local env files."""
    project_root = Path(__file__).parents[2]
    dotenv.load_dotenv(project_root / ".env.defaults", override=True)
    dotenv.load_dotenv(project_root / ".env.test-local", override=True)
    os.environ["DATABASE_URL"] = SQLITE_URL
    yield


class FakeObjectStore(ObjectStore):
    """Records every call; URLs encode their inputs so tests can inspect them."""

    def __init__(
        self,
        name: str,
        read_only: bool = False,
        supports_copy: bool = True,
        supports_resumable: bool = True,
        existing: Optional[set[str]] = None,
    ) -> None:
        super().__init__(
            name,
            ObjectStoreConfig(type="FCS", endpoint="fake://store", bucket=f"{name}-bucket", read_only=read_only),
        )
        self.supports_copy = supports_copy
        self.supports_resumable = supports_resumable
        self.existing = existing if existing is not None else set()
        self.fail_with: Optional[Exception] = None
        self.calls: list[tuple] = []

    def _record(self, *call: object) -> None:
        self.calls.append(call)
        if self.fail_with is not None:
            raise self.fail_with

    async def resolve(
        self,
        key: str,
        method: str,
        expiry: int,
        content_type: Optional[str] = None,
        content_md5: Optional[str] = None,
    ) -> str:
        self._record("resolve", key, method, expiry, content_type, content_md5)
        return f"fake://{self.config.bucket}/{key}?method={method}&expires={expiry}&md5={content_md5}"

    async def copy(self, key: str, location_to_copy: str, expiry: int) -> str:
        self._record("copy", key, location_to_copy, expiry)
        if not self.supports_copy:
            raise UnsupportedOperationError("no copy here")
        return f"fake://{self.config.bucket}/{key}?copy={location_to_copy}"

    async def delete(self, key: str) -> None:
        self._record("delete", key)
        self.existing.discard(key)

    async def exists(self, key: str) -> bool:
        self._record("exists", key)
        return key in self.existing

    async def start_resumable_upload(self, key: str, expiry: int) -> str:
        self._record("start_resumable_upload", key, expiry)
        if not self.supports_resumable:
            raise UnsupportedOperationError("no resumable uploads here")
        return f"fake://{self.config.bucket}/{key}?resumable=start"

    def calls_named(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture
def local_store() -> FakeObjectStore:
    return FakeObjectStore("localStore")


@pytest.fixture
def read_only_store() -> FakeObjectStore:
    return FakeObjectStore("archive", read_only=True)


@pytest.fixture
def presign_only_store() -> FakeObjectStore:
    return FakeObjectStore("presignOnly", supports_copy=False, supports_resumable=False)


@pytest.fixture
def object_stores(
    local_store: FakeObjectStore,
    read_only_store: FakeObjectStore,
    presign_only_store: FakeObjectStore,
) -> ObjectStoreRegistry:
    return ObjectStoreRegistry(
        {store.name: store for store in (local_store, read_only_store, presign_only_store)},
    )


@pytest.fixture
def messages() -> MessageCatalog:
    return MessageCatalog()


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = initialize_engine(SQLITE_URL)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
