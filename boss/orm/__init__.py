from boss.orm.base_repository import BaseRepository
from boss.orm.session import create_schema
from boss.orm.session import create_session_factory
from boss.orm.session import get_async_session
from boss.orm.session import initialize_engine
from boss.orm.transaction import transactional


__all__ = [
    "create_schema",
    "create_session_factory",
    "get_async_session",
    "initialize_engine",
    "BaseRepository",
    "transactional",
]
