import logging
from typing import Optional

from fastapi import Depends
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from boss.config import Config
from boss.messages import MessageCatalog
from boss.objectstore.registry import ObjectStoreRegistry
from boss.orm.session import get_async_session
from boss.services.group_service import GroupService
from boss.services.object_service import ObjectService


logger = logging.getLogger(__name__)

# Identity header set by the authenticating front end
REMOTE_USER_HEADER = "REMOTE_USER"


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_messages(request: Request) -> MessageCatalog:
    return request.app.state.config.messages


def get_object_stores(request: Request) -> ObjectStoreRegistry:
    return request.app.state.object_stores


def get_remote_user(request: Request) -> Optional[str]:
    return request.headers.get(REMOTE_USER_HEADER) or None


def get_object_service(
    request: Request,
    session: AsyncSession = Depends(get_async_session),
) -> ObjectService:
    config = get_config(request)
    return ObjectService(
        session,
        get_object_stores(request),
        config.messages,
        resumable_validity_seconds=config.resumable_validity_seconds,
    )


def get_group_service(
    request: Request,
    session: AsyncSession = Depends(get_async_session),
) -> GroupService:
    return GroupService(session, get_messages(request))
