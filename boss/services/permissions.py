"""Reader/writer membership checks.

Access is list membership only: the owner gets nothing implicitly and there
is no wildcard or group expansion.
"""

from typing import Collection
from typing import Optional

from boss.api import errors
from boss.messages import MessageCatalog


def can_read(readers: Collection[str], user: Optional[str]) -> bool:
    return bool(user) and user in readers


def can_write(writers: Collection[str], user: Optional[str]) -> bool:
    return bool(user) and user in writers


def require_user(messages: MessageCatalog, user: Optional[str]) -> str:
    if not user:
        raise errors.error(messages, "missingUser", 400)
    return user


def check_read(messages: MessageCatalog, resource_id: str, user: Optional[str], readers: Collection[str]) -> None:
    user = require_user(messages, user)
    if not can_read(readers, user):
        raise errors.error(messages, "noReadPermission", 403, object_id=resource_id, user=user)


def check_write(messages: MessageCatalog, resource_id: str, user: Optional[str], writers: Collection[str]) -> None:
    user = require_user(messages, user)
    if not can_write(writers, user):
        raise errors.error(messages, "noWritePermission", 403, object_id=resource_id, user=user)
