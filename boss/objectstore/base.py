from __future__ import annotations

import abc
from typing import Optional

from boss.config import ObjectStoreConfig


class ObjectStoreError(Exception):
    """The backend rejected a request or could not be reached."""


class UnsupportedOperationError(ObjectStoreError):
    """The backend has no equivalent of the requested operation."""


class ObjectStore(abc.ABC):
    """Signs URLs for, and performs synchronous calls against, one storage backend.

    Expiry values are absolute epoch seconds.
    """

    def __init__(self, name: str, config: ObjectStoreConfig) -> None:
        self.name = name
        self.config = config

    @property
    def read_only(self) -> bool:
        return self.config.read_only

    @abc.abstractmethod
    async def resolve(
        self,
        key: str,
        method: str,
        expiry: int,
        content_type: Optional[str] = None,
        content_md5: Optional[str] = None,
    ) -> str:
        """Return a URL that performs ``method`` on ``key`` until ``expiry``.

        ``content_md5`` is the base64 digest, as sent in a Content-MD5 header.
        """

    @abc.abstractmethod
    async def copy(self, key: str, location_to_copy: str, expiry: int) -> str:
        """Return a URL that, PUT with an empty body, copies ``location_to_copy`` into ``key``."""

    @abc.abstractmethod
    async def delete(self, key: str) -> None:
        """Delete ``key``. A key that is already gone is not an error."""

    @abc.abstractmethod
    async def exists(self, key: str) -> bool:
        ...

    @abc.abstractmethod
    async def start_resumable_upload(self, key: str, expiry: int) -> str:
        """Return a URL that opens a resumable upload session for ``key``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, bucket={self.config.bucket!r})"
