from __future__ import annotations

import logging
from typing import Optional

import httpx

from boss.config import ObjectStoreConfig
from boss.objectstore.base import ObjectStore
from boss.objectstore.base import ObjectStoreError


logger = logging.getLogger(__name__)


class FCSObjectStore(ObjectStore):
    """Unsigned URLs against a fake cloud store such as the embedded ``/fcs`` byte map.

    The fake store accepts ``x-goog-copy-source`` on PUT, so a copy URL and a
    resumable upload URL are both just the plain object URL.
    """

    def __init__(self, name: str, config: ObjectStoreConfig, http_client: httpx.AsyncClient) -> None:
        super().__init__(name, config)
        self._client = http_client

    def object_url(self, key: str) -> str:
        return f"{self.config.endpoint}/{self.config.bucket}/{key}"

    async def resolve(
        self,
        key: str,
        method: str,
        expiry: int,
        content_type: Optional[str] = None,
        content_md5: Optional[str] = None,
    ) -> str:
        return self.object_url(key)

    async def copy(self, key: str, location_to_copy: str, expiry: int) -> str:
        return self.object_url(key)

    async def start_resumable_upload(self, key: str, expiry: int) -> str:
        return self.object_url(key)

    async def delete(self, key: str) -> None:
        url = self.object_url(key)
        try:
            response = await self._client.delete(url)
        except httpx.HTTPError as e:
            raise ObjectStoreError(f"DELETE {url} failed: {e}") from e
        if response.status_code not in (200, 204, 404):
            raise ObjectStoreError(f"DELETE {url} returned {response.status_code}: {response.text}")

    async def exists(self, key: str) -> bool:
        url = self.object_url(key)
        try:
            response = await self._client.head(url)
        except httpx.HTTPError as e:
            raise ObjectStoreError(f"HEAD {url} failed: {e}") from e
        return response.status_code == 200
