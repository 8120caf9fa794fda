from __future__ import annotations

import logging
from typing import Iterator
from typing import Mapping
from typing import Optional

import httpx

from boss.config import Config
from boss.config import ObjectStoreConfig
from boss.models.enums import OPAQUE_URI
from boss.objectstore.base import ObjectStore
from boss.objectstore.fcs import FCSObjectStore
from boss.objectstore.gcs import GCSObjectStore
from boss.objectstore.s3 import S3ObjectStore


logger = logging.getLogger(__name__)


def build_object_store(
    name: str,
    config: ObjectStoreConfig,
    http_client: httpx.AsyncClient,
    internal_validity_seconds: int = 60,
) -> ObjectStore:
    if config.type == "GCS":
        return GCSObjectStore(name, config, http_client, internal_validity_seconds=internal_validity_seconds)
    if config.type == "S3":
        return S3ObjectStore(name, config)
    if config.type == "FCS":
        return FCSObjectStore(name, config, http_client)
    raise ValueError(f"Unknown object store type {config.type!r} for {name}")


class ObjectStoreRegistry:
    """Configured storage platforms by name."""

    def __init__(self, stores: Mapping[str, ObjectStore], http_client: Optional[httpx.AsyncClient] = None) -> None:
        if OPAQUE_URI in stores:
            raise ValueError(f"{OPAQUE_URI} is reserved and cannot name an object store")
        self._stores = dict(stores)
        self._http_client = http_client

    @classmethod
    def from_config(cls, config: Config) -> "ObjectStoreRegistry":
        http_client = httpx.AsyncClient(timeout=httpx.Timeout(30.0))
        stores = {
            name: build_object_store(name, block, http_client, config.delete_expiry_seconds)
            for name, block in config.object_stores.items()
        }
        for store in stores.values():
            logger.info(f"Configured object store {store!r} read_only={store.read_only}")
        return cls(stores, http_client)

    def get(self, name: str) -> Optional[ObjectStore]:
        return self._stores.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._stores

    def __iter__(self) -> Iterator[str]:
        return iter(self._stores)

    @property
    def platforms(self) -> list[str]:
        """Legal ``storagePlatform`` values, including the opaque sentinel."""
        return sorted(self._stores) + [OPAQUE_URI]

    async def aclose(self) -> None:
        if self._http_client is not None:
            await self._http_client.aclose()
