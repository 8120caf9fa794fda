"""Object lifecycle and resolution.

Every object operation goes through ObjectService: load the row, check the
caller against the reader/writer lists, change metadata inside one
transaction and, when bytes are involved, hand off to the object store named
by the row's storage platform.

Lifecycle is ``nonexistent -> active -> deleted``; a deleted row is never
changed again.
"""

from __future__ import annotations

import base64
import logging
import re
import time
import uuid
from typing import Awaitable
from typing import Callable
from typing import Iterable
from typing import List
from typing import Optional
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from boss.api import errors
from boss.api.schemas import CopyRequest
from boss.api.schemas import ObjectDesc
from boss.api.schemas import ResolveRequest
from boss.api.schemas import ResolveResponse
from boss.messages import MessageCatalog
from boss.models.base import new_id
from boss.models.enums import OPAQUE_URI
from boss.models.enums import HttpMethod
from boss.models.object import ObjectDB
from boss.objectstore.base import ObjectStore
from boss.objectstore.base import ObjectStoreError
from boss.objectstore.base import UnsupportedOperationError
from boss.objectstore.registry import ObjectStoreRegistry
from boss.orm.transaction import transactional
from boss.repositories.acl_repository import AclRepository
from boss.repositories.object_repository import ObjectRepository
from boss.services import permissions
from boss.tracing import set_span_attributes
from boss.tracing import tracer


logger = logging.getLogger(__name__)

T = TypeVar("T")

MD5_HEX_PATTERN = re.compile(r"[0-9a-fA-F]{32}")


def generate_location(object_id: str) -> str:
    """Backend key for a new object: its id plus a random suffix, never caller input."""
    return f"{object_id}-{uuid.uuid4().hex[-12:]}"


def dedupe(usernames: Optional[Iterable[str]]) -> List[str]:
    return sorted(set(usernames or []))


def md5_hex_to_base64(md5_hex: str) -> str:
    """Content-MD5 header form of a hex digest."""
    return base64.b64encode(bytes.fromhex(md5_hex)).decode("ascii")


class ObjectService:
    def __init__(
        self,
        session: AsyncSession,
        stores: ObjectStoreRegistry,
        messages: MessageCatalog,
        resumable_validity_seconds: int = 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.session = session
        self.stores = stores
        self.messages = messages
        self.resumable_validity_seconds = resumable_validity_seconds
        self.clock = clock
        self.objects = ObjectRepository(session)
        self.acls = AclRepository(session)

    # -- helpers

    def _error(self, code: str, status_code: int, **params: object) -> errors.BossError:
        return errors.error(self.messages, code, status_code, **params)

    async def _load(self, object_id: str, for_update: bool = False) -> ObjectDB:
        if for_update:
            obj = await self.objects.get_for_update(object_id)
        else:
            obj = await self.objects.get_by_id(object_id)
        if obj is None:
            raise self._error("objectNotFound", 404, object_id=object_id)
        if not obj.active:
            raise self._error("objectDeleted", 410, object_id=object_id)
        return obj

    def _store_for(self, obj: ObjectDB) -> ObjectStore:
        store = self.stores.get(obj.storage_platform)
        if store is None:
            logger.error(f"Object {obj.object_id} references unconfigured platform {obj.storage_platform}")
            raise self._error("storeFailure", 500, platform=obj.storage_platform, object_id=obj.object_id)
        return store

    def _check_writable(self, obj: ObjectDB, store: ObjectStore) -> None:
        if store.read_only:
            raise self._error("readOnlyStore", 403, object_id=obj.object_id, platform=obj.storage_platform)

    async def _call_store(
        self,
        obj: ObjectDB,
        call: Awaitable[T],
        failure_code: str = "storeFailure",
        unsupported_code: Optional[str] = None,
    ) -> T:
        try:
            return await call
        except UnsupportedOperationError as e:
            if unsupported_code is None:
                logger.exception(f"Unsupported object store call for {obj.object_id}")
                raise self._error(failure_code, 500, platform=obj.storage_platform, object_id=obj.object_id) from e
            raise self._error(unsupported_code, 400, platform=obj.storage_platform, object_id=obj.object_id) from e
        except ObjectStoreError as e:
            logger.exception(f"Object store {obj.storage_platform} failed for {obj.object_id}")
            raise self._error(failure_code, 500, platform=obj.storage_platform, object_id=obj.object_id) from e

    def _expiry(self, validity_seconds: int) -> int:
        return int(self.clock()) + validity_seconds

    def to_desc(self, obj: ObjectDB, readers: Iterable[str], writers: Iterable[str]) -> ObjectDesc:
        return ObjectDesc(
            object_id=obj.object_id,
            object_name=obj.object_name,
            owner_id=obj.owner_id,
            storage_platform=obj.storage_platform,
            # backend keys stay private; an opaque URI is the caller's own
            directory_path=obj.location if obj.storage_platform == OPAQUE_URI else None,
            size_estimate_bytes=obj.size_estimate_bytes,
            readers=sorted(readers),
            writers=sorted(writers),
        )

    # -- create

    def _create_violations(self, desc: ObjectDesc) -> List[str]:
        problems = []
        if not desc.object_name:
            problems.append("objectNameMissing")
        if not desc.owner_id:
            problems.append("ownerMissing")

        platform = desc.storage_platform
        if not platform:
            problems.append("storagePlatformMissing")
        elif platform == OPAQUE_URI:
            if not desc.directory_path:
                problems.append("opaqueNeedsDirectoryPath")
            if desc.force_location:
                problems.append("opaqueForceLocation")
        elif platform not in self.stores:
            problems.append("storagePlatformUnknown")
        elif desc.force_location:
            if not desc.directory_path:
                problems.append("forceLocationNeedsDirectoryPath")
        elif desc.directory_path:
            problems.append("directoryPathNotAllowed")
        return problems

    async def create(self, desc: ObjectDesc, user: Optional[str]) -> ObjectDesc:
        with tracer.start_as_current_span("object.create") as span:
            user = permissions.require_user(self.messages, user)
            problems = self._create_violations(desc)
            if problems:
                raise errors.bad_request(self.messages, problems, platforms=", ".join(self.stores.platforms))

            platform = str(desc.storage_platform)
            obj = ObjectDB(
                object_id=new_id(),
                object_name=str(desc.object_name),
                owner_id=str(desc.owner_id),
                storage_platform=platform,
                location="",
                size_estimate_bytes=desc.size_estimate_bytes if desc.size_estimate_bytes is not None else -1,
                created_by=user,
            )
            set_span_attributes(
                span,
                {"object.id": obj.object_id, "object.platform": platform, "object.forced": bool(desc.force_location)},
            )

            if platform == OPAQUE_URI:
                obj.location = str(desc.directory_path)
            elif desc.force_location:
                store = self._store_for(obj)
                location = str(desc.directory_path)
                if not await self._call_store(obj, store.exists(location)):
                    raise self._error("locationNotFound", 409, location=location, platform=platform)
                obj.location = location
            else:
                obj.location = generate_location(obj.object_id)

            readers = dedupe(desc.readers)
            writers = dedupe(desc.writers)
            async with transactional(self.session):
                obj = await self.objects.create(obj)
                await self.acls.add_readers(obj.object_id, readers)
                await self.acls.add_writers(obj.object_id, writers)

            logger.info(f"Created object {obj.object_id} ({obj.object_name}) on {platform} for {user}")
            return self.to_desc(obj, readers, writers)

    # -- read

    async def describe(self, object_id: str, user: Optional[str]) -> ObjectDesc:
        with tracer.start_as_current_span("object.describe", attributes={"object.id": object_id}):
            user = permissions.require_user(self.messages, user)
            obj = await self._load(object_id)
            readers = await self.acls.get_readers(object_id)
            permissions.check_read(self.messages, object_id, user, readers)
            writers = await self.acls.get_writers(object_id)
            return self.to_desc(obj, readers, writers)

    async def find_by_name(self, object_name: str, user: Optional[str]) -> List[ObjectDesc]:
        with tracer.start_as_current_span("object.find_by_name") as span:
            user = permissions.require_user(self.messages, user)
            found = await self.objects.list_active_by_name_for_reader(object_name, user)
            set_span_attributes(span, {"object.name": object_name, "object.count": len(found)})
            if not found:
                raise self._error("noObjectsByName", 404, name=object_name)

            descs = []
            for obj in found:
                readers = await self.acls.get_readers(obj.object_id)
                writers = await self.acls.get_writers(obj.object_id)
                descs.append(self.to_desc(obj, readers, writers))
            return descs

    # -- update

    def _immutable_violations(self, obj: ObjectDB, desc: ObjectDesc) -> List[str]:
        problems = []
        if desc.object_id is not None and desc.object_id != obj.object_id:
            problems.append("objectIdImmutable")
        if desc.object_name is not None and desc.object_name != obj.object_name:
            problems.append("objectNameImmutable")
        if desc.storage_platform is not None and desc.storage_platform != obj.storage_platform:
            problems.append("storagePlatformImmutable")
        if desc.directory_path is not None:
            # backend keys stay hidden, so only an opaque URI may be echoed back
            if obj.storage_platform != OPAQUE_URI or desc.directory_path != obj.location:
                problems.append("directoryPathImmutable")
        if desc.size_estimate_bytes is not None and desc.size_estimate_bytes != obj.size_estimate_bytes:
            problems.append("sizeEstimateImmutable")
        if desc.owner_id is not None and not desc.owner_id:
            problems.append("ownerMissing")
        return problems

    async def update(self, object_id: str, desc: ObjectDesc, user: Optional[str]) -> ObjectDesc:
        with tracer.start_as_current_span("object.update", attributes={"object.id": object_id}) as span:
            user = permissions.require_user(self.messages, user)
            async with transactional(self.session):
                obj = await self._load(object_id, for_update=True)
                writers = await self.acls.get_writers(object_id)
                permissions.check_write(self.messages, object_id, user, writers)

                problems = self._immutable_violations(obj, desc)
                if problems:
                    raise errors.bad_request(self.messages, problems)

                if desc.owner_id is not None:
                    obj.owner_id = desc.owner_id
                if desc.readers is not None:
                    delta = await self.acls.replace_readers(object_id, dedupe(desc.readers))
                    set_span_attributes(
                        span, {"readers.added": len(delta.added), "readers.removed": len(delta.removed)}
                    )
                if desc.writers is not None:
                    delta = await self.acls.replace_writers(object_id, dedupe(desc.writers))
                    set_span_attributes(
                        span, {"writers.added": len(delta.added), "writers.removed": len(delta.removed)}
                    )
                obj = await self.objects.touch_modified(obj)

                readers = await self.acls.get_readers(object_id)
                writers = await self.acls.get_writers(object_id)

            logger.info(f"Updated object {object_id} by {user}")
            return self.to_desc(obj, readers, writers)

    # -- delete

    async def delete(self, object_id: str, user: Optional[str]) -> str:
        """Soft-delete the row, then delete the backend bytes.

        The row change is flushed first and only committed once the backend
        delete succeeded; a backend failure rolls it back.
        """
        with tracer.start_as_current_span("object.delete", attributes={"object.id": object_id}):
            user = permissions.require_user(self.messages, user)
            async with transactional(self.session):
                obj = await self.objects.get_for_update(object_id)
                # deleted objects cannot be deleted again, they simply no longer exist
                if obj is None or not obj.active:
                    raise self._error("objectNotFound", 404, object_id=object_id)
                writers = await self.acls.get_writers(object_id)
                permissions.check_write(self.messages, object_id, user, writers)

                store = None
                if obj.storage_platform != OPAQUE_URI:
                    store = self._store_for(obj)
                    self._check_writable(obj, store)

                location = obj.location
                await self.objects.soft_delete(obj)
                if store is not None:
                    await self._call_store(obj, store.delete(location), failure_code="deleteFailure")

            logger.info(f"Deleted object {object_id} by {user}")
            return object_id

    # -- resolve

    def _resolve_violations(self, request: ResolveRequest) -> List[str]:
        problems = []
        if request.http_method not in {m.value for m in HttpMethod}:
            problems.append("invalidHttpMethod")
        if request.validity_period_seconds is None or request.validity_period_seconds <= 0:
            problems.append("invalidValidityPeriod")
        if request.content_md5_hex is not None and not MD5_HEX_PATTERN.fullmatch(request.content_md5_hex):
            problems.append("invalidContentMD5")
        return problems

    async def resolve(self, object_id: str, user: Optional[str], request: ResolveRequest) -> ResolveResponse:
        with tracer.start_as_current_span("object.resolve", attributes={"object.id": object_id}) as span:
            user = permissions.require_user(self.messages, user)
            problems = self._resolve_violations(request)
            if problems:
                raise errors.bad_request(self.messages, problems, methods=", ".join(m.value for m in HttpMethod))

            method = HttpMethod(request.http_method)
            validity = int(request.validity_period_seconds or 0)
            set_span_attributes(span, {"http.method": method.value, "resolve.validity_seconds": validity})

            obj = await self._load(object_id)
            if method.is_write:
                permissions.check_write(self.messages, object_id, user, await self.acls.get_writers(object_id))
            else:
                permissions.check_read(self.messages, object_id, user, await self.acls.get_readers(object_id))

            if obj.storage_platform == OPAQUE_URI:
                url = obj.location
            else:
                store = self._store_for(obj)
                if method.is_write:
                    self._check_writable(obj, store)
                content_md5 = md5_hex_to_base64(request.content_md5_hex) if request.content_md5_hex else None
                url = await self._call_store(
                    obj,
                    store.resolve(
                        obj.location, method.value, self._expiry(validity), request.content_type, content_md5
                    ),
                )

            async with transactional(self.session):
                await self.objects.touch_resolved(obj)

            return ResolveResponse(
                object_url=url,
                validity_period_seconds=validity,
                content_type=request.content_type,
                content_md5_hex=request.content_md5_hex,
            )

    async def resolve_for_copy(self, object_id: str, user: Optional[str], request: CopyRequest) -> str:
        with tracer.start_as_current_span("object.resolve_for_copy", attributes={"object.id": object_id}):
            user = permissions.require_user(self.messages, user)
            problems = []
            if request.validity_period_seconds is None or request.validity_period_seconds <= 0:
                problems.append("invalidValidityPeriod")
            if not request.location_to_copy:
                problems.append("copySourceMissing")
            if problems:
                raise errors.bad_request(self.messages, problems)

            obj = await self._load(object_id)
            permissions.check_write(self.messages, object_id, user, await self.acls.get_writers(object_id))
            if obj.storage_platform == OPAQUE_URI:
                raise self._error("copyOpaque", 400, object_id=object_id)

            store = self._store_for(obj)
            self._check_writable(obj, store)
            expiry = self._expiry(int(request.validity_period_seconds or 0))
            url = await self._call_store(
                obj,
                store.copy(obj.location, str(request.location_to_copy), expiry),
                unsupported_code="copyNotSupported",
            )

            async with transactional(self.session):
                await self.objects.touch_resolved(obj)
            return url

    async def resolve_for_resumable_upload(self, object_id: str, user: Optional[str]) -> str:
        with tracer.start_as_current_span("object.resolve_for_resumable_upload", attributes={"object.id": object_id}):
            user = permissions.require_user(self.messages, user)
            obj = await self._load(object_id)
            permissions.check_write(self.messages, object_id, user, await self.acls.get_writers(object_id))
            if obj.storage_platform == OPAQUE_URI:
                raise self._error("resumableOpaque", 400, object_id=object_id)

            store = self._store_for(obj)
            self._check_writable(obj, store)
            url = await self._call_store(
                obj,
                store.start_resumable_upload(obj.location, self._expiry(self.resumable_validity_seconds)),
                unsupported_code="resumableNotSupported",
            )

            async with transactional(self.session):
                await self.objects.touch_resolved(obj)
            return url
