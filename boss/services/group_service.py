from __future__ import annotations

import logging
from typing import Iterable
from typing import List
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from boss.api import errors
from boss.api.schemas import GroupDesc
from boss.messages import MessageCatalog
from boss.models.base import new_id
from boss.models.group import GroupDB
from boss.orm.transaction import transactional
from boss.repositories.acl_repository import AclRepository
from boss.repositories.group_repository import GroupRepository
from boss.services import permissions
from boss.services.object_service import dedupe
from boss.tracing import tracer


logger = logging.getLogger(__name__)


class GroupService:
    """Groups share the object ACL model but never touch an object store."""

    def __init__(self, session: AsyncSession, messages: MessageCatalog) -> None:
        self.session = session
        self.messages = messages
        self.groups = GroupRepository(session)
        self.acls = AclRepository(session)

    def to_desc(self, group: GroupDB, readers: Iterable[str], writers: Iterable[str]) -> GroupDesc:
        return GroupDesc(
            group_id=group.group_id,
            owner_id=group.owner_id,
            type_hint=group.type_hint,
            size_estimate_bytes=group.size_estimate_bytes,
            directory=group.directory,
            readers=sorted(readers),
            writers=sorted(writers),
        )

    async def _load(self, group_id: str, for_update: bool = False) -> GroupDB:
        group = await (self.groups.get_for_update(group_id) if for_update else self.groups.get_by_id(group_id))
        if group is None:
            raise errors.error(self.messages, "groupNotFound", 404, group_id=group_id)
        if not group.active:
            raise errors.error(self.messages, "groupDeleted", 410, group_id=group_id)
        return group

    async def create(self, desc: GroupDesc, user: Optional[str]) -> GroupDesc:
        with tracer.start_as_current_span("group.create"):
            user = permissions.require_user(self.messages, user)
            if not desc.owner_id:
                raise errors.bad_request(self.messages, ["ownerMissing"])

            group = GroupDB(
                group_id=new_id(),
                owner_id=desc.owner_id,
                type_hint=desc.type_hint,
                size_estimate_bytes=desc.size_estimate_bytes if desc.size_estimate_bytes is not None else -1,
                directory=desc.directory,
                created_by=user,
            )
            readers = dedupe(desc.readers)
            writers = dedupe(desc.writers)
            async with transactional(self.session):
                group = await self.groups.create(group)
                await self.acls.add_readers(group.group_id, readers)
                await self.acls.add_writers(group.group_id, writers)

            logger.info(f"Created {group.variant.value} group {group.group_id} for {user}")
            return self.to_desc(group, readers, writers)

    async def describe(self, group_id: str, user: Optional[str]) -> GroupDesc:
        with tracer.start_as_current_span("group.describe", attributes={"group.id": group_id}):
            user = permissions.require_user(self.messages, user)
            group = await self._load(group_id)
            readers = await self.acls.get_readers(group_id)
            permissions.check_read(self.messages, group_id, user, readers)
            return self.to_desc(group, readers, await self.acls.get_writers(group_id))

    def _immutable_violations(self, group: GroupDB, desc: GroupDesc) -> List[str]:
        problems = []
        if desc.group_id is not None and desc.group_id != group.group_id:
            problems.append("groupIdImmutable")
        if desc.type_hint is not None and desc.type_hint != group.type_hint:
            problems.append("typeHintImmutable")
        if desc.size_estimate_bytes is not None and desc.size_estimate_bytes != group.size_estimate_bytes:
            problems.append("sizeEstimateImmutable")
        if desc.directory is not None and desc.directory != group.directory:
            problems.append("directoryImmutable")
        if desc.owner_id is not None and not desc.owner_id:
            problems.append("ownerMissing")
        return problems

    async def update(self, group_id: str, desc: GroupDesc, user: Optional[str]) -> GroupDesc:
        with tracer.start_as_current_span("group.update", attributes={"group.id": group_id}):
            user = permissions.require_user(self.messages, user)
            async with transactional(self.session):
                group = await self._load(group_id, for_update=True)
                permissions.check_write(self.messages, group_id, user, await self.acls.get_writers(group_id))

                problems = self._immutable_violations(group, desc)
                if problems:
                    raise errors.bad_request(self.messages, problems)

                if desc.owner_id is not None:
                    group.owner_id = desc.owner_id
                if desc.readers is not None:
                    await self.acls.replace_readers(group_id, dedupe(desc.readers))
                if desc.writers is not None:
                    await self.acls.replace_writers(group_id, dedupe(desc.writers))
                group = await self.groups.touch_modified(group)

                readers = await self.acls.get_readers(group_id)
                writers = await self.acls.get_writers(group_id)

            return self.to_desc(group, readers, writers)

    async def delete(self, group_id: str, user: Optional[str]) -> str:
        with tracer.start_as_current_span("group.delete", attributes={"group.id": group_id}):
            user = permissions.require_user(self.messages, user)
            async with transactional(self.session):
                group = await self.groups.get_for_update(group_id)
                if group is None or not group.active:
                    raise errors.error(self.messages, "groupNotFound", 404, group_id=group_id)
                permissions.check_write(self.messages, group_id, user, await self.acls.get_writers(group_id))
                await self.groups.soft_delete(group)

            logger.info(f"Deleted group {group_id} by {user}")
            return group_id
