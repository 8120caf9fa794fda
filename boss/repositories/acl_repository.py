from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable
from typing import Type
from typing import Union

from sqlalchemy import delete
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boss.models.acl import ReaderDB
from boss.models.acl import WriterDB


AclModel = Union[Type[ReaderDB], Type[WriterDB]]


@dataclass(frozen=True)
class AclDelta:
    """Usernames to grant and to revoke for one relation."""

    added: frozenset[str]
    removed: frozenset[str]

    @classmethod
    def between(cls, current: Iterable[str], desired: Iterable[str]) -> "AclDelta":
        current_set = frozenset(current)
        desired_set = frozenset(desired)
        return cls(added=desired_set - current_set, removed=current_set - desired_set)

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed


class AclRepository:
    """Reader and writer grants, keyed by object or group id."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _list(self, model: AclModel, resource_id: str) -> set[str]:
        stmt = select(model.username).where(model.id == resource_id)
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def _add(self, model: AclModel, resource_id: str, usernames: Iterable[str]) -> None:
        for username in sorted(set(usernames)):
            self.session.add(model(id=resource_id, username=username))
        await self.session.flush()

    async def _remove(self, model: AclModel, resource_id: str, usernames: Iterable[str]) -> None:
        names = sorted(set(usernames))
        if not names:
            return
        stmt = delete(model).where(
            model.id == resource_id,
            model.username.in_(names),  # type: ignore[attr-defined]
        )
        await self.session.execute(stmt)

    async def get_readers(self, resource_id: str) -> set[str]:
        return await self._list(ReaderDB, resource_id)

    async def get_writers(self, resource_id: str) -> set[str]:
        return await self._list(WriterDB, resource_id)

    async def add_readers(self, resource_id: str, usernames: Iterable[str]) -> None:
        await self._add(ReaderDB, resource_id, usernames)

    async def add_writers(self, resource_id: str, usernames: Iterable[str]) -> None:
        await self._add(WriterDB, resource_id, usernames)

    async def remove_readers(self, resource_id: str, usernames: Iterable[str]) -> None:
        await self._remove(ReaderDB, resource_id, usernames)

    async def remove_writers(self, resource_id: str, usernames: Iterable[str]) -> None:
        await self._remove(WriterDB, resource_id, usernames)

    async def replace_readers(self, resource_id: str, desired: Iterable[str]) -> AclDelta:
        delta = AclDelta.between(await self.get_readers(resource_id), desired)
        if delta.removed:
            await self.remove_readers(resource_id, delta.removed)
        if delta.added:
            await self.add_readers(resource_id, delta.added)
        return delta

    async def replace_writers(self, resource_id: str, desired: Iterable[str]) -> AclDelta:
        delta = AclDelta.between(await self.get_writers(resource_id), desired)
        if delta.removed:
            await self.remove_writers(resource_id, delta.removed)
        if delta.added:
            await self.add_writers(resource_id, delta.added)
        return delta
