from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from boss.models.group import GroupDB
from boss.orm.base_repository import BaseRepository


class GroupRepository(BaseRepository[GroupDB]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, GroupDB)

    async def get_by_id(self, group_id: str) -> Optional[GroupDB]:
        return await self.get(group_id)

    async def touch_modified(self, group: GroupDB) -> GroupDB:
        group.touch_modified()
        return await self.update(group)

    async def soft_delete(self, group: GroupDB) -> GroupDB:
        group.soft_delete()
        return await self.update(group)
