from __future__ import annotations

from typing import List
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from boss.models.acl import ReaderDB
from boss.models.base import utcnow
from boss.models.object import ObjectDB
from boss.orm.base_repository import BaseRepository


class ObjectRepository(BaseRepository[ObjectDB]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ObjectDB)

    async def get_by_id(self, object_id: str) -> Optional[ObjectDB]:
        stmt = select(ObjectDB).where(ObjectDB.object_id == object_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active_by_name_for_reader(self, object_name: str, username: str) -> List[ObjectDB]:
        """Active objects called ``object_name`` that ``username`` may read."""
        stmt = (
            select(ObjectDB)
            .join(ReaderDB, ReaderDB.id == ObjectDB.object_id)
            .where(
                ObjectDB.object_name == object_name,
                ObjectDB.active.is_(True),  # type: ignore[attr-defined]
                ReaderDB.username == username,
            )
            .order_by(ObjectDB.created_at, ObjectDB.object_id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def touch_modified(self, obj: ObjectDB) -> ObjectDB:
        obj.touch_modified()
        return await self.update(obj)

    async def soft_delete(self, obj: ObjectDB) -> ObjectDB:
        obj.soft_delete()
        return await self.update(obj)

    async def touch_resolved(self, obj: ObjectDB) -> ObjectDB:
        obj.resolved_at = utcnow()
        return await self.update(obj)
