import uuid
from datetime import datetime
from datetime import timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field
from sqlmodel import SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class LifecycleFields(SQLModel):
    """Ownership, soft-delete flag and audit timestamps shared by objects and groups."""

    owner_id: str = Field(max_length=255, nullable=False)
    active: bool = Field(default=True, nullable=False)
    created_by: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)
    modified_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    deleted_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    @property
    def is_deleted(self) -> bool:
        return not self.active

    def soft_delete(self) -> None:
        self.active = False
        self.deleted_at = utcnow()

    def touch_modified(self) -> None:
        self.modified_at = utcnow()
