from typing import Optional

from sqlalchemy import BigInteger
from sqlmodel import Field

from boss.models.base import LifecycleFields
from boss.models.base import new_id
from boss.models.enums import GroupVariant


class GroupDB(LifecycleFields, table=True):
    """Owner + ACL container. A group with a directory is the directory-backed variant."""

    __tablename__ = "groups"

    group_id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    type_hint: Optional[str] = Field(default=None, max_length=255)
    size_estimate_bytes: int = Field(default=-1, sa_type=BigInteger, nullable=False)
    directory: Optional[str] = Field(default=None, max_length=2048)

    @property
    def variant(self) -> GroupVariant:
        return GroupVariant.FS if self.directory is not None else GroupVariant.DB
