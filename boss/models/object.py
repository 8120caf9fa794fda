from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger
from sqlalchemy import DateTime
from sqlmodel import Field

from boss.models.base import LifecycleFields
from boss.models.base import new_id


class ObjectDB(LifecycleFields, table=True):
    """Registered object: identity, backend placement and lifecycle state."""

    __tablename__ = "objects"

    object_id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    object_name: str = Field(max_length=1024, index=True, nullable=False)
    storage_platform: str = Field(max_length=255, nullable=False)
    # backend key, or the caller's URI for opaqueURI objects
    location: str = Field(max_length=2048, nullable=False)
    size_estimate_bytes: int = Field(default=-1, sa_type=BigInteger, nullable=False)
    resolved_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
