from sqlmodel import Field
from sqlmodel import SQLModel


class ReaderDB(SQLModel, table=True):
    """One reader grant. ``id`` is an object id or a group id."""

    __tablename__ = "readers"

    id: str = Field(primary_key=True, max_length=64)
    username: str = Field(primary_key=True, max_length=255)


class WriterDB(SQLModel, table=True):
    """One writer grant. ``id`` is an object id or a group id."""

    __tablename__ = "writers"

    id: str = Field(primary_key=True, max_length=64)
    username: str = Field(primary_key=True, max_length=255)
