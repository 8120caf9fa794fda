from boss.models.acl import ReaderDB
from boss.models.acl import WriterDB
from boss.models.base import LifecycleFields
from boss.models.enums import OPAQUE_URI
from boss.models.enums import GroupVariant
from boss.models.enums import HttpMethod
from boss.models.group import GroupDB
from boss.models.object import ObjectDB


__all__ = [
    "OPAQUE_URI",
    "GroupDB",
    "GroupVariant",
    "HttpMethod",
    "LifecycleFields",
    "ObjectDB",
    "ReaderDB",
    "WriterDB",
]
