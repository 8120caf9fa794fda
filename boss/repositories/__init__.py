from .acl_repository import AclDelta
from .acl_repository import AclRepository
from .group_repository import GroupRepository
from .object_repository import ObjectRepository


__all__ = [
    "AclDelta",
    "AclRepository",
    "GroupRepository",
    "ObjectRepository",
]
