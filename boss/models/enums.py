from enum import Enum


OPAQUE_URI = "opaqueURI"


class HttpMethod(str, Enum):
    """Verbs a resolved URL may be issued for."""

    GET = "GET"
    PUT = "PUT"
    HEAD = "HEAD"

    @property
    def is_write(self) -> bool:
        return self is HttpMethod.PUT


class GroupVariant(str, Enum):
    DB = "db"
    FS = "fs"
