"""Error type and plain-text error responses."""

import logging
from typing import Any
from typing import Iterable

from fastapi import Request
from fastapi import Response

from boss.messages import MessageCatalog


logger = logging.getLogger(__name__)


class BossError(Exception):
    """A failed operation: stable code, HTTP status and client-facing text."""

    def __init__(self, code: str, status_code: int = 400, message: str = ""):
        self.code = code
        self.status_code = status_code
        self.message = message or f"BOSS Error: {code}"
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"BossError(code={self.code!r}, status_code={self.status_code})"


def error(messages: MessageCatalog, code: str, status_code: int, **params: Any) -> BossError:
    """Build a BossError whose text comes from the message catalog."""
    return BossError(code, status_code, messages.get(code, **params))


def bad_request(messages: MessageCatalog, codes: Iterable[str], **params: Any) -> BossError:
    """One 400 carrying every violation, one message per line."""
    codes = list(codes)
    text = "\n".join(messages.get(code, **params) for code in codes)
    return BossError(codes[0], 400, text)


def boss_error_response(exc: BossError) -> Response:
    return Response(content=exc.message, status_code=exc.status_code, media_type="text/plain")


async def boss_error_handler(request: Request, exc: BossError) -> Response:
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
    return boss_error_response(exc)
