import contextvars
import logging
import uuid
from typing import Any
from typing import MutableMapping
from typing import Optional


ray_id_context: contextvars.ContextVar[str] = contextvars.ContextVar("ray_id", default="no-ray-id")

RAY_ID_HEADER = "X-Boss-Ray-ID"


def generate_ray_id() -> str:
    """Return a 16-character lowercase hex id (first 64 bits of a uuid4)."""
    return uuid.uuid4().hex[:16]


class RayIDLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that stamps a fixed ray_id on every record it emits."""

    def __init__(self, logger: logging.Logger, ray_id: Optional[str] = None):
        super().__init__(logger, {"ray_id": ray_id or "no-ray-id"})

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        extra = kwargs.setdefault("extra", {})
        extra["ray_id"] = self.extra.get("ray_id", "no-ray-id") if self.extra else "no-ray-id"
        return msg, kwargs


def get_logger_with_ray_id(name: str, ray_id: Optional[str] = None) -> RayIDLoggerAdapter:
    return RayIDLoggerAdapter(logging.getLogger(name), ray_id)
