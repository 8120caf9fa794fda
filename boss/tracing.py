from typing import Any
from typing import Optional

from opentelemetry import trace
from opentelemetry.trace import Span
from opentelemetry.trace import Status
from opentelemetry.trace import StatusCode


tracer = trace.get_tracer("boss")


def set_span_attributes(span: Optional[Span], attributes: dict[str, Any]) -> None:
    """Set several attributes at once, skipping None values and non-recording spans."""
    if span is None:
        return
    if span.is_recording():
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)


def mark_span_error(span: Span, exc: BaseException) -> None:
    span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, str(exc)))
    set_span_attributes(
        span,
        {
            "error": True,
            "error.type": type(exc).__name__,
            "error.message": str(exc),
        },
    )
