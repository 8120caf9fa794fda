import logging
from typing import Awaitable
from typing import Callable

from fastapi import Request
from fastapi import Response
from opentelemetry.trace import Status
from opentelemetry.trace import StatusCode

from boss.dependencies import REMOTE_USER_HEADER
from boss.tracing import mark_span_error
from boss.tracing import set_span_attributes
from boss.tracing import tracer


logger = logging.getLogger(__name__)

UNTRACED_PREFIXES = ("/health", "/docs", "/redoc", "/openapi.json", "/fcs")


async def tracing_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    if request.url.path.startswith(UNTRACED_PREFIXES):
        return await call_next(request)

    attributes = {
        "http.method": request.method,
        "http.route": request.url.path,
        "http.url": str(request.url),
        "boss.user": request.headers.get(REMOTE_USER_HEADER, ""),
    }

    with tracer.start_as_current_span(f"boss.{request.method.lower()}", attributes=attributes) as span:
        try:
            response = await call_next(request)
        except Exception as e:
            mark_span_error(span, e)
            raise

        set_span_attributes(span, {"http.status_code": int(response.status_code)})
        if response.status_code >= 500:
            span.set_status(Status(StatusCode.ERROR))
            set_span_attributes(span, {"error": True, "error.type": "http_error"})
        else:
            span.set_status(Status(StatusCode.OK))
        return response
