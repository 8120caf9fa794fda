from typing import Awaitable
from typing import Callable

from fastapi import Request
from fastapi import Response

from boss.services.ray_id_service import RAY_ID_HEADER
from boss.services.ray_id_service import generate_ray_id
from boss.services.ray_id_service import get_logger_with_ray_id
from boss.services.ray_id_service import ray_id_context


async def ray_id_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Tag the request with a fresh ray id for logs and echo it back in a response header.

    Registered last in main.create_app so it runs first.
    """
    ray_id = generate_ray_id()
    token = ray_id_context.set(ray_id)
    request.state.ray_id = ray_id
    request.state.logger = get_logger_with_ray_id(__name__, ray_id)

    try:
        response = await call_next(request)
    finally:
        ray_id_context.reset(token)

    response.headers[RAY_ID_HEADER] = ray_id
    return response
