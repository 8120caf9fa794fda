"""Embedded fake cloud store: an in-memory key -> bytes map served over HTTP.

Mounted at ``/fcs`` when ``BOSS_ENABLE_FCS_SERVICE`` is on, so an ``FCS``
object store can point its endpoint at the service itself and URLs the
service resolves can be exercised end to end.
"""

import logging
from typing import Dict
from typing import Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Header
from fastapi import Request
from fastapi.responses import Response

from boss.objectstore.gcs import COPY_SOURCE_HEADER


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/fcs", tags=["fcs"])


class ByteMap:
    """Key -> immutable bytes. A copy shares the source's bytes object."""

    def __init__(self) -> None:
        self._data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self._data.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def put(self, key: str, value: bytes) -> None:
        self._data[key] = value

    def remove(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._data)


def get_byte_map(request: Request) -> ByteMap:
    return request.app.state.fcs_store


@router.get("/{name:path}")
async def get_data(name: str, store: ByteMap = Depends(get_byte_map)) -> Response:
    value = store.get(name)
    if value is None:
        return Response(status_code=404)
    return Response(content=value, media_type="application/octet-stream")


@router.head("/{name:path}")
async def check_data(name: str, store: ByteMap = Depends(get_byte_map)) -> Response:
    if name not in store:
        return Response(status_code=404)
    return Response(status_code=200)


@router.put("/{name:path}")
async def put_data(
    name: str,
    request: Request,
    content_length: Optional[str] = Header(None),
    copy_source: Optional[str] = Header(None, alias=COPY_SOURCE_HEADER),
    store: ByteMap = Depends(get_byte_map),
) -> Response:
    # GCS rejects PUTs without a Content-Length, even empty ones
    if content_length is None:
        return Response(status_code=400)

    value: Optional[bytes] = await request.body()
    if copy_source is not None:
        if value:
            return Response(status_code=400)
        if copy_source:
            value = store.get(copy_source[1:] if copy_source.startswith("/") else copy_source)
        if value is None:
            return Response(status_code=404)

    store.put(name, bytes(value or b""))
    logger.debug(f"FCS stored {name} ({len(value or b'')} bytes)")
    return Response(status_code=200)


@router.delete("/{name:path}")
async def delete_data(name: str, store: ByteMap = Depends(get_byte_map)) -> Response:
    if not store.remove(name):
        return Response(status_code=404)
    return Response(status_code=200)
