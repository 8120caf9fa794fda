import logging
from typing import Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Query
from fastapi.responses import JSONResponse
from fastapi.responses import Response

from boss.api.schemas import CopyRequest
from boss.api.schemas import ObjectDesc
from boss.api.schemas import ResolveRequest
from boss.api.schemas import UriResponse
from boss.dependencies import get_object_service
from boss.dependencies import get_remote_user
from boss.services.object_service import ObjectService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/objects", tags=["objects"])


@router.get("")
async def find_objects_by_name(
    name: str = Query(..., description="Object name to look up"),
    user: Optional[str] = Depends(get_remote_user),
    service: ObjectService = Depends(get_object_service),
) -> Response:
    descs = await service.find_by_name(name, user)
    return JSONResponse([desc.to_json() for desc in descs])


@router.post("")
async def create_object(
    desc: ObjectDesc,
    user: Optional[str] = Depends(get_remote_user),
    service: ObjectService = Depends(get_object_service),
) -> Response:
    created = await service.create(desc, user)
    return JSONResponse(
        created.to_json(),
        status_code=201,
        headers={"Location": f"/objects/{created.object_id}"},
    )


@router.get("/{object_id}")
async def describe_object(
    object_id: str,
    user: Optional[str] = Depends(get_remote_user),
    service: ObjectService = Depends(get_object_service),
) -> Response:
    desc = await service.describe(object_id, user)
    return JSONResponse(desc.to_json())


@router.post("/{object_id}")
async def update_object(
    object_id: str,
    desc: ObjectDesc,
    user: Optional[str] = Depends(get_remote_user),
    service: ObjectService = Depends(get_object_service),
) -> Response:
    updated = await service.update(object_id, desc, user)
    return JSONResponse(updated.to_json())


@router.delete("/{object_id}")
async def delete_object(
    object_id: str,
    user: Optional[str] = Depends(get_remote_user),
    service: ObjectService = Depends(get_object_service),
) -> Response:
    deleted_id = await service.delete(object_id, user)
    return Response(content=deleted_id, media_type="text/plain")


@router.post("/{object_id}/resolve")
async def resolve_object(
    object_id: str,
    request: ResolveRequest,
    user: Optional[str] = Depends(get_remote_user),
    service: ObjectService = Depends(get_object_service),
) -> Response:
    resolved = await service.resolve(object_id, user, request)
    return JSONResponse(resolved.to_json())


@router.post("/{object_id}/copy")
async def resolve_object_for_copy(
    object_id: str,
    request: CopyRequest,
    user: Optional[str] = Depends(get_remote_user),
    service: ObjectService = Depends(get_object_service),
) -> Response:
    uri = await service.resolve_for_copy(object_id, user, request)
    return JSONResponse(UriResponse(uri=uri).to_json())


@router.post("/{object_id}/multi")
async def resolve_object_for_resumable_upload(
    object_id: str,
    user: Optional[str] = Depends(get_remote_user),
    service: ObjectService = Depends(get_object_service),
) -> Response:
    uri = await service.resolve_for_resumable_upload(object_id, user)
    return JSONResponse(UriResponse(uri=uri).to_json())
