import logging
from typing import Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi.responses import JSONResponse
from fastapi.responses import Response

from boss.api.schemas import GroupDesc
from boss.dependencies import get_group_service
from boss.dependencies import get_remote_user
from boss.services.group_service import GroupService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("")
async def create_group(
    desc: GroupDesc,
    user: Optional[str] = Depends(get_remote_user),
    service: GroupService = Depends(get_group_service),
) -> Response:
    created = await service.create(desc, user)
    return JSONResponse(created.to_json(), status_code=201, headers={"Location": f"/groups/{created.group_id}"})


@router.get("/{group_id}")
async def describe_group(
    group_id: str,
    user: Optional[str] = Depends(get_remote_user),
    service: GroupService = Depends(get_group_service),
) -> Response:
    return JSONResponse((await service.describe(group_id, user)).to_json())


@router.post("/{group_id}")
async def update_group(
    group_id: str,
    desc: GroupDesc,
    user: Optional[str] = Depends(get_remote_user),
    service: GroupService = Depends(get_group_service),
) -> Response:
    return JSONResponse((await service.update(group_id, desc, user)).to_json())


@router.delete("/{group_id}")
async def delete_group(
    group_id: str,
    user: Optional[str] = Depends(get_remote_user),
    service: GroupService = Depends(get_group_service),
) -> Response:
    return Response(content=await service.delete(group_id, user), media_type="text/plain")
