from typing import Any
from typing import List
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        """Wire form: camelCase keys, unset fields left out."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ObjectDesc(CamelModel):
    """Object body used by create, describe and update."""

    object_id: Optional[str] = Field(None, alias="objectId")
    object_name: Optional[str] = Field(None, alias="objectName")
    owner_id: Optional[str] = Field(None, alias="ownerId")
    storage_platform: Optional[str] = Field(None, alias="storagePlatform")
    directory_path: Optional[str] = Field(None, alias="directoryPath")
    size_estimate_bytes: Optional[int] = Field(None, alias="sizeEstimateBytes")
    readers: Optional[List[str]] = None
    writers: Optional[List[str]] = None
    force_location: Optional[bool] = Field(None, alias="forceLocation")


class ResolveRequest(CamelModel):
    validity_period_seconds: Optional[int] = Field(None, alias="validityPeriodSeconds")
    http_method: Optional[str] = Field(None, alias="httpMethod")
    content_type: Optional[str] = Field(None, alias="contentType")
    content_md5_hex: Optional[str] = Field(None, alias="contentMD5Hex")


class ResolveResponse(CamelModel):
    object_url: str = Field(..., alias="objectUrl")
    validity_period_seconds: int = Field(..., alias="validityPeriodSeconds")
    content_type: Optional[str] = Field(None, alias="contentType")
    content_md5_hex: Optional[str] = Field(None, alias="contentMD5Hex")


class CopyRequest(CamelModel):
    validity_period_seconds: Optional[int] = Field(None, alias="validityPeriodSeconds")
    # "/{bucket}/{key}" of the bytes to duplicate
    location_to_copy: Optional[str] = Field(None, alias="locationToCopy")


class UriResponse(CamelModel):
    uri: str


class GroupDesc(CamelModel):
    group_id: Optional[str] = Field(None, alias="groupId")
    owner_id: Optional[str] = Field(None, alias="ownerId")
    type_hint: Optional[str] = Field(None, alias="typeHint")
    size_estimate_bytes: Optional[int] = Field(None, alias="sizeEstimateBytes")
    directory: Optional[str] = None
    readers: Optional[List[str]] = None
    writers: Optional[List[str]] = None
