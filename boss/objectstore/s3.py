from __future__ import annotations

import asyncio
import logging
import time
from typing import Any
from typing import Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError

from boss.config import ObjectStoreConfig
from boss.objectstore.base import ObjectStore
from boss.objectstore.base import ObjectStoreError
from boss.objectstore.base import UnsupportedOperationError


logger = logging.getLogger(__name__)

CLIENT_METHODS = {
    "GET": "get_object",
    "PUT": "put_object",
    "HEAD": "head_object",
    "DELETE": "delete_object",
}

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def build_s3_client(config: ObjectStoreConfig) -> Any:
    return boto3.client(
        "s3",
        endpoint_url=config.endpoint or None,
        aws_access_key_id=config.username,
        aws_secret_access_key=config.password,
        region_name=config.region or "us-east-1",
        config=BotoConfig(
            signature_version="s3v4",
            s3={"addressing_style": "path" if config.path_style_access else "auto"},
        ),
    )


class S3ObjectStore(ObjectStore):
    """S3-compatible backend. Presigning is delegated to boto3."""

    def __init__(self, name: str, config: ObjectStoreConfig, client: Optional[Any] = None) -> None:
        super().__init__(name, config)
        self._client = client if client is not None else build_s3_client(config)

    async def resolve(
        self,
        key: str,
        method: str,
        expiry: int,
        content_type: Optional[str] = None,
        content_md5: Optional[str] = None,
    ) -> str:
        client_method = CLIENT_METHODS.get(method)
        if client_method is None:
            raise UnsupportedOperationError(f"Cannot presign {method} requests")

        params: dict[str, Any] = {"Bucket": self.config.bucket, "Key": key}
        # only uploads carry a body, so only PUT can bind its type and digest
        if method == "PUT":
            if content_type:
                params["ContentType"] = content_type
            if content_md5:
                params["ContentMD5"] = content_md5

        expires_in = max(1, expiry - int(time.time()))
        try:
            return self._client.generate_presigned_url(client_method, Params=params, ExpiresIn=expires_in)
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError(f"Can't presign {method} for {key}: {e}") from e

    async def copy(self, key: str, location_to_copy: str, expiry: int) -> str:
        raise UnsupportedOperationError("Copying objects is not currently supported on S3 storage.")

    async def start_resumable_upload(self, key: str, expiry: int) -> str:
        raise UnsupportedOperationError("Resumable uploads are not supported on S3 storage.")

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self.config.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in NOT_FOUND_CODES:
                return
            raise ObjectStoreError(f"Delete of {key} failed: {e}") from e
        except BotoCoreError as e:
            raise ObjectStoreError(f"Delete of {key} failed: {e}") from e

    async def exists(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._client.head_object, Bucket=self.config.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in NOT_FOUND_CODES:
                return False
            raise ObjectStoreError(f"HEAD of {key} failed: {e}") from e
        except BotoCoreError as e:
            raise ObjectStoreError(f"HEAD of {key} failed: {e}") from e
        return True
