"""Google Cloud Storage backend using V2 signed URLs.

A signed URL carries ``GoogleAccessId``, ``Expires`` and ``Signature`` query
parameters. The signature is RSA-SHA256 over the canonical string::

    {verb}\\n{content-md5}\\n{content-type}\\n{expires}\\n{extension-headers}{/bucket/key}

where every extension header line is ``name:value\\n``.
"""

from __future__ import annotations

import base64
import logging
import pathlib
import time
import urllib.parse
from typing import Optional

import httpx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.hazmat.primitives.serialization import pkcs12

from boss.config import ObjectStoreConfig
from boss.objectstore.base import ObjectStore
from boss.objectstore.base import ObjectStoreError


logger = logging.getLogger(__name__)

# Password Google issues on every service-account .p12 file
DEFAULT_P12_PASSWORD = "notasecret"

COPY_SOURCE_HEADER = "x-goog-copy-source"
RESUMABLE_HEADER = "x-goog-resumable"


def load_private_key(path: str, password: Optional[str] = None) -> RSAPrivateKey:
    """Load an RSA key from a PEM file or a PKCS#12 bundle."""
    try:
        data = pathlib.Path(path).read_bytes()
        if data.lstrip().startswith(b"-----BEGIN"):
            key = serialization.load_pem_private_key(data, password=password.encode() if password else None)
        else:
            key, _cert, _extra = pkcs12.load_key_and_certificates(data, (password or DEFAULT_P12_PASSWORD).encode())
    except (OSError, TypeError, ValueError) as e:
        raise ObjectStoreError(f"Can't load private key from {path}: {e}") from e
    if not isinstance(key, RSAPrivateKey):
        raise ObjectStoreError(f"Key file {path} does not hold an RSA private key")
    return key


def canonical_string(
    method: str,
    resource_path: str,
    expiry: int,
    content_type: Optional[str] = None,
    content_md5: Optional[str] = None,
    extension_headers: str = "",
) -> str:
    return f"{method}\n{content_md5 or ''}\n{content_type or ''}\n{expiry}\n{extension_headers}{resource_path}"


class GCSObjectStore(ObjectStore):
    def __init__(
        self,
        name: str,
        config: ObjectStoreConfig,
        http_client: httpx.AsyncClient,
        internal_validity_seconds: int = 60,
        private_key: Optional[RSAPrivateKey] = None,
    ) -> None:
        super().__init__(name, config)
        self._client = http_client
        self._internal_validity_seconds = internal_validity_seconds
        self._private_key = private_key

    @property
    def private_key(self) -> RSAPrivateKey:
        if self._private_key is None:
            if not self.config.key_file:
                raise ObjectStoreError(f"Object store {self.name} has no keyFile configured")
            self._private_key = load_private_key(self.config.key_file, self.config.password)
        return self._private_key

    def resource_path(self, key: str) -> str:
        return f"/{self.config.bucket}/{key}"

    def sign(self, payload: str) -> str:
        try:
            signature = self.private_key.sign(payload.encode("utf-8"), padding.PKCS1v15(), hashes.SHA256())
        except ValueError as e:
            raise ObjectStoreError("Can't sign URL") from e
        return urllib.parse.quote(base64.b64encode(signature).decode("ascii"), safe="")

    def signed_url(
        self,
        method: str,
        key: str,
        expiry: int,
        content_type: Optional[str] = None,
        content_md5: Optional[str] = None,
        extension_headers: str = "",
    ) -> str:
        resource_path = self.resource_path(key)
        signature = self.sign(
            canonical_string(method, resource_path, expiry, content_type, content_md5, extension_headers)
        )
        return (
            f"{self.config.endpoint}{resource_path}"
            f"?GoogleAccessId={self.config.username}&Expires={expiry}&Signature={signature}"
        )

    def _internal_expiry(self) -> int:
        return int(time.time()) + self._internal_validity_seconds

    async def resolve(
        self,
        key: str,
        method: str,
        expiry: int,
        content_type: Optional[str] = None,
        content_md5: Optional[str] = None,
    ) -> str:
        return self.signed_url(method, key, expiry, content_type, content_md5)

    async def copy(self, key: str, location_to_copy: str, expiry: int) -> str:
        return self.signed_url("PUT", key, expiry, extension_headers=f"{COPY_SOURCE_HEADER}:{location_to_copy}\n")

    async def start_resumable_upload(self, key: str, expiry: int) -> str:
        return self.signed_url("PUT", key, expiry, extension_headers=f"{RESUMABLE_HEADER}:start\n")

    async def delete(self, key: str) -> None:
        url = self.signed_url("DELETE", key, self._internal_expiry())
        try:
            response = await self._client.delete(url)
        except httpx.HTTPError as e:
            raise ObjectStoreError(f"DELETE {self.resource_path(key)} failed: {e}") from e

        # 404 is fine: the client may never have uploaded anything
        if response.status_code in (200, 204, 404):
            return
        raise ObjectStoreError(f"DELETE {self.resource_path(key)} returned {response.status_code}: {response.text}")

    async def exists(self, key: str) -> bool:
        url = self.signed_url("HEAD", key, self._internal_expiry())
        try:
            response = await self._client.head(url)
        except httpx.HTTPError as e:
            raise ObjectStoreError(f"HEAD {self.resource_path(key)} failed: {e}") from e

        if response.status_code == 200:
            return True
        if response.status_code == 404:
            return False
        raise ObjectStoreError(f"HEAD {self.resource_path(key)} returned {response.status_code}")
