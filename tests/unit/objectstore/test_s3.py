import time
import urllib.parse
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from boss.config import ObjectStoreConfig
from boss.objectstore.base import ObjectStoreError
from boss.objectstore.base import UnsupportedOperationError
from boss.objectstore.s3 import S3ObjectStore


@pytest.fixture
def s3_config() -> ObjectStoreConfig:
    return ObjectStoreConfig(
        type="S3",
        endpoint="http://minio:9000",
        bucket="boss",
        username="minio",
        password="minio123",
        path_style_access=True,
    )


def query_of(url: str) -> dict[str, str]:
    return {k: v[0] for k, v in urllib.parse.parse_qs(urllib.parse.urlsplit(url).query).items()}


def client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "HeadObject")


class TestPresign:
    @pytest.mark.asyncio
    async def test_get_url_is_path_style_and_signed(self, s3_config):
        store = S3ObjectStore("localStore", s3_config)

        url = await store.resolve("obj-1-abc", "GET", int(time.time()) + 300)

        assert url.startswith("http://minio:9000/boss/obj-1-abc?")
        params = query_of(url)
        assert "X-Amz-Signature" in params
        assert params["X-Amz-SignedHeaders"] == "host"
        assert 290 <= int(params["X-Amz-Expires"]) <= 300

    @pytest.mark.asyncio
    async def test_put_binds_content_md5(self, s3_config):
        store = S3ObjectStore("localStore", s3_config)
        expiry = int(time.time()) + 300

        url = await store.resolve("k", "PUT", expiry, content_md5="1B2M2Y8AsgTpgAmY7PhCfg==")

        assert "content-md5" in query_of(url)["X-Amz-SignedHeaders"].split(";")

    @pytest.mark.asyncio
    async def test_get_ignores_content_md5(self, s3_config):
        store = S3ObjectStore("localStore", s3_config)

        url = await store.resolve("k", "GET", int(time.time()) + 300, content_md5="1B2M2Y8AsgTpgAmY7PhCfg==")

        assert query_of(url)["X-Amz-SignedHeaders"] == "host"

    @pytest.mark.asyncio
    async def test_past_expiry_still_presigns(self, s3_config):
        client = MagicMock()
        client.generate_presigned_url.return_value = "http://signed"
        store = S3ObjectStore("localStore", s3_config, client=client)

        await store.resolve("k", "HEAD", 0)

        client.generate_presigned_url.assert_called_once_with(
            "head_object", Params={"Bucket": "boss", "Key": "k"}, ExpiresIn=1
        )

    @pytest.mark.asyncio
    async def test_copy_and_resumable_are_unsupported(self, s3_config):
        store = S3ObjectStore("localStore", s3_config, client=MagicMock())

        with pytest.raises(UnsupportedOperationError):
            await store.copy("dest", "/boss/src", 0)
        with pytest.raises(UnsupportedOperationError):
            await store.start_resumable_upload("dest", 0)


class TestStoreCalls:
    @pytest.mark.asyncio
    async def test_exists(self, s3_config):
        client = MagicMock()
        store = S3ObjectStore("localStore", s3_config, client=client)

        assert await store.exists("present") is True
        client.head_object.assert_called_once_with(Bucket="boss", Key="present")

        client.head_object.side_effect = client_error("404")
        assert await store.exists("absent") is False

    @pytest.mark.asyncio
    async def test_exists_propagates_other_errors(self, s3_config):
        client = MagicMock()
        client.head_object.side_effect = client_error("AccessDenied")
        store = S3ObjectStore("localStore", s3_config, client=client)

        with pytest.raises(ObjectStoreError):
            await store.exists("obj")

    @pytest.mark.asyncio
    async def test_delete_tolerates_missing_key(self, s3_config):
        client = MagicMock()
        client.delete_object.side_effect = client_error("NoSuchKey")
        store = S3ObjectStore("localStore", s3_config, client=client)

        await store.delete("obj")

        client.delete_object.assert_called_once_with(Bucket="boss", Key="obj")

    @pytest.mark.asyncio
    async def test_delete_failure_raises(self, s3_config):
        client = MagicMock()
        client.delete_object.side_effect = client_error("AccessDenied")
        store = S3ObjectStore("localStore", s3_config, client=client)

        with pytest.raises(ObjectStoreError):
            await store.delete("obj")
