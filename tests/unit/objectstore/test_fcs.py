import httpx
import pytest

from boss.config import ObjectStoreConfig
from boss.objectstore.base import ObjectStoreError
from boss.objectstore.fcs import FCSObjectStore


@pytest.fixture
def fcs_config() -> ObjectStoreConfig:
    return ObjectStoreConfig(type="FCS", endpoint="http://boss:8080/fcs", bucket="fake")


def make_store(config: ObjectStoreConfig, handler) -> FCSObjectStore:
    return FCSObjectStore("fakeStore", config, httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_urls_are_unsigned_object_urls(fcs_config):
    store = make_store(fcs_config, lambda request: httpx.Response(200))

    assert await store.resolve("k", "PUT", 0, "text/plain", "abc==") == "http://boss:8080/fcs/fake/k"
    assert await store.copy("k", "/fake/src", 0) == "http://boss:8080/fcs/fake/k"
    assert await store.start_resumable_upload("k", 0) == "http://boss:8080/fcs/fake/k"


@pytest.mark.asyncio
async def test_exists_and_delete(fcs_config):
    data = {"/fcs/fake/present"}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "HEAD":
            return httpx.Response(200 if request.url.path in data else 404)
        if request.method == "DELETE":
            return httpx.Response(404)
        return httpx.Response(405)

    store = make_store(fcs_config, handler)

    assert await store.exists("present") is True
    assert await store.exists("absent") is False
    await store.delete("absent")


@pytest.mark.asyncio
async def test_delete_failure_raises(fcs_config):
    store = make_store(fcs_config, lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(ObjectStoreError):
        await store.delete("k")
