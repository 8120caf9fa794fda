"""End-to-end tests of the HTTP surface: routers, error mapping, persistence and the embedded fake store."""

import dataclasses
import urllib.parse
from typing import Any
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport
from httpx import AsyncClient

from boss.config import Config
from boss.config import ObjectStoreConfig
from boss.main import create_app
from boss.objectstore.fcs import FCSObjectStore
from boss.objectstore.registry import ObjectStoreRegistry
from boss.services.ray_id_service import RAY_ID_HEADER


SQLITE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def app() -> FastAPI:
    config = dataclasses.replace(
        Config(),
        database_url=SQLITE_URL,
        create_schema=True,
        enable_fcs_service=True,
    )
    app = create_app(config)

    # the fake store talks back to this very app
    store_client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    store_config = ObjectStoreConfig(type="FCS", endpoint="http://test/fcs", bucket="fake")
    app.state.object_stores = ObjectStoreRegistry(
        {"localStore": FCSObjectStore("localStore", store_config, store_client)},
        store_client,
    )
    return app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client


def as_user(user: str) -> dict[str, str]:
    return {"REMOTE_USER": user}


async def create_object(client: AsyncClient, name: str = "sample.bam", **overrides: Any) -> dict[str, Any]:
    body = {
        "objectName": name,
        "storagePlatform": "localStore",
        "ownerId": "u1",
        "readers": ["u1"],
        "writers": ["u1"],
        **overrides,
    }
    response = await client.post("/objects", json=body, headers=as_user("u1"))
    assert response.status_code == 201, response.text
    return response.json()


async def resolve(client: AsyncClient, object_id: str, method: str, **extra: Any) -> httpx.Response:
    return await client.post(
        f"/objects/{object_id}/resolve",
        json={"httpMethod": method, "validityPeriodSeconds": 60, **extra},
        headers=as_user("u1"),
    )


class TestObjectLifecycle:
    @pytest.mark.asyncio
    async def test_create_forbid_update_delete(self, client: AsyncClient) -> None:
        response = await client.post(
            "/objects",
            json={
                "objectName": "a",
                "storagePlatform": "localStore",
                "ownerId": "u1",
                "readers": ["u1"],
                "writers": ["u1"],
            },
            headers=as_user("u1"),
        )
        assert response.status_code == 201
        created = response.json()
        object_id = created["objectId"]
        assert response.headers["Location"] == f"/objects/{object_id}"
        assert RAY_ID_HEADER in response.headers
        assert "directoryPath" not in created

        forbidden = await client.get(f"/objects/{object_id}", headers=as_user("u2"))
        assert forbidden.status_code == 403
        assert forbidden.text == f"No read permission for {object_id} by u2."
        assert forbidden.headers["content-type"].startswith("text/plain")

        renamed = await client.post(f"/objects/{object_id}", json={"objectName": "b"}, headers=as_user("u1"))
        assert renamed.status_code == 400
        assert renamed.text == "ObjectName cannot be modified."

        deleted = await client.delete(f"/objects/{object_id}", headers=as_user("u1"))
        assert deleted.status_code == 200
        assert deleted.text == object_id

        gone = await client.get(f"/objects/{object_id}", headers=as_user("u1"))
        assert gone.status_code == 410
        assert gone.text == f"Object {object_id} was deleted."

    @pytest.mark.asyncio
    async def test_update_replaces_acls(self, client: AsyncClient) -> None:
        created = await create_object(client)

        response = await client.post(
            f"/objects/{created['objectId']}",
            json={"readers": ["u1", "u2"], "ownerId": "u2"},
            headers=as_user("u1"),
        )

        assert response.status_code == 200
        assert response.json()["readers"] == ["u1", "u2"]
        assert response.json()["ownerId"] == "u2"
        readable = await client.get(f"/objects/{created['objectId']}", headers=as_user("u2"))
        assert readable.status_code == 200

    @pytest.mark.asyncio
    async def test_find_by_name(self, client: AsyncClient) -> None:
        first = await create_object(client, name="shared.txt")
        await create_object(client, name="shared.txt", readers=["someone-else"])

        found = await client.get("/objects", params={"name": "shared.txt"}, headers=as_user("u1"))
        missing = await client.get("/objects", params={"name": "nothing"}, headers=as_user("u1"))

        assert found.status_code == 200
        assert [desc["objectId"] for desc in found.json()] == [first["objectId"]]
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_object(self, client: AsyncClient) -> None:
        response = await client.get("/objects/does-not-exist", headers=as_user("u1"))

        assert response.status_code == 404
        assert response.text == "Object does-not-exist not found."


class TestRequestErrors:
    @pytest.mark.asyncio
    async def test_missing_remote_user(self, client: AsyncClient) -> None:
        response = await client.post(
            "/objects", json={"objectName": "a", "storagePlatform": "localStore", "ownerId": "u1"}
        )

        assert response.status_code == 400
        assert response.text == "No REMOTE_USER header found in the request."

    @pytest.mark.asyncio
    async def test_malformed_json(self, client: AsyncClient) -> None:
        response = await client.post(
            "/objects",
            content=b"{not json",
            headers={**as_user("u1"), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.text.startswith("Malformed request")

    @pytest.mark.asyncio
    async def test_create_collects_every_violation(self, client: AsyncClient) -> None:
        response = await client.post("/objects", json={"storagePlatform": "localStore"}, headers=as_user("u1"))

        assert response.status_code == 400
        assert response.text.splitlines() == ["ObjectName cannot be null.", "OwnerId cannot be null."]

    @pytest.mark.asyncio
    async def test_unknown_platform_lists_choices(self, client: AsyncClient) -> None:
        response = await client.post(
            "/objects",
            json={"objectName": "a", "storagePlatform": "nowhere", "ownerId": "u1"},
            headers=as_user("u1"),
        )

        assert response.status_code == 400
        assert response.text == "StoragePlatform must be one of localStore, opaqueURI."

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.text == "OK"


class TestResolveThroughFakeStore:
    @pytest.mark.asyncio
    async def test_upload_then_download(self, client: AsyncClient) -> None:
        created = await create_object(client)

        put = await resolve(client, created["objectId"], "PUT", contentType="text/plain")
        assert put.status_code == 200
        assert put.json()["validityPeriodSeconds"] == 60
        assert put.json()["contentType"] == "text/plain"
        upload_url = put.json()["objectUrl"]
        assert upload_url.startswith("http://test/fcs/fake/")
        assert (await client.put(upload_url, content=b"hello")).status_code == 200

        get = await resolve(client, created["objectId"], "GET")
        download = await client.get(get.json()["objectUrl"])

        assert download.content == b"hello"

    @pytest.mark.asyncio
    async def test_copy_between_objects(self, client: AsyncClient) -> None:
        source = await create_object(client, name="source")
        put = await resolve(client, source["objectId"], "PUT")
        await client.put(put.json()["objectUrl"], content=b"copied bytes")
        source_location = urllib.parse.urlsplit(put.json()["objectUrl"]).path[len("/fcs"):]

        dest = await create_object(client, name="dest")
        copy = await client.post(
            f"/objects/{dest['objectId']}/copy",
            json={"validityPeriodSeconds": 60, "locationToCopy": source_location},
            headers=as_user("u1"),
        )
        assert copy.status_code == 200
        copied = await client.put(
            copy.json()["uri"],
            content=b"",
            headers={"x-goog-copy-source": source_location, "Content-Length": "0"},
        )
        assert copied.status_code == 200

        get = await resolve(client, dest["objectId"], "GET")
        assert (await client.get(get.json()["objectUrl"])).content == b"copied bytes"

    @pytest.mark.asyncio
    async def test_resumable_upload_url(self, client: AsyncClient) -> None:
        created = await create_object(client)

        response = await client.post(f"/objects/{created['objectId']}/multi", headers=as_user("u1"))

        assert response.status_code == 200
        assert response.json()["uri"].startswith("http://test/fcs/fake/")

    @pytest.mark.asyncio
    async def test_delete_removes_stored_bytes(self, client: AsyncClient) -> None:
        created = await create_object(client)
        put = await resolve(client, created["objectId"], "PUT")
        await client.put(put.json()["objectUrl"], content=b"bye")

        deleted = await client.delete(f"/objects/{created['objectId']}", headers=as_user("u1"))

        assert deleted.status_code == 200
        assert (await client.get(put.json()["objectUrl"])).status_code == 404

    @pytest.mark.asyncio
    async def test_forced_location_must_exist(self, client: AsyncClient) -> None:
        await client.put("/fcs/fake/already/there", content=b"data")
        body = {"objectName": "f", "storagePlatform": "localStore", "ownerId": "u1", "forceLocation": True}

        missing = await client.post(
            "/objects", json={**body, "directoryPath": "not/there"}, headers=as_user("u1")
        )
        present = await client.post(
            "/objects", json={**body, "directoryPath": "already/there"}, headers=as_user("u1")
        )

        assert missing.status_code == 409
        assert present.status_code == 201

    @pytest.mark.asyncio
    async def test_opaque_object_resolves_to_its_uri(self, client: AsyncClient) -> None:
        created = await create_object(
            client, storagePlatform="opaqueURI", directoryPath="https://example.org/data.vcf"
        )

        response = await resolve(client, created["objectId"], "GET")

        assert created["directoryPath"] == "https://example.org/data.vcf"
        assert response.json()["objectUrl"] == "https://example.org/data.vcf"

    @pytest.mark.asyncio
    async def test_invalid_resolve_request(self, client: AsyncClient) -> None:
        created = await create_object(client)

        response = await client.post(
            f"/objects/{created['objectId']}/resolve",
            json={"httpMethod": "DELETE", "validityPeriodSeconds": 0},
            headers=as_user("u1"),
        )

        assert response.status_code == 400
        assert response.text.splitlines() == [
            "HttpMethod must be one of GET, PUT, HEAD.",
            "ValidityPeriodSeconds must be a positive integer.",
        ]


class TestGroups:
    @pytest.mark.asyncio
    async def test_group_lifecycle(self, client: AsyncClient) -> None:
        created = await client.post(
            "/groups",
            json={"ownerId": "u1", "directory": "/data/run-7", "readers": ["u1"], "writers": ["u1"]},
            headers=as_user("u1"),
        )
        assert created.status_code == 201
        group_id = created.json()["groupId"]
        assert created.headers["Location"] == f"/groups/{group_id}"

        assert (await client.get(f"/groups/{group_id}", headers=as_user("u2"))).status_code == 403

        changed = await client.post(f"/groups/{group_id}", json={"directory": "/elsewhere"}, headers=as_user("u1"))
        assert changed.status_code == 400
        assert changed.text == "Directory cannot be modified."

        assert (await client.delete(f"/groups/{group_id}", headers=as_user("u1"))).status_code == 200
        assert (await client.get(f"/groups/{group_id}", headers=as_user("u1"))).status_code == 410
