"""Tests for the async and sync Algolia clients."""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest
from conftest import RecordingTransport

from algolite.client.client import AlgoliaClient, AsyncAlgoliaClient
from algolite.config.settings import Settings
from algolite.exceptions import MissingAttributeError, MissingObjectIDError
from algolite.models.response import HttpError, InvalidObjectIDError, Success

WRITE_ACK = {"taskID": 321, "objectID": "1"}


@pytest.fixture
def transport() -> RecordingTransport:
    def _handler(request: httpx.Request) -> httpx.Response:
        if "/task/" in request.url.path:
            return httpx.Response(200, json={"status": "published"})
        return httpx.Response(200, json=WRITE_ACK)

    return RecordingTransport(_handler)


@pytest.fixture
async def client(settings: Settings, transport: RecordingTransport, no_sleep: Any):
    async with AsyncAlgoliaClient(settings, transport=transport, sleep=no_sleep) as c:
        yield c


def _path(request: httpx.Request) -> str:
    return request.url.raw_path.decode()


# ── Reads ────────────────────────────────────────────────────────────────────


class TestReads:
    async def test_search_encodes_params(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.search("products", "desk lamp", hitsPerPage=5, attributesToRetrieve=["name", "price"])

        request = transport.requests[0]
        assert request.method == "GET"
        assert request.url.host == "APPID-dsn.algolia.net"
        assert request.url.path == "/1/indexes/products"
        params = parse_qs(request.url.query.decode())
        assert params == {"hitsPerPage": ["5"], "attributesToRetrieve": ["name,price"], "query": ["desk lamp"]}

    async def test_search_does_not_inject_index(self, client: AsyncAlgoliaClient) -> None:
        result = await client.search("products", "lamp")
        assert result == Success(body=WRITE_ACK)

    async def test_search_forwards_extra_headers(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.search("products", "lamp", headers=[("X-Algolia-UserToken", "user-1")])
        assert transport.requests[0].headers["X-Algolia-UserToken"] == "user-1"

    async def test_multi(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.multi(
            [{"index_name": "products", "query": "lamp"}, {b"index_name": "brands", "query": "ikea"}],
            strategy="stop_if_enough_matches",
        )

        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url.host == "APPID-dsn.algolia.net"
        assert _path(request) == "/1/indexes/*/queries?strategy=stopIfEnoughMatches"
        assert transport.json_body() == {
            "requests": [
                {"indexName": "products", "params": "query=lamp"},
                {"indexName": "brands", "params": "query=ikea"},
            ]
        }

    async def test_multi_unknown_strategy_is_omitted(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.multi([{"index_name": "products"}], strategy=None)
        assert _path(transport.requests[0]) == "/1/indexes/*/queries"

    async def test_multi_requires_index_name(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        with pytest.raises(MissingAttributeError, match="index_name") as exc_info:
            await client.multi([{"query": "lamp"}])
        assert not isinstance(exc_info.value, MissingObjectIDError)
        assert isinstance(exc_info.value, ValueError)
        assert transport.requests == []

    async def test_search_for_facet_values(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.search_for_facet_values("species", "phylum", "dophyta", {"maxFacetHits": 3})

        request = transport.requests[0]
        assert request.url.path == "/1/indexes/species/facets/phylum/query"
        assert transport.json_body() == {"maxFacetHits": 3, "facetQuery": "dophyta"}

    async def test_get_object_injects_index(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        result = await client.get_object("products", "a/b")

        assert _path(transport.requests[0]) == "/1/indexes/products/a%2Fb"
        assert transport.requests[0].url.host == "APPID-dsn.algolia.net"
        assert result.body["indexName"] == "products"

    async def test_list_indexes(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.list_indexes()
        assert str(transport.requests[0].url) == "https://APPID-dsn.algolia.net/1/indexes"

    async def test_get_settings(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        result = await client.get_settings("products")
        assert transport.requests[0].url.path == "/1/indexes/products/settings"
        assert transport.requests[0].url.host == "APPID-dsn.algolia.net"
        assert result.body["indexName"] == "products"


# ── Writes ───────────────────────────────────────────────────────────────────


class TestWrites:
    async def test_add_object(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        result = await client.add_object("products", {"name": "Lamp"})

        request = transport.requests[0]
        assert (request.method, request.url.host, request.url.path) == ("POST", "APPID.algolia.net", "/1/indexes/products")
        assert transport.json_body() == {"name": "Lamp"}
        assert result == Success(body={**WRITE_ACK, "indexName": "products"})

    async def test_add_object_with_id_attribute_saves(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.add_object("products", {"sku": "A1"}, id_attribute="sku")
        request = transport.requests[0]
        assert (request.method, request.url.path) == ("PUT", "/1/indexes/products/A1")

    async def test_add_objects_batches_in_order(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.add_objects("products", [{"name": "a"}, {"name": "b", "objectID": "2"}])

        assert transport.requests[0].url.path == "/1/indexes/products/batch"
        assert transport.json_body() == {
            "requests": [
                {"action": "addObject", "body": {"name": "a"}},
                {"action": "addObject", "objectID": "2", "body": {"name": "b", "objectID": "2"}},
            ]
        }

    async def test_add_objects_with_id_attribute(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.add_objects("products", [{"sku": "A1"}], id_attribute="sku")
        assert transport.json_body()["requests"] == [
            {"action": "updateObject", "objectID": "A1", "body": {"sku": "A1", "objectID": "A1"}}
        ]

    async def test_save_object_uses_object_id(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.save_object("products", {"objectID": "42", "name": "Lamp"})
        request = transport.requests[0]
        assert (request.method, request.url.path) == ("PUT", "/1/indexes/products/42")

    async def test_save_object_explicit_id(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.save_object("products", {"name": "Lamp"}, "7")
        assert transport.requests[0].url.path == "/1/indexes/products/7"

    @pytest.mark.parametrize("kwargs", [{}, {"id_attribute": "sku"}])
    async def test_save_object_without_id_raises(
        self, client: AsyncAlgoliaClient, transport: RecordingTransport, kwargs: dict[str, Any]
    ) -> None:
        with pytest.raises(MissingObjectIDError):
            await client.save_object("products", {"name": "Lamp"}, **kwargs)
        assert transport.requests == []

    async def test_save_objects_missing_id_attribute_raises(
        self, client: AsyncAlgoliaClient, transport: RecordingTransport
    ) -> None:
        with pytest.raises(MissingObjectIDError, match="sku"):
            await client.save_objects("products", [{"sku": "A1"}, {"name": "x"}], id_attribute="sku")
        assert transport.requests == []

    async def test_partial_update_object(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.partial_update_object("products", {"price": 10}, "42")
        await client.partial_update_object("products", {"price": 10}, "42", upsert=False)

        assert _path(transport.requests[0]) == "/1/indexes/products/42/partial"
        assert _path(transport.requests[1]) == "/1/indexes/products/42/partial?createIfNotExists=false"
        assert transport.requests[1].method == "POST"

    @pytest.mark.parametrize(
        ("upsert", "action"),
        [(True, "partialUpdateObject"), (False, "partialUpdateObjectNoCreate")],
    )
    async def test_partial_update_objects(
        self, client: AsyncAlgoliaClient, transport: RecordingTransport, upsert: bool, action: str
    ) -> None:
        await client.partial_update_objects("products", [{"objectID": "1", "price": 10}], upsert=upsert)
        assert transport.json_body()["requests"][0]["action"] == action

    async def test_delete_object(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        result = await client.delete_object("products", "42")
        request = transport.requests[0]
        assert (request.method, request.url.host, request.url.path) == ("DELETE", "APPID.algolia.net", "/1/indexes/products/42")
        assert result.body["indexName"] == "products"

    async def test_delete_object_empty_id_sends_nothing(
        self, client: AsyncAlgoliaClient, transport: RecordingTransport
    ) -> None:
        result = await client.delete_object("products", "")
        assert result == InvalidObjectIDError()
        assert result.message == "The ObjectID cannot be an empty string"
        assert transport.requests == []

    @pytest.mark.parametrize("object_id", ["", None])
    async def test_delete_object_missing_id_sends_nothing(
        self, client: AsyncAlgoliaClient, transport: RecordingTransport, object_id: Any
    ) -> None:
        assert await client.delete_object("products", object_id) == InvalidObjectIDError()
        assert transport.requests == []

    async def test_delete_objects(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.delete_objects("products", ["1", "2"])
        assert transport.json_body() == {
            "requests": [
                {"action": "deleteObject", "objectID": "1", "body": {"objectID": "1"}},
                {"action": "deleteObject", "objectID": "2", "body": {"objectID": "2"}},
            ]
        }


# ── Indexes ──────────────────────────────────────────────────────────────────


class TestIndexes:
    async def test_delete_and_clear(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        await client.delete_index("products")
        await client.clear_index("products")
        assert [(r.method, r.url.path) for r in transport.requests] == [
            ("DELETE", "/1/indexes/products"),
            ("POST", "/1/indexes/products/clear"),
        ]

    async def test_set_settings(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        result = await client.set_settings("products", {"hitsPerPage": 20})
        assert (transport.requests[0].method, transport.requests[0].url.path) == ("PUT", "/1/indexes/products/settings")
        assert transport.json_body() == {"hitsPerPage": 20}
        assert result.body["indexName"] == "products"

    @pytest.mark.parametrize("operation", ["move", "copy"])
    async def test_index_operations(
        self, client: AsyncAlgoliaClient, transport: RecordingTransport, operation: str
    ) -> None:
        result = await getattr(client, f"{operation}_index")("staging", "products")

        assert transport.requests[0].url.path == "/1/indexes/staging/operation"
        assert transport.json_body() == {"operation": operation, "destination": "products"}
        assert result.body["indexName"] == "staging"


# ── Tasks ────────────────────────────────────────────────────────────────────


class TestTasks:
    async def test_write_pipes_into_wait(self, client: AsyncAlgoliaClient, transport: RecordingTransport) -> None:
        response = await client.save_object("products", {"objectID": "1"})
        result = await client.wait(response)

        assert result is response
        assert transport.requests[1].url.path == "/1/indexes/products/task/321"
        assert transport.requests[1].url.host == "APPID.algolia.net"

    async def test_wait_uses_configured_interval(self, settings: Settings, no_sleep: Any) -> None:
        statuses = iter(["notPublished", "published"])
        transport = RecordingTransport(lambda r: httpx.Response(200, json={"status": next(statuses)}))
        settings.tasks.poll_interval_ms = 500

        async with AsyncAlgoliaClient(settings, transport=transport, sleep=no_sleep) as c:
            assert await c.wait_task("products", 9) is None

        assert no_sleep.delays == [0.5]

    async def test_wait_passes_errors_through(self, client: AsyncAlgoliaClient) -> None:
        error = HttpError(status=400, body="bad")
        assert await client.wait(error) is error


# ── Sync client ──────────────────────────────────────────────────────────────


class TestAlgoliaClient:
    def test_sync_calls_delegate(self, settings: Settings, transport: RecordingTransport) -> None:
        client = AlgoliaClient(settings, transport=transport)

        result = client.wait(client.add_objects("products", [{"objectID": "1"}]))

        assert result.ok
        assert result.body["indexName"] == "products"
        assert [r.url.path for r in transport.requests] == [
            "/1/indexes/products/batch",
            "/1/indexes/products/task/321",
        ]

    def test_sync_delete_object_empty_id(self, settings: Settings, transport: RecordingTransport) -> None:
        client = AlgoliaClient(settings, transport=transport)
        assert isinstance(client.delete_object("products", ""), InvalidObjectIDError)
        assert transport.requests == []

    def test_sync_http_error(self, settings: Settings) -> None:
        transport = RecordingTransport(lambda r: httpx.Response(403, text=json.dumps({"message": "Invalid API key"})))
        client = AlgoliaClient(settings, transport=transport)

        result = client.list_indexes()

        assert isinstance(result, HttpError)
        assert result.status == 403
        assert len(transport.requests) == 1



# ── Credentials ──────────────────────────────────────────────────────────────


class TestCredentialRotation:
    async def test_refresh_picks_up_rotated_environment_key(
        self, monkeypatch: pytest.MonkeyPatch, transport: RecordingTransport
    ) -> None:
        monkeypatch.setenv("ALGOLIA_APPLICATION_ID", "APPID")
        monkeypatch.setenv("ALGOLIA_API_KEY", "old-key")

        async with AsyncAlgoliaClient(transport=transport) as c:
            await c.list_indexes()
            monkeypatch.setenv("ALGOLIA_API_KEY", "new-key")
            c.dispatcher.credentials.refresh()
            await c.list_indexes()

        assert [r.headers["X-Algolia-API-Key"] for r in transport.requests] == ["old-key", "new-key"]

    async def test_explicit_settings_pin_credentials(
        self, settings: Settings, monkeypatch: pytest.MonkeyPatch, transport: RecordingTransport
    ) -> None:
        monkeypatch.setenv("ALGOLIA_API_KEY", "env-key")

        async with AsyncAlgoliaClient(settings, transport=transport) as c:
            c.dispatcher.credentials.refresh()
            await c.list_indexes()

        assert transport.requests[0].headers["X-Algolia-API-Key"] == "secret-key"
