"""
Tests for the Algolia search client against a mocked HTTP transport.
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from shared.clients.search.SearchClientManager import SearchClientManager
from shared.clients.search.algolia.SearchClientAlgolia import SearchClientAlgolia
from shared.clients.search.models.BatchOperation import AddOperation, DeleteOperation
from shared.clients.search.models.IndexEntry import IndexEntry
from shared.exceptions import AdapterError, ConfigurationError


@pytest.fixture(autouse=True)
def algolia_env(monkeypatch):
    monkeypatch.setenv("SEARCH_ENGINE", "algolia")
    monkeypatch.setenv("SEARCH_ALGOLIA_APP_ID", "APPID")
    monkeypatch.setenv("SEARCH_ALGOLIA_API_KEY", "secret")
    monkeypatch.setenv("SEARCH_ALGOLIA_INDEX", "articles")
    monkeypatch.setenv("SEARCH_ALGOLIA_MAX_BATCH_SIZE", "2")
    monkeypatch.delenv("SEARCH_ALGOLIA_BASE_URL", raising=False)


@pytest.fixture
def recorded():
    return []


@pytest.fixture
def make_client(helper_config, recorded):
    async def _create(responder=None) -> SearchClientAlgolia:
        def handler(request: httpx.Request) -> httpx.Response:
            recorded.append(request)
            if responder is not None:
                return responder(request)
            return httpx.Response(200, json={"taskID": 1})

        client = SearchClientAlgolia(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        return client

    return _create


def _entry(distinct_id: str, order: int) -> IndexEntry:
    return IndexEntry(distinctId=distinct_id, objectID=f"{distinct_id}_{order}", order=order, contextId=1, body=f"chunk {order}")


async def test_submit_batch_deletes_first_then_adds_in_chunks(make_client, recorded):
    client = await make_client()
    operations = [
        AddOperation(body=_entry("8", 1)),
        DeleteOperation(distinctId="7"),
        AddOperation(body=_entry("8", 2)),
        AddOperation(body=_entry("8", 3)),
    ]

    submitted = await client.do_submit_batch(operations)

    assert submitted == 4
    assert [request.url.path for request in recorded] == [
        "/1/indexes/articles/deleteByQuery",
        "/1/indexes/*/batch",
        "/1/indexes/*/batch",
    ]
    assert parse_qs(json.loads(recorded[0].content)["params"]) == {"filters": ['distinctId:"7"']}
    first_batch = json.loads(recorded[1].content)["requests"]
    assert [item["body"]["objectID"] for item in first_batch] == ["8_1", "8_2"]
    assert all(item["action"] == "addObject" and item["indexName"] == "articles" for item in first_batch)
    assert len(json.loads(recorded[2].content)["requests"]) == 1


async def test_requests_carry_algolia_headers(make_client, recorded):
    client = await make_client()

    await client.do_clear_index()

    request = recorded[0]
    assert request.url.host == "APPID.algolia.net"
    assert request.url.path == "/1/indexes/articles/clear"
    assert request.headers["X-Algolia-Application-Id"] == "APPID"
    assert request.headers["X-Algolia-API-Key"] == "secret"


async def test_clear_scope_filters_on_context(make_client, recorded):
    client = await make_client()

    await client.do_clear_scope(3)

    assert recorded[0].url.path == "/1/indexes/articles/deleteByQuery"
    assert parse_qs(json.loads(recorded[0].content)["params"]) == {"filters": ["contextId=3"]}


async def test_empty_batch_sends_nothing(make_client, recorded):
    client = await make_client()

    assert await client.do_submit_batch([]) == 0
    assert recorded == []


async def test_http_error_status_becomes_adapter_error(make_client):
    client = await make_client(lambda request: httpx.Response(403, json={"message": "Invalid Application-ID or API key"}))

    with pytest.raises(AdapterError):
        await client.do_clear_index()


async def test_transport_error_becomes_adapter_error(make_client):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = await make_client(refuse)

    with pytest.raises(AdapterError):
        await client.do_submit_batch([DeleteOperation(distinctId="1")])


async def test_list_indexes_and_existence_check(make_client):
    client = await make_client(lambda request: httpx.Response(200, json={"items": [{"name": "articles"}, {"name": "other"}]}))

    assert await client.do_list_indexes() == ["articles", "other"]
    assert await client.do_existence_check()


def test_missing_index_name_is_a_configuration_error(helper_config, monkeypatch):
    monkeypatch.delenv("SEARCH_ALGOLIA_INDEX")

    with pytest.raises(ConfigurationError):
        SearchClientAlgolia(helper_config=helper_config)


def test_manager_instantiates_configured_engine(helper_config):
    assert isinstance(SearchClientManager(helper_config=helper_config).get_client(), SearchClientAlgolia)


def test_manager_rejects_unknown_engine(helper_config, monkeypatch):
    monkeypatch.setenv("SEARCH_ENGINE", "solr")

    with pytest.raises(ConfigurationError):
        SearchClientManager(helper_config=helper_config)
