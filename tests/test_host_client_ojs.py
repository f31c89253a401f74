"""
Tests for the OJS host client against a mocked HTTP transport.
"""

import json
from datetime import datetime

import httpx
import pytest

from shared.clients.host.HostClientManager import HostClientManager
from shared.clients.host.models.Publication import PublicationFilter, PublicationStatus
from shared.clients.host.ojs.HostClientOjs import HostClientOjs
from shared.exceptions import ConfigurationError, InvalidRecord


def _publication(publication_id: int, submission_id: int, dirty: bool = False, status: int = 3) -> dict:
    return {
        "id": publication_id,
        "submissionId": submission_id,
        "status": status,
        "locale": "en_US",
        "title": {"en_US": f"Title {publication_id}", "de_DE": f"Titel {publication_id}"},
        "abstract": {"en_US": "<p>Abstract</p>"},
        "subjects": {"en_US": ["History"]},
        "keywords": {"en_US": ["alpha", "beta"]},
        "disciplines": {"en_US": []},
        "coverage": {"en_US": "Europe"},
        "type": {"en_US": "Research"},
        "datePublished": "2021-05-01",
        "sectionId": 5,
        "authors": [{"id": 1, "givenName": {"en_US": "Ada"}, "familyName": {"en_US": "Lovelace"}, "seq": 0}],
        "galleys": [
            {"id": 70, "label": "HTML", "file": {"id": 700, "mimetype": "text/html"}},
            {"id": 71, "label": "PDF", "file": {"id": 701, "mimetype": "application/pdf"}},
        ],
        "algoliaIndexingState": dirty,
    }


def _submission(submission_id: int, publications: list[dict]) -> dict:
    return {
        "id": submission_id,
        "contextId": 1,
        "currentPublicationId": publications[-1]["id"],
        "urlPublished": f"https://ojs.test/index.php/journal/article/view/{submission_id}",
        "publications": publications,
    }


SUBMISSIONS = {
    10: _submission(10, [_publication(100, 10), _publication(101, 10, dirty=True)]),
    11: _submission(11, [_publication(110, 11, dirty=True)]),
}


def _route(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    offset = int(request.url.params.get("offset", 0))
    if path == "/index.php/_/api/v1/contexts":
        return httpx.Response(200, json={
            "itemsMax": 1,
            "items": [{"id": 1, "urlPath": "journal", "name": {"en_US": "The Journal"}, "primaryLocale": "en_US"}],
        })
    if path == "/index.php/journal/api/v1/submissions":
        # two pages of one submission each
        items = [SUBMISSIONS[10]] if offset == 0 else [SUBMISSIONS[11]]
        return httpx.Response(200, json={"itemsMax": 101, "items": items})
    if path == "/index.php/journal/api/v1/submissions/10":
        return httpx.Response(200, json=SUBMISSIONS[10])
    if path == "/index.php/journal/api/v1/submissions/10/publications/101":
        publication = dict(_publication(101, 10, dirty=True))
        if request.method == "PUT":
            publication.update(json.loads(request.content))
        return httpx.Response(200, json=publication)
    if path == "/index.php/journal/api/v1/sections/5":
        return httpx.Response(200, json={"id": 5, "contextId": 1, "title": {"en_US": "Articles"}})
    if path == "/index.php/journal/article/download/10/70":
        return httpx.Response(200, text="<html><body><p>Full text</p></body></html>")
    return httpx.Response(404, json={"error": "api.404.resourceNotFound"})


@pytest.fixture(autouse=True)
def ojs_env(monkeypatch):
    monkeypatch.setenv("HOST_ENGINE", "ojs")
    monkeypatch.setenv("HOST_OJS_BASE_URL", "https://ojs.test/index.php")
    monkeypatch.setenv("HOST_OJS_API_KEY", "token")
    monkeypatch.delenv("HOST_OJS_SITE_PATH", raising=False)
    monkeypatch.delenv("HOST_OJS_INDEXING_PROPERTY", raising=False)


@pytest.fixture
def recorded():
    return []


@pytest.fixture
async def client(helper_config, recorded):
    def handler(request: httpx.Request) -> httpx.Response:
        recorded.append(request)
        return _route(request)

    ojs = HostClientOjs(helper_config=helper_config)
    await ojs.boot(transport=httpx.MockTransport(handler))
    yield ojs
    await ojs.close()


async def test_fetch_contexts_parses_listing(client, recorded):
    contexts = await client.do_fetch_contexts()

    assert [context.url_path for context in contexts] == ["journal"]
    assert contexts[0].get_localized_name() == "The Journal"
    assert recorded[0].headers["Authorization"] == "Bearer token"
    assert recorded[0].url.params["count"] == "100"


async def test_query_pages_through_submissions(client, recorded):
    dirty = [publication.id async for publication in client.do_query_publications(PublicationFilter(indexing_dirty=True))]

    assert dirty == [101, 110]
    offsets = [request.url.params["offset"] for request in recorded if request.url.path.endswith("/submissions")]
    assert offsets == ["0", "100"]


async def test_query_stops_at_count(client, recorded):
    found = [publication.id async for publication in client.do_query_publications(PublicationFilter(count=1))]

    assert found == [100]
    assert sum(1 for request in recorded if request.url.path.endswith("/submissions")) == 1


async def test_query_current_published_only(client):
    found = [
        publication.id
        async for publication in client.do_query_publications(
            PublicationFilter(context_id=1, status=PublicationStatus.PUBLISHED, current_only=True)
        )
    ]

    assert found == [101, 110]


async def test_publication_fields_are_parsed(client):
    publication = await client.do_fetch_publication(1, 10, 101)

    assert publication.indexing_dirty is True
    assert publication.status == PublicationStatus.PUBLISHED
    assert publication.get_localized("title") == "Title 101"
    assert publication.get_localized("coverage") == ["Europe"]
    assert publication.get_localized("keywords") == ["alpha", "beta"]
    assert publication.date_published == datetime(2021, 5, 1)
    assert publication.authors[0].get_full_name("en_US") == "Ada Lovelace"
    assert [galley.is_html() for galley in publication.galleys] == [True, False]


async def test_edit_writes_the_indexing_property(client, recorded):
    publication = await client.do_fetch_publication(1, 10, 101)

    updated = await client.do_edit_publication(publication, {"indexing_dirty": False})

    request = recorded[-1]
    assert request.method == "PUT"
    assert json.loads(request.content) == {"algoliaIndexingState": False}
    assert updated.indexing_dirty is False


async def test_edit_of_missing_publication_is_invalid_record(client, make_publication):
    ghost = make_publication(999, 10)

    with pytest.raises(InvalidRecord):
        await client.do_edit_publication(ghost, {"indexing_dirty": False})


async def test_unknown_context_is_invalid_record(client):
    with pytest.raises(InvalidRecord):
        await client.do_fetch_submission(42, 10)


async def test_high_details_resolve_references(client):
    publication = await client.do_fetch_publication(1, 10, 101)

    details = await client.do_fetch_publication_high_details(publication)

    assert details.is_current
    assert details.url_published == "https://ojs.test/index.php/journal/article/view/10"
    assert details.section.get_localized_title("en_US") == "Articles"
    assert details.galley_html == ["<html><body><p>Full text</p></body></html>"]


async def test_sections_are_cached(client, recorded):
    await client.do_fetch_section(1, 5)
    await client.do_fetch_section(1, 5)

    assert sum(1 for request in recorded if request.url.path.endswith("/sections/5")) == 1


async def test_fill_cache_refetches_only_when_forced(client, recorded):
    await client.do_fetch_section(1, 5)
    first = await client.fill_cache()
    cached = await client.fill_cache()
    refreshed = await client.fill_cache(force_refresh=True)
    await client.do_fetch_section(1, 5)

    assert [context.id for context in cached] == [context.id for context in first]
    assert [context.id for context in refreshed] == [context.id for context in first]
    assert sum(1 for request in recorded if request.url.path.endswith("/contexts")) == 2
    assert sum(1 for request in recorded if request.url.path.endswith("/sections/5")) == 2


async def test_missing_section_resolves_to_none(client):
    assert await client.do_fetch_section(1, 6) is None


def test_manager_instantiates_ojs(helper_config):
    assert isinstance(HostClientManager(helper_config=helper_config).get_client(), HostClientOjs)


def test_manager_requires_engine(helper_config, monkeypatch):
    monkeypatch.delenv("HOST_ENGINE")

    with pytest.raises(ConfigurationError):
        HostClientManager(helper_config=helper_config)
