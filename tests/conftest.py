"""Shared pytest fixtures for search bridge tests."""

import logging
from datetime import datetime

import pytest

from services.search_sync.SyncService import SyncService
from shared.clients.host.models.Context import ContextDetails
from shared.clients.host.models.Author import AuthorDetails
from shared.clients.host.models.Publication import (
    PublicationDetails,
    PublicationFilter,
    PublicationHighDetails,
    PublicationStatus,
)
from shared.clients.host.models.Section import SectionDetails
from shared.clients.host.models.Submission import SubmissionDetails
from shared.clients.search.models.BatchOperation import AddOperation, DeleteOperation
from shared.exceptions import AdapterError, InvalidRecord
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger


class FakeHostClient:
    """In-memory host store exposing the coroutine methods the sync core uses."""

    def __init__(self):
        self.contexts: dict[int, ContextDetails] = {}
        self.submissions: dict[int, SubmissionDetails] = {}
        self.sections: dict[int, SectionDetails] = {}
        self.galley_html: dict[int, list[str]] = {}
        self.edits: list[tuple[int, dict]] = []
        self.fail_edit_ids: set[int] = set()
        self.fail_enrich_ids: set[int] = set()
        self.cache_refreshes = 0
        self.closed = False

    ############### SETUP ###############
    def add_context(self, context_id: int, url_path: str | None = None) -> ContextDetails:
        context = ContextDetails(
            engine="fake",
            id=context_id,
            url_path=url_path or f"journal{context_id}",
            name={"en_US": f"Journal {context_id}"},
            primary_locale="en_US",
        )
        self.contexts[context_id] = context
        return context

    def add_submission(self, context_id: int, submission_id: int, publications: list[PublicationDetails], current_publication_id: int | None = None) -> SubmissionDetails:
        if current_publication_id is None and publications:
            current_publication_id = publications[-1].id
        submission = SubmissionDetails(
            engine="fake",
            id=submission_id,
            context_id=context_id,
            current_publication_id=current_publication_id,
            url_published=f"https://journals.test/{self.contexts[context_id].url_path}/article/view/{submission_id}",
            publications=publications,
        )
        self.submissions[submission_id] = submission
        return submission

    def get_publication(self, publication_id: int) -> PublicationDetails:
        for submission in self.submissions.values():
            for publication in submission.publications:
                if publication.id == publication_id:
                    return publication
        raise InvalidRecord(f"Publication {publication_id} does not exist.")

    def dirty_ids(self, context_id: int | None = None) -> list[int]:
        return [
            publication.id
            for submission in self.submissions.values()
            for publication in submission.publications
            if publication.indexing_dirty and (context_id is None or publication.context_id == context_id)
        ]

    ############### CLIENT API ###############
    async def boot(self, transport=None) -> None:
        pass

    async def close(self) -> None:
        self.closed = True

    async def do_fetch_contexts(self) -> list[ContextDetails]:
        return list(self.contexts.values())

    async def fill_cache(self, force_refresh: bool = False) -> list[ContextDetails]:
        self.cache_refreshes += int(force_refresh)
        return await self.do_fetch_contexts()

    async def do_fetch_context(self, context_id: int) -> ContextDetails:
        if context_id not in self.contexts:
            raise InvalidRecord(f"Context {context_id} does not exist.")
        return self.contexts[context_id]

    async def do_fetch_submission(self, context_id: int, submission_id: int) -> SubmissionDetails:
        submission = self.submissions.get(submission_id)
        if submission is None or submission.context_id != context_id:
            raise InvalidRecord(f"Submission {submission_id} does not exist.")
        return submission

    async def do_fetch_publications_by_submission(self, context_id: int, submission_id: int) -> list[PublicationDetails]:
        return list((await self.do_fetch_submission(context_id, submission_id)).publications)

    async def do_query_publications(self, filter: PublicationFilter):
        if filter.count is not None and filter.count <= 0:
            return
        matched = 0
        for submission in list(self.submissions.values()):
            for publication in submission.publications:
                if not filter.matches(publication, submission.current_publication_id):
                    continue
                yield publication.model_copy()
                matched += 1
                if filter.count is not None and matched >= filter.count:
                    return

    async def do_edit_publication(self, publication, values: dict) -> PublicationDetails:
        self.edits.append((publication.id, dict(values)))
        if publication.id in self.fail_edit_ids:
            raise InvalidRecord(f"Publication {publication.id} does not exist.")
        stored = self.get_publication(publication.id)
        for key, value in values.items():
            setattr(stored, key, value)
        return stored.model_copy()

    async def do_fetch_publication_high_details(self, publication) -> PublicationHighDetails:
        if publication.id in self.fail_enrich_ids:
            raise InvalidRecord(f"Publication {publication.id} vanished.")
        stored = self.get_publication(publication.id)
        submission = self.submissions[stored.submission_id]
        return PublicationHighDetails(
            **stored.model_dump(),
            section=self.sections.get(stored.section_id) if stored.section_id else None,
            url_published=submission.url_published,
            is_current=submission.current_publication_id == stored.id,
            galley_html=self.galley_html.get(stored.id, []),
        )


class FakeSearchClient:
    """Records every call and keeps a dict of the entries currently in the index."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.entries: dict[str, object] = {}
        self.fail: set[str] = set()
        self.closed = False

    async def boot(self, transport=None) -> None:
        pass

    async def close(self) -> None:
        self.closed = True

    def get_index_name(self) -> str:
        return "articles"

    def _check(self, name: str) -> None:
        if name in self.fail:
            raise AdapterError(f"algolia failed to {name} on index 'articles': quota exceeded")

    def count(self, name: str) -> int:
        return sum(1 for call in self.calls if call[0] == name)

    def submitted(self, op_type: type) -> list:
        return [op for call in self.calls if call[0] == "submit" for op in call[1] if isinstance(op, op_type)]

    async def do_submit_batch(self, operations: list) -> int:
        self.calls.append(("submit", list(operations)))
        self._check("submit")
        for op in operations:
            if isinstance(op, DeleteOperation):
                self.entries = {key: entry for key, entry in self.entries.items() if entry.distinctId != op.distinctId}
        for op in operations:
            if isinstance(op, AddOperation):
                self.entries[op.body.objectID] = op.body
        return len(operations)

    async def do_clear_index(self) -> None:
        self.calls.append(("clear_index",))
        self._check("clear_index")
        self.entries = {}

    async def do_clear_scope(self, context_id: int) -> None:
        self.calls.append(("clear_scope", context_id))
        self._check("clear_scope")
        self.entries = {key: entry for key, entry in self.entries.items() if entry.contextId != context_id}


@pytest.fixture
def helper_config():
    """HelperConfig with a logger that does not touch the log file."""
    return HelperConfig(logger=ColorLogger(logging.getLogger("search_bridge.tests")))


@pytest.fixture
def make_publication():
    """Factory fixture for publications with sensible defaults."""

    def _create(publication_id: int, submission_id: int, context_id: int = 1, **kwargs) -> PublicationDetails:
        data = {
            "engine": "fake",
            "id": publication_id,
            "submission_id": submission_id,
            "context_id": context_id,
            "status": PublicationStatus.PUBLISHED,
            "locale": "en_US",
            "title": {"en_US": f"Article {publication_id}"},
            "abstract": {"en_US": f"<p>Abstract of article {publication_id}.</p>"},
            "date_published": datetime(2021, 5, 1),
            "authors": [AuthorDetails(engine="fake", id=1, given_name={"en_US": "Ada"}, family_name={"en_US": "Lovelace"})],
        }
        data.update(kwargs)
        return PublicationDetails(**data)

    return _create


@pytest.fixture
def host():
    return FakeHostClient()


@pytest.fixture
def search():
    return FakeSearchClient()


@pytest.fixture
def sync_service(helper_config, host, search):
    return SyncService(helper_config=helper_config, host_client=host, search_client=search)
