from abc import abstractmethod
from typing import AsyncIterator

from shared.clients.ClientInterface import ClientInterface
from shared.clients.host.models.Context import ContextDetails, ContextsListResponse
from shared.clients.host.models.Galley import GalleyDetails
from shared.clients.host.models.Publication import PublicationBase, PublicationDetails, PublicationFilter, PublicationHighDetails
from shared.clients.host.models.Section import SectionDetails
from shared.clients.host.models.Submission import SubmissionDetails, SubmissionsListResponse
from shared.exceptions import ClientRequestError, InvalidRecord
from shared.helper.HelperConfig import HelperConfig

LISTING_PAGE_SIZE = 100


class HostClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # reference data cache
        self._cache_contexts: dict[int, ContextDetails] | None = None
        self._cache_sections: dict[tuple[int, int], SectionDetails | None] = {}

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "host"
        """
        return "host"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_contexts(self, page: int = 1, page_size: int = LISTING_PAGE_SIZE) -> str:
        """
        Returns the endpoint path for context listing requests.

        Args:
            page (int): The page number for paginated context listing.
            page_size (int): The number of contexts per page.

        Returns:
            str: The endpoint path (e.g. "/_/api/v1/contexts?count=100&offset=0")
        """
        pass

    @abstractmethod
    def _get_endpoint_submissions(self, context: ContextDetails, page: int = 1, page_size: int = LISTING_PAGE_SIZE) -> str:
        """
        Returns the endpoint path for submission listing requests within one context.

        Args:
            context (ContextDetails): The context to list submissions of.
            page (int): The page number for paginated submission listing.
            page_size (int): The number of submissions per page.

        Returns:
            str: The endpoint path (e.g. "/journal/api/v1/submissions?count=100&offset=0")
        """
        pass

    @abstractmethod
    def _get_endpoint_submission_details(self, context: ContextDetails, submission_id: int) -> str:
        """
        Returns the endpoint path for submission details requests.

        Args:
            context (ContextDetails): The context owning the submission.
            submission_id (int): The ID of the submission.

        Returns:
            str: The endpoint path (e.g. "/journal/api/v1/submissions/{id}")
        """
        pass

    @abstractmethod
    def _get_endpoint_publication_details(self, context: ContextDetails, submission_id: int, publication_id: int) -> str:
        """
        Returns the endpoint path for reading and editing a single publication.

        Args:
            context (ContextDetails): The context owning the submission.
            submission_id (int): The ID of the parent submission.
            publication_id (int): The ID of the publication.

        Returns:
            str: The endpoint path (e.g. "/journal/api/v1/submissions/{id}/publications/{pid}")
        """
        pass

    @abstractmethod
    def _get_endpoint_section_details(self, context: ContextDetails, section_id: int) -> str:
        """
        Returns the endpoint path for section details requests.

        Args:
            context (ContextDetails): The context owning the section.
            section_id (int): The ID of the section.

        Returns:
            str: The endpoint path (e.g. "/journal/api/v1/sections/{id}")
        """
        pass

    @abstractmethod
    def _get_endpoint_galley_content(self, context: ContextDetails, submission_id: int, galley_id: int) -> str:
        """
        Returns the endpoint path serving the raw file of a galley.

        Args:
            context (ContextDetails): The context owning the submission.
            submission_id (int): The ID of the parent submission.
            galley_id (int): The ID of the galley.

        Returns:
            str: The endpoint path (e.g. "/journal/article/download/{id}/{galley_id}")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_edit_payload(self, values: dict) -> dict:
        """
        Translates model field names into the host's property names for an edit request.

        Args:
            values (dict): Field values keyed by PublicationDetails attribute name (e.g. {"indexing_dirty": True}).

        Returns:
            dict: The request body for the edit request.
        """
        pass

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    @abstractmethod
    def _parse_endpoint_contexts(self, response: dict, requested_page: int, requested_page_size: int) -> ContextsListResponse:
        """
        Parses a context listing response including pagination information.
        """
        pass

    @abstractmethod
    def _parse_endpoint_submissions(self, response: dict, context: ContextDetails, requested_page: int, requested_page_size: int) -> SubmissionsListResponse:
        """
        Parses a submission listing response including pagination information.
        """
        pass

    @abstractmethod
    def _parse_endpoint_submission(self, response: dict, context: ContextDetails) -> SubmissionDetails:
        """
        Parses a raw submission dict, including its publications, into a SubmissionDetails object.
        """
        pass

    @abstractmethod
    def _parse_endpoint_publication(self, response: dict, context: ContextDetails) -> PublicationDetails:
        """
        Parses a raw publication dict into a PublicationDetails object.
        """
        pass

    @abstractmethod
    def _parse_endpoint_section(self, response: dict, context: ContextDetails) -> SectionDetails:
        """
        Parses a raw section dict into a SectionDetails object.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def _do_record_request(self, record_label: str, **kwargs) -> dict:
        """Send a request addressing one record and return its JSON body.

        Raises:
            InvalidRecord: If the host answers 404 for the addressed record.
            ClientRequestError: On any other non-2xx status.
        """
        try:
            resp = await self.do_request(raise_on_error=True, **kwargs)
        except ClientRequestError as exc:
            if exc.status_code == 404:
                raise InvalidRecord(f"{record_label} does not exist on host '{self.get_engine_name()}'.") from exc
            raise
        return resp.json()

    ############# LISTING REQUESTS ##############
    async def do_fetch_contexts(self) -> list[ContextDetails]:
        """
        Fetches all contexts from the host and refreshes the context cache.

        Returns:
            list[ContextDetails]: All contexts in host order.
        """
        contexts: list[ContextDetails] = []
        page = 1
        while True:
            resp = await self.do_request(method="GET", endpoint=self._get_endpoint_contexts(page=page), raise_on_error=True)
            listing = self._parse_endpoint_contexts(resp.json(), requested_page=page, requested_page_size=LISTING_PAGE_SIZE)
            contexts.extend(listing.contexts)
            self.logging.debug("Fetched contexts page %d of %s from %s, %d so far.", page, listing.lastPage, self.get_engine_name(), len(contexts))
            page = listing.nextPage
            if not page:
                break
        self._cache_contexts = {context.id: context for context in contexts}
        return contexts

    async def do_fetch_submissions_page(self, context_id: int, page: int = 1, page_size: int = LISTING_PAGE_SIZE) -> SubmissionsListResponse:
        """
        Fetches one page of submissions of a context.

        Args:
            context_id (int): The context to list.
            page (int): 1-based page number.
            page_size (int): Submissions per page.

        Returns:
            SubmissionsListResponse: The page including pagination information.
        """
        context = await self.do_fetch_context(context_id)
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_submissions(context, page=page, page_size=page_size), raise_on_error=True)
        return self._parse_endpoint_submissions(resp.json(), context, requested_page=page, requested_page_size=page_size)

    async def do_query_publications(self, filter: PublicationFilter) -> AsyncIterator[PublicationDetails]:
        """
        Lazily yields the publications matching the filter.

        Every call starts paging from the beginning, so the sequence can be
        restarted by calling again. Contexts are walked in host order and
        publications in submission order.

        Args:
            filter (PublicationFilter): Scope, flag and count restrictions.

        Yields:
            PublicationDetails: Each matching publication.
        """
        if filter.count is not None and filter.count <= 0:
            return

        if filter.context_id is not None:
            contexts = [await self.do_fetch_context(filter.context_id)]
        else:
            contexts = await self.do_fetch_contexts()

        matched = 0
        for context in contexts:
            async for submission in self._iter_submissions(context, filter.submission_id):
                for publication in submission.publications:
                    if not filter.matches(publication, submission.current_publication_id):
                        continue
                    yield publication
                    matched += 1
                    if filter.count is not None and matched >= filter.count:
                        return

    async def _iter_submissions(self, context: ContextDetails, submission_id: int | None) -> AsyncIterator[SubmissionDetails]:
        if submission_id is not None:
            yield await self.do_fetch_submission(context.id, submission_id)
            return
        page = 1
        while True:
            listing = await self.do_fetch_submissions_page(context.id, page=page)
            for submission in listing.submissions:
                yield submission
            page = listing.nextPage
            if not page:
                break

    ############# GET REQUESTS ##############
    async def do_fetch_context(self, context_id: int) -> ContextDetails:
        """
        Returns a context from the cache, filling the cache on a miss.

        Raises:
            InvalidRecord: If the host has no context with that ID.
        """
        if self._cache_contexts is None or context_id not in self._cache_contexts:
            await self.do_fetch_contexts()
        context = self._cache_contexts.get(context_id)
        if context is None:
            raise InvalidRecord(f"Context {context_id} does not exist on host '{self.get_engine_name()}'.")
        return context

    async def do_fetch_submission(self, context_id: int, submission_id: int) -> SubmissionDetails:
        """
        Fetches a submission with all its publication versions.

        Raises:
            InvalidRecord: If the submission does not exist.
        """
        context = await self.do_fetch_context(context_id)
        raw = await self._do_record_request(
            f"Submission {submission_id}",
            method="GET",
            endpoint=self._get_endpoint_submission_details(context, submission_id),
        )
        return self._parse_endpoint_submission(raw, context)

    async def do_fetch_publications_by_submission(self, context_id: int, submission_id: int) -> list[PublicationDetails]:
        """
        Returns every publication version of a submission.
        """
        submission = await self.do_fetch_submission(context_id, submission_id)
        return submission.publications

    async def do_fetch_publication(self, context_id: int, submission_id: int, publication_id: int) -> PublicationDetails:
        """
        Fetches a single publication with its full metadata.

        Raises:
            InvalidRecord: If the publication does not exist.
        """
        context = await self.do_fetch_context(context_id)
        raw = await self._do_record_request(
            f"Publication {publication_id}",
            method="GET",
            endpoint=self._get_endpoint_publication_details(context, submission_id, publication_id),
        )
        return self._parse_endpoint_publication(raw, context)

    async def do_fetch_section(self, context_id: int, section_id: int) -> SectionDetails | None:
        """
        Fetches a section, caching it per context. Missing sections resolve to None.
        """
        key = (context_id, section_id)
        if key in self._cache_sections:
            return self._cache_sections[key]
        context = await self.do_fetch_context(context_id)
        try:
            raw = await self._do_record_request(
                f"Section {section_id}",
                method="GET",
                endpoint=self._get_endpoint_section_details(context, section_id),
            )
            section = self._parse_endpoint_section(raw, context)
        except InvalidRecord:
            self.logging.warning("Section %d of context %d not found on host '%s'.", section_id, context_id, self.get_engine_name())
            section = None
        self._cache_sections[key] = section
        return section

    async def do_fetch_galley_content(self, publication: PublicationBase, galley: GalleyDetails) -> str:
        """
        Downloads the raw file content of a galley as text.
        """
        context = await self.do_fetch_context(publication.context_id)
        resp = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_galley_content(context, publication.submission_id, galley.id),
            raise_on_error=True,
        )
        return resp.text

    ############# EDIT REQUESTS ##############
    async def do_edit_publication(self, publication: PublicationBase, values: dict) -> PublicationDetails:
        """
        Writes the given field values of a publication to the host.

        Args:
            publication (PublicationBase): The publication to edit.
            values (dict): Field values keyed by PublicationDetails attribute name.

        Returns:
            PublicationDetails: The publication as stored after the edit.

        Raises:
            InvalidRecord: If the publication does not exist on the host.
        """
        context = await self.do_fetch_context(publication.context_id)
        raw = await self._do_record_request(
            f"Publication {publication.id}",
            method="PUT",
            json=self.get_edit_payload(values),
            endpoint=self._get_endpoint_publication_details(context, publication.submission_id, publication.id),
        )
        return self._parse_endpoint_publication(raw, context)

    ##########################################
    ############### ENRICHMENT ###############
    ##########################################

    async def do_fetch_publication_high_details(self, publication: PublicationBase) -> PublicationHighDetails:
        """
        Re-reads a publication and resolves everything the content formatter needs:
        the section, the published URL, the current-version flag and the contents
        of all HTML galleys.

        Args:
            publication (PublicationBase): The publication to enrich.

        Returns:
            PublicationHighDetails: The enriched publication.

        Raises:
            InvalidRecord: If the publication or its submission no longer exists.
        """
        details = await self.do_fetch_publication(publication.context_id, publication.submission_id, publication.id)
        submission = await self.do_fetch_submission(publication.context_id, publication.submission_id)

        section = None
        if details.section_id:
            section = await self.do_fetch_section(details.context_id, details.section_id)

        galley_html: list[str] = []
        for galley in details.galleys:
            if galley.is_html():
                galley_html.append(await self.do_fetch_galley_content(details, galley))

        return PublicationHighDetails(
            **details.model_dump(),
            section=section,
            url_published=submission.url_published,
            is_current=submission.current_publication_id == details.id,
            galley_html=galley_html,
        )

    ##########################################
    ################# CACHE ##################
    ##########################################

    async def fill_cache(self, force_refresh: bool = False) -> list[ContextDetails]:
        """
        Fill the reference data cache (contexts) and optionally drop cached sections.

        Args:
            force_refresh (bool): Re-fetch even if the cache is already filled.

        Returns:
            list[ContextDetails]: The cached contexts.
        """
        if force_refresh:
            self._cache_sections = {}
        if self._cache_contexts is None or force_refresh:
            return await self.do_fetch_contexts()
        return list(self._cache_contexts.values())
