from datetime import datetime

from shared.clients.host.HostClientInterface import HostClientInterface, LISTING_PAGE_SIZE
from shared.clients.host.models.Author import AuthorDetails
from shared.clients.host.models.Context import ContextDetails, ContextsListResponse
from shared.clients.host.models.Galley import GalleyDetails
from shared.clients.host.models.Publication import PublicationDetails, PublicationStatus
from shared.clients.host.models.Section import SectionDetails
from shared.clients.host.models.Submission import SubmissionDetails, SubmissionsListResponse
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class HostClientOjs(HostClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._site_path = self.get_config_val("SITE_PATH", default="_", val_type="string")
        self._indexing_property = self.get_config_val("INDEXING_PROPERTY", default="algoliaIndexingState", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ojs"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="SITE_PATH", val_type="string", default="_"),
            EnvConfig(env_key="INDEXING_PROPERTY", val_type="string", default="algoliaIndexingState"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        else:
            return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return f"/{self._site_path}/api/v1/contexts?count=1"

    def _get_listing_query(self, page: int, page_size: int) -> str:
        page = page if page and page > 0 else 1
        return f"?count={page_size}&offset={(page - 1) * page_size}"

    def _get_endpoint_contexts(self, page: int = 1, page_size: int = LISTING_PAGE_SIZE) -> str:
        return f"/{self._site_path}/api/v1/contexts{self._get_listing_query(page, page_size)}"

    def _get_endpoint_submissions(self, context: ContextDetails, page: int = 1, page_size: int = LISTING_PAGE_SIZE) -> str:
        return f"/{context.url_path}/api/v1/submissions{self._get_listing_query(page, page_size)}"

    def _get_endpoint_submission_details(self, context: ContextDetails, submission_id: int) -> str:
        return f"/{context.url_path}/api/v1/submissions/{submission_id}"

    def _get_endpoint_publication_details(self, context: ContextDetails, submission_id: int, publication_id: int) -> str:
        return f"/{context.url_path}/api/v1/submissions/{submission_id}/publications/{publication_id}"

    def _get_endpoint_section_details(self, context: ContextDetails, section_id: int) -> str:
        return f"/{context.url_path}/api/v1/sections/{section_id}"

    def _get_endpoint_galley_content(self, context: ContextDetails, submission_id: int, galley_id: int) -> str:
        return f"/{context.url_path}/article/download/{submission_id}/{galley_id}"

    ################ PAYLOAD BUILDER ##################
    def get_edit_payload(self, values: dict) -> dict:
        payload = {}
        for key, value in values.items():
            if key == "indexing_dirty":
                payload[self._indexing_property] = bool(value)
            else:
                payload[key] = value
        return payload

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    ############### LIST RESPONSES ###############
    def _parse_endpoint_contexts(self, response: dict, requested_page: int, requested_page_size: int) -> ContextsListResponse:
        meta = self._parse_listing_meta(response, requested_page, requested_page_size)
        contexts = [self._parse_context(item) for item in response.get("items", [])]
        return ContextsListResponse(
            engine=self._get_engine_name(),
            contexts=contexts,
            currentPage=meta["current_page"],
            nextPage=meta["next_page"],
            overallCount=meta["overall_results_count"],
            pageLength=requested_page_size,
            lastPage=meta["last_page"],
        )

    def _parse_endpoint_submissions(self, response: dict, context: ContextDetails, requested_page: int, requested_page_size: int) -> SubmissionsListResponse:
        meta = self._parse_listing_meta(response, requested_page, requested_page_size)

        # ojs sends the publication summaries with each submission item
        submissions = [self._parse_endpoint_submission(item, context) for item in response.get("items", [])]
        return SubmissionsListResponse(
            engine=self._get_engine_name(),
            submissions=submissions,
            currentPage=meta["current_page"],
            nextPage=meta["next_page"],
            overallCount=meta["overall_results_count"],
            pageLength=requested_page_size,
            lastPage=meta["last_page"],
        )

    def _parse_listing_meta(self, listing_response: dict, requested_page: int, requested_page_size: int) -> dict:
        """
        Derive pagination details from an OJS listing response.

        OJS paginates by count/offset and reports the total as "itemsMax".

        Args:
            listing_response (dict): The raw response from the OJS listing endpoint.
            requested_page (int): The 1-based page that was requested.
            requested_page_size (int): The count that was requested.

        Returns:
            dict: current_page, next_page, last_page and overall_results_count.
        """
        overall_results_count = listing_response.get("itemsMax")
        items_count = len(listing_response.get("items", []))
        current_page = requested_page if requested_page and requested_page > 0 else 1
        seen = (current_page - 1) * requested_page_size + items_count

        if overall_results_count is None:
            has_next = items_count >= requested_page_size and items_count > 0
        else:
            has_next = items_count > 0 and seen < overall_results_count

        last_page = None
        if overall_results_count is not None and requested_page_size:
            last_page = overall_results_count // requested_page_size + (1 if overall_results_count % requested_page_size > 0 else 0)

        return {
            "current_page": current_page,
            "next_page": current_page + 1 if has_next else None,
            "last_page": last_page,
            "overall_results_count": overall_results_count,
        }

    ############### GET RESPONSES ###############
    def _parse_context(self, response: dict) -> ContextDetails:
        return ContextDetails(
            # base
            engine=self._get_engine_name(),
            id=response.get("id"),

            # details
            url_path=response.get("urlPath"),
            name=self._parse_localized(response.get("name")),
            primary_locale=response.get("primaryLocale"),
        )

    def _parse_endpoint_submission(self, response: dict, context: ContextDetails) -> SubmissionDetails:
        return SubmissionDetails(
            # base
            engine=self._get_engine_name(),
            id=response.get("id"),
            context_id=response.get("contextId", context.id),

            # details
            current_publication_id=response.get("currentPublicationId"),
            url_published=response.get("urlPublished"),
            publications=[self._parse_endpoint_publication(item, context) for item in response.get("publications", [])],
        )

    def _parse_endpoint_publication(self, response: dict, context: ContextDetails) -> PublicationDetails:
        locale = response.get("locale") or context.primary_locale
        return PublicationDetails(
            # base
            engine=self._get_engine_name(),
            id=response.get("id"),
            submission_id=response.get("submissionId"),
            context_id=context.id,

            # details
            status=PublicationStatus.from_raw(response.get("status")),
            locale=locale,
            title=self._parse_localized(response.get("title") or response.get("fullTitle"), locale),
            abstract=self._parse_localized(response.get("abstract"), locale),
            subjects=self._parse_localized_list(response.get("subjects"), locale),
            keywords=self._parse_localized_list(response.get("keywords"), locale),
            disciplines=self._parse_localized_list(response.get("disciplines"), locale),
            coverage=self._parse_localized_list(response.get("coverage"), locale),
            type=self._parse_localized(response.get("type"), locale),
            date_published=datetime.fromisoformat(response.get("datePublished")) if response.get("datePublished") else None,
            section_id=response.get("sectionId"),
            authors=[self._parse_author(item) for item in response.get("authors", [])],
            galleys=[self._parse_galley(item) for item in response.get("galleys", [])],
            indexing_dirty=bool(response.get(self._indexing_property)),
        )

    def _parse_endpoint_section(self, response: dict, context: ContextDetails) -> SectionDetails:
        return SectionDetails(
            # base
            engine=self._get_engine_name(),
            id=response.get("id"),
            context_id=response.get("contextId", context.id),

            # details
            title=self._parse_localized(response.get("title")),
        )

    def _parse_author(self, response: dict) -> AuthorDetails:
        return AuthorDetails(
            engine=self._get_engine_name(),
            id=response.get("id"),
            given_name=self._parse_localized(response.get("givenName")),
            family_name=self._parse_localized(response.get("familyName")),
            seq=response.get("seq") or 0,
        )

    def _parse_galley(self, response: dict) -> GalleyDetails:
        file = response.get("file") or {}
        return GalleyDetails(
            engine=self._get_engine_name(),
            id=response.get("id"),
            label=response.get("label"),
            mime_type=file.get("mimetype") or file.get("mimeType"),
            file_id=response.get("submissionFileId") or file.get("id"),
            url_remote=response.get("urlRemote") or None,
        )

    ############### HELPERS ###############
    def _parse_localized(self, value: dict | str | None, locale: str | None = None) -> dict[str, str]:
        """OJS sends multilingual values as {"en_US": "..."}; plain strings are keyed by the given locale."""
        if not value:
            return {}
        if isinstance(value, dict):
            return {key: str(val) for key, val in value.items() if val is not None}
        return {locale or "": str(value)}

    def _parse_localized_list(self, value: dict | list | str | None, locale: str | None = None) -> dict[str, list[str]]:
        if not value:
            return {}
        if not isinstance(value, dict):
            value = {locale or "": value}
        parsed = {}
        for key, val in value.items():
            if isinstance(val, list):
                items = [str(item).strip() for item in val if item is not None and str(item).strip()]
            elif val is not None and str(val).strip():
                items = [str(val).strip()]
            else:
                items = []
            parsed[key] = items
        return parsed
