"""Generic host context (journal / collection) model."""

from pydantic import BaseModel

from shared.clients.host.models.Localized import pick_localized


class ContextBase(BaseModel):
    """
    A top-level collection of content on the host, the unit of scoped rebuilds.
    """
    engine: str
    id: int


class ContextDetails(ContextBase):
    """
    Represents a single context with the metadata needed for request routing and progress output.
    """
    url_path: str
    name: dict[str, str] = {}
    primary_locale: str | None = None

    def get_localized_name(self, locale: str | None = None) -> str:
        return pick_localized(self.name, locale or self.primary_locale, default=self.url_path)


class ContextsListResponse(BaseModel):
    """
    Represents the response from the host when fetching a list of contexts.
    """
    engine: str
    contexts: list[ContextDetails] = []
    currentPage: int
    nextPage: int | None = None
    overallCount: int | None = None
    pageLength: int | None = None
    lastPage: int | None = None
