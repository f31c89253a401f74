"""Generic host submission model: the parent document owning publication versions."""

from pydantic import BaseModel

from shared.clients.host.models.Publication import PublicationDetails


class SubmissionBase(BaseModel):
    """
    Identity of a submission on the host.
    """
    engine: str
    id: int
    context_id: int


class SubmissionDetails(SubmissionBase):
    """
    Represents a single submission together with all its publication versions.
    """
    current_publication_id: int | None = None
    url_published: str | None = None
    publications: list[PublicationDetails] = []

    def get_current_publication(self) -> PublicationDetails | None:
        for publication in self.publications:
            if publication.id == self.current_publication_id:
                return publication
        return None

    def get_published_publication_ids(self) -> list[int]:
        return [publication.id for publication in self.publications if publication.is_published()]


class SubmissionsListResponse(BaseModel):
    """
    Represents the response from the host when fetching a page of submissions.
    """
    engine: str
    submissions: list[SubmissionDetails] = []
    currentPage: int
    nextPage: int | None = None
    overallCount: int | None = None
    pageLength: int | None = None
    lastPage: int | None = None
