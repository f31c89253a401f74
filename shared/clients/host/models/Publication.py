"""Generic host publication model: one versioned snapshot of an article.

Hierarchy:
  PublicationBase        : identity only, enough to address the record on the host.
  PublicationDetails     : all metadata the host returns for the record.
  PublicationHighDetails : details plus resolved references (section, URL, galley
                           contents, current-version flag) needed to build index entries.
"""

from datetime import datetime
from enum import IntEnum

from pydantic import BaseModel

from shared.clients.host.models.Author import AuthorDetails
from shared.clients.host.models.Galley import GalleyDetails
from shared.clients.host.models.Localized import pick_localized
from shared.clients.host.models.Section import SectionDetails


class PublicationStatus(IntEnum):
    """Host publication status codes. Only PUBLISHED is indexable."""

    QUEUED = 1
    PUBLISHED = 3
    DECLINED = 4
    SCHEDULED = 5

    @classmethod
    def from_raw(cls, raw: int | str | None) -> "PublicationStatus":
        """Map a raw host status to a member; unknown values count as QUEUED."""
        try:
            return cls(int(raw))
        except (TypeError, ValueError):
            return cls.QUEUED


class PublicationBase(BaseModel):
    """
    Identity of a publication on the host.
    """
    engine: str
    id: int
    submission_id: int
    context_id: int


class PublicationDetails(PublicationBase):
    """
    Represents a single publication with all its metadata, as returned by a host client.
    """
    status: PublicationStatus = PublicationStatus.QUEUED
    locale: str | None = None
    title: dict[str, str] = {}
    abstract: dict[str, str] = {}
    subjects: dict[str, list[str]] = {}
    keywords: dict[str, list[str]] = {}
    disciplines: dict[str, list[str]] = {}
    coverage: dict[str, list[str]] = {}
    type: dict[str, str] = {}
    date_published: datetime | None = None
    section_id: int | None = None
    authors: list[AuthorDetails] = []
    galleys: list[GalleyDetails] = []
    indexing_dirty: bool = False

    def is_published(self) -> bool:
        return self.status == PublicationStatus.PUBLISHED

    def get_localized(self, field: str) -> str | list[str] | None:
        """Return a locale-keyed field in the publication's own locale."""
        return pick_localized(getattr(self, field), self.locale)


class PublicationHighDetails(PublicationDetails):
    """
    Publication details enriched with everything the content formatter reads.
    """
    section: SectionDetails | None = None
    url_published: str | None = None
    is_current: bool = False
    galley_html: list[str] = []


class PublicationFilter(BaseModel):
    """
    Explicit query filter for publications on the host.

    Attributes:
        context_id:     Restrict to one context (collection). None means all contexts.
        submission_id:  Restrict to the versions of one submission.
        indexing_dirty: Match only records whose dirty flag has this value.
        status:         Match only records with this status.
        current_only:   Match only the current publication of each submission.
        count:          Stop after this many matches. None means no limit.
    """
    context_id: int | None = None
    submission_id: int | None = None
    indexing_dirty: bool | None = None
    status: PublicationStatus | None = None
    current_only: bool = False
    count: int | None = None

    def matches(self, publication: PublicationDetails, current_publication_id: int | None = None) -> bool:
        if self.context_id is not None and publication.context_id != self.context_id:
            return False
        if self.submission_id is not None and publication.submission_id != self.submission_id:
            return False
        if self.indexing_dirty is not None and publication.indexing_dirty != self.indexing_dirty:
            return False
        if self.status is not None and publication.status != self.status:
            return False
        if self.current_only and publication.id != current_publication_id:
            return False
        return True
