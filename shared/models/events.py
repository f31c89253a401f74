"""Pydantic models for host lifecycle events.

Every event kind carries its own typed payload. HostEvent is the tagged union
the webhook accepts; handlers are looked up by HostEventKind.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class HostEventKind(str, Enum):
    CONTENT_METADATA_CHANGED = "contentMetadataChanged"
    CONTENT_DELETED = "contentDeleted"
    REBUILD_REQUESTED = "rebuildRequested"
    PUBLICATION_STATUS_CHANGED = "publicationStatusChanged"
    ALL_CHANGES_FLUSHED = "allChangesFlushed"
    PARENT_DOCUMENT_FILE_DELETED = "parentDocumentFileDeleted"


class SubmissionEvent(BaseModel):
    """Common payload of events that address one submission."""

    context_id: int
    submission_id: int


class ContentMetadataChangedEvent(SubmissionEvent):
    """The metadata of a submission's current publication was edited."""

    kind: Literal["contentMetadataChanged"] = "contentMetadataChanged"


class PublicationStatusChangedEvent(SubmissionEvent):
    """A publication of the submission was published or unpublished."""

    kind: Literal["publicationStatusChanged"] = "publicationStatusChanged"


class ContentDeletedEvent(SubmissionEvent):
    """The submission was removed from the host.

    publication_ids lists the published versions known before deletion. When
    omitted the handler looks them up, which only works while the host still
    serves the submission.
    """

    kind: Literal["contentDeleted"] = "contentDeleted"
    publication_ids: list[int] | None = None


class ParentDocumentFileDeletedEvent(SubmissionEvent):
    """A file of the submission was deleted."""

    kind: Literal["parentDocumentFileDeleted"] = "parentDocumentFileDeleted"
    publication_ids: list[int] | None = None


class AllChangesFlushedEvent(BaseModel):
    """The host finished a request that may have marked records dirty."""

    kind: Literal["allChangesFlushed"] = "allChangesFlushed"


class RebuildRequestedEvent(BaseModel):
    """An administrator asked for a rebuild, optionally of one context."""

    kind: Literal["rebuildRequested"] = "rebuildRequested"
    context_id: int | None = None
    dry_run: bool = False


HostEvent = Annotated[
    Union[
        ContentMetadataChangedEvent,
        PublicationStatusChangedEvent,
        ContentDeletedEvent,
        ParentDocumentFileDeletedEvent,
        AllChangesFlushedEvent,
        RebuildRequestedEvent,
    ],
    Field(discriminator="kind"),
]
