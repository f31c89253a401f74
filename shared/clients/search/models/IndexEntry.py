"""Index entry model: one searchable chunk of one publication."""

from pydantic import BaseModel


class IndexEntry(BaseModel):
    """
    A single record in the search index. Field names are the index attribute names.

    Attributes:
        distinctId:      Publication-level key shared by all chunks of one publication
                         (the search engine collapses results on it).
        objectID:        Unique key of this chunk: "{distinctId}_{order}".
        order:           1-based position of the chunk within the publication.
        contextId:       Context the publication belongs to, used for scoped clears.
        publicationDate: Publish date as epoch seconds.
    """
    distinctId: str
    objectID: str
    order: int
    contextId: int
    locale: str | None = None
    title: str = ""
    body: str = ""
    authors: str = ""
    section: str = ""
    publicationDate: int | None = None
    url: str | None = None
    discipline: list[str] = []
    subject: list[str] = []
    keyword: list[str] = []
    type: str = ""
    coverage: list[str] = []
