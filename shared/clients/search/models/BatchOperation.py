"""Operations submitted to the search index in one batch."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from shared.clients.search.models.IndexEntry import IndexEntry


class AddOperation(BaseModel):
    """Add (or replace) one index entry."""
    action: Literal["addObject"] = "addObject"
    body: IndexEntry


class DeleteOperation(BaseModel):
    """Delete every entry sharing the given publication key."""
    action: Literal["deleteObject"] = "deleteObject"
    distinctId: str


BatchOperation = Annotated[Union[AddOperation, DeleteOperation], Field(discriminator="action")]
