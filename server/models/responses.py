from pydantic import BaseModel


class EventResponse(BaseModel):
    status: str
    kind: str


class PushResponse(BaseModel):
    success: bool
    context_id: int | None = None
    processed: int
    cleaned: int
    deleted: int
    added: int
    cleared: bool
    errors: list[str]


class RebuildResponse(BaseModel):
    success: bool
    dry_run: bool
    context_id: int | None = None
    cleared: bool
    marked: dict[str, int]
    pushed: dict[str, int]
    messages: list[str]
    errors: list[str]
