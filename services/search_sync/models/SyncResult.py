"""Outcome summaries returned by the sync service."""

from pydantic import BaseModel, computed_field


class PushResult(BaseModel):
    """
    Summary of one push (or of several merged pushes).

    Attributes:
        processed: Dirty records read from the tracker.
        cleaned:   Records whose flag was cleared.
        deleted:   Delete operations submitted.
        added:     Index entries submitted.
        cleared:   Whether a scoped clear replaced the per-record deletes.
        errors:    One line per failed record or failed remote call.
    """
    batch_size: int | None = None
    context_id: int | None = None
    processed: int = 0
    cleaned: int = 0
    deleted: int = 0
    added: int = 0
    cleared: bool = False
    errors: list[str] = []

    @computed_field
    @property
    def success(self) -> bool:
        return not self.errors

    def merge(self, other: "PushResult") -> None:
        self.processed += other.processed
        self.cleaned += other.cleaned
        self.deleted += other.deleted
        self.added += other.added
        self.cleared = self.cleared or other.cleared
        self.errors.extend(other.errors)


class RebuildResult(BaseModel):
    """
    Summary of a rebuild. marked and pushed are keyed by context name.
    """
    dry_run: bool = False
    context_id: int | None = None
    cleared: bool = False
    marked: dict[str, int] = {}
    pushed: dict[str, int] = {}
    messages: list[str] = []
    errors: list[str] = []

    @computed_field
    @property
    def success(self) -> bool:
        return not self.errors
