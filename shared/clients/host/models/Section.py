"""Generic host section model."""

from pydantic import BaseModel

from shared.clients.host.models.Localized import pick_localized


class SectionDetails(BaseModel):
    """
    A section of a context (e.g. "Articles", "Reviews").
    """
    engine: str
    id: int
    context_id: int
    title: dict[str, str] = {}

    def get_localized_title(self, locale: str | None = None) -> str:
        return pick_localized(self.title, locale, default="")
