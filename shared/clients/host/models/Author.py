"""Generic host author model."""

from pydantic import BaseModel

from shared.clients.host.models.Localized import pick_localized


class AuthorDetails(BaseModel):
    """
    A contributor of a publication as returned by the host.
    """
    engine: str
    id: int
    given_name: dict[str, str] = {}
    family_name: dict[str, str] = {}
    seq: int = 0

    def get_full_name(self, locale: str | None = None) -> str:
        """Return "Given Family", skipping whichever part is empty."""
        parts = [
            pick_localized(self.given_name, locale, default=""),
            pick_localized(self.family_name, locale, default=""),
        ]
        return " ".join(part.strip() for part in parts if part and part.strip())
