"""Generic host galley (rendition) model."""

from pydantic import BaseModel

HTML_MIME_TYPE = "text/html"


class GalleyDetails(BaseModel):
    """
    One rendition attached to a publication (PDF, HTML, ...).
    """
    engine: str
    id: int
    label: str | None = None
    mime_type: str | None = None
    file_id: int | None = None
    url_remote: str | None = None

    def is_html(self) -> bool:
        return (self.mime_type or "").lower() == HTML_MIME_TYPE
