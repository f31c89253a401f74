"""Content formatter.

Turns one enriched publication into the flat index entries written to the
search index. Long text (abstract and HTML galleys) is split at paragraph
boundaries and word-wrapped; every non-empty paragraph becomes its own entry.
"""

import re
import textwrap
from datetime import datetime

import pytz
from bs4 import BeautifulSoup

from shared.clients.host.models.Publication import PublicationHighDetails
from shared.clients.search.models.IndexEntry import IndexEntry
from shared.exceptions import InvalidRecord

WRAP_WIDTH = 250  # characters per wrapped line inside a chunk
DECODE_PASSES = 5  # upper bound for nested escaping such as &amp;amp;lt;

_PARAGRAPH_CLOSE = re.compile(r"</p\s*>", re.IGNORECASE)
_PARAGRAPH_OPEN = re.compile(r"<p(?:\s[^>]*)?/?>", re.IGNORECASE)


def _decode_entities(markup: str) -> str:
    """Decode entities until the markup is stable, so escaped markup becomes real markup."""
    for _ in range(DECODE_PASSES):
        decoded = BeautifulSoup(markup, "html.parser").decode(formatter=None)
        if decoded == markup:
            break
        markup = decoded
    return markup


def _strip_markup(markup: str) -> str:
    """Return the visible text of an HTML fragment with whitespace collapsed.

    Head, script and style contents are dropped.
    """
    soup = BeautifulSoup(markup, "html.parser")
    for script in soup(["head", "script", "style"]):
        script.decompose()
    return " ".join(soup.get_text().split())


def chunk_content(content: str | None, wrap_width: int = WRAP_WIDTH) -> list[str]:
    """Split markup into paragraph chunks of plain, word-wrapped text.

    Args:
        content (str | None): HTML markup (abstract or galley file).
        wrap_width (int): Line width the chunk text is wrapped at.

    Returns:
        list[str]: Non-empty chunks in source order.
    """
    if not content:
        return []
    chunks: list[str] = []
    for paragraph in _PARAGRAPH_OPEN.split(_PARAGRAPH_CLOSE.sub("", _decode_entities(content))):
        text = _strip_markup(paragraph)
        if not text:
            continue
        chunks.append(textwrap.fill(text, width=wrap_width, break_long_words=False, break_on_hyphens=False))
    return chunks


class ContentFormatter:
    """Builds index entries from publications. Holds no state besides its settings."""

    def __init__(self, wrap_width: int = WRAP_WIDTH, tz_name: str = "UTC") -> None:
        self._wrap_width = wrap_width
        self._tz = pytz.timezone(tz_name)

    ##########################################
    ################ FORMAT ##################
    ##########################################

    def format(self, publication: PublicationHighDetails) -> list[IndexEntry]:
        """Build the index entries for one publication.

        Every entry repeats the publication's metadata and carries one body chunk.
        The abstract chunks come first, followed by the galley chunks.

        Args:
            publication (PublicationHighDetails): The enriched publication.

        Returns:
            list[IndexEntry]: Entries ordered 1..n, empty when there is no text.

        Raises:
            InvalidRecord: If no publication was given.
        """
        if publication is None or publication.id is None:
            raise InvalidRecord("Cannot format a missing publication.")

        body = chunk_content(publication.get_localized("abstract"), self._wrap_width)
        body += chunk_content("".join(publication.galley_html), self._wrap_width)
        if not body:
            return []

        distinct_id = str(publication.id)
        fields = self._build_fields(publication)
        return [
            IndexEntry(
                distinctId=distinct_id,
                objectID=f"{distinct_id}_{order}",
                order=order,
                body=chunk,
                **fields,
            )
            for order, chunk in enumerate(body, start=1)
        ]

    def _build_fields(self, publication: PublicationHighDetails) -> dict:
        locale = publication.locale
        authors = sorted(publication.authors, key=lambda author: author.seq)
        return {
            "contextId": publication.context_id,
            "locale": locale,
            "title": _strip_markup(publication.get_localized("title") or ""),
            "authors": ", ".join(name for name in (author.get_full_name(locale) for author in authors) if name),
            "section": publication.section.get_localized_title(locale) if publication.section else "",
            "publicationDate": self._to_epoch(publication.date_published),
            "url": publication.url_published,
            "discipline": list(publication.get_localized("disciplines") or []),
            "subject": list(publication.get_localized("subjects") or []),
            "keyword": list(publication.get_localized("keywords") or []),
            "type": publication.get_localized("type") or "",
            "coverage": list(publication.get_localized("coverage") or []),
        }

    def _to_epoch(self, value: datetime | None) -> int | None:
        """Naive publish dates are read in the configured timezone."""
        if value is None:
            return None
        if value.tzinfo is None:
            value = self._tz.localize(value)
        return int(value.timestamp())
