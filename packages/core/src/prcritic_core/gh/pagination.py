"""Pagination cursors for GitHub list endpoints.

GitHub advertises neighbouring pages through the ``Link`` response header.
The header format is parsed in exactly one place (``parse_link_header``);
everything else works with ``PageCursor``.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlparse

_LINK_RE = re.compile(r'<([^>]+)>\s*;\s*rel="([a-z]+)"')


def parse_link_header(header: str | None) -> dict[str, int]:
    """Map link relations (next, prev, first, last) to the page number they point at."""
    pages: dict[str, int] = {}
    if not header:
        return pages
    for url, rel in _LINK_RE.findall(header):
        values = parse_qs(urlparse(url).query).get("page")
        if values and values[0].isdigit():
            pages[rel] = int(values[0])
    return pages


@dataclass(frozen=True)
class PageCursor:
    page: int
    next_page: int | None = None
    prev_page: int | None = None
    last_page: int | None = None

    @property
    def has_next(self) -> bool:
        return self.next_page is not None

    @property
    def has_previous(self) -> bool:
        return self.prev_page is not None

    @classmethod
    def from_link_header(cls, page: int, header: str | None) -> PageCursor:
        rels = parse_link_header(header)
        next_page = rels.get("next")
        prev_page = rels.get("prev")
        if "last" in rels:
            last_page = rels["last"]
        elif next_page is None:
            # GitHub drops rel="last" on the final page and omits the header
            # entirely when everything fits on one page.
            last_page = page
        else:
            last_page = None
        return cls(page=page, next_page=next_page, prev_page=prev_page, last_page=last_page)


@dataclass(frozen=True)
class Page:
    items: list[dict]
    cursor: PageCursor = field(default_factory=lambda: PageCursor(page=1, last_page=1))


async def fetch_all_pages(fetch_page: Callable[[int], Awaitable[Page]]) -> list[dict]:
    """Collect every item from a paginated endpoint, one page at a time.

    Page n+1 is only requested after page n has returned, since only page n
    tells us whether another page exists. Any failure propagates.
    """
    items: list[dict] = []
    page_number = 1
    while True:
        page = await fetch_page(page_number)
        items.extend(page.items)
        if not page.cursor.has_next or page.cursor.next_page <= page_number:
            return items
        page_number = page.cursor.next_page
