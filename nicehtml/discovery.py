"""Locate NiceHTML fragments embedded in, or referenced by, an HTML page."""

from __future__ import annotations

import logging

from pathlib import Path
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from nicehtml.constants import (
    DEFAULT_SCRIPT_TYPE,
    ORIGIN_INLINE,
    ORIGIN_REMOTE,
)
from nicehtml.exceptions import FragmentResolutionError
from nicehtml.types import Fragment, Page

LOGGER = logging.getLogger(__name__)


def _normalise_type(value: Optional[str]) -> str:
    return (value or "").split(";", 1)[0].strip().lower()


def discover_fragments(
    page: Page, *, script_type: str = DEFAULT_SCRIPT_TYPE
) -> List[Fragment]:
    """Return one fragment per matching ``<script>`` element, in document order.

    Elements declaring ``src`` become remote fragments whose source is joined
    to ``page.base_url``; all others are inline and carry their text. No
    content is fetched here.
    """

    wanted = _normalise_type(script_type)
    soup = BeautifulSoup(page.html, "html.parser")
    fragments: List[Fragment] = []
    for element in soup.find_all("script"):
        if _normalise_type(element.get("type")) != wanted:
            continue
        attributes = {
            str(key): " ".join(value) if isinstance(value, list) else str(value)
            for key, value in element.attrs.items()
            if key not in {"type", "src"}
        }
        src = (element.get("src") or "").strip()
        index = len(fragments)
        if src:
            source = urljoin(page.base_url, src) if page.base_url else src
            fragments.append(
                Fragment(
                    origin=ORIGIN_REMOTE,
                    discovery_index=index,
                    source=source,
                    attributes=attributes,
                )
            )
        else:
            fragments.append(
                Fragment(
                    origin=ORIGIN_INLINE,
                    discovery_index=index,
                    raw_content=element.get_text(),
                    attributes=attributes,
                )
            )
    LOGGER.debug(
        "Discovered %d fragment(s) of type %s", len(fragments), wanted
    )
    return fragments


def page_from_path(path: Path) -> Page:
    """Read a page from disk; relative sources resolve against its folder.

    Raises:
        FragmentResolutionError: the page is missing, unreadable or not UTF-8.
    """

    resolved = Path(path).expanduser().resolve()
    try:
        html = resolved.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FragmentResolutionError(f"{resolved}: {exc}") from exc
    return Page(html=html, base_url=resolved.as_uri())


__all__ = ["discover_fragments", "page_from_path"]
