"""Content resolution for discovered fragments."""

from __future__ import annotations

import logging
import threading
import time

from pathlib import Path
from typing import Any, Callable, Dict, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from urllib.request import url2pathname

import requests

from nicehtml.configuration import FetchSettings
from nicehtml.exceptions import FragmentResolutionError
from nicehtml.types import Fragment, ResolutionResult

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], int]


def epoch_millis() -> int:
    """Current wall-clock time in milliseconds."""

    return int(time.time() * 1000)


def cache_bust_url(url: str, param: str, stamp: int) -> str:
    """Return ``url`` with ``param=stamp`` set in its query string."""

    parts = urlsplit(url)
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key != param
    ]
    query.append((param, str(stamp)))
    return urlunsplit(
        (parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment)
    )


def _local_path(location: str) -> Optional[Path]:
    parts = urlsplit(location)
    if parts.scheme == "file":
        return Path(url2pathname(parts.path))
    if parts.scheme in ("http", "https"):
        return None
    # Windows drive letters parse as a one-letter scheme.
    if not parts.scheme or len(parts.scheme) == 1:
        return Path(location)
    return None


class ContentResolver:
    """Turns fragments into :class:`ResolutionResult` values.

    Inline fragments settle from memory. Remote fragments are fetched with
    ``requests`` using a cache-busting query parameter; local ``file://``
    sources are read from disk. Retrieval failures never raise out of
    :meth:`resolve`, they come back as failed results and are logged.
    """

    def __init__(
        self,
        settings: Optional[FetchSettings] = None,
        *,
        session: Optional[requests.Session] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.settings = settings or FetchSettings()
        self._clock = clock or epoch_millis
        self._session = session
        self._session_lock = threading.Lock()

    def resolve(self, fragment: Fragment) -> ResolutionResult:
        if not fragment.is_remote:
            return ResolutionResult.success(
                fragment, fragment.raw_content or ""
            )
        try:
            content = self.fetch_text(fragment.source or "")
        except FragmentResolutionError as exc:
            LOGGER.error(
                "Error loading fragment %s: %s", fragment.label, exc
            )
            return ResolutionResult.failure(fragment, str(exc))
        fragment.raw_content = content
        return ResolutionResult.success(fragment, content)

    def fetch_text(self, location: str, *, cache_bust: bool = True) -> str:
        """Retrieve ``location`` as text or raise FragmentResolutionError."""

        local = _local_path(location)
        if local is not None:
            return self._read_local(local)
        url = location
        if cache_bust and self.settings.cache_bust:
            url = cache_bust_url(
                location, self.settings.cache_bust_param, self._clock()
            )
        return self._get(url)

    def close(self) -> None:
        with self._session_lock:
            if self._session is not None:
                self._session.close()
                self._session = None

    def _headers(self) -> Dict[str, str]:
        headers = {
            "User-Agent": self.settings.user_agent,
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }
        headers.update(self.settings.headers)
        return headers

    def _ensure_session(self) -> Any:
        with self._session_lock:
            if self._session is None:
                self._session = requests.Session()
            return self._session

    def _get(self, url: str) -> str:
        client = self._ensure_session()
        LOGGER.debug("Fetching %s", url)
        try:
            response = client.get(
                url, headers=self._headers(), timeout=self.settings.timeout_s
            )
        except requests.RequestException as exc:
            raise FragmentResolutionError(f"{url}: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise FragmentResolutionError(
                f"{url}: HTTP {response.status_code}"
            )
        return response.text

    @staticmethod
    def _read_local(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise FragmentResolutionError(f"{path}: {exc}") from exc


__all__ = [
    "Clock",
    "ContentResolver",
    "cache_bust_url",
    "epoch_millis",
]
