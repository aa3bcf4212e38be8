"""Expose the project root on sys.path and provide shared test doubles."""

from __future__ import annotations

import sys
import threading
import time

from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest
import requests

from nicehtml.engines.base import TranspilationEngine
from nicehtml.output import OutputSink
from nicehtml.resolution import ContentResolver

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class FakeResponse:
    def __init__(self, status_code: int, text: str) -> None:
        self.status_code = status_code
        self.text = text


class FakeHTTPSession:
    """Stands in for ``requests.Session``; routes are keyed by URL sans query."""

    def __init__(
        self,
        routes: Optional[Dict[str, Tuple[int, str]]] = None,
        *,
        delays: Optional[Dict[str, float]] = None,
        offline: bool = False,
    ) -> None:
        self.routes = routes or {}
        self.delays = delays or {}
        self.offline = offline
        self.calls: List[Dict[str, object]] = []
        self.completed: List[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def get(self, url: str, headers=None, timeout=None) -> FakeResponse:
        base = url.split("?", 1)[0]
        with self._lock:
            self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        if self.offline:
            raise requests.ConnectionError(f"network disabled for {url}")
        time.sleep(self.delays.get(base, 0.0))
        with self._lock:
            self.completed.append(base)
        status, text = self.routes.get(base, (404, "not found"))
        return FakeResponse(status, text)

    def close(self) -> None:
        self.closed = True


class RecordingEngine(TranspilationEngine):
    engine_name = "recording"

    def __init__(self, sink=None, options=None) -> None:
        super().__init__(sink=sink, options=options)
        self.init_calls = 0
        self.converted: List[str] = []

    def init(self) -> None:
        self.init_calls += 1

    def convert(self, content: str) -> None:
        self.converted.append(content)
        self.sink.emit(content)


class EngineFactory:
    """Callable factory that remembers every engine it built."""

    def __init__(self, fail_with: Optional[Exception] = None) -> None:
        self.fail_with = fail_with
        self.created: List[RecordingEngine] = []

    def __call__(self, sink: OutputSink) -> RecordingEngine:
        if self.fail_with is not None:
            raise self.fail_with
        engine = RecordingEngine(sink=sink)
        self.created.append(engine)
        return engine


@pytest.fixture()
def engine_factory() -> EngineFactory:
    return EngineFactory()


@pytest.fixture()
def make_resolver() -> Callable[..., ContentResolver]:
    """Build a resolver backed by a :class:`FakeHTTPSession`."""

    def _make(http: FakeHTTPSession, **kwargs) -> ContentResolver:
        return ContentResolver(session=http, **kwargs)

    return _make


@pytest.fixture()
def make_http() -> Callable[..., FakeHTTPSession]:
    return FakeHTTPSession
