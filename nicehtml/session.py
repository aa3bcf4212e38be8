"""Explicit per-page context shared by the loader and the orchestrator."""

from __future__ import annotations

import logging
import threading

from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional

from nicehtml.configuration import LoaderSettings
from nicehtml.engines.loader import EngineFactory, EngineLoader
from nicehtml.logging import RunEventLog, new_run_id
from nicehtml.output import OutputSink
from nicehtml.resolution import Clock, ContentResolver

LOGGER = logging.getLogger(__name__)


class PageSession:
    """Owns everything that lives for one page load.

    A session holds the worker pools, the engine loader (so the engine is
    initialized at most once), the content resolver, the output sink and the
    event log. Independent sessions share nothing.
    """

    def __init__(
        self,
        settings: Optional[LoaderSettings] = None,
        *,
        resolver: Optional[ContentResolver] = None,
        engine_factory: Optional[EngineFactory] = None,
        sink: Optional[OutputSink] = None,
        clock: Optional[Clock] = None,
        events: Optional[RunEventLog] = None,
        run_id: Optional[str] = None,
    ) -> None:
        self.settings = settings or LoaderSettings()
        self.run_id = run_id or new_run_id()
        self.sink = sink if sink is not None else OutputSink()
        # The engine load runs alone on this pool; fetches get per-run pools.
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="nicehtml-engine"
        )
        self._fetch_pools: List[ThreadPoolExecutor] = []
        self._lock = threading.Lock()
        self.resolver = resolver or ContentResolver(
            self.settings.fetch, clock=clock
        )
        self.engine_loader = EngineLoader(
            self.settings.engine,
            sink=self.sink,
            executor=self._executor,
            plugin_modules=self.settings.plugin_modules,
            factory=engine_factory,
        )
        self.events = events or RunEventLog(
            self.settings.runtime.events_path, run_id=self.run_id
        )
        self._closed = False

    def fetch_pool(self, size: int) -> ThreadPoolExecutor:
        """Return a new pool with ``size`` threads, joined on :meth:`close`.

        Each run asks for one thread per remote fragment so that every fetch
        starts at once.
        """

        pool = ThreadPoolExecutor(
            max_workers=max(size, 1), thread_name_prefix="nicehtml-fetch"
        )
        with self._lock:
            self._fetch_pools.append(pool)
        return pool

    def close(self) -> None:
        """Wait for in-flight work, then release the pools and HTTP session."""

        if self._closed:
            return
        self._closed = True
        with self._lock:
            pools, self._fetch_pools = self._fetch_pools, []
        for pool in pools:
            pool.shutdown(wait=True)
        self._executor.shutdown(wait=True)
        self.resolver.close()
        LOGGER.debug("Session %s closed", self.run_id)

    def __enter__(self) -> "PageSession":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


__all__ = ["PageSession"]
