"""Asynchronous, once-per-session engine initialization."""

from __future__ import annotations

import logging
import threading

from concurrent.futures import Executor, Future
from typing import Callable, Iterable, Optional

from nicehtml.configuration import EngineSettings
from nicehtml.engines import import_engine_modules, resolve_engine_class
from nicehtml.engines.base import TranspilationEngine
from nicehtml.exceptions import EngineLoadError
from nicehtml.output import OutputSink
from nicehtml.types import EngineHandle

LOGGER = logging.getLogger(__name__)

EngineFactory = Callable[[OutputSink], TranspilationEngine]


class EngineLoader:
    """Starts engine initialization on an executor and caches the future.

    Every call to :meth:`load_engine` returns the same future, so the engine's
    ``init`` runs at most once per loader even when callers race.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        *,
        sink: OutputSink,
        executor: Executor,
        plugin_modules: Iterable[str] = (),
        factory: Optional[EngineFactory] = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.sink = sink
        self._executor = executor
        self._plugin_modules = tuple(plugin_modules)
        self._factory = factory
        self._lock = threading.Lock()
        self._future: Optional[Future[EngineHandle]] = None

    def load_engine(self) -> Future[EngineHandle]:
        with self._lock:
            if self._future is None:
                self._future = self._executor.submit(self._initialize)
            return self._future

    def _initialize(self) -> EngineHandle:
        kind = self.settings.kind
        LOGGER.info("Loading engine '%s'", kind)
        try:
            engine = self._build()
            engine.init()
        except EngineLoadError:
            LOGGER.error("Engine '%s' failed to load", kind)
            raise
        except Exception as exc:
            LOGGER.error("Engine '%s' failed to load: %s", kind, exc)
            raise EngineLoadError(
                f"Failed to initialize engine '{kind}': {exc}"
            ) from exc
        LOGGER.info("Engine '%s' ready", engine.name)
        return EngineHandle(engine)

    def _build(self) -> TranspilationEngine:
        if self._factory is not None:
            return self._factory(self.sink)
        import_engine_modules(self._plugin_modules)
        engine_cls = resolve_engine_class(self.settings.kind)
        return engine_cls(sink=self.sink, options=self.settings.options)


__all__ = ["EngineFactory", "EngineLoader"]
