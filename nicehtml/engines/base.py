"""Base transpilation engine interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from nicehtml.output import OutputSink


class TranspilationEngine(ABC):
    """Shared contract for engines that turn markup text into HTML.

    ``init`` runs once per session, on a loader thread, before the first
    ``convert``. ``convert`` is side effecting: rendered output goes to the
    engine's sink, never back to the caller.
    """

    engine_name: str = "unknown"

    def __init__(
        self,
        sink: Optional[OutputSink] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.sink = sink if sink is not None else OutputSink()
        self.options: Dict[str, Any] = dict(options or {})

    @property
    def name(self) -> str:
        return self.engine_name

    def init(self) -> None:
        """Prepare engine resources."""

    @abstractmethod
    def convert(self, content: str) -> None:
        """Convert one fragment and hand the result to the sink."""
