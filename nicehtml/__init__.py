"""NiceHTML fragment loader package entry point."""

from .exceptions import (
    EngineLoadError,
    FragmentResolutionError,
    MarkupSyntaxError,
    NiceHTMLError,
)
from .orchestrator import FragmentOrchestrator, render_page
from .session import PageSession
from .types import EngineHandle, Fragment, Page, ResolutionResult, RunReport

__all__ = [
    "EngineHandle",
    "EngineLoadError",
    "Fragment",
    "FragmentOrchestrator",
    "FragmentResolutionError",
    "MarkupSyntaxError",
    "NiceHTMLError",
    "Page",
    "PageSession",
    "ResolutionResult",
    "RunReport",
    "render_page",
]
