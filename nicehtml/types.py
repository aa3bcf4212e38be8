"""Core dataclasses shared by discovery, resolution and the orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Literal, Optional

from nicehtml.constants import ORIGIN_INLINE, ORIGIN_REMOTE, STATE_IDLE

if TYPE_CHECKING:  # pragma: no cover
    from nicehtml.engines.base import TranspilationEngine

Origin = Literal["inline", "remote"]


@dataclass
class Page:
    """HTML document plus the location used to resolve relative sources."""

    html: str
    base_url: Optional[str] = None


@dataclass
class Fragment:
    """One discovered unit of NiceHTML source awaiting conversion."""

    origin: Origin
    discovery_index: int
    source: Optional[str] = None
    raw_content: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.origin not in (ORIGIN_INLINE, ORIGIN_REMOTE):
            raise ValueError(f"Unknown fragment origin '{self.origin}'")
        if self.origin == ORIGIN_REMOTE and not self.source:
            raise ValueError("Remote fragments require a source location")

    @property
    def is_remote(self) -> bool:
        return self.origin == ORIGIN_REMOTE

    @property
    def label(self) -> str:
        if self.is_remote:
            return f"#{self.discovery_index} ({self.source})"
        return f"#{self.discovery_index} (inline)"


@dataclass(frozen=True)
class ResolutionResult:
    """Tagged outcome of resolving a fragment: content or an error."""

    fragment: Fragment
    ok: bool
    content: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, fragment: Fragment, content: str) -> "ResolutionResult":
        return cls(fragment=fragment, ok=True, content=content)

    @classmethod
    def failure(cls, fragment: Fragment, error: str) -> "ResolutionResult":
        return cls(fragment=fragment, ok=False, error=error)


@dataclass(frozen=True)
class EngineHandle:
    """Read-only capability exposing the engine's conversion operation."""

    engine: "TranspilationEngine"

    @property
    def name(self) -> str:
        return self.engine.name

    def convert(self, content: str) -> None:
        self.engine.convert(content)


@dataclass
class RunReport:
    """Summary of one orchestrator run."""

    state: str = STATE_IDLE
    discovered: int = 0
    converted: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    errors: Dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "state": self.state,
            "discovered": self.discovered,
            "converted": list(self.converted),
            "skipped": list(self.skipped),
            "errors": {str(idx): msg for idx, msg in self.errors.items()},
        }


__all__ = [
    "EngineHandle",
    "Fragment",
    "Origin",
    "Page",
    "ResolutionResult",
    "RunReport",
]
