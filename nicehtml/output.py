"""Collected engine output and full-document rendering."""

from __future__ import annotations

import threading

from pathlib import Path
from typing import List, Optional

from jinja2 import ChoiceLoader, Environment, FileSystemLoader

DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"
DEFAULT_TEMPLATE = "document.html.j2"


class OutputSink:
    """Receives rendered HTML from an engine, one entry per conversion."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._fragments: List[str] = []
        self._errors: List[str] = []

    def emit(self, html: str) -> None:
        with self._lock:
            self._fragments.append(html)

    def record_error(self, message: str) -> None:
        with self._lock:
            self._errors.append(message)

    @property
    def fragments(self) -> List[str]:
        with self._lock:
            return list(self._fragments)

    @property
    def errors(self) -> List[str]:
        with self._lock:
            return list(self._errors)

    def body(self) -> str:
        return "\n".join(self.fragments)


def render_document(
    sink: OutputSink,
    *,
    title: Optional[str] = None,
    template: Optional[Path] = None,
) -> str:
    """Render the sink's fragments into a standalone HTML page.

    ``template`` may point at a custom Jinja2 file; it receives ``title``,
    ``fragments`` and ``errors``.
    """

    loaders = []
    template_name = DEFAULT_TEMPLATE
    if template is not None:
        template = Path(template)
        if not template.exists():
            raise FileNotFoundError(f"Template not found: {template}")
        loaders.append(FileSystemLoader(str(template.parent)))
        template_name = template.name
    loaders.append(FileSystemLoader(str(DEFAULT_TEMPLATE_DIR)))
    env = Environment(
        loader=ChoiceLoader(loaders),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    return env.get_template(template_name).render(
        title=title or "NiceHTML",
        fragments=sink.fragments,
        errors=sink.errors,
    )


__all__ = ["OutputSink", "render_document"]
