"""Engine that shows fragment sources verbatim inside ``<pre><code>``."""

from __future__ import annotations

import html

from nicehtml.engines.base import TranspilationEngine


class PreformattedEngine(TranspilationEngine):
    engine_name = "preformatted"

    def init(self) -> None:
        self._escape = bool(self.options.get("escape", False))

    def convert(self, content: str) -> None:
        body = html.escape(content) if self._escape else content
        self.sink.emit(f"<pre><code>{body}</code></pre>")


__all__ = ["PreformattedEngine"]
