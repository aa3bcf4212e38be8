"""The NiceHTML language: indentation-structured markup rendered to HTML.

Each non-blank line creates one node; children are indented four spaces
deeper than their parent. Supported lines::

    # comment
    div class="card"          element with attributes
    "Hello <b>world</b>"      span holding inline HTML
    greeting =                variable definition (body kept out of output)
    card(title, text) =       function definition with parameter slots
    $greeting                 copy of a variable
    $title                    parameter slot inside a function body
    $card("Hi", $greeting)    copy of a function body with slots filled
    $card($title, "x")        inside a body, forwards the enclosing slot
"""

from __future__ import annotations

import copy
import logging
import re

from dataclasses import dataclass, field
from typing import Dict, List

from bs4 import BeautifulSoup
from bs4.element import Tag

from nicehtml.engines.base import TranspilationEngine
from nicehtml.exceptions import MarkupSyntaxError

LOGGER = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*\Z")
_ATTRIBUTE = re.compile(r'(?P<name>\w+)="(?P<value>[^"]+)"')
SLOT_ATTRIBUTE = "data-nicehtml-slot"


def is_valid_identifier(text: str) -> bool:
    return bool(_IDENTIFIER.match(text))


def _is_string(text: str) -> bool:
    return len(text) >= 2 and text.startswith('"') and text.endswith('"')


def split_arguments(text: str) -> List[str]:
    """Split a call's argument list on commas outside double quotes."""

    parts: List[str] = []
    current: List[str] = []
    quoted = False
    for char in text:
        if char == '"':
            quoted = not quoted
        if char == "," and not quoted:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)
    tail = "".join(current).strip()
    if tail or parts:
        parts.append(tail)
    return parts


@dataclass
class _Definition:
    element: Tag
    params: List[str] = field(default_factory=list)

    @property
    def is_function(self) -> bool:
        return bool(self.params)


@dataclass
class _Frame:
    element: Tag
    defines: str = ""
    params: List[str] = field(default_factory=list)


class NiceHTMLRenderer:
    """Renders one NiceHTML script; instances are not reused across scripts."""

    def __init__(self, indent_width: int = 4) -> None:
        self.indent_width = indent_width
        self._soup = BeautifulSoup("", "html.parser")
        self._definitions: Dict[str, _Definition] = {}

    def render(self, script: str) -> str:
        root = self._soup.new_tag("body")
        stack: List[_Frame] = [_Frame(root)]
        depth = 0
        for line in script.splitlines():
            raw = line.strip()
            if not raw or raw.startswith("#"):
                continue
            leading = len(line) - len(line.lstrip(" "))
            indent = leading // self.indent_width + 1
            if indent > depth + 1:
                raise MarkupSyntaxError("too much indentation at once", line)
            while indent <= depth:
                self._close(stack)
                depth -= 1
            stack.append(self._parse_line(raw, line, stack))
            depth += 1
        while len(stack) > 1:
            self._close(stack)
        return "".join(str(child) for child in root.contents)

    def _close(self, stack: List[_Frame]) -> None:
        frame = stack.pop()
        if not frame.defines:
            stack[-1].element.append(frame.element)

    def _parse_line(
        self, raw: str, line: str, stack: List[_Frame]
    ) -> _Frame:
        if raw.endswith("="):
            return self._definition(raw[:-1].strip(), line)
        if _is_string(raw):
            return _Frame(self._span(raw[1:-1]))
        head = raw.split()[0]
        if is_valid_identifier(head):
            return _Frame(self._element(head, raw[len(head):]))
        if raw.startswith("$"):
            name = raw[1:].split("(", 1)[0].strip()
            if is_valid_identifier(name):
                return _Frame(self._reference(name, raw, line, stack))
        raise MarkupSyntaxError("not sure what this line is", line)

    def _definition(self, definition: str, line: str) -> _Frame:
        if is_valid_identifier(definition):
            name, params = definition, []
        elif "(" in definition and definition.endswith(")"):
            name, _, rest = definition.partition("(")
            name = name.strip()
            params = [arg.strip() for arg in rest[:-1].split(",") if arg.strip()]
            if not is_valid_identifier(name) or not all(
                is_valid_identifier(param) for param in params
            ):
                raise MarkupSyntaxError(
                    "not a valid variable or function definition", line
                )
        else:
            raise MarkupSyntaxError(
                "not a valid variable or function definition", line
            )
        element = self._soup.new_tag("div")
        self._definitions[name] = _Definition(element, params)
        return _Frame(element, defines=name, params=params)

    def _element(self, tag_name: str, rest: str) -> Tag:
        element = self._soup.new_tag(tag_name)
        for match in _ATTRIBUTE.finditer(rest.strip()):
            element[match.group("name")] = match.group("value")
        return element

    def _span(self, inner_html: str) -> Tag:
        span = self._soup.new_tag("span")
        parsed = BeautifulSoup(inner_html, "html.parser")
        for child in list(parsed.contents):
            span.append(child.extract())
        return span

    def _slot(self, name: str) -> Tag:
        return self._soup.new_tag("slot", attrs={SLOT_ATTRIBUTE: name})

    @staticmethod
    def _enclosing_param(name: str, stack: List[_Frame]) -> bool:
        return any(frame.defines and name in frame.params for frame in stack)

    def _reference(
        self, name: str, raw: str, line: str, stack: List[_Frame]
    ) -> Tag:
        if self._enclosing_param(name, stack):
            return self._slot(name)
        definition = self._definitions.get(name)
        if definition is None:
            raise MarkupSyntaxError("variable not defined", line)
        if any(frame.defines == name for frame in stack):
            raise MarkupSyntaxError("variable is still being defined", line)
        if not definition.is_function:
            return copy.copy(definition.element)
        return self._call(definition, raw, line, stack)

    def _call(
        self, definition: _Definition, raw: str, line: str, stack: List[_Frame]
    ) -> Tag:
        if raw.count("(") != 1 or not raw.endswith(")"):
            raise MarkupSyntaxError("invalid function call", line)
        inner = raw.split("(", 1)[1][:-1]
        arguments = [
            self._argument(arg, line, stack) for arg in split_arguments(inner)
        ]
        if len(arguments) != len(definition.params):
            raise MarkupSyntaxError(
                f"expected {len(definition.params)} argument(s), "
                f"got {len(arguments)}",
                line,
            )
        bound: Dict[str, Tag] = dict(zip(definition.params, arguments))
        body = copy.copy(definition.element)
        for slot in body.find_all(attrs={SLOT_ATTRIBUTE: True}):
            value = bound.get(slot[SLOT_ATTRIBUTE])
            if value is not None:
                slot.replace_with(copy.copy(value))
        return body

    def _argument(self, arg: str, line: str, stack: List[_Frame]) -> Tag:
        if _is_string(arg):
            return self._span(arg[1:-1])
        if arg.startswith("$"):
            name = arg[1:].strip()
            if self._enclosing_param(name, stack):
                # Forwarded slot, filled when the enclosing function is called.
                return self._slot(name)
            definition = self._definitions.get(name)
            if definition is None:
                raise MarkupSyntaxError("variable not defined", line)
            if definition.is_function:
                raise MarkupSyntaxError(
                    "function calls inside other function calls are not allowed",
                    line,
                )
            return copy.copy(definition.element)
        raise MarkupSyntaxError("unknown argument type", line)


def render(script: str, *, indent_width: int = 4) -> str:
    """Render a NiceHTML script to an HTML string."""

    return NiceHTMLRenderer(indent_width=indent_width).render(script)


class NiceHTMLEngine(TranspilationEngine):
    """Engine wrapper around :class:`NiceHTMLRenderer`.

    Syntax errors are logged and recorded on the sink; with
    ``options.strict`` they propagate to the caller instead.
    """

    engine_name = "nicehtml"

    def init(self) -> None:
        width = self.options.get("indent_width", 4)
        if not isinstance(width, int) or isinstance(width, bool) or width < 1:
            raise ValueError(
                f"indent_width must be a positive integer, got {width!r}"
            )
        self._indent_width = width
        self._strict = bool(self.options.get("strict", False))

    def convert(self, content: str) -> None:
        try:
            html = render(content, indent_width=self._indent_width)
        except MarkupSyntaxError as exc:
            LOGGER.error("%s", exc)
            self.sink.record_error(str(exc))
            if self._strict:
                raise
            return
        self.sink.emit(html)


__all__ = [
    "NiceHTMLEngine",
    "NiceHTMLRenderer",
    "SLOT_ATTRIBUTE",
    "is_valid_identifier",
    "render",
    "split_arguments",
]
