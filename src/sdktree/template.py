"""Path template compiler and parameter resolver.

Pattern grammar:

    service/:uuid/              required named param
    v:major(.:minor)            optional group, rendered only when complete
    files/(*/)                  wildcard inside a group, bound under "_"
    literal\\(paren\\)          backslash escapes the next character

Compiled templates are immutable and cached per pattern string.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any
from urllib.parse import quote

from .errors import MissingParameterError, TemplateSyntaxError

WILDCARD_KEY = "_"

_NAME_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_"
)


@dataclass(frozen=True, slots=True)
class Literal:
    text: str


@dataclass(frozen=True, slots=True)
class Param:
    name: str
    wildcard: bool = False

    def render(self, value: Any) -> str:
        # wildcards may span several path segments
        return quote(str(value), safe="/" if self.wildcard else "")


@dataclass(frozen=True, slots=True)
class Group:
    segments: tuple[Segment, ...]


type Segment = Literal | Param | Group


@dataclass(frozen=True, slots=True)
class PathTemplate:
    """Compiled path pattern.

    Params in the top-level ``segments`` are required, params nested in a
    ``Group`` are optional as a unit.
    """

    pattern: str
    segments: tuple[Segment, ...]
    names: frozenset[str]
    required: tuple[str, ...]

    def render(self, params: Mapping[str, Any]) -> str:
        """Substitute params into the template.

        Raises ``MissingParameterError`` for the first required param (in
        template order) without a value. Incomplete groups render as "".
        """
        for name in self.required:
            if params.get(name) is None:
                raise MissingParameterError(name)
        return _render(self.segments, params) or ""

    def __str__(self) -> str:
        return self.pattern


@dataclass(frozen=True, slots=True)
class Resolution:
    path: str
    residual: dict[str, Any]


@lru_cache(maxsize=1024)
def compile_template(pattern: str) -> PathTemplate:
    """Parse ``pattern`` into a ``PathTemplate``.

    Raises ``TemplateSyntaxError`` on unbalanced parentheses, duplicate
    param names, a wildcard outside a group or more than one wildcard.
    """
    stack: list[list[Segment]] = [[]]
    opened: list[int] = []
    names: list[str] = []
    literal: list[str] = []

    def flush() -> None:
        if literal:
            stack[-1].append(Literal("".join(literal)))
            literal.clear()

    def add_param(name: str, wildcard: bool, position: int) -> None:
        if name in names:
            if wildcard:
                reason = "wildcard used more than once"
            else:
                reason = f"duplicate param {name!r}"
            raise TemplateSyntaxError(pattern, position, reason)
        names.append(name)
        stack[-1].append(Param(name, wildcard=wildcard))

    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if char == "\\":
            if i + 1 == n:
                raise TemplateSyntaxError(pattern, i, "dangling escape")
            literal.append(pattern[i + 1])
            i += 2
            continue
        if char == "(":
            flush()
            stack.append([])
            opened.append(i)
        elif char == ")":
            if not opened:
                raise TemplateSyntaxError(pattern, i, "unbalanced ')'")
            flush()
            opened.pop()
            group = Group(tuple(stack.pop()))
            stack[-1].append(group)
        elif char == "*":
            if not opened:
                raise TemplateSyntaxError(pattern, i, "wildcard outside of a group")
            flush()
            add_param(WILDCARD_KEY, True, i)
        elif char == ":" and i + 1 < n and pattern[i + 1] in _NAME_CHARS:
            flush()
            end = i + 1
            while end < n and pattern[end] in _NAME_CHARS:
                end += 1
            add_param(pattern[i + 1 : end], False, i)
            i = end
            continue
        else:
            literal.append(char)
        i += 1

    if opened:
        raise TemplateSyntaxError(pattern, opened[-1], "unclosed '('")
    flush()

    segments = tuple(stack[0])
    return PathTemplate(
        pattern=pattern,
        segments=segments,
        names=frozenset(names),
        required=tuple(seg.name for seg in segments if isinstance(seg, Param)),
    )


def _render(segments: tuple[Segment, ...], params: Mapping[str, Any]) -> str | None:
    """Render segments, or None if a param directly in them is unbound."""
    parts: list[str] = []
    for seg in segments:
        if isinstance(seg, Literal):
            parts.append(seg.text)
        elif isinstance(seg, Param):
            value = params.get(seg.name)
            if value is None:
                return None
            parts.append(seg.render(value))
        else:
            parts.append(_render(seg.segments, params) or "")
    return "".join(parts)


def resolve(template: PathTemplate | str, params: Mapping[str, Any]) -> Resolution:
    """Render ``template`` and split ``params`` into consumed and residual.

    Every param named by the template is consumed, including those in groups
    that did not render; everything else is returned untouched in
    ``residual``.
    """
    if isinstance(template, str):
        template = compile_template(template)
    path = template.render(params)
    residual = {k: v for k, v in params.items() if k not in template.names}
    return Resolution(path=path, residual=residual)


def join_paths(*parts: str) -> str:
    """Join path fragments with exactly one "/" between non-empty fragments.

    >>> join_paths("https://host/api/v1/", "/service", "item/")
    'https://host/api/v1/service/item/'
    """
    joined = ""
    for part in parts:
        if not part:
            continue
        if not joined:
            joined = part
        elif joined.endswith("/") or part.startswith("/"):
            joined = joined.rstrip("/") + "/" + part.lstrip("/")
        else:
            joined = joined + "/" + part
    return joined
