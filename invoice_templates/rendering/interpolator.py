"""Variable substitution for template content strings.

Grammar::

    {{category.path}}                       scalar variable
    {{loop:category.path}} ... {{/loop}}    repeat the body once per list item
    {{@index}}                              1-based item number inside a loop

Inside a loop body a bare token resolves against the current item first and
falls back to the render context. Loop blocks found inside a loop body are
emitted verbatim, and only the first loop block of a string is expanded.
Everything here is pure: the same content and context always produce the same
text and the same warnings.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterator, Mapping, NamedTuple

from .models import (
    _MISSING,
    RenderContext,
    RenderWarning,
    UnresolvedVariableWarning,
    lookup_path,
)

_TOKEN_RE = re.compile(r"\{\{\s*(.*?)\s*\}\}", re.DOTALL)

LOOP_PREFIX = "loop:"
LOOP_END = "/loop"
INDEX_TOKEN = "@index"
CELL_SEPARATOR = "|"


class Token(NamedTuple):
    kind: str  # text | var | index | open | close
    raw: str
    value: str


class Expansion(NamedTuple):
    text: str
    items: list[str]
    warnings: list[RenderWarning]
    has_loop: bool
    # Per item, the body split on literal separators before values were filled in.
    cells: list[list[str]]


class ContentShape(NamedTuple):
    """Static view of a content string used by the validator."""

    variables: list[str]
    loop_paths: list[str]
    unterminated_loops: list[str]
    nested_loops: list[str]
    stray_closers: int


def iter_tokens(content: str) -> Iterator[Token]:
    position = 0
    for match in _TOKEN_RE.finditer(content):
        if match.start() > position:
            text = content[position : match.start()]
            yield Token("text", text, text)
        raw = match.group(0)
        expr = match.group(1)
        if not expr:
            yield Token("text", raw, raw)
        elif expr.startswith(LOOP_PREFIX):
            yield Token("open", raw, expr[len(LOOP_PREFIX) :].strip())
        elif expr == LOOP_END:
            yield Token("close", raw, expr)
        elif expr == INDEX_TOKEN:
            yield Token("index", raw, expr)
        else:
            yield Token("var", raw, expr)
        position = match.end()
    if position < len(content):
        text = content[position:]
        yield Token("text", text, text)


def _block_end(tokens: list[Token], start: int) -> int | None:
    depth = 0
    for index in range(start, len(tokens)):
        kind = tokens[index].kind
        if kind == "open":
            depth += 1
        elif kind == "close":
            depth -= 1
            if depth == 0:
                return index
    return None


def _raw(tokens: list[Token]) -> str:
    return "".join(token.raw for token in tokens)


class _Warnings:
    def __init__(self) -> None:
        self.items: list[RenderWarning] = []
        self._seen: set[RenderWarning] = set()

    def add(self, warning: RenderWarning) -> None:
        if warning not in self._seen:
            self._seen.add(warning)
            self.items.append(warning)


def _stringify(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float):
        return format(value, "g")
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (Mapping, list, tuple, set)):
        return None
    return str(value)


def _lookup(ctx: RenderContext | Mapping[str, Any], path: str) -> Any:
    if isinstance(ctx, RenderContext):
        return ctx.lookup(path)
    value = lookup_path(ctx, path)
    return None if value is _MISSING else value


def _resolve(
    path: str,
    ctx: RenderContext | Mapping[str, Any],
    item: Any,
    warnings: _Warnings,
) -> str:
    value: Any = _MISSING
    if item is not None:
        value = lookup_path(item, path)
    if value is _MISSING or value is None:
        value = _lookup(ctx, path)
    text = None if value is None else _stringify(value)
    if text is None:
        warnings.add(UnresolvedVariableWarning(path=path))
        return ""
    return text


class _Row:
    """Collects one loop item's output, cut into cells only at template text."""

    def __init__(self) -> None:
        self.parts: list[str] = []
        self.cells: list[list[str]] = [[]]

    def value(self, text: str) -> None:
        self.parts.append(text)
        self.cells[-1].append(text)

    def literal(self, text: str) -> None:
        self.parts.append(text)
        first, *rest = text.split(CELL_SEPARATOR)
        self.cells[-1].append(first)
        self.cells.extend([piece] for piece in rest)

    def text(self) -> str:
        return "".join(self.parts)

    def cell_texts(self) -> list[str]:
        return ["".join(cell) for cell in self.cells]


def _expand_loop(
    path: str,
    body: list[Token],
    ctx: RenderContext | Mapping[str, Any],
    warnings: _Warnings,
) -> list[_Row]:
    value = _lookup(ctx, path)
    if value is None:
        warnings.add(UnresolvedVariableWarning(path=path))
        return []
    if not isinstance(value, (list, tuple)):
        warnings.add(
            RenderWarning(
                code="invalid_loop_target",
                message=f"Loop target '{path}' is not a list",
                path=path,
            )
        )
        return []

    rows: list[_Row] = []
    for number, item in enumerate(value, start=1):
        row = _Row()
        cursor = 0
        while cursor < len(body):
            token = body[cursor]
            if token.kind == "open":
                end = _block_end(body, cursor)
                if end is not None:
                    warnings.add(
                        RenderWarning(
                            code="loop_nested",
                            message=f"Nested loop '{token.value}' is not expanded",
                            path=token.value,
                        )
                    )
                    row.value(_raw(body[cursor : end + 1]))
                    cursor = end + 1
                    continue
                row.value(token.raw)
            elif token.kind == "index":
                row.value(str(number))
            elif token.kind == "var":
                row.value(_resolve(token.value, ctx, item, warnings))
            elif token.kind == "text":
                row.literal(token.raw)
            else:
                row.value(token.raw)
            cursor += 1
        rows.append(row)
    return rows


def expand(content: str, ctx: RenderContext | Mapping[str, Any]) -> Expansion:
    """Interpolate ``content`` and keep the per-item output of its loop block."""

    if "{{" not in content:
        return Expansion(content, [], [], False, [])

    tokens = list(iter_tokens(content))
    warnings = _Warnings()
    output: list[str] = []
    rows: list[_Row] = []
    has_loop = False

    cursor = 0
    while cursor < len(tokens):
        token = tokens[cursor]
        if token.kind == "open":
            end = _block_end(tokens, cursor)
            if end is None:
                warnings.add(
                    RenderWarning(
                        code="malformed_loop",
                        message=f"Loop '{token.value}' is never closed",
                        path=token.value,
                    )
                )
                # Everything after an unmatched opener stays literal.
                output.append(_raw(tokens[cursor:]))
                break
            elif has_loop:
                warnings.add(
                    RenderWarning(
                        code="loop_ignored",
                        message=f"Only one loop per field is expanded; '{token.value}' was left as text",
                        path=token.value,
                    )
                )
                output.append(_raw(tokens[cursor : end + 1]))
                cursor = end
            else:
                has_loop = True
                rows = _expand_loop(token.value, tokens[cursor + 1 : end], ctx, warnings)
                output.append("".join(row.text() for row in rows))
                cursor = end
        elif token.kind == "close":
            warnings.add(
                RenderWarning(
                    code="malformed_loop",
                    message="Closing {{/loop}} without an open loop",
                    path=LOOP_END,
                )
            )
            output.append(token.raw)
        elif token.kind == "index":
            warnings.add(UnresolvedVariableWarning(path=INDEX_TOKEN))
        elif token.kind == "var":
            output.append(_resolve(token.value, ctx, None, warnings))
        else:
            output.append(token.raw)
        cursor += 1

    return Expansion(
        "".join(output),
        [row.text() for row in rows],
        warnings.items,
        has_loop,
        [row.cell_texts() for row in rows],
    )


def interpolate(
    content: str, ctx: RenderContext | Mapping[str, Any]
) -> tuple[str, list[RenderWarning]]:
    """Resolve every token in ``content`` against ``ctx``.

    Unresolvable variables become empty strings and are reported as
    :class:`UnresolvedVariableWarning`.
    """

    expansion = expand(content, ctx)
    return expansion.text, expansion.warnings


def scan(content: str) -> ContentShape:
    tokens = list(iter_tokens(content))
    variables: list[str] = []
    loop_paths: list[str] = []
    unterminated: list[str] = []
    nested: list[str] = []
    stray = 0

    cursor = 0
    while cursor < len(tokens):
        token = tokens[cursor]
        if token.kind == "open":
            end = _block_end(tokens, cursor)
            if end is None:
                unterminated.append(token.value)
            else:
                loop_paths.append(token.value)
                nested.extend(
                    inner.value for inner in tokens[cursor + 1 : end] if inner.kind == "open"
                )
                cursor = end
        elif token.kind == "close":
            stray += 1
        elif token.kind == "var":
            variables.append(token.value)
        cursor += 1

    return ContentShape(variables, loop_paths, unterminated, nested, stray)


__all__ = [
    "CELL_SEPARATOR",
    "ContentShape",
    "Expansion",
    "INDEX_TOKEN",
    "Token",
    "expand",
    "interpolate",
    "iter_tokens",
    "scan",
]
