"""Rustdoc HTML -> Markdown conversion.

The converter walks the BeautifulSoup tree of a rustdoc page and renders it as
plain Markdown for coding agents: hyperlinks are reduced to their text, UI
chrome is dropped through the skip filter, and anything it does not recognise
is rendered as a transparent container so nested content is never lost.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from cargo_txt.errors import SelectorNotFound
from cargo_txt.skip_filter import DEFAULT_SKIP_RULES, SkipRules, should_skip

INDENT_WIDTH = 2

_HEADINGS = {f"h{level}": level for level in range(1, 7)}
_LIST_TAGS = {"ul", "ol", "dl"}
_INLINE_TAGS = {
    "a", "abbr", "b", "cite", "code", "del", "em", "i", "ins", "kbd", "mark",
    "q", "s", "samp", "small", "span", "strong", "sub", "sup", "time", "u", "var",
}
_TABLE_SECTIONS = {"thead", "tbody", "tfoot"}

# rustdoc leaves unresolved intra-doc links as `[text][path::to::item]`
_REFERENCE_LINK_RE = re.compile(r"\[([^\[\]]*)\]\s*\[[^\[\]]*\]")
_BACKTICK_RUN_RE = re.compile(r"`+")


@dataclass
class ConversionContext:
    rules: SkipRules = DEFAULT_SKIP_RULES
    indent_width: int = INDENT_WIDTH
    depth: int = 0
    blocks: list[str] = field(default_factory=list)

    @property
    def indent(self) -> str:
        return " " * (self.depth * self.indent_width)

    @contextmanager
    def deeper(self) -> Iterator[None]:
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1

    def child(self) -> "ConversionContext":
        return ConversionContext(rules=self.rules, indent_width=self.indent_width, depth=self.depth)

    def emit(self, block: str) -> None:
        block = block.strip("\n")
        if block.strip():
            self.blocks.append(block)

    def render(self) -> str:
        if not self.blocks:
            return ""
        return "\n\n".join(self.blocks) + "\n\n"


def _clean_text(text: str, *, in_code: bool = False) -> str:
    text = text.replace("\xa0", " ").replace("&nbsp;", " ")
    if not in_code:
        text = _REFERENCE_LINK_RE.sub(r"\1", text)
    return text


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _longest_backtick_run(text: str) -> int:
    return max((len(run) for run in _BACKTICK_RUN_RE.findall(text)), default=0)


def _wrap(inner: str, marker: str) -> str:
    core = _collapse(inner)
    if not core:
        return " " if inner.isspace() else ""
    lead = " " if inner[0].isspace() else ""
    trail = " " if inner[-1].isspace() else ""
    return f"{lead}{marker}{core}{marker}{trail}"


def _code_span(inner: str) -> str:
    core = _collapse(inner)
    if "`" not in core:
        return _wrap(inner, "`")
    fence = "`" * (_longest_backtick_run(core) + 1)
    lead = " " if inner[0].isspace() else ""
    trail = " " if inner[-1].isspace() else ""
    return f"{lead}{fence} {core} {fence}{trail}"


def _is_content(node) -> bool:
    return not isinstance(node, PreformattedString)


# Inline rendering. Results are raw; callers collapse whitespace.


def _inline(node, ctx: ConversionContext, *, in_code: bool = False) -> str:
    if not _is_content(node):
        return ""
    if isinstance(node, NavigableString):
        return _clean_text(str(node), in_code=in_code)
    if should_skip(node, ctx.rules):
        return ""

    name = node.name
    if name == "br":
        return " "
    if name == "pre":
        return _code_span(_raw_text(node, ctx))
    if name == "code":
        inner = _inline_children(node, ctx, in_code=True)
        return inner if in_code else _code_span(inner)
    if name in ("strong", "b"):
        return _wrap(_inline_children(node, ctx, in_code=in_code), "**")
    if name in ("em", "i"):
        return _wrap(_inline_children(node, ctx, in_code=in_code), "*")
    if name in _INLINE_TAGS:
        return _inline_children(node, ctx, in_code=in_code)
    # block element inside inline text: keep word boundaries
    return " " + _inline_children(node, ctx, in_code=in_code) + " "


def _inline_children(node: Tag, ctx: ConversionContext, *, in_code: bool = False) -> str:
    return "".join(_inline(child, ctx, in_code=in_code) for child in node.children)


def _inline_text(nodes: Iterable, ctx: ConversionContext) -> str:
    return _collapse("".join(_inline(node, ctx) for node in nodes))


def _raw_text(node: Tag, ctx: ConversionContext) -> str:
    parts: list[str] = []
    for child in node.children:
        if not _is_content(child):
            continue
        if isinstance(child, NavigableString):
            parts.append(str(child).replace("\xa0", " "))
        elif should_skip(child, ctx.rules):
            continue
        elif child.name == "br":
            parts.append("\n")
        else:
            parts.append(_raw_text(child, ctx))
    return "".join(parts)


# Block rendering.


def _fence(code: str) -> str:
    code = code.strip("\n")
    if not code.strip():
        return ""
    fence = "`" * max(3, _longest_backtick_run(code) + 1)
    return f"{fence}\n{code}\n{fence}"


def _int_attr(node: Tag, name: str, default: int) -> int:
    try:
        return int(str(node.get(name, "")).strip())
    except ValueError:
        return default


def _item_lines(item, ctx: ConversionContext, marker: str, indent: str) -> list[str]:
    """Render one list entry; ``ctx.depth`` must already be one past the entry's level."""
    if isinstance(item, NavigableString):
        text = _collapse(_inline(item, ctx))
        return [f"{indent}{marker}{text}"] if text else []

    nested: list[Tag] = []
    run: list = []
    lines: list[str] = []

    def flush() -> None:
        text = _inline_text(run, ctx)
        run.clear()
        if text:
            # text after a code block continues the entry under its bullet
            lines.append(f"{ctx.indent}{text}" if lines else f"{indent}{marker}{text}")

    for child in item.children:
        if isinstance(child, Tag) and child.name in _LIST_TAGS:
            if not should_skip(child, ctx.rules):
                nested.append(child)
        elif _holds_code_block(child) and not should_skip(child, ctx.rules):
            flush()
            block = _indented_block(child, ctx)
            if block and not lines:
                lines.append(f"{indent}{marker}".rstrip())
            lines.extend(block)
        else:
            run.append(child)
    flush()

    for sub in nested:
        lines.extend(_nested_list_lines(sub, ctx))
    return lines


def _holds_code_block(node) -> bool:
    if not isinstance(node, Tag):
        return False
    return node.name == "pre" or (node.name not in _INLINE_TAGS and node.find("pre") is not None)


def _indented_block(node: Tag, ctx: ConversionContext) -> list[str]:
    """Render ``node`` as blocks, indented to sit under the current list entry."""
    inner = ConversionContext(rules=ctx.rules, indent_width=ctx.indent_width)
    _convert_sequence([node], inner)
    body = inner.render().strip("\n")
    if not body:
        return []
    return [f"{ctx.indent}{line}" if line else "" for line in body.split("\n")]


def _list_lines(node: Tag, ctx: ConversionContext) -> list[str]:
    ordered = node.name == "ol"
    number = _int_attr(node, "start", 1)
    indent = ctx.indent
    lines: list[str] = []
    with ctx.deeper():
        for child in node.children:
            if isinstance(child, Tag):
                if should_skip(child, ctx.rules):
                    continue
            elif not _is_content(child) or not child.strip():
                continue

            if ordered:
                if isinstance(child, Tag):
                    number = _int_attr(child, "value", number)
                marker = f"{number}. "
                number += 1
            else:
                marker = "- "
            lines.extend(_item_lines(child, ctx, marker, indent))
    return lines


def _definition_entries(node: Tag, ctx: ConversionContext) -> Iterator[Tag]:
    for child in node.children:
        if not isinstance(child, Tag) or should_skip(child, ctx.rules):
            continue
        if child.name == "div":
            yield from _definition_entries(child, ctx)
        else:
            yield child


def _definition_lines(node: Tag, ctx: ConversionContext) -> list[str]:
    indent = ctx.indent
    lines: list[str] = []
    with ctx.deeper():
        description_indent = ctx.indent
        for entry in _definition_entries(node, ctx):
            if entry.name == "dt":
                term = _inline_text(entry.children, ctx)
                if term:
                    lines.append(f"{indent}- **{term}**")
            elif entry.name == "dd":
                with ctx.deeper():
                    lines.extend(_item_lines(entry, ctx, "- ", description_indent))
    return lines


def _nested_list_lines(node: Tag, ctx: ConversionContext) -> list[str]:
    if node.name == "dl":
        return _definition_lines(node, ctx)
    return _list_lines(node, ctx)


def _table_rows(node: Tag, ctx: ConversionContext) -> Iterator[Tag]:
    for child in node.children:
        if not isinstance(child, Tag) or should_skip(child, ctx.rules):
            continue
        if child.name == "tr":
            yield child
        elif child.name in _TABLE_SECTIONS:
            yield from _table_rows(child, ctx)


def _table(node: Tag, ctx: ConversionContext) -> str:
    rows: list[list[str]] = []
    for tr in _table_rows(node, ctx):
        cells = [
            _inline_text(cell.children, ctx).replace("|", "\\|")
            for cell in tr.find_all(["th", "td"], recursive=False)
            if not should_skip(cell, ctx.rules)
        ]
        if any(cells):
            rows.append(cells)
    if not rows:
        return ""

    width = max(len(row) for row in rows)
    rows = [row + [""] * (width - len(row)) for row in rows]
    lines = [
        "| " + " | ".join(rows[0]) + " |",
        "| " + " | ".join(["---"] * width) + " |",
    ]
    for row in rows[1:]:
        lines.append("| " + " | ".join(row) + " |")
    return "\n".join(lines)


def _blockquote(node: Tag, ctx: ConversionContext) -> str:
    inner = ctx.child()
    _convert_sequence(node.children, inner)
    body = inner.render().strip("\n")
    if not body:
        return ""
    return "\n".join(f"> {line}" if line else ">" for line in body.split("\n"))


def _convert_block(node: Tag, ctx: ConversionContext) -> None:
    name = node.name
    if name in _HEADINGS:
        text = _inline_text(node.children, ctx)
        if text:
            ctx.emit("#" * _HEADINGS[name] + " " + text)
    elif name == "p":
        ctx.emit(_inline_text(node.children, ctx))
    elif name == "pre":
        ctx.emit(_fence(_raw_text(node, ctx)))
    elif name in ("ul", "ol", "dl"):
        ctx.emit("\n".join(_nested_list_lines(node, ctx)))
    elif name == "li":
        indent = ctx.indent
        with ctx.deeper():
            ctx.emit("\n".join(_item_lines(node, ctx, "- ", indent)))
    elif name == "blockquote":
        ctx.emit(_blockquote(node, ctx))
    elif name == "table":
        ctx.emit(_table(node, ctx))
    else:
        _convert_sequence(node.children, ctx)


def _convert_sequence(nodes: Iterable, ctx: ConversionContext) -> None:
    run: list = []

    def flush() -> None:
        if run:
            ctx.emit(_inline_text(run, ctx))
            run.clear()

    for node in nodes:
        if not _is_content(node):
            continue
        if isinstance(node, NavigableString) or node.name in _INLINE_TAGS:
            run.append(node)
            continue
        if should_skip(node, ctx.rules):
            continue
        flush()
        if node.name != "br":
            _convert_block(node, ctx)
    flush()


def convert_node(
    node,
    rules: SkipRules = DEFAULT_SKIP_RULES,
    indent_width: int = INDENT_WIDTH,
) -> str:
    """Render a parsed node (and its subtree) as Markdown.

    Never raises on unexpected markup: unknown elements are rendered as
    transparent containers. The result is either empty or ends with a single
    blank line.
    """
    ctx = ConversionContext(rules=rules, indent_width=indent_width)
    _convert_sequence([node], ctx)
    return ctx.render()


def html_to_markdown(html: str, rules: SkipRules = DEFAULT_SKIP_RULES) -> str:
    """Convert the ``<main>`` element of a rustdoc page.

    Raises ``SelectorNotFound`` when the page has no ``<main>``, which means the
    input is not rustdoc output (or the layout changed upstream).
    """
    soup = BeautifulSoup(html, "html.parser")
    main = soup.find("main")
    if main is None:
        raise SelectorNotFound("main")
    return convert_node(main, rules)
