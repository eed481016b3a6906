"""
Renderers for engine trees.

CommonMark text comes from mdformat: the subtree is rebuilt as the
markdown-it token stream the parser would have produced for it, and
mdformat's renderer turns that back into Markdown. XML follows the
CommonMark DTD.

Both renderers read the tree only through the public engine methods, so
they work on any subtree, attached or not.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import TYPE_CHECKING
from xml.sax.saxutils import escape

from markdown_it.token import Token
from mdformat.renderer import MDRenderer

from ..config import RenderConfig
from ..kinds import DelimType, ListType, NodeKind, is_inline
from .base import Handle

if TYPE_CHECKING:
    from .base import Engine

XML_NAMESPACE = "http://commonmark.org/xml/1.0"

SCHEME_PATTERN = re.compile(r"[A-Za-z][A-Za-z0-9+.-]{1,31}:[^\s<>]*$")

# Containers that have no markup of their own; their children are rendered in place
TRANSPARENT_BLOCKS = frozenset({NodeKind.DOCUMENT, NodeKind.ITEM, NodeKind.CUSTOM_BLOCK})


def _decode(data: bytes | None) -> str:
    return (data or b"").decode("utf-8", errors="replace")


def _children(engine: Engine, handle: Handle) -> Iterator[Handle]:
    child = engine.first_child(handle)
    while child is not None:
        yield child
        child = engine.next(child)


class CommonMarkRenderer:
    """Renders a subtree back to CommonMark text."""

    def __init__(self, engine: Engine, options: RenderConfig):
        self.engine = engine
        self.options = options

    def render(self, handle: Handle) -> str:
        kind = self.engine.get_kind(handle)
        inline = is_inline(kind)
        tokens: list[Token] = []
        if inline:
            self._paragraph(tokens, [handle], hidden=False)
        elif kind in TRANSPARENT_BLOCKS:
            self._blocks(tokens, handle, tight=False)
        else:
            self._block(tokens, handle, tight=False)

        options = {
            "parser_extension": [],
            "codeformatters": {},
            "mdformat": {"number": self.options.number, "wrap": self.options.wrap},
        }
        # an inline subtree renders as bare text, without the trailing newline
        return MDRenderer().render(tokens, options, {}, finalize=not inline)

    # -- blocks -------------------------------------------------------------

    def _blocks(self, out: list[Token], handle: Handle, tight: bool) -> None:
        run: list[Handle] = []
        for child in _children(self.engine, handle):
            if is_inline(self.engine.get_kind(child)):
                # inline content directly under a custom block
                run.append(child)
                continue
            if run:
                self._paragraph(out, run, hidden=tight)
                run = []
            self._block(out, child, tight)
        if run:
            self._paragraph(out, run, hidden=tight)

    def _block(self, out: list[Token], handle: Handle, tight: bool) -> None:
        kind = self.engine.get_kind(handle)

        if kind in TRANSPARENT_BLOCKS:
            self._blocks(out, handle, tight)
        elif kind == NodeKind.BLOCK_QUOTE:
            out.append(Token("blockquote_open", "blockquote", 1, markup=">", block=True))
            self._blocks(out, handle, tight=False)
            out.append(Token("blockquote_close", "blockquote", -1, markup=">", block=True))
        elif kind == NodeKind.LIST:
            self._list(out, handle)
        elif kind == NodeKind.PARAGRAPH:
            self._paragraph(out, list(_children(self.engine, handle)), hidden=tight)
        elif kind == NodeKind.HEADING:
            level = self.engine.get_heading_level(handle)
            tag, markup = f"h{level}", "#" * level
            out.append(Token("heading_open", tag, 1, markup=markup, block=True))
            out.append(self._inline_token(list(_children(self.engine, handle))))
            out.append(Token("heading_close", tag, -1, markup=markup, block=True))
        elif kind == NodeKind.THEMATIC_BREAK:
            out.append(Token("hr", "hr", 0, markup="---", block=True))
        elif kind == NodeKind.CODE_BLOCK:
            content = _decode(self.engine.get_literal(handle))
            if content and not content.endswith("\n"):
                content += "\n"
            info = _decode(self.engine.get_fence_info(handle))
            out.append(Token("fence", "code", 0, content=content, info=info, markup="```", block=True))
        elif kind == NodeKind.HTML_BLOCK:
            out.append(Token("html_block", "", 0, content=_decode(self.engine.get_literal(handle)), block=True))

    def _list(self, out: list[Token], handle: Handle) -> None:
        tight = self.engine.get_list_tight(handle)
        if self.engine.get_list_kind(handle) == ListType.ORDERED:
            delim = ")" if self.engine.get_list_delimiter(handle) == DelimType.PAREN else "."
            name, tag = "ordered_list", "ol"
            attrs = {"start": self.engine.get_list_start(handle)}
        else:
            delim, name, tag, attrs = "-", "bullet_list", "ul", {}

        out.append(Token(f"{name}_open", tag, 1, attrs=attrs, markup=delim, block=True))
        for item in _children(self.engine, handle):
            out.append(Token("list_item_open", "li", 1, markup=delim, block=True))
            self._blocks(out, item, tight)
            out.append(Token("list_item_close", "li", -1, markup=delim, block=True))
        out.append(Token(f"{name}_close", tag, -1, markup=delim, block=True))

    def _paragraph(self, out: list[Token], inlines: list[Handle], hidden: bool) -> None:
        # markdown-it marks the paragraphs of tight list items hidden
        out.append(Token("paragraph_open", "p", 1, hidden=hidden, block=True))
        out.append(self._inline_token(inlines))
        out.append(Token("paragraph_close", "p", -1, hidden=hidden, block=True))

    # -- inlines ------------------------------------------------------------

    def _inline_token(self, handles: list[Handle]) -> Token:
        children: list[Token] = []
        for handle in handles:
            self._inline(children, handle)
        return Token("inline", "", 0, children=children, block=True)

    def _inline_children(self, out: list[Token], handle: Handle) -> None:
        for child in _children(self.engine, handle):
            self._inline(out, child)

    def _inline(self, out: list[Token], handle: Handle) -> None:
        kind = self.engine.get_kind(handle)

        if kind == NodeKind.TEXT:
            out.append(Token("text", "", 0, content=_decode(self.engine.get_literal(handle))))
        elif kind == NodeKind.SOFTBREAK:
            if self.options.hardbreaks:
                out.append(Token("hardbreak", "br", 0))
            else:
                out.append(Token("softbreak", "br", 0))
        elif kind == NodeKind.LINEBREAK:
            out.append(Token("hardbreak", "br", 0))
        elif kind == NodeKind.CODE:
            out.append(Token("code_inline", "code", 0, content=_decode(self.engine.get_literal(handle)), markup="`"))
        elif kind == NodeKind.HTML_INLINE:
            out.append(Token("html_inline", "", 0, content=_decode(self.engine.get_literal(handle))))
        elif kind == NodeKind.EMPH:
            out.append(Token("em_open", "em", 1, markup="*"))
            self._inline_children(out, handle)
            out.append(Token("em_close", "em", -1, markup="*"))
        elif kind == NodeKind.STRONG:
            out.append(Token("strong_open", "strong", 1, markup="**"))
            self._inline_children(out, handle)
            out.append(Token("strong_close", "strong", -1, markup="**"))
        elif kind == NodeKind.LINK:
            self._link(out, handle)
        elif kind == NodeKind.IMAGE:
            self._image(out, handle)
        elif kind == NodeKind.CUSTOM_INLINE:
            self._inline_children(out, handle)

    def _link_attrs(self, handle: Handle, url_attr: str) -> dict[str, str]:
        attrs = {url_attr: _decode(self.engine.get_url(handle))}
        title = _decode(self.engine.get_title(handle))
        if title:
            attrs["title"] = title
        return attrs

    def _is_autolink(self, handle: Handle, url: str) -> bool:
        """A link whose only child is Text spelling out its url."""
        if not url or self.engine.get_title(handle):
            return False
        only = self.engine.first_child(handle)
        if only is None or self.engine.next(only) is not None:
            return False
        if self.engine.get_kind(only) != NodeKind.TEXT:
            return False
        text = _decode(self.engine.get_literal(only))
        return bool(SCHEME_PATTERN.match(url)) and url in (text, f"mailto:{text}")

    def _link(self, out: list[Token], handle: Handle) -> None:
        attrs = self._link_attrs(handle, "href")
        if self._is_autolink(handle, attrs["href"]):
            out.append(Token("link_open", "a", 1, attrs=attrs, markup="autolink", info="auto"))
        else:
            out.append(Token("link_open", "a", 1, attrs=attrs))
        self._inline_children(out, handle)
        out.append(Token("link_close", "a", -1))

    def _image(self, out: list[Token], handle: Handle) -> None:
        children: list[Token] = []
        self._inline_children(children, handle)
        alt = "".join(t.content for t in children if t.type == "text")
        attrs = {"alt": "", **self._link_attrs(handle, "src")}
        out.append(Token("image", "img", 0, attrs=attrs, children=children, content=alt))


def _attr(value: str) -> str:
    return escape(value, {'"': "&quot;"})


class XmlRenderer:
    """Renders a subtree as CommonMark XML."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def render(self, handle: Handle) -> str:
        out = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<!DOCTYPE document SYSTEM "CommonMark.dtd">',
        ]
        self._node(handle, 0, out)
        return "\n".join(out) + "\n"

    def _node(self, handle: Handle, depth: int, out: list[str]) -> None:
        kind = self.engine.get_kind(handle)
        name = _decode(self.engine.get_kind_name(handle))
        attrs = self._attrs(handle, kind)
        indent = "  " * depth

        literal = self.engine.get_literal(handle)
        if literal is not None:
            out.append(f'{indent}<{name}{attrs} xml:space="preserve">{escape(_decode(literal))}</{name}>')
            return

        if self.engine.first_child(handle) is None:
            out.append(f"{indent}<{name}{attrs} />")
            return

        out.append(f"{indent}<{name}{attrs}>")
        for child in _children(self.engine, handle):
            self._node(child, depth + 1, out)
        out.append(f"{indent}</{name}>")

    def _attrs(self, handle: Handle, kind: int) -> str:
        attrs: list[tuple[str, str]] = []
        if kind == NodeKind.DOCUMENT:
            attrs.append(("xmlns", XML_NAMESPACE))
        elif kind == NodeKind.LIST:
            if self.engine.get_list_kind(handle) == ListType.ORDERED:
                attrs.append(("type", "ordered"))
                attrs.append(("start", str(self.engine.get_list_start(handle))))
                delim = "paren" if self.engine.get_list_delimiter(handle) == DelimType.PAREN else "period"
                attrs.append(("delim", delim))
            else:
                attrs.append(("type", "bullet"))
            attrs.append(("tight", "true" if self.engine.get_list_tight(handle) else "false"))
        elif kind == NodeKind.HEADING:
            attrs.append(("level", str(self.engine.get_heading_level(handle))))
        elif kind == NodeKind.CODE_BLOCK:
            info = _decode(self.engine.get_fence_info(handle))
            if info:
                attrs.append(("info", info))
        elif kind in (NodeKind.LINK, NodeKind.IMAGE):
            attrs.append(("destination", _decode(self.engine.get_url(handle))))
            attrs.append(("title", _decode(self.engine.get_title(handle))))
        return "".join(f' {key}="{_attr(value)}"' for key, value in attrs)
