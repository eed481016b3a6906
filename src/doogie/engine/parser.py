"""
Markdown to engine tree.

markdown-it-py does the CommonMark parsing; this module walks its token
stream and rebuilds it as engine nodes, one node per block and inline
construct.
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING

from markdown_it import MarkdownIt
from markdown_it.common.utils import unescapeAll
from markdown_it.token import Token

from ..kinds import DelimType, ListType, NodeKind
from .base import STATUS_OK, Handle

if TYPE_CHECKING:
    from .arena import ArenaEngine

logger = logging.getLogger(__name__)

# Container block tokens: "<name>_open" ... "<name>_close"
BLOCK_CONTAINERS = {
    "blockquote_open": NodeKind.BLOCK_QUOTE,
    "bullet_list_open": NodeKind.LIST,
    "ordered_list_open": NodeKind.LIST,
    "list_item_open": NodeKind.ITEM,
    "paragraph_open": NodeKind.PARAGRAPH,
    "heading_open": NodeKind.HEADING,
}

INLINE_CONTAINERS = {
    "em_open": NodeKind.EMPH,
    "strong_open": NodeKind.STRONG,
    "link_open": NodeKind.LINK,
}


@functools.lru_cache(maxsize=2)
def markdown(smart: bool = False) -> MarkdownIt:
    """A CommonMark parser, with typographic replacements when `smart`."""
    md = MarkdownIt("commonmark", {"typographer": smart})
    if smart:
        md.enable(["replacements", "smartquotes"])
    return md


def build_tree(engine: ArenaEngine, text: str, smart: bool = False) -> Handle:
    """Parse `text` and return the handle of a new, unattached Document."""
    tokens = markdown(smart).parse(text)
    return _TreeBuilder(engine, text.splitlines()).build(tokens)


class _TreeBuilder:
    def __init__(self, engine: ArenaEngine, lines: list[str]):
        self.engine = engine
        self.lines = lines

    def build(self, tokens: list[Token]) -> Handle:
        root = self.engine.allocate(NodeKind.DOCUMENT)
        self.engine.set_position(root, 1, 1)
        stack: list[Handle] = [root]
        lists: list[Handle] = []

        for token in tokens:
            if token.nesting == -1:
                stack.pop()
                if token.type in ("bullet_list_close", "ordered_list_close"):
                    lists.pop()
                continue

            parent = stack[-1]
            line, column = self._position(token)

            if token.nesting == 1:
                kind = BLOCK_CONTAINERS.get(token.type)
                if kind is None:
                    logger.warning("unsupported block token %r, children attach to its parent", token.type)
                    stack.append(parent)
                    continue
                node = self._add(parent, kind, line, column)
                if kind == NodeKind.LIST:
                    self._setup_list(node, token)
                    lists.append(node)
                elif kind == NodeKind.HEADING:
                    self.engine.set_heading_level(node, int(token.tag[1:]))
                elif kind == NodeKind.PARAGRAPH and token.hidden and lists:
                    # markdown-it hides the paragraphs of tight list items
                    self.engine.set_list_tight(lists[-1], True)
                stack.append(node)
            elif token.type == "inline":
                self._inline(parent, token.children or [], line)
            elif token.type in ("fence", "code_block"):
                node = self._add(parent, NodeKind.CODE_BLOCK, line, column)
                self.engine.set_literal(node, token.content.encode("utf-8"))
                if token.type == "fence":
                    info = unescapeAll(token.info).strip()
                    self.engine.set_fence_info(node, info.encode("utf-8"))
            elif token.type == "html_block":
                node = self._add(parent, NodeKind.HTML_BLOCK, line, column)
                self.engine.set_literal(node, token.content.encode("utf-8"))
            elif token.type == "hr":
                self._add(parent, NodeKind.THEMATIC_BREAK, line, column)
            else:
                logger.warning("skipping unsupported block token %r", token.type)

        return root

    def _setup_list(self, node: Handle, token: Token) -> None:
        if token.type == "ordered_list_open":
            self.engine.set_list_kind(node, ListType.ORDERED)
            delim = DelimType.PAREN if token.markup == ")" else DelimType.PERIOD
            self.engine.set_list_delimiter(node, delim)
            start = token.attrGet("start")
            self.engine.set_list_start(node, int(start) if start is not None else 1)
        else:
            self.engine.set_list_kind(node, ListType.BULLET)

    def _position(self, token: Token) -> tuple[int, int]:
        if not token.map:
            return 0, 0
        index = token.map[0]
        if index >= len(self.lines):
            return index + 1, 1
        source = self.lines[index]
        return index + 1, len(source) - len(source.lstrip()) + 1

    def _add(self, parent: Handle, kind: NodeKind, line: int, column: int) -> Handle:
        node = self.engine.allocate(kind)
        self.engine.set_position(node, line, column)
        if self.engine.append_child(parent, node) != STATUS_OK:
            raise ValueError(f"parser produced a {kind.name} inside node {parent}")
        return node

    def _text(self, parent: Handle, kind: NodeKind, content: str, line: int) -> Handle:
        node = self._add(parent, kind, line, 0)
        self.engine.set_literal(node, content.encode("utf-8"))
        return node

    def _inline(self, block: Handle, tokens: list[Token], line: int) -> None:
        stack: list[Handle] = [block]
        for token in tokens:
            parent = stack[-1]
            kind = INLINE_CONTAINERS.get(token.type)

            if kind is not None:
                node = self._add(parent, kind, line, 0)
                if kind == NodeKind.LINK:
                    self._set_link(node, token, "href")
                stack.append(node)
            elif token.nesting == -1:
                stack.pop()
            elif token.nesting == 1:
                logger.warning("unsupported inline token %r, children attach to its parent", token.type)
                stack.append(parent)
            elif token.type in ("text", "text_special"):
                if token.content:
                    self._text(parent, NodeKind.TEXT, token.content, line)
            elif token.type == "code_inline":
                self._text(parent, NodeKind.CODE, token.content, line)
            elif token.type == "html_inline":
                self._text(parent, NodeKind.HTML_INLINE, token.content, line)
            elif token.type == "softbreak":
                self._add(parent, NodeKind.SOFTBREAK, line, 0)
            elif token.type == "hardbreak":
                self._add(parent, NodeKind.LINEBREAK, line, 0)
            elif token.type == "image":
                node = self._add(parent, NodeKind.IMAGE, line, 0)
                self._set_link(node, token, "src")
                self._inline(node, token.children or [], line)
            elif token.content:
                logger.warning("unsupported inline token %r kept as text", token.type)
                self._text(parent, NodeKind.TEXT, token.content, line)

    def _set_link(self, node: Handle, token: Token, attr: str) -> None:
        url = token.attrGet(attr) or ""
        title = token.attrGet("title") or ""
        self.engine.set_url(node, str(url).encode("utf-8"))
        self.engine.set_title(node, str(title).encode("utf-8"))
