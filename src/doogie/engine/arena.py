"""
Arena-backed engine.

Nodes live as records in a dict keyed by handle. Handles are issued from a
counter and never reused, so a freed handle stays recognisably dead for the
lifetime of the engine.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass

from ..config import Config, get_config
from ..errors import ResourceUnavailableError
from ..kinds import DelimType, EventType, ListType, NodeKind, is_block, is_inline, is_leaf
from . import parser, render
from .base import STATUS_OK, STATUS_REJECTED, Cursor, Engine, Handle

logger = logging.getLogger(__name__)

LITERAL_KINDS = frozenset({
    NodeKind.CODE_BLOCK,
    NodeKind.HTML_BLOCK,
    NodeKind.TEXT,
    NodeKind.CODE,
    NodeKind.HTML_INLINE,
})

_LINK_KINDS = frozenset({NodeKind.LINK, NodeKind.IMAGE})

_INLINE_CONTAINERS = frozenset({
    NodeKind.PARAGRAPH,
    NodeKind.HEADING,
    NodeKind.EMPH,
    NodeKind.STRONG,
    NodeKind.LINK,
    NodeKind.IMAGE,
    NodeKind.CUSTOM_INLINE,
})

_KIND_NAMES = {
    NodeKind.DOCUMENT: b"document",
    NodeKind.BLOCK_QUOTE: b"block_quote",
    NodeKind.LIST: b"list",
    NodeKind.ITEM: b"item",
    NodeKind.CODE_BLOCK: b"code_block",
    NodeKind.HTML_BLOCK: b"html_block",
    NodeKind.CUSTOM_BLOCK: b"custom_block",
    NodeKind.PARAGRAPH: b"paragraph",
    NodeKind.HEADING: b"heading",
    NodeKind.THEMATIC_BREAK: b"thematic_break",
    NodeKind.TEXT: b"text",
    NodeKind.SOFTBREAK: b"softbreak",
    NodeKind.LINEBREAK: b"linebreak",
    NodeKind.CODE: b"code",
    NodeKind.HTML_INLINE: b"html_inline",
    NodeKind.CUSTOM_INLINE: b"custom_inline",
    NodeKind.EMPH: b"emph",
    NodeKind.STRONG: b"strong",
    NodeKind.LINK: b"link",
    NodeKind.IMAGE: b"image",
}


@dataclass
class _Record:
    """One node: its kind, its links and its kind-specific fields."""
    kind: int
    parent: Handle | None = None
    prev: Handle | None = None
    next: Handle | None = None
    first_child: Handle | None = None
    last_child: Handle | None = None
    literal: bytes | None = None
    fence_info: bytes | None = None
    url: bytes | None = None
    title: bytes | None = None
    heading_level: int = 0
    list_type: int = ListType.NONE
    list_delim: int = DelimType.NONE
    list_start: int = 0
    list_tight: bool = False
    start_line: int = 0
    start_column: int = 0


@dataclass
class _Cursor:
    root: Handle
    next_event: int
    next_node: Handle | None
    event: int = EventType.NONE
    node: Handle | None = None


class ArenaEngine(Engine):
    """In-process engine: markdown-it-py for parsing, records in a dict for nodes."""

    def __init__(self, config: Config | None = None):
        self._config = config or get_config()
        self._records: dict[Handle, _Record] = {}
        self._cursors: dict[Cursor, _Cursor] = {}
        self._handles = itertools.count(1)
        self._cursor_ids = itertools.count(1)

    @property
    def config(self) -> Config:
        return self._config

    def __len__(self) -> int:
        """Number of live nodes."""
        return len(self._records)

    def _rec(self, handle: Handle) -> _Record:
        try:
            return self._records[handle]
        except KeyError:
            raise ResourceUnavailableError(f"node {handle} has been freed") from None

    # -- lifetime -----------------------------------------------------------

    def allocate(self, kind: int) -> Handle:
        if not NodeKind.DOCUMENT <= kind <= NodeKind.IMAGE:
            raise ValueError(f"cannot allocate node of kind {kind}")
        rec = _Record(kind=kind)
        if kind in LITERAL_KINDS:
            rec.literal = b""
        if kind == NodeKind.CODE_BLOCK:
            rec.fence_info = b""
        elif kind == NodeKind.HEADING:
            rec.heading_level = 1
        elif kind == NodeKind.LIST:
            rec.list_type = ListType.BULLET
        elif kind in _LINK_KINDS:
            rec.url = b""
            rec.title = b""
        handle = Handle(next(self._handles))
        self._records[handle] = rec
        return handle

    def parse(self, data: bytes) -> Handle:
        text = data.decode("utf-8", errors="replace")
        root = parser.build_tree(self, text, smart=self._config.parse.smart)
        logger.debug("parsed %d bytes into tree %d (%d live nodes)", len(data), root, len(self._records))
        return root

    def free(self, handle: Handle) -> None:
        self.unlink(handle)
        stack = [handle]
        while stack:
            rec = self._records.pop(stack.pop())
            child = rec.first_child
            while child is not None:
                stack.append(child)
                child = self._records[child].next

    def is_valid(self, handle: Handle) -> bool:
        return handle in self._records

    def set_position(self, handle: Handle, line: int, column: int) -> None:
        """Record where the node starts in its source document."""
        rec = self._rec(handle)
        rec.start_line = line
        rec.start_column = column

    # -- fields -------------------------------------------------------------

    def get_kind(self, handle: Handle) -> int:
        return self._rec(handle).kind

    def get_kind_name(self, handle: Handle) -> bytes | None:
        return _KIND_NAMES.get(self._rec(handle).kind, b"<unknown>")

    def get_literal(self, handle: Handle) -> bytes | None:
        return self._rec(handle).literal

    def set_literal(self, handle: Handle, text: bytes) -> int:
        rec = self._rec(handle)
        if rec.kind not in LITERAL_KINDS:
            return STATUS_REJECTED
        rec.literal = bytes(text)
        return STATUS_OK

    def get_start_line(self, handle: Handle) -> int:
        return self._rec(handle).start_line

    def get_start_column(self, handle: Handle) -> int:
        return self._rec(handle).start_column

    def get_list_kind(self, handle: Handle) -> int:
        return self._rec(handle).list_type

    def set_list_kind(self, handle: Handle, list_kind: int) -> int:
        rec = self._rec(handle)
        if rec.kind != NodeKind.LIST or list_kind not in (ListType.BULLET, ListType.ORDERED):
            return STATUS_REJECTED
        rec.list_type = list_kind
        return STATUS_OK

    def get_list_delimiter(self, handle: Handle) -> int:
        return self._rec(handle).list_delim

    def set_list_delimiter(self, handle: Handle, delimiter: int) -> int:
        rec = self._rec(handle)
        if rec.kind != NodeKind.LIST or delimiter not in tuple(DelimType):
            return STATUS_REJECTED
        rec.list_delim = delimiter
        return STATUS_OK

    def get_list_start(self, handle: Handle) -> int:
        return self._rec(handle).list_start

    def set_list_start(self, handle: Handle, start: int) -> int:
        rec = self._rec(handle)
        if rec.kind != NodeKind.LIST or start < 0:
            return STATUS_REJECTED
        rec.list_start = start
        return STATUS_OK

    def get_list_tight(self, handle: Handle) -> bool:
        return self._rec(handle).list_tight

    def set_list_tight(self, handle: Handle, tight: bool) -> int:
        rec = self._rec(handle)
        if rec.kind != NodeKind.LIST:
            return STATUS_REJECTED
        rec.list_tight = bool(tight)
        return STATUS_OK

    def get_heading_level(self, handle: Handle) -> int:
        return self._rec(handle).heading_level

    def set_heading_level(self, handle: Handle, level: int) -> int:
        rec = self._rec(handle)
        if rec.kind != NodeKind.HEADING or not 1 <= level <= 6:
            return STATUS_REJECTED
        rec.heading_level = level
        return STATUS_OK

    def get_url(self, handle: Handle) -> bytes | None:
        return self._rec(handle).url

    def set_url(self, handle: Handle, url: bytes) -> int:
        rec = self._rec(handle)
        if rec.kind not in _LINK_KINDS:
            return STATUS_REJECTED
        rec.url = bytes(url)
        return STATUS_OK

    def get_title(self, handle: Handle) -> bytes | None:
        return self._rec(handle).title

    def set_title(self, handle: Handle, title: bytes) -> int:
        rec = self._rec(handle)
        if rec.kind not in _LINK_KINDS:
            return STATUS_REJECTED
        rec.title = bytes(title)
        return STATUS_OK

    def get_fence_info(self, handle: Handle) -> bytes | None:
        return self._rec(handle).fence_info

    def set_fence_info(self, handle: Handle, info: bytes) -> int:
        rec = self._rec(handle)
        if rec.kind != NodeKind.CODE_BLOCK:
            return STATUS_REJECTED
        rec.fence_info = bytes(info)
        return STATUS_OK

    # -- tree links ---------------------------------------------------------

    def next(self, handle: Handle) -> Handle | None:
        return self._rec(handle).next

    def previous(self, handle: Handle) -> Handle | None:
        return self._rec(handle).prev

    def parent(self, handle: Handle) -> Handle | None:
        return self._rec(handle).parent

    def first_child(self, handle: Handle) -> Handle | None:
        return self._rec(handle).first_child

    def last_child(self, handle: Handle) -> Handle | None:
        return self._rec(handle).last_child

    def unlink(self, handle: Handle) -> None:
        rec = self._rec(handle)
        if rec.prev is not None:
            self._records[rec.prev].next = rec.next
        if rec.next is not None:
            self._records[rec.next].prev = rec.prev
        if rec.parent is not None:
            parent = self._records[rec.parent]
            if parent.first_child == handle:
                parent.first_child = rec.next
            if parent.last_child == handle:
                parent.last_child = rec.prev
        rec.parent = rec.prev = rec.next = None

    def _can_contain(self, node: Handle, child: Handle) -> bool:
        # child may be neither node itself nor one of its ancestors
        cur: Handle | None = node
        while cur is not None:
            if cur == child:
                return False
            cur = self._rec(cur).parent

        child_kind = self._rec(child).kind
        if child_kind == NodeKind.DOCUMENT:
            return False

        kind = self._rec(node).kind
        if kind in (NodeKind.DOCUMENT, NodeKind.BLOCK_QUOTE, NodeKind.ITEM):
            return is_block(child_kind) and child_kind != NodeKind.ITEM
        if kind == NodeKind.LIST:
            return child_kind == NodeKind.ITEM
        if kind == NodeKind.CUSTOM_BLOCK:
            return True
        if kind in _INLINE_CONTAINERS:
            return is_inline(child_kind)
        return False

    def append_child(self, parent: Handle, child: Handle) -> int:
        if not self._can_contain(parent, child):
            return STATUS_REJECTED
        self.unlink(child)
        parent_rec = self._rec(parent)
        child_rec = self._rec(child)
        child_rec.parent = parent
        child_rec.prev = parent_rec.last_child
        if parent_rec.last_child is not None:
            self._records[parent_rec.last_child].next = child
        else:
            parent_rec.first_child = child
        parent_rec.last_child = child
        return STATUS_OK

    def prepend_child(self, parent: Handle, child: Handle) -> int:
        if not self._can_contain(parent, child):
            return STATUS_REJECTED
        self.unlink(child)
        parent_rec = self._rec(parent)
        child_rec = self._rec(child)
        child_rec.parent = parent
        child_rec.next = parent_rec.first_child
        if parent_rec.first_child is not None:
            self._records[parent_rec.first_child].prev = child
        else:
            parent_rec.last_child = child
        parent_rec.first_child = child
        return STATUS_OK

    def insert_before(self, node: Handle, sibling: Handle) -> int:
        rec = self._rec(node)
        if rec.parent is None or not self._can_contain(rec.parent, sibling):
            return STATUS_REJECTED
        self.unlink(sibling)
        sib = self._rec(sibling)
        sib.parent = rec.parent
        sib.prev = rec.prev
        sib.next = node
        if rec.prev is not None:
            self._records[rec.prev].next = sibling
        else:
            self._records[rec.parent].first_child = sibling
        rec.prev = sibling
        return STATUS_OK

    def insert_after(self, node: Handle, sibling: Handle) -> int:
        rec = self._rec(node)
        if rec.parent is None or not self._can_contain(rec.parent, sibling):
            return STATUS_REJECTED
        self.unlink(sibling)
        sib = self._rec(sibling)
        sib.parent = rec.parent
        sib.prev = node
        sib.next = rec.next
        if rec.next is not None:
            self._records[rec.next].prev = sibling
        else:
            self._records[rec.parent].last_child = sibling
        rec.next = sibling
        return STATUS_OK

    def consolidate_text(self, handle: Handle) -> None:
        cursor = self.iterator_new(handle)
        try:
            while self.iterator_next(cursor) not in (EventType.DONE, EventType.NONE):
                node = self._cursors[cursor].node
                rec = self._records[node]
                if rec.kind != NodeKind.TEXT:
                    continue
                parts = [rec.literal or b""]
                while rec.next is not None and self._records[rec.next].kind == NodeKind.TEXT:
                    parts.append(self._records[rec.next].literal or b"")
                    self.free(rec.next)
                rec.literal = b"".join(parts)
                # the following step was computed before the merge
                c = self._cursors[cursor]
                if c.next_event == EventType.ENTER and c.next_node not in self._records:
                    c.next_event, c.next_node = self._step_after(c.root, node)
        finally:
            self.iterator_free(cursor)

    # -- rendering ----------------------------------------------------------

    def render_commonmark(self, handle: Handle) -> bytes:
        self._rec(handle)
        return render.CommonMarkRenderer(self, self._config.render).render(handle).encode("utf-8")

    def render_xml(self, handle: Handle) -> bytes:
        self._rec(handle)
        return render.XmlRenderer(self).render(handle).encode("utf-8")

    # -- iteration ----------------------------------------------------------

    def iterator_new(self, handle: Handle) -> Cursor:
        self._rec(handle)
        cursor = Cursor(next(self._cursor_ids))
        self._cursors[cursor] = _Cursor(root=handle, next_event=EventType.ENTER, next_node=handle)
        return cursor

    def _cursor(self, cursor: Cursor) -> _Cursor:
        try:
            return self._cursors[cursor]
        except KeyError:
            raise ResourceUnavailableError(f"iterator {cursor} has been freed") from None

    def _step_after(self, root: Handle, node: Handle) -> tuple[int, Handle | None]:
        """The event that follows leaving `node`."""
        rec = self._rec(node)
        if node == root:
            return EventType.DONE, None
        if rec.next is not None:
            return EventType.ENTER, rec.next
        if rec.parent is not None:
            return EventType.EXIT, rec.parent
        # detached during the walk
        return EventType.DONE, None

    def iterator_next(self, cursor: Cursor) -> int:
        c = self._cursor(cursor)
        event, node = c.next_event, c.next_node
        c.event, c.node = event, node
        if event == EventType.DONE:
            return event

        rec = self._rec(node)
        if event == EventType.ENTER and not is_leaf(rec.kind):
            if rec.first_child is None:
                c.next_event, c.next_node = EventType.EXIT, node
            else:
                c.next_event, c.next_node = EventType.ENTER, rec.first_child
        else:
            c.next_event, c.next_node = self._step_after(c.root, node)
        return event

    def iterator_current(self, cursor: Cursor) -> Handle | None:
        return self._cursor(cursor).node

    def iterator_free(self, cursor: Cursor) -> None:
        self._cursor(cursor)
        del self._cursors[cursor]


_default: ArenaEngine | None = None


def default_engine() -> ArenaEngine:
    """The process-wide engine used when none is passed explicitly."""
    global _default
    if _default is None:
        _default = ArenaEngine()
    return _default
