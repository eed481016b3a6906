"""
Nodes of a CommonMark tree.

A Node is a handle into the engine plus the ResourceManager that decides
when the memory behind it is released. Several Node objects may wrap the
same handle; they compare equal and observe the same engine state.

Each node kind is its own Node subclass, so `isinstance(node, Heading)`
or a `match` on the class is how callers dispatch on kind.

Manager sharing: nodes reached from another node (navigation, itself(),
iteration) share that node's manager and so keep its tree alive. New
managers come only from parse_document, from_type and from_raw without a
manager.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, ClassVar, cast

from .engine import STATUS_OK, Engine, Handle, default_engine
from .errors import NodeNoneError, NulError, ReturnCodeError, Utf8Error
from .kinds import KIND_NONE, DelimType, ListType, NodeKind, can_contain, classify
from .manager import ResourceManager

if TYPE_CHECKING:
    from .iterator import NodeIterator

_VARIANTS: dict[NodeKind, type[Node]] = {}


def _encode(text: str) -> bytes:
    """Text bound for the engine: no NULs, valid UTF-8."""
    position = text.find("\x00")
    if position != -1:
        raise NulError(position)
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise Utf8Error(str(e)) from e


def _decode(data: bytes | None) -> str:
    if data is None:
        return ""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise Utf8Error(str(e)) from e


def _check(status: int) -> None:
    if status != STATUS_OK:
        raise ReturnCodeError(status)


def parse_document(text: str, engine: Engine | None = None) -> Document:
    """
    Parse CommonMark text and return the root of a new tree.

    The root is tracked by a fresh manager, which frees the whole tree
    once the last Node referring to it is gone (or on close()).
    """
    engine = engine if engine is not None else default_engine()
    data = _encode(text)
    manager = ResourceManager(engine)
    root = engine.parse(data)
    manager.track_root(root)
    return cast(Document, Node.from_raw(root, manager))


class Node:
    """A node in a CommonMark tree."""

    kind: ClassVar[NodeKind]

    def __init_subclass__(cls, kind: NodeKind | None = None, **kwargs):
        super().__init_subclass__(**kwargs)
        if kind is not None:
            cls.kind = kind
            _VARIANTS[kind] = cls

    def __init__(self, handle: Handle, manager: ResourceManager):
        self._handle = handle
        self._manager = manager

    # -- construction -------------------------------------------------------

    @staticmethod
    def from_raw(handle: Handle, manager: ResourceManager | None = None,
                 engine: Engine | None = None) -> Node:
        """
        Wrap a handle that some tree already owns.

        The handle is never tracked. Without `manager` a new, empty manager
        is created on `engine` (default engine if omitted).
        """
        if manager is None:
            manager = ResourceManager(engine if engine is not None else default_engine())
        code = manager.engine.get_kind(handle)
        if code == KIND_NONE:
            raise NodeNoneError()
        return _VARIANTS[classify(NodeKind, code)](handle, manager)

    @staticmethod
    def from_type(kind: NodeKind, engine: Engine | None = None) -> Node:
        """Allocate a bare node of `kind`, owned by a new manager."""
        engine = engine if engine is not None else default_engine()
        manager = ResourceManager(engine)
        handle = engine.allocate(classify(NodeKind, kind))
        manager.track_root(handle)
        return Node.from_raw(handle, manager)

    @classmethod
    def new(cls, engine: Engine | None = None) -> Node:
        """Allocate a bare node of this class's kind, e.g. `Paragraph.new()`."""
        return Node.from_type(cls.kind, engine)

    # -- identity -----------------------------------------------------------

    @property
    def handle(self) -> Handle:
        return self._handle

    @property
    def id(self) -> int:
        return int(self._handle)

    @property
    def manager(self) -> ResourceManager:
        return self._manager

    @property
    def engine(self) -> Engine:
        return self._manager.engine

    def reported_kind(self) -> NodeKind:
        """The kind the engine reports for this handle right now."""
        return classify(NodeKind, self.engine.get_kind(self._handle))

    @property
    def type_string(self) -> str:
        return _decode(self.engine.get_kind_name(self._handle))

    @property
    def start_line(self) -> int:
        return self.engine.get_start_line(self._handle)

    @property
    def start_column(self) -> int:
        return self.engine.get_start_column(self._handle)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self._handle == other._handle and self.engine is other.engine

    def __hash__(self) -> int:
        return hash(self._handle)

    def __repr__(self) -> str:
        return f"{self.kind.name.lower()} id: {self._handle}"

    # -- navigation ---------------------------------------------------------

    def _wrap(self, handle: Handle | None) -> Node | None:
        if handle is None:
            return None
        return Node.from_raw(handle, self._manager)

    def next_sibling(self) -> Node | None:
        return self._wrap(self.engine.next(self._handle))

    def prev_sibling(self) -> Node | None:
        return self._wrap(self.engine.previous(self._handle))

    def parent(self) -> Node | None:
        return self._wrap(self.engine.parent(self._handle))

    def first_child(self) -> Node | None:
        return self._wrap(self.engine.first_child(self._handle))

    def last_child(self) -> Node | None:
        return self._wrap(self.engine.last_child(self._handle))

    def itself(self) -> Node:
        """Another Node for the same handle, on the same manager."""
        return Node.from_raw(self._handle, self._manager)

    def children(self) -> Iterator[Node]:
        """Immediate children, first to last."""
        child = self.first_child()
        while child is not None:
            yield child
            child = child.next_sibling()

    # -- mutation -----------------------------------------------------------

    def unlink(self) -> None:
        """
        Detach this node, with its subtree, from wherever it sits.

        Afterwards it has no parent and no siblings and is a tracked root
        of its own manager. A closed manager raises ResourceUnavailableError
        before the tree is touched.
        """
        self._manager.track_root(self._handle)
        self.engine.unlink(self._handle)

    def _attach(self, child: Node, link) -> None:
        if child.engine is not self.engine:
            raise ValueError("cannot link nodes that belong to different engines")
        child.unlink()
        _check(link(child._handle))
        child._manager.untrack_root(child._handle)

    def append_child(self, child: Node) -> None:
        """
        Make `child` the last child of this node.

        `child` is unlinked first. If the engine refuses, ReturnCodeError is
        raised and `child` stays unlinked and tracked. Check
        can_append_child() beforehand to avoid that.
        """
        self._attach(child, lambda h: self.engine.append_child(self._handle, h))

    def prepend_child(self, child: Node) -> None:
        """Make `child` the first child of this node."""
        self._attach(child, lambda h: self.engine.prepend_child(self._handle, h))

    def insert_before(self, sibling: Node) -> None:
        """Put `sibling` immediately before this node."""
        self._attach(sibling, lambda h: self.engine.insert_before(self._handle, h))

    def insert_after(self, sibling: Node) -> None:
        """Put `sibling` immediately after this node."""
        self._attach(sibling, lambda h: self.engine.insert_after(self._handle, h))

    def can_append_child(self, child: Node) -> bool:
        """True if a node of `child`'s kind may sit directly under this one."""
        return can_contain(self.kind, child.reported_kind())

    # -- rendering and iteration ---------------------------------------------

    def render_commonmark(self) -> str:
        return self.engine.render_commonmark(self._handle).decode("utf-8", errors="replace")

    def render_xml(self) -> str:
        return self.engine.render_xml(self._handle).decode("utf-8", errors="replace")

    def iter(self) -> NodeIterator:
        """Walk this subtree, yielding (node, EventType) pairs."""
        from .iterator import NodeIterator

        return NodeIterator(self)

    def __iter__(self) -> NodeIterator:
        return self.iter()

    # -- lifetime -----------------------------------------------------------

    def close(self) -> None:
        """Release everything this node's manager owns."""
        self._manager.close()

    def __enter__(self) -> Node:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class _LiteralNode(Node):
    """A node whose payload is literal text."""

    @property
    def content(self) -> str:
        return _decode(self.engine.get_literal(self._handle))

    @content.setter
    def content(self, value: str) -> None:
        _check(self.engine.set_literal(self._handle, _encode(value)))


class _LinkNode(Node):
    """Link and Image: a destination and an optional title."""

    @property
    def url(self) -> str:
        return _decode(self.engine.get_url(self._handle))

    @url.setter
    def url(self, value: str) -> None:
        _check(self.engine.set_url(self._handle, _encode(value)))

    @property
    def title(self) -> str:
        return _decode(self.engine.get_title(self._handle))

    @title.setter
    def title(self, value: str) -> None:
        _check(self.engine.set_title(self._handle, _encode(value)))


class Document(Node, kind=NodeKind.DOCUMENT):
    """Root of a parsed document."""

    def consolidate_text_nodes(self) -> None:
        """Merge each run of adjacent Text nodes into a single Text node."""
        self.engine.consolidate_text(self._handle)


class BlockQuote(Node, kind=NodeKind.BLOCK_QUOTE):
    pass


class List(Node, kind=NodeKind.LIST):
    """
    A bullet or ordered list.

    Lists are containers that only hold Item nodes.
    """

    @property
    def list_type(self) -> ListType:
        return classify(ListType, self.engine.get_list_kind(self._handle))

    @list_type.setter
    def list_type(self, value: ListType) -> None:
        _check(self.engine.set_list_kind(self._handle, int(value)))

    @property
    def delim_type(self) -> DelimType:
        """Delimiter after the number of an ordered list item."""
        return classify(DelimType, self.engine.get_list_delimiter(self._handle))

    @delim_type.setter
    def delim_type(self, value: DelimType) -> None:
        _check(self.engine.set_list_delimiter(self._handle, int(value)))

    @property
    def start(self) -> int:
        return self.engine.get_list_start(self._handle)

    @start.setter
    def start(self, value: int) -> None:
        _check(self.engine.set_list_start(self._handle, value))

    @property
    def tight(self) -> bool:
        return self.engine.get_list_tight(self._handle)

    @tight.setter
    def tight(self, value: bool) -> None:
        _check(self.engine.set_list_tight(self._handle, value))


class Item(Node, kind=NodeKind.ITEM):
    pass


class CodeBlock(_LiteralNode, kind=NodeKind.CODE_BLOCK):
    """Indented or fenced code block."""

    @property
    def fence_info(self) -> str:
        """Info string after the opening fence; empty for indented blocks."""
        return _decode(self.engine.get_fence_info(self._handle))

    @fence_info.setter
    def fence_info(self, value: str) -> None:
        _check(self.engine.set_fence_info(self._handle, _encode(value)))


class HtmlBlock(_LiteralNode, kind=NodeKind.HTML_BLOCK):
    pass


class CustomBlock(Node, kind=NodeKind.CUSTOM_BLOCK):
    pass


class Paragraph(Node, kind=NodeKind.PARAGRAPH):
    pass


class Heading(Node, kind=NodeKind.HEADING):
    @property
    def level(self) -> int:
        return self.engine.get_heading_level(self._handle)

    @level.setter
    def level(self, value: int) -> None:
        _check(self.engine.set_heading_level(self._handle, value))


class ThematicBreak(Node, kind=NodeKind.THEMATIC_BREAK):
    pass


class Text(_LiteralNode, kind=NodeKind.TEXT):
    pass


class SoftBreak(Node, kind=NodeKind.SOFTBREAK):
    pass


class LineBreak(Node, kind=NodeKind.LINEBREAK):
    pass


class Code(_LiteralNode, kind=NodeKind.CODE):
    """Inline code span."""


class HtmlInline(_LiteralNode, kind=NodeKind.HTML_INLINE):
    pass


class CustomInline(Node, kind=NodeKind.CUSTOM_INLINE):
    pass


class Emph(Node, kind=NodeKind.EMPH):
    pass


class Strong(Node, kind=NodeKind.STRONG):
    pass


class Link(_LinkNode, kind=NodeKind.LINK):
    pass


class Image(_LinkNode, kind=NodeKind.IMAGE):
    pass
