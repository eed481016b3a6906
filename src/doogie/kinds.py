"""
Type Registry for doogie.

Node kinds and the enumerations the engine reports, plus the table of
which kinds may sit directly under which. Pure data; nothing here talks to
the engine.
"""

from __future__ import annotations

from enum import IntEnum
from types import MappingProxyType
from typing import TypeVar

from .errors import BadEnumError

# Code the engine reports when it has no node to describe
KIND_NONE = 0


class NodeKind(IntEnum):
    """The 20 node kinds of a CommonMark tree, by engine code."""
    DOCUMENT = 1
    BLOCK_QUOTE = 2
    LIST = 3
    ITEM = 4
    CODE_BLOCK = 5
    HTML_BLOCK = 6
    CUSTOM_BLOCK = 7
    PARAGRAPH = 8
    HEADING = 9
    THEMATIC_BREAK = 10
    TEXT = 11
    SOFTBREAK = 12
    LINEBREAK = 13
    CODE = 14
    HTML_INLINE = 15
    CUSTOM_INLINE = 16
    EMPH = 17
    STRONG = 18
    LINK = 19
    IMAGE = 20


class ListType(IntEnum):
    NONE = 0
    BULLET = 1
    ORDERED = 2


class DelimType(IntEnum):
    NONE = 0
    PERIOD = 1
    PAREN = 2


class EventType(IntEnum):
    """Iterator events. NONE and DONE are terminal."""
    NONE = 0
    DONE = 1
    ENTER = 2
    EXIT = 3


E = TypeVar("E", bound=IntEnum)


def classify(enum_cls: type[E], code: int) -> E:
    """Convert a raw engine code into `enum_cls`, raising BadEnumError on drift."""
    try:
        return enum_cls(code)
    except ValueError:
        raise BadEnumError(code) from None


BLOCK_KINDS = frozenset(k for k in NodeKind if k <= NodeKind.THEMATIC_BREAK)
INLINE_KINDS = frozenset(k for k in NodeKind if k >= NodeKind.TEXT)

# Kinds that never have children; the iterator only enters them
LEAF_KINDS = frozenset({
    NodeKind.CODE_BLOCK,
    NodeKind.HTML_BLOCK,
    NodeKind.THEMATIC_BREAK,
    NodeKind.TEXT,
    NodeKind.SOFTBREAK,
    NodeKind.LINEBREAK,
    NodeKind.CODE,
    NodeKind.HTML_INLINE,
})

_CONTAINER_BLOCK_CHILDREN = BLOCK_KINDS - {NodeKind.DOCUMENT, NodeKind.ITEM}
_NOTHING: frozenset[NodeKind] = frozenset()

ALLOWED_CHILDREN: MappingProxyType[NodeKind, frozenset[NodeKind]] = MappingProxyType({
    NodeKind.DOCUMENT: _CONTAINER_BLOCK_CHILDREN,
    NodeKind.BLOCK_QUOTE: _CONTAINER_BLOCK_CHILDREN,
    NodeKind.LIST: frozenset({NodeKind.ITEM}),
    NodeKind.ITEM: _CONTAINER_BLOCK_CHILDREN,
    NodeKind.CODE_BLOCK: _NOTHING,
    NodeKind.HTML_BLOCK: _NOTHING,
    NodeKind.CUSTOM_BLOCK: frozenset(NodeKind) - {NodeKind.DOCUMENT},
    NodeKind.PARAGRAPH: INLINE_KINDS,
    NodeKind.HEADING: INLINE_KINDS,
    NodeKind.THEMATIC_BREAK: _NOTHING,
    NodeKind.TEXT: _NOTHING,
    NodeKind.SOFTBREAK: _NOTHING,
    NodeKind.LINEBREAK: _NOTHING,
    NodeKind.CODE: _NOTHING,
    NodeKind.HTML_INLINE: _NOTHING,
    NodeKind.CUSTOM_INLINE: INLINE_KINDS,
    NodeKind.EMPH: INLINE_KINDS,
    NodeKind.STRONG: INLINE_KINDS,
    NodeKind.LINK: INLINE_KINDS,
    NodeKind.IMAGE: INLINE_KINDS,
})


def can_contain(parent: NodeKind, child: NodeKind) -> bool:
    """True if `child` may be an immediate child of `parent`."""
    return child in ALLOWED_CHILDREN[parent]


def is_block(kind: NodeKind) -> bool:
    return kind in BLOCK_KINDS


def is_inline(kind: NodeKind) -> bool:
    return kind in INLINE_KINDS


def is_leaf(kind: NodeKind) -> bool:
    return kind in LEAF_KINDS
