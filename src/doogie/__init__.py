"""
doogie: a mutable CommonMark tree with shared ownership of engine nodes.

    root = parse_document("# Title\n\n* one\n* two\n")
    for node, event in root.iter():
        ...
"""

import logging

from .engine import ArenaEngine, Engine, default_engine
from .errors import (
    BadEnumError,
    DoogieError,
    NodeNoneError,
    NulError,
    ResourceUnavailableError,
    ReturnCodeError,
    Utf8Error,
)
from .iterator import NodeIterator
from .kinds import ALLOWED_CHILDREN, DelimType, EventType, ListType, NodeKind
from .manager import ResourceManager
from .node import (
    BlockQuote,
    Code,
    CodeBlock,
    CustomBlock,
    CustomInline,
    Document,
    Emph,
    Heading,
    HtmlBlock,
    HtmlInline,
    Image,
    Item,
    LineBreak,
    Link,
    List,
    Node,
    Paragraph,
    SoftBreak,
    Strong,
    Text,
    ThematicBreak,
    parse_document,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.3.0"

__all__ = [
    "ALLOWED_CHILDREN",
    "ArenaEngine",
    "BadEnumError",
    "BlockQuote",
    "Code",
    "CodeBlock",
    "CustomBlock",
    "CustomInline",
    "DelimType",
    "Document",
    "DoogieError",
    "Emph",
    "Engine",
    "EventType",
    "Heading",
    "HtmlBlock",
    "HtmlInline",
    "Image",
    "Item",
    "LineBreak",
    "Link",
    "List",
    "ListType",
    "Node",
    "NodeIterator",
    "NodeKind",
    "NodeNoneError",
    "NulError",
    "Paragraph",
    "ResourceManager",
    "ResourceUnavailableError",
    "ReturnCodeError",
    "SoftBreak",
    "Strong",
    "Text",
    "ThematicBreak",
    "Utf8Error",
    "default_engine",
    "parse_document",
]
