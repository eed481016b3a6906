"""
Tree iterator.

Wraps an engine cursor. Containers are reported twice, on ENTER and on
EXIT; leaves only on ENTER. The current node may be modified after its EXIT
event, or after ENTER when it is a leaf.
"""

from __future__ import annotations

import logging
import weakref
from typing import TYPE_CHECKING

from .errors import DoogieError
from .kinds import EventType

if TYPE_CHECKING:
    from .engine import Cursor, Engine
    from .node import Node

logger = logging.getLogger(__name__)


def _free_cursor(engine: Engine, cursor: Cursor) -> None:
    engine.iterator_free(cursor)


class NodeIterator:
    """
    Lazily walks the subtree under a node, yielding (Node, EventType).

    Finite and not restartable: once exhausted it stays exhausted. The
    engine cursor is released exactly once, on exhaustion, close(), leaving
    a `with` block or garbage collection, whichever comes first.

    Example, upper-casing every text node:

        for node, event in root.iter():
            if isinstance(node, Text):
                node.content = node.content.upper()
    """

    def __init__(self, root: Node):
        self._root = root
        engine = root.engine
        self._engine = engine
        self._cursor = engine.iterator_new(root.handle)
        self._finalizer = weakref.finalize(self, _free_cursor, engine, self._cursor)

    def __iter__(self) -> NodeIterator:
        return self

    def __next__(self) -> tuple[Node, EventType]:
        if not self._finalizer.alive:
            raise StopIteration

        code = self._engine.iterator_next(self._cursor)
        try:
            event = EventType(code)
        except ValueError:
            logger.error("iterator returned unknown event code %d, stopping", code)
            self.close()
            raise StopIteration from None

        if event in (EventType.DONE, EventType.NONE):
            self.close()
            raise StopIteration

        handle = self._engine.iterator_current(self._cursor)
        try:
            node = self._root.from_raw(handle, self._root.manager)
        except DoogieError as e:
            logger.error("could not instantiate node %s from iterator: %s", handle, e)
            self.close()
            raise StopIteration from None
        return node, event

    def close(self) -> None:
        """Release the engine cursor. Safe to call more than once."""
        self._finalizer()

    def __enter__(self) -> NodeIterator:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
