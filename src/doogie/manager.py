"""
Resource manager: who frees what.

A manager remembers the handles it owns outright (its tracked roots). When
it is torn down it frees each of them, and the engine frees the subtree
under each one. Every Node points at a manager; the manager lives as long
as any of those Nodes does.

Invariant: a handle is tracked iff no tracked ancestor will free it. The
Node mutation methods keep this true by tracking on unlink and untracking
after a successful attach.

Not thread-safe. A manager and its Nodes belong to one thread.
"""

from __future__ import annotations

import logging
import weakref

from .engine import Engine, Handle
from .errors import ResourceUnavailableError

logger = logging.getLogger(__name__)


def _release(engine: Engine, roots: list[Handle]) -> None:
    """Free every tracked root. Runs once, from close() or the finalizer."""
    for handle in roots:
        if not engine.is_valid(handle):
            logger.debug("root %d already freed, skipping", handle)
            continue
        if engine.parent(handle) is not None:
            # attached somewhere since it was tracked; its new root frees it
            logger.debug("root %d has a parent now, skipping", handle)
            continue
        engine.free(handle)
    roots.clear()


class ResourceManager:
    """Tracks the independently owned handles of one tree arena."""

    def __init__(self, engine: Engine):
        self._engine = engine
        self._roots: list[Handle] = []
        # the finalizer must not reference self, only what it frees
        self._finalizer = weakref.finalize(self, _release, engine, self._roots)

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def roots(self) -> tuple[Handle, ...]:
        """Currently tracked handles, oldest first."""
        return tuple(self._roots)

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def track_root(self, handle: Handle) -> None:
        if self.closed:
            raise ResourceUnavailableError("resource manager has already been closed")
        if handle not in self._roots:
            self._roots.append(handle)

    def untrack_root(self, handle: Handle) -> None:
        if handle in self._roots:
            self._roots.remove(handle)

    def is_tracking(self, handle: Handle) -> bool:
        return handle in self._roots

    def close(self) -> None:
        """Free every tracked root now. Further calls do nothing."""
        self._finalizer()

    def __enter__(self) -> ResourceManager:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"{len(self._roots)} roots"
        return f"<ResourceManager {state}>"
