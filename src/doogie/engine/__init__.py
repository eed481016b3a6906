"""
The engine: owner of every node.

Callers hold opaque handles; the engine allocates, links, parses, renders
and frees the nodes behind them.
"""

from .arena import ArenaEngine, default_engine
from .base import STATUS_OK, STATUS_REJECTED, Cursor, Engine, Handle

__all__ = [
    "STATUS_OK",
    "STATUS_REJECTED",
    "ArenaEngine",
    "Cursor",
    "Engine",
    "Handle",
    "default_engine",
]
