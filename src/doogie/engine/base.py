"""
Engine interface.

The engine owns every node. Callers see nodes only as opaque handles and
reach them exclusively through the methods below. Text crosses the boundary
as UTF-8 bytes; mutations answer with a status where 1 means success and 0
means the engine refused.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import NewType

Handle = NewType("Handle", int)
Cursor = NewType("Cursor", int)

STATUS_OK = 1
STATUS_REJECTED = 0


class Engine(ABC):
    """Node allocation, field access, tree links, parsing, rendering and iteration."""

    # -- lifetime -----------------------------------------------------------

    @abstractmethod
    def allocate(self, kind: int) -> Handle:
        """Allocate a bare, unattached node of `kind`."""
        ...

    @abstractmethod
    def parse(self, data: bytes) -> Handle:
        """Parse a document and return the root of the new tree."""
        ...

    @abstractmethod
    def free(self, handle: Handle) -> None:
        """Unlink `handle` and release it together with its whole subtree."""
        ...

    @abstractmethod
    def is_valid(self, handle: Handle) -> bool:
        """True while `handle` has not been freed."""
        ...

    # -- fields -------------------------------------------------------------

    @abstractmethod
    def get_kind(self, handle: Handle) -> int: ...

    @abstractmethod
    def get_kind_name(self, handle: Handle) -> bytes | None: ...

    @abstractmethod
    def get_literal(self, handle: Handle) -> bytes | None: ...

    @abstractmethod
    def set_literal(self, handle: Handle, text: bytes) -> int: ...

    @abstractmethod
    def get_start_line(self, handle: Handle) -> int: ...

    @abstractmethod
    def get_start_column(self, handle: Handle) -> int: ...

    @abstractmethod
    def get_list_kind(self, handle: Handle) -> int: ...

    @abstractmethod
    def set_list_kind(self, handle: Handle, list_kind: int) -> int: ...

    @abstractmethod
    def get_list_delimiter(self, handle: Handle) -> int: ...

    @abstractmethod
    def set_list_delimiter(self, handle: Handle, delimiter: int) -> int: ...

    @abstractmethod
    def get_list_start(self, handle: Handle) -> int: ...

    @abstractmethod
    def set_list_start(self, handle: Handle, start: int) -> int: ...

    @abstractmethod
    def get_list_tight(self, handle: Handle) -> bool: ...

    @abstractmethod
    def set_list_tight(self, handle: Handle, tight: bool) -> int: ...

    @abstractmethod
    def get_heading_level(self, handle: Handle) -> int: ...

    @abstractmethod
    def set_heading_level(self, handle: Handle, level: int) -> int: ...

    @abstractmethod
    def get_url(self, handle: Handle) -> bytes | None: ...

    @abstractmethod
    def set_url(self, handle: Handle, url: bytes) -> int: ...

    @abstractmethod
    def get_title(self, handle: Handle) -> bytes | None: ...

    @abstractmethod
    def set_title(self, handle: Handle, title: bytes) -> int: ...

    @abstractmethod
    def get_fence_info(self, handle: Handle) -> bytes | None: ...

    @abstractmethod
    def set_fence_info(self, handle: Handle, info: bytes) -> int: ...

    # -- tree links ---------------------------------------------------------

    @abstractmethod
    def next(self, handle: Handle) -> Handle | None: ...

    @abstractmethod
    def previous(self, handle: Handle) -> Handle | None: ...

    @abstractmethod
    def parent(self, handle: Handle) -> Handle | None: ...

    @abstractmethod
    def first_child(self, handle: Handle) -> Handle | None: ...

    @abstractmethod
    def last_child(self, handle: Handle) -> Handle | None: ...

    @abstractmethod
    def unlink(self, handle: Handle) -> None:
        """Detach `handle` from its parent and siblings; its children stay."""
        ...

    @abstractmethod
    def append_child(self, parent: Handle, child: Handle) -> int: ...

    @abstractmethod
    def prepend_child(self, parent: Handle, child: Handle) -> int: ...

    @abstractmethod
    def insert_before(self, node: Handle, sibling: Handle) -> int: ...

    @abstractmethod
    def insert_after(self, node: Handle, sibling: Handle) -> int: ...

    @abstractmethod
    def consolidate_text(self, handle: Handle) -> None:
        """Merge every run of adjacent Text siblings under `handle`."""
        ...

    # -- rendering ----------------------------------------------------------

    @abstractmethod
    def render_commonmark(self, handle: Handle) -> bytes: ...

    @abstractmethod
    def render_xml(self, handle: Handle) -> bytes: ...

    # -- iteration ----------------------------------------------------------

    @abstractmethod
    def iterator_new(self, handle: Handle) -> Cursor: ...

    @abstractmethod
    def iterator_next(self, cursor: Cursor) -> int:
        """Advance and return the event code of the new position."""
        ...

    @abstractmethod
    def iterator_current(self, cursor: Cursor) -> Handle | None: ...

    @abstractmethod
    def iterator_free(self, cursor: Cursor) -> None: ...
