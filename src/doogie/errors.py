"""
Errors raised by doogie.

Every failure is a DoogieError. A missing sibling, parent or child is not a
failure: navigation returns None for it.
"""

from __future__ import annotations


class DoogieError(Exception):
    """Base class for all doogie errors."""


class NulError(DoogieError, ValueError):
    """Text bound for the engine contains an embedded NUL."""

    def __init__(self, position: int):
        super().__init__(f"embedded NUL at position {position}")
        self.position = position


class Utf8Error(DoogieError, UnicodeError):
    """Text crossing the engine boundary is not valid UTF-8."""


class ReturnCodeError(DoogieError):
    """The engine rejected a mutation with a non-success status."""

    def __init__(self, code: int):
        super().__init__(f"engine returned status code {code}")
        self.code = code


class BadEnumError(DoogieError, ValueError):
    """The engine reported a kind, list type, delimiter or event outside the known set."""

    def __init__(self, value: int):
        super().__init__(f"bad enum value: {value}")
        self.value = value


class NodeNoneError(DoogieError):
    """The engine reported the explicit 'none' kind for a handle."""

    def __init__(self):
        super().__init__("engine reported no node for handle")


class ResourceUnavailableError(DoogieError):
    """The node's memory has already been released."""

    def __init__(self, message: str = "the resource is no longer available"):
        super().__init__(message)
