"""Exception types raised by the browser core.

Store I/O failures are recoverable: the controller catches them, records
them as the last error and leaves session state as it was before the
failed action.
"""

from __future__ import annotations


class RedisBrowserError(Exception):
    """Base class for all browser errors."""


class StoreConnectionError(RedisBrowserError):
    """The server is unreachable or rejected authentication."""


class FetchError(RedisBrowserError):
    """Reading the key list or a value failed."""


class WriteError(RedisBrowserError):
    """Saving, deleting or creating a key failed."""


class InvalidPathError(RedisBrowserError):
    """An expansion path does not resolve to a node in the current view."""

    def __init__(self, path: tuple[int, ...], depth: int, reason: str):
        self.path = path
        self.depth = depth
        self.reason = reason
        super().__init__(f"Invalid view path {list(path)} at depth {depth}: {reason}")


class NoActiveSessionError(RedisBrowserError):
    """A session action was dispatched while no session is active."""
