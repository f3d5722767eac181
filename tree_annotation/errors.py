"""Exception types for tree annotation.

PathError signals a caller bug (a path that does not address a node in
the forest it was used with). ParseError signals malformed user input
and is always recoverable: the forest being replaced stays untouched.
"""

from __future__ import annotations


class TreeAnnotationError(Exception):
    """Base class for all tree annotation errors."""


class PathError(TreeAnnotationError, IndexError):
    """A path does not address an existing node.

    Attributes:
        path: The offending path.
    """

    def __init__(self, path: tuple[int, ...], message: str | None = None) -> None:
        self.path = tuple(path)
        super().__init__(message or f"Invalid path: {list(self.path)}")


class ParseError(TreeAnnotationError, ValueError):
    """Malformed QTree, JSON or link text.

    Attributes:
        reason: Human readable reason without the position suffix.
        position: Character offset into the input, or None if unknown.
    """

    def __init__(self, reason: str, position: int | None = None) -> None:
        self.reason = reason
        self.position = position
        if position is None:
            super().__init__(reason)
        else:
            super().__init__(f"{reason} (at position {position})")
