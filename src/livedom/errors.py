"""Exception classes for livedom.

Provides standardized exceptions for error handling throughout livedom.
"""

from __future__ import annotations


class LiveDomError(Exception):
    """Base exception for all livedom errors.

    Subclass this for specific error categories.
    """

    pass


class ParseError(LiveDomError):
    """Malformed markup that cannot be resolved into balanced tags.

    The builder never lets this escape: it is collected into the
    ``errors`` of a build or update result so callers can keep showing
    the last valid tree.
    """

    def __init__(
        self,
        message: str,
        row: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize parse error with optional location.

        Args:
            message: Error description
            row: Row where the error occurred (0-indexed)
            column: Column where the error occurred (0-indexed)
        """
        self.message = message
        self.row = row
        self.column = column

        location = ""
        if row is not None:
            location = f"{row}:"
            if column is not None:
                location += f"{column}:"
            location = location.rstrip(":") + " "

        super().__init__(f"{location}{message}")


class SubtreeSwapError(LiveDomError):
    """A subtree could not be swapped into its parent.

    Raised when the subtree being replaced has no parent or is not found
    among its parent's children. The tree is left untouched.
    """

    def __init__(self, tag_id: int, message: str) -> None:
        """Initialize swap error.

        Args:
            tag_id: Identifier of the subtree root that failed to swap
            message: Description of the failure
        """
        self.tag_id = tag_id
        super().__init__(f"Cannot replace subtree {tag_id}: {message}")
