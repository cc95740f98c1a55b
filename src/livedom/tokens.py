"""Token and TokenType definitions for the tag-boundary scanner.

The tokenizer produces a stream of Token objects that the builder consumes.
Each Token has a type, a string value and its offsets in the scanned text.

Thread Safety:
Token is frozen (immutable) and safe to share across threads.
TokenType is an enum (inherently immutable).

"""

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Token types produced by the tokenizer."""

    # Tags
    OPEN_TAG = auto()  # <name
    ATTRIBUTE = auto()  # name="value"
    OPEN_TAG_END = auto()  # >
    SELF_CLOSING_END = auto()  # />
    CLOSE_TAG = auto()  # </name>

    # Content
    TEXT = auto()

    # Ignored markup (kept so offsets stay contiguous)
    COMMENT = auto()  # <!-- ... -->
    DOCTYPE = auto()  # <!DOCTYPE ...>, <![CDATA[...]]>, <? ... >

    EOF = auto()


@dataclass(frozen=True, slots=True)
class Token:
    """A token produced by the tokenizer.

    Attributes:
        type: The token type
        value: Tag or attribute name, text content, or raw markup
        start: Offset of the first character of the token
        end: Offset just past the last character of the token
        attr_value: Attribute value (ATTRIBUTE tokens only; "" when the
            attribute has no value)

    """

    type: TokenType
    value: str
    start: int
    end: int
    attr_value: str = ""

    def __repr__(self) -> str:
        """Compact repr for debugging."""
        val = self.value
        if len(val) > 20:
            val = val[:17] + "..."
        return f"Token({self.type.name}, {val!r}, {self.start}:{self.end})"
