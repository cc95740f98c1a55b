"""Hashing utilities for livedom.

Provides standardized hashing for node fingerprints (signatures).

Example:
    >>> from livedom.utils.hashing import hash_parts
    >>> hash_parts(["div", "class", "x"], truncate=16) == hash_parts(("div", "class", "x"), 16)
    True
"""

import hashlib
from collections.abc import Iterable


def hash_parts(parts: Iterable[str], truncate: int | None = None) -> str:
    """Hash an ordered sequence of strings.

    Each part is length-prefixed so ``("ab", "c")`` and ``("a", "bc")``
    never produce the same digest.

    Args:
        parts: Strings to hash, in order
        truncate: Truncate result to N characters (None = full hash)

    Returns:
        Hex digest of the combined parts
    """
    hasher = hashlib.sha256()
    for part in parts:
        encoded = part.encode("utf-8")
        hasher.update(str(len(encoded)).encode("ascii"))
        hasher.update(b":")
        hasher.update(encoded)
    digest = hasher.hexdigest()
    return digest[:truncate] if truncate is not None else digest
