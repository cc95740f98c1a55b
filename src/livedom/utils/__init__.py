"""Utility modules for livedom.

Provides:
- hashing: hash_parts for node fingerprints
- logger: get_logger for logging
"""

from livedom.utils.hashing import hash_parts
from livedom.utils.logger import get_logger

__all__ = [
    "get_logger",
    "hash_parts",
]
