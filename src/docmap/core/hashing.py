"""
Byte-length and one-way hashing helpers for reference document keys.

Provides the UTF-8 length measurement and the MD5 policy used to bound
reference document keys to the backing store's key-length ceiling. This module
is zero-IO and uses only the Python standard library.

Notes:
    - Lengths are measured over the UTF-8 encoding; multi-byte characters count
      for more than one.
    - Hashed values are tagged with HASHED_REF_PREFIX and are 32 hex characters
      long, so every hashed value has a fixed length of 39 characters.
    - Digests are stable across runs and processes (no salting).
"""

from __future__ import annotations

import hashlib

from .constants import HASHED_REF_PREFIX

__all__ = [
    "utf8_byte_length",
    "md5_hexdigest",
    "hashed_ref_value",
]


def utf8_byte_length(s: str) -> int:
    """Return the number of bytes in the UTF-8 encoding of s."""
    return len(s.encode("utf-8"))


def md5_hexdigest(s: str) -> str:
    """Compute MD5 hex digest of a UTF-8 string."""
    h = hashlib.md5(usedforsecurity=False)
    h.update(s.encode("utf-8"))
    return h.hexdigest()


def hashed_ref_value(value: str) -> str:
    """
    Replace a reference key value by its tagged one-way hash.

    Args:
        value (str): Raw (already case-folded) index value.

    Returns:
        str: ``"hashed_" + md5(value)``.

    Examples:
        >>> hashed_ref_value("a").startswith("hashed_")
        True
        >>> len(hashed_ref_value("x" * 1000))
        39
    """
    return HASHED_REF_PREFIX + md5_hexdigest(value)
