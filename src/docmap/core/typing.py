"""
Lightweight typing aliases used across the schema core.

Provides minimal aliases to improve readability and static checks. This module
contains no runtime logic and is zero-IO.

Examples:
    >>> from docmap.core.typing import DynamicKeyFn
    >>> def tenant_key(key: str) -> str:
    ...     return f"tenant-a::{key}"
    >>> fn: DynamicKeyFn = tenant_key
    >>> fn("user::1")
    'tenant-a::user::1'
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

__all__ = [
    "RawDescriptor",
    "DynamicKeyFn",
]

# Caller-supplied, not yet normalized, property-name -> definition mapping.
RawDescriptor = Mapping[str, Any]

# Maps a candidate (already expanded) key to the final stored key.
DynamicKeyFn = Callable[[str], str]
