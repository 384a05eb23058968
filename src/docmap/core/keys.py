"""
Document key policy and key derivation.

Holds the DocumentKey policy record and the pure functions that expand/strip
document keys and derive reference (index lookup) document keys.

Notes:
    - Expansion is idempotent: a key that already carries the prefix and suffix
      is not expanded twice. Detection matches the regex-escaped literal prefix
      at the start and suffix at the end of the whole string.
    - A dynamic key function receives the expanded key and its result is final;
      it only applies when the full key is requested.
    - Reference keys longer than MAX_REF_KEY_LENGTH UTF-8 bytes have their value
      part replaced by a tagged MD5 digest (see docmap.core.hashing).

Examples:
    >>> document_key_value("abc", True, prefix="user::")
    'user::abc'
    >>> document_key_value("user::abc", True, prefix="user::")
    'user::abc'
    >>> document_key_value("user::abc", False, prefix="user::")
    'abc'
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from .constants import DEFAULT_KEY_PROPERTY, MAX_REF_KEY_LENGTH
from .grammar import RefKeyCase
from .hashing import hashed_ref_value, utf8_byte_length
from .typing import DynamicKeyFn

__all__ = [
    "DocumentKey",
    "document_key_value",
    "ref_key",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentKey:
    """
    Document key policy of a schema.

    Attributes:
        doc_key_key (str): Name of the property holding the identifier.
        prefix (str | None): Key prefix; None when neither the key property nor
            the schema options define one.
        suffix (str | None): Key suffix, same resolution as prefix.
        generate (bool): Whether the model layer generates an identifier when absent.
        dynamic_key (DynamicKeyFn | None): Final key mapping function.
    """

    doc_key_key: str = DEFAULT_KEY_PROPERTY
    prefix: str | None = None
    suffix: str | None = None
    generate: bool = True
    dynamic_key: DynamicKeyFn | None = None


def document_key_value(
    id: Any,
    full: bool = False,
    *,
    prefix: str = "",
    suffix: str = "",
    dynamic_key: DynamicKeyFn | None = None,
) -> Any:
    """
    Expand or strip a document key.

    Args:
        id (Any): Candidate identifier. Non-string values are returned unchanged.
        full (bool): Return the fully expanded key (prefix + id + suffix, then the
            dynamic key function) instead of the bare identifier.
        prefix (str): Literal key prefix.
        suffix (str): Literal key suffix.
        dynamic_key (DynamicKeyFn | None): Applied to the expanded key when full.

    Returns:
        Any: Expanded key, bare identifier, or ``id`` itself for non-strings.
    """
    if not isinstance(id, str):
        return id

    match = re.fullmatch(f"{re.escape(prefix)}(.*){re.escape(suffix)}", id, re.DOTALL)
    if full:
        expanded = id if match else f"{prefix}{id}{suffix}"
        if callable(dynamic_key):
            return dynamic_key(expanded)
        return expanded

    return match.group(1) if match else id


def ref_key(
    index_name: str,
    value: Any,
    *,
    key_prefix: str = "",
    ref_index_key_prefix: str = "",
    delimiter: str = "",
    ref_key_case: RefKeyCase | None = None,
    dynamic_key: DynamicKeyFn | None = None,
) -> str:
    """
    Derive the key of the reference document backing an index lookup.

    Args:
        index_name (str): Index name.
        value (Any): Indexed value; non-strings are rendered with ``str``.
        key_prefix (str): Schema key prefix. Replaced by ``dynamic_key(key_prefix)``
            when a dynamic key function is configured.
        ref_index_key_prefix (str): Prefix marking reference documents.
        delimiter (str): Separator between index name and value.
        ref_key_case (RefKeyCase | None): Case folding for the value.
        dynamic_key (DynamicKeyFn | None): Schema dynamic key function.

    Returns:
        str: ``prefix + ref_index_key_prefix + index_name + delimiter + value``, with
        ``value`` replaced by ``"hashed_" + md5(value)`` when the whole key exceeds
        MAX_REF_KEY_LENGTH bytes.

    Examples:
        >>> ref_key("email", "Joe@Example.com", key_prefix="user::",
        ...         ref_index_key_prefix="$_ref_by_", delimiter="_",
        ...         ref_key_case=RefKeyCase.LOWER)
        'user::$_ref_by_email_joe@example.com'
    """
    kp = dynamic_key(key_prefix) if callable(dynamic_key) else key_prefix
    v = value if isinstance(value, str) else str(value)
    if ref_key_case is RefKeyCase.UPPER:
        v = v.upper()
    elif ref_key_case is RefKeyCase.LOWER:
        v = v.lower()

    full_prefix = f"{kp}{ref_index_key_prefix}{index_name}{delimiter}"
    if utf8_byte_length(full_prefix + v) > MAX_REF_KEY_LENGTH:
        logger.debug("Hashing ref key value of index %r (exceeds %d bytes)", index_name, MAX_REF_KEY_LENGTH)
        v = hashed_ref_value(v)
    return full_prefix + v
