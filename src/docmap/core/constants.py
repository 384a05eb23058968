"""
docmap core key and naming defaults.

Defines the fixed limits and literal tags used by the document-key manager and
the index/reference helpers. This module is zero-IO and uses only the Python
standard library.

Notes:
    - MAX_REF_KEY_LENGTH mirrors the backing store's hard key-length ceiling and
      is measured in UTF-8 bytes, not characters.
    - Hashed reference values are always tagged with HASHED_REF_PREFIX so they
      can never collide with an un-hashed value.
    - Process-wide overridable defaults (delimiter, ref index key prefix) live in
      docmap.config.SchemaSettings; the values here seed those defaults.
"""

from __future__ import annotations

__all__ = [
    "MAX_REF_KEY_LENGTH",
    "HASHED_REF_PREFIX",
    "DEFAULT_KEY_PROPERTY",
    "DEFAULT_DELIMITER",
    "DEFAULT_REF_INDEX_KEY_PREFIX",
]

# Backing store key limit (bytes) applied to reference document keys.
MAX_REF_KEY_LENGTH: int = 250

# Tag prepended to the hex digest that replaces an over-long ref key value.
HASHED_REF_PREFIX: str = "hashed_"

# Name of the identifier property synthesized when a schema declares no key.
DEFAULT_KEY_PROPERTY: str = "id"

# Separator between the index name and the indexed value in ref keys.
DEFAULT_DELIMITER: str = "_"

# Prefix marking reference/index lookup documents.
DEFAULT_REF_INDEX_KEY_PREFIX: str = "$_ref_by_"
