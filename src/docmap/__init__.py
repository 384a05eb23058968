"""
docmap: schema definition and metadata engine for a key-value document mapper.

## Public API
- Schema: declarative schema builder (properties, key policy, indexes, refs, methods, hooks).
- SchemaSnapshot: immutable view produced by ``Schema.freeze()``.
- SchemaSettings: process-wide key derivation defaults (env > TOML > defaults).
- SchemaError, SchemaKeyError, InvalidArgumentError: definition-time errors.

## Import DAG discipline
- docmap.config depends only on stdlib and docmap.core.constants.
- docmap.core never performs IO.
"""

from __future__ import annotations

from .config import SchemaSettings
from .core.errors import InvalidArgumentError, SchemaError, SchemaKeyError
from .core.schema import Schema, SchemaSnapshot

__all__ = [
    "Schema",
    "SchemaSnapshot",
    "SchemaSettings",
    "SchemaError",
    "SchemaKeyError",
    "InvalidArgumentError",
]
