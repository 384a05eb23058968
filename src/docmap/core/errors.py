"""
Core exception types raised while defining schemas.

Provides typed exceptions for schema-definition failures:
- SchemaError as the base for schema-level constraint violations.
- SchemaKeyError for document-key conflicts (key also indexed, also a
  reference, or of a non string/number type).
- InvalidArgumentError for malformed calls to the builder API (method/static/
  virtual/hook registration, unknown index type or ref key case).

Notes:
    - This module uses only the Python standard library and has no side effects.
    - All of these are programmer errors surfaced at schema-definition time; the
      core never catches them.
    - Malformed option values surface as pydantic.ValidationError from
      docmap.core.options.SchemaOptions.

Examples:
    Catch a key conflict.

    >>> from docmap.core.errors import SchemaKeyError
    >>> from docmap.core.schema import Schema
    >>> try:
    ...     Schema({"id": {"type": str, "key": True, "index": True}})
    ... except SchemaKeyError as e:
    ...     msg = str(e)
    >>> "index" in msg
    True
"""

from __future__ import annotations

__all__ = [
    "SchemaError",
    "SchemaKeyError",
    "InvalidArgumentError",
]


class SchemaError(ValueError):
    """Schema-level validation failure (shape, constraints, cross-field rules)."""


class SchemaKeyError(SchemaError):
    """Document key declaration conflicts with index/ref flags or has a disallowed type."""


class InvalidArgumentError(TypeError):
    """Builder API called with a wrong name, handler, or option value."""
