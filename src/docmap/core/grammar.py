"""
Canonical docmap grammar and naming helpers.

Defines the property type tags, index kinds, reference key casing and hook
phases used by schema descriptors, plus the zero-IO helpers that turn free-form
type tags and property names into canonical values.

Responsibilities
- Define enums whose serialized values are lower_snake.
- Resolve Python type objects and string aliases into PropertyType.
- Infer human-readable index names from (possibly pluralized) property names.

Design principles
-----------------
1) One naming standard:
   - Enum classes: PascalCase
   - Enum member names: UPPER_SNAKE
   - Enum serialized values: lower_snake

2) Index names are accessor names:
   The model layer generates lookup accessors from index names (an index named
   ``UserName`` backs ``find_by_user_name``/``findByUserName``), so inference
   must be deterministic and read naturally. English singularization is
   delegated to the ``inflection`` package rather than stripping a trailing
   "s".

Examples
--------
>>> from docmap.core.grammar import property_type_from_value, PropertyType
>>> property_type_from_value(str) is PropertyType.STRING
True
>>> property_type_from_value("Number") is PropertyType.NUMBER
True
>>> infer_index_name("users")
'user'
>>> infer_index_name(["emails", "userName"])
'EmailAndUserName'
"""

from __future__ import annotations

import datetime as _dt
import re
import typing
from collections.abc import Sequence
from enum import Enum
from typing import Any, Final

import inflection

from .errors import InvalidArgumentError

__all__ = [
    "PropertyType",
    "IndexType",
    "RefKeyCase",
    "HookPhase",
    "KEY_TYPES",
    "is_type_tag",
    "property_type_from_value",
    "index_type_from_value",
    "ref_key_case_from_value",
    "hook_phase_from_value",
    "strip_trailing_digits",
    "infer_index_name",
]


class PropertyType(Enum):
    """
    Canonical storage type of a normalized property.

    Serialized values appear in:
      - PrimitiveDescriptor.type / VirtualDescriptor.type
      - NestedDescriptor.type ("object") and ArrayDescriptor.type ("array")
    """

    ANY = "any"
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    DATE = "date"
    BYTES = "bytes"
    OBJECT = "object"
    ARRAY = "array"


class IndexType(Enum):
    """
    How the indexed property value maps to reference documents.

    SINGLE indexes the whole value; ARRAY indexes each member of a collection
    independently.
    """

    SINGLE = "single"
    ARRAY = "array"


class RefKeyCase(Enum):
    """Case folding applied to an index value before it becomes part of a ref key."""

    UPPER = "upper"
    LOWER = "lower"


class HookPhase(Enum):
    """Middleware phase a hook function is registered for."""

    PRE = "pre"
    POST = "post"


# Types a document key property may declare. ANY covers an undeclared type.
KEY_TYPES: Final[frozenset[PropertyType]] = frozenset(
    {PropertyType.STRING, PropertyType.NUMBER, PropertyType.INTEGER, PropertyType.ANY}
)

_PY_TYPES: Final[dict[Any, PropertyType]] = {
    str: PropertyType.STRING,
    float: PropertyType.NUMBER,
    int: PropertyType.INTEGER,
    bool: PropertyType.BOOLEAN,
    _dt.date: PropertyType.DATE,
    _dt.datetime: PropertyType.DATE,
    bytes: PropertyType.BYTES,
    bytearray: PropertyType.BYTES,
    dict: PropertyType.OBJECT,
    list: PropertyType.ARRAY,
    tuple: PropertyType.ARRAY,
    object: PropertyType.ANY,
    typing.Any: PropertyType.ANY,
}

_ALIASES: Final[dict[str, PropertyType]] = {
    "any": PropertyType.ANY,
    "mixed": PropertyType.ANY,
    "string": PropertyType.STRING,
    "str": PropertyType.STRING,
    "number": PropertyType.NUMBER,
    "float": PropertyType.NUMBER,
    "integer": PropertyType.INTEGER,
    "int": PropertyType.INTEGER,
    "boolean": PropertyType.BOOLEAN,
    "bool": PropertyType.BOOLEAN,
    "date": PropertyType.DATE,
    "datetime": PropertyType.DATE,
    "bytes": PropertyType.BYTES,
    "buffer": PropertyType.BYTES,
    "object": PropertyType.OBJECT,
    "dict": PropertyType.OBJECT,
    "array": PropertyType.ARRAY,
    "list": PropertyType.ARRAY,
}

_TRAILING_DIGITS_RE = re.compile(r"^(.*\D)\d+$", re.DOTALL)


def is_type_tag(value: Any) -> bool:
    """
    Return True if value reads as a type shorthand (Python type, typing.Any, alias string,
    or PropertyType member) rather than a descriptor mapping or array wrapper.
    """
    if isinstance(value, PropertyType | str):
        return True
    return value is typing.Any or isinstance(value, type)


def property_type_from_value(value: Any) -> PropertyType:
    """
    Resolve a type shorthand into a PropertyType.

    Args:
      value (Any): A Python type (``str``, ``int``, ``datetime``...), ``typing.Any``,
        a PropertyType member, or a case-insensitive alias string ("string", "Number").

    Returns:
      PropertyType: Canonical type. Unknown tags (custom classes, model names)
      resolve to PropertyType.ANY.
    """
    if isinstance(value, PropertyType):
        return value
    if isinstance(value, str):
        return _ALIASES.get(value.strip().lower(), PropertyType.ANY)
    try:
        return _PY_TYPES.get(value, PropertyType.ANY)
    except TypeError:  # unhashable tag
        return PropertyType.ANY


def index_type_from_value(value: IndexType | str | None) -> IndexType:
    """
    Parse an index type value; None means the default ``single``.

    Raises:
      InvalidArgumentError: If value is not a known index type.
    """
    if value is None:
        return IndexType.SINGLE
    if isinstance(value, IndexType):
        return value
    try:
        return IndexType(str(value).lower())
    except ValueError as exc:
        allowed = sorted(t.value for t in IndexType)
        raise InvalidArgumentError(f"index_type must be one of {allowed} (got {value!r})") from exc


def ref_key_case_from_value(value: RefKeyCase | str | None) -> RefKeyCase | None:
    """
    Parse a ref key case value; None leaves index values unmodified.

    Raises:
      InvalidArgumentError: If value is not "upper" or "lower".
    """
    if value is None:
        return None
    if isinstance(value, RefKeyCase):
        return value
    try:
        return RefKeyCase(str(value).lower())
    except ValueError as exc:
        allowed = sorted(c.value for c in RefKeyCase)
        raise InvalidArgumentError(
            f"ref_key_case must be one of {allowed} (got {value!r})"
        ) from exc


def hook_phase_from_value(value: HookPhase | str) -> HookPhase:
    """Parse "pre"/"post" into a HookPhase."""
    if isinstance(value, HookPhase):
        return value
    try:
        return HookPhase(str(value).lower())
    except ValueError as exc:
        raise InvalidArgumentError(f"hook phase must be 'pre' or 'post' (got {value!r})") from exc


def strip_trailing_digits(name: str) -> str:
    """
    Drop a trailing digit suffix from a property name (``item2`` -> ``item``).

    Notes:
      A deliberately narrow legacy heuristic for multi-valued property patterns
      (``address1``, ``address2``). A name made only of digits is returned as is.
    """
    match = _TRAILING_DIGITS_RE.match(name)
    return match.group(1) if match else name


def _singular_component(prop: str) -> str:
    return inflection.singularize(strip_trailing_digits(prop))


def infer_index_name(prop: str | Sequence[str]) -> str:
    """
    Infer an index name from the indexed property or properties.

    Args:
      prop (str | Sequence[str]): Single property name, or ordered property names
        of a compound index.

    Returns:
      str: For a single property, the singular form of the name with any
      trailing digits dropped (``users`` -> ``user``). For a compound index,
      each component is normalized the same way (its first ``.`` replaced by
      ``_``), camelized, and joined with ``And`` in declaration order
      (``["emails", "userName"]`` -> ``EmailAndUserName``).

    Examples:
      >>> infer_index_name("items2")
      'item'
      >>> infer_index_name(["profile.email", "tags"])
      'ProfileEmailAndTag'
    """
    if isinstance(prop, str):
        return _singular_component(prop)
    parts = [
        inflection.camelize(_singular_component(p.replace(".", "_", 1)), True) for p in prop
    ]
    return "And".join(parts)
