"""
Descriptor normalization: raw property definitions to canonical variants.

Turns a caller's declarative, possibly nested property definition into one of
four frozen descriptor variants. Shape discrimination happens once, here;
downstream code matches on the variant type and never re-inspects raw shapes.

Variants
- PrimitiveDescriptor: scalar (or open) storage type plus key/index/ref flags.
- NestedDescriptor: embedded sub-object; ``properties`` maps names to variants.
- ArrayDescriptor: collection; ``items`` is the member variant.
- VirtualDescriptor: computed accessor pair with no storage representation.

Raw input forms
- Type shorthand: ``str``, ``int``, ``typing.Any``, ``"string"``, ``"Number"``...
- Array wrapper: ``[str]``, ``[{"street": str}]``, ``[]`` (array of any).
- Nested mapping: ``{"street": str, "zip": int}``.
- Full descriptor: a mapping carrying ``type``, ``ref`` or a boolean
  ``key``/``index`` flag, e.g.
  ``{"type": str, "key": True, "prefix": "user::"}``. Keys other than
  ``type``/``default``/``key``/``index``/``ref`` are kept in ``options``.
- Embedded schema: a ``Schema`` (or ``SchemaSnapshot``) instance.

Notes:
    - A mapping whose ``type`` entry is itself a mapping is a full descriptor of
      a nested shape; a sub-object cannot declare a property literally named
      ``type`` (or a boolean ``key``/``index``) through the nested shorthand.
    - Unknown type tags resolve to PropertyType.ANY.
    - normalize() is pure; callers store the result.

Examples:
    >>> from docmap.core.descriptor import normalize, PrimitiveDescriptor
    >>> normalize(str, "name")
    PrimitiveDescriptor(type=<PropertyType.STRING: 'string'>, default=<no default>, key=False, index=False, ref=None, options={})
    >>> normalize([{"street": str}], "addresses").items.properties["street"].type.value
    'string'
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Final, TypeAlias

from .errors import SchemaKeyError
from .grammar import PropertyType, is_type_tag, property_type_from_value

__all__ = [
    "NO_DEFAULT",
    "PrimitiveDescriptor",
    "NestedDescriptor",
    "ArrayDescriptor",
    "VirtualDescriptor",
    "PropertyDescriptor",
    "normalize",
    "is_full_descriptor",
    "is_virtual",
    "iter_stored",
]


class _NoDefault:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<no default>"

    def __bool__(self) -> bool:
        return False


NO_DEFAULT: Final[Any] = _NoDefault()

# Raw descriptor keys lifted into dedicated variant fields.
_RESERVED_KEYS: Final[frozenset[str]] = frozenset({"type", "default", "key", "index", "ref"})


@dataclass(frozen=True, slots=True)
class PrimitiveDescriptor:
    """
    Scalar property.

    Attributes:
        type (PropertyType): Storage type (ANY when omitted or unknown).
        default (Any): Default value, or NO_DEFAULT.
        key (bool): Property is the document key.
        index (bool): Property declares a single-property index.
        ref (Any): Target of a document reference (model name or schema), or None.
        options (Mapping[str, Any]): Remaining raw flags (prefix, suffix, generate,
            index_name, enum, validators...) passed through for the model layer.
    """

    type: PropertyType = PropertyType.ANY
    default: Any = NO_DEFAULT
    key: bool = False
    index: bool = False
    ref: Any = None
    options: Mapping[str, Any] = field(default_factory=dict)

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


@dataclass(frozen=True, slots=True)
class NestedDescriptor:
    """Embedded sub-object; an empty ``properties`` mapping is an open object."""

    properties: Mapping[str, PropertyDescriptor] = field(default_factory=dict)
    default: Any = NO_DEFAULT
    options: Mapping[str, Any] = field(default_factory=dict)
    type: PropertyType = field(default=PropertyType.OBJECT, init=False)

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


@dataclass(frozen=True, slots=True)
class ArrayDescriptor:
    """Collection whose members are all described by ``items``."""

    items: PropertyDescriptor = field(default_factory=PrimitiveDescriptor)
    default: Any = NO_DEFAULT
    index: bool = False
    ref: Any = None
    options: Mapping[str, Any] = field(default_factory=dict)
    type: PropertyType = field(default=PropertyType.ARRAY, init=False)

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


@dataclass(frozen=True, slots=True)
class VirtualDescriptor:
    """
    Computed property backed by accessors; never stored, keyed, indexed or referenced.

    Attributes:
        type (PropertyType): Declared value type (ANY by default).
        get (Callable): Getter receiving the model instance.
        set (Callable | None): Optional setter receiving the instance and the value.
    """

    type: PropertyType
    get: Callable[..., Any]
    set: Callable[..., Any] | None = None
    invisible: bool = field(default=True, init=False)

    @property
    def read_only(self) -> bool:
        return self.set is None


PropertyDescriptor: TypeAlias = (
    PrimitiveDescriptor | NestedDescriptor | ArrayDescriptor | VirtualDescriptor
)

_VARIANTS: Final = (PrimitiveDescriptor, NestedDescriptor, ArrayDescriptor, VirtualDescriptor)


def _embedded_properties(raw: Any) -> Mapping[str, PropertyDescriptor] | None:
    # Schema imports this module; resolve the classes lazily.
    from .schema import Schema, SchemaSnapshot

    if isinstance(raw, Schema | SchemaSnapshot):
        return dict(raw.descriptor)
    return None


def is_full_descriptor(raw: Mapping[str, Any]) -> bool:
    """
    Return True if a mapping is a property definition rather than a nested shape.

    A definition carries ``type``, a model-name or schema ``ref``, or a boolean
    ``key``/``index`` flag; an untyped definition resolves to ``any``.
    """
    if "type" in raw:
        return True
    if isinstance(raw.get("key"), bool) or isinstance(raw.get("index"), bool):
        return True
    ref = raw.get("ref")
    return isinstance(ref, str) or (ref is not None and _embedded_properties(ref) is not None)


def is_virtual(descriptor: PropertyDescriptor) -> bool:
    return isinstance(descriptor, VirtualDescriptor)


def iter_stored(
    descriptor: Mapping[str, PropertyDescriptor],
) -> Iterator[tuple[str, PropertyDescriptor]]:
    """Yield (name, descriptor) pairs for properties with a storage representation."""
    for name, d in descriptor.items():
        if not is_virtual(d):
            yield name, d


def _normalize_shape(type_spec: Any, name: str, **flags: Any) -> PropertyDescriptor:
    """Build the variant for a type spec, attaching the flags relevant to that variant."""
    key = flags.pop("key", False)
    index = flags.pop("index", False)
    ref = flags.pop("ref", None)
    default = flags.pop("default", NO_DEFAULT)
    options = flags.pop("options", {})

    embedded = None if is_type_tag(type_spec) else _embedded_properties(type_spec)
    if isinstance(type_spec, list | tuple):
        items = normalize(type_spec[0], name) if type_spec else PrimitiveDescriptor()
        shape: PropertyDescriptor = ArrayDescriptor(
            items=items, default=default, index=index, ref=ref, options=options
        )
    elif embedded is not None:
        shape = NestedDescriptor(properties=embedded, default=default, options=options)
    elif isinstance(type_spec, Mapping):
        shape = NestedDescriptor(
            properties={k: normalize(v, f"{name}.{k}") for k, v in type_spec.items()},
            default=default,
            options=options,
        )
    else:
        ptype = property_type_from_value(type_spec)
        if ptype is PropertyType.ARRAY:
            shape = ArrayDescriptor(default=default, index=index, ref=ref, options=options)
        elif ptype is PropertyType.OBJECT:
            shape = NestedDescriptor(default=default, options=options)
        else:
            return PrimitiveDescriptor(
                type=ptype, default=default, key=key, index=index, ref=ref, options=options
            )

    if key:
        raise SchemaKeyError(
            f"Schema expects key to be a String or a Number (property {name!r} is {shape.type.value})"
        )
    return shape


def normalize(raw: Any, name: str) -> PropertyDescriptor:
    """
    Normalize a raw property definition into a PropertyDescriptor variant.

    Args:
        raw (Any): Raw definition (see module docstring for accepted forms).
            Already-normalized variants are returned unchanged.
        name (str): Property name (dot-joined for nested properties); used in
            error messages only.

    Returns:
        PropertyDescriptor: Canonical variant with an explicit ``type``.

    Raises:
        SchemaKeyError: If a property flagged ``key`` is a nested or array shape.
    """
    if isinstance(raw, _VARIANTS):
        return raw
    if isinstance(raw, Mapping) and is_full_descriptor(raw):
        return _normalize_shape(
            raw.get("type", PropertyType.ANY),
            name,
            key=raw.get("key") is True,
            index=raw.get("index") is True,
            ref=raw.get("ref"),
            default=raw.get("default", NO_DEFAULT),
            options={k: v for k, v in raw.items() if k not in _RESERVED_KEYS},
        )
    return _normalize_shape(raw, name)
