"""
Reference and index discovery over descriptor trees.

Walks a property definition tree (raw, or already normalized variants) and
returns flat lists of reference and single-property index metadata, keyed by
dot-joined property path. The owning Schema registers the results.

Notes:
    - Raw definitions are read before normalization so that ``ref`` and
      ``index`` markers are seen exactly as declared.
    - A reference array such as ``[{"type": str, "ref": "Tag"}]`` yields one
      reference at the array's own path with ``is_array=True``. References
      inside nested array members (``[{"owner": {"ref": "User"}}]``) are joined
      under the array path (``items.owner``) and also flagged ``is_array``.
    - Virtual properties never produce references or indexes.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from .descriptor import (
    ArrayDescriptor,
    NestedDescriptor,
    PrimitiveDescriptor,
    VirtualDescriptor,
    is_full_descriptor,
)
from .grammar import (
    IndexType,
    RefKeyCase,
    index_type_from_value,
    infer_index_name,
    ref_key_case_from_value,
)
from .typing import RawDescriptor

__all__ = [
    "RefInfo",
    "IndexInfo",
    "extract_refs",
    "extract_indexes",
    "make_index",
]


@dataclass(frozen=True)
class RefInfo:
    """
    Reference metadata for one property path.

    Attributes:
        path (str): Dot-joined property path.
        target (Any): Referenced model name or schema.
        is_array (bool): The property holds a collection of references.
    """

    path: str
    target: Any
    is_array: bool = False


@dataclass(frozen=True)
class IndexInfo:
    """
    Secondary index metadata.

    Attributes:
        path (str | tuple[str, ...]): Indexed property, or ordered properties of a
            compound index.
        name (str): Index name; basis of the generated lookup accessor name.
        index_type (IndexType): SINGLE or ARRAY.
        compound (bool): True when ``path`` is a sequence of properties.
        ref_key_case (RefKeyCase | None): Case folding applied to lookup values.
    """

    path: str | tuple[str, ...]
    name: str
    index_type: IndexType = IndexType.SINGLE
    compound: bool = False
    ref_key_case: RefKeyCase | None = None


def _join(prefix: str | None, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def make_index(
    prop: str | Sequence[str],
    *,
    index_name: str | None = None,
    index_type: IndexType | str | None = None,
    ref_key_case: RefKeyCase | str | None = None,
) -> IndexInfo:
    """
    Build IndexInfo for one property or an ordered compound of properties.

    Raises:
        InvalidArgumentError: On unknown index_type or ref_key_case values.
    """
    compound = not isinstance(prop, str)
    path: str | tuple[str, ...] = prop if isinstance(prop, str) else tuple(prop)
    return IndexInfo(
        path=path,
        name=index_name or infer_index_name(path),
        index_type=index_type_from_value(index_type),
        compound=compound,
        ref_key_case=ref_key_case_from_value(ref_key_case),
    )


# ----------------------------------------------------------------------------
# References
# ----------------------------------------------------------------------------


def _member_refs(items: Any, path: str) -> list[RefInfo]:
    # References inside array members are reported under the array's path.
    return [replace(ref, is_array=True) for ref in _refs_for(items, path)]


def _refs_for(spec: Any, path: str) -> list[RefInfo]:
    if isinstance(spec, VirtualDescriptor):
        return []
    if isinstance(spec, PrimitiveDescriptor):
        return [RefInfo(path, spec.ref)] if spec.ref is not None else []
    if isinstance(spec, ArrayDescriptor):
        target = spec.ref if spec.ref is not None else getattr(spec.items, "ref", None)
        if target is not None:
            return [RefInfo(path, target, is_array=True)]
        return _member_refs(spec.items, path)
    if isinstance(spec, NestedDescriptor):
        return extract_refs(spec.properties, path)

    if isinstance(spec, list | tuple):
        if not spec:
            return []
        inner = spec[0]
        if isinstance(inner, PrimitiveDescriptor) and inner.ref is not None:
            return [RefInfo(path, inner.ref, is_array=True)]
        if isinstance(inner, Mapping) and is_full_descriptor(inner) and inner.get("ref"):
            return [RefInfo(path, inner["ref"], is_array=True)]
        return _member_refs(inner, path)

    if not isinstance(spec, Mapping):
        return []
    if not is_full_descriptor(spec):
        return extract_refs(spec, path)

    type_spec = spec.get("type")
    if spec.get("ref") is not None:
        return [RefInfo(path, spec["ref"], is_array=isinstance(type_spec, list | tuple))]
    if isinstance(type_spec, list | tuple):
        return _refs_for(type_spec, path)
    if isinstance(type_spec, Mapping):
        return extract_refs(type_spec, path)
    return []


def extract_refs(descriptor: RawDescriptor, prefix: str | None = None) -> list[RefInfo]:
    """
    Collect every property declaring a ``ref`` target.

    Args:
        descriptor (Mapping[str, Any]): Property name -> definition mapping.
        prefix (str | None): Path of the enclosing object for nested walks.

    Returns:
        list[RefInfo]: One entry per reference, in declaration order.

    Examples:
        >>> [r.path for r in extract_refs({"owner": {"type": str, "ref": "User"},
        ...                                "meta": {"creator": {"type": str, "ref": "User"}}})]
        ['owner', 'meta.creator']
    """
    refs: list[RefInfo] = []
    for name, spec in descriptor.items():
        refs.extend(_refs_for(spec, _join(prefix, name)))
    return refs


# ----------------------------------------------------------------------------
# Indexes
# ----------------------------------------------------------------------------


def _declared_index(path: str, options: Mapping[str, Any], is_array: bool) -> IndexInfo:
    index_type = options.get("index_type") or (IndexType.ARRAY if is_array else None)
    return make_index(
        path,
        index_name=options.get("index_name"),
        index_type=index_type,
        ref_key_case=options.get("ref_key_case"),
    )


def _indexes_for(spec: Any, path: str) -> list[IndexInfo]:
    if isinstance(spec, PrimitiveDescriptor):
        return [_declared_index(path, spec.options, False)] if spec.index else []
    if isinstance(spec, ArrayDescriptor):
        return [_declared_index(path, spec.options, True)] if spec.index else []
    if isinstance(spec, NestedDescriptor):
        return extract_indexes(spec.properties, path)
    if not isinstance(spec, Mapping):
        return []
    if not is_full_descriptor(spec):
        return extract_indexes(spec, path)

    type_spec = spec.get("type")
    if spec.get("index") is True:
        return [_declared_index(path, spec, isinstance(type_spec, list | tuple))]
    if isinstance(type_spec, Mapping):
        return extract_indexes(type_spec, path)
    return []


def extract_indexes(descriptor: RawDescriptor, key: str | None = None) -> list[IndexInfo]:
    """
    Collect a single-property index for every property flagged ``index: True``.

    Args:
        descriptor (Mapping[str, Any]): Property name -> definition mapping.
        key (str | None): Path of the enclosing object; property paths are joined
            under it.

    Returns:
        list[IndexInfo]: Non-compound entries. ``index_name``, ``index_type`` and
        ``ref_key_case`` flags on the property override inference; array
        properties default to IndexType.ARRAY.

    Examples:
        >>> [(i.path, i.name) for i in extract_indexes({"emails": {"type": [str], "index": True}})]
        [('emails', 'email')]
    """
    found: list[IndexInfo] = []
    for name, spec in descriptor.items():
        found.extend(_indexes_for(spec, _join(key, name)))
    return found
