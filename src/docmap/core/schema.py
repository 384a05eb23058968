"""
Schema aggregate: the builder that owns a model type's metadata.

A Schema turns a declarative property descriptor into the normalized
descriptor tree, the document key policy, secondary index and reference
metadata, and the method/static/hook side tables that the model layer consumes.

Responsibilities
- Normalize properties on construction and ``add`` (docmap.core.descriptor).
- Register references and single-property indexes from raw definitions
  (docmap.core.extract), and explicit/compound indexes via ``index``.
- Locate or synthesize the document key property and validate it.
- Expand/strip document keys and derive reference document keys
  (docmap.core.keys).
- Compose schemas with ``extend`` (fill-in only, never overwrite).
- Produce an immutable SchemaSnapshot with ``freeze`` for read-only consumers.

Lifecycle
- Built once at startup, incrementally through ``add``/``index``/``method``/
  ``static``/``virtual``/``pre``/``post``/``set``/``extend``; then frozen and
  handed to model construction. A snapshot never observes later builder changes.

Errors
- SchemaKeyError: key property also indexed, also a reference, or not string/number.
- InvalidArgumentError: malformed names, handlers, virtual accessors or index options.

Examples:
    >>> from docmap.core.schema import Schema
    >>> schema = Schema({"email": str, "name": str}, {"keyPrefix": "user::"})
    >>> schema.key.doc_key_key
    'id'
    >>> schema.get_document_key_value("42", True)
    'user::42'
    >>> schema.index(["email", "name"], index_name="EmailAndName").indexes["EmailAndName"].compound
    True
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Final

from pydantic import BaseModel

from docmap.config import SchemaSettings

from .constants import DEFAULT_KEY_PROPERTY
from .descriptor import PrimitiveDescriptor, PropertyDescriptor, VirtualDescriptor, normalize
from .errors import InvalidArgumentError, SchemaKeyError
from .extract import IndexInfo, RefInfo, extract_indexes, extract_refs, make_index
from .grammar import (
    KEY_TYPES,
    HookPhase,
    IndexType,
    PropertyType,
    RefKeyCase,
    hook_phase_from_value,
    property_type_from_value,
)
from .keys import DocumentKey, document_key_value, ref_key
from .options import SchemaOptions, option_field_name
from .typing import RawDescriptor

__all__ = [
    "HookRegistration",
    "Schema",
    "SchemaSnapshot",
]

logger = logging.getLogger(__name__)

_UNSET: Final[Any] = object()

HookKey = tuple[HookPhase, str]


@dataclass(frozen=True)
class HookRegistration:
    """
    Ordered middleware functions registered for one (phase, event) pair.

    Attributes:
        phase (HookPhase): PRE or POST.
        name (str): Event name (e.g., "save", "remove").
        fns (tuple[Callable, ...]): Functions in registration order; duplicates allowed.
    """

    phase: HookPhase
    name: str
    fns: tuple[Callable[..., Any], ...] = ()

    @property
    def hook_key(self) -> str:
        """String form of the registration key, e.g. ``"pre:save"``."""
        return f"{self.phase.value}:{self.name}"


def _deep_merge(dest: dict[str, Any], src: Mapping[str, Any]) -> dict[str, Any]:
    for k, v in src.items():
        if isinstance(dest.get(k), Mapping) and isinstance(v, Mapping):
            dest[k] = _deep_merge(dict(dest[k]), v)
        else:
            dest[k] = v
    return dest


def _check_key_property(name: str, d: PrimitiveDescriptor) -> None:
    if d.index:
        raise SchemaKeyError(f"Schema key cannot be index field ({name!r})")
    if d.ref is not None:
        raise SchemaKeyError(f"Schema key cannot be reference property ({name!r})")
    if d.type not in KEY_TYPES:
        raise SchemaKeyError(
            f"Schema expects key to be a String or a Number ({name!r} is {d.type.value})"
        )


class _SchemaReader:
    """Read API shared by the Schema builder and its frozen snapshots."""

    options: SchemaOptions
    settings: SchemaSettings
    indexes: Mapping[str, IndexInfo]
    refs: Mapping[str, RefInfo]
    key: DocumentKey

    def get(self, key: str) -> Any:
        """
        Get a schema option by snake_case or camelCase name.

        Returns:
            Any: The option value, or None for an unknown extra option.
        """
        name = option_field_name(key)
        if name in SchemaOptions.model_fields:
            return getattr(self.options, name)
        return (self.options.model_extra or {}).get(key)

    def _option_or_setting(self, name: str) -> str:
        value = getattr(self.options, name)
        return value if isinstance(value, str) else getattr(self.settings, name)

    def get_document_key_value(self, id: Any, full: bool = False) -> Any:
        """
        Expand or strip a document key using this schema's key policy.

        Args:
            id (Any): Candidate identifier; non-strings are returned unchanged.
            full (bool): Return the fully expanded key (prefix/suffix applied, then
                the dynamic key function) instead of the bare identifier.

        Returns:
            Any: Expanded or bare key. Expansion is idempotent.

        Examples:
            >>> schema = Schema({"email": str}, {"key_prefix": "user::"})
            >>> schema.get_document_key_value("user::114477a8", True)
            'user::114477a8'
            >>> schema.get_document_key_value("user::114477a8", False)
            '114477a8'
        """
        k = self.key
        return document_key_value(
            id, full, prefix=k.prefix or "", suffix=k.suffix or "", dynamic_key=k.dynamic_key
        )

    def get_ref_key(self, index_name: str, value: Any) -> str:
        """
        Derive the key of the reference document for ``value`` under ``index_name``.

        Notes:
            The matching index's ref_key_case is applied to the value. Keys longer than
            250 UTF-8 bytes carry ``hashed_<md5>`` in place of the value.
        """
        index = self.indexes.get(index_name)
        return ref_key(
            index_name,
            value,
            key_prefix=self._option_or_setting("key_prefix"),
            ref_index_key_prefix=self._option_or_setting("ref_index_key_prefix"),
            delimiter=self._option_or_setting("delimiter"),
            ref_key_case=index.ref_key_case if index else None,
            dynamic_key=self.options.dynamic_key,
        )

    def has_ref_path(self, path: str | None) -> bool:
        """Return True if ``path`` is a registered reference path (case-insensitive)."""
        if not path:
            return False
        wanted = path.lower()
        return any(ref.path.lower() == wanted for ref in self.refs.values())


@dataclass(frozen=True)
class SchemaSnapshot(_SchemaReader):
    """
    Immutable view of a Schema, consumed by the model layer.

    All mappings are read-only proxies over copies taken at ``Schema.freeze()``.
    """

    descriptor: Mapping[str, PropertyDescriptor]
    key: DocumentKey
    indexes: Mapping[str, IndexInfo]
    refs: Mapping[str, RefInfo]
    methods: Mapping[str, Callable[..., Any]]
    statics: Mapping[str, Any]
    hooks: Mapping[HookKey, HookRegistration]
    options: SchemaOptions
    settings: SchemaSettings = field(default_factory=SchemaSettings)


class Schema(_SchemaReader):
    """
    Schema definition builder: properties, key policy, indexes, refs, methods,
    statics and hook registrations.

    Args:
        descriptor (Mapping[str, Any] | None): Property name -> raw definition.
        options (Mapping[str, Any] | SchemaOptions | None): Schema options; see
            docmap.core.options.SchemaOptions (camelCase names accepted).
        settings (SchemaSettings | None): Process-wide defaults for key derivation
            values the options leave unset.

    Raises:
        SchemaKeyError: On conflicting or mistyped key declarations.
        pydantic.ValidationError: On malformed option values.

    Examples:
        >>> schema = Schema({"username": {"type": str, "key": True, "prefix": "user::"}})
        >>> schema.key.doc_key_key, schema.key.prefix, schema.key.generate
        ('username', 'user::', False)
    """

    def __init__(
        self,
        descriptor: RawDescriptor | None = None,
        options: Mapping[str, Any] | SchemaOptions | None = None,
        *,
        settings: SchemaSettings | None = None,
    ) -> None:
        self.settings = settings or SchemaSettings()
        if isinstance(options, SchemaOptions):
            self.options = options
        else:
            self.options = SchemaOptions.model_validate(dict(options or {}))

        self.descriptor: dict[str, PropertyDescriptor] = {}
        self.methods: dict[str, Callable[..., Any]] = {}
        self.statics: dict[str, Any] = {}
        self.hooks: dict[HookKey, HookRegistration] = {}
        self.refs: dict[str, RefInfo] = {}
        self.indexes: dict[str, IndexInfo] = {}
        self._key = DocumentKey(doc_key_key="")

        self.add(descriptor or {})

    def __repr__(self) -> str:
        return f"Schema(properties={list(self.descriptor)!r}, key={self._key.doc_key_key!r})"

    # ------------------------------------------------------------------
    # Key policy
    # ------------------------------------------------------------------

    @property
    def key(self) -> DocumentKey:
        """
        Resolved document key policy.

        The key property's own ``prefix``/``suffix`` win over the ``key_prefix``/
        ``key_suffix`` options, which win over SchemaSettings.
        """
        k = self._key
        prefix = k.prefix if k.prefix is not None else self._option_or_setting("key_prefix")
        suffix = k.suffix if k.suffix is not None else self._option_or_setting("key_suffix")
        return replace(k, prefix=prefix, suffix=suffix, dynamic_key=self.options.dynamic_key)

    def _apply_document_key(self, descriptor: dict[str, PropertyDescriptor]) -> DocumentKey:
        """
        Resolve the document key of ``descriptor``.

        The property flagged ``key`` wins (the last one when several are flagged).
        Without one, the current key property is kept, or a generated string ``id``
        is synthesized (written into ``descriptor``) when no key has ever been
        declared. An existing string or number ``id`` is adopted, provided it is
        neither indexed nor a reference.

        Returns:
            DocumentKey: The resolved policy; the schema itself is not modified.

        Raises:
            SchemaKeyError: Key property is also an index, also a reference, or has a
                type other than string/number.
        """
        found: tuple[str, PrimitiveDescriptor] | None = None
        for name, d in descriptor.items():
            if isinstance(d, PrimitiveDescriptor) and d.key:
                _check_key_property(name, d)
                found = (name, d)

        if found is not None:
            name, d = found
            prefix = d.options.get("prefix")
            suffix = d.options.get("suffix")
            generate = d.options.get("generate")
            return DocumentKey(
                doc_key_key=name,
                prefix=prefix if isinstance(prefix, str) else self._key.prefix,
                suffix=suffix if isinstance(suffix, str) else self._key.suffix,
                generate=generate if isinstance(generate, bool) else False,
            )

        name = self._key.doc_key_key or DEFAULT_KEY_PROPERTY
        existing = descriptor.get(name)
        if isinstance(existing, PrimitiveDescriptor) and existing.type in KEY_TYPES:
            _check_key_property(name, existing)
        elif self._key.doc_key_key:
            raise SchemaKeyError(f"Schema expects key to be a String or a Number ({name!r})")
        else:
            descriptor[name] = normalize(str, name)
        if self._key.doc_key_key:
            return self._key
        return DocumentKey(doc_key_key=name, generate=True)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def add(self, key_or_map: str | RawDescriptor, descriptor: Any = None) -> Schema:
        """
        Add one property, or a mapping of properties, to the schema.

        Every definition is normalized and the document key re-resolved before
        anything is stored, so a rejected call leaves the schema unchanged.

        Args:
            key_or_map (str | Mapping[str, Any]): Property name, or name -> definition mapping.
            descriptor (Any): Raw definition when ``key_or_map`` is a name; None means ``any``.

        Returns:
            Schema: self, for chaining.

        Examples:
            >>> schema = Schema({"first_name": str})
            >>> schema.add("last_name", str).add({"email": str})  # doctest: +ELLIPSIS
            Schema(properties=[...], key='id')
        """
        if isinstance(key_or_map, str):
            raw: RawDescriptor = {
                key_or_map: PropertyType.ANY if descriptor is None else descriptor
            }
        elif isinstance(key_or_map, Mapping):
            raw = key_or_map
        else:
            raise InvalidArgumentError(
                f"Schema.add expects a property name or a mapping (got {type(key_or_map).__name__})"
            )

        refs = extract_refs(raw)
        indexes = extract_indexes(raw)
        staged = dict(self.descriptor)
        for name, spec in raw.items():
            staged[name] = normalize(spec, name)
        key = self._apply_document_key(staged)

        self.descriptor.update(staged)
        self.refs.update((ref.path, ref) for ref in refs)
        self.indexes.update((index.name, index) for index in indexes)
        self._key = key
        for name in raw:
            logger.debug("Added property %r as %s", name, self.descriptor[name].type.value)
        return self


    def virtual(
        self,
        name: str,
        type: Any = None,
        options: Mapping[str, Callable[..., Any]] | None = None,
    ) -> Schema:
        """
        Define a virtual (computed, unstored) property.

        Args:
            name (str): Property name.
            type (Any): Optional value type tag; ``any`` when omitted. The accessor
                mapping may be passed here instead, with ``options`` omitted.
            options (Mapping): ``{"get": fn}`` plus an optional ``"set"`` function.
                Without a setter the virtual is read-only.

        Raises:
            InvalidArgumentError: Non-string name, non-mapping options, or no callable getter.
            SchemaKeyError: ``name`` is the document key property.
        """
        if not isinstance(name, str):
            raise InvalidArgumentError("Schema.virtual expects a string identifier as a property name")
        if name == self._key.doc_key_key:
            raise SchemaKeyError(f"Schema key cannot be virtual property ({name!r})")

        if isinstance(type, Mapping) and options is None:
            options, type = type, PropertyType.ANY
        if not isinstance(options, Mapping):
            raise InvalidArgumentError("Schema.virtual expects a mapping of accessors")
        getter = options.get("get")
        if not callable(getter):
            raise InvalidArgumentError("Schema.virtual expects a mapping with a get function")
        setter = options.get("set")
        if setter is not None and not callable(setter):
            raise InvalidArgumentError("Schema.virtual expects the set accessor to be a function")

        self.descriptor[name] = VirtualDescriptor(
            type=property_type_from_value(PropertyType.ANY if type is None else type),
            get=getter,
            set=setter,
        )
        return self

    # ------------------------------------------------------------------
    # Indexes
    # ------------------------------------------------------------------

    def index(
        self,
        prop: str | Sequence[str],
        *,
        index_name: str | None = None,
        index_type: IndexType | str | None = None,
        ref_key_case: RefKeyCase | str | None = None,
    ) -> Schema:
        """
        Register an index over one property or an ordered compound of properties.

        Args:
            prop (str | Sequence[str]): Property name, or property names of a compound
                index (order matters for the composite key and accessor name).
            index_name (str | None): Explicit name; inferred when omitted (see
                docmap.core.grammar.infer_index_name).
            index_type (IndexType | str | None): ``"single"`` (default) or ``"array"``.
            ref_key_case (RefKeyCase | str | None): ``"upper"``/``"lower"`` folding of
                lookup values.

        Returns:
            Schema: self, for chaining. Re-registering a name overwrites it.

        Raises:
            InvalidArgumentError: Empty/non-string property names or unknown option values.

        Examples:
            >>> schema = Schema({"users": [str]})
            >>> list(schema.index("users").indexes)
            ['user']
        """
        if isinstance(prop, str):
            props = [prop]
        elif isinstance(prop, Sequence):
            props = list(prop)
        else:
            props = []
        if not props or not all(isinstance(p, str) and p for p in props):
            raise InvalidArgumentError("Schema.index expects a property name or a sequence of names")

        info = make_index(
            prop if isinstance(prop, str) else props,
            index_name=index_name,
            index_type=index_type,
            ref_key_case=ref_key_case,
        )
        self.indexes[info.name] = info
        logger.debug("Registered index %r on %r", info.name, info.path)
        return self

    # ------------------------------------------------------------------
    # Methods, statics, options
    # ------------------------------------------------------------------

    def method(
        self, name_or_map: str | Mapping[str, Callable[..., Any]], fn: Callable[..., Any] | None = None
    ) -> Schema:
        """
        Register an instance method (or a mapping of them) for the model type.

        Raises:
            InvalidArgumentError: Non-string name or non-callable handler.
        """
        if isinstance(name_or_map, Mapping):
            for name, handler in name_or_map.items():
                self.method(name, handler)
            return self
        if not isinstance(name_or_map, str):
            raise InvalidArgumentError("Schema.method expects a string identifier as a function name")
        if not callable(fn):
            raise InvalidArgumentError("Schema.method expects a function as a handle")
        self.methods[name_or_map] = fn
        return self

    def static(self, name_or_map: str | Mapping[str, Any], value: Any = None) -> Schema:
        """
        Register a static function or static value (or a mapping of them).

        Raises:
            InvalidArgumentError: Non-string name.
        """
        if isinstance(name_or_map, Mapping):
            for name, v in name_or_map.items():
                self.static(name, v)
            return self
        if not isinstance(name_or_map, str):
            raise InvalidArgumentError("Schema.static expects a string identifier as a name")
        self.statics[name_or_map] = value
        return self

    def _options_data(self, options: SchemaOptions | None = None) -> dict[str, Any]:
        # Present options: explicitly set ones plus those with a non-None default.
        opts = options or self.options
        data: dict[str, Any] = {}
        for name, info in SchemaOptions.model_fields.items():
            if name in opts.model_fields_set or info.default is not None:
                value = getattr(opts, name)
                if isinstance(value, BaseModel):
                    value = value.model_dump(exclude_unset=True)
                data[name] = value
        data.update(opts.model_extra or {})
        return data

    def set(self, key: str, value: Any = _UNSET) -> Any:
        """
        Set a schema option, or get it when called with only ``key``.

        Returns:
            Any: self when setting (for chaining), the option value when getting.

        Raises:
            pydantic.ValidationError: If the value is invalid for a known option.
        """
        if value is _UNSET:
            return self.get(key)
        data = self._options_data()
        data[option_field_name(key)] = value
        self.options = SchemaOptions.model_validate(data)
        return self

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def pre(self, event: str, fn: Callable[..., Any]) -> Schema:
        """Register a pre hook for ``event``; appended after existing ones."""
        return self._hook(HookPhase.PRE, event, fn)

    def post(self, event: str, fn: Callable[..., Any]) -> Schema:
        """Register a post hook for ``event``; appended after existing ones."""
        return self._hook(HookPhase.POST, event, fn)

    def _hook(self, phase: HookPhase | str, event: str, fn: Callable[..., Any]) -> Schema:
        phase = hook_phase_from_value(phase)
        if not isinstance(event, str):
            raise InvalidArgumentError("Schema hooks expect a string event name")
        if not callable(fn):
            raise InvalidArgumentError(f"Schema.{phase.value} expects a function as a handle")
        current = self.hooks.get((phase, event))
        if current is None:
            self.hooks[(phase, event)] = HookRegistration(phase, event, (fn,))
        else:
            self.hooks[(phase, event)] = replace(current, fns=current.fns + (fn,))
        return self

    # ------------------------------------------------------------------
    # Composition & snapshot
    # ------------------------------------------------------------------

    def extend(self, other: Schema) -> Schema:
        """
        Copy into this schema what ``other`` defines and this schema lacks.

        Properties, statics and methods are copied only under names absent here.
        Options absent here are deep-copied in; when both sides hold mappings for
        the same option they are deep-merged with this schema's values winning.
        Every hook function of ``other`` is appended through ``pre``/``post``.
        This schema's document key is kept: a copied key property loses its key flag.

        Returns:
            Schema: self, for chaining.

        Raises:
            InvalidArgumentError: If ``other`` is not a Schema.
        """
        if not isinstance(other, Schema):
            raise InvalidArgumentError("Schema.extend expects a Schema")

        copied: dict[str, PropertyDescriptor] = {}
        for name, d in other.descriptor.items():
            if name in self.descriptor:
                continue
            if isinstance(d, PrimitiveDescriptor) and d.key:
                d = replace(d, key=False)
            copied[name] = copy.deepcopy(d)
        if copied:
            self.add(copied)

        for name, value in other.statics.items():
            self.statics.setdefault(name, value)
        for name, fn in other.methods.items():
            self.methods.setdefault(name, fn)

        ours = self._options_data()
        for k, theirs in self._options_data(other.options).items():
            if k not in ours:
                ours[k] = copy.deepcopy(theirs)
            elif isinstance(ours[k], Mapping) and isinstance(theirs, Mapping):
                ours[k] = _deep_merge(copy.deepcopy(dict(theirs)), ours[k])
        self.options = SchemaOptions.model_validate(ours)

        for registration in list(other.hooks.values()):
            for fn in registration.fns:
                self._hook(registration.phase, registration.name, fn)

        logger.debug("Extended schema with %d properties: %s", len(copied), list(copied))
        return self

    def freeze(self) -> SchemaSnapshot:
        """
        Produce an immutable snapshot of the current definition.

        Examples:
            >>> snap = Schema({"name": str}).freeze()
            >>> snap.key.doc_key_key
            'id'
            >>> snap.descriptor["x"] = None
            Traceback (most recent call last):
            ...
            TypeError: 'mappingproxy' object does not support item assignment
        """
        return SchemaSnapshot(
            descriptor=MappingProxyType(dict(self.descriptor)),
            key=self.key,
            indexes=MappingProxyType(dict(self.indexes)),
            refs=MappingProxyType(dict(self.refs)),
            methods=MappingProxyType(dict(self.methods)),
            statics=MappingProxyType(dict(self.statics)),
            hooks=MappingProxyType(dict(self.hooks)),
            options=self.options,
            settings=self.settings,
        )
