"""
Pydantic v2 models for per-schema options.

SchemaOptions validates the options mapping passed to ``Schema(...)``. Field names
are lower_snake; the camelCase spellings used by model-layer configuration
(``keyPrefix``, ``dotNotation``, ``toJSON``...) are accepted as aliases. Unknown
keys are kept as extras so consumers can carry their own settings.

Style
- Models are frozen; ``Schema.set`` replaces the model rather than mutating it.
- Callables (dynamic key, write interception, transforms) are stored as given.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "SerializationOptions",
    "SchemaOptions",
    "option_field_name",
]


class SerializationOptions(BaseModel):
    """
    Options for ``to_object``/``to_json`` conversion in the model layer.

    Attributes:
        minimize (bool): Omit empty nested objects.
        transform (Callable | None): Post-conversion transform function.
        virtuals (bool): Include virtual properties.
        date_to_iso (bool): Render dates as ISO-8601 strings.
    """

    model_config = ConfigDict(
        extra="allow", frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    minimize: bool = True
    transform: Callable[..., Any] | None = None
    virtuals: bool = False
    date_to_iso: bool = Field(
        default=False, validation_alias=AliasChoices("date_to_iso", "dateToISO", "dateToIso")
    )


class SchemaOptions(BaseModel):
    """
    Validated schema options.

    Attributes:
        strict (bool): Reject unknown properties at write time.
        dot_notation (bool): Allow dotted-path property access.
        minimize (bool): Omit empty nested objects on serialization.
        to_object (SerializationOptions | None): ``to_object`` sub-configuration.
        to_json (SerializationOptions | None): ``to_json`` sub-configuration.
        on_before_value_set (Callable | None): Write interceptor; returning False
            cancels the write (model layer).
        on_value_set (Callable | None): Called after a value is written.
        save_options (dict[str, Any] | None): Opaque options forwarded to persistence calls.
        key_prefix (str | None): Document key prefix (overridden by the key property's ``prefix``).
        key_suffix (str | None): Document key suffix (overridden by the key property's ``suffix``).
        dynamic_key (Callable[[str], str] | None): One-argument key function. It maps
            an expanded document key to the final key, and for reference keys it
            receives the key prefix (possibly empty) and its result replaces that
            prefix. A zero-argument function is not supported.
        delimiter (str | None): Separator between index name and value in ref keys.
        ref_index_key_prefix (str | None): Prefix for reference lookup document keys.

    Notes:
        None for key_prefix/key_suffix/delimiter/ref_index_key_prefix defers to
        docmap.config.SchemaSettings.

    Examples:
        >>> SchemaOptions.model_validate({"keyPrefix": "user::"}).key_prefix
        'user::'
    """

    model_config = ConfigDict(
        extra="allow", frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    strict: bool = True
    dot_notation: bool = True
    minimize: bool = True
    to_object: SerializationOptions | None = None
    to_json: SerializationOptions | None = Field(
        default=None, validation_alias=AliasChoices("to_json", "toJSON", "toJson")
    )
    on_before_value_set: Callable[..., Any] | None = None
    on_value_set: Callable[..., Any] | None = None
    save_options: dict[str, Any] | None = None
    key_prefix: str | None = None
    key_suffix: str | None = None
    dynamic_key: Callable[[str], str] | None = None
    delimiter: str | None = None
    ref_index_key_prefix: str | None = None


_OPTION_ALIASES: dict[str, str] = {
    to_camel(name): name for name in SchemaOptions.model_fields if to_camel(name) != name
}
_OPTION_ALIASES.update({"toJSON": "to_json"})


def option_field_name(key: str) -> str:
    """Map a camelCase option name onto its SchemaOptions field name; other keys pass through."""
    return _OPTION_ALIASES.get(key, key)
