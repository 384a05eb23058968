import datetime
import re

import pytest

from docmap.core.errors import InvalidArgumentError
from docmap.core.grammar import (
    HookPhase,
    IndexType,
    PropertyType,
    RefKeyCase,
    index_type_from_value,
    infer_index_name,
    property_type_from_value,
    ref_key_case_from_value,
    strip_trailing_digits,
)

LOWER_SNAKE = re.compile(r"^[a-z][a-z0-9_]*$")


@pytest.mark.parametrize("enum_cls", [PropertyType, IndexType, RefKeyCase, HookPhase])
def test_all_enum_values_are_lower_snake(enum_cls: type) -> None:
    for member in enum_cls:
        assert LOWER_SNAKE.match(member.value), f"{enum_cls.__name__}.{member.name}"


@pytest.mark.parametrize(
    "name, expected",
    [("item2", "item"), ("address12", "address"), ("item", "item"), ("42", "42")],
)
def test_strip_trailing_digits(name: str, expected: str) -> None:
    assert strip_trailing_digits(name) == expected


@pytest.mark.parametrize(
    "prop, expected",
    [
        ("users", "user"),
        ("email", "email"),
        ("items2", "item"),
        (["emails", "userName"], "EmailAndUserName"),
        (["profile.email", "tags"], "ProfileEmailAndTag"),
    ],
)
def test_infer_index_name(prop: object, expected: str) -> None:
    assert infer_index_name(prop) == expected


def test_compound_name_follows_declaration_order() -> None:
    assert infer_index_name(["name", "email"]) != infer_index_name(["email", "name"])


def test_property_type_resolution() -> None:
    assert property_type_from_value(datetime.datetime) is PropertyType.DATE
    assert property_type_from_value("  BOOLEAN ") is PropertyType.BOOLEAN
    assert property_type_from_value(PropertyType.BYTES) is PropertyType.BYTES
    assert property_type_from_value(None) is PropertyType.ANY


def test_option_value_parsers() -> None:
    assert index_type_from_value(None) is IndexType.SINGLE
    assert index_type_from_value("ARRAY") is IndexType.ARRAY
    assert ref_key_case_from_value(None) is None
    assert ref_key_case_from_value("upper") is RefKeyCase.UPPER
    with pytest.raises(InvalidArgumentError):
        index_type_from_value("hash")
    with pytest.raises(InvalidArgumentError):
        ref_key_case_from_value("title")
