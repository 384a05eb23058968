import pytest

from docmap.config import SchemaSettings
from docmap.core.constants import MAX_REF_KEY_LENGTH
from docmap.core.hashing import md5_hexdigest, utf8_byte_length
from docmap.core.schema import Schema

PREFIX = "$_ref_by_email_"


def make_schema(**options: object) -> Schema:
    schema = Schema({"email": str}, options)
    schema.index("email")
    return schema


def test_short_value_is_plain_concatenation() -> None:
    assert make_schema().get_ref_key("email", "joe@example.com") == PREFIX + "joe@example.com"


def test_key_prefix_and_delimiter_options() -> None:
    schema = make_schema(keyPrefix="user::", delimiter="::", refIndexKeyPrefix="$ref::")
    assert schema.get_ref_key("email", "joe") == "user::$ref::email::joe"


def test_settings_supply_defaults() -> None:
    schema = Schema({"email": str}, settings=SchemaSettings(delimiter="|", ref_index_key_prefix="r:"))
    assert schema.get_ref_key("email", "joe") == "r:email|joe"


@pytest.mark.parametrize(
    "case, expected",
    [("upper", "JOE@EXAMPLE.COM"), ("lower", "joe@example.com")],
)
def test_ref_key_case_folds_value(case: str, expected: str) -> None:
    schema = Schema({"email": str})
    schema.index("email", ref_key_case=case)
    assert schema.get_ref_key("email", "Joe@Example.com") == PREFIX + expected


def test_unknown_index_keeps_value_case() -> None:
    assert Schema({"email": str}).get_ref_key("email", "Joe") == PREFIX + "Joe"


def test_boundary_is_inclusive() -> None:
    schema = make_schema()
    at_limit = "a" * (MAX_REF_KEY_LENGTH - len(PREFIX))
    assert schema.get_ref_key("email", at_limit) == PREFIX + at_limit

    over = at_limit + "a"
    hashed = schema.get_ref_key("email", over)
    assert hashed == PREFIX + "hashed_" + md5_hexdigest(over)
    assert hashed != PREFIX + over


def test_length_is_measured_in_utf8_bytes() -> None:
    value = "é" * 118
    assert utf8_byte_length(PREFIX + value) > MAX_REF_KEY_LENGTH
    assert len(PREFIX + value) < MAX_REF_KEY_LENGTH
    assert make_schema().get_ref_key("email", value).startswith(PREFIX + "hashed_")


def test_case_folding_happens_before_hashing() -> None:
    schema = Schema({"email": str})
    schema.index("email", ref_key_case="lower")
    long_value = "A" * 300
    assert schema.get_ref_key("email", long_value) == schema.get_ref_key("email", long_value.lower())


def test_dynamic_key_replaces_key_prefix() -> None:
    schema = make_schema(key_prefix="user::", dynamic_key=lambda kp: "tenant1::" + kp)
    assert schema.get_ref_key("email", "joe") == "tenant1::user::" + PREFIX + "joe"


def test_non_string_values_are_rendered() -> None:
    assert make_schema().get_ref_key("email", 42) == PREFIX + "42"


def test_dynamic_key_is_called_with_the_key_prefix() -> None:
    seen: list[str] = []

    def tenant_prefix(key_prefix: str) -> str:
        seen.append(key_prefix)
        return "tenant1::"

    assert make_schema(dynamic_key=tenant_prefix).get_ref_key("email", "joe") == (
        "tenant1::" + PREFIX + "joe"
    )
    assert seen == [""]
