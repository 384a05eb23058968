import pytest

from docmap.config import SchemaSettings
from docmap.core.descriptor import PrimitiveDescriptor
from docmap.core.errors import SchemaKeyError
from docmap.core.grammar import PropertyType
from docmap.core.schema import Schema

IDS = [
    "114477a8-1901-4146-8c90-0fc9eec57a58",
    "user::abc",
    "abc::v1",
    "user::abc::v1",
    "",
    "a\nb",
    "user::",
]


def test_default_key_is_synthesized_id() -> None:
    schema = Schema({"name": str})
    assert schema.key.doc_key_key == "id"
    assert schema.key.generate is True
    d = schema.descriptor["id"]
    assert isinstance(d, PrimitiveDescriptor)
    assert d.type is PropertyType.STRING
    assert [n for n, v in schema.descriptor.items() if getattr(v, "key", False)] == []


def test_empty_schema_still_has_a_key() -> None:
    assert Schema().key.doc_key_key == "id"


def test_explicit_key_records_prefix_suffix_and_generate() -> None:
    schema = Schema(
        {"username": {"type": str, "key": True, "prefix": "user::", "suffix": "::v1"}}
    )
    key = schema.key
    assert key.doc_key_key == "username"
    assert key.prefix == "user::"
    assert key.suffix == "::v1"
    assert key.generate is False
    assert "id" not in schema.descriptor


def test_explicit_key_can_opt_into_generation() -> None:
    schema = Schema({"code": {"type": "number", "key": True, "generate": True}})
    assert schema.key.generate is True


@pytest.mark.parametrize(
    "descriptor",
    [
        {"id": {"type": str, "key": True, "index": True}},
        {"id": {"type": str, "key": True, "ref": "Other"}},
        {"id": {"type": dict, "key": True}},
        {"id": {"type": bool, "key": True}},
    ],
)
def test_key_conflicts_are_rejected(descriptor: dict) -> None:
    with pytest.raises(SchemaKeyError):
        Schema(descriptor)


def test_key_conflict_raised_from_add() -> None:
    schema = Schema({"name": str})
    with pytest.raises(SchemaKeyError):
        schema.add("email", {"type": str, "key": True, "index": True})


def test_later_explicit_key_replaces_synthesized_id() -> None:
    schema = Schema({"name": str})
    schema.add("email", {"type": str, "key": True})
    assert schema.key.doc_key_key == "email"
    assert "id" in schema.descriptor


def test_key_property_prefix_wins_over_options() -> None:
    schema = Schema(
        {"email": {"type": str, "key": True, "prefix": "p::"}}, {"keyPrefix": "opt::"}
    )
    assert schema.key.prefix == "p::"
    assert schema.get_document_key_value("a", True) == "p::a"


def test_options_prefix_wins_over_settings() -> None:
    settings = SchemaSettings(key_prefix="env::", key_suffix="!")
    assert Schema({"name": str}, settings=settings).get_document_key_value("a", True) == "env::a!"
    schema = Schema({"name": str}, {"key_prefix": "user::"}, settings=settings)
    assert schema.get_document_key_value("a", True) == "user::a!"


@pytest.mark.parametrize("id_", IDS)
def test_full_expansion_is_idempotent(id_: str) -> None:
    schema = Schema({"name": str}, {"key_prefix": "user::", "key_suffix": "::v1"})
    once = schema.get_document_key_value(id_, True)
    assert schema.get_document_key_value(once, True) == once


@pytest.mark.parametrize("id_", IDS)
def test_expand_then_strip_round_trip(id_: str) -> None:
    schema = Schema({"name": str}, {"key_prefix": "user::", "key_suffix": "::v1"})
    full = schema.get_document_key_value(id_, True)
    assert schema.get_document_key_value(full, False) == schema.get_document_key_value(id_, False)


def test_expand_and_strip_examples() -> None:
    schema = Schema({"email": str}, {"keyPrefix": "user::"})
    uid = "114477a8-1901-4146-8c90-0fc9eec57a58"
    assert schema.get_document_key_value(uid, True) == f"user::{uid}"
    assert schema.get_document_key_value(f"user::{uid}", True) == f"user::{uid}"
    assert schema.get_document_key_value(f"user::{uid}", False) == uid
    assert schema.get_document_key_value(uid, False) == uid


def test_prefix_is_matched_literally() -> None:
    schema = Schema({"name": str}, {"key_prefix": "a.b"})
    assert schema.get_document_key_value("axbc", True) == "a.baxbc"
    assert schema.get_document_key_value("a.bc", False) == "c"


def test_dynamic_key_receives_expanded_key() -> None:
    seen: list[str] = []

    def tenant_key(key: str) -> str:
        seen.append(key)
        return f"tenant1::{key}"

    schema = Schema({"name": str}, {"key_prefix": "u::", "dynamic_key": tenant_key})
    assert schema.get_document_key_value("42", True) == "tenant1::u::42"
    assert schema.get_document_key_value("u::42", True) == "tenant1::u::42"
    assert seen == ["u::42", "u::42"]
    assert schema.get_document_key_value("u::42", False) == "42"


def test_non_string_ids_are_returned_unchanged() -> None:
    schema = Schema({"name": str}, {"key_prefix": "u::"})
    assert schema.get_document_key_value(42, True) == 42
    assert schema.get_document_key_value(None, False) is None


def test_untyped_key_declaration_is_a_primitive_any_key() -> None:
    schema = Schema({"username": {"key": True, "prefix": "user::"}})
    d = schema.descriptor["username"]
    assert isinstance(d, PrimitiveDescriptor)
    assert d.type is PropertyType.ANY
    assert schema.key.doc_key_key == "username"
    assert schema.key.prefix == "user::"
    assert "id" not in schema.descriptor
    assert schema.get_document_key_value("joe", True) == "user::joe"


def test_rejected_add_leaves_schema_usable() -> None:
    schema = Schema({"name": str, "owner": {"type": str, "ref": "User"}})
    with pytest.raises(SchemaKeyError):
        schema.add(
            {
                "email": {"type": str, "key": True, "index": True},
                "team": {"type": str, "ref": "Team"},
            }
        )
    assert "email" not in schema.descriptor
    assert "email" not in schema.indexes
    assert not schema.has_ref_path("team")
    assert schema.key.doc_key_key == "id"

    schema.add("age", int)
    assert schema.descriptor["age"].type is PropertyType.INTEGER
    assert list(schema.refs) == ["owner"]


def test_rejected_key_type_does_not_leak_into_later_add() -> None:
    schema = Schema({"name": str})
    with pytest.raises(SchemaKeyError):
        schema.add("code", {"type": bool, "key": True})
    schema.add("code", {"type": int, "key": True})
    assert schema.key.doc_key_key == "code"


@pytest.mark.parametrize(
    "id_descriptor",
    [{"type": str, "index": True}, {"type": str, "ref": "Other"}],
)
def test_adopted_id_cannot_be_index_or_ref(id_descriptor: dict) -> None:
    with pytest.raises(SchemaKeyError):
        Schema({"id": id_descriptor})


def test_adopted_id_cannot_later_become_an_index() -> None:
    schema = Schema({"name": str})
    with pytest.raises(SchemaKeyError):
        schema.add("id", {"type": str, "index": True})
    assert schema.indexes == {}
    assert schema.descriptor["id"].index is False


def test_existing_plain_id_is_adopted() -> None:
    schema = Schema({"id": int, "name": str})
    assert schema.key.doc_key_key == "id"
    assert schema.key.generate is True
    assert schema.descriptor["id"].type is PropertyType.INTEGER


def test_key_property_cannot_be_replaced_by_virtual() -> None:
    schema = Schema({"name": str})
    with pytest.raises(SchemaKeyError):
        schema.virtual("id", {"get": lambda self: "x"})
    assert isinstance(schema.descriptor["id"], PrimitiveDescriptor)
