import pytest

from docmap.core.errors import InvalidArgumentError
from docmap.core.grammar import HookPhase, PropertyType
from docmap.core.schema import Schema


def foo_a(self):
    return "a"


def foo_b(self):
    return "b"


def bar_b(self):
    return "bar"


def test_extend_does_not_overwrite_methods() -> None:
    a = Schema({"name": str})
    a.method("foo", foo_a)
    b = Schema({"name": str})
    b.method("foo", foo_b)
    b.method("bar", bar_b)

    assert a.extend(b) is a
    assert a.methods["foo"] is foo_a
    assert a.methods["bar"] is b.methods["bar"]


def test_extend_copies_absent_properties_only() -> None:
    a = Schema({"name": str})
    b = Schema({"name": int, "age": int, "address": {"street": str}})
    b.virtual("label", {"get": foo_b})
    a.extend(b)
    assert a.descriptor["name"].type is PropertyType.STRING
    assert a.descriptor["age"].type is PropertyType.INTEGER
    assert a.descriptor["address"].properties["street"].type is PropertyType.STRING
    assert a.descriptor["label"].read_only is True


def test_extend_registers_refs_and_indexes_of_copied_properties() -> None:
    a = Schema({"name": str})
    b = Schema({"owner": {"type": str, "ref": "User"}, "tags": {"type": [str], "index": True}})
    a.extend(b)
    assert a.has_ref_path("owner")
    assert a.indexes["tag"].path == "tags"


def test_extend_keeps_receiver_document_key() -> None:
    a = Schema({"name": str})
    b = Schema({"email": {"type": str, "key": True, "prefix": "b::"}})
    a.extend(b)
    assert a.key.doc_key_key == "id"
    assert a.key.prefix == ""
    assert a.descriptor["email"].key is False
    assert b.descriptor["email"].key is True


def test_extend_copies_statics_without_overwrite() -> None:
    a = Schema()
    a.static("LIMIT", 10)
    b = Schema()
    b.static({"LIMIT": 99, "NAME": "b"})
    a.extend(b)
    assert a.statics == {"LIMIT": 10, "NAME": "b"}


def test_extend_merges_options() -> None:
    a = Schema({"name": str}, {"keyPrefix": "a::", "toObject": {"minimize": False}})
    b = Schema(
        {"name": str},
        {
            "keyPrefix": "b::",
            "keySuffix": "::b",
            "toObject": {"minimize": True, "virtuals": True},
            "saveOptions": {"expiry": 5},
            "strict": False,
        },
    )
    a.extend(b)
    assert a.get("key_prefix") == "a::"
    assert a.get("key_suffix") == "::b"
    assert a.get("save_options") == {"expiry": 5}
    assert a.get("strict") is True
    assert a.options.to_object.minimize is False
    assert a.options.to_object.virtuals is True


def test_extend_deep_copies_option_mappings() -> None:
    a = Schema({"name": str})
    b = Schema({"name": str}, {"saveOptions": {"expiry": 5}})
    a.extend(b)
    a.get("save_options")["expiry"] = 1
    assert b.get("save_options") == {"expiry": 5}


def test_extend_appends_hooks() -> None:
    def first():
        return 1

    def second():
        return 2

    def third():
        return 3

    a = Schema()
    a.pre("save", first)
    b = Schema()
    b.pre("save", second)
    b.post("remove", third)
    a.extend(b)
    assert a.hooks[(HookPhase.PRE, "save")].fns == (first, second)
    assert a.hooks[(HookPhase.POST, "remove")].fns == (third,)
    assert b.hooks[(HookPhase.PRE, "save")].fns == (second,)


def test_extend_rejects_non_schema() -> None:
    with pytest.raises(InvalidArgumentError):
        Schema().extend({"name": str})  # type: ignore[arg-type]
