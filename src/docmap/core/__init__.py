"""
Core package aggregator for docmap schema contracts (grammar, descriptors, keys, schema).

## Contracts (single source of truth)
- Grammar: property type tags, index kinds, ref key casing, hook phases, index name inference.
- Descriptors: normalized property variants (primitive, nested, array, virtual).
- Extract: reference and index discovery over descriptor trees.
- Keys/Hashing: document key expansion, reference key derivation and length bounding.
- Options/Errors: validated schema options; SchemaKeyError and InvalidArgumentError.
- Schema: the builder aggregate and its frozen snapshot.

## Notes
- Zero-IO policy: stdlib + pydantic + inflection only; no file/network IO.
- Value validation/coercion and hook execution belong to the model layer.

## Downstream usage
- Model construction reads `SchemaSnapshot.descriptor`, `.key`, `.methods`, `.statics`,
  `.hooks` to build runtime types and generated `find_by_<index>` accessors.
- Persistence calls `get_document_key_value`, `get_ref_key` and `has_ref_path`.

## Examples
```python
from docmap.core.schema import Schema

schema = Schema({"email": str, "friends": [{"type": str, "ref": "User"}]}, {"keyPrefix": "user::"})
schema.index("email", ref_key_case="lower")
schema.get_document_key_value("42", True)  # 'user::42'
schema.get_ref_key("email", "Joe@Example.com")  # 'user::$_ref_by_email_joe@example.com'
schema.has_ref_path("FRIENDS")  # True
```
"""
