"""
Unit tests for schema inference.
"""

from datetime import datetime

from fs2bq.schema.builder import SchemaBuilder, TableSchema, infer_schema
from fs2bq.schema.classifier import ColumnDescriptor, ScalarType


def _types(schema: TableSchema):
    return {column.name: column.scalar_type for column in schema}


class TestSchemaBuilder:
    """Tests for SchemaBuilder."""

    def test_empty_collection_has_only_doc_id(self):
        schema = infer_schema("empty", [])

        assert schema.names == ["doc_ID"]
        assert schema.columns[0] == ColumnDescriptor("doc_ID", ScalarType.STRING, nullable=False)

    def test_doc_id_always_first(self):
        schema = infer_schema("c", [("1", {"doc_ID_extra": 1, "a": "x"})])

        assert schema.names[0] == "doc_ID"
        assert not schema.columns[0].nullable

    def test_scalar_columns(self):
        schema = infer_schema("c", [("1", {"s": "x", "i": 1, "f": 1.5, "b": True})])

        assert _types(schema) == {
            "doc_ID": ScalarType.STRING,
            "s": ScalarType.STRING,
            "i": ScalarType.INTEGER,
            "f": ScalarType.FLOAT,
            "b": ScalarType.BOOL,
        }
        assert all(c.nullable for c in schema.columns[1:])

    def test_nested_object_expanded(self):
        schema = infer_schema("c", [("1", {"a": {"b": 1, "c": "x"}})])

        assert schema.names == ["doc_ID", "a__b", "a__c"]
        assert schema.get("a__b").scalar_type == ScalarType.INTEGER
        assert schema.get("a__c").scalar_type == ScalarType.STRING
        assert schema.get("a") is None

    def test_deep_nesting_uses_full_path(self):
        schema = infer_schema("c", [("1", {"g": {"p": {"c": {"leaf": True}}}})])

        assert schema.names == ["doc_ID", "g__p__c__leaf"]

    def test_null_property(self):
        schema = infer_schema("c", [("1", {"a": None})])

        assert schema.get("a") == ColumnDescriptor("a", ScalarType.STRING, nullable=True)

    def test_arrays_are_single_string_column(self):
        schema = infer_schema("c", [("1", {"tags": [{"x": 1}, {"y": 2}]})])

        assert schema.names == ["doc_ID", "tags"]
        assert schema.get("tags").scalar_type == ScalarType.STRING

    def test_empty_object_is_string_leaf(self):
        schema = infer_schema("c", [("1", {"meta": {}})])

        assert schema.get("meta").scalar_type == ScalarType.STRING

    def test_first_observed_type_wins(self):
        schema = infer_schema("c", [
            ("1", {"a": "text"}),
            ("2", {"a": 5}),
        ])

        assert schema.names == ["doc_ID", "a"]
        assert schema.get("a").scalar_type == ScalarType.STRING

    def test_union_of_fields_in_discovery_order(self):
        schema = infer_schema("c", [
            ("1", {"a": 1, "b": 2}),
            ("2", {"c": 3, "a": 4}),
            ("3", {"d": {"e": 5}, "b": 6}),
        ])

        assert schema.names == ["doc_ID", "a", "b", "c", "d__e"]

    def test_nested_and_top_level_names_do_not_collide(self):
        schema = infer_schema("c", [("1", {"a_b": 1, "a": {"b": "x"}})])

        assert schema.names == ["doc_ID", "a_b", "a__b"]

    def test_idempotent_over_same_documents(self):
        docs = [
            ("1", {"a": 1, "n": {"x": "y"}, "t": [1]}),
            ("2", {"b": False, "n": {"z": 2.5}}),
        ]

        assert infer_schema("c", docs) == infer_schema("c", docs)

    def test_unsupported_values_skipped_and_recorded(self):
        builder = SchemaBuilder("events")
        builder.add_document("e1", {
            "when": datetime(2024, 1, 1),
            "name": "launch",
            "nested": {"at": datetime(2024, 1, 2), "ok": True},
        })
        schema = builder.build()

        assert schema.names == ["doc_ID", "name", "nested__ok"]
        assert [(f.doc_id, f.path, f.type_name) for f in builder.classification_failures] == [
            ("e1", "when", "datetime"),
            ("e1", "nested__at", "datetime"),
        ]

    def test_counts_documents(self):
        builder = SchemaBuilder("c")
        builder.add_documents([("1", {}), ("2", {"a": 1})])

        assert builder.documents_analyzed == 2

    def test_separate_builders_do_not_share_state(self):
        first = SchemaBuilder("one")
        first.add_document("1", {"a": 1})
        second = SchemaBuilder("two")

        assert second.build().names == ["doc_ID"]


class TestTableSchema:
    """Tests for TableSchema serialization."""

    def test_to_dict_round_trip(self):
        schema = infer_schema("c", [("1", {"a": 1, "b": {"c": True}})])

        assert schema.to_dict() == [
            {"name": "doc_ID", "type": "STRING", "mode": "REQUIRED"},
            {"name": "a", "type": "INTEGER", "mode": "NULLABLE"},
            {"name": "b__c", "type": "BOOL", "mode": "NULLABLE"},
        ]
        assert TableSchema.from_dict(schema.to_dict()) == schema

    def test_len_and_iter(self):
        schema = infer_schema("c", [("1", {"a": 1})])

        assert len(schema) == 2
        assert [c.name for c in schema] == ["doc_ID", "a"]
