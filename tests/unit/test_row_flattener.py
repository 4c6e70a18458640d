"""
Unit tests for row flattening.
"""

from datetime import datetime

from fs2bq.schema.builder import infer_schema
from fs2bq.schema.flattener import flatten_document, serialize_array


class TestSerializeArray:
    """Tests for array serialization."""

    def test_numbers(self):
        assert serialize_array([1, 2, 3]) == "1,2,3"

    def test_empty(self):
        assert serialize_array([]) == ""

    def test_embedded_commas_not_escaped(self):
        assert serialize_array(["a,b", "c"]) == "a,b,c"

    def test_mixed_elements(self):
        assert serialize_array([None, True, False, 1.5, "x"]) == "null,true,false,1.5,x"

    def test_nested_array_and_object(self):
        assert serialize_array([[1, 2], {"k": "v"}]) == '1,2,{"k":"v"}'


class TestFlattenDocument:
    """Tests for flatten_document."""

    def test_doc_id_always_set(self):
        assert flatten_document("abc", {}) == {"doc_ID": "abc"}

    def test_doc_id_property_cannot_replace_document_id(self, caplog):
        row = flatten_document("real-id", {"doc_ID": "fake", "a": 1})

        assert row == {"doc_ID": "real-id", "a": 1}
        assert "shadows the document id column" in caplog.text

    def test_doc_id_property_agrees_with_schema(self):
        documents = [("real-id", {"doc_ID": 5, "a": 1})]
        schema = infer_schema("things", documents)
        row = flatten_document(*documents[0])

        assert schema.get("doc_ID").scalar_type.value == "STRING"
        assert set(row) == set(schema.names)

    def test_scalars_unchanged(self):
        row = flatten_document("1", {"s": "x", "i": 5, "f": 2.5, "b": False})

        assert row == {"doc_ID": "1", "s": "x", "i": 5, "f": 2.5, "b": False}

    def test_null_property(self):
        assert flatten_document("1", {"a": None}) == {"doc_ID": "1", "a": None}

    def test_nested_object(self):
        row = flatten_document("1", {"a": {"b": 1, "c": "x"}})

        assert row == {"doc_ID": "1", "a__b": 1, "a__c": "x"}
        assert "a" not in row

    def test_deep_nesting_full_path(self):
        row = flatten_document("1", {"g": {"p": {"c": 7}}})

        assert row == {"doc_ID": "1", "g__p__c": 7}

    def test_arrays_serialized(self):
        row = flatten_document("1", {"tags": ["a", "b"], "none": []})

        assert row["tags"] == "a,b"
        assert row["none"] == ""

    def test_empty_object_stored_as_is(self):
        assert flatten_document("1", {"meta": {}})["meta"] == {}

    def test_type_mismatch_not_corrected(self):
        # The table may say STRING; the row still carries the integer
        assert flatten_document("2", {"a": 5}) == {"doc_ID": "2", "a": 5}

    def test_later_write_wins_on_duplicate_name(self):
        row = flatten_document("1", {"a__b": "top", "a": {"b": "nested"}})

        assert row["a__b"] == "nested"

    def test_unsupported_values_omitted(self):
        skipped = []
        row = flatten_document("1", {"at": datetime(2024, 1, 1), "n": {"t": object()}, "ok": 1}, skipped)

        assert row == {"doc_ID": "1", "ok": 1}
        assert skipped == ["at", "n__t"]

    def test_rows_are_independent(self):
        first = flatten_document("1", {"a": {"b": 1}})
        second = flatten_document("2", {"c": 2})

        assert "a__b" not in second
        assert first == {"doc_ID": "1", "a__b": 1}


class TestNamingConsistency:
    """Schema inference and row flattening must agree on column names."""

    def test_row_keys_are_schema_columns(self, users_documents):
        documents = list(users_documents.items())
        schema = infer_schema("users", documents)

        for doc_id, data in documents:
            row = flatten_document(doc_id, data)
            assert set(row) <= set(schema.names)

    def test_every_leaf_path_matches(self):
        data = {"a": {"b": {"c": 1}, "d": [1]}, "e": None, "f": {}}
        schema = infer_schema("c", [("x", data)])
        row = flatten_document("x", data)

        assert list(row) == schema.names
