"""
Unit tests for flattened column naming.
"""

from fs2bq.schema.naming import DOC_ID_COLUMN, NAME_SEPARATOR, flatten_name


def test_top_level_name_unchanged():
    assert flatten_name("user_name") == "user_name"


def test_nested_name_uses_double_underscore():
    assert NAME_SEPARATOR == "__"
    assert flatten_name("city", "address") == "address__city"


def test_three_levels_join_full_path():
    parent = flatten_name("parent", "grandparent")
    assert flatten_name("child", parent) == "grandparent__parent__child"


def test_empty_parent_treated_as_top_level():
    assert flatten_name("a", "") == "a"


def test_doc_id_column_name():
    assert DOC_ID_COLUMN == "doc_ID"
