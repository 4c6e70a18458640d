# Test configuration

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from fs2bq.source.memory import InMemorySource  # noqa: E402
from fs2bq.warehouse.memory import InMemoryWarehouse  # noqa: E402
from fs2bq.warehouse.sql import SqlWarehouse  # noqa: E402


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at local backends only."""
    from fs2bq.config.settings import Settings
    return Settings(
        source_backend="json",
        json_source_path=str(tmp_path / "collections"),
        warehouse_backend="sql",
        warehouse_url="sqlite://",
        insert_batch_size=2,
        _env_file=None,
    )


@pytest.fixture
def users_documents():
    return {
        "alice": {
            "name": "Alice",
            "age": 30,
            "score": 9.5,
            "active": True,
            "tags": ["admin", "ops"],
            "address": {"city": "Oslo", "geo": {"lat": 59.9, "lng": 10.7}},
            "nickname": None,
        },
        "bob": {
            "name": "Bob",
            "age": 25,
            "score": 7.25,
            "active": False,
            "tags": [],
            "address": {"city": "Bergen", "zip": "5003"},
            "nickname": None,
        },
    }


@pytest.fixture
def memory_source(users_documents):
    return InMemorySource({
        "users": users_documents,
        "orders": {
            "o1": {"total": 12.5, "items": [1, 2, 3]},
            "o2": {"total": 3.75, "items": [4]},
        },
    })


@pytest.fixture
def memory_warehouse():
    return InMemoryWarehouse()


@pytest.fixture
def sql_warehouse():
    warehouse = SqlWarehouse.from_url("sqlite://")
    yield warehouse
    warehouse.engine.dispose()
