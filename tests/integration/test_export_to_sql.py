"""
End-to-end export from JSON collection files into a SQLite warehouse.
"""

import json

import pytest

from fs2bq.export import create_orchestrator


@pytest.fixture
def collections_dir(test_settings, tmp_path):
    root = tmp_path / "collections"
    root.mkdir()
    (root / "products.json").write_text(json.dumps({
        "p1": {
            "title": "Lamp",
            "price": 19.99,
            "stock": 4,
            "featured": True,
            "colors": ["red", "blue"],
            "dimensions": {"cm": {"w": 20, "h": 45}},
        },
        "p2": {
            "title": "Desk",
            "price": 120.5,
            "stock": 0,
            "featured": False,
            "colors": [],
            "dimensions": {"cm": {"w": 140, "h": 75}, "kg": 30},
            "discontinued": None,
        },
        "p3": {"title": "Chair", "price": 45.25, "stock": 12},
    }))
    (root / "reviews.json").write_text(json.dumps({
        "r1": {"product": "p1", "stars": 5, "meta": {"source": "web"}},
    }))
    return root


@pytest.mark.asyncio
async def test_create_copy_delete(test_settings, collections_dir):
    orchestrator = create_orchestrator(test_settings)
    warehouse = orchestrator.warehouse

    created = await orchestrator.create_tables("shop", ["products", "reviews"])
    assert created.ok
    assert created.count == 2

    copied = await orchestrator.copy_collections("shop", ["products", "reviews"])
    assert copied.ok
    assert copied.get("products").value == 3

    rows = {row["doc_ID"]: row for row in warehouse.fetch_rows("shop", "products")}
    assert rows["p1"]["colors"] == "red,blue"
    assert rows["p1"]["dimensions__cm__h"] == 45
    assert rows["p2"]["dimensions__kg"] == 30
    assert rows["p2"]["colors"] == ""
    assert rows["p3"]["dimensions__cm__w"] is None
    assert rows["p3"]["featured"] is None

    recreated = await orchestrator.create_tables("shop", ["products"])
    assert recreated.get("products").error == "Table products already exists."

    deleted = await orchestrator.delete_tables("shop", ["products", "reviews"])
    assert deleted.count == 2
    assert await warehouse.list_tables("shop") == []

    await orchestrator.close()


@pytest.mark.asyncio
async def test_type_drift_rejects_only_drifted_rows(test_settings, collections_dir):
    orchestrator = create_orchestrator(test_settings)
    await orchestrator.create_tables("shop", ["reviews"])

    reviews = collections_dir / "reviews.json"
    data = json.loads(reviews.read_text())
    data["r2"] = {"product": "p2", "stars": "five"}
    reviews.write_text(json.dumps(data))

    report = await orchestrator.copy_collections("shop", ["reviews"])

    result = report.get("reviews")
    assert not result.success
    assert result.error_type == "InsertionError"
    assert result.value == 1
    stored = orchestrator.warehouse.fetch_rows("shop", "reviews")
    assert [row["doc_ID"] for row in stored] == ["r1"]

    await orchestrator.close()
