import json

import pytest

from crawler_engine.resources.database import Database, DatabaseError


@pytest.fixture
def mock_db_path(tmp_path):
    schemas = tmp_path / "schemas"
    schemas.mkdir()

    database = tmp_path / "database"
    database.mkdir()
    (database / "items").mkdir()

    item_schema = {
        "type": "object",
        "required": ["id", "price"],
        "properties": {
            "id": {"type": "string"},
            "price": {"type": "integer"}
        }
    }
    with open(schemas / "item.schema.json", "w") as f:
        json.dump(item_schema, f)

    return tmp_path


def items_db(path):
    return Database(path, categories={"items": "item.schema.json"})


def test_load_all(mock_db_path):
    with open(mock_db_path / "database" / "items" / "sword.json", "w") as f:
        json.dump([{"id": "sword", "price": 100}], f)

    db = items_db(mock_db_path)
    db.load_all()

    assert "sword" in db.category("items")
    assert db.get("items", "sword")["price"] == 100
    assert db.problems == []


def test_single_record_file(mock_db_path):
    with open(mock_db_path / "database" / "items" / "shield.json", "w") as f:
        json.dump({"id": "shield", "price": 50}, f)

    db = items_db(mock_db_path)
    db.load_all()

    assert db.get("items", "shield") == {"id": "shield", "price": 50}


def test_validation_error(mock_db_path):
    with open(mock_db_path / "database" / "items" / "broken.json", "w") as f:
        json.dump([{"id": "broken"}], f)

    db = items_db(mock_db_path)
    db.load_all()

    assert "broken" not in db.category("items")
    assert len(db.problems) == 1


def test_strict_mode_raises(mock_db_path):
    with open(mock_db_path / "database" / "items" / "broken.json", "w") as f:
        json.dump([{"id": "broken"}], f)

    db = items_db(mock_db_path)
    with pytest.raises(DatabaseError) as excinfo:
        db.load_all(strict=True)

    assert "broken.json" in str(excinfo.value)


def test_duplicate_ids_reported(mock_db_path):
    items = mock_db_path / "database" / "items"
    with open(items / "a.json", "w") as f:
        json.dump([{"id": "sword", "price": 1}], f)
    with open(items / "b.json", "w") as f:
        json.dump([{"id": "sword", "price": 2}], f)

    db = items_db(mock_db_path)
    db.load_all()

    assert db.get("items", "sword")["price"] == 1
    assert any("Duplicate" in p for p in db.problems)


def test_bad_json_reported(mock_db_path):
    (mock_db_path / "database" / "items" / "bad.json").write_text("{not json")

    db = items_db(mock_db_path)
    db.load_all()

    assert db.category("items") == {}
    assert len(db.problems) == 1


def test_missing_schema(mock_db_path):
    with open(mock_db_path / "database" / "items" / "sword.json", "w") as f:
        json.dump([{"id": "sword", "price": 100}], f)

    (mock_db_path / "schemas" / "item.schema.json").unlink()

    db = items_db(mock_db_path)
    db.load_all()

    # Without a schema the category is skipped
    assert "sword" not in db.category("items")
