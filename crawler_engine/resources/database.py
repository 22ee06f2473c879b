"""
Game Database.

Handles loading and validation of static game data (spell fragments,
themes, enemy types). Data lives in JSON files laid out as:

    <data_path>/schemas/<name>.schema.json
    <data_path>/database/<category>/*.json

Each data file holds one record or a list of records, and every record
carries a string "id".
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema


class DatabaseError(Exception):
    """Raised in strict mode when the data set has problems."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__(
            f"{len(self.problems)} data problem(s): " + "; ".join(self.problems)
        )


class Database:
    """
    Central storage for static game data.

    Categories are registered as (folder, schema file) pairs. Records that
    fail validation are skipped and reported in `problems`; so are
    duplicate ids. With strict=True, load_all() raises DatabaseError if
    anything was reported.
    """

    DEFAULT_CATEGORIES: dict[str, str] = {
        "fragments": "fragment.schema.json",
        "themes": "theme.schema.json",
        "enemies": "enemy.schema.json",
    }

    def __init__(
        self,
        data_path: Path | str,
        categories: dict[str, str] | None = None,
    ):
        self._data_path = Path(data_path)
        self._categories = dict(categories or self.DEFAULT_CATEGORIES)
        self._schemas: dict[str, Any] = {}
        self._stores: dict[str, dict[str, dict[str, Any]]] = {
            name: {} for name in self._categories
        }
        self.problems: list[str] = []

        self.logger = logging.getLogger(__name__)

    @property
    def data_path(self) -> Path:
        return self._data_path

    def load_all(self, strict: bool = False) -> None:
        """Load all categories from disk."""
        self.problems.clear()
        self._load_schemas()

        for folder, schema_name in self._categories.items():
            self._stores[folder] = self._load_category(folder, schema_name)

        summary = ", ".join(
            f"{len(store)} {name}" for name, store in self._stores.items()
        )
        self.logger.info(f"Loaded {summary}.")

        if strict and self.problems:
            raise DatabaseError(self.problems)

    def category(self, name: str) -> dict[str, dict[str, Any]]:
        """All records of a category, keyed by id."""
        return self._stores.get(name, {})

    def get(self, category: str, record_id: str) -> dict[str, Any] | None:
        return self._stores.get(category, {}).get(record_id)

    @property
    def fragments(self) -> dict[str, dict[str, Any]]:
        return self.category("fragments")

    @property
    def themes(self) -> dict[str, dict[str, Any]]:
        return self.category("themes")

    @property
    def enemies(self) -> dict[str, dict[str, Any]]:
        return self.category("enemies")

    def _report(self, message: str) -> None:
        self.logger.error(message)
        self.problems.append(message)

    def _load_schemas(self) -> None:
        """Load JSON schemas."""
        schema_dir = self._data_path / "schemas"
        if not schema_dir.exists():
            self.logger.warning(f"Schema directory not found: {schema_dir}")
            return

        for schema_file in sorted(schema_dir.glob("*.schema.json")):
            try:
                with open(schema_file, 'r', encoding='utf-8') as f:
                    self._schemas[schema_file.name] = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self._report(f"Failed to load schema {schema_file}: {e}")

    def _load_category(self, folder: str, schema_name: str) -> dict[str, dict[str, Any]]:
        """Load all JSON files in a category folder."""
        category_dir = self._data_path / "database" / folder
        data_store: dict[str, dict[str, Any]] = {}

        if not category_dir.exists():
            self.logger.warning(f"Data directory not found: {category_dir}")
            return data_store

        schema = self._schemas.get(schema_name)
        if schema is None:
            self.logger.warning(f"No schema found for {folder} ({schema_name})")
            return data_store

        for file_path in sorted(category_dir.glob("*.json")):
            try:
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self._report(f"Failed to load {file_path}: {e}")
                continue

            records = data if isinstance(data, list) else [data]
            for record in records:
                try:
                    jsonschema.validate(instance=record, schema=schema)
                except jsonschema.ValidationError as e:
                    self._report(f"Validation error in {file_path}: {e.message}")
                    continue

                record_id = record['id']
                if record_id in data_store:
                    self._report(f"Duplicate {folder} id '{record_id}' in {file_path}")
                    continue
                data_store[record_id] = record

        return data_store
