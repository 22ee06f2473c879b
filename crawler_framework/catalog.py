"""
Typed game catalog built on the engine Database.

The Database validates raw JSON against schemas; the catalog turns the
records into immutable fragments, themes and enemy types and checks the
references between them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from crawler_engine.resources import Database, DatabaseError
from crawler_framework.dungeon.enemies import EnemyType
from crawler_framework.dungeon.themes import ThemeDescriptor
from crawler_framework.spells import SpellFragment

logger = logging.getLogger(__name__)

DEFAULT_DATA_PATH = Path(__file__).parent / "data"


class CatalogError(Exception):
    """Catalog data is unusable. Raised at load time only."""

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


@dataclass
class GameCatalog:
    """
    Fragments, themes and enemy types keyed by id.

    Treated as immutable after loading; generation threads read it freely.
    """
    fragments: dict[str, SpellFragment] = field(default_factory=dict)
    themes: dict[str, ThemeDescriptor] = field(default_factory=dict)
    enemies: dict[str, EnemyType] = field(default_factory=dict)

    @classmethod
    def from_records(
        cls,
        fragments: Iterable[SpellFragment],
        themes: Iterable[ThemeDescriptor],
        enemies: Iterable[EnemyType],
    ) -> GameCatalog:
        """Build and cross-check a catalog from typed records."""
        problems: list[str] = []
        catalog = cls(
            fragments=_index("fragment", fragments, problems),
            themes=_index("theme", themes, problems),
            enemies=_index("enemy", enemies, problems),
        )
        problems.extend(catalog.check())
        if problems:
            raise CatalogError(problems)
        return catalog

    @classmethod
    def load(cls, path: Path | str) -> GameCatalog:
        """
        Load a catalog from a data directory.

        Raises:
            CatalogError: Schema failures, duplicate ids, malformed weight
                curves or dangling references
        """
        database = Database(path)
        try:
            database.load_all(strict=True)
        except DatabaseError as e:
            raise CatalogError(e.problems) from e

        problems: list[str] = []
        fragments = _convert(SpellFragment.from_dict, database.fragments, problems)
        themes = _convert(ThemeDescriptor.from_dict, database.themes, problems)
        enemies = _convert(EnemyType.from_dict, database.enemies, problems)
        if problems:
            raise CatalogError(problems)

        catalog = cls.from_records(fragments, themes, enemies)
        logger.info(
            f"Catalog loaded from {path}: {len(catalog.fragments)} fragments, "
            f"{len(catalog.themes)} themes, {len(catalog.enemies)} enemy types"
        )
        return catalog

    @classmethod
    def default(cls) -> GameCatalog:
        """The bundled starter catalog."""
        return cls.load(DEFAULT_DATA_PATH)

    def check(self) -> list[str]:
        """Cross-reference problems (unknown ids, no themes)."""
        problems = []
        if not self.themes:
            problems.append("Catalog defines no themes")

        for theme in self.themes.values():
            for enemy_id in theme.enemy_pool:
                if enemy_id not in self.enemies:
                    problems.append(f"Theme '{theme.id}' references unknown enemy '{enemy_id}'")
            for fragment_id in theme.fragment_pool:
                if fragment_id not in self.fragments:
                    problems.append(f"Theme '{theme.id}' references unknown fragment '{fragment_id}'")

        for enemy in self.enemies.values():
            for recipe in enemy.spells:
                for fragment_id in recipe.fragments:
                    if fragment_id not in self.fragments:
                        problems.append(
                            f"Enemy '{enemy.id}' spell {recipe.name!r} uses unknown fragment '{fragment_id}'"
                        )
            for fragment_id in enemy.drops:
                if fragment_id not in self.fragments:
                    problems.append(f"Enemy '{enemy.id}' drops unknown fragment '{fragment_id}'")
        return problems


def _index(label, records, problems):
    indexed = {}
    for record in records:
        if record.id in indexed:
            problems.append(f"Duplicate {label} id '{record.id}'")
            continue
        indexed[record.id] = record
    return indexed


def _convert(factory, raw: dict, problems: list[str]) -> list:
    converted = []
    for record_id, record in raw.items():
        try:
            converted.append(factory(record))
        except (ValueError, KeyError, TypeError) as e:
            problems.append(f"Invalid record '{record_id}': {e}")
    return converted
