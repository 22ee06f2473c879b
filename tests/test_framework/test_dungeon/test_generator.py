import pytest

from crawler_framework.config import RulesConfig
from crawler_framework.dungeon import CellKind, DungeonGenerator, DungeonLevel, generate_level


@pytest.fixture(scope="module")
def generator(catalog):
    return DungeonGenerator(catalog)


def test_same_inputs_same_level(catalog):
    first = generate_level(42, 3, catalog)
    second = generate_level(42, 3, catalog)
    assert first == second


def test_depths_are_independent(generator):
    # Generating depth 5 directly matches generating it after depth 0..4
    direct = generator.generate(9, 5)
    for depth in range(5):
        generator.generate(9, depth)
    assert generator.generate(9, 5) == direct


def test_different_seeds_differ(generator):
    assert generator.generate(1, 0) != generator.generate(2, 0)


def test_negative_depth(generator):
    with pytest.raises(ValueError):
        generator.generate(1, -1)


@pytest.mark.parametrize("seed", range(10))
def test_levels_verify(generator, seed):
    for depth in range(7):
        level = generator.generate(seed, depth)
        assert level.validate() == []
        assert len(level.cells_of_kind(CellKind.STAIRS)) == 1
        assert level.path_exists(level.entry, level.stairs)


def test_dimensions_grow_and_cap():
    generator = DungeonGenerator(catalog=None, config=RulesConfig(max_width=30, max_height=20))
    sizes = [generator.dimensions(depth) for depth in range(10)]
    assert sizes[0] == (24, 16)
    assert sizes == sorted(sizes)
    assert sizes[-1] == (30, 20)
    assert generator.room_count(0) <= generator.room_count(8)


def test_items_come_from_catalog(generator, catalog):
    for depth in range(4):
        level = generator.generate(7, depth)
        items = level.cells_of_kind(CellKind.ITEM)
        assert items
        for cell in items:
            assert cell.payload in catalog.fragments


def test_enemies_match_spawn_cells(generator, catalog):
    level = generator.generate(3, 4)
    spawns = level.cells_of_kind(CellKind.ENEMY_SPAWN)
    assert len(spawns) == len(level.enemies)
    for cell in spawns:
        placement = level.enemy_at(cell.x, cell.y)
        assert placement is not None
        assert placement.id == cell.payload == f"d4-e{level.enemies.index(placement)}"
        assert placement.type_id in catalog.enemies
        for fragment_id in placement.drops:
            assert fragment_id in catalog.fragments


def test_zero_rarity_fragments_never_placed(generator, catalog):
    enemy_only = {fid for fid, frag in catalog.fragments.items() if frag.rarity == 0}
    for seed in range(5):
        for depth in range(6):
            level = generator.generate(seed, depth)
            placed = {c.payload for c in level.cells_of_kind(CellKind.ITEM)}
            assert not placed & enemy_only


def test_enemy_health_never_drops_with_depth(generator):
    for seed in range(4):
        averages = []
        for depth in range(10):
            enemies = generator.generate(seed, depth).enemies
            assert enemies
            averages.append(
                sum(e.health.magnitude for e in enemies) / len(enemies)
            )
        assert averages == sorted(averages)


def test_enemy_spells_scale_with_depth(generator):
    shallow = generator.generate(5, 0).enemies[0]
    deep = generator.generate(5, 9).enemies[0]
    assert shallow.spells and deep.spells
    assert max(s.magnitude for s in deep.spells) > max(s.magnitude for s in shallow.spells)


def test_appearance_tags_from_themes(generator, catalog):
    level = generator.generate(11, 2)
    themes = {level.themes.primary, level.themes.secondary} - {None}
    for cell in level.cells:
        assert cell.appearance.split(".")[0] in themes


def test_dict_round_trip(generator):
    level = generator.generate(21, 4)
    assert DungeonLevel.from_dict(level.to_dict()) == level
