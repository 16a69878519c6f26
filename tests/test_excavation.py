import random

from systems.excavation import ExcavationSystem
from world.artefact import UNIDENTIFIED_NAME, Rarity
from world.site import Site
from world.task import Task, TaskType
from world.tile import StructureType, Tile


def _site():
    site = Site("Tell Abu Salabikh", historical_period="Ur III")
    site.discover()
    return site


def _tile(site, position=(0, 0)):
    return Tile(site_id=site.site_id, position=position)


def test_trench_always_excavates_and_usually_finds(rules):
    system = ExcavationSystem(rules, random.Random(42))
    site   = _site()
    task   = Task(TaskType.TRENCH)
    hits   = 0
    trials = 1000
    for _ in range(trials):
        result = system.execute_excavation(task, site, [_tile(site)], now=1.0)
        assert len(result.tiles) == 1
        assert result.tiles[0].excavated
        if result.artefacts:
            hits += 1
    assert 0.78 <= hits / trials <= 0.97


def test_input_tiles_are_not_mutated(rules):
    system = ExcavationSystem(rules, random.Random(1))
    site   = _site()
    live   = _tile(site)
    result = system.execute_excavation(Task(TaskType.TRENCH), site, [live], now=2.0)
    assert not live.excavated
    assert live.artefacts == []
    assert result.tiles[0].tile_id == live.tile_id
    assert result.tiles[0].excavated_at == 2.0


def test_excavated_tiles_are_skipped(rules):
    system = ExcavationSystem(rules, random.Random(1))
    site   = _site()
    tile   = _tile(site)
    tile.excavate(at=0.0)
    result = system.execute_excavation(Task(TaskType.TRENCH), site, [tile], now=1.0)
    assert result.tiles == []
    assert result.artefacts == []


def test_tiles_of_other_sites_are_skipped(rules):
    system = ExcavationSystem(rules, random.Random(1))
    site   = _site()
    other  = Tile(site_id="elsewhere", position=(2, 2))
    result = system.execute_excavation(Task(TaskType.EXCAVATION), site, [other], now=1.0)
    assert result.tiles == []
    assert any("Skipped" in line for line in result.information)


def test_finds_follow_the_task_table(rules):
    system = ExcavationSystem(rules, random.Random(7))
    site   = _site()
    rule   = rules.task(TaskType.TRENCH)
    finds  = []
    for _ in range(300):
        tile   = _tile(site)
        result = system.execute_excavation(Task(TaskType.TRENCH), site, [tile], now=4.0)
        for art in result.artefacts:
            assert art.artefact_id in result.tiles[0].artefacts
            assert art.tile_id == tile.tile_id
        finds.extend(result.artefacts)

    assert finds
    for art in finds:
        low, high = rules.value_ranges[art.rarity]
        assert low <= art.value <= high
        assert art.artefact_type in rule.artefact_types
        assert art.rarity is not Rarity.COMMON
        assert not art.identified
        assert art.name == UNIDENTIFIED_NAME
        assert art.provenience == "Tell Abu Salabikh"
        assert art.discovered_at == 4.0


def test_surface_collection_never_uncovers_structures(rules):
    system = ExcavationSystem(rules, random.Random(3))
    site   = _site()
    for _ in range(200):
        result = system.execute_excavation(
            Task(TaskType.SURFACE_COLLECTION), site, [_tile(site)], now=1.0,
        )
        assert result.structures == []
        assert result.tiles[0].structure is StructureType.NONE


def test_trench_uncovers_structures_sometimes(rules):
    system = ExcavationSystem(rules, random.Random(3))
    site   = _site()
    found  = []
    for _ in range(200):
        result = system.execute_excavation(Task(TaskType.TRENCH), site, [_tile(site)], now=1.0)
        found.extend(s for _, s in result.structures)
    assert found
    assert set(found) <= set(rules.task(TaskType.TRENCH).structures)


def test_same_seed_same_dig(rules):
    site  = _site()
    tiles = [_tile(site, (x, 0)) for x in range(3)]

    def dig(seed):
        system = ExcavationSystem(rules, random.Random(seed))
        result = system.execute_excavation(Task(TaskType.EXCAVATION), site, tiles, now=1.0)
        return [(a.artefact_type, a.rarity, a.value) for a in result.artefacts], result.structures

    assert dig(99) == dig(99)
