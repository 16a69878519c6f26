import copy

import pytest

from systems.event_queue import EventType, Severity
from systems.excavation import ExcavationResult
from world.artefact import Artefact, ArtefactType, Rarity
from world.player import Role
from world.task import TaskStatus, TaskType
from world.tile import StructureType


def _hire_excavation_crew(session):
    assert session.hire(Role.WORKER, 3)
    assert session.hire("archaeologists", 1)


def _corner(session, position=(0, 0)):
    return session.grid.surface(position)


def _start(session, position=(0, 0), task_type=TaskType.EXCAVATION):
    return session.start_task(task_type, [_corner(session, position).tile_id])


def _finds(session, *arts):
    for art in arts:
        assert session.inventory.add(art)
    return arts


# ---------------------------------------------------------------------------
# Setup and personnel
# ---------------------------------------------------------------------------

def test_new_session(session, rules):
    assert session.player.money == rules.starting_money
    assert session.current_site.name == "Tell Abu Salabikh"
    assert session.current_site.excavation_started
    assert session.active_task is None
    assert session.storage is None
    assert len(session.inventory) == 0
    assert session.grid.surface((1, 1)).layer == 2
    assert [s.site_id for s in session.sites if s.discovered] == session.player.discovered_sites


def test_every_started_site_is_discovered(session):
    for site in session.sites:
        assert site.discovered or not site.excavation_started


def test_hiring_a_crew(session, events, notifications):
    _hire_excavation_crew(session)
    assert session.player.money == 650
    assert session.player_snapshot()["available"] == {
        "worker": 3, "archaeologist": 1, "linguist": 0,
    }
    events.flush()
    assert notifications[0] == ("Hired 3 worker(s) for $150", Severity.SUCCESS)


def test_hiring_needs_a_positive_count_and_money(session):
    assert not session.hire(Role.WORKER, 0)
    assert not session.hire("priests", 2)
    result = session.hire(Role.LINGUIST, 3)
    assert not result
    assert "Cannot afford" in result.information
    assert session.player.money == 1000


# ---------------------------------------------------------------------------
# Task lifecycle
# ---------------------------------------------------------------------------

def test_task_runs_to_completion(session, clock, events):
    _hire_excavation_crew(session)
    tile   = _corner(session)
    result = _start(session)
    assert result, result.information
    assert session.player.money == 50
    assert session.player.available(Role.WORKER) == 0
    assert session.player.active_tasks == [session.active_task.task_id]

    clock.advance(2.5)
    assert session.update() is None
    assert session.task_progress() == pytest.approx(0.5)

    completed = []
    events.subscribe(EventType.TASK_COMPLETED, completed.append)
    clock.advance(2.5)
    done = session.update()
    events.flush()

    assert done and "finished" in done.information
    assert tile.excavated
    assert session.active_task is None
    assert session.task_progress() == 0.0
    assert session.player.available(Role.WORKER) == 3
    assert session.player.available(Role.ARCHAEOLOGIST) == 1
    assert session.player.active_tasks == []
    assert tile.tile_id in session.current_site.discovered_tiles
    assert len(completed) == 1
    for art in session.inventory:
        assert art.artefact_id in tile.artefacts
        assert not art.identified


def test_finished_tile_reveals_the_layer_below(session, clock):
    session.player.money = 10_000
    session.hire(Role.WORKER, 3)
    session.hire(Role.ARCHAEOLOGIST, 1)
    top = session.grid.surface((1, 1))
    assert session.start_task(TaskType.EXCAVATION, [top.tile_id])
    clock.advance(10)
    session.update()
    below = session.grid.surface((1, 1))
    assert below.layer == 1
    assert session.grid.is_interactable(below.tile_id)
    assert top.tile_id not in session.current_site.discovered_tiles


def test_start_refusals(session, clock):
    _hire_excavation_crew(session)
    stack = session.grid.stack((1, 1))

    assert "at least one" in session.start_task(TaskType.EXCAVATION, []).information
    assert "Unknown tile" in session.start_task(TaskType.EXCAVATION, ["nope"]).information
    assert "Unknown excavation method" in session.start_task("bulldozer", [stack[2].tile_id]).information
    assert "still buried" in session.start_task(TaskType.EXCAVATION, [stack[0].tile_id]).information
    assert "needs" in session.start_task(
        TaskType.EXCAVATION, [stack[2].tile_id], workers=1,
    ).information
    assert "Missing: " in session.start_task(TaskType.TRENCH, [stack[2].tile_id]).information
    assert session.player.money == 650
    assert session.active_task is None

    assert _start(session)
    assert "already in progress" in _start(session, (2, 2)).information
    clock.advance(5)
    session.update()
    session.player.money = 1000
    assert "already excavated" in _start(session).information


def test_money_shortfall_is_named(session):
    session.player.money = 350
    session.player.workers = 3
    session.player.archaeologists = 1
    result = _start(session)
    assert result.information == "Missing: Money (need 600, have 350)"
    assert session.player.money == 350


def test_cancel_keeps_the_money(session, clock, events, notifications):
    _hire_excavation_crew(session)
    tile = _corner(session)
    _start(session)
    task = session.active_task

    result = session.cancel_task()
    events.flush()
    assert result
    assert task.status is TaskStatus.CANCELLED
    assert session.player.money == 50
    assert session.player.available(Role.WORKER) == 3
    assert not tile.excavated
    assert notifications[-1] == (result.information, Severity.INFO)

    clock.advance(100)
    assert session.update() is None
    assert not session.cancel_task()


def test_full_inventory_drops_finds(session, clock, events, notifications, monkeypatch):
    _hire_excavation_crew(session)
    tile = _corner(session)
    _finds(session, *(Artefact(ArtefactType.TOOL) for _ in range(session.inventory.capacity)))

    lost = Artefact(ArtefactType.STATUE, Rarity.LEGENDARY, value=5000, tile_id=tile.tile_id)

    def crafted(task, site, tiles, now):
        dug = copy.deepcopy(tiles[0])
        dug.excavate(at=now)
        dug.add_artefact(lost.artefact_id)
        return ExcavationResult(tiles=[dug], artefacts=[lost], information=[])

    monkeypatch.setattr(session.excavation, "execute_excavation", crafted)
    dropped = []
    events.subscribe(EventType.ARTEFACT_DROPPED, dropped.append)

    _start(session)
    clock.advance(5)
    result = session.update()
    events.flush()

    assert "0 artefact(s)" in result.information
    assert lost.artefact_id not in session.inventory
    assert lost.artefact_id not in tile.artefacts
    assert tile.excavated
    assert [e.payload["artefact_id"] for e in dropped] == [lost.artefact_id]
    assert any(sev is Severity.WARNING and "lost" in msg for msg, sev in notifications)


# ---------------------------------------------------------------------------
# Artefacts
# ---------------------------------------------------------------------------

def test_identify_replaces_inventory_entry(session):
    session.hire(Role.ARCHAEOLOGIST, 1)
    (pottery,) = _finds(session, Artefact(ArtefactType.POTTERY, Rarity.RARE, value=300))

    result = session.identify(pottery.artefact_id)
    stored = session.inventory.get(pottery.artefact_id)
    assert result
    assert stored.identified
    assert stored.value > 300
    assert session.inventory.at(0) is stored
    assert not pottery.identified

    again = session.identify(pottery.artefact_id)
    assert again.information == "Already identified"


def test_identify_without_staff(session, events, notifications):
    (pottery,) = _finds(session, Artefact(ArtefactType.POTTERY, Rarity.RARE, value=300))
    result = session.identify(pottery.artefact_id)
    events.flush()
    assert result.information == "Insufficient personnel"
    assert notifications[-1] == ("Insufficient personnel", Severity.ERROR)
    assert not session.identify("missing")


def test_selling_credits_the_value(session):
    (art,) = _finds(session, Artefact(ArtefactType.TOOL, Rarity.UNCOMMON, value=120))
    result = session.sell(art.artefact_id)
    assert result
    assert session.player.money == 1120
    assert art.artefact_id not in session.inventory
    assert not session.sell(art.artefact_id)


def test_expedition_from_hire_to_sale(session, clock):
    session.player.add_money(5000)
    kish = session.site("Kish")
    need = session.resources.calculate_task_resources(TaskType.TRENCH, kish.difficulty)

    assert session.hire(Role.WORKER, need.workers)
    assert session.hire(Role.ARCHAEOLOGIST, need.archaeologists)
    assert session.hire(Role.LINGUIST, need.linguists)
    assert session.sound_site("Kish")
    assert session.travel("Kish")
    assert session.current_site is kish

    before_dig = session.player.money
    tiles      = [t.tile_id for t in session.grid.surface_tiles()]
    assert session.start_task(TaskType.TRENCH, tiles)
    assert session.player.money == before_dig - need.cost
    assert session.player.available(Role.LINGUIST) == 0

    clock.advance(session.rules.task(TaskType.TRENCH).duration)
    assert session.update()
    assert session.player.available(Role.LINGUIST) == need.linguists
    assert session.player.available(Role.ARCHAEOLOGIST) == need.archaeologists

    eligible = [a for a in session.inventory if a.rarity >= Rarity.RARE]
    assert eligible
    find = eligible[0]
    tile = session.grid.tile(find.tile_id)
    assert tile.excavated
    assert find.artefact_id in tile.artefacts
    assert find.provenience == "Kish"
    assert not find.identified

    base = find.value
    assert session.identify(find.artefact_id)
    stored = session.inventory.get(find.artefact_id)
    assert stored.identified
    assert stored.value > base
    assert stored.provenience == "Kish"
    assert stored.tile_id == tile.tile_id

    before_sale = session.player.money
    assert session.sell(find.artefact_id)
    assert session.player.money == before_sale + stored.value
    assert find.artefact_id not in session.inventory
    assert find.artefact_id in tile.artefacts


def test_flush_events_drains_the_queue(session, events, notifications):
    for _ in range(50):
        session.hire(Role.WORKER, 0)
    assert events.pending_count == 50
    session.flush_events()
    assert events.pending_count == 0
    assert len(notifications) == 50


# ---------------------------------------------------------------------------
# Map
# ---------------------------------------------------------------------------

def test_sounding_and_travel(session):
    home = session.current_site
    grid = session.grid

    assert "not been discovered" in session.travel("Nippur").information
    assert session.sound_site("nippur")
    assert session.player.money == 1000 - session.rules.sounding_cost
    nippur = session.site("Nippur")
    assert nippur.site_id in session.player.discovered_sites
    assert not session.sound_site("Nippur")
    assert not session.sound_site("Atlantis")

    assert session.travel("Nippur")
    assert session.current_site is nippur
    assert nippur.excavation_started
    assert session.grid is not grid
    assert not session.travel("Nippur")

    assert session.travel(home.name)
    assert session.grid is grid


def test_no_travel_during_a_task(session):
    _hire_excavation_crew(session)
    session.player.money = 2000
    session.sound_site("Kish")
    _start(session)
    assert "task is in progress" in session.travel("Kish").information


def test_regenerate_grid(session, clock):
    _hire_excavation_crew(session)
    old = session.grid
    _start(session)
    assert not session.regenerate_grid()
    clock.advance(5)
    session.update()
    assert session.current_site.discovered_tiles

    assert session.regenerate_grid()
    assert session.grid is not old
    assert session.current_site.discovered_tiles == []
    assert not any(t.excavated for t in session.grid.tiles())


# ---------------------------------------------------------------------------
# Camp, storage and museum
# ---------------------------------------------------------------------------

def test_tent_blocks_digging(session):
    _hire_excavation_crew(session)
    session.player.money = 1000
    assert session.place_structure("tent", (0, 0))
    assert session.player.money == 900
    assert _corner(session).structure is StructureType.TENT
    assert "occupied by a tent" in _start(session).information
    assert "already holds" in session.place_structure("dig_house", (0, 0)).information


def test_structure_refusals(session, clock):
    assert "Unknown structure" in session.place_structure("castle", (0, 0)).information
    assert "Only a tent" in session.place_structure(StructureType.TEMPLE, (0, 0)).information
    assert "No tile" in session.place_structure("tent", (9, 9)).information

    _hire_excavation_crew(session)
    _start(session)
    assert "being excavated" in session.place_structure("tent", (0, 0)).information
    clock.advance(5)
    session.update()
    session.player.money = 1000
    assert "excavated ground" in session.place_structure("tent", (0, 0)).information


def test_dig_house_opens_storage(session):
    (art,) = _finds(session, Artefact(ArtefactType.TOOL, value=20))
    assert session.store(art.artefact_id).information == "Build a dig house first"

    assert session.place_structure("dig-house", (2, 0))
    assert session.player.money == 500
    assert session.storage.capacity == session.rules.dig_house_storage

    assert session.store(art.artefact_id)
    assert art.artefact_id not in session.inventory
    assert session.storage.get(art.artefact_id) is art
    assert session.retrieve(art.artefact_id)
    assert session.inventory.get(art.artefact_id) is art
    assert not session.retrieve(art.artefact_id)


def test_exhibit_and_withdraw(session):
    raw, art = _finds(
        session,
        Artefact(ArtefactType.TOOL, Rarity.RARE, value=200),
        Artefact(ArtefactType.JEWELRY, Rarity.RARE, value=400),
    )
    art.identify("Gold Jewelry", "Mesopotamian", "Gold", "Ur III", None, 1.5, at=0.0)

    assert "Only identified" in session.exhibit(raw.artefact_id, 0).information
    assert "No display case 9" in session.exhibit(art.artefact_id, 8).information
    assert session.exhibit(art.artefact_id, 0)
    assert art.artefact_id not in session.inventory
    assert session.museum.case_of(art.artefact_id) == 0

    assert session.withdraw(art.artefact_id)
    assert session.inventory.get(art.artefact_id) is art
    assert art.value == 600
    assert not session.withdraw(art.artefact_id)


def test_withdraw_needs_inventory_room(session):
    art = Artefact(ArtefactType.JEWELRY, Rarity.RARE, value=400)
    art.identify("Gold Jewelry", "Mesopotamian", "Gold", "Ur III", None, 1.5, at=0.0)
    session.museum.exhibit(art, 0)
    _finds(session, *(Artefact(ArtefactType.TOOL) for _ in range(session.inventory.capacity)))
    assert session.withdraw(art.artefact_id).information == "Inventory is full"
    assert session.museum.case_of(art.artefact_id) == 0
