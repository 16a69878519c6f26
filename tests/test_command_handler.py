import pytest

from systems.command_handler import CommandHandler, CommandResult
from systems.event_queue import EventType
from world.artefact import Artefact, ArtefactType, Rarity


@pytest.fixture
def handler(session):
    return CommandHandler(session)


def test_hire(handler, session):
    result = handler.execute("hire workers 3")
    assert result.success
    assert result.command == "HIRE"
    assert result.notified
    assert result.lines == ["Hired 3 worker(s) for $150"]
    assert session.player.workers == 3


def test_hire_usage(handler):
    assert not handler.execute("HIRE workers").success
    result = handler.execute("HIRE workers lots")
    assert result.error == "Not a number: 'lots'"
    assert result.lines == ["ERROR: Not a number: 'lots'"]
    assert not result.notified


def test_empty_and_unknown_input(handler):
    assert handler.execute("   ").error == "No command entered."
    result = handler.execute("excavate everything")
    assert not result.success
    assert result.error == "Unknown command: 'EXCAVATE'. Type HELP for a list."


def test_dig_selects_the_top_tile(handler, session):
    handler.execute("HIRE workers 3")
    handler.execute("HIRE archaeologists 1")
    result = handler.execute("DIG excavation 1,1")
    assert result.success, result.error
    assert session.active_task.tile_ids == [session.grid.surface((1, 1)).tile_id]

    status = handler.execute("STATUS")
    assert any(line.strip().startswith("Task") for line in status.lines)
    assert handler.execute("CANCEL").success


def test_dig_rejects_bad_positions(handler):
    assert "Not a position" in handler.execute("DIG trench 1;1").error
    assert handler.execute("DIG trench 7,7").error == "No tile at (7, 7)"
    assert handler.execute("DIG trench").error.startswith("Usage")


def test_identify_on_empty_inventory(handler):
    assert handler.execute("IDENTIFY 1").error == "No item 1 in inventory"
    assert handler.execute("IDENTIFY one").error == "Not a number: 'one'"


def test_sell_by_index(handler, session):
    assert handler.execute("SELL").error == "Nothing to sell. Dig something up first."
    art = Artefact(ArtefactType.TOOL, Rarity.UNCOMMON, value=120)
    session.inventory.add(art)

    listing = handler.execute("SELL")
    assert listing.success
    assert listing.lines[-1] == "Usage: SELL <n>"

    result = handler.execute("SELL 1")
    assert result.success
    assert session.player.money == 1120


def test_inventory_listing(handler, session):
    assert handler.execute("INV").lines[:2] == ["INVENTORY 0/20", "  (empty)"]
    session.inventory.add(Artefact(ArtefactType.POTTERY, Rarity.RARE, value=300))
    lines = handler.execute("inv").lines
    assert lines[0] == "INVENTORY 1/20"
    assert "[Pottery]" in lines[1]
    assert lines[1].rstrip().endswith("$300")


def test_site_rows(handler, session):
    lines = handler.execute("SITE").lines
    assert lines[0].startswith("TELL ABU SALABIKH")
    assert lines[2].split()[1:] == [".0", ".1", ".0"]
    assert lines[3].split()[1:] == [".1", ".2", ".1"]
    assert len(lines) == 2 + session.current_site.size


def test_map_marks_current_site(handler):
    lines = handler.execute("MAP").lines
    assert lines[0] == "MESOPOTAMIA"
    assert lines[1].startswith(" > Tell Abu Salabikh")
    assert "unsurveyed" in lines[2]


def test_sound_joins_multiword_names(handler, session):
    session.sites[1].name = "Tell el Muqayyar"
    result = handler.execute("SOUND tell el muqayyar")
    assert result.success, result.error
    assert session.sites[1].discovered
    assert handler.execute("TRAVEL Tell el Muqayyar").success


def test_museum_round_trip(handler, session):
    art = Artefact(ArtefactType.JEWELRY, Rarity.RARE, value=400)
    art.identify("Gold Jewelry", "Mesopotamian", "Gold", "Ur III", None, 1.5, at=0.0)
    session.inventory.add(art)

    assert handler.execute("EXHIBIT 1 2").success
    assert session.museum.case_of(art.artefact_id) == 1
    assert "Gold Jewelry" in "\n".join(handler.execute("MUSEUM").lines)
    assert handler.execute("WITHDRAW 2").error == "No exhibit 2"
    assert handler.execute("WITHDRAW 1").success
    assert session.inventory.get(art.artefact_id) is art


def test_quit_posts_event(handler, events):
    quits = []
    events.subscribe(EventType.QUIT_REQUESTED, quits.append)
    result = handler.execute("QUIT")
    events.flush()
    assert result.lines == ["Packing up the expedition..."]
    assert len(quits) == 1


def test_commands_are_announced(handler, events):
    entered = []
    events.subscribe(EventType.COMMAND_ENTERED, entered.append)
    handler.execute("hire linguists 1")
    events.flush()
    assert entered[0].payload == {"verb": "HIRE", "args": ["linguists", "1"], "raw": "hire linguists 1"}


def test_internal_errors_are_reported(handler, session, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("shovel broke")

    monkeypatch.setattr(session, "hire", boom)
    result = handler.execute("HIRE workers 1")
    assert not result.success
    assert result.error == "Internal error: shovel broke"


def test_help_lists_every_command(handler):
    text = "\n".join(handler.execute("HELP").lines)
    for verb in ("HIRE", "DIG", "IDENTIFY", "SOUND", "BUILD", "EXHIBIT", "QUIT"):
        assert verb in text


def test_result_constructors():
    result = CommandResult.ok("X", "a")
    result.add("b")
    assert result.lines == ["a", "b"]
    assert CommandResult.fail("X", "bad").lines == ["ERROR: bad"]
