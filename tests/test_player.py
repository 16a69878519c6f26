import pytest

from world.player import Player, Role


def test_hiring_debits_money_and_adds_staff():
    player = Player(money=1000)
    assert player.hire_workers(5)
    assert player.hire_archaeologists(2)
    assert player.money == 350
    assert player.workers == 5
    assert player.archaeologists == 2


def test_unaffordable_hire_changes_nothing():
    player = Player(money=400)
    assert not player.hire_linguists(1)
    assert player.money == 400
    assert player.linguists == 0


def test_spend_money_refuses_overdraft():
    player = Player(money=100)
    assert not player.spend_money(101)
    assert player.money == 100
    assert player.spend_money(100)
    assert player.money == 0


def test_negative_amounts_are_programmer_errors():
    player = Player()
    with pytest.raises(ValueError):
        player.add_money(-1)
    with pytest.raises(ValueError):
        player.spend_money(-5)
    with pytest.raises(ValueError):
        player.hire(Role.WORKER, -1, 50)


def test_negative_starting_values_are_rejected():
    with pytest.raises(ValueError):
        Player(money=-5)
    with pytest.raises(ValueError):
        Player(workers=-3)
    with pytest.raises(ValueError):
        Player(linguists=-1)
    assert Player(money=0, reputation=-10).reputation == -10


def test_reserve_is_all_or_nothing():
    player = Player(workers=3, archaeologists=1)
    assert player.reserve(2, 1, 0)
    assert player.available(Role.WORKER) == 1
    assert player.available(Role.ARCHAEOLOGIST) == 0

    assert not player.reserve(1, 1, 0)
    assert player.available(Role.WORKER) == 1
    assert player.count(Role.WORKER) == 3


def test_release_never_goes_below_zero():
    player = Player(workers=2)
    player.reserve(2, 0, 0)
    player.release(5, 3, 1)
    assert player.reserved == {Role.WORKER: 0, Role.ARCHAEOLOGIST: 0, Role.LINGUIST: 0}
    assert player.available(Role.WORKER) == 2


def test_role_parse_accepts_plurals_and_case():
    assert Role.parse("Workers") is Role.WORKER
    assert Role.parse("ARCHAEOLOGIST") is Role.ARCHAEOLOGIST
    assert Role.parse(" linguists ") is Role.LINGUIST
    with pytest.raises(ValueError):
        Role.parse("foreman")


def test_bookkeeping_is_idempotent():
    player = Player()
    player.discover_site("s1")
    player.discover_site("s1")
    player.add_task("t1")
    player.add_task("t1")
    assert player.discovered_sites == ["s1"]
    assert player.active_tasks == ["t1"]
    player.remove_task("t1")
    assert player.active_tasks == []


def test_reputation_accumulates_with_any_sign():
    player = Player()
    player.add_reputation(5)
    player.add_reputation(-8)
    assert player.reputation == -3


def test_player_ids_are_unique():
    assert Player().player_id != Player().player_id
