import pytest

from systems.storage import ArtefactStore, Museum
from world.artefact import Artefact, ArtefactType, Rarity


def _art(identified=False, value=100):
    art = Artefact(ArtefactType.POTTERY, Rarity.RARE, value=value)
    if identified:
        art.identify("Pottery Vessel", "Mesopotamian", "Clay", "Various", None, 1.5, at=0.0)
    return art


def test_store_respects_capacity():
    store = ArtefactStore("Shelf", capacity=2)
    assert store.add(_art())
    assert store.add(_art())
    assert store.is_full
    assert not store.add(_art())
    assert len(store) == 2


def test_store_refuses_duplicates():
    store = ArtefactStore("Shelf", capacity=5)
    art   = _art()
    assert store.add(art)
    assert not store.add(art)
    assert len(store) == 1
    assert art.artefact_id in store


def test_negative_capacity_is_rejected():
    with pytest.raises(ValueError):
        ArtefactStore("Shelf", capacity=-1)


def test_display_order_and_lookup():
    store = ArtefactStore("Shelf", capacity=5)
    first, second = _art(), _art()
    store.add(first)
    store.add(second)
    assert store.at(0) is first
    assert store.at(1) is second
    assert store.at(2) is None
    assert store.at(-1) is None
    assert store.remove(first.artefact_id) is first
    assert store.at(0) is second
    assert store.remove("missing") is None


def test_replace_keeps_position():
    store = ArtefactStore("Shelf", capacity=5)
    first, second = _art(), _art()
    store.add(first)
    store.add(second)
    newer = first.snapshot()
    newer.value = 999
    assert store.replace(newer)
    assert store.at(0) is newer
    assert not store.replace(_art())


def test_museum_only_shows_identified_artefacts():
    museum = Museum(case_count=2, case_capacity=1)
    assert not museum.exhibit(_art(), 0)
    shown = _art(identified=True)
    assert museum.exhibit(shown, 1)
    assert museum.case_of(shown.artefact_id) == 1
    assert not museum.exhibit(_art(identified=True), 1)
    assert not museum.exhibit(_art(identified=True), 5)
    assert len(museum) == 1


def test_withdraw_returns_the_same_object():
    museum = Museum(case_count=1, case_capacity=3)
    shown  = _art(identified=True, value=200)
    museum.exhibit(shown, 0)
    assert museum.total_value() == 300
    assert museum.withdraw(shown.artefact_id) is shown
    assert museum.withdraw(shown.artefact_id) is None
    assert museum.artefacts() == []
