import math
import random

import pytest

from systems.identification import IdentificationSystem
from systems.rules import UNSATISFIABLE
from world.artefact import Artefact, ArtefactType, Rarity


@pytest.fixture
def system(rules, clock):
    clock.now = 42.0
    return IdentificationSystem(rules, random.Random(5), clock)


def test_pottery_needs_an_archaeologist(system):
    pottery = Artefact(ArtefactType.POTTERY, Rarity.RARE, value=300)

    failed = system.identify_artefact(pottery, 0, 0)
    assert not failed.success
    assert failed.information == "Insufficient personnel"
    assert failed.identified_artefact is None

    result = system.identify_artefact(pottery, 1, 0)
    assert result.success
    assert result.identified_artefact.value > 300
    assert result.identified_artefact.identified
    assert result.information == "Successfully identified as Pottery Vessel"


def test_input_artefact_is_not_mutated(system):
    pottery = Artefact(ArtefactType.POTTERY, Rarity.RARE, value=300)
    result  = system.identify_artefact(pottery, 1, 0)
    assert not pottery.identified
    assert pottery.value == 300
    assert result.identified_artefact is not pottery
    assert result.identified_artefact.artefact_id == pottery.artefact_id


def test_second_identification_is_a_no_op(system):
    tablet = Artefact(ArtefactType.CUNEIFORM_TABLET, Rarity.LEGENDARY, value=4000)
    first  = system.identify_artefact(tablet, 1, 1).identified_artefact

    again = system.identify_artefact(first, 5, 5)
    assert not again.success
    assert again.information == "Already identified"
    assert again.identified_artefact is first
    assert again.identified_artefact.value >= first.value
    assert (first.name, first.style, first.material, first.age) == (
        "Cuneiform Tablet", "Akkadian", "Clay", "Old Babylonian",
    )


def test_requirement_groups(system):
    req = system.get_identification_requirements

    basic = req(Artefact(ArtefactType.TOOL, Rarity.RARE))
    assert (basic.archaeologists, basic.linguists, basic.time) == (1, 0, 1)

    inscribed = req(Artefact(ArtefactType.CYLINDER_SEAL, Rarity.RARE))
    assert (inscribed.archaeologists, inscribed.linguists, inscribed.time) == (1, 1, 2)

    complex_ = req(Artefact(ArtefactType.STATUE, Rarity.VERY_RARE))
    assert (complex_.archaeologists, complex_.linguists, complex_.time) == (2, 0, 3)

    fallback = req(Artefact(ArtefactType.UNIDENTIFIED, Rarity.RARE))
    assert (fallback.archaeologists, fallback.linguists, fallback.time) == (1, 0, 1)


def test_low_rarities_can_never_be_identified(system):
    common = Artefact(ArtefactType.POTTERY, Rarity.COMMON, value=30)
    need   = system.get_identification_requirements(common)
    assert need.archaeologists == UNSATISFIABLE
    assert need.linguists == UNSATISFIABLE
    assert not system.can_identify(common, 50, 50)
    assert system.identify_artefact(common, 50, 50).information == "Insufficient personnel"


def test_inscribed_needs_a_linguist(system):
    brick = Artefact(ArtefactType.STAMPED_BRICK, Rarity.RARE, value=250)
    assert not system.can_identify(brick, 3, 0)
    assert system.can_identify(brick, 1, 1)


def test_ruler_inscription_adds_bonus(system):
    brick  = Artefact(ArtefactType.STAMPED_BRICK, Rarity.RARE, value=200)
    result = system.identify_artefact(brick, 1, 1)
    art    = result.identified_artefact
    assert [b.type for b in result.bonuses] == ["Mentioning ruler"]
    assert art.bonuses == result.bonuses
    assert "king" in art.inscription
    # 1.5x floor, then +20 % for the ruler bonus
    assert art.value >= math.floor(math.floor(200 * 1.5) * 1.2)


def test_place_inscription_adds_bonus(system):
    tablet = Artefact(ArtefactType.CUNEIFORM_TABLET, Rarity.RARE, value=200)
    result = system.identify_artefact(tablet, 1, 1)
    assert [b.type for b in result.bonuses] == ["Mentioning place name"]


def test_ur_iii_jewelry_joins_the_set(system, clock):
    jewel  = Artefact(ArtefactType.JEWELRY, Rarity.RARE, value=300)
    result = system.identify_artefact(jewel, 2, 0)
    art    = result.identified_artefact
    assert art.set_name == "The Local Chief"
    assert art.name == "Gold Jewelry"
    assert art.identified_at == 42.0
    assert result.bonuses == []


def test_multiplier_stays_in_range(rules, clock):
    system = IdentificationSystem(rules, random.Random(11), clock)
    for _ in range(200):
        statue = Artefact(ArtefactType.STATUE, Rarity.RARE, value=1000)
        value  = system.identify_artefact(statue, 2, 0).identified_artefact.value
        assert 1500 <= value <= 2000
