"""
systems/storage.py
==================
Bounded artefact containers: the player's inventory, dig-house storage
and the museum's exhibition cases.

An artefact lives in exactly one container at a time.  Moving it between
containers transfers the same object; nothing is copied, so an artefact
that goes on display and comes back is unchanged.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from world.artefact import Artefact

log = logging.getLogger(__name__)


class ArtefactStore:
    """Ordered, id-keyed collection with a fixed capacity.

    Usage
    -----
        inv = ArtefactStore("Inventory", capacity=20)
        if not inv.add(artefact):
            ...                        # full
        art = inv.remove(artefact.artefact_id)
    """

    def __init__(self, name: str, capacity: int) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        self.name     = name
        self.capacity = capacity
        self._items: dict[str, Artefact] = {}   # insertion order kept for display

    def add(self, artefact: Artefact) -> bool:
        """Store *artefact*.  ``False`` if full or already present."""
        if artefact.artefact_id in self._items:
            return False
        if self.is_full:
            log.debug("%s full (%d), refused %r", self.name, self.capacity, artefact)
            return False
        self._items[artefact.artefact_id] = artefact
        return True

    def remove(self, artefact_id: str) -> Optional[Artefact]:
        return self._items.pop(artefact_id, None)

    def replace(self, artefact: Artefact) -> bool:
        """Swap in *artefact* for the stored one with the same id, in place."""
        if artefact.artefact_id not in self._items:
            return False
        self._items[artefact.artefact_id] = artefact
        return True

    def get(self, artefact_id: str) -> Optional[Artefact]:
        return self._items.get(artefact_id)

    def at(self, index: int) -> Optional[Artefact]:
        """Artefact at 0-based display *index*, or None."""
        if 0 <= index < len(self._items):
            return list(self._items.values())[index]
        return None

    def artefacts(self) -> list[Artefact]:
        return list(self._items.values())

    @property
    def is_full(self) -> bool:
        return len(self._items) >= self.capacity

    def __contains__(self, artefact_id: object) -> bool:
        return artefact_id in self._items

    def __iter__(self) -> Iterator[Artefact]:
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"<ArtefactStore {self.name!r} {len(self)}/{self.capacity}>"


class Museum:
    """Numbered exhibition cases.

    Only identified artefacts go on display.  Cases are addressed by a
    0-based index.
    """

    def __init__(self, case_count: int, case_capacity: int) -> None:
        self.cases = [
            ArtefactStore(f"Case {i + 1}", case_capacity) for i in range(case_count)
        ]

    def exhibit(self, artefact: Artefact, case_index: int) -> bool:
        if not artefact.identified:
            return False
        if not 0 <= case_index < len(self.cases):
            return False
        return self.cases[case_index].add(artefact)

    def withdraw(self, artefact_id: str) -> Optional[Artefact]:
        for case in self.cases:
            artefact = case.remove(artefact_id)
            if artefact is not None:
                return artefact
        return None

    def case_of(self, artefact_id: str) -> Optional[int]:
        for i, case in enumerate(self.cases):
            if artefact_id in case:
                return i
        return None

    def artefacts(self) -> list[Artefact]:
        return [a for case in self.cases for a in case]

    def total_value(self) -> int:
        return sum(a.value for a in self.artefacts())

    def __len__(self) -> int:
        return sum(len(c) for c in self.cases)

    def __repr__(self) -> str:
        return f"<Museum cases={len(self.cases)} exhibits={len(self)}>"
