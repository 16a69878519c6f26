"""
systems/session.py
==================
GameSession — the single owner of a playthrough's state.

Architecture
------------
The session is constructed once and passed by reference to whatever front
end drives it (the pygame ``GameplayState``, the ``CommandHandler``, or a
test).  There are no module-level globals: rules, random source, clock and
event queue are all injected.

    session = GameSession(rules, random.Random(7), clock, EventQueue())
    session.hire(Role.WORKER, 5)
    session.start_task(TaskType.EXCAVATION, [tile.tile_id])
    ...
    session.update()          # once per frame; completes due tasks
    session.flush_events()    # deliver what the session posted

Every player action returns an ``ActionResult`` and posts a NOTIFICATION
with the same text, tagged with a ``Severity``.  Rejected actions change
nothing.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Union

from systems.event_queue import EventQueue, EventType, Severity
from systems.excavation import ExcavationSystem
from systems.identification import IdentificationSystem
from systems.resource_manager import ResourceManager
from systems.rules import Rules, load_rules
from systems.storage import ArtefactStore, Museum
from world.dig_grid import DigGrid, Position
from world.player import Player, Role
from world.site import Site
from world.site_generator import SiteGenerator
from world.task import Task, TaskType
from world.tile import StructureType, Tile

log = logging.getLogger(__name__)

Clock = Callable[[], float]


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass
class ActionResult:
    """Outcome of a player action."""
    success:     bool
    information: str = ""

    @classmethod
    def ok(cls, information: str = "") -> "ActionResult":
        return cls(success=True, information=information)

    @classmethod
    def fail(cls, information: str) -> "ActionResult":
        return cls(success=False, information=information)

    def __bool__(self) -> bool:
        return self.success


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class GameSession:
    """Player, sites, grid, collections and the active task.

    Parameters
    ----------
    rules:
        Ruleset; ``load_rules()`` when omitted.
    rng:
        Random source for every roll; an unseeded ``random.Random`` when
        omitted.
    clock:
        Returns seconds; ``time.monotonic`` when omitted.
    events:
        Queue that receives every event the session posts.
    """

    def __init__(
        self,
        rules:  Optional[Rules]          = None,
        rng:    Optional[random.Random]  = None,
        clock:  Optional[Clock]          = None,
        events: Optional[EventQueue]     = None,
    ) -> None:
        self.rules  = rules if rules is not None else load_rules()
        self.rng    = rng if rng is not None else random.Random()
        self.clock  = clock if clock is not None else time.monotonic
        self.events = events if events is not None else EventQueue()

        self.player         = Player(money=self.rules.starting_money)
        self.resources      = ResourceManager(self.player, self.rules, self.events)
        self.excavation     = ExcavationSystem(self.rules, self.rng)
        self.identification = IdentificationSystem(self.rules, self.rng, self.clock)

        self.inventory = ArtefactStore("Inventory", self.rules.inventory_capacity)
        self.museum    = Museum(self.rules.museum_cases, self.rules.museum_case_capacity)
        self.storage: Optional[ArtefactStore] = None    # exists once a dig house is built

        self.active_task: Optional[Task] = None

        self._generator = SiteGenerator(self.rules.sites)
        self.sites: list[Site] = self._generator.build_sites()
        for site in self.sites:
            if site.discovered:
                self.player.discover_site(site.site_id)

        self._grids: dict[str, DigGrid] = {}
        self.current_site: Site = next(s for s in self.sites if s.excavation_started)
        self.grid: DigGrid      = self._grid_for(self.current_site)
        log.info("Session started at %r with $%d", self.current_site.name, self.player.money)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def task_progress(self) -> float:
        """Elapsed fraction of the active task, 0.0 when idle."""
        if self.active_task is None:
            return 0.0
        return self.active_task.progress(self.clock())

    def player_snapshot(self) -> dict[str, Any]:
        p = self.player
        return {
            "money":          p.money,
            "workers":        p.workers,
            "archaeologists": p.archaeologists,
            "linguists":      p.linguists,
            "reputation":     p.reputation,
            "available":      {role.value: p.available(role) for role in Role},
        }

    def tile_snapshot(self) -> dict[str, Tile]:
        return self.grid.snapshot()

    def site(self, name: str) -> Optional[Site]:
        key = name.strip().lower()
        return next((s for s in self.sites if s.name.lower() == key), None)

    # ------------------------------------------------------------------
    # Personnel
    # ------------------------------------------------------------------

    def hire(self, role: Union[Role, str], count: int) -> ActionResult:
        try:
            role = role if isinstance(role, Role) else Role.parse(role)
        except ValueError as exc:
            return self._fail(str(exc))
        if count <= 0:
            return self._fail("Hire at least one person")

        cost = count * self.rules.cost_of(role)
        if not self.resources.hire(role, count):
            return self._fail(
                f"Cannot afford {count} {role.value}(s): need ${cost}, have ${self.player.money}"
            )
        return self._ok(f"Hired {count} {role.value}(s) for ${cost}")

    # ------------------------------------------------------------------
    # Task lifecycle
    # ------------------------------------------------------------------

    def start_task(
        self,
        task_type:      Union[TaskType, str],
        tile_ids:       Sequence[str],
        workers:        Optional[int] = None,
        archaeologists: Optional[int] = None,
        linguists:      Optional[int] = None,
    ) -> ActionResult:
        """Validate, pay for and start a task on *tile_ids*.

        Personnel left as ``None`` default to the requirement at the
        current site.  Assigning fewer than required is refused.
        """
        if self.active_task is not None:
            return self._fail("A task is already in progress")
        try:
            task_type = task_type if isinstance(task_type, TaskType) else TaskType.parse(task_type)
        except ValueError as exc:
            return self._fail(str(exc))

        tiles, error = self._selectable_tiles(tile_ids)
        if error:
            return self._fail(error)

        site = self.current_site
        need = self.resources.calculate_task_resources(task_type, site.difficulty)
        n_workers = need.workers        if workers        is None else workers
        n_arch    = need.archaeologists if archaeologists is None else archaeologists
        n_ling    = need.linguists      if linguists      is None else linguists
        if n_workers < need.workers or n_arch < need.archaeologists or n_ling < need.linguists:
            return self._fail(
                f"{task_type.value} at {site.name} needs {need.workers} workers, "
                f"{need.archaeologists} archaeologists, {need.linguists} linguists"
            )

        check = self.resources.can_afford_task(task_type, site.difficulty, n_workers, n_arch, n_ling)
        if not check.can_afford:
            return self._fail("Missing: " + "; ".join(check.missing_resources))

        task = Task(
            task_type          = task_type,
            player_id          = self.player.player_id,
            estimated_duration = self.rules.task(task_type).duration,
            cost               = need.cost,
            workers            = n_workers,
            archaeologists     = n_arch,
            linguists          = n_ling,
        )
        task.add_site(site.site_id)
        for tile in tiles:
            task.add_tile(tile.tile_id)

        # Funds are checked once more at the moment of debit
        if not self.resources.allocate_resources(task_type, site.difficulty, n_workers, n_arch, n_ling):
            return self._fail(f"Insufficient funds for {task_type.value} (${need.cost})")

        task.start(self.clock())
        self.player.add_task(task.task_id)
        self.active_task = task
        self.events.post_immediate(
            EventType.TASK_STARTED,
            {"task_id": task.task_id, "task_type": task_type.value, "tiles": list(task.tile_ids)},
            source="GameSession",
        )
        return self._ok(
            f"Started {task_type.value} on {len(tiles)} tile(s) "
            f"for ${task.cost}, {task.estimated_duration:g}s"
        )

    def update(self) -> Optional[ActionResult]:
        """Complete the active task if its time is up.

        Returns
        -------
        ActionResult | None
            The completion result, or ``None`` when nothing happened.
        """
        task = self.active_task
        if task is None:
            return None
        now = self.clock()
        if not task.is_completed(now):
            return None
        return self._finish_task(task, now)

    def flush_events(self) -> None:
        """Deliver every pending event to its subscribers.

        The queue only empties on a flush, so anything driving the session
        outside the gameplay loop calls this after its actions.
        """
        self.events.flush()

    def cancel_task(self) -> ActionResult:
        """Abandon the active task.  The cost is not refunded."""
        task = self.active_task
        if task is None:
            return self._fail("No task in progress")
        task.cancel()
        self._close_task(task)
        self.events.post_immediate(
            EventType.TASK_CANCELLED, {"task_id": task.task_id}, source="GameSession",
        )
        return self._ok(f"Cancelled {task.task_type.value}; ${task.cost} is not refunded", Severity.INFO)

    # ------------------------------------------------------------------
    # Artefacts
    # ------------------------------------------------------------------

    def identify(self, artefact_id: str) -> ActionResult:
        artefact = self.inventory.get(artefact_id)
        if artefact is None:
            return self._fail("No such artefact in the inventory")

        result = self.identification.identify_artefact(
            artefact,
            self.player.available(Role.ARCHAEOLOGIST),
            self.player.available(Role.LINGUIST),
        )
        if not result.success:
            severity = Severity.INFO if artefact.identified else Severity.ERROR
            return self._fail(result.information, severity)

        identified = result.identified_artefact
        self.inventory.replace(identified)
        self.events.post_immediate(
            EventType.ARTEFACT_IDENTIFIED,
            {"artefact_id": identified.artefact_id, "name": identified.name, "value": identified.value},
            source="GameSession",
        )
        text = f"{result.information} (${identified.value})"
        if result.bonuses:
            text += "; " + ", ".join(b.type for b in result.bonuses)
        if identified.set_name:
            text += f"; part of set {identified.set_name!r}"
        return self._ok(text)

    def sell(self, artefact_id: str) -> ActionResult:
        artefact = self.inventory.remove(artefact_id)
        if artefact is None:
            return self._fail("No such artefact in the inventory")
        self.resources.sell_artefact(artefact.value)
        self.events.post_immediate(
            EventType.ARTEFACT_SOLD,
            {"artefact_id": artefact.artefact_id, "value": artefact.value},
            source="GameSession",
        )
        return self._ok(f"Sold {artefact.name} for ${artefact.value}")

    # ------------------------------------------------------------------
    # Map
    # ------------------------------------------------------------------

    def sound_site(self, name: str) -> ActionResult:
        """Pay for a test sounding that reveals a map site."""
        site = self.site(name)
        if site is None:
            return self._fail(f"Unknown site {name!r}")
        if site.discovered:
            return self._fail(f"{site.name} is already discovered", Severity.INFO)
        cost = self.rules.sounding_cost
        if not self.resources.charge(cost, source="sounding"):
            return self._fail(f"A sounding costs ${cost}, have ${self.player.money}")

        site.discover()
        self.player.discover_site(site.site_id)
        self.events.post_immediate(
            EventType.SITE_DISCOVERED, {"site_id": site.site_id, "name": site.name},
            source="GameSession",
        )
        return self._ok(f"Sounding at {site.name} revealed a {site.historical_period} settlement")

    def travel(self, name: str) -> ActionResult:
        if self.active_task is not None:
            return self._fail("Cannot leave while a task is in progress")
        site = self.site(name)
        if site is None:
            return self._fail(f"Unknown site {name!r}")
        if not site.discovered:
            return self._fail(f"{site.name} has not been discovered yet")
        if site is self.current_site:
            return self._fail(f"Already at {site.name}", Severity.INFO)

        site.start_excavation()
        self.current_site = site
        self.grid         = self._grid_for(site)
        return self._ok(f"Moved the expedition to {site.name} ({site.difficulty.value})")

    def regenerate_grid(self) -> ActionResult:
        if self.active_task is not None:
            return self._fail("Cannot regenerate the grid while a task is in progress")
        site = self.current_site
        self.grid = self._generator.generate_grid(site)
        self._grids[site.site_id] = self.grid
        site.discovered_tiles.clear()
        return self._ok(f"Laid out a fresh grid at {site.name}", Severity.INFO)

    # ------------------------------------------------------------------
    # Camp, storage and museum
    # ------------------------------------------------------------------

    def place_structure(self, structure: Union[StructureType, str], position: Position) -> ActionResult:
        """Build a tent or dig house on an undug surface tile."""
        try:
            structure = structure if isinstance(structure, StructureType) else StructureType(
                structure.strip().lower().replace("-", "_")
            )
        except ValueError:
            return self._fail(f"Unknown structure {structure!r}")
        if not structure.is_camp:
            return self._fail("Only a tent or a dig_house can be built")

        tile = self.grid.surface(tuple(position))
        if tile is None:
            return self._fail(f"No tile at {tuple(position)}")
        if tile.excavated:
            return self._fail(f"Cannot build on excavated ground at {tile.position}")
        if tile.structure is not StructureType.NONE:
            return self._fail(f"Tile {tile.position} already holds a {tile.structure.value}")
        if self.active_task is not None and tile.tile_id in self.active_task.tile_ids:
            return self._fail(f"Tile {tile.position} is being excavated")

        cost = self.rules.structure_costs.get(structure)
        if cost is None:
            return self._fail(f"{structure.value} has no building cost")
        if not self.resources.charge(cost, source=f"build:{structure.value}"):
            return self._fail(f"A {structure.value} costs ${cost}, have ${self.player.money}")

        tile.set_structure(structure)
        if structure is StructureType.DIG_HOUSE and self.storage is None:
            self.storage = ArtefactStore("Dig house", self.rules.dig_house_storage)
        self.events.post_immediate(
            EventType.STRUCTURE_PLACED,
            {"tile_id": tile.tile_id, "structure": structure.value},
            source="GameSession",
        )
        return self._ok(f"Built a {structure.value} at {tile.position} for ${cost}")

    def store(self, artefact_id: str) -> ActionResult:
        if self.storage is None:
            return self._fail("Build a dig house first")
        return self._move(artefact_id, self.inventory, self.storage)

    def retrieve(self, artefact_id: str) -> ActionResult:
        if self.storage is None:
            return self._fail("Build a dig house first")
        return self._move(artefact_id, self.storage, self.inventory)

    def exhibit(self, artefact_id: str, case_index: int) -> ActionResult:
        artefact = self.inventory.get(artefact_id)
        if artefact is None:
            return self._fail("No such artefact in the inventory")
        if not artefact.identified:
            return self._fail("Only identified artefacts can be exhibited")
        if not 0 <= case_index < len(self.museum.cases):
            return self._fail(f"No display case {case_index + 1}")
        case = self.museum.cases[case_index]
        if case.is_full:
            return self._fail(f"{case.name} is full")

        self.museum.exhibit(artefact, case_index)
        self.inventory.remove(artefact_id)
        return self._ok(f"{artefact.name} is now on display in {case.name}")

    def withdraw(self, artefact_id: str) -> ActionResult:
        if self.museum.case_of(artefact_id) is None:
            return self._fail("No such artefact on display")
        if self.inventory.is_full:
            return self._fail("Inventory is full")
        artefact = self.museum.withdraw(artefact_id)
        self.inventory.add(artefact)
        return self._ok(f"Took {artefact.name} off display")

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _grid_for(self, site: Site) -> DigGrid:
        grid = self._grids.get(site.site_id)
        if grid is None:
            grid = self._generator.generate_grid(site)
            self._grids[site.site_id] = grid
        return grid

    def _selectable_tiles(self, tile_ids: Sequence[str]) -> tuple[list[Tile], str]:
        """Resolve *tile_ids* to live tiles, or explain why one is unusable."""
        if not tile_ids:
            return [], "Select at least one tile"
        tiles: list[Tile] = []
        for tile_id in dict.fromkeys(tile_ids):
            tile = self.grid.tile(tile_id)
            if tile is None:
                return [], f"Unknown tile {tile_id!r}"
            if tile.excavated:
                return [], f"Tile {tile.position} is already excavated"
            if not self.grid.is_interactable(tile_id):
                return [], f"Tile {tile.position} layer {tile.layer} is still buried"
            if tile.structure.is_camp:
                return [], f"Tile {tile.position} is occupied by a {tile.structure.value}"
            tiles.append(tile)
        return tiles, ""

    def _finish_task(self, task: Task, now: float) -> ActionResult:
        site   = self.current_site
        live   = [t for t in (self.grid.tile(tid) for tid in task.tile_ids) if t is not None]
        result = self.excavation.execute_excavation(task, site, live, now)

        for dug in result.tiles:
            tile = self.grid.tile(dug.tile_id)
            tile.excavate(at=dug.excavated_at)
            tile.set_structure(dug.structure)
            for artefact_id in dug.artefacts:
                tile.add_artefact(artefact_id)
            if tile.layer == 0:
                site.add_discovered_tile(tile.tile_id)
            self.grid.refresh(tile.position)
            self.events.post_immediate(
                EventType.TILE_EXCAVATED,
                {"tile_id": tile.tile_id, "position": tile.position, "layer": tile.layer},
                source="GameSession",
            )

        kept = 0
        for artefact in result.artefacts:
            if self.inventory.add(artefact):
                kept += 1
                self.events.post_immediate(
                    EventType.ARTEFACT_FOUND,
                    {"artefact_id": artefact.artefact_id, "rarity": artefact.rarity.value},
                    source="GameSession",
                )
                continue
            self.grid.tile(artefact.tile_id).remove_artefact(artefact.artefact_id)
            log.warning("Inventory full, dropped %r", artefact)
            self.events.post_immediate(
                EventType.ARTEFACT_DROPPED,
                {"artefact_id": artefact.artefact_id, "rarity": artefact.rarity.value},
                source="GameSession",
            )
            self.events.notify(
                f"Inventory full: a {artefact.rarity.value.replace('_', ' ')} "
                f"{artefact.artefact_type.label.lower()} was lost",
                Severity.WARNING,
                source="GameSession",
            )

        for line in result.information:
            self.events.notify(line, Severity.INFO, source="GameSession")

        task.complete(now)
        self._close_task(task)
        self.events.post_immediate(
            EventType.TASK_COMPLETED,
            {"task_id": task.task_id, "tiles": len(result.tiles), "artefacts": kept},
            source="GameSession",
        )
        return self._ok(
            f"{task.task_type.value} finished: {len(result.tiles)} tile(s) dug, "
            f"{kept} artefact(s) added to the inventory"
        )

    def _close_task(self, task: Task) -> None:
        self.resources.release_resources(task.workers, task.archaeologists, task.linguists)
        self.player.remove_task(task.task_id)
        self.active_task = None

    def _move(self, artefact_id: str, source: ArtefactStore, target: ArtefactStore) -> ActionResult:
        artefact = source.get(artefact_id)
        if artefact is None:
            return self._fail(f"No such artefact in {source.name.lower()}")
        if target.is_full:
            return self._fail(f"{target.name} is full")
        source.remove(artefact_id)
        target.add(artefact)
        return self._ok(f"Moved {artefact.name} to {target.name.lower()}")

    def _ok(self, information: str, severity: Severity = Severity.SUCCESS) -> ActionResult:
        self.events.notify(information, severity, source="GameSession")
        return ActionResult.ok(information)

    def _fail(self, information: str, severity: Severity = Severity.ERROR) -> ActionResult:
        log.debug("Refused: %s", information)
        self.events.notify(information, severity, source="GameSession")
        return ActionResult.fail(information)

    def __repr__(self) -> str:
        return f"<GameSession site={self.current_site.name!r} {self.player!r}>"
