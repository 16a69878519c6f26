"""
systems/resource_manager.py
===========================
Prices tasks and mediates every change to the player's money and staff.

Responsibilities
----------------
- Compute personnel and cost requirements of a task at a given site
  difficulty.
- Check affordability and report each shortfall as a readable message.
- Debit money and reserve staff when a task is allocated; release staff
  when it ends.
- Post ``RESOURCE_CHANGED`` events via the session's event queue.
- Never render anything; never import pygame.

Design note
-----------
Systems that spend money or assign staff call the resource manager and
check its return value rather than poking at ``Player`` directly.  This
keeps spending logic centralised and auditable.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Union

from systems.event_queue import EventQueue, EventType
from systems.rules import Rules
from world.player import Player, Role
from world.site import Difficulty
from world.task import TaskType

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResourceAllocation:
    """Staff and money a task needs."""
    workers:        int
    archaeologists: int
    linguists:      int
    cost:           int


@dataclass
class AffordabilityCheck:
    """Outcome of ``can_afford_task()``.

    Parameters
    ----------
    can_afford:
        True when nothing is missing.
    missing_resources:
        One message per deficient resource, e.g.
        ``"Money (need 600, have 350)"``.
    """
    can_afford:        bool
    missing_resources: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Resource manager
# ---------------------------------------------------------------------------

class ResourceManager:
    """Owns spending decisions for one player.

    Parameters
    ----------
    player:
        The player whose money and staff are managed.
    rules:
        Costs and multipliers.
    events:
        Queue that receives ``RESOURCE_CHANGED``.  Optional so the manager
        can be used standalone.

    Usage
    -----
        rm = ResourceManager(player, rules, events)

        need  = rm.calculate_task_resources(TaskType.EXCAVATION, Difficulty.HARD)
        check = rm.can_afford_task(TaskType.EXCAVATION, "hard", 5, 2, 0)
        if check.can_afford:
            rm.allocate_resources(TaskType.EXCAVATION, "hard", 5, 2, 0)
    """

    def __init__(
        self,
        player: Player,
        rules:  Rules,
        events: Optional[EventQueue] = None,
    ) -> None:
        self._player = player
        self._rules  = rules
        self._events = events

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def calculate_task_resources(
        self,
        task_type:  TaskType,
        difficulty: Union[Difficulty, str],
    ) -> ResourceAllocation:
        """Staff and cost of *task_type* at a site of *difficulty*.

        Personnel counts are ``ceil(base * m)``.  The cost scales the base
        cost and the wages of the *unscaled* base staff by the same
        multiplier ``m`` and rounds the sum up.
        """
        rule  = self._rules.task(task_type)
        m     = self._rules.multiplier(difficulty)
        wages = (
            rule.workers        * self._rules.cost_of(Role.WORKER)
            + rule.archaeologists * self._rules.cost_of(Role.ARCHAEOLOGIST)
            + rule.linguists      * self._rules.cost_of(Role.LINGUIST)
        )
        return ResourceAllocation(
            workers        = math.ceil(rule.workers * m),
            archaeologists = math.ceil(rule.archaeologists * m),
            linguists      = math.ceil(rule.linguists * m),
            cost           = math.ceil(rule.base_cost * m + wages * m),
        )

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------

    def can_afford_task(
        self,
        task_type:      TaskType,
        difficulty:     Union[Difficulty, str],
        workers:        int,
        archaeologists: int,
        linguists:      int,
    ) -> AffordabilityCheck:
        """Compare the player's money and free staff with what is asked.

        Money is checked against the computed task cost; each role is
        checked against the requested count.
        """
        required = self.calculate_task_resources(task_type, difficulty)
        p        = self._player
        missing: list[str] = []

        if p.money < required.cost:
            missing.append(f"Money (need {required.cost}, have {p.money})")
        for role, wanted, label in (
            (Role.WORKER,        workers,        "Workers"),
            (Role.ARCHAEOLOGIST, archaeologists, "Archaeologists"),
            (Role.LINGUIST,      linguists,      "Linguists"),
        ):
            have = p.available(role)
            if have < wanted:
                missing.append(f"{label} (need {wanted}, have {have})")

        return AffordabilityCheck(can_afford=not missing, missing_resources=missing)

    def can_afford(self, amount: int) -> bool:
        return self._player.money >= amount

    # ------------------------------------------------------------------
    # Spending
    # ------------------------------------------------------------------

    def allocate_resources(
        self,
        task_type:      TaskType,
        difficulty:     Union[Difficulty, str],
        workers:        int,
        archaeologists: int,
        linguists:      int,
    ) -> bool:
        """Debit the task cost and reserve the requested staff.

        Returns
        -------
        bool
            ``False`` with no side effects if anything is missing.
        """
        check = self.can_afford_task(task_type, difficulty, workers, archaeologists, linguists)
        if not check.can_afford:
            log.info("Cannot afford %s: %s", task_type.value, "; ".join(check.missing_resources))
            return False

        cost = self.calculate_task_resources(task_type, difficulty).cost
        if not self.spend(cost, source=task_type.value):
            return False
        if not self._player.reserve(workers, archaeologists, linguists):
            # Unreachable after the availability check; undo the debit anyway.
            self._player.add_money(cost)
            return False

        self._post_changed(-cost, source=task_type.value)
        return True

    def release_resources(self, workers: int, archaeologists: int, linguists: int) -> None:
        """Hand staff back from a finished or cancelled task."""
        self._player.release(workers, archaeologists, linguists)
        self._post_changed(0, source="release")

    def spend(self, amount: int, source: str = "") -> bool:
        """Debit *amount*; ``False`` and unchanged balance if short."""
        if not self._player.spend_money(amount):
            log.debug("%s: cannot spend %d (have %d)", source, amount, self._player.money)
            return False
        if source:
            log.debug("%s: spent %d", source, amount)
        return True

    def hire(self, role: Role, count: int) -> bool:
        """Hire *count* staff of *role* at the rules' unit cost."""
        cost = count * self._rules.cost_of(role)
        if not self._player.hire(role, count, self._rules.cost_of(role)):
            return False
        self._post_changed(-cost, source=f"hire:{role.value}")
        return True

    def sell_artefact(self, value: int) -> None:
        """Credit the proceeds of a sale."""
        self._player.add_money(value)
        self._post_changed(value, source="sale")

    def charge(self, amount: int, source: str) -> bool:
        """Spend *amount* and announce it; used for building and sounding."""
        if not self.spend(amount, source=source):
            return False
        self._post_changed(-amount, source=source)
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _post_changed(self, delta: int, source: str) -> None:
        if self._events is None:
            return
        p = self._player
        self._events.post_immediate(
            EventType.RESOURCE_CHANGED,
            {
                "delta":          delta,
                "money":          p.money,
                "workers":        p.workers,
                "archaeologists": p.archaeologists,
                "linguists":      p.linguists,
                "source":         source,
            },
            source="ResourceManager",
        )

    def __repr__(self) -> str:
        return f"<ResourceManager {self._player!r}>"
