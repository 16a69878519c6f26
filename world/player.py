"""
world/player.py
===============
The expedition leader: money, staff and reputation.

Pure data with a small mutation API.  Nothing here posts events; the
``ResourceManager`` and ``GameSession`` wrap these calls and announce the
changes.

Personnel reservation
---------------------
Staff assigned to a running task are *reserved*: they still count towards
``workers`` / ``archaeologists`` / ``linguists`` but not towards
``available()``.  Reservations are released when the task completes or is
cancelled, and a release never drives a reserved count below zero.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, field


class Role(enum.Enum):
    """Hireable staff roles."""
    WORKER        = "worker"
    ARCHAEOLOGIST = "archaeologist"
    LINGUIST      = "linguist"

    @classmethod
    def parse(cls, text: str) -> "Role":
        """Accept ``"worker"``, ``"Workers"``, ``"ARCHAEOLOGISTS"`` and so on.

        Raises
        ------
        ValueError
            If *text* names no role.
        """
        key = text.strip().lower()
        if key.endswith("s"):
            key = key[:-1]
        for role in cls:
            if role.value == key:
                return role
        raise ValueError(f"Unknown role {text!r}")


# Default per-unit hiring costs; the rules file normally supplies these.
DEFAULT_HIRE_COSTS: dict[Role, int] = {
    Role.WORKER:        50,
    Role.ARCHAEOLOGIST: 200,
    Role.LINGUIST:      500,
}


@dataclass
class Player:
    """Player state for one session.

    Parameters
    ----------
    money:
        Current balance.  Never negative.
    """

    money:            int              = 1000
    workers:          int              = 0
    archaeologists:   int              = 0
    linguists:        int              = 0
    reputation:       int              = 0
    player_id:        str              = field(default_factory=lambda: str(uuid.uuid4()))
    discovered_sites: list[str]        = field(default_factory=list)
    active_tasks:     list[str]        = field(default_factory=list)
    reserved:         dict[Role, int]  = field(default_factory=lambda: {r: 0 for r in Role})

    def __post_init__(self) -> None:
        counts = {
            "money":          self.money,
            "workers":        self.workers,
            "archaeologists": self.archaeologists,
            "linguists":      self.linguists,
        }
        negative = {k: v for k, v in counts.items() if v < 0}
        if negative:
            raise ValueError(f"Player fields must be non-negative, got {negative}")

    # ------------------------------------------------------------------
    # Money
    # ------------------------------------------------------------------

    def add_money(self, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"add_money() amount must be non-negative, got {amount}")
        self.money += amount

    def spend_money(self, amount: int) -> bool:
        """Debit *amount*; ``False`` and no change if the balance is short."""
        if amount < 0:
            raise ValueError(f"spend_money() amount must be non-negative, got {amount}")
        if self.money < amount:
            return False
        self.money -= amount
        return True

    # ------------------------------------------------------------------
    # Staff
    # ------------------------------------------------------------------

    def count(self, role: Role) -> int:
        """Total staff of *role*, reserved or not."""
        return {
            Role.WORKER:        self.workers,
            Role.ARCHAEOLOGIST: self.archaeologists,
            Role.LINGUIST:      self.linguists,
        }[role]

    def available(self, role: Role) -> int:
        """Staff of *role* not currently assigned to a task."""
        return max(0, self.count(role) - self.reserved[role])

    def hire(self, role: Role, count: int, cost_per_unit: int) -> bool:
        """Hire *count* staff of *role* at *cost_per_unit* each.

        Returns
        -------
        bool
            ``False`` without side effects if the player cannot pay.
        """
        if count < 0:
            raise ValueError(f"hire() count must be non-negative, got {count}")
        if not self.spend_money(count * cost_per_unit):
            return False
        if role is Role.WORKER:
            self.workers += count
        elif role is Role.ARCHAEOLOGIST:
            self.archaeologists += count
        else:
            self.linguists += count
        return True

    def hire_workers(self, count: int, cost_per_unit: int = DEFAULT_HIRE_COSTS[Role.WORKER]) -> bool:
        return self.hire(Role.WORKER, count, cost_per_unit)

    def hire_archaeologists(
        self, count: int, cost_per_unit: int = DEFAULT_HIRE_COSTS[Role.ARCHAEOLOGIST],
    ) -> bool:
        return self.hire(Role.ARCHAEOLOGIST, count, cost_per_unit)

    def hire_linguists(self, count: int, cost_per_unit: int = DEFAULT_HIRE_COSTS[Role.LINGUIST]) -> bool:
        return self.hire(Role.LINGUIST, count, cost_per_unit)

    def reserve(self, workers: int, archaeologists: int, linguists: int) -> bool:
        """Assign staff to a task.  All-or-nothing."""
        wanted = {
            Role.WORKER:        workers,
            Role.ARCHAEOLOGIST: archaeologists,
            Role.LINGUIST:      linguists,
        }
        if any(n < 0 for n in wanted.values()):
            raise ValueError(f"reserve() counts must be non-negative, got {wanted}")
        if any(self.available(role) < n for role, n in wanted.items()):
            return False
        for role, n in wanted.items():
            self.reserved[role] += n
        return True

    def release(self, workers: int, archaeologists: int, linguists: int) -> None:
        """Return staff from a finished or cancelled task."""
        for role, n in (
            (Role.WORKER, workers),
            (Role.ARCHAEOLOGIST, archaeologists),
            (Role.LINGUIST, linguists),
        ):
            self.reserved[role] = max(0, self.reserved[role] - n)

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def add_reputation(self, amount: int) -> None:
        self.reputation += amount

    def discover_site(self, site_id: str) -> None:
        if site_id not in self.discovered_sites:
            self.discovered_sites.append(site_id)

    def add_task(self, task_id: str) -> None:
        if task_id not in self.active_tasks:
            self.active_tasks.append(task_id)

    def remove_task(self, task_id: str) -> None:
        self.active_tasks = [t for t in self.active_tasks if t != task_id]

    def __repr__(self) -> str:
        return (
            f"<Player money={self.money} W={self.workers} "
            f"A={self.archaeologists} L={self.linguists} rep={self.reputation}>"
        )
