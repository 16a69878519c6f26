"""
world/task.py
=============
Time-boxed, costed units of excavation work.

State machine
-------------
    PLANNING --start()--> IN_PROGRESS --complete()--> COMPLETED
        \\                     |
         +----cancel()--------+-------------------> CANCELLED

``start()`` and ``complete()`` are silent no-ops outside their source
state.  Time is whatever the caller's clock returns, in seconds.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

log = logging.getLogger(__name__)


class TaskType(enum.Enum):
    """Excavation methods, in increasing cost and yield."""
    SURFACE_COLLECTION = "surface_collection"
    EXCAVATION         = "excavation"
    TRENCH             = "trench"

    @classmethod
    def parse(cls, text: str) -> "TaskType":
        """Accept ``"trench"``, ``"Surface-Collection"``, ``"surface"``.

        Raises
        ------
        ValueError
            If *text* names no method.
        """
        key = text.strip().lower().replace("-", "_")
        if key == "surface":
            key = cls.SURFACE_COLLECTION.value
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown excavation method {text!r}")


class TaskStatus(enum.Enum):
    PLANNING    = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETED   = "completed"
    CANCELLED   = "cancelled"


_TERMINAL = (TaskStatus.COMPLETED, TaskStatus.CANCELLED)


@dataclass
class Task:
    """One excavation job.

    Parameters
    ----------
    task_type:
        Method used.
    estimated_duration:
        Seconds from ``start()`` until the task may complete.
    cost:
        Price charged when the task is started; fixed at creation.
    """

    task_type:          TaskType
    player_id:          str                = ""
    estimated_duration: float              = 0.0
    cost:               int                = 0
    workers:            int                = 0
    archaeologists:     int                = 0
    linguists:          int                = 0
    task_id:            str                = field(default_factory=lambda: str(uuid.uuid4()))
    status:             TaskStatus         = TaskStatus.PLANNING
    start_time:         Optional[float]    = None
    end_time:           Optional[float]    = None
    site_ids:           list[str]          = field(default_factory=list)
    tile_ids:           list[str]          = field(default_factory=list)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, now: float) -> bool:
        if self.status is not TaskStatus.PLANNING:
            log.debug("start ignored: task %s is %s", self.task_id, self.status.name)
            return False
        self.status     = TaskStatus.IN_PROGRESS
        self.start_time = now
        self.end_time   = now + self.estimated_duration
        return True

    def complete(self, now: float) -> bool:
        if self.status is not TaskStatus.IN_PROGRESS:
            log.debug("complete ignored: task %s is %s", self.task_id, self.status.name)
            return False
        self.status   = TaskStatus.COMPLETED
        self.end_time = now
        return True

    def cancel(self) -> bool:
        if self.status in _TERMINAL:
            return False
        self.status = TaskStatus.CANCELLED
        return True

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_completed(self, now: float) -> bool:
        """True once an in-progress task has run for its full duration."""
        if self.status is not TaskStatus.IN_PROGRESS or self.end_time is None:
            return False
        return now >= self.end_time

    def progress(self, now: float) -> float:
        """Elapsed fraction of the estimated duration, in ``[0.0, 1.0]``."""
        if self.status is TaskStatus.COMPLETED:
            return 1.0
        if self.start_time is None:
            return 0.0
        if self.estimated_duration <= 0:
            return 1.0
        elapsed = now - self.start_time
        return max(0.0, min(1.0, elapsed / self.estimated_duration))

    def add_site(self, site_id: str) -> None:
        if site_id not in self.site_ids:
            self.site_ids.append(site_id)

    def add_tile(self, tile_id: str) -> None:
        if tile_id not in self.tile_ids:
            self.tile_ids.append(tile_id)

    def __repr__(self) -> str:
        return f"<Task {self.task_type.name} {self.status.name} cost={self.cost}>"
