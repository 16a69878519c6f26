"""
systems/command_handler.py
==========================
Parses and dispatches player commands to the ``GameSession``.

Responsibilities
----------------
- Accept a raw input string from the UI.
- Tokenise and validate it against the known command set.
- Call the matching ``GameSession`` operation.
- Return a ``CommandResult`` the UI can display without knowing game logic.
- Post ``COMMAND_ENTERED`` so other listeners can react.
- Never render anything; never import pygame.

Supported commands
------------------
    HIRE     <role> <n>           Hire workers, archaeologists or linguists.
    DIG      <method> <x,y>...    Start a task on the surface tiles given.
    CANCEL                        Abandon the running task (no refund).
    IDENTIFY <n>                  Identify inventory item n.
    SELL     <n>                  Sell inventory item n.
    INV                           List the inventory.
    SITE                          Show the current site's grid.
    MAP                           List the sites of the region.
    SOUND    <site>               Pay for a sounding that reveals a site.
    TRAVEL   <site>               Move the expedition to a discovered site.
    BUILD    <structure> <x,y>    Put up a tent or dig house.
    STORE    <n>                  Move inventory item n to the dig house.
    RETRIEVE <n>                  Move dig-house item n back to the inventory.
    EXHIBIT  <n> <case>           Put inventory item n on display.
    WITHDRAW <n>                  Take museum exhibit n off display.
    MUSEUM                        List the museum cases.
    STATUS                        Show money, staff and task progress.
    HELP                          List available commands.
    QUIT                          Request clean shutdown.

Artefacts are numbered from 1 in the order the listing commands show them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from systems.event_queue import EventType
from systems.session import ActionResult, GameSession
from systems.storage import ArtefactStore
from world.artefact import Artefact
from world.tile import StructureType

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Command result
# ---------------------------------------------------------------------------

@dataclass
class CommandResult:
    """Return value from ``CommandHandler.execute()``.

    The UI reads this to decide what to print; it never calls game systems
    directly.

    Parameters
    ----------
    success:
        Whether the command completed without error.
    lines:
        List of text lines to display in the terminal, in order.
    command:
        The normalised command verb that was executed.
    error:
        Human-readable error message if ``success`` is False.
    notified:
        True when ``lines`` were already posted as NOTIFICATION events by
        the session, so a terminal listening to those should not print
        them twice.
    """

    success:  bool
    lines:    list[str]       = field(default_factory=list)
    command:  str             = ""
    error:    str             = ""
    notified: bool            = False

    def add(self, line: str) -> None:
        self.lines.append(line)

    @classmethod
    def ok(cls, command: str, *lines: str) -> "CommandResult":
        """Convenience constructor for a successful result."""
        return cls(success=True, lines=list(lines), command=command)

    @classmethod
    def fail(cls, command: str, error: str) -> "CommandResult":
        """Convenience constructor for a failed result."""
        return cls(success=False, error=error, command=command,
                   lines=[f"ERROR: {error}"])

    @classmethod
    def from_action(cls, command: str, action: ActionResult) -> "CommandResult":
        """Wrap a session ``ActionResult``; its text was already notified."""
        return cls(
            success  = action.success,
            lines    = [action.information] if action.information else [],
            command  = command,
            error    = "" if action.success else action.information,
            notified = True,
        )


# ---------------------------------------------------------------------------
# Command handler
# ---------------------------------------------------------------------------

class CommandHandler:
    """Routes player input to the session and returns display-ready results.

    Parameters
    ----------
    session:
        The running game.

    Usage
    -----
        handler = CommandHandler(session)
        result  = handler.execute("DIG excavation 1,1")
        for line in result.lines:
            terminal.print(line)
    """

    def __init__(self, session: GameSession) -> None:
        self._session = session

        # Dispatch table: verb -> handler method
        self._dispatch = {
            "HIRE":     self._cmd_hire,
            "DIG":      self._cmd_dig,
            "CANCEL":   self._cmd_cancel,
            "IDENTIFY": self._cmd_identify,
            "SELL":     self._cmd_sell,
            "INV":      self._cmd_inv,
            "SITE":     self._cmd_site,
            "MAP":      self._cmd_map,
            "SOUND":    self._cmd_sound,
            "TRAVEL":   self._cmd_travel,
            "BUILD":    self._cmd_build,
            "STORE":    self._cmd_store,
            "RETRIEVE": self._cmd_retrieve,
            "EXHIBIT":  self._cmd_exhibit,
            "WITHDRAW": self._cmd_withdraw,
            "MUSEUM":   self._cmd_museum,
            "STATUS":   self._cmd_status,
            "HELP":     self._cmd_help,
            "QUIT":     self._cmd_quit,
        }

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    def execute(self, raw_input: str) -> CommandResult:
        """Parse *raw_input* and dispatch to the matching command handler.

        Parameters
        ----------
        raw_input:
            The raw string the player typed (e.g. ``"hire workers 5"``).

        Returns
        -------
        CommandResult
            Display-ready result for the UI to render.
        """
        tokens = raw_input.strip().split()
        if not tokens:
            return CommandResult.fail("", "No command entered.")

        verb = tokens[0].upper()
        args = tokens[1:]

        self._session.events.post_immediate(
            EventType.COMMAND_ENTERED,
            {"verb": verb, "args": args, "raw": raw_input},
            source="CommandHandler",
        )

        handler = self._dispatch.get(verb)
        if handler is None:
            return CommandResult.fail(verb, f"Unknown command: {verb!r}. Type HELP for a list.")

        try:
            return handler(args)
        except Exception as exc:
            log.exception("Unexpected error executing command %r", verb)
            return CommandResult.fail(verb, f"Internal error: {exc}")

    # ------------------------------------------------------------------
    # Personnel and tasks
    # ------------------------------------------------------------------

    def _cmd_hire(self, args: list[str]) -> CommandResult:
        if len(args) != 2:
            return CommandResult.fail("HIRE", "Usage: HIRE <workers|archaeologists|linguists> <n>")
        count = _parse_int(args[1])
        if count is None:
            return CommandResult.fail("HIRE", f"Not a number: {args[1]!r}")
        return CommandResult.from_action("HIRE", self._session.hire(args[0], count))

    def _cmd_dig(self, args: list[str]) -> CommandResult:
        """Handle DIG <method> <x,y> [<x,y> ...].

        Each position selects the tile currently on top at that spot.
        """
        if len(args) < 2:
            return CommandResult.fail("DIG", "Usage: DIG <surface|excavation|trench> <x,y> [<x,y> ...]")

        tile_ids = []
        for token in args[1:]:
            position = _parse_position(token)
            if position is None:
                return CommandResult.fail("DIG", f"Not a position: {token!r} (expected x,y)")
            tile = self._session.grid.surface(position)
            if tile is None:
                return CommandResult.fail("DIG", f"No tile at {position}")
            tile_ids.append(tile.tile_id)

        return CommandResult.from_action("DIG", self._session.start_task(args[0], tile_ids))

    def _cmd_cancel(self, args: list[str]) -> CommandResult:
        return CommandResult.from_action("CANCEL", self._session.cancel_task())

    # ------------------------------------------------------------------
    # Artefacts
    # ------------------------------------------------------------------

    def _cmd_identify(self, args: list[str]) -> CommandResult:
        artefact, error = self._pick(args, self._session.inventory, "IDENTIFY <n>")
        if artefact is None:
            return CommandResult.fail("IDENTIFY", error)
        return CommandResult.from_action("IDENTIFY", self._session.identify(artefact.artefact_id))

    def _cmd_sell(self, args: list[str]) -> CommandResult:
        """Handle SELL <n>.  Without an argument, list what can be sold."""
        if not args:
            if not len(self._session.inventory):
                return CommandResult.fail("SELL", "Nothing to sell. Dig something up first.")
            result = self._cmd_inv([])
            result.command = "SELL"
            result.add("Usage: SELL <n>")
            return result

        artefact, error = self._pick(args, self._session.inventory, "SELL <n>")
        if artefact is None:
            return CommandResult.fail("SELL", error)
        return CommandResult.from_action("SELL", self._session.sell(artefact.artefact_id))

    def _cmd_inv(self, args: list[str]) -> CommandResult:
        inv   = self._session.inventory
        lines = [f"INVENTORY {len(inv)}/{inv.capacity}"]
        if not len(inv):
            lines.append("  (empty)")
        lines.extend(_artefact_lines(inv.artefacts()))

        storage = self._session.storage
        if storage is not None:
            lines.append(f"DIG HOUSE {len(storage)}/{storage.capacity}")
            lines.extend(_artefact_lines(storage.artefacts()))
        return CommandResult.ok("INV", *lines)

    # ------------------------------------------------------------------
    # Sites
    # ------------------------------------------------------------------

    def _cmd_site(self, args: list[str]) -> CommandResult:
        """Handle SITE: one row per grid line, the top tile of each spot.

        Markers: ``.`` undug, ``#`` dug, ``*`` dug with finds, ``T`` tent,
        ``H`` dig house; the digit is the tile's layer.
        """
        session = self._session
        site    = session.current_site
        lines   = [
            f"{site.name.upper()}  {site.difficulty.value}  {site.historical_period}",
            f"  dug to layer 0: {site.discovery_progress():.0%}",
        ]
        rows: dict[int, list[str]] = {}
        for x, y in session.grid.positions():
            tile = session.grid.surface((x, y))
            rows.setdefault(y, []).append(f"{_marker(tile)}{tile.layer}")
        for y in sorted(rows):
            lines.append(f"  {y}  " + " ".join(rows[y]))
        return CommandResult.ok("SITE", *lines)

    def _cmd_map(self, args: list[str]) -> CommandResult:
        lines = ["MESOPOTAMIA"]
        for site in self._session.sites:
            here   = ">" if site is self._session.current_site else " "
            status = "open" if site.discovered else "unsurveyed"
            lines.append(
                f" {here} {site.name:<20} {site.difficulty.value:<7} "
                f"{site.historical_period:<16} {status}"
            )
        lines.append(f"  SOUND <site> costs ${self._session.rules.sounding_cost}")
        return CommandResult.ok("MAP", *lines)

    def _cmd_sound(self, args: list[str]) -> CommandResult:
        if not args:
            return CommandResult.fail("SOUND", "Usage: SOUND <site>")
        return CommandResult.from_action("SOUND", self._session.sound_site(" ".join(args)))

    def _cmd_travel(self, args: list[str]) -> CommandResult:
        if not args:
            return CommandResult.fail("TRAVEL", "Usage: TRAVEL <site>")
        return CommandResult.from_action("TRAVEL", self._session.travel(" ".join(args)))

    # ------------------------------------------------------------------
    # Camp and museum
    # ------------------------------------------------------------------

    def _cmd_build(self, args: list[str]) -> CommandResult:
        if len(args) != 2:
            return CommandResult.fail("BUILD", "Usage: BUILD <tent|dig_house> <x,y>")
        position = _parse_position(args[1])
        if position is None:
            return CommandResult.fail("BUILD", f"Not a position: {args[1]!r} (expected x,y)")
        return CommandResult.from_action("BUILD", self._session.place_structure(args[0], position))

    def _cmd_store(self, args: list[str]) -> CommandResult:
        artefact, error = self._pick(args, self._session.inventory, "STORE <n>")
        if artefact is None:
            return CommandResult.fail("STORE", error)
        return CommandResult.from_action("STORE", self._session.store(artefact.artefact_id))

    def _cmd_retrieve(self, args: list[str]) -> CommandResult:
        storage = self._session.storage
        if storage is None:
            return CommandResult.fail("RETRIEVE", "Build a dig house first")
        artefact, error = self._pick(args, storage, "RETRIEVE <n>")
        if artefact is None:
            return CommandResult.fail("RETRIEVE", error)
        return CommandResult.from_action("RETRIEVE", self._session.retrieve(artefact.artefact_id))

    def _cmd_exhibit(self, args: list[str]) -> CommandResult:
        if len(args) != 2:
            return CommandResult.fail("EXHIBIT", "Usage: EXHIBIT <n> <case>")
        artefact, error = self._pick(args[:1], self._session.inventory, "EXHIBIT <n> <case>")
        if artefact is None:
            return CommandResult.fail("EXHIBIT", error)
        case = _parse_int(args[1])
        if case is None:
            return CommandResult.fail("EXHIBIT", f"Not a case number: {args[1]!r}")
        return CommandResult.from_action(
            "EXHIBIT", self._session.exhibit(artefact.artefact_id, case - 1),
        )

    def _cmd_withdraw(self, args: list[str]) -> CommandResult:
        exhibits = self._session.museum.artefacts()
        index    = _parse_int(args[0]) if len(args) == 1 else None
        if index is None:
            return CommandResult.fail("WITHDRAW", "Usage: WITHDRAW <n> (see MUSEUM)")
        if not 1 <= index <= len(exhibits):
            return CommandResult.fail("WITHDRAW", f"No exhibit {index}")
        return CommandResult.from_action(
            "WITHDRAW", self._session.withdraw(exhibits[index - 1].artefact_id),
        )

    def _cmd_museum(self, args: list[str]) -> CommandResult:
        museum = self._session.museum
        lines  = [f"MUSEUM  total value ${museum.total_value()}"]
        n = 0
        for case in museum.cases:
            lines.append(f"  {case.name} {len(case)}/{case.capacity}")
            for artefact in case:
                n += 1
                lines.append(f"    {n:>2}. {artefact.name:<24} ${artefact.value}")
        return CommandResult.ok("MUSEUM", *lines)

    # ------------------------------------------------------------------
    # System
    # ------------------------------------------------------------------

    def _cmd_status(self, args: list[str]) -> CommandResult:
        snap  = self._session.player_snapshot()
        avail = snap["available"]
        lines = [
            "EXPEDITION STATUS",
            f"  Money           ${snap['money']}",
            f"  Workers         {avail['worker']}/{snap['workers']}",
            f"  Archaeologists  {avail['archaeologist']}/{snap['archaeologists']}",
            f"  Linguists       {avail['linguist']}/{snap['linguists']}",
            f"  Reputation      {snap['reputation']}",
            f"  Site            {self._session.current_site.name}",
        ]
        task = self._session.active_task
        if task is not None:
            lines.append(
                f"  Task            {task.task_type.value} "
                f"{_progress_bar(self._session.task_progress())}"
            )
        return CommandResult.ok("STATUS", *lines)

    def _cmd_help(self, args: list[str]) -> CommandResult:
        rules = self._session.rules
        lines = [
            "AVAILABLE COMMANDS",
            "  HIRE     <role> <n>         Hire workers / archaeologists / linguists",
            "  DIG      <method> <x,y>...  surface | excavation | trench",
            "  CANCEL                      Abandon the running task (no refund)",
            "  IDENTIFY <n>                Identify inventory item n",
            "  SELL     <n>                Sell inventory item n",
            "  INV                         List the inventory",
            "  SITE                        Show the dig grid",
            "  MAP                         List the sites of the region",
            f"  SOUND    <site>             Reveal a site (${rules.sounding_cost})",
            "  TRAVEL   <site>             Move to a discovered site",
            "  BUILD    <structure> <x,y>  tent | dig_house",
            "  STORE    <n>                Inventory -> dig house",
            "  RETRIEVE <n>                Dig house -> inventory",
            "  EXHIBIT  <n> <case>         Inventory -> museum case",
            "  WITHDRAW <n>                Museum -> inventory",
            "  MUSEUM                      List the museum cases",
            "  STATUS                      Show money, staff and task",
            "  HELP                        Show this message",
            "  QUIT                        Exit the program",
        ]
        return CommandResult.ok("HELP", *lines)

    def _cmd_quit(self, args: list[str]) -> CommandResult:
        self._session.events.post_immediate(
            EventType.QUIT_REQUESTED,
            {},
            source="CommandHandler",
        )
        return CommandResult.ok("QUIT", "Packing up the expedition...")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _pick(
        args:  list[str],
        store: ArtefactStore,
        usage: str,
    ) -> tuple[Optional[Artefact], str]:
        """Resolve a 1-based index argument against *store*."""
        if len(args) != 1:
            return None, f"Usage: {usage}"
        index = _parse_int(args[0])
        if index is None:
            return None, f"Not a number: {args[0]!r}"
        artefact = store.at(index - 1)
        if artefact is None:
            return None, f"No item {index} in {store.name.lower()}"
        return artefact, ""


# ---------------------------------------------------------------------------
# Parsing and display helpers
# ---------------------------------------------------------------------------

def _parse_int(text: str) -> Optional[int]:
    try:
        return int(text)
    except ValueError:
        return None


def _parse_position(text: str) -> Optional[tuple[int, int]]:
    parts = text.split(",")
    if len(parts) != 2:
        return None
    x, y = _parse_int(parts[0]), _parse_int(parts[1])
    if x is None or y is None:
        return None
    return x, y


def _artefact_lines(artefacts: list[Artefact]) -> list[str]:
    lines = []
    for n, a in enumerate(artefacts, start=1):
        rarity = a.rarity.value.replace("_", " ")
        if a.identified:
            label = a.name
        else:
            label = f"{a.name} [{a.artefact_type.label}]"
        lines.append(f"  {n:>2}. {label:<40} {rarity:<10} ${a.value}")
    return lines


def _marker(tile) -> str:
    if tile.structure is StructureType.TENT:
        return "T"
    if tile.structure is StructureType.DIG_HOUSE:
        return "H"
    if not tile.excavated:
        return "."
    return "*" if tile.artefacts else "#"


def _progress_bar(ratio: float, width: int = 12) -> str:
    """Render a fixed-width ASCII progress bar like ``[======      ] 50%``."""
    filled = round(ratio * width)
    bar    = "=" * filled + " " * (width - filled)
    return f"[{bar}] {ratio:.0%}"
