"""
world/site_generator.py
=======================
Builds the map of Mesopotamia and the dig grids of its sites.

Responsibilities
----------------
- Turn ``SiteProfile`` records (read from ``data/rules.yaml``) into
  ``Site`` objects.
- Lay out a site's ``DigGrid`` on demand.
- Never post events; never import pygame.

``SiteProfile`` is a plain dataclass so profiles can be defined in YAML
and loaded externally; the generator accepts them as input.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from world.dig_grid import DigGrid
from world.site import Difficulty, Site

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Site profile
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SiteProfile:
    """Parameters of a site on the map.

    Parameters
    ----------
    name:
        Site name shown to the player (e.g. ``"Nippur"``).
    size:
        Base grid dimension.
    location:
        ``(x, y)`` in percent of the map.
    difficulty:
        Scales task personnel and cost.
    layers:
        Maximum excavation depth.
    period:
        Historical period label.
    discovered:
        True for the bootstrap site that is open from the start.
    """

    name:       str
    size:       int               = 3
    location:   tuple[int, int]   = field(default=(0, 0))
    difficulty: Difficulty        = Difficulty.MEDIUM
    layers:     int               = 5
    period:     str               = "Unknown"
    discovered: bool              = False


# Used when a ruleset lists no sites at all
DEFAULT_PROFILE = SiteProfile(
    name       = "Tell Abu Salabikh",
    size       = 3,
    location   = (45, 40),
    difficulty = Difficulty.MEDIUM,
    layers     = 4,
    period     = "Ur III",
    discovered = True,
)


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

class SiteGenerator:
    """Creates sites from profiles.

    Usage
    -----
        gen   = SiteGenerator(rules.sites)
        sites = gen.build_sites()
        grid  = gen.generate_grid(sites[0])

    The generator keeps no state between calls.
    """

    def __init__(self, profiles: tuple[SiteProfile, ...] | list[SiteProfile]) -> None:
        self._profiles = tuple(profiles) or (DEFAULT_PROFILE,)

    def build_sites(self) -> list[Site]:
        """One ``Site`` per profile, in profile order.

        Profiles marked ``discovered`` come back discovered with
        excavation already started.  If no profile is marked, the first
        one is opened so a session always has somewhere to dig.
        """
        sites = [self._make_site(p) for p in self._profiles]
        if not any(s.discovered for s in sites):
            sites[0].discover()
        for site in sites:
            if site.discovered:
                site.start_excavation()
        log.info("Built %d sites (%d open)", len(sites), sum(s.discovered for s in sites))
        return sites

    @staticmethod
    def generate_grid(site: Site) -> DigGrid:
        """Lay out a fresh grid for *site*."""
        return DigGrid.generate(site)

    @staticmethod
    def _make_site(profile: SiteProfile) -> Site:
        site = Site(
            name              = profile.name,
            size              = profile.size,
            map_location      = profile.location,
            difficulty        = profile.difficulty,
            layers            = profile.layers,
            historical_period = profile.period,
        )
        if profile.discovered:
            site.discover()
        return site
