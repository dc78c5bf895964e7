from __future__ import annotations
import random
from typing import Any, Optional

from swarm_sim.domain.communication.explorer import ExplorationWalker
from swarm_sim.domain.geometry import Direction, Location
from .roles import Rule
from .unit import Agent


class ForagerAgent(Agent):
    """Harvests everything in reach, then walks toward the richest tile it sees."""
    role = "forager"
    RULES = (
        Rule("explore", "_explore"),
        Rule("harvest", "_harvest", terminal=False),
        Rule("seek", "_seek"),
        Rule("wander", "_wander"),
    )

    # Ore left on a tile so it keeps regenerating.
    ORE_RESERVE = 1
    NEIGHBORHOOD = [(dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1)]

    def __init__(self, id: int, rng: random.Random):
        super().__init__(id, rng)
        self.walker = ExplorationWalker()
        self.harvested = 0

    # --- rules ---
    def _explore(self, ctl: Any) -> bool:
        return self.walker.tick(ctl, self.claim)

    def _harvest(self, ctl: Any) -> bool:
        here = ctl.location
        n = 0
        for dx, dy in self.NEIGHBORHOOD:
            loc = Location(here.x + dx, here.y + dy)
            while ctl.can_harvest(loc) and self._worth_taking(ctl, loc):
                ctl.harvest(loc)
                n += 1
        self.harvested += n
        return n > 0

    def _seek(self, ctl: Any) -> bool:
        target = self.richest_tile(ctl)
        if target is None:
            return False
        d = ctl.location.direction_to(target)
        if d is Direction.CENTER or not ctl.can_move(d):
            return False
        self._move_while(ctl, d)
        return True

    # --- helpers ---
    def _worth_taking(self, ctl: Any, loc: Location) -> bool:
        return ctl.sense_gold(loc) > 0 or ctl.sense_ore(loc) > self.ORE_RESERVE

    def richest_tile(self, ctl: Any) -> Optional[Location]:
        """Gold beats ore, then larger amounts; ties broken at random."""
        here = ctl.location
        best_key = None
        best = []
        for t in ctl.sense_resources():
            if t.location == here:
                continue
            if t.gold <= 0 and t.ore <= self.ORE_RESERVE:
                continue
            key = (t.gold > 0, t.gold if t.gold > 0 else t.ore)
            if best_key is None or key > best_key:
                best_key, best = key, [t.location]
            elif key == best_key:
                best.append(t.location)
        if not best:
            return None
        return best[self.rng.randrange(len(best))]

    def snapshot(self) -> dict:
        s = super().snapshot()
        s.update({"harvested": self.harvested, "exploring": self.walker.walking})
        return s
