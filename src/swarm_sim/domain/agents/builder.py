from __future__ import annotations
import random
from typing import Any, Optional

from swarm_sim.domain.communication.explorer import ExplorationWalker
from swarm_sim.domain.geometry import COMPASS, Direction
from swarm_sim.domain.units import UnitKind
from .behaviors.movement import fan_out
from .roles import Rule
from .unit import Agent


class BuilderAgent(Agent):
    """Utility unit: may explore, then sets up a workshop on the map edge and keeps it repaired."""
    role = "utility"
    RULES = (
        Rule("explore", "_explore"),
        Rule("outpost", "_outpost"),
        Rule("repair", "_repair"),
        Rule("wander", "_wander"),
    )

    def __init__(self, id: int, rng: random.Random):
        super().__init__(id, rng)
        self.walker = ExplorationWalker()
        self.built_workshop = False

    def _explore(self, ctl: Any) -> bool:
        return self.walker.tick(ctl, self.claim)

    def _outpost(self, ctl: Any) -> bool:
        if self.built_workshop:
            return False
        out = self.outward(ctl)
        if out is None:
            return False
        if not ctl.on_the_map(ctl.location.add(out)):
            # At the edge: put the workshop down wherever it fits.
            for d in COMPASS:
                if ctl.can_build(UnitKind.WORKSHOP, d):
                    ctl.build(UnitKind.WORKSHOP, d)
                    self.built_workshop = True
                    break
            return True
        if not self._move_while(ctl, out):
            self._try_first(ctl, fan_out(out))
        return True

    def _repair(self, ctl: Any) -> bool:
        return self._repair_nearby(ctl, prefer=(UnitKind.WORKSHOP,))

    def outward(self, ctl: Any) -> Optional[Direction]:
        """Away from the map center, or away from the nearest base if the center is unknown."""
        origin = self.center or self.registry.nearest(ctl.location)
        if origin is None:
            return None
        d = origin.direction_to(ctl.location)
        return None if d is Direction.CENTER else d

    def snapshot(self) -> dict:
        s = super().snapshot()
        s.update({"built_workshop": self.built_workshop, "exploring": self.walker.walking})
        return s


class WorkshopAgent(Agent):
    """Stationary refiner: turns the team's ore into gold while it can."""
    role = "workshop"
    RULES = (
        Rule("refine", "_refine"),
    )

    def _refine(self, ctl: Any) -> bool:
        fired = False
        while ctl.can_refine():
            ctl.refine()
            fired = True
        return fired
