from __future__ import annotations
import random
from typing import Any, Dict, List, Optional, Sequence, Union

from swarm_sim.domain.communication.explorer import ExplorerClaim
from swarm_sim.domain.communication.registry import BaseRegistry
from swarm_sim.domain.geometry import Direction, Location
from .behaviors.movement import default_direction, random_direction
from .roles import Role, Rule, RulePolicy


class Agent:
    """
    Base agent: per-unit memory, shared-channel views and the rule table.

    One instance lives for the lifetime of one unit; ``step`` is called once
    per tick with that unit's controller.
    """
    RULES: Sequence[Rule] = ()
    role: Role = "utility"

    def __init__(self, id: int, rng: random.Random):
        self.id = id
        self.rng = rng
        self.turn_count = 0
        self.policy = RulePolicy(self.RULES)

        # Refreshed at the top of every tick.
        self.registry: Optional[BaseRegistry] = None
        self.claim: Optional[ExplorerClaim] = None
        self.center: Optional[Location] = None

    # --- tick entry ---
    def step(self, ctl: Any) -> List[str]:
        self.turn_count += 1
        self.registry = BaseRegistry(ctl.channel)
        self.claim = ExplorerClaim(ctl.channel)
        self.center = self.claim.center()
        return self.policy.run(self, ctl)

    # --- movement helpers ---
    def _try_move(self, ctl: Any, d: Optional[Direction]) -> bool:
        if d is not None and ctl.can_move(d):
            ctl.move(d)
            return True
        return False

    def _move_while(self, ctl: Any, d: Optional[Direction]) -> int:
        """Repeat a move while it stays legal. Returns how many steps were taken."""
        n = 0
        while d is not None and ctl.can_move(d):
            ctl.move(d)
            n += 1
        return n

    def _try_first(self, ctl: Any, options: Sequence[Direction]) -> bool:
        for d in options:
            if self._try_move(ctl, d):
                return True
        return False

    def _wander(self, ctl: Any) -> bool:
        """Default direction, else a random one. Fires even if stuck."""
        friends = [u.location for u in ctl.sense_nearby_units(team=ctl.team, kind=ctl.kind)]
        nearest = self.registry.nearest(ctl.location) if self.registry else None
        d = default_direction(ctl.location, friends, nearest, self.center)
        if not self._try_move(ctl, d):
            self._try_move(ctl, random_direction(self.rng))
        return True

    def _repair_nearby(self, ctl: Any, prefer: Sequence = ()) -> bool:
        """Repair damaged friendlies in action range while legal."""
        hurt = [u for u in ctl.sense_nearby_units(radius_sq=ctl.stats.action_r2, team=ctl.team) if u.damaged]
        hurt.sort(key=lambda u: 0 if u.kind in prefer else 1)
        fired = False
        for u in hurt:
            while ctl.can_repair(u.location):
                ctl.repair(u.location)
                fired = True
        return fired

    # --- view ---
    def snapshot(self) -> Dict[str, Union[int, str, list]]:
        return {
            "id": self.id,
            "role": self.role,
            "turns": self.turn_count,
            "fired": list(self.policy.fired),
        }
