from __future__ import annotations
from typing import Any, Optional

from swarm_sim.domain.communication.threat import ThreatStatus
from swarm_sim.domain.units import ARMED, UnitKind
from .behaviors.movement import fan_out
from .behaviors.targeting import AttackCandidate, chase_target, rank_targets
from .roles import Rule
from .unit import Agent


class GuardianAgent(Agent):
    """Combat unit: shoot, hold, chase, shield a threatened base, escort foragers."""
    role = "guardian"
    RULES = (
        Rule("attack", "_attack", terminal=False),
        Rule("hold", "_hold"),
        Rule("chase", "_chase"),
        Rule("shield", "_shield"),
        Rule("escort", "_escort"),
        Rule("wander", "_wander"),
    )

    SHIELD_ENGAGE_DISTANCE = 34   # squared; farther bases are not ours to shield
    SHIELD_MAX_DISTANCE = 18
    SHIELD_MIN_DISTANCE = SHIELD_MAX_DISTANCE - 5
    ESCORT_DISTANCE = 8
    ESCORT_TOLERANCE = 1

    # --- rules ---
    def _attack(self, ctl: Any) -> bool:
        hostiles = ctl.sense_nearby_units(radius_sq=ctl.stats.action_r2, team=ctl.enemy_team)
        queue = rank_targets(AttackCandidate.from_info(h) for h in hostiles)
        fired = False
        for target in queue:
            if not ctl.is_action_ready():
                break
            while ctl.can_attack(target.location):
                ctl.attack(target.location)
                fired = True
                # Stop once the target is gone from its tile.
                if ctl.sense_unit_at(target.location) is None:
                    break
        return fired

    def _hold(self, ctl: Any) -> bool:
        return any(h.kind in ARMED for h in ctl.sense_nearby_units(team=ctl.enemy_team))

    def _chase(self, ctl: Any) -> bool:
        hostiles = ctl.sense_nearby_units(team=ctl.enemy_team)
        target = chase_target(AttackCandidate.from_info(h) for h in hostiles)
        if target is None:
            return False
        self._move_while(ctl, ctl.location.direction_to(target.location))
        return True

    def _shield(self, ctl: Any) -> bool:
        entry = self.registry.nearest_entry(ctl.location)
        if entry is None or entry.status == ThreatStatus.SAFE:
            return False
        dist = ctl.location.distance_squared_to(entry.location)
        if dist > self.SHIELD_ENGAGE_DISTANCE:
            return False
        if dist < self.SHIELD_MIN_DISTANCE:
            away = entry.location.direction_to(ctl.location)
            self._try_first(ctl, fan_out(away))
        elif dist > self.SHIELD_MAX_DISTANCE:
            self._try_move(ctl, ctl.location.direction_to(entry.location))
        return True

    def _escort(self, ctl: Any) -> bool:
        forager = self.nearest_forager(ctl)
        if forager is None:
            return False
        dist = ctl.location.distance_squared_to(forager.location)
        d = ctl.location.direction_to(forager.location)
        if dist > self.ESCORT_DISTANCE + self.ESCORT_TOLERANCE:
            self._try_move(ctl, d)
        elif dist < self.ESCORT_DISTANCE - self.ESCORT_TOLERANCE:
            self._try_move(ctl, d.opposite())
        return True

    # --- helpers ---
    def nearest_forager(self, ctl: Any) -> Optional[Any]:
        best = None
        best_d2 = 0
        for f in ctl.sense_nearby_units(team=ctl.team, kind=UnitKind.FORAGER):
            d2 = ctl.location.distance_squared_to(f.location)
            if best is None or d2 < best_d2:
                best, best_d2 = f, d2
        return best
