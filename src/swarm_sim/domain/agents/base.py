from __future__ import annotations
import random
from typing import Any, List, Optional

from swarm_sim.domain.communication.threat import classify, raise_alarm, reinforcements_for
from swarm_sim.domain.geometry import COMPASS, Direction, Location
from swarm_sim.domain.units import UnitKind
from .behaviors.movement import agrees
from .roles import Rule
from .unit import Agent


class BaseAgent(Agent):
    """Stationary producer: registers itself, raises alarms and builds units."""
    role = "base"
    RULES = (
        Rule("register", "_register", terminal=False),
        Rule("defend", "_defend"),
        Rule("repair", "_repair", terminal=False),
        Rule("produce", "_produce"),
    )

    FIRST_FORAGERS = 5       # forager quota before anything else
    FORAGER_SOFT_CAP = 10    # above this only the rare 1/100 roll builds foragers
    MIN_GUARDIANS = 2
    FORAGER_ODDS = 1.0 / 6.0
    LATE_FORAGER_ODDS = 1.0 / 100.0

    def __init__(self, id: int, rng: random.Random):
        super().__init__(id, rng)
        self.foragers_built = 0
        self.built_builder = False
        self.registry_index: Optional[int] = None

    # --- rules ---
    def _register(self, ctl: Any) -> bool:
        self.registry_index = self.registry.register(ctl.location)
        return self.registry_index is not None

    def _defend(self, ctl: Any) -> bool:
        hostiles = ctl.sense_nearby_units(team=ctl.enemy_team)
        if not hostiles:
            return False
        for h in hostiles:
            self._build_guardians_toward(ctl, h.location, reinforcements_for(h.kind))

        status = classify(ctl.location, [h.location for h in hostiles])
        # Our own entry may not be visible yet on a deferred channel; the
        # alarm goes up on a later tick in that case.
        index = self.registry.index_of(ctl.location)
        if index is not None:
            raise_alarm(self.registry, index, status)

        # Someone has to pick up what the fight leaves behind.
        foragers = ctl.sense_nearby_units(team=ctl.team, kind=UnitKind.FORAGER)
        if not foragers:
            for d in COMPASS:
                if ctl.can_build(UnitKind.FORAGER, d):
                    ctl.build(UnitKind.FORAGER, d)
                    self.foragers_built += 1
                    break
        return True

    def _repair(self, ctl: Any) -> bool:
        return self._repair_nearby(ctl)

    def _produce(self, ctl: Any) -> bool:
        d = self.build_direction(ctl)
        if not self.built_builder and self.foragers_built >= self.FIRST_FORAGERS:
            if self.registry.furthest_from_center(self.center) == ctl.location:
                out = self.center.direction_to(ctl.location) if self.center else d
                if out is Direction.CENTER:
                    out = d
                if self._build(ctl, UnitKind.BUILDER, out):
                    self.built_builder = True
                return True
        elif not self.built_builder and self.foragers_built < self.FIRST_FORAGERS:
            self._build(ctl, UnitKind.FORAGER, d)
            return True

        guardians = ctl.sense_nearby_units(team=ctl.team, kind=UnitKind.GUARDIAN)
        guarded = True
        if len(guardians) < self.MIN_GUARDIANS:
            guarded = self._build(ctl, UnitKind.GUARDIAN, d)
        if self.foragers_built < self.FORAGER_SOFT_CAP and guarded:
            if self.rng.random() < self.FORAGER_ODDS:
                self._build(ctl, UnitKind.FORAGER, d)
        elif self.rng.random() < self.LATE_FORAGER_ODDS:
            self._build(ctl, UnitKind.FORAGER, d)
        return True

    # --- helpers ---
    def _build(self, ctl: Any, kind: UnitKind, d: Direction) -> bool:
        if not ctl.can_build(kind, d):
            return False
        ctl.build(kind, d)
        if kind == UnitKind.FORAGER:
            self.foragers_built += 1
        return True

    def _build_guardians_toward(self, ctl: Any, target: Location, n: int) -> int:
        """Build up to ``n`` guardians fanning out from the direction of ``target``."""
        toward = ctl.location.direction_to(target)
        built = int(self._build(ctl, UnitKind.GUARDIAN, toward))
        left = right = toward
        for _ in range((n - 1) // 2):
            left = left.rotate_left()
            built += self._build(ctl, UnitKind.GUARDIAN, left)
            right = right.rotate_right()
            built += self._build(ctl, UnitKind.GUARDIAN, right)
        return built

    def build_directions(self, ctl: Any) -> List[Direction]:
        """Directions that head toward the center and not at another base."""
        me = ctl.location
        to_center = me.direction_to(self.center) if self.center else None
        friendly = {me.direction_to(loc) for loc in self.registry.locations() if loc != me}
        out = []
        for d in COMPASS:
            if d in friendly:
                continue
            if to_center is not None and not agrees(d, to_center):
                continue
            out.append(d)
        return out

    def build_direction(self, ctl: Any) -> Direction:
        options = self.build_directions(ctl) or COMPASS
        return options[self.rng.randrange(len(options))]

    def snapshot(self) -> dict:
        s = super().snapshot()
        s.update({"foragers_built": self.foragers_built, "built_builder": self.built_builder})
        return s
