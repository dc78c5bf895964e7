from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
import random

from swarm_sim.domain.communication.channel import SharedChannel
from swarm_sim.domain.communication.layout import CHANNEL_SIZE
from swarm_sim.domain.environment.resources import ResourceField
from swarm_sim.domain.geometry import Location
from swarm_sim.domain.units import UnitKind, stats_for

TEAMS = ("A", "B")

# Cooldown removed from every unit at the start of each tick; an action is
# allowed while the cooldown is below this value.
COOLDOWN_STEP = 10
PASSIVE_ORE = 2
STARTING_ORE = 200


@dataclass
class Unit:
    id: int
    team: str
    kind: UnitKind
    location: Location
    health: int
    action_cd: int = 0
    move_cd: int = 0

    @property
    def max_health(self) -> int:
        return stats_for(self.kind).max_health

    @property
    def alive(self) -> bool:
        return self.health > 0

    def snapshot(self) -> dict:
        return {
            "id": self.id, "team": self.team, "kind": self.kind.value,
            "x": self.location.x, "y": self.location.y, "hp": self.health,
        }


class World:
    """Reference host: grid, units, resources, treasuries and team channels.

    The world knows nothing about policies; it only stores state and applies
    mutations that ``UnitController`` has already checked.
    """
    def __init__(self, width: int, height: int, rng: random.Random,
                 deferred_comms: bool = False, channel_size: int = CHANNEL_SIZE,
                 n_patches: int = 0):
        self.width = width
        self.height = height
        self.rng = rng
        self.round = 0

        self.units: Dict[int, Unit] = {}
        self._occupied: Dict[Location, int] = {}
        self._next_id = 1

        self.resources = ResourceField(width, height, rng, n_patches=n_patches)
        self.treasury: Dict[str, Dict[str, int]] = {t: {"ore": STARTING_ORE, "gold": 0} for t in TEAMS}
        self.channels: Dict[str, SharedChannel] = {
            t: SharedChannel(size=channel_size, deferred=deferred_comms) for t in TEAMS
        }
        self.deaths: List[int] = []

    # --- geometry -------------------------------------------------------
    def on_the_map(self, loc: Location) -> bool:
        return 0 <= loc.x < self.width and 0 <= loc.y < self.height

    def unit_at(self, loc: Location) -> Optional[Unit]:
        uid = self._occupied.get(loc)
        return self.units.get(uid) if uid is not None else None

    def units_within(self, center: Location, radius_sq: int,
                     team: Optional[str] = None, kind: Optional[UnitKind] = None) -> List[Unit]:
        out = []
        for u in self.units.values():
            if team is not None and u.team != team:
                continue
            if kind is not None and u.kind != kind:
                continue
            if center.distance_squared_to(u.location) <= radius_sq:
                out.append(u)
        return out

    # --- population -----------------------------------------------------
    def spawn(self, kind: UnitKind, team: str, loc: Location) -> Unit:
        if not self.on_the_map(loc):
            raise ValueError(f"{loc} is off the map")
        if loc in self._occupied:
            raise ValueError(f"{loc} is occupied")
        u = Unit(self._next_id, team, kind, loc, stats_for(kind).max_health)
        self._next_id += 1
        self.units[u.id] = u
        self._occupied[loc] = u.id
        return u

    def relocate(self, u: Unit, loc: Location) -> None:
        del self._occupied[u.location]
        u.location = loc
        self._occupied[loc] = u.id

    def damage(self, u: Unit, amount: int) -> None:
        u.health -= amount
        if u.health <= 0:
            self.remove(u)

    def remove(self, u: Unit) -> None:
        self.units.pop(u.id, None)
        if self._occupied.get(u.location) == u.id:
            del self._occupied[u.location]
        self.deaths.append(u.id)

    def unit_ids(self) -> List[int]:
        return sorted(self.units)

    def count(self, team: str, kinds: Optional[Iterable[UnitKind]] = None) -> int:
        ks = set(kinds) if kinds is not None else None
        return sum(1 for u in self.units.values() if u.team == team and (ks is None or u.kind in ks))

    # --- tick boundaries ------------------------------------------------
    def begin_tick(self) -> None:
        self.round += 1
        for u in self.units.values():
            u.action_cd = max(0, u.action_cd - COOLDOWN_STEP)
            u.move_cd = max(0, u.move_cd - COOLDOWN_STEP)

    def end_tick(self) -> None:
        self.resources.step()
        for t in TEAMS:
            self.treasury[t]["ore"] += PASSIVE_ORE
            self.channels[t].commit()

    # --- view -----------------------------------------------------------
    def snapshot(self) -> dict:
        return {
            "round": self.round,
            "width": self.width, "height": self.height,
            "treasury": {t: dict(v) for t, v in self.treasury.items()},
            "resources": self.resources.totals(),
            "deposits": self.resources.snapshot(),
            "units": [u.snapshot() for u in self.units.values()],
        }
