from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

from swarm_sim.domain.communication.channel import SharedChannel
from swarm_sim.domain.geometry import Direction, Location
from swarm_sim.domain.units import UnitKind, REFINE_ORE, stats_for
from .world import COOLDOWN_STEP, TEAMS, Unit, World

# Who may build what.
BUILDS = {
    UnitKind.BASE: {UnitKind.FORAGER, UnitKind.GUARDIAN, UnitKind.BUILDER, UnitKind.ELITE},
    UnitKind.BUILDER: {UnitKind.WORKSHOP, UnitKind.TOWER},
}


class GameActionError(Exception):
    """A mutating call was issued that its legality check would have refused."""


@dataclass(frozen=True)
class UnitInfo:
    """What a unit can see about another unit at sensing time."""
    id: int
    team: str
    kind: UnitKind
    location: Location
    health: int
    max_health: int

    @classmethod
    def of(cls, u: Unit) -> "UnitInfo":
        return cls(u.id, u.team, u.kind, u.location, u.health, u.max_health)

    @property
    def damaged(self) -> bool:
        return self.health < self.max_health


@dataclass(frozen=True)
class ResourceTile:
    location: Location
    ore: int
    gold: int


class UnitController:
    """Capability surface one unit gets for its turn.

    Every mutation has a paired ``can_*`` predicate; calling the mutation
    when the predicate is false raises GameActionError.
    """
    def __init__(self, world: World, unit: Unit):
        self.world = world
        self.unit = unit
        self.stats = stats_for(unit.kind)

    # --- identity & status ----------------------------------------------
    @property
    def id(self) -> int:
        return self.unit.id

    @property
    def team(self) -> str:
        return self.unit.team

    @property
    def enemy_team(self) -> str:
        return TEAMS[1] if self.unit.team == TEAMS[0] else TEAMS[0]

    @property
    def kind(self) -> UnitKind:
        return self.unit.kind

    @property
    def location(self) -> Location:
        return self.unit.location

    @property
    def health(self) -> int:
        return self.unit.health

    @property
    def round(self) -> int:
        return self.world.round

    @property
    def channel(self) -> SharedChannel:
        return self.world.channels[self.unit.team]

    def treasury(self) -> dict:
        return dict(self.world.treasury[self.unit.team])

    def is_action_ready(self) -> bool:
        return self.unit.action_cd < COOLDOWN_STEP

    def is_movement_ready(self) -> bool:
        return self.stats.move_cost > 0 and self.unit.move_cd < COOLDOWN_STEP

    # --- sensing --------------------------------------------------------
    def can_sense_location(self, loc: Location) -> bool:
        return self.location.distance_squared_to(loc) <= self.stats.vision_r2

    def on_the_map(self, loc: Location) -> bool:
        if not self.can_sense_location(loc):
            raise GameActionError(f"{loc} is outside vision of unit {self.id}")
        return self.world.on_the_map(loc)

    def sense_nearby_units(self, radius_sq: Optional[int] = None, team: Optional[str] = None,
                           kind: Optional[UnitKind] = None) -> List[UnitInfo]:
        r2 = self.stats.vision_r2 if radius_sq is None else min(radius_sq, self.stats.vision_r2)
        found = self.world.units_within(self.location, r2, team=team, kind=kind)
        return [UnitInfo.of(u) for u in sorted(found, key=lambda u: u.id) if u.id != self.id]

    def sense_unit_at(self, loc: Location) -> Optional[UnitInfo]:
        if not self.can_sense_location(loc):
            return None
        u = self.world.unit_at(loc)
        return UnitInfo.of(u) if u else None

    def sense_resources(self, radius_sq: Optional[int] = None) -> List[ResourceTile]:
        r2 = self.stats.vision_r2 if radius_sq is None else min(radius_sq, self.stats.vision_r2)
        tiles = [ResourceTile(loc, d.ore, d.gold) for loc, d in self.world.resources.within(self.location, r2)]
        tiles.sort(key=lambda t: (t.location.x, t.location.y))
        return tiles

    def sense_ore(self, loc: Location) -> int:
        return self.world.resources.ore_at(loc) if self.can_sense_location(loc) else 0

    def sense_gold(self, loc: Location) -> int:
        return self.world.resources.gold_at(loc) if self.can_sense_location(loc) else 0

    # --- movement -------------------------------------------------------
    def can_move(self, d: Direction) -> bool:
        if d is Direction.CENTER or not self.is_movement_ready():
            return False
        dest = self.location.add(d)
        return self.world.on_the_map(dest) and self.world.unit_at(dest) is None

    def move(self, d: Direction) -> None:
        if not self.can_move(d):
            raise GameActionError(f"unit {self.id} cannot move {d.name}")
        self.world.relocate(self.unit, self.location.add(d))
        self.unit.move_cd += self.stats.move_cost

    # --- actions --------------------------------------------------------
    def _in_action_range(self, loc: Location) -> bool:
        return self.location.distance_squared_to(loc) <= self.stats.action_r2

    def can_attack(self, loc: Location) -> bool:
        if self.stats.damage <= 0 or not self.is_action_ready() or not self._in_action_range(loc):
            return False
        target = self.world.unit_at(loc)
        return target is not None and target.team != self.team

    def attack(self, loc: Location) -> None:
        if not self.can_attack(loc):
            raise GameActionError(f"unit {self.id} cannot attack {loc}")
        self.world.damage(self.world.unit_at(loc), self.stats.damage)
        self.unit.action_cd += self.stats.action_cost

    def can_harvest(self, loc: Location) -> bool:
        if self.kind != UnitKind.FORAGER or not self.is_action_ready() or not self._in_action_range(loc):
            return False
        d = self.world.resources.get(loc)
        return d is not None and not d.empty

    def harvest(self, loc: Location) -> None:
        if not self.can_harvest(loc):
            raise GameActionError(f"unit {self.id} cannot harvest {loc}")
        what, amount = self.world.resources.take(loc)
        self.world.treasury[self.team][what] += amount
        self.unit.action_cd += self.stats.action_cost

    def can_repair(self, loc: Location) -> bool:
        if self.stats.repair <= 0 or not self.is_action_ready() or not self._in_action_range(loc):
            return False
        target = self.world.unit_at(loc)
        return (target is not None and target.id != self.id and target.team == self.team
                and target.health < target.max_health)

    def repair(self, loc: Location) -> None:
        if not self.can_repair(loc):
            raise GameActionError(f"unit {self.id} cannot repair {loc}")
        target = self.world.unit_at(loc)
        target.health = min(target.max_health, target.health + self.stats.repair)
        self.unit.action_cd += self.stats.action_cost

    def can_build(self, kind: UnitKind, d: Direction) -> bool:
        if kind not in BUILDS.get(self.kind, ()) or d is Direction.CENTER or not self.is_action_ready():
            return False
        cost = stats_for(kind)
        purse = self.world.treasury[self.team]
        if purse["ore"] < cost.ore_cost or purse["gold"] < cost.gold_cost:
            return False
        dest = self.location.add(d)
        return self.world.on_the_map(dest) and self.world.unit_at(dest) is None

    def build(self, kind: UnitKind, d: Direction) -> UnitInfo:
        if not self.can_build(kind, d):
            raise GameActionError(f"unit {self.id} cannot build {kind.value} {d.name}")
        cost = stats_for(kind)
        purse = self.world.treasury[self.team]
        purse["ore"] -= cost.ore_cost
        purse["gold"] -= cost.gold_cost
        u = self.world.spawn(kind, self.team, self.location.add(d))
        # New units start on cooldown so they act from the next tick.
        u.action_cd = u.move_cd = COOLDOWN_STEP
        self.unit.action_cd += self.stats.action_cost
        return UnitInfo.of(u)

    def can_refine(self) -> bool:
        return (self.kind == UnitKind.WORKSHOP and self.is_action_ready()
                and self.world.treasury[self.team]["ore"] >= REFINE_ORE)

    def refine(self) -> None:
        if not self.can_refine():
            raise GameActionError(f"unit {self.id} cannot refine")
        purse = self.world.treasury[self.team]
        purse["ore"] -= REFINE_ORE
        purse["gold"] += 1
        self.unit.action_cd += self.stats.action_cost
