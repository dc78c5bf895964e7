from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, FrozenSet


class UnitKind(str, Enum):
    BASE = "base"
    FORAGER = "forager"
    GUARDIAN = "guardian"
    BUILDER = "builder"
    WORKSHOP = "workshop"
    TOWER = "tower"
    ELITE = "elite"


class TypeClass(IntEnum):
    """Chase order for guardians; lower value is chased first."""
    COMMAND = 0
    ELITE = 1
    COMBAT = 2
    SUPPORT = 3
    ECONOMIC = 4


TYPE_CLASS: Dict[UnitKind, TypeClass] = {
    UnitKind.BASE: TypeClass.COMMAND,
    UnitKind.ELITE: TypeClass.ELITE,
    UnitKind.GUARDIAN: TypeClass.COMBAT,
    UnitKind.TOWER: TypeClass.COMBAT,
    UnitKind.BUILDER: TypeClass.SUPPORT,
    UnitKind.WORKSHOP: TypeClass.SUPPORT,
    UnitKind.FORAGER: TypeClass.ECONOMIC,
}

# Attack order, most dangerous first.
DANGER_ORDER = [
    UnitKind.ELITE, UnitKind.TOWER, UnitKind.GUARDIAN, UnitKind.BASE,
    UnitKind.WORKSHOP, UnitKind.FORAGER, UnitKind.BUILDER,
]
DANGER_RANK: Dict[UnitKind, int] = {k: i for i, k in enumerate(DANGER_ORDER)}

VIOLENT: FrozenSet[UnitKind] = frozenset({UnitKind.GUARDIAN, UnitKind.BASE, UnitKind.ELITE, UnitKind.TOWER})
PEACEFUL: FrozenSet[UnitKind] = frozenset({UnitKind.FORAGER, UnitKind.BUILDER, UnitKind.WORKSHOP})
ARMED: FrozenSet[UnitKind] = frozenset({UnitKind.GUARDIAN, UnitKind.TOWER, UnitKind.ELITE})
MOBILE: FrozenSet[UnitKind] = frozenset({UnitKind.FORAGER, UnitKind.GUARDIAN, UnitKind.BUILDER, UnitKind.ELITE})


@dataclass(frozen=True)
class UnitStats:
    max_health: int
    vision_r2: int
    action_r2: int
    action_cost: int = 10   # cooldown added per action
    move_cost: int = 10     # cooldown added per move; 0 means immobile
    damage: int = 0         # health removed per attack
    repair: int = 0         # health restored per repair
    ore_cost: int = 0
    gold_cost: int = 0


# ---- Tunables ---------------------------------------------------------------
STATS: Dict[UnitKind, UnitStats] = {
    UnitKind.BASE:     UnitStats(600, vision_r2=34, action_r2=20, action_cost=10, move_cost=0, repair=2),
    UnitKind.FORAGER:  UnitStats(40,  vision_r2=20, action_r2=2,  action_cost=2,  move_cost=5, ore_cost=50),
    UnitKind.GUARDIAN: UnitStats(50,  vision_r2=20, action_r2=13, action_cost=10, move_cost=10, damage=3, ore_cost=75),
    UnitKind.BUILDER:  UnitStats(30,  vision_r2=20, action_r2=5,  action_cost=10, move_cost=10, repair=2, ore_cost=40),
    UnitKind.WORKSHOP: UnitStats(100, vision_r2=34, action_r2=0,  action_cost=10, move_cost=0, ore_cost=180),
    UnitKind.TOWER:    UnitStats(150, vision_r2=34, action_r2=20, action_cost=10, move_cost=0, damage=4, ore_cost=150),
    UnitKind.ELITE:    UnitStats(100, vision_r2=34, action_r2=25, action_cost=10, move_cost=10, damage=10, gold_cost=20),
}

# Workshop refining: ore spent per gold produced.
REFINE_ORE = 20


def type_class(kind: UnitKind) -> TypeClass:
    return TYPE_CLASS[kind]


def stats_for(kind: UnitKind) -> UnitStats:
    return STATS[kind]
