from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List, Optional

from swarm_sim.domain.geometry import Location
from swarm_sim.domain.units import DANGER_RANK, TypeClass, UnitKind, type_class

# Anything below this health is finished off before anything else.
KILL_THRESHOLD = 3


@dataclass(frozen=True)
class AttackCandidate:
    location: Location
    health: int
    kind: UnitKind

    @property
    def type_class(self) -> TypeClass:
        return type_class(self.kind)

    @classmethod
    def from_info(cls, info) -> "AttackCandidate":
        return cls(info.location, info.health, info.kind)


def attack_key(c: AttackCandidate, kill_threshold: int = KILL_THRESHOLD) -> tuple[int, int]:
    return (0 if c.health < kill_threshold else 1, DANGER_RANK[c.kind])


def rank_targets(candidates: Iterable[AttackCandidate], kill_threshold: int = KILL_THRESHOLD) -> List[AttackCandidate]:
    """Attack order: nearly dead first, then most dangerous kind first.

    Stable, so candidates that tie keep their sensing order.
    """
    return sorted(candidates, key=lambda c: attack_key(c, kill_threshold))


def chase_target(candidates: Iterable[AttackCandidate]) -> Optional[AttackCandidate]:
    """Best visible hostile to walk toward: command > elite > combat > support > economic."""
    best: Optional[AttackCandidate] = None
    for c in candidates:
        if best is None or c.type_class < best.type_class:
            best = c
    return best
