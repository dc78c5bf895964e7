from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple
import random, math

from swarm_sim.domain.geometry import Location

# ---- Tunables ------------------------------------------------------------------
REGEN_PERIOD = 20      # ticks between regeneration pulses
REGEN_AMOUNT = 5       # ore added per pulse to tiles that still hold ore
PATCH_ORE_RANGE = (10, 50)


@dataclass
class Deposit:
    ore: int = 0
    gold: int = 0
    ever_harvested: bool = False

    @property
    def empty(self) -> bool:
        return self.ore <= 0 and self.gold <= 0


class ResourceField:
    """Sparse per-tile ore/gold amounts with slow ore regeneration.

    Tiles drained to zero ore stay empty; tiles left with at least one unit
    regrow every REGEN_PERIOD ticks.
    """
    def __init__(self, width: int, height: int, rng: random.Random,
                 n_patches: int = 0, tiles_per_patch: int = 8):
        self.width = width
        self.height = height
        self.rng = rng
        self.deposits: Dict[Location, Deposit] = {}
        self._t = 0
        for _ in range(n_patches):
            self.add_patch(
                cx=rng.randrange(width), cy=rng.randrange(height),
                radius=rng.uniform(1.5, 4.0), n=tiles_per_patch,
            )

    # ---- generation helpers ----
    def add_patch(self, cx: int, cy: int, radius: float, n: int) -> None:
        for _ in range(n):
            angle = self.rng.uniform(0, math.tau)
            r = self.rng.uniform(0, radius)
            x = max(0, min(self.width - 1, int(round(cx + r * math.cos(angle)))))
            y = max(0, min(self.height - 1, int(round(cy + r * math.sin(angle)))))
            self.add_at(Location(x, y), ore=self.rng.randint(*PATCH_ORE_RANGE))

    def add_at(self, loc: Location, ore: int = 0, gold: int = 0) -> None:
        d = self.deposits.setdefault(loc, Deposit())
        d.ore += max(0, int(ore))
        d.gold += max(0, int(gold))

    # ---- update step ----
    def step(self) -> None:
        self._t += 1
        if self._t % REGEN_PERIOD:
            return
        for d in self.deposits.values():
            if d.ore > 0:
                d.ore += REGEN_AMOUNT

    # ---- lookup & harvest ----
    def ore_at(self, loc: Location) -> int:
        d = self.deposits.get(loc)
        return d.ore if d else 0

    def gold_at(self, loc: Location) -> int:
        d = self.deposits.get(loc)
        return d.gold if d else 0

    def take(self, loc: Location) -> Tuple[str, int]:
        """Remove one unit from ``loc``, gold before ore. Returns (kind, amount)."""
        d = self.deposits.get(loc)
        if d is None or d.empty:
            return ("", 0)
        d.ever_harvested = True
        if d.gold > 0:
            d.gold -= 1
            return ("gold", 1)
        d.ore -= 1
        return ("ore", 1)

    def within(self, center: Location, radius_sq: int) -> Iterator[Tuple[Location, Deposit]]:
        for loc, d in self.deposits.items():
            if not d.empty and center.distance_squared_to(loc) <= radius_sq:
                yield loc, d

    def get(self, loc: Location) -> Optional[Deposit]:
        return self.deposits.get(loc)

    # ---- metrics & view ----
    def totals(self) -> Dict[str, int]:
        return {
            "ore": sum(d.ore for d in self.deposits.values()),
            "gold": sum(d.gold for d in self.deposits.values()),
            "tiles": sum(1 for d in self.deposits.values() if not d.empty),
        }

    def snapshot(self) -> List[dict]:
        return [{"x": loc.x, "y": loc.y, "ore": d.ore, "gold": d.gold, "harvested": d.ever_harvested}
                for loc, d in self.deposits.items() if not d.empty]
