from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List
import random, traceback

from collections import Counter
from swarm_sim.domain.agents import Agent, create_agent
from swarm_sim.domain.communication.explorer import ExplorerClaim
from swarm_sim.domain.communication.registry import BaseRegistry
from swarm_sim.domain.environment.controller import UnitController
from swarm_sim.domain.environment.world import TEAMS, World
from swarm_sim.domain.geometry import Location
from swarm_sim.domain.units import UnitKind


@dataclass
class Fault:
    round: int
    unit_id: int
    kind: str
    error: str


class SimController:
    """Runs the world one tick at a time.

    Each tick every unit alive at the start of the tick evaluates its policy
    exactly once, in ascending unit-id order, with no preemption. Channel
    writes are committed after the last unit has acted. A unit whose turn
    raises has the rest of that turn dropped; nothing is rolled back.
    """
    def __init__(self, width: int = 30, height: int = 30, seed: int | None = None,
                 deferred_comms: bool = False, n_patches: int = 6, verbose: bool = True):
        self.width = width; self.height = height
        self.rng = random.Random(seed)
        self._paused = False; self._speed = 1.0
        self.verbose = verbose
        self.world = World(width, height, self.rng, deferred_comms=deferred_comms, n_patches=n_patches)
        self.agents: Dict[int, Agent] = {}
        self.faults: List[Fault] = []

    # --- setup --------------------------------------------------------------
    def spawn(self, kind: UnitKind | str, team: str, x: int, y: int) -> int:
        u = self.world.spawn(UnitKind(kind), team, Location(x, y))
        self.agents[u.id] = create_agent(u.kind, u.id, self.rng)
        return u.id

    def add_resources(self, x: int, y: int, ore: int = 0, gold: int = 0) -> None:
        self.world.resources.add_at(Location(x, y), ore=ore, gold=gold)

    def add_patch(self, n: int = 8) -> None:
        self.world.resources.add_patch(self.rng.randrange(self.width), self.rng.randrange(self.height),
                                       radius=self.rng.uniform(1.5, 4.0), n=n)

    def setup_mirror(self, bases: int = 2) -> None:
        """Place ``bases`` bases per team, the second team mirrored through the center."""
        placed = 0
        while placed < bases:
            x = self.rng.randrange(2, self.width // 2 - 1)
            y = self.rng.randrange(2, self.height - 2)
            a = Location(x, y); b = Location(self.width - 1 - x, self.height - 1 - y)
            if self.world.unit_at(a) or self.world.unit_at(b):
                continue
            self.spawn(UnitKind.BASE, TEAMS[0], a.x, a.y)
            self.spawn(UnitKind.BASE, TEAMS[1], b.x, b.y)
            placed += 1

    # --- runtime controls ---------------------------------------------------
    def set_paused(self, paused: bool) -> None: self._paused = paused
    def toggle_paused(self) -> bool: self._paused = not self._paused; return self._paused
    def set_speed(self, speed: float) -> None: self._speed = max(0.0, min(8.0, float(speed)))

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def speed(self) -> float:
        return self._speed

    # --- tick ---------------------------------------------------------------
    def step(self) -> None:
        """Advance one tick."""
        w = self.world
        w.begin_tick()
        for uid in w.unit_ids():
            unit = w.units.get(uid)
            if unit is None:
                continue  # killed earlier this tick
            agent = self.agents.get(uid)
            if agent is None:
                agent = self.agents[uid] = create_agent(unit.kind, uid, self.rng)
            try:
                agent.step(UnitController(w, unit))
            except Exception as e:
                self.faults.append(Fault(w.round, uid, unit.kind.value, repr(e)))
                if self.verbose:
                    print(f"[sim] round {w.round} unit {uid} ({unit.kind.value}) error:", repr(e))
                    traceback.print_exc()
        w.end_tick()
        for uid in w.deaths:
            self.agents.pop(uid, None)
        w.deaths.clear()

    def run(self, ticks: int) -> None:
        for _ in range(ticks):
            self.step()

    # --- comms views --------------------------------------------------------
    def registry(self, team: str) -> BaseRegistry:
        return BaseRegistry(self.world.channels[team])

    def explorer(self, team: str) -> ExplorerClaim:
        return ExplorerClaim(self.world.channels[team])

    # --- stats & view -------------------------------------------------------
    def _kind_counts(self) -> Dict[str, Dict[str, int]]:
        out: Dict[str, Dict[str, int]] = {}
        for t in TEAMS:
            c = Counter(u.kind.value for u in self.world.units.values() if u.team == t)
            out[t] = dict(c)
        return out

    def _rule_counts(self) -> Dict[str, int]:
        c = Counter()
        for a in self.agents.values():
            for name in a.policy.fired:
                c[f"{a.role}.{name}"] += 1
        return dict(c)

    def _comms(self) -> Dict[str, dict]:
        return {
            t: {
                "registry": self.registry(t).snapshot(),
                "explorer": self.explorer(t).snapshot(),
                "writes": self.world.channels[t].writes,
            }
            for t in TEAMS
        }

    def stats(self) -> dict:
        return {
            "units": self._kind_counts(),
            "rules": self._rule_counts(),
            "faults": len(self.faults),
        }

    def get_view(self) -> dict:
        return {
            "round": self.world.round, "paused": self._paused, "speed": self._speed,
            "width": self.width, "height": self.height,
            "world": self.world.snapshot(),
            "agents": [a.snapshot() for a in self.agents.values()],
            "comms": self._comms(),
            "stats": self.stats(),
        }

    def frame(self) -> dict:
        """Per-tick record for the run logger, one block per team."""
        stats: dict = {"faults": len(self.faults)}
        for t in TEAMS:
            c = self.explorer(t).center()
            stats[t] = {
                "ore": self.world.treasury[t]["ore"],
                "gold": self.world.treasury[t]["gold"],
                "units": self.world.count(t),
                "bases": self.registry(t).count(),
                "alarms": sum(1 for e in self.registry(t).entries() if e.status),
                "center": "" if c is None else f"{c.x},{c.y}",
            }
        return {"round": self.world.round, "stats": stats}
