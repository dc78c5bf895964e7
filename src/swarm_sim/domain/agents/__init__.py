# src/swarm_sim/domain/agents/__init__.py
from __future__ import annotations
import random

from swarm_sim.domain.units import UnitKind
from .unit import Agent
from .base import BaseAgent
from .forager import ForagerAgent
from .guardian import GuardianAgent
from .builder import BuilderAgent, WorkshopAgent

# Towers and elites are never built by the bots; when a scenario places one
# it fights like a guardian.
_KIND_MAP = {
    UnitKind.BASE: BaseAgent,
    UnitKind.FORAGER: ForagerAgent,
    UnitKind.GUARDIAN: GuardianAgent,
    UnitKind.BUILDER: BuilderAgent,
    UnitKind.WORKSHOP: WorkshopAgent,
    UnitKind.TOWER: GuardianAgent,
    UnitKind.ELITE: GuardianAgent,
}


def create_agent(kind: UnitKind, id: int, rng: random.Random) -> Agent:
    """Factory: one agent per unit, with its own random stream."""
    cls = _KIND_MAP[UnitKind(kind)]
    return cls(id=id, rng=random.Random(rng.getrandbits(32)))
