from __future__ import annotations
from enum import IntEnum
from typing import Iterable, Set

from swarm_sim.domain.geometry import Location
from swarm_sim.domain.units import UnitKind, VIOLENT
from . import codec
from .registry import BaseRegistry

NUM_GUARDIANS_FOR_VIOLENT = 5
NUM_GUARDIANS_FOR_PEACEFUL = 3


class ThreatStatus(IntEnum):
    SAFE = 0
    NORTHEAST = 1
    SOUTHEAST = 2
    SOUTHWEST = 3
    NORTHWEST = 4
    MULTIPLE = 5


def quadrant(dx: int, dy: int) -> ThreatStatus:
    """Compass quadrant of an offset; axis-aligned offsets fall clockwise.

    North counts as north-east, east as south-east and so on, so every
    non-zero offset lands in exactly one bucket.
    """
    if dx >= 0 and dy > 0:
        return ThreatStatus.NORTHEAST
    if dx > 0 and dy <= 0:
        return ThreatStatus.SOUTHEAST
    if dx <= 0 and dy < 0:
        return ThreatStatus.SOUTHWEST
    if dx < 0 and dy >= 0:
        return ThreatStatus.NORTHWEST
    return ThreatStatus.SAFE


def classify(origin: Location, hostiles: Iterable[Location]) -> ThreatStatus:
    buckets: Set[ThreatStatus] = set()
    for loc in hostiles:
        q = quadrant(loc.x - origin.x, loc.y - origin.y)
        if q != ThreatStatus.SAFE:
            buckets.add(q)
    if not buckets:
        return ThreatStatus.SAFE
    if len(buckets) > 1:
        return ThreatStatus.MULTIPLE
    return buckets.pop()


def reinforcements_for(kind: UnitKind) -> int:
    return NUM_GUARDIANS_FOR_VIOLENT if kind in VIOLENT else NUM_GUARDIANS_FOR_PEACEFUL


def raise_alarm(registry: BaseRegistry, index: int, status: ThreatStatus) -> bool:
    """Overlay ``status`` on an existing registry entry, keeping its coordinate.

    SAFE is never written: once an entry reports a threat it keeps reporting
    one for the rest of the session. Returns True if a write happened.
    """
    if status == ThreatStatus.SAFE:
        return False
    v = registry.channel.read(index)
    if codec.is_empty(v):
        return False
    if codec.status_of(v) == status:
        return False
    registry.channel.write(index, codec.with_status(v, int(status)))
    return True


def status_of_entry(registry: BaseRegistry, index: int) -> ThreatStatus:
    return ThreatStatus(registry.status_at(index))
