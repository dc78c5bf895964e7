from __future__ import annotations
from typing import Optional, Sequence

from swarm_sim.domain.geometry import COMPASS, Direction, Location

# Fewer same-role friends than this near the center is not a clump.
CLUMP_MIN_FRIENDS = 3


def agrees(a: Direction, b: Direction) -> bool:
    """True if ``a`` does not go against ``b`` on either axis."""
    return a.dx * b.dx >= 0 and a.dy * b.dy >= 0


def centroid(points: Sequence[Location]) -> Location:
    n = len(points)
    return Location(sum(p.x for p in points) // n, sum(p.y for p in points) // n)


def default_clump_radius_sq(center: Location) -> int:
    half = center.x // 2
    return half * half


def anti_clump_direction(me: Location, friends: Sequence[Location], center: Location,
                         clump_radius_sq: Optional[int] = None) -> Optional[Direction]:
    """Direction away from a crowd of same-role friends near the center, if any."""
    r2 = default_clump_radius_sq(center) if clump_radius_sq is None else clump_radius_sq
    if me.distance_squared_to(center) > r2:
        return None
    crowd = [f for f in friends if f.distance_squared_to(center) <= r2]
    if len(crowd) < CLUMP_MIN_FRIENDS:
        return None
    d = centroid(crowd).direction_to(me)
    return None if d is Direction.CENTER else d


def default_direction(me: Location, friends: Sequence[Location], nearest_base: Optional[Location],
                      center: Optional[Location], clump_radius_sq: Optional[int] = None) -> Optional[Direction]:
    """Where a mobile unit with nothing better to do should head.

    Spread out when clumped near the center; otherwise move away from the
    nearest base, unless that heads outward past the center, in which case
    head for the center. Returns None when there is nothing to go on.
    """
    if center is not None:
        d = anti_clump_direction(me, friends, center, clump_radius_sq)
        if d is not None:
            return d

    if nearest_base is None:
        if center is None:
            return None
        d = me.direction_to(center)
        return None if d is Direction.CENTER else d

    away = nearest_base.direction_to(me)
    if away is Direction.CENTER:
        away = None
    if center is None:
        return away
    to_center = me.direction_to(center)
    if away is not None and agrees(away, to_center):
        return away
    return None if to_center is Direction.CENTER else to_center


def fan_out(d: Direction) -> list[Direction]:
    """``d`` first, then its left and right neighbours."""
    if d is Direction.CENTER:
        return []
    return [d, d.rotate_left(), d.rotate_right()]


def random_direction(rng) -> Direction:
    return COMPASS[rng.randrange(len(COMPASS))]
