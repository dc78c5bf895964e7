from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import math


class Direction(Enum):
    """Compass directions on the grid. North is +y, east is +x."""
    NORTH = (0, 1)
    NORTHEAST = (1, 1)
    EAST = (1, 0)
    SOUTHEAST = (1, -1)
    SOUTH = (0, -1)
    SOUTHWEST = (-1, -1)
    WEST = (-1, 0)
    NORTHWEST = (-1, 1)
    CENTER = (0, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    def rotate_left(self) -> "Direction":
        if self is Direction.CENTER:
            return self
        return COMPASS[(COMPASS.index(self) - 1) % 8]

    def rotate_right(self) -> "Direction":
        if self is Direction.CENTER:
            return self
        return COMPASS[(COMPASS.index(self) + 1) % 8]

    def opposite(self) -> "Direction":
        if self is Direction.CENTER:
            return self
        return COMPASS[(COMPASS.index(self) + 4) % 8]


# Clockwise from north; rotate_right walks forward in this list.
COMPASS = [
    Direction.NORTH, Direction.NORTHEAST, Direction.EAST, Direction.SOUTHEAST,
    Direction.SOUTH, Direction.SOUTHWEST, Direction.WEST, Direction.NORTHWEST,
]

# Counter-clockwise from east, one entry per 45 degree sector.
_SECTORS = [
    Direction.EAST, Direction.NORTHEAST, Direction.NORTH, Direction.NORTHWEST,
    Direction.WEST, Direction.SOUTHWEST, Direction.SOUTH, Direction.SOUTHEAST,
]


@dataclass(frozen=True)
class Location:
    x: int
    y: int

    def add(self, d: Direction) -> "Location":
        return Location(self.x + d.dx, self.y + d.dy)

    def distance_squared_to(self, other: "Location") -> int:
        dx = other.x - self.x; dy = other.y - self.y
        return dx * dx + dy * dy

    def direction_to(self, other: "Location") -> Direction:
        """Closest of the eight compass directions; CENTER for the same tile."""
        dx = other.x - self.x; dy = other.y - self.y
        if dx == 0 and dy == 0:
            return Direction.CENTER
        sector = int(round(math.atan2(dy, dx) / (math.pi / 4))) % 8
        return _SECTORS[sector]

    def as_tuple(self) -> tuple[int, int]:
        return (self.x, self.y)
