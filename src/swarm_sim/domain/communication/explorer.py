from __future__ import annotations
from enum import Enum
from typing import Any, Optional

from swarm_sim.domain.geometry import Direction, Location
from . import codec
from .channel import SharedChannel
from .layout import ChannelLayout, DEFAULT_LAYOUT

# Status digits used in the explorer slot.
CLAIMED = 1
RESOLVED = 2


class ExplorerState(str, Enum):
    UNCLAIMED = "unclaimed"
    CLAIMED = "claimed"
    RESOLVED = "resolved"


class ExplorerClaim:
    """Single-slot election of the team's explorer and home of the map center.

    0 means nobody has claimed the duty. A claim stores the claimant's id,
    a resolution stores the packed center. Once resolved the slot never
    changes again.
    """
    def __init__(self, channel: SharedChannel, layout: ChannelLayout = DEFAULT_LAYOUT):
        self.channel = channel
        self.slot = layout.explorer_slot

    # --- reads ----------------------------------------------------------
    def state(self) -> ExplorerState:
        v = self.channel.read(self.slot)
        if v == codec.EMPTY:
            return ExplorerState.UNCLAIMED
        if codec.status_of(v) == RESOLVED:
            return ExplorerState.RESOLVED
        return ExplorerState.CLAIMED

    def claimant(self) -> Optional[int]:
        v = self.channel.read(self.slot)
        if codec.status_of(v) != CLAIMED:
            return None
        return codec.strip_status(v)

    def center(self) -> Optional[Location]:
        v = self.channel.read(self.slot)
        if codec.status_of(v) != RESOLVED:
            return None
        x, y = codec.decode(v)
        return Location(x, y)

    def is_claimed_by(self, identity: int) -> bool:
        v = self.channel.latest(self.slot)
        return v == codec.STATUS_BASE * CLAIMED + identity % codec.STATUS_BASE

    # --- transitions ----------------------------------------------------
    def try_claim(self, identity: int) -> bool:
        """Unclaimed -> Claimed(identity). False if anyone got there first."""
        packed = CLAIMED * codec.STATUS_BASE + identity % codec.STATUS_BASE
        return self.channel.compare_and_set(self.slot, codec.EMPTY, packed)

    def resolve(self, identity: int, boundary_x: int, boundary_y: int) -> Optional[Location]:
        """Claimed(identity) -> Resolved(center).

        ``boundary_x``/``boundary_y`` are the first off-map coordinates along
        each axis. Only the current claimant may resolve.
        """
        current = self.channel.latest(self.slot)
        if codec.status_of(current) != CLAIMED or codec.strip_status(current) != identity % codec.STATUS_BASE:
            return None
        center = Location((boundary_x - 1) // 2, (boundary_y - 1) // 2)
        packed = codec.encode_with_status(RESOLVED, center.x, center.y)
        if not self.channel.compare_and_set(self.slot, current, packed):
            return None
        return center

    def snapshot(self) -> dict:
        c = self.center()
        return {
            "state": self.state().value,
            "claimant": self.claimant(),
            "center": None if c is None else [c.x, c.y],
        }


class ExplorationWalker:
    """Greedy diagonal walk to the north-east corner for the elected explorer.

    ``tick`` returns True while the agent is busy exploring, in which case the
    caller skips the rest of its policy for this tick. An axis whose next tile
    is held by another unit is settled by looking ahead for the map edge; if
    the edge is out of sight the walker sidesteps around the blocker.
    """
    AXES = (Direction.EAST, Direction.NORTH)

    def __init__(self) -> None:
        self.walking = False
        self.done = False

    def tick(self, ctl: Any, claim: ExplorerClaim) -> bool:
        if self.done:
            return False
        state = claim.state()
        if state == ExplorerState.RESOLVED:
            self.done = True
            self.walking = False
            return False

        if not self.walking:
            if state != ExplorerState.UNCLAIMED:
                return False
            if not claim.try_claim(ctl.id):
                return False
            self.walking = True
        elif not claim.is_claimed_by(ctl.id):
            # Slot was overwritten under us; someone else owns exploration.
            self.walking = False
            return False

        here = ctl.location
        edges = [self.edge_along(ctl, here, d) for d in self.AXES]
        if None not in edges:
            claim.resolve(ctl.id, edges[0].x, edges[1].y)
            self.walking = False
            self.done = True
            return True

        moved = False
        for d, edge in zip(self.AXES, edges):
            if edge is None and ctl.can_move(d):
                ctl.move(d)
                moved = True
        if not moved:
            for d, edge in zip(self.AXES, edges):
                if edge is None and self._sidestep(ctl, d):
                    break
        return True

    @staticmethod
    def edge_along(ctl: Any, here: Location, d: Direction) -> Optional[Location]:
        """First off-map tile from ``here`` along ``d``, or None while it is not known.

        Known when the next tile is off the map, or when another unit holds
        the next tile and the edge behind it is within sight.
        """
        loc = here.add(d)
        if not ctl.on_the_map(loc):
            return loc
        if ctl.sense_unit_at(loc) is None:
            return None
        while ctl.can_sense_location(loc):
            if not ctl.on_the_map(loc):
                return loc
            loc = loc.add(d)
        return None

    @staticmethod
    def _sidestep(ctl: Any, d: Direction) -> bool:
        for side in (d.rotate_left(), d.rotate_right()):
            if ctl.can_move(side):
                ctl.move(side)
                return True
        return False
