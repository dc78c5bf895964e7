from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

from swarm_sim.domain.geometry import Location
from . import codec
from .channel import SharedChannel
from .layout import ChannelLayout, DEFAULT_LAYOUT


@dataclass(frozen=True)
class RegistryEntry:
    index: int
    location: Location
    status: int


class BaseRegistry:
    """Append-only list of base locations kept in a reserved slot range.

    Entries are written once and never removed. Only the status digit of an
    entry is ever rewritten (see ``threat.raise_alarm``).
    """
    def __init__(self, channel: SharedChannel, layout: ChannelLayout = DEFAULT_LAYOUT):
        self.channel = channel
        self.layout = layout

    # --- writes ---------------------------------------------------------
    def register(self, location: Location) -> Optional[int]:
        """Add ``location`` unless present. Returns its slot, or None if full.

        Empty slots are claimed with compare-and-set; a lost claim re-reads
        the same slot and keeps scanning from there.
        """
        packed = codec.encode(location.x, location.y)
        index = self.layout.registry_start
        while index < self.layout.registry_end:
            v = self.channel.read(index)
            if codec.is_empty(v):
                if self.channel.compare_and_set(index, v, packed):
                    return index
                v = self.channel.latest(index)
            if codec.decode(v) == location.as_tuple():
                return index
            index += 1
        return None

    def register_blind(self, location: Location) -> Optional[int]:
        """Scan-for-empty-slot with a plain write.

        Two bases that both see the same empty slot before either write is
        visible will both write it and the later one wins. Kept for hosts
        that only offer read/write.
        """
        packed = codec.encode(location.x, location.y)
        for index in range(self.layout.registry_start, self.layout.registry_end):
            v = self.channel.read(index)
            if codec.is_empty(v):
                self.channel.write(index, packed)
                return index
            if codec.decode(v) == location.as_tuple():
                return index
        return None

    # --- queries --------------------------------------------------------
    def entries(self) -> List[RegistryEntry]:
        out: List[RegistryEntry] = []
        for index in range(self.layout.registry_start, self.layout.registry_end):
            v = self.channel.read(index)
            if codec.is_empty(v):
                break
            x, y = codec.decode(v)
            out.append(RegistryEntry(index, Location(x, y), codec.status_of(v)))
        return out

    def count(self) -> int:
        return len(self.entries())

    def locations(self) -> List[Location]:
        return [e.location for e in self.entries()]

    def index_of(self, location: Location) -> Optional[int]:
        for e in self.entries():
            if e.location == location:
                return e.index
        return None

    def status_at(self, index: int) -> int:
        return codec.status_of(self.channel.read(index))

    def nearest_entry(self, location: Location) -> Optional[RegistryEntry]:
        best: Optional[RegistryEntry] = None
        best_d2 = 0
        for e in self.entries():
            d2 = location.distance_squared_to(e.location)
            if best is None or d2 < best_d2:
                best, best_d2 = e, d2
        return best

    def nearest(self, location: Location) -> Optional[Location]:
        e = self.nearest_entry(location)
        return e.location if e else None

    def nearest_index(self, location: Location) -> Optional[int]:
        e = self.nearest_entry(location)
        return e.index if e else None

    def furthest_from_center(self, center: Optional[Location]) -> Optional[Location]:
        """Entry furthest from ``center``; the lowest index wins ties.

        With no known center every distance ties, so the first entry wins.
        """
        best: Optional[RegistryEntry] = None
        best_d2 = -1
        for e in self.entries():
            d2 = 0 if center is None else e.location.distance_squared_to(center)
            if d2 > best_d2:
                best, best_d2 = e, d2
        return best.location if best else None

    def snapshot(self) -> list[dict]:
        return [{"i": e.index, "x": e.location.x, "y": e.location.y, "status": e.status}
                for e in self.entries()]
