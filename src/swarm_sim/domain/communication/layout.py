from __future__ import annotations
from dataclasses import dataclass

# Matches a 16-bit unsigned slot on the host side.
SLOT_MAX = 65535
CHANNEL_SIZE = 64


@dataclass(frozen=True)
class ChannelLayout:
    """Which channel slots each protocol owns."""
    registry_start: int = 0
    registry_capacity: int = 4
    explorer_slot: int = 4

    @property
    def registry_end(self) -> int:
        return self.registry_start + self.registry_capacity


DEFAULT_LAYOUT = ChannelLayout()
