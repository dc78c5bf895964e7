from __future__ import annotations
from typing import Dict, List

from .layout import CHANNEL_SIZE, SLOT_MAX


class ChannelError(ValueError):
    """Slot index or value outside what the host array can hold."""


class SharedChannel:
    """Fixed-length array of bounded integers shared by one team.

    Reads and writes are blind. In ``deferred`` mode a write only becomes
    visible to ``read`` after the host calls ``commit()`` at the end of the
    tick, which is the weakest visibility the protocols are written for.
    ``compare_and_set`` always compares against the latest value, pending
    writes included.
    """
    def __init__(self, size: int = CHANNEL_SIZE, max_value: int = SLOT_MAX, deferred: bool = False):
        self.size = int(size)
        self.max_value = int(max_value)
        self.deferred = bool(deferred)
        self._slots: List[int] = [0] * self.size
        self._pending: Dict[int, int] = {}
        self.writes = 0

    # --- validation -----------------------------------------------------
    def _check_slot(self, slot: int) -> None:
        if not 0 <= slot < self.size:
            raise ChannelError(f"slot {slot} outside channel of size {self.size}")

    def _check_value(self, value: int) -> None:
        if not 0 <= value <= self.max_value:
            raise ChannelError(f"value {value} outside [0, {self.max_value}]")

    # --- core -----------------------------------------------------------
    def read(self, slot: int) -> int:
        self._check_slot(slot)
        return self._slots[slot]

    def write(self, slot: int, value: int) -> None:
        self._check_slot(slot)
        self._check_value(value)
        self.writes += 1
        if self.deferred:
            self._pending[slot] = value
        else:
            self._slots[slot] = value

    def latest(self, slot: int) -> int:
        self._check_slot(slot)
        return self._pending.get(slot, self._slots[slot])

    def compare_and_set(self, slot: int, expected: int, value: int) -> bool:
        """Write ``value`` only if the latest value is ``expected``."""
        if self.latest(slot) != expected:
            return False
        self.write(slot, value)
        return True

    # --- host side ------------------------------------------------------
    def commit(self) -> int:
        """Publish pending writes. Returns how many slots were written."""
        n = len(self._pending)
        for slot, value in self._pending.items():
            self._slots[slot] = value
        self._pending.clear()
        return n

    def snapshot(self) -> List[int]:
        return list(self._slots)
