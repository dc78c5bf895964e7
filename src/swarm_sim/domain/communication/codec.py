from __future__ import annotations
from typing import Tuple

# Packed layout: S XX YY  (status digit, two x digits, two y digits)
COORD_BASE = 100
STATUS_BASE = 10000
MAX_COORD = 99
MAX_STATUS = 5

# 0 doubles as "empty". Nothing real may live at (0, 0).
EMPTY = 0


def encode(x: int, y: int) -> int:
    return x * COORD_BASE + y


def decode(v: int) -> Tuple[int, int]:
    """Unpack (x, y), ignoring any status digit."""
    v = strip_status(v)
    return (v // COORD_BASE, v % COORD_BASE)


def encode_with_status(status: int, x: int, y: int) -> int:
    return status * STATUS_BASE + x * COORD_BASE + y


def status_of(v: int) -> int:
    return v // STATUS_BASE


def strip_status(v: int) -> int:
    return v % STATUS_BASE


def with_status(v: int, status: int) -> int:
    """Rewrite only the status digit of a packed value."""
    return status * STATUS_BASE + strip_status(v)


def is_empty(v: int) -> bool:
    return strip_status(v) == EMPTY
