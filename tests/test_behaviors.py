# tests/test_behaviors.py
"""
Pure behaviour helpers:
- Compass geometry (direction_to, rotations)
- Attack ranking and chase target selection
- Default direction: anti-clump, away-from-base, toward-center fallback
"""

from __future__ import annotations
import random
import unittest

from swarm_sim.domain.agents.behaviors.movement import (
    agrees, anti_clump_direction, default_direction, fan_out, random_direction,
)
from swarm_sim.domain.agents.behaviors.targeting import AttackCandidate, chase_target, rank_targets
from swarm_sim.domain.geometry import COMPASS, Direction, Location
from swarm_sim.domain.units import UnitKind


def _cand(kind: UnitKind, health: int, x: int = 0, y: int = 0) -> AttackCandidate:
    return AttackCandidate(Location(x, y), health, kind)


class TestGeometry(unittest.TestCase):

    def test_direction_to(self):
        o = Location(0, 0)
        self.assertEqual(o.direction_to(Location(1, 0)), Direction.EAST)
        self.assertEqual(o.direction_to(Location(0, 1)), Direction.NORTH)
        self.assertEqual(o.direction_to(Location(-1, -1)), Direction.SOUTHWEST)
        self.assertEqual(o.direction_to(Location(3, 1)), Direction.EAST)
        self.assertEqual(o.direction_to(Location(0, -5)), Direction.SOUTH)
        self.assertEqual(o.direction_to(o), Direction.CENTER)

    def test_rotations(self):
        self.assertEqual(Direction.NORTH.rotate_right(), Direction.NORTHEAST)
        self.assertEqual(Direction.NORTH.rotate_left(), Direction.NORTHWEST)
        self.assertEqual(Direction.EAST.opposite(), Direction.WEST)
        self.assertEqual(Direction.CENTER.rotate_left(), Direction.CENTER)

    def test_distance_squared(self):
        self.assertEqual(Location(1, 2).distance_squared_to(Location(4, 6)), 25)


class TestTargeting(unittest.TestCase):

    def test_type_order_when_nobody_is_nearly_dead(self):
        ranked = rank_targets([_cand(UnitKind.GUARDIAN, 10), _cand(UnitKind.FORAGER, 4)], kill_threshold=3)
        self.assertEqual([c.kind for c in ranked], [UnitKind.GUARDIAN, UnitKind.FORAGER])

    def test_low_health_overrides_type_order(self):
        ranked = rank_targets([_cand(UnitKind.FORAGER, 1), _cand(UnitKind.GUARDIAN, 5)], kill_threshold=3)
        self.assertEqual([c.kind for c in ranked], [UnitKind.FORAGER, UnitKind.GUARDIAN])
        ranked = rank_targets([_cand(UnitKind.GUARDIAN, 5), _cand(UnitKind.FORAGER, 1)], kill_threshold=3)
        self.assertEqual([c.kind for c in ranked], [UnitKind.FORAGER, UnitKind.GUARDIAN])

    def test_full_danger_order(self):
        kinds = [UnitKind.BUILDER, UnitKind.FORAGER, UnitKind.WORKSHOP, UnitKind.BASE,
                 UnitKind.GUARDIAN, UnitKind.TOWER, UnitKind.ELITE]
        ranked = rank_targets([_cand(k, 50) for k in kinds])
        self.assertEqual([c.kind for c in ranked], list(reversed(kinds)))

    def test_ties_keep_sensing_order(self):
        a = _cand(UnitKind.GUARDIAN, 20, 1, 1)
        b = _cand(UnitKind.GUARDIAN, 30, 2, 2)
        self.assertEqual(rank_targets([a, b]), [a, b])
        self.assertEqual(rank_targets([b, a]), [b, a])

    def test_chase_prefers_command_then_elite(self):
        cands = [_cand(UnitKind.FORAGER, 40), _cand(UnitKind.GUARDIAN, 50), _cand(UnitKind.BASE, 600)]
        self.assertEqual(chase_target(cands).kind, UnitKind.BASE)
        cands = [_cand(UnitKind.BUILDER, 30), _cand(UnitKind.ELITE, 100), _cand(UnitKind.TOWER, 150)]
        self.assertEqual(chase_target(cands).kind, UnitKind.ELITE)
        self.assertIsNone(chase_target([]))


class TestDefaultDirection(unittest.TestCase):

    def test_nothing_known(self):
        self.assertIsNone(default_direction(Location(5, 5), [], None, None))

    def test_center_unknown_moves_away_from_base(self):
        d = default_direction(Location(8, 5), [], Location(5, 5), None)
        self.assertEqual(d, Direction.EAST)

    def test_away_from_base_when_it_heads_toward_center(self):
        d = default_direction(Location(8, 8), [], Location(5, 5), Location(15, 15))
        self.assertEqual(d, Direction.NORTHEAST)

    def test_toward_center_when_away_heads_outward(self):
        d = default_direction(Location(20, 20), [], Location(15, 15), Location(15, 15))
        self.assertEqual(d, Direction.SOUTHWEST)

    def test_no_base_heads_for_center(self):
        d = default_direction(Location(2, 2), [], None, Location(15, 15))
        self.assertEqual(d, Direction.NORTHEAST)

    def test_anti_clump(self):
        center = Location(15, 15)
        friends = [Location(14, 14), Location(15, 14), Location(16, 14)]
        me = Location(15, 16)
        self.assertEqual(anti_clump_direction(me, friends, center), Direction.NORTH)
        self.assertEqual(default_direction(me, friends, Location(5, 5), center), Direction.NORTH)

    def test_two_friends_are_not_a_clump(self):
        center = Location(15, 15)
        friends = [Location(14, 14), Location(16, 14)]
        self.assertIsNone(anti_clump_direction(Location(15, 16), friends, center))

    def test_clump_far_from_center_is_ignored(self):
        center = Location(15, 15)
        friends = [Location(1, 1), Location(2, 1), Location(1, 2)]
        self.assertIsNone(anti_clump_direction(Location(2, 2), friends, center))

    def test_helpers(self):
        self.assertTrue(agrees(Direction.NORTH, Direction.NORTHEAST))
        self.assertFalse(agrees(Direction.SOUTH, Direction.NORTHEAST))
        self.assertEqual(fan_out(Location(0, 0).direction_to(Location(0, 4))),
                         [Direction.NORTH, Direction.NORTHWEST, Direction.NORTHEAST])
        self.assertEqual(fan_out(Direction.CENTER), [])
        self.assertIn(random_direction(random.Random(3)), COMPASS)


if __name__ == "__main__":
    unittest.main()
