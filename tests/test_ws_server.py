# tests/test_ws_server.py
"""
Telemetry server tests. The TestClient is used without its context manager,
so the lifespan tick loop never starts and every tick comes from a command.
"""

from __future__ import annotations
import json
import unittest

from starlette.testclient import TestClient

from swarm_sim.api import SimController
from swarm_sim.domain.geometry import Location
from swarm_sim.domain.units import UnitKind
from swarm_sim.telemetry import ws_server
from swarm_sim.telemetry.ws_server import CommandError, apply_command, team_view


def _reply(ws) -> dict:
    """Next non-view message (views stream in between)."""
    while True:
        msg = json.loads(ws.receive_text())
        if msg["type"] != "view":
            return msg


def _free_tile(sim) -> Location:
    for x in range(sim.width):
        for y in range(sim.height):
            loc = Location(x, y)
            if sim.world.unit_at(loc) is None:
                return loc
    raise AssertionError("map is full")


class TestCommands(unittest.TestCase):
    """Command handlers against a private controller."""

    def setUp(self):
        self.sim = SimController(width=12, height=12, seed=1, n_patches=0, verbose=False)

    def test_pause_speed_step(self):
        self.assertEqual(apply_command(self.sim, {"action": "pause"}), {"paused": True})
        self.assertEqual(apply_command(self.sim, {"action": "toggle"}), {"paused": False})
        self.assertEqual(apply_command(self.sim, {"action": "speed", "value": 20}), {"speed": 8.0})
        self.assertEqual(apply_command(self.sim, {"action": "step", "n": 3}), {"round": 3})

    def test_spawn(self):
        ack = apply_command(self.sim, {"action": "spawn", "kind": "forager", "team": "A", "x": 2, "y": 3})
        unit = self.sim.world.units[ack["spawned"]]
        self.assertEqual((unit.kind, unit.team, unit.location), (UnitKind.FORAGER, "A", Location(2, 3)))
        with self.assertRaises(CommandError):
            apply_command(self.sim, {"action": "spawn", "kind": "forager", "team": "A", "x": 2, "y": 3})
        with self.assertRaises(CommandError):
            apply_command(self.sim, {"action": "spawn", "kind": "dragon", "x": 1, "y": 1})
        with self.assertRaises(CommandError):
            apply_command(self.sim, {"action": "spawn", "team": "C", "x": 1, "y": 1})
        with self.assertRaises(CommandError):
            apply_command(self.sim, {"action": "spawn", "x": "left", "y": 1})

    def test_add_resources(self):
        ack = apply_command(self.sim, {"action": "add_resources", "x": 4, "y": 4, "ore": 7})
        self.assertEqual(ack, {"at": [4, 4], "ore": 7, "gold": 0})
        self.assertEqual(self.sim.world.resources.ore_at(Location(4, 4)), 7)
        with self.assertRaises(CommandError):
            apply_command(self.sim, {"action": "add_resources", "x": 40, "y": 4})

    def test_unknown_action(self):
        with self.assertRaises(CommandError):
            apply_command(self.sim, {"action": "fly"})

    def test_team_view(self):
        self.sim.spawn(UnitKind.BASE, "A", 2, 2)
        self.sim.spawn(UnitKind.BASE, "B", 9, 9)
        view = self.sim.get_view()
        cut = team_view(view, "B")
        self.assertEqual([a["id"] for a in cut["agents"]], [2])
        self.assertEqual(list(cut["comms"]), ["B"])
        self.assertIs(team_view(view, None), view)


class TestWsServer(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(ws_server.app)
        self.sim = ws_server._sim

    def test_view_endpoint(self):
        r = self.client.get("/")
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertIn("round", body)
        self.assertEqual(body["width"], self.sim.width)
        self.assertEqual(sorted(body["comms"]), ["A", "B"])

    def test_comms_endpoint(self):
        r = self.client.get("/comms/A")
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(len(body["slots"]), len(self.sim.world.channels["A"].snapshot()))
        self.assertIn("state", body["explorer"])
        self.assertEqual(self.client.get("/comms/Z").status_code, 404)

    def test_controls(self):
        with self.client.websocket_connect("/ws") as ws:
            ws.send_text(json.dumps({"type": "subscribe", "hz": 500, "team": "A"}))
            self.assertEqual(_reply(ws), {"type": "ack", "payload": {"subscribe_hz": 60, "team": "A"}})

            ws.send_text(json.dumps({"type": "cmd", "action": "pause"}))
            self.assertEqual(_reply(ws)["payload"], {"paused": True})
            self.assertTrue(self.sim.paused)

            before = self.sim.world.round
            ws.send_text(json.dumps({"type": "cmd", "action": "step", "n": 2}))
            self.assertEqual(_reply(ws)["payload"], {"round": before + 2})

            view = json.loads(ws.receive_text())
            while view["type"] != "view":
                view = json.loads(ws.receive_text())
            self.assertEqual(list(view["payload"]["comms"]), ["A"])

    def test_spawn_over_socket(self):
        loc = _free_tile(self.sim)
        with self.client.websocket_connect("/ws") as ws:
            ws.send_text(json.dumps({"type": "cmd", "action": "spawn", "kind": "guardian",
                                     "team": "B", "x": loc.x, "y": loc.y}))
            msg = _reply(ws)
            self.assertEqual(msg["type"], "ack")
            self.assertEqual(self.sim.world.units[msg["payload"]["spawned"]].location, loc)

    def test_bad_messages(self):
        with self.client.websocket_connect("/ws") as ws:
            ws.send_text("{not json")
            self.assertEqual(_reply(ws), {"type": "error", "message": "bad json"})
            ws.send_text(json.dumps({"type": "cmd", "action": "fly"}))
            self.assertEqual(_reply(ws)["message"], "Unknown action: fly")
            ws.send_text(json.dumps({"type": "subscribe", "team": "Q"}))
            self.assertEqual(_reply(ws)["type"], "error")
            ws.send_text(json.dumps({"type": "hello"}))
            self.assertEqual(_reply(ws), {"type": "error", "message": "Unknown type: hello"})


if __name__ == "__main__":
    unittest.main()
