# src/swarm_sim/telemetry/ws_server.py
"""
Starlette app for watching a match and steering it by hand.

Routes:
- GET /               full view (world, agents, per-team channel state, stats)
- GET /comms/{team}   one team's decoded channel: registry entries and explorer slot
- WS  /ws             pushes {"type": "view"} frames; accepts "subscribe" and "cmd" messages

Commands are plain functions of (sim, message) -> ack payload kept in COMMANDS,
so the socket layer only parses, dispatches and replies.
"""

from __future__ import annotations

# stdlib
import asyncio
import contextlib
import json
import time
import traceback
from typing import Any, Callable, Dict, Optional

# web framework
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute
from starlette.websockets import WebSocket, WebSocketDisconnect

# sim API
from swarm_sim.api import SimController
from swarm_sim.domain.environment.world import TEAMS
from swarm_sim.domain.geometry import Location
from swarm_sim.domain.units import UnitKind


# ---- Tunables -----------------------------------------------------------------
SIM_TICK_HZ = 10          # ticks per second at speed 1.0
DEFAULT_VIEW_HZ = 5
MAX_VIEW_HZ = 60
MAX_STEPS_PER_CMD = 1000

# One match for the whole process; every client sees and steers the same one.
_sim = SimController(seed=6147)
_sim.setup_mirror(bases=2)

_loop_task: Optional[asyncio.Task] = None


class CommandError(ValueError):
    """A command message that cannot be applied; the text goes back to the client."""


# ---- Commands -----------------------------------------------------------------
def _int(data: Dict[str, Any], key: str, default: Optional[int] = None) -> int:
    raw = data.get(key, default)
    if raw is None:
        raise CommandError(f"'{key}' is required")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise CommandError(f"'{key}' must be an integer") from None


def _team(data: Dict[str, Any], default: str) -> str:
    team = str(data.get("team", default))
    if team not in TEAMS:
        raise CommandError(f"team must be one of {list(TEAMS)}")
    return team


def cmd_toggle(sim: SimController, data: Dict[str, Any]) -> dict:
    return {"paused": sim.toggle_paused()}


def cmd_play(sim: SimController, data: Dict[str, Any]) -> dict:
    sim.set_paused(False)
    return {"paused": False}


def cmd_pause(sim: SimController, data: Dict[str, Any]) -> dict:
    sim.set_paused(True)
    return {"paused": True}


def cmd_speed(sim: SimController, data: Dict[str, Any]) -> dict:
    try:
        sim.set_speed(float(data.get("value", 1.0)))
    except (TypeError, ValueError):
        raise CommandError("'value' must be a number") from None
    return {"speed": sim.speed}


def cmd_step(sim: SimController, data: Dict[str, Any]) -> dict:
    n = max(0, min(MAX_STEPS_PER_CMD, _int(data, "n", 1)))
    sim.run(n)
    return {"round": sim.world.round}


def cmd_spawn(sim: SimController, data: Dict[str, Any]) -> dict:
    try:
        kind = UnitKind(data.get("kind", UnitKind.GUARDIAN.value))
    except ValueError:
        raise CommandError(f"unknown unit kind {data.get('kind')!r}") from None
    team = _team(data, TEAMS[1])
    x = _int(data, "x"); y = _int(data, "y")
    try:
        uid = sim.spawn(kind, team, x, y)
    except ValueError as e:
        raise CommandError(str(e)) from None
    return {"spawned": uid, "kind": kind.value, "team": team}


def cmd_add_resources(sim: SimController, data: Dict[str, Any]) -> dict:
    x = _int(data, "x"); y = _int(data, "y")
    ore = _int(data, "ore", 0); gold = _int(data, "gold", 0)
    if not sim.world.on_the_map(Location(x, y)):
        raise CommandError(f"({x}, {y}) is off the map")
    sim.add_resources(x, y, ore=ore, gold=gold)
    return {"at": [x, y], "ore": ore, "gold": gold}


def cmd_add_patch(sim: SimController, data: Dict[str, Any]) -> dict:
    n = _int(data, "n", 8)
    sim.add_patch(n)
    return {"patch_tiles": n}


COMMANDS: Dict[str, Callable[[SimController, Dict[str, Any]], dict]] = {
    "toggle": cmd_toggle,
    "play": cmd_play,
    "pause": cmd_pause,
    "speed": cmd_speed,
    "step": cmd_step,
    "spawn": cmd_spawn,
    "add_resources": cmd_add_resources,
    "add_patch": cmd_add_patch,
}


def apply_command(sim: SimController, data: Dict[str, Any]) -> dict:
    """Run one "cmd" message against ``sim``. Raises CommandError on bad input."""
    action = data.get("action")
    handler = COMMANDS.get(action)
    if handler is None:
        raise CommandError(f"Unknown action: {action}")
    return handler(sim, data)


def team_view(view: dict, team: Optional[str]) -> dict:
    """Cut a full view down to what one team's bots can know about."""
    if team is None:
        return view
    out = dict(view)
    out["agents"] = [a for a in view["agents"] if a["id"] in _team_ids(view, team)]
    out["comms"] = {team: view["comms"][team]}
    return out


def _team_ids(view: dict, team: str) -> set:
    return {u["id"] for u in view["world"]["units"] if u["team"] == team}


# ---- Background ticking --------------------------------------------------------
async def sim_loop() -> None:
    """Step the match at SIM_TICK_HZ * speed; idle while paused."""
    print(f"[sim] ticking at {SIM_TICK_HZ} Hz x speed")
    while True:
        hz = SIM_TICK_HZ * _sim.speed
        if _sim.paused or hz <= 0:
            await asyncio.sleep(0.1)
            continue
        t0 = time.perf_counter()
        try:
            _sim.step()
        except Exception as e:
            # Agent faults never get here; this is the host itself failing.
            print(f"[sim] host error in round {_sim.world.round}:", repr(e))
            traceback.print_exc()
        await asyncio.sleep(max(0.0, 1.0 / hz - (time.perf_counter() - t0)))


# ---- Socket sessions ----------------------------------------------------------
class ClientSession:
    """State for one websocket: outbound view rate and optional team filter."""

    def __init__(self, ws: WebSocket, sim: SimController) -> None:
        self.ws = ws
        self.sim = sim
        self.hz = DEFAULT_VIEW_HZ
        self.team: Optional[str] = None
        self._pusher: Optional[asyncio.Task] = None

    async def serve(self) -> None:
        await self.ws.accept()
        print("[ws] client joined")
        self._pusher = asyncio.create_task(self._push_views())
        try:
            while True:
                text = await self.ws.receive_text()
                try:
                    msg = json.loads(text)
                except json.JSONDecodeError:
                    await self._send("error", message="bad json")
                    continue
                await self._on_message(msg)
        except WebSocketDisconnect:
            print("[ws] client left")
        finally:
            self._pusher.cancel()

    async def _push_views(self) -> None:
        while True:
            await asyncio.sleep(1.0 / self.hz)
            try:
                await self._send("view", payload=team_view(self.sim.get_view(), self.team))
            except (RuntimeError, WebSocketDisconnect) as e:
                print("[ws] view push stopped:", repr(e))
                return

    async def _on_message(self, msg: Dict[str, Any]) -> None:
        kind = msg.get("type")
        if kind == "subscribe":
            try:
                self.hz = max(1, min(MAX_VIEW_HZ, _int(msg, "hz", DEFAULT_VIEW_HZ)))
                self.team = _team(msg, "") if msg.get("team") else None
            except CommandError as e:
                await self._send("error", message=str(e))
                return
            print(f"[ws] subscribed at {self.hz} Hz, team={self.team}")
            await self._send("ack", payload={"subscribe_hz": self.hz, "team": self.team})
        elif kind == "cmd":
            try:
                payload = apply_command(self.sim, msg)
            except CommandError as e:
                await self._send("error", message=str(e))
            else:
                await self._send("ack", payload=payload)
        else:
            await self._send("error", message=f"Unknown type: {kind}")

    async def _send(self, kind: str, **body: Any) -> None:
        await self.ws.send_text(json.dumps({"type": kind, **body}))


# ---- HTTP + app -----------------------------------------------------------------
async def view(request):
    return JSONResponse(_sim.get_view())


async def comms(request):
    team = request.path_params["team"]
    if team not in TEAMS:
        return JSONResponse({"error": f"no team {team!r}"}, status_code=404)
    return JSONResponse({
        "round": _sim.world.round,
        "registry": _sim.registry(team).snapshot(),
        "explorer": _sim.explorer(team).snapshot(),
        "slots": _sim.world.channels[team].snapshot(),
    })


async def ws_endpoint(ws: WebSocket):
    await ClientSession(ws, _sim).serve()


@contextlib.asynccontextmanager
async def lifespan(app):
    global _loop_task
    _loop_task = asyncio.create_task(sim_loop())
    print("[app] tick loop started")
    try:
        yield
    finally:
        _loop_task.cancel()
        _loop_task = None
        print("[app] tick loop stopped")


app = Starlette(
    routes=[
        Route("/", endpoint=view),
        Route("/comms/{team}", endpoint=comms),
        WebSocketRoute("/ws", endpoint=ws_endpoint),
    ],
    lifespan=lifespan,
)
