# src/swarm_sim/run.py
"""Headless runner: play a mirrored match for a fixed number of ticks and log every frame."""
from __future__ import annotations
import argparse
from dataclasses import asdict

from swarm_sim.api import SimController
from swarm_sim.domain.environment.world import TEAMS
from swarm_sim.io.logging import RunLogger


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Run a swarm_sim match without the web server.")
    ap.add_argument("--ticks", type=int, default=500, help="Ticks to simulate")
    ap.add_argument("--seed", type=int, default=None, help="Seed for map and agent randomness")
    ap.add_argument("--width", type=int, default=30)
    ap.add_argument("--height", type=int, default=30)
    ap.add_argument("--bases", type=int, default=2, help="Bases per team")
    ap.add_argument("--patches", type=int, default=6, help="Ore patches scattered at start")
    ap.add_argument("--deferred", action="store_true",
                    help="Channel writes become visible only at the end of the tick")
    ap.add_argument("--log-root", default="runs", help="Directory for per-run CSV/meta output")
    ap.add_argument("--run-id", default=None)
    ap.add_argument("--ws-url", default=None, help="Optional websocket URL to stream frames to")
    ap.add_argument("--quiet", action="store_true", help="Do not print per-fault tracebacks")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    sim = SimController(width=args.width, height=args.height, seed=args.seed,
                        deferred_comms=args.deferred, n_patches=args.patches, verbose=not args.quiet)
    sim.setup_mirror(bases=args.bases)

    meta = {k: getattr(args, k) for k in ("ticks", "seed", "width", "height", "bases", "patches", "deferred")}
    logger = RunLogger(root=args.log_root, run_id=args.run_id, ws_url=args.ws_url, meta=meta)
    logger.start()
    seen = 0
    try:
        for _ in range(args.ticks):
            sim.step()
            logger.log(sim.frame())
            for fault in sim.faults[seen:]:
                logger.log_fault(asdict(fault))
            seen = len(sim.faults)
    finally:
        logger.stop()

    print(f"[sim] finished {sim.world.round} rounds, {len(sim.faults)} faults -> {logger.dir}")
    for t in TEAMS:
        center = sim.explorer(t).center()
        print(f"[sim] team {t}: units={sim.world.count(t)} bases={sim.registry(t).count()} "
              f"treasury={sim.world.treasury[t]} center={center.as_tuple() if center else None}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
