"""swarm_sim: shared-channel coordination for a swarm of tick-driven agents."""

__version__ = "0.1.0"
