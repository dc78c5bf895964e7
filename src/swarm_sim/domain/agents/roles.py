from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Literal, Sequence

# Canonical role names; every unit kind maps onto one of these.
Role = Literal["base", "forager", "guardian", "utility", "workshop"]


@dataclass(frozen=True)
class Rule:
    """One rung of a priority ladder.

    ``action`` names a method on the agent taking the controller and
    returning True when the rule fired. A fired ``terminal`` rule ends the
    agent's turn.
    """
    name: str
    action: str
    terminal: bool = True


class RulePolicy:
    """Ordered rule table evaluated once per tick.

    Keeps the priorities as data so they can be inspected and reordered
    without touching the dispatch.
    """
    def __init__(self, rules: Sequence[Rule]):
        self.rules: List[Rule] = list(rules)
        self.fired: List[str] = []

    def names(self) -> List[str]:
        return [r.name for r in self.rules]

    def run(self, agent: Any, ctl: Any) -> List[str]:
        """Evaluate rules in order. Returns the names of the rules that fired."""
        self.fired = []
        for rule in self.rules:
            if getattr(agent, rule.action)(ctl):
                self.fired.append(rule.name)
                if rule.terminal:
                    break
        return self.fired
