# src/cli/smoke.py
"""
Smoke harness for the retry engine.

Runs canned scenarios against the in-memory fakes (no Minecraft, no
network) and renders the monitoring events each scenario produced:

    mine      target visible from the start; mined at the first stage
    escalate  target out of reach until the agent stands in its column
    exhaust   unbreakable target; every stage is tried, CantAchieveAny
    retrieve  dropped item rolls away once, then gets picked up

Usage:
    python -m cli.smoke --scenario escalate
    python -m cli.smoke --scenario all --log-level DEBUG
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agent.logging_config import configure_logging
from bot_core.errors import RetryEngineError
from bot_core.goals import OccupyStand, OrGoal
from bot_core.mining import ActionEscalator
from bot_core.pickup import ItemRetrievalTracker
from bot_core.testing.fakes import (
    FakeAgent,
    FakeEntityFinder,
    FakeInteractor,
    FakeInventory,
    FakePlanner,
    FakeTickClock,
    FakeWorld,
)
from contracts.types import BlockPos, BlockState, PathRequest, Vec3
from monitoring.bus import EventBus
from monitoring.events import MonitoringEvent


STONE = BlockState(name="minecraft:stone", destroy_time=1.5, tool="pickaxe", requires_tool=True)
BEDROCK = BlockState(name="minecraft:bedrock", destroy_time=-1.0)


@dataclass
class ScenarioResult:
    name: str
    ok: bool
    outcome: str
    events: List[MonitoringEvent] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


def _escalator(world: FakeWorld, agent: FakeAgent, planner: FakePlanner, bus: EventBus) -> ActionEscalator:
    return ActionEscalator(
        planner,
        world,
        FakeInventory(),
        agent,
        FakeInteractor(world),
        bus=bus,
    )


def scenario_mine(bus: EventBus) -> str:
    target = BlockPos(2, 64, 0)
    world = FakeWorld({target: STONE})
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))
    outcome = _escalator(world, agent, FakePlanner(), bus).achieve([target])
    return f"mined {target.as_tuple()} at {outcome.stage}"


def scenario_escalate(bus: EventBus) -> str:
    target = BlockPos(12, 64, 0)
    world = FakeWorld({target: STONE})
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))

    def walk(request: PathRequest) -> None:
        # Only the loosest goal gets us anywhere.
        goal = request.goal
        if isinstance(goal, OrGoal) and isinstance(goal.members[0], OccupyStand):
            agent.move_to(Vec3(12.5, 63.0, 0.5))

    outcome = _escalator(world, agent, FakePlanner(on_goto=walk), bus).achieve([target])
    return f"mined {target.as_tuple()} at {outcome.stage} after {len(outcome.stages_tried)} stages"


def scenario_exhaust(bus: EventBus) -> str:
    target = BlockPos(1, 64, 0)
    world = FakeWorld({target: BEDROCK})
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))
    _escalator(world, agent, FakePlanner(), bus).achieve([target])
    return "unexpectedly mined bedrock"


def scenario_retrieve(bus: EventBus) -> str:
    kind = "minecraft:cobblestone"
    clock = FakeTickClock()
    finder = FakeEntityFinder()
    finder.add(1, kind, Vec3(4.2, 64.0, 0.7))
    inventory = FakeInventory()

    clock.at(2, lambda: finder.move(1, Vec3(6.1, 64.0, 0.7)))
    clock.at(5, lambda: (finder.remove(1), inventory.give(kind)))

    tracker = ItemRetrievalTracker(FakePlanner(), finder, inventory, clock, bus=bus)
    outcome = tracker.retrieve(kind)
    stats = tracker.last_retrieval_stats
    return f"{outcome.value} after {stats.ticks} ticks, {stats.replans} replans"


SCENARIOS: Dict[str, Callable[[EventBus], str]] = {
    "mine": scenario_mine,
    "escalate": scenario_escalate,
    "exhaust": scenario_exhaust,
    "retrieve": scenario_retrieve,
}

# scenarios that are expected to end in a terminal engine error
EXPECTED_FAILURES = {"exhaust"}


def run_scenario(name: str, bus: Optional[EventBus] = None) -> ScenarioResult:
    """Run one scenario, collecting every monitoring event it publishes."""
    bus = bus or EventBus()
    events: List[MonitoringEvent] = []
    bus.subscribe(events.append)
    try:
        try:
            outcome = SCENARIOS[name](bus)
            ok = name not in EXPECTED_FAILURES
        except RetryEngineError as exc:
            outcome = f"{type(exc).__name__}: {exc}"
            ok = name in EXPECTED_FAILURES
    finally:
        bus.unsubscribe(events.append)
    return ScenarioResult(name=name, ok=ok, outcome=outcome, events=events)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render(result: ScenarioResult, console: Console) -> None:
    table = Table(title=f"scenario: {result.name}")
    table.add_column("#", justify="right")
    table.add_column("event")
    table.add_column("message")

    for i, event in enumerate(result.events, start=1):
        table.add_row(str(i), event.event_type.name, escape(event.message))

    console.print(table)
    style = "green" if result.ok else "red"
    console.print(f"[{style}]{'OK' if result.ok else 'FAIL'}[/{style}] {escape(result.outcome)}")


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Smoke test harness for the interaction retry engine",
    )
    parser.add_argument(
        "--scenario",
        choices=[*SCENARIOS, "all"],
        default="all",
        help="Scenario to run against the in-memory fakes",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    console = Console()
    names = list(SCENARIOS) if args.scenario == "all" else [args.scenario]
    results = [run_scenario(name) for name in names]
    for result in results:
        render(result, console)

    return 0 if all(r.ok for r in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
