# tests/test_mining_escalator.py
"""
Tests for bot_core.mining.ActionEscalator against in-memory fakes.

Covers:
- stage order (exact approach -> adjacent stand -> occupy stand)
- air targets: mined by us vs. by someone else
- full ladder exhaustion -> CantAchieveAny
- tool selection, abort, monitoring events
"""

from __future__ import annotations

from typing import List, Optional

import pytest

from bot_core.config import EngineConfig, MiningConfig, ScoringTables, ToolSpec
from bot_core.errors import CantAchieveAny, OperationAborted
from bot_core.goals import AdjacentStand, ExactApproach, OccupyStand, OrGoal
from bot_core.mining import ActionEscalator, EscalationState, build_ladder
from bot_core.testing.fakes import FakeAgent, FakeInteractor, FakeInventory, FakePlanner, FakeWorld
from contracts.types import BlockPos, BlockState, ItemStack, PathOutcome, PathRequest, Vec3
from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent


STONE = BlockState(name="minecraft:stone", destroy_time=1.5, tool="pickaxe", requires_tool=True)
BEDROCK = BlockState(name="minecraft:bedrock", destroy_time=-1.0)


def _escalator(
    world: FakeWorld,
    agent: FakeAgent,
    planner: FakePlanner,
    *,
    inventory: Optional[FakeInventory] = None,
    bus: Optional[EventBus] = None,
    config: Optional[EngineConfig] = None,
):
    interactor = FakeInteractor(world)
    escalator = ActionEscalator(
        planner,
        world,
        inventory or FakeInventory(),
        agent,
        interactor,
        config=config,
        bus=bus,
    )
    return escalator, interactor


def _member_type(request: PathRequest) -> type:
    assert isinstance(request.goal, OrGoal)
    return type(request.goal.members[0])


def test_escalates_through_stages_in_order() -> None:
    target = BlockPos(12, 64, 0)
    world = FakeWorld({target: STONE})
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))

    def walk(request: PathRequest) -> None:
        if _member_type(request) is OccupyStand:
            agent.move_to(Vec3(12.5, 63.0, 0.5))

    planner = FakePlanner(on_goto=walk)
    escalator, interactor = _escalator(world, agent, planner)

    outcome = escalator.achieve([target])

    assert [_member_type(r) for r in planner.requests] == [ExactApproach, AdjacentStand, OccupyStand]
    assert outcome.stage == "occupy_stand"
    assert outcome.stages_tried == ("exact_approach", "adjacent_stand", "occupy_stand")
    assert outcome.target == target
    assert outcome.already_mined is False
    assert interactor.mined == [target]
    assert escalator.state is EscalationState.DONE


def test_stage_requests_carry_targets_and_timeouts() -> None:
    targets = [BlockPos(2, 64, 0), BlockPos(2, 64, 1)]
    world = FakeWorld({t: STONE for t in targets})
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))
    planner = FakePlanner()
    escalator, _ = _escalator(world, agent, planner)

    escalator.achieve(targets)

    request = planner.requests[0]
    assert request.goal.targets == tuple(targets)
    assert request.min_timeout_s == 2.0
    assert request.max_timeout_s == 10.0
    assert request.goal.members[0].distance == 3.2


def test_skips_air_mined_by_someone_else() -> None:
    air = BlockPos(5, 5, 5)
    valid = BlockPos(6, 5, 5)
    world = FakeWorld({valid: STONE})
    # close enough to mine (6,5,5), but more than 4 blocks from (5,5,5)
    agent = FakeAgent(Vec3(9.5, 4.0, 5.5))
    planner = FakePlanner()
    escalator, interactor = _escalator(world, agent, planner)

    outcome = escalator.achieve([air, valid])

    assert outcome.target == valid
    assert outcome.already_mined is False
    assert outcome.stage == "exact_approach"
    assert interactor.mined == [valid]
    assert len(planner.requests) == 1


def test_air_near_agent_counts_as_mined_by_us() -> None:
    air = BlockPos(1, 64, 0)
    world = FakeWorld()
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))
    planner = FakePlanner()
    escalator, interactor = _escalator(world, agent, planner)

    outcome = escalator.achieve([air])

    assert outcome.already_mined is True
    assert outcome.target == air
    assert outcome.hotbar_slot is None
    assert interactor.mined == []
    assert len(planner.requests) == 1


def test_mined_by_self_radius_is_configurable() -> None:
    air = BlockPos(1, 64, 0)
    world = FakeWorld()
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))
    planner = FakePlanner()
    config = EngineConfig(mining=MiningConfig(mined_by_self_radius=0.5))
    escalator, _ = _escalator(world, agent, planner, config=config)

    with pytest.raises(CantAchieveAny) as exc_info:
        escalator.achieve([air])

    codes = {code for _, _, code in exc_info.value.rejections}
    assert codes == {"mined_by_other"}


def test_all_targets_unreachable_raises_after_three_stages() -> None:
    bedrock = BlockPos(1, 64, 0)
    far = BlockPos(30, 64, 0)
    world = FakeWorld({bedrock: BEDROCK, far: STONE})
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))
    planner = FakePlanner(outcomes=[PathOutcome.GAVE_UP, PathOutcome.REACHED])
    escalator, interactor = _escalator(world, agent, planner)

    with pytest.raises(CantAchieveAny) as exc_info:
        escalator.achieve([bedrock, far])

    err = exc_info.value
    assert len(err.stages_tried) == 3
    assert len(planner.requests) == 3
    assert planner.wait_calls == 3
    assert err.targets == (bedrock, far)
    assert [(stage, code) for stage, _, code in err.rejections] == [
        ("exact_approach", "block_is_not_breakable"),
        ("exact_approach", "block_is_not_reachable"),
        ("adjacent_stand", "block_is_not_breakable"),
        ("adjacent_stand", "block_is_not_reachable"),
        ("occupy_stand", "block_is_not_breakable"),
        ("occupy_stand", "block_is_not_reachable"),
    ]
    assert interactor.mined == []
    assert escalator.state is EscalationState.FAILED


def test_targets_still_checked_when_planner_gives_up() -> None:
    target = BlockPos(2, 64, 0)
    world = FakeWorld({target: STONE})
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))
    planner = FakePlanner(outcomes=[PathOutcome.GAVE_UP])
    escalator, interactor = _escalator(world, agent, planner)

    outcome = escalator.achieve([target])

    assert outcome.stage == "exact_approach"
    assert interactor.mined == [target]


def test_first_workable_target_wins() -> None:
    first = BlockPos(2, 64, 0)
    second = BlockPos(0, 64, 2)
    world = FakeWorld({first: STONE, second: STONE})
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))
    escalator, interactor = _escalator(world, agent, FakePlanner())

    outcome = escalator.achieve([first, second])

    assert outcome.target == first
    assert interactor.mined == [first]


def test_selects_best_tool_and_looks_at_block_center() -> None:
    target = BlockPos(2, 64, 0)
    world = FakeWorld({target: STONE})
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))
    scoring = ScoringTables(
        tools={
            "minecraft:wooden_pickaxe": ToolSpec("pickaxe", 2.0),
            "minecraft:iron_pickaxe": ToolSpec("pickaxe", 6.0),
        }
    )
    inventory = FakeInventory(
        [
            ItemStack("minecraft:dirt", 5),
            ItemStack("minecraft:wooden_pickaxe", 1, damageable=True),
            ItemStack(),
            ItemStack("minecraft:iron_pickaxe", 1, damageable=True),
        ],
        scoring=scoring,
    )
    escalator, interactor = _escalator(world, agent, FakePlanner(), inventory=inventory)

    outcome = escalator.achieve([target])

    assert outcome.hotbar_slot == 3
    assert inventory.selections == [3]
    assert interactor.looked_at == [target.center()]


def test_mine_block_with_best_tool_makes_no_path_request() -> None:
    target = BlockPos(2, 64, 0)
    world = FakeWorld({target: STONE})
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))
    planner = FakePlanner()
    escalator, interactor = _escalator(world, agent, planner)

    assert escalator.mine_block_with_best_tool(target) == 0
    assert planner.requests == []
    assert interactor.mined == [target]


def test_achieve_one_wraps_achieve() -> None:
    target = BlockPos(2, 64, 0)
    world = FakeWorld({target: STONE})
    escalator, _ = _escalator(world, FakeAgent(Vec3(0.5, 64.0, 0.5)), FakePlanner())

    assert escalator.achieve_one(target).target == target


def test_empty_target_list_is_rejected() -> None:
    escalator, _ = _escalator(FakeWorld(), FakeAgent(), FakePlanner())
    with pytest.raises(ValueError):
        escalator.achieve([])


def test_abort_stops_planner_before_next_stage() -> None:
    target = BlockPos(30, 64, 0)
    world = FakeWorld({target: STONE})
    agent = FakeAgent(Vec3(0.5, 64.0, 0.5))
    planner = FakePlanner()
    escalator, _ = _escalator(world, agent, planner)
    planner.on_goto = lambda request: escalator.abort()

    with pytest.raises(OperationAborted):
        escalator.achieve([target])

    assert len(planner.requests) == 1
    assert planner.stop_calls == 1
    assert escalator.state is EscalationState.FAILED


def test_abort_before_achieve_stops_that_call_only() -> None:
    target = BlockPos(2, 64, 0)
    world = FakeWorld({target: STONE})
    planner = FakePlanner()
    escalator, _ = _escalator(world, FakeAgent(Vec3(0.5, 64.0, 0.5)), planner)

    escalator.abort()
    with pytest.raises(OperationAborted):
        escalator.achieve([target])
    assert planner.requests == []

    assert escalator.achieve([target]).stage == "exact_approach"
    assert len(planner.requests) == 1


def test_monitoring_events_for_exhausted_ladder() -> None:
    bus = EventBus()
    events: List[MonitoringEvent] = []
    bus.subscribe(events.append)

    target = BlockPos(1, 64, 0)
    world = FakeWorld({target: BEDROCK})
    escalator, _ = _escalator(world, FakeAgent(Vec3(0.5, 64.0, 0.5)), FakePlanner(), bus=bus)

    with pytest.raises(CantAchieveAny):
        escalator.achieve([target])

    types = [e.event_type for e in events]
    assert types == [
        EventType.STAGE_STARTED,
        EventType.TARGET_REJECTED,
        EventType.STAGE_EXHAUSTED,
    ] * 3 + [EventType.ACHIEVE_FAILED]
    assert len({e.correlation_id for e in events}) == 1
    assert events[1].payload["error"] == "block_is_not_breakable"


def test_monitoring_event_for_success() -> None:
    bus = EventBus()
    events: List[MonitoringEvent] = []
    bus.subscribe(events.append)

    target = BlockPos(2, 64, 0)
    world = FakeWorld({target: STONE})
    escalator, _ = _escalator(world, FakeAgent(Vec3(0.5, 64.0, 0.5)), FakePlanner(), bus=bus)
    escalator.achieve([target])

    assert [e.event_type for e in events] == [EventType.STAGE_STARTED, EventType.INTERACTION_PERFORMED]
    assert events[1].payload == {
        "stage": "exact_approach",
        "target": [2, 64, 0],
        "already_mined": False,
        "hotbar_slot": 0,
    }


def test_build_ladder_follows_config() -> None:
    ladder = build_ladder(EngineConfig())

    assert [s.state for s in ladder] == [
        EscalationState.EXACT_APPROACH,
        EscalationState.ADJACENT_STAND,
        EscalationState.OCCUPY_STAND,
    ]
    assert [s.name for s in ladder] == ["exact_approach", "adjacent_stand", "occupy_stand"]
