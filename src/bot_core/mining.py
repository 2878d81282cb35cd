# src/bot_core/mining.py
"""
ActionEscalator: mine one of several candidate blocks, escalating through a
fixed ladder of progressively looser standing goals.

Ladder (order is fixed):

    EXACT_APPROACH  -> stand where the block is visible within reach
    ADJACENT_STAND  -> stand with the head right next to the block
    OCCUPY_STAND    -> stand inside the block's column

Per stage:
    1. build an OrGoal over every target with the stage's goal constructor
    2. submit one PathRequest (superseding any previous one) and block
       until the planner reports REACHED or GAVE_UP
    3. walk the targets in order with freshly sampled world/agent state:
         - air near us       -> probably mined by us, done
         - air far away      -> probably mined by someone else, skip
         - reachability fail -> skip (logged, non-fatal)
         - reachable         -> best tool, look, mine, done
    4. nothing worked -> next stage

Only full ladder exhaustion surfaces as CantAchieveAny.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from contracts.collaborators import AgentView, Interactor, InventoryView, PathPlanner, WorldView
from contracts.types import BlockPos, PathOutcome, PathRequest
from monitoring.bus import EventBus
from monitoring.integration import (
    emit_achieve_failed,
    emit_interaction_performed,
    emit_stage_exhausted,
    emit_stage_started,
    emit_target_rejected,
)

from .config import EngineConfig, StageConfig
from .errors import CantAchieveAny, EngineError, MiningError, OperationAborted
from .goals import GoalFactory, adjacent_stand, any_of, exact_approach_for, occupy_stand
from .reachability import ReachabilityChecker


log = logging.getLogger(__name__)


class EscalationState(Enum):
    IDLE = "idle"
    EXACT_APPROACH = "exact_approach"
    ADJACENT_STAND = "adjacent_stand"
    OCCUPY_STAND = "occupy_stand"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class LadderStage:
    """One rung: how to build the goal and how long the planner may try."""

    name: str
    state: EscalationState
    make_goal: GoalFactory
    min_timeout_s: float = 2.0
    max_timeout_s: float = 10.0


@dataclass(frozen=True)
class AchieveOutcome:
    """What achieve() ended up doing."""

    stage: str
    target: BlockPos
    # True when the target was already air and close enough that we most
    # likely broke it ourselves; nothing was mined in that case.
    already_mined: bool
    stages_tried: Tuple[str, ...]
    hotbar_slot: Optional[int] = None


def build_ladder(config: EngineConfig) -> Tuple[LadderStage, ...]:
    """Translate configured stages into LadderStage records."""
    stages = []
    for stage in config.ladder:
        stages.append(_stage_from_config(stage, config))
    return tuple(stages)


def _stage_from_config(stage: StageConfig, config: EngineConfig) -> LadderStage:
    if stage.goal == "exact_approach":
        if stage.distance is None:
            raise EngineError(code="invalid_ladder", details={"stage": stage.name})
        state = EscalationState.EXACT_APPROACH
        make_goal = exact_approach_for(stage.distance, config.reach.eye_height)
    elif stage.goal == "adjacent_stand":
        state = EscalationState.ADJACENT_STAND
        make_goal = adjacent_stand
    elif stage.goal == "occupy_stand":
        state = EscalationState.OCCUPY_STAND
        make_goal = occupy_stand
    else:
        raise EngineError(code="invalid_ladder", details={"stage": stage.name, "goal": stage.goal})

    return LadderStage(
        name=stage.name,
        state=state,
        make_goal=make_goal,
        min_timeout_s=stage.min_timeout_s,
        max_timeout_s=stage.max_timeout_s,
    )


class ActionEscalator:
    """
    Drives one agent through the escalation ladder.

    Exactly one achieve() may run per agent at a time; abort() may be called
    from another thread and takes effect before the next stage starts.
    """

    def __init__(
        self,
        planner: PathPlanner,
        world: WorldView,
        inventory: InventoryView,
        agent: AgentView,
        interactor: Interactor,
        *,
        config: Optional[EngineConfig] = None,
        ladder: Optional[Sequence[LadderStage]] = None,
        bus: Optional[EventBus] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._planner = planner
        self._world = world
        self._inventory = inventory
        self._agent = agent
        self._interactor = interactor

        self._cfg = config if config is not None else EngineConfig()
        self._ladder: Tuple[LadderStage, ...] = (
            tuple(ladder) if ladder is not None else build_ladder(self._cfg)
        )
        self._reach = ReachabilityChecker(
            max_pick_range=self._cfg.reach.max_pick_range,
            actual_pick_range=self._cfg.reach.actual_pick_range,
        )
        self._bus = bus
        self._log = logger or log

        self._state = EscalationState.IDLE
        self._abort = threading.Event()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> EscalationState:
        return self._state

    @property
    def ladder(self) -> Tuple[LadderStage, ...]:
        return self._ladder

    def abort(self) -> None:
        """
        Ask a running achieve() to stop before its next stage. Called while
        idle, the next achieve() stops before its first stage instead.
        """
        self._abort.set()

    def achieve_one(self, target: BlockPos) -> AchieveOutcome:
        return self.achieve([target])

    def achieve(self, targets: Sequence[BlockPos]) -> AchieveOutcome:
        """
        Mine the first workable block of `targets`.

        Raises:
            ValueError: `targets` is empty.
            CantAchieveAny: every stage was tried against every target.
            OperationAborted: abort() was called.
        """
        targets = tuple(targets)
        if not targets:
            raise ValueError("achieve() needs at least one target")

        try:
            return self._climb(targets)
        finally:
            self._abort.clear()

    def _climb(self, targets: Tuple[BlockPos, ...]) -> AchieveOutcome:
        correlation_id = uuid.uuid4().hex
        stages_tried: List[str] = []
        rejections: List[Tuple[str, BlockPos, str]] = []

        for stage in self._ladder:
            self._raise_if_aborted()

            self._state = stage.state
            stages_tried.append(stage.name)

            goal = any_of(targets, stage.make_goal, self._world)
            emit_stage_started(self._bus, stage.name, targets, correlation_id)
            self._planner.start_goto(
                PathRequest(
                    goal=goal,
                    min_timeout_s=stage.min_timeout_s,
                    max_timeout_s=stage.max_timeout_s,
                )
            )
            outcome = self._planner.wait_until_done()
            self._log.debug("stage %s path outcome=%s", stage.name, outcome.value)

            self._raise_if_aborted()

            result = self._try_targets(stage, targets, rejections, correlation_id)
            if result is not None:
                self._state = EscalationState.DONE
                target, already_mined, slot = result
                return AchieveOutcome(
                    stage=stage.name,
                    target=target,
                    already_mined=already_mined,
                    stages_tried=tuple(stages_tried),
                    hotbar_slot=slot,
                )

            emit_stage_exhausted(self._bus, stage.name, outcome.value, correlation_id)
            if outcome is PathOutcome.GAVE_UP:
                self._log.warning(
                    "could not mine any blocks at stage %s (planner gave up), escalating",
                    stage.name,
                )
            else:
                self._log.warning(
                    "could not mine any blocks at stage %s, escalating", stage.name
                )

        self._state = EscalationState.FAILED
        self._log.warning("could not mine any of %d blocks, giving up", len(targets))
        emit_achieve_failed(self._bus, targets, stages_tried, correlation_id)
        raise CantAchieveAny(targets, stages_tried, rejections)

    def mine_block_with_best_tool(self, target: BlockPos) -> int:
        """
        Check reachability from where we stand now, then mine with the best
        hotbar tool. No path request is made.

        Returns the selected hotbar slot. Raises MiningError if the block
        can't be mined from here.
        """
        snapshot = self._agent.snapshot()
        self._reach.check(target, snapshot.eye_position, self._world)

        block = self._world.get_block_state(target)
        choice = self._inventory.best_tool_slot(block)
        self._inventory.select_hotbar_slot(choice.index)
        self._interactor.look_at(target.center())
        self._interactor.mine(target)

        self._log.info(
            "mining %s (%s) with hotbar slot %d (%.3f/tick)",
            target,
            block.name,
            choice.index,
            choice.percentage_per_tick,
        )
        return choice.index

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _try_targets(
        self,
        stage: LadderStage,
        targets: Tuple[BlockPos, ...],
        rejections: List[Tuple[str, BlockPos, str]],
        correlation_id: str,
    ) -> Optional[Tuple[BlockPos, bool, Optional[int]]]:
        """First workable target as (target, already_mined, slot), else None."""
        radius = self._cfg.mining.mined_by_self_radius

        for target in targets:
            block = self._world.get_block_state(target)
            if block.is_air:
                position = self._agent.snapshot().position.to_block_pos_ceil()
                if target.distance_squared_to(position) < radius * radius:
                    self._log.warning("block %s is mined, returning", target)
                    emit_interaction_performed(
                        self._bus, stage.name, target,
                        already_mined=True, correlation_id=correlation_id,
                    )
                    return target, True, None

                self._log.warning("block %s is already mined", target)
                rejections.append((stage.name, target, "mined_by_other"))
                continue

            try:
                slot = self.mine_block_with_best_tool(target)
            except MiningError as exc:
                self._log.debug("stage %s: skipping %s (%s)", stage.name, target, exc.code)
                rejections.append((stage.name, target, exc.code))
                emit_target_rejected(self._bus, stage.name, target, exc.code, correlation_id)
                continue

            emit_interaction_performed(
                self._bus, stage.name, target,
                already_mined=False, hotbar_slot=slot, correlation_id=correlation_id,
            )
            return target, False, slot

        return None

    def _raise_if_aborted(self) -> None:
        if self._abort.is_set():
            self._planner.stop()
            self._state = EscalationState.FAILED
            self._log.info("achieve aborted")
            raise OperationAborted("achieve")


__all__ = [
    "AchieveOutcome",
    "ActionEscalator",
    "EscalationState",
    "LadderStage",
    "build_ladder",
]
