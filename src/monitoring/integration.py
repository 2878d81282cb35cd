# path: src/monitoring/integration.py
"""
Integration helpers for monitoring the retry engine.

Convenience functions for emitting well-structured MonitoringEvents from:

- bot_core.mining (escalation ladder)
- bot_core.pickup (item retrieval)

All functions are thin wrappers around monitoring.logger.log_event, accept
`bus=None` (no-op), and keep payload shapes consistent.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from contracts.types import BlockPos, Vec3

from .bus import EventBus
from .events import EventType
from .logger import log_event


JsonDict = Dict[str, Any]


def _pos(pos: BlockPos) -> list[int]:
    return [pos.x, pos.y, pos.z]


# ============================================================
# Escalation ladder
# ============================================================

def emit_stage_started(
    bus: Optional[EventBus],
    stage: str,
    targets: Sequence[BlockPos],
    correlation_id: Optional[str] = None,
) -> None:
    payload: JsonDict = {
        "stage": stage,
        "targets": [_pos(t) for t in targets],
    }
    log_event(
        bus=bus,
        module="bot_core.mining",
        event_type=EventType.STAGE_STARTED,
        message=f"Escalation stage {stage} started",
        payload=payload,
        correlation_id=correlation_id,
    )


def emit_stage_exhausted(
    bus: Optional[EventBus],
    stage: str,
    path_outcome: str,
    correlation_id: Optional[str] = None,
) -> None:
    log_event(
        bus=bus,
        module="bot_core.mining",
        event_type=EventType.STAGE_EXHAUSTED,
        message=f"No target could be mined at stage {stage}",
        payload={"stage": stage, "path_outcome": path_outcome},
        correlation_id=correlation_id,
    )


def emit_target_rejected(
    bus: Optional[EventBus],
    stage: str,
    target: BlockPos,
    error_code: str,
    correlation_id: Optional[str] = None,
) -> None:
    log_event(
        bus=bus,
        module="bot_core.mining",
        event_type=EventType.TARGET_REJECTED,
        message=f"Target {target} rejected: {error_code}",
        payload={"stage": stage, "target": _pos(target), "error": error_code},
        correlation_id=correlation_id,
    )


def emit_interaction_performed(
    bus: Optional[EventBus],
    stage: str,
    target: BlockPos,
    *,
    already_mined: bool,
    hotbar_slot: Optional[int] = None,
    correlation_id: Optional[str] = None,
) -> None:
    payload: JsonDict = {
        "stage": stage,
        "target": _pos(target),
        "already_mined": already_mined,
        "hotbar_slot": hotbar_slot,
    }
    log_event(
        bus=bus,
        module="bot_core.mining",
        event_type=EventType.INTERACTION_PERFORMED,
        message=f"Target {target} handled at stage {stage}",
        payload=payload,
        correlation_id=correlation_id,
    )


def emit_achieve_failed(
    bus: Optional[EventBus],
    targets: Sequence[BlockPos],
    stages_tried: Sequence[str],
    correlation_id: Optional[str] = None,
) -> None:
    log_event(
        bus=bus,
        module="bot_core.mining",
        event_type=EventType.ACHIEVE_FAILED,
        message="Could not mine any requested block",
        payload={
            "targets": [_pos(t) for t in targets],
            "stages_tried": list(stages_tried),
        },
        correlation_id=correlation_id,
    )


# ============================================================
# Item retrieval
# ============================================================

def emit_retrieval_started(
    bus: Optional[EventBus],
    kind: str,
    positions: Sequence[Vec3],
    baseline: int,
    correlation_id: Optional[str] = None,
) -> None:
    log_event(
        bus=bus,
        module="bot_core.pickup",
        event_type=EventType.RETRIEVAL_STARTED,
        message=f"Retrieving {kind}",
        payload={
            "kind": kind,
            "positions": [_pos(p.to_block_pos_floor()) for p in positions],
            "baseline": baseline,
        },
        correlation_id=correlation_id,
    )


def emit_retrieval_replanned(
    bus: Optional[EventBus],
    kind: str,
    positions: Sequence[Vec3],
    reason: str,
    correlation_id: Optional[str] = None,
) -> None:
    log_event(
        bus=bus,
        module="bot_core.pickup",
        event_type=EventType.RETRIEVAL_REPLANNED,
        message=f"Items of {kind} {reason}, recalculating path",
        payload={
            "kind": kind,
            "positions": [_pos(p.to_block_pos_floor()) for p in positions],
            "reason": reason,
        },
        correlation_id=correlation_id,
    )


def emit_retrieval_finished(
    bus: Optional[EventBus],
    kind: str,
    outcome: str,
    ticks: int,
    correlation_id: Optional[str] = None,
) -> None:
    log_event(
        bus=bus,
        module="bot_core.pickup",
        event_type=EventType.RETRIEVAL_FINISHED,
        message=f"Retrieval of {kind} finished: {outcome}",
        payload={"kind": kind, "outcome": outcome, "ticks": ticks},
        correlation_id=correlation_id,
    )
