# src/bot_core/reachability.py
"""
Line-of-sight and block-viability check that gates every mining attempt.

check_reachable() raises a MiningError subclass describing why the target
can't be mined from the given eye position, or returns None when it can.
"""

from __future__ import annotations

from dataclasses import dataclass

from contracts.collaborators import WorldView
from contracts.types import BlockHit, BlockPos, EntityHit, Vec3

from .errors import (
    BlockIsAir,
    BlockIsNotBreakable,
    BlockIsNotReachable,
    EntityBlocking,
    MiningError,
)
from .geometry import direction_looking_at

# Coarse prune radius (blocks) and the real interaction reach.
DEFAULT_MAX_PICK_RANGE = 6
DEFAULT_ACTUAL_PICK_RANGE = 3.5


def check_reachable(
    target: BlockPos,
    eye_position: Vec3,
    world: WorldView,
    *,
    max_pick_range: float = DEFAULT_MAX_PICK_RANGE,
    actual_pick_range: float = DEFAULT_ACTUAL_PICK_RANGE,
) -> None:
    """
    Raise if the block at `target` can't be mined from `eye_position`.

    Order of checks:
        1. air                       -> BlockIsAir
        2. indestructible            -> BlockIsNotBreakable
        3. outside coarse range      -> BlockIsNotReachable
        4. ray cast toward center:
             entity first            -> EntityBlocking
             other block / nothing   -> BlockIsNotReachable
    """
    state = world.get_block_state(target)
    if state.is_air:
        raise BlockIsAir(target)
    if not state.is_breakable:
        raise BlockIsNotBreakable(target)

    distance = target.distance_squared_to(eye_position.to_block_pos_ceil())
    if distance > max_pick_range * max_pick_range:
        raise BlockIsNotReachable(target)

    direction = direction_looking_at(eye_position, target.center())
    hit = world.ray_cast(eye_position, direction, actual_pick_range)

    if isinstance(hit, EntityHit):
        raise EntityBlocking(target)
    if not isinstance(hit, BlockHit) or hit.pos != target:
        raise BlockIsNotReachable(target)


def can_reach(
    target: BlockPos,
    eye_position: Vec3,
    world: WorldView,
    **ranges: float,
) -> bool:
    """Boolean form of check_reachable()."""
    try:
        check_reachable(target, eye_position, world, **ranges)
    except MiningError:
        return False
    return True


@dataclass(frozen=True)
class ReachabilityChecker:
    """check_reachable() with ranges bound from configuration."""

    max_pick_range: float = DEFAULT_MAX_PICK_RANGE
    actual_pick_range: float = DEFAULT_ACTUAL_PICK_RANGE

    def check(self, target: BlockPos, eye_position: Vec3, world: WorldView) -> None:
        check_reachable(
            target,
            eye_position,
            world,
            max_pick_range=self.max_pick_range,
            actual_pick_range=self.actual_pick_range,
        )
