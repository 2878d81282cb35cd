# spatial acceptance criteria handed to the path planner
# src/bot_core/goals.py
"""
Spatial goals for the interaction retry engine.

Each goal describes where the agent may stand (feet block) relative to a
target block. All variants share one contract:

    heuristic(n) -> float   estimated cost from candidate n
    success(n)   -> bool    True if standing at n is acceptable

Variants, from strictest to loosest:

- ExactApproach: the target is visible from the eye within a reach
  distance (ray cast, guarded by a cheap squared-distance prune).
- AdjacentStand: the head or feet are right next to / under / on the target.
- OccupyStand: feet or head are inside the target block.

OrGoal combines several goals so the planner can pursue whichever
candidate target is cheapest to reach.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, ClassVar, FrozenSet, Iterable, Tuple, Union

from contracts.collaborators import WorldView
from contracts.types import BlockHit, BlockPos

from .geometry import (
    DEFAULT_EYE_HEIGHT,
    block_distance,
    direction_looking_at,
    eye_position_at,
)


class GoalKind(Enum):
    EXACT_APPROACH = "exact_approach"
    ADJACENT_STAND = "adjacent_stand"
    OCCUPY_STAND = "occupy_stand"
    ANY_OF = "any_of"


@dataclass(frozen=True)
class ExactApproach:
    """Stand where the target block is directly visible within `distance`."""

    target: BlockPos
    distance: float
    world: WorldView = field(compare=False, repr=False)
    eye_height: float = DEFAULT_EYE_HEIGHT

    kind: ClassVar[GoalKind] = GoalKind.EXACT_APPROACH

    @property
    def max_check_distance_squared(self) -> float:
        return (self.distance + 2.0) ** 2

    def heuristic(self, n: BlockPos) -> float:
        return block_distance(n, self.target)

    def success(self, n: BlockPos) -> bool:
        # Only do the ray cast when we're close enough for it to matter.
        if (self.target - n).length_squared() > self.max_check_distance_squared:
            return False

        if n == self.target or n == self.target.down(1):
            return True

        eye = eye_position_at(n, self.eye_height)
        direction = direction_looking_at(eye, self.target.center())
        hit = self.world.ray_cast(eye, direction, self.distance)
        return isinstance(hit, BlockHit) and hit.pos == self.target


def adjacent_stand_positions(target: BlockPos) -> FrozenSet[BlockPos]:
    """The 7 feet positions accepted by AdjacentStand."""
    below = target.down(1)
    return frozenset(
        {
            below,               # standing in the block (head in it)
            target.up(1),        # standing on the block
            target.down(2),      # head directly below the block
            below.north(1),      # head right next to the block
            below.south(1),
            below.east(1),
            below.west(1),
        }
    )


@dataclass(frozen=True)
class AdjacentStand:
    """Stand so the head is directly adjacent to, under, or on the target."""

    target: BlockPos

    kind: ClassVar[GoalKind] = GoalKind.ADJACENT_STAND

    def heuristic(self, n: BlockPos) -> float:
        return block_distance(n, self.target)

    def success(self, n: BlockPos) -> bool:
        return n in adjacent_stand_positions(self.target)


@dataclass(frozen=True)
class OccupyStand:
    """Stand with either head or feet inside the target block."""

    target: BlockPos

    kind: ClassVar[GoalKind] = GoalKind.OCCUPY_STAND

    def heuristic(self, n: BlockPos) -> float:
        return block_distance(n, self.target)

    def success(self, n: BlockPos) -> bool:
        return n == self.target or n == self.target.down(1)


SpatialGoal = Union[ExactApproach, AdjacentStand, OccupyStand]


@dataclass(frozen=True)
class OrGoal:
    """Satisfied by any member; heuristic is the cheapest member's."""

    members: Tuple[SpatialGoal, ...]

    kind: ClassVar[GoalKind] = GoalKind.ANY_OF

    def __post_init__(self) -> None:
        if not self.members:
            raise ValueError("OrGoal needs at least one member goal")

    def heuristic(self, n: BlockPos) -> float:
        return min(goal.heuristic(n) for goal in self.members)

    def success(self, n: BlockPos) -> bool:
        return any(goal.success(n) for goal in self.members)

    @property
    def targets(self) -> Tuple[BlockPos, ...]:
        return tuple(goal.target for goal in self.members)


# ---------------------------------------------------------------------------
# Stage goal constructors: (target, world) -> goal
# ---------------------------------------------------------------------------

GoalFactory = Callable[[BlockPos, WorldView], SpatialGoal]


def exact_approach_for(
    distance: float,
    eye_height: float = DEFAULT_EYE_HEIGHT,
) -> GoalFactory:
    def make(target: BlockPos, world: WorldView) -> SpatialGoal:
        return ExactApproach(target, distance, world, eye_height)

    return make


def adjacent_stand(target: BlockPos, world: WorldView) -> SpatialGoal:
    return AdjacentStand(target)


def occupy_stand(target: BlockPos, world: WorldView) -> SpatialGoal:
    return OccupyStand(target)


def any_of(
    targets: Iterable[BlockPos],
    make_goal: GoalFactory,
    world: WorldView,
) -> OrGoal:
    """Composite goal over `targets`, keeping their order."""
    return OrGoal(tuple(make_goal(target, world) for target in targets))


__all__ = [
    "AdjacentStand",
    "ExactApproach",
    "GoalFactory",
    "GoalKind",
    "OccupyStand",
    "OrGoal",
    "SpatialGoal",
    "adjacent_stand",
    "adjacent_stand_positions",
    "any_of",
    "exact_approach_for",
    "occupy_stand",
]
