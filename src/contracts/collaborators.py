# collaborator interfaces consumed by the retry engine
# src/contracts/collaborators.py

from __future__ import annotations

from typing import Hashable, List, Optional, Protocol, Sequence, Tuple

from .types import (
    AgentSnapshot,
    BlockPos,
    BlockState,
    Hit,
    ItemStack,
    PathOutcome,
    PathRequest,
    ToolChoice,
    Vec3,
)


class Goal(Protocol):
    """Acceptance criterion for a standing position, handed to the planner."""

    def heuristic(self, n: BlockPos) -> float:
        """Estimated cost from candidate `n` to satisfying this goal."""
        ...

    def success(self, n: BlockPos) -> bool:
        """True if standing (feet) at `n` satisfies this goal."""
        ...


class PathPlanner(Protocol):
    """External path-search and path-follow service for ONE agent.

    Submitting a new request supersedes (and thereby cancels) the previous
    one. The planner guarantees `wait_until_done()` returns within the
    request's max timeout, even when no path exists.
    """

    def start_goto(self, request: PathRequest) -> None:
        """Begin pursuing `request.goal`, replacing any outstanding request."""
        ...

    def wait_until_done(self) -> PathOutcome:
        """Block until the current request is reached or given up."""
        ...

    def is_goal_reached(self) -> bool:
        """Non-blocking: has the current request already been reached?"""
        ...

    def stop(self) -> None:
        """Drop the outstanding request, if any."""
        ...


class WorldView(Protocol):
    """Read-only access to block states and line-of-sight queries."""

    def get_block_state(self, pos: BlockPos) -> BlockState:
        """Block at `pos`; unknown positions read as air."""
        ...

    def ray_cast(self, origin: Vec3, direction: Vec3, max_range: float) -> Hit:
        """First block or entity hit along `direction` within `max_range`."""
        ...


class InventoryView(Protocol):
    """Player inventory access plus tool/weapon scoring."""

    def slots(self) -> Sequence[ItemStack]:
        """Every player inventory slot, hotbar included."""
        ...

    def hotbar(self) -> Sequence[ItemStack]:
        """The nine hotbar slots, in order."""
        ...

    def best_tool_slot(self, block: BlockState) -> ToolChoice:
        ...

    def best_weapon_slot(self) -> int:
        ...

    def select_hotbar_slot(self, index: int) -> None:
        ...


# (handle, position) pairs, nearest first.
EntitySighting = Tuple[Hashable, Vec3]


class EntityFinder(Protocol):
    """Locates dropped item entities around the agent."""

    def nearest(self, kind: str, max_distance: float, limit: int) -> List[EntitySighting]:
        """Up to `limit` items of `kind` within `max_distance`, nearest first."""
        ...


class TickSubscription(Protocol):
    """One consumer's view of the tick stream."""

    def wait_next_tick(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the next tick.

        Returns False once the tick source is closed (terminal), or if
        `timeout` elapsed without a tick.
        """
        ...

    def wait_ticks(self, n: int) -> bool:
        """Wait for `n` ticks; False if the source closed meanwhile."""
        ...


class TickClock(Protocol):
    """One notification per simulation step; closable."""

    def subscribe(self) -> TickSubscription:
        ...

    @property
    def closed(self) -> bool:
        ...


class AgentView(Protocol):
    """Fresh agent snapshots."""

    def snapshot(self) -> AgentSnapshot:
        ...


class Interactor(Protocol):
    """Emits interaction intents; never touches world state directly."""

    def look_at(self, point: Vec3) -> None:
        ...

    def mine(self, pos: BlockPos) -> None:
        ...


__all__ = [
    "AgentView",
    "EntityFinder",
    "EntitySighting",
    "Goal",
    "Interactor",
    "InventoryView",
    "PathPlanner",
    "TickClock",
    "TickSubscription",
    "WorldView",
]
