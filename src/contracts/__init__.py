# contracts package
# src/contracts/__init__.py
"""
Shared types and collaborator interfaces for the interaction retry engine.

Exports:
    - value types (BlockPos, Vec3, BlockState, ItemStack, hits, snapshots)
    - Protocols for every external collaborator
"""

from __future__ import annotations

from .types import (
    AIR,
    AgentSnapshot,
    BlockHit,
    BlockPos,
    BlockState,
    EMPTY_STACK,
    EntityHit,
    Hit,
    ItemStack,
    Miss,
    PathOutcome,
    PathRequest,
    ToolChoice,
    Vec3,
)
from .collaborators import (
    AgentView,
    EntityFinder,
    EntitySighting,
    Goal,
    Interactor,
    InventoryView,
    PathPlanner,
    TickClock,
    TickSubscription,
    WorldView,
)

__all__ = [
    "AIR",
    "AgentSnapshot",
    "AgentView",
    "BlockHit",
    "BlockPos",
    "BlockState",
    "EMPTY_STACK",
    "EntityFinder",
    "EntityHit",
    "EntitySighting",
    "Goal",
    "Hit",
    "Interactor",
    "InventoryView",
    "ItemStack",
    "Miss",
    "PathOutcome",
    "PathPlanner",
    "PathRequest",
    "TickClock",
    "TickSubscription",
    "ToolChoice",
    "Vec3",
    "WorldView",
]
