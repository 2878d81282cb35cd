# core value types: positions, block states, stacks, hits, snapshots
# src/contracts/types.py
"""
Shared value types for the interaction retry engine.

Everything in this module is immutable once created. Collaborators
(path planner, world view, inventory view, entity finder) exchange these
types with the engine; nothing here performs I/O or holds world state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Hashable, Tuple, Union


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Vec3:
    """Continuous position or direction in world space."""

    x: float
    y: float
    z: float

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def scale(self, factor: float) -> "Vec3":
        return Vec3(self.x * factor, self.y * factor, self.z * factor)

    def dot(self, other: "Vec3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def length_squared(self) -> float:
        return self.dot(self)

    def length(self) -> float:
        return math.sqrt(self.length_squared())

    def normalized(self) -> "Vec3":
        """Unit vector in the same direction; the zero vector stays zero."""
        length = self.length()
        if length == 0.0:
            return Vec3(0.0, 0.0, 0.0)
        return self.scale(1.0 / length)

    def distance_squared_to(self, other: "Vec3") -> float:
        return (self - other).length_squared()

    def to_block_pos_floor(self) -> "BlockPos":
        return BlockPos(math.floor(self.x), math.floor(self.y), math.floor(self.z))

    def to_block_pos_ceil(self) -> "BlockPos":
        return BlockPos(math.ceil(self.x), math.ceil(self.y), math.ceil(self.z))


@dataclass(frozen=True, order=True)
class BlockPos:
    """
    Integer block coordinate.

    Direction helpers follow the usual voxel-game convention:
    north is -z, south is +z, east is +x, west is -x.
    """

    x: int
    y: int
    z: int

    def offset(self, dx: int = 0, dy: int = 0, dz: int = 0) -> "BlockPos":
        return BlockPos(self.x + dx, self.y + dy, self.z + dz)

    def up(self, n: int = 1) -> "BlockPos":
        return self.offset(dy=n)

    def down(self, n: int = 1) -> "BlockPos":
        return self.offset(dy=-n)

    def north(self, n: int = 1) -> "BlockPos":
        return self.offset(dz=-n)

    def south(self, n: int = 1) -> "BlockPos":
        return self.offset(dz=n)

    def east(self, n: int = 1) -> "BlockPos":
        return self.offset(dx=n)

    def west(self, n: int = 1) -> "BlockPos":
        return self.offset(dx=-n)

    def __sub__(self, other: "BlockPos") -> "BlockPos":
        return BlockPos(self.x - other.x, self.y - other.y, self.z - other.z)

    def length_squared(self) -> int:
        return self.x * self.x + self.y * self.y + self.z * self.z

    def distance_squared_to(self, other: "BlockPos") -> int:
        return (self - other).length_squared()

    def center(self) -> Vec3:
        return Vec3(self.x + 0.5, self.y + 0.5, self.z + 0.5)

    def to_vec3_floored(self) -> Vec3:
        return Vec3(float(self.x), float(self.y), float(self.z))

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.x, self.y, self.z)


# ---------------------------------------------------------------------------
# Blocks and items
# ---------------------------------------------------------------------------

AIR_NAMES = frozenset({"air", "minecraft:air", "cave_air", "minecraft:cave_air",
                       "void_air", "minecraft:void_air"})


@dataclass(frozen=True)
class BlockState:
    """
    Minimal block description the engine needs.

    destroy_time:
        Hardness in the vanilla sense. Negative values mark blocks that can
        never be broken (bedrock, barriers, portal frames).
    tool:
        Tool category that mines this block efficiently ("pickaxe", "axe",
        "shovel", "hoe", "shears", "sword") or None.
    requires_tool:
        True when the block drops nothing unless mined with `tool`.
    """

    name: str
    destroy_time: float = 1.0
    tool: str | None = None
    requires_tool: bool = False

    @property
    def is_air(self) -> bool:
        return self.name in AIR_NAMES

    @property
    def is_breakable(self) -> bool:
        return self.destroy_time >= 0.0


AIR = BlockState(name="minecraft:air", destroy_time=0.0)


@dataclass(frozen=True)
class ItemStack:
    """One inventory slot. `count == 0` means the slot is empty."""

    item: str = ""
    count: int = 0
    damageable: bool = False

    @property
    def is_empty(self) -> bool:
        return self.count <= 0 or not self.item


EMPTY_STACK = ItemStack()


@dataclass(frozen=True)
class ToolChoice:
    """Hotbar index of the best tool and how much of the block it breaks per tick."""

    index: int
    percentage_per_tick: float


# ---------------------------------------------------------------------------
# Ray cast results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BlockHit:
    pos: BlockPos
    distance: float


@dataclass(frozen=True)
class EntityHit:
    handle: Hashable
    distance: float


@dataclass(frozen=True)
class Miss:
    """Nothing within range along the ray."""

    distance: float


Hit = Union[BlockHit, EntityHit, Miss]


# ---------------------------------------------------------------------------
# Agent / planner exchange types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AgentSnapshot:
    """
    Read-only view of the agent at one instant.

    Snapshots are cheap to build and must be re-sampled after every
    suspension point (tick wait or path wait); never keep one across a tick.
    """

    tick: int
    position: Vec3
    eye_position: Vec3
    yaw: float = 0.0
    pitch: float = 0.0
    inventory: Tuple[ItemStack, ...] = ()


class PathOutcome(Enum):
    """How a path-follow attempt ended."""

    REACHED = "reached"
    GAVE_UP = "gave_up"


@dataclass(frozen=True)
class PathRequest:
    """
    A goal handed to the path planner plus its timeout bounds.

    The planner owns timeout enforcement; `max_timeout_s` is the hard upper
    bound after which it must report GAVE_UP.
    """

    goal: Any
    min_timeout_s: float = 2.0
    max_timeout_s: float = 10.0

    def __post_init__(self) -> None:
        if self.min_timeout_s < 0 or self.max_timeout_s <= 0:
            raise ValueError(
                f"PathRequest timeouts must be positive, got "
                f"min={self.min_timeout_s!r} max={self.max_timeout_s!r}"
            )
        if self.min_timeout_s > self.max_timeout_s:
            raise ValueError(
                f"PathRequest min_timeout_s ({self.min_timeout_s}) exceeds "
                f"max_timeout_s ({self.max_timeout_s})"
            )


__all__ = [
    "AIR",
    "AIR_NAMES",
    "AgentSnapshot",
    "BlockHit",
    "BlockPos",
    "BlockState",
    "EMPTY_STACK",
    "EntityHit",
    "Hit",
    "ItemStack",
    "Miss",
    "PathOutcome",
    "PathRequest",
    "ToolChoice",
    "Vec3",
]
