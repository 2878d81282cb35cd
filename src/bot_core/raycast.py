# voxel ray traversal ("pick") for line-of-sight checks
# src/bot_core/raycast.py
"""
Ray casting over a block grid.

`pick()` walks the voxels along a ray (Amanatides & Woo traversal) and
reports the first non-air block, unless an entity bounding box is crossed
first. Every block is treated as a full cube.

This module only needs a `block_at(pos) -> BlockState` lookup, so it backs
both the packet-fed world view and the in-memory test world.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Hashable, Iterable, Optional

from contracts.types import BlockHit, BlockPos, BlockState, EntityHit, Hit, Miss, Vec3

BlockAtFn = Callable[[BlockPos], BlockState]

_EPS = 1e-12


@dataclass(frozen=True)
class EntityBox:
    """Axis-aligned bounding box of an entity that can block a ray."""

    handle: Hashable
    min_corner: Vec3
    max_corner: Vec3

    @classmethod
    def around(
        cls,
        handle: Hashable,
        feet: Vec3,
        width: float = 0.6,
        height: float = 1.8,
    ) -> "EntityBox":
        half = width / 2.0
        return cls(
            handle=handle,
            min_corner=Vec3(feet.x - half, feet.y, feet.z - half),
            max_corner=Vec3(feet.x + half, feet.y + height, feet.z + half),
        )


def ray_box_distance(origin: Vec3, direction: Vec3, box: EntityBox) -> Optional[float]:
    """Distance along a unit `direction` to where the ray enters `box`, or None."""
    t_near = 0.0
    t_far = math.inf
    for o, d, lo, hi in (
        (origin.x, direction.x, box.min_corner.x, box.max_corner.x),
        (origin.y, direction.y, box.min_corner.y, box.max_corner.y),
        (origin.z, direction.z, box.min_corner.z, box.max_corner.z),
    ):
        if abs(d) < _EPS:
            if o < lo or o > hi:
                return None
            continue
        t1 = (lo - o) / d
        t2 = (hi - o) / d
        if t1 > t2:
            t1, t2 = t2, t1
        t_near = max(t_near, t1)
        t_far = min(t_far, t2)
        if t_near > t_far:
            return None
    return t_near


def _axis_setup(o: float, d: float, cell: int) -> tuple[int, float, float]:
    """(step, t to first boundary, t between boundaries) along one axis."""
    if d > _EPS:
        return 1, (cell + 1 - o) / d, 1.0 / d
    if d < -_EPS:
        return -1, (cell - o) / d, -1.0 / d
    return 0, math.inf, math.inf


def first_block_hit(
    origin: Vec3,
    direction: Vec3,
    max_range: float,
    block_at: BlockAtFn,
) -> Optional[BlockHit]:
    """First non-air block along the ray within `max_range`, or None."""
    direction = direction.normalized()
    start = origin.to_block_pos_floor()
    x, y, z = start.x, start.y, start.z

    step_x, t_max_x, t_delta_x = _axis_setup(origin.x, direction.x, x)
    step_y, t_max_y, t_delta_y = _axis_setup(origin.y, direction.y, y)
    step_z, t_max_z, t_delta_z = _axis_setup(origin.z, direction.z, z)

    t = 0.0
    while t <= max_range:
        current = BlockPos(x, y, z)
        if not block_at(current).is_air:
            return BlockHit(pos=current, distance=t)

        if step_x == step_y == step_z == 0:
            # Zero direction: only the origin cell can be hit.
            return None

        if t_max_x < t_max_y and t_max_x < t_max_z:
            x += step_x
            t = t_max_x
            t_max_x += t_delta_x
        elif t_max_y < t_max_z:
            y += step_y
            t = t_max_y
            t_max_y += t_delta_y
        else:
            z += step_z
            t = t_max_z
            t_max_z += t_delta_z

    return None


def pick(
    origin: Vec3,
    direction: Vec3,
    max_range: float,
    block_at: BlockAtFn,
    entities: Iterable[EntityBox] = (),
) -> Hit:
    """
    Resolve what the ray from `origin` sees first within `max_range`.

    An entity wins only if the ray enters its box strictly before the block
    hit (or there is no block hit).
    """
    direction = direction.normalized()
    block_hit = first_block_hit(origin, direction, max_range, block_at)
    limit = block_hit.distance if block_hit is not None else max_range

    nearest_entity: Optional[EntityHit] = None
    for box in entities:
        dist = ray_box_distance(origin, direction, box)
        if dist is None or dist > max_range:
            continue
        if block_hit is not None and dist >= limit:
            continue
        if nearest_entity is None or dist < nearest_entity.distance:
            nearest_entity = EntityHit(handle=box.handle, distance=dist)

    if nearest_entity is not None:
        return nearest_entity
    if block_hit is not None:
        return block_hit
    return Miss(distance=max_range)
