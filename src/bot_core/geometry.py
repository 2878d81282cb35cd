# src/bot_core/geometry.py
"""
Small geometric helpers shared by goals, reachability, and the interactor.

Conventions:
- Feet positions are block coordinates; the eye sits `eye_height` above the
  feet, centered in the block on x/z.
- Yaw 0 faces +z (south) and grows clockwise seen from above; pitch is
  positive when looking down.
"""

from __future__ import annotations

import math
from typing import Tuple

from contracts.types import BlockPos, Vec3

# Standing eye height of a player-sized agent.
DEFAULT_EYE_HEIGHT = 1.62

_SQRT_2 = math.sqrt(2.0)


def eye_position_at(feet: BlockPos, eye_height: float = DEFAULT_EYE_HEIGHT) -> Vec3:
    """Eye position for an agent standing with its feet in block `feet`."""
    return feet.to_vec3_floored() + Vec3(0.5, eye_height, 0.5)


def direction_looking_at(origin: Vec3, target: Vec3) -> Vec3:
    """Unit vector from `origin` toward `target`."""
    return (target - origin).normalized()


def look_angles(direction: Vec3) -> Tuple[float, float]:
    """(yaw, pitch) in degrees for a look direction."""
    horizontal = math.hypot(direction.x, direction.z)
    yaw = math.degrees(math.atan2(-direction.x, direction.z))
    pitch = math.degrees(-math.atan2(direction.y, horizontal))
    return yaw, pitch


def view_vector(yaw: float, pitch: float) -> Vec3:
    """Inverse of look_angles()."""
    yaw_r = math.radians(yaw)
    pitch_r = math.radians(pitch)
    cos_pitch = math.cos(pitch_r)
    return Vec3(
        -math.sin(yaw_r) * cos_pitch,
        -math.sin(pitch_r),
        math.cos(yaw_r) * cos_pitch,
    )


def block_distance(a: BlockPos, b: BlockPos) -> float:
    """
    Walking-distance estimate between two blocks.

    Octile distance on the x/z plane (diagonal steps cost sqrt(2)) plus the
    absolute height difference. Admissible for a planner whose cheapest move
    is one block.
    """
    dx = abs(a.x - b.x)
    dz = abs(a.z - b.z)
    diagonal = min(dx, dz)
    straight = max(dx, dz) - diagonal
    return diagonal * _SQRT_2 + straight + abs(a.y - b.y)
