# tests/test_raycast.py
"""
Unit tests for bot_core.raycast (voxel traversal and entity picking).
"""

from __future__ import annotations

import pytest

from bot_core.raycast import EntityBox, first_block_hit, pick, ray_box_distance
from contracts.types import AIR, BlockHit, BlockPos, BlockState, EntityHit, Miss, Vec3


STONE = BlockState(name="minecraft:stone")


def _world(*positions: BlockPos):
    solid = set(positions)
    return lambda pos: STONE if pos in solid else AIR


def test_first_block_hit_along_axis() -> None:
    block_at = _world(BlockPos(5, 64, 0))
    hit = first_block_hit(Vec3(0.5, 64.5, 0.5), Vec3(1, 0, 0), 10.0, block_at)

    assert hit is not None
    assert hit.pos == BlockPos(5, 64, 0)
    assert hit.distance == pytest.approx(4.5)


def test_first_block_hit_respects_range() -> None:
    block_at = _world(BlockPos(5, 64, 0))
    assert first_block_hit(Vec3(0.5, 64.5, 0.5), Vec3(1, 0, 0), 3.0, block_at) is None


def test_origin_inside_block_hits_immediately() -> None:
    block_at = _world(BlockPos(0, 64, 0))
    hit = first_block_hit(Vec3(0.5, 64.5, 0.5), Vec3(0, -1, 0), 5.0, block_at)

    assert hit == BlockHit(pos=BlockPos(0, 64, 0), distance=0.0)


def test_diagonal_ray_negative_direction() -> None:
    block_at = _world(BlockPos(-3, 62, -3))
    origin = Vec3(0.5, 65.5, 0.5)
    target = BlockPos(-3, 62, -3).center()
    hit = first_block_hit(origin, target - origin, 10.0, block_at)

    assert hit is not None
    assert hit.pos == BlockPos(-3, 62, -3)


def test_ray_box_distance() -> None:
    box = EntityBox.around("zombie", Vec3(2.5, 64.0, 0.5))
    dist = ray_box_distance(Vec3(0.5, 64.5, 0.5), Vec3(1, 0, 0), box)
    assert dist == pytest.approx(1.7)

    assert ray_box_distance(Vec3(0.5, 64.5, 0.5), Vec3(-1, 0, 0), box) is None


def test_pick_entity_in_front_of_block() -> None:
    block_at = _world(BlockPos(5, 64, 0))
    box = EntityBox.around("zombie", Vec3(2.5, 64.0, 0.5))

    hit = pick(Vec3(0.5, 64.5, 0.5), Vec3(1, 0, 0), 10.0, block_at, [box])
    assert isinstance(hit, EntityHit)
    assert hit.handle == "zombie"


def test_pick_block_in_front_of_entity() -> None:
    block_at = _world(BlockPos(2, 64, 0))
    box = EntityBox.around("zombie", Vec3(3.5, 64.0, 0.5))

    hit = pick(Vec3(0.5, 64.5, 0.5), Vec3(1, 0, 0), 10.0, block_at, [box])
    assert isinstance(hit, BlockHit)
    assert hit.pos == BlockPos(2, 64, 0)


def test_pick_miss() -> None:
    hit = pick(Vec3(0.5, 64.5, 0.5), Vec3(0, 0, 1), 4.0, _world())
    assert hit == Miss(distance=4.0)
