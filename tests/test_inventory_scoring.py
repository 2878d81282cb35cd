# tests/test_inventory_scoring.py
"""
Unit tests for bot_core.inventory (item counting, weapon and tool scoring).
"""

from __future__ import annotations

import pytest

from bot_core.config import ToolSpec
from bot_core.inventory import (
    best_tool_in_hotbar,
    best_weapon_in_hotbar,
    count_items,
    damage_and_attack_speed,
    dps,
    dps_capped,
    dps_fancy,
    mining_progress_per_tick,
)
from contracts.types import AIR, BlockState, EMPTY_STACK, ItemStack


WEAPONS = {
    "minecraft:iron_sword": (6.0, 1.6),
    "minecraft:iron_axe": (9.0, 0.9),
    "minecraft:iron_hoe": (1.0, 3.0),
}
TOOLS = {
    "minecraft:wooden_pickaxe": ToolSpec("pickaxe", 2.0),
    "minecraft:iron_pickaxe": ToolSpec("pickaxe", 6.0),
    "minecraft:iron_shovel": ToolSpec("shovel", 6.0),
}

STONE = BlockState(name="minecraft:stone", destroy_time=1.5, tool="pickaxe", requires_tool=True)
DIRT = BlockState(name="minecraft:dirt", destroy_time=0.5, tool="shovel")
TORCH = BlockState(name="minecraft:torch", destroy_time=0.0)
BEDROCK = BlockState(name="minecraft:bedrock", destroy_time=-1.0)


def test_count_items_sums_matching_stacks() -> None:
    slots = [
        ItemStack("minecraft:cobblestone", 10),
        EMPTY_STACK,
        ItemStack("minecraft:dirt", 4),
        ItemStack("minecraft:cobblestone", 3),
    ]
    assert count_items(slots, "minecraft:cobblestone") == 13
    assert count_items(slots, "minecraft:sand") == 0
    assert count_items([], "minecraft:dirt") == 0


def test_damage_table_lookup_and_fallbacks() -> None:
    assert damage_and_attack_speed(ItemStack("minecraft:iron_sword", 1), WEAPONS) == (6.0, 1.6)
    assert damage_and_attack_speed(EMPTY_STACK, WEAPONS) == (1.0, 4.0)
    assert damage_and_attack_speed(ItemStack("minecraft:dirt", 64), WEAPONS) == (1.0, 4.0)
    assert damage_and_attack_speed(ItemStack("minecraft:shears", 1, damageable=True), WEAPONS) == (0.8, 4.0)


def test_dps_variants() -> None:
    sword = ItemStack("minecraft:iron_sword", 1)

    assert dps(sword, WEAPONS) == pytest.approx(9.6)
    assert dps_capped(sword, WEAPONS) == pytest.approx(9.6)
    assert dps_capped(EMPTY_STACK, WEAPONS) == pytest.approx(2.0)
    # (6 * (1.6 + 1.6) / 2) * (1 + 0.16)
    assert dps_fancy(sword, WEAPONS) == pytest.approx(11.136)


def test_best_weapon_prefers_sword_over_axe_and_fist() -> None:
    hotbar = [
        EMPTY_STACK,
        ItemStack("minecraft:iron_axe", 1),
        ItemStack("minecraft:iron_sword", 1),
        ItemStack("minecraft:iron_hoe", 1),
    ]
    assert best_weapon_in_hotbar(hotbar, WEAPONS) == 2


def test_best_weapon_first_index_on_ties() -> None:
    hotbar = [EMPTY_STACK, EMPTY_STACK, ItemStack("minecraft:dirt", 1)]
    assert best_weapon_in_hotbar(hotbar, WEAPONS) == 0


def test_mining_progress_formula() -> None:
    pick = ItemStack("minecraft:iron_pickaxe", 1, damageable=True)
    shovel = ItemStack("minecraft:iron_shovel", 1, damageable=True)

    assert mining_progress_per_tick(pick, STONE, TOOLS) == pytest.approx(6.0 / 1.5 / 30.0)
    # wrong tool on a block that needs the right one
    assert mining_progress_per_tick(shovel, STONE, TOOLS) == pytest.approx(1.0 / 1.5 / 100.0)
    assert mining_progress_per_tick(EMPTY_STACK, DIRT, TOOLS) == pytest.approx(1.0 / 0.5 / 30.0)
    assert mining_progress_per_tick(EMPTY_STACK, TORCH, TOOLS) == 1.0
    assert mining_progress_per_tick(pick, BEDROCK, TOOLS) == 0.0
    assert mining_progress_per_tick(pick, AIR, TOOLS) == 0.0


def test_best_tool_picks_fastest() -> None:
    hotbar = [
        ItemStack("minecraft:dirt", 5),
        ItemStack("minecraft:wooden_pickaxe", 1, damageable=True),
        ItemStack("minecraft:iron_shovel", 1, damageable=True),
        ItemStack("minecraft:iron_pickaxe", 1, damageable=True),
    ]

    assert best_tool_in_hotbar(hotbar, STONE, TOOLS).index == 3
    dirt_choice = best_tool_in_hotbar(hotbar, DIRT, TOOLS)
    assert dirt_choice.index == 2
    assert dirt_choice.percentage_per_tick == pytest.approx(6.0 / 0.5 / 30.0)


def test_best_tool_first_index_on_ties() -> None:
    hotbar = [EMPTY_STACK, ItemStack("minecraft:dirt", 1), EMPTY_STACK]
    assert best_tool_in_hotbar(hotbar, DIRT, TOOLS).index == 0


def test_empty_hotbar_is_rejected() -> None:
    with pytest.raises(ValueError):
        best_tool_in_hotbar([], STONE, TOOLS)
    with pytest.raises(ValueError):
        best_weapon_in_hotbar([], WEAPONS)
