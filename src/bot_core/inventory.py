# src/bot_core/inventory.py
"""
Inventory helpers: item counting plus tool and weapon scoring.

Scoring uses tables injected by the caller (see bot_core.config.ScoringTables);
nothing in this module reads global state.
"""

from __future__ import annotations

from typing import Mapping, Sequence, Tuple

from contracts.types import BlockState, ItemStack, ToolChoice

from .config import ToolSpec

HOTBAR_SIZE = 9

# Bare-hand stats.
FIST_DAMAGE = 1.0
FIST_ATTACK_SPEED = 4.0
# Non-weapon items with durability score below the fist so we don't wear
# them out hitting things.
DAMAGEABLE_NON_WEAPON_DAMAGE = 0.8

# Damage immunity lasts half a second, so only 2 hits/s ever land.
MAX_EFFECTIVE_ATTACKS_PER_SECOND = 2.0


def count_items(slots: Sequence[ItemStack], kind: str) -> int:
    """Total number of `kind` across `slots`."""
    return sum(stack.count for stack in slots if not stack.is_empty and stack.item == kind)


# ---------------------------------------------------------------------------
# Weapons
# ---------------------------------------------------------------------------


def damage_and_attack_speed(
    item: ItemStack,
    weapons: Mapping[str, Tuple[float, float]],
) -> Tuple[float, float]:
    """(damage, attack_speed) for `item`; empty slots count as a fist."""
    if not item.is_empty and item.item in weapons:
        return weapons[item.item]
    if not item.is_empty and item.damageable:
        return DAMAGEABLE_NON_WEAPON_DAMAGE, FIST_ATTACK_SPEED
    return FIST_DAMAGE, FIST_ATTACK_SPEED


def dps(item: ItemStack, weapons: Mapping[str, Tuple[float, float]]) -> float:
    """Raw damage per second, ignoring damage immunity."""
    damage, attack_speed = damage_and_attack_speed(item, weapons)
    return damage * attack_speed


def dps_capped(item: ItemStack, weapons: Mapping[str, Tuple[float, float]]) -> float:
    """Damage per second with attack speed capped by damage immunity."""
    damage, attack_speed = damage_and_attack_speed(item, weapons)
    return damage * min(attack_speed, MAX_EFFECTIVE_ATTACKS_PER_SECOND)


def dps_fancy(item: ItemStack, weapons: Mapping[str, Tuple[float, float]]) -> float:
    """
    DPS score that favours faster weapons.

    Averages raw and capped attack speed, then adds a bonus proportional to
    the capped speed.
    """
    damage, attack_speed = damage_and_attack_speed(item, weapons)
    capped = min(attack_speed, MAX_EFFECTIVE_ATTACKS_PER_SECOND)
    score = damage * (attack_speed + capped) / 2.0
    return score * (1.0 + capped / 10.0)


def best_weapon_in_hotbar(
    hotbar: Sequence[ItemStack],
    weapons: Mapping[str, Tuple[float, float]],
) -> int:
    """Hotbar index with the highest dps_fancy score (first one on ties)."""
    if not hotbar:
        raise ValueError("best_weapon_in_hotbar needs a non-empty hotbar")
    best_index = 0
    best_score = dps_fancy(hotbar[0], weapons)
    for index, stack in enumerate(hotbar[1:], start=1):
        score = dps_fancy(stack, weapons)
        if score > best_score:
            best_index, best_score = index, score
    return best_index


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


def mining_progress_per_tick(
    item: ItemStack,
    block: BlockState,
    tools: Mapping[str, ToolSpec],
) -> float:
    """
    Fraction of `block` broken per tick when holding `item`.

    Vanilla formula: speed / destroy_time / 30 when the block can be
    harvested with this item, / 100 otherwise. Matching tool categories use
    the table speed; everything else mines at hand speed.
    """
    if block.is_air or not block.is_breakable:
        return 0.0
    if block.destroy_time == 0.0:
        return 1.0

    spec = tools.get(item.item) if not item.is_empty else None
    matches = spec is not None and block.tool is not None and spec.category == block.tool
    speed = spec.speed if matches else 1.0
    harvestable = matches or not block.requires_tool

    return speed / block.destroy_time / (30.0 if harvestable else 100.0)


def best_tool_in_hotbar(
    hotbar: Sequence[ItemStack],
    block: BlockState,
    tools: Mapping[str, ToolSpec],
) -> ToolChoice:
    """Hotbar slot that breaks `block` fastest (first one on ties)."""
    if not hotbar:
        raise ValueError("best_tool_in_hotbar needs a non-empty hotbar")
    best = ToolChoice(index=0, percentage_per_tick=mining_progress_per_tick(hotbar[0], block, tools))
    for index, stack in enumerate(hotbar[1:], start=1):
        progress = mining_progress_per_tick(stack, block, tools)
        if progress > best.percentage_per_tick:
            best = ToolChoice(index=index, percentage_per_tick=progress)
    return best


__all__ = [
    "HOTBAR_SIZE",
    "best_tool_in_hotbar",
    "best_weapon_in_hotbar",
    "count_items",
    "damage_and_attack_speed",
    "dps",
    "dps_capped",
    "dps_fancy",
    "mining_progress_per_tick",
]
