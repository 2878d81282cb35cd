# src/bot_core/views.py
"""
Collaborator adapters over a WorldTracker.

TrackedWorld     -> WorldView, EntityFinder, AgentView
TrackedInventory -> InventoryView

These are the production implementations of the engine's collaborator
protocols when running against a live PacketClient. Tests mostly use the
in-memory fakes in bot_core.testing.fakes instead.
"""

from __future__ import annotations

from typing import Iterable, List

from contracts.collaborators import EntitySighting
from contracts.types import AgentSnapshot, BlockPos, BlockState, Hit, ItemStack, ToolChoice, Vec3

from .config import ScoringTables
from .inventory import HOTBAR_SIZE, best_tool_in_hotbar, best_weapon_in_hotbar
from .net import PacketClient
from .raycast import EntityBox, pick
from .world_tracker import TrackedEntity, WorldTracker


def nearest_items(
    entities: Iterable[TrackedEntity],
    origin: Vec3,
    kind: str,
    max_distance: float,
) -> List[TrackedEntity]:
    """Dropped items of `kind` within `max_distance` of `origin`, nearest first."""
    max_sq = max_distance * max_distance
    found = []
    for entity in entities:
        if entity.kind != "item" or entity.item != kind:
            continue
        dist_sq = entity.position.distance_squared_to(origin)
        if dist_sq <= max_sq:
            found.append((dist_sq, entity.entity_id, entity))
    found.sort(key=lambda row: (row[0], row[1]))
    return [entity for _, _, entity in found]


class TrackedWorld:
    """Block, entity and agent queries answered from tracked packet state."""

    def __init__(self, tracker: WorldTracker) -> None:
        self._tracker = tracker

    # WorldView

    def get_block_state(self, pos: BlockPos) -> BlockState:
        return self._tracker.block_at(pos)

    def ray_cast(self, origin: Vec3, direction: Vec3, max_range: float) -> Hit:
        # Dropped items never obstruct the view; players and mobs do.
        boxes = [
            EntityBox.around(entity.entity_id, entity.position)
            for entity in self._tracker.entities()
            if entity.kind != "item"
        ]
        return pick(origin, direction, max_range, self._tracker.block_at, boxes)

    # EntityFinder

    def nearest(self, kind: str, max_distance: float, limit: int) -> List[EntitySighting]:
        items = nearest_items(self._tracker.entities(), self._tracker.position, kind, max_distance)
        return [(entity.entity_id, entity.position) for entity in items[:limit]]

    # AgentView

    def snapshot(self) -> AgentSnapshot:
        return self._tracker.build_snapshot()


class TrackedInventory:
    """
    Inventory reads from tracked slots; hotbar selection goes out as a
    `held_item_change` packet.
    """

    def __init__(
        self,
        tracker: WorldTracker,
        client: PacketClient,
        scoring: ScoringTables,
    ) -> None:
        self._tracker = tracker
        self._client = client
        self._scoring = scoring

    def slots(self) -> List[ItemStack]:
        return self._tracker.player_slots()

    def hotbar(self) -> List[ItemStack]:
        return self._tracker.hotbar()

    def best_tool_slot(self, block: BlockState) -> ToolChoice:
        return best_tool_in_hotbar(self.hotbar(), block, self._scoring.tools)

    def best_weapon_slot(self) -> int:
        return best_weapon_in_hotbar(self.hotbar(), self._scoring.weapons)

    def select_hotbar_slot(self, index: int) -> None:
        if not 0 <= index < HOTBAR_SIZE:
            raise ValueError(f"hotbar slot out of range: {index}")
        if index == self._tracker.selected_slot:
            return
        self._client.send_packet("held_item_change", {"slot": index})
        self._tracker.set_selected_slot(index)


__all__ = ["TrackedInventory", "TrackedWorld", "nearest_items"]
