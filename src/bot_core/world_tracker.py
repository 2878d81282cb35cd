# track blocks/entities/inventory from packets
# src/bot_core/world_tracker.py
"""
World tracker for the retry engine.

Consumes normalized packet / IPC events from a PacketClient and maintains
a raw, incrementally updated view of the parts of the world the engine
reads: block states, dropped item entities, the player's position and the
player inventory.

Rules:
- Never make decisions here; this module only mirrors what the server said.
- One event type drives the TickBroadcaster (if any), so tick-synchronized
  loops wake up after the tracker has applied the tick. By default that is
  "time_update". The 1.7.10 server only sends it about once per second
  (every 20 game ticks), so transports that can report real client ticks
  should emit "client_tick" and build the tracker with
  tick_event="client_tick".
- Malformed packets are ignored, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from contracts.types import AIR, AgentSnapshot, BlockPos, BlockState, EMPTY_STACK, ItemStack, Vec3

from .config import TICK_EVENTS
from .geometry import DEFAULT_EYE_HEIGHT
from .inventory import HOTBAR_SIZE
from .net import PacketClient
from .tick import TickBroadcaster


log = logging.getLogger(__name__)


# Player window layout (window id 0):
#   0 crafting output, 1-4 crafting grid, 5-8 armor,
#   9-35 main inventory, 36-44 hotbar.
PLAYER_WINDOW_SIZE = 45
PLAYER_SLOTS = range(9, 45)
HOTBAR_SLOTS = range(36, 36 + HOTBAR_SIZE)


@dataclass
class TrackedEntity:
    """Raw entity data as captured from spawn/move packets."""

    entity_id: int
    kind: str  # "item", "player", "mob", ...
    x: float
    y: float
    z: float
    # Item id for dropped items ("minecraft:cobblestone"), else None.
    item: Optional[str] = None

    @property
    def position(self) -> Vec3:
        return Vec3(self.x, self.y, self.z)


@dataclass
class _PlayerState:
    """Minimal tracked state for the local player."""

    x: float = 0.0
    y: float = 64.0
    z: float = 0.0
    yaw: float = 0.0
    pitch: float = 0.0
    on_ground: bool = True
    selected_slot: int = 0


class WorldTracker:
    """
    Maintains an incrementally updated raw view of the world.

    PacketClient implementations must normalize wire data into logically
    named event types:

        - "time_update"        -> world time (about once per second on 1.7.10)
        - "client_tick"        -> one client game tick (optional)
        - "position_update"    -> player position/rotation
        - "block_change"       -> one block changed
        - "multi_block_change" -> several blocks changed
        - "spawn_entity"       -> entity created
        - "entity_move"        -> entity moved (absolute position)
        - "destroy_entities"   -> entities destroyed
        - "set_slot"           -> single inventory slot changed
        - "window_items"       -> full inventory snapshot
        - "held_item_change"   -> server changed the selected hotbar slot

    Blocks the tracker has never heard of read as air.

    `tick_event` picks which of "time_update" / "client_tick" publishes
    ticks; the other one never does.
    """

    def __init__(
        self,
        client: PacketClient,
        ticks: Optional[TickBroadcaster] = None,
        *,
        eye_height: float = DEFAULT_EYE_HEIGHT,
        tick_event: str = "time_update",
    ) -> None:
        if tick_event not in TICK_EVENTS:
            raise ValueError(f"tick_event must be one of {TICK_EVENTS}, got {tick_event!r}")
        self._client = client
        self._ticks = ticks
        self._tick_event = tick_event
        self._eye_height = eye_height

        self._tick: int = 0
        self._player = _PlayerState()

        # Sparse block storage; only positions the server told us about.
        self._blocks: Dict[Tuple[int, int, int], BlockState] = {}

        # Entities keyed by numeric ID
        self._entities: Dict[int, TrackedEntity] = {}

        self._slots: List[ItemStack] = [EMPTY_STACK] * PLAYER_WINDOW_SIZE

        self._register_handlers()

    # ------------------------------------------------------------------
    # Packet wiring
    # ------------------------------------------------------------------

    def _register_handlers(self) -> None:
        self._client.on_packet("time_update", self._handle_time_update)
        self._client.on_packet("client_tick", self._handle_client_tick)
        self._client.on_packet("position_update", self._handle_position_update)
        self._client.on_packet("block_change", self._handle_block_change)
        self._client.on_packet("multi_block_change", self._handle_multi_block_change)
        self._client.on_packet("spawn_entity", self._handle_spawn_entity)
        self._client.on_packet("entity_move", self._handle_entity_move)
        self._client.on_packet("destroy_entities", self._handle_destroy_entities)
        self._client.on_packet("set_slot", self._handle_set_slot)
        self._client.on_packet("window_items", self._handle_window_items)
        self._client.on_packet("held_item_change", self._handle_held_item_change)

    # ------------------------------------------------------------------
    # Packet handlers
    # ------------------------------------------------------------------

    def _handle_time_update(self, pkt: Mapping[str, Any]) -> None:
        """
        Update world tick; wakes tick subscribers when tick_event is
        "time_update".

        Expected fields:
            - "tick" or "time": int (optional; otherwise the tick advances by one)
        """
        value = pkt.get("tick", pkt.get("time"))
        if value is None:
            self._tick += 1
        else:
            try:
                self._tick = int(value)
            except (TypeError, ValueError):
                # Leave tick unchanged on garbage input.
                return

        if self._tick_event == "time_update":
            self._publish_tick()

    def _handle_client_tick(self, pkt: Mapping[str, Any]) -> None:
        if self._tick_event == "client_tick":
            self._publish_tick()

    def _publish_tick(self) -> None:
        if self._ticks is not None:
            self._ticks.publish(self._tick)

    def _handle_position_update(self, pkt: Mapping[str, Any]) -> None:
        """
        Update player position/rotation.

        Expected fields:
            - "x", "y", "z": float
            - "yaw", "pitch": float (optional)
            - "on_ground": bool (optional)
        """
        try:
            x = float(pkt.get("x", self._player.x))
            y = float(pkt.get("y", self._player.y))
            z = float(pkt.get("z", self._player.z))
        except (TypeError, ValueError):
            return
        self._player.x, self._player.y, self._player.z = x, y, z

        for name in ("yaw", "pitch"):
            if pkt.get(name) is None:
                continue
            try:
                setattr(self._player, name, float(pkt[name]))
            except (TypeError, ValueError):
                pass

        if "on_ground" in pkt:
            self._player.on_ground = bool(pkt["on_ground"])

    def _handle_block_change(self, pkt: Mapping[str, Any]) -> None:
        """
        Store one block state.

        Expected fields:
            - "x", "y", "z": int
            - "block": block id ("minecraft:stone")
            - "destroy_time", "tool", "requires_tool": optional block properties
        """
        parsed = _parse_block_record(pkt)
        if parsed is None:
            return
        key, state = parsed
        if state.is_air:
            self._blocks.pop(key, None)
        else:
            self._blocks[key] = state

    def _handle_multi_block_change(self, pkt: Mapping[str, Any]) -> None:
        """
        Store several block states.

        Expected fields:
            - "records": list of block_change-shaped mappings
        """
        records = pkt.get("records")
        if not isinstance(records, list):
            return
        for record in records:
            if isinstance(record, Mapping):
                self._handle_block_change(record)

    def _handle_spawn_entity(self, pkt: Mapping[str, Any]) -> None:
        """
        Track newly spawned entities.

        Expected fields:
            - "entity_id": int
            - "kind" or "type": str
            - "x", "y", "z": float
            - "item": item id, for dropped items
        """
        try:
            entity_id = int(pkt["entity_id"])
            x = float(pkt.get("x", 0.0))
            y = float(pkt.get("y", 0.0))
            z = float(pkt.get("z", 0.0))
        except (KeyError, TypeError, ValueError):
            return

        kind = pkt.get("kind", pkt.get("type", "unknown"))
        item = pkt.get("item")

        self._entities[entity_id] = TrackedEntity(
            entity_id=entity_id,
            kind=str(kind),
            x=x,
            y=y,
            z=z,
            item=str(item) if item is not None else None,
        )

    def _handle_entity_move(self, pkt: Mapping[str, Any]) -> None:
        """
        Move a tracked entity.

        Expected fields:
            - "entity_id": int
            - "x", "y", "z": float (absolute)
        """
        try:
            entity = self._entities.get(int(pkt["entity_id"]))
        except (KeyError, TypeError, ValueError):
            return
        if entity is None:
            return

        try:
            entity.x = float(pkt.get("x", entity.x))
            entity.y = float(pkt.get("y", entity.y))
            entity.z = float(pkt.get("z", entity.z))
        except (TypeError, ValueError):
            pass

    def _handle_destroy_entities(self, pkt: Mapping[str, Any]) -> None:
        """
        Remove entities that the server reports as destroyed.

        Expected fields:
            - "entity_ids": iterable of ints
        """
        ids = pkt.get("entity_ids")
        if not ids:
            return

        for raw_id in ids:
            try:
                eid = int(raw_id)
            except (TypeError, ValueError):
                continue
            self._entities.pop(eid, None)

    def _handle_set_slot(self, pkt: Mapping[str, Any]) -> None:
        """
        Update a single player window slot.

        Expected fields:
            - "slot": int
            - "item": mapping {"item", "count", "damageable"} or None
        """
        try:
            idx = int(pkt.get("slot"))
        except (TypeError, ValueError):
            return
        if not 0 <= idx < PLAYER_WINDOW_SIZE:
            return
        self._slots[idx] = _parse_stack(pkt.get("item"))

    def _handle_window_items(self, pkt: Mapping[str, Any]) -> None:
        """
        Replace the whole player window.

        Expected fields:
            - "items": list of stack mappings (one per slot)
        """
        items = pkt.get("items")
        if not isinstance(items, list):
            return

        slots = [_parse_stack(entry) for entry in items[:PLAYER_WINDOW_SIZE]]
        slots.extend([EMPTY_STACK] * (PLAYER_WINDOW_SIZE - len(slots)))
        self._slots = slots

    def _handle_held_item_change(self, pkt: Mapping[str, Any]) -> None:
        try:
            slot = int(pkt.get("slot"))
        except (TypeError, ValueError):
            return
        if 0 <= slot < HOTBAR_SIZE:
            self._player.selected_slot = slot

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def tick_event(self) -> str:
        return self._tick_event

    def attach_ticks(self, ticks: Optional[TickBroadcaster]) -> None:
        """Publish future ticks to `ticks` instead of the current broadcaster."""
        self._ticks = ticks

    @property
    def tick(self) -> int:
        """Current world tick as tracked by the server."""
        return self._tick

    @property
    def position(self) -> Vec3:
        return Vec3(self._player.x, self._player.y, self._player.z)

    @property
    def selected_slot(self) -> int:
        return self._player.selected_slot

    def set_selected_slot(self, slot: int) -> None:
        """Record a client-side hotbar selection (the server doesn't echo it)."""
        self._player.selected_slot = slot

    def block_at(self, pos: BlockPos) -> BlockState:
        return self._blocks.get(pos.as_tuple(), AIR)

    def entities(self) -> List[TrackedEntity]:
        return list(self._entities.values())

    def player_slots(self) -> List[ItemStack]:
        """Main inventory plus hotbar, in window order."""
        return [self._slots[i] for i in PLAYER_SLOTS]

    def hotbar(self) -> List[ItemStack]:
        return [self._slots[i] for i in HOTBAR_SLOTS]

    def build_snapshot(self) -> AgentSnapshot:
        """
        Build an AgentSnapshot from the current tracked state.

        The eye sits `eye_height` above the tracked feet position.
        """
        position = self.position
        return AgentSnapshot(
            tick=self._tick,
            position=position,
            eye_position=position + Vec3(0.0, self._eye_height, 0.0),
            yaw=self._player.yaw,
            pitch=self._player.pitch,
            inventory=tuple(self.player_slots()),
        )


# ---------------------------------------------------------------------------
# Packet field parsing
# ---------------------------------------------------------------------------


def _parse_block_record(
    pkt: Mapping[str, Any],
) -> Optional[Tuple[Tuple[int, int, int], BlockState]]:
    try:
        key = (int(pkt["x"]), int(pkt["y"]), int(pkt["z"]))
        name = str(pkt["block"])
        destroy_time = float(pkt.get("destroy_time", 1.0))
    except (KeyError, TypeError, ValueError):
        log.debug("ignoring malformed block record %r", pkt)
        return None

    tool = pkt.get("tool")
    return key, BlockState(
        name=name,
        destroy_time=destroy_time,
        tool=str(tool) if tool is not None else None,
        requires_tool=bool(pkt.get("requires_tool", False)),
    )


def _parse_stack(entry: Any) -> ItemStack:
    """Stack mapping -> ItemStack; anything else is an empty slot."""
    if not isinstance(entry, Mapping):
        return EMPTY_STACK
    try:
        count = int(entry.get("count", 1))
    except (TypeError, ValueError):
        return EMPTY_STACK
    item = entry.get("item")
    if not item or count <= 0:
        return EMPTY_STACK
    return ItemStack(item=str(item), count=count, damageable=bool(entry.get("damageable", False)))


__all__ = [
    "HOTBAR_SLOTS",
    "PLAYER_SLOTS",
    "PLAYER_WINDOW_SIZE",
    "TICK_EVENTS",
    "TrackedEntity",
    "WorldTracker",
]
