# tests/test_engine_core.py
"""
Integration tests for EngineCore over FakePacketClient.

The retrieve tests run the blocking call on a worker thread while the test
thread plays the server: it feeds packets and time_update ticks.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional

import pytest

from bot_core import EngineCore, OperationAborted, RetrievalOutcome
from bot_core.config import EngineConfig, ScoringTables, ToolSpec
from bot_core.errors import EngineError
from bot_core.testing.fakes import FakePacketClient, FakePlanner
from contracts.types import BlockPos, Vec3
from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent


KIND = "minecraft:cobblestone"


def _core(
    planner: FakePlanner,
    client: Optional[FakePacketClient] = None,
    bus: Optional[EventBus] = None,
):
    client = client or FakePacketClient()
    scoring = ScoringTables(tools={"minecraft:iron_pickaxe": ToolSpec("pickaxe", 6.0)})
    core = EngineCore(client, planner, config=EngineConfig(), scoring=scoring, bus=bus)
    core.connect()
    client.emit("position_update", {"x": 0.5, "y": 64.0, "z": 0.5})
    return core, client


def _run_in_thread(fn: Callable[[], object]):
    result: Dict[str, object] = {}

    def target() -> None:
        try:
            result["value"] = fn()
        except Exception as exc:  # surfaced by the assertions below
            result["error"] = exc

    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread, result


def _tick_until_done(client: FakePacketClient, thread: threading.Thread, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while thread.is_alive() and time.monotonic() < deadline:
        client.emit("time_update", {})
        time.sleep(0.01)
    thread.join(timeout=1.0)
    assert not thread.is_alive()


def _spawn_item(client: FakePacketClient, entity_id: int, x: float) -> None:
    client.emit(
        "spawn_entity",
        {"entity_id": entity_id, "kind": "item", "item": KIND, "x": x, "y": 64.0, "z": 0.5},
    )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class _BrokenClient(FakePacketClient):
    def connect(self) -> None:
        raise ConnectionRefusedError("no server")

    def tick(self) -> None:
        raise OSError("socket closed")


def test_connect_failure_is_wrapped() -> None:
    core = EngineCore(_BrokenClient(), FakePlanner(), config=EngineConfig(), scoring=ScoringTables())

    with pytest.raises(EngineError) as exc_info:
        core.connect()
    assert exc_info.value.code == "connect_failed"
    assert core.connected is False


def test_tick_is_noop_until_connected_and_wraps_failures() -> None:
    client = _BrokenClient()
    core = EngineCore(client, FakePlanner(), config=EngineConfig(), scoring=ScoringTables())
    core.tick()

    core._connected = True
    with pytest.raises(EngineError) as exc_info:
        core.tick()
    assert exc_info.value.code == "tick_failed"


def test_defaults_come_from_repo_config() -> None:
    core = EngineCore(FakePacketClient(), FakePlanner())
    core.connect()
    assert core.connected
    core.disconnect()
    assert not core.connected


def test_observe_reflects_packets() -> None:
    core, client = _core(FakePlanner())
    client.emit("time_update", {"tick": 100})

    snap = core.observe()
    assert snap.tick == 100
    assert snap.position == Vec3(0.5, 64.0, 0.5)
    assert snap.eye_position.y == pytest.approx(65.62)


# ---------------------------------------------------------------------------
# achieve
# ---------------------------------------------------------------------------


def test_achieve_selects_tool_and_digs() -> None:
    core, client = _core(FakePlanner())
    client.emit(
        "block_change",
        {"x": 2, "y": 64, "z": 0, "block": "minecraft:stone", "destroy_time": 1.5,
         "tool": "pickaxe", "requires_tool": True},
    )
    client.emit("set_slot", {"slot": 38, "item": {"item": "minecraft:iron_pickaxe", "count": 1, "damageable": True}})

    outcome = core.achieve([BlockPos(2, 64, 0)])

    assert outcome.stage == "exact_approach"
    assert outcome.hotbar_slot == 2
    assert [p.packet_type for p in client.sent_packets] == [
        "held_item_change",
        "look",
        "block_dig",
        "block_dig",
    ]
    assert client.sent_of("held_item_change") == [{"slot": 2}]


# ---------------------------------------------------------------------------
# retrieve
# ---------------------------------------------------------------------------


def test_retrieve_picks_up_on_tick() -> None:
    planned = threading.Event()
    planner = FakePlanner(on_goto=lambda request: planned.set())
    bus = EventBus()
    events = []
    bus.subscribe(events.append)
    core, client = _core(planner, bus=bus)
    _spawn_item(client, 1, 3.2)

    thread, result = _run_in_thread(lambda: core.retrieve(KIND))
    assert planned.wait(timeout=5.0)

    client.emit("destroy_entities", {"entity_ids": [1]})
    client.emit("set_slot", {"slot": 9, "item": {"item": KIND, "count": 1}})
    _tick_until_done(client, thread)

    assert result.get("value") is RetrievalOutcome.PICKED_UP
    assert planner.requests[0].goal.targets == (BlockPos(3, 64, 0),)
    finished = [e for e in events if e.event_type == EventType.RETRIEVAL_FINISHED]
    assert finished and finished[0].payload["outcome"] == "picked_up"


def test_disconnect_releases_blocked_retrieve() -> None:
    planned = threading.Event()
    planner = FakePlanner(on_goto=lambda request: planned.set())
    core, client = _core(planner)
    _spawn_item(client, 1, 4.0)

    thread, result = _run_in_thread(lambda: core.retrieve(KIND))
    assert planned.wait(timeout=5.0)

    core.disconnect()
    thread.join(timeout=5.0)

    assert not thread.is_alive()
    assert result.get("value") is RetrievalOutcome.TICK_SOURCE_CLOSED
    assert planner.stop_calls == 1


def test_abort_interrupts_retrieve() -> None:
    planned = threading.Event()
    planner = FakePlanner(on_goto=lambda request: planned.set())
    core, client = _core(planner)
    _spawn_item(client, 1, 4.0)

    thread, result = _run_in_thread(lambda: core.retrieve(KIND))
    assert planned.wait(timeout=5.0)

    core.abort()
    _tick_until_done(client, thread)

    assert isinstance(result.get("error"), OperationAborted)
    assert planner.stop_calls == 1


def test_monitoring_events_share_bus() -> None:
    bus = EventBus()
    events = []
    bus.subscribe(events.append)
    core, client = _core(FakePlanner(), bus=bus)
    client.emit("block_change", {"x": 2, "y": 64, "z": 0, "block": "minecraft:stone"})

    core.achieve([BlockPos(2, 64, 0)])

    assert all(isinstance(e, MonitoringEvent) for e in events)
    assert events[-1].event_type == EventType.INTERACTION_PERFORMED


def test_reconnect_reopens_tick_stream() -> None:
    planned = threading.Event()
    planner = FakePlanner(on_goto=lambda request: planned.set())
    core, client = _core(planner)
    core.disconnect()
    core.connect()
    _spawn_item(client, 1, 3.2)

    thread, result = _run_in_thread(lambda: core.retrieve(KIND))
    assert planned.wait(timeout=5.0)

    client.emit("set_slot", {"slot": 9, "item": {"item": KIND, "count": 1}})
    _tick_until_done(client, thread)

    assert result.get("value") is RetrievalOutcome.PICKED_UP


def test_abort_while_idle_does_not_leak_into_next_call() -> None:
    core, client = _core(FakePlanner())
    client.emit("block_change", {"x": 2, "y": 64, "z": 0, "block": "minecraft:stone"})

    core.abort()

    assert core.achieve([BlockPos(2, 64, 0)]).stage == "exact_approach"


def test_abort_of_retrieve_leaves_achieve_untouched() -> None:
    planned = threading.Event()
    planner = FakePlanner(on_goto=lambda request: planned.set())
    core, client = _core(planner)
    client.emit("block_change", {"x": 2, "y": 64, "z": 0, "block": "minecraft:stone"})
    _spawn_item(client, 1, 4.0)

    thread, result = _run_in_thread(lambda: core.retrieve(KIND))
    assert planned.wait(timeout=5.0)

    with pytest.raises(EngineError) as exc_info:
        core.achieve([BlockPos(2, 64, 0)])
    assert exc_info.value.code == "busy"

    core.abort()
    _tick_until_done(client, thread)
    assert isinstance(result.get("error"), OperationAborted)

    assert core.achieve([BlockPos(2, 64, 0)]).stage == "exact_approach"
