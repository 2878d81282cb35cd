# src/bot_core/core.py
"""
Concrete engine facade for one packet-connected agent.

This module wires together:
- PacketClient / IPC transport
- TickBroadcaster (fed by WorldTracker on the configured tick event)
- WorldTracker (incremental raw world state)
- TrackedWorld / TrackedInventory / PacketInteractor (collaborator adapters)
- ActionEscalator and ItemRetrievalTracker (the retry engine)

Public surface:
    class EngineCore:
        connect() -> None
        disconnect() -> None
        tick() -> None
        observe() -> AgentSnapshot
        achieve(targets) -> AchieveOutcome
        retrieve(kind) -> RetrievalOutcome
        abort() -> None

Threading:
    achieve() and retrieve() block. Something else must keep calling tick()
    (or the transport must dispatch packets on its own thread) while they
    run, otherwise no tick ever arrives and only planner timeouts end the
    wait. abort() targets the operation in flight; with none running it
    does nothing.

Lifecycle:
    disconnect() closes the tick stream. A later connect() starts a fresh
    one, so the same EngineCore can be reconnected.

Design constraints:
- No packet or protocol details leak to callers.
- Non-action failures (connection problems, transport errors) raise
  EngineError; action outcomes are AchieveOutcome / RetrievalOutcome or the
  terminal RetryEngineError subclasses.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence

from contracts.collaborators import PathPlanner
from contracts.types import AgentSnapshot, BlockPos
from monitoring.bus import EventBus

from .actions import PacketInteractor
from .config import EngineConfig, ScoringTables, load_engine_config, load_scoring_tables
from .errors import EngineError
from .mining import AchieveOutcome, ActionEscalator
from .net import PacketClient
from .pickup import ItemRetrievalTracker, RetrievalOutcome
from .tick import TickBroadcaster
from .views import TrackedInventory, TrackedWorld
from .world_tracker import WorldTracker


log = logging.getLogger(__name__)


class EngineCore:
    """
    Orchestrates:
        - PacketClient (transport)
        - WorldTracker + TickBroadcaster (state and ticks)
        - ActionEscalator / ItemRetrievalTracker (retry engine)

    The path planner is external and injected; it must already be bound to
    the same agent.
    """

    def __init__(
        self,
        client: PacketClient,
        planner: PathPlanner,
        *,
        config: Optional[EngineConfig] = None,
        scoring: Optional[ScoringTables] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        """
        Build an EngineCore.

        If `config` / `scoring` are None they are loaded from config/engine.yaml
        and config/scoring.yaml.
        """
        self._cfg = config if config is not None else load_engine_config()
        scoring = scoring if scoring is not None else load_scoring_tables()

        # Transport layer
        self._client = client

        # World tracking
        self._ticks = TickBroadcaster()
        self._tracker = WorldTracker(
            self._client,
            self._ticks,
            eye_height=self._cfg.reach.eye_height,
            tick_event=self._cfg.ticks.event,
        )

        # Collaborator adapters
        self._world = TrackedWorld(self._tracker)
        self._inventory = TrackedInventory(self._tracker, self._client, scoring)
        self._interactor = PacketInteractor(self._client, self._world)

        # Retry engine
        self._escalator = ActionEscalator(
            planner,
            self._world,
            self._inventory,
            self._world,
            self._interactor,
            config=self._cfg,
            bus=bus,
        )
        self._retriever = ItemRetrievalTracker(
            planner,
            self._world,
            self._inventory,
            self._ticks,
            config=self._cfg.retrieval,
            bus=bus,
        )

        self._connected: bool = False

        # Component currently running achieve() or retrieve(), if any
        self._op_lock = threading.Lock()
        self._active: Optional[str] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def tracker(self) -> WorldTracker:
        return self._tracker

    def connect(self) -> None:
        """
        Establish connection to the Minecraft world.

        Raises:
            EngineError if the underlying client fails to connect.
        """
        if self._connected:
            return

        try:
            self._client.connect()
        except Exception as exc:
            raise EngineError(
                code="connect_failed",
                details={"exception": repr(exc)},
            ) from exc

        if self._ticks.closed:
            self._ticks = TickBroadcaster()
            self._tracker.attach_ticks(self._ticks)
            self._retriever.attach_clock(self._ticks)
            log.debug("tick stream reopened")

        self._connected = True
        log.info("engine connected")

    def disconnect(self) -> None:
        """
        Disconnect and close the tick stream, so blocked retrieve() calls
        resolve instead of waiting forever.

        Raises:
            EngineError if the underlying client fails to disconnect.
        """
        if not self._connected:
            return

        self._ticks.close()
        try:
            self._client.disconnect()
        except Exception as exc:
            self._connected = False
            raise EngineError(
                code="disconnect_failed",
                details={"exception": repr(exc)},
            ) from exc

        self._connected = False
        log.info("engine disconnected")

    def tick(self) -> None:
        """
        Pump the transport layer and feed events into the WorldTracker.

        Must be called regularly from the agent's main loop.
        """
        if not self._connected:
            return

        try:
            self._client.tick()
        except Exception as exc:
            raise EngineError(
                code="tick_failed",
                details={"exception": repr(exc)},
            ) from exc

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def observe(self) -> AgentSnapshot:
        return self._tracker.build_snapshot()

    # ------------------------------------------------------------------
    # Retry engine
    # ------------------------------------------------------------------

    def achieve(self, targets: Sequence[BlockPos]) -> AchieveOutcome:
        """Mine one of `targets`; see ActionEscalator.achieve()."""
        self._begin("achieve")
        try:
            return self._escalator.achieve(targets)
        finally:
            self._end()

    def retrieve(self, kind: str) -> RetrievalOutcome:
        """Pick up one more `kind`; see ItemRetrievalTracker.retrieve()."""
        self._begin("retrieve")
        try:
            return self._retriever.retrieve(kind)
        finally:
            self._end()

    def abort(self) -> None:
        """Abort whichever operation is running. No-op when idle."""
        with self._op_lock:
            active = self._active
            if active == "achieve":
                self._escalator.abort()
            elif active == "retrieve":
                self._retriever.abort()
        if active is None:
            log.debug("abort requested with no operation running")

    def _begin(self, name: str) -> None:
        with self._op_lock:
            if self._active is not None:
                raise EngineError(
                    code="busy",
                    details={"running": self._active, "requested": name},
                )
            self._active = name

    def _end(self) -> None:
        with self._op_lock:
            self._active = None


__all__ = ["EngineCore"]
