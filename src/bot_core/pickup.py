# src/bot_core/pickup.py
"""
ItemRetrievalTracker: walk into dropped items of a given kind while they
keep moving around.

The target set is not fixed: items roll, merge, despawn or get picked up by
someone else. The tracker therefore re-samples the world once per tick and
re-plans whenever the set it is walking towards drifted.

Loop (one iteration per tick):

    tick source closed        -> stop planner, TICK_SOURCE_CLOSED
    abort requested           -> stop planner, OperationAborted
    held count > baseline     -> stop planner, PICKED_UP
    planner reached its goal  -> GOAL_REACHED_EMPTY (warning)
    no items left             -> stop planner, NoItemsFound
    tracked item gone / moved -> stop planner, settle, re-plan
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Hashable, List, NoReturn, Optional, Tuple

from contracts.collaborators import EntityFinder, InventoryView, PathPlanner, TickClock, TickSubscription
from contracts.types import BlockPos, PathRequest, Vec3
from monitoring.bus import EventBus
from monitoring.integration import (
    emit_retrieval_finished,
    emit_retrieval_replanned,
    emit_retrieval_started,
)

from .config import RetrievalConfig
from .errors import NoItemsFound, OperationAborted
from .goals import OccupyStand, OrGoal
from .inventory import count_items


log = logging.getLogger(__name__)


class RetrievalOutcome(Enum):
    """How a successful retrieve() ended."""

    PICKED_UP = "picked_up"
    # Planner says we're standing on the goal but nothing entered the
    # inventory. Reported as success.
    GOAL_REACHED_EMPTY = "goal_reached_empty"
    # Environment shut down while we were waiting for a tick.
    TICK_SOURCE_CLOSED = "tick_source_closed"


@dataclass
class RetrievalStats:
    kind: str
    baseline: int = 0
    ticks: int = 0
    replans: int = 0
    outcome: Optional[RetrievalOutcome] = None


# handle -> floored block position
_Tracked = Dict[Hashable, BlockPos]


class ItemRetrievalTracker:
    """
    Tick-synchronized pursuit of the nearest items of one kind.

    Only one retrieve() should run per agent at a time. abort() is safe to
    call from another thread; the loop notices it within `poll_s` seconds
    even if no tick arrives.
    """

    def __init__(
        self,
        planner: PathPlanner,
        finder: EntityFinder,
        inventory: InventoryView,
        clock: TickClock,
        *,
        config: Optional[RetrievalConfig] = None,
        bus: Optional[EventBus] = None,
        poll_s: float = 1.0,
    ) -> None:
        self._planner = planner
        self._finder = finder
        self._inventory = inventory
        self._clock = clock
        self._cfg = config if config is not None else RetrievalConfig()
        self._bus = bus
        self._poll_s = poll_s

        self._abort = threading.Event()
        self._stats: Optional[RetrievalStats] = None

    @property
    def last_retrieval_stats(self) -> Optional[RetrievalStats]:
        return self._stats

    def abort(self) -> None:
        """
        Stop the running retrieve(), or the next one if none is running yet.

        The request stays pending until a retrieve() observes it; it is
        cleared when that call ends.
        """
        self._abort.set()

    def attach_clock(self, clock: TickClock) -> None:
        """Use `clock` for later retrieve() calls (e.g. after a reconnect)."""
        self._clock = clock

    def retrieve(self, kind: str) -> RetrievalOutcome:
        """
        Pick up at least one more item of `kind` than we hold right now.

        Raises:
            NoItemsFound: nothing to pick up, initially or after every
                candidate vanished.
            OperationAborted: abort() was called.
        """
        try:
            return self._pursue(kind, self._clock)
        finally:
            self._abort.clear()

    def _pursue(self, kind: str, clock: TickClock) -> RetrievalOutcome:
        if self._abort.is_set():
            self._raise_aborted()

        correlation_id = uuid.uuid4().hex
        stats = RetrievalStats(kind=kind)
        self._stats = stats

        # Subscribe before planning so no tick between the two is lost.
        subscription = clock.subscribe()

        sightings = self._nearest(kind)
        if not sightings:
            raise NoItemsFound(kind)

        stats.baseline = count_items(self._inventory.slots(), kind)
        log.debug("retrieve %s: baseline=%d", kind, stats.baseline)

        tracked = self._send_path(sightings)
        emit_retrieval_started(
            self._bus, kind, [pos for _, pos in sightings], stats.baseline, correlation_id
        )

        while True:
            if not self._wait_tick(subscription, clock):
                self._planner.stop()
                log.warning("tick source closed while retrieving %s", kind)
                return self._finish(stats, RetrievalOutcome.TICK_SOURCE_CLOSED, correlation_id)
            stats.ticks += 1

            if count_items(self._inventory.slots(), kind) > stats.baseline:
                self._planner.stop()
                log.info("picked up %s after %d ticks", kind, stats.ticks)
                return self._finish(stats, RetrievalOutcome.PICKED_UP, correlation_id)

            if self._planner.is_goal_reached():
                log.warning("goto target reached, but no %s picked up", kind)
                return self._finish(stats, RetrievalOutcome.GOAL_REACHED_EMPTY, correlation_id)

            sightings = self._nearest(kind)
            if not sightings:
                self._planner.stop()
                emit_retrieval_finished(self._bus, kind, "no_items_found", stats.ticks, correlation_id)
                raise NoItemsFound(kind)

            reason = _drift(tracked, _floored(sightings))
            if reason is None:
                continue

            log.debug("items of %s %s, recalculating path", kind, reason)
            self._planner.stop()
            if not subscription.wait_ticks(self._cfg.settle_ticks):
                log.warning("tick source closed while retrieving %s", kind)
                return self._finish(stats, RetrievalOutcome.TICK_SOURCE_CLOSED, correlation_id)

            sightings = self._nearest(kind)
            if not sightings:
                emit_retrieval_finished(self._bus, kind, "no_items_found", stats.ticks, correlation_id)
                raise NoItemsFound(kind)

            tracked = self._send_path(sightings)
            stats.replans += 1
            emit_retrieval_replanned(
                self._bus, kind, [pos for _, pos in sightings], reason, correlation_id
            )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _nearest(self, kind: str) -> List[Tuple[Hashable, Vec3]]:
        return list(self._finder.nearest(kind, self._cfg.max_distance, self._cfg.limit))

    def _send_path(self, sightings: List[Tuple[Hashable, Vec3]]) -> _Tracked:
        tracked = _floored(sightings)
        log.info("pickup items at %s", sorted(set(tracked.values())))
        goal = OrGoal(tuple(OccupyStand(pos) for pos in tracked.values()))
        self._planner.start_goto(
            PathRequest(
                goal=goal,
                min_timeout_s=self._cfg.min_timeout_s,
                max_timeout_s=self._cfg.max_timeout_s,
            )
        )
        return tracked

    def _wait_tick(self, subscription: TickSubscription, clock: TickClock) -> bool:
        """
        Wait for the next tick. False if the clock closed.

        Raises OperationAborted (after stopping the planner) when abort() is
        observed.
        """
        while True:
            if self._abort.is_set():
                self._raise_aborted()
            if subscription.wait_next_tick(timeout=self._poll_s):
                if self._abort.is_set():
                    self._raise_aborted()
                return True
            if clock.closed:
                return False

    def _raise_aborted(self) -> NoReturn:
        self._planner.stop()
        log.info("retrieve aborted")
        raise OperationAborted("retrieve")

    def _finish(
        self, stats: RetrievalStats, outcome: RetrievalOutcome, correlation_id: str
    ) -> RetrievalOutcome:
        stats.outcome = outcome
        emit_retrieval_finished(self._bus, stats.kind, outcome.value, stats.ticks, correlation_id)
        return outcome


def _floored(sightings: List[Tuple[Hashable, Vec3]]) -> _Tracked:
    return {handle: pos.to_block_pos_floor() for handle, pos in sightings}


def _drift(previous: _Tracked, current: _Tracked) -> Optional[str]:
    """Reason the tracked set drifted, or None if it didn't."""
    for handle, pos in previous.items():
        if handle not in current:
            return "disappeared"
        if current[handle] != pos:
            return "moved"
    return None


__all__ = [
    "ItemRetrievalTracker",
    "RetrievalOutcome",
    "RetrievalStats",
]
