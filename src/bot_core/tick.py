# src/bot_core/tick.py
"""
Tick broadcasting for the retry engine.

TickBroadcaster is the concrete TickClock: the producer (WorldTracker on
every `time_update` event, or a simulation loop) calls publish() once per
simulation step, and any number of consumers block in
TickSubscriber.wait_next_tick().

Semantics:
- A subscriber only sees ticks published after it subscribed.
- Every published tick is delivered to every subscriber exactly once. A
  subscriber that falls behind drains its backlog one tick per wait, so
  tick counts and settle delays stay exact.
- close() is terminal: it wakes every waiter and every later wait returns
  False immediately.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

log = logging.getLogger(__name__)


class TickBroadcaster:
    """Thread-safe, closable one-to-many tick notifier."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._count = 0
        self._last_tick: Optional[int] = None
        self._closed = False

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def publish(self, tick: Optional[int] = None) -> None:
        """Announce one simulation step. Ignored after close()."""
        with self._cond:
            if self._closed:
                return
            self._count += 1
            self._last_tick = tick
            self._cond.notify_all()

    def close(self) -> None:
        """Terminate the tick stream and wake all waiters."""
        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._cond.notify_all()
        log.debug("tick broadcaster closed after %d ticks", self._count)

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    @property
    def count(self) -> int:
        """Number of ticks published so far."""
        with self._cond:
            return self._count

    @property
    def last_tick(self) -> Optional[int]:
        """Server tick number carried by the latest publish(), if any."""
        with self._cond:
            return self._last_tick

    def subscribe(self) -> "TickSubscriber":
        with self._cond:
            return TickSubscriber(self, seen=self._count)


class TickSubscriber:
    """One consumer's cursor into a TickBroadcaster."""

    def __init__(self, broadcaster: TickBroadcaster, seen: int) -> None:
        self._broadcaster = broadcaster
        self._seen = seen

    def wait_next_tick(self, timeout: Optional[float] = None) -> bool:
        """
        Consume the next unseen tick, blocking until one is published.

        Returns:
            True on a new tick; False if the broadcaster is closed or
            `timeout` seconds passed without a tick.
        """
        b = self._broadcaster
        with b._cond:
            b._cond.wait_for(lambda: b._closed or b._count > self._seen, timeout)
            if b._closed:
                return False
            if b._count <= self._seen:
                return False
            self._seen += 1
            return True

    @property
    def pending(self) -> int:
        """Ticks published but not yet consumed by this subscriber."""
        b = self._broadcaster
        with b._cond:
            return b._count - self._seen

    def wait_ticks(self, n: int) -> bool:
        """Wait for `n` ticks; False as soon as the broadcaster closes."""
        for _ in range(n):
            if not self.wait_next_tick():
                return False
        return True
