# path: src/monitoring/events.py
"""
Event schema for monitoring the interaction retry engine.

This module defines:
- EventType enum
- MonitoringEvent (structured, JSON-safe runtime events)

Events are published on monitoring.bus.EventBus and can be persisted with
monitoring.logger.JsonFileLogger.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Dict, Optional


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted by the engine."""

    # Escalation ladder (achieve)
    STAGE_STARTED = auto()           # a path request for a ladder stage was submitted
    STAGE_EXHAUSTED = auto()         # no target could be acted on at this stage
    TARGET_REJECTED = auto()         # one target failed the reachability check
    INTERACTION_PERFORMED = auto()   # a block was mined (or found already mined)
    ACHIEVE_FAILED = auto()          # every stage exhausted

    # Item retrieval (retrieve)
    RETRIEVAL_STARTED = auto()
    RETRIEVAL_REPLANNED = auto()     # targets drifted; path resubmitted
    RETRIEVAL_FINISHED = auto()

    # Generic log messages
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    Runtime event emitted by the escalator, the retrieval tracker, or tools.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module string ("bot_core.mining", ...)
    event_type: EventType       # Enum describing the event class
    message: str                # Short human-readable description
    payload: Dict[str, Any]     # Structured data (stage, target, error code)
    correlation_id: Optional[str] = None  # Groups events of one achieve()/retrieve() call

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name  # store name, not enum
        return data
