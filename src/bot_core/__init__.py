# bot_core package
# src/bot_core/__init__.py
"""
Goal-directed interaction retry engine.

Exports:
    - EngineCore: packet-connected facade wiring tracker, views and engine
    - ActionEscalator / ItemRetrievalTracker: the retry loops themselves
    - goal types handed to the path planner
    - error taxonomy
"""

from __future__ import annotations

from .core import EngineCore
from .errors import (
    BlockIsAir,
    BlockIsNotBreakable,
    BlockIsNotReachable,
    CantAchieveAny,
    EngineError,
    EntityBlocking,
    MiningError,
    NoItemsFound,
    OperationAborted,
    RetryEngineError,
)
from .goals import AdjacentStand, ExactApproach, OccupyStand, OrGoal
from .mining import AchieveOutcome, ActionEscalator, EscalationState
from .pickup import ItemRetrievalTracker, RetrievalOutcome

__all__ = [
    "AchieveOutcome",
    "ActionEscalator",
    "AdjacentStand",
    "BlockIsAir",
    "BlockIsNotBreakable",
    "BlockIsNotReachable",
    "CantAchieveAny",
    "EngineCore",
    "EngineError",
    "EntityBlocking",
    "EscalationState",
    "ExactApproach",
    "ItemRetrievalTracker",
    "MiningError",
    "NoItemsFound",
    "OccupyStand",
    "OperationAborted",
    "OrGoal",
    "RetrievalOutcome",
    "RetryEngineError",
]
