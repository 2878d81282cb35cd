# src/bot_core/errors.py
"""
Error taxonomy for the interaction retry engine.

Two families:

- MiningError and its subclasses are per-target and recoverable. The
  escalation ladder catches them, logs them, and moves on to the next
  target; they never escape `achieve()`.
- RetryEngineError subclasses are terminal results of a whole operation
  (`CantAchieveAny`, `NoItemsFound`, `OperationAborted`) or domain errors
  outside action execution (`EngineError`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from contracts.types import BlockPos


# ---------------------------------------------------------------------------
# Per-target (recoverable)
# ---------------------------------------------------------------------------


class MiningError(Exception):
    """A single target cannot be acted on right now."""

    code = "mining_error"
    message = "block cannot be mined"

    def __init__(self, pos: BlockPos | None = None) -> None:
        self.pos = pos
        super().__init__(self.message if pos is None else f"{self.message}: {pos}")


class BlockIsAir(MiningError):
    code = "block_is_air"
    message = "block is air"


class BlockIsNotBreakable(MiningError):
    code = "block_is_not_breakable"
    message = "block is not breakable"


class BlockIsNotReachable(MiningError):
    code = "block_is_not_reachable"
    message = "block is not reachable"


class EntityBlocking(MiningError):
    code = "entity_blocking"
    message = "there is an entity blocking the block"


# ---------------------------------------------------------------------------
# Terminal
# ---------------------------------------------------------------------------


class RetryEngineError(Exception):
    """Base class for terminal outcomes of achieve() / retrieve()."""


class CantAchieveAny(RetryEngineError):
    """Every ladder stage was tried against every target without success."""

    def __init__(
        self,
        targets: Sequence[BlockPos],
        stages_tried: Sequence[str],
        rejections: Sequence[Tuple[str, BlockPos, str]] = (),
    ) -> None:
        self.targets: Tuple[BlockPos, ...] = tuple(targets)
        self.stages_tried: Tuple[str, ...] = tuple(stages_tried)
        # (stage name, target, error code) for every rejected attempt
        self.rejections: List[Tuple[str, BlockPos, str]] = list(rejections)
        super().__init__(
            f"Cant mine any blocks requested ({len(self.targets)} targets, "
            f"{len(self.stages_tried)} stages tried)"
        )


class NoItemsFound(RetryEngineError):
    """No dropped items of the requested kind are (or remain) in range."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"No items found: {kind}")


class OperationAborted(RetryEngineError):
    """An external abort request ended the operation."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation} aborted")


@dataclass
class EngineError(RetryEngineError):
    """
    Domain-level error for non-action failures.

    Examples:
        - malformed configuration files
        - transport connect / disconnect failures
    """

    code: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"EngineError(code={self.code!r}, details={self.details!r})"


__all__ = [
    "BlockIsAir",
    "BlockIsNotBreakable",
    "BlockIsNotReachable",
    "CantAchieveAny",
    "EngineError",
    "EntityBlocking",
    "MiningError",
    "NoItemsFound",
    "OperationAborted",
    "RetryEngineError",
]
