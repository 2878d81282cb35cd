# src/bot_core/config.py
"""
Engine configuration and scoring tables.

Both are plain frozen dataclasses built from YAML files under config/:

    config/engine.yaml   reach ranges, escalation ladder, retrieval knobs
    config/scoring.yaml  weapon and tool lookup tables

Tables are immutable once loaded and are injected into the components that
use them; nothing here is process-global mutable state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import EngineError

PROJECT_ROOT = Path(__file__).resolve().parents[2]
CONFIG_ROOT = PROJECT_ROOT / "config"

# Stage goals must appear in exactly this order.
LADDER_GOAL_ORDER: Tuple[str, ...] = ("exact_approach", "adjacent_stand", "occupy_stand")

# Packet events that can drive the tick stream.
TICK_EVENTS: Tuple[str, ...] = ("time_update", "client_tick")


# ---------------------------------------------------------------------------
# Engine config
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReachConfig:
    eye_height: float = 1.62
    max_pick_range: float = 6.0
    actual_pick_range: float = 3.5


@dataclass(frozen=True)
class StageConfig:
    """One rung of the escalation ladder."""

    name: str
    goal: str
    # Only meaningful for exact_approach: ray-cast reach from the stand spot.
    distance: Optional[float] = None
    min_timeout_s: float = 2.0
    max_timeout_s: float = 10.0


@dataclass(frozen=True)
class MiningConfig:
    # An air target closer than this was most likely mined by us.
    mined_by_self_radius: float = 4.0


@dataclass(frozen=True)
class RetrievalConfig:
    max_distance: float = 20.0
    limit: int = 5
    settle_ticks: int = 1
    min_timeout_s: float = 2.0
    max_timeout_s: float = 10.0


@dataclass(frozen=True)
class TickConfig:
    # Packet event that counts as one tick: "time_update" or "client_tick".
    event: str = "time_update"


DEFAULT_LADDER: Tuple[StageConfig, ...] = (
    StageConfig(name="exact_approach", goal="exact_approach", distance=3.2),
    StageConfig(name="adjacent_stand", goal="adjacent_stand"),
    StageConfig(name="occupy_stand", goal="occupy_stand"),
)


@dataclass(frozen=True)
class EngineConfig:
    reach: ReachConfig = field(default_factory=ReachConfig)
    ladder: Tuple[StageConfig, ...] = DEFAULT_LADDER
    mining: MiningConfig = field(default_factory=MiningConfig)
    retrieval: RetrievalConfig = field(default_factory=RetrievalConfig)
    ticks: TickConfig = field(default_factory=TickConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EngineConfig":
        """Build from a plain mapping (e.g. parsed YAML); missing keys use defaults."""
        reach_raw = data.get("reach") or {}
        mining_raw = data.get("mining") or {}
        retrieval_raw = data.get("retrieval") or {}
        ticks_raw = data.get("ticks") or {}

        ladder_raw = data.get("ladder")
        if ladder_raw is None:
            ladder = DEFAULT_LADDER
        else:
            ladder = _parse_ladder(ladder_raw)

        return cls(
            reach=ReachConfig(**_known(reach_raw, ReachConfig)),
            ladder=ladder,
            mining=MiningConfig(**_known(mining_raw, MiningConfig)),
            retrieval=_parse_retrieval(retrieval_raw),
            ticks=_parse_ticks(ticks_raw),
        )


def _known(raw: Mapping[str, Any], cls: type) -> Dict[str, Any]:
    """Keep only keys that are fields of `cls`."""
    names = set(cls.__dataclass_fields__)  # type: ignore[attr-defined]
    return {k: v for k, v in raw.items() if k in names}


def _parse_ladder(raw: Any) -> Tuple[StageConfig, ...]:
    if not isinstance(raw, list) or not raw:
        raise EngineError(code="invalid_ladder", details={"reason": "ladder_not_a_list"})

    stages = []
    for entry in raw:
        if not isinstance(entry, Mapping) or "goal" not in entry:
            raise EngineError(
                code="invalid_ladder",
                details={"reason": "stage_missing_goal", "entry": repr(entry)},
            )
        stage_fields = _known(entry, StageConfig)
        stage_fields.setdefault("name", entry["goal"])
        stages.append(StageConfig(**stage_fields))

    goals = tuple(stage.goal for stage in stages)
    if goals != LADDER_GOAL_ORDER:
        raise EngineError(
            code="invalid_ladder",
            details={"reason": "stage_order", "got": list(goals), "expected": list(LADDER_GOAL_ORDER)},
        )

    for stage in stages:
        if stage.goal == "exact_approach" and stage.distance is None:
            raise EngineError(
                code="invalid_ladder",
                details={"reason": "exact_approach_needs_distance", "stage": stage.name},
            )
        if stage.min_timeout_s > stage.max_timeout_s:
            raise EngineError(
                code="invalid_ladder",
                details={"reason": "min_timeout_exceeds_max", "stage": stage.name},
            )

    return tuple(stages)


def _parse_retrieval(raw: Mapping[str, Any]) -> RetrievalConfig:
    cfg = RetrievalConfig(**_known(raw, RetrievalConfig))

    problems = []
    if cfg.max_distance <= 0:
        problems.append("max_distance_not_positive")
    if cfg.limit < 1:
        problems.append("limit_below_one")
    if cfg.settle_ticks < 0:
        problems.append("negative_settle_ticks")
    if cfg.min_timeout_s < 0 or cfg.max_timeout_s <= 0:
        problems.append("timeout_not_positive")
    elif cfg.min_timeout_s > cfg.max_timeout_s:
        problems.append("min_timeout_exceeds_max")

    if problems:
        raise EngineError(
            code="invalid_config",
            details={"section": "retrieval", "reason": problems[0], "problems": problems},
        )
    return cfg


def _parse_ticks(raw: Mapping[str, Any]) -> TickConfig:
    cfg = TickConfig(**_known(raw, TickConfig))
    if cfg.event not in TICK_EVENTS:
        raise EngineError(
            code="invalid_config",
            details={"section": "ticks", "reason": "unknown_tick_event", "event": cfg.event},
        )
    return cfg


# ---------------------------------------------------------------------------
# Scoring tables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ToolSpec:
    category: str
    speed: float


@dataclass(frozen=True)
class ScoringTables:
    """
    Lookup tables for tool and weapon selection.

    weapons: item id -> (damage, attack_speed)
    tools:   item id -> ToolSpec(category, speed)
    """

    weapons: Mapping[str, Tuple[float, float]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    tools: Mapping[str, ToolSpec] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScoringTables":
        weapons_raw = data.get("weapons") or {}
        tools_raw = data.get("tools") or {}

        weapons: Dict[str, Tuple[float, float]] = {}
        for item, value in weapons_raw.items():
            try:
                damage, attack_speed = value
                weapons[str(item)] = (float(damage), float(attack_speed))
            except (TypeError, ValueError) as exc:
                raise EngineError(
                    code="invalid_scoring_table",
                    details={"table": "weapons", "item": item, "value": repr(value)},
                ) from exc

        tools: Dict[str, ToolSpec] = {}
        for item, value in tools_raw.items():
            try:
                tools[str(item)] = ToolSpec(
                    category=str(value["category"]),
                    speed=float(value["speed"]),
                )
            except (TypeError, KeyError, ValueError) as exc:
                raise EngineError(
                    code="invalid_scoring_table",
                    details={"table": "tools", "item": item, "value": repr(value)},
                ) from exc

        return cls(weapons=MappingProxyType(weapons), tools=MappingProxyType(tools))


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping from `path`."""
    if not path.exists():
        raise FileNotFoundError(f"Missing config file: {path}")
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected mapping at top of {path}, got {type(data)}")
    return data


def load_engine_config(path: Optional[Path] = None) -> EngineConfig:
    """Load config/engine.yaml (or `path`) into an EngineConfig."""
    return EngineConfig.from_dict(_load_yaml(path or CONFIG_ROOT / "engine.yaml"))


def load_scoring_tables(path: Optional[Path] = None) -> ScoringTables:
    """Load config/scoring.yaml (or `path`) into ScoringTables."""
    return ScoringTables.from_dict(_load_yaml(path or CONFIG_ROOT / "scoring.yaml"))


__all__ = [
    "CONFIG_ROOT",
    "DEFAULT_LADDER",
    "EngineConfig",
    "LADDER_GOAL_ORDER",
    "MiningConfig",
    "ReachConfig",
    "RetrievalConfig",
    "ScoringTables",
    "StageConfig",
    "TICK_EVENTS",
    "TickConfig",
    "ToolSpec",
    "load_engine_config",
    "load_scoring_tables",
]
