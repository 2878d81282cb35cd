# src/bot_core/actions.py
"""
Interaction intents for the retry engine.

This module translates the engine's Interactor calls into protocol- or
IPC-level messages via a PacketClient.

Design constraints:
- One call per intent; no retries here (the escalation ladder retries).
- No mutation of world state; this layer only sends packets/messages.
- Transport failures surface as EngineError(code="io_error").

Packets emitted:
    look         {"yaw", "pitch", "on_ground"}
    block_dig    {"status": "start" | "stop", "x", "y", "z", "face"}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from contracts.collaborators import AgentView
from contracts.types import BlockPos, Vec3

from .errors import EngineError
from .geometry import direction_looking_at, look_angles
from .net import PacketClient


log = logging.getLogger(__name__)


@dataclass
class InteractorConfig:
    """Packet-level knobs for PacketInteractor."""

    # Face value passed through to the transport; "auto" lets the IPC layer
    # pick the face the player is looking at.
    dig_face: Any = "auto"

    # Vanilla clients send start+stop for instant breaks and let the server
    # track progress otherwise; we always send both.
    send_stop: bool = True


class PacketInteractor:
    """
    Interactor that emits `look` and `block_dig` packets.

    Looking needs the current eye position, so the agent view is consulted
    on every call (never cached).
    """

    def __init__(
        self,
        client: PacketClient,
        agent: AgentView,
        *,
        config: InteractorConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._agent = agent
        self._cfg = config if config is not None else InteractorConfig()
        self._log = logger or log

    # ------------------------------------------------------------------
    # Interactor protocol
    # ------------------------------------------------------------------

    def look_at(self, point: Vec3) -> None:
        snapshot = self._agent.snapshot()
        direction = direction_looking_at(snapshot.eye_position, point)
        yaw, pitch = look_angles(direction)
        self._send("look", {"yaw": yaw, "pitch": pitch, "on_ground": True})

    def mine(self, pos: BlockPos) -> None:
        payload: Dict[str, Any] = {
            "x": pos.x,
            "y": pos.y,
            "z": pos.z,
            "face": self._cfg.dig_face,
        }
        self._send("block_dig", {"status": "start", **payload})
        if self._cfg.send_stop:
            self._send("block_dig", {"status": "stop", **payload})

    # ------------------------------------------------------------------
    # Low-level emitters
    # ------------------------------------------------------------------

    def _send(self, packet_type: str, payload: Dict[str, Any]) -> None:
        try:
            self._client.send_packet(packet_type, payload)
        except Exception as exc:
            self._log.error("sending %s failed: %r", packet_type, exc)
            raise EngineError(
                code="io_error",
                details={
                    "packet_type": packet_type,
                    "payload": payload,
                    "exception": repr(exc),
                },
            ) from exc


__all__ = ["InteractorConfig", "PacketInteractor"]
