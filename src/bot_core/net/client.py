# packet transport interface
# src/bot_core/net/client.py
"""
Client abstraction for the retry engine's packet-fed adapters.

Defines the PacketClient protocol consumed by WorldTracker, TrackedInventory
and PacketInteractor. Concrete transports (a protocol client, an IPC bridge
to a mod, an in-memory fake) live outside this package and only need to
satisfy this interface.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol

# Type alias for packet handlers.
PacketHandler = Callable[[Mapping[str, Any]], None]


class PacketClient(Protocol):
    """
    Abstract interface for a packet-level Minecraft client.
    """

    def connect(self) -> None:
        """Establish connection and complete handshake."""
        ...

    def disconnect(self) -> None:
        """Cleanly disconnect from the server or IPC endpoint."""
        ...

    def tick(self) -> None:
        """
        Pump network/IPC events, calling registered handlers and updating
        internal state. Should be called regularly from the main loop.
        """
        ...

    def send_packet(self, packet_type: str, data: Mapping[str, Any]) -> None:
        """
        Send a high-level packet representation.

        The exact mapping of packet_type -> wire format is implementation
        specific. This function is the only way bot_core should emit data.
        """
        ...

    def on_packet(self, packet_type: str, handler: PacketHandler) -> None:
        """
        Register a handler for packets/messages of a given type.

        Handlers receive a decoded mapping representation of the packet
        payload. Implementations are responsible for parsing wire data
        into this format.
        """
        ...
