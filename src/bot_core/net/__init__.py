# bot_core.net package
# src/bot_core/net/__init__.py
"""
Network layer for the retry engine.

This package provides the PacketClient protocol (common interface) that
transports implement and the packet-fed adapters consume.
"""

from __future__ import annotations

from .client import PacketClient, PacketHandler

__all__ = [
    "PacketClient",
    "PacketHandler",
]
