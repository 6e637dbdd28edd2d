"""
SURYATRACK WebSocket Module
"""

from .manager import (
    ConnectionManager,
    connection_manager,
    WebSocketMessage,
    MessageType,
    ConnectedClient,
    session_room
)

__all__ = [
    'ConnectionManager',
    'connection_manager',
    'WebSocketMessage',
    'MessageType',
    'ConnectedClient',
    'session_room'
]
