"""Asyncio WebSocket chat server with private and group messages stored in SQLite."""

__version__ = "0.1.0"
__all__ = ["chatroom", "dao", "db", "models", "server", "session", "websocket"]