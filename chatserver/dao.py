"""Data access objects for users, chat rooms and messages."""

from __future__ import annotations

import sqlite3

from chatserver import db
from chatserver.chatroom import ChatRoom
from chatserver.models import Message, MessageType, User

DEFAULT_LIMIT = 50


class UserDAO:
    """Access to the ``users`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def get_user_by_username(self, username: str) -> User | None:
        rows = db.query(
            self.conn,
            "SELECT id, username, nickname FROM users WHERE username = ?;",
            [username],
        )
        if not rows:
            return None
        user_id, name, nickname = rows[0]
        return User(int(user_id), name, nickname or "")

    def update_status(self, user_id: int, status: int) -> bool:
        return db.execute(
            self.conn, "UPDATE users SET status = ? WHERE id = ?;", [status, user_id]
        )

    def verify_password(self, username: str, password: str) -> bool:
        rows = db.query(
            self.conn, "SELECT password FROM users WHERE username = ?", [username]
        )
        if not rows:
            return False
        stored = rows[0][0]
        return ("" if stored is None else str(stored)) == password

    def insert_user(self, user: User) -> bool:
        return db.execute(
            self.conn,
            "INSERT INTO users (username, nickname) VALUES (?, ?);",
            [user.username, user.nickname],
        )

    def update_nickname(self, user_id: int, nickname: str) -> bool:
        return db.execute(
            self.conn, "UPDATE users SET nickname = ? WHERE id = ?;", [nickname, user_id]
        )

    def delete_user(self, user_id: int) -> bool:
        return db.execute(self.conn, "DELETE FROM users WHERE id = ?;", [user_id])


class ChatRoomDAO:
    """Access to the ``chat_rooms`` and ``room_members`` tables."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def create_room(self, name: str) -> bool:
        return db.execute(self.conn, "INSERT INTO chat_rooms (name) VALUES (?);", [name])

    def delete_room(self, room_id: int) -> bool:
        return db.execute(self.conn, "DELETE FROM chat_rooms WHERE id = ?;", [room_id])

    def get_room_by_id(self, room_id: int) -> ChatRoom | None:
        rows = db.query(
            self.conn, "SELECT id, name FROM chat_rooms WHERE id = ?;", [room_id]
        )
        if not rows:
            return None
        found_id, name = rows[0]
        return ChatRoom(int(found_id), name)

    def get_rooms_by_user(self, user_id: int) -> list[ChatRoom]:
        rows = db.query(
            self.conn,
            "SELECT r.id, r.name FROM chat_rooms r "
            "JOIN room_members m ON m.room_id = r.id WHERE m.user_id = ?;",
            [user_id],
        )
        return [ChatRoom(int(room_id), name) for room_id, name in rows]

    def get_joined_room_ids_by_user(self, user_id: int) -> set[int]:
        rows = db.query(
            self.conn, "SELECT room_id FROM room_members WHERE user_id = ?", [user_id]
        )
        return {int(room_id) for (room_id,) in rows}

    def list_all_rooms(self) -> list[ChatRoom]:
        rows = db.query(self.conn, "SELECT id, name FROM chat_rooms;")
        return [ChatRoom(int(room_id), name) for room_id, name in rows]


class MessageDAO:
    """Access to the ``messages`` table."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def insert_message(self, msg: Message) -> bool:
        receiver = msg.to if msg.type is MessageType.PRIVATE else None
        room_id = msg.to if msg.type is MessageType.GROUP else None
        return db.execute(
            self.conn,
            "INSERT INTO messages (sender, receiver, room_id, timestamp, content, type) "
            "VALUES (?, ?, ?, ?, ?, ?);",
            [msg.sender, receiver, room_id, msg.timestamp, msg.content, int(msg.type)],
        )

    def recent_messages_by_room(
        self, room_id: int, limit: int = DEFAULT_LIMIT
    ) -> list[Message]:
        """Return a room's messages, newest first, at most ``limit`` of them."""
        rows = db.query(
            self.conn,
            "SELECT sender, content, timestamp, type FROM messages "
            "WHERE room_id = ? ORDER BY timestamp DESC LIMIT ?",
            [room_id, limit],
        )
        return [
            Message(
                type=MessageType(int(msg_type)),
                sender=int(sender),
                to=room_id,
                content=content or "",
                timestamp=int(timestamp),
            )
            for sender, content, timestamp, msg_type in rows
        ]

    def recent_messages_by_users(
        self, user_a: int, user_b: int, limit: int = DEFAULT_LIMIT
    ) -> list[Message]:
        """Return private messages between two users in either direction, newest first."""
        rows = db.query(
            self.conn,
            "SELECT sender, receiver, content, timestamp, type FROM messages "
            "WHERE type = ? AND ((sender = ? AND receiver = ?) OR (sender = ? AND receiver = ?)) "
            "ORDER BY timestamp DESC LIMIT ?",
            [int(MessageType.PRIVATE), user_a, user_b, user_b, user_a, limit],
        )
        return [
            Message(
                type=MessageType(int(msg_type)),
                sender=int(sender),
                to=int(receiver),
                content=content or "",
                timestamp=int(timestamp),
            )
            for sender, receiver, content, timestamp, msg_type in rows
        ]