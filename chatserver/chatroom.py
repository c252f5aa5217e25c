"""In-memory chat room state."""

from __future__ import annotations

from chatserver.models import Message


class ChatRoom:
    """A chat room with a member set and its message history."""

    def __init__(self, room_id: int, name: str) -> None:
        self.room_id = room_id
        self.name = name
        self.members: set[int] = set()
        self.messages: list[Message] = []

    def __repr__(self) -> str:
        return f"ChatRoom(room_id={self.room_id!r}, name={self.name!r})"

    def add_member(self, user_id: int) -> bool:
        """Add a member; return True if they were not already in the room."""
        if user_id in self.members:
            return False
        self.members.add(user_id)
        return True

    def remove_member(self, user_id: int) -> bool:
        """Remove a member; return True if they were in the room."""
        if user_id not in self.members:
            return False
        self.members.discard(user_id)
        return True

    def is_member(self, user_id: int) -> bool:
        return user_id in self.members

    def add_message(self, msg: Message) -> None:
        """Append a message to the room history."""
        self.messages.append(msg)