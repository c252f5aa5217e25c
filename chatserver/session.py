"""Per-connection session state for a chat client."""

from __future__ import annotations

from chatserver.dao import ChatRoomDAO, UserDAO

ONLINE = 1
OFFLINE = 0


class Session:
    """The state of one connected client: who is logged in and which rooms they joined."""

    def __init__(
        self, socket_fd: int, user_dao: UserDAO, chat_room_dao: ChatRoomDAO
    ) -> None:
        self.socket_fd = socket_fd
        self.user_dao = user_dao
        self.chat_room_dao = chat_room_dao
        self.websocket = False
        self.user_id: int | None = None
        self.username = ""
        self.nickname = ""
        self.logged_in = False
        self.disconnected = False
        self.joined_room_ids: set[int] = set()

    def __repr__(self) -> str:
        return (
            f"Session(socket_fd={self.socket_fd!r}, user_id={self.user_id!r}, "
            f"logged_in={self.logged_in!r})"
        )

    def login(self, username: str, password: str) -> bool:
        """Check the credentials and take on that user's identity and rooms."""
        if not self.user_dao.verify_password(username, password):
            return False
        user = self.user_dao.get_user_by_username(username)
        if user is None:
            return False

        self.user_id = user.id
        self.username = user.username
        self.nickname = user.nickname
        self.logged_in = True
        for room_id in self.chat_room_dao.get_joined_room_ids_by_user(user.id):
            self.join_room(room_id)

        self.user_dao.update_status(user.id, ONLINE)
        return True

    def logout(self) -> None:
        """Mark the current user offline and forget who was logged in."""
        if not self.logged_in:
            return
        if self.user_id is not None:
            self.user_dao.update_status(self.user_id, OFFLINE)
        self.user_id = None
        self.username = ""
        self.nickname = ""
        self.logged_in = False
        self.joined_room_ids.clear()

    def switch_user(self, new_username: str, new_password: str) -> bool:
        """Log in as another user; only allowed while someone is logged in."""
        if not self.logged_in:
            return False
        previous_id = self.user_id
        if not self.login(new_username, new_password):
            return False
        if previous_id is not None:
            self.user_dao.update_status(previous_id, OFFLINE)
        if self.user_id is not None:
            self.user_dao.update_status(self.user_id, ONLINE)
        return True

    def is_in_room(self, room_id: int) -> bool:
        return room_id in self.joined_room_ids

    def join_room(self, room_id: int) -> None:
        self.joined_room_ids.add(room_id)

    def mark_disconnected(self) -> None:
        self.disconnected = True