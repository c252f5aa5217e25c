import sqlite3

import pytest

from chatserver import db
from chatserver.dao import ChatRoomDAO, MessageDAO, UserDAO
from chatserver.models import Message, MessageType, User


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    db.create_schema(connection)
    yield connection
    connection.close()


@pytest.fixture
def users(conn):
    return UserDAO(conn)


@pytest.fixture
def rooms(conn):
    return ChatRoomDAO(conn)


@pytest.fixture
def messages(conn):
    return MessageDAO(conn)


def test_insert_and_get_user(users):
    assert users.insert_user(User(0, "alice", "Alice")) is True
    user = users.get_user_by_username("alice")
    assert user.username == "alice"
    assert user.nickname == "Alice"
    assert user.id >= 1


def test_get_missing_user_returns_none(users):
    assert users.get_user_by_username("nobody") is None


def test_duplicate_user_insert_fails(users):
    users.insert_user(User(0, "alice", "A"))
    assert users.insert_user(User(0, "alice", "B")) is False


def test_verify_password(conn, users):
    users.insert_user(User(0, "alice", "Alice"))
    password = "password"
    db.execute(conn, "UPDATE users SET password = ? WHERE username = ?;", [password, "alice"])
    assert users.verify_password("alice", password) is True
    assert users.verify_password("alice", "secret") is False
    assert users.verify_password("bob", password) is False


def test_verify_password_without_stored_password(users):
    users.insert_user(User(0, "alice", "Alice"))
    assert users.verify_password("alice", "") is True
    assert users.verify_password("alice", "token") is False


def test_update_nickname(users):
    users.insert_user(User(0, "alice", "Alice"))
    user_id = users.get_user_by_username("alice").id
    assert users.update_nickname(user_id, "Ally") is True
    assert users.get_user_by_username("alice").nickname == "Ally"


def test_update_status(conn, users):
    users.insert_user(User(0, "alice", "Alice"))
    user_id = users.get_user_by_username("alice").id
    assert users.update_status(user_id, 1) is True
    assert db.query(conn, "SELECT status FROM users WHERE id = ?;", [user_id]) == [(1,)]
    users.update_status(user_id, 0)
    assert db.query(conn, "SELECT status FROM users WHERE id = ?;", [user_id]) == [(0,)]


def test_delete_user(users):
    users.insert_user(User(0, "alice", "Alice"))
    user_id = users.get_user_by_username("alice").id
    assert users.delete_user(user_id) is True
    assert users.get_user_by_username("alice") is None


def test_create_and_list_rooms(rooms):
    assert rooms.create_room("lobby") is True
    assert rooms.create_room("dev") is True
    assert sorted(room.name for room in rooms.list_all_rooms()) == ["dev", "lobby"]


def test_get_room_by_id(rooms):
    rooms.create_room("lobby")
    room_id = rooms.list_all_rooms()[0].room_id
    room = rooms.get_room_by_id(room_id)
    assert room.room_id == room_id
    assert room.name == "lobby"
    assert rooms.get_room_by_id(room_id + 100) is None


def test_delete_room(rooms):
    rooms.create_room("lobby")
    room_id = rooms.list_all_rooms()[0].room_id
    assert rooms.delete_room(room_id) is True
    assert rooms.list_all_rooms() == []


def test_joined_room_ids_and_rooms_by_user(conn, rooms):
    rooms.create_room("a")
    rooms.create_room("b")
    rooms.create_room("c")
    ids = {room.name: room.room_id for room in rooms.list_all_rooms()}
    for name in ("a", "c"):
        db.execute(conn, "INSERT INTO room_members (room_id, user_id) VALUES (?, ?);", [ids[name], 7])
    db.execute(conn, "INSERT INTO room_members (room_id, user_id) VALUES (?, ?);", [ids["b"], 8])

    assert rooms.get_joined_room_ids_by_user(7) == {ids["a"], ids["c"]}
    assert sorted(room.name for room in rooms.get_rooms_by_user(7)) == ["a", "c"]
    assert rooms.get_joined_room_ids_by_user(9) == set()


def test_group_messages_by_room_newest_first(messages):
    for ts in (10, 30, 20):
        assert messages.insert_message(Message(MessageType.GROUP, 1, 5, f"m{ts}", ts)) is True
    messages.insert_message(Message(MessageType.GROUP, 1, 6, "other", 40))

    result = messages.recent_messages_by_room(5)
    assert [m.timestamp for m in result] == [30, 20, 10]
    assert all(m.to == 5 and m.type is MessageType.GROUP for m in result)
    assert result[0].content == "m30"


def test_room_messages_respect_limit(messages):
    for ts in range(1, 6):
        messages.insert_message(Message(MessageType.GROUP, 2, 3, "x", ts))
    result = messages.recent_messages_by_room(3, 2)
    assert [m.timestamp for m in result] == [5, 4]


def test_private_message_not_in_room_history(messages):
    messages.insert_message(Message(MessageType.PRIVATE, 1, 5, "dm", 1))
    assert messages.recent_messages_by_room(5) == []


def test_messages_between_users_both_directions(messages):
    messages.insert_message(Message(MessageType.PRIVATE, 1, 2, "hi", 1))
    messages.insert_message(Message(MessageType.PRIVATE, 2, 1, "hello", 2))
    messages.insert_message(Message(MessageType.PRIVATE, 1, 3, "elsewhere", 3))
    messages.insert_message(Message(MessageType.GROUP, 1, 2, "group", 4))

    result = messages.recent_messages_by_users(1, 2)
    assert [(m.sender, m.to, m.content) for m in result] == [(2, 1, "hello"), (1, 2, "hi")]
    assert all(m.type is MessageType.PRIVATE for m in result)


def test_messages_between_users_limit(messages):
    for ts in range(1, 4):
        messages.insert_message(Message(MessageType.PRIVATE, 1, 2, "x", ts))
    result = messages.recent_messages_by_users(2, 1, 1)
    assert [m.timestamp for m in result] == [3]


def test_insert_message_stores_receiver_or_room(conn, messages):
    messages.insert_message(Message(MessageType.PRIVATE, 1, 2, "dm", 1))
    messages.insert_message(Message(MessageType.GROUP, 1, 9, "g", 2))
    messages.insert_message(Message(MessageType.SYSTEM, 1, 4, "s", 3))
    rows = db.query(conn, "SELECT receiver, room_id, type FROM messages ORDER BY timestamp;")
    assert rows == [(2, None, 0), (None, 9, 1), (None, None, 2)]