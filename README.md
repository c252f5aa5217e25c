# chatserver

A small chat server built on asyncio that speaks WebSocket. Clients connect,
upgrade their HTTP connection, then send JSON messages in text frames. A
message is private (for one user), a group message (for the members of a chat
room) or a system message. Every message the server accepts is written to an
SQLite database and echoed back to the client that sent it.

## Installing

```
pip install .
```

## Running

```
chatserver <database-path> <port>
```

The port has to be an integer from 1 to 65535; anything else, or the wrong
number of arguments, prints a usage message and exits with status 1. The
database file is opened, or created if it is missing, and the tables `users`,
`chat_rooms`, `room_members` and `messages` are created if they do not exist.
The server listens on all interfaces, prints
`Server started, listening on port <port>`, and runs until interrupted with
Ctrl+C.

## Message format

Each WebSocket frame holds one JSON object:

```json
{"type": 0, "from": 1, "to": 2, "content": "hello"}
```

`type` is `0` for a private message (`to` is a user id), `1` for a group
message (`to` is a room id) and `2` for a system message. A message that is
not valid JSON, lacks a field or has an unknown type is logged and ignored;
the connection stays open. An empty frame, a close frame or the end of the
stream ends the connection. Messages sent back by the server use the same
compact JSON with sorted keys.

## What the server does not do

- It has no login over the wire. A connected client's `Session` never has a
  user id set, so private and group messages are stored and echoed to the
  sender but are not delivered to other connected clients.
- Rooms loaded with `ChatRoomDAO.get_room_by_id` come with an empty member
  set, so group routing reaches only members added to the in-memory
  `ChatRoom` objects in `Server.chat_rooms`.
- There is no way to create accounts with passwords or to add users to rooms
  through the DAOs: `UserDAO.insert_user` stores only a username and nickname,
  and `room_members` is only read. Passwords are compared as plain text.
- System messages are only logged and stored.

## Using it as a library

- `chatserver.models`: `Message`, `MessageType`, `User`, `MessageFormatError`,
  `serialize_message` and `parse_message`.
- `chatserver.chatroom.ChatRoom`: room membership and message history kept in
  memory (`add_member`, `remove_member`, `is_member`, `add_message`).
- `chatserver.db`: `execute`, `query` and `create_schema` on an
  `sqlite3.Connection`. `execute` and `query` log failures and return `False`
  or an empty list instead of raising.
- `chatserver.dao`: `UserDAO`, `ChatRoomDAO` and `MessageDAO`.
  `MessageDAO.recent_messages_by_room` and `recent_messages_by_users` return
  the newest messages first, 50 by default.
- `chatserver.session.Session`: a client's login state and joined rooms
  (`login`, `logout`, `switch_user`, `join_room`, `is_in_room`).
- `chatserver.websocket`: the handshake (`is_websocket_upgrade`,
  `extract_header`, `compute_accept`, `handshake_response`) and framing
  (`encode_frame`, `decode_frame`, `read_frame`, `Frame`,
  `IncompleteFrameError`).
- `chatserver.server.Server`: the server itself, with async `start`, `run`,
  `stop` and `handle_message`; `main` is the command above.

```python
import asyncio
import sqlite3

from chatserver.dao import ChatRoomDAO, MessageDAO, UserDAO
from chatserver.db import create_schema
from chatserver.server import Server

conn = sqlite3.connect("chat.db")
create_schema(conn)
server = Server(9000, UserDAO(conn), ChatRoomDAO(conn), MessageDAO(conn))


async def serve() -> None:
    await server.start()
    try:
        await server.run()
    finally:
        await server.stop()


asyncio.run(serve())
```

Passing port `0` to `Server` lets the system choose a free port; after
`start` it is in `server.port`.

## Tests

```
pip install .[test]
pytest
```