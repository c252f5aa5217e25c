"""The WebSocket chat server and its command-line entry point."""

from __future__ import annotations

import asyncio
import itertools
import logging
import sqlite3
import sys
import time

from chatserver import db
from chatserver.chatroom import ChatRoom
from chatserver.dao import ChatRoomDAO, MessageDAO, UserDAO
from chatserver.models import Message, MessageFormatError, MessageType, parse_message, serialize_message
from chatserver.session import Session
from chatserver.websocket import (
    OP_CLOSE,
    encode_frame,
    handshake_response,
    is_websocket_upgrade,
    read_frame,
)

logger = logging.getLogger(__name__)

READ_SIZE = 4096


class Server:
    """Accepts WebSocket clients, routes their messages and stores them."""

    def __init__(
        self,
        port: int,
        user_dao: UserDAO,
        chat_room_dao: ChatRoomDAO,
        message_dao: MessageDAO,
    ) -> None:
        self.port = port
        self.user_dao = user_dao
        self.chat_room_dao = chat_room_dao
        self.message_dao = message_dao
        self.running = False
        self.sessions: dict[int, Session] = {}
        self.chat_rooms: dict[int, ChatRoom] = {}
        self._writers: dict[int, asyncio.StreamWriter] = {}
        self._ids = itertools.count(1)
        self._server: asyncio.AbstractServer | None = None
        self._stopped: asyncio.Event | None = None

    async def start(self) -> None:
        """Bind and listen on all interfaces; the port is updated if 0 was asked for."""
        self._server = await asyncio.start_server(
            self._handle_connection, host="0.0.0.0", port=self.port, reuse_address=True
        )
        self.port = self._server.sockets[0].getsockname()[1]
        self._stopped = asyncio.Event()
        self.running = True

    async def stop(self) -> None:
        """Stop listening and drop every client."""
        self.running = False
        for writer in self._writers.values():
            writer.close()
        self._writers.clear()
        for session in self.sessions.values():
            session.mark_disconnected()
        self.sessions.clear()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
        if self._stopped is not None:
            self._stopped.set()

    async def run(self) -> None:
        """Serve clients until the server is stopped."""
        if not self.running or self._stopped is None:
            return
        await self._stopped.wait()

    async def _handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        client_id = next(self._ids)
        session = Session(client_id, self.user_dao, self.chat_room_dao)
        self.sessions[client_id] = session
        self._writers[client_id] = writer
        try:
            first = await reader.read(READ_SIZE)
            request = first.decode("latin-1")
            if not first or not is_websocket_upgrade(request):
                return
            session.websocket = True
            writer.write(handshake_response(request))
            await writer.drain()

            while self.running:
                frame = await read_frame(reader)
                if frame is None or not frame.payload or frame.opcode == OP_CLOSE:
                    return
                try:
                    await self.handle_message(client_id, frame.payload)
                except MessageFormatError as exc:
                    logger.warning("client %d sent a bad message: %s", client_id, exc)
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            self._close_client(client_id)

    def _close_client(self, client_id: int) -> None:
        session = self.sessions.pop(client_id, None)
        if session is not None:
            session.mark_disconnected()
        writer = self._writers.pop(client_id, None)
        if writer is not None:
            writer.close()

    async def _send(self, client_id: int, text: str) -> None:
        writer = self._writers.get(client_id)
        if writer is None:
            return
        try:
            writer.write(encode_frame(text))
            await writer.drain()
        except ConnectionError:
            self._close_client(client_id)

    async def handle_message(self, client_id: int, payload: str | bytes) -> Message:
        """Route, store and echo one message from a client; return the message."""
        msg = parse_message(payload)
        if not msg.timestamp:
            msg.timestamp = int(time.time())

        if msg.type is MessageType.PRIVATE:
            await self.route_private_message(msg)
        elif msg.type is MessageType.GROUP:
            await self.route_group_message(msg)
        else:
            logger.debug("system message from %d: %s", msg.sender, msg.content)

        self.message_dao.insert_message(msg)
        await self._send(client_id, serialize_message(msg))
        return msg

    async def route_private_message(self, msg: Message) -> None:
        """Deliver a message to the first WebSocket session of its recipient."""
        for client_id, session in list(self.sessions.items()):
            if session.websocket and session.user_id == msg.to:
                await self._send(client_id, serialize_message(msg))
                break

    async def route_group_message(self, msg: Message) -> None:
        """Deliver a message to every WebSocket session of the room's members."""
        room = self.chat_rooms.get(msg.to)
        if room is None:
            room = self.chat_room_dao.get_room_by_id(msg.to)
            if room is None:
                return
            self.chat_rooms[msg.to] = room

        text = serialize_message(msg)
        for member_id in list(room.members):
            for client_id, session in list(self.sessions.items()):
                if session.websocket and session.user_id == member_id:
                    await self._send(client_id, text)


async def _serve(server: Server) -> None:
    await server.start()
    print(f"Server started, listening on port {server.port}")
    try:
        await server.run()
    finally:
        await server.stop()


def main(argv: list[str] | None = None) -> int:
    """Run the chat server: ``chatserver <database path> <port>``."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 2:
        print("usage: chatserver <database path> <port>", file=sys.stderr)
        return 1

    db_path, port_text = args
    try:
        port = int(port_text)
    except ValueError:
        port = 0
    if not 1 <= port <= 65535:
        print("port must be an integer between 1 and 65535", file=sys.stderr)
        return 1

    try:
        conn = sqlite3.connect(db_path)
        db.create_schema(conn)
    except sqlite3.Error as exc:
        print(f"cannot open database '{db_path}': {exc}", file=sys.stderr)
        return 1

    server = Server(port, UserDAO(conn), ChatRoomDAO(conn), MessageDAO(conn))
    try:
        asyncio.run(_serve(server))
    except KeyboardInterrupt:
        pass
    except OSError as exc:
        print(f"cannot start server: {exc}", file=sys.stderr)
        return 1
    finally:
        conn.close()
    return 0