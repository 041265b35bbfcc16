"""Process-local registry of live chat sockets.

One ``ConnectionManager`` lives on ``app.state``. It is not a source of truth:
it only knows which socket sits in which room right now and is rebuilt as
clients reconnect.
"""

import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass

from fastapi import WebSocket, WebSocketDisconnect

logger = logging.getLogger(__name__)


@dataclass
class ClientState:
    websocket: WebSocket
    user_id: str | None = None
    room_id: str | None = None


class ConnectionManager:
    def __init__(self) -> None:
        self._clients: dict[str, ClientState] = {}
        self._rooms: dict[str, set[str]] = defaultdict(set)

    async def connect(self, websocket: WebSocket) -> str:
        await websocket.accept()
        connection_id = str(uuid.uuid4())
        self._clients[connection_id] = ClientState(websocket=websocket)
        logger.info("socket_connected", extra={"connection_id": connection_id})
        return connection_id

    def join(self, connection_id: str, user_id: str, room_id: str) -> None:
        self.leave(connection_id)
        state = self._clients[connection_id]
        state.user_id = user_id
        state.room_id = room_id
        self._rooms[room_id].add(connection_id)

    def leave(self, connection_id: str) -> ClientState | None:
        """Drop the room membership; return the state as it was before."""
        state = self._clients.get(connection_id)
        if state is None or state.room_id is None:
            return None
        previous = ClientState(websocket=state.websocket, user_id=state.user_id, room_id=state.room_id)
        members = self._rooms.get(state.room_id)
        if members is not None:
            members.discard(connection_id)
            if not members:
                del self._rooms[state.room_id]
        state.room_id = None
        return previous

    def disconnect(self, connection_id: str) -> ClientState | None:
        previous = self.leave(connection_id)
        self._clients.pop(connection_id, None)
        logger.info("socket_disconnected", extra={"connection_id": connection_id})
        return previous

    def membership(self, connection_id: str) -> ClientState | None:
        return self._clients.get(connection_id)

    def room_size(self, room_id: str) -> int:
        return len(self._rooms.get(room_id, ()))

    async def send(self, connection_id: str, event: str, data: dict) -> None:
        state = self._clients.get(connection_id)
        if state is None:
            return
        await state.websocket.send_json({"event": event, "data": data})

    async def broadcast(self, room_id: str, event: str, data: dict, exclude: str | None = None) -> int:
        delivered = 0
        for connection_id in list(self._rooms.get(room_id, ())):
            if connection_id == exclude:
                continue
            try:
                await self.send(connection_id, event, data)
            except (WebSocketDisconnect, RuntimeError, OSError):
                logger.warning("socket_send_failed", extra={"connection_id": connection_id, "chat_room_id": room_id})
                self.disconnect(connection_id)
                continue
            delivered += 1
        return delivered
