"""Websocket gateway binding authenticated users to live channels."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any

from anyio import to_thread
from fastapi import WebSocket, WebSocketDisconnect, status

from urbansprout.application.use_cases.users import authenticate_token
from urbansprout.domain.entities import User
from urbansprout.domain.errors import AuthenticationError, UrbanSproutError
from urbansprout.infrastructure.database import SessionFactory, session_scope
from urbansprout.infrastructure.notifications import (
    ConnectionRegistry,
    NotificationDispatcher,
)

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    AUTHENTICATING = "authenticating"
    BOUND = "bound"
    CLOSED = "closed"


class RealtimeGateway:
    """Authenticate websocket upgrades and relay commands to the dispatcher.

    Connections that fail authentication are closed with a policy violation
    before being accepted and never reach the registry.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        dispatcher: NotificationDispatcher,
        session_factory: SessionFactory,
    ) -> None:
        self._registry = registry
        self._dispatcher = dispatcher
        self._session_factory = session_factory

    async def handle(self, websocket: WebSocket) -> None:
        state = ConnectionState.CONNECTING
        credential = extract_token(websocket)

        state = self._transition(state, ConnectionState.AUTHENTICATING)
        try:
            user = await to_thread.run_sync(self._authenticate, credential)
        except AuthenticationError as exc:
            logger.warning("Rejected realtime connection: %s", exc.message)
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        except Exception:
            logger.exception("Could not authenticate realtime connection")
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
            return

        try:
            await websocket.accept()
        except WebSocketDisconnect:
            logger.debug("Realtime connection closed during authentication")
            return

        group = self._registry.group_for(user.id)
        token = await self._registry.bind(user.id, websocket, is_admin=user.is_admin())
        await self._registry.join(group, websocket)
        state = self._transition(state, ConnectionState.BOUND)

        try:
            await self._dispatcher.push_unread_count(user.id)
            while True:
                raw = await self._receive(websocket)
                await self._handle_command(user, websocket, raw)
        except WebSocketDisconnect as exc:
            logger.info("Realtime connection for user %s closed (%s)", user.id, exc.code)
        except Exception:
            logger.exception("Realtime connection for user %s failed", user.id)
        finally:
            await self._registry.leave(group, websocket)
            await self._registry.unbind(user.id, token)
            self._transition(state, ConnectionState.CLOSED)

    async def _handle_command(
        self, user: User, websocket: WebSocket, raw: str | bytes | None
    ) -> None:
        if raw is None:
            await self._send(websocket, "error", {"message": "Malformed message"})
            return
        try:
            message = json.loads(raw)
        except ValueError:
            await self._send(websocket, "error", {"message": "Malformed message"})
            return
        if not isinstance(message, dict):
            await self._send(websocket, "error", {"message": "Malformed message"})
            return

        command = message.get("type")
        if command == "ping":
            await self._send(websocket, "pong", {})
            return

        try:
            if command == "mark_notification_read":
                notification_id = message.get("notificationId")
                if isinstance(notification_id, bool) or not isinstance(notification_id, int):
                    await self._send(
                        websocket, "error", {"message": "notificationId must be an integer"}
                    )
                    return
                await self._dispatcher.mark_read(user.id, notification_id)
            elif command == "mark_all_read":
                await self._dispatcher.mark_all_read(user.id)
            else:
                await self._send(
                    websocket, "error", {"message": f"Unknown command '{command}'"}
                )
        except UrbanSproutError as exc:
            await self._send(websocket, "error", {"message": exc.message})
        except Exception:
            logger.exception("Command %s failed for user %s", command, user.id)
            await self._send(websocket, "error", {"message": f"Failed to process '{command}'"})

    @staticmethod
    async def _receive(websocket: WebSocket) -> str | bytes | None:
        """Return the next text or binary frame payload."""

        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))
        if message.get("text") is not None:
            return message["text"]
        return message.get("bytes")

    def _authenticate(self, credential: str | None) -> User:
        with session_scope(self._session_factory) as session:
            return authenticate_token(session, credential)

    @staticmethod
    async def _send(websocket: WebSocket, event: str, payload: Any) -> None:
        await websocket.send_json({"type": event, "data": payload})

    @staticmethod
    def _transition(current: ConnectionState, target: ConnectionState) -> ConnectionState:
        logger.debug("Realtime connection %s -> %s", current.value, target.value)
        return target


def extract_token(websocket: WebSocket) -> str | None:
    """Return the credential from the ``token`` query parameter or header."""

    token = websocket.query_params.get("token")
    if token:
        return token
    authorization = websocket.headers.get("authorization", "")
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


__all__ = ["ConnectionState", "RealtimeGateway", "extract_token"]
