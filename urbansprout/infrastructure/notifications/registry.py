"""In-memory presence table for live notification channels."""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, DefaultDict, Protocol, Set

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """Minimal interface of a live bidirectional connection."""

    async def send_json(self, data: Any) -> None:  # pragma: no cover - protocol
        ...


@dataclass(frozen=True)
class _Binding:
    channel: Channel
    token: int
    is_admin: bool


class ConnectionRegistry:
    """Map each recipient to at most one live channel.

    Binding a recipient that is already bound replaces the entry without
    closing the previous channel. Every bind hands out a generation token and
    an unbind carrying a stale token is ignored, so a late disconnect of the
    replaced channel cannot evict the newer one.
    """

    def __init__(self) -> None:
        self._bindings: dict[int, _Binding] = {}
        self._groups: DefaultDict[str, Set[Channel]] = defaultdict(set)
        self._tokens = itertools.count(1)
        self._lock = asyncio.Lock()

    @staticmethod
    def group_for(recipient_id: int) -> str:
        return f"user_{recipient_id}"

    async def bind(self, recipient_id: int, channel: Channel, *, is_admin: bool = False) -> int:
        async with self._lock:
            token = next(self._tokens)
            previous = self._bindings.get(recipient_id)
            self._bindings[recipient_id] = _Binding(channel, token, is_admin)
        if previous is not None:
            logger.info("Replaced live channel for user %s", recipient_id)
        else:
            logger.info("User %s connected", recipient_id)
        return token

    async def unbind(self, recipient_id: int, token: int | None = None) -> bool:
        async with self._lock:
            current = self._bindings.get(recipient_id)
            if current is None:
                return False
            if token is not None and current.token != token:
                logger.debug(
                    "Ignoring stale unbind for user %s (token %s, current %s)",
                    recipient_id,
                    token,
                    current.token,
                )
                return False
            del self._bindings[recipient_id]
        logger.info("User %s disconnected", recipient_id)
        return True

    def get(self, recipient_id: int) -> Channel | None:
        binding = self._bindings.get(recipient_id)
        return binding.channel if binding else None

    def is_connected(self, recipient_id: int) -> bool:
        return recipient_id in self._bindings

    def connected_ids(self) -> list[int]:
        return sorted(self._bindings)

    def connected_count(self) -> int:
        return len(self._bindings)

    def admin_channels(self) -> list[Channel]:
        return [binding.channel for binding in self._bindings.values() if binding.is_admin]

    async def join(self, group: str, channel: Channel) -> None:
        async with self._lock:
            self._groups[group].add(channel)

    async def leave(self, group: str, channel: Channel) -> None:
        async with self._lock:
            members = self._groups.get(group)
            if members is None:
                return
            members.discard(channel)
            if not members:
                self._groups.pop(group, None)

    def members(self, group: str) -> list[Channel]:
        return list(self._groups.get(group, ()))


__all__ = ["Channel", "ConnectionRegistry"]
