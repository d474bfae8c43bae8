"""A service that sends JSON-RPC messages through a transport handle."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Union

from .protocol import JsonRpcMessage
from .transport import TransportHandle

Timeout = Union[float, timedelta]


def _seconds(timeout: Timeout | None) -> float | None:
    if timeout is None:
        return None
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return float(timeout)


class McpService:
    """Forwards each message to a transport handle, optionally under a time limit."""

    def __init__(self, transport: TransportHandle, timeout: Timeout | None = None) -> None:
        self.transport = transport
        self.timeout = _seconds(timeout)

    async def ready(self) -> None:
        """Yield once to the event loop; transports are always ready to accept a message."""
        await asyncio.sleep(0)

    async def call(self, request: JsonRpcMessage) -> JsonRpcMessage:
        """Send a message and return the reply; raise TimeoutError if the limit passes."""
        if self.timeout is None:
            return await self.transport.send(request)
        try:
            return await asyncio.wait_for(self.transport.send(request), self.timeout)
        except asyncio.TimeoutError as exc:
            raise TimeoutError("Request timed out") from exc

    @classmethod
    def with_timeout(cls, transport: TransportHandle, timeout: Timeout) -> McpService:
        """A service whose calls fail with TimeoutError after the given time."""
        return cls(transport, timeout)