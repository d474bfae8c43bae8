"""Transport errors, base classes and the request/response plumbing they share."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from .protocol import JsonRpcMessage, JsonRpcNil, JsonRpcNotification, JsonRpcRequest


class TransportError(Exception):
    """Base class for transport failures."""


class TransportIOError(TransportError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"I/O error: {detail}")
        self.detail = detail


class NotConnectedError(TransportError):
    def __init__(self) -> None:
        super().__init__("Transport was not connected or is already closed")


class ChannelClosedError(TransportError):
    def __init__(self) -> None:
        super().__init__("Channel closed")


class SerializationError(TransportError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Serialization error: {detail}")
        self.detail = detail


class UnsupportedMessageError(TransportError):
    def __init__(self) -> None:
        super().__init__(
            "Unsupported message type. JsonRpcMessage can only be Request or Notification."
        )


class StdioProcessError(TransportError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Stdio process error: {detail}")
        self.detail = detail


class SseConnectionError(TransportError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"SSE connection error: {detail}")
        self.detail = detail


class HttpError(TransportError):
    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"HTTP error: {status} - {message}")
        self.status = status
        self.message = message


@dataclass
class TransportMessage:
    """A message to send, with the future that receives its reply (None for notifications)."""

    message: JsonRpcMessage
    response: Optional[asyncio.Future] = None


class _ClosableQueue(asyncio.Queue):
    """An outgoing message queue that can be shut, failing what is still queued."""

    def __init__(self, maxsize: int = 0) -> None:
        super().__init__(maxsize)
        self.closed = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        while not self.empty():
            item = self.get_nowait()
            if item is not None and item.response is not None and not item.response.done():
                item.response.set_exception(ChannelClosedError())
        self.put_nowait(None)


class Transport(ABC):
    """Something that can open a connection and hand out a handle to it."""

    @abstractmethod
    async def start(self) -> TransportHandle:
        """Establish the connection and return a handle for sending messages."""

    @abstractmethod
    async def close(self) -> None:
        """Release the transport's resources."""


class TransportHandle(ABC):
    """Sends messages over a started transport."""

    @abstractmethod
    async def send(self, message: JsonRpcMessage) -> JsonRpcMessage:
        """Send a message and return the reply (JsonRpcNil for notifications)."""


async def _put(queue: asyncio.Queue, item: TransportMessage) -> None:
    if getattr(queue, "closed", False):
        raise ChannelClosedError()
    await queue.put(item)


async def send_message(queue: asyncio.Queue, message: JsonRpcMessage) -> JsonRpcMessage:
    """Queue a request and wait for its reply, or queue a notification."""
    if isinstance(message, JsonRpcRequest):
        future = asyncio.get_running_loop().create_future()
        await _put(queue, TransportMessage(message, future))
        return await future
    if isinstance(message, JsonRpcNotification):
        await _put(queue, TransportMessage(message))
        return JsonRpcNil()
    raise UnsupportedMessageError()


class PendingRequests:
    """Requests awaiting a reply, keyed by request id."""

    def __init__(self) -> None:
        self._requests: dict[str, asyncio.Future] = {}

    def __len__(self) -> int:
        return len(self._requests)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._requests

    def insert(self, request_id: str, future: asyncio.Future) -> None:
        self._requests[request_id] = future

    def respond(self, request_id: str, response: Any) -> None:
        """Resolve a pending request with a message, or fail it with an exception."""
        future = self._requests.pop(request_id, None)
        if future is None or future.done():
            return
        if isinstance(response, BaseException):
            future.set_exception(response)
        else:
            future.set_result(response)

    def clear(self) -> None:
        """Fail every pending request with ChannelClosedError."""
        requests, self._requests = self._requests, {}
        for future in requests.values():
            if not future.done():
                future.set_exception(ChannelClosedError())