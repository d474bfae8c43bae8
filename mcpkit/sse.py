"""A transport that receives replies over Server-Sent Events and sends requests by HTTP POST."""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import AsyncIterator, Mapping
from urllib.parse import urljoin

import httpx

from .protocol import (
    InvalidMessageError,
    JsonRpcError,
    JsonRpcMessage,
    JsonRpcRequest,
    JsonRpcResponse,
    message_from_json,
    message_to_json,
)
from .transport import (
    ChannelClosedError,
    HttpError,
    NotConnectedError,
    PendingRequests,
    SerializationError,
    SseConnectionError,
    Transport,
    TransportHandle,
    _ClosableQueue,
    send_message,
)

logger = logging.getLogger(__name__)

ENDPOINT_TIMEOUT_SECS = 5.0
_CHECK_INTERVAL = 0.1
_MAX_ATTEMPTS = 10
_QUEUE_SIZE = 32


@dataclass(frozen=True)
class _SseEvent:
    event: str
    data: str


async def _iter_events(lines: AsyncIterator[str]) -> AsyncIterator[_SseEvent]:
    """Group the lines of an event stream into events."""
    event_type = ""
    data: list[str] = []
    async for line in lines:
        if not line:
            if data:
                yield _SseEvent(event_type or "message", "\n".join(data))
            event_type = ""
            data = []
            continue
        if line.startswith(":"):
            continue
        name, separator, value = line.partition(":")
        if separator and value.startswith(" "):
            value = value[1:]
        if name == "event":
            event_type = value
        elif name == "data":
            data.append(value)


class SseActor:
    """Reads events from the SSE stream and posts queued messages to the announced endpoint."""

    def __init__(
        self,
        queue: _ClosableQueue,
        sse_url: str,
        http_client: httpx.AsyncClient,
        pending: PendingRequests | None = None,
    ) -> None:
        self._queue = queue
        self._sse_url = sse_url
        self._client = http_client
        self._pending = pending if pending is not None else PendingRequests()
        self.post_endpoint: str | None = None

    async def run(self) -> None:
        """Run the incoming and outgoing loops until both have finished."""
        try:
            await asyncio.gather(self._incoming(), self._outgoing())
        finally:
            self._pending.clear()
            self._queue.close()

    async def _incoming(self) -> None:
        try:
            async with self._client.stream(
                "GET",
                self._sse_url,
                headers={"Accept": "text/event-stream"},
                timeout=None,
            ) as response:
                if not response.is_success:
                    raise HttpError(response.status_code, response.reason_phrase)
                events = _iter_events(response.aiter_lines())
                async for event in events:
                    if event.event == "endpoint":
                        self.post_endpoint = urljoin(self._sse_url, event.data)
                        logger.debug("Discovered SSE POST endpoint: %s", self.post_endpoint)
                        break
                async for event in events:
                    if event.event == "message":
                        self._dispatch(event.data)
        except (httpx.HTTPError, HttpError) as exc:
            logger.warning("SSE connection failed: %s", exc)
        logger.error("SSE stream ended or encountered an error; clearing pending requests.")
        self._pending.clear()

    def _dispatch(self, data: str) -> None:
        try:
            message = message_from_json(data)
        except InvalidMessageError as exc:
            logger.warning("Failed to parse SSE message: %s", exc)
            return
        if isinstance(message, (JsonRpcResponse, JsonRpcError)) and message.id is not None:
            self._pending.respond(str(message.id), message)

    async def _outgoing(self) -> None:
        while True:
            item = await self._queue.get()
            if item is None:
                break
            response = item.response
            post_url = self.post_endpoint
            if post_url is None:
                if response is not None and not response.done():
                    response.set_exception(NotConnectedError())
                continue
            try:
                text = message_to_json(item.message)
            except (TypeError, ValueError) as exc:
                if response is not None and not response.done():
                    response.set_exception(SerializationError(str(exc)))
                continue
            if response is not None:
                message = item.message
                if isinstance(message, JsonRpcRequest) and message.id is not None:
                    self._pending.insert(str(message.id), response)
                elif not response.done():
                    response.set_exception(ChannelClosedError())
            try:
                reply = await self._client.post(
                    post_url,
                    content=text.encode("utf-8"),
                    headers={"Content-Type": "application/json"},
                )
            except httpx.HTTPError as exc:
                # The error reply, if any, arrives over the event stream.
                logger.warning("HTTP POST failed: %s", exc)
                continue
            if not reply.is_success:
                error = HttpError(reply.status_code, reply.reason_phrase)
                logger.warning("HTTP request returned error: %s", error)
        logger.error("SseActor: outgoing message loop ended. Clearing pending requests.")
        self._pending.clear()


class SseTransportHandle(TransportHandle):
    """Sends messages through a running SSE actor."""

    def __init__(self, sender: _ClosableQueue) -> None:
        self._sender = sender

    async def send(self, message: JsonRpcMessage) -> JsonRpcMessage:
        return await send_message(self._sender, message)


@dataclass
class _Running:
    queue: _ClosableQueue
    task: asyncio.Task
    owned_client: httpx.AsyncClient | None


class SseTransport(Transport):
    """Connects to an SSE endpoint; each start runs its own actor."""

    def __init__(
        self,
        sse_url: str,
        env: Mapping[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.sse_url = sse_url
        self.env = dict(env or {})
        self._client = client
        self._running: list[_Running] = []

    @staticmethod
    async def _wait_for_endpoint(actor: SseActor) -> str | None:
        for _ in range(_MAX_ATTEMPTS):
            if actor.post_endpoint is not None:
                return actor.post_endpoint
            await asyncio.sleep(_CHECK_INTERVAL)
        return None

    async def start(self) -> SseTransportHandle:
        """Start the actor and give the server a moment to announce its POST endpoint."""
        for key, value in self.env.items():
            os.environ[key] = value
        queue = _ClosableQueue(_QUEUE_SIZE)
        owned = None
        client = self._client
        if client is None:
            client = owned = httpx.AsyncClient(timeout=None)
        actor = SseActor(queue, self.sse_url, client)
        task = asyncio.create_task(actor.run())
        self._running.append(_Running(queue, task, owned))
        try:
            endpoint = await asyncio.wait_for(
                self._wait_for_endpoint(actor), ENDPOINT_TIMEOUT_SECS
            )
        except asyncio.TimeoutError as exc:
            raise SseConnectionError(str(exc) or "timed out") from exc
        if endpoint is None:
            logger.warning("No endpoint discovered")
        return SseTransportHandle(queue)

    async def close(self) -> None:
        """Stop every started actor and release the HTTP clients this transport created."""
        running, self._running = self._running, []
        for entry in running:
            entry.queue.close()
            entry.task.cancel()
        await asyncio.gather(*(entry.task for entry in running), return_exceptions=True)
        for entry in running:
            if entry.owned_client is not None:
                await entry.owned_client.aclose()