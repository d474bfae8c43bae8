import asyncio
import json
import os

import httpx
import pytest

from mcpkit.protocol import (
    METHOD_NOT_FOUND,
    JsonRpcError,
    JsonRpcNil,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
)
from mcpkit.sse import SseActor, SseTransport
from mcpkit.transport import (
    ChannelClosedError,
    NotConnectedError,
    UnsupportedMessageError,
    _ClosableQueue,
    send_message,
)

SSE_URL = "http://testserver/sse"


class _FakeServer:
    def __init__(self, endpoint="/messages?session_id=abc"):
        self.endpoint = endpoint
        self.events = asyncio.Queue()
        self.posts = []
        self.post_status = 202
        self.respond = True
        self.split_data = False

    async def _stream(self):
        yield b": connected\n\n"
        yield b"event: ping\ndata: ignored\n\n"
        if self.endpoint is not None:
            yield f"event: endpoint\ndata: {self.endpoint}\n\n".encode()
        while True:
            event = await self.events.get()
            if event is None:
                return
            yield event.encode()

    def _format(self, reply):
        payload = json.dumps(reply, indent=1 if self.split_data else None)
        data = "".join(f"data: {line}\n" for line in payload.splitlines())
        head = "" if self.split_data else "event: message\n"
        return head + data + "\n"

    async def handler(self, request):
        if request.method == "GET":
            return httpx.Response(
                200, headers={"content-type": "text/event-stream"}, content=self._stream()
            )
        body = json.loads(request.content)
        self.posts.append((str(request.url), body))
        if self.respond and "id" in body and "method" in body:
            if body["method"] == "fail":
                reply = {
                    "jsonrpc": "2.0",
                    "id": body["id"],
                    "error": {"code": METHOD_NOT_FOUND, "message": "Method not found"},
                }
            else:
                reply = {"jsonrpc": "2.0", "id": body["id"], "result": {"echo": body["method"]}}
            if self.split_data:
                await self.events.put("event: message\ndata: not json\n\n")
            await self.events.put(self._format(reply))
        return httpx.Response(self.post_status)


def _client(server):
    return httpx.AsyncClient(transport=httpx.MockTransport(server.handler))


async def _wait_for_posts(server, count):
    async def poll():
        while len(server.posts) < count:
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), 2)


@pytest.mark.asyncio
async def test_request_is_posted_to_announced_endpoint_and_answered():
    server = _FakeServer()
    async with _client(server) as client:
        transport = SseTransport(SSE_URL, client=client)
        handle = await transport.start()
        reply = await asyncio.wait_for(handle.send(JsonRpcRequest(method="ping", id=1)), 2)
        await transport.close()
    assert isinstance(reply, JsonRpcResponse)
    assert reply.id == 1
    assert reply.result == {"echo": "ping"}
    url, body = server.posts[0]
    assert url == "http://testserver/messages?session_id=abc"
    assert body == {"jsonrpc": "2.0", "id": 1, "method": "ping"}


@pytest.mark.asyncio
async def test_notification_returns_nil_and_is_posted():
    server = _FakeServer()
    async with _client(server) as client:
        transport = SseTransport(SSE_URL, client=client)
        handle = await transport.start()
        reply = await handle.send(
            JsonRpcNotification(method="notifications/initialized", params={})
        )
        await _wait_for_posts(server, 1)
        await transport.close()
    assert reply == JsonRpcNil()
    assert server.posts[0][1] == {
        "jsonrpc": "2.0",
        "method": "notifications/initialized",
        "params": {},
    }


@pytest.mark.asyncio
async def test_error_reply_is_delivered():
    server = _FakeServer()
    async with _client(server) as client:
        transport = SseTransport(SSE_URL, client=client)
        handle = await transport.start()
        reply = await asyncio.wait_for(handle.send(JsonRpcRequest(method="fail", id=7)), 2)
        await transport.close()
    assert isinstance(reply, JsonRpcError)
    assert reply.id == 7
    assert reply.error.code == METHOD_NOT_FOUND


@pytest.mark.asyncio
async def test_multiline_data_and_unparsable_events():
    server = _FakeServer()
    server.split_data = True
    async with _client(server) as client:
        transport = SseTransport(SSE_URL, client=client)
        handle = await transport.start()
        reply = await asyncio.wait_for(handle.send(JsonRpcRequest(method="split", id=3)), 2)
        await transport.close()
    assert isinstance(reply, JsonRpcResponse)
    assert reply.result == {"echo": "split"}


@pytest.mark.asyncio
async def test_http_error_status_does_not_fail_request():
    server = _FakeServer()
    server.post_status = 500
    async with _client(server) as client:
        transport = SseTransport(SSE_URL, client=client)
        handle = await transport.start()
        reply = await asyncio.wait_for(handle.send(JsonRpcRequest(method="ping", id=2)), 2)
        await transport.close()
    assert isinstance(reply, JsonRpcResponse)
    assert reply.id == 2


@pytest.mark.asyncio
async def test_without_endpoint_requests_are_not_connected():
    server = _FakeServer(endpoint=None)
    async with _client(server) as client:
        transport = SseTransport(SSE_URL, client=client)
        handle = await transport.start()
        with pytest.raises(NotConnectedError):
            await asyncio.wait_for(handle.send(JsonRpcRequest(method="ping", id=1)), 2)
        await transport.close()
    assert server.posts == []


@pytest.mark.asyncio
async def test_stream_end_fails_pending_requests():
    server = _FakeServer()
    server.respond = False
    async with _client(server) as client:
        transport = SseTransport(SSE_URL, client=client)
        handle = await transport.start()
        pending = asyncio.create_task(handle.send(JsonRpcRequest(method="ping", id=4)))
        await _wait_for_posts(server, 1)
        await server.events.put(None)
        with pytest.raises(ChannelClosedError) as info:
            await asyncio.wait_for(pending, 2)
        await transport.close()
    assert str(info.value) == "Channel closed"
    assert server.posts[0][1] == {"jsonrpc": "2.0", "id": 4, "method": "ping"}


@pytest.mark.asyncio
async def test_unsupported_message_is_rejected():
    server = _FakeServer()
    async with _client(server) as client:
        transport = SseTransport(SSE_URL, client=client)
        handle = await transport.start()
        with pytest.raises(UnsupportedMessageError):
            await handle.send(JsonRpcResponse(id=1, result={}))
        await transport.close()


@pytest.mark.asyncio
async def test_send_after_close_raises_channel_closed():
    server = _FakeServer()
    async with _client(server) as client:
        transport = SseTransport(SSE_URL, client=client)
        handle = await transport.start()
        await transport.close()
        with pytest.raises(ChannelClosedError):
            await handle.send(JsonRpcRequest(method="ping", id=1))


@pytest.mark.asyncio
async def test_start_sets_environment(monkeypatch):
    monkeypatch.setenv("MCPKIT_SSE_TEST", "before")
    server = _FakeServer()
    async with _client(server) as client:
        transport = SseTransport(SSE_URL, env={"MCPKIT_SSE_TEST": "after"}, client=client)
        handle = await transport.start()
        reply = await asyncio.wait_for(handle.send(JsonRpcRequest(method="env", id=9)), 2)
        await transport.close()
    assert os.environ["MCPKIT_SSE_TEST"] == "after"
    assert (reply.id, reply.result) == (9, {"echo": "env"})


@pytest.mark.asyncio
async def test_actor_without_stream_reports_not_connected():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        queue = _ClosableQueue(32)
        actor = SseActor(queue, SSE_URL, client)
        run = asyncio.create_task(actor.run())
        with pytest.raises(NotConnectedError):
            await asyncio.wait_for(send_message(queue, JsonRpcRequest(method="ping", id=1)), 2)
        queue.close()
        await asyncio.wait_for(run, 2)
    assert actor.post_endpoint is None
    assert queue.closed