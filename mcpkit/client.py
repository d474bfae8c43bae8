"""A client that speaks the MCP protocol through a service."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol, TypeVar

from .protocol import (
    METHOD_NOT_FOUND,
    CallToolResult,
    GetPromptResult,
    Implementation,
    InitializeResult,
    JsonRpcError,
    JsonRpcMessage,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    ListPromptsResult,
    ListResourcesResult,
    ListToolsResult,
    ReadResourceResult,
    ServerCapabilities,
)
from .transport import SerializationError

PROTOCOL_VERSION = "1.0.0"

_Result = TypeVar("_Result")


class McpClientError(Exception):
    """Base class for errors raised by the client."""


class RpcError(McpClientError):
    """The server answered with a JSON-RPC error."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"RPC error: code={code}, message={message}")
        self.code = code
        self.message = message


class UnexpectedResponseError(McpClientError):
    """The server's reply did not fit the request."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Unexpected response from server: {detail}")
        self.detail = detail


class NotInitializedError(McpClientError):
    def __init__(self) -> None:
        super().__init__("Not initialized")


class NotReadyError(McpClientError):
    def __init__(self) -> None:
        super().__init__("Timeout or service not ready")


class RequestTimeoutError(McpClientError, TimeoutError):
    def __init__(self) -> None:
        super().__init__("Request timed out")


class McpServerError(McpClientError):
    """A call to the server failed before a reply came back."""

    def __init__(self, method: str, server: str, source: BaseException) -> None:
        super().__init__(f"Call to '{server}' failed for '{method}'. {source}")
        self.method = method
        self.server = server
        self.source = source


class _Service(Protocol):
    async def ready(self) -> None: ...

    async def call(self, request: JsonRpcMessage) -> JsonRpcMessage: ...


@dataclass
class ClientInfo:
    """The client's name and version."""

    name: str
    version: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version}


@dataclass
class ClientCapabilities:
    """Features the client supports; none are announced yet."""

    def to_dict(self) -> dict[str, Any]:
        return {}


@dataclass
class InitializeParams:
    """Parameters of the initialize request."""

    client_info: ClientInfo
    capabilities: ClientCapabilities = field(default_factory=ClientCapabilities)
    protocol_version: str = PROTOCOL_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "protocolVersion": self.protocol_version,
            "capabilities": self.capabilities.to_dict(),
            "clientInfo": self.client_info.to_dict(),
        }


def _decode(result_type: Any, result: Any) -> Any:
    if not isinstance(result, Mapping):
        raise SerializationError("expected a JSON object as result")
    try:
        return result_type.from_dict(result)
    except (ValueError, TypeError, KeyError) as exc:
        raise SerializationError(str(exc)) from exc


def _cursor_payload(next_cursor: str | None) -> dict[str, Any]:
    return {"cursor": next_cursor} if next_cursor is not None else {}


class McpClient:
    """Sends MCP requests through a service and decodes the replies."""

    def __init__(self, service: _Service) -> None:
        self._service = service
        self._lock = asyncio.Lock()
        self._next_id = 1
        self.server_capabilities: ServerCapabilities | None = None
        self.server_info: Implementation | None = None

    def _server_name(self) -> str:
        return self.server_info.name if self.server_info is not None else ""

    async def _ready(self) -> None:
        try:
            await self._service.ready()
        except Exception as exc:
            raise NotReadyError() from exc

    async def _call(self, method: str, message: JsonRpcMessage) -> JsonRpcMessage:
        try:
            return await self._service.call(message)
        except (TimeoutError, asyncio.TimeoutError) as exc:
            raise McpServerError(method, self._server_name(), RequestTimeoutError()) from exc
        except Exception as exc:
            raise McpServerError(method, self._server_name(), exc) from exc

    async def _send_request(self, method: str, params: Any, result_type: Any) -> Any:
        async with self._lock:
            await self._ready()
            request_id = self._next_id
            self._next_id += 1
            request = JsonRpcRequest(method=method, id=request_id, params=params)
            reply = await self._call(method, request)

        if isinstance(reply, JsonRpcResponse):
            if reply.id != request_id:
                raise UnexpectedResponseError("id mismatch for JsonRpcResponse")
            if reply.error is not None:
                raise RpcError(reply.error.code, reply.error.message)
            if reply.result is None:
                raise UnexpectedResponseError("missing result")
            return _decode(result_type, reply.result)
        if isinstance(reply, JsonRpcError):
            if reply.id != request_id:
                raise UnexpectedResponseError("id mismatch for JsonRpcError")
            raise RpcError(reply.error.code, reply.error.message)
        raise UnexpectedResponseError("unexpected message type")

    async def _send_notification(self, method: str, params: Any) -> None:
        async with self._lock:
            await self._ready()
            await self._call(method, JsonRpcNotification(method=method, params=params))

    def _capabilities(self) -> ServerCapabilities:
        if self.server_capabilities is None:
            raise NotInitializedError()
        return self.server_capabilities

    async def initialize(
        self, info: ClientInfo, capabilities: ClientCapabilities | None = None
    ) -> InitializeResult:
        """Perform the initialize handshake and remember what the server supports."""
        params = InitializeParams(
            client_info=info,
            capabilities=capabilities if capabilities is not None else ClientCapabilities(),
        )
        result: InitializeResult = await self._send_request(
            "initialize", params.to_dict(), InitializeResult
        )
        await self._send_notification("notifications/initialized", {})
        self.server_capabilities = result.capabilities
        self.server_info = result.server_info
        return result

    async def list_resources(self, next_cursor: str | None = None) -> ListResourcesResult:
        """List resources; empty if the server has no resources capability."""
        if self._capabilities().resources is None:
            return ListResourcesResult(resources=[], next_cursor=None)
        return await self._send_request(
            "resources/list", _cursor_payload(next_cursor), ListResourcesResult
        )

    async def read_resource(self, uri: str) -> ReadResourceResult:
        if self._capabilities().resources is None:
            raise RpcError(METHOD_NOT_FOUND, "Server does not support 'resources' capability")
        return await self._send_request("resources/read", {"uri": uri}, ReadResourceResult)

    async def list_tools(self, next_cursor: str | None = None) -> ListToolsResult:
        """List tools; empty if the server has no tools capability."""
        if self._capabilities().tools is None:
            return ListToolsResult(tools=[], next_cursor=None)
        return await self._send_request(
            "tools/list", _cursor_payload(next_cursor), ListToolsResult
        )

    async def call_tool(self, name: str, arguments: Any) -> CallToolResult:
        if self._capabilities().tools is None:
            raise RpcError(METHOD_NOT_FOUND, "Server does not support 'tools' capability")
        return await self._send_request(
            "tools/call", {"name": name, "arguments": arguments}, CallToolResult
        )

    async def list_prompts(self, next_cursor: str | None = None) -> ListPromptsResult:
        if self._capabilities().prompts is None:
            raise RpcError(METHOD_NOT_FOUND, "Server does not support 'prompts' capability")
        return await self._send_request(
            "prompts/list", _cursor_payload(next_cursor), ListPromptsResult
        )

    async def get_prompt(self, name: str, arguments: Any) -> GetPromptResult:
        if self._capabilities().prompts is None:
            raise RpcError(METHOD_NOT_FOUND, "Server does not support 'prompts' capability")
        return await self._send_request(
            "prompts/get", {"name": name, "arguments": arguments}, GetPromptResult
        )