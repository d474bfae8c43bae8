"""Protocol messages exchanged between client and server."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from .content import Content
from .prompt import Prompt, PromptMessage
from .resource import Resource, ResourceContents, resource_contents_from_dict
from .tool import Tool

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

_MAX_ID = 2**64


class InvalidMessageError(ValueError):
    """Raised when data is not a valid JSON-RPC message."""


def _require_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ValueError(f"missing or invalid field {key!r}")
    return value


def _optional(data: Mapping[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if value is not None and not isinstance(value, kind):
        raise ValueError(f"invalid field {key!r}")
    return value


def _require_mapping(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    if not isinstance(value, Mapping):
        raise ValueError(f"missing or invalid field {key!r}")
    return value


def _require_list(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if not isinstance(value, list):
        raise ValueError(f"missing or invalid field {key!r}")
    return value


def _put(data: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        data[key] = value


@dataclass
class ErrorData:
    """The error carried by a JSON-RPC error response."""

    code: int
    message: str
    data: Any = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        _put(result, "data", self.data)
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ErrorData:
        code = data.get("code")
        if isinstance(code, bool) or not isinstance(code, int):
            raise ValueError("missing or invalid field 'code'")
        return cls(code=code, message=_require_str(data, "message"), data=data.get("data"))


@dataclass
class JsonRpcRequest:
    method: str
    id: int | None = None
    params: Any = None
    jsonrpc: str = "2.0"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc}
        _put(data, "id", self.id)
        data["method"] = self.method
        _put(data, "params", self.params)
        return data


@dataclass
class JsonRpcResponse:
    id: int | None = None
    result: Any = None
    error: ErrorData | None = None
    jsonrpc: str = "2.0"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc}
        _put(data, "id", self.id)
        _put(data, "result", self.result)
        if self.error is not None:
            data["error"] = self.error.to_dict()
        return data


@dataclass
class JsonRpcNotification:
    method: str
    params: Any = None
    jsonrpc: str = "2.0"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc, "method": self.method}
        _put(data, "params", self.params)
        return data


@dataclass
class JsonRpcError:
    error: ErrorData
    id: int | None = None
    jsonrpc: str = "2.0"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"jsonrpc": self.jsonrpc}
        _put(data, "id", self.id)
        data["error"] = self.error.to_dict()
        return data


@dataclass(frozen=True)
class JsonRpcNil:
    """The empty reply given to a notification: no id, method, result or error."""

    jsonrpc: str = "2.0"

    def to_dict(self) -> dict[str, Any]:
        """The wire form, which parse_message classifies as a nil reply again."""
        return {"jsonrpc": self.jsonrpc}


JsonRpcMessage = Union[
    JsonRpcRequest, JsonRpcResponse, JsonRpcNotification, JsonRpcError, JsonRpcNil
]


def _parse_id(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < _MAX_ID:
        raise InvalidMessageError(f"invalid JSON-RPC id: {value!r}")
    return value


def parse_message(data: Any) -> JsonRpcMessage:
    """Classify a decoded JSON object as a JSON-RPC message."""
    if not isinstance(data, Mapping):
        raise InvalidMessageError("JSON-RPC message must be an object")
    jsonrpc = data.get("jsonrpc")
    if not isinstance(jsonrpc, str):
        raise InvalidMessageError("missing or invalid field 'jsonrpc'")
    message_id = _parse_id(data.get("id"))
    method = data.get("method")
    if method is not None and not isinstance(method, str):
        raise InvalidMessageError("invalid field 'method'")
    params = data.get("params")
    result = data.get("result")
    raw_error = data.get("error")

    if raw_error is not None:
        if not isinstance(raw_error, Mapping):
            raise InvalidMessageError("invalid field 'error'")
        try:
            error = ErrorData.from_dict(raw_error)
        except ValueError as exc:
            raise InvalidMessageError(str(exc)) from exc
        return JsonRpcError(error=error, id=message_id, jsonrpc=jsonrpc)

    if result is not None:
        return JsonRpcResponse(id=message_id, result=result, jsonrpc=jsonrpc)

    if method is not None:
        if message_id is None:
            return JsonRpcNotification(method=method, params=params, jsonrpc=jsonrpc)
        return JsonRpcRequest(method=method, id=message_id, params=params, jsonrpc=jsonrpc)

    if message_id is None:
        return JsonRpcNil(jsonrpc=jsonrpc)

    raise InvalidMessageError(
        f"Invalid JSON-RPC message format: id={message_id!r}, method=None, "
        "result=None, error=None"
    )


def message_from_json(text: str | bytes) -> JsonRpcMessage:
    """Decode and classify one JSON-RPC message."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidMessageError(f"invalid JSON: {exc}") from exc
    return parse_message(data)


def message_to_json(message: JsonRpcMessage) -> str:
    """Encode a JSON-RPC message as compact JSON."""
    return json.dumps(message.to_dict(), separators=(",", ":"), ensure_ascii=False)


@dataclass
class Implementation:
    name: str
    version: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "version": self.version}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Implementation:
        return cls(name=_require_str(data, "name"), version=_require_str(data, "version"))


@dataclass
class PromptsCapability:
    list_changed: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"listChanged": self.list_changed}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PromptsCapability:
        return cls(list_changed=_optional(data, "listChanged", bool))


@dataclass
class ResourcesCapability:
    subscribe: bool | None = None
    list_changed: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"subscribe": self.subscribe, "listChanged": self.list_changed}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ResourcesCapability:
        return cls(
            subscribe=_optional(data, "subscribe", bool),
            list_changed=_optional(data, "listChanged", bool),
        )


@dataclass
class ToolsCapability:
    list_changed: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"listChanged": self.list_changed}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ToolsCapability:
        return cls(list_changed=_optional(data, "listChanged", bool))


@dataclass
class ServerCapabilities:
    """The features a server announces it supports."""

    prompts: PromptsCapability | None = None
    resources: ResourcesCapability | None = None
    tools: ToolsCapability | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.prompts is not None:
            data["prompts"] = self.prompts.to_dict()
        if self.resources is not None:
            data["resources"] = self.resources.to_dict()
        if self.tools is not None:
            data["tools"] = self.tools.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ServerCapabilities:
        prompts = _optional(data, "prompts", Mapping)
        resources = _optional(data, "resources", Mapping)
        tools = _optional(data, "tools", Mapping)
        return cls(
            prompts=PromptsCapability.from_dict(prompts) if prompts is not None else None,
            resources=(
                ResourcesCapability.from_dict(resources) if resources is not None else None
            ),
            tools=ToolsCapability.from_dict(tools) if tools is not None else None,
        )


@dataclass
class InitializeResult:
    protocol_version: str
    capabilities: ServerCapabilities
    server_info: Implementation
    instructions: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "protocolVersion": self.protocol_version,
            "capabilities": self.capabilities.to_dict(),
            "serverInfo": self.server_info.to_dict(),
        }
        _put(data, "instructions", self.instructions)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> InitializeResult:
        return cls(
            protocol_version=_require_str(data, "protocolVersion"),
            capabilities=ServerCapabilities.from_dict(_require_mapping(data, "capabilities")),
            server_info=Implementation.from_dict(_require_mapping(data, "serverInfo")),
            instructions=_optional(data, "instructions", str),
        )


@dataclass
class ListResourcesResult:
    resources: list[Resource] = field(default_factory=list)
    next_cursor: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"resources": [item.to_dict() for item in self.resources]}
        _put(data, "nextCursor", self.next_cursor)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ListResourcesResult:
        return cls(
            resources=[Resource.from_dict(item) for item in _require_list(data, "resources")],
            next_cursor=_optional(data, "nextCursor", str),
        )


@dataclass
class ReadResourceResult:
    contents: list[ResourceContents] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"contents": [item.to_dict() for item in self.contents]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ReadResourceResult:
        return cls(
            contents=[resource_contents_from_dict(item) for item in _require_list(data, "contents")]
        )


@dataclass
class ListToolsResult:
    tools: list[Tool] = field(default_factory=list)
    next_cursor: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"tools": [item.to_dict() for item in self.tools]}
        _put(data, "nextCursor", self.next_cursor)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ListToolsResult:
        return cls(
            tools=[Tool.from_dict(item) for item in _require_list(data, "tools")],
            next_cursor=_optional(data, "nextCursor", str),
        )


@dataclass
class CallToolResult:
    content: list[Content] = field(default_factory=list)
    is_error: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content": [item.to_dict() for item in self.content]}
        _put(data, "isError", self.is_error)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CallToolResult:
        return cls(
            content=[Content.from_dict(item) for item in _require_list(data, "content")],
            is_error=_optional(data, "isError", bool),
        )


@dataclass
class ListPromptsResult:
    prompts: list[Prompt] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"prompts": [item.to_dict() for item in self.prompts]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ListPromptsResult:
        return cls(prompts=[Prompt.from_dict(item) for item in _require_list(data, "prompts")])


@dataclass
class GetPromptResult:
    messages: list[PromptMessage] = field(default_factory=list)
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        _put(data, "description", self.description)
        data["messages"] = [item.to_dict() for item in self.messages]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GetPromptResult:
        return cls(
            messages=[PromptMessage.from_dict(item) for item in _require_list(data, "messages")],
            description=_optional(data, "description", str),
        )


@dataclass
class EmptyResult:
    """A result with no fields."""

    def to_dict(self) -> dict[str, Any]:
        return {}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EmptyResult:
        return cls()