"""Tools a server can run, and the calls a client makes to run them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


def _require_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ValueError(f"missing or invalid field {key!r}")
    return value


def _require_key(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise ValueError(f"missing field {key!r}")
    return data[key]


@dataclass
class Tool:
    """A tool that a model can use, with a JSON Schema for its parameters."""

    name: str
    description: str
    input_schema: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Tool:
        return cls(
            name=_require_str(data, "name"),
            description=_require_str(data, "description"),
            input_schema=_require_key(data, "inputSchema"),
        )


@dataclass
class ToolCall:
    """A request to run a tool with the given arguments."""

    name: str
    arguments: Any

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "arguments": self.arguments}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ToolCall:
        return cls(
            name=_require_str(data, "name"),
            arguments=_require_key(data, "arguments"),
        )