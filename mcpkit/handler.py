"""Error types and base classes for tool and resource handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import PydanticUserError, TypeAdapter


class _DetailedError(Exception):
    """An error carrying a detail message behind a fixed prefix."""

    prefix = ""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.prefix}: {self.detail}" if self.prefix else self.detail

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.detail == other.detail  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self.detail))


class ToolError(_DetailedError):
    """Base class for errors raised by tools."""


class InvalidParametersError(ToolError):
    prefix = "Invalid parameters"


class ToolExecutionError(ToolError):
    prefix = "Execution failed"


class SchemaError(ToolError):
    prefix = "Schema error"


class ToolNotFoundError(ToolError):
    prefix = "Tool not found"


class ResourceError(_DetailedError):
    """Base class for errors raised by resources."""


class ResourceExecutionError(ResourceError):
    prefix = "Execution failed"


class ResourceNotFoundError(ResourceError):
    prefix = "Resource not found"


class PromptError(_DetailedError):
    """Base class for errors raised by prompts."""


class InvalidPromptParametersError(PromptError):
    prefix = "Invalid parameters"


class PromptInternalError(PromptError):
    prefix = "Internal error"


class PromptNotFoundError(PromptError):
    prefix = "Prompt not found"


class ToolHandler(ABC):
    """A tool that can be called with JSON parameters."""

    @abstractmethod
    def name(self) -> str:
        """The tool's name."""

    @abstractmethod
    def description(self) -> str:
        """What the tool does."""

    @abstractmethod
    def schema(self) -> Any:
        """The JSON Schema of the tool's parameters."""

    @abstractmethod
    async def call(self, params: Any) -> Any:
        """Run the tool; raise ToolError on failure."""


class ResourceTemplateHandler(ABC):
    """A resource addressed through a URL template."""

    @classmethod
    @abstractmethod
    def template(cls) -> str:
        """The URL template of this resource."""

    @classmethod
    @abstractmethod
    def schema(cls) -> Any:
        """The JSON Schema of the resource's parameters."""

    @abstractmethod
    async def get(self, params: Any) -> str:
        """Fetch the resource's value; raise ToolError on failure."""


def generate_schema(model: Any) -> dict[str, Any]:
    """The JSON Schema of a type, raising SchemaError if none can be made."""
    try:
        return TypeAdapter(model).json_schema()
    except (PydanticUserError, TypeError, ValueError) as exc:
        raise SchemaError(str(exc)) from exc