"""Prompts, their arguments and the messages they produce."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union

from .annotations import Annotations
from .content import EmbeddedResource, ImageContent
from .handler import InvalidPromptParametersError
from .resource import TextResourceContents


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


@dataclass
class PromptArgument:
    """An argument that customises a prompt."""

    name: str
    description: str | None = None
    required: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            data["description"] = self.description
        if self.required is not None:
            data["required"] = self.required
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PromptArgument:
        return cls(
            name=_require_str(data, "name"),
            description=_optional(data, "description", str),
            required=_optional(data, "required", bool),
        )


@dataclass
class Prompt:
    """A prompt that can be used to generate text from a model."""

    name: str
    description: str | None = None
    arguments: list[PromptArgument] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            data["description"] = self.description
        if self.arguments is not None:
            data["arguments"] = [argument.to_dict() for argument in self.arguments]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Prompt:
        arguments = _optional(data, "arguments", list)
        return cls(
            name=_require_str(data, "name"),
            description=_optional(data, "description", str),
            arguments=(
                [PromptArgument.from_dict(item) for item in arguments]
                if arguments is not None
                else None
            ),
        )


class PromptMessageRole(str, Enum):
    """Who sent a message in a prompt conversation."""

    USER = "user"
    ASSISTANT = "assistant"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class PromptTextContent:
    """Plain text in a prompt message."""

    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PromptTextContent:
        return cls(text=_require_str(data, "text"))


@dataclass(frozen=True)
class PromptImageContent:
    """An image with base64-encoded data in a prompt message."""

    image: ImageContent

    def to_dict(self) -> dict[str, Any]:
        return {"type": "image", "image": self.image.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PromptImageContent:
        return cls(image=ImageContent.from_dict(_require_mapping(data, "image")))


@dataclass(frozen=True)
class PromptResourceContent:
    """A server-side resource embedded in a prompt message."""

    resource: EmbeddedResource

    def to_dict(self) -> dict[str, Any]:
        return {"type": "resource", "resource": self.resource.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PromptResourceContent:
        return cls(resource=EmbeddedResource.from_dict(_require_mapping(data, "resource")))


PromptMessageContent = Union[PromptTextContent, PromptImageContent, PromptResourceContent]

_CONTENT_KINDS: dict[str, Any] = {
    "text": PromptTextContent,
    "image": PromptImageContent,
    "resource": PromptResourceContent,
}


def prompt_content_from_dict(data: Mapping[str, Any]) -> PromptMessageContent:
    """Build prompt message content from its tagged wire form."""
    kind = _CONTENT_KINDS.get(data.get("type"))
    if kind is None:
        raise ValueError(f"unknown prompt content type: {data.get('type')!r}")
    return kind.from_dict(data)


@dataclass(frozen=True)
class PromptMessage:
    """A message in a prompt conversation."""

    role: PromptMessageRole
    content: PromptMessageContent

    @classmethod
    def new_text(cls, role: PromptMessageRole, text: str) -> PromptMessage:
        return cls(role=PromptMessageRole(role), content=PromptTextContent(text=text))

    @classmethod
    def new_image(
        cls,
        role: PromptMessageRole,
        data: str,
        mime_type: str,
        annotations: Annotations | None = None,
    ) -> PromptMessage:
        """An image message; data must be base64 and the MIME type an image type."""
        try:
            base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidPromptParametersError("Image data must be valid base64") from exc
        if not mime_type.startswith("image/"):
            raise InvalidPromptParametersError(
                "MIME type must be a valid image type (e.g. image/jpeg)"
            )
        image = ImageContent(data=data, mime_type=mime_type, annotations=annotations)
        return cls(role=PromptMessageRole(role), content=PromptImageContent(image=image))

    @classmethod
    def new_resource(
        cls,
        role: PromptMessageRole,
        uri: str,
        mime_type: str,
        text: str | None = None,
        annotations: Annotations | None = None,
    ) -> PromptMessage:
        contents = TextResourceContents(uri=uri, text=text or "", mime_type=mime_type)
        resource = EmbeddedResource(resource=contents, annotations=annotations)
        return cls(role=PromptMessageRole(role), content=PromptResourceContent(resource=resource))

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PromptMessage:
        return cls(
            role=PromptMessageRole(data.get("role")),
            content=prompt_content_from_dict(_require_mapping(data, "content")),
        )


@dataclass
class PromptArgumentTemplate:
    """Template for a prompt argument."""

    name: str
    description: str | None = None
    required: bool | None = None


@dataclass
class PromptTemplate:
    """Template for a prompt."""

    id: str
    template: str
    arguments: list[PromptArgumentTemplate] = field(default_factory=list)