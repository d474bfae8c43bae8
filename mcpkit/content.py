"""Content exchanged between agents, extensions and models."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping, Union

from .annotations import Annotations
from .resource import ResourceContents, TextResourceContents, resource_contents_from_dict
from .role import Role


def _annotations_from(data: Mapping[str, Any]) -> Annotations | None:
    raw = data.get("annotations")
    return Annotations.from_dict(raw) if raw is not None else None


def _with_annotations(data: dict[str, Any], annotations: Annotations | None) -> dict[str, Any]:
    if annotations is not None:
        data["annotations"] = annotations.to_dict()
    return data


def _require_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ValueError(f"missing or invalid field {key!r}")
    return value


@dataclass(frozen=True)
class TextContent:
    """Plain text."""

    text: str
    annotations: Annotations | None = None

    def to_dict(self) -> dict[str, Any]:
        return _with_annotations({"text": self.text}, self.annotations)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TextContent:
        return cls(text=_require_str(data, "text"), annotations=_annotations_from(data))


@dataclass(frozen=True)
class ImageContent:
    """An image as encoded data with its MIME type."""

    data: str
    mime_type: str
    annotations: Annotations | None = None

    def to_dict(self) -> dict[str, Any]:
        return _with_annotations(
            {"data": self.data, "mimeType": self.mime_type}, self.annotations
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ImageContent:
        return cls(
            data=_require_str(data, "data"),
            mime_type=_require_str(data, "mimeType"),
            annotations=_annotations_from(data),
        )


@dataclass(frozen=True)
class EmbeddedResource:
    """Resource contents embedded directly in a message."""

    resource: ResourceContents
    annotations: Annotations | None = None

    def get_text(self) -> str:
        """The text of the resource, or an empty string for binary contents."""
        if isinstance(self.resource, TextResourceContents):
            return self.resource.text
        return ""

    def to_dict(self) -> dict[str, Any]:
        return _with_annotations({"resource": self.resource.to_dict()}, self.annotations)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EmbeddedResource:
        raw = data.get("resource")
        if not isinstance(raw, Mapping):
            raise ValueError("missing or invalid field 'resource'")
        return cls(resource=resource_contents_from_dict(raw), annotations=_annotations_from(data))


ContentBody = Union[TextContent, ImageContent, EmbeddedResource]

_KINDS: dict[str, type] = {
    "text": TextContent,
    "image": ImageContent,
    "resource": EmbeddedResource,
}


@dataclass(frozen=True)
class Content:
    """A piece of text, image or resource content, optionally annotated."""

    value: ContentBody

    @classmethod
    def text(cls, text: str) -> Content:
        return cls(TextContent(text=text))

    @classmethod
    def image(cls, data: str, mime_type: str) -> Content:
        return cls(ImageContent(data=data, mime_type=mime_type))

    @classmethod
    def resource(cls, resource: ResourceContents) -> Content:
        return cls(EmbeddedResource(resource=resource))

    @classmethod
    def embedded_text(cls, uri: str, content: str) -> Content:
        return cls.resource(TextResourceContents(uri=uri, text=content, mime_type="text"))

    @property
    def kind(self) -> str:
        """The wire tag of this content: "text", "image" or "resource"."""
        return next(tag for tag, body in _KINDS.items() if isinstance(self.value, body))

    def as_text(self) -> str | None:
        return self.value.text if isinstance(self.value, TextContent) else None

    def as_image(self) -> tuple[str, str] | None:
        if isinstance(self.value, ImageContent):
            return self.value.data, self.value.mime_type
        return None

    def _annotated(self, **changes: Any) -> Content:
        current = self.value.annotations or Annotations()
        return Content(replace(self.value, annotations=replace(current, **changes)))

    def with_audience(self, audience: Iterable[Role]) -> Content:
        return self._annotated(audience=[Role(role) for role in audience])

    def with_priority(self, priority: float) -> Content:
        """Return the content with a priority, which must lie in [0.0, 1.0]."""
        if not 0.0 <= priority <= 1.0:
            raise ValueError("Priority must be between 0.0 and 1.0")
        return self._annotated(priority=float(priority))

    def audience(self) -> list[Role] | None:
        annotations = self.value.annotations
        return annotations.audience if annotations is not None else None

    def priority(self) -> float | None:
        annotations = self.value.annotations
        return annotations.priority if annotations is not None else None

    def unannotated(self) -> Content:
        return Content(replace(self.value, annotations=None))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, **self.value.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Content:
        body = _KINDS.get(data.get("type"))
        if body is None:
            raise ValueError(f"unknown content type: {data.get('type')!r}")
        return cls(body.from_dict(data))