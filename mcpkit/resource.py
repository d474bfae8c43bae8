"""Resources that a server offers to its clients."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Union
from urllib.parse import SplitResult, urlsplit

from .annotations import Annotations

DEFAULT_MIME_TYPE = "text"
_MIME_TYPES = frozenset({"text", "blob"})
_EPSILON = 1e-6
_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*\Z")
_SPECIAL_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp", "file"})


class InvalidUriError(ValueError):
    """Raised when a resource URI cannot be parsed."""


def _parse_uri(uri: str) -> SplitResult:
    try:
        parts = urlsplit(uri)
    except ValueError as exc:
        raise InvalidUriError(f"Invalid URI: {exc}") from exc
    if not parts.scheme or not _SCHEME.match(parts.scheme):
        raise InvalidUriError("Invalid URI: relative URL without a base")
    if parts.scheme in _SPECIAL_SCHEMES and parts.scheme != "file" and not parts.netloc:
        raise InvalidUriError("Invalid URI: empty host")
    return parts


def _last_segment(parts: SplitResult) -> str | None:
    path = parts.path
    if not path and parts.scheme in _SPECIAL_SCHEMES:
        path = "/"
    if not path.startswith("/"):
        return None
    return path.rsplit("/", 1)[-1]


def _normalise_mime_type(mime_type: str | None) -> str:
    return mime_type if mime_type in _MIME_TYPES else DEFAULT_MIME_TYPE


def _require_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ValueError(f"missing or invalid field {key!r}")
    return value


@dataclass(frozen=True)
class TextResourceContents:
    """Textual contents of a resource."""

    uri: str
    text: str
    mime_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"uri": self.uri}
        if self.mime_type is not None:
            data["mime_type"] = self.mime_type
        data["text"] = self.text
        return data


@dataclass(frozen=True)
class BlobResourceContents:
    """Binary contents of a resource, as encoded text."""

    uri: str
    blob: str
    mime_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"uri": self.uri}
        if self.mime_type is not None:
            data["mime_type"] = self.mime_type
        data["blob"] = self.blob
        return data


ResourceContents = Union[TextResourceContents, BlobResourceContents]


def resource_contents_from_dict(data: Mapping[str, Any]) -> ResourceContents:
    """Build text or blob resource contents from their wire form."""
    uri = data.get("uri")
    mime_type = data.get("mime_type", data.get("mimeType"))
    if isinstance(uri, str) and (mime_type is None or isinstance(mime_type, str)):
        text = data.get("text")
        if isinstance(text, str):
            return TextResourceContents(uri=uri, text=text, mime_type=mime_type)
        blob = data.get("blob")
        if isinstance(blob, str):
            return BlobResourceContents(uri=uri, blob=blob, mime_type=mime_type)
    raise ValueError("data did not match any variant of resource contents")


@dataclass
class Resource:
    """A resource with its metadata."""

    uri: str
    name: str
    description: str | None = None
    mime_type: str = DEFAULT_MIME_TYPE
    annotations: Annotations | None = None

    @classmethod
    def new(cls, uri: str, mime_type: str | None = None, name: str | None = None) -> Resource:
        """Create a resource, naming it after the last path segment unless a name is given."""
        parts = _parse_uri(uri)
        if name is None:
            segment = _last_segment(parts)
            name = segment if segment is not None else "unnamed"
        return cls(
            uri=uri,
            name=name,
            mime_type=_normalise_mime_type(mime_type),
            annotations=Annotations.for_resource(0.0, datetime.now(timezone.utc)),
        )

    @classmethod
    def with_uri(
        cls, uri: str, name: str, priority: float, mime_type: str | None = None
    ) -> Resource:
        """Create a resource with an explicit name and priority."""
        _parse_uri(uri)
        return cls(
            uri=uri,
            name=name,
            mime_type=_normalise_mime_type(mime_type),
            annotations=Annotations.for_resource(priority, datetime.now(timezone.utc)),
        )

    def _require_annotations(self) -> Annotations:
        if self.annotations is None:
            raise ValueError("resource has no annotations")
        return self.annotations

    def update_timestamp(self) -> None:
        """Set the resource's timestamp to the current time."""
        self.annotations = replace(
            self._require_annotations(), timestamp=datetime.now(timezone.utc)
        )

    def with_priority(self, priority: float) -> Resource:
        return replace(
            self, annotations=replace(self._require_annotations(), priority=float(priority))
        )

    def mark_active(self) -> Resource:
        """Return the resource with its priority set to 1.0."""
        return self.with_priority(1.0)

    def is_active(self) -> bool:
        priority = self.priority()
        return priority is not None and abs(priority - 1.0) < _EPSILON

    def priority(self) -> float | None:
        return self.annotations.priority if self.annotations is not None else None

    def timestamp(self) -> datetime | None:
        return self.annotations.timestamp if self.annotations is not None else None

    def scheme(self) -> str:
        return _parse_uri(self.uri).scheme

    def with_description(self, description: str) -> Resource:
        return replace(self, description=description)

    def with_mime_type(self, mime_type: str) -> Resource:
        """Return the resource with a new MIME type; unknown types fall back to "text"."""
        return replace(self, mime_type=_normalise_mime_type(mime_type))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"uri": self.uri, "name": self.name}
        if self.description is not None:
            data["description"] = self.description
        data["mimeType"] = self.mime_type
        if self.annotations is not None:
            data["annotations"] = self.annotations.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Resource:
        mime_type = data.get("mimeType", DEFAULT_MIME_TYPE)
        if not isinstance(mime_type, str):
            raise ValueError("missing or invalid field 'mimeType'")
        description = data.get("description")
        if description is not None and not isinstance(description, str):
            raise ValueError("missing or invalid field 'description'")
        annotations = data.get("annotations")
        return cls(
            uri=_require_str(data, "uri"),
            name=_require_str(data, "name"),
            description=description,
            mime_type=mime_type,
            annotations=Annotations.from_dict(annotations) if annotations is not None else None,
        )