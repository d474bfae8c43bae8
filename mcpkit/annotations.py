"""Optional annotations that tell clients how content is meant to be used."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from .role import Role

_TIMESTAMP = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _format_timestamp(moment: datetime) -> str:
    moment = _as_utc(moment)
    base = moment.strftime("%Y-%m-%dT%H:%M:%S")
    micros = moment.microsecond
    if micros == 0:
        fraction = ""
    elif micros % 1000 == 0:
        fraction = f".{micros // 1000:03d}"
    else:
        fraction = f".{micros:06d}"
    return f"{base}{fraction}Z"


def _parse_timestamp(text: str) -> datetime:
    match = _TIMESTAMP.match(text)
    if match is None:
        raise ValueError(f"invalid timestamp: {text!r}")
    date, time, fraction, offset = match.groups()
    fraction = (fraction or "")[:6].ljust(6, "0")
    offset = "+00:00" if offset in ("Z", "z") else offset
    moment = datetime.fromisoformat(f"{date}T{time}.{fraction}{offset}")
    return moment.astimezone(timezone.utc)


@dataclass(frozen=True)
class Annotations:
    """Audience, priority and timestamp hints attached to content."""

    audience: list[Role] | None = None
    priority: float | None = None
    timestamp: datetime | None = None

    @classmethod
    def for_resource(cls, priority: float, timestamp: datetime) -> Annotations:
        """Annotations for a resource; priority must lie in [0.0, 1.0]."""
        if not 0.0 <= priority <= 1.0:
            raise ValueError(f"Priority {priority} must be between 0.0 and 1.0")
        return cls(priority=float(priority), timestamp=_as_utc(timestamp))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.audience is not None:
            data["audience"] = [Role(role).value for role in self.audience]
        if self.priority is not None:
            data["priority"] = self.priority
        if self.timestamp is not None:
            data["timestamp"] = _format_timestamp(self.timestamp)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Annotations:
        audience = data.get("audience")
        priority = data.get("priority")
        timestamp = data.get("timestamp")
        if audience is not None and not isinstance(audience, list):
            raise ValueError("annotations audience must be a list")
        if priority is not None and not isinstance(priority, (int, float)):
            raise ValueError("annotations priority must be a number")
        if timestamp is not None and not isinstance(timestamp, str):
            raise ValueError("annotations timestamp must be a string")
        return cls(
            audience=[Role(role) for role in audience] if audience is not None else None,
            priority=float(priority) if priority is not None else None,
            timestamp=_parse_timestamp(timestamp) if timestamp is not None else None,
        )