from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer

STATUS_OK = "ok"
STATUS_MESSAGE = "🚀 Service running smoothly"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """
    Encode ``dt`` as ISO 8601 in UTC with millisecond precision,
    e.g. ``2026-10-18T12:00:00.123Z``. Naive values are taken as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class StatusResponse(BaseModel):
    """Payload returned by the health-check route."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: Literal["ok"] = Field(default=STATUS_OK)
    message: str = Field(default=STATUS_MESSAGE)
    timestamp: datetime = Field(default_factory=utc_now)

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return to_iso(value)
