from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_DETAIL_TYPE = "CustomEvent"
DEFAULT_SOURCE = "custom.app"


class SendEventRequest(BaseModel):
    """Inbound body for ``POST /send-event``.

    Only presence is checked; empty ``detailType``/``source`` fall back to the defaults.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    detail: Any = None
    detail_type: str | None = Field(default=None, alias="detailType")
    source: str | None = None

    @field_validator("detail_type", "source", mode="before")
    @classmethod
    def _falsy_to_none(cls, value: Any) -> str | None:
        # false, 0 and "" all mean "use the default".
        if not value:
            return None
        return value if isinstance(value, str) else str(value)

    def to_envelope(self) -> EventEnvelope:
        return EventEnvelope(
            detail=self.detail if self.detail is not None else {},
            detail_type=self.detail_type or DEFAULT_DETAIL_TYPE,
            source=self.source or DEFAULT_SOURCE,
        )


class EventEnvelope(BaseModel):
    detail: Any = Field(default_factory=dict)
    detail_type: str = DEFAULT_DETAIL_TYPE
    source: str = DEFAULT_SOURCE

    def to_put_events_entry(self, event_bus_name: str) -> dict[str, str]:
        return {
            "EventBusName": event_bus_name,
            "Source": self.source,
            "DetailType": self.detail_type,
            "Detail": json.dumps(self.detail, separators=(",", ":")),
        }


class ErrorResponse(BaseModel):
    error: str
