"""
Cal.com data model: upstream records, derived selection options and
validated tool inputs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_TIME_ZONE = "UTC"
DESCRIPTION_SEPARATOR = " • "


class EventType(BaseModel):
    """A bookable meeting template as returned by ``/v1/event-types``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int
    title: str
    slug: str = ""
    length: int
    hidden: bool = False
    position: int | None = None
    user_id: int | None = Field(default=None, alias="userId")
    team_id: int | None = Field(default=None, alias="teamId")
    description: str | None = None
    requires_confirmation: bool | None = Field(default=None, alias="requiresConfirmation")
    price: int | None = None
    currency: str | None = None


class SlotUser(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    username: str | None = None
    name: str | None = None


class Slot(BaseModel):
    """One offered start time. v1 payloads use ``time``, v2 payloads ``start``."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    time: str | None = None
    start: str | None = None
    end: str | None = None
    attendees: int | None = None
    booking_uid: str | None = Field(default=None, alias="bookingUid")
    users: list[SlotUser] | None = None

    @property
    def timestamp(self) -> str | None:
        return self.start or self.time


class SlotSet(BaseModel):
    """Slots grouped by calendar date (``YYYY-MM-DD``)."""

    model_config = ConfigDict(frozen=True)

    slots: dict[str, list[Slot]] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _unwrap_envelope(cls, value: Any) -> Any:
        # v2 wraps the date map as {"status": "success", "data": {...}}
        if isinstance(value, dict) and "slots" not in value and isinstance(value.get("data"), dict):
            return {"slots": value["data"]}
        return value

    @field_validator("slots", mode="before")
    @classmethod
    def _coerce_plain_times(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        return {
            date: [{"time": slot} if isinstance(slot, str) else slot for slot in day]
            for date, day in value.items()
        }

    @property
    def total(self) -> int:
        return sum(len(day) for day in self.slots.values())


class SelectionOption(BaseModel):
    """Presentation-only projection of an EventType; ``id`` is the upstream id."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    duration: str

    @classmethod
    def from_event_type(cls, event_type: EventType) -> SelectionOption:
        duration = format_duration(event_type.length)
        parts = [duration]
        if event_type.requires_confirmation:
            parts.append("Requires confirmation")
        if event_type.team_id is not None:
            parts.append("Team event")
        if event_type.price:
            currency = (event_type.currency or "usd").upper()
            parts.append(f"Price: {event_type.price / 100:.2f} {currency}")
        return cls(
            id=event_type.id,
            title=event_type.title,
            description=DESCRIPTION_SEPARATOR.join(parts),
            duration=duration,
        )


class EventTypeWithSlots(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_type: EventType
    slots: SlotSet


def format_duration(minutes: int) -> str:
    """Render a duration in minutes, e.g. "30 min", "1 hour", "1 hr 30 min"."""
    if minutes < 60:
        return f"{minutes} min"
    hours, rest = divmod(minutes, 60)
    if rest == 0:
        return "1 hour" if hours == 1 else f"{hours} hours"
    return f"{hours} hr {rest} min"


def _check_iso_datetime(value: str) -> str:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError("must be an ISO 8601 datetime, e.g. 2024-01-20T09:00:00Z") from None
    if "T" not in value:
        raise ValueError("must include a time component, e.g. 2024-01-20T09:00:00Z")
    return value


class _SlotWindowInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    start: str = Field(description="Start date and time in ISO 8601 format")
    end: str = Field(description="End date and time in ISO 8601 format")
    time_zone: str | None = Field(
        default=None,
        alias="timeZone",
        description="IANA time zone (default: UTC)",
    )

    @field_validator("start", "end")
    @classmethod
    def _iso_datetime(cls, value: str) -> str:
        return _check_iso_datetime(value)

    @property
    def resolved_time_zone(self) -> str:
        return self.time_zone or DEFAULT_TIME_ZONE


class SlotsForTypeInput(_SlotWindowInput):
    """Input of the second conversational step."""

    event_type_id: int = Field(alias="eventTypeId", strict=True)


class LegacySlotsInput(_SlotWindowInput):
    """Input of the single-step query: username + slug, or an event type id."""

    username: str | None = None
    event_type_slug: str | None = Field(default=None, alias="eventTypeSlug")
    event_type_id: int | None = Field(default=None, alias="eventTypeId", strict=True)
