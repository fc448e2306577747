"""
Cal.com API client.

Domain-shaped calls over RetryableHttpClient plus the derived operations used
by the two-step booking flow (list options, then resolve one option's slots).

API Reference: https://cal.com/docs/api-reference/v2
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
import pydantic

from backtick_tools.config import DEFAULT_CALCOM_API_BASE, CalcomConfig
from backtick_tools.errors import ClassifiedError, NotFoundError
from backtick_tools.http_client import RequestSpec, RetryableHttpClient, RetryPolicy, Sleep

from .models import EventType, EventTypeWithSlots, SelectionOption, SlotSet

logger = logging.getLogger(__name__)

SLOTS_API_VERSION = "2024-09-04"
EVENT_TYPES_PATH = "/v1/event-types"
SLOTS_PATH = "/v2/slots"


def _invalid_payload(what: str, error: pydantic.ValidationError) -> ClassifiedError:
    return ClassifiedError(
        f"Unexpected Cal.com {what} payload: {error.error_count()} invalid field(s)",
        code="INVALID_RESPONSE",
    )


def _parse_slots(body: Any) -> SlotSet:
    try:
        return SlotSet.model_validate(body)
    except pydantic.ValidationError as e:
        raise _invalid_payload("slots", e) from e


class CalcomClient:
    """Client for the Cal.com event-type and slot endpoints."""

    def __init__(
        self,
        api_token: str,
        base_url: str = DEFAULT_CALCOM_API_BASE,
        policy: RetryPolicy | None = None,
        *,
        event_types_auth: str = "bearer",
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep | None = None,
    ):
        self._api_token = api_token
        self._event_types_auth = event_types_auth
        extra: dict[str, Any] = {}
        if sleep is not None:
            extra["sleep"] = sleep
        self._http = RetryableHttpClient(
            base_url,
            policy,
            service_name="Cal.com",
            transport=transport,
            **extra,
        )

    @classmethod
    def from_config(cls, config: CalcomConfig, **kwargs: Any) -> CalcomClient:
        return cls(
            config.api_token,
            config.base_url,
            config.retry_policy,
            event_types_auth=config.event_types_auth,
            **kwargs,
        )

    @property
    def _slots_headers(self) -> dict[str, str]:
        return {
            "cal-api-version": SLOTS_API_VERSION,
            "Accept": "application/json",
            "Authorization": f"Bearer {self._api_token}",
        }

    async def list_event_types(self) -> list[EventType]:
        """List all event types of the authenticated user."""
        headers = {"Content-Type": "application/json"}
        params: dict[str, Any] | None = None
        if self._event_types_auth == "query":
            params = {"apiKey": self._api_token}
        else:
            headers["Authorization"] = f"Bearer {self._api_token}"
        body = await self._http.execute(
            RequestSpec("GET", EVENT_TYPES_PATH, params=params, headers=headers)
        )
        if not isinstance(body, dict) or not isinstance(body.get("event_types"), list):
            raise ClassifiedError(
                "Unexpected Cal.com event types payload",
                code="INVALID_RESPONSE",
            )
        try:
            return [EventType.model_validate(item) for item in body["event_types"]]
        except pydantic.ValidationError as e:
            raise _invalid_payload("event types", e) from e

    async def list_slots_by_event_type(
        self,
        event_type_id: int,
        start: str,
        end: str,
        time_zone: str = "UTC",
    ) -> SlotSet:
        """Get open slots for an event type by its numeric id."""
        body = await self._http.execute(
            RequestSpec(
                "GET",
                SLOTS_PATH,
                params={
                    "eventTypeId": event_type_id,
                    "start": start,
                    "end": end,
                    "timeZone": time_zone,
                },
                headers=self._slots_headers,
            )
        )
        return _parse_slots(body)

    async def list_slots_by_username(
        self,
        username: str,
        event_type_slug: str,
        start: str,
        end: str,
        time_zone: str = "UTC",
    ) -> SlotSet:
        """Get open slots for an event type addressed by owner username and slug."""
        body = await self._http.execute(
            RequestSpec(
                "GET",
                SLOTS_PATH,
                params={
                    "username": username,
                    "eventTypeSlug": event_type_slug,
                    "start": start,
                    "end": end,
                    "timeZone": time_zone,
                },
                headers=self._slots_headers,
            )
        )
        return _parse_slots(body)

    async def list_selection_options(self) -> list[SelectionOption]:
        """
        Visible event types as selection options, sorted by title.

        The order is stable across calls so a caller can refer to an
        option by position; the option id is what later calls must use.
        """
        event_types = await self.list_event_types()
        options = [
            SelectionOption.from_event_type(event_type)
            for event_type in event_types
            if not event_type.hidden
        ]
        return sorted(options, key=lambda option: option.title)

    async def resolve_event_type_and_slots(
        self,
        event_type_id: int,
        start: str,
        end: str,
        time_zone: str = "UTC",
    ) -> EventTypeWithSlots:
        """
        Look up an event type by id, then fetch its slots.

        Two separate round trips; the event type may change between them.

        Raises:
            NotFoundError: no event type with that id exists
        """
        event_types = await self.list_event_types()
        event_type = next((et for et in event_types if et.id == event_type_id), None)
        if event_type is None:
            raise NotFoundError(f"Event type {event_type_id} not found")

        slots = await self.list_slots_by_event_type(event_type.id, start, end, time_zone)
        logger.debug(f"Resolved event type {event_type.id} with {slots.total} slots")
        return EventTypeWithSlots(event_type=event_type, slots=slots)

    async def aclose(self) -> None:
        await self._http.aclose()
