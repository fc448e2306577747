"""
Availability service: validates caller input and orchestrates the
two-step booking flow on top of CalcomClient.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, TypeVar

import pydantic

from backtick_tools.errors import ValidationError

from .client import CalcomClient
from .models import (
    EventTypeWithSlots,
    LegacySlotsInput,
    SelectionOption,
    SlotSet,
    SlotsForTypeInput,
)

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=pydantic.BaseModel)

MISSING_IDENTIFIER_MESSAGE = "Either username/eventTypeSlug or eventTypeId must be provided"


def _validate(model: type[InputT], data: Mapping[str, Any] | InputT) -> InputT:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(dict(data))
    except pydantic.ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid input: {details}") from e


class AvailabilityService:
    """
    Entry point for slot queries.

    Step 1: ``get_selection_options`` lists the bookable event types.
    Step 2: ``get_slots_for_type`` returns the chosen type with its slots.
    ``get_available_slots_legacy`` keeps the older one-shot call working.
    """

    def __init__(self, client: CalcomClient):
        self._client = client

    async def get_selection_options(self) -> list[SelectionOption]:
        return await self._client.list_selection_options()

    async def get_slots_for_type(
        self, data: Mapping[str, Any] | SlotsForTypeInput
    ) -> EventTypeWithSlots:
        params = _validate(SlotsForTypeInput, data)
        return await self._client.resolve_event_type_and_slots(
            params.event_type_id,
            params.start,
            params.end,
            params.resolved_time_zone,
        )

    async def get_available_slots_legacy(
        self, data: Mapping[str, Any] | LegacySlotsInput
    ) -> SlotSet:
        params = _validate(LegacySlotsInput, data)
        time_zone = params.resolved_time_zone

        if params.username and params.event_type_slug:
            logger.debug(f"Fetching slots for {params.username}/{params.event_type_slug}")
            return await self._client.list_slots_by_username(
                params.username,
                params.event_type_slug,
                params.start,
                params.end,
                time_zone,
            )
        if params.event_type_id is not None:
            logger.debug(f"Fetching slots for event type {params.event_type_id}")
            return await self._client.list_slots_by_event_type(
                params.event_type_id,
                params.start,
                params.end,
                time_zone,
            )
        raise ValidationError(MISSING_IDENTIFIER_MESSAGE)
