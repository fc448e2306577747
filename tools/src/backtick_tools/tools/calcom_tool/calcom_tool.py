"""
Cal.com Tool - Open source scheduling infrastructure.

Supports:
- Listing bookable event types as stable, ordered options (step 1)
- Resolving one option to its details and open slots (step 2)
- The single-step slot query kept for older callers

API Reference: https://cal.com/docs/api-reference/v2
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from backtick_tools.config import CalcomConfig, load_calcom_config
from backtick_tools.errors import BacktickError, ConfigurationError, IntegrationRegistrationError
from backtick_tools.registry import FeatureDescriptor, RegistrationOutcome

from .client import CalcomClient
from .service import AvailabilityService

if TYPE_CHECKING:
    from fastmcp import FastMCP

    from backtick_tools.credentials import CredentialStoreAdapter

logger = logging.getLogger(__name__)

TOOL_NAMES = [
    "calcom_list_booking_options",
    "calcom_get_slots_for_option",
    "calcom_get_available_slots",
]
RESOURCE_URIS = ["calcom://booking-options"]
PROMPT_NAMES = ["calcom_schedule_meeting"]


def _unexpected_error(name: str, error: Exception) -> dict:
    logger.exception(f"{name} failed unexpectedly")
    return BacktickError(str(error) or type(error).__name__).to_dict()


def register_tools(mcp: FastMCP, service: AvailabilityService) -> None:
    """Register Cal.com tools, resource and prompt with the MCP server."""

    # --- Step 1: options ---

    @mcp.tool()
    async def calcom_list_booking_options() -> dict:
        """
        List the meeting types that can be booked, as numbered options.

        Use this first when someone wants to book a meeting:
        - Show the options to the user and let them pick one
        - Pass the chosen option's id to calcom_get_slots_for_option

        The list is sorted by title and stable between calls.

        Returns:
            Dict with "options" (id, title, description, duration) or error
        """
        try:
            options = await service.get_selection_options()
            return {
                "options": [option.model_dump() for option in options],
                "count": len(options),
            }
        except BacktickError as e:
            logger.warning(f"calcom_list_booking_options failed: {e.message}")
            return e.to_dict()
        except Exception as e:
            return _unexpected_error("calcom_list_booking_options", e)

    # --- Step 2: details and slots ---

    @mcp.tool()
    async def calcom_get_slots_for_option(
        event_type_id: int,
        start: str,
        end: str,
        time_zone: str = "UTC",
    ) -> dict:
        """
        Get details and open slots for the option the user picked.

        Use this after calcom_list_booking_options, with the option's id
        (never its title; titles can repeat).

        Args:
            event_type_id: The id of the chosen option
            start: Start of the search window (ISO 8601, e.g. "2024-01-20T00:00:00Z")
            end: End of the search window (ISO 8601)
            time_zone: IANA time zone for the returned slots (default: "UTC")

        Returns:
            Dict with "event_type" and "slots" grouped by date, or error
        """
        try:
            result = await service.get_slots_for_type(
                {
                    "event_type_id": event_type_id,
                    "start": start,
                    "end": end,
                    "time_zone": time_zone,
                }
            )
            return result.model_dump(by_alias=True, exclude_none=True)
        except BacktickError as e:
            logger.warning(f"calcom_get_slots_for_option failed: {e.message}")
            return e.to_dict()
        except Exception as e:
            return _unexpected_error("calcom_get_slots_for_option", e)

    # --- Legacy single step ---

    @mcp.tool()
    async def calcom_get_available_slots(
        start: str,
        end: str,
        username: str | None = None,
        event_type_slug: str | None = None,
        event_type_id: int | None = None,
        time_zone: str = "UTC",
    ) -> dict:
        """
        Get available meeting slots from Cal.com in one call.

        Identify the event type either by username + event_type_slug or by
        event_type_id. Prefer the two-step tools when the id is not known.

        Args:
            start: Start of the search window (ISO 8601)
            end: End of the search window (ISO 8601)
            username: Cal.com username owning the event type
            event_type_slug: Slug of the event type (used with username)
            event_type_id: Numeric event type id
            time_zone: IANA time zone for the returned slots (default: "UTC")

        Returns:
            Dict with "slots" grouped by date, or error
        """
        try:
            slots = await service.get_available_slots_legacy(
                {
                    "start": start,
                    "end": end,
                    "username": username,
                    "event_type_slug": event_type_slug,
                    "event_type_id": event_type_id,
                    "time_zone": time_zone,
                }
            )
            return slots.model_dump(by_alias=True, exclude_none=True)
        except BacktickError as e:
            logger.warning(f"calcom_get_available_slots failed: {e.message}")
            return e.to_dict()
        except Exception as e:
            return _unexpected_error("calcom_get_available_slots", e)

    @mcp.resource("calcom://booking-options", mime_type="application/json")
    async def calcom_booking_options() -> str:
        """Bookable meeting types, sorted by title."""
        try:
            options = await service.get_selection_options()
            return json.dumps([option.model_dump() for option in options], indent=2)
        except BacktickError as e:
            return json.dumps(e.to_dict())
        except Exception as e:
            return json.dumps(_unexpected_error("calcom://booking-options", e))

    @mcp.prompt()
    def calcom_schedule_meeting(start: str = "", end: str = "") -> str:
        """Walk through booking a meeting: pick a meeting type, then a slot."""
        window = f" between {start} and {end}" if start and end else ""
        return (
            "Help me find a time for a meeting"
            f"{window}.\n"
            "1. Call calcom_list_booking_options and show me the options as a numbered list.\n"
            "2. When I pick one, call calcom_get_slots_for_option with that option's id "
            "and the time window.\n"
            "3. Present the open slots grouped by date in my time zone."
        )


class CalcomIntegration:
    """Cal.com integration; loads only when a Cal.com API token is configured."""

    def __init__(
        self,
        credentials: CredentialStoreAdapter,
        env: dict[str, str] | None = None,
        **client_options: Any,
    ):
        self._credentials = credentials
        self._env = env
        self._client_options = client_options
        self._client: CalcomClient | None = None

    def get_info(self) -> FeatureDescriptor:
        return FeatureDescriptor(
            name="calcom",
            description="Meeting types and open slots from Cal.com",
            version="1.0.0",
        )

    def can_load(self) -> bool:
        return self._credentials.is_available("calcom")

    def _load_config(self) -> CalcomConfig:
        try:
            return load_calcom_config(self._credentials.get("calcom"), self._env)
        except ConfigurationError as e:
            raise IntegrationRegistrationError(e.message) from e

    async def register(self, mcp: FastMCP) -> RegistrationOutcome:
        config = self._load_config()
        client = CalcomClient.from_config(config, **self._client_options)
        try:
            register_tools(mcp, AvailabilityService(client))
        except BaseException:
            await client.aclose()
            raise

        self._client = client
        logger.info(f"Cal.com feature loaded with API base: {config.base_url}")
        return RegistrationOutcome.registered(
            self.get_info(),
            tools=TOOL_NAMES,
            resources=RESOURCE_URIS,
            prompts=PROMPT_NAMES,
        )

    async def cleanup(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
