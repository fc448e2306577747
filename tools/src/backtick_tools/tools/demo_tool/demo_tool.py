"""
Demo Tool - dependency-free tools for checking that a client can reach the server.
"""

from __future__ import annotations

import platform
import sys
import time
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from backtick_tools.registry import FeatureDescriptor, RegistrationOutcome

if TYPE_CHECKING:
    from fastmcp import FastMCP

TOOL_NAMES = ["demo_echo", "demo_system_info", "demo_random_uuid"]
MAX_UUIDS = 10

_STARTED_AT = time.monotonic()


def register_tools(mcp: FastMCP) -> None:
    """Register demo tools with the MCP server."""

    @mcp.tool()
    def demo_echo(message: str, uppercase: bool = False, prefix: str | None = None) -> str:
        """
        Echo back the provided message with optional formatting.

        Args:
            message: The message to echo back
            uppercase: Whether to return the message in uppercase
            prefix: Optional prefix to add to the message

        Returns:
            The formatted message
        """
        result = message.upper() if uppercase else message
        if prefix:
            result = f"{prefix}: {result}"
        return result

    @mcp.tool()
    def demo_system_info() -> dict:
        """Get basic information about the server process."""
        return {
            "timestamp": datetime.now(UTC).isoformat(),
            "python_version": sys.version.split()[0],
            "platform": sys.platform,
            "machine": platform.machine(),
            "uptime_seconds": round(time.monotonic() - _STARTED_AT, 3),
        }

    @mcp.tool()
    def demo_random_uuid(count: int = 1) -> dict:
        """
        Generate random UUIDs.

        Args:
            count: Number of UUIDs to generate (1-10)

        Returns:
            Dict with "uuids" or error
        """
        if not 1 <= count <= MAX_UUIDS:
            return {
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": f"count must be between 1 and {MAX_UUIDS}",
                }
            }
        return {"uuids": [str(uuid.uuid4()) for _ in range(count)]}


class DemoIntegration:
    """Always-available integration used to smoke-test a deployment."""

    def get_info(self) -> FeatureDescriptor:
        return FeatureDescriptor(
            name="demo",
            description="Simple demo tools for testing MCP connectivity",
            version="1.0.0",
        )

    def can_load(self) -> bool:
        return True

    def register(self, mcp: FastMCP) -> RegistrationOutcome:
        register_tools(mcp)
        return RegistrationOutcome.registered(self.get_info(), tools=TOOL_NAMES)
