"""
Integrations shipped with the server.

The set is fixed: ``get_integrations`` returns every integration in the order
they are offered to the MCP server. Adding an integration means adding it here.
"""

from __future__ import annotations

from backtick_tools.credentials import CredentialStoreAdapter
from backtick_tools.registry import CapabilityRegistry, Integration

from .calcom_tool import CalcomIntegration
from .demo_tool import DemoIntegration


def get_integrations(credentials: CredentialStoreAdapter | None = None) -> list[Integration]:
    credentials = credentials or CredentialStoreAdapter.default()
    return [
        CalcomIntegration(credentials),
        DemoIntegration(),
    ]


def build_registry(credentials: CredentialStoreAdapter | None = None) -> CapabilityRegistry:
    registry = CapabilityRegistry()
    for integration in get_integrations(credentials):
        registry.add(integration)
    return registry


__all__ = ["CalcomIntegration", "DemoIntegration", "build_registry", "get_integrations"]
