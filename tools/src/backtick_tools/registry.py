"""
Capability registry.

Holds the optional integrations of the server. At startup each one is asked
whether it can load; loadable ones bind their tools, resources and prompts on
the MCP server. A failing integration is recorded and skipped over, so the
server always starts, possibly with no capabilities at all.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from fastmcp import FastMCP

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureDescriptor:
    name: str
    description: str
    version: str
    enabled: bool = True


class OutcomeStatus(StrEnum):
    REGISTERED = "registered"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class RegistrationOutcome:
    """What happened when one integration was offered to the server."""

    descriptor: FeatureDescriptor
    status: OutcomeStatus
    error: str | None = None
    tools: tuple[str, ...] = field(default_factory=tuple)
    resources: tuple[str, ...] = field(default_factory=tuple)
    prompts: tuple[str, ...] = field(default_factory=tuple)

    @property
    def success(self) -> bool:
        return self.status is OutcomeStatus.REGISTERED

    @classmethod
    def registered(
        cls,
        descriptor: FeatureDescriptor,
        tools: list[str] | tuple[str, ...] = (),
        resources: list[str] | tuple[str, ...] = (),
        prompts: list[str] | tuple[str, ...] = (),
    ) -> RegistrationOutcome:
        return cls(
            descriptor=descriptor,
            status=OutcomeStatus.REGISTERED,
            tools=tuple(tools),
            resources=tuple(resources),
            prompts=tuple(prompts),
        )

    @classmethod
    def failed(cls, descriptor: FeatureDescriptor, error: str) -> RegistrationOutcome:
        return cls(descriptor=descriptor, status=OutcomeStatus.FAILED, error=error)


@runtime_checkable
class Integration(Protocol):
    """Contract every optional integration implements.

    ``register`` may be sync or async. An optional ``cleanup()`` method
    (sync or async) is called on shutdown when present.
    """

    def get_info(self) -> FeatureDescriptor: ...

    def can_load(self) -> bool: ...

    def register(
        self, mcp: FastMCP
    ) -> RegistrationOutcome | Awaitable[RegistrationOutcome]: ...


def _error_message(error: Exception) -> str:
    return str(error) or type(error).__name__


class CapabilityRegistry:
    """
    Ordered set of integrations, keyed by descriptor name.

    Usage:
        registry = CapabilityRegistry()
        registry.add(CalcomIntegration(credentials))
        outcomes = await registry.register_all(mcp)
    """

    def __init__(self) -> None:
        self._integrations: dict[str, Integration] = {}
        self._results: dict[str, RegistrationOutcome] = {}

    def add(self, integration: Integration) -> None:
        """Add an integration. A later add with the same name replaces the earlier one."""
        name = integration.get_info().name
        if name in self._integrations:
            logger.warning(f"Integration '{name}' added twice; keeping the last one")
        self._integrations[name] = integration

    def get(self, name: str) -> Integration | None:
        return self._integrations.get(name)

    def integrations(self) -> list[Integration]:
        return list(self._integrations.values())

    async def register_all(self, mcp: FastMCP) -> list[RegistrationOutcome]:
        """Offer every integration to the server, in insertion order."""
        outcomes: list[RegistrationOutcome] = []

        for integration in self._integrations.values():
            info = integration.get_info()
            outcome = await self._register_one(integration, info, mcp)
            outcomes.append(outcome)
            self._results[info.name] = outcome

        return outcomes

    async def _register_one(
        self,
        integration: Integration,
        info: FeatureDescriptor,
        mcp: FastMCP,
    ) -> RegistrationOutcome:
        try:
            if not integration.can_load():
                logger.warning(
                    f"Feature {info.name} skipped: missing configuration or dependencies"
                )
                return RegistrationOutcome(
                    descriptor=info,
                    status=OutcomeStatus.SKIPPED,
                    error=(
                        f"Feature {info.name} cannot be loaded "
                        "(missing configuration or dependencies)"
                    ),
                )

            result = integration.register(mcp)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Feature {info.name} failed to load: {_error_message(e)}", exc_info=True)
            return RegistrationOutcome.failed(info, _error_message(e))

        if result.success:
            tools = f" - Tools: {', '.join(result.tools)}" if result.tools else ""
            logger.info(f"Feature {info.name} (v{info.version}) loaded successfully{tools}")
        else:
            logger.error(f"Feature {info.name} failed to load: {result.error}")
        return result

    def results(self) -> Mapping[str, RegistrationOutcome]:
        return MappingProxyType(dict(self._results))

    def successful(self) -> list[RegistrationOutcome]:
        return [r for r in self._results.values() if r.status is OutcomeStatus.REGISTERED]

    def failed(self) -> list[RegistrationOutcome]:
        return [r for r in self._results.values() if r.status is OutcomeStatus.FAILED]

    def skipped(self) -> list[RegistrationOutcome]:
        return [r for r in self._results.values() if r.status is OutcomeStatus.SKIPPED]

    def log_summary(self) -> None:
        successful = self.successful()
        if not successful:
            logger.warning("No features loaded successfully. Server will have no capabilities.")
        else:
            names = ", ".join(r.descriptor.name for r in successful)
            logger.info(f"{len(successful)} feature(s) loaded: {names}")

        failed = self.failed()
        if failed:
            logger.warning(f"{len(failed)} feature(s) failed to load")
            for outcome in failed:
                logger.error(f"Feature load error ({outcome.descriptor.name}): {outcome.error}")

    async def cleanup(self) -> None:
        """Run every integration's optional cleanup hook and forget the results."""
        for integration in self._integrations.values():
            hook = getattr(integration, "cleanup", None)
            if hook is None:
                continue
            try:
                result = hook()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Cleanup failed for feature {integration.get_info().name}")
        self._results.clear()
