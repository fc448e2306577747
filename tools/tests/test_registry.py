"""Tests for the capability registry."""

import logging

import pytest
from fastmcp import FastMCP

from backtick_tools.registry import (
    CapabilityRegistry,
    FeatureDescriptor,
    Integration,
    OutcomeStatus,
    RegistrationOutcome,
)


class FakeIntegration:
    """Configurable integration that records what happened to it."""

    def __init__(
        self,
        name,
        loadable=True,
        error=None,
        is_async=False,
        outcome=None,
        cleanup_error=None,
    ):
        self.info = FeatureDescriptor(name=name, description=f"{name} feature", version="1.0.0")
        self.loadable = loadable
        self.error = error
        self.is_async = is_async
        self.outcome = outcome
        self.cleanup_error = cleanup_error
        self.registered_on = None
        self.cleaned_up = False

    def get_info(self):
        return self.info

    def can_load(self):
        return self.loadable

    def _register(self, mcp):
        if self.error:
            raise self.error
        self.registered_on = mcp
        return self.outcome or RegistrationOutcome.registered(
            self.info, tools=[f"{self.info.name}_tool"]
        )

    def register(self, mcp):
        if self.is_async:
            return self._register_async(mcp)
        return self._register(mcp)

    async def _register_async(self, mcp):
        return self._register(mcp)

    async def cleanup(self):
        self.cleaned_up = True
        if self.cleanup_error:
            raise self.cleanup_error


@pytest.fixture
def mcp():
    return FastMCP("test-registry")


@pytest.fixture
def registry():
    return CapabilityRegistry()


class TestAdd:
    def test_protocol_is_satisfied(self):
        assert isinstance(FakeIntegration("a"), Integration)

    def test_last_add_wins(self, registry, caplog):
        first = FakeIntegration("a")
        second = FakeIntegration("a")

        registry.add(first)
        with caplog.at_level(logging.WARNING):
            registry.add(second)

        assert registry.get("a") is second
        assert registry.integrations() == [second]
        assert "added twice" in caplog.text

    def test_get_unknown(self, registry):
        assert registry.get("missing") is None


class TestRegisterAll:
    async def test_failure_does_not_stop_others(self, registry, mcp):
        registry.add(FakeIntegration("a"))
        registry.add(FakeIntegration("b", error=RuntimeError("boom")))
        registry.add(FakeIntegration("c"))

        outcomes = await registry.register_all(mcp)

        assert [o.descriptor.name for o in outcomes] == ["a", "b", "c"]
        assert [o.status for o in outcomes] == [
            OutcomeStatus.REGISTERED,
            OutcomeStatus.FAILED,
            OutcomeStatus.REGISTERED,
        ]
        assert outcomes[1].error == "boom"
        assert [o.descriptor.name for o in registry.successful()] == ["a", "c"]
        assert [o.descriptor.name for o in registry.failed()] == ["b"]

    async def test_skipped_is_not_a_failure(self, registry, mcp):
        integration = FakeIntegration("a", loadable=False)
        registry.add(integration)

        (outcome,) = await registry.register_all(mcp)

        assert outcome.status is OutcomeStatus.SKIPPED
        assert outcome.success is False
        assert outcome.error == (
            "Feature a cannot be loaded (missing configuration or dependencies)"
        )
        assert integration.registered_on is None
        assert registry.failed() == []
        assert registry.skipped() == [outcome]

    async def test_async_register(self, registry, mcp):
        integration = FakeIntegration("a", is_async=True)
        registry.add(integration)

        (outcome,) = await registry.register_all(mcp)

        assert outcome.success
        assert integration.registered_on is mcp

    async def test_async_register_failure(self, registry, mcp):
        registry.add(FakeIntegration("a", is_async=True, error=ValueError("bad")))

        (outcome,) = await registry.register_all(mcp)

        assert outcome.status is OutcomeStatus.FAILED
        assert outcome.error == "bad"

    async def test_error_without_message_uses_type_name(self, registry, mcp):
        registry.add(FakeIntegration("a", error=KeyError()))

        (outcome,) = await registry.register_all(mcp)

        assert outcome.error == "KeyError"

    async def test_returned_failure_is_recorded(self, registry, mcp):
        info = FeatureDescriptor(name="a", description="a", version="1.0.0")
        registry.add(FakeIntegration("a", outcome=RegistrationOutcome.failed(info, "no quota")))

        (outcome,) = await registry.register_all(mcp)

        assert registry.results()["a"] is outcome
        assert registry.failed() == [outcome]

    async def test_can_load_raising_is_a_failure(self, registry, mcp):
        integration = FakeIntegration("a")
        integration.can_load = lambda: 1 / 0
        registry.add(integration)

        (outcome,) = await registry.register_all(mcp)

        assert outcome.status is OutcomeStatus.FAILED

    async def test_empty_registry(self, registry, mcp):
        assert await registry.register_all(mcp) == []


class TestResults:
    async def test_results_are_read_only(self, registry, mcp):
        registry.add(FakeIntegration("a"))
        await registry.register_all(mcp)

        results = registry.results()

        with pytest.raises(TypeError):
            results["a"] = None
        assert results["a"].tools == ("a_tool",)

    async def test_log_summary_warns_when_nothing_loaded(self, registry, mcp, caplog):
        registry.add(FakeIntegration("a", loadable=False))
        await registry.register_all(mcp)

        with caplog.at_level(logging.WARNING):
            registry.log_summary()

        assert "No features loaded successfully" in caplog.text

    async def test_log_summary_lists_failures(self, registry, mcp, caplog):
        registry.add(FakeIntegration("a"))
        registry.add(FakeIntegration("b", error=RuntimeError("boom")))
        await registry.register_all(mcp)

        with caplog.at_level(logging.INFO):
            registry.log_summary()

        assert "1 feature(s) loaded: a" in caplog.text
        assert "Feature load error (b): boom" in caplog.text


class TestCleanup:
    async def test_runs_every_hook_and_clears_results(self, registry, mcp):
        first = FakeIntegration("a", cleanup_error=RuntimeError("stuck"))
        second = FakeIntegration("b")
        registry.add(first)
        registry.add(second)
        await registry.register_all(mcp)

        await registry.cleanup()

        assert first.cleaned_up
        assert second.cleaned_up
        assert dict(registry.results()) == {}

    async def test_sync_hook_and_missing_hook(self, registry):
        calls = []

        class SyncCleanup(FakeIntegration):
            def cleanup(self):
                calls.append(self.info.name)

        class NoCleanup:
            def get_info(self):
                return FeatureDescriptor(name="n", description="n", version="1.0.0")

            def can_load(self):
                return True

            def register(self, mcp):
                return RegistrationOutcome.registered(self.get_info())

        registry.add(SyncCleanup("s"))
        registry.add(NoCleanup())

        await registry.cleanup()

        assert calls == ["s"]
