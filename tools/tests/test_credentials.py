"""Tests for credential lookup."""

import pytest

from backtick_tools.credentials import CREDENTIAL_SPECS, CredentialStoreAdapter
from backtick_tools.tools.calcom_tool.calcom_tool import TOOL_NAMES


def test_calcom_spec_covers_every_calcom_tool():
    spec = CREDENTIAL_SPECS["calcom"]

    assert spec.env_var == "CALCOM_API_TOKEN"
    assert sorted(spec.tools) == sorted(TOOL_NAMES)
    assert spec.help_url.startswith("https://")


class TestCredentialStoreAdapter:
    def test_for_testing_maps_names_to_env_vars(self):
        creds = CredentialStoreAdapter.for_testing({"calcom": "abc"})

        assert creds.get("calcom") == "abc"
        assert creds.is_available("calcom")
        assert creds.missing() == []

    def test_value_is_stripped(self):
        creds = CredentialStoreAdapter(CREDENTIAL_SPECS, env={"CALCOM_API_TOKEN": "  abc \n"})

        assert creds.get("calcom") == "abc"

    @pytest.mark.parametrize("env", [{}, {"CALCOM_API_TOKEN": ""}, {"CALCOM_API_TOKEN": "  "}])
    def test_missing_or_blank(self, env):
        creds = CredentialStoreAdapter(CREDENTIAL_SPECS, env=env)

        assert creds.get("calcom") is None
        assert not creds.is_available("calcom")
        assert creds.missing() == ["calcom"]

    def test_default_reads_process_env(self, monkeypatch):
        monkeypatch.setenv("CALCOM_API_TOKEN", "from-env")

        assert CredentialStoreAdapter.default().get("calcom") == "from-env"

    def test_unknown_credential(self):
        creds = CredentialStoreAdapter.for_testing({})

        with pytest.raises(KeyError, match="Unknown credential: github"):
            creds.get("github")
