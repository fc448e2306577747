"""
Credential lookup for integrations.

Integrations never read the environment for secrets directly; they ask a
CredentialStoreAdapter, which resolves a credential name to its value
through the registered CredentialSpec.

Usage:
    creds = CredentialStoreAdapter.default()
    if creds.is_available("calcom"):
        token = creds.get("calcom")
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from .base import CredentialSpec
from .calcom import CALCOM_CREDENTIALS

CREDENTIAL_SPECS: dict[str, CredentialSpec] = {
    **CALCOM_CREDENTIALS,
}


class CredentialStoreAdapter:
    """Resolves credentials by name from an environment mapping."""

    def __init__(
        self,
        specs: Mapping[str, CredentialSpec],
        env: Mapping[str, str] | None = None,
    ):
        self._specs = dict(specs)
        self._env = env if env is not None else os.environ

    @classmethod
    def default(cls) -> CredentialStoreAdapter:
        return cls(CREDENTIAL_SPECS)

    @classmethod
    def for_testing(cls, values: Mapping[str, str]) -> CredentialStoreAdapter:
        """Build an adapter whose credentials are given by name, not env var."""
        env = {CREDENTIAL_SPECS[name].env_var: value for name, value in values.items()}
        return cls(CREDENTIAL_SPECS, env=env)

    def spec(self, name: str) -> CredentialSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise KeyError(f"Unknown credential: {name}") from None

    def get(self, name: str) -> str | None:
        """Return the credential value, or None when unset or blank."""
        value = self._env.get(self.spec(name).env_var)
        if value is None or not value.strip():
            return None
        return value.strip()

    def is_available(self, name: str) -> bool:
        return self.get(name) is not None

    def missing(self) -> list[str]:
        """Names of required credentials that are not configured."""
        return [
            name
            for name, spec in self._specs.items()
            if spec.required and not self.is_available(name)
        ]


__all__ = [
    "CREDENTIAL_SPECS",
    "CALCOM_CREDENTIALS",
    "CredentialSpec",
    "CredentialStoreAdapter",
]
