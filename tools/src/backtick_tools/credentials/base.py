"""
Credential definition shared by all integrations.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CredentialSpec:
    """Describes one credential an integration needs and where it comes from."""

    env_var: str
    tools: list[str] = field(default_factory=list)
    required: bool = True
    startup_required: bool = False
    help_url: str = ""
    description: str = ""
    api_key_instructions: str = ""
