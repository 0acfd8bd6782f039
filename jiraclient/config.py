"""Configuration management for the Jira client."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

import yaml

CONFIG_ENV_VAR = "JIRA_CLIENT_CONFIG"
API_TOKEN_ENV_VAR = "JIRA_API_TOKEN"
TOKEN_ENV_VAR = "JIRA_TOKEN"


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for a Jira instance."""

    base_url: str
    username: Optional[str] = None
    api_token: Optional[str] = None
    token: Optional[str] = None
    timeout: float = 30.0
    verify: Union[bool, str] = True

    @staticmethod
    def from_dict(data: Dict[str, object]) -> "ClientConfig":
        """Create a :class:`ClientConfig` from raw dictionary data."""
        if not data.get("base_url"):
            raise ValueError("Missing required Jira configuration field: base_url")

        verify_raw = data.get("verify", True)
        verify: Union[bool, str] = verify_raw if isinstance(verify_raw, bool) else str(verify_raw)

        return ClientConfig(
            base_url=str(data["base_url"]),
            username=str(data["username"]) if data.get("username") is not None else None,
            api_token=str(data["api_token"]) if data.get("api_token") is not None else None,
            token=str(data["token"]) if data.get("token") is not None else None,
            timeout=float(data.get("timeout", 30.0)),
            verify=verify,
        )

    def with_env(self, environ: Mapping[str, str] | None = None) -> "ClientConfig":
        """Fill in credentials missing from the file using environment variables."""
        env = os.environ if environ is None else environ
        updates: Dict[str, str] = {}
        if not self.api_token and env.get(API_TOKEN_ENV_VAR):
            updates["api_token"] = env[API_TOKEN_ENV_VAR]
        if not self.token and env.get(TOKEN_ENV_VAR):
            updates["token"] = env[TOKEN_ENV_VAR]
        return replace(self, **updates) if updates else self


def load_client_config(config_path: Path) -> ClientConfig:
    """Load Jira connection settings from a YAML file."""
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    section = raw.get("jira") if isinstance(raw, dict) else None
    if not isinstance(section, dict):
        raise ValueError("Configuration file must define Jira settings under the 'jira' key")

    return ClientConfig.from_dict(section).with_env()


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "jira.yaml").resolve(strict=False)
    return candidate


__all__ = [
    "API_TOKEN_ENV_VAR",
    "CONFIG_ENV_VAR",
    "TOKEN_ENV_VAR",
    "ClientConfig",
    "load_client_config",
    "resolve_config_path",
]
