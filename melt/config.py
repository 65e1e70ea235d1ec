"""
config.py
Active profile (tenant URL, credentials, auth method) for the exporter.

Read from environment variables; a local .env file is loaded first.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

AUTH_METHOD_OAUTH = "oauth"
AUTH_METHOD_SERVICE_PRINCIPAL = "service-principal"
AUTH_METHOD_AGENT_PRINCIPAL = "agent-principal"
AUTH_METHOD_JWT = "jwt"
AUTH_METHOD_LOCAL = "local"

DEFAULT_HTTP_TIMEOUT_S = 30.0


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class Context:
    name: str = "default"
    url: str = ""
    tenant: str = ""
    auth_method: str = AUTH_METHOD_OAUTH
    token: str = ""
    timeout_s: float = DEFAULT_HTTP_TIMEOUT_S


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigError(f"MELT_HTTP_TIMEOUT must be a number, got {raw!r}")
    if timeout <= 0:
        raise ConfigError(f"MELT_HTTP_TIMEOUT must be positive, got {raw!r}")
    return timeout


def load_context() -> Context:
    """
    Environment variable parsing for the active profile.
    """
    load_dotenv()

    return Context(
        name=os.getenv("MELT_PROFILE", "default").strip() or "default",
        url=os.getenv("MELT_URL", "").strip(),
        tenant=os.getenv("MELT_TENANT", "").strip(),
        auth_method=os.getenv("MELT_AUTH_METHOD", AUTH_METHOD_OAUTH).strip() or AUTH_METHOD_OAUTH,
        token=os.getenv("MELT_TOKEN", "").strip(),
        timeout_s=_parse_timeout(os.getenv("MELT_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT_S)).strip()),
    )


def get_current_context() -> Context:
    return load_context()
