"""
Configuration — immutable settings read from the environment.

    settings = Settings.from_env()
    settings = settings.with_api(base_url="https://api.example.com/api/v1")
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

ENV_PREFIX = "TURNSTILE_"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


# ═══════════════════════════════════════════════════════════════════════════════
# Settings
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Process-wide settings.

    Note: Credentials have no default. An empty username sends no auth header.

    Environment:
        TURNSTILE_API_BASE_URL     remote ticketing API root
        TURNSTILE_API_USERNAME     Basic auth user
        TURNSTILE_API_PASSWORD     Basic auth password
        TURNSTILE_HTTP_TIMEOUT     per-request timeout, seconds
        TURNSTILE_DATABASE_URL     SQLAlchemy async URL for client storage
        TURNSTILE_NAMESPACE        key prefix for persisted client state
        TURNSTILE_LOG_LEVEL        debug | info | warning | error
        TURNSTILE_LOG_JSON         render logs as JSON lines
    """

    api_base_url: str = "https://api.soldoutafrica.com/api/v1"
    api_username: str = ""
    api_password: str = ""
    http_timeout: float = 30.0
    database_url: str = "sqlite+aiosqlite:///turnstile.db"
    namespace: str = "turnstile"
    log_level: str = "info"
    log_json: bool = False

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        defaults = cls()

        def get(name: str, default: str) -> str:
            return env.get(ENV_PREFIX + name, default)

        return cls(
            api_base_url=get("API_BASE_URL", defaults.api_base_url).rstrip("/"),
            api_username=get("API_USERNAME", defaults.api_username),
            api_password=get("API_PASSWORD", defaults.api_password),
            http_timeout=float(get("HTTP_TIMEOUT", str(defaults.http_timeout))),
            database_url=get("DATABASE_URL", defaults.database_url),
            namespace=get("NAMESPACE", defaults.namespace),
            log_level=get("LOG_LEVEL", defaults.log_level).lower(),
            log_json=get("LOG_JSON", "").lower() in _TRUTHY,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_username)

    @property
    def cart_key(self) -> str:
        return f"{self.namespace}:cart_items"

    def with_api(
        self,
        *,
        base_url: str | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
    ) -> Settings:
        """Override remote API settings."""
        return replace(
            self,
            api_base_url=(base_url or self.api_base_url).rstrip("/"),
            api_username=self.api_username if username is None else username,
            api_password=self.api_password if password is None else password,
            http_timeout=self.http_timeout if timeout is None else timeout,
        )

    def with_database(self, url: str) -> Settings:
        return replace(self, database_url=url)

    def with_logging(self, *, level: str | None = None, json: bool | None = None) -> Settings:
        return replace(
            self,
            log_level=(level or self.log_level).lower(),
            log_json=self.log_json if json is None else json,
        )


__all__ = ("ENV_PREFIX", "Settings")
