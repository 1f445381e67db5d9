"""
Process settings for the LIM orchestration package.

Settings are read from environment variables. A ``.env`` file in the working
directory is loaded first; existing shell environment variables take
precedence.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

from .types import LLMProvider


logger = logging.getLogger(__name__)
_DOTENV_LOADED = False

PRODUCTION = "production"

CREDENTIAL_ENV_VARS: Dict[LLMProvider, str] = {
    LLMProvider.OPENAI: "OPENAI_API_KEY",
    LLMProvider.GEMINI: "GEMINI_API_KEY",
    LLMProvider.ANTHROPIC: "ANTHROPIC_API_KEY",
    LLMProvider.OPENROUTER: "OPENROUTER_API_KEY",
}


def _load_dotenv_if_present() -> None:
    """Load .env into the process environment once."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    if load_dotenv(override=False):
        logger.debug("Loaded environment from .env")
    _DOTENV_LOADED = True


def _first_non_empty_env(*keys: str) -> Optional[str]:
    """Return the first non-empty env var value for the given keys."""
    for key in keys:
        value = os.environ.get(key)
        if value is not None and value.strip() != "":
            return value
    return None


@dataclass
class Settings:
    """
    Process-wide settings.

    Attributes:
        environment: Runtime environment name; only "production" is production
        credentials: Provider credential per provider (absent when unset)
        app_url: Referer sent to OpenRouter
        request_timeout_seconds: Provider HTTP timeout
        redis_url: Durable keyed store for telemetry and the response cache
        archive_bucket: S3 bucket for error-level telemetry archival
        archive_prefix: Key prefix inside the archive bucket
        archive_dir: Filesystem archive root (used when no bucket is set)
        output_dir: Directory for per-combination JSON batch files
        sqlserver_conn_str: ODBC connection string for the relational store
        sqlite_path: Local SQLite relational store
        log_structured: Emit JSON console lines instead of bracketed text
    """
    environment: str = "development"
    credentials: Dict[LLMProvider, str] = field(default_factory=dict)
    app_url: str = "https://spots.app"
    request_timeout_seconds: int = 60
    redis_url: Optional[str] = None
    archive_bucket: Optional[str] = None
    archive_prefix: str = "logs/lim"
    archive_dir: Optional[str] = None
    output_dir: str = "data/recommendations"
    sqlserver_conn_str: Optional[str] = None
    sqlite_path: Optional[str] = None
    log_structured: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == PRODUCTION

    def credential_for(self, provider: LLMProvider) -> Optional[str]:
        """Return the configured credential for a provider, if any."""
        value = self.credentials.get(provider)
        return value or None

    @classmethod
    def from_env(cls) -> "Settings":
        """Create settings from environment variables."""
        _load_dotenv_if_present()

        credentials = {}
        for provider, env_var in CREDENTIAL_ENV_VARS.items():
            value = _first_non_empty_env(env_var)
            if value:
                credentials[provider] = value

        return cls(
            environment=_first_non_empty_env("LIM_ENVIRONMENT", "NODE_ENV") or "development",
            credentials=credentials,
            app_url=_first_non_empty_env("APP_URL") or "https://spots.app",
            request_timeout_seconds=int(os.environ.get("LIM_REQUEST_TIMEOUT_SECONDS", "60")),
            redis_url=_first_non_empty_env("LIM_REDIS_URL", "REDIS_URL"),
            archive_bucket=_first_non_empty_env("LIM_ARCHIVE_BUCKET"),
            archive_prefix=_first_non_empty_env("LIM_ARCHIVE_PREFIX") or "logs/lim",
            archive_dir=_first_non_empty_env("LIM_ARCHIVE_DIR"),
            output_dir=_first_non_empty_env("LIM_OUTPUT_DIR") or "data/recommendations",
            sqlserver_conn_str=_first_non_empty_env("LIM_SQLSERVER_CONN_STR"),
            sqlite_path=_first_non_empty_env("LIM_SQLITE_PATH"),
            log_structured=os.environ.get("LIM_LOG_STRUCTURED", "false").lower() == "true",
        )
