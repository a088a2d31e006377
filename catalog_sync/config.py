"""
Runtime configuration for catalog-sync.

Settings come from environment variables. A .env file in the working
directory (or the path given to load_settings) is loaded first when present;
variables already set in the environment take precedence.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from catalog_sync.core.errors import ConfigurationError

PRIMARY_SNAPSHOT_KEY = "primary_snapshot"
LIVENESS_STATUS_KEY = "liveness_status"
LAST_UPDATED_KEY = "last_updated"

DEFAULT_SNAPSHOT_MAX_BYTES = 512 * 1024


class Settings(BaseModel):
    """
    Pipeline settings.

    Attributes:
        legacy_api_url: Legacy source endpoint
        legacy_api_key: Shared key for the legacy API
        source_timeout_seconds: Timeout for legacy API calls
        cron_secret: Bearer secret for the refresh endpoints
        scheduler_header: Header the scheduler sets on its calls
        scheduler_header_value: Expected value of scheduler_header
        edge_cache_backend: "memory" or "http"
        edge_config_id: Edge config store id (http backend)
        edge_config_token: API token (http backend)
        edge_config_api_url: API base URL (http backend)
        snapshot_max_bytes: Largest value the edge cache accepts
        probe_batch_size: Concurrent probes per batch
        probe_timeout_ms: Per-probe deadline
        probe_user_agent: User-Agent sent with probes
        classification_rules_path: YAML rule file
        cache_max_age_seconds: s-maxage on reader responses
        cache_stale_seconds: stale-while-revalidate on reader responses
    """

    legacy_api_url: str | None = None
    legacy_api_key: str | None = None
    source_timeout_seconds: float = Field(30.0, gt=0)

    cron_secret: str | None = None
    scheduler_header: str = "x-vercel-cron"
    scheduler_header_value: str = "1"

    edge_cache_backend: str = "memory"
    edge_config_id: str | None = None
    edge_config_token: str | None = None
    edge_config_api_url: str = "https://api.vercel.com"
    snapshot_max_bytes: int = Field(DEFAULT_SNAPSHOT_MAX_BYTES, gt=0)

    probe_batch_size: int = Field(10, ge=1, le=100)
    probe_timeout_ms: int = Field(10_000, gt=0)
    probe_user_agent: str = "catalog-sync-status-checker/1.0"

    classification_rules_path: str = "config/classification_rules.yaml"

    cache_max_age_seconds: int = Field(60, ge=0)
    cache_stale_seconds: int = Field(300, ge=0)

    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("edge_cache_backend")
    @classmethod
    def known_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("memory", "http"):
            raise ValueError(f"edge_cache_backend must be 'memory' or 'http', got {v!r}")
        return v

    def require_source(self) -> tuple[str, str]:
        """Legacy API url and key, or ConfigurationError when either is unset."""
        if not self.legacy_api_url or not self.legacy_api_key:
            raise ConfigurationError("LEGACY_API_URL or LEGACY_API_KEY not configured")
        return self.legacy_api_url, self.legacy_api_key

    def require_edge_config(self) -> tuple[str, str]:
        if not self.edge_config_id or not self.edge_config_token:
            raise ConfigurationError("EDGE_CONFIG_ID or EDGE_CONFIG_TOKEN not configured")
        return self.edge_config_id, self.edge_config_token

    @property
    def rules_path(self) -> Path:
        return Path(self.classification_rules_path)


_ENV_VARS = {
    "legacy_api_url": "LEGACY_API_URL",
    "legacy_api_key": "LEGACY_API_KEY",
    "source_timeout_seconds": "SOURCE_TIMEOUT_SECONDS",
    "cron_secret": "CRON_SECRET",
    "scheduler_header": "SCHEDULER_HEADER",
    "scheduler_header_value": "SCHEDULER_HEADER_VALUE",
    "edge_cache_backend": "EDGE_CACHE_BACKEND",
    "edge_config_id": "EDGE_CONFIG_ID",
    "edge_config_token": "EDGE_CONFIG_TOKEN",
    "edge_config_api_url": "EDGE_CONFIG_API_URL",
    "snapshot_max_bytes": "SNAPSHOT_MAX_BYTES",
    "probe_batch_size": "PROBE_BATCH_SIZE",
    "probe_timeout_ms": "PROBE_TIMEOUT_MS",
    "probe_user_agent": "PROBE_USER_AGENT",
    "classification_rules_path": "CLASSIFICATION_RULES_PATH",
    "cache_max_age_seconds": "CACHE_MAX_AGE_SECONDS",
    "cache_stale_seconds": "CACHE_STALE_SECONDS",
    "log_level": "LOG_LEVEL",
    "log_format": "LOG_FORMAT",
}


def load_settings(env_file: str | Path | None = None, **overrides) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: .env file to load first (defaults to ./.env when present)
        **overrides: Explicit values that win over the environment

    Returns:
        Settings

    Raises:
        ConfigurationError: If a variable has an invalid value
    """
    env_path = Path(env_file) if env_file else Path(".env")
    if env_path.exists():
        load_dotenv(env_path, override=False)

    values = {}
    for field_name, env_var in _ENV_VARS.items():
        raw = os.getenv(env_var)
        if raw is not None and raw.strip() != "":
            values[field_name] = raw.strip()
    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Settings(**values)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")
