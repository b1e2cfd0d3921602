"""Configuration management for devmirror.

Loads environment variables using pydantic-settings for type-safe configuration.
All service endpoints, credentials, and tuning parameters are defined here.
"""

import os
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Annotated, Literal

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_ENV_LOADED = False
_ENV_LOCK = Lock()


def _resolve_env_file() -> str | None:
    """Locate the .env file regardless of the current working directory.

    Preference order:
        1. DEVMIRROR_ENV_FILE environment variable (explicit override)
        2. Current working directory (common for local runs)
        3. Ancestors of this file (covers package execution from a checkout)
    """
    override = os.getenv("DEVMIRROR_ENV_FILE")
    if override:
        override_path = Path(override).expanduser()
        if override_path.is_file():
            return str(override_path)

    cwd_candidate = Path.cwd() / ".env"
    if cwd_candidate.is_file():
        return str(cwd_candidate)

    for parent in Path(__file__).resolve().parents:
        candidate = parent / ".env"
        if candidate.is_file():
            return str(candidate)

    return None


_DEFAULT_ENV_FILE = _resolve_env_file()


def ensure_env_loaded() -> None:
    """Load environment variables from disk exactly once."""
    global _ENV_LOADED

    with _ENV_LOCK:
        if _ENV_LOADED:
            return

        env_path = _DEFAULT_ENV_FILE or _resolve_env_file()
        if env_path:
            load_dotenv(env_path, override=False)

        _ENV_LOADED = True


ensure_env_loaded()


class DevMirrorConfig(BaseSettings):
    """Main configuration class for devmirror.

    Loads database, GitHub API, time-series store and tuning parameters from
    environment variables. Uses pydantic-settings for validation and type safety.
    """

    model_config = SettingsConfigDict(
        env_file=_DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========== Event Log (PostgreSQL) ==========
    postgres_user: str = "gha_admin"
    postgres_password: SecretStr = SecretStr("changeme")
    postgres_db: str = "gha"
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_min_pool_size: int = Field(default=1, ge=1)
    postgres_max_pool_size: int = Field(default=64, ge=1)

    # ========== GitHub API ==========
    github_token: SecretStr | None = None
    github_api_url: str = "https://api.github.com"
    github_timeout: float = Field(default=30.0, gt=0)
    github_min_points: int = Field(default=1, ge=0)  # Rate gate threshold
    github_max_wait_seconds: int = Field(default=10, ge=0)
    github_grace_seconds: float = Field(default=1.0, ge=0)
    github_min_backoff_seconds: float = Field(default=1.0, gt=0)
    github_page_size: int = Field(default=100, ge=1, le=100)
    # GitHub flags 32 parallel clients as abuse but tolerates 16
    github_threads: int = Field(default=16, ge=1)

    # ========== Concurrency ==========
    ncpus: int | None = Field(default=None, ge=1)
    single_threaded: bool = False
    progress_interval_seconds: float = Field(default=10.0, gt=0)

    # ========== Reconciliation ==========
    recent_range: str = "2 hours"
    only_issues: Annotated[list[int], NoDecode] = []
    skip_ghapi: bool = False
    skip_pdb: bool = False
    error_policy: Literal["abort", "collect"] = "abort"

    # ========== Time-series store (InfluxDB) ==========
    influx_host: str = "localhost"
    influx_port: int = 8086
    influx_db: str = "gha"
    influx_user: str = "gha_admin"
    influx_password: SecretStr = SecretStr("changeme")
    skip_timeseries: bool = False
    timeseries_drop: bool = False

    # ========== Annotations ==========
    repos_dir: Path = Path("~/devstats_repos")
    annotation_regexp: str = ""

    # ========== Observability ==========
    log_level: str = "INFO"

    @field_validator("only_issues", mode="before")
    @classmethod
    def _split_only_issues(cls, value: object) -> object:
        if isinstance(value, str):
            return [int(part) for part in value.split(",") if part.strip()]
        return value

    @field_validator("repos_dir")
    @classmethod
    def _expand_repos_dir(cls, value: Path) -> Path:
        return value.expanduser()

    @model_validator(mode="after")
    def _validate_pool_bounds(self) -> "DevMirrorConfig":
        if self.postgres_min_pool_size > self.postgres_max_pool_size:
            raise ValueError("postgres_min_pool_size must not exceed postgres_max_pool_size")
        return self

    @property
    def thread_capacity(self) -> int:
        """Measured concurrency capacity (phase-2 cap)."""
        if self.single_threaded:
            return 1
        return self.ncpus or os.cpu_count() or 1

    @property
    def github_thread_capacity(self) -> int:
        """Phase-1 cap: the empirical GitHub ceiling, never above capacity."""
        return min(self.github_threads, self.thread_capacity)

    @property
    def postgres_connection_string(self) -> str:
        """Get PostgreSQL connection string."""
        pwd = self.postgres_password.get_secret_value()
        return f"postgresql://{self.postgres_user}:{pwd}@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"


@lru_cache(maxsize=1)
def get_config() -> DevMirrorConfig:
    """Return cached Settings instance (thread-safe, process-local).

    Uses lru_cache to ensure a single instance is created and reused.

    Returns:
        DevMirrorConfig: The configuration instance loaded from environment variables.
    """
    return DevMirrorConfig()


# Export convenience accessors
__all__ = ["DevMirrorConfig", "ensure_env_loaded", "get_config"]
