"""Configuration loading from environment variables."""

from __future__ import annotations

import os

from kustomap.models.config import (
    APIConfig,
    GitHubConfig,
    GitLabConfig,
    HttpConfig,
    KustomapConfig,
    LogConfig,
    ScanConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"KUSTOMAP_{key}", default)


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _env_float(key: str, default: float, min_val: float | None = None, max_val: float | None = None) -> float:
    val = float(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_url(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"Invalid URL: {value}. Must start with http:// or https://")
    return value.rstrip("/")


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_branch(value: str) -> str:
    value = value.strip().strip("/")
    if not value:
        raise ValueError("Default branch must not be empty")
    return value


def load_config() -> KustomapConfig:
    """Load configuration from KUSTOMAP_* environment variables."""
    return KustomapConfig(
        github=GitHubConfig(
            api_url=_validate_url(_env("GITHUB_API_URL", "https://api.github.com")),
            raw_url=_validate_url(_env("GITHUB_RAW_URL", "https://raw.githubusercontent.com")),
            token=_env("GITHUB_TOKEN", "").strip(),
        ),
        gitlab=GitLabConfig(
            token=_env("GITLAB_TOKEN", "").strip(),
            max_pages=_env_int("GITLAB_MAX_PAGES", 50, min_val=1, max_val=500),
        ),
        http=HttpConfig(
            timeout_seconds=_env_float("HTTP_TIMEOUT", 15.0, min_val=1.0, max_val=120.0),
            max_attempts=_env_int("HTTP_MAX_ATTEMPTS", 3, min_val=1, max_val=5),
            backoff_base_seconds=_env_float("HTTP_BACKOFF_BASE", 1.0, min_val=0.0),
        ),
        scan=ScanConfig(
            fetch_concurrency=_env_int("FETCH_CONCURRENCY", 8, min_val=1, max_val=32),
            default_branch=_validate_branch(_env("DEFAULT_BRANCH", "main")),
        ),
        api=APIConfig(
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
