"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class GitHubConfig:
    """GitHub API endpoints and credentials."""

    api_url: str = "https://api.github.com"
    raw_url: str = "https://raw.githubusercontent.com"
    token: str = ""


@dataclass
class GitLabConfig:
    """GitLab credentials and listing limits."""

    token: str = ""
    max_pages: int = 50


@dataclass
class HttpConfig:
    """Retry and timeout policy shared by every provider call."""

    timeout_seconds: float = 15.0
    max_attempts: int = 3
    backoff_base_seconds: float = 1.0


@dataclass
class ScanConfig:
    """Scan behaviour."""

    fetch_concurrency: int = 8
    default_branch: str = "main"


@dataclass
class APIConfig:
    """REST API configuration."""

    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class KustomapConfig:
    """Top-level kustomap configuration."""

    github: GitHubConfig = field(default_factory=GitHubConfig)
    gitlab: GitLabConfig = field(default_factory=GitLabConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
