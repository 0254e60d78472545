from typing import Literal

from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values are read from process environment and optionally from `.env`.
    """

    contributions_url_template: str = (
        "https://github.com/users/{username}/contributions"
    )
    github_user_agent: str = "github-heatmap-badge"
    github_timeout_seconds: float = 15.0
    cache_backend: Literal["memory", "database"] = "memory"
    database_url: str | None = None
    cache_max_age_seconds: int = 86400
    show_username_in_header: bool = False
    log_level: str = "INFO"
    sentry_dsn: str | None = None
    environment: str = "development"
    release: str | None = None
    sentry_traces_sample_rate: float = 0.1
    rate_limit_per_minute: int = 60
    rate_limit_window_seconds: int = 60

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
