"""
Application configuration management.

This module handles configuration from environment variables using Pydantic Settings.
"""

from typing import List

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application configuration from environment variables.

    All settings can be overridden via environment variables with the same name.
    """

    # API settings
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Perspective API
    perspective_api_base_url: str = "https://commentanalyzer.googleapis.com"
    perspective_language: str = "en"
    classification_call_delay_seconds: float = 0.1  # Client-side throttle, ~10 req/s
    classification_timeout_seconds: float = 10.0
    rate_limit_cooldown_seconds: float = 5.0

    # Audit loop
    batch_size: int = 50  # Caps API spend per iteration (quota is ~60/min)

    # Flagging thresholds (exclusive lower bounds)
    threshold_severe_toxicity: float = 0.4
    threshold_insult: float = 0.6
    threshold_toxicity: float = 0.85

    # Pagination
    pagination_settle_seconds: float = 2.0
    pagination_max_attempts: int = 2

    # Host page heuristics
    delete_keyword: str = "Delete"
    surfaced_marker_attribute: str = "data-detox-scanned"
    card_container_roles: List[str] = ["listitem", "article"]
    card_ascent_levels: int = 4
    card_search_depth: int = 8
    extra_chrome_patterns: List[str] = []

    # Credential store
    credential_file: str = "~/.config/comment-detox/credentials.json"

    # Browser
    activity_page_url: str = "https://myactivity.google.com/page?page=youtube_comments"
    browser_user_data_dir: str = "~/.config/comment-detox/browser-profile"
    browser_headless: bool = False

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @model_validator(mode="after")
    def check_rate_limit_cooldown(self) -> "Settings":
        """The 429 cooldown must exceed the normal spacing between calls."""
        if self.rate_limit_cooldown_seconds <= self.classification_call_delay_seconds:
            raise ValueError(
                "rate_limit_cooldown_seconds must be greater than "
                "classification_call_delay_seconds"
            )
        return self


# Global settings instance
settings = Settings()
