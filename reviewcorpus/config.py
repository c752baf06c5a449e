"""Configuration management for reviewcorpus."""

import logging
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings, overridable through REVIEWCORPUS_* env variables."""

    model_config = SettingsConfigDict(
        env_prefix="REVIEWCORPUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # iTunes customer-review feed
    feed_url_template: str = Field(
        "https://itunes.apple.com/{country}/rss/customerreviews/"
        "page={page}/id={app_id}/sortby={sort_by}/json",
        description="URL template for the review feed",
    )
    country: str = Field("us", description="App Store country code")
    sort_by: str = Field("mostrecent", description="Feed sort order")
    user_agent: str = Field("reviewcorpus/0.1", description="HTTP user agent")
    request_timeout: float = Field(10.0, description="HTTP timeout in seconds")

    # Retry policy for transient network failures
    max_retries: int = Field(3, description="Maximum fetch attempts")
    retry_delay: float = Field(1.0, description="Base retry delay in seconds")
    retry_backoff: float = Field(2.0, description="Retry backoff multiplier")

    # Text processing
    stopword_language: str = Field("english", description="nltk stopword list")
    stemmer: str = Field("porter", description="Either 'porter' or 'snowball'")

    # Error reporting
    snippet_length: int = Field(200, description="Payload chars kept in errors")

    # Logging
    log_level: str = Field("INFO", description="Logging level")


# Global settings instance
settings = Settings()


def configure_logging(level: Optional[str] = None):
    """Configure root logging for scripts. The library never calls this."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
