"""Pydantic models for configuration schema."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.jenkins import JobStatus


class SlackConfig(BaseModel):
    """Slack-specific configuration."""

    bot_token: str
    app_token: str
    channels: list[str] = []

    @field_validator("bot_token")
    @classmethod
    def validate_bot_token(cls, v: str) -> str:
        """Validate Slack bot token format."""
        if not v.startswith("xoxb-"):
            raise ValueError("Bot token must start with xoxb-")
        return v

    @field_validator("app_token")
    @classmethod
    def validate_app_token(cls, v: str) -> str:
        """Validate Slack app token format."""
        if not v.startswith("xapp-"):
            raise ValueError("App token must start with xapp-")
        return v


class JenkinsConfig(BaseModel):
    """Jenkins server connection."""

    url: str
    user: str = "jenkins"
    token: str
    timeout: float = Field(30.0, gt=0, le=300)
    verify_ssl: bool = True

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an http(s) URL and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Jenkins URL must start with http:// or https://: {v}")
        return v.rstrip("/")


class GiphyConfig(BaseModel):
    """Giphy search and result cache configuration."""

    api_key: str
    base_url: str = "https://api.giphy.com/v1/gifs/search"
    timeout: float = Field(10.0, gt=0, le=120)
    default_limit: int = Field(20, ge=1, le=50)
    reject_ids: list[str] = ["1JThPpN776F9e", "A0SDbHUTcClz2"]
    fallback_url: str = "https://media.giphy.com/media/VbnUQpnihPSIgIXuZv/giphy.gif"
    cache_ttl: int = Field(3600, ge=1, description="Freshness window in seconds")
    cache_max_entries: int = Field(256, ge=1)


class EasterEggConfig(BaseModel):
    """A keyword that answers with a canned line and a GIF."""

    keyword: str
    acknowledgment: str
    term: str
    limit: int = Field(20, ge=1, le=50)


def _default_easter_eggs() -> list[EasterEggConfig]:
    return [
        EasterEggConfig(keyword="!steak", acknowledgment="time", term="steak", limit=50),
        EasterEggConfig(keyword="!croikey", acknowledgment="mayte", term="crikey", limit=20),
    ]


def _default_status_glyphs() -> dict[JobStatus, str]:
    return {
        JobStatus.SUCCESS: ":white_check_mark:",
        JobStatus.FAILURE: ":x:",
        JobStatus.RUNNING: ":hourglass_flowing_sand:",
        JobStatus.UNKNOWN: ":white_circle:",
    }


class CommandsConfig(BaseModel):
    """Chat command surface configuration."""

    easter_eggs: list[EasterEggConfig] = Field(default_factory=_default_easter_eggs)
    status_glyphs: dict[JobStatus, str] = Field(default_factory=_default_status_glyphs)
    status_concurrency: int = Field(
        8, ge=1, le=64, description="Max job status requests in flight for !list"
    )

    @field_validator("status_glyphs")
    @classmethod
    def fill_missing_glyphs(cls, v: dict[JobStatus, str]) -> dict[JobStatus, str]:
        """Fall back to the default glyph for any status left out."""
        return {**_default_status_glyphs(), **v}


class FileLoggingConfig(BaseModel):
    """File logging configuration."""

    enabled: bool = False
    path: Path = Path("bot.log")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "console"] = "json"
    file: FileLoggingConfig = FileLoggingConfig()


class RuntimeConfig(BaseModel):
    """Runtime configuration."""

    max_concurrent: int = Field(5, ge=1, le=50, description="Max concurrent message processing")
    shutdown_timeout: int = Field(30, ge=1, le=300, description="Seconds to drain in-flight work")


class RetryConfig(BaseModel):
    """Retry policy for idempotent Jenkins reads on transport errors."""

    max_attempts: int = Field(1, ge=1, le=5)
    min_wait: float = Field(0.5, ge=0.1, le=10.0)
    max_wait: float = Field(5.0, ge=0.5, le=60.0)


class ChatConfig(BaseModel):
    """Chat provider configuration."""

    provider: Literal["slack"]
    slack: SlackConfig | None = None


class RelayConfig(BaseSettings):
    """Root configuration for CI Chat Relay."""

    chat: ChatConfig
    jenkins: JenkinsConfig
    giphy: GiphyConfig
    commands: CommandsConfig = CommandsConfig()
    logging: LoggingConfig = LoggingConfig()
    runtime: RuntimeConfig = RuntimeConfig()
    retry: RetryConfig = RetryConfig()

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
    )
