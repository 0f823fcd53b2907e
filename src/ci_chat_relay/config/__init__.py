"""Configuration loading and validation."""

from .loader import load_config
from .schema import (
    ChatConfig,
    CommandsConfig,
    EasterEggConfig,
    GiphyConfig,
    JenkinsConfig,
    LoggingConfig,
    RelayConfig,
    RetryConfig,
    RuntimeConfig,
    SlackConfig,
)

__all__ = [
    # Loader
    "load_config",
    # Root config
    "RelayConfig",
    # Top-level configs
    "ChatConfig",
    "JenkinsConfig",
    "GiphyConfig",
    "CommandsConfig",
    "LoggingConfig",
    "RuntimeConfig",
    "RetryConfig",
    # Nested configs
    "EasterEggConfig",
    "SlackConfig",
]
