"""Concrete implementations of provider interfaces."""

from .chat.slack import SlackAdapter
from .ci.jenkins import JenkinsClient
from .gif.giphy import GiphyClient

__all__ = [
    "GiphyClient",
    "JenkinsClient",
    "SlackAdapter",
]
