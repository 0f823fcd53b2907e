"""Protocol definitions for pluggable adapters."""

from .chat import ChatProvider
from .ci import CIProvider
from .gif import GifSearchProvider

__all__ = ["CIProvider", "ChatProvider", "GifSearchProvider"]
