"""Core business logic components.

This module exports the main business logic classes:
- Relay: Main orchestrator that coordinates all components
- CommandParser: Classifies chat text into commands
- GifResolver: Resolves search terms to GIF URLs through a TTL cache
- MessageHandler: Runs one command and sends its reply
"""

from ci_chat_relay.core.command_parser import CommandParser, parse_parameter_block
from ci_chat_relay.core.gif_resolver import GifCache, GifResolver
from ci_chat_relay.core.message_handler import MessageHandler
from ci_chat_relay.core.relay import Relay, create_relay

__all__ = [
    "CommandParser",
    "GifCache",
    "GifResolver",
    "MessageHandler",
    "Relay",
    "create_relay",
    "parse_parameter_block",
]
