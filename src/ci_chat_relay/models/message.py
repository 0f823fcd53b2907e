"""Data models for chat messages."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class ChatMessage:
    """An incoming message from a chat platform."""

    channel_id: str
    message_id: str
    thread_id: str | None  # None if not in a thread
    user_id: str
    user_name: str
    text: str
    timestamp: datetime

    # Platform-specific metadata
    raw_event: dict[str, Any]  # Original event payload


@dataclass(frozen=True)
class ChatReply:
    """A reply to send to chat."""

    channel_id: str
    text: str
    thread_id: str | None = None


class ProcessingResult(Enum):
    """Outcome of processing a message."""

    IGNORED = "ignored"
    NO_COMMAND = "no_command"
    REPLIED = "replied"
    ERROR = "error"
