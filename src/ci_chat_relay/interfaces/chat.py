"""Abstract interface for chat platform integrations."""

from collections.abc import AsyncIterator
from typing import Protocol

from ..models.message import ChatMessage


class ChatProvider(Protocol):
    """Abstract interface for chat platform integrations.

    This protocol defines the contract that all chat platform adapters
    (Slack, Discord, etc.) must implement.
    """

    @property
    def bot_user_id(self) -> str | None:
        """User ID of the relay's own chat identity, known after connect()."""
        ...

    async def connect(self) -> None:
        """
        Establish connection to the chat platform.

        Raises:
            ConnectionError: If connection fails
        """
        ...

    async def disconnect(self) -> None:
        """Gracefully close the connection."""
        ...

    def listen(self) -> AsyncIterator[ChatMessage]:
        """
        Yield incoming messages from monitored channels.

        Yields:
            ChatMessage: Each incoming message from monitored channels

        Example:
            async for message in provider.listen():
                # Process message
                pass
        """
        ...

    async def send_reply(
        self,
        channel_id: str,
        text: str,
        thread_id: str | None = None,
    ) -> str:
        """
        Send a text message to a channel, optionally in a thread.

        Args:
            channel_id: Target channel identifier
            text: Message text
            thread_id: Parent message ID for threading (optional)

        Returns:
            Message ID of the sent message

        Raises:
            SendError: If message delivery fails
        """
        ...
