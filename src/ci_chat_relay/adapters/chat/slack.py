"""Slack chat adapter using slack-bolt.

This module implements the ChatProvider protocol for Slack using the
slack-bolt library with Socket Mode for real-time events.

Features:
- Socket Mode connection for real-time message delivery
- Channel filtering based on configuration
- Thread support for replies
- Own-identity lookup so the relay can ignore its own messages
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.app.async_app import AsyncApp
from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

from ...config.schema import SlackConfig
from ...models.message import ChatMessage

if TYPE_CHECKING:
    from slack_bolt.context.async_context import AsyncBoltContext


log = structlog.get_logger()

# Slack escapes only these three characters in message text
_SLACK_ENTITIES = (("&lt;", "<"), ("&gt;", ">"), ("&amp;", "&"))


def unescape_slack_text(text: str) -> str:
    """Undo Slack's ``&amp;``/``&lt;``/``&gt;`` escaping.

    ``&amp;`` is replaced last so ``&amp;lt;`` decodes to ``&lt;``.
    """
    for entity, char in _SLACK_ENTITIES:
        text = text.replace(entity, char)
    return text


class SlackAdapterError(Exception):
    """Base exception for Slack adapter errors."""


class ConnectionError(SlackAdapterError):
    """Raised when connection to Slack fails."""


class SendError(SlackAdapterError):
    """Raised when sending a message fails."""


class SlackAdapter:
    """Slack chat adapter implementing the ChatProvider protocol.

    Example:
        config = SlackConfig(
            bot_token="xoxb-...",
            app_token="xapp-...",
            channels=["#builds"],
        )
        adapter = SlackAdapter(config)

        await adapter.connect()
        async for message in adapter.listen():
            print(f"Received: {message.text}")
        await adapter.disconnect()
    """

    def __init__(self, config: SlackConfig) -> None:
        """Initialize the Slack adapter.

        Args:
            config: Slack-specific configuration.
        """
        self._config = config
        self._connected = False
        self._bot_user_id: str | None = None

        self._app = AsyncApp(token=config.bot_token)
        self._client: AsyncWebClient = self._app.client
        self._socket_handler: AsyncSocketModeHandler | None = None

        self._message_queue: asyncio.Queue[ChatMessage] = asyncio.Queue()

        # Resolved from configured names on connect
        self._monitored_channel_ids: set[str] = set()

        self._disconnect_event = asyncio.Event()

        self._register_handlers()

    @property
    def bot_user_id(self) -> str | None:
        """Slack user ID of the bot, resolved on connect."""
        return self._bot_user_id

    def _register_handlers(self) -> None:
        """Register event handlers with the Slack app."""

        @self._app.event("message")
        async def handle_message(
            event: dict[str, Any],
            context: AsyncBoltContext,
        ) -> None:
            """Handle incoming message events."""
            await self._process_message_event(event)

    async def _process_message_event(self, event: dict[str, Any]) -> None:
        """Process a message event and add to queue if relevant.

        Args:
            event: The Slack message event.
        """
        subtype = event.get("subtype")
        if subtype in ("bot_message", "message_changed", "message_deleted"):
            return

        channel_id = event.get("channel", "")

        if self._monitored_channel_ids and channel_id not in self._monitored_channel_ids:
            return

        message_id = event.get("ts", "")
        thread_id = event.get("thread_ts")
        user_id = event.get("user", "")
        text = unescape_slack_text(event.get("text", ""))

        user_name = await self._get_user_name(user_id)

        try:
            timestamp = datetime.fromtimestamp(float(message_id))
        except (ValueError, TypeError):
            timestamp = datetime.now()

        message = ChatMessage(
            channel_id=channel_id,
            message_id=message_id,
            thread_id=thread_id,
            user_id=user_id,
            user_name=user_name,
            text=text,
            timestamp=timestamp,
            raw_event=event,
        )

        await self._message_queue.put(message)
        log.debug(
            "message_queued",
            channel_id=channel_id,
            message_id=message_id,
            user=user_name,
        )

    async def _get_user_name(self, user_id: str) -> str:
        """Get display name for a user.

        Args:
            user_id: Slack user ID.

        Returns:
            User display name or ID if lookup fails.
        """
        if not user_id:
            return "unknown"

        try:
            result = await self._client.users_info(user=user_id)
            user: dict[str, Any] = result.get("user", {})
            return (
                user.get("profile", {}).get("display_name")
                or user.get("profile", {}).get("real_name")
                or user.get("name")
                or user_id
            )
        except SlackApiError:
            return user_id

    async def _resolve_channel_ids(self) -> None:
        """Resolve channel names to IDs."""
        self._monitored_channel_ids = set()
        if not self._config.channels:
            # Monitor every channel the bot is in
            return

        try:
            result = await self._client.conversations_list(
                types="public_channel,private_channel"
            )
        except SlackApiError as e:
            log.warning("channel_resolution_failed", error=str(e))
            return

        channels_list: list[dict[str, Any]] = result.get("channels", [])
        for channel in self._config.channels:
            channel_name = channel.lstrip("#")
            for ch_dict in channels_list:
                if ch_dict.get("name") == channel_name or ch_dict.get("id") == channel:
                    self._monitored_channel_ids.add(ch_dict["id"])
                    log.debug("channel_resolved", name=channel, id=ch_dict["id"])
                    break
            else:
                log.warning("channel_not_found", channel=channel)

    async def _resolve_bot_identity(self) -> None:
        """Look up the bot's own user ID."""
        result = await self._client.auth_test()
        self._bot_user_id = result.get("user_id")
        log.debug("slack_identity_resolved", bot_user_id=self._bot_user_id)

    async def connect(self) -> None:
        """Establish connection to Slack using Socket Mode.

        Raises:
            ConnectionError: If connection fails.
        """
        if self._connected:
            return

        try:
            await self._resolve_bot_identity()
            await self._resolve_channel_ids()

            self._socket_handler = AsyncSocketModeHandler(
                app=self._app,
                app_token=self._config.app_token,
            )

            # connect_async() returns once the socket is open
            await self._socket_handler.connect_async()  # type: ignore[no-untyped-call]

            self._connected = True
            self._disconnect_event.clear()

            log.info(
                "slack_connected",
                bot_user_id=self._bot_user_id,
                monitored_channels=len(self._monitored_channel_ids),
            )

        except Exception as e:
            log.error("slack_connection_failed", error=str(e))
            raise ConnectionError(f"Failed to connect to Slack: {e}") from e

    async def disconnect(self) -> None:
        """Gracefully close the Slack connection."""
        if not self._connected:
            return

        self._disconnect_event.set()

        if self._socket_handler:
            try:
                await self._socket_handler.close_async()  # type: ignore[no-untyped-call]
            except Exception as e:
                log.warning("disconnect_error", error=str(e))

        self._connected = False
        log.info("slack_disconnected")

    async def listen(self) -> AsyncIterator[ChatMessage]:
        """Yield incoming messages from monitored channels.

        Yields:
            ChatMessage: Each incoming message from monitored channels.
        """
        if not self._connected:
            raise SlackAdapterError("Not connected. Call connect() first.")

        while not self._disconnect_event.is_set():
            try:
                # Time out periodically to notice disconnect
                message = await asyncio.wait_for(
                    self._message_queue.get(),
                    timeout=1.0,
                )
                yield message
            except TimeoutError:
                continue
            except asyncio.CancelledError:
                break

    async def send_reply(
        self,
        channel_id: str,
        text: str,
        thread_id: str | None = None,
    ) -> str:
        """Send a message to a channel, optionally in a thread.

        Args:
            channel_id: Target channel identifier.
            text: Message text (Slack mrkdwn).
            thread_id: Parent message ID for threading (optional).

        Returns:
            Message ID (ts) of the sent message.

        Raises:
            SendError: If message delivery fails.
        """
        try:
            kwargs: dict[str, Any] = {
                "channel": channel_id,
                "text": text,
            }

            if thread_id:
                kwargs["thread_ts"] = thread_id

            result = await self._client.chat_postMessage(**kwargs)
            message_ts: str = result.get("ts", "")

            log.debug(
                "message_sent",
                channel_id=channel_id,
                message_ts=message_ts,
                thread_id=thread_id,
            )

            return message_ts

        except SlackApiError as e:
            log.error(
                "send_reply_failed",
                channel_id=channel_id,
                error=str(e),
            )
            raise SendError(f"Failed to send message: {e}") from e
