"""Relay orchestrator that coordinates all components.

This module implements the Relay class that serves as the main entry point
for the CI chat relay. It:
- Manages adapter lifecycle (connect, disconnect, close)
- Runs each inbound message as its own task under a concurrency limit
- Handles graceful shutdown on signals (SIGTERM, SIGINT)
- Provides observability through structured logging
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

import structlog

from ci_chat_relay.config.schema import RelayConfig
from ci_chat_relay.core.command_parser import CommandParser
from ci_chat_relay.core.gif_resolver import GifResolver
from ci_chat_relay.core.message_handler import MessageHandler
from ci_chat_relay.models.message import ChatMessage, ProcessingResult

if TYPE_CHECKING:
    from ci_chat_relay.interfaces.chat import ChatProvider
    from ci_chat_relay.interfaces.ci import CIProvider
    from ci_chat_relay.interfaces.gif import GifSearchProvider

log = structlog.get_logger()


class RelayLifecycleError(Exception):
    """Base exception for relay lifecycle errors."""


class StartupError(RelayLifecycleError):
    """Failed to start the relay."""


class Relay:
    """Main orchestrator that coordinates all components.

    Responsibilities:
    - Own the chat, CI and GIF adapters and close them on shutdown
    - Hand every inbound message to the MessageHandler in its own task
    - Bound concurrent handling with an asyncio.Semaphore

    A slow command never blocks the listener: other messages keep being
    accepted while earlier ones are still waiting on Jenkins or Giphy.

    Example:
        relay = await create_relay(config)
        await relay.start()  # Blocks until shutdown signal
    """

    def __init__(
        self,
        config: RelayConfig,
        chat: ChatProvider,
        ci: CIProvider,
        gif_search: GifSearchProvider,
        gifs: GifResolver,
        parser: CommandParser,
    ) -> None:
        """Initialize the Relay.

        Args:
            config: Application configuration
            chat: Chat provider adapter
            ci: CI provider adapter
            gif_search: GIF search adapter (closed on shutdown)
            gifs: GIF resolver built on ``gif_search``
            parser: CommandParser instance
        """
        self._config = config
        self._chat = chat
        self._ci = ci
        self._gif_search = gif_search

        self._handler = MessageHandler(chat, ci, gifs, parser, config)

        # Concurrency control
        self._max_concurrent = config.runtime.max_concurrent
        self._shutdown_timeout = config.runtime.shutdown_timeout
        self._semaphore: asyncio.Semaphore | None = None
        self._active_tasks: set[asyncio.Task[ProcessingResult]] = set()

        # Lifecycle state
        self._running = False
        self._shutdown_event: asyncio.Event | None = None

        # Statistics
        self._messages_processed = 0
        self._commands_replied = 0
        self._errors_count = 0

    @property
    def is_running(self) -> bool:
        """Return True if the relay is currently running."""
        return self._running

    @property
    def stats(self) -> dict[str, int]:
        """Return processing statistics."""
        return {
            "messages_processed": self._messages_processed,
            "commands_replied": self._commands_replied,
            "errors_count": self._errors_count,
            "active_tasks": len(self._active_tasks),
        }

    async def start(self) -> None:
        """Start the relay and begin processing messages.

        Connects to the chat provider, installs signal handlers and then
        blocks in the listen loop until shutdown is triggered.

        Raises:
            StartupError: If startup fails
        """
        if self._running:
            log.warning("relay_already_running")
            return

        log.info(
            "relay_starting",
            jenkins_url=self._config.jenkins.url,
            max_concurrent=self._max_concurrent,
        )

        try:
            self._semaphore = asyncio.Semaphore(self._max_concurrent)
            self._shutdown_event = asyncio.Event()

            log.info("connecting_to_chat_provider")
            await self._chat.connect()
            log.info("chat_provider_connected")

            self._setup_signal_handlers()

            self._running = True
            log.info("relay_started")

            await self._listen_for_messages()

        except Exception as e:
            log.exception("relay_startup_failed", error=str(e))
            await self._cleanup()
            raise StartupError(f"Failed to start relay: {e}") from e

    async def stop(self) -> None:
        """Gracefully stop the relay.

        Waits for in-flight commands (up to the shutdown timeout), then
        disconnects from chat and closes the HTTP clients.
        """
        if not self._running:
            log.warning("relay_not_running")
            return

        log.info("relay_stopping", active_tasks=len(self._active_tasks))

        if self._shutdown_event:
            self._shutdown_event.set()

        await self._wait_for_tasks()
        await self._cleanup()

        self._running = False
        log.info("relay_stopped", **self.stats)

    async def process_message(self, message: ChatMessage) -> ProcessingResult:
        """Process a single message through the pipeline.

        Args:
            message: Message to process

        Returns:
            ProcessingResult indicating what action was taken
        """
        if not self._semaphore:
            return ProcessingResult.ERROR

        async with self._semaphore:
            try:
                result = await self._handler.handle(message)
            except Exception as e:
                log.exception(
                    "message_processing_error",
                    message_id=message.message_id,
                    error=str(e),
                )
                self._errors_count += 1
                return ProcessingResult.ERROR

            self._messages_processed += 1
            if result == ProcessingResult.REPLIED:
                self._commands_replied += 1
            elif result == ProcessingResult.ERROR:
                self._errors_count += 1
            return result

    async def _listen_for_messages(self) -> None:
        """Listen for incoming messages until shutdown is triggered."""
        log.info("starting_message_listener")

        try:
            async for message in self._chat.listen():
                if self._shutdown_event and self._shutdown_event.is_set():
                    log.info("shutdown_signal_received_stopping_listener")
                    break

                task = asyncio.create_task(
                    self.process_message(message),
                    name=f"process_{message.message_id}",
                )
                self._active_tasks.add(task)
                task.add_done_callback(self._active_tasks.discard)

        except asyncio.CancelledError:
            log.info("message_listener_cancelled")

    async def _wait_for_tasks(self) -> None:
        """Wait for active tasks to complete with timeout."""
        if not self._active_tasks:
            return

        log.info("waiting_for_active_tasks", count=len(self._active_tasks))

        done, pending = await asyncio.wait(
            set(self._active_tasks),
            timeout=self._shutdown_timeout,
        )

        if pending:
            log.warning("cancelling_pending_tasks", count=len(pending))
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        log.info("tasks_completed", completed=len(done), cancelled=len(pending))

    async def _cleanup(self) -> None:
        """Disconnect from chat and close HTTP clients."""
        log.debug("cleaning_up_resources")

        try:
            await self._chat.disconnect()
            log.info("chat_provider_disconnected")
        except Exception as e:
            log.warning("chat_disconnect_error", error=str(e))

        for name, closer in (("jenkins", self._ci.aclose), ("giphy", self._gif_search.aclose)):
            try:
                await closer()
            except Exception as e:
                log.warning("client_close_error", client=name, error=str(e))

        self._active_tasks.clear()

    def _setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(
                sig,
                lambda s: asyncio.create_task(self._handle_signal(s)),
                sig,
            )
            log.debug("signal_handler_registered", signal=sig.name)

    async def _handle_signal(self, sig: signal.Signals) -> None:
        log.info("received_signal", signal=sig.name)
        await self.stop()


async def create_relay(config: RelayConfig) -> Relay:
    """Factory function to create a Relay with all dependencies.

    Args:
        config: Application configuration

    Returns:
        Configured Relay instance

    Raises:
        ValueError: If configuration is invalid
    """
    from ci_chat_relay.adapters.ci.jenkins import JenkinsClient
    from ci_chat_relay.adapters.gif.giphy import GiphyClient

    chat = _create_chat_adapter(config)
    ci = JenkinsClient(config.jenkins, retry=config.retry)
    gif_search = GiphyClient(config.giphy)
    gifs = GifResolver.from_config(gif_search, config.giphy)
    parser = CommandParser(config.commands.easter_eggs, gif_limit=config.giphy.default_limit)

    return Relay(config, chat, ci, gif_search, gifs, parser)


def _create_chat_adapter(config: RelayConfig) -> ChatProvider:
    """Create a chat adapter based on configuration.

    Raises:
        ValueError: If provider is not supported
    """
    provider = config.chat.provider

    if provider == "slack":
        if not config.chat.slack:
            raise ValueError("Slack configuration required when provider is 'slack'")
        # Import here to avoid loading slack-bolt unless needed
        from ci_chat_relay.adapters.chat.slack import SlackAdapter

        return SlackAdapter(config.chat.slack)

    raise ValueError(f"Unsupported chat provider: {provider}")
