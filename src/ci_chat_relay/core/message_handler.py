"""Command dispatch and reply formatting.

This module implements the MessageHandler class that takes one inbound
chat message through the full pipeline:
1. Ignore the relay's own messages
2. Parse the text into a Command
3. Call the CI server or the GIF resolver
4. Format the result (or the failure) as one reply
5. Send it back to the originating channel/thread

This is the only place where relay errors become chat text. Nothing
raised by a command escapes ``handle()``.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import structlog

from ci_chat_relay.config.schema import RelayConfig
from ci_chat_relay.core.command_parser import CommandParser
from ci_chat_relay.core.formatting import HELP_TEXT, render_job_list, render_parameters
from ci_chat_relay.models.command import (
    Abort,
    Command,
    FetchParameters,
    Help,
    ListJobs,
    Proceed,
    RunPipeline,
    RunPipelineWithParameters,
    SearchGif,
    Unrecognized,
)
from ci_chat_relay.models.jenkins import StatusLookup
from ci_chat_relay.models.message import ChatMessage, ChatReply, ProcessingResult
from ci_chat_relay.utils.async_helpers import FormatError, RelayError, UsageError
from ci_chat_relay.utils.logging import bind_context, unbind_context

if TYPE_CHECKING:
    from ci_chat_relay.core.gif_resolver import GifResolver
    from ci_chat_relay.interfaces.chat import ChatProvider
    from ci_chat_relay.interfaces.ci import CIProvider

log = structlog.get_logger()

UNEXPECTED_ERROR_TEXT = "Something went wrong while handling that command. Please try again later."


class MessageHandler:
    """Turns chat commands into CI calls and replies.

    Responsibilities:
    - Drop the relay's own messages before classification
    - Dispatch each command to the CI provider or GIF resolver
    - Format one reply per command (easter eggs send an extra
      acknowledgment line first)
    - Convert relay errors into ``Error <verb>ing ...`` lines

    Example:
        handler = MessageHandler(chat, ci, gifs, parser, config)
        result = await handler.handle(message)
    """

    def __init__(
        self,
        chat: ChatProvider,
        ci: CIProvider,
        gifs: GifResolver,
        parser: CommandParser,
        config: RelayConfig,
    ) -> None:
        """Initialize the MessageHandler.

        Args:
            chat: Chat provider for sending replies
            ci: CI provider for job operations
            gifs: GIF resolver (owns the GIF cache)
            parser: CommandParser for classifying text
            config: Relay configuration
        """
        self._chat = chat
        self._ci = ci
        self._gifs = gifs
        self._parser = parser
        self._glyphs = config.commands.status_glyphs
        self._status_concurrency = config.commands.status_concurrency

    async def handle(self, message: ChatMessage) -> ProcessingResult:
        """Process one inbound message.

        Args:
            message: Incoming chat message

        Returns:
            ProcessingResult indicating what action was taken
        """
        if self._is_own_message(message):
            return ProcessingResult.IGNORED

        try:
            command = self._parser.parse(message.text)
        except UsageError as e:
            await self._reply(message, str(e))
            return ProcessingResult.ERROR
        except FormatError as e:
            await self._reply(message, f"Error parsing !runparams command: {e}")
            return ProcessingResult.ERROR

        if isinstance(command, Unrecognized):
            return ProcessingResult.NO_COMMAND

        start_time = time.monotonic()
        bind_context(
            channel_id=message.channel_id,
            message_id=message.message_id,
            command=type(command).__name__,
        )
        try:
            log.info("command_received", user=message.user_name)
            result = await self._dispatch(command, message)
        except Exception as e:
            log.exception("command_failed_unexpectedly", error=str(e))
            await self._reply(message, UNEXPECTED_ERROR_TEXT)
            result = ProcessingResult.ERROR
        finally:
            log.info(
                "command_complete",
                duration_seconds=round(time.monotonic() - start_time, 2),
            )
            unbind_context("channel_id", "message_id", "command")

        return result

    def _is_own_message(self, message: ChatMessage) -> bool:
        own_id = self._chat.bot_user_id
        return own_id is not None and message.user_id == own_id

    async def _dispatch(self, command: Command, message: ChatMessage) -> ProcessingResult:
        """Run a command and send its reply."""
        if isinstance(command, SearchGif):
            if command.acknowledgment:
                await self._reply(message, command.acknowledgment)
            text, ok = await self._search_gif(command)
        elif isinstance(command, ListJobs):
            text, ok = await self._list_jobs()
        elif isinstance(command, RunPipelineWithParameters):
            text, ok = await self._run_with_parameters(command)
        elif isinstance(command, RunPipeline):
            text, ok = await self._run(command)
        elif isinstance(command, Proceed):
            text, ok = await self._proceed(command)
        elif isinstance(command, Abort):
            text, ok = await self._abort(command)
        elif isinstance(command, FetchParameters):
            text, ok = await self._fetch_parameters(command)
        elif isinstance(command, Help):
            text, ok = HELP_TEXT, True
        else:
            raise TypeError(f"Unhandled command: {command!r}")

        await self._reply(message, text)
        return ProcessingResult.REPLIED if ok else ProcessingResult.ERROR

    # ------------------------------------------------------------------
    # Command branches: each returns (reply text, succeeded)
    # ------------------------------------------------------------------

    async def _search_gif(self, command: SearchGif) -> tuple[str, bool]:
        try:
            url = await self._gifs.resolve(command.term, command.limit)
        except RelayError as e:
            log.warning("gif_lookup_failed", term=command.term, error=str(e))
            return f"Error fetching GIF for '{command.term}': {e}", False
        return url, True

    async def _list_jobs(self) -> tuple[str, bool]:
        try:
            names = await self._ci.list_jobs()
        except RelayError as e:
            log.warning("job_list_failed", error=str(e))
            return f"Error fetching Jenkins job list: {e}", False

        limit = asyncio.Semaphore(self._status_concurrency)
        lookups = await asyncio.gather(*(self._lookup_status(name, limit) for name in names))
        return f"Jenkins Job List:\n{render_job_list(lookups, self._glyphs)}", True

    async def _lookup_status(self, name: str, limit: asyncio.Semaphore) -> StatusLookup:
        """Fetch one job's status, folding failure into the result."""
        try:
            async with limit:
                status = await self._ci.job_status(name)
        except RelayError as e:
            log.warning("job_status_failed", job=name, error=str(e))
            return StatusLookup(job_name=name, error=str(e))
        log.debug("job_status", job=name, status=status.value)
        return StatusLookup(job_name=name, status=status)

    async def _run(self, command: RunPipeline) -> tuple[str, bool]:
        try:
            await self._ci.trigger_build(command.name)
        except RelayError as e:
            return f"Error triggering Jenkins pipeline '{command.name}': {e}", False
        return f"Jenkins pipeline '{command.name}' triggered successfully!", True

    async def _run_with_parameters(self, command: RunPipelineWithParameters) -> tuple[str, bool]:
        try:
            await self._ci.trigger_build_with_parameters(command.name, command.parameters)
        except RelayError as e:
            return f"Error triggering Jenkins pipeline '{command.name}': {e}", False
        return f"Jenkins pipeline '{command.name}' triggered successfully!", True

    async def _proceed(self, command: Proceed) -> tuple[str, bool]:
        try:
            build_number = await self._ci.last_build_number(command.name)
            await self._ci.proceed_input(command.name, build_number)
        except RelayError as e:
            return f"Error proceeding Jenkins pipeline '{command.name}': {e}", False
        return f"Jenkins pipeline '{command.name}' proceeded successfully!", True

    async def _abort(self, command: Abort) -> tuple[str, bool]:
        try:
            build_number = await self._ci.last_build_number(command.name)
            await self._ci.abort_input(command.name, build_number)
        except RelayError as e:
            return f"Error aborting Jenkins pipeline '{command.name}': {e}", False
        return f"Jenkins pipeline '{command.name}' aborted", True

    async def _fetch_parameters(self, command: FetchParameters) -> tuple[str, bool]:
        try:
            build_number = await self._ci.last_build_number(command.name)
            parameters = await self._ci.build_parameters(command.name, build_number)
        except RelayError as e:
            return f"Error fetching parameters for '{command.name}': {e}", False
        return f"Parameters from previous run:{render_parameters(parameters)}", True

    async def _reply(self, message: ChatMessage, text: str) -> None:
        """Answer in the message's channel (and thread, if it has one)."""
        await self._send(ChatReply(message.channel_id, text, thread_id=message.thread_id))

    async def _send(self, reply: ChatReply) -> None:
        """Send a reply, logging (not raising) delivery failures."""
        try:
            await self._chat.send_reply(
                channel_id=reply.channel_id,
                text=reply.text,
                thread_id=reply.thread_id,
            )
        except Exception as e:
            log.error("send_reply_failed", channel_id=reply.channel_id, error=str(e))
