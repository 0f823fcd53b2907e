"""Parser for chat commands.

This module implements the CommandParser class that turns raw chat text
into a Command. Rules are checked in a fixed priority order and the first
match wins, since several patterns can match the same message:

1. Easter-egg keywords (substring)
2. ``!gif <term>`` (prefix)
3. ``!list`` (substring)
4. ``!runparams`` (prefix, multi-line parameter block)
5. ``!run <name>`` (prefix, after ``!runparams`` so it isn't shadowed)
6. ``!proceed``, ``!abort``, ``!parameters`` (prefix)
7. ``!help`` (prefix)

Anything else is Unrecognized.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from ci_chat_relay.config.schema import EasterEggConfig
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
from ci_chat_relay.models.jenkins import ParameterBlock
from ci_chat_relay.utils.async_helpers import FormatError, UsageError

log = structlog.get_logger()

GIF_PREFIX = "!gif "
GIF_USAGE = "Usage: !gif <search_term>"
DEFAULT_GIF_LIMIT = 20


def parse_parameter_block(message: str) -> tuple[str, ParameterBlock]:
    """Parse a ``!runparams`` message into a pipeline name and parameters.

    Grammar::

        !runparams
        <pipeline name>
        <key> <value>
        <key> <value>
        ...

    Blank lines are skipped. Each parameter line splits on its first
    space. A key given on several lines collects every value in order.

    Args:
        message: Full chat message, command line included

    Returns:
        (pipeline name, parameter block)

    Raises:
        FormatError: If the message doesn't follow the grammar
    """
    lines = message.split("\n")
    if len(lines) < 3:
        raise FormatError("invalid message format: expected command, pipeline name and parameters")

    pipeline_name = lines[1].strip()
    if not pipeline_name:
        raise FormatError("invalid message format: pipeline name is empty")

    pairs: list[tuple[str, str]] = []
    for line in lines[2:]:
        line = line.strip()
        if not line:
            continue

        key, sep, value = line.partition(" ")
        if not sep:
            raise FormatError(f"invalid parameter format: {line!r}")
        pairs.append((key, value.strip()))

    if not pairs:
        raise FormatError("invalid message format: no parameters given")

    block = ParameterBlock(pairs)

    log.debug("parameter_block_parsed", pipeline=pipeline_name, parameters=block.names())
    return pipeline_name, block


def _pipeline_name(text: str, command: str) -> str:
    """Join everything after the command word into a pipeline name."""
    parts = text.split()
    if len(parts) < 2:
        raise UsageError(f"Usage: {command} <pipeline_name>")
    return " ".join(parts[1:])


class CommandParser:
    """Classifies chat text into commands.

    Example:
        parser = CommandParser()
        command = parser.parse("!run nightly build")
        assert command == RunPipeline(name="nightly build")
    """

    def __init__(
        self,
        easter_eggs: Sequence[EasterEggConfig] = (),
        gif_limit: int = DEFAULT_GIF_LIMIT,
    ) -> None:
        """Initialize the CommandParser.

        Args:
            easter_eggs: Keywords answered with a canned line and a GIF
            gif_limit: Result limit for ``!gif`` searches
        """
        self._easter_eggs = tuple(easter_eggs)
        self._gif_limit = gif_limit

    def parse(self, raw_text: str) -> Command:
        """Classify one chat message.

        Args:
            raw_text: Message text as delivered by the chat platform

        Returns:
            The matching Command, or Unrecognized

        Raises:
            UsageError: A command word was given without its argument
            FormatError: A ``!runparams`` block is malformed
        """
        text = raw_text.lstrip()

        for egg in self._easter_eggs:
            if egg.keyword in text:
                return SearchGif(term=egg.term, limit=egg.limit, acknowledgment=egg.acknowledgment)

        if text.startswith(GIF_PREFIX):
            term = text[len(GIF_PREFIX) :].strip()
            if not term:
                raise UsageError(GIF_USAGE)
            return SearchGif(term=term, limit=self._gif_limit)

        if "!list" in text:
            return ListJobs()

        if text.startswith("!runparams"):
            name, block = parse_parameter_block(text)
            return RunPipelineWithParameters(name=name, parameters=block)

        if text.startswith("!run"):
            return RunPipeline(name=_pipeline_name(text, "!run"))

        if text.startswith("!proceed"):
            return Proceed(name=_pipeline_name(text, "!proceed"))

        if text.startswith("!abort"):
            return Abort(name=_pipeline_name(text, "!abort"))

        if text.startswith("!parameters"):
            return FetchParameters(name=_pipeline_name(text, "!parameters"))

        if text.startswith("!help"):
            return Help()

        return Unrecognized()
