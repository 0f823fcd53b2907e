"""Data models for parsed chat commands.

Each command is an immutable value produced once per inbound message by
the command parser and consumed by the message handler.
"""

from __future__ import annotations

from dataclasses import dataclass

from .jenkins import ParameterBlock


@dataclass(frozen=True)
class ListJobs:
    """``!list`` - show every job with its last build status."""


@dataclass(frozen=True)
class RunPipeline:
    """``!run <name>`` - trigger a build."""

    name: str


@dataclass(frozen=True)
class RunPipelineWithParameters:
    """``!runparams`` - trigger a build with a parameter block."""

    name: str
    parameters: ParameterBlock


@dataclass(frozen=True)
class Proceed:
    """``!proceed <name>`` - approve the pending input of the last build."""

    name: str


@dataclass(frozen=True)
class Abort:
    """``!abort <name>`` - reject the pending input of the last build."""

    name: str


@dataclass(frozen=True)
class FetchParameters:
    """``!parameters <name>`` - show the parameters of the last build."""

    name: str


@dataclass(frozen=True)
class SearchGif:
    """``!gif <term>`` or an easter-egg keyword.

    ``acknowledgment`` is sent as its own message before the GIF when set.
    """

    term: str
    limit: int = 20
    acknowledgment: str | None = None


@dataclass(frozen=True)
class Help:
    """``!help`` - static command reference."""


@dataclass(frozen=True)
class Unrecognized:
    """Text that is not a command; produces no reply."""


Command = (
    ListJobs
    | RunPipeline
    | RunPipelineWithParameters
    | Proceed
    | Abort
    | FetchParameters
    | SearchGif
    | Help
    | Unrecognized
)
