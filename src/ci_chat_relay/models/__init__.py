"""Data models and transfer objects."""

from .command import (
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
from .gif import GifCacheEntry, GifResult
from .jenkins import BuildParameter, JobStatus, ParameterBlock, StatusLookup
from .message import ChatMessage, ChatReply, ProcessingResult

__all__ = [
    # Command models
    "Abort",
    "Command",
    "FetchParameters",
    "Help",
    "ListJobs",
    "Proceed",
    "RunPipeline",
    "RunPipelineWithParameters",
    "SearchGif",
    "Unrecognized",
    # Jenkins models
    "BuildParameter",
    "JobStatus",
    "ParameterBlock",
    "StatusLookup",
    # GIF models
    "GifCacheEntry",
    "GifResult",
    # Message models
    "ChatMessage",
    "ChatReply",
    "ProcessingResult",
]
