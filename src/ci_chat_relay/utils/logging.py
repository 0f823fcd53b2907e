"""Structured logging for the relay.

structlog renders both the relay's own events and the records that
libraries emit through the standard library (httpx logs every request
URL at INFO, slack_bolt and aiohttp log connection state). Both kinds go
through the same processor chain, which ends in ``secret_sanitizer``, so
Slack tokens, the Jenkins token and the Giphy ``api_key`` query value are
redacted before any handler writes them.

The console handler uses the configured renderer; the optional log file
is always JSON.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from enum import StrEnum
from functools import cache
from pathlib import Path
from typing import Any

import structlog
from structlog.typing import Processor

from ci_chat_relay._version import __version__
from ci_chat_relay.utils.security import SecretRedactor

SERVICE_NAME = "ci-chat-relay"


class LogFormat(StrEnum):
    """Log output format options."""

    JSON = "json"
    CONSOLE = "console"


@cache
def _redactor() -> SecretRedactor:
    return SecretRedactor()


def sanitize_log_value(value: Any) -> Any:
    """Redact secrets from a log value, descending into dicts, lists and tuples."""
    if isinstance(value, str):
        return _redactor().redact(value)
    if isinstance(value, dict):
        return {k: sanitize_log_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(sanitize_log_value(v) for v in value)
    return value


def secret_sanitizer(
    logger: Any,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Processor that redacts secrets from every value of an event."""
    return {key: sanitize_log_value(value) for key, value in event_dict.items()}


def add_service_info(
    logger: Any,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Processor that stamps ``service`` and ``version`` on every event."""
    event_dict["service"] = SERVICE_NAME
    event_dict["version"] = __version__
    return event_dict


def _shared_processors() -> list[Processor]:
    # Runs for structlog events and, as foreign_pre_chain, for stdlib records.
    # format_exc_info precedes the sanitizer so tracebacks are redacted too.
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service_info,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        secret_sanitizer,
    ]


def _formatter(log_format: LogFormat) -> structlog.stdlib.ProcessorFormatter:
    renderer: Processor
    if log_format == LogFormat.JSON:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.plain_traceback,
        )

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def configure_logging(
    level: str = "INFO",
    log_format: LogFormat | str = LogFormat.JSON,
    file_path: Path | None = None,
) -> None:
    """Route structlog and stdlib logging through the sanitizing formatter.

    Safe to call more than once; the entry point calls it before and
    after the config file is read. Existing root handlers are replaced.

    Args:
        level: Root log level name (``DEBUG`` ... ``CRITICAL``)
        log_format: Console renderer, ``json`` or ``console``
        file_path: Also append JSON lines to this file when given
    """
    numeric_level = logging.getLevelNamesMapping()[level.upper()]
    log_format = LogFormat(log_format.lower())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(_formatter(log_format))
    root.addHandler(console_handler)
    root.setLevel(numeric_level)

    if file_path is not None:
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(file_path, encoding="utf-8")
        except OSError as e:
            structlog.get_logger().warning(
                "log_file_unavailable", path=str(file_path), error=str(e)
            )
        else:
            file_handler.setFormatter(_formatter(LogFormat.JSON))
            root.addHandler(file_handler)


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every event logged from the current task."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove fields attached with ``bind_context``."""
    structlog.contextvars.unbind_contextvars(*keys)
