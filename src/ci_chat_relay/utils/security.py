"""Secret redaction for log output.

This module implements fail-closed redaction: if a pattern fails to
compile or execute, it raises rather than passing the text through.
The patterns cover the credentials this relay handles (Slack tokens,
the Jenkins API token, the Giphy API key) plus generic ``key=value``
secrets.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Sequence

log = structlog.get_logger()


class SecurityError(Exception):
    """Base exception for security-related errors."""


class RedactionError(SecurityError):
    """Raised when secret redaction fails."""


class SecretRedactor:
    """Detects and redacts secrets from text.

    Usage:
        redactor = SecretRedactor()
        safe_text = redactor.redact(potentially_sensitive_text)

    Attributes:
        placeholder: The string to replace secrets with (default: "[REDACTED]").
    """

    # Applied in order; the Giphy pattern must precede the generic one
    DEFAULT_PATTERNS: tuple[tuple[str, str], ...] = (
        # Giphy key in a request URL
        (r"(?i)([?&]api_key=)[^&\s\"']+", "Giphy API key"),
        # Generic key=value secrets
        (
            r"(?i)(api[_-]?key|secret|token|password|credential)\s*[=:]\s*[\"']?[\w-]{16,}",
            "Generic secret",
        ),
        # Slack
        (r"xox[baprs]-[\w-]+", "Slack token"),
        (r"xapp-[\w-]+", "Slack app token"),
        # Basic-auth credentials embedded in a URL
        (r"(?i)https?://[^/\s:@]+:[^@\s]+@", "URL credentials"),
        # Private keys
        (
            r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----",
            "Private key header",
        ),
    )

    def __init__(
        self,
        placeholder: str = "[REDACTED]",
        custom_patterns: Sequence[tuple[str, str]] | None = None,
    ) -> None:
        """Initialize the SecretRedactor.

        Args:
            placeholder: String to replace detected secrets with.
            custom_patterns: Additional (pattern, name) tuples to detect.

        Raises:
            RedactionError: If any pattern fails to compile.
        """
        self.placeholder = placeholder
        self._pattern_names: dict[re.Pattern[str], str] = {}

        all_patterns = list(self.DEFAULT_PATTERNS)
        if custom_patterns:
            all_patterns.extend(custom_patterns)

        try:
            for pattern_str, name in all_patterns:
                compiled = re.compile(pattern_str)
                self._pattern_names[compiled] = name
        except re.error as e:
            log.error("pattern_compilation_failed", pattern=pattern_str, error=str(e))
            raise RedactionError(f"Failed to compile secret pattern '{pattern_str}': {e}") from e

    @property
    def patterns(self) -> list[re.Pattern[str]]:
        """Return the list of compiled patterns."""
        return list(self._pattern_names.keys())

    def redact(self, text: str) -> str:
        """Redact all secrets from the given text.

        Args:
            text: The text to scan and redact secrets from.

        Returns:
            The text with all detected secrets replaced with placeholder.

        Raises:
            RedactionError: If redaction fails for any reason.
        """
        if not text:
            return text

        try:
            result = text
            for pattern in self._pattern_names:
                result = pattern.sub(self._replacement, result)
            return result
        except Exception as e:
            log.error("redaction_failed", error=str(e))
            raise RedactionError(f"Redaction failed: {e}") from e

    def _replacement(self, match: re.Match[str]) -> str:
        # Keep a captured ``?api_key=`` prefix so URLs stay readable
        prefix = match.group(1) if match.re.groups and match.group(1) else ""
        if prefix.startswith(("?", "&")):
            return f"{prefix}{self.placeholder}"
        return self.placeholder

    def has_secrets(self, text: str) -> bool:
        """Check if text contains any secrets.

        Raises:
            RedactionError: If checking fails for any reason.
        """
        if not text:
            return False

        try:
            return any(pattern.search(text) for pattern in self._pattern_names)
        except Exception as e:
            log.error("has_secrets_check_failed", error=str(e))
            raise RedactionError(f"Secret check failed: {e}") from e

