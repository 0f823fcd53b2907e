"""Health check utilities for monitoring service health.

This module provides health check capabilities for the CI Chat Relay:
- Check configuration sanity
- Check Slack token format
- Check Jenkins reachability
- Check the Giphy API key
- Generate health status reports
"""

from __future__ import annotations

import asyncio
import json
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from ci_chat_relay.utils.async_helpers import RelayError

if TYPE_CHECKING:
    from ci_chat_relay.config.schema import RelayConfig
    from ci_chat_relay.interfaces.ci import CIProvider

log = structlog.get_logger()


class HealthStatus(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class CheckResult:
    """Result of a single health check."""

    name: str
    status: HealthStatus
    message: str
    latency_ms: float | None = None
    details: dict[str, Any] = field(default_factory=dict)


@dataclass
class HealthReport:
    """Overall health report."""

    healthy: bool
    status: HealthStatus
    timestamp: datetime
    checks: list[CheckResult]
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "healthy": self.healthy,
            "status": self.status.value,
            "timestamp": self.timestamp.isoformat(),
            "checks": [
                {
                    "name": c.name,
                    "status": c.status.value,
                    "message": c.message,
                    "latency_ms": c.latency_ms,
                    "details": c.details,
                }
                for c in self.checks
            ],
            "details": self.details,
        }


class HealthChecker:
    """Performs health checks on all service dependencies.

    An unreachable Jenkins makes the report UNHEALTHY; an empty job list
    only DEGRADED, since the relay can still answer ``!help`` and ``!gif``.

    Example:
        checker = HealthChecker(config)
        report = await checker.run_all_checks()
        if not report.healthy:
            print(report.to_dict())
    """

    def __init__(self, config: RelayConfig, ci: CIProvider | None = None) -> None:
        """Initialize the health checker.

        Args:
            config: Application configuration
            ci: CI provider to probe (a JenkinsClient is built from config
                and closed after the check when omitted)
        """
        self._config = config
        self._ci = ci

    async def run_all_checks(self) -> HealthReport:
        """Run all health checks and return a report."""
        log.info("health_check_start")
        start_time = datetime.now(UTC)

        checks: list[CheckResult] = []

        results = await asyncio.gather(
            self._check_config(),
            self._check_slack_tokens(),
            self._check_jenkins(),
            self._check_giphy(),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, BaseException):
                checks.append(
                    CheckResult(
                        name="unknown",
                        status=HealthStatus.UNHEALTHY,
                        message=f"Check failed with exception: {result}",
                    )
                )
            else:
                checks.append(result)

        if all(c.status == HealthStatus.HEALTHY for c in checks):
            overall_status = HealthStatus.HEALTHY
            healthy = True
        elif any(c.status == HealthStatus.UNHEALTHY for c in checks):
            overall_status = HealthStatus.UNHEALTHY
            healthy = False
        else:
            overall_status = HealthStatus.DEGRADED
            healthy = True

        report = HealthReport(
            healthy=healthy,
            status=overall_status,
            timestamp=start_time,
            checks=checks,
            details={
                "total_checks": len(checks),
                "healthy_checks": sum(1 for c in checks if c.status == HealthStatus.HEALTHY),
                "degraded_checks": sum(1 for c in checks if c.status == HealthStatus.DEGRADED),
                "unhealthy_checks": sum(1 for c in checks if c.status == HealthStatus.UNHEALTHY),
            },
        )

        log.info(
            "health_check_complete",
            healthy=healthy,
            status=overall_status.value,
            checks_run=len(checks),
        )

        return report

    async def _check_config(self) -> CheckResult:
        """Check configuration validity."""
        if not self._config.chat.provider:
            return CheckResult(
                name="config",
                status=HealthStatus.UNHEALTHY,
                message="Chat provider not configured",
            )

        return CheckResult(
            name="config",
            status=HealthStatus.HEALTHY,
            message="Configuration valid",
            details={
                "chat_provider": self._config.chat.provider,
                "jenkins_url": self._config.jenkins.url,
                "easter_eggs": len(self._config.commands.easter_eggs),
            },
        )

    async def _check_slack_tokens(self) -> CheckResult:
        """Check Slack token format (not validity - that requires an API call)."""
        slack_config = self._config.chat.slack
        if not slack_config:
            return CheckResult(
                name="slack_tokens",
                status=HealthStatus.UNHEALTHY,
                message="Slack configuration missing",
            )

        if not slack_config.bot_token.startswith("xoxb-"):
            return CheckResult(
                name="slack_tokens",
                status=HealthStatus.UNHEALTHY,
                message="Invalid bot token format",
            )

        if not slack_config.app_token.startswith("xapp-"):
            return CheckResult(
                name="slack_tokens",
                status=HealthStatus.UNHEALTHY,
                message="Invalid app token format",
            )

        return CheckResult(
            name="slack_tokens",
            status=HealthStatus.HEALTHY,
            message="Slack tokens configured",
            details={"channels": len(slack_config.channels)},
        )

    async def _check_jenkins(self) -> CheckResult:
        """Check that Jenkins answers the job list request."""
        ci = self._ci
        owned = ci is None
        if ci is None:
            from ci_chat_relay.adapters.ci.jenkins import JenkinsClient

            ci = JenkinsClient(self._config.jenkins)

        start = time.monotonic()
        try:
            jobs = await ci.list_jobs()
        except RelayError as e:
            return CheckResult(
                name="jenkins",
                status=HealthStatus.UNHEALTHY,
                message=f"Jenkins unreachable: {e}",
                latency_ms=(time.monotonic() - start) * 1000,
            )
        finally:
            if owned:
                await ci.aclose()

        latency = (time.monotonic() - start) * 1000
        if not jobs:
            return CheckResult(
                name="jenkins",
                status=HealthStatus.DEGRADED,
                message="Jenkins reachable but no jobs visible",
                latency_ms=latency,
            )

        return CheckResult(
            name="jenkins",
            status=HealthStatus.HEALTHY,
            message="Jenkins reachable",
            latency_ms=latency,
            details={"jobs": len(jobs)},
        )

    async def _check_giphy(self) -> CheckResult:
        """Check Giphy API key presence."""
        api_key = self._config.giphy.api_key
        if not api_key or api_key.startswith("${"):
            return CheckResult(
                name="giphy",
                status=HealthStatus.UNHEALTHY,
                message="Giphy API key not configured",
            )

        return CheckResult(
            name="giphy",
            status=HealthStatus.HEALTHY,
            message="Giphy configured",
            details={"cache_ttl": self._config.giphy.cache_ttl},
        )


def write_health_file(report: HealthReport, path: Path) -> None:
    """Write health report to a file for external monitoring.

    Args:
        report: Health report to write
        path: File path to write to
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report.to_dict(), indent=2))
        log.debug("health_file_written", path=str(path))
    except OSError as e:
        log.error("health_file_write_error", path=str(path), error=str(e))
