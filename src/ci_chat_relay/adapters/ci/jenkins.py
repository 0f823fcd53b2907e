"""Jenkins CI adapter using the Jenkins JSON REST API.

This module implements the CIProvider protocol on top of an
``httpx.AsyncClient`` authenticated with HTTP Basic (user + API token).

Every request is a single attempt unless retries are configured, and
retries only ever apply to GET requests that failed at the transport
level. The one deliberate second request is the build trigger fallback:
Jenkins exposes ``build`` for plain jobs and ``buildWithParameters`` for
parameterized ones, and the relay can't tell which applies up front.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
import structlog

from ...config.schema import JenkinsConfig, RetryConfig
from ...models.jenkins import BuildParameter, JobStatus, ParameterBlock
from ...utils.async_helpers import (
    ApiError,
    NotFoundError,
    RelayError,
    TransportError,
    create_retry,
)

log = structlog.get_logger()

_OK = frozenset({200})
_OK_OR_CREATED = frozenset({200, 201})

_JOBS_TREE = "jobs[name]"
_BUILD_PARAMETERS_TREE = "builds[actions[parameters[name,value]],number]"


def job_path(job_name: str) -> str:
    """Convert a job name into a Jenkins API path.

    Each segment is URL-encoded to handle spaces, '#', '%', etc.
    A slash-separated name addresses a job inside folders.

    'my job'         -> '/job/my%20job'
    'my-org/my-repo' -> '/job/my-org/job/my-repo'
    """
    segments = [quote(seg, safe="") for seg in job_name.strip("/").split("/")]
    return "/job/" + "/job/".join(segments)


def _parameter_text(value: Any) -> str | None:
    """Render a recorded parameter value as chat text (None to skip)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


class JenkinsClient:
    """Jenkins adapter implementing the CIProvider protocol.

    Example:
        config = JenkinsConfig(url="https://ci.example.com", token="...")
        client = JenkinsClient(config)

        for name in await client.list_jobs():
            print(name, await client.job_status(name))

        await client.aclose()
    """

    def __init__(
        self,
        config: JenkinsConfig,
        retry: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Jenkins client.

        Args:
            config: Jenkins connection configuration.
            retry: Retry policy for GET requests. Defaults to a single attempt.
            transport: Optional httpx transport (used by tests).
        """
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.url,
            auth=httpx.BasicAuth(config.user, config.token),
            timeout=config.timeout,
            verify=config.verify_ssl,
            transport=transport,
        )

        retry = retry or RetryConfig()
        self._get_with_retry = create_retry(
            max_attempts=retry.max_attempts,
            min_wait=retry.min_wait,
            max_wait=retry.max_wait,
        )(self._get)

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        params: list[tuple[str, str]] | dict[str, str] | None = None,
    ) -> httpx.Response:
        """Issue one request, mapping transport failures to TransportError."""
        try:
            response = await self._client.request(method, path, params=params)
        except httpx.TransportError as e:
            log.warning("jenkins_unreachable", method=method, path=path, error=str(e))
            raise TransportError(
                f"Cannot reach Jenkins at {self._config.url}: {e}"
            ) from e

        log.debug(
            "jenkins_request",
            method=method,
            path=path,
            status=response.status_code,
        )
        return response

    async def _get(
        self,
        path: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self._send("GET", path, params=params)

    async def _post(
        self,
        path: str,
        params: list[tuple[str, str]] | None = None,
    ) -> None:
        """POST and require 200/201."""
        response = await self._send("POST", path, params=params)
        self._check_status(response, _OK_OR_CREATED)

    @staticmethod
    def _check_status(response: httpx.Response, allowed: frozenset[int]) -> None:
        if response.status_code not in allowed:
            raise ApiError(
                f"HTTP request failed with status: {response.status_code} "
                f"{response.reason_phrase}".rstrip(),
                status_code=response.status_code,
            )

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON from Jenkins: {e}") from e

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET, require 200, decode JSON."""
        response = await self._get_with_retry(path, params)
        self._check_status(response, _OK)
        return self._json(response)

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    async def list_jobs(self) -> list[str]:
        """Return the names of all top-level jobs.

        Raises:
            ApiError: On non-200 or a missing/malformed ``jobs`` array.
        """
        data = await self._get_json("/api/json", {"tree": _JOBS_TREE})

        jobs = data.get("jobs") if isinstance(data, dict) else None
        if not isinstance(jobs, list):
            raise ApiError("unexpected format for 'jobs'")

        names: list[str] = []
        for job in jobs:
            if not isinstance(job, dict):
                raise ApiError("unexpected format for 'job'")
            name = job.get("name")
            if isinstance(name, str):
                names.append(name)
        return names

    async def job_status(self, name: str) -> JobStatus:
        """Return the status of the job's last build.

        A non-200 answer (typically 404 for a job with no builds) maps to
        UNKNOWN so one job can't break a whole job listing.
        """
        response = await self._get_with_retry(f"{job_path(name)}/lastBuild/api/json", None)
        if response.status_code != 200:
            log.debug("jenkins_job_never_run", job=name, status=response.status_code)
            return JobStatus.UNKNOWN

        data = self._json(response)
        if not isinstance(data, dict):
            raise ApiError("unexpected format for last build")
        return JobStatus.from_build(data)

    async def last_build_number(self, name: str) -> int:
        """Return the number of the job's last build.

        Raises:
            ApiError: On non-200 or a missing/non-numeric ``id`` and ``number``.
        """
        data = await self._get_json(f"{job_path(name)}/lastBuild/api/json")

        build_id = None
        if isinstance(data, dict):
            build_id = data.get("id")
            if build_id is None:
                build_id = data.get("number")
        if isinstance(build_id, int) and not isinstance(build_id, bool):
            return build_id
        if isinstance(build_id, str) and build_id.strip().isdigit():
            return int(build_id)
        raise ApiError("unable to extract build ID")

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def trigger_build(self, name: str) -> None:
        """Start a build of a job.

        Tries ``/build`` first; on any failure makes exactly one attempt
        against ``/buildWithParameters`` and surfaces that outcome.
        """
        path = job_path(name)
        try:
            await self._post(f"{path}/build")
        except RelayError as e:
            log.info("jenkins_build_fallback", job=name, error=str(e))
            await self._post(f"{path}/buildWithParameters")

        log.info("jenkins_build_triggered", job=name)

    async def trigger_build_with_parameters(self, name: str, parameters: ParameterBlock) -> None:
        """Start a build with the given parameters.

        Each value of a repeated parameter becomes its own ``key=value``
        query pair.

        Raises:
            ApiError: On a status other than 200/201.
        """
        await self._post(f"{job_path(name)}/buildWithParameters", params=parameters.pairs())
        log.info(
            "jenkins_build_triggered",
            job=name,
            parameters=parameters.names(),
        )

    # ------------------------------------------------------------------
    # Pending input
    # ------------------------------------------------------------------

    async def pending_input_id(self, name: str, build_number: int) -> str:
        """Return the id of the first input step waiting on a build.

        Raises:
            ApiError: On non-200.
            NotFoundError: If nothing is waiting for input.
        """
        data = await self._get_json(f"{job_path(name)}/{build_number}/wfapi/pendingInputActions")

        if isinstance(data, list) and data and isinstance(data[0], dict):
            input_id = data[0].get("id")
            if isinstance(input_id, str) and input_id:
                return input_id

        raise NotFoundError(f"no pending input for '{name}' build #{build_number}")

    async def proceed_input(self, name: str, build_number: int) -> None:
        """Approve the pending input step of a build."""
        input_id = await self.pending_input_id(name, build_number)
        input_path = f"{job_path(name)}/{build_number}/input/{quote(input_id, safe='')}"
        await self._post(f"{input_path}/proceedEmpty")
        log.info("jenkins_input_proceeded", job=name, build=build_number, input_id=input_id)

    async def abort_input(self, name: str, build_number: int) -> None:
        """Reject the pending input step of a build."""
        input_id = await self.pending_input_id(name, build_number)
        input_path = f"{job_path(name)}/{build_number}/input/{quote(input_id, safe='')}"
        await self._post(f"{input_path}/abort")
        log.info("jenkins_input_aborted", job=name, build=build_number, input_id=input_id)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    async def build_parameters(self, name: str, build_number: int) -> list[BuildParameter]:
        """Return the parameters a build ran with, in recorded order.

        Raises:
            ApiError: On non-200 or a malformed ``builds`` array.
            NotFoundError: If no build has the requested number.
        """
        data = await self._get_json(
            f"{job_path(name)}/api/json",
            {"tree": _BUILD_PARAMETERS_TREE},
        )

        builds = data.get("builds") if isinstance(data, dict) else None
        if not isinstance(builds, list):
            raise ApiError("unexpected format for 'builds'")

        for build in builds:
            if not isinstance(build, dict):
                raise ApiError("unexpected format for 'build'")
            number = build.get("number")
            if not isinstance(number, int):
                raise ApiError("unable to extract build number")
            if number != build_number:
                continue
            return self._flatten_parameters(build.get("actions"))

        raise NotFoundError(f"build #{build_number} of '{name}' not found")

    @staticmethod
    def _flatten_parameters(actions: Any) -> list[BuildParameter]:
        if not isinstance(actions, list):
            return []

        parameters: list[BuildParameter] = []
        for action in actions:
            if not isinstance(action, dict):
                continue
            for parameter in action.get("parameters") or []:
                if not isinstance(parameter, dict):
                    continue
                name = parameter.get("name")
                value = _parameter_text(parameter.get("value"))
                if isinstance(name, str) and value is not None:
                    parameters.append(BuildParameter(name=name, value=value))
        return parameters

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
