"""Abstract interface for CI server integrations."""

from typing import Protocol

from ..models.jenkins import BuildParameter, JobStatus, ParameterBlock


class CIProvider(Protocol):
    """Operations the relay needs from a CI server.

    Every method raises TransportError, ApiError or NotFoundError from
    ``ci_chat_relay.utils.async_helpers`` on failure. Implementations do
    not log-and-swallow errors.
    """

    async def list_jobs(self) -> list[str]:
        """Return the names of all top-level jobs."""
        ...

    async def job_status(self, name: str) -> JobStatus:
        """Return the status of the job's last build.

        A job that was never built (or whose last build can't be read)
        reports JobStatus.UNKNOWN rather than raising.
        """
        ...

    async def last_build_number(self, name: str) -> int:
        """Return the number of the job's last build."""
        ...

    async def trigger_build(self, name: str) -> None:
        """Start a build, falling back to the parameterized endpoint once."""
        ...

    async def trigger_build_with_parameters(self, name: str, parameters: ParameterBlock) -> None:
        """Start a build with the given parameters."""
        ...

    async def pending_input_id(self, name: str, build_number: int) -> str:
        """Return the id of the first input step waiting on a build."""
        ...

    async def proceed_input(self, name: str, build_number: int) -> None:
        """Approve the pending input step of a build."""
        ...

    async def abort_input(self, name: str, build_number: int) -> None:
        """Reject the pending input step of a build."""
        ...

    async def build_parameters(self, name: str, build_number: int) -> list[BuildParameter]:
        """Return the parameters a build ran with, in recorded order."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
