"""Data models for Jenkins jobs, builds and parameters."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum


class JobStatus(StrEnum):
    """Outcome of a job's last build."""

    SUCCESS = "success"
    FAILURE = "failure"
    RUNNING = "running"
    UNKNOWN = "unknown"  # also "never run"

    @classmethod
    def from_build(cls, data: dict[str, object]) -> JobStatus:
        """Derive a status from a lastBuild JSON payload.

        ``inProgress`` wins over ``result``; any result other than
        SUCCESS or FAILURE (ABORTED, UNSTABLE, missing) is UNKNOWN.
        """
        if data.get("inProgress") is True:
            return cls.RUNNING

        result = data.get("result")
        if result == "SUCCESS":
            return cls.SUCCESS
        if result == "FAILURE":
            return cls.FAILURE
        return cls.UNKNOWN


@dataclass(frozen=True)
class StatusLookup:
    """A job's status, or the error that prevented looking it up."""

    job_name: str
    status: JobStatus = JobStatus.UNKNOWN
    error: str | None = None

    @property
    def ok(self) -> bool:
        """True when the lookup succeeded."""
        return self.error is None


@dataclass(frozen=True)
class BuildParameter:
    """A single name/value parameter recorded on a build."""

    name: str
    value: str


class ParameterBlock:
    """Ordered parameter name -> values mapping for a parameterized build.

    Repeated names keep every value in the order they were given. The
    block is immutable once built, so commands carrying it stay hashable.
    """

    def __init__(self, pairs: Iterable[tuple[str, str]] = ()) -> None:
        values: dict[str, list[str]] = {}
        for name, value in pairs:
            values.setdefault(name, []).append(value)
        self._values: dict[str, tuple[str, ...]] = {
            name: tuple(vals) for name, vals in values.items()
        }

    def values(self, name: str) -> tuple[str, ...]:
        """Return all values recorded for a name (empty if absent)."""
        return self._values.get(name, ())

    def names(self) -> list[str]:
        """Return parameter names in first-seen order."""
        return list(self._values)

    def pairs(self) -> list[tuple[str, str]]:
        """Flatten into ``(name, value)`` pairs, one per value."""
        return [(name, value) for name, values in self._values.items() for value in values]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterBlock):
            return NotImplemented
        return self._values == other._values

    def __hash__(self) -> int:
        return hash(tuple(self._values.items()))

    def __repr__(self) -> str:
        return f"ParameterBlock({self.pairs()!r})"

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)
