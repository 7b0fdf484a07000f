# errors.py
from __future__ import annotations

from dataclasses import dataclass


class WaitnetError(Exception):
    """Base class for every error raised by waitnet."""


class ConfigurationError(WaitnetError, ValueError):
    """A job, waiter or workflow was declared with invalid parameters."""


class TransientError(WaitnetError):
    """
    A single failed probe of a condition target.

    Never raised out of a condition backend: it is only carried inside a
    Probe so callers (and tests) can see why a target was not satisfied.
    """

    def __init__(self, target: str, cause: BaseException):
        self.target = target
        self.cause = cause
        super().__init__(f"{target}: {type(cause).__name__}: {cause}")


@dataclass(eq=False)
class TimeoutExceeded(WaitnetError):
    """The waiter deadline passed before its condition became true."""
    condition: str
    timeout: float
    checks: int

    def __str__(self) -> str:
        return (
            f"TimeoutExceeded: {self.condition} not satisfied "
            f"after {self.timeout:g}s ({self.checks} checks)"
        )


@dataclass(eq=False)
class StepFailure(WaitnetError):
    job: str
    step: str
    cmd: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    def __str__(self) -> str:
        return f"[{self.job}] step '{self.step}' failed (exit={self.exit_code}): {self.cmd}"
