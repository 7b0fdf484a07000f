# waiter.py
from __future__ import annotations

import time
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

from .conditions import ConditionBackend, build_condition
from .conditions.base import parse_params
from .config import DEFAULT_POLL_INTERVAL, DEFAULT_TIMEOUT, Settings, settings
from .errors import TimeoutExceeded


class WaiterConfig(BaseModel):
    """Deadline and polling cadence of a single waiter (seconds)."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    timeout: float = Field(default=DEFAULT_TIMEOUT, ge=0)
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)


class WaitState(str, Enum):
    PENDING = "pending"
    SATISFIED = "satisfied"
    TIMED_OUT = "timed_out"


class Waiter:
    """
    Polls a condition backend until it holds or the deadline passes.

    The loop is: check, and only if the check was false, compare elapsed time
    against the timeout, then sleep `poll_interval` (cut short to whatever is
    left before the deadline) and check again. The deadline is tested again
    after every sleep, so no check starts once it has passed. A timeout of zero
    therefore means exactly one check and no sleep.

    A check that is already in flight (a slow S3 request, a long sleep
    condition) is never interrupted, so the worst-case overrun is one check's
    latency.
    """

    def __init__(
        self,
        condition: ConditionBackend,
        config: WaiterConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.condition = condition
        self.config = config or WaiterConfig()
        self._clock = clock
        self._sleep = sleep
        self.state = WaitState.PENDING
        self.checks = 0

    @property
    def timeout(self) -> float:
        return self.config.timeout

    @property
    def poll_interval(self) -> float:
        return self.config.poll_interval

    def run(self) -> None:
        """Block until satisfied. Raises TimeoutExceeded when the deadline passes."""
        self.state = WaitState.PENDING
        self.checks = 0
        started = self._clock()

        while True:
            self.checks += 1
            if self.condition.check():
                self.state = WaitState.SATISFIED
                return

            remaining = self.timeout - (self._clock() - started)
            if remaining <= 0:
                self._timed_out()

            self._sleep(min(self.poll_interval, remaining))
            if self._clock() - started >= self.timeout:
                self._timed_out()

    def _timed_out(self) -> None:
        self.state = WaitState.TIMED_OUT
        raise TimeoutExceeded(
            condition=self.condition.describe(),
            timeout=self.timeout,
            checks=self.checks,
        )

    def __repr__(self) -> str:
        return (
            f"Waiter({self.condition!r}, timeout={self.timeout:g}, "
            f"poll_interval={self.poll_interval:g}, state={self.state.value})"
        )


def build_waiter(kind: str, *, defaults: Optional[Settings] = None, **params: Any) -> Waiter:
    """
    Build a waiter from a flat keyword map.

    `timeout` and `poll_interval` configure the waiter itself; everything else
    goes to the condition backend registered under `kind`. Missing or unknown
    parameters raise ConfigurationError here, never while polling.
    """
    defaults = defaults or settings()
    waiter_params = {
        "timeout": params.pop("timeout", defaults.default_timeout),
        "poll_interval": params.pop("poll_interval", defaults.default_poll_interval),
    }
    config = parse_params(WaiterConfig, waiter_params, "waiter")
    condition = build_condition(kind, params)
    return Waiter(condition, config)
