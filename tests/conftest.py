from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

import pytest

from waitnet.model import Job
from waitnet.ui.console import Console


@dataclass(eq=False, kw_only=True)
class FuncJob(Job):
    fn: Callable[[], None] = lambda: None

    def run(self) -> None:
        self.fn()


class FakeClock:
    """Monotonic clock that only advances when sleep() is called."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class CountingCondition:
    """Becomes true on the `true_after`-th check (never, if None)."""

    def __init__(self, true_after: int | None) -> None:
        self.true_after = true_after
        self.calls = 0

    def check(self) -> bool:
        self.calls += 1
        return self.true_after is not None and self.calls >= self.true_after

    def describe(self) -> str:
        return "counting"


T = 1_700_000_000


def utc(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def touch(path, mtime: float = T) -> None:
    path.write_text("x")
    os.utime(path, (mtime, mtime))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def console() -> Console:
    return Console()
