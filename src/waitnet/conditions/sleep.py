# conditions/sleep.py
from __future__ import annotations

import time
from typing import Any, Callable, Mapping

from pydantic import Field

from .base import ConditionParams, parse_params


class SleepParams(ConditionParams):
    sec: float = Field(ge=0)


class SleepCondition:
    """Blocks for `sec` seconds on the first check, then reports success."""

    kind = "sleep"

    def __init__(self, sec: float, *, sleep: Callable[[float], None] = time.sleep):
        self.sec = sec
        self._sleep = sleep

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> SleepCondition:
        p = parse_params(SleepParams, params, cls.kind)
        return cls(p.sec)

    def check(self) -> bool:
        self._sleep(self.sec)
        return True

    def describe(self) -> str:
        return f"sleep({self.sec:g}s)"

    def __repr__(self) -> str:
        return f"SleepCondition(sec={self.sec!r})"
