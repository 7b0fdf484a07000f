# model.py
from __future__ import annotations

import os
import subprocess
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from .errors import StepFailure
from .waiter import Waiter


class JobState(str, Enum):
    WAITING = "waiting"
    RUNNING = "running"
    FINISHED = "finished"
    ERROR = "error"


@dataclass(eq=False)
class Job(ABC):
    """
    A leaf of the job tree.

    `state` and `reason` are written by the engine only, under a per-job lock.
    """
    name: str
    needs: List[str] = field(default_factory=list)

    _state: JobState = field(default=JobState.WAITING, init=False, repr=False)
    _reason: Optional[BaseException] = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @abstractmethod
    def run(self) -> None:
        raise NotImplementedError

    @property
    def state(self) -> JobState:
        with self._lock:
            return self._state

    @property
    def reason(self) -> Optional[BaseException]:
        with self._lock:
            return self._reason

    def mark(self, state: JobState, reason: Optional[BaseException] = None) -> None:
        with self._lock:
            self._state = state
            self._reason = reason

    def reset(self) -> None:
        self.mark(JobState.WAITING)


@dataclass(eq=False)
class JobNet:
    """An ordered group of jobs and nested nets. Stores no state of its own."""
    name: str
    children: List[Node] = field(default_factory=list)
    needs: List[str] = field(default_factory=list)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.children)

    def __len__(self) -> int:
        return len(self.children)

    def leaves(self) -> Iterator[Job]:
        for child in self.children:
            if isinstance(child, JobNet):
                yield from child.leaves()
            else:
                yield child

    def walk(self) -> Iterator[Node]:
        """All descendant nodes, depth-first pre-order (self excluded)."""
        for child in self.children:
            yield child
            if isinstance(child, JobNet):
                yield from child.walk()

    @property
    def state(self) -> JobState:
        states = [leaf.state for leaf in self.leaves()]
        if any(s is JobState.ERROR for s in states):
            return JobState.ERROR
        if any(s is JobState.RUNNING for s in states):
            return JobState.RUNNING
        if states and all(s is JobState.FINISHED for s in states):
            return JobState.FINISHED
        return JobState.WAITING

    @property
    def reason(self) -> None:
        return None


Node = Union[Job, JobNet]


# ---------------------------------------------------------------------
# Concrete jobs
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class Step:
    """A single shell command inside a ShellJob."""
    name: str
    run: str
    cwd: str | None = None


@dataclass(eq=False, kw_only=True)
class ShellJob(Job):
    steps: List[Step]
    env: Dict[str, str] = field(default_factory=dict)

    def run(self) -> None:
        for step in self.steps:
            self._run_step(step)

    def _run_step(self, step: Step) -> None:
        cwd = Path(step.cwd or ".").resolve()
        if not cwd.exists():
            raise FileNotFoundError(f"[{self.name}] step '{step.name}' cwd not found: {cwd}")

        env = os.environ.copy()
        env.update(self.env or {})

        proc = subprocess.run(
            step.run,
            shell=True,
            cwd=str(cwd),
            env=env,
            text=True,
            capture_output=True,
        )

        if proc.returncode != 0:
            raise StepFailure(
                job=self.name,
                step=step.name,
                cmd=step.run,
                exit_code=proc.returncode,
                stdout=proc.stdout[-4000:],
                stderr=proc.stderr[-4000:],
            )


@dataclass(eq=False, kw_only=True)
class WaiterJob(Job):
    """A job whose body is a bounded wait on a condition."""
    waiter: Waiter

    def run(self) -> None:
        self.waiter.run()
