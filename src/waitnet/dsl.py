# dsl.py
from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Optional

from .model import JobNet, Node, ShellJob, Step, WaiterJob
from .waiter import build_waiter


# ---------------------------------------------------------------------
# Step helper
# ---------------------------------------------------------------------

def sh(name: str, cmd: str, *, cwd: str | None = None) -> Step:
    """Create a shell step."""
    return Step(name=name, run=cmd, cwd=cwd)


# ---------------------------------------------------------------------
# Job helpers
# ---------------------------------------------------------------------

def job(
    name: str,
    *steps: Step,
    needs: Optional[List[str]] = None,
    env: Optional[Dict[str, str]] = None,
    cwd: str | None = None,  # default cwd applied to steps missing cwd
) -> ShellJob:
    steps_final = list(steps)
    if not steps_final:
        raise ValueError(f"job({name!r}) must have at least one step")

    if cwd is not None:
        steps_final = [s if s.cwd is not None else replace(s, cwd=cwd) for s in steps_final]

    return ShellJob(
        name=name,
        needs=list(needs or []),
        steps=steps_final,
        # force values to str for env compatibility
        env={k: str(v) for k, v in (env or {}).items()},
    )


def wait(name: str, kind: str, *, needs: Optional[List[str]] = None, **params: Any) -> WaiterJob:
    """
    Create a waiter job.

        wait("input-ready", "local_file", path="data/input.csv", timeout=600)
        wait("export", "remote_object", url="s3://bucket/export.parquet",
             if_modified_since="2024-01-01T00:00:00Z")

    Parameters are validated immediately; a bad one raises ConfigurationError
    when the workflow is built, not when it runs.
    """
    return WaiterJob(name=name, needs=list(needs or []), waiter=build_waiter(kind, **params))


def net(name: str, *children: Node, needs: Optional[List[str]] = None) -> JobNet:
    """Group jobs (and nested nets) under one name."""
    return JobNet(name=name, children=list(children), needs=list(needs or []))
