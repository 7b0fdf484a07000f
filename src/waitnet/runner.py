# runner.py
from __future__ import annotations

import runpy
import time
from pathlib import Path
from typing import List, Optional

from .config import DEFAULT_REFRESH_INTERVAL
from .dataflow import Dataflow
from .errors import ConfigurationError
from .model import JobNet
from .ui.console import Console, get_console
from .ui.status import collect_errors, render_status_table


class Runner:
    """
    Drives one run of a job tree and reports on it.

    While the dataflow is running, the status table is redrawn every
    `refresh_interval` seconds (unless in batch mode). Afterwards every leaf's
    failure reason is collected; any collected error makes the run fail.
    """

    def __init__(
        self,
        root: JobNet,
        *,
        max_workers: int | None = None,
        console: Console | None = None,
    ):
        self.root = root
        self.max_workers = max_workers
        self.console = console or get_console()
        self.errors: List[BaseException] = []

    def run(self, batch_mode: bool = False, refresh_interval: float = DEFAULT_REFRESH_INTERVAL) -> bool:
        dataflow = Dataflow(self.root, max_workers=self.max_workers)

        self.console.print_run_started(self.root.name, len(dataflow.jobs))
        started = time.monotonic()
        dataflow.execute()
        while not dataflow.complete():
            if not batch_mode:
                self.display_table()
            dataflow.wait(refresh_interval)
        self.console.print_run_finished(self.root.name, time.monotonic() - started)

        if not batch_mode:
            self.display_table()

        self.errors = collect_errors(self.root)
        if dataflow.reason is not None:
            self.errors.append(dataflow.reason)

        if self.errors:
            for err in self.errors:
                self.console.print_job_error(err)
            return False

        return True

    def display_table(self) -> None:
        self.console.print_status_table(render_status_table(self.root))


def run(
    root: JobNet,
    batch_mode: bool = False,
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
    *,
    max_workers: int | None = None,
    console: Console | None = None,
) -> bool:
    """Execute `root` and return True when no job failed."""
    return Runner(root, max_workers=max_workers, console=console).run(batch_mode, refresh_interval)


# ----------------------------------------------------------------------
# Workflow loading (local file)
# ----------------------------------------------------------------------

def load_workflow(path: str | Path) -> JobNet:
    """
    Load a workflow from a python file path.

    The file must define either:
      - workflow() -> JobNet
      - ROOT = JobNet
    """
    wf_path = Path(path).expanduser().resolve()
    if not wf_path.exists():
        raise FileNotFoundError(f"Workflow file not found: {wf_path}")
    if wf_path.suffix != ".py":
        raise ConfigurationError(f"Workflow must be a .py file, got: {wf_path.name}")

    module_name = f"waitnet_workflow_{wf_path.stem}"
    globals_dict = runpy.run_path(str(wf_path), run_name=module_name)

    root: Optional[JobNet] = None
    if "workflow" in globals_dict and callable(globals_dict["workflow"]):
        root = globals_dict["workflow"]()
    elif "ROOT" in globals_dict:
        root = globals_dict["ROOT"]

    if not isinstance(root, JobNet):
        raise ConfigurationError(
            "Workflow must return/define a JobNet. "
            "Define workflow() -> JobNet or ROOT = net(...)."
        )

    return root
