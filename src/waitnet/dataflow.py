# dataflow.py
from __future__ import annotations

import threading
from collections import deque
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, Optional

from .dag import build_dag, leaves_by_name
from .model import Job, JobNet, JobState


def _execute_job(job: Job) -> JobState:
    job.mark(JobState.RUNNING)
    try:
        job.run()
    except Exception as e:
        job.mark(JobState.ERROR, e)
        return JobState.ERROR
    job.mark(JobState.FINISHED)
    return JobState.FINISHED


class Dataflow:
    """
    Runs the leaves of a job tree on a thread pool, honoring `needs`.

    A leaf is submitted as soon as every leaf it depends on has finished.
    When a leaf fails, the leaves depending on it (transitively) are never
    started and stay `waiting`; independent branches keep running.

    The handle mirrors a future: execute() starts the run in the background,
    complete() polls it, and `reason` holds an engine-level failure if the
    scheduler itself broke (job failures live on the jobs).
    """

    def __init__(self, root: JobNet, max_workers: int | None = None):
        self.root = root
        self.adj, self.indeg = build_dag(root)
        self.jobs: Dict[str, Job] = leaves_by_name(root)
        # waiters block a worker each, so default to one worker per leaf
        self.max_workers = max_workers or max(1, len(self.jobs))

        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._reason: Optional[BaseException] = None

    def execute(self) -> Dataflow:
        if self._thread is not None:
            raise RuntimeError("Dataflow.execute() called twice")
        for job in self.jobs.values():
            job.reset()
        self._thread = threading.Thread(target=self._run, name=f"dataflow-{self.root.name}", daemon=True)
        self._thread.start()
        return self

    def complete(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        if not self._done.wait(timeout):
            return False
        if self._thread is not None:
            self._thread.join()
        return True

    @property
    def reason(self) -> Optional[BaseException]:
        return self._reason

    def _run(self) -> None:
        try:
            self._schedule()
        except Exception as e:
            self._reason = e
        finally:
            self._done.set()

    def _schedule(self) -> None:
        indeg = dict(self.indeg)
        ready = deque(sorted(name for name, deg in indeg.items() if deg == 0))
        in_flight: Dict = {}

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="waitnet-job") as pool:
            while ready or in_flight:
                # schedule all currently ready
                while ready:
                    name = ready.popleft()
                    fut = pool.submit(_execute_job, self.jobs[name])
                    in_flight[fut] = name

                if not in_flight:
                    break

                # wait for one completion, then loop to schedule newly-ready jobs
                fut = next(as_completed(list(in_flight.keys())))
                name = in_flight.pop(fut)

                # unlock dependents only on success
                if fut.result() is JobState.FINISHED:
                    for nxt in sorted(self.adj[name]):
                        indeg[nxt] -= 1
                        if indeg[nxt] == 0:
                            ready.append(nxt)
