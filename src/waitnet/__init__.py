from .dsl import job, net, sh, wait
from .model import Job, JobNet, JobState, ShellJob, Step, WaiterJob
from .runner import Runner, load_workflow, run
from .waiter import Waiter, WaiterConfig, build_waiter

__all__ = [
    "Job",
    "JobNet",
    "JobState",
    "Runner",
    "ShellJob",
    "Step",
    "Waiter",
    "WaiterConfig",
    "WaiterJob",
    "build_waiter",
    "job",
    "load_workflow",
    "net",
    "run",
    "sh",
    "wait",
]
