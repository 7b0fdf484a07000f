# cli.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Tuple

import click

from waitnet.config import settings
from waitnet.dag import build_dag, topo_levels
from waitnet.errors import ConfigurationError, TimeoutExceeded
from waitnet.runner import Runner, load_workflow
from waitnet.ui.console import Console, get_console, set_console
from waitnet.ui.status import render_status_table
from waitnet.waiter import build_waiter

DEFAULT_WORKFLOW = "waitnet_workflow.py"


def find_workflow_files() -> list[Path]:
    """Find all workflow files in the current directory."""
    workflow_files = []
    current_dir = Path(".")

    default_workflow = current_dir / DEFAULT_WORKFLOW
    if default_workflow.exists():
        workflow_files.append(default_workflow)

    for path in current_dir.glob("*_workflow.py"):
        if path != default_workflow:
            workflow_files.append(path)

    return sorted(workflow_files)


def discover_workflow(workflow_arg: str | None) -> Path:
    """
    Discover workflow file from argument or default.

    Raises:
        SystemExit: If workflow cannot be found or multiple workflows exist
    """
    console = get_console()

    if workflow_arg:
        workflow_path = Path(workflow_arg)
        if not workflow_path.exists() and workflow_path.suffix != ".py":
            workflow_path = Path(str(workflow_path) + ".py")
        if not workflow_path.exists():
            console.print_error(
                "Workflow file not found",
                f"Could not find workflow file: {workflow_arg}",
                suggestion="Create a workflow file or specify a different path:\n  waitnet run --workflow my_workflow.py",
            )
            sys.exit(1)
        return workflow_path

    workflow_files = find_workflow_files()

    if len(workflow_files) == 0:
        console.print_error(
            "No workflow file found",
            "Could not find any workflow files.",
            details=["Looked for:", f"  {DEFAULT_WORKFLOW}", "  *_workflow.py"],
            suggestion=f"Create a workflow file:\n  {DEFAULT_WORKFLOW}\n\nOr specify a workflow explicitly:\n  waitnet run --workflow my_workflow.py",
        )
        sys.exit(1)

    if len(workflow_files) > 1:
        file_list = "\n".join(f"  {f}" for f in workflow_files)
        console.print_error(
            "Multiple workflow files found",
            "Found multiple workflow files. Please specify which one to use:",
            details=[file_list],
            suggestion=f"Specify a workflow explicitly:\n  waitnet run --workflow {DEFAULT_WORKFLOW}",
        )
        sys.exit(1)

    return workflow_files[0]


def parse_param_pairs(pairs: Tuple[str, ...]) -> Dict[str, Any]:
    """Turn repeated `key=value` options into a keyword map; a repeated key becomes a list."""
    params: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--param")
        if key in params:
            existing = params[key]
            params[key] = (existing if isinstance(existing, list) else [existing]) + [value]
        else:
            params[key] = value
    return params


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Show stack traces for unexpected errors",
)
def cli(debug):
    """waitnet: run job trees that wait on files, timers and object stores."""
    console = Console(debug=debug)
    set_console(console)


@cli.command()
@click.option(
    "--workflow",
    default=None,
    help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW} if present)",
)
@click.option("--batch/--no-batch", default=False, help="Do not draw the status table while running")
@click.option("--refresh-interval", default=None, type=float, help="Seconds between status table refreshes")
@click.option("--workers", default=None, type=int, help="Number of parallel workers")
def run(workflow, batch, refresh_interval, workers):
    """Run a waitnet workflow."""
    console = get_console()
    workflow_path = discover_workflow(workflow)

    try:
        cfg = settings()
        root = load_workflow(workflow_path)
        runner = Runner(root, max_workers=workers or cfg.max_workers, console=console)
        ok = runner.run(
            batch_mode=batch,
            refresh_interval=refresh_interval if refresh_interval is not None else cfg.refresh_interval,
        )
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except ConfigurationError as e:
        console.print_error("Invalid workflow", str(e))
        sys.exit(1)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    if not ok:
        sys.exit(1)


@cli.command()
@click.option(
    "--workflow",
    default=None,
    help=f"Workflow file path (defaults to {DEFAULT_WORKFLOW} if present)",
)
def plan(workflow):
    """Validate a workflow and show its stages without running it."""
    console = get_console()
    workflow_path = discover_workflow(workflow)

    try:
        root = load_workflow(workflow_path)
        adj, indeg = build_dag(root)
    except ConfigurationError as e:
        console.print_error("Invalid workflow", str(e))
        sys.exit(1)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)

    console.print_plan(topo_levels(adj, indeg))
    console.print_status_table(render_status_table(root))


@cli.command()
@click.argument("kind")
@click.option("--param", "-p", "params", multiple=True, help="Condition parameter as key=value (repeat a key for a list)")
@click.option("--timeout", default=None, type=float, help="Give up after this many seconds")
@click.option("--poll-interval", default=None, type=float, help="Seconds between checks")
def wait(kind, params, timeout, poll_interval):
    """Block until a single condition holds (exit 1 on timeout)."""
    console = get_console()

    kwargs = parse_param_pairs(params)
    if timeout is not None:
        kwargs["timeout"] = timeout
    if poll_interval is not None:
        kwargs["poll_interval"] = poll_interval

    try:
        waiter = build_waiter(kind, **kwargs)
    except ConfigurationError as e:
        console.print_error("Invalid waiter", str(e))
        sys.exit(2)

    condition = waiter.condition.describe()
    console.print_wait_started(condition, waiter.timeout, waiter.poll_interval)
    try:
        waiter.run()
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except TimeoutExceeded as e:
        console.print_job_error(e)
        sys.exit(1)

    console.print_wait_satisfied(condition, waiter.checks)


if __name__ == "__main__":
    cli()
