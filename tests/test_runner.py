from __future__ import annotations

import time

import pytest

from conftest import FuncJob
from waitnet.dsl import job, net, sh, wait
from waitnet.errors import ConfigurationError, StepFailure, TimeoutExceeded
from waitnet.model import JobNet, JobState, ShellJob, WaiterJob
from waitnet.runner import Runner, load_workflow, run


def test_sleep_and_missing_file_end_to_end(tmp_path, console) -> None:
    root = net(
        "root",
        wait("nap", "sleep", sec=1),
        wait("input", "local_file", path=str(tmp_path / "missing.csv"), timeout=2, poll_interval=0.5),
    )
    runner = Runner(root, console=console)

    started = time.monotonic()
    ok = runner.run(batch_mode=True, refresh_interval=1)
    elapsed = time.monotonic() - started

    assert ok is False
    assert len(runner.errors) == 1
    assert isinstance(runner.errors[0], TimeoutExceeded)
    assert elapsed < 3
    states = {j.name: j.state for j in root.leaves()}
    assert states == {"nap": JobState.FINISHED, "input": JobState.ERROR}


def test_successful_run(tmp_path, console) -> None:
    ready = tmp_path / "ready.flag"
    ready.write_text("ok")
    root = net(
        "root",
        wait("flag", "local_file", path=str(ready), timeout=1, poll_interval=0.1),
        net("inner", FuncJob("work", needs=["flag"])),
    )
    assert run(root, batch_mode=True, refresh_interval=0.05, console=console) is True


def test_waiter_unblocks_when_file_appears(tmp_path, console) -> None:
    target = tmp_path / "late.txt"
    root = net(
        "root",
        FuncJob("producer", fn=lambda: (time.sleep(0.3), target.write_text("x"))),
        wait("consumer", "local_file", path=str(target), timeout=5, poll_interval=0.1),
    )
    assert run(root, batch_mode=True, refresh_interval=0.05, console=console) is True


def test_status_table_is_drawn_unless_batch(capsys, console) -> None:
    root = JobNet("root", [FuncJob("only", fn=lambda: time.sleep(0.2))])
    assert run(root, batch_mode=False, refresh_interval=0.05, console=console) is True

    out = capsys.readouterr()
    assert "only (FuncJob)" in out.out
    assert "finished" in out.out
    assert "=== Start root (1 jobs) ===" in out.err
    assert "=== Finish root" in out.err

    root = JobNet("root", [FuncJob("only")])
    assert run(root, batch_mode=True, refresh_interval=0.05, console=console) is True
    assert "only (FuncJob)" not in capsys.readouterr().out


def test_errors_are_logged(capsys, console) -> None:
    def boom():
        raise RuntimeError("disk on fire")

    root = JobNet("root", [FuncJob("a", fn=boom), FuncJob("b")])
    assert run(root, batch_mode=True, refresh_interval=0.05, console=console) is False
    assert "ERROR disk on fire" in capsys.readouterr().err


def test_shell_job(tmp_path, console) -> None:
    out = tmp_path / "out.txt"
    root = net(
        "root",
        job("write", sh("write file", f"echo hello > {out.name}"), cwd=str(tmp_path)),
        job("fail", sh("exit", "exit 3")),
    )
    runner = Runner(root, console=console)
    assert runner.run(batch_mode=True, refresh_interval=0.05) is False

    assert out.read_text().strip() == "hello"
    [err] = runner.errors
    assert isinstance(err, StepFailure)
    assert err.exit_code == 3


# ---------------------------------------------------------------------
# DSL
# ---------------------------------------------------------------------

def test_dsl_builds_typed_jobs(tmp_path) -> None:
    w = wait("w", "local_file", path=str(tmp_path), needs=["x"], timeout=3)
    assert isinstance(w, WaiterJob)
    assert w.needs == ["x"]
    assert w.waiter.timeout == 3

    j = job("j", sh("one", "true"), sh("two", "true", cwd="sub"), cwd="base", env={"N": 1})
    assert isinstance(j, ShellJob)
    assert [s.cwd for s in j.steps] == ["base", "sub"]
    assert j.env == {"N": "1"}

    with pytest.raises(ValueError):
        job("empty")


def test_dsl_validates_waiters_eagerly() -> None:
    with pytest.raises(ConfigurationError):
        wait("w", "local_file")


# ---------------------------------------------------------------------
# Workflow loading
# ---------------------------------------------------------------------

WORKFLOW = """
from waitnet import net, wait

def workflow():
    return net("nightly", wait("nap", "sleep", sec=0))
"""


def test_load_workflow_function(tmp_path) -> None:
    path = tmp_path / "nightly_workflow.py"
    path.write_text(WORKFLOW)
    root = load_workflow(path)
    assert root.name == "nightly"
    assert [j.name for j in root.leaves()] == ["nap"]


def test_load_workflow_root_constant(tmp_path) -> None:
    path = tmp_path / "root_workflow.py"
    path.write_text("from waitnet import net\nROOT = net('r')\n")
    assert load_workflow(path).name == "r"


def test_load_workflow_errors(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_workflow(tmp_path / "nope.py")

    txt = tmp_path / "wf.txt"
    txt.write_text("")
    with pytest.raises(ConfigurationError):
        load_workflow(txt)

    bad = tmp_path / "bad_workflow.py"
    bad.write_text("def workflow():\n    return [1, 2]\n")
    with pytest.raises(ConfigurationError, match="JobNet"):
        load_workflow(bad)
