from __future__ import annotations

from click.testing import CliRunner

from conftest import touch
from waitnet.cli import cli, parse_param_pairs

OK_WORKFLOW = """
from waitnet import net, wait, job, sh

def workflow():
    return net(
        "demo",
        wait("nap", "sleep", sec=0, timeout=1),
        job("hello", sh("say hello", "echo hello"), needs=["nap"]),
    )
"""

FAILING_WORKFLOW = """
from waitnet import net, wait

def workflow():
    return net("demo", wait("never", "local_file", path="does-not-exist", timeout=0.2, poll_interval=0.1))
"""


def write(tmp_path, name, text):
    path = tmp_path / name
    path.write_text(text)
    return str(path)


def test_help_runs() -> None:
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "run" in result.output and "wait" in result.output


def test_run_success(tmp_path) -> None:
    wf = write(tmp_path, "ok_workflow.py", OK_WORKFLOW)
    result = CliRunner().invoke(cli, ["run", "--workflow", wf, "--batch", "--refresh-interval", "0.05"])
    assert result.exit_code == 0, result.output


def test_run_failure_exits_1(tmp_path) -> None:
    wf = write(tmp_path, "bad_workflow.py", FAILING_WORKFLOW)
    result = CliRunner().invoke(cli, ["run", "--workflow", wf, "--batch", "--refresh-interval", "0.05"])
    assert result.exit_code == 1


def test_run_invalid_workflow(tmp_path) -> None:
    wf = write(tmp_path, "broken_workflow.py", "from waitnet import net, wait\nROOT = net('r', wait('w', 'sleep'))\n")
    result = CliRunner().invoke(cli, ["run", "--workflow", wf, "--batch"])
    assert result.exit_code == 1


def test_run_missing_workflow(tmp_path) -> None:
    result = CliRunner().invoke(cli, ["run", "--workflow", str(tmp_path / "nope.py")])
    assert result.exit_code == 1


def test_run_discovers_default_workflow(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    write(tmp_path, "waitnet_workflow.py", OK_WORKFLOW)
    result = CliRunner().invoke(cli, ["run", "--batch", "--refresh-interval", "0.05"])
    assert result.exit_code == 0, result.output


def test_plan_prints_stages(tmp_path) -> None:
    wf = write(tmp_path, "ok_workflow.py", OK_WORKFLOW)
    result = CliRunner().invoke(cli, ["plan", "--workflow", wf])
    assert result.exit_code == 0, result.output
    assert "Stage 1: nap" in result.output
    assert "Stage 2: hello" in result.output
    assert "waiting" in result.output


def test_wait_satisfied(tmp_path) -> None:
    f = tmp_path / "a.txt"
    touch(f)
    result = CliRunner().invoke(cli, ["wait", "local_file", "-p", f"path={f}", "--timeout", "0"])
    assert result.exit_code == 0, result.output


def test_wait_timeout_exits_1(tmp_path) -> None:
    result = CliRunner().invoke(
        cli,
        ["wait", "local_file", "-p", f"path={tmp_path / 'missing'}", "--timeout", "0.2", "--poll-interval", "0.1"],
    )
    assert result.exit_code == 1


def test_wait_bad_configuration_exits_2() -> None:
    result = CliRunner().invoke(cli, ["wait", "local_file"])
    assert result.exit_code == 2
    result = CliRunner().invoke(cli, ["wait", "sleep", "-p", "sec=0", "--poll-interval", "0"])
    assert result.exit_code == 2


def test_parse_param_pairs() -> None:
    assert parse_param_pairs(("path=a", "path=b", "if_modified_since=2024-01-01T00:00:00Z")) == {
        "path": ["a", "b"],
        "if_modified_since": "2024-01-01T00:00:00Z",
    }


def test_debug_flag_shows_traceback(tmp_path) -> None:
    wf = write(tmp_path, "boom_workflow.py", "raise RuntimeError('exploded on import')\n")
    quiet = CliRunner().invoke(cli, ["run", "--workflow", wf, "--batch"])
    loud = CliRunner().invoke(cli, ["--debug", "run", "--workflow", wf, "--batch"])

    assert quiet.exit_code == loud.exit_code == 1
    assert "Error: exploded on import" in quiet.output
    assert "Traceback" not in quiet.output
    assert "Traceback" in loud.output
