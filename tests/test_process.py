from __future__ import annotations

from pathlib import Path
import os
import signal
import subprocess
import sys

import pytest

from scrutineer.process import DISCARD, VERBOSE, OutputSink, ProcessRunner


def _python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


def test_execute_reports_exit_status() -> None:
    runner = ProcessRunner()

    assert runner.execute(_python("raise SystemExit(0)")) is True
    assert runner.execute(_python("raise SystemExit(3)")) is False


def test_execute_reports_launch_failure(tmp_path: Path) -> None:
    runner = ProcessRunner()

    assert runner.execute([str(tmp_path / "no-such-program")]) is False


@pytest.mark.skipif(os.name != "posix", reason="signals are POSIX only")
def test_execute_reports_signal_termination() -> None:
    runner = ProcessRunner()
    code = f"import os; os.kill(os.getpid(), {int(signal.SIGKILL)})"

    assert runner.execute(_python(code)) is False


def test_execute_runs_in_working_directory(tmp_path: Path) -> None:
    runner = ProcessRunner(cwd=tmp_path)

    assert runner.execute(_python("open('made-here', 'w').close()")) is True
    assert (tmp_path / "made-here").exists()


def test_execute_discards_child_output(capfd: pytest.CaptureFixture[str]) -> None:
    runner = ProcessRunner(sink=DISCARD)

    runner.execute(_python("import sys; print('chatter'); print('noise', file=sys.stderr)"))

    captured = capfd.readouterr()
    assert "chatter" not in captured.out
    assert "noise" not in captured.err


def test_verbose_sink_routes_child_output_to_stderr(capfd: pytest.CaptureFixture[str]) -> None:
    runner = ProcessRunner(sink=VERBOSE)

    runner.execute(_python("print('chatter')"))

    captured = capfd.readouterr()
    assert "chatter" not in captured.out
    assert "chatter" in captured.err


def test_execute_passes_sink_and_cwd_to_runner(tmp_path: Path) -> None:
    calls: list[tuple[list[str], dict[str, object]]] = []

    def _fake_run(args: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        calls.append((args, kwargs))
        return subprocess.CompletedProcess(args, 0, "", "")

    sink = OutputSink(stdin=None)
    runner = ProcessRunner(cwd=tmp_path, sink=sink, run=_fake_run)

    assert runner.execute(["make", "out.bin"]) is True
    assert calls == [
        (
            ["make", "out.bin"],
            {
                "cwd": tmp_path,
                "stdin": None,
                "stdout": subprocess.DEVNULL,
                "stderr": subprocess.DEVNULL,
                "check": False,
            },
        )
    ]


def test_execute_treats_os_errors_as_failure() -> None:
    def _fake_run(args: list[str], **kwargs: object) -> subprocess.CompletedProcess[str]:
        raise PermissionError(args[0])

    assert ProcessRunner(run=_fake_run).execute(["make"]) is False


def test_execute_rejects_empty_argv() -> None:
    with pytest.raises(ValueError):
        ProcessRunner().execute([])
