from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence
import subprocess

RunCommand = Callable[..., subprocess.CompletedProcess]


@dataclass(frozen=True)
class OutputSink:
    """Where a child's standard streams are routed.

    Values are anything ``subprocess.run`` accepts for the matching stream.
    """

    stdin: int | None = subprocess.DEVNULL
    stdout: int | None = subprocess.DEVNULL
    stderr: int | None = subprocess.DEVNULL


_STDERR_FD = 2

DISCARD = OutputSink()
# Child chatter goes to our stderr so stdout stays a clean report.
VERBOSE = OutputSink(stdout=_STDERR_FD, stderr=_STDERR_FD)


@dataclass(frozen=True)
class ProcessRunner:
    """Runs one external command at a time and reports pass/fail."""

    cwd: Path | None = None
    sink: OutputSink = DISCARD
    run: RunCommand = subprocess.run

    def execute(self, argv: Sequence[str]) -> bool:
        args = [str(arg) for arg in argv]
        if not args:
            raise ValueError("cannot execute an empty command")
        try:
            result = self.run(
                args,
                cwd=self.cwd,
                stdin=self.sink.stdin,
                stdout=self.sink.stdout,
                stderr=self.sink.stderr,
                check=False,
            )
        except OSError:
            return False
        # Signal terminations surface as negative return codes.
        return result.returncode == 0


__all__ = [
    "DISCARD",
    "OutputSink",
    "ProcessRunner",
    "RunCommand",
    "VERBOSE",
]
