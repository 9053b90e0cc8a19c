"""Empirical dependency probing for a single build target.

A probe builds the target from a clean tree, pins the target and every
candidate to one baseline timestamp, then touches candidates one at a time
(each strictly newer than the last observed target mtime) and rebuilds. A
candidate is reported when its touch makes the target's mtime move forward.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol, Sequence

from scrutineer.clock import MtimeClock
from scrutineer.commands import ProbeActions
from scrutineer.exceptions import FatalProbeError
from scrutineer.file_probe import EPOCH, FileProbe

Warn = Callable[[str], None]


class CommandExecutor(Protocol):
    def execute(self, argv: Sequence[str]) -> bool:
        ...


class ProbeOutcome(str, Enum):
    PROBED = "probed"
    BROKEN_RECIPE = "broken_recipe"
    PHONY = "phony"
    UNANCHORED = "unanchored"


@dataclass
class Target:
    """A build artifact under test.

    ``phony`` stays ``None`` until a successful scratch build tells us whether
    the artifact exists, and is set at most once.
    """

    name: str
    phony: bool | None = None

    def classify(self, *, phony: bool) -> None:
        if self.phony is not None:
            raise ValueError(f"target {self.name!r} is already classified")
        self.phony = phony


@dataclass(frozen=True)
class TargetReport:
    target: str
    outcome: ProbeOutcome
    dependencies: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_phony(self) -> bool:
        return self.outcome is ProbeOutcome.PHONY

    @property
    def completed(self) -> bool:
        return self.outcome is ProbeOutcome.PROBED


def _ignore_warning(message: str) -> None:
    return


@dataclass(frozen=True)
class DependencyProber:
    runner: CommandExecutor
    files: FileProbe
    clock: MtimeClock
    actions: ProbeActions
    warn: Warn = _ignore_warning

    def build(self, target: str) -> bool:
        return self.runner.execute(self.actions.build_argv(target))

    def clean(self, *, report: TargetReport | None = None) -> None:
        if not self.runner.execute(self.actions.clean_argv()):
            raise FatalProbeError(
                "clean command failed: "
                + " ".join(self.actions.clean_argv()),
                report=report,
            )

    def probe(self, target: Target, candidates: Sequence[str]) -> TargetReport:
        """Probe ``target`` against ``candidates`` and leave the tree clean."""
        warnings: list[str] = []

        def _warn(message: str) -> None:
            warnings.append(message)
            self.warn(message)

        def _abandon(outcome: ProbeOutcome) -> TargetReport:
            return self._finish(
                TargetReport(
                    target=target.name,
                    outcome=outcome,
                    warnings=tuple(warnings),
                )
            )

        name = target.name
        if not self.build(name):
            _warn(f"{name}: broken recipe, build from scratch failed; cannot assess")
            return _abandon(ProbeOutcome.BROKEN_RECIPE)
        if not self.files.exists(name):
            target.classify(phony=True)
            _warn(f"{name}: build did not create it; treating as phony")
            return _abandon(ProbeOutcome.PHONY)
        target.classify(phony=False)

        base = self.clock.advance_past(EPOCH)
        for candidate in candidates:
            if not self.files.exists(candidate):
                _warn(
                    f"{candidate}: missing after building {name}; "
                    "does the recipe remove its own input?"
                )
                continue
            if not self.files.set_mtime(candidate, base):
                raise FatalProbeError(f"cannot set modification time of {candidate}")
        if not self.files.set_mtime(name, base):
            _warn(f"{name}: cannot set its modification time; cannot assess")
            return _abandon(ProbeOutcome.UNANCHORED)

        dependencies = self._perturb(name, candidates, base, _warn)
        return self._finish(
            TargetReport(
                target=name,
                outcome=ProbeOutcome.PROBED,
                dependencies=tuple(dependencies),
                warnings=tuple(warnings),
            )
        )

    def _perturb(
        self,
        name: str,
        candidates: Sequence[str],
        base: int,
        warn: Warn,
    ) -> list[str]:
        old = base
        detected: list[str] = []
        for candidate in candidates:
            now = self.clock.advance_past(old)
            if not self.files.set_mtime(candidate, now):
                warn(f"{candidate}: cannot touch it while probing {name}; skipped")
                continue
            if not self.build(name):
                raise FatalProbeError(f"{name}: build failed after touching {candidate}")
            if not self.files.exists(name):
                raise FatalProbeError(f"{name}: disappeared after touching {candidate}")
            observed = self.files.mtime(name)
            if observed < old:
                raise FatalProbeError(
                    f"{name}: modification time went backwards after touching "
                    f"{candidate} ({observed} < {old})"
                )
            if observed > old:
                detected.append(candidate)
                old = observed
        return detected

    def _finish(self, report: TargetReport) -> TargetReport:
        self.clean(report=report)
        return report


__all__ = [
    "CommandExecutor",
    "DependencyProber",
    "ProbeOutcome",
    "Target",
    "TargetReport",
]
