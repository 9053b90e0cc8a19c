from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Sequence

from scrutineer.exceptions import ConfigurationError, FatalProbeError
from scrutineer.prober import DependencyProber, Target, TargetReport
from scrutineer.schema import SessionSummaryDTO, TargetReportDTO

OnReport = Callable[[TargetReport], None]

PHONY_LABEL = ".PHONY"


def _ignore_report(report: TargetReport) -> None:
    return


@dataclass
class SessionReport:
    targets: list[Target] = field(default_factory=list)
    reports: list[TargetReport] = field(default_factory=list)

    @property
    def phony_targets(self) -> list[str]:
        return [target.name for target in self.targets if target.phony]

    def to_summary(self, *, mtime_resolution_ns: int) -> SessionSummaryDTO:
        return SessionSummaryDTO(
            targets=[
                TargetReportDTO(
                    target=report.target,
                    outcome=report.outcome.value,
                    dependencies=list(report.dependencies),
                    warnings=list(report.warnings),
                )
                for report in self.reports
            ],
            phony_targets=self.phony_targets,
            mtime_resolution_ns=mtime_resolution_ns,
        )


def _unique(items: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(items))


def run_session(
    prober: DependencyProber,
    targets: Sequence[str],
    candidates: Sequence[str],
    *,
    on_report: OnReport = _ignore_report,
) -> SessionReport:
    """Probe every target in order, starting from a freshly cleaned tree.

    ``on_report`` sees each finished target as soon as it is known, so lines
    for earlier targets survive a later fatal error.
    """
    if not targets:
        raise ConfigurationError("no targets given")
    if not candidates:
        raise ConfigurationError("no candidate dependencies given")
    ordered_candidates = _unique(candidates)

    prober.clean()
    for candidate in ordered_candidates:
        if not prober.files.exists(candidate):
            raise FatalProbeError(
                f"{candidate}: missing after clean; it looks like a build "
                "artifact rather than a source"
            )

    session = SessionReport()
    for name in _unique(targets):
        target = Target(name=name)
        session.targets.append(target)
        try:
            report = prober.probe(target, ordered_candidates)
        except FatalProbeError as exc:
            if exc.report is not None:
                session.reports.append(exc.report)
                on_report(exc.report)
            exc.session = session
            raise
        session.reports.append(report)
        on_report(report)
    return session


def format_report_line(report: TargetReport) -> str | None:
    if not report.completed:
        return None
    return " ".join([f"{report.target}:", *report.dependencies])


def format_phony_line(phony_targets: Sequence[str]) -> str | None:
    if not phony_targets:
        return None
    return " ".join([f"{PHONY_LABEL}:", *phony_targets])


def format_report_lines(session: SessionReport, *, report_phony: bool) -> list[str]:
    lines = [
        line
        for line in (format_report_line(report) for report in session.reports)
        if line is not None
    ]
    if report_phony:
        phony_line = format_phony_line(session.phony_targets)
        if phony_line is not None:
            lines.append(phony_line)
    return lines


__all__ = [
    "PHONY_LABEL",
    "SessionReport",
    "format_phony_line",
    "format_report_line",
    "format_report_lines",
    "run_session",
]
