from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Callable, List, Optional
import json

import typer

from scrutineer.clock import FilesystemClock
from scrutineer.commands import ProbeActions
from scrutineer.config import probe_defaults, resolve_settings
from scrutineer.exceptions import ConfigurationError, FatalProbeError
from scrutineer.file_probe import LocalFileProbe, detect_mtime_resolution, scratch_stamp
from scrutineer.process import DISCARD, VERBOSE, ProcessRunner
from scrutineer.prober import DependencyProber, TargetReport
from scrutineer.schema import ProbeSettings
from scrutineer.session import (
    SessionReport,
    format_phony_line,
    format_report_line,
    run_session,
)

app = typer.Typer(add_completion=False)

_CONFIG_EXIT = 2
_FATAL_EXIT = 1

RunSession = Callable[..., SessionReport]
DetectResolution = Callable[[Path], int]


def _echo_warning(message: str) -> None:
    typer.secho(f"warning: {message}", err=True, fg=typer.colors.YELLOW)


def _echo_error(message: str) -> None:
    typer.secho(f"error: {message}", err=True, fg=typer.colors.RED)


def _echo_report(report: TargetReport) -> None:
    line = format_report_line(report)
    if line is not None:
        typer.echo(line)


def _split_csv_entries(entries: List[str] | None) -> list[str] | None:
    if entries is None:
        return None
    merged: list[str] = []
    for entry in entries:
        merged.extend([part.strip() for part in entry.split(",") if part.strip()])
    return merged


def _write_json(path: Path, payload: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")


def _context_run_session(ctx: typer.Context) -> RunSession:
    obj = ctx.obj
    if isinstance(obj, Mapping):
        candidate = obj.get("run_session")
        if callable(candidate):
            return candidate
    return run_session


def _context_detect_resolution(ctx: typer.Context) -> DetectResolution:
    obj = ctx.obj
    if isinstance(obj, Mapping):
        candidate = obj.get("detect_mtime_resolution")
        if callable(candidate):
            return candidate
    return detect_mtime_resolution


def build_prober(
    settings: ProbeSettings,
    *,
    root: Path,
    stamp_fn: Callable[[], int],
    warn: Callable[[str], None] = _echo_warning,
) -> DependencyProber:
    return DependencyProber(
        runner=ProcessRunner(cwd=root, sink=VERBOSE if settings.verbose else DISCARD),
        files=LocalFileProbe(root=root),
        clock=FilesystemClock(stamp_fn=stamp_fn, poll_interval=settings.poll_interval),
        actions=ProbeActions.from_strings(settings.build, settings.clean),
        warn=warn,
    )


def _echo_phony(session: SessionReport | None, *, report_phony: bool) -> None:
    if not report_phony or session is None:
        return
    phony_line = format_phony_line(session.phony_targets)
    if phony_line is not None:
        typer.echo(phony_line)


def _run_probe(
    settings: ProbeSettings,
    *,
    summary_json: Path | None,
    run_session_fn: RunSession = run_session,
    detect_resolution_fn: DetectResolution = detect_mtime_resolution,
) -> int:
    root = Path(settings.directory)
    try:
        if not root.is_dir():
            raise ConfigurationError(f"working directory does not exist: {root}")
        resolution_ns = detect_resolution_fn(root)
        with scratch_stamp(root) as stamp_fn:
            prober = build_prober(settings, root=root, stamp_fn=stamp_fn)
            session = run_session_fn(
                prober,
                settings.targets,
                settings.dependencies,
                on_report=_echo_report,
            )
    except ConfigurationError as exc:
        _echo_error(str(exc))
        return _CONFIG_EXIT
    except FatalProbeError as exc:
        _echo_phony(exc.session, report_phony=settings.report_phony)
        _echo_error(str(exc))
        return _FATAL_EXIT

    _echo_phony(session, report_phony=settings.report_phony)
    if summary_json is not None:
        summary = session.to_summary(mtime_resolution_ns=resolution_ns)
        _write_json(summary_json, summary.model_dump())
    return 0


@app.command("probe")
def probe(
    ctx: typer.Context,
    targets: Optional[List[str]] = typer.Argument(
        None, help="Targets to probe, in order."
    ),
    dependency: Optional[List[str]] = typer.Option(
        None,
        "--dependency",
        "-d",
        help="Candidate dependency file. Repeat or pass a comma-separated list.",
    ),
    build: Optional[str] = typer.Option(
        None, "--build", "-b", help="Build command; the target name is appended."
    ),
    clean: Optional[str] = typer.Option(None, "--clean", "-c", help="Clean command."),
    directory: Optional[Path] = typer.Option(
        None, "--directory", "-C", help="Run every command from this directory."
    ),
    report_phony: Optional[bool] = typer.Option(
        None, "--phony/--no-phony", help="Print a .PHONY line for phony targets."
    ),
    verbose: Optional[bool] = typer.Option(
        None, "--verbose/--quiet", help="Show build and clean output on stderr."
    ),
    poll_interval: Optional[float] = typer.Option(
        None, "--poll-interval", help="Seconds to sleep while waiting for the clock."
    ),
    config: Optional[Path] = typer.Option(None, "--config"),
    summary_json: Optional[Path] = typer.Option(
        None, "--summary-json", help="Write a JSON summary of the session here."
    ),
) -> None:
    """Discover which candidate files actually trigger a rebuild of each target."""
    root = directory if directory is not None else Path(".")
    payload = {
        "targets": list(targets) if targets else None,
        "dependencies": _split_csv_entries(dependency),
        "build": build,
        "clean": clean,
        "directory": directory,
        "report_phony": report_phony,
        "verbose": verbose,
        "poll_interval": poll_interval,
    }
    try:
        settings = resolve_settings(payload, probe_defaults(root=root, config_path=config))
    except ConfigurationError as exc:
        _echo_error(str(exc))
        raise typer.Exit(code=_CONFIG_EXIT)
    exit_code = _run_probe(
        settings,
        summary_json=summary_json,
        run_session_fn=_context_run_session(ctx),
        detect_resolution_fn=_context_detect_resolution(ctx),
    )
    raise typer.Exit(code=exit_code)


@app.command("mtime-resolution")
def mtime_resolution(
    ctx: typer.Context,
    directory: Path = typer.Option(Path("."), "--directory", "-C"),
) -> None:
    """Print the modification-time granularity (in ns) of a directory's filesystem."""
    if not directory.is_dir():
        _echo_error(f"working directory does not exist: {directory}")
        raise typer.Exit(code=_CONFIG_EXIT)
    typer.echo(str(_context_detect_resolution(ctx)(directory)))


def main() -> None:
    app()
