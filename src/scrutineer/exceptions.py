"""Error hierarchy for dependency probing."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scrutineer.prober import TargetReport
    from scrutineer.session import SessionReport


class ScrutineerError(RuntimeError):
    """Base class for errors raised by scrutineer."""


class FatalProbeError(ScrutineerError):
    """The probing protocol's assumptions no longer hold; the run must stop.

    ``report`` is set when a target finished probing before the failure (for
    example when the clean step after it fails) so its line can still be
    flushed to the operator. ``session`` holds the targets finished before
    the failure when it happens inside a session.
    """

    def __init__(
        self,
        message: str,
        *,
        report: TargetReport | None = None,
        session: SessionReport | None = None,
    ):
        super().__init__(message)
        self.report = report
        self.session = session


class ConfigurationError(FatalProbeError):
    """Raised for missing or malformed run configuration."""
