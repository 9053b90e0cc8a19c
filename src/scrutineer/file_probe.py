from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Protocol
import os
import tempfile

from scrutineer.clock import ONE_SECOND_NS
from scrutineer.exceptions import FatalProbeError

EPOCH = 0

# Finest first. FAT keeps two seconds.
_CANDIDATE_RESOLUTIONS_NS = (
    1,
    100,
    1_000,
    1_000_000,
    10_000_000,
    100_000_000,
    ONE_SECOND_NS,
    2 * ONE_SECOND_NS,
)
_PROBE_FRACTION_NS = 123_456_789


class FileProbe(Protocol):
    def exists(self, path: str) -> bool:
        ...

    def mtime(self, path: str) -> int:
        """Return the mtime in nanoseconds, or ``EPOCH`` when unavailable."""

    def set_mtime(self, path: str, timestamp: int) -> bool:
        ...


@dataclass(frozen=True)
class LocalFileProbe:
    """File probe over the real filesystem, relative to ``root``."""

    root: Path | None = None

    def _resolve(self, path: str) -> Path:
        candidate = Path(path)
        if self.root is None or candidate.is_absolute():
            return candidate
        return self.root / candidate

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def mtime(self, path: str) -> int:
        try:
            return self._resolve(path).stat().st_mtime_ns
        except OSError:
            return EPOCH

    def set_mtime(self, path: str, timestamp: int) -> bool:
        resolved = self._resolve(path)
        try:
            os.utime(resolved, ns=(int(timestamp), int(timestamp)))
        except OSError:
            return False
        return True


def detect_mtime_resolution(directory: Path, *, fallback: int = ONE_SECOND_NS) -> int:
    """Return the coarsest mtime granularity the filesystem under ``directory`` keeps.

    A scratch file is stamped with a timestamp carrying a sub-second fraction
    and read back; the stored value reveals how much precision was dropped.
    """
    stamp = 1_000_000_000 * ONE_SECOND_NS + _PROBE_FRACTION_NS
    try:
        with tempfile.NamedTemporaryFile(dir=directory, prefix=".scrutineer-") as handle:
            os.utime(handle.name, ns=(stamp, stamp))
            stored = os.stat(handle.name).st_mtime_ns
    except OSError:
        return fallback
    return resolution_from_stored_stamp(stamp, stored, fallback=fallback)


def resolution_from_stored_stamp(stamp: int, stored: int, *, fallback: int = ONE_SECOND_NS) -> int:
    if stored == stamp:
        return _CANDIDATE_RESOLUTIONS_NS[0]
    for resolution in _CANDIDATE_RESOLUTIONS_NS[1:]:
        truncated = (stamp // resolution) * resolution
        # Some filesystems round instead of truncating.
        rounded = truncated + resolution if stamp - truncated >= resolution // 2 else truncated
        if stored in (truncated, rounded):
            return resolution
    return fallback


@contextmanager
def scratch_stamp(directory: Path) -> Iterator[Callable[[], int]]:
    """Yield a function returning the mtime the kernel gives a file touched now.

    The scratch file lives in ``directory`` so its stamps come from the same
    filesystem as the build outputs. It is recreated if a clean removes it
    and deleted on exit.
    """
    try:
        handle, name = tempfile.mkstemp(dir=directory, prefix=".scrutineer-clock-")
    except OSError as exc:
        raise FatalProbeError(f"cannot create a clock file in {directory}: {exc}") from exc
    os.close(handle)
    path = Path(name)

    def _stamp() -> int:
        try:
            path.touch()
            return path.stat().st_mtime_ns
        except OSError as exc:
            raise FatalProbeError(f"cannot read the filesystem clock at {path}: {exc}") from exc

    try:
        yield _stamp
    finally:
        path.unlink(missing_ok=True)


__all__ = [
    "EPOCH",
    "FileProbe",
    "LocalFileProbe",
    "detect_mtime_resolution",
    "resolution_from_stored_stamp",
    "scratch_stamp",
]
