from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Protocol
import time

ONE_SECOND_NS = 1_000_000_000
DEFAULT_POLL_INTERVAL = 0.05


class MtimeClock(Protocol):
    def advance_past(self, reference: int) -> int:
        """Return a timestamp strictly greater than ``reference``."""


@dataclass(frozen=True)
class FilesystemClock:
    """Clock read back from the filesystem's own modification stamps.

    ``stamp_fn`` returns the mtime the kernel gives a file touched right now,
    in integer nanoseconds (``st_mtime_ns``). Build outputs are stamped from
    the same source, so a file written after a reading is never older than
    it, whatever tick the kernel uses for file times.
    """

    stamp_fn: Callable[[], int]
    poll_interval: float = DEFAULT_POLL_INTERVAL
    sleep_fn: Callable[[float], None] = field(default=time.sleep, compare=False)

    def __post_init__(self) -> None:
        if float(self.poll_interval) < 0:
            raise ValueError(f"invalid poll interval: {self.poll_interval}")

    def now(self) -> int:
        return int(self.stamp_fn())

    def advance_past(self, reference: int) -> int:
        current = self.now()
        while current <= reference:
            self.sleep_fn(self.poll_interval)
            current = self.now()
        return current


__all__ = [
    "DEFAULT_POLL_INTERVAL",
    "FilesystemClock",
    "MtimeClock",
    "ONE_SECOND_NS",
]
