"""Command-string plumbing for build and clean actions."""

from __future__ import annotations

from dataclasses import dataclass
import shlex

from scrutineer.exceptions import ConfigurationError

DEFAULT_BUILD_COMMAND = "make"
DEFAULT_CLEAN_COMMAND = "make clean"


def split_command(text: str) -> list[str]:
    """Split a command string into argv, honoring single and double quotes."""
    try:
        argv = shlex.split(text)
    except ValueError as exc:
        raise ConfigurationError(f"cannot parse command {text!r}: {exc}") from exc
    if not argv:
        raise ConfigurationError("command must not be empty")
    return argv


@dataclass(frozen=True)
class ProbeActions:
    build_command: tuple[str, ...]
    clean_command: tuple[str, ...]

    @classmethod
    def from_strings(
        cls,
        build: str = DEFAULT_BUILD_COMMAND,
        clean: str = DEFAULT_CLEAN_COMMAND,
    ) -> "ProbeActions":
        return cls(
            build_command=tuple(split_command(build)),
            clean_command=tuple(split_command(clean)),
        )

    def build_argv(self, target: str) -> list[str]:
        return [*self.build_command, target]

    def clean_argv(self) -> list[str]:
        return list(self.clean_command)


__all__ = [
    "DEFAULT_BUILD_COMMAND",
    "DEFAULT_CLEAN_COMMAND",
    "ProbeActions",
    "split_command",
]
