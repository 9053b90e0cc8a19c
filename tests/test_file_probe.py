from __future__ import annotations

from pathlib import Path
import os

import pytest

from scrutineer.clock import ONE_SECOND_NS
from scrutineer.exceptions import FatalProbeError
from scrutineer.file_probe import (
    EPOCH,
    LocalFileProbe,
    detect_mtime_resolution,
    resolution_from_stored_stamp,
    scratch_stamp,
)

_STAMP = 1_700_000_000 * ONE_SECOND_NS + 123_456_789


def test_local_probe_reads_and_sets_mtime(tmp_path: Path) -> None:
    source = tmp_path / "a.c"
    source.write_text("int main;\n", encoding="utf-8")
    probe = LocalFileProbe()

    assert probe.exists(str(source))
    assert probe.set_mtime(str(source), 1_600_000_000 * ONE_SECOND_NS) is True
    assert probe.mtime(str(source)) == 1_600_000_000 * ONE_SECOND_NS
    assert os.stat(source).st_mtime_ns == 1_600_000_000 * ONE_SECOND_NS


def test_local_probe_resolves_relative_paths_against_root(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "b.c").write_text("", encoding="utf-8")
    probe = LocalFileProbe(root=tmp_path)

    assert probe.exists("src/b.c")
    assert not probe.exists("b.c")
    assert probe.set_mtime("src/b.c", 2 * ONE_SECOND_NS)
    assert probe.mtime("src/b.c") == 2 * ONE_SECOND_NS


def test_missing_path_reads_as_epoch_and_cannot_be_touched(tmp_path: Path) -> None:
    probe = LocalFileProbe(root=tmp_path)

    assert probe.exists("gone.o") is False
    assert probe.mtime("gone.o") == EPOCH
    assert probe.set_mtime("gone.o", ONE_SECOND_NS) is False
    assert not (tmp_path / "gone.o").exists()


def test_resolution_from_exact_stamp_is_nanoseconds() -> None:
    assert resolution_from_stored_stamp(_STAMP, _STAMP) == 1


def test_resolution_from_truncated_stamps() -> None:
    whole_seconds = (_STAMP // ONE_SECOND_NS) * ONE_SECOND_NS

    assert resolution_from_stored_stamp(_STAMP, _STAMP - 89) == 100
    assert resolution_from_stored_stamp(_STAMP, _STAMP - 789) == 1_000
    assert resolution_from_stored_stamp(_STAMP, whole_seconds + 120_000_000) == 10_000_000
    assert resolution_from_stored_stamp(_STAMP, whole_seconds) == ONE_SECOND_NS


def test_resolution_from_two_second_filesystem() -> None:
    stamp = 1_700_000_001 * ONE_SECOND_NS + 123_456_789
    stored = 1_700_000_000 * ONE_SECOND_NS

    assert resolution_from_stored_stamp(stamp, stored) == 2 * ONE_SECOND_NS


def test_resolution_falls_back_when_stamp_is_unrecognised() -> None:
    assert resolution_from_stored_stamp(_STAMP, 42, fallback=7) == 7


def test_detect_mtime_resolution_on_real_directory(tmp_path: Path) -> None:
    resolution = detect_mtime_resolution(tmp_path)

    assert resolution in {
        1,
        100,
        1_000,
        1_000_000,
        10_000_000,
        100_000_000,
        ONE_SECOND_NS,
        2 * ONE_SECOND_NS,
    }
    assert list(tmp_path.iterdir()) == []


def test_detect_mtime_resolution_falls_back_for_missing_directory(tmp_path: Path) -> None:
    assert detect_mtime_resolution(tmp_path / "missing", fallback=5) == 5


def test_scratch_stamp_reads_kernel_time_and_cleans_up(tmp_path: Path) -> None:
    with scratch_stamp(tmp_path) as stamp_fn:
        first = stamp_fn()
        second = stamp_fn()
        scratch = list(tmp_path.iterdir())

    assert first > EPOCH
    assert second >= first
    assert len(scratch) == 1
    assert scratch[0].name.startswith(".scrutineer-clock-")
    assert list(tmp_path.iterdir()) == []


def test_scratch_stamp_survives_a_clean_removing_its_file(tmp_path: Path) -> None:
    with scratch_stamp(tmp_path) as stamp_fn:
        first = stamp_fn()
        for path in tmp_path.iterdir():
            path.unlink()
        second = stamp_fn()

    assert second >= first
    assert list(tmp_path.iterdir()) == []


def test_scratch_stamp_in_missing_directory_is_fatal(tmp_path: Path) -> None:
    with pytest.raises(FatalProbeError, match="cannot create a clock file"):
        with scratch_stamp(tmp_path / "missing"):
            pass
