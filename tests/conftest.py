from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from tests.probe_helpers import FakeTree


@pytest.fixture
def make_tree():
    def _make(
        sources: list[str] | None = None,
        rules: dict[str, list[str]] | None = None,
        **kwargs: object,
    ) -> FakeTree:
        names = sources if sources is not None else ["a.c", "b.c", "unused.h"]
        return FakeTree(
            sources={name: 1 for name in names},
            rules=dict(rules if rules is not None else {"out.bin": ["a.c", "b.c"]}),
            **kwargs,
        )

    return _make


@pytest.fixture
def write_script():
    def _write(path: Path, body: str) -> Path:
        path.write_text(body, encoding="utf-8")
        return path

    return _write
