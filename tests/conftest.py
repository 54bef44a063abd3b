from __future__ import annotations

import os
from pathlib import Path

import pytest

# Fixed modification time of every file in the sample tree
SAMPLE_MTIME = 1_600_000_000


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """
    Build the tree used by most scan tests.

        root/
            a/
                x.txt   (10 bytes)
            b.txt       (5 bytes)
    """
    root = tmp_path / "root"
    (root / "a").mkdir(parents=True)
    (root / "a" / "x.txt").write_bytes(b"0123456789")
    (root / "b.txt").write_bytes(b"01234")

    for filepath in (root / "a" / "x.txt", root / "b.txt"):
        os.utime(filepath, (SAMPLE_MTIME, SAMPLE_MTIME))

    return root


@pytest.fixture
def deep_tree(tmp_path: Path) -> Path:
    """Build a wider tree: 3 top directories with 2 subdirectories and 2 files each."""
    root = tmp_path / "deep"
    for top in ("d1", "d2", "d3"):
        for sub in ("s1", "s2"):
            directory = root / top / sub
            directory.mkdir(parents=True)
            (directory / "f1.txt").write_text("one")
            (directory / "f2.txt").write_text("two")

    (root / "top.txt").write_text("top")

    return root
