from __future__ import annotations

from file_scan.scanmetadata import EntryMetadata
from file_scan.scanmodel import Directory
from file_scan.scanmodel import File
from file_scan.scanmodel import ROOT_ID
from file_scan.scanmodel import UNKNOWN_OWNER


def test_directory_defaults_to_root_parent() -> None:
    directory = Directory(1, "a", "/scan/a")

    assert directory.parent_id == ROOT_ID == 0


def test_file_defaults_to_unknown_owner() -> None:
    file = File(1, "b.txt", "/scan/b.txt", ROOT_ID, 5, 0o100644, 1_600_000_000)

    assert file.uid == UNKNOWN_OWNER
    assert file.gid == UNKNOWN_OWNER


def test_file_from_metadata() -> None:
    meta = EntryMetadata(
        name="x.txt",
        full_path="/scan/a/x.txt",
        size=10,
        mode=0o100600,
        mtime=1_600_000_000,
        uid=1000,
        gid=100,
    )

    file = File.from_metadata(7, 3, meta)

    assert file == File(7, "x.txt", "/scan/a/x.txt", 3, 10, 0o100600, 1_600_000_000, 1000, 100)
