from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .scanmetadata import EntryMetadata

# Parent ID of everything directly under the scan root. Never persisted as a row.
ROOT_ID = 0

# uid/gid stored when the platform has no concept of file ownership.
UNKNOWN_OWNER = -1

ROOT_LABEL = "(scan root)"


@dataclasses.dataclass(frozen=True)
class Directory:
    """A directory row in the database."""

    id: int
    name: str
    full_path: str
    parent_id: int = ROOT_ID


@dataclasses.dataclass(frozen=True)
class File:
    """A file row in the database."""

    id: int
    name: str
    full_path: str
    parent_id: int
    size: int
    mode: int
    mtime: int
    uid: int = UNKNOWN_OWNER
    gid: int = UNKNOWN_OWNER

    @classmethod
    def from_metadata(cls, file_id: int, parent_id: int, meta: EntryMetadata) -> File:
        """Build a file row from extracted metadata."""
        return cls(
            id=file_id,
            name=meta.name,
            full_path=meta.full_path,
            parent_id=parent_id,
            size=meta.size,
            mode=meta.mode,
            mtime=meta.mtime,
            uid=meta.uid,
            gid=meta.gid,
        )


@dataclasses.dataclass(frozen=True)
class DirectoryUsage:
    """File count and total size of the files directly inside a directory."""

    full_path: str
    file_count: int
    size_bytes: int


@dataclasses.dataclass(frozen=True)
class OwnerUsage:
    """File count and total size grouped by a uid or gid."""

    owner_id: int
    file_count: int
    size_bytes: int


@dataclasses.dataclass(frozen=True)
class AgingUsage:
    """File count and total size of files modified within a time window."""

    newer: int
    older: int
    file_count: int
    size_bytes: int
