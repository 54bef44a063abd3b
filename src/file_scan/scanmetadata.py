from __future__ import annotations

import dataclasses
import logging
import os
from typing import TYPE_CHECKING

from .scanerrors import MetadataError
from .scanmodel import UNKNOWN_OWNER

if TYPE_CHECKING:
    from typing import Protocol

    class _Entry(Protocol):
        @property
        def name(self) -> str:
            ...

        @property
        def path(self) -> str:
            ...

        def stat(self, *, follow_symlinks: bool = True) -> os.stat_result:
            ...


@dataclasses.dataclass(frozen=True)
class EntryMetadata:
    """Normalized metadata of a single filesystem entry."""

    name: str
    full_path: str
    size: int
    mode: int
    mtime: int
    uid: int
    gid: int


class MetadataExtractor:
    """Read size, mode, ownership and mtime of filesystem entries."""

    logger = logging.getLogger(__name__)

    def __init__(self, *, has_ownership: bool | None = None) -> None:
        """
        Initialize the extractor.

        Keyword Args:
            has_ownership: Whether the platform reports POSIX uid/gid. When
                None this is detected from the running platform. Without
                ownership both uid and gid are stored as UNKNOWN_OWNER.
        """
        if has_ownership is None:
            has_ownership = os.name == "posix"

        self._has_ownership = has_ownership

        if not has_ownership:
            self.logger.debug("File ownership not available, using %d", UNKNOWN_OWNER)

    def extract(self, entry: _Entry) -> EntryMetadata:
        """
        Extract the metadata of the given entry without following symlinks.

        Raises:
            MetadataError: The entry could not be stat'ed.
        """
        try:
            stat = entry.stat(follow_symlinks=False)

        except OSError as err:
            raise MetadataError(entry.path, err) from err

        uid, gid = UNKNOWN_OWNER, UNKNOWN_OWNER
        if self._has_ownership:
            uid = getattr(stat, "st_uid", UNKNOWN_OWNER)
            gid = getattr(stat, "st_gid", UNKNOWN_OWNER)

        return EntryMetadata(
            name=entry.name,
            full_path=entry.path,
            size=stat.st_size,
            mode=stat.st_mode,
            mtime=stat.st_mtime_ns // 1_000_000_000,
            uid=uid,
            gid=gid,
        )
