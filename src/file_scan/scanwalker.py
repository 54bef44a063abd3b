from __future__ import annotations

import dataclasses
import logging
import os
from typing import TYPE_CHECKING

from .scanerrors import UnreadableDirectoryError
from .scanmodel import Directory
from .scanmodel import File
from .scanmodel import ROOT_ID

if TYPE_CHECKING:
    from .scanallocator import IdAllocator
    from .scanmetadata import MetadataExtractor
    from .scanstore import RecordSink


@dataclasses.dataclass(frozen=True)
class WalkResult:
    """Counts of the records written by a single walk."""

    directories: int
    files: int


class TreeWalker:
    """Walk a directory tree, assigning IDs and writing every entry to a sink."""

    logger = logging.getLogger(__name__)

    def __init__(
        self,
        sink: RecordSink,
        allocator: IdAllocator,
        extractor: MetadataExtractor,
    ) -> None:
        """
        Initialize a new TreeWalker.

        Args:
            sink: Receives each directory and file record as it is found.
            allocator: Source of directory and file IDs.
            extractor: Reads the metadata of file entries.
        """
        self._sink = sink
        self._allocator = allocator
        self._extractor = extractor

    def walk(self, path: str, parent_id: int = ROOT_ID) -> WalkResult:
        """
        Record everything below the given path.

        All immediate children of a directory are written before any of its
        subdirectories are entered, so a directory row always precedes the
        rows that reference it. Symlinks are recorded as files and never
        followed.

        Args:
            path: The directory to walk. It is not recorded itself.
            parent_id: The ID its children are recorded under.

        Raises:
            UnreadableDirectoryError: A directory could not be listed.
            SinkWriteError: The sink failed to store a record.
            MetadataError: A file entry could not be stat'ed.
        """
        directories = 0
        files = 0
        pending: list[tuple[str, int]] = [(path, parent_id)]

        while pending:
            dirpath, dirid = pending.pop()
            self.logger.debug("Scanning directory: %s", dirpath)

            subdirectories: list[tuple[str, int]] = []
            for entry in self._list_directory(dirpath):
                if self._is_directory(entry):
                    new_id = self._allocator.next_dir_id()
                    self._sink.save_directory(
                        Directory(new_id, entry.name, entry.path, dirid)
                    )
                    subdirectories.append((entry.path, new_id))
                    directories += 1

                else:
                    new_id = self._allocator.next_file_id()
                    metadata = self._extractor.extract(entry)
                    self._sink.save_file(File.from_metadata(new_id, dirid, metadata))
                    files += 1

            # Reversed so subdirectories are popped in name order
            pending.extend(reversed(subdirectories))

        return WalkResult(directories, files)

    def _list_directory(self, path: str) -> list[os.DirEntry[str]]:
        """
        Return the entries of a directory sorted by name.

        Raises:
            UnreadableDirectoryError
        """
        try:
            with os.scandir(path) as entries:
                return sorted(entries, key=lambda entry: entry.name)

        except OSError as err:
            raise UnreadableDirectoryError(path, err) from err

    def _is_directory(self, entry: os.DirEntry[str]) -> bool:
        """True if the entry is a real directory, symlinks excluded."""
        try:
            return entry.is_dir(follow_symlinks=False)

        except OSError:
            # Vanished after listing, extract() raises for it
            return False
