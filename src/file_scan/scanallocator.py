from __future__ import annotations

import threading


class IdAllocator:
    """
    Hand out unique, increasing IDs for directories and files.

    Directory and file IDs are separate namespaces, both starting at 1. The
    counters live as long as the allocator and are never reset. Reads are
    safe from another thread, which the progress reporter relies on.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._dir_id = 0
        self._file_id = 0

    def next_dir_id(self) -> int:
        """Return the next directory ID."""
        with self._lock:
            self._dir_id += 1
            return self._dir_id

    def next_file_id(self) -> int:
        """Return the next file ID."""
        with self._lock:
            self._file_id += 1
            return self._file_id

    @property
    def dir_count(self) -> int:
        """Number of directory IDs handed out so far."""
        with self._lock:
            return self._dir_id

    @property
    def file_count(self) -> int:
        """Number of file IDs handed out so far."""
        with self._lock:
            return self._file_id

    def snapshot(self) -> tuple[int, int]:
        """Return (directories, files) allocated so far, read together."""
        with self._lock:
            return self._dir_id, self._file_id
