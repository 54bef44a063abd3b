from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .scanstore import ScanStore

SECONDS_PER_DAY = 86400


class ScanReport:
    """Print usage reports from a scanned database."""

    logger = logging.getLogger(__name__)

    def __init__(self, store: ScanStore, *, limit: int = 10, aging_days: int = 10) -> None:
        """
        Initialize a new ScanReport.

        Args:
            store: The database to report on. Only read from.

        Keyword Args:
            limit: The number of rows shown per report. Defaults to 10.
            aging_days: The aging report covers files modified within the last
                number of days. Defaults to 10.
        """
        self._store = store
        self._limit = limit
        self._aging_days = aging_days

    def run(self, now: int | None = None) -> None:
        """Print all reports to stdout."""
        self.logger.debug("Running reports")
        print(self.file_count_report())
        print(self.file_size_report())
        print(self.uid_report())
        print(self.gid_report())
        print(self.aging_report(now))

    def file_count_report(self) -> str:
        """Directories with the most files, with their total size."""
        rows = self._store.get_file_count_by_directory(self._limit)
        return self._render(
            "File Count Report",
            ["Dirname", "Count of Files", "Sum of File Sizes"],
            [[row.full_path, row.file_count, row.size_bytes] for row in rows],
        )

    def file_size_report(self) -> str:
        """Directories with the most bytes, with their file count."""
        rows = self._store.get_file_size_by_directory(self._limit)
        return self._render(
            "File Size Report",
            ["Dirname", "Count of Files", "Sum of File Sizes"],
            [[row.full_path, row.file_count, row.size_bytes] for row in rows],
        )

    def uid_report(self) -> str:
        rows = self._store.get_usage_by_uid(self._limit)
        return self._render(
            "File Owner Report",
            ["UID", "Count of Files", "Sum of File Sizes"],
            [[row.owner_id, row.file_count, row.size_bytes] for row in rows],
        )

    def gid_report(self) -> str:
        rows = self._store.get_usage_by_gid(self._limit)
        return self._render(
            "File Group Report",
            ["GID", "Count of Files", "Sum of File Sizes"],
            [[row.owner_id, row.file_count, row.size_bytes] for row in rows],
        )

    def aging_report(self, now: int | None = None) -> str:
        """
        Count and size of files modified within the aging window.

        Args:
            now: The end of the window as epoch seconds. Defaults to the
                current time.
        """
        newer = int(time.time()) if now is None else now
        older = newer - self._aging_days * SECONDS_PER_DAY
        usage = self._store.get_aging_usage(newer, older)
        return self._render(
            f"File Aging Report ({newer} - {older})",
            ["Count of Files", "Sum of File Sizes"],
            [[usage.file_count, usage.size_bytes]],
        )

    @staticmethod
    def _render(title: str, headers: list[str], rows: list[list[object]]) -> str:
        """Render a title and a left aligned table separated by two spaces."""
        table = [headers, ["----"] * len(headers)]
        table.extend([str(value) for value in row] for row in rows)
        widths = [max(len(row[col]) for row in table) for col in range(len(headers))]

        lines = ["", title, ""]
        for row in table:
            cells = [value.ljust(width) for value, width in zip(row, widths)]
            lines.append(" " + "  ".join(cells).rstrip())

        return "\n".join(lines)
