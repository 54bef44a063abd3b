from __future__ import annotations

import logging
import os
import time
from typing import TYPE_CHECKING

from .scanallocator import IdAllocator
from .scanerrors import InputError
from .scanerrors import ScanError
from .scanmetadata import MetadataExtractor
from .scanprogress import ProgressReporter
from .scanreport import ScanReport
from .scanstore import ScanStore
from .scanwalker import TreeWalker

if TYPE_CHECKING:
    from .scanconfig import ScanConfig
    from .scanwalker import WalkResult


class Scanner:
    """Scan a directory tree into a database and report on it."""

    logger = logging.getLogger(__name__)

    def __init__(self, config: ScanConfig, *, must_exist: bool = False) -> None:
        """
        Initialize a new Scanner.

        Args:
            config: The configuration to use for this scanner.

        Keyword Args:
            must_exist: Refuse to create the database file. Defaults to False.

        Raises:
            InputError: A configuration value is missing or invalid.
            StoreInitError: The database could not be opened.

        NOTE: A Scanner owns its ID allocator. Create a new Scanner for each
            scan so that IDs start at 1 again.
        """
        if not config.database_path:
            raise InputError("Must supply a database name")

        # Every typed value is parsed before the database is opened
        try:
            self._progress_interval = config.progress_interval
            self._commit_partial_scan = config.commit_partial_scan
            self._report_limit = config.report_limit
            self._aging_days = config.aging_days

        except ValueError as err:
            raise InputError(f"Invalid configuration value: {err}") from err

        if self._progress_interval <= 0:
            raise InputError("Progress interval must be positive")

        if self._report_limit <= 0:
            raise InputError("Report limit must be positive")

        if self._aging_days < 0:
            raise InputError("Aging days must not be negative")

        self._config = config
        self._store = ScanStore.from_config(config, must_exist=must_exist)
        self._allocator = IdAllocator()
        self._extractor = MetadataExtractor()

    @property
    def allocator(self) -> IdAllocator:
        """The allocator handing out IDs for this scanner."""
        return self._allocator

    def close(self) -> None:
        """Close the underlying database."""
        self._store.close()

    def make_db(self) -> None:
        """Create the schema of a fresh database."""
        self._store.create_schema()
        self.logger.info("Created database %s", self._config.database_path)

    def report(self, now: int | None = None) -> None:
        """Print all usage reports."""
        ScanReport(
            self._store,
            limit=self._report_limit,
            aging_days=self._aging_days,
        ).run(now)

    def scan(self, path: str | None = None) -> WalkResult:
        """
        Scan the given path, or the configured root directory, in one transaction.

        On success the transaction is committed. On a ScanError it is rolled
        back, or committed when commit_partial_scan is set, and the error is
        raised again.

        Raises:
            InputError: The path is missing or not a directory, or the
                database has no schema.
            ScanError: The walk failed.
        """
        root = path or self._config.root_directory
        self._validate_root(root)

        self.logger.info("Scanning %s into %s", root, self._config.database_path)
        tic = time.perf_counter()
        walker = TreeWalker(self._store, self._allocator, self._extractor)

        self._store.begin()
        try:
            with ProgressReporter(self._allocator, interval=self._progress_interval):
                result = walker.walk(root)

        except ScanError as err:
            self.logger.error("Scan of %s failed: %s", root, err)
            self._end_failed_scan()
            raise

        except BaseException:
            self._store.rollback()
            raise

        self._store.commit()

        toc = time.perf_counter()
        dirs, files = self._allocator.snapshot()
        self.logger.info("Inserted %d files and %d dirs in %.3f seconds", files, dirs, toc - tic)

        return result

    def _validate_root(self, root: str) -> None:
        """Raise InputError unless a scan of root can begin."""
        if not root:
            raise InputError("Must supply root path name to traverse")

        if not os.path.isdir(root):
            raise InputError(f"Root path '{root}' is not a directory")

        if not self._store.has_schema():
            raise InputError(
                f"Database {self._config.database_path} has no schema, create it first"
            )

    def _end_failed_scan(self) -> None:
        """Roll back, or keep the partial tree when configured to."""
        if self._commit_partial_scan:
            self.logger.warning("Committing partial scan results")
            self._store.commit()

        else:
            self.logger.warning("Rolling back partial scan results")
            self._store.rollback()
