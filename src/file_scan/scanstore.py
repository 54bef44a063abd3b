from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import TYPE_CHECKING

from .scanerrors import SinkWriteError
from .scanerrors import StoreInitError
from .scanmodel import AgingUsage
from .scanmodel import DirectoryUsage
from .scanmodel import OwnerUsage
from .scanmodel import ROOT_ID
from .scanmodel import ROOT_LABEL

if TYPE_CHECKING:
    from types import TracebackType
    from typing import Protocol

    from .scanmodel import Directory
    from .scanmodel import File

    class _ScanConfig(Protocol):
        @property
        def database_path(self) -> str:
            ...

    class RecordSink(Protocol):
        def save_directory(self, directory: Directory) -> None:
            ...

        def save_file(self, file: File) -> None:
            ...


# A row may only reference the root sentinel or a directory already stored.
SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS dirs (
        dirid INTEGER PRIMARY KEY,
        dirname TEXT,
        fulldirname TEXT,
        parentdirid INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS files (
        fileid INTEGER PRIMARY KEY,
        filename TEXT,
        fullfilename TEXT,
        parentdirid INTEGER NOT NULL,
        filesize INTEGER,
        filemode INTEGER,
        filemtime INTEGER,
        fileuid INTEGER,
        filegid INTEGER
    )
    """,
    f"""
    CREATE TRIGGER IF NOT EXISTS dirs_parent_exists
    BEFORE INSERT ON dirs
    WHEN NEW.parentdirid != {ROOT_ID}
        AND NOT EXISTS (SELECT 1 FROM dirs WHERE dirid = NEW.parentdirid)
    BEGIN
        SELECT RAISE(ABORT, 'parent directory does not exist');
    END
    """,
    f"""
    CREATE TRIGGER IF NOT EXISTS files_parent_exists
    BEFORE INSERT ON files
    WHEN NEW.parentdirid != {ROOT_ID}
        AND NOT EXISTS (SELECT 1 FROM dirs WHERE dirid = NEW.parentdirid)
    BEGIN
        SELECT RAISE(ABORT, 'parent directory does not exist');
    END
    """,
    "CREATE INDEX IF NOT EXISTS dirs_parentdirid ON dirs (parentdirid)",
    "CREATE INDEX IF NOT EXISTS files_parentdirid ON files (parentdirid)",
]


def _db_text(value: str) -> str:
    """
    Return a filesystem name as valid UTF-8 text.

    Bytes that are not UTF-8, surrogate escaped by os.scandir, are kept as
    backslash escapes so that no name is lost or rejected.
    """
    return os.fsencode(value).decode("utf-8", "backslashreplace")


class ScanStore:
    """Database of the directories and files found by a scan."""

    logger = logging.getLogger(__name__)

    def __init__(self, database_path: str = ":memory:", *, must_exist: bool = False) -> None:
        """
        Initialize a new ScanStore connected to the given path.

        The connection runs in autocommit mode. A scan opens its own
        transaction with begin() and closes it with commit() or rollback().
        It is recommended to use the `with` statement to ensure the
        connection is closed. For example:

            with ScanStore("scan.db") as store:
                ...

        Args:
            database_path: The path to the database file. Defaults to an
                in-memory database.

        Keyword Args:
            must_exist: Open an existing database read-write only, never
                creating the file. Defaults to False.

        Raises:
            StoreInitError: The database could not be opened.
        """
        self.logger.debug("Initializing ScanStore at %s", database_path)
        self._database_path = database_path
        try:
            self._connection = self._connect(database_path, must_exist)

        except sqlite3.Error as err:
            raise StoreInitError(f"Unable to open database {database_path}: {err}") from err

    @staticmethod
    def _connect(database_path: str, must_exist: bool) -> sqlite3.Connection:
        """Connect in autocommit mode, through a read-write URI when must_exist."""
        if not must_exist or database_path == ":memory:":
            return sqlite3.connect(database_path, isolation_level=None)

        uri = Path(database_path).absolute().as_uri() + "?mode=rw"
        return sqlite3.connect(uri, isolation_level=None, uri=True)

    @classmethod
    def from_config(cls, config: _ScanConfig, *, must_exist: bool = False) -> ScanStore:
        """Build a ScanStore from the given configuration."""
        return cls(config.database_path, must_exist=must_exist)

    def __enter__(self) -> ScanStore:
        """Enter a context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Exit a context manager, rolling back anything left uncommitted."""
        self.close()

    def close(self) -> None:
        """Close the connection. An open transaction is rolled back."""
        if self._connection.in_transaction:
            self.logger.warning("Closing with an open transaction, rolling back")
            self._connection.rollback()
        self._connection.close()

    def create_schema(self) -> None:
        """
        Create the dirs and files tables in a single transaction.

        Raises:
            StoreInitError: Any statement failed. Nothing is left behind.
        """
        self.logger.info("Creating schema in %s", self._database_path)
        try:
            self._connection.execute("BEGIN")
            for statement in SCHEMA:
                self.logger.debug("Executing: %s", " ".join(statement.split()))
                self._connection.execute(statement)
            self._connection.execute("COMMIT")

        except sqlite3.Error as err:
            if self._connection.in_transaction:
                self._connection.execute("ROLLBACK")
            raise StoreInitError(
                f"Failed to create schema in {self._database_path}: {err}"
            ) from err

        self.logger.debug("Created dirs and files tables")

    def has_schema(self) -> bool:
        """True if both the dirs and files tables exist."""
        with closing(self._connection.cursor()) as cursor:
            cursor.execute(
                """
                SELECT COUNT(*) FROM sqlite_master
                WHERE type = 'table' AND name IN ('dirs', 'files')
                """
            )
            return cursor.fetchone()[0] == 2

    @property
    def in_transaction(self) -> bool:
        """True while a transaction is open."""
        return self._connection.in_transaction

    def begin(self) -> None:
        """Open the transaction that a scan writes into."""
        self._connection.execute("BEGIN")
        self.logger.debug("Transaction started")

    def commit(self) -> None:
        """Commit the open transaction."""
        self._connection.execute("COMMIT")
        self.logger.debug("Transaction committed")

    def rollback(self) -> None:
        """Roll back the open transaction."""
        self._connection.execute("ROLLBACK")
        self.logger.debug("Transaction rolled back")

    def save_directory(self, directory: Directory) -> None:
        """
        Insert or replace a directory row.

        Raises:
            SinkWriteError: The write was rejected or failed.
        """
        try:
            self._connection.execute(
                """
                INSERT OR REPLACE INTO dirs
                ( dirid, dirname, fulldirname, parentdirid )
                VALUES (?, ?, ?, ?)
                """,
                (
                    directory.id,
                    _db_text(directory.name),
                    _db_text(directory.full_path),
                    directory.parent_id,
                ),
            )

        except (sqlite3.Error, UnicodeError) as err:
            raise SinkWriteError("insert directory", directory.full_path, err) from err

    def save_file(self, file: File) -> None:
        """
        Insert or replace a file row.

        Raises:
            SinkWriteError: The write was rejected or failed.
        """
        try:
            self._connection.execute(
                """
                INSERT OR REPLACE INTO files
                ( fileid, filename, fullfilename, parentdirid, filesize,
                  filemode, filemtime, fileuid, filegid )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    file.id,
                    _db_text(file.name),
                    _db_text(file.full_path),
                    file.parent_id,
                    file.size,
                    file.mode,
                    file.mtime,
                    file.uid,
                    file.gid,
                ),
            )

        except (sqlite3.Error, UnicodeError) as err:
            raise SinkWriteError("insert file", file.full_path, err) from err

    def get_file_count_by_directory(self, limit: int = 10) -> list[DirectoryUsage]:
        """Get the directories holding the most files directly."""
        return self._get_directory_usage("file_count", limit)

    def get_file_size_by_directory(self, limit: int = 10) -> list[DirectoryUsage]:
        """Get the directories holding the most bytes directly."""
        return self._get_directory_usage("size_bytes", limit)

    def _get_directory_usage(self, order_by: str, limit: int) -> list[DirectoryUsage]:
        """Files grouped by parent directory, files under the root included."""
        self.logger.debug("Getting directory usage ordered by %s", order_by)
        with closing(self._connection.cursor()) as cursor:
            cursor.execute(
                f"""
                SELECT COALESCE(d.fulldirname, ?) AS full_path,
                    COUNT(f.fileid) AS file_count,
                    COALESCE(SUM(f.filesize), 0) AS size_bytes
                FROM files AS f
                LEFT JOIN dirs AS d ON d.dirid = f.parentdirid
                GROUP BY f.parentdirid
                ORDER BY {order_by} DESC, full_path
                LIMIT ?
                """,
                (ROOT_LABEL, limit),
            )
            # Watch the order of the columns here, must match the model
            return [DirectoryUsage(*row) for row in cursor.fetchall()]

    def get_usage_by_uid(self, limit: int = 10) -> list[OwnerUsage]:
        """Get file count and size per owning user."""
        return self._get_owner_usage("fileuid", limit)

    def get_usage_by_gid(self, limit: int = 10) -> list[OwnerUsage]:
        """Get file count and size per owning group."""
        return self._get_owner_usage("filegid", limit)

    def _get_owner_usage(self, column: str, limit: int) -> list[OwnerUsage]:
        """Files grouped by an ownership column."""
        self.logger.debug("Getting usage by %s", column)
        with closing(self._connection.cursor()) as cursor:
            cursor.execute(
                f"""
                SELECT {column}, COUNT(fileid) AS file_count,
                    COALESCE(SUM(filesize), 0)
                FROM files
                GROUP BY {column}
                ORDER BY file_count DESC, {column}
                LIMIT ?
                """,
                (limit,),
            )
            return [OwnerUsage(*row) for row in cursor.fetchall()]

    def get_aging_usage(self, newer: int, older: int) -> AgingUsage:
        """
        Get count and size of files modified strictly between two timestamps.

        Args:
            newer: The more recent epoch timestamp.
            older: The older epoch timestamp.
        """
        self.logger.debug("Getting aging usage between %d and %d", older, newer)
        with closing(self._connection.cursor()) as cursor:
            cursor.execute(
                """
                SELECT COUNT(fileid), COALESCE(SUM(filesize), 0)
                FROM files
                WHERE filemtime < ? AND filemtime > ?
                """,
                (newer, older),
            )
            file_count, size_bytes = cursor.fetchone()

        return AgingUsage(newer, older, file_count, size_bytes)
