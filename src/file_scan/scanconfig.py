from __future__ import annotations

import logging
import os
from configparser import ConfigParser

NEW_CONFIG = """\
[system]
# Path to the SQLite database holding the scan results.
database_path = {filename}
# Commit whatever was written when a scan fails part way.
# When false a failed scan is rolled back and leaves no rows behind.
commit_partial_scan = false

[scan]
root_directory = .
# Seconds between progress lines while scanning.
progress_interval = 1

[report]
# Number of rows shown per report.
limit = 10
# The aging report covers files modified within this many days.
aging_days = 10

    """


class ScanConfig:
    """Configuration for the Scanner."""

    logger = logging.getLogger(__name__)

    def __init__(self, filepath: str | None = None) -> None:
        """
        Load the configuration from the given file.

        Args:
            filepath: An ini file to read. When None every value uses its
                default until set with apply_overrides().
        """
        self._config = ConfigParser()

        if filepath is None:
            return

        success = self._config.read(filepath)

        if not success:
            raise ValueError(f"Could not read config file at {filepath}")

        self.logger.debug("Loaded config from %s", filepath)

    def apply_overrides(
        self,
        *,
        database_path: str | None = None,
        root_directory: str | None = None,
    ) -> None:
        """Replace configured values with any that are not None."""
        overrides = {
            "system": {"database_path": database_path},
            "scan": {"root_directory": root_directory},
        }
        self._config.read_dict(
            {
                section: {key: value for key, value in values.items() if value is not None}
                for section, values in overrides.items()
            }
        )

    @property
    def database_path(self) -> str:
        """Return the path to the database file, or "" if not set."""
        return self._config.get("system", "database_path", fallback="")

    @property
    def commit_partial_scan(self) -> bool:
        """Return whether a failed scan commits the rows written so far."""
        return self._config.getboolean("system", "commit_partial_scan", fallback=False)

    @property
    def root_directory(self) -> str:
        """Return the directory to scan, or "" if not set."""
        return self._config.get("scan", "root_directory", fallback="")

    @property
    def progress_interval(self) -> float:
        """Return the seconds between progress reports."""
        return self._config.getfloat("scan", "progress_interval", fallback=1.0)

    @property
    def report_limit(self) -> int:
        """Return the number of rows shown per report."""
        return self._config.getint("report", "limit", fallback=10)

    @property
    def aging_days(self) -> int:
        """Return the width of the aging report window in days."""
        return self._config.getint("report", "aging_days", fallback=10)


def write_new_config(filename: str) -> None:
    """Write a new config file if one does not exist."""
    if os.path.exists(filename):
        return

    database_name = os.path.splitext(filename)[0] + ".db"
    config = NEW_CONFIG.format(filename=database_name)

    with open(filename, "w") as config_file:
        config_file.write(config)
