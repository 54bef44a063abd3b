from __future__ import annotations

import logging
import os
import sqlite3
import sys
from pathlib import Path
from typing import Iterator
from unittest.mock import patch

import pytest
from pytest import CaptureFixture

from file_scan import __main__
from file_scan.scanerrors import StoreInitError
from file_scan.scanerrors import UnreadableDirectoryError

CONFIG_PATH = "tests/test_config.ini"


@pytest.fixture(autouse=True)
def _remove_file_handlers() -> Iterator[None]:
    yield
    for handler in list(logging.root.handlers):
        if isinstance(handler, logging.FileHandler):
            handler.close()
            logging.root.removeHandler(handler)


def test_parse_args() -> None:
    args = __main__.parse_args(["--path", "/data", "--dbName", "scan.db"])

    assert args.path == "/data"
    assert args.db_name == "scan.db"
    assert args.makedb is False
    assert args.report is False


def test_parse_args_long_db_name() -> None:
    args = __main__.parse_args(["--db-name", "scan.db", "--makedb"])

    assert args.db_name == "scan.db"
    assert args.makedb is True


def test_main_missing_db_name() -> None:
    with patch("file_scan.__main__.Scanner") as mock_scanner:
        result = __main__.main(cli_args=["--path", "/data"])

    assert result == 3
    assert mock_scanner.call_count == 0


def test_main_missing_path(tmp_path: Path) -> None:
    database = tmp_path / "scan.db"

    result = __main__.main(cli_args=["--dbName", str(database)])

    assert result == 3
    assert not database.exists()


def test_main_makedb_and_report_conflict(tmp_path: Path) -> None:
    database = tmp_path / "scan.db"

    result = __main__.main(cli_args=["--dbName", str(database), "--makedb", "--report"])

    assert result == 3


def test_main_invalid_config_file() -> None:
    result = __main__.main(cli_args=["--config", "foo/bar.ini"])

    assert result == 3


def test_main_makedb(tmp_path: Path) -> None:
    database = tmp_path / "scan.db"

    result = __main__.main(cli_args=["--dbName", str(database), "--makedb"])

    assert result == 0
    with sqlite3.connect(database) as connection:
        tables = {
            row[0]
            for row in connection.execute("SELECT name FROM sqlite_master WHERE type='table'")
        }
    assert {"dirs", "files"} <= tables


def test_main_makedb_failure_is_fatal(tmp_path: Path) -> None:
    cli_args = ["--dbName", str(tmp_path / "scan.db"), "--makedb"]

    with patch("file_scan.__main__.Scanner.make_db", side_effect=StoreInitError("boom")):
        result = __main__.main(cli_args=cli_args)

    assert result == 1


def test_main_scan_without_schema(tmp_path: Path, sample_tree: Path) -> None:
    database = tmp_path / "scan.db"
    sqlite3.connect(database).close()
    cli_args = ["--dbName", str(database), "--path", str(sample_tree)]

    result = __main__.main(cli_args=cli_args)

    assert result == 3


def test_main_scan_failure_exits_non_zero(tmp_path: Path, sample_tree: Path) -> None:
    database = tmp_path / "scan.db"
    sqlite3.connect(database).close()
    cli_args = ["--dbName", str(database), "--path", str(sample_tree)]
    error = UnreadableDirectoryError(str(sample_tree), PermissionError("denied"))

    with patch("file_scan.__main__.Scanner.scan", side_effect=error):
        result = __main__.main(cli_args=cli_args)

    assert result == 1


def test_main_report_failure(tmp_path: Path) -> None:
    # A database without the schema makes every report query fail
    database = tmp_path / "scan.db"
    sqlite3.connect(database).close()

    result = __main__.main(cli_args=["--dbName", str(database), "--report"])

    assert result == 3


def test_main_report_missing_database(tmp_path: Path) -> None:
    database = tmp_path / "scan.db"

    result = __main__.main(cli_args=["--dbName", str(database), "--report"])

    assert result == 3
    assert not database.exists()


def test_main_scan_missing_database(tmp_path: Path, sample_tree: Path) -> None:
    database = tmp_path / "scan.db"

    result = __main__.main(cli_args=["--dbName", str(database), "--path", str(sample_tree)])

    assert result == 3
    assert not database.exists()


def test_main_makedb_unopenable_database(tmp_path: Path) -> None:
    database = tmp_path / "missing" / "scan.db"

    result = __main__.main(cli_args=["--dbName", str(database), "--makedb"])

    assert result == 1


def test_main_invalid_config_value(tmp_path: Path) -> None:
    ini = tmp_path / "scan.ini"
    ini.write_text("[system]\ndatabase_path = :memory:\ncommit_partial_scan = maybe\n")

    with patch("file_scan.__main__.Scanner.scan") as mock_scan:
        result = __main__.main(cli_args=["--config", str(ini), "--path", str(tmp_path)])

    assert result == 3
    assert mock_scan.call_count == 0


def test_main_config_supplies_defaults() -> None:
    with patch("file_scan.__main__.Scanner.scan") as mock_scan:
        result = __main__.main(cli_args=["--config", CONFIG_PATH])

    assert result == 0
    assert mock_scan.call_count == 1


def test_main_create_config() -> None:
    cli_args = ["--make-config", "tests/new_test_config.ini"]

    with patch("file_scan.__main__.write_new_config") as mock_write:
        result = __main__.main(cli_args=cli_args)

    assert result == 0
    mock_write.assert_called_once_with("tests/new_test_config.ini")


def test_main_creates_log_file_next_to_database(tmp_path: Path) -> None:
    database = tmp_path / "scan.db"

    result = __main__.main(cli_args=["--dbName", str(database), "--makedb", "--log-file"])

    assert result == 0
    assert (tmp_path / "scan.log").exists()


def test_main_end_to_end(
    tmp_path: Path,
    sample_tree: Path,
    capsys: CaptureFixture[str],
) -> None:
    database = str(tmp_path / "scan.db")

    assert __main__.main(cli_args=["--dbName", database, "--makedb"]) == 0
    assert __main__.main(cli_args=["--dbName", database, "--path", str(sample_tree)]) == 0
    capsys.readouterr()
    assert __main__.main(cli_args=["--dbName", database, "--report"]) == 0

    out = capsys.readouterr().out
    assert "File Size Report" in out
    assert str(sample_tree / "a") in out

    with sqlite3.connect(database) as connection:
        dirs = connection.execute("SELECT dirname, parentdirid FROM dirs").fetchall()
        files = connection.execute(
            "SELECT filename, parentdirid, filesize FROM files ORDER BY filename"
        ).fetchall()

    assert dirs == [("a", 0)]
    assert files == [("b.txt", 0, 5), ("x.txt", 1, 10)]


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="needs byte filenames")
def test_main_scan_names_that_are_not_utf8(tmp_path: Path) -> None:
    database = str(tmp_path / "scan.db")
    root = tmp_path / "root"
    root.mkdir()
    (root / os.fsdecode(b"bad\xffname.txt")).write_bytes(b"abc")

    assert __main__.main(cli_args=["--dbName", database, "--makedb"]) == 0
    assert __main__.main(cli_args=["--dbName", database, "--path", str(root)]) == 0

    with sqlite3.connect(database) as connection:
        files = connection.execute("SELECT filename FROM files").fetchall()

    assert files == [("bad\\xffname.txt",)]
