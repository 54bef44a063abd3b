from __future__ import annotations

import argparse
import logging
import sqlite3
from pathlib import Path

from file_scan.scanconfig import ScanConfig
from file_scan.scanconfig import write_new_config
from file_scan.scanerrors import InputError
from file_scan.scanerrors import ScanError
from file_scan.scanerrors import StoreInitError
from file_scan.scanner import Scanner

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INPUT_ERROR = 3

logger = logging.getLogger("file_scan")


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Scan a directory tree into a SQLite database and report on its usage.",
    )
    parser.add_argument(
        "--path",
        type=str,
        help="The root directory to scan.",
        default=None,
    )
    parser.add_argument(
        "--db-name",
        "--dbName",
        dest="db_name",
        type=str,
        help="The path to the database file. Always required.",
        default=None,
    )
    parser.add_argument(
        "--makedb",
        help="Create the database schema and exit.",
        default=False,
        action="store_true",
    )
    parser.add_argument(
        "--report",
        help="Print usage reports from the database and exit.",
        default=False,
        action="store_true",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="A configuration file supplying defaults. Flags take precedence.",
        default=None,
    )
    parser.add_argument(
        "--make-config",
        type=str,
        metavar="CONFIG",
        help="Create a default configuration file and exit.",
        default=None,
    )
    parser.add_argument(
        "--debug",
        help="Enable debug logging.",
        default=False,
        action="store_true",
    )
    parser.add_argument(
        "--log-file",
        help="Enable logging to a file next to the database file.",
        default=False,
        action="store_true",
    )
    return parser.parse_args(args)


def add_file_handler_to_logging(database_path: str) -> None:
    """Add a file handler to the root logger next to the database file provided."""
    filepath = Path(database_path).absolute()
    log_filepath = filepath.parent / f"{filepath.stem}.log"
    file_handler = logging.FileHandler(log_filepath)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logging.getLogger().addHandler(file_handler)


def build_config(args: argparse.Namespace) -> ScanConfig:
    """Load the optional config file and apply command line values over it."""
    config = ScanConfig(args.config)
    config.apply_overrides(database_path=args.db_name, root_directory=args.path)
    return config


def main(*, cli_args: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(cli_args)

    if args.make_config:
        write_new_config(args.make_config)
        return EXIT_OK

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )

    try:
        config = build_config(args)

        if not config.database_path:
            raise InputError("Must supply db name --db-name")

        if args.makedb and args.report:
            raise InputError("--makedb and --report cannot be used together")

        if not (args.makedb or args.report or config.root_directory):
            raise InputError("Must supply root path name to traverse --path")

        scanner = Scanner(config, must_exist=not args.makedb)

    except (InputError, ValueError) as err:
        logger.error("%s", err)
        return EXIT_INPUT_ERROR

    except StoreInitError as err:
        if args.makedb:
            logger.critical("%s", err)
            return EXIT_FAILURE

        logger.error("%s", err)
        return EXIT_INPUT_ERROR

    if args.log_file and config.database_path != ":memory:":
        add_file_handler_to_logging(config.database_path)

    try:
        return _run(scanner, args)

    finally:
        scanner.close()


def _run(scanner: Scanner, args: argparse.Namespace) -> int:
    """Run the mode selected on the command line and return the exit code."""
    if args.makedb:
        try:
            scanner.make_db()

        except StoreInitError as err:
            logger.critical("%s", err)
            return EXIT_FAILURE

        return EXIT_OK

    if args.report:
        try:
            scanner.report()

        except sqlite3.Error as err:
            logger.error("Error running report: %s", err)
            return EXIT_INPUT_ERROR

        return EXIT_OK

    try:
        scanner.scan()

    except InputError as err:
        logger.error("%s", err)
        return EXIT_INPUT_ERROR

    except ScanError:
        # Already logged by the scanner along with the transaction outcome
        return EXIT_FAILURE

    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
