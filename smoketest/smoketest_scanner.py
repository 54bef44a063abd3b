from __future__ import annotations

import argparse
import logging
import random
import shutil
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from string import ascii_lowercase

from file_scan.scanconfig import ScanConfig
from file_scan.scanner import Scanner

BASE_DIR: Path = Path(__file__).resolve().parent
TEST_DIR: Path = BASE_DIR / "smoketest_tree"
DIRS_PER_LEVEL: tuple[int, int] = (1, 6)
FILES_PER_DIR: tuple[int, int] = (0, 40)
MAX_FILE_BYTES = 4096

logger = logging.getLogger(__name__)


def _name() -> str:
    return "".join(random.choices(ascii_lowercase, k=8))


def build_smoketest_tree(depth: int) -> tuple[int, int]:
    """Create a random tree below TEST_DIR, returning (directories, files) created."""
    dirs = 0
    files = 0
    pending = [(TEST_DIR, 0)]
    TEST_DIR.mkdir(parents=True, exist_ok=True)

    while pending:
        path, level = pending.pop()

        for _ in range(random.randint(*FILES_PER_DIR)):
            size = random.randint(0, MAX_FILE_BYTES)
            (path / f"{_name()}_{files}.txt").write_bytes(b"x" * size)
            files += 1

        if level >= depth:
            continue

        for _ in range(random.randint(*DIRS_PER_LEVEL)):
            child = path / f"{_name()}_{dirs}"
            child.mkdir(exist_ok=True)
            pending.append((child, level + 1))
            dirs += 1

    logger.info("Created %d directories and %d files", dirs, files)
    return dirs, files


def destroy_smoketest_tree() -> None:
    """Remove the smoketest tree."""
    shutil.rmtree(TEST_DIR, ignore_errors=True)


@contextmanager
def smoketest_runner(depth: int) -> Generator[tuple[int, int], None, None]:
    """Build the tree for the duration of the smoketest."""
    logger.debug("Building smoketest tree...")
    try:
        yield build_smoketest_tree(depth)

    finally:
        logger.debug("Destroying smoketest tree...")
        destroy_smoketest_tree()


def parse_args() -> tuple[int, int]:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser()
    parser.add_argument("--depth", type=int, default=5, help="Depth of the tree.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    args = parser.parse_args()
    return args.depth, logging.DEBUG if args.debug else logging.INFO


def run() -> int:
    """Scan a generated tree and check every entry was recorded."""
    depth, level = parse_args()
    logging.basicConfig(level=level, format="%(asctime)s %(message)s")

    with tempfile.TemporaryDirectory() as tmp_dir, smoketest_runner(depth) as expected:
        config = ScanConfig()
        config.apply_overrides(
            database_path=str(Path(tmp_dir) / "smoketest.db"),
            root_directory=str(TEST_DIR),
        )
        scanner = Scanner(config)
        scanner.make_db()
        result = scanner.scan()
        scanner.report()
        scanner.close()

    if (result.directories, result.files) != expected:
        logger.error("Expected %s but scanned %s", expected, result)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(run())
