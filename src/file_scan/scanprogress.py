from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType

    from .scanallocator import IdAllocator


class ProgressReporter:
    """Periodically log how many directories and files have been allocated."""

    logger = logging.getLogger(__name__)

    def __init__(self, allocator: IdAllocator, *, interval: float = 1.0) -> None:
        """
        Initialize a new ProgressReporter.

        Args:
            allocator: The allocator to observe. It is only ever read.

        Keyword Args:
            interval: Seconds between reports. Defaults to 1.0.
        """
        if interval <= 0:
            raise ValueError(f"Progress interval must be positive, got {interval}")

        self._allocator = allocator
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def __enter__(self) -> ProgressReporter:
        """Start reporting."""
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        """Stop reporting and wait for the thread to finish."""
        self.stop()

    @property
    def is_running(self) -> bool:
        """True while the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background thread. Raises if already started."""
        if self._thread is not None:
            raise RuntimeError("Progress reporter already started")

        self._thread = threading.Thread(
            target=self._run,
            name="scan-progress",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the thread to stop and join it. Safe to call more than once."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()

    def report(self) -> None:
        """Log the current counts once."""
        dirs, files = self._allocator.snapshot()
        self.logger.info("Inserted %d files and %d dirs", files, dirs)

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.report()
