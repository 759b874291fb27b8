"""Periodic background task that flips overdue todos to PAST_DUE."""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .service import TodoService
from .settings import DEFAULT_SWEEP_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class PastDueSweeper:
    """
    Runs ``TodoService.run_past_due_sweep`` every ``interval_seconds`` on a
    daemon thread.

    A failing tick is logged and the loop carries on, so one storage error
    never disables later sweeps.
    """

    def __init__(
        self,
        service: TodoService,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.service = service
        self.interval_seconds = interval_seconds
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the sweep loop in a background thread."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                logger.warning("Past-due sweeper is already running")
                return

            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._run_loop, name="past-due-sweeper", daemon=True
            )
            self._thread.start()
            logger.info("Past-due sweeper started (interval=%ss)", self.interval_seconds)

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the loop to exit and wait for the thread to finish."""
        with self._lock:
            thread = self._thread
            if thread is None or not thread.is_alive():
                logger.warning("Past-due sweeper is not running")
                return
            self._stop_event.set()

        thread.join(timeout=timeout)
        if thread.is_alive():
            # Keep the handle so start() cannot launch a second loop
            logger.warning(
                "Past-due sweeper did not stop within %ss; it will exit after the current tick",
                timeout,
            )
            return
        with self._lock:
            if self._thread is thread:
                self._thread = None
        logger.info("Past-due sweeper stopped")

    def run_once(self) -> Optional[int]:
        """Execute a single sweep tick; returns the count, or None if it failed."""
        try:
            return self.service.run_past_due_sweep()
        except Exception:
            logger.exception("Past-due sweep failed")
            return None

    def _run_loop(self) -> None:
        logger.debug("Past-due sweep loop started")
        # wait() returns True once stop() sets the event
        while not self._stop_event.wait(self.interval_seconds):
            self.run_once()
        logger.debug("Past-due sweep loop exited")
