"""Forwarding of package manager progress callbacks to a progress sink."""

import logging
import queue
import threading
from typing import Protocol

from dinstaller.models.progress import ProgressState


class ProgressSink(Protocol):
    """Receiver of installation progress supplied by the caller of ``install``."""

    def set_total(self, total: int) -> None: ...

    def package_installed(self, name: str, progress: ProgressState) -> None: ...


_STOP = object()


class ProgressForwarder:
    """Package callbacks that hand progress over to a sink on its own thread.

    The package manager calls ``package_installed`` from its commit loop;
    the call only updates the counters and queues a snapshot. A full queue
    blocks the commit loop until the sink catches up, but the sink never
    waits on the commit loop, so a slow sink cannot deadlock the commit.
    """

    def __init__(self, sink: ProgressSink, state: ProgressState, maxsize: int = 256):
        self.logger = logging.getLogger("dinstaller.progress")
        self.sink = sink
        self.state = state
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._lock = threading.Lock()
        self._worker = threading.Thread(
            target=self._run, name="progress-forwarder", daemon=True
        )

    def start(self) -> None:
        self._worker.start()

    def package_installed(self, name: str) -> None:
        with self._lock:
            counted = self.state.advance()
            snapshot = self.state.model_copy()

        if not counted:
            self.logger.warning(
                f"Package {name} reported beyond the expected total "
                f"({snapshot.total_packages}), progress not advanced"
            )
            return

        self._queue.put((name, snapshot))

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            name, snapshot = item
            try:
                self.sink.package_installed(name, snapshot)
            except Exception as e:
                self.logger.error(f"Progress sink failed for package {name}: {e}", exc_info=True)

    def close(self, timeout: float = 10.0) -> None:
        """Deliver pending progress and stop the worker thread.

        Gives up after ``timeout`` seconds when the sink is stuck and the
        queue stays full; the worker is left behind as a daemon thread.
        """
        if not self._worker.is_alive():
            return
        try:
            self._queue.put(_STOP, timeout=timeout)
        except queue.Full:
            self.logger.warning("Progress sink still busy, leaving forwarder thread behind")
            return
        self._worker.join(timeout)
        if self._worker.is_alive():
            self.logger.warning("Progress sink still busy, leaving forwarder thread behind")
