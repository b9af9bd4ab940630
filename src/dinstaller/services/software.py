"""Software workflow: probing sources, product proposal and package commit."""

import logging
import threading
from typing import Optional

from dinstaller.errors import (
    CommitFailed,
    InstallationInProgress,
    InvalidSelection,
    NoProductAvailable,
)
from dinstaller.models.domain import Product
from dinstaller.models.progress import ProgressState
from dinstaller.models.status import WorkflowState
from dinstaller.services.backends import PackageBackend
from dinstaller.services.progress import ProgressForwarder, ProgressSink


class SoftwareManager:
    """Drives the package manager through probe → propose → install.

    Owns the product catalog, the selected product and the install progress.
    ``probe``, ``select_product`` and ``propose`` are serialized by one lock;
    ``install`` runs outside of it (it blocks for the whole commit) and is
    guarded so that only one commit is in flight.
    """

    def __init__(
        self,
        backend: PackageBackend,
        install_root: str = "/mnt",
        progress_queue_size: int = 256,
    ):
        """Initialize software manager.

        Args:
            backend: Package manager collaborator
            install_root: Target root the commit installs into
            progress_queue_size: Buffered progress events before the commit
                loop waits for the progress sink
        """
        self.logger = logging.getLogger("dinstaller.software")
        self.backend = backend
        self.install_root = install_root
        self.progress_queue_size = progress_queue_size

        self._state = WorkflowState.UNINITIALIZED
        self._products: list[Product] = []
        self._selected: Optional[str] = None
        self._progress = ProgressState()

        self._lock = threading.RLock()
        self._install_guard = threading.Lock()

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def products(self) -> list[Product]:
        with self._lock:
            return list(self._products)

    @property
    def selected_product(self) -> Optional[str]:
        return self._selected

    @property
    def progress(self) -> ProgressState:
        return self._progress.model_copy()

    def probe(self) -> None:
        """Reinitialize sources and reload the product catalog.

        On failure the previous catalog and state are kept.
        """
        with self._lock:
            self._ensure_not_installing()
            self.logger.info("Probing software")

            self.backend.target_initialize("/")
            self.backend.target_load()
            self.backend.source_restore()
            self.backend.source_load()
            products = list(self.backend.products())

            self._products = products
            if self._selected is not None and not self._in_catalog(self._selected):
                self.logger.warning(
                    f"Selected product {self._selected} no longer available, clearing selection"
                )
                self._selected = None
            self._state = WorkflowState.PROBED

            self.logger.info(
                f"Software probed: {len(products)} product(s) "
                f"[{', '.join(p.name for p in products)}]"
            )

    def select_product(self, name: str) -> None:
        """Select a product of the current catalog.

        Raises:
            InvalidSelection: If the product is not in the catalog
            InstallationInProgress: If an installation is running
        """
        with self._lock:
            self._ensure_not_installing()
            if not self._in_catalog(name):
                raise InvalidSelection(f"Unknown product: {name}")
            self._selected = name
            self.logger.info(f"Selected product {name}")

    def change_product(self, name: str) -> None:
        """Select a product and recompute the proposal for it.

        If the proposal fails the previous selection is restored.

        Raises:
            InvalidSelection: If the product is not in the catalog
            InstallationInProgress: If an installation is running
        """
        with self._lock:
            previous = self._selected
            self.select_product(name)
            try:
                self.propose()
            except Exception as e:
                self.logger.error(
                    f"Proposal for {name} failed, restoring selection {previous}: {e}"
                )
                self._selected = previous
                raise

    def propose(self) -> None:
        """Compute the software proposal for the selected product.

        Defaults the selection to the first catalog entry. The proposal
        itself is queried separately, nothing is returned.

        Raises:
            NoProductAvailable: If the catalog is empty
            InstallationInProgress: If an installation is running
        """
        with self._lock:
            self._ensure_not_installing()
            if not self._products:
                raise NoProductAvailable("No Product Available")

            if self._selected is None:
                self._selected = self._products[0].name
                self.logger.info(f"No product selected, defaulting to {self._selected}")

            self.backend.proposal(force_reset=True, reinit=True, simple=True)
            self._state = WorkflowState.PROPOSED
            self.logger.info(f"Software proposal computed for {self._selected}")

    def install(self, progress_sink: ProgressSink) -> None:
        """Commit the selected packages into the target root.

        Blocks until the commit finishes.

        Raises:
            InstallationInProgress: If another install is in flight
            CommitFailed: If the commit returned no result
        """
        if not self._install_guard.acquire(blocking=False):
            raise InstallationInProgress("An installation is already running")

        try:
            with self._lock:
                self._state = WorkflowState.INSTALLING
                self._progress = ProgressState()
                progress = self._progress

            try:
                self._commit(progress, progress_sink)
            except Exception:
                with self._lock:
                    self._state = WorkflowState.FAILED
                raise

            with self._lock:
                self._state = WorkflowState.COMPLETED
            self.logger.info(
                f"Installation completed: {progress.completed}/{progress.total_packages} packages"
            )
        finally:
            self._install_guard.release()

    def _commit(self, progress: ProgressState, progress_sink: ProgressSink) -> None:
        total = self._count_packages()
        progress.set_total(total)
        progress_sink.set_total(total)
        self.logger.info(f"Installing {total} packages for product {self._selected}")

        forwarder = ProgressForwarder(progress_sink, progress, maxsize=self.progress_queue_size)
        forwarder.start()
        try:
            self.backend.register_callbacks(forwarder)
            self.backend.target_initialize(self.install_root)
            result = self.backend.commit()
        finally:
            forwarder.close()

        if not result:
            last_error = self.backend.last_error()
            self.logger.error(f"Commit failed: {last_error}")
            raise CommitFailed(last_error)

    def _count_packages(self) -> int:
        return sum(sum(medium) for medium in self.backend.media_count())

    def _in_catalog(self, name: str) -> bool:
        return any(product.name == name for product in self._products)

    def _ensure_not_installing(self) -> None:
        if self._state == WorkflowState.INSTALLING:
            raise InstallationInProgress("An installation is already running")
