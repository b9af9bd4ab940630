"""Interfaces of the external collaborators driven by the installer service.

The package manager, the storage engine and the language database are not
part of this package. A deployment provides them through a factory named in
``DINSTALLER_BACKEND`` (``"module:callable"``) returning ``Backends``.
"""

import importlib
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from dinstaller.models.domain import Disk, MountAssignment, Product


class PackageCallbacks(Protocol):
    """Receiver of package manager callbacks during a commit."""

    def package_installed(self, name: str) -> None: ...


class PackageBackend(Protocol):
    """Package manager (sources, target, proposal and commit)."""

    def target_initialize(self, root: str) -> None: ...

    def target_load(self) -> None: ...

    def source_restore(self) -> None: ...

    def source_load(self) -> None: ...

    def products(self) -> list[Product]: ...

    def proposal(self, force_reset: bool, reinit: bool, simple: bool) -> None: ...

    def media_count(self) -> list[list[int]]:
        """Packages to install, per source and per medium of that source."""
        ...

    def register_callbacks(self, callbacks: PackageCallbacks) -> None: ...

    def commit(self) -> Optional[list]:
        """Install the selected packages.

        Returns:
            Non-empty result on success; None or empty when the commit failed
            (see ``last_error``)
        """
        ...

    def last_error(self) -> str: ...


class StorageBackend(Protocol):
    """Storage engine (device probing and the storage proposal)."""

    def disks(self) -> list[Disk]: ...

    def proposal(self) -> list[MountAssignment]: ...

    def select_disk(self, name: str) -> None: ...


class LanguageBackend(Protocol):
    """Language database: ``code -> (native name, ascii name, encoding, territory, english name)``."""

    def languages(self) -> dict[str, tuple[str, str, str, str, str]]: ...


@dataclass
class Backends:
    package: PackageBackend
    storage: StorageBackend
    languages: LanguageBackend


def load_backends(factory_path: str) -> Backends:
    """Import ``module:callable`` and build the collaborators with it.

    Raises:
        ValueError: If the path is not in ``module:callable`` form
        ImportError: If the module cannot be imported
        TypeError: If the factory does not return ``Backends``
    """
    logger = logging.getLogger("dinstaller.backends")

    module_name, _, attr = factory_path.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Invalid backend factory '{factory_path}' (expected 'module:callable')")

    module = importlib.import_module(module_name)
    factory = getattr(module, attr)
    backends = factory()
    if not isinstance(backends, Backends):
        raise TypeError(
            f"Backend factory '{factory_path}' returned {type(backends).__name__}, expected Backends"
        )

    logger.info(f"Loaded backends from {factory_path}")
    return backends
