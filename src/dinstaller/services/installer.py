"""Installer object: status owner and method/property dispatch.

Exposes ``org.opensuse.DInstaller`` on ``/org/opensuse/DInstaller``:

Methods:
    GetStatus() -> int32
    GetProducts() -> [{name, display_name}]
    GetLanguages() -> {code: (native, ascii, encoding, territory, english)}
    GetDisks() -> [{name, model, size}]
    GetStorage() -> [{mount, device, type, size}]
    Start()

Properties (``org.freedesktop.DBus.Properties``): Disk, Language, Product

Signals:
    StatusChanged(int32)
    Progress(completed, total)
"""

import logging
import threading
from typing import Any, Callable, Optional, Sequence

from dinstaller.errors import (
    InstallationInProgress,
    InvalidOptionValue,
    UnknownMethod,
    UnknownOption,
)
from dinstaller.models.progress import ProgressState
from dinstaller.models.status import InstallerStatus
from dinstaller.services.backends import Backends
from dinstaller.services.signals import SignalBroadcaster
from dinstaller.services.software import SoftwareManager
from dinstaller.settings import DBUS_IFACE, DBUS_PATH, PROPERTIES_IFACE
from dinstaller.utils.variant import decode_wire, encode


class SignalProgressSink:
    """Progress sink publishing ``Progress`` signals."""

    def __init__(self, emit: Callable[[str, Sequence[Any]], None]):
        self.logger = logging.getLogger("dinstaller.installer.progress")
        self._emit = emit

    def set_total(self, total: int) -> None:
        self.logger.info(f"Packages to install: {total}")
        self._emit("Progress", [0, total])

    def package_installed(self, name: str, progress: ProgressState) -> None:
        self.logger.debug(
            f"Installed {name} ({progress.completed}/{progress.total_packages})"
        )
        self._emit("Progress", [progress.completed, progress.total_packages])


class InstallerService:
    """Installer object backed by the software workflow and collaborators."""

    OPTION_TYPES = {"Disk": str, "Language": str, "Product": str}

    def __init__(
        self,
        backends: Backends,
        signals: Optional[SignalBroadcaster] = None,
        install_root: str = "/mnt",
        progress_queue_size: int = 256,
        default_language: str = "en_US",
    ):
        self.logger = logging.getLogger("dinstaller.installer")
        self.software = SoftwareManager(
            backends.package,
            install_root=install_root,
            progress_queue_size=progress_queue_size,
        )
        self.storage = backends.storage
        self.languages = backends.languages
        self.signals = signals or SignalBroadcaster()

        self._status = InstallerStatus.IDLE
        self._status_lock = threading.Lock()
        self._options: dict[str, Any] = {"Disk": "", "Language": default_language, "Product": ""}
        self._last_error: Optional[str] = None
        self._worker: Optional[threading.Thread] = None
        self._progress_sink = SignalProgressSink(self._emit)

        self._methods: dict[str, Callable[..., list]] = {
            "GetStatus": self._get_status,
            "GetProducts": self._get_products,
            "GetLanguages": self._get_languages,
            "GetDisks": self._get_disks,
            "GetStorage": self._get_storage,
            "Start": self._start,
        }

    @property
    def status(self) -> InstallerStatus:
        return self._status

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    def call(self, path: str, interface: str, method: str, args: Sequence[Any] = ()) -> list:
        """Dispatch a bus method call.

        Raises:
            UnknownMethod: Unknown object, interface or method
            DInstallerError: Errors of the called operation
        """
        if path != DBUS_PATH:
            raise UnknownMethod(f"Unknown object: {path}")
        if interface == PROPERTIES_IFACE:
            return self._call_properties(method, list(args))
        if interface != DBUS_IFACE:
            raise UnknownMethod(f"Unknown interface: {interface}")

        handler = self._methods.get(method)
        if handler is None:
            raise UnknownMethod(f"Unknown method: {interface}.{method}")
        return handler(*args)

    # Workflow

    def probe(self) -> None:
        """Probe software and compute the initial proposal."""
        self._acquire_status(InstallerStatus.PROBING)
        try:
            self.software.probe()
            self.software.propose()
            self._options["Product"] = self.software.selected_product or ""
        except Exception as e:
            self.logger.error(f"Probing failed: {e}", exc_info=True)
            self._last_error = str(e)
            raise
        finally:
            self._change_status(InstallerStatus.IDLE)

    def start(self) -> None:
        """Start the installation in a worker thread.

        Raises:
            InstallationInProgress: If the installer is not idle
        """
        self._acquire_status(InstallerStatus.INSTALLING)
        self._last_error = None
        self._worker = threading.Thread(target=self._install, name="installation", daemon=True)
        self._worker.start()

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the running installation (if any) finishes."""
        if self._worker is not None:
            self._worker.join(timeout)

    def _install(self) -> None:
        self.logger.info("Installation started")
        try:
            self.software.install(self._progress_sink)
        except Exception as e:
            # Workflow errors end here; clients observe the status change
            self.logger.error(f"Installation failed: {e}", exc_info=True)
            self._last_error = str(e)
            self._change_status(InstallerStatus.IDLE)
            return

        self.logger.info("Installation finished")
        self._change_status(InstallerStatus.FINISHED)

    # Status

    def _acquire_status(self, status: InstallerStatus) -> None:
        with self._status_lock:
            if self._status != InstallerStatus.IDLE:
                raise InstallationInProgress(
                    f"Installer is busy (status {self._status.name.lower()})"
                )
            self._set_status(status)

    def _change_status(self, status: InstallerStatus) -> None:
        with self._status_lock:
            self._set_status(status)

    def _set_status(self, status: InstallerStatus) -> None:
        # Caller holds _status_lock: emission order == change order
        self._status = status
        self.logger.info(f"Status changed to {status.name.lower()} ({int(status)})")
        self._emit("StatusChanged", [int(status)])

    def _emit(self, signal: str, args: Sequence[Any]) -> None:
        self.signals.emit(DBUS_PATH, DBUS_IFACE, signal, args)

    # Methods

    def _get_status(self) -> list:
        return [int(self._status)]

    def _get_products(self) -> list:
        return [[product.model_dump() for product in self.software.products]]

    def _get_languages(self) -> list:
        return [{code: list(fields) for code, fields in self.languages.languages().items()}]

    def _get_disks(self) -> list:
        return [[disk.model_dump() for disk in self.storage.disks()]]

    def _get_storage(self) -> list:
        return [[entry.model_dump() for entry in self.storage.proposal()]]

    def _start(self) -> list:
        self.start()
        return []

    # Properties

    def _call_properties(self, method: str, args: list) -> list:
        if method == "Get":
            interface, name = self._property_args(args, 2)
            return [self.get_option(name)]
        if method == "Set":
            interface, name, value = self._property_args(args, 3)
            self.set_option(name, decode_wire(value))
            return []
        if method == "GetAll":
            self._property_args(args, 1)
            return [{name: self.get_option(name) for name in self.OPTION_TYPES}]
        raise UnknownMethod(f"Unknown method: {PROPERTIES_IFACE}.{method}")

    def _property_args(self, args: list, count: int) -> list:
        if len(args) != count:
            raise InvalidOptionValue(f"Expected {count} arguments, got {len(args)}")
        if args[0] != DBUS_IFACE:
            raise UnknownMethod(f"Unknown interface: {args[0]}")
        return args

    def get_option(self, name: str) -> dict:
        """Current value of an option as a wire variant."""
        if name not in self.OPTION_TYPES:
            raise UnknownOption(f"Unknown option: {name}")
        return encode(self._options[name]).to_wire()

    def set_option(self, name: str, value: Any) -> None:
        """Validate and apply an option.

        Raises:
            UnknownOption: Option not exposed
            InvalidOptionValue: Wrong type or value rejected
            InvalidSelection: Product not in the catalog
            InstallationInProgress: Installer is not idle
        """
        expected = self.OPTION_TYPES.get(name)
        if expected is None:
            raise UnknownOption(f"Unknown option: {name}")
        if not isinstance(value, expected):
            raise InvalidOptionValue(
                f"Option {name} expects {expected.__name__}, got {type(value).__name__}"
            )
        # Start and probe wait on this lock: no option changes while busy
        with self._status_lock:
            if self._status != InstallerStatus.IDLE:
                raise InstallationInProgress(f"Cannot change {name} while the installer is busy")

            if name == "Product":
                self.software.change_product(value)
            elif name == "Disk":
                try:
                    self.storage.select_disk(value)
                except ValueError as e:
                    raise InvalidOptionValue(f"Disk {value} rejected: {e}") from e
            elif name == "Language":
                if value not in self.languages.languages():
                    raise InvalidOptionValue(f"Unknown language: {value}")

            self._options[name] = value
        self.logger.info(f"Option {name} set to {value!r}")
