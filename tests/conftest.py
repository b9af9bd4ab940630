"""Global pytest fixtures and configuration."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dinstaller.client.bus import Subscription  # noqa: E402
from dinstaller.models.domain import Disk, MountAssignment, Product  # noqa: E402
from dinstaller.services.backends import Backends  # noqa: E402


class FakeBus:
    """In-memory BusConnection: canned replies and manual signal emission."""

    def __init__(self):
        self.calls = []
        self.replies = {}
        self.error = None
        self.subscriptions = []
        self.ready = None

    async def call(self, path, interface, method, args=()):
        self.calls.append((path, interface, method, list(args)))
        if self.error is not None:
            raise self.error
        return self.replies.get(method, [])

    def subscribe(self, path, interface, signal, handler):
        entry = {"key": (path, interface, signal), "handler": handler}
        subscription = Subscription(
            on_cancel=lambda: self.subscriptions.remove(entry), ready=self.ready
        )
        entry["subscription"] = subscription
        self.subscriptions.append(entry)
        return subscription

    def emit(self, path, interface, signal, args):
        for entry in list(self.subscriptions):
            if entry["key"] == (path, interface, signal):
                entry["handler"](path, interface, signal, args)


@pytest.fixture
def fake_bus():
    return FakeBus()


@pytest.fixture
def sample_products():
    return [
        Product(name="MicroOS", display_name="openSUSE MicroOS"),
        Product(name="Tumbleweed", display_name="openSUSE Tumbleweed"),
    ]


@pytest.fixture
def package_backend(sample_products):
    """Mock package manager with two sources ([2, 3] and [1] packages)."""
    backend = MagicMock()
    backend.products.return_value = sample_products
    backend.media_count.return_value = [[2, 3], [1]]
    backend.commit.return_value = [{"source": 0, "installed": 6}]
    backend.last_error.return_value = ""
    return backend


@pytest.fixture
def storage_backend():
    backend = MagicMock()
    backend.disks.return_value = [
        Disk(name="/dev/sda", model="Some Brand", size="0.5TiB"),
        Disk(name="/dev/sdb", model="Other Brand", size="1TiB"),
    ]
    backend.proposal.return_value = [
        MountAssignment(mount="/", device="/dev/sdb2", type="btrfs", size="117354528768"),
        MountAssignment(mount="swap", device="/dev/sdb1", type="swap", size="2147483648"),
    ]
    return backend


@pytest.fixture
def language_backend():
    backend = MagicMock()
    backend.languages.return_value = {
        "cs_CZ": ("Cestina", "Cestina", ".UTF-8", "", "Czech"),
        "en_US": ("English (US)", "English (US)", ".UTF-8", "_US", "English (US)"),
    }
    return backend


@pytest.fixture
def backends(package_backend, storage_backend, language_backend):
    return Backends(
        package=package_backend, storage=storage_backend, languages=language_backend
    )
