"""Installer client facade used by front ends.

Combines session authentication, status watching, option access and the
domain queries (products, languages, disks, storage proposal).

Example:
    >>> client = InstallerClient.from_settings(get_settings())
    >>> await client.authorize("linux", "password")
    >>> products = await client.get_products()
    >>> handle = client.on_status_changed(lambda status: print(status))
    >>> await handle.wait_ready()
    >>> await client.start_installation()
"""

import logging
from typing import Any, Optional

from dinstaller.client.auth import SessionAuthenticator
from dinstaller.client.bus import BusConnection, HttpBusConnection, Subscription
from dinstaller.client.remote import RemoteObject
from dinstaller.client.status import StatusHandler, StatusWatcher
from dinstaller.models.domain import Disk, Language, MountAssignment, Product
from dinstaller.settings import Settings


class InstallerClient:
    """Front end access to the installer object."""

    def __init__(self, bus: BusConnection, auth: SessionAuthenticator, remote: Optional[RemoteObject] = None):
        self.logger = logging.getLogger("dinstaller.client")
        self.bus = bus
        self.auth = auth
        self.remote = remote or RemoteObject(bus)
        self.status = StatusWatcher(self.remote)

    @classmethod
    def from_settings(cls, settings: Settings) -> "InstallerClient":
        bus = HttpBusConnection(settings.bus_url, timeout=settings.request_timeout)
        auth = SessionAuthenticator(
            settings.gateway_url,
            login_path=settings.login_path,
            timeout=settings.request_timeout,
        )
        remote = RemoteObject(bus, path=settings.object_path, interface=settings.interface)
        return cls(bus, auth, remote=remote)

    # Session

    async def authorize(self, username: str, secret: str) -> None:
        await self.auth.authorize(username, secret)

    async def is_logged_in(self) -> bool:
        return await self.auth.is_logged_in()

    async def current_user(self) -> str:
        return await self.auth.current_user()

    # Status

    async def get_status(self) -> int:
        return await self.status.get_status()

    def on_status_changed(self, handler: StatusHandler) -> Subscription:
        return self.status.on_status_changed(handler)

    # Options

    async def get_option(self, name: str) -> Optional[Any]:
        return await self.remote.get_option(name)

    async def set_option(self, name: str, value: Any) -> None:
        await self.remote.set_option(name, value)

    # Domain queries

    async def get_products(self) -> list[Product]:
        reply = await self.remote.call("GetProducts")
        return [Product(**product) for product in reply[0]]

    async def get_languages(self) -> list[Language]:
        """Project the ``code -> (native name, ...)`` mapping to ``{id, name}``."""
        reply = await self.remote.call("GetLanguages")
        return [Language(id=code, name=fields[0]) for code, fields in reply[0].items()]

    async def get_disks(self) -> list[Disk]:
        reply = await self.remote.call("GetDisks")
        return [Disk(**disk) for disk in reply[0]]

    async def get_storage(self) -> list[MountAssignment]:
        """Storage proposal, in plan order."""
        reply = await self.remote.call("GetStorage")
        return [MountAssignment(**entry) for entry in reply[0]]

    async def start_installation(self) -> None:
        """Ask the installer to start. Progress is observed via status changes."""
        await self.remote.call("Start")
        self.logger.info("Installation requested")

    async def close(self) -> None:
        close_bus = getattr(self.bus, "close", None)
        if close_bus is not None:
            await close_bus()
        await self.auth.close()
