"""Remote object client: method calls and typed options on the installer object."""

import logging
from typing import Any, Optional

from dinstaller.client.bus import BusConnection, SignalHandler, Subscription
from dinstaller.settings import DBUS_IFACE, DBUS_PATH, PROPERTIES_IFACE
from dinstaller.utils.variant import Variant, decode, encode


class RemoteObject:
    """Client for a fixed object path / interface pair on the bus."""

    def __init__(
        self,
        bus: BusConnection,
        path: str = DBUS_PATH,
        interface: str = DBUS_IFACE,
    ):
        self.logger = logging.getLogger("dinstaller.client.remote")
        self.bus = bus
        self.path = path
        self.interface = interface

    async def call(self, method: str, *args: Any) -> list:
        """Invoke a method on the installer interface.

        Transport failures propagate unchanged; the call is never retried.
        """
        return await self.bus.call(self.path, self.interface, method, args)

    async def get_option(self, name: str) -> Optional[Any]:
        """Read and decode an option.

        Returns:
            The decoded value, or None when the option cannot be read
        """
        try:
            reply = await self.bus.call(
                self.path, PROPERTIES_IFACE, "Get", [self.interface, name]
            )
            variant = Variant.from_wire(reply[0])
            return decode(variant.tag, variant.value)
        except Exception as e:
            self.logger.error(f'Error getting option "{name}": {e}', exc_info=True)
            return None

    async def set_option(self, name: str, value: Any) -> None:
        """Encode and write an option. Failures propagate to the caller."""
        variant = encode(value)
        await self.bus.call(
            self.path,
            PROPERTIES_IFACE,
            "Set",
            [self.interface, name, variant.to_wire()],
        )
        self.logger.debug(f"Option {name} set to {value!r}")

    def on_signal(self, signal: str, handler: SignalHandler) -> Subscription:
        """Subscribe to a raw signal of the installer interface."""
        return self.bus.subscribe(self.path, self.interface, signal, handler)
