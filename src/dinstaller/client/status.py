"""Installer status queries and status change subscriptions."""

import logging
import threading
from typing import Callable, Optional

from dinstaller.client.bus import Subscription
from dinstaller.client.remote import RemoteObject
from dinstaller.models.status import is_installing


StatusHandler = Callable[[int], None]


class StatusWatcher:
    """Single source of the "installing / idle" state for the front end.

    All handlers share one bus subscription, opened with the first handler
    and closed with the last one. Handlers are called in registration order
    for every ``StatusChanged`` signal, in the order the signals arrive.
    """

    SIGNAL = "StatusChanged"

    def __init__(self, remote: RemoteObject):
        self.logger = logging.getLogger("dinstaller.client.status")
        self.remote = remote
        self._handlers: dict[int, StatusHandler] = {}
        self._next_id = 0
        self._bus_subscription: Optional[Subscription] = None
        # Signals may be delivered from another thread than the one registering
        self._lock = threading.Lock()

    async def get_status(self) -> int:
        """Current status code (first element of the GetStatus reply)."""
        reply = await self.remote.call("GetStatus")
        return int(reply[0])

    async def is_installing(self) -> bool:
        return is_installing(await self.get_status())

    def on_status_changed(self, handler: StatusHandler) -> Subscription:
        """Register ``handler(new_status)`` until the returned handle is cancelled.

        Await ``wait_ready()`` on the handle before triggering a change that
        must be observed.
        """
        with self._lock:
            handler_id = self._next_id
            self._next_id += 1
            self._handlers[handler_id] = handler
            if self._bus_subscription is None:
                self._bus_subscription = self.remote.on_signal(self.SIGNAL, self._on_signal)
            bus_subscription = self._bus_subscription

        return Subscription(
            on_cancel=lambda: self._remove(handler_id), ready=bus_subscription.wait_ready
        )

    def _remove(self, handler_id: int) -> None:
        with self._lock:
            self._handlers.pop(handler_id, None)
            if self._handlers or self._bus_subscription is None:
                return
            bus_subscription = self._bus_subscription
            self._bus_subscription = None
        bus_subscription.cancel()

    def _on_signal(self, path: str, interface: str, signal: str, args: list) -> None:
        status = int(args[0])
        self.logger.debug(f"Installer status changed to {status}")

        with self._lock:
            handlers = list(self._handlers.items())

        for handler_id, handler in handlers:
            # Skip handlers deregistered by an earlier handler of this round
            if handler_id not in self._handlers:
                continue
            try:
                handler(status)
            except Exception as e:
                self.logger.error(f"Status handler failed for status {status}: {e}", exc_info=True)
