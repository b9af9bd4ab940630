"""Signal broadcasting from the installer object to connected clients."""

import asyncio
import logging
import threading
from typing import Any, Optional, Sequence

from dinstaller.api.models import BusSignal


class SignalSubscriber:
    """Queue of signals for one connected client, consumed on its event loop."""

    def __init__(
        self,
        broadcaster: "SignalBroadcaster",
        subscriber_id: int,
        loop: asyncio.AbstractEventLoop,
        path: Optional[str] = None,
        interface: Optional[str] = None,
        signal: Optional[str] = None,
    ):
        self.broadcaster = broadcaster
        self.subscriber_id = subscriber_id
        self.loop = loop
        self.path = path
        self.interface = interface
        self.signal = signal
        self.queue: asyncio.Queue = asyncio.Queue()

    def matches(self, message: BusSignal) -> bool:
        return (
            (self.path is None or self.path == message.path)
            and (self.interface is None or self.interface == message.interface)
            and (self.signal is None or self.signal == message.signal)
        )

    async def get(self) -> BusSignal:
        return await self.queue.get()

    def close(self) -> None:
        self.broadcaster.unsubscribe(self.subscriber_id)


class SignalBroadcaster:
    """Fan-out of signals to subscribers.

    ``emit`` may be called from any thread (the installation runs in a worker
    thread). Messages are handed to each subscriber's loop with
    ``call_soon_threadsafe``, which keeps the emission order.
    """

    def __init__(self):
        self.logger = logging.getLogger("dinstaller.signals")
        self._subscribers: dict[int, SignalSubscriber] = {}
        self._next_id = 0
        self._lock = threading.Lock()

    def subscribe(
        self,
        path: Optional[str] = None,
        interface: Optional[str] = None,
        signal: Optional[str] = None,
    ) -> SignalSubscriber:
        """Register a subscriber on the running event loop."""
        loop = asyncio.get_running_loop()
        with self._lock:
            subscriber = SignalSubscriber(
                self, self._next_id, loop, path=path, interface=interface, signal=signal
            )
            self._subscribers[subscriber.subscriber_id] = subscriber
            self._next_id += 1
        self.logger.debug(f"Signal subscriber {subscriber.subscriber_id} connected")
        return subscriber

    def unsubscribe(self, subscriber_id: int) -> None:
        with self._lock:
            removed = self._subscribers.pop(subscriber_id, None)
        if removed is not None:
            self.logger.debug(f"Signal subscriber {subscriber_id} disconnected")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def emit(self, path: str, interface: str, signal: str, args: Sequence[Any] = ()) -> None:
        message = BusSignal(path=path, interface=interface, signal=signal, args=list(args))
        self.logger.debug(f"Emitting {interface}.{signal}{tuple(message.args)}")

        # Hold the lock while queueing so concurrent emitters cannot interleave
        with self._lock:
            subscribers = [s for s in self._subscribers.values() if s.matches(message)]
            closed = []
            for subscriber in subscribers:
                try:
                    subscriber.loop.call_soon_threadsafe(subscriber.queue.put_nowait, message)
                except RuntimeError:
                    closed.append(subscriber.subscriber_id)
            for subscriber_id in closed:
                self.logger.warning(f"Dropping subscriber {subscriber_id}: event loop closed")
                self._subscribers.pop(subscriber_id, None)
