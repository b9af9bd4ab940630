"""Bus connection used by the installer client.

``BusConnection`` is the boundary to the message bus: method calls on an
object/interface pair plus signal subscriptions. ``HttpBusConnection`` speaks
to the installer service's HTTP bridge (``/api/v1.0/bus/*``) with httpx.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence

import httpx

from dinstaller.errors import TransportError


# handler(path, interface, signal, args)
SignalHandler = Callable[[str, str, str, list], None]


class Subscription:
    """Handle returned by signal subscriptions.

    ``cancel()`` stops delivery of later signals and may be called any
    number of times. ``wait_ready()`` resolves once signals are delivered;
    signals emitted before that may be missed.
    """

    def __init__(
        self,
        on_cancel: Optional[Callable[[], None]] = None,
        ready: Optional[Callable[[], Awaitable[bool]]] = None,
    ):
        self._on_cancel = on_cancel
        self._ready = ready
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    async def wait_ready(self) -> bool:
        """Wait until the subscription delivers signals.

        Returns:
            False if delivery could not be set up or the handle was cancelled
        """
        if self._ready is not None and not await self._ready():
            return False
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._on_cancel is not None:
            self._on_cancel()


class _StreamReady:
    """Connection outcome of one signal stream, settled once."""

    def __init__(self):
        self._settled = asyncio.Event()
        self.connected = False

    def settle(self, connected: bool) -> None:
        if self._settled.is_set():
            return
        self.connected = connected
        self._settled.set()

    async def wait(self) -> bool:
        await self._settled.wait()
        return self.connected


class BusConnection(Protocol):
    """Minimal message bus client."""

    async def call(
        self, path: str, interface: str, method: str, args: Sequence[Any] = ()
    ) -> list:
        """Invoke ``interface.method`` on ``path`` and return the reply values."""
        ...

    def subscribe(
        self, path: str, interface: str, signal: str, handler: SignalHandler
    ) -> Subscription:
        """Deliver every ``interface.signal`` emitted by ``path`` to ``handler``."""
        ...


class HttpBusConnection:
    """Bus connection over the installer service HTTP bridge."""

    def __init__(
        self,
        base_url: str = "http://localhost:12316",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the connection.

        Args:
            base_url: Installer service base URL
            timeout: Timeout for method calls (signal streams never time out)
            client: Pre-built httpx client (tests, custom transports)
        """
        self.logger = logging.getLogger("dinstaller.client.bus")
        self.base_url = base_url
        self.call_endpoint = "/api/v1.0/bus/call"
        self.signals_endpoint = "/api/v1.0/bus/signals"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._listeners: set[asyncio.Task] = set()

    async def call(
        self, path: str, interface: str, method: str, args: Sequence[Any] = ()
    ) -> list:
        """Single POST per call. No retries: installer methods must not run twice.

        Raises:
            TransportError: On HTTP failures or an error reply
        """
        payload = {"path": path, "interface": interface, "method": method, "args": list(args)}
        self.logger.debug(f"Calling {interface}.{method} on {path}")

        try:
            response = await self._client.post(self.call_endpoint, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise TransportError(f"{interface}.{method} failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"{interface}.{method} returned invalid JSON: {e}") from e

        code = body.get("code")
        if code != 200:
            raise TransportError(body.get("msg") or f"{interface}.{method} failed", code=code)

        data = body.get("data") or {}
        return data.get("reply", [])

    def subscribe(
        self, path: str, interface: str, signal: str, handler: SignalHandler
    ) -> Subscription:
        """Open a signal stream in a background task of the running loop.

        The server registers the stream before sending response headers, so
        once ``wait_ready()`` returns True no later signal is missed.
        """
        task: Optional[asyncio.Task] = None
        ready = _StreamReady()

        def stop() -> None:
            ready.settle(False)
            if task is not None:
                task.cancel()

        subscription = Subscription(on_cancel=stop, ready=ready.wait)
        task = asyncio.get_running_loop().create_task(
            self._listen(path, interface, signal, handler, subscription, ready)
        )
        self._listeners.add(task)
        task.add_done_callback(self._listeners.discard)
        return subscription

    async def _listen(
        self,
        path: str,
        interface: str,
        signal: str,
        handler: SignalHandler,
        subscription: Subscription,
        ready: _StreamReady,
    ) -> None:
        params = {"path": path, "interface": interface, "signal": signal}
        try:
            async with self._client.stream(
                "GET", self.signals_endpoint, params=params, timeout=None
            ) as response:
                response.raise_for_status()
                ready.settle(True)
                async for line in response.aiter_lines():
                    if not subscription.active:
                        break
                    if not line.strip():
                        continue
                    self._dispatch(line, handler)
        except httpx.HTTPError as e:
            # Reconnection belongs to whoever owns the connection
            self.logger.warning(f"Signal stream {interface}.{signal} closed: {e}")
        finally:
            ready.settle(False)

    def _dispatch(self, line: str, handler: SignalHandler) -> None:
        try:
            message = json.loads(line)
            handler(
                message["path"],
                message["interface"],
                message["signal"],
                message.get("args", []),
            )
        except Exception as e:
            self.logger.error(f"Failed to deliver signal {line!r}: {e}", exc_info=True)

    async def close(self) -> None:
        """Stop all signal streams and release the HTTP client."""
        listeners = list(self._listeners)
        for task in listeners:
            task.cancel()
        await asyncio.gather(*listeners, return_exceptions=True)
        if self._owns_client:
            await self._client.aclose()
