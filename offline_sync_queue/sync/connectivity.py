"""
Connectivity monitoring.

The monitor holds the current online/offline state and notifies
subscribers when the client comes back online. Notifications are
debounced: a transition back to offline inside the debounce window
cancels the pending notification, so a flapping link yields at most one
"became online" event once it settles.

The probe is an optional signal source that periodically checks name
resolution of a well-known host and feeds the result into a monitor.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..utils import call_hook

logger = logging.getLogger(__name__)

OnlineCallback = Callable[[], Awaitable[None] | None]
ChangeCallback = Callable[[bool], Awaitable[None] | None]


class ConnectivityMonitor:
    """Tracks online state and fires debounced "became online" notifications.

    Example:
        >>> monitor = ConnectivityMonitor(initially_online=False, debounce_s=1.0)
        >>> unsubscribe = monitor.on_become_online(service.sync_now)
        >>> monitor.set_online(True)  # sync_now runs once, one second later
    """

    def __init__(self, initially_online: bool = True, debounce_s: float = 1.0) -> None:
        """Initialize the monitor.

        Args:
            initially_online: State before the first signal arrives
            debounce_s: Seconds the link must stay online before subscribers run
        """
        if debounce_s < 0:
            raise ValueError(f"debounce_s must be >= 0, got {debounce_s}")

        self._online = initially_online
        self.debounce_s = debounce_s
        self._online_callbacks: list[OnlineCallback] = []
        self._change_callbacks: list[ChangeCallback] = []
        self._pending: asyncio.Task[None] | None = None
        self._change_tasks: set[asyncio.Task[bool]] = set()

    @property
    def is_online(self) -> bool:
        """Current connectivity state."""
        return self._online

    def on_become_online(self, callback: OnlineCallback) -> Callable[[], None]:
        """Subscribe to offline→online transitions.

        Args:
            callback: Called with no arguments; may be a coroutine function

        Returns:
            A function that removes the subscription
        """
        self._online_callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._online_callbacks:
                self._online_callbacks.remove(callback)

        return unsubscribe

    def on_change(self, callback: ChangeCallback) -> Callable[[], None]:
        """Subscribe to every state change; called with the new state.

        Returns:
            A function that removes the subscription
        """
        self._change_callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._change_callbacks:
                self._change_callbacks.remove(callback)

        return unsubscribe

    def set_online(self, online: bool) -> None:
        """Feed a connectivity signal.

        Must be called from within a running event loop when subscribers
        are registered.
        """
        if online == self._online:
            return

        self._online = online
        logger.info("Back online" if online else "Gone offline")

        for callback in list(self._change_callbacks):
            task = asyncio.get_running_loop().create_task(call_hook(callback, online))
            self._change_tasks.add(task)
            task.add_done_callback(self._change_tasks.discard)

        if online:
            self._schedule_notification()
        else:
            self._cancel_pending()

    def _schedule_notification(self) -> None:
        self._cancel_pending()
        if not self._online_callbacks:
            return
        self._pending = asyncio.get_running_loop().create_task(self._notify_after_debounce())

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
            logger.debug("Pending online notification cancelled")
        self._pending = None

    async def _notify_after_debounce(self) -> None:
        if self.debounce_s:
            await asyncio.sleep(self.debounce_s)
        if not self._online:
            return
        for callback in list(self._online_callbacks):
            await call_hook(callback)

    async def wait_for_notifications(self) -> None:
        """Wait until any scheduled notification and change callbacks have run."""
        pending = self._pending
        if pending is not None:
            try:
                await pending
            except asyncio.CancelledError:
                pass
        if self._change_tasks:
            await asyncio.gather(*self._change_tasks, return_exceptions=True)

    async def close(self) -> None:
        """Cancel pending notifications and drop all subscribers."""
        self._cancel_pending()
        self._online_callbacks.clear()
        self._change_callbacks.clear()


class ConnectivityProbe:
    """Periodically checks connectivity and reports it to a monitor.

    The check is a DNS resolution of ``host`` bounded by ``timeout_s``.
    """

    def __init__(
        self,
        monitor: ConnectivityMonitor,
        host: str = "dns.google",
        timeout_s: float = 5.0,
        interval_s: float = 15.0,
    ) -> None:
        """Initialize the probe.

        Args:
            monitor: Monitor receiving the results
            host: Host name whose resolution signals connectivity
            timeout_s: Seconds before a lookup counts as offline
            interval_s: Seconds between checks
        """
        self.monitor = monitor
        self.host = host
        self.timeout_s = timeout_s
        self.interval_s = interval_s
        self._task: asyncio.Task[None] | None = None

    async def check(self) -> bool:
        """Run one check and report it to the monitor.

        Returns:
            True if online, False otherwise
        """
        loop = asyncio.get_running_loop()
        try:
            await asyncio.wait_for(loop.getaddrinfo(self.host, None), timeout=self.timeout_s)
            online = True
        except (OSError, asyncio.TimeoutError):
            online = False

        self.monitor.set_online(online)
        return online

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start checking in the background."""
        if self.running:
            return

        async def probe_loop() -> None:
            while True:
                try:
                    await self.check()
                    await asyncio.sleep(self.interval_s)
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.error(f"Connectivity probe error: {e}")
                    await asyncio.sleep(self.interval_s)

        self._task = asyncio.create_task(probe_loop())

    async def stop(self) -> None:
        """Stop background checking."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
