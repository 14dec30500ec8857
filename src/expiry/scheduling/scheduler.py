"""Expiry scheduler: one loop, one wake signal, any ordered table.

The loop always re-derives the earliest pending expiry from the time index,
fires it if due, and otherwise sleeps on a single ``asyncio.Event`` for the
remaining duration. ``schedule`` and ``cancel`` set the event whenever the
earliest pending expiry changes, which cuts the sleep short. After every
wake (timeout or signal) the event is replaced and the decision logic runs
again from the top.
"""

import asyncio
import logging
from collections.abc import Iterator
from typing import Any

from expiry.errors import NotFoundError
from expiry.scheduling.index import KeyIndex, TimeIndex
from expiry.scheduling.types import ExpireCallback, When, resolve_when
from expiry.stores.protocols import OrderedTable, Table
from expiry.timestamps import Timestamp

logger = logging.getLogger(__name__)

DEFAULT_RENEWAL_INTERVAL = 3.0


class ExpiryScheduler:
    """Fires a callback and removes data when keys reach their expiry time.

    Example:
        data = {}
        scheduler = ExpiryScheduler(SortedTable(), {}, data=data)
        await scheduler.start()

        data["session"] = "token"
        scheduler.schedule("session", timedelta(minutes=20))

    Args:
        t2k: Ordered table backing the time index. Owned by the caller.
        k2t: Table backing the key index. Owned by the caller.
        data: Optional data table; expired keys are deleted from it.
        on_expire: Optional callback invoked as ``on_expire(time, key)``.
        renewal_interval: Seconds between re-checks while nothing is
            pending, so entries inserted by other processes are noticed.
        max_wait: Optional cap in seconds on any single wait.
    """

    def __init__(
        self,
        t2k: OrderedTable[Any, Any],
        k2t: Table[Any, Any],
        data: Table[Any, Any] | None = None,
        on_expire: ExpireCallback | None = None,
        renewal_interval: float = DEFAULT_RENEWAL_INTERVAL,
        max_wait: float | None = None,
    ):
        if renewal_interval <= 0:
            raise ValueError("renewal_interval must be positive")
        if max_wait is not None and max_wait <= 0:
            raise ValueError("max_wait must be positive")
        self._times = TimeIndex(t2k)
        self._keys = KeyIndex(k2t)
        self._data = data
        self._on_expire = on_expire
        self._renewal_interval = renewal_interval
        self._max_wait = max_wait
        self._wake = asyncio.Event()
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._fired = 0
        # Key whose callback is running, and whether it re-registered itself
        self._firing: str | None = None
        self._refreshed = False

    @property
    def data(self) -> Table[Any, Any] | None:
        return self._data

    @property
    def renewal_interval(self) -> float:
        return self._renewal_interval

    @property
    def running(self) -> bool:
        return self._running

    @property
    def fired(self) -> int:
        """Number of expiries fired since construction."""
        return self._fired

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def schedule(self, key: str, when: When) -> Timestamp:
        """Register or reschedule ``key`` to expire at ``when``.

        ``when`` is absolute (Timestamp, datetime) or relative (timedelta,
        seconds from now). Rescheduling replaces the previous expiry.

        Returns:
            The absolute expiry time recorded.
        """
        at = resolve_when(when)
        head = self._times.peek()
        retrigger = head is None or at < head[0]

        previous = self._pending_time(key)
        if previous is not None and head == (previous, key):
            retrigger = True

        # New records first; the stale one goes only once both writes landed
        self._times.add(at, key)
        try:
            self._keys.set(key, at)
        except BaseException:
            if at != previous:
                self._times.discard(at, key)
            raise
        if previous is not None and previous != at:
            self._times.discard(previous, key)
        if key == self._firing:
            self._refreshed = True

        logger.debug(
            "expiry_scheduled",
            extra={
                "expiry.key": key,
                "expiry.time": str(at),
                "expiry.rescheduled": previous is not None,
            },
        )
        if retrigger:
            self._wake.set()
        return at

    expire = schedule

    def cancel(self, key: str) -> Timestamp:
        """Remove the pending expiry for ``key``.

        Returns:
            The expiry time that was cancelled.

        Raises:
            NotFoundError: If ``key`` has no pending expiry.
        """
        at = self._keys.get(key)
        head = self._times.peek()
        retrigger = head is not None and head[0] == at

        self._times.discard(at, key)
        self._keys.discard(key)

        logger.debug(
            "expiry_cancelled", extra={"expiry.key": key, "expiry.time": str(at)}
        )
        if retrigger:
            self._wake.set()
        return at

    def cancel_at(self, when: Timestamp) -> list[str]:
        """Cancel every key whose expiry is exactly ``when``.

        Returns:
            The keys that were cancelled.
        """
        keys: list[str] = []
        for at, key in self._times:
            if at > when:
                break
            if at == when:
                keys.append(key)
        for key in keys:
            self.cancel(key)
        return keys

    def __setitem__(self, key: str, when: When) -> None:
        self.schedule(key, when)

    def __delitem__(self, key: str) -> None:
        self.cancel(key)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def expires_at(self, key: str) -> Timestamp:
        """Return the pending expiry time of ``key``.

        Raises:
            NotFoundError: If ``key`` has no pending expiry.
        """
        return self._keys.get(key)

    def next_expiry(self) -> tuple[Timestamp, str] | None:
        return self._times.peek()

    def pending(self) -> Iterator[tuple[Timestamp, str]]:
        """Iterate pending ``(time, key)`` pairs in firing order."""
        return iter(self._times)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._times)

    def get_stats(self) -> dict[str, Any]:
        head = self._times.peek()
        return {
            "pending": len(self._times),
            "next_expiry": head[0].isoformat() if head else None,
            "next_key": head[1] if head else None,
            "fired": self._fired,
            "renewal_interval": self._renewal_interval,
            "running": self._running,
        }

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def process(self) -> None:
        """Run the expiry loop until cancelled.

        Store errors other than NotFoundError propagate and end the loop.
        """
        while True:
            now = Timestamp.now()
            head = self._times.peek()
            if head is None:
                await self._wait(self._renewal_interval)
                continue

            at, key = head
            if at <= now:
                self._fire(at, key)
                continue

            await self._wait(now.seconds_until(at))

    async def start(self) -> None:
        """Run ``process`` in a background task."""
        if self._running:
            return
        self._running = True
        logger.info(
            "expiry_scheduler_started",
            extra={
                "expiry.pending": len(self._times),
                "expiry.renewal_interval": self._renewal_interval,
            },
        )
        self._task = asyncio.create_task(self.process(), name="expiry_scheduler")
        self._task.add_done_callback(self._handle_task_done)

    async def join(self) -> None:
        """Wait for the background task; re-raises the error that ended it."""
        if self._task is not None:
            await self._task

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("expiry_scheduler_stopped", extra={"expiry.fired": self._fired})

    def _handle_task_done(self, task: asyncio.Task[None]) -> None:
        self._running = False
        if not task.cancelled() and (exc := task.exception()):
            logger.error(
                "expiry_loop_failed",
                extra={"error.message": str(exc)},
                exc_info=exc,
            )

    async def _wait(self, timeout: float) -> None:
        if self._max_wait is not None:
            timeout = min(timeout, self._max_wait)
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=max(timeout, 0))
        except TimeoutError:
            pass
        # Single-use: always replace after resolution
        self._wake = asyncio.Event()

    def _fire(self, at: Timestamp, key: str) -> None:
        logger.debug("expiry_fired", extra={"expiry.key": key, "expiry.time": str(at)})
        self._refreshed = False
        if self._on_expire is not None:
            self._firing = key
            try:
                self._on_expire(at, key)
            except Exception as e:
                logger.exception(
                    "expiry_callback_error",
                    extra={"expiry.key": key, "error.message": str(e)},
                )
            finally:
                self._firing = None
        self._fired += 1

        # The callback re-registered the key (possibly for this same time);
        # schedule already replaced the fired record, so leave it all alone
        if self._refreshed:
            return
        self._times.discard(at, key)
        self._keys.discard(key)
        if self._data is not None:
            try:
                del self._data[key]
            except KeyError:
                pass

    def _pending_time(self, key: str) -> Timestamp | None:
        try:
            return self._keys.get(key)
        except NotFoundError:
            return None


def new_scheduler(
    data: Table[Any, Any] | None,
    t2k: OrderedTable[Any, Any],
    k2t: Table[Any, Any],
    on_expire: ExpireCallback | None = None,
    renewal_interval: float = DEFAULT_RENEWAL_INTERVAL,
    **kwargs: Any,
) -> ExpiryScheduler:
    """Build a scheduler with the data store first."""
    return ExpiryScheduler(
        t2k,
        k2t,
        data=data,
        on_expire=on_expire,
        renewal_interval=renewal_interval,
        **kwargs,
    )
