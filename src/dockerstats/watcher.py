"""Background watcher that keeps the Docker runtime handle alive.

The watcher holds a subscription to the daemon's container events. The
events themselves are not used; the subscription exists to notice when the
daemon connection drops so the shared handle can be rebuilt before the next
collection needs it.
"""

import asyncio
import contextlib
import logging

from dockerstats.docker_handler import (
    DockerHandlerError,
    DockerRuntime,
    EventStreamClosedError,
    RuntimeHandle,
)
from dockerstats.docker_handler.client import CONTAINER_EVENTS_FILTER

logger = logging.getLogger(__name__)


class Watcher:
    """Resubscribes to Docker container events for the lifetime of the process.

    Parameters
    ----------
    handle : RuntimeHandle
        Shared Docker runtime handle; the watcher rebuilds it on a dropped stream.
    backoff_seconds : float
        Wait after rebuilding the handle (default: 0.25).
    resubscribe_delay_seconds : float
        Wait before resubscribing on the same handle after other errors
        (default: 0.25).
    stop_event : asyncio.Event, optional
        Stop token. Nothing sets it unless ``stop()`` is called, so by default
        ``run()`` never returns.
    """

    def __init__(
        self,
        handle: RuntimeHandle,
        backoff_seconds: float = 0.25,
        resubscribe_delay_seconds: float = 0.25,
        stop_event: asyncio.Event | None = None,
    ):
        self.handle = handle
        self.backoff = backoff_seconds
        self.resubscribe_delay = resubscribe_delay_seconds
        self._stop = stop_event or asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Ask ``run()`` to return at its next opportunity."""
        self._stop.set()

    async def run(self) -> None:
        """Watch container events until stopped."""
        logger.info("EVENT[WATCH]: Containers")

        while not self._stop.is_set():
            runtime = self.handle.current
            try:
                finished = await self._watch_once(runtime)
                if not finished:
                    break
                # A drained stream is an end-of-stream from the daemon
                logger.warning("Watch event error: Docker event stream ended")
                unexpected_close = True
            except EventStreamClosedError as e:
                logger.warning(f"Watch event error: {e}")
                unexpected_close = True
            except DockerHandlerError as e:
                logger.warning(f"Watch event error: {e}")
                unexpected_close = False

            if unexpected_close:
                try:
                    self.handle.reconnect(failed=runtime)
                except DockerHandlerError as e:
                    logger.warning(f"Failed to rebuild Docker runtime: {e}")
                await self._sleep(self.backoff)
            else:
                await self._sleep(self.resubscribe_delay)

        logger.info("Stopped watching Docker container events")

    async def _watch_once(self, runtime: DockerRuntime) -> bool:
        """Drain one subscription. Returns False if stopped while draining."""
        drain = asyncio.ensure_future(self._drain(runtime))
        stop = asyncio.ensure_future(self._stop.wait())
        try:
            done, _ = await asyncio.wait({drain, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (drain, stop):
                if not task.done():
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task

        if drain in done:
            drain.result()
            return True
        return False

    async def _drain(self, runtime: DockerRuntime) -> None:
        async for event in runtime.subscribe_events(CONTAINER_EVENTS_FILTER):
            logger.debug(
                f"Container event: {event.get('Action', event.get('status', '?'))} "
                f"{(event.get('id') or '')[:12]}"
            )

    async def _sleep(self, seconds: float) -> None:
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
