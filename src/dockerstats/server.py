"""HTTP endpoint serving the latest container stats.

Exposes ``GET /stats`` backed by a short-lived response cache so that
frequent polling does not trigger a full collection per request.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import AsyncIterator, Callable

from aiohttp import web

from dockerstats.common.config import Settings
from dockerstats.docker_handler import DockerHandlerError
from dockerstats.exporter import Exporter
from dockerstats.models import StatsResponse

logger = logging.getLogger(__name__)

STATS_ROUTE = "/stats"


class StatsCache:
    """Caches successful ``/stats`` responses for a fixed TTL.

    Concurrent requests that miss the cache share a single collection.
    Failed collections are never cached.

    Parameters
    ----------
    exporter : Exporter
        Collection engine to call on a miss.
    ttl_seconds : float
        Lifetime of a cached response; 0 disables caching.
    clock : callable
        Monotonic time source.
    """

    def __init__(
        self,
        exporter: Exporter,
        ttl_seconds: float = 4.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.exporter = exporter
        self.ttl = ttl_seconds
        self._clock = clock
        self._lock = asyncio.Lock()
        self._cached: StatsResponse | None = None
        self._expires_at = 0.0

    async def get(self) -> tuple[StatsResponse, int]:
        """Return the response body and HTTP status."""
        async with self._lock:
            if self._cached is not None and self._clock() < self._expires_at:
                return self._cached, 200

            try:
                entries = await self.exporter.list()
            except DockerHandlerError as e:
                logger.error(f"Failed to collect container stats: {e}")
                return StatsResponse(msg=str(e)), 500

            response = StatsResponse(stats=entries)
            if self.ttl > 0:
                self._cached = response
                self._expires_at = self._clock() + self.ttl
            return response, 200


EXPORTER_KEY = web.AppKey("exporter", Exporter)
CACHE_KEY = web.AppKey("stats_cache", StatsCache)


async def handle_stats(request: web.Request) -> web.Response:
    """Serve the cached or freshly collected stats batch."""
    response, status = await request.app[CACHE_KEY].get()
    return web.Response(
        text=response.model_dump_json(),
        status=status,
        content_type="application/json",
    )


async def _watcher_ctx(app: web.Application) -> AsyncIterator[None]:
    exporter = app[EXPORTER_KEY]
    task = asyncio.create_task(exporter.watch())
    yield
    exporter.watcher.stop()
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
    await exporter.close()


async def create_app(
    settings: Settings | None = None, exporter: Exporter | None = None
) -> web.Application:
    """Build the aiohttp application.

    Parameters
    ----------
    settings : Settings, optional
        Configuration (default: loaded from the environment).
    exporter : Exporter, optional
        Collection engine; built from ``settings`` when omitted.

    Returns
    -------
    web.Application
        Application with the stats route and the event watcher wired in.
    """
    settings = settings or Settings()
    exporter = exporter or Exporter(settings)

    app = web.Application()
    app[EXPORTER_KEY] = exporter
    app[CACHE_KEY] = StatsCache(exporter, ttl_seconds=settings.server.cache_ttl_seconds)
    app.router.add_get(STATS_ROUTE, handle_stats)
    app.cleanup_ctx.append(_watcher_ctx)
    return app


def run_server(settings: Settings) -> None:
    """Serve ``/stats`` until interrupted."""
    logger.info(
        f"Starting dockerstats server at "
        f"http://{settings.server.server_host}:{settings.server.server_port}{STATS_ROUTE}"
    )
    web.run_app(
        create_app(settings),
        host=settings.server.server_host,
        port=settings.server.server_port,
        print=None,
    )
