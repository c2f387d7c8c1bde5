"""Daily re-indexing of every catalog.

The scheduler runs as a background task inside the FastAPI process, started
and stopped by the application lifespan. A failed run is logged and the
loop simply waits for the next tick; nothing is retried.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from catalogs_api.core.clock import Clock, utc_now
from catalogs_api.core.config import INDEX_INTERVAL_SECONDS
from catalogs_api.services.catalogs import index_all_catalogs

logger = logging.getLogger(__name__)
SCHEDULER_PREFIX = "[INDEX_SCHEDULER]"


class IndexScheduler:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        interval_seconds: float = INDEX_INTERVAL_SECONDS,
        clock: Clock = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._interval = interval_seconds
        self._clock = clock
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("%s started interval_seconds=%s", SCHEDULER_PREFIX, self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("%s stopped", SCHEDULER_PREFIX)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await asyncio.to_thread(self.run_once)

    def run_once(self) -> Optional[int]:
        """Index everything once; returns the number of catalogs stamped, or ``None`` on failure."""
        db = self._session_factory()
        try:
            indexed = index_all_catalogs(db, clock=self._clock)
        except Exception:
            logger.exception("%s scheduled reindex failed", SCHEDULER_PREFIX)
            return None
        finally:
            db.close()

        logger.info("%s scheduled reindex completed indexed=%s", SCHEDULER_PREFIX, indexed)
        return indexed
