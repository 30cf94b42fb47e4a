"""Background sweep for expired session ids."""

import asyncio
import logging

from cafe.services.session.service import SessionRegistry

logger = logging.getLogger(__name__)


class SessionCleanupWorker:
    """Runs ``cleanup_expired_sessions`` on a fixed interval.

    Failures are logged and the loop keeps going; only ``stop`` ends it.
    """

    def __init__(self, registry: SessionRegistry, interval_seconds: float) -> None:
        self._registry = registry
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        try:
            return await self._registry.cleanup_expired_sessions()
        except Exception as e:
            logger.error(f"[SESSION] Cleanup sweep failed: {e}")
            return 0

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.run_once()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info(f"[SESSION] Cleanup worker started (every {self._interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
