"""
Expiry sweeper.

Periodically removes every key whose expiry is before the current time.
A pass takes the same store exclusion as every other mutation, and
passes never overlap each other.
"""

import asyncio
import logging
from contextlib import suppress
from typing import Optional

from core.domain.events import EventBus
from core.domain.exceptions import DomainException
from core.infrastructure.clock import Clock
from core.metrics import keys_swept_total
from keys.application.dto.key_dto import SweepResultDTO
from keys.application.services.key_store_session import KeyStoreSession
from keys.domain.events import ExpiredKeysSwept

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """Background purge of expired keys."""

    def __init__(
        self,
        session: KeyStoreSession,
        clock: Clock,
        event_bus: EventBus,
        interval: float = 60.0,
    ):
        self.session = session
        self.clock = clock
        self.event_bus = event_bus
        self.interval = interval
        self._pass_lock = asyncio.Lock()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, dry_run: bool = False) -> SweepResultDTO:
        """
        Run one sweep pass.

        Args:
            dry_run: Report what would be removed without writing

        Returns:
            SweepResultDTO; ``skipped`` is set when another pass was
            already in progress
        """
        if self._pass_lock.locked():
            logger.info("Expiry sweep already in progress, skipping")
            return SweepResultDTO(
                swept_at=self.clock.now(), removed=0, codes=[], dry_run=dry_run, skipped=True
            )

        async with self._pass_lock:
            async with self.session.mutate() as index:
                now = self.clock.now()
                if dry_run:
                    matched = [record for record in index.records() if record.is_expired(now)]
                else:
                    matched = index.remove_where(lambda record: record.is_expired(now))
                expired = [record.code for record in matched]

        if dry_run:
            logger.info("Expiry sweep (dry run): %d key(s) would be removed", len(expired))
        elif expired:
            keys_swept_total.inc(len(expired))
            logger.info("Expiry sweep removed %d key(s)", len(expired))
            await self.event_bus.publish(ExpiredKeysSwept(codes=expired, occurred_at=now))
        else:
            logger.debug("Expiry sweep found nothing to remove")

        return SweepResultDTO(swept_at=now, removed=len(expired), codes=expired, dry_run=dry_run)

    async def _run_forever(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.run_once()
            except DomainException as e:
                logger.warning("Expiry sweep failed: %s - %s", e.code, e.message)
            except Exception as e:  # pylint: disable=broad-exception-caught
                logger.error("Unexpected error in expiry sweep: %s", e, exc_info=True)

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run_forever())
        logger.info("Expiry sweeper started (every %ss)", self.interval)

    async def stop(self) -> None:
        """Stop the periodic sweep and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Expiry sweeper stopped")
