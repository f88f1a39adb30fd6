"""
Background enrichment - embeds knowledge items that were stored without one.

One run fetches a small batch and processes it sequentially with a short
pause between items, which keeps the embedding provider under its rate
limits. Runs never overlap: a trigger that arrives while a run is in
flight is dropped, not queued.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from app.core.config import settings
from app.core.tracing import get_tracer
from app.shared.correlation import CorrelationContext, generate_correlation_id
from app.shared.errors import StoreQueryError

logger = logging.getLogger("Converse.Knowledge.Scheduler")
tracer = get_tracer(__name__)


class SchedulerState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PROCESSING = "processing"


@dataclass
class EnrichmentRunReport:
    fetched: int = 0
    enriched: int = 0
    failed: int = 0
    skipped: bool = False


class EnrichmentScheduler:
    """
    Recurring batch processor for unenriched knowledge.

    Usage:
        scheduler = EnrichmentScheduler(store, provider)
        scheduler.start()          # in the app lifespan
        ...
        await scheduler.stop()

        report = await scheduler.run_once()   # manual / backfill
    """

    def __init__(
        self,
        store,
        provider,
        batch_size: Optional[int] = None,
        interval: Optional[float] = None,
        startup_delay: Optional[float] = None,
        item_delay: Optional[float] = None,
    ):
        self.store = store
        self.provider = provider
        self.batch_size = batch_size if batch_size is not None else settings.ENRICHMENT_BATCH_SIZE
        self.interval = interval if interval is not None else settings.ENRICHMENT_INTERVAL_SECONDS
        self.startup_delay = (
            startup_delay if startup_delay is not None else settings.ENRICHMENT_STARTUP_DELAY_SECONDS
        )
        self.item_delay = item_delay if item_delay is not None else settings.ENRICHMENT_ITEM_DELAY_SECONDS

        self._run_lock = asyncio.Lock()
        self._state = SchedulerState.IDLE
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> EnrichmentRunReport:
        """Process one batch. Returns immediately with ``skipped=True`` if a run is active."""
        if self._run_lock.locked():
            logger.info("Already processing knowledge items, skipping")
            return EnrichmentRunReport(skipped=True)

        async with self._run_lock:
            with CorrelationContext(f"enrich-{generate_correlation_id()}"):
                with tracer.start_as_current_span("enrichment.run") as span:
                    try:
                        report = await self._run_batch()
                    finally:
                        self._state = SchedulerState.IDLE
                    span.set_attribute("enrichment.fetched", report.fetched)
                    span.set_attribute("enrichment.enriched", report.enriched)
                    span.set_attribute("enrichment.failed", report.failed)
                    return report

    async def _run_batch(self) -> EnrichmentRunReport:
        report = EnrichmentRunReport()

        self._state = SchedulerState.FETCHING
        try:
            items = await self.store.items_needing_enrichment(self.batch_size)
        except StoreQueryError as e:
            logger.error(f"Error fetching pending knowledge: {e}")
            return report

        report.fetched = len(items)
        if not items:
            logger.debug("No pending knowledge items to process")
            return report

        logger.info(f"Processing {len(items)} knowledge items")
        self._state = SchedulerState.PROCESSING

        for index, item in enumerate(items):
            try:
                await self.provider.process_item(self.store, item)
                report.enriched += 1
            except Exception as e:
                # One bad item must not stop the batch
                report.failed += 1
                logger.error(f"Failed to process item {item.id}: {e}")

            if index < len(items) - 1 and self.item_delay > 0:
                await asyncio.sleep(self.item_delay)

        logger.info(
            f"Enrichment batch done: enriched={report.enriched}, failed={report.failed}"
        )
        return report

    # ==================== LIFECYCLE ====================

    async def _loop(self) -> None:
        await asyncio.sleep(self.startup_delay)
        while True:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Background processing error: {e}", exc_info=True)
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Start the recurring loop on the running event loop."""
        if self.is_running:
            logger.warning("Enrichment scheduler already started")
            return
        self._task = asyncio.create_task(self._loop(), name="knowledge-enrichment")
        logger.info(
            f"Enrichment scheduler started (batch_size={self.batch_size}, "
            f"interval={self.interval}s, startup_delay={self.startup_delay}s)"
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Enrichment scheduler stopped")
