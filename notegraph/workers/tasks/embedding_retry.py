"""
Embedding retry sweep Celery task.

Periodic task: process_embedding_retries(limit)
Flow: claim due retry items -> re-run vector sync -> delete, reschedule
or dead-letter each item

Runs on Celery beat without a distributed lock. Overlapping sweeps can
process the same item twice; vector writes are idempotent by chunk ID.

Dependencies: celery, notegraph.dependencies, notegraph.workers
System role: Periodic driver of the embedding retry queue
"""

import asyncio
import logging

from notegraph.observability.log_utils import log_with_context
from notegraph.workers import celery_app

logger = logging.getLogger(__name__)


async def _run_sweep(limit: int | None) -> dict[str, int]:
    # A fresh container per run: each asyncio.run owns its own event loop,
    # and pooled aiosqlite connections cannot cross loops.
    from notegraph.dependencies import ServiceContainer

    container = ServiceContainer()
    try:
        return await container.embedding_sync_coordinator.process_retry_queue(limit)
    finally:
        await container.aclose()


@celery_app.task(bind=True)
def process_embedding_retries(self, limit: int | None = None) -> dict[str, int]:
    """
    Process due embedding retry items.

    Args:
        limit: Maximum items to claim (defaults to EMBEDDING_RETRY_BATCH_SIZE)

    Returns:
        dict: Sweep summary with processed/succeeded/rescheduled/dead_lettered counts
    """
    summary = asyncio.run(_run_sweep(limit))
    log_with_context(
        logger,
        logging.INFO,
        f"{__name__}:process_embedding_retries - Sweep finished",
        task_id=self.request.id,
        **summary,
    )
    return summary
