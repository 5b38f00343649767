"""Job loop: claim queued jobs, dispatch them by queue name, record the outcome.

A failing handler never stops the loop. Its job is marked failed with the
error message and a WorkerRunLog row is written either way.
"""
import asyncio
import logging
import os
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Sequence

import db.repositories.jobs as job_repo
import db.repositories.observability as obs_repo
from db.connection import get_db
from db.models import Job
from workers._payload import payload_uuid
from workers.analyze_transcript import handle_analyze_transcript
from workers.common_pain_points import handle_analyze_common_pain_points
from workers.transcribe import handle_transcribe

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], Awaitable[Optional[dict[str, Any]]]]

HANDLERS: dict[str, Handler] = {
    job_repo.ANALYZE_TRANSCRIPT_QUEUE: handle_analyze_transcript,
    job_repo.ANALYZE_COMMON_PAIN_POINTS_QUEUE: handle_analyze_common_pain_points,
    job_repo.TRANSCRIBE_QUEUE: handle_transcribe,
}


def poll_interval() -> float:
    return float(os.environ.get("WORKER_POLL_INTERVAL", "2"))


def batch_size() -> int:
    return int(os.environ.get("WORKER_BATCH_SIZE", "5"))


async def process_job(job: Job) -> bool:
    """Run one claimed job. Returns True on success."""
    started_at = datetime.now(timezone.utc)
    start = time.monotonic()
    error: Optional[str] = None
    summary: dict[str, Any] = {}

    handler = HANDLERS.get(job.queue)
    try:
        if handler is None:
            raise ValueError(f"Unknown queue: {job.queue}")
        summary = await handler(job.payload) or {}
    except Exception as e:
        error = str(e) or e.__class__.__name__
        logger.warning("Job %s on %s failed: %s", job.id, job.queue, e, exc_info=True)

    duration_ms = int((time.monotonic() - start) * 1000)
    async with get_db() as session:
        if error is None:
            await job_repo.mark_done(session, job.id)
        else:
            await job_repo.mark_failed(session, job.id, error)
        await obs_repo.log_worker_run(
            session,
            job.queue,
            job_id=job.id,
            user_id=payload_uuid(job.payload, "userId"),
            started_at=started_at,
            completed_at=datetime.now(timezone.utc),
            duration_ms=duration_ms,
            success=error is None,
            error_message=error,
            model_used=summary.get("model"),
        )
    logger.info("Job %s on %s finished in %d ms (success=%s)", job.id, job.queue, duration_ms, error is None)
    return error is None


async def run_once(queues: Sequence[str], limit: int) -> int:
    """Claim one batch and process it concurrently. Returns the batch size."""
    async with get_db() as session:
        claimed = await job_repo.claim_next(session, queues, limit)
    if claimed:
        await asyncio.gather(*(process_job(job) for job in claimed))
    return len(claimed)


async def run_worker(
    queues: Sequence[str] = job_repo.QUEUES,
    poll_interval_s: Optional[float] = None,
    limit: Optional[int] = None,
    once: bool = False,
) -> int:
    """Poll the queues until cancelled (or, with once=True, for a single batch).

    Returns the number of jobs processed.
    """
    interval = poll_interval() if poll_interval_s is None else poll_interval_s
    limit = limit or batch_size()
    logger.info("Worker polling %s every %.1fs (batch %d)", ", ".join(queues), interval, limit)

    processed = 0
    while True:
        try:
            count = await run_once(queues, limit)
        except Exception as e:
            logger.warning("Worker poll failed: %s", e, exc_info=True)
            count = 0
        processed += count
        if once:
            return processed
        if not count:
            await asyncio.sleep(interval)
