"""Job repository — the crm.jobs table used as the background work queue.

Producers call enqueue(); the worker claims batches with claim_next(), which
uses FOR UPDATE SKIP LOCKED so several workers can poll the same queue.
"""
import logging
from typing import Any, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Job

logger = logging.getLogger(__name__)

ANALYZE_TRANSCRIPT_QUEUE = "analyze-transcript"
ANALYZE_COMMON_PAIN_POINTS_QUEUE = "analyze-common-pain-points"
TRANSCRIBE_QUEUE = "transcribe"

QUEUES = (
    ANALYZE_TRANSCRIPT_QUEUE,
    ANALYZE_COMMON_PAIN_POINTS_QUEUE,
    TRANSCRIBE_QUEUE,
)

ACTIVE_STATUSES = ("queued", "running")


async def find_active(session: AsyncSession, dedup_key: str) -> Optional[Job]:
    """Return the queued or running job holding dedup_key, if any."""
    result = await session.execute(
        select(Job).where(Job.dedup_key == dedup_key, Job.status.in_(ACTIVE_STATUSES))
    )
    return result.scalars().first()


async def enqueue(
    session: AsyncSession,
    queue: str,
    payload: dict[str, Any],
    dedup_key: Optional[str] = None,
) -> Job:
    """Add a job. With dedup_key, an active job with the same key is returned instead."""
    if queue not in QUEUES:
        raise ValueError(f"Unknown queue: {queue!r}")
    if dedup_key:
        existing = await find_active(session, dedup_key)
        if existing is not None:
            logger.info("Job %s already active for %s", existing.id, dedup_key)
            return existing

    job = Job(queue=queue, payload=payload, dedup_key=dedup_key, status="queued", attempts=0)
    session.add(job)
    await session.flush()
    logger.info("Enqueued job %s on %s", job.id, queue)
    return job


async def claim_next(
    session: AsyncSession, queues: Sequence[str], limit: int = 1
) -> list[Job]:
    """Move up to `limit` queued jobs to running, oldest first."""
    candidates = (
        select(Job.id)
        .where(Job.status == "queued", Job.queue.in_(list(queues)))
        .order_by(Job.enqueued_at)
        .limit(limit)
        .with_for_update(skip_locked=True)
    )
    result = await session.execute(
        update(Job)
        .where(Job.id.in_(candidates))
        .values(status="running", attempts=Job.attempts + 1, started_at=func.now())
        .returning(Job),
        execution_options={"populate_existing": True},
    )
    jobs = list(result.scalars().all())
    await session.flush()
    return sorted(jobs, key=lambda j: j.enqueued_at)


async def mark_done(session: AsyncSession, job_id: UUID) -> None:
    await session.execute(
        update(Job)
        .where(Job.id == job_id)
        .values(status="done", error=None, finished_at=func.now())
    )
    await session.flush()


async def mark_failed(session: AsyncSession, job_id: UUID, error: str) -> None:
    await session.execute(
        update(Job)
        .where(Job.id == job_id)
        .values(status="failed", error=error, finished_at=func.now())
    )
    await session.flush()


async def get_job(session: AsyncSession, job_id: UUID) -> Optional[Job]:
    result = await session.execute(select(Job).where(Job.id == job_id))
    return result.scalar_one_or_none()
