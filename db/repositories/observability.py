"""Observability repository — worker run logging."""
import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from db.models import WorkerRunLog

logger = logging.getLogger(__name__)


async def log_worker_run(
    session: AsyncSession,
    queue: str,
    *,
    job_id: Optional[UUID] = None,
    user_id: Optional[UUID] = None,
    started_at: Optional[datetime] = None,
    completed_at: Optional[datetime] = None,
    duration_ms: Optional[int] = None,
    success: Optional[bool] = None,
    error_message: Optional[str] = None,
    model_used: Optional[str] = None,
) -> WorkerRunLog:
    """Log a completed (or failed) job execution."""
    run = WorkerRunLog(
        job_id=job_id,
        user_id=user_id,
        queue=queue,
        started_at=started_at or datetime.now(timezone.utc),
        completed_at=completed_at,
        duration_ms=duration_ms,
        success=success,
        error_message=error_message,
        model_used=model_used,
    )
    session.add(run)
    await session.flush()
    return run

