"""Recording repository — upload metadata and the meeting has_recording flag."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Recording
from db.repositories import meetings
from tools import storage

logger = logging.getLogger(__name__)


async def list_recordings(
    session: AsyncSession, user_id: UUID, meeting_id: UUID
) -> list[Recording]:
    result = await session.execute(
        select(Recording)
        .where(Recording.meeting_id == meeting_id, Recording.user_id == user_id)
        .order_by(Recording.created_at.desc())
    )
    return list(result.scalars().all())


async def get_recording(
    session: AsyncSession, user_id: UUID, recording_id: UUID
) -> Optional[Recording]:
    result = await session.execute(
        select(Recording).where(Recording.id == recording_id, Recording.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_recording(
    session: AsyncSession,
    user_id: UUID,
    meeting_id: UUID,
    file_path: str,
    file_name: str,
    duration: Optional[float] = None,
) -> Recording:
    """Insert a recording and mark the meeting as recorded.

    A recording added to a meeting that already has a transcript makes the
    transcript and analysis outdated.
    """
    recording = Recording(
        meeting_id=meeting_id,
        file_path=file_path,
        file_name=file_name,
        duration=duration,
        user_id=user_id,
    )
    session.add(recording)
    await session.flush()

    flags = {"has_recording": True, "status": "completed"}
    if await meetings.has_transcript(session, meeting_id):
        flags.update(transcript_outdated=True, analysis_outdated=True)
    await meetings.set_flags(session, user_id, meeting_id, **flags)
    return recording


async def delete_recording(session: AsyncSession, user_id: UUID, recording_id: UUID) -> bool:
    """Delete the row and its file; clear has_recording when none remain."""
    recording = await get_recording(session, user_id, recording_id)
    if recording is None:
        return False
    meeting_id = recording.meeting_id
    file_path = recording.file_path

    await session.execute(delete(Recording).where(Recording.id == recording_id))
    await session.flush()
    storage.delete(file_path)

    remaining = await session.execute(
        select(func.count()).select_from(Recording).where(Recording.meeting_id == meeting_id)
    )
    if remaining.scalar_one() == 0:
        await meetings.set_flags(session, user_id, meeting_id, has_recording=False)
    return True
