"""Transcript repository — meeting transcripts and the has_transcript flag."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Transcript
from db.repositories import meetings

logger = logging.getLogger(__name__)


async def list_transcripts(
    session: AsyncSession, user_id: UUID, meeting_id: UUID
) -> list[Transcript]:
    """Return a meeting's transcripts, newest first."""
    result = await session.execute(
        select(Transcript)
        .where(Transcript.meeting_id == meeting_id, Transcript.user_id == user_id)
        .order_by(Transcript.created_at.desc())
    )
    return list(result.scalars().all())


async def get_transcript(
    session: AsyncSession, user_id: UUID, transcript_id: UUID
) -> Optional[Transcript]:
    result = await session.execute(
        select(Transcript).where(
            Transcript.id == transcript_id, Transcript.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def create_transcript(
    session: AsyncSession,
    user_id: UUID,
    meeting_id: UUID,
    content: str,
    recording_id: Optional[UUID] = None,
    mark_transcribed: bool = True,
) -> Transcript:
    """Insert a transcript and set the meeting's has_transcript flag.

    Placeholders written before transcription finishes pass
    mark_transcribed=False; the worker sets the flag on success.
    """
    transcript = Transcript(
        meeting_id=meeting_id,
        recording_id=recording_id,
        content=content,
        user_id=user_id,
    )
    session.add(transcript)
    await session.flush()
    if mark_transcribed:
        await meetings.set_flags(session, user_id, meeting_id, has_transcript=True)
    return transcript


async def get_for_recording(
    session: AsyncSession, user_id: UUID, meeting_id: UUID, recording_id: UUID
) -> Optional[Transcript]:
    """Return the newest transcript produced from a recording."""
    result = await session.execute(
        select(Transcript)
        .where(
            Transcript.meeting_id == meeting_id,
            Transcript.recording_id == recording_id,
            Transcript.user_id == user_id,
        )
        .order_by(Transcript.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def update_transcript(
    session: AsyncSession, user_id: UUID, transcript_id: UUID, content: str
) -> Optional[Transcript]:
    result = await session.execute(
        update(Transcript)
        .where(Transcript.id == transcript_id, Transcript.user_id == user_id)
        .values(content=content)
        .returning(Transcript)
    )
    await session.flush()
    return result.scalar_one_or_none()


async def set_content_for_recording(
    session: AsyncSession,
    user_id: UUID,
    meeting_id: UUID,
    recording_id: UUID,
    content: str,
) -> int:
    """Overwrite the content of the transcript(s) produced from a recording.

    Returns the number of rows updated.
    """
    result = await session.execute(
        update(Transcript)
        .where(
            Transcript.meeting_id == meeting_id,
            Transcript.recording_id == recording_id,
            Transcript.user_id == user_id,
        )
        .values(content=content)
        .returning(Transcript.id)
    )
    await session.flush()
    return len(result.all())


async def delete_transcript(
    session: AsyncSession, user_id: UUID, transcript_id: UUID
) -> bool:
    """Delete a transcript; clear has_transcript when none remain."""
    result = await session.execute(
        delete(Transcript)
        .where(Transcript.id == transcript_id, Transcript.user_id == user_id)
        .returning(Transcript.meeting_id)
    )
    meeting_id = result.scalar_one_or_none()
    if meeting_id is None:
        return False
    await session.flush()

    remaining = await session.execute(
        select(func.count()).select_from(Transcript).where(Transcript.meeting_id == meeting_id)
    )
    if remaining.scalar_one() == 0:
        await meetings.set_flags(session, user_id, meeting_id, has_transcript=False)
    return True
