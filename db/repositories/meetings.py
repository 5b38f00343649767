"""Meeting repository — user-scoped CRUD, dashboard lists and status flags."""
import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.models import ANALYSIS_STATUSES, Contact, Meeting, Transcript

logger = logging.getLogger(__name__)


def _with_people():
    return (selectinload(Meeting.contact), selectinload(Meeting.company))


async def list_meetings(session: AsyncSession, user_id: UUID) -> list[Meeting]:
    """Return the user's meetings, most recent date first."""
    result = await session.execute(
        select(Meeting)
        .options(*_with_people())
        .where(Meeting.user_id == user_id)
        .order_by(Meeting.date.desc(), Meeting.time.desc())
    )
    return list(result.scalars().all())


async def get_meeting(
    session: AsyncSession, user_id: UUID, meeting_id: UUID
) -> Optional[Meeting]:
    """Return the meeting with contact, company, recordings, transcripts and pain points."""
    result = await session.execute(
        select(Meeting)
        .options(
            *_with_people(),
            selectinload(Meeting.recordings),
            selectinload(Meeting.transcripts),
            selectinload(Meeting.pain_points),
        )
        .where(Meeting.id == meeting_id, Meeting.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def create_meeting(session: AsyncSession, user_id: UUID, data: dict) -> Meeting:
    """Insert a meeting.

    data dict keys: contact_id, date, time, notes, status.
    company_id is taken from the contact when not supplied.
    """
    data = dict(data)
    if not data.get("company_id"):
        result = await session.execute(
            select(Contact.company_id).where(
                Contact.id == data["contact_id"], Contact.user_id == user_id
            )
        )
        data["company_id"] = result.scalar_one()
    if data.get("status") is None:
        data.pop("status", None)
    meeting = Meeting(**data, user_id=user_id)
    session.add(meeting)
    await session.flush()
    await session.refresh(meeting)
    return meeting


async def update_meeting(
    session: AsyncSession, user_id: UUID, meeting_id: UUID, data: dict
) -> Optional[Meeting]:
    """Apply column updates and return the refreshed meeting, or None."""
    if data:
        result = await session.execute(
            update(Meeting)
            .where(Meeting.id == meeting_id, Meeting.user_id == user_id)
            .values(**data)
            .returning(Meeting.id)
        )
        if result.scalar_one_or_none() is None:
            return None
        await session.flush()
    return await get_meeting(session, user_id, meeting_id)


async def update_notes(
    session: AsyncSession, user_id: UUID, meeting_id: UUID, notes: Optional[str]
) -> Optional[Meeting]:
    return await update_meeting(session, user_id, meeting_id, {"notes": notes})


async def delete_meeting(session: AsyncSession, user_id: UUID, meeting_id: UUID) -> bool:
    result = await session.execute(
        delete(Meeting)
        .where(Meeting.id == meeting_id, Meeting.user_id == user_id)
        .returning(Meeting.id)
    )
    await session.flush()
    return result.scalar_one_or_none() is not None


async def get_upcoming_meetings(
    session: AsyncSession, user_id: UUID, limit: Optional[int] = None
) -> list[Meeting]:
    """Meetings dated today or later, soonest first."""
    stmt = (
        select(Meeting)
        .options(*_with_people())
        .where(Meeting.user_id == user_id, Meeting.date >= date.today())
        .order_by(Meeting.date, Meeting.time)
    )
    if limit:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_recent_meetings(
    session: AsyncSession, user_id: UUID, limit: int = 5
) -> list[Meeting]:
    """Most recent completed meetings."""
    result = await session.execute(
        select(Meeting)
        .options(*_with_people())
        .where(Meeting.user_id == user_id, Meeting.status == "completed")
        .order_by(Meeting.date.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_analyzed_meetings(session: AsyncSession, user_id: UUID) -> list[Meeting]:
    result = await session.execute(
        select(Meeting)
        .options(*_with_people(), selectinload(Meeting.pain_points))
        .where(Meeting.user_id == user_id, Meeting.has_analysis.is_(True))
        .order_by(Meeting.date.desc())
    )
    return list(result.scalars().all())


async def get_meetings_by_contact(
    session: AsyncSession, user_id: UUID, contact_id: UUID
) -> list[Meeting]:
    result = await session.execute(
        select(Meeting)
        .options(*_with_people())
        .where(Meeting.user_id == user_id, Meeting.contact_id == contact_id)
        .order_by(Meeting.date.desc())
    )
    return list(result.scalars().all())


async def set_flags(
    session: AsyncSession, user_id: UUID, meeting_id: UUID, **values
) -> None:
    """Write meeting flag/status columns without loading the row."""
    await session.execute(
        update(Meeting)
        .where(Meeting.id == meeting_id, Meeting.user_id == user_id)
        .values(**values)
    )
    await session.flush()


async def set_analysis_status(
    session: AsyncSession,
    user_id: UUID,
    meeting_id: UUID,
    status: str,
    error: Optional[str] = None,
) -> None:
    """Set analysis_status (and analysis_error, cleared unless given)."""
    if status not in ANALYSIS_STATUSES:
        raise ValueError(f"Unknown analysis status: {status!r}")
    await set_flags(
        session, user_id, meeting_id, analysis_status=status, analysis_error=error
    )


async def has_transcript(session: AsyncSession, meeting_id: UUID) -> bool:
    result = await session.execute(
        select(Transcript.id).where(Transcript.meeting_id == meeting_id).limit(1)
    )
    return result.scalar_one_or_none() is not None
