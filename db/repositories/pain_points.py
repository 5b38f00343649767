"""Pain point repository — per-meeting analysis results."""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from db.models import Meeting, PainPoint
from db.repositories import meetings

logger = logging.getLogger(__name__)


async def list_pain_points(
    session: AsyncSession, user_id: UUID, meeting_id: UUID
) -> list[PainPoint]:
    result = await session.execute(
        select(PainPoint)
        .where(PainPoint.meeting_id == meeting_id, PainPoint.user_id == user_id)
        .order_by(PainPoint.created_at)
    )
    return list(result.scalars().all())


async def get_pain_point(
    session: AsyncSession, user_id: UUID, pain_point_id: UUID
) -> Optional[PainPoint]:
    result = await session.execute(
        select(PainPoint).where(
            PainPoint.id == pain_point_id, PainPoint.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def create_pain_point(
    session: AsyncSession, user_id: UUID, meeting_id: UUID, data: dict
) -> PainPoint:
    """Insert a pain point; marks the meeting analyzed.

    data dict keys: title, description, root_cause, impact, citations
    """
    pain_point = PainPoint(**data, meeting_id=meeting_id, user_id=user_id)
    session.add(pain_point)
    await session.flush()
    await meetings.set_flags(
        session, user_id, meeting_id, has_analysis=True, status="analyzed"
    )
    return pain_point


async def update_pain_point(
    session: AsyncSession, user_id: UUID, pain_point_id: UUID, data: dict
) -> Optional[PainPoint]:
    if not data:
        return await get_pain_point(session, user_id, pain_point_id)
    result = await session.execute(
        update(PainPoint)
        .where(PainPoint.id == pain_point_id, PainPoint.user_id == user_id)
        .values(**data)
        .returning(PainPoint)
    )
    await session.flush()
    return result.scalar_one_or_none()


async def delete_pain_point(
    session: AsyncSession, user_id: UUID, pain_point_id: UUID
) -> bool:
    """Delete a pain point; clear has_analysis when the meeting has none left."""
    result = await session.execute(
        delete(PainPoint)
        .where(PainPoint.id == pain_point_id, PainPoint.user_id == user_id)
        .returning(PainPoint.meeting_id)
    )
    meeting_id = result.scalar_one_or_none()
    if meeting_id is None:
        return False
    await session.flush()

    remaining = await session.execute(
        select(func.count()).select_from(PainPoint).where(PainPoint.meeting_id == meeting_id)
    )
    if remaining.scalar_one() == 0:
        await meetings.set_flags(session, user_id, meeting_id, has_analysis=False)
    return True


async def replace_for_meeting(
    session: AsyncSession, user_id: UUID, meeting_id: UUID, items: list[dict]
) -> list[PainPoint]:
    """Delete the meeting's pain points, then insert items in order."""
    await session.execute(
        delete(PainPoint).where(
            PainPoint.meeting_id == meeting_id, PainPoint.user_id == user_id
        )
    )
    rows = [PainPoint(**item, meeting_id=meeting_id, user_id=user_id) for item in items]
    session.add_all(rows)
    await session.flush()
    return rows


async def list_all_with_context(session: AsyncSession, user_id: UUID) -> list[PainPoint]:
    """All the user's pain points with meeting, contact and company loaded."""
    result = await session.execute(
        select(PainPoint)
        .options(
            selectinload(PainPoint.meeting).selectinload(Meeting.contact),
            selectinload(PainPoint.meeting).selectinload(Meeting.company),
        )
        .where(PainPoint.user_id == user_id)
        .order_by(PainPoint.created_at.desc())
    )
    return list(result.scalars().all())


async def latest_created_at(session: AsyncSession, user_id: UUID) -> Optional[datetime]:
    """created_at of the user's newest pain point, or None when there are none."""
    result = await session.execute(
        select(func.max(PainPoint.created_at)).where(PainPoint.user_id == user_id)
    )
    return result.scalar_one_or_none()
