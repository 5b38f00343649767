"""Global search and the dashboard summary."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.dashboard as dashboard_repo
import db.repositories.meetings as meeting_repo
import db.repositories.search as search_repo
from api.deps import get_session, get_user_id
from schemas.crm import MeetingOut, SearchResult

router = APIRouter(tags=["search"])


@router.get("/search", response_model=list[SearchResult])
async def search(
    q: str = "",
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await search_repo.search_all(session, user_id, q)


@router.get("/dashboard")
async def dashboard(
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    metrics = await dashboard_repo.get_dashboard_metrics(session, user_id)
    upcoming = await meeting_repo.get_upcoming_meetings(session, user_id, limit=5)
    return {
        "metrics": metrics,
        "upcomingMeetings": [MeetingOut.model_validate(m).model_dump(mode="json") for m in upcoming],
        "recentAnalysis": await dashboard_repo.get_recent_analysis(session, user_id),
        "commonPainPoints": await dashboard_repo.get_common_pain_points(session, user_id),
    }
