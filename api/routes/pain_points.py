"""Pain points attached to a meeting."""
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.meetings as meeting_repo
import db.repositories.pain_points as pain_point_repo
from api.deps import get_session, get_user_id, not_found
from schemas.crm import PainPointCreate, PainPointOut, PainPointUpdate

router = APIRouter(tags=["pain points"])


@router.get("/meetings/{meeting_id}/pain-points", response_model=list[PainPointOut])
async def list_pain_points(
    meeting_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await pain_point_repo.list_pain_points(session, user_id, meeting_id)


@router.post("/pain-points", response_model=PainPointOut, status_code=status.HTTP_201_CREATED)
async def create_pain_point(
    body: PainPointCreate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if await meeting_repo.get_meeting(session, user_id, body.meeting_id) is None:
        raise not_found("Meeting")
    data = body.model_dump(exclude={"meeting_id"})
    return await pain_point_repo.create_pain_point(session, user_id, body.meeting_id, data)


@router.get("/pain-points/{pain_point_id}", response_model=PainPointOut)
async def get_pain_point(
    pain_point_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    pain_point = await pain_point_repo.get_pain_point(session, user_id, pain_point_id)
    if pain_point is None:
        raise not_found("Pain point")
    return pain_point


@router.patch("/pain-points/{pain_point_id}", response_model=PainPointOut)
async def update_pain_point(
    pain_point_id: UUID,
    body: PainPointUpdate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    pain_point = await pain_point_repo.update_pain_point(
        session, user_id, pain_point_id, body.model_dump(exclude_unset=True)
    )
    if pain_point is None:
        raise not_found("Pain point")
    return pain_point


@router.delete("/pain-points/{pain_point_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pain_point(
    pain_point_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if not await pain_point_repo.delete_pain_point(session, user_id, pain_point_id):
        raise not_found("Pain point")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
