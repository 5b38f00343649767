"""Meetings, including the dashboard lists and meeting notes."""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.contacts as contact_repo
import db.repositories.meetings as meeting_repo
from api.deps import get_session, get_user_id, not_found
from schemas.crm import MeetingCreate, MeetingDetailOut, MeetingOut, MeetingUpdate, NotesUpdate

router = APIRouter(prefix="/meetings", tags=["meetings"])


@router.get("", response_model=list[MeetingOut])
async def list_meetings(
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await meeting_repo.list_meetings(session, user_id)


@router.get("/upcoming", response_model=list[MeetingOut])
async def upcoming_meetings(
    limit: Optional[int] = None,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await meeting_repo.get_upcoming_meetings(session, user_id, limit)


@router.get("/recent", response_model=list[MeetingOut])
async def recent_meetings(
    limit: int = 5,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await meeting_repo.get_recent_meetings(session, user_id, limit)


@router.get("/analyzed", response_model=list[MeetingOut])
async def analyzed_meetings(
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await meeting_repo.get_analyzed_meetings(session, user_id)


@router.post("", response_model=MeetingDetailOut, status_code=status.HTTP_201_CREATED)
async def create_meeting(
    body: MeetingCreate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if await contact_repo.get_contact(session, user_id, body.contact_id) is None:
        raise not_found("Contact")
    meeting = await meeting_repo.create_meeting(session, user_id, body.model_dump(exclude_none=True))
    return await meeting_repo.get_meeting(session, user_id, meeting.id)


@router.get("/{meeting_id}", response_model=MeetingDetailOut)
async def get_meeting(
    meeting_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    meeting = await meeting_repo.get_meeting(session, user_id, meeting_id)
    if meeting is None:
        raise not_found("Meeting")
    return meeting


@router.patch("/{meeting_id}", response_model=MeetingDetailOut)
async def update_meeting(
    meeting_id: UUID,
    body: MeetingUpdate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    data = body.model_dump(exclude_unset=True)
    if data.get("contact_id") and await contact_repo.get_contact(session, user_id, data["contact_id"]) is None:
        raise not_found("Contact")
    meeting = await meeting_repo.update_meeting(session, user_id, meeting_id, data)
    if meeting is None:
        raise not_found("Meeting")
    return meeting


@router.put("/{meeting_id}/notes", response_model=MeetingDetailOut)
async def update_meeting_notes(
    meeting_id: UUID,
    body: NotesUpdate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    meeting = await meeting_repo.update_notes(session, user_id, meeting_id, body.notes)
    if meeting is None:
        raise not_found("Meeting")
    return meeting


@router.delete("/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_meeting(
    meeting_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if not await meeting_repo.delete_meeting(session, user_id, meeting_id):
        raise not_found("Meeting")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
