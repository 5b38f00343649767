"""Transcripts typed in or produced from recordings."""
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.meetings as meeting_repo
import db.repositories.transcripts as transcript_repo
from api.deps import get_session, get_user_id, not_found
from schemas.crm import TranscriptCreate, TranscriptOut, TranscriptUpdate

router = APIRouter(tags=["transcripts"])


@router.get("/meetings/{meeting_id}/transcripts", response_model=list[TranscriptOut])
async def list_transcripts(
    meeting_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await transcript_repo.list_transcripts(session, user_id, meeting_id)


@router.post("/transcripts", response_model=TranscriptOut, status_code=status.HTTP_201_CREATED)
async def create_transcript(
    body: TranscriptCreate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if await meeting_repo.get_meeting(session, user_id, body.meeting_id) is None:
        raise not_found("Meeting")
    return await transcript_repo.create_transcript(
        session, user_id, body.meeting_id, body.content, body.recording_id
    )


@router.get("/transcripts/{transcript_id}", response_model=TranscriptOut)
async def get_transcript(
    transcript_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    transcript = await transcript_repo.get_transcript(session, user_id, transcript_id)
    if transcript is None:
        raise not_found("Transcript")
    return transcript


@router.patch("/transcripts/{transcript_id}", response_model=TranscriptOut)
async def update_transcript(
    transcript_id: UUID,
    body: TranscriptUpdate,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    transcript = await transcript_repo.update_transcript(session, user_id, transcript_id, body.content)
    if transcript is None:
        raise not_found("Transcript")
    return transcript


@router.delete("/transcripts/{transcript_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transcript(
    transcript_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if not await transcript_repo.delete_transcript(session, user_id, transcript_id):
        raise not_found("Transcript")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
