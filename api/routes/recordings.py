"""Recording uploads (multipart) for a meeting."""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.meetings as meeting_repo
import db.repositories.recordings as recording_repo
from api.deps import get_session, get_user_id, not_found
from schemas.crm import RecordingOut
from tools import storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["recordings"])


@router.get("/meetings/{meeting_id}/recordings", response_model=list[RecordingOut])
async def list_recordings(
    meeting_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    return await recording_repo.list_recordings(session, user_id, meeting_id)


@router.post(
    "/meetings/{meeting_id}/recordings",
    response_model=RecordingOut,
    status_code=status.HTTP_201_CREATED,
)
async def upload_recording(
    meeting_id: UUID,
    file: UploadFile = File(..., description="Audio file"),
    duration: Optional[float] = Form(default=None),
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Filename is required")
    if await meeting_repo.get_meeting(session, user_id, meeting_id) is None:
        raise not_found("Meeting")

    logger.info("Received recording upload for meeting %s: %s", meeting_id, file.filename)
    try:
        file_path = storage.save(user_id, meeting_id, file.filename, file.file)
    finally:
        await file.close()
    return await recording_repo.create_recording(
        session, user_id, meeting_id, file_path, storage.safe_file_name(file.filename), duration
    )


@router.get("/recordings/{recording_id}", response_model=RecordingOut)
async def get_recording(
    recording_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    recording = await recording_repo.get_recording(session, user_id, recording_id)
    if recording is None:
        raise not_found("Recording")
    return recording


@router.delete("/recordings/{recording_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recording(
    recording_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if not await recording_repo.delete_recording(session, user_id, recording_id):
        raise not_found("Recording")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
