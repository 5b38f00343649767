"""Endpoints that hand long-running work to the job queue.

Each request validates its input, records the starting state on the meeting
and enqueues a job; the worker finishes the work and the client polls the
meeting, the transcript or GET /jobs/{id}.
"""
import logging
from typing import Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.clusters as cluster_repo
import db.repositories.feedback as feedback_repo
import db.repositories.jobs as job_repo
import db.repositories.meetings as meeting_repo
import db.repositories.recordings as recording_repo
import db.repositories.transcripts as transcript_repo
import db.repositories.user_settings as settings_repo
from api.deps import get_session, get_user_id, not_found
from schemas.api import (
    AnalyzeCommonPainPointsRequest,
    AnalyzeTranscriptRequest,
    CachedClustersResponse,
    FeedbackRequest,
    FeedbackResponse,
    JobOut,
    JobStartedResponse,
    TranscribeRequest,
    TranscriptionStartedResponse,
)
from schemas.crm import ClusterOut
from workers.transcribe import PLACEHOLDER

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _check_caller(body_user_id: Optional[UUID], user_id: UUID) -> None:
    if body_user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="userId does not match the authenticated user",
        )


@router.post("/analyze-transcript", response_model=JobStartedResponse)
async def analyze_transcript(
    body: AnalyzeTranscriptRequest,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if not (body.transcript_id and body.meeting_id and body.user_id):
        raise _bad_request("Missing required parameters")
    _check_caller(body.user_id, user_id)

    transcript = await transcript_repo.get_transcript(session, user_id, body.transcript_id)
    if transcript is None or transcript.meeting_id != body.meeting_id:
        raise not_found("Transcript")
    await settings_repo.get_openai_api_key(session, user_id)

    await meeting_repo.set_analysis_status(session, user_id, body.meeting_id, "in_progress")

    job_id = None
    try:
        async with session.begin_nested():
            job = await job_repo.enqueue(
                session,
                job_repo.ANALYZE_TRANSCRIPT_QUEUE,
                {
                    "transcriptId": str(body.transcript_id),
                    "meetingId": str(body.meeting_id),
                    "userId": str(user_id),
                },
                dedup_key=f"analyze:{body.transcript_id}",
            )
            job_id = job.id
    except SQLAlchemyError as e:
        # The meeting already shows in_progress; the client can retry.
        logger.error("Failed to enqueue analysis for transcript %s: %s", body.transcript_id, e)

    return JobStartedResponse(message="Analysis started", job_id=job_id)


@router.post(
    "/analyze-common-pain-points",
    response_model=Union[CachedClustersResponse, JobStartedResponse],
)
async def analyze_common_pain_points(
    body: AnalyzeCommonPainPointsRequest,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if not body.user_id:
        raise _bad_request("Missing userId")
    _check_caller(body.user_id, user_id)

    if not body.force_refresh:
        clusters = await cluster_repo.list_clusters(session, user_id)
        if clusters:
            last = await cluster_repo.get_last_analysis_at(session, user_id)
            return CachedClustersResponse(
                clusters=[ClusterOut.model_validate(c) for c in clusters],
                last_updated=last.isoformat() if last else None,
                needs_refresh=await cluster_repo.should_refresh(session, user_id),
            )

    await settings_repo.get_openai_api_key(session, user_id)
    job = await job_repo.enqueue(
        session,
        job_repo.ANALYZE_COMMON_PAIN_POINTS_QUEUE,
        {"userId": str(user_id), "forceRefresh": body.force_refresh},
        dedup_key=f"clusters:{user_id}",
    )
    logger.info("Queued pain point clustering for user %s (job %s)", user_id, job.id)
    return JobStartedResponse(message="Analysis started", job_id=job.id)


@router.post("/transcribe", response_model=TranscriptionStartedResponse)
async def transcribe(
    body: TranscribeRequest,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if not (body.recording_id and body.meeting_id and body.user_id):
        raise _bad_request("Missing required parameters")
    _check_caller(body.user_id, user_id)

    recording = await recording_repo.get_recording(session, user_id, body.recording_id)
    if recording is None or recording.meeting_id != body.meeting_id:
        raise not_found("Recording")

    dedup_key = f"transcribe:{body.recording_id}"
    if await job_repo.find_active(session, dedup_key) is not None:
        existing = await transcript_repo.get_for_recording(
            session, user_id, body.meeting_id, body.recording_id
        )
        if existing is not None:
            logger.info("Transcription of recording %s already in progress", body.recording_id)
            return TranscriptionStartedResponse(
                message="Transcription already in progress", transcript_id=existing.id
            )

    transcript = await transcript_repo.create_transcript(
        session,
        user_id,
        body.meeting_id,
        PLACEHOLDER,
        recording_id=body.recording_id,
        mark_transcribed=False,
    )
    await meeting_repo.set_flags(
        session, user_id, body.meeting_id, transcript_outdated=False, analysis_outdated=True
    )
    await job_repo.enqueue(
        session,
        job_repo.TRANSCRIBE_QUEUE,
        {
            "recordingId": str(body.recording_id),
            "meetingId": str(body.meeting_id),
            "userId": str(user_id),
        },
        dedup_key=dedup_key,
    )
    return TranscriptionStartedResponse(message="Transcription started", transcript_id=transcript.id)


@router.post("/feedback", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    body: FeedbackRequest,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    if not body.user_id:
        raise _bad_request("Missing userId")
    _check_caller(body.user_id, user_id)
    try:
        feedback = await feedback_repo.create_feedback(
            session,
            user_id,
            improvements=body.improvements,
            positives=body.positives,
            features=body.features,
            anonymous=body.anonymous,
        )
    except ValueError as e:
        raise _bad_request(str(e))
    return FeedbackResponse(id=feedback.id)


@router.get("/jobs/{job_id}", response_model=JobOut)
async def get_job(
    job_id: UUID,
    user_id: UUID = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
):
    job = await job_repo.get_job(session, job_id)
    if job is None or (job.payload or {}).get("userId") != str(user_id):
        raise not_found("Job")
    return job
