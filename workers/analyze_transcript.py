"""Worker for the analyze-transcript queue.

Loads a transcript, extracts its pain points with the two-pass LLM analysis,
replaces the meeting's pain points and records the outcome on the meeting.
"""
import logging
from typing import Any
from uuid import UUID

import db.repositories.meetings as meeting_repo
import db.repositories.pain_points as pain_point_repo
import db.repositories.transcripts as transcript_repo
import db.repositories.user_settings as settings_repo
from db.connection import get_db
from errors import NotFoundError
from model_config import get_analysis_model
from tools.analysis import analyze_pain_points
from workers._payload import require_uuids

logger = logging.getLogger(__name__)


async def _mark_failed(user_id: UUID, meeting_id: UUID, message: str) -> None:
    try:
        async with get_db() as session:
            await meeting_repo.set_analysis_status(
                session, user_id, meeting_id, "failed", error=message
            )
    except Exception as e:
        logger.error("Could not record analysis failure for meeting %s: %s", meeting_id, e)


async def handle_analyze_transcript(payload: dict[str, Any]) -> dict[str, Any]:
    """Analyze one transcript. Payload keys: transcriptId, meetingId, userId."""
    try:
        transcript_id, meeting_id, user_id = require_uuids(
            payload, "transcriptId", "meetingId", "userId"
        )
    except ValueError as e:
        logger.error("Skipping analyze-transcript job: %s (payload %s)", e, payload)
        return {"skipped": True}

    try:
        async with get_db() as session:
            transcript = await transcript_repo.get_transcript(session, user_id, transcript_id)
            if transcript is None:
                raise NotFoundError(f"Transcript {transcript_id} not found")
            api_key = await settings_repo.get_openai_api_key(session, user_id)
            await meeting_repo.set_analysis_status(session, user_id, meeting_id, "in_progress")
            content = transcript.content

        logger.info("Analyzing meeting %s (%d characters)", meeting_id, len(content))
        items = await analyze_pain_points(content, api_key)

        async with get_db() as session:
            await pain_point_repo.replace_for_meeting(session, user_id, meeting_id, items)
            await meeting_repo.set_flags(
                session,
                user_id,
                meeting_id,
                has_analysis=True,
                status="analyzed",
                analysis_status="completed",
                analysis_error=None,
                analysis_outdated=False,
            )
    except Exception as e:
        await _mark_failed(user_id, meeting_id, str(e))
        raise

    logger.info("Stored %d pain points for meeting %s", len(items), meeting_id)
    return {"pain_points": len(items), "model": get_analysis_model()}
