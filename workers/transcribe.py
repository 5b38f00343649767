"""Worker for the transcribe queue.

Progress is reported by overwriting the placeholder transcript created when
the job was enqueued, so the UI can poll the transcript row.
"""
import logging
import math
from typing import Any
from uuid import UUID

import db.repositories.meetings as meeting_repo
import db.repositories.recordings as recording_repo
import db.repositories.transcripts as transcript_repo
import db.repositories.user_settings as settings_repo
from db.connection import get_db
from errors import NotFoundError
from model_config import get_transcription_model
from tools import storage
from tools.transcription import combine_transcriptions, split_audio_bytes, transcribe_chunks
from workers._payload import require_uuids

logger = logging.getLogger(__name__)

PLACEHOLDER = "Transcription in progress..."


def progress_message(done: int, total: int) -> str:
    percent = math.floor(done / total * 100 + 0.5) if total else 100
    return f"Transcription progress: {percent}% ({done}/{total} segments complete)"


async def _set_content(user_id: UUID, meeting_id: UUID, recording_id: UUID, content: str) -> None:
    async with get_db() as session:
        await transcript_repo.set_content_for_recording(
            session, user_id, meeting_id, recording_id, content
        )


async def handle_transcribe(payload: dict[str, Any]) -> dict[str, Any]:
    """Transcribe one recording. Payload keys: recordingId, meetingId, userId."""
    recording_id, meeting_id, user_id = require_uuids(
        payload, "recordingId", "meetingId", "userId"
    )

    async def _update(content: str) -> None:
        await _set_content(user_id, meeting_id, recording_id, content)

    try:
        async with get_db() as session:
            api_key = await settings_repo.get_openai_api_key(session, user_id)
            recording = await recording_repo.get_recording(session, user_id, recording_id)
            if recording is None:
                raise NotFoundError(f"Recording {recording_id} not found")
            file_path, file_name = recording.file_path, recording.file_name

        await _update("Processing audio file...")
        data = storage.read_bytes(file_path)

        await _update("Splitting audio into segments...")
        chunks = split_audio_bytes(data)
        logger.info("%s: %d bytes in %d segments", file_name, len(data), len(chunks))

        await _update(f"Transcribing {len(chunks)} segments...")

        async def _progress(done: int, total: int) -> None:
            await _update(progress_message(done, total))

        parts = await transcribe_chunks(chunks, api_key, file_name, on_progress=_progress)
        text = combine_transcriptions(parts)

        async with get_db() as session:
            await transcript_repo.set_content_for_recording(
                session, user_id, meeting_id, recording_id, text
            )
            await meeting_repo.set_flags(session, user_id, meeting_id, has_transcript=True)
    except Exception as e:
        logger.warning("Transcription of recording %s failed: %s", recording_id, e, exc_info=True)
        try:
            await _update(f"Transcription failed: {e}")
        except Exception as update_error:
            logger.error("Could not record transcription failure: %s", update_error)
        raise

    logger.info("Transcript saved for recording %s (%d characters)", recording_id, len(text))
    return {"segments": len(chunks), "model": get_transcription_model()}
