"""Unit tests for the queue workers and the job runner (database and LLM mocked)."""
import uuid
from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from errors import AnalysisError, MissingApiKeyError
from workers.transcribe import progress_message

ANALYZE = "workers.analyze_transcript"
CLUSTER = "workers.common_pain_points"
TRANSCRIBE = "workers.transcribe"
RUNNER = "workers.runner"


def _fake_get_db(session=None):
    session = session or MagicMock()

    @asynccontextmanager
    async def _get_db():
        yield session

    return _get_db


def _ids():
    return uuid.uuid4(), uuid.uuid4(), uuid.uuid4()


class TestAnalyzeTranscriptHandler:
    @pytest.mark.asyncio
    @patch(f"{ANALYZE}.analyze_pain_points", new_callable=AsyncMock)
    @patch(f"{ANALYZE}.meeting_repo")
    @patch(f"{ANALYZE}.pain_point_repo")
    @patch(f"{ANALYZE}.settings_repo")
    @patch(f"{ANALYZE}.transcript_repo")
    async def test_stores_pain_points_and_marks_meeting(
        self, mock_transcripts, mock_settings, mock_pain_points, mock_meetings, mock_analyze
    ):
        transcript_id, meeting_id, user_id = _ids()
        mock_transcripts.get_transcript = AsyncMock(return_value=SimpleNamespace(content="hello"))
        mock_settings.get_openai_api_key = AsyncMock(return_value="sk-test")
        mock_meetings.set_analysis_status = AsyncMock()
        mock_meetings.set_flags = AsyncMock()
        mock_pain_points.replace_for_meeting = AsyncMock()
        items = [{"title": "A"}, {"title": "B"}]
        mock_analyze.return_value = items

        from workers.analyze_transcript import handle_analyze_transcript
        with patch(f"{ANALYZE}.get_db", _fake_get_db()):
            result = await handle_analyze_transcript({
                "transcriptId": str(transcript_id),
                "meetingId": str(meeting_id),
                "userId": str(user_id),
            })

        assert result["pain_points"] == 2
        mock_analyze.assert_awaited_once_with("hello", "sk-test")
        assert mock_meetings.set_analysis_status.await_args.args[1:] == (user_id, meeting_id, "in_progress")
        assert mock_pain_points.replace_for_meeting.await_args.args[1:] == (user_id, meeting_id, items)
        flags = mock_meetings.set_flags.await_args.kwargs
        assert flags == {
            "has_analysis": True,
            "status": "analyzed",
            "analysis_status": "completed",
            "analysis_error": None,
            "analysis_outdated": False,
        }

    @pytest.mark.asyncio
    @patch(f"{ANALYZE}.meeting_repo")
    @patch(f"{ANALYZE}.settings_repo")
    @patch(f"{ANALYZE}.transcript_repo")
    async def test_missing_api_key_marks_meeting_failed(
        self, mock_transcripts, mock_settings, mock_meetings
    ):
        transcript_id, meeting_id, user_id = _ids()
        mock_transcripts.get_transcript = AsyncMock(return_value=SimpleNamespace(content="hello"))
        mock_settings.get_openai_api_key = AsyncMock(side_effect=MissingApiKeyError("No key"))
        mock_meetings.set_analysis_status = AsyncMock()

        from workers.analyze_transcript import handle_analyze_transcript
        with patch(f"{ANALYZE}.get_db", _fake_get_db()):
            with pytest.raises(MissingApiKeyError):
                await handle_analyze_transcript({
                    "transcriptId": str(transcript_id),
                    "meetingId": str(meeting_id),
                    "userId": str(user_id),
                })

        call = mock_meetings.set_analysis_status.await_args
        assert call.args[1:] == (user_id, meeting_id, "failed")
        assert call.kwargs["error"] == "No key"

    @pytest.mark.asyncio
    async def test_missing_parameters(self):
        from workers.analyze_transcript import handle_analyze_transcript
        result = await handle_analyze_transcript(
            {"meetingId": str(uuid.uuid4()), "userId": str(uuid.uuid4())}
        )
        assert result == {"skipped": True}


class TestCommonPainPointsHandler:
    @pytest.mark.asyncio
    @patch(f"{CLUSTER}.cluster_repo")
    async def test_skips_when_fresh(self, mock_clusters):
        mock_clusters.should_refresh = AsyncMock(return_value=False)

        from workers.common_pain_points import handle_analyze_common_pain_points
        with patch(f"{CLUSTER}.get_db", _fake_get_db()):
            result = await handle_analyze_common_pain_points({"userId": str(uuid.uuid4())})

        assert result == {"skipped": True}

    @pytest.mark.asyncio
    @patch(f"{CLUSTER}.analyze_common_pain_points", new_callable=AsyncMock)
    @patch(f"{CLUSTER}.build_cluster_context")
    @patch(f"{CLUSTER}.pain_point_repo")
    @patch(f"{CLUSTER}.settings_repo")
    @patch(f"{CLUSTER}.cluster_repo")
    async def test_force_refresh_stores_clusters(
        self, mock_clusters, mock_settings, mock_pain_points, mock_context, mock_analyze
    ):
        user_id = uuid.uuid4()
        mock_clusters.should_refresh = AsyncMock(return_value=False)
        mock_clusters.replace_clusters = AsyncMock(return_value=1)
        mock_clusters.set_last_analysis_at = AsyncMock()
        mock_settings.get_openai_api_key = AsyncMock(return_value="sk-test")
        mock_pain_points.list_all_with_context = AsyncMock(return_value=["row"])
        mock_context.return_value = [{"id": "p1", "title": "A"}]
        mock_analyze.return_value = [{"cluster_name": "X", "pain_point_ids": ["p1", "gone"]}]

        from workers.common_pain_points import handle_analyze_common_pain_points
        with patch(f"{CLUSTER}.get_db", _fake_get_db()):
            result = await handle_analyze_common_pain_points(
                {"userId": str(user_id), "forceRefresh": True}
            )

        assert result["clusters"] == 1
        mock_clusters.should_refresh.assert_not_awaited()
        stored = mock_clusters.replace_clusters.await_args.args[2]
        assert stored[0]["examples"] == [{"id": "p1", "title": "A"}]
        mock_clusters.set_last_analysis_at.assert_awaited_once()

    @pytest.mark.asyncio
    @patch(f"{CLUSTER}.analyze_common_pain_points", new_callable=AsyncMock)
    @patch(f"{CLUSTER}.pain_point_repo")
    @patch(f"{CLUSTER}.settings_repo")
    @patch(f"{CLUSTER}.cluster_repo")
    async def test_no_pain_points(self, mock_clusters, mock_settings, mock_pain_points, mock_analyze):
        mock_clusters.should_refresh = AsyncMock(return_value=True)
        mock_settings.get_openai_api_key = AsyncMock(return_value="sk-test")
        mock_pain_points.list_all_with_context = AsyncMock(return_value=[])

        from workers.common_pain_points import handle_analyze_common_pain_points
        with patch(f"{CLUSTER}.get_db", _fake_get_db()):
            result = await handle_analyze_common_pain_points({"userId": str(uuid.uuid4())})

        assert result == {"clusters": 0}
        mock_analyze.assert_not_awaited()


class TestTranscribeHandler:
    def test_progress_message(self):
        assert progress_message(1, 3) == "Transcription progress: 33% (1/3 segments complete)"
        assert progress_message(1, 8) == "Transcription progress: 13% (1/8 segments complete)"
        assert progress_message(3, 3) == "Transcription progress: 100% (3/3 segments complete)"

    @pytest.mark.asyncio
    @patch(f"{TRANSCRIBE}.transcribe_chunks", new_callable=AsyncMock)
    @patch(f"{TRANSCRIBE}.storage")
    @patch(f"{TRANSCRIBE}.meeting_repo")
    @patch(f"{TRANSCRIBE}.transcript_repo")
    @patch(f"{TRANSCRIBE}.recording_repo")
    @patch(f"{TRANSCRIBE}.settings_repo")
    async def test_writes_progress_then_text(
        self, mock_settings, mock_recordings, mock_transcripts, mock_meetings, mock_storage, mock_transcribe
    ):
        recording_id, meeting_id, user_id = _ids()
        mock_settings.get_openai_api_key = AsyncMock(return_value="sk-test")
        mock_recordings.get_recording = AsyncMock(
            return_value=SimpleNamespace(file_path="u/m/f.mp3", file_name="f.mp3")
        )
        mock_transcripts.set_content_for_recording = AsyncMock(return_value=1)
        mock_meetings.set_flags = AsyncMock()
        mock_storage.read_bytes.return_value = b"audio"

        async def _fake_transcribe(chunks, api_key, file_name, on_progress):
            await on_progress(1, 1)
            return ["hello world"]

        mock_transcribe.side_effect = _fake_transcribe

        from workers.transcribe import handle_transcribe
        with patch(f"{TRANSCRIBE}.get_db", _fake_get_db()):
            result = await handle_transcribe({
                "recordingId": str(recording_id),
                "meetingId": str(meeting_id),
                "userId": str(user_id),
            })

        assert result["segments"] == 1
        contents = [c.args[4] for c in mock_transcripts.set_content_for_recording.await_args_list]
        assert contents == [
            "Processing audio file...",
            "Splitting audio into segments...",
            "Transcribing 1 segments...",
            "Transcription progress: 100% (1/1 segments complete)",
            "hello world",
        ]
        assert mock_meetings.set_flags.await_args.kwargs == {"has_transcript": True}

    @pytest.mark.asyncio
    @patch(f"{TRANSCRIBE}.storage")
    @patch(f"{TRANSCRIBE}.transcript_repo")
    @patch(f"{TRANSCRIBE}.recording_repo")
    @patch(f"{TRANSCRIBE}.settings_repo")
    async def test_failure_is_written_to_transcript(
        self, mock_settings, mock_recordings, mock_transcripts, mock_storage
    ):
        from errors import StorageError

        mock_settings.get_openai_api_key = AsyncMock(return_value="sk-test")
        mock_recordings.get_recording = AsyncMock(
            return_value=SimpleNamespace(file_path="u/m/f.mp3", file_name="f.mp3")
        )
        mock_transcripts.set_content_for_recording = AsyncMock(return_value=1)
        mock_storage.read_bytes.side_effect = StorageError("Recording file not found: u/m/f.mp3")

        recording_id, meeting_id, user_id = _ids()
        from workers.transcribe import handle_transcribe
        with patch(f"{TRANSCRIBE}.get_db", _fake_get_db()):
            with pytest.raises(StorageError):
                await handle_transcribe({
                    "recordingId": str(recording_id),
                    "meetingId": str(meeting_id),
                    "userId": str(user_id),
                })

        last = mock_transcripts.set_content_for_recording.await_args.args[4]
        assert last == "Transcription failed: Recording file not found: u/m/f.mp3"


class TestRunner:
    def _job(self, queue, payload=None):
        return SimpleNamespace(id=uuid.uuid4(), queue=queue, payload=payload or {})

    @pytest.mark.asyncio
    @patch(f"{RUNNER}.obs_repo")
    @patch(f"{RUNNER}.job_repo")
    async def test_success_marks_done_and_logs_run(self, mock_jobs, mock_obs):
        mock_jobs.mark_done = AsyncMock()
        mock_jobs.mark_failed = AsyncMock()
        mock_obs.log_worker_run = AsyncMock()
        user_id = uuid.uuid4()
        job = self._job("analyze-transcript", {"userId": str(user_id)})
        handler = AsyncMock(return_value={"model": "o1"})

        from workers.runner import process_job
        with patch.dict(f"{RUNNER}.HANDLERS", {"analyze-transcript": handler}), \
                patch(f"{RUNNER}.get_db", _fake_get_db()):
            assert await process_job(job) is True

        handler.assert_awaited_once_with(job.payload)
        mock_jobs.mark_done.assert_awaited_once()
        mock_jobs.mark_failed.assert_not_awaited()
        log = mock_obs.log_worker_run.await_args
        assert log.args[1] == "analyze-transcript"
        assert log.kwargs["success"] is True
        assert log.kwargs["user_id"] == user_id
        assert log.kwargs["model_used"] == "o1"

    @pytest.mark.asyncio
    @patch(f"{RUNNER}.obs_repo")
    @patch(f"{RUNNER}.job_repo")
    async def test_handler_error_marks_failed(self, mock_jobs, mock_obs):
        mock_jobs.mark_done = AsyncMock()
        mock_jobs.mark_failed = AsyncMock()
        mock_obs.log_worker_run = AsyncMock()
        job = self._job("transcribe")
        handler = AsyncMock(side_effect=AnalysisError("LLM down"))

        from workers.runner import process_job
        with patch.dict(f"{RUNNER}.HANDLERS", {"transcribe": handler}), \
                patch(f"{RUNNER}.get_db", _fake_get_db()):
            assert await process_job(job) is False

        assert mock_jobs.mark_failed.await_args.args[2] == "LLM down"
        assert mock_obs.log_worker_run.await_args.kwargs["error_message"] == "LLM down"
        mock_jobs.mark_done.assert_not_awaited()

    @pytest.mark.asyncio
    @patch(f"{RUNNER}.obs_repo")
    @patch(f"{RUNNER}.job_repo")
    async def test_unknown_queue_marks_failed(self, mock_jobs, mock_obs):
        mock_jobs.mark_failed = AsyncMock()
        mock_obs.log_worker_run = AsyncMock()

        from workers.runner import process_job
        with patch(f"{RUNNER}.get_db", _fake_get_db()):
            assert await process_job(self._job("no-such-queue")) is False

        assert "Unknown queue" in mock_jobs.mark_failed.await_args.args[2]

    @pytest.mark.asyncio
    @patch(f"{RUNNER}.process_job", new_callable=AsyncMock)
    @patch(f"{RUNNER}.job_repo")
    async def test_run_worker_once(self, mock_jobs, mock_process):
        jobs = [self._job("transcribe"), self._job("transcribe")]
        mock_jobs.claim_next = AsyncMock(return_value=jobs)
        mock_process.return_value = True

        from workers.runner import run_worker
        with patch(f"{RUNNER}.get_db", _fake_get_db()):
            processed = await run_worker(queues=["transcribe"], limit=5, once=True)

        assert processed == 2
        assert mock_process.await_count == 2
        assert mock_jobs.claim_next.await_args.args[1:] == (["transcribe"], 5)

    @pytest.mark.asyncio
    @patch(f"{RUNNER}.job_repo")
    async def test_poll_error_does_not_escape(self, mock_jobs):
        mock_jobs.claim_next = AsyncMock(side_effect=RuntimeError("db down"))

        from workers.runner import run_worker
        with patch(f"{RUNNER}.get_db", _fake_get_db()):
            assert await run_worker(queues=["transcribe"], limit=1, once=True) == 0
