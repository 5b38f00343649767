"""HTTP API tests with the database session and repositories mocked."""
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from api.app import create_app
from api.deps import get_session
from errors import MissingApiKeyError

ANALYSIS = "api.routes.analysis"
COMPANIES = "api.routes.companies"
RECORDINGS = "api.routes.recordings"
SETTINGS = "api.routes.settings"

USER_ID = uuid.uuid4()
NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class _Savepoint:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


@pytest.fixture
def session():
    session = MagicMock()
    session.begin_nested.return_value = _Savepoint()
    return session


@pytest.fixture
def client(session):
    app = create_app()

    async def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    return TestClient(app)


@pytest.fixture
def headers():
    return {"X-User-Id": str(USER_ID)}


def _company(**overrides):
    values = {"id": uuid.uuid4(), "name": "Acme", "industry": "Retail", "created_at": NOW}
    values.update(overrides)
    return SimpleNamespace(**values)


class TestHealthAndIdentity:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_missing_user_header(self, client):
        response = client.get("/api/companies")
        assert response.status_code == 401
        assert response.json() == {"error": "http_error", "detail": "X-User-Id header is required"}

    def test_malformed_user_header(self, client):
        response = client.get("/api/companies", headers={"X-User-Id": "not-a-uuid"})
        assert response.status_code == 401


class TestCompanies:
    @patch(f"{COMPANIES}.company_repo")
    def test_list_is_scoped_to_caller(self, mock_repo, client, headers):
        mock_repo.list_companies = AsyncMock(return_value=[_company()])
        response = client.get("/api/companies", headers=headers)
        assert response.status_code == 200
        assert response.json()[0]["name"] == "Acme"
        assert mock_repo.list_companies.await_args.args[1] == USER_ID

    @patch(f"{COMPANIES}.company_repo")
    def test_not_found(self, mock_repo, client, headers):
        mock_repo.get_company = AsyncMock(return_value=None)
        response = client.get(f"/api/companies/{uuid.uuid4()}", headers=headers)
        assert response.status_code == 404
        assert response.json() == {"error": "http_error", "detail": "Company not found"}

    @patch(f"{COMPANIES}.company_repo")
    def test_duplicate_industry(self, mock_repo, client, headers):
        mock_repo.create_industry = AsyncMock(return_value=None)
        response = client.post("/api/industries", json={"name": "Retail"}, headers=headers)
        assert response.status_code == 409

    def test_create_validation(self, client, headers):
        response = client.post("/api/companies", json={"name": ""}, headers=headers)
        assert response.status_code == 422


class TestRecordings:
    @patch(f"{RECORDINGS}.storage")
    @patch(f"{RECORDINGS}.recording_repo")
    @patch(f"{RECORDINGS}.meeting_repo")
    def test_upload(self, mock_meetings, mock_recordings, mock_storage, client, headers):
        meeting_id = uuid.uuid4()
        mock_meetings.get_meeting = AsyncMock(return_value=SimpleNamespace(id=meeting_id))
        mock_storage.save.return_value = f"{USER_ID}/{meeting_id}/x_call.mp3"
        mock_storage.safe_file_name.return_value = "call.mp3"
        mock_recordings.create_recording = AsyncMock(return_value=SimpleNamespace(
            id=uuid.uuid4(), meeting_id=meeting_id, file_path=f"{USER_ID}/{meeting_id}/x_call.mp3",
            file_name="call.mp3", duration=None, created_at=NOW,
        ))

        response = client.post(
            f"/api/meetings/{meeting_id}/recordings",
            files={"file": ("call.mp3", b"audio", "audio/mpeg")},
            headers=headers,
        )

        assert response.status_code == 201
        assert response.json()["file_name"] == "call.mp3"
        mock_storage.save.assert_called_once()
        assert mock_recordings.create_recording.await_args.args[1:3] == (USER_ID, meeting_id)

    @patch(f"{RECORDINGS}.meeting_repo")
    def test_upload_to_missing_meeting(self, mock_meetings, client, headers):
        mock_meetings.get_meeting = AsyncMock(return_value=None)
        response = client.post(
            f"/api/meetings/{uuid.uuid4()}/recordings",
            files={"file": ("call.mp3", b"audio", "audio/mpeg")},
            headers=headers,
        )
        assert response.status_code == 404


class TestSettings:
    @patch(f"{SETTINGS}.settings_repo")
    def test_key_is_masked(self, mock_repo, client, headers):
        mock_repo.get_settings = AsyncMock(return_value=SimpleNamespace(openai_api_key="sk-abcdefgh1234"))
        response = client.get("/api/settings", headers=headers)
        assert response.json() == {"has_openai_api_key": True, "openai_api_key_preview": "sk-...1234"}

    @patch(f"{SETTINGS}.settings_repo")
    def test_no_settings_row(self, mock_repo, client, headers):
        mock_repo.get_settings = AsyncMock(return_value=None)
        response = client.get("/api/settings", headers=headers)
        assert response.json() == {"has_openai_api_key": False, "openai_api_key_preview": None}


class TestSearch:
    def test_short_query(self, client, headers):
        response = client.get("/api/search", params={"q": "a"}, headers=headers)
        assert response.status_code == 200
        assert response.json() == []


class TestAnalyzeTranscript:
    def _body(self, **overrides):
        body = {
            "transcriptId": str(uuid.uuid4()),
            "meetingId": str(uuid.uuid4()),
            "userId": str(USER_ID),
        }
        body.update(overrides)
        return body

    def test_missing_parameters(self, client, headers):
        response = client.post("/api/analyze-transcript", json={"userId": str(USER_ID)}, headers=headers)
        assert response.status_code == 400

    def test_other_users_id_rejected(self, client, headers):
        response = client.post(
            "/api/analyze-transcript", json=self._body(userId=str(uuid.uuid4())), headers=headers
        )
        assert response.status_code == 403

    @patch(f"{ANALYSIS}.transcript_repo")
    def test_transcript_not_found(self, mock_transcripts, client, headers):
        mock_transcripts.get_transcript = AsyncMock(return_value=None)
        response = client.post("/api/analyze-transcript", json=self._body(), headers=headers)
        assert response.status_code == 404

    @patch(f"{ANALYSIS}.settings_repo")
    @patch(f"{ANALYSIS}.transcript_repo")
    def test_missing_api_key(self, mock_transcripts, mock_settings, client, headers):
        body = self._body()
        mock_transcripts.get_transcript = AsyncMock(
            return_value=SimpleNamespace(meeting_id=uuid.UUID(body["meetingId"]))
        )
        mock_settings.get_openai_api_key = AsyncMock(side_effect=MissingApiKeyError("No OpenAI API key"))
        response = client.post("/api/analyze-transcript", json=body, headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == "missing_api_key"

    @patch(f"{ANALYSIS}.job_repo")
    @patch(f"{ANALYSIS}.meeting_repo")
    @patch(f"{ANALYSIS}.settings_repo")
    @patch(f"{ANALYSIS}.transcript_repo")
    def test_enqueues_job(self, mock_transcripts, mock_settings, mock_meetings, mock_jobs, client, headers):
        body = self._body()
        meeting_id = uuid.UUID(body["meetingId"])
        job_id = uuid.uuid4()
        mock_transcripts.get_transcript = AsyncMock(return_value=SimpleNamespace(meeting_id=meeting_id))
        mock_settings.get_openai_api_key = AsyncMock(return_value="sk-test")
        mock_meetings.set_analysis_status = AsyncMock()
        mock_jobs.enqueue = AsyncMock(return_value=SimpleNamespace(id=job_id))

        response = client.post("/api/analyze-transcript", json=body, headers=headers)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Analysis started",
            "status": "in_progress",
            "jobId": str(job_id),
        }
        assert mock_meetings.set_analysis_status.await_args.args[1:] == (USER_ID, meeting_id, "in_progress")
        payload = mock_jobs.enqueue.await_args.args[2]
        assert payload == {
            "transcriptId": body["transcriptId"],
            "meetingId": body["meetingId"],
            "userId": str(USER_ID),
        }

    @patch(f"{ANALYSIS}.job_repo")
    @patch(f"{ANALYSIS}.meeting_repo")
    @patch(f"{ANALYSIS}.settings_repo")
    @patch(f"{ANALYSIS}.transcript_repo")
    def test_enqueue_failure_still_succeeds(
        self, mock_transcripts, mock_settings, mock_meetings, mock_jobs, client, headers
    ):
        body = self._body()
        mock_transcripts.get_transcript = AsyncMock(
            return_value=SimpleNamespace(meeting_id=uuid.UUID(body["meetingId"]))
        )
        mock_settings.get_openai_api_key = AsyncMock(return_value="sk-test")
        mock_meetings.set_analysis_status = AsyncMock()
        mock_jobs.enqueue = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("down")))

        response = client.post("/api/analyze-transcript", json=body, headers=headers)

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["jobId"] is None


class TestAnalyzeCommonPainPoints:
    def _cluster(self):
        return SimpleNamespace(
            id=uuid.uuid4(), cluster_name="Reporting", description="Slow reports", count=2,
            pain_point_ids=["p1", "p2"], impact_summary={"High": 2}, industries=["SaaS"],
            companies=["Acme"], examples=None, created_at=NOW,
        )

    @patch(f"{ANALYSIS}.cluster_repo")
    def test_returns_cached_clusters(self, mock_clusters, client, headers):
        mock_clusters.list_clusters = AsyncMock(return_value=[self._cluster()])
        mock_clusters.get_last_analysis_at = AsyncMock(return_value=NOW)
        mock_clusters.should_refresh = AsyncMock(return_value=True)

        response = client.post(
            "/api/analyze-common-pain-points", json={"userId": str(USER_ID)}, headers=headers
        )

        data = response.json()
        assert response.status_code == 200
        assert data["needsRefresh"] is True
        assert data["lastUpdated"] == NOW.isoformat()
        assert data["clusters"][0]["cluster_name"] == "Reporting"

    @patch(f"{ANALYSIS}.job_repo")
    @patch(f"{ANALYSIS}.settings_repo")
    @patch(f"{ANALYSIS}.cluster_repo")
    def test_force_refresh_enqueues(self, mock_clusters, mock_settings, mock_jobs, client, headers):
        mock_clusters.list_clusters = AsyncMock(return_value=[self._cluster()])
        mock_settings.get_openai_api_key = AsyncMock(return_value="sk-test")
        mock_jobs.enqueue = AsyncMock(return_value=SimpleNamespace(id=uuid.uuid4()))

        response = client.post(
            "/api/analyze-common-pain-points",
            json={"userId": str(USER_ID), "forceRefresh": True},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "in_progress"
        mock_clusters.list_clusters.assert_not_awaited()
        assert mock_jobs.enqueue.await_args.args[2] == {"userId": str(USER_ID), "forceRefresh": True}

    def test_missing_user_id(self, client, headers):
        response = client.post("/api/analyze-common-pain-points", json={}, headers=headers)
        assert response.status_code == 400


class TestTranscribe:
    @patch(f"{ANALYSIS}.job_repo")
    @patch(f"{ANALYSIS}.meeting_repo")
    @patch(f"{ANALYSIS}.transcript_repo")
    @patch(f"{ANALYSIS}.recording_repo")
    def test_creates_placeholder_and_enqueues(
        self, mock_recordings, mock_transcripts, mock_meetings, mock_jobs, client, headers
    ):
        recording_id, meeting_id, transcript_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        mock_recordings.get_recording = AsyncMock(return_value=SimpleNamespace(meeting_id=meeting_id))
        mock_transcripts.create_transcript = AsyncMock(return_value=SimpleNamespace(id=transcript_id))
        mock_jobs.find_active = AsyncMock(return_value=None)
        mock_meetings.set_flags = AsyncMock()
        mock_jobs.enqueue = AsyncMock(return_value=SimpleNamespace(id=uuid.uuid4()))

        response = client.post(
            "/api/transcribe",
            json={"recordingId": str(recording_id), "meetingId": str(meeting_id), "userId": str(USER_ID)},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Transcription started",
            "transcriptId": str(transcript_id),
        }
        assert mock_transcripts.create_transcript.await_args.args[3] == "Transcription in progress..."
        assert mock_transcripts.create_transcript.await_args.kwargs["mark_transcribed"] is False
        assert mock_jobs.enqueue.await_args.kwargs["dedup_key"] == f"transcribe:{recording_id}"
        assert mock_meetings.set_flags.await_args.kwargs == {
            "transcript_outdated": False,
            "analysis_outdated": True,
        }

    @patch(f"{ANALYSIS}.job_repo")
    @patch(f"{ANALYSIS}.transcript_repo")
    @patch(f"{ANALYSIS}.recording_repo")
    def test_active_job_reuses_placeholder(
        self, mock_recordings, mock_transcripts, mock_jobs, client, headers
    ):
        recording_id, meeting_id, transcript_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        mock_recordings.get_recording = AsyncMock(return_value=SimpleNamespace(meeting_id=meeting_id))
        mock_jobs.find_active = AsyncMock(return_value=SimpleNamespace(id=uuid.uuid4()))
        mock_jobs.enqueue = AsyncMock()
        mock_transcripts.get_for_recording = AsyncMock(return_value=SimpleNamespace(id=transcript_id))
        mock_transcripts.create_transcript = AsyncMock()

        response = client.post(
            "/api/transcribe",
            json={"recordingId": str(recording_id), "meetingId": str(meeting_id), "userId": str(USER_ID)},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["transcriptId"] == str(transcript_id)
        assert response.json()["message"] == "Transcription already in progress"
        mock_transcripts.create_transcript.assert_not_awaited()
        mock_jobs.enqueue.assert_not_awaited()

    @patch(f"{ANALYSIS}.recording_repo")
    def test_recording_not_found(self, mock_recordings, client, headers):
        mock_recordings.get_recording = AsyncMock(return_value=None)
        response = client.post(
            "/api/transcribe",
            json={"recordingId": str(uuid.uuid4()), "meetingId": str(uuid.uuid4()), "userId": str(USER_ID)},
            headers=headers,
        )
        assert response.status_code == 404


class TestFeedbackAndJobs:
    def test_empty_feedback(self, client, headers):
        response = client.post(
            "/api/feedback", json={"userId": str(USER_ID), "improvements": "  "}, headers=headers
        )
        assert response.status_code == 400

    def test_feedback_stored(self, client, session, headers):
        session.add = MagicMock()
        session.flush = AsyncMock(
            side_effect=lambda: setattr(session.add.call_args.args[0], "id", uuid.uuid4())
        )
        response = client.post(
            "/api/feedback",
            json={"userId": str(USER_ID), "features": "Dark mode", "anonymous": "yes"},
            headers=headers,
        )
        assert response.status_code == 201
        stored = session.add.call_args.args[0]
        assert stored.features == "Dark mode"
        assert stored.anonymous is True

    @patch(f"{ANALYSIS}.job_repo")
    def test_job_of_another_user_is_hidden(self, mock_jobs, client, headers):
        mock_jobs.get_job = AsyncMock(return_value=SimpleNamespace(payload={"userId": str(uuid.uuid4())}))
        response = client.get(f"/api/jobs/{uuid.uuid4()}", headers=headers)
        assert response.status_code == 404
