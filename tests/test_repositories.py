"""Integration tests for core repository methods.

DATABASE_URL must point at a migrated database (alembic upgrade head).
Example: export DATABASE_URL="postgresql+asyncpg://painpoint:<password>@localhost:5432/painpoint_test"
"""
import io
import os
import uuid
from datetime import date, time, timedelta
from types import SimpleNamespace

import pytest
import pytest_asyncio
from sqlalchemy import column, table, text

from db import dispose_engine, get_db
from db.repositories import clusters as cluster_repo
from db.repositories import companies as company_repo
from db.repositories import contacts as contact_repo
from db.repositories import dashboard as dashboard_repo
from db.repositories import jobs as job_repo
from db.repositories import meetings as meeting_repo
from db.repositories import pain_points as pain_point_repo
from db.repositories import recordings as recording_repo
from db.repositories import search as search_repo
from db.repositories import transcripts as transcript_repo
from db.repositories import user_settings as settings_repo

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not os.environ.get("DATABASE_URL"), reason="DATABASE_URL not set"),
]


@pytest_asyncio.fixture(autouse=True)
async def _fresh_pool():
    yield
    # Each test runs on its own event loop; pooled connections must not leak across.
    await dispose_engine()


async def _meeting(session, user_id, **overrides):
    company = await company_repo.create_company(session, user_id, "Acme", "Retail")
    contact = await contact_repo.create_contact(session, user_id, {
        "name": "Jane Smith",
        "email": "Jane@Acme.com",
        "role": "CTO",
        "company_id": company.id,
    })
    data = {"contact_id": contact.id, "date": date.today(), "time": time(10, 0)}
    data.update(overrides)
    meeting = await meeting_repo.create_meeting(session, user_id, data)
    return company, contact, meeting


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_contact_email_lowercased_and_meeting_inherits_company():
    user_id = uuid.uuid4()
    async with get_db() as session:
        company, contact, meeting = await _meeting(session, user_id)
    assert contact.email == "jane@acme.com"
    assert meeting.company_id == company.id
    assert meeting.status == "scheduled"
    assert meeting.analysis_status == "not_started"


@pytest.mark.asyncio
async def test_rows_are_scoped_to_their_owner():
    owner, stranger = uuid.uuid4(), uuid.uuid4()
    async with get_db() as session:
        company = await company_repo.create_company(session, owner, "Private Co", "SaaS")
    async with get_db() as session:
        assert await company_repo.get_company(session, stranger, company.id) is None
        assert await company_repo.delete_company(session, stranger, company.id) is False
        assert await company_repo.get_company(session, owner, company.id) is not None


@pytest.mark.asyncio
async def test_recording_after_transcript_marks_outdated(tmp_path, monkeypatch):
    monkeypatch.setenv("RECORDINGS_DIR", str(tmp_path))
    user_id = uuid.uuid4()
    async with get_db() as session:
        _, _, meeting = await _meeting(session, user_id)
        await transcript_repo.create_transcript(session, user_id, meeting.id, "typed notes")
        await recording_repo.create_recording(session, user_id, meeting.id, "u/m/a.mp3", "a.mp3")
    async with get_db() as session:
        meeting = await meeting_repo.get_meeting(session, user_id, meeting.id)
    assert meeting.has_recording is True
    assert meeting.has_transcript is True
    assert meeting.status == "completed"
    assert meeting.transcript_outdated is True
    assert meeting.analysis_outdated is True


@pytest.mark.asyncio
async def test_replace_pain_points_and_clear_flag():
    user_id = uuid.uuid4()
    async with get_db() as session:
        _, _, meeting = await _meeting(session, user_id)
        await pain_point_repo.replace_for_meeting(session, user_id, meeting.id, [
            {"title": "A", "description": "a", "root_cause": "Not explicitly mentioned",
             "impact": "High", "citations": ""},
            {"title": "B", "description": "b", "root_cause": "Legacy tooling",
             "impact": "Not explicitly mentioned", "citations": "quote"},
        ])
        await meeting_repo.set_flags(session, user_id, meeting.id, has_analysis=True)
    async with get_db() as session:
        points = await pain_point_repo.list_pain_points(session, user_id, meeting.id)
        assert {p.title for p in points} == {"A", "B"}
        for point in points:
            await pain_point_repo.delete_pain_point(session, user_id, point.id)
    async with get_db() as session:
        meeting = await meeting_repo.get_meeting(session, user_id, meeting.id)
    assert meeting.has_analysis is False


@pytest.mark.asyncio
async def test_enqueue_dedup_and_claim():
    user_id = uuid.uuid4()
    dedup = f"test:{uuid.uuid4()}"
    async with get_db() as session:
        first = await job_repo.enqueue(session, job_repo.TRANSCRIBE_QUEUE, {"userId": str(user_id)}, dedup)
        second = await job_repo.enqueue(session, job_repo.TRANSCRIBE_QUEUE, {"userId": str(user_id)}, dedup)
    assert first.id == second.id

    async with get_db() as session:
        claimed = await job_repo.claim_next(session, [job_repo.TRANSCRIBE_QUEUE], limit=50)
    mine = [job for job in claimed if job.id == first.id]
    assert mine and mine[0].status == "running"
    assert mine[0].attempts == 1

    async with get_db() as session:
        await job_repo.mark_failed(session, first.id, "boom")
    async with get_db() as session:
        job = await job_repo.get_job(session, first.id)
    assert job.status == "failed"
    assert job.error == "boom"
    assert job.finished_at is not None


@pytest.mark.asyncio
async def test_unknown_queue_rejected():
    async with get_db() as session:
        with pytest.raises(ValueError):
            await job_repo.enqueue(session, "no-such-queue", {})


@pytest.mark.asyncio
async def test_cluster_cache_and_freshness():
    user_id = uuid.uuid4()
    async with get_db() as session:
        stored = await cluster_repo.replace_clusters(session, user_id, [{
            "cluster_name": "Reporting",
            "description": "Slow reports",
            "count": 1,
            "pain_point_ids": ["p1"],
            "impact_summary": {"High": 1, "Medium": 0, "Low": 0, "Unknown": 0},
            "industries": ["Retail"],
            "companies": ["Acme"],
            "examples": [],
        }])
        assert stored == 1
        assert await cluster_repo.should_refresh(session, user_id) is True
        await cluster_repo.set_last_analysis_at(session, user_id)
    async with get_db() as session:
        assert await cluster_repo.should_refresh(session, user_id) is False
        assert [c.cluster_name for c in await cluster_repo.list_clusters(session, user_id)] == ["Reporting"]
        last = await cluster_repo.get_last_analysis_at(session, user_id)
    assert last is not None

    async with get_db() as session:
        _, _, meeting = await _meeting(session, user_id)
        await pain_point_repo.create_pain_point(session, user_id, meeting.id, {
            "title": "New", "description": "n", "root_cause": "Not explicitly mentioned",
            "impact": "Low", "citations": "",
        })
    async with get_db() as session:
        assert await cluster_repo.should_refresh(session, user_id) is True


@pytest.mark.asyncio
async def test_seed_defaults_is_idempotent():
    user_id = uuid.uuid4()
    async with get_db() as session:
        first = await settings_repo.seed_defaults(session, user_id)
    async with get_db() as session:
        second = await settings_repo.seed_defaults(session, user_id)
        roles = await contact_repo.list_roles(session, user_id)
    assert first["industries"] > 0 and first["roles"] > 0
    assert second == {"industries": 0, "roles": 0}
    assert len(roles) == first["roles"]


@pytest.mark.asyncio
async def test_search_finds_contact_and_company():
    user_id = uuid.uuid4()
    async with get_db() as session:
        await _meeting(session, user_id, notes="Discussed onboarding", date=date.today() - timedelta(days=1))
    async with get_db() as session:
        results = await search_repo.search_all(session, user_id, "acme")
        notes = await search_repo.search_all(session, user_id, "onboarding")
    types = {r["type"] for r in results}
    assert {"contact", "company"} <= types
    assert [r["type"] for r in notes] == ["meeting"]


@pytest.mark.asyncio
async def test_failed_sub_search_leaves_others_working(monkeypatch):
    user_id = uuid.uuid4()
    async with get_db() as session:
        await _meeting(session, user_id)

    async def _broken(session, user_id, pattern):
        await session.execute(text("SELECT * FROM crm.no_such_table"))
        return []

    monkeypatch.setattr(search_repo, "_SEARCHES", [("broken", _broken)] + search_repo._SEARCHES)
    async with get_db() as session:
        results = await search_repo.search_all(session, user_id, "acme")
    assert {"contact", "company"} <= {r["type"] for r in results}


@pytest.mark.asyncio
async def test_metrics_error_keeps_session_usable(monkeypatch):
    user_id = uuid.uuid4()
    async with get_db() as session:
        _, _, meeting = await _meeting(session, user_id, date=date.today() + timedelta(days=1))

    missing = table("no_such_table", column("id"), column("created_at"), column("user_id"), schema="crm")
    monkeypatch.setitem(
        dashboard_repo._METRIC_MODELS,
        "missing",
        SimpleNamespace(id=missing.c.id, created_at=missing.c.created_at, user_id=missing.c.user_id),
    )
    async with get_db() as session:
        metrics = await dashboard_repo.get_dashboard_metrics(session, user_id)
        upcoming = await meeting_repo.get_upcoming_meetings(session, user_id)
    assert metrics["meetings"] == {"total": 0, "weeklyChange": 0}
    assert [m.id for m in upcoming] == [meeting.id]


@pytest.mark.asyncio
async def test_freshness_error_keeps_session_usable(monkeypatch):
    user_id = uuid.uuid4()

    async def _broken(session, user_id):
        await session.execute(text("SELECT * FROM crm.no_such_table"))

    monkeypatch.setattr(cluster_repo.pain_points, "latest_created_at", _broken)
    async with get_db() as session:
        assert await cluster_repo.should_refresh(session, user_id) is True
        job = await job_repo.enqueue(
            session, job_repo.ANALYZE_COMMON_PAIN_POINTS_QUEUE, {"userId": str(user_id)},
        )
    async with get_db() as session:
        assert await job_repo.get_job(session, job.id) is not None


@pytest.mark.asyncio
async def test_transcription_placeholder_does_not_mark_transcribed():
    user_id = uuid.uuid4()
    async with get_db() as session:
        _, _, meeting = await _meeting(session, user_id)
        recording = await recording_repo.create_recording(session, user_id, meeting.id, "u/m/a.mp3", "a.mp3")
        placeholder = await transcript_repo.create_transcript(
            session, user_id, meeting.id, "Transcription in progress...",
            recording_id=recording.id, mark_transcribed=False,
        )
        dedup = f"transcribe:{recording.id}"
        job = await job_repo.enqueue(session, job_repo.TRANSCRIBE_QUEUE, {"userId": str(user_id)}, dedup)
    async with get_db() as session:
        refreshed = await meeting_repo.get_meeting(session, user_id, meeting.id)
        found = await transcript_repo.get_for_recording(session, user_id, meeting.id, recording.id)
        active = await job_repo.find_active(session, dedup)
    assert refreshed.has_transcript is False
    assert found.id == placeholder.id
    assert active.id == job.id
