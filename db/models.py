"""SQLAlchemy 2.0 ORM models for PainPoint.

Covers 14 tables across 2 schemas:
  - crm: companies, contacts, meetings, recordings, transcripts, pain_points,
         industries, roles, user_settings, feedback, pain_point_clusters,
         meta_data, jobs
  - obs: worker_run_log

Every crm row except meta_data and jobs is owned by a user (user_id). The
repositories filter on it for every read and write.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    UUID,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Integer,
    JSON,
    Numeric,
    Text,
    Time,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


# ---------------------------------------------------------------------------
# Shared base
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Enumerated values used in CHECK constraints
# ---------------------------------------------------------------------------

MEETING_STATUSES = ("scheduled", "completed", "analyzed")
ANALYSIS_STATUSES = ("not_started", "in_progress", "completed", "failed")
IMPACT_LEVELS = ("High", "Medium", "Low", "Not explicitly mentioned")
JOB_STATUSES = ("queued", "running", "done", "failed")


def _in_check(column: str, values: tuple[str, ...]) -> str:
    return f"{column} IN (" + ", ".join(f"'{v}'" for v in values) + ")"


def _uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)


def _owner() -> Mapped[uuid.UUID]:
    return mapped_column(UUID(as_uuid=True), nullable=False, index=True)


def _created_at() -> Mapped[datetime]:
    return mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


# ===========================================================================
# Schema: crm
# ===========================================================================


class Company(Base):
    """crm.companies — an account the user has meetings with."""

    __tablename__ = "companies"
    __table_args__ = {"schema": "crm"}

    id: Mapped[uuid.UUID] = _uuid_pk()
    name: Mapped[str] = mapped_column(Text, nullable=False)
    industry: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[uuid.UUID] = _owner()
    created_at: Mapped[datetime] = _created_at()

    # Relationships
    contacts: Mapped[list["Contact"]] = relationship(
        "Contact", back_populates="company", cascade="all, delete-orphan"
    )
    meetings: Mapped[list["Meeting"]] = relationship(
        "Meeting", back_populates="company", cascade="all, delete-orphan"
    )


class Contact(Base):
    """crm.contacts — a person at a company."""

    __tablename__ = "contacts"
    __table_args__ = {"schema": "crm"}

    id: Mapped[uuid.UUID] = _uuid_pk()
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = _owner()
    created_at: Mapped[datetime] = _created_at()

    # Relationships
    company: Mapped["Company"] = relationship("Company", back_populates="contacts")
    meetings: Mapped[list["Meeting"]] = relationship(
        "Meeting", back_populates="contact", cascade="all, delete-orphan"
    )


class Meeting(Base):
    """crm.meetings — a scheduled or held conversation with a contact."""

    __tablename__ = "meetings"
    __table_args__ = (
        CheckConstraint(_in_check("status", MEETING_STATUSES), name="ck_meeting_status"),
        CheckConstraint(
            _in_check("analysis_status", ANALYSIS_STATUSES),
            name="ck_meeting_analysis_status",
        ),
        {"schema": "crm"},
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    contact_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.contacts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    company_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[dt.time] = mapped_column(Time, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, server_default="scheduled")
    has_recording: Mapped[bool] = mapped_column(Boolean, server_default="false", nullable=False)
    has_transcript: Mapped[bool] = mapped_column(Boolean, server_default="false", nullable=False)
    has_analysis: Mapped[bool] = mapped_column(Boolean, server_default="false", nullable=False)
    analysis_status: Mapped[str] = mapped_column(
        Text, nullable=False, server_default="not_started"
    )
    analysis_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # New recording uploaded since the transcript / analysis were produced
    transcript_outdated: Mapped[bool] = mapped_column(
        Boolean, server_default="false", nullable=False
    )
    analysis_outdated: Mapped[bool] = mapped_column(
        Boolean, server_default="false", nullable=False
    )
    user_id: Mapped[uuid.UUID] = _owner()
    created_at: Mapped[datetime] = _created_at()

    # Relationships
    contact: Mapped["Contact"] = relationship("Contact", back_populates="meetings")
    company: Mapped["Company"] = relationship("Company", back_populates="meetings")
    recordings: Mapped[list["Recording"]] = relationship(
        "Recording", back_populates="meeting", cascade="all, delete-orphan"
    )
    transcripts: Mapped[list["Transcript"]] = relationship(
        "Transcript", back_populates="meeting", cascade="all, delete-orphan"
    )
    pain_points: Mapped[list["PainPoint"]] = relationship(
        "PainPoint", back_populates="meeting", cascade="all, delete-orphan"
    )


class Recording(Base):
    """crm.recordings — an uploaded audio file for a meeting."""

    __tablename__ = "recordings"
    __table_args__ = {"schema": "crm"}

    id: Mapped[uuid.UUID] = _uuid_pk()
    meeting_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.meetings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    duration: Mapped[Optional[float]] = mapped_column(Numeric, nullable=True)
    user_id: Mapped[uuid.UUID] = _owner()
    created_at: Mapped[datetime] = _created_at()

    meeting: Mapped["Meeting"] = relationship("Meeting", back_populates="recordings")


class Transcript(Base):
    """crm.transcripts — text of a meeting, typed in or produced from a recording."""

    __tablename__ = "transcripts"
    __table_args__ = {"schema": "crm"}

    id: Mapped[uuid.UUID] = _uuid_pk()
    meeting_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.meetings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    recording_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.recordings.id", ondelete="SET NULL"),
        nullable=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[uuid.UUID] = _owner()
    created_at: Mapped[datetime] = _created_at()

    meeting: Mapped["Meeting"] = relationship("Meeting", back_populates="transcripts")


class PainPoint(Base):
    """crm.pain_points — a customer difficulty extracted from a transcript."""

    __tablename__ = "pain_points"
    __table_args__ = (
        CheckConstraint(_in_check("impact", IMPACT_LEVELS), name="ck_pain_point_impact"),
        {"schema": "crm"},
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    meeting_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("crm.meetings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    root_cause: Mapped[str] = mapped_column(Text, nullable=False)
    impact: Mapped[str] = mapped_column(Text, nullable=False)
    # Verbatim transcript quotes, blank-line separated
    citations: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_id: Mapped[uuid.UUID] = _owner()
    created_at: Mapped[datetime] = _created_at()

    meeting: Mapped["Meeting"] = relationship("Meeting", back_populates="pain_points")


class Industry(Base):
    """crm.industries — per-user pick list for Company.industry."""

    __tablename__ = "industries"
    __table_args__ = (
        UniqueConstraint("name", "user_id", name="uq_industries_name_user_id"),
        {"schema": "crm"},
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    name: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[uuid.UUID] = _owner()
    created_at: Mapped[datetime] = _created_at()


class Role(Base):
    """crm.roles — per-user pick list for Contact.role."""

    __tablename__ = "roles"
    __table_args__ = (
        UniqueConstraint("name", "user_id", name="uq_roles_name_user_id"),
        {"schema": "crm"},
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    name: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[uuid.UUID] = _owner()
    created_at: Mapped[datetime] = _created_at()


class UserSettings(Base):
    """crm.user_settings — one row per user; holds their own OpenAI key."""

    __tablename__ = "user_settings"
    __table_args__ = {"schema": "crm"}

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), unique=True, nullable=False)
    openai_api_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = _created_at()
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class Feedback(Base):
    """crm.feedback — product feedback submitted from the app."""

    __tablename__ = "feedback"
    __table_args__ = {"schema": "crm"}

    id: Mapped[uuid.UUID] = _uuid_pk()
    user_id: Mapped[uuid.UUID] = _owner()
    improvements: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    positives: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    features: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    anonymous: Mapped[bool] = mapped_column(Boolean, server_default="false", nullable=False)
    created_at: Mapped[datetime] = _created_at()


class PainPointCluster(Base):
    """crm.pain_point_clusters — cached output of the cross-meeting clustering run."""

    __tablename__ = "pain_point_clusters"
    __table_args__ = {"schema": "crm"}

    id: Mapped[uuid.UUID] = _uuid_pk()
    cluster_name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    pain_point_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    impact_summary: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    industries: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    companies: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    examples: Mapped[Optional[list[dict[str, Any]]]] = mapped_column(JSON, nullable=True)
    user_id: Mapped[uuid.UUID] = _owner()
    created_at: Mapped[datetime] = _created_at()


class MetaData(Base):
    """crm.meta_data — small key/value store (e.g. last_pain_point_analysis)."""

    __tablename__ = "meta_data"
    __table_args__ = {"schema": "crm"}

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class Job(Base):
    """crm.jobs — background work queue consumed by the worker process."""

    __tablename__ = "jobs"
    __table_args__ = (
        CheckConstraint(_in_check("status", JOB_STATUSES), name="ck_job_status"),
        {"schema": "crm"},
    )

    id: Mapped[uuid.UUID] = _uuid_pk()
    queue: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    # Active (queued or running) jobs with the same key are not enqueued twice
    dedup_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True, index=True)
    status: Mapped[str] = mapped_column(Text, nullable=False, server_default="queued")
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    enqueued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    finished_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )


# ===========================================================================
# Schema: obs
# ===========================================================================


class WorkerRunLog(Base):
    """obs.worker_run_log — one row per job the worker executed."""

    __tablename__ = "worker_run_log"
    __table_args__ = {"schema": "obs"}

    id: Mapped[uuid.UUID] = _uuid_pk()
    # Loose UUID references, no FK enforced
    job_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True, index=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(UUID(as_uuid=True), nullable=True)
    queue: Mapped[str] = mapped_column(Text, nullable=False)
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    success: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    model_used: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "Base",
    "MEETING_STATUSES",
    "ANALYSIS_STATUSES",
    "IMPACT_LEVELS",
    "JOB_STATUSES",
    # crm
    "Company",
    "Contact",
    "Meeting",
    "Recording",
    "Transcript",
    "PainPoint",
    "Industry",
    "Role",
    "UserSettings",
    "Feedback",
    "PainPointCluster",
    "MetaData",
    "Job",
    # obs
    "WorkerRunLog",
]
