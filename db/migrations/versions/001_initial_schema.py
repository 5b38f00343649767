"""Initial schema: crm, obs tables.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _user_id():
    return sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False)


def _created_at():
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")
    )


def upgrade() -> None:
    op.execute("CREATE SCHEMA IF NOT EXISTS crm")
    op.execute("CREATE SCHEMA IF NOT EXISTS obs")

    # ─── CRM Schema ──────────────────────────────────────────────────────────

    op.create_table(
        "companies",
        _id(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("industry", sa.Text, nullable=False),
        _user_id(),
        _created_at(),
        schema="crm",
    )
    op.create_index("ix_companies_user_id", "companies", ["user_id"], schema="crm")

    op.create_table(
        "contacts",
        _id(),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("email", sa.Text, nullable=False),
        sa.Column("phone", sa.Text, nullable=True),
        sa.Column("role", sa.Text, nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("company_id", postgresql.UUID(as_uuid=True), nullable=False),
        _user_id(),
        _created_at(),
        sa.ForeignKeyConstraint(["company_id"], ["crm.companies.id"], name="fk_contact_company", ondelete="CASCADE"),
        schema="crm",
    )
    op.create_index("ix_contacts_user_id", "contacts", ["user_id"], schema="crm")
    op.create_index("ix_contacts_company_id", "contacts", ["company_id"], schema="crm")

    op.create_table(
        "meetings",
        _id(),
        sa.Column("contact_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("company_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("time", sa.Time, nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("status", sa.Text, nullable=False, server_default="scheduled"),
        sa.Column("has_recording", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("has_transcript", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("has_analysis", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("analysis_status", sa.Text, nullable=False, server_default="not_started"),
        sa.Column("analysis_error", sa.Text, nullable=True),
        sa.Column("transcript_outdated", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("analysis_outdated", sa.Boolean, nullable=False, server_default="false"),
        _user_id(),
        _created_at(),
        sa.CheckConstraint(
            "status IN ('scheduled', 'completed', 'analyzed')",
            name="ck_meeting_status",
        ),
        sa.CheckConstraint(
            "analysis_status IN ('not_started', 'in_progress', 'completed', 'failed')",
            name="ck_meeting_analysis_status",
        ),
        sa.ForeignKeyConstraint(["contact_id"], ["crm.contacts.id"], name="fk_meeting_contact", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["company_id"], ["crm.companies.id"], name="fk_meeting_company", ondelete="CASCADE"),
        schema="crm",
    )
    op.create_index("ix_meetings_user_id", "meetings", ["user_id"], schema="crm")
    op.create_index("ix_meetings_contact_id", "meetings", ["contact_id"], schema="crm")
    op.create_index("ix_meetings_company_id", "meetings", ["company_id"], schema="crm")

    op.create_table(
        "recordings",
        _id(),
        sa.Column("meeting_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("file_path", sa.Text, nullable=False),
        sa.Column("file_name", sa.Text, nullable=False),
        sa.Column("duration", sa.Numeric, nullable=True),
        _user_id(),
        _created_at(),
        sa.ForeignKeyConstraint(["meeting_id"], ["crm.meetings.id"], name="fk_recording_meeting", ondelete="CASCADE"),
        schema="crm",
    )
    op.create_index("ix_recordings_user_id", "recordings", ["user_id"], schema="crm")
    op.create_index("ix_recordings_meeting_id", "recordings", ["meeting_id"], schema="crm")

    op.create_table(
        "transcripts",
        _id(),
        sa.Column("meeting_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("recording_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("content", sa.Text, nullable=False),
        _user_id(),
        _created_at(),
        sa.ForeignKeyConstraint(["meeting_id"], ["crm.meetings.id"], name="fk_transcript_meeting", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["recording_id"], ["crm.recordings.id"], name="fk_transcript_recording", ondelete="SET NULL"),
        schema="crm",
    )
    op.create_index("ix_transcripts_user_id", "transcripts", ["user_id"], schema="crm")
    op.create_index("ix_transcripts_meeting_id", "transcripts", ["meeting_id"], schema="crm")

    op.create_table(
        "pain_points",
        _id(),
        sa.Column("meeting_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("root_cause", sa.Text, nullable=False),
        sa.Column("impact", sa.Text, nullable=False),
        sa.Column("citations", sa.Text, nullable=True),
        _user_id(),
        _created_at(),
        sa.CheckConstraint(
            "impact IN ('High', 'Medium', 'Low', 'Not explicitly mentioned')",
            name="ck_pain_point_impact",
        ),
        sa.ForeignKeyConstraint(["meeting_id"], ["crm.meetings.id"], name="fk_pain_point_meeting", ondelete="CASCADE"),
        schema="crm",
    )
    op.create_index("ix_pain_points_user_id", "pain_points", ["user_id"], schema="crm")
    op.create_index("ix_pain_points_meeting_id", "pain_points", ["meeting_id"], schema="crm")

    op.create_table(
        "industries",
        _id(),
        sa.Column("name", sa.Text, nullable=False),
        _user_id(),
        _created_at(),
        sa.UniqueConstraint("name", "user_id", name="uq_industries_name_user_id"),
        schema="crm",
    )
    op.create_index("ix_industries_user_id", "industries", ["user_id"], schema="crm")

    op.create_table(
        "roles",
        _id(),
        sa.Column("name", sa.Text, nullable=False),
        _user_id(),
        _created_at(),
        sa.UniqueConstraint("name", "user_id", name="uq_roles_name_user_id"),
        schema="crm",
    )
    op.create_index("ix_roles_user_id", "roles", ["user_id"], schema="crm")

    op.create_table(
        "user_settings",
        _id(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("openai_api_key", sa.Text, nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("user_id", name="uq_user_settings_user_id"),
        schema="crm",
    )

    op.create_table(
        "feedback",
        _id(),
        _user_id(),
        sa.Column("improvements", sa.Text, nullable=True),
        sa.Column("positives", sa.Text, nullable=True),
        sa.Column("features", sa.Text, nullable=True),
        sa.Column("anonymous", sa.Boolean, nullable=False, server_default="false"),
        _created_at(),
        schema="crm",
    )
    op.create_index("ix_feedback_user_id", "feedback", ["user_id"], schema="crm")

    op.create_table(
        "pain_point_clusters",
        _id(),
        sa.Column("cluster_name", sa.Text, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("pain_point_ids", sa.JSON, nullable=False),
        sa.Column("impact_summary", sa.JSON, nullable=True),
        sa.Column("industries", sa.JSON, nullable=False),
        sa.Column("companies", sa.JSON, nullable=False),
        sa.Column("examples", sa.JSON, nullable=True),
        _user_id(),
        _created_at(),
        schema="crm",
    )
    op.create_index("ix_pain_point_clusters_user_id", "pain_point_clusters", ["user_id"], schema="crm")

    op.create_table(
        "meta_data",
        sa.Column("key", sa.Text, primary_key=True),
        sa.Column("value", sa.Text, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        schema="crm",
    )

    op.create_table(
        "jobs",
        _id(),
        sa.Column("queue", sa.Text, nullable=False),
        sa.Column("payload", sa.JSON, nullable=False),
        sa.Column("dedup_key", sa.Text, nullable=True),
        sa.Column("status", sa.Text, nullable=False, server_default="queued"),
        sa.Column("error", sa.Text, nullable=True),
        sa.Column("attempts", sa.Integer, nullable=False, server_default="0"),
        sa.Column("enqueued_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("finished_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status IN ('queued', 'running', 'done', 'failed')",
            name="ck_job_status",
        ),
        schema="crm",
    )
    op.create_index("ix_jobs_queue", "jobs", ["queue"], schema="crm")
    op.create_index("ix_jobs_dedup_key", "jobs", ["dedup_key"], schema="crm")
    op.create_index("ix_jobs_status_enqueued_at", "jobs", ["status", "enqueued_at"], schema="crm")

    # ─── OBS Schema ──────────────────────────────────────────────────────────

    op.create_table(
        "worker_run_log",
        _id(),
        sa.Column("job_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("queue", sa.Text, nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_ms", sa.Integer, nullable=True),
        sa.Column("success", sa.Boolean, nullable=True),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("model_used", sa.Text, nullable=True),
        schema="obs",
    )
    op.create_index("ix_worker_run_log_job_id", "worker_run_log", ["job_id"], schema="obs")


def downgrade() -> None:
    op.drop_index("ix_worker_run_log_job_id", table_name="worker_run_log", schema="obs")
    # Drop in reverse dependency order
    op.drop_table("worker_run_log", schema="obs")
    op.drop_table("jobs", schema="crm")
    op.drop_table("meta_data", schema="crm")
    op.drop_table("pain_point_clusters", schema="crm")
    op.drop_table("feedback", schema="crm")
    op.drop_table("user_settings", schema="crm")
    op.drop_table("roles", schema="crm")
    op.drop_table("industries", schema="crm")
    op.drop_table("pain_points", schema="crm")
    op.drop_table("transcripts", schema="crm")
    op.drop_table("recordings", schema="crm")
    op.drop_table("meetings", schema="crm")
    op.drop_table("contacts", schema="crm")
    op.drop_table("companies", schema="crm")
