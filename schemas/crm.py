"""Request and response models for the CRUD endpoints."""
import datetime as dt
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class OrmModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# ─── Companies / industries ─────────────────────────────────────────────────

class CompanyCreate(BaseModel):
    name: str = Field(min_length=1)
    industry: str = Field(min_length=1)


class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    industry: Optional[str] = Field(default=None, min_length=1)


class CompanyOut(OrmModel):
    id: UUID
    name: str
    industry: str
    created_at: dt.datetime


class NameCreate(BaseModel):
    name: str = Field(min_length=1)


class NamedOut(OrmModel):
    id: UUID
    name: str


# ─── Contacts ───────────────────────────────────────────────────────────────

class ContactCreate(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    role: str = Field(min_length=1)
    company_id: UUID
    notes: Optional[str] = None


class ContactUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    role: Optional[str] = Field(default=None, min_length=1)
    company_id: Optional[UUID] = None
    notes: Optional[str] = None


class ContactOut(OrmModel):
    id: UUID
    name: str
    email: str
    phone: Optional[str] = None
    role: str
    notes: Optional[str] = None
    company_id: UUID
    company: Optional[CompanyOut] = None
    created_at: dt.datetime


class NotesUpdate(BaseModel):
    notes: Optional[str] = None


# ─── Meetings and their children ────────────────────────────────────────────

class MeetingCreate(BaseModel):
    contact_id: UUID
    company_id: Optional[UUID] = None
    date: dt.date
    time: dt.time
    notes: Optional[str] = None
    status: Optional[str] = Field(default=None, pattern="^(scheduled|completed|analyzed)$")


class MeetingUpdate(BaseModel):
    contact_id: Optional[UUID] = None
    company_id: Optional[UUID] = None
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    notes: Optional[str] = None
    status: Optional[str] = Field(default=None, pattern="^(scheduled|completed|analyzed)$")


class MeetingOut(OrmModel):
    id: UUID
    contact_id: UUID
    company_id: UUID
    date: dt.date
    time: dt.time
    notes: Optional[str] = None
    status: str
    has_recording: bool
    has_transcript: bool
    has_analysis: bool
    analysis_status: str
    analysis_error: Optional[str] = None
    transcript_outdated: bool
    analysis_outdated: bool
    created_at: dt.datetime
    contact: Optional[NamedOut] = None
    company: Optional[CompanyOut] = None


class RecordingOut(OrmModel):
    id: UUID
    meeting_id: UUID
    file_path: str
    file_name: str
    duration: Optional[float] = None
    created_at: dt.datetime


class TranscriptCreate(BaseModel):
    meeting_id: UUID
    content: str = Field(min_length=1)
    recording_id: Optional[UUID] = None


class TranscriptUpdate(BaseModel):
    content: str = Field(min_length=1)


class TranscriptOut(OrmModel):
    id: UUID
    meeting_id: UUID
    recording_id: Optional[UUID] = None
    content: str
    created_at: dt.datetime


IMPACT_PATTERN = "^(High|Medium|Low|Not explicitly mentioned)$"


class PainPointCreate(BaseModel):
    meeting_id: UUID
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    root_cause: str = "Not explicitly mentioned"
    impact: str = Field(default="Not explicitly mentioned", pattern=IMPACT_PATTERN)
    citations: Optional[str] = None


class PainPointUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    root_cause: Optional[str] = None
    impact: Optional[str] = Field(default=None, pattern=IMPACT_PATTERN)
    citations: Optional[str] = None


class PainPointOut(OrmModel):
    id: UUID
    meeting_id: UUID
    title: str
    description: str
    root_cause: str
    impact: str
    citations: Optional[str] = None
    created_at: dt.datetime


class MeetingDetailOut(MeetingOut):
    recordings: List[RecordingOut] = Field(default_factory=list)
    transcripts: List[TranscriptOut] = Field(default_factory=list)
    pain_points: List[PainPointOut] = Field(default_factory=list)


# ─── Insights ───────────────────────────────────────────────────────────────

class ClusterOut(OrmModel):
    id: UUID
    cluster_name: str
    description: Optional[str] = None
    count: int
    pain_point_ids: List[str]
    impact_summary: Optional[Dict[str, int]] = None
    industries: List[str]
    companies: List[str]
    examples: Optional[List[Dict[str, Any]]] = None
    created_at: dt.datetime


class GraphNode(BaseModel):
    id: str
    name: str
    count: int
    radius: float
    x: float
    y: float


class GraphLink(BaseModel):
    source: str
    target: str
    strength: float


class GraphOut(BaseModel):
    nodes: List[GraphNode]
    links: List[GraphLink]
    width: float
    height: float


class CompanyInsightsOut(BaseModel):
    company: CompanyOut
    pain_points: List[PainPointOut]
    impact_counts: Dict[str, int]
    top_titles: List[Dict[str, Any]]


class SearchResult(BaseModel):
    id: str
    title: str
    description: str
    type: str
    link: str


# ─── Settings ───────────────────────────────────────────────────────────────

class SettingsOut(BaseModel):
    has_openai_api_key: bool
    openai_api_key_preview: Optional[str] = None


class SettingsUpdate(BaseModel):
    openai_api_key: Optional[str] = None
