"""Request and response bodies for the background-work endpoints."""
import datetime as dt
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from schemas.crm import ClusterOut


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    version: str


class AnalyzeTranscriptRequest(CamelModel):
    transcript_id: Optional[UUID] = Field(default=None, alias="transcriptId")
    meeting_id: Optional[UUID] = Field(default=None, alias="meetingId")
    user_id: Optional[UUID] = Field(default=None, alias="userId")


class AnalyzeCommonPainPointsRequest(CamelModel):
    user_id: Optional[UUID] = Field(default=None, alias="userId")
    force_refresh: bool = Field(default=False, alias="forceRefresh")


class TranscribeRequest(CamelModel):
    recording_id: Optional[UUID] = Field(default=None, alias="recordingId")
    meeting_id: Optional[UUID] = Field(default=None, alias="meetingId")
    user_id: Optional[UUID] = Field(default=None, alias="userId")


class FeedbackRequest(CamelModel):
    improvements: Optional[str] = None
    positives: Optional[str] = None
    features: Optional[str] = None
    user_id: Optional[UUID] = Field(default=None, alias="userId")
    anonymous: Optional[Any] = False


class JobStartedResponse(CamelModel):
    success: bool = True
    message: str
    status: str = "in_progress"
    job_id: Optional[UUID] = Field(default=None, alias="jobId")


class TranscriptionStartedResponse(CamelModel):
    success: bool = True
    message: str
    transcript_id: UUID = Field(alias="transcriptId")


class CachedClustersResponse(CamelModel):
    clusters: List[ClusterOut]
    last_updated: Optional[str] = Field(default=None, alias="lastUpdated")
    needs_refresh: bool = Field(alias="needsRefresh")


class FeedbackResponse(CamelModel):
    success: bool = True
    message: str = "Feedback submitted"
    id: UUID


class JobOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    queue: str
    status: str
    error: Optional[str] = None
    attempts: int
    payload: Dict[str, Any]
    enqueued_at: dt.datetime
    started_at: Optional[dt.datetime] = None
    finished_at: Optional[dt.datetime] = None
