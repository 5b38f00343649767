"""Structured LLM output for transcript analysis and pain point clustering.

These models are passed to litellm as response_format, so every field is
required (strict JSON schema); nullable fields are Optional without a default.
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class ExtractedPainPoint(BaseModel):
    title: str = Field(description="Short, concise title of the pain point (5-10 words max).")
    description: str = Field(description="Full description of the pain point.")
    citations: List[str] = Field(
        description="Direct quotes from the transcript that support this pain point."
    )
    root_cause: Optional[str] = Field(
        description="Root cause, ONLY if explicitly mentioned in the transcript."
    )
    impact: Optional[str] = Field(
        description="Impact level (High/Medium/Low), ONLY if explicitly mentioned."
    )


class PainPointAnalysis(BaseModel):
    pain_points: List[ExtractedPainPoint]


class ImpactSummary(BaseModel):
    High: int
    Medium: int
    Low: int
    Unknown: int


class PainPointClusterResult(BaseModel):
    cluster_name: str = Field(description="A concise name for this cluster of similar pain points")
    description: str = Field(description="A 1-2 sentence description of the common theme")
    count: int = Field(description="Number of pain points in this cluster")
    pain_point_ids: List[str]
    impact_summary: ImpactSummary
    industries: List[str]
    companies: List[str]


class ClusterAnalysis(BaseModel):
    clusters: List[PainPointClusterResult]
