from .analysis import (
    ExtractedPainPoint,
    PainPointAnalysis,
    ImpactSummary,
    PainPointClusterResult,
    ClusterAnalysis,
)
from .api import (
    ErrorResponse,
    HealthResponse,
    AnalyzeTranscriptRequest,
    AnalyzeCommonPainPointsRequest,
    TranscribeRequest,
    FeedbackRequest,
    JobStartedResponse,
    TranscriptionStartedResponse,
    CachedClustersResponse,
    FeedbackResponse,
    JobOut,
)

__all__ = [
    "ExtractedPainPoint", "PainPointAnalysis", "ImpactSummary",
    "PainPointClusterResult", "ClusterAnalysis",
    "ErrorResponse", "HealthResponse",
    "AnalyzeTranscriptRequest", "AnalyzeCommonPainPointsRequest", "TranscribeRequest",
    "FeedbackRequest", "JobStartedResponse", "TranscriptionStartedResponse",
    "CachedClustersResponse", "FeedbackResponse", "JobOut",
]
