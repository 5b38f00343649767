"""Model selection.

Every model name can be overridden from the environment:
  ANALYSIS_MODEL       first, free-text pass over a transcript (default o1)
  STRUCTURING_MODEL    second pass that turns the analysis into strict JSON
  CLUSTER_MODEL        first pass of the cross-meeting clustering
  TRANSCRIPTION_MODEL  speech-to-text

Usage:
    from model_config import get_analysis_model
    model = get_analysis_model()
"""
import os

# Model identifiers
DEFAULT_ANALYSIS_MODEL = "o1"
DEFAULT_STRUCTURING_MODEL = "gpt-4o"
DEFAULT_TRANSCRIPTION_MODEL = "whisper-1"


def get_analysis_model() -> str:
    return os.environ.get("ANALYSIS_MODEL", DEFAULT_ANALYSIS_MODEL)


def get_structuring_model() -> str:
    return os.environ.get("STRUCTURING_MODEL", DEFAULT_STRUCTURING_MODEL)


def get_cluster_model() -> str:
    """Return the clustering model; falls back to the analysis model."""
    return os.environ.get("CLUSTER_MODEL", get_analysis_model())


def get_transcription_model() -> str:
    return os.environ.get("TRANSCRIPTION_MODEL", DEFAULT_TRANSCRIPTION_MODEL)


def active_provider() -> str:
    """Return the litellm provider prefix of the analysis model ('openai' when bare)."""
    model = get_analysis_model()
    return model.split("/", 1)[0] if "/" in model else "openai"
