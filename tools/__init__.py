from .analysis import (
    analyze_pain_points, analyze_common_pain_points,
    build_cluster_context, attach_examples,
    normalize_pain_point, parse_pain_points, parse_clusters,
)
from .transcription import (
    split_audio_bytes, transcribe_chunks, combine_transcriptions,
)
from .graph import build_cluster_graph, force_layout

__all__ = [
    "analyze_pain_points", "analyze_common_pain_points",
    "build_cluster_context", "attach_examples",
    "normalize_pain_point", "parse_pain_points", "parse_clusters",
    "split_audio_bytes", "transcribe_chunks", "combine_transcriptions",
    "build_cluster_graph", "force_layout",
]
