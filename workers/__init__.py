"""Background workers for the job queues."""
from .analyze_transcript import handle_analyze_transcript
from .common_pain_points import handle_analyze_common_pain_points
from .transcribe import handle_transcribe
from .runner import HANDLERS, process_job, run_once, run_worker

__all__ = [
    "handle_analyze_transcript",
    "handle_analyze_common_pain_points",
    "handle_transcribe",
    "HANDLERS",
    "process_job",
    "run_once",
    "run_worker",
]
