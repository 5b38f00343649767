"""Speech-to-text for meeting recordings.

Large files are cut into byte ranges under the provider's 25 MB upload limit,
with a small overlap so words at a boundary land in both chunks. Chunks are
transcribed concurrently and joined in their original order.
"""
import asyncio
import logging
import math
import os
import tempfile
from pathlib import Path
from typing import Awaitable, Callable, Optional

import litellm

from errors import TranscriptionError
from model_config import get_transcription_model

logger = logging.getLogger(__name__)

MAX_CHUNK_BYTES = 25 * 1024 * 1024
CHUNK_RATIO = 0.95
OVERLAP_RATIO = 0.05
DEFAULT_MAX_CONCURRENCY = 10

ProgressCallback = Callable[[int, int], Awaitable[None]]


def max_concurrency() -> int:
    return int(os.environ.get("TRANSCRIBE_MAX_CONCURRENCY", str(DEFAULT_MAX_CONCURRENCY)))


def split_audio_bytes(data: bytes, max_chunk: int = MAX_CHUNK_BYTES) -> list[bytes]:
    """Split audio into overlapping chunks no larger than max_chunk.

    Chunk i spans [i*size - overlap, (i+1)*size), the first chunk starting at 0.
    """
    if len(data) <= max_chunk:
        return [data]

    size = math.floor(max_chunk * CHUNK_RATIO)
    overlap = math.floor(max_chunk * OVERLAP_RATIO)
    total = math.ceil(len(data) / (max_chunk * CHUNK_RATIO))

    chunks = []
    for i in range(total):
        start = 0 if i == 0 else i * size - overlap
        end = min((i + 1) * size, len(data))
        chunks.append(data[start:end])
    return chunks


def combine_transcriptions(parts: list[str]) -> str:
    """Join chunk transcripts with blank lines, skipping empty ones."""
    return "\n\n".join(p.strip() for p in parts if p and p.strip())


async def _transcribe_file(path: Path, api_key: str, model: str) -> str:
    try:
        with open(path, "rb") as audio:
            response = await litellm.atranscription(
                model=model,
                file=audio,
                api_key=api_key,
                language="en",
            )
    except Exception as exc:
        raise TranscriptionError(f"Transcription of {path.name} failed: {exc}") from exc
    return response.text or ""


async def transcribe_chunks(
    chunks: list[bytes],
    api_key: str,
    file_name: str = "audio.mp3",
    on_progress: Optional[ProgressCallback] = None,
    concurrency: Optional[int] = None,
) -> list[str]:
    """Transcribe chunks with bounded concurrency; results keep chunk order.

    Chunk files live in a temporary directory that is removed on return or error.
    The first failing chunk cancels the rest; on_progress is not called after it.
    """
    model = get_transcription_model()
    semaphore = asyncio.Semaphore(concurrency or max_concurrency())
    total = len(chunks)
    completed = 0
    lock = asyncio.Lock()
    stem, suffix = os.path.splitext(os.path.basename(file_name) or "audio.mp3")

    with tempfile.TemporaryDirectory(prefix="painpoint_transcribe_") as tmp:

        async def _one(index: int, chunk: bytes) -> str:
            nonlocal completed
            path = Path(tmp) / f"{stem}_part{index + 1}{suffix or '.mp3'}"
            path.write_bytes(chunk)
            async with semaphore:
                text = await _transcribe_file(path, api_key, model)
            path.unlink(missing_ok=True)
            async with lock:
                completed += 1
                logger.info("Transcribed segment %d/%d", completed, total)
                if on_progress is not None:
                    await on_progress(completed, total)
            return text

        tasks = [asyncio.create_task(_one(i, c)) for i, c in enumerate(chunks)]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
