"""Local disk storage for meeting recordings.

Files live under RECORDINGS_DIR/<user_id>/<meeting_id>/. The path stored in
crm.recordings.file_path is relative to RECORDINGS_DIR.
"""
import logging
import os
import shutil
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Optional

from errors import StorageError

logger = logging.getLogger(__name__)


def recordings_root() -> Path:
    return Path(os.environ.get("RECORDINGS_DIR", "./data/recordings")).resolve()


def safe_file_name(file_name: Optional[str]) -> str:
    """Strip directory components and spaces from an uploaded file name."""
    raw_name = Path(file_name).name if file_name else "recording"
    return raw_name.replace(" ", "_") or "recording"


def _resolve(relative_path: str) -> Path:
    root = recordings_root()
    path = (root / relative_path).resolve()
    if root != path and root not in path.parents:
        raise StorageError(f"Path escapes recordings directory: {relative_path}")
    return path


def save(user_id, meeting_id, file_name: Optional[str], source: BinaryIO) -> str:
    """Copy an uploaded stream to disk and return its relative path."""
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    filename = f"{ts}_{uuid.uuid4().hex[:8]}_{safe_file_name(file_name)}"
    relative = os.path.join(str(user_id), str(meeting_id), filename)
    dest = _resolve(relative)
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with open(dest, "wb") as f:
            shutil.copyfileobj(source, f)
    except OSError as e:
        raise StorageError(f"Could not save recording: {e}") from e
    logger.info("Saved recording %s", relative)
    return relative


def read_bytes(relative_path: str) -> bytes:
    try:
        return _resolve(relative_path).read_bytes()
    except FileNotFoundError as e:
        raise StorageError(f"Recording file not found: {relative_path}") from e
    except OSError as e:
        raise StorageError(f"Could not read recording: {e}") from e


def delete(relative_path: str) -> bool:
    """Remove a stored file. Returns False when it was already gone."""
    path = _resolve(relative_path)
    try:
        path.unlink()
    except FileNotFoundError:
        logger.warning("Recording file already missing: %s", relative_path)
        return False
    except OSError as e:
        raise StorageError(f"Could not delete recording: {e}") from e
    return True
