"""Unit tests for tools.storage — local recording files."""
import io
import uuid

import pytest

from errors import StorageError
from tools import storage


@pytest.fixture
def recordings_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("RECORDINGS_DIR", str(tmp_path))
    return tmp_path


class TestSafeFileName:
    def test_strips_directories_and_spaces(self):
        assert storage.safe_file_name("../../etc/my call.mp3") == "my_call.mp3"

    def test_default_name(self):
        assert storage.safe_file_name(None) == "recording"
        assert storage.safe_file_name("") == "recording"


class TestSaveReadDelete:
    def test_save_layout_and_read_back(self, recordings_dir):
        user_id, meeting_id = uuid.uuid4(), uuid.uuid4()
        relative = storage.save(user_id, meeting_id, "call 1.m4a", io.BytesIO(b"audio"))

        parts = relative.split("/")
        assert parts[0] == str(user_id)
        assert parts[1] == str(meeting_id)
        assert parts[2].endswith("_call_1.m4a")
        assert (recordings_dir / relative).read_bytes() == b"audio"
        assert storage.read_bytes(relative) == b"audio"

    def test_delete(self, recordings_dir):
        relative = storage.save(uuid.uuid4(), uuid.uuid4(), "a.mp3", io.BytesIO(b"x"))
        assert storage.delete(relative) is True
        assert storage.delete(relative) is False

    def test_missing_file(self, recordings_dir):
        with pytest.raises(StorageError, match="not found"):
            storage.read_bytes("nobody/nothing.mp3")

    def test_path_traversal_rejected(self, recordings_dir):
        with pytest.raises(StorageError):
            storage.read_bytes("../outside.mp3")
        with pytest.raises(StorageError):
            storage.delete("../../etc/passwd")
