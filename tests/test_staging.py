"""Tests for staging upload streams."""

import io
import os
import time
from datetime import timedelta
from pathlib import Path

import pytest

from filebay.errors import InternalIOError, SizeLimitExceeded
from filebay.ingestion.staging import StagingUploader
from filebay.organization.collisions import CollisionResolver


class _FailingStream(io.RawIOBase):
    """Yield one chunk, then fail like a dropped connection."""

    def __init__(self, error: BaseException) -> None:
        self._error = error
        self._sent = False

    def read(self, size: int = -1) -> bytes:  # type: ignore[override]
        if not self._sent:
            self._sent = True
            return b"partial"
        raise self._error


def test_stage_writes_complete_artifact(tmp_path: Path) -> None:
    uploader = StagingUploader(tmp_path / "temp", chunk_size=3)

    staged = uploader.stage(io.BytesIO(b"hello world"), "greeting.txt")

    assert staged.path.parent == tmp_path / "temp"
    assert staged.path.read_bytes() == b"hello world"
    assert staged.size == 11
    assert staged.declared_name == "greeting.txt"


def test_stage_uses_collision_policy_inside_temp(tmp_path: Path) -> None:
    uploader = StagingUploader(tmp_path / "temp", CollisionResolver("append_number"))

    first = uploader.stage(io.BytesIO(b"1"), "same.bin")
    second = uploader.stage(io.BytesIO(b"2"), "same.bin")

    assert first.path.name == "same.bin"
    assert second.path.name == "same-1.bin"
    assert first.path.read_bytes() == b"1"


def test_stage_confines_unsafe_names_to_temp(tmp_path: Path) -> None:
    uploader = StagingUploader(tmp_path / "temp")

    staged = uploader.stage(io.BytesIO(b"x"), "../../evil.txt")

    assert staged.path == tmp_path / "temp" / "evil.txt"


def test_stage_rejects_oversized_stream_and_cleans_up(tmp_path: Path) -> None:
    uploader = StagingUploader(tmp_path / "temp", max_bytes=5, chunk_size=2)

    with pytest.raises(SizeLimitExceeded) as excinfo:
        uploader.stage(io.BytesIO(b"0123456789"), "big.bin")

    assert excinfo.value.status_code == 413
    assert list((tmp_path / "temp").iterdir()) == []


def test_per_call_limit_overrides_default(tmp_path: Path) -> None:
    uploader = StagingUploader(tmp_path / "temp", max_bytes=100)

    with pytest.raises(SizeLimitExceeded):
        uploader.stage(io.BytesIO(b"0123456789"), "big.bin", max_bytes=4)


def test_stream_io_error_becomes_internal_error(tmp_path: Path) -> None:
    uploader = StagingUploader(tmp_path / "temp")

    with pytest.raises(InternalIOError):
        uploader.stage(_FailingStream(OSError("connection reset")), "a.bin")

    assert list((tmp_path / "temp").iterdir()) == []


def test_unexpected_errors_propagate_after_cleanup(tmp_path: Path) -> None:
    uploader = StagingUploader(tmp_path / "temp")

    with pytest.raises(RuntimeError):
        uploader.stage(_FailingStream(RuntimeError("boom")), "a.bin")

    assert list((tmp_path / "temp").iterdir()) == []


def test_orphans_are_identified_by_age_and_swept(tmp_path: Path) -> None:
    uploader = StagingUploader(tmp_path / "temp")
    old = uploader.stage(io.BytesIO(b"old"), "old.bin").path
    fresh = uploader.stage(io.BytesIO(b"fresh"), "fresh.bin").path
    two_days_ago = time.time() - 2 * 24 * 3600
    os.utime(old, (two_days_ago, two_days_ago))

    assert uploader.orphans(timedelta(hours=24)) == [old]

    removed = uploader.sweep(timedelta(hours=24))

    assert removed == [old]
    assert not old.exists()
    assert fresh.exists()


def test_orphans_of_missing_temp_dir_is_empty(tmp_path: Path) -> None:
    assert StagingUploader(tmp_path / "missing").orphans(timedelta(seconds=1)) == []


def test_discard_ignores_missing_files(tmp_path: Path) -> None:
    StagingUploader(tmp_path / "temp").discard(tmp_path / "temp" / "nothing")
