"""Unit tests for checkpoint service"""

import json
import shutil
import tempfile
from pathlib import Path

import pytest

from herald.services.checkpoint_service import (
    CheckpointService,
    resolve_initial_checkpoint,
)


@pytest.fixture
def temp_checkpoint_dir():
    """Create temporary checkpoint directory"""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def checkpoint_service(temp_checkpoint_dir):
    """Create checkpoint service writing into the temp directory"""
    return CheckpointService(temp_checkpoint_dir / ".lastnpmsync")


def test_resolve_initial_checkpoint_prefers_persisted():
    assert resolve_initial_checkpoint(1234, 1_800_000, 10_000_000) == 1234


def test_resolve_initial_checkpoint_uses_lookback():
    assert resolve_initial_checkpoint(None, 1_800_000, 10_000_000) == 8_200_000


def test_resolve_initial_checkpoint_persisted_zero_wins():
    """A persisted zero is still a persisted value"""
    assert resolve_initial_checkpoint(0, 1_800_000, 10_000_000) == 0


def test_read_missing_file(checkpoint_service):
    assert checkpoint_service.load() is None
    assert checkpoint_service.read() is None


def test_write_and_read(checkpoint_service):
    assert checkpoint_service.write(1_700_000_000_000) is True
    assert checkpoint_service.read() == 1_700_000_000_000


def test_write_is_json_and_leaves_no_temp_file(checkpoint_service, temp_checkpoint_dir):
    checkpoint_service.write(42)

    data = json.loads(checkpoint_service.path.read_text())
    assert data["cursor"] == 42
    assert "updated_at" in data
    assert list(temp_checkpoint_dir.glob("*.tmp")) == []


def test_write_overwrites(checkpoint_service):
    checkpoint_service.write(1)
    checkpoint_service.write(2)
    assert checkpoint_service.read() == 2


def test_write_creates_parent_directories(temp_checkpoint_dir):
    service = CheckpointService(temp_checkpoint_dir / "nested" / "dir" / "cp")
    assert service.write(7) is True
    assert service.read() == 7


def test_legacy_plain_integer_format(checkpoint_service):
    checkpoint_service.path.write_text("1400000000000\n")
    assert checkpoint_service.read() == 1400000000000


def test_corrupt_file_reads_as_absent(checkpoint_service):
    checkpoint_service.path.write_text("{not json")
    assert checkpoint_service.read() is None


def test_empty_file_reads_as_absent(checkpoint_service):
    checkpoint_service.path.write_text("")
    assert checkpoint_service.read() is None


def test_negative_cursor_rejected(checkpoint_service):
    assert checkpoint_service.write(-5) is False
    assert checkpoint_service.read() is None


def test_clear(checkpoint_service):
    checkpoint_service.write(9)
    assert checkpoint_service.clear() is True
    assert not checkpoint_service.path.exists()
    # Clearing again is a no-op
    assert checkpoint_service.clear() is True


def test_write_failure_returns_false(temp_checkpoint_dir):
    blocker = temp_checkpoint_dir / "file"
    blocker.write_text("x")
    service = CheckpointService(blocker / "cp")

    assert service.write(1) is False
