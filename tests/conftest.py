"""Shared test plumbing."""

import pytest
import structlog


@pytest.fixture(autouse=True)
def _restore_structlog_config():
    """Undo `configure_logging` calls made inside a test.

    CLI tests configure structlog while CliRunner's temporary stderr is
    active; without this, later tests would log to that closed stream.
    """
    saved = structlog.get_config()
    yield
    structlog.configure(**saved)
