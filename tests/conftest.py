import io

import pytest

from conwrite.platform import StreamConsole, default_platform
from conwrite.recording import RecordingConsole


@pytest.fixture
def recorder() -> RecordingConsole:
    """Provides a fresh RecordingConsole."""
    return RecordingConsole()


@pytest.fixture
def stdout_buffer() -> io.BytesIO:
    """In-memory binary stream standing in for stdout."""
    return io.BytesIO()


@pytest.fixture
def stream_console(stdout_buffer: io.BytesIO) -> StreamConsole:
    """StreamConsole writing stdout to an in-memory buffer."""
    return StreamConsole(stdout=stdout_buffer, stderr=io.BytesIO())


@pytest.fixture(autouse=True)
def fresh_default_platform(monkeypatch):
    """Keep CONWRITE_BACKEND and the cached default platform test-local."""
    monkeypatch.delenv("CONWRITE_BACKEND", raising=False)
    default_platform.cache_clear()
    yield
    default_platform.cache_clear()
