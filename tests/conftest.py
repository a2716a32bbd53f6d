"""
Pytest Configuration and Fixtures

Author: Logent contributors | 2026-10-16
"""

import sys
import tempfile
from pathlib import Path
from typing import Generator, List, Optional

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from logent_core.commands import NoticeLevel, Notifier
from logent_core.config import LogentConfig
from logent_core.exceptions import TransportError
from logent_core.llm_backends import CompletionBackend, StreamChunk
from logent_core.notes import InMemoryNoteStore


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingStore(InMemoryNoteStore):
    """In-memory store that records every update_note call."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.updates = []

    async def update_note(self, note_id: str, content: str, focus: bool = False) -> None:
        self.updates.append((note_id, content))
        await super().update_note(note_id, content, focus)


class ScriptedBackend(CompletionBackend):
    """
    Completion backend replaying a script.

    Stream steps are StreamChunk instances, callables run before the next
    chunk (e.g. to advance a clock), or exceptions to raise.
    """

    def __init__(self, reply: str = "", steps: Optional[list] = None, error: Exception = None):
        self.reply = reply
        self.steps = steps or []
        self.error = error
        self.calls: List[dict] = []
        self.closed = False

    async def create(self, messages, model):
        self.calls.append({"mode": "create", "messages": list(messages), "model": model})
        if self.error:
            raise self.error
        return self.reply

    async def stream(self, messages, model):
        self.calls.append({"mode": "stream", "messages": list(messages), "model": model})
        try:
            for step in self.steps:
                if isinstance(step, Exception):
                    raise step
                if callable(step):
                    step()
                    continue
                yield step
        finally:
            self.closed = True


class RecordingNotifier(Notifier):
    """Notifier keeping every notice."""

    def __init__(self):
        self.notices = []

    def notify(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> None:
        self.notices.append((level, message))

    def messages(self, level: NoticeLevel) -> List[str]:
        return [m for lvl, m in self.notices if lvl == level]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store() -> RecordingStore:
    """Markdown note store with no notes."""
    return RecordingStore(current_format="markdown")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def config() -> LogentConfig:
    """Configuration usable without any environment."""
    cfg = LogentConfig()
    cfg.llm.api_key = "test-key"
    cfg.llm.base_url = "http://localhost:9999/v1"
    return cfg


def chunk(text: str = "", finish: Optional[str] = None) -> StreamChunk:
    return StreamChunk(text=text, finish_reason=finish)


def transport_error(message: str = "connection reset") -> TransportError:
    return TransportError(message)
