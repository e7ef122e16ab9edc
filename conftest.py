"""Pytest fixtures shared by the test modules at the repository root."""

import os
import tempfile

# Keep logs and tab state out of the working tree before any project module is imported
_TMP_DIR = tempfile.mkdtemp(prefix="escape-room-tests-")
os.environ.setdefault("LOG_FILE_PATH", os.path.join(_TMP_DIR, "tests.log"))
os.environ.setdefault("TABS_STATE_PATH", os.path.join(_TMP_DIR, "tabs_state.json"))
os.environ.setdefault("DATABASE_URL", "sqlite:///" + os.path.join(_TMP_DIR, "escape_rooms.db"))

import pytest

from authoring import EscapeRoomBuilder
from storage import EscapeRoomStore


class FakeClock:
    """Millisecond clock moved by hand."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock(now=1_000_000)


@pytest.fixture
def builder(clock):
    return EscapeRoomBuilder(room_name="Demo", time_limit_minutes=1, clock=clock)


@pytest.fixture
def store(tmp_path):
    return EscapeRoomStore(f"sqlite:///{tmp_path / 'rooms.db'}")
