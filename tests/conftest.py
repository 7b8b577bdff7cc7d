"""
Pytest configuration and fixtures for ClipShow tests.
"""

import os
import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Set test environment
os.environ['TESTING'] = '1'
os.environ.setdefault('GEMINI_API_KEY', 'test-api-key')


# ============================================================
# Content Fixtures
# ============================================================

@pytest.fixture
def make_video():
    """Factory for search results."""
    from clipshow.intelligence.models import SourceItem

    def _make(video_id: str, title: str = None, channel: str = "Space Channel"):
        return SourceItem(
            id=video_id,
            title=title or f"Video {video_id}",
            description=f"Description of {video_id}",
            channel_title=channel,
        )

    return _make


@pytest.fixture
def sample_transcript():
    """A short caption transcript."""
    from clipshow.intelligence.models import TranscriptSegment

    return [
        TranscriptSegment(text="Welcome back to the show", start=0.0, duration=3.5),
        TranscriptSegment(text="Today we talk about rockets", start=3.5, duration=4.0),
        TranscriptSegment(text="Reusable boosters changed everything", start=7.5, duration=5.0),
        TranscriptSegment(text="Let's look at the numbers", start=12.5, duration=3.0),
    ]


# ============================================================
# Workspace Fixtures
# ============================================================

@pytest.fixture
def workspace(tmp_path):
    """A prepared run workspace under pytest's tmp dir."""
    from clipshow.intelligence.workspace import RunWorkspace

    return RunWorkspace(tmp_path / "work", run_id="test-run").prepare()


@pytest.fixture
def write_audio():
    """Create placeholder audio files so existence checks pass."""

    def _write(path, content: bytes = b"ID3fake-mp3"):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _write


# ============================================================
# Collaborator Fixtures
# ============================================================

@pytest.fixture
def mock_suggester():
    """Content suggester whose complete() answers from a queue."""
    suggester = MagicMock()
    suggester.complete = AsyncMock()
    return suggester


@pytest.fixture
def mock_gateway():
    """Persistence gateway recording every call."""
    gateway = MagicMock()
    uploads = iter(range(1, 1000))
    gateway.upload = AsyncMock(
        side_effect=lambda path: f"https://storage.example.com/audio-files/{next(uploads)}-{Path(path).name}"
    )
    gateway.record_episode = AsyncMock(return_value=42)
    gateway.finalize_episode = AsyncMock()
    gateway.record_intro = AsyncMock()
    gateway.record_clip = AsyncMock()
    gateway.record_transition = AsyncMock(side_effect=lambda record: record.index != 0)
    return gateway
