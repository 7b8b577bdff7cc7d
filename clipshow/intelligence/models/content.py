"""
Content models for the episode pipeline.
Outline, source videos, transcripts and the segment chosen for a topic.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Outline(BaseModel):
    """
    Show structure produced once per run.
    Topic order defines episode order and is preserved end to end.
    """

    model_config = ConfigDict(frozen=True)

    episode_title: str
    episode_description: str = ""
    topics: tuple[str, ...] = ()


class SourceItem(BaseModel):
    """A video returned by the search capability. Never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Video ID")
    title: str = ""
    description: str = ""
    channel_title: str = ""

    def describe(self) -> str:
        """One-line description used in prompts."""
        return f"{self.title} (by {self.channel_title}) - {self.description}"

    def to_prompt_dict(self) -> dict:
        return {
            "title": self.title,
            "channel": self.channel_title,
            "description": self.description,
        }


# Stands in for "the previous clip" before the first real clip is chosen
INTRODUCTION_PLACEHOLDER = SourceItem(
    id="introduction",
    title="Introduction",
    description="Introduction to the podcast show",
    channel_title="N/A",
)


class TranscriptSegment(BaseModel):
    """One caption line of a video transcript."""

    model_config = ConfigDict(frozen=True)

    text: str
    start: float = 0.0
    duration: float = 0.0


def render_transcript(segments: list[TranscriptSegment]) -> str:
    """Render caption lines as '{start}: {text}' lines for selection prompts."""
    return "\n".join(f"{segment.start}: {segment.text}" for segment in segments)


class SelectedRange(BaseModel):
    """Sub-range of one transcript chosen by the content suggester."""

    start_time: float
    end_time: float
    reason: str = ""

    @property
    def length(self) -> float:
        return self.end_time - self.start_time


class SegmentChoice(BaseModel):
    """The clip chosen for a topic."""

    source_item: SourceItem
    start_time: float
    end_time: float
    reason: Optional[str] = None

    @property
    def length(self) -> float:
        return self.end_time - self.start_time
