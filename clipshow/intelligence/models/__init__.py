"""Data models for the episode pipeline."""

from .content import (
    INTRODUCTION_PLACEHOLDER,
    Outline,
    SegmentChoice,
    SelectedRange,
    SourceItem,
    TranscriptSegment,
    render_transcript,
)
from .episode import (
    Artifact,
    ArtifactKind,
    AssemblyState,
    ClipRecord,
    Episode,
    EpisodeAccumulator,
    EpisodeResult,
    IntroRecord,
    SegmentRecord,
    TopicOutcome,
    TopicStatus,
    TransitionRecord,
)

__all__ = [
    # Content models
    "INTRODUCTION_PLACEHOLDER",
    "Outline",
    "SegmentChoice",
    "SelectedRange",
    "SourceItem",
    "TranscriptSegment",
    "render_transcript",
    # Episode models
    "Artifact",
    "ArtifactKind",
    "AssemblyState",
    "ClipRecord",
    "Episode",
    "EpisodeAccumulator",
    "EpisodeResult",
    "IntroRecord",
    "SegmentRecord",
    "TopicOutcome",
    "TopicStatus",
    "TransitionRecord",
]
