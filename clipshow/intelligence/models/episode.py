"""
Episode models: persisted rows, the per-run artifact accumulator and
per-topic outcomes.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .content import SegmentChoice


class Episode(BaseModel):
    """Episode row. Created with length 0, finalized with URL and length."""

    id: Optional[int | str] = None
    title: str
    description: Optional[str] = ""
    length: float = 0.0
    audio_url: Optional[str] = None


class SegmentRecord(BaseModel):
    """Common shape of intro, clip and transition rows."""

    episode: int | str
    index: int
    url: str
    title: str
    description: str = ""
    length: float = 0.0

    def to_row(self) -> dict:
        return self.model_dump()


class IntroRecord(SegmentRecord):
    pass


class TransitionRecord(SegmentRecord):
    pass


class ClipRecord(SegmentRecord):
    video_id: Optional[str] = None

    def to_row(self) -> dict:
        row = self.model_dump(exclude={"video_id"})
        if self.video_id:
            row["video_id"] = self.video_id
        return row


class ArtifactKind(str, Enum):
    INTRO = "intro"
    CLIP = "clip"
    TRANSITION = "transition"


class Artifact(BaseModel):
    """A locally materialized audio file produced during a run."""

    kind: ArtifactKind
    index: int
    path: Path
    length: float = 0.0
    url: Optional[str] = None
    title: str = ""


class EpisodeAccumulator(BaseModel):
    """
    Ordered artifacts of one run. Built incrementally by the assembler and
    consumed wholesale by the concatenator.
    """

    artifacts: list[Artifact] = Field(default_factory=list)

    def add(self, artifact: Artifact) -> Artifact:
        self.artifacts.append(artifact)
        return artifact

    @property
    def total_length(self) -> float:
        return sum(a.length for a in self.artifacts)


class TopicStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FATAL = "fatal"
    ABANDONED = "abandoned"


@dataclass
class TopicOutcome:
    """Index-tagged result of preparing one topic."""

    index: int
    topic: str
    status: TopicStatus
    choice: Optional[SegmentChoice] = None
    clip_path: Optional[Path] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, index: int, topic: str, choice: SegmentChoice, clip_path: Path) -> "TopicOutcome":
        return cls(index, topic, TopicStatus.SUCCESS, choice=choice, clip_path=clip_path)

    @classmethod
    def skipped(cls, index: int, topic: str, error: Optional[Exception] = None) -> "TopicOutcome":
        return cls(index, topic, TopicStatus.SKIPPED, error=error)

    @classmethod
    def fatal(cls, index: int, topic: str, error: Exception) -> "TopicOutcome":
        return cls(index, topic, TopicStatus.FATAL, error=error)

    @classmethod
    def abandoned(cls, index: int, topic: str) -> "TopicOutcome":
        return cls(index, topic, TopicStatus.ABANDONED)


class AssemblyState(str, Enum):
    OUTLINING = "outlining"
    INTRO_PRODUCING = "intro_producing"
    TOPIC_LOOP = "topic_loop"
    CONCATENATING = "concatenating"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


class EpisodeResult(BaseModel):
    """Summary of a completed run."""

    episode_id: int | str
    title: str
    audio_url: str
    length: float
    state: AssemblyState = AssemblyState.DONE
    accumulated_length: float = 0.0
    clips_recorded: list[int] = Field(default_factory=list)
    transitions_recorded: list[int] = Field(default_factory=list)
    skipped_topics: list[int] = Field(default_factory=list)
    artifact_order: list[str] = Field(default_factory=list)
    segments: list[dict] = Field(default_factory=list)
