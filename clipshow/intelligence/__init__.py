"""
Episode assembly engine

Turns one query into a stitched podcast episode built from video clips.

Pipeline stages:
1. Outline - Episode title, description and ordered topics
2. Selection - Search, transcripts and range choice per topic
3. Audio - Clip extraction, narration and concatenation
4. Persistence - Uploads and episode/segment rows
"""

# Core models
from .models import (
    AssemblyState,
    EpisodeAccumulator,
    EpisodeResult,
    Outline,
    SegmentChoice,
    SourceItem,
)

# Errors
from .errors import (
    EpisodeAssemblyError,
    FailurePolicy,
    MediaFailure,
    PersistenceFailure,
    SelectionFailure,
    SuggestionError,
    SynthesisFailure,
)

# Orchestration
from .synthesis.episode_assembler import EpisodeAssembler
from .workspace import RunWorkspace, cleanup_artifacts

__all__ = [
    "AssemblyState",
    "EpisodeAccumulator",
    "EpisodeResult",
    "Outline",
    "SegmentChoice",
    "SourceItem",
    "EpisodeAssemblyError",
    "FailurePolicy",
    "MediaFailure",
    "PersistenceFailure",
    "SelectionFailure",
    "SuggestionError",
    "SynthesisFailure",
    "EpisodeAssembler",
    "RunWorkspace",
    "cleanup_artifacts",
]
