"""Generated text (outline, intro, transitions) and episode orchestration."""

from .content_suggester import ContentSuggester
from .episode_assembler import EpisodeAssembler
from .outline_generator import OutlineGenerator
from .transition_composer import TransitionComposer

__all__ = [
    "ContentSuggester",
    "EpisodeAssembler",
    "OutlineGenerator",
    "TransitionComposer",
]
