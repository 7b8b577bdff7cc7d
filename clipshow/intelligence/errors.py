"""Error taxonomy for episode assembly."""

from dataclasses import dataclass
from enum import Enum


class FailureCategory(str, Enum):
    SELECTION = "selection"
    SYNTHESIS = "synthesis"
    MEDIA = "media"
    PERSISTENCE = "persistence"
    SUGGESTION = "suggestion"


class EpisodeAssemblyError(Exception):
    """Base class for every failure raised while building an episode."""

    category: FailureCategory = FailureCategory.MEDIA


class SelectionFailure(EpisodeAssemblyError):
    """No usable segment was found for a topic."""

    category = FailureCategory.SELECTION


class SynthesisFailure(EpisodeAssemblyError):
    """Narration text or narration audio could not be produced."""

    category = FailureCategory.SYNTHESIS


class MediaFailure(EpisodeAssemblyError):
    """Download, trim, concat or probe failed."""

    category = FailureCategory.MEDIA


class PersistenceFailure(EpisodeAssemblyError):
    """Upload or metadata write failed."""

    category = FailureCategory.PERSISTENCE


class SuggestionError(EpisodeAssemblyError):
    """The content suggester did not return usable JSON, even after a repair retry."""

    category = FailureCategory.SUGGESTION


@dataclass(frozen=True)
class FailurePolicy:
    """Decides, per category, whether a per-topic failure skips the topic or aborts the run."""

    skip_on_media_failure: bool = True
    skip_on_synthesis_failure: bool = False

    @classmethod
    def from_settings(cls, settings) -> "FailurePolicy":
        return cls(
            skip_on_media_failure=settings.skip_topic_on_media_failure,
            skip_on_synthesis_failure=settings.skip_topic_on_synthesis_failure,
        )

    def skips(self, error: Exception) -> bool:
        if isinstance(error, SelectionFailure):
            return True
        if isinstance(error, MediaFailure):
            return self.skip_on_media_failure
        if isinstance(error, SynthesisFailure):
            return self.skip_on_synthesis_failure
        return False
