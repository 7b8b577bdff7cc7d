"""Video search and caption sources."""

from .youtube import YouTubeSearchConnector, YouTubeTranscriptConnector

__all__ = [
    "YouTubeSearchConnector",
    "YouTubeTranscriptConnector",
]
