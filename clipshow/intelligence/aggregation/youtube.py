"""YouTube connectors: video search and caption transcripts."""

import asyncio
import logging
from typing import Optional, Sequence

import httpx
from youtube_transcript_api import CouldNotRetrieveTranscript, YouTubeTranscriptApi

from ..models import SourceItem, TranscriptSegment


logger = logging.getLogger(__name__)

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"


class YouTubeSearchConnector:
    """
    Video search through the YouTube Data API v3.
    Requires YOUTUBE_API_KEY. Each query returns one page of videos.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_results: int = 5,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.max_results = max_results
        self.timeout = timeout
        if not self.api_key:
            logger.warning("YOUTUBE_API_KEY not set - YouTube search will not work")

    @classmethod
    def from_settings(cls, settings) -> "YouTubeSearchConnector":
        return cls(
            api_key=settings.youtube_api_key,
            max_results=settings.search_results_per_query,
            timeout=settings.http_timeout_seconds,
        )

    async def search(self, query: str) -> list[SourceItem]:
        """Search videos for a query. Errors are logged and yield no results."""
        if not self.api_key:
            logger.error("YouTube API key not configured")
            return []

        params = {
            "part": "snippet",
            "q": query,
            "maxResults": self.max_results,
            "type": "video",
            "key": self.api_key,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(f"{YOUTUBE_API_BASE}/search", params=params)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"YouTube search failed for '{query}': {e}")
            return []

        items = []
        for item in data.get("items", []):
            video_id = (item.get("id") or {}).get("videoId")
            if not video_id:
                continue
            snippet = item.get("snippet") or {}
            items.append(
                SourceItem(
                    id=video_id,
                    title=snippet.get("title", ""),
                    description=snippet.get("description", ""),
                    channel_title=snippet.get("channelTitle", ""),
                )
            )

        logger.info(f"YouTube search '{query}' returned {len(items)} videos")
        return items[: self.max_results]


class YouTubeTranscriptConnector:
    """
    Caption transcripts for YouTube videos.
    Uses youtube-transcript-api (free, no API key).
    """

    def __init__(self, languages: Sequence[str] = ("en", "en-GB", "en-US")):
        self.languages = list(languages)
        self._api = YouTubeTranscriptApi()

    @classmethod
    def from_settings(cls, settings) -> "YouTubeTranscriptConnector":
        return cls(languages=settings.caption_languages)

    async def fetch_transcript(self, video_id: str) -> list[TranscriptSegment]:
        """Fetch caption lines for a video. Any retrieval problem yields []."""
        try:
            return await asyncio.to_thread(self._fetch_sync, video_id)
        except CouldNotRetrieveTranscript as e:
            logger.debug(f"No transcript for {video_id}: {type(e).__name__}")
            return []
        except Exception as e:
            logger.error(f"Error fetching transcript for {video_id}: {e}")
            return []

    def _fetch_sync(self, video_id: str) -> list[TranscriptSegment]:
        transcript_list = self._api.list(video_id)

        # Preferred languages first, then whatever track exists
        transcript = None
        for language in self.languages:
            try:
                transcript = transcript_list.find_transcript([language])
                break
            except CouldNotRetrieveTranscript:
                continue

        if transcript is None:
            for candidate in transcript_list:
                transcript = candidate
                break

        if transcript is None:
            return []

        fetched = transcript.fetch()
        return [
            TranscriptSegment(
                text=snippet.text,
                start=float(snippet.start),
                duration=float(snippet.duration or 0.0),
            )
            for snippet in fetched
            if snippet.text and snippet.text.strip()
        ]
