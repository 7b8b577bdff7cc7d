"""
Segment selection: find one video for a topic and the part of it to play.

For a topic:
1. Ask for a few YouTube search queries
2. Search each query and pool the results (duplicates kept)
3. Fetch transcripts, dropping videos without one
4. Ask for the best sub-range of each transcript
5. Ask which video of the whole pool fits best
6. Return the winner with its range, or None
"""

import json
import logging
from typing import Optional, Union

from pydantic import BaseModel, Field

from ...utils.validation import ConversionError, convert_string_to_float
from ..aggregation.youtube import YouTubeSearchConnector, YouTubeTranscriptConnector
from ..models import SegmentChoice, SelectedRange, SourceItem, render_transcript
from ..synthesis.content_suggester import ContentSuggester


logger = logging.getLogger(__name__)

Bound = Union[str, float, int, None]


class SearchQueriesResponse(BaseModel):
    youtube_search_queries: list[str] = Field(default_factory=list)


class TranscriptRangeResponse(BaseModel):
    start_time: Bound = None
    end_time: Bound = None
    reason: Optional[str] = None


class BestVideoResponse(BaseModel):
    video_number: Bound = None
    reason: Optional[str] = None


class SegmentSelector:
    """
    Chooses the clip for one topic using search, captions and the content
    suggester.
    """

    QUERIES_EXAMPLE = {
        "youtube_search_queries": [
            "first search term for Youtube here.",
            "second search term for Youtube here.",
            "third search term for Youtube here etc etc",
        ]
    }

    QUERIES_SYSTEM_PROMPT = """You are in charge of helping the user find content relevant to a specific topic: "{topic}".
Your job is to generate {count} YouTube search queries that contain the keywords needed to find the best videos on this topic.
Keep the queries concise and to the point.
The search queries should be in JSON format. Return the object directly."""

    QUERIES_USER_PROMPT = """The topic is: "{topic}".
Your response MUST be in JSON format: {example}. Return the object directly."""

    RANGE_EXAMPLE = {
        "start_time": "The start time of the chosen section that matches the transcript object.",
        "end_time": "The end time of the chosen section that matches the transcript object.",
        "reason": "The reason for choosing this section.",
    }

    RANGE_SYSTEM_PROMPT = """You are in charge of selecting the best part of a transcript for a podcast.
The podcast is on {query} and this is for a specific section on "{topic}".
Your job is to choose the best part of the transcript provided and explain why it was chosen.
You must return the start and end time in seconds for the section to be used.
Aim for a clip length of about {target:.0f} seconds (end_time minus start_time should be close to this value)."""

    RANGE_USER_PROMPT = """Here is the transcript you can choose from. Each line is "<start seconds>: <text>".
{transcript}
Your response must be in JSON format: {example}. Return the object directly."""

    RANK_EXAMPLE = {
        "video_number": "The number of the video you choose here.",
        "reason": "The reason for your choice.",
    }

    RANK_SYSTEM_PROMPT = """You are in charge of selecting the best audio clip for a section on "{topic}" for a podcast on {query}.
Your job is to choose the best clip from the numbered list of videos provided and explain why it was chosen."""

    RANK_USER_PROMPT = """Here are the clips you can choose from. Pick the clip that best fits the discussion topic of "{topic}" for the podcast on {query}.
{videos}
Your response should be in JSON format, like this example: {example}"""

    def __init__(
        self,
        suggester: ContentSuggester,
        search: YouTubeSearchConnector,
        transcripts: YouTubeTranscriptConnector,
        queries_per_topic: int = 3,
        treat_zero_boundary_as_missing: bool = True,
    ):
        self.suggester = suggester
        self.search = search
        self.transcripts = transcripts
        self.queries_per_topic = queries_per_topic
        self.treat_zero_boundary_as_missing = treat_zero_boundary_as_missing

    async def select_segment(
        self,
        topic: str,
        target_avg_clip_length: float,
        show_query: Optional[str] = None,
    ) -> Optional[SegmentChoice]:
        """Choose a video and time range for `topic`, or None if nothing usable."""
        show_query = show_query or topic

        queries = await self.get_search_queries(topic)
        pool = await self.build_candidate_pool(queries)
        if not pool:
            logger.warning(f"No videos found for topic '{topic}'")
            return None

        ranges: dict[str, SelectedRange] = {}
        for video in pool:
            if video.id in ranges:
                continue
            selected = await self.choose_range(video, topic, show_query, target_avg_clip_length)
            if selected is not None:
                ranges[video.id] = selected

        winner = await self.rank_candidates(pool, topic, show_query)
        if winner is None:
            logger.warning(f"No winning video for topic '{topic}'")
            return None

        video, reason = winner
        selected = ranges.get(video.id)
        if selected is None:
            logger.warning(f"Winning video {video.id} for '{topic}' has no usable range")
            return None

        logger.info(
            f"Selected {video.id} [{selected.start_time:.1f}s - {selected.end_time:.1f}s] "
            f"for topic '{topic}'"
        )
        return SegmentChoice(
            source_item=video,
            start_time=selected.start_time,
            end_time=selected.end_time,
            reason=reason or selected.reason,
        )

    async def get_search_queries(self, topic: str) -> list[str]:
        response = await self.suggester.complete(
            self.QUERIES_SYSTEM_PROMPT.format(topic=topic, count=self.queries_per_topic),
            self.QUERIES_USER_PROMPT.format(topic=topic, example=json.dumps(self.QUERIES_EXAMPLE)),
            SearchQueriesResponse,
        )
        queries = [q.strip() for q in response.youtube_search_queries if q and q.strip()]
        logger.info(f"Search queries for '{topic}': {queries}")
        return queries

    async def build_candidate_pool(self, queries: list[str]) -> list[SourceItem]:
        """Search every query in order and concatenate the results."""
        pool: list[SourceItem] = []
        for query in queries:
            pool.extend(await self.search.search(query))
        return pool

    async def choose_range(
        self,
        video: SourceItem,
        topic: str,
        show_query: str,
        target_avg_clip_length: float,
    ) -> Optional[SelectedRange]:
        """Ask for a sub-range of the video's transcript. None when unusable."""
        captions = await self.transcripts.fetch_transcript(video.id)
        if not captions:
            return None

        response = await self.suggester.complete(
            self.RANGE_SYSTEM_PROMPT.format(
                query=show_query, topic=topic, target=target_avg_clip_length
            ),
            self.RANGE_USER_PROMPT.format(
                transcript=render_transcript(captions),
                example=json.dumps(self.RANGE_EXAMPLE),
            ),
            TranscriptRangeResponse,
        )
        return self.validate_range(response)

    def validate_range(self, response: TranscriptRangeResponse) -> Optional[SelectedRange]:
        """
        Turn a suggested range into a SelectedRange.

        Rejects missing or non-numeric bounds and end <= start. When
        treat_zero_boundary_as_missing is set, a bound of 0 counts as missing.
        """
        if response.start_time in (None, "") or response.end_time in (None, ""):
            return None

        try:
            start = convert_string_to_float(response.start_time)
            end = convert_string_to_float(response.end_time)
        except ConversionError as e:
            logger.debug(f"Rejected range: {e}")
            return None

        if self.treat_zero_boundary_as_missing and (start == 0 or end == 0):
            return None

        if end <= start:
            logger.debug(f"Rejected range: end {end} <= start {start}")
            return None

        return SelectedRange(start_time=start, end_time=end, reason=response.reason or "")

    async def rank_candidates(
        self,
        pool: list[SourceItem],
        topic: str,
        show_query: str,
    ) -> Optional[tuple[SourceItem, Optional[str]]]:
        """Ask which pool entry (1-based) is best. None for out-of-range answers."""
        videos = json.dumps(
            [{"video_number": i, **video.to_prompt_dict()} for i, video in enumerate(pool, 1)]
        )
        response = await self.suggester.complete(
            self.RANK_SYSTEM_PROMPT.format(topic=topic, query=show_query),
            self.RANK_USER_PROMPT.format(
                topic=topic,
                query=show_query,
                videos=videos,
                example=json.dumps(self.RANK_EXAMPLE),
            ),
            BestVideoResponse,
        )

        number = _parse_index(response.video_number)
        if number is None or number < 1 or number > len(pool):
            logger.debug(f"Rejected video number {response.video_number!r} (pool of {len(pool)})")
            return None

        return pool[number - 1], response.reason


def _parse_index(value: Bound) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    digits = str(value).strip()
    try:
        return int(digits)
    except ValueError:
        try:
            return int(float(digits))
        except ValueError:
            return None
