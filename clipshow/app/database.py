"""
Persistence gateway for ClipShow.

Uses Supabase for:
- Storing audio artifacts (Storage bucket, public URLs)
- Episode rows and the intro / clip / transition rows that rebuild them
"""

import asyncio
import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional, Union

from supabase import create_client, Client

from ..config import Settings, get_settings
from ..intelligence.audio.concatenator import playback_order
from ..intelligence.errors import PersistenceFailure
from ..intelligence.models import (
    ClipRecord,
    Episode,
    IntroRecord,
    SegmentRecord,
    TransitionRecord,
)
from ..utils.validation import file_extension

logger = logging.getLogger(__name__)


# Supabase client singleton
_supabase_client: Optional[Client] = None


def get_supabase(settings: Optional[Settings] = None) -> Client:
    """Get or create Supabase client."""
    global _supabase_client

    if _supabase_client is None:
        settings = settings or get_settings()
        url = settings.supabase_url
        key = settings.supabase_service_key

        if not url or not key:
            raise PersistenceFailure("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set")

        _supabase_client = create_client(url, key)
        logger.info(f"Connected to Supabase: {url}")

    return _supabase_client


EpisodeId = Union[int, str]


class PersistenceGateway:
    """Uploads and metadata writes. Store errors surface as PersistenceFailure, no retry."""

    def __init__(
        self,
        client: Client,
        bucket: str = "audio-files",
        episodes_table: str = "episodes",
        intros_table: str = "intros",
        clips_table: str = "clips",
        transitions_table: str = "transitions",
    ):
        self.client = client
        self.bucket = bucket
        self.episodes_table = episodes_table
        self.intros_table = intros_table
        self.clips_table = clips_table
        self.transitions_table = transitions_table

    @classmethod
    def from_settings(cls, settings: Settings) -> "PersistenceGateway":
        return cls(
            client=get_supabase(settings),
            bucket=settings.storage_bucket,
            episodes_table=settings.episodes_table,
            intros_table=settings.intros_table,
            clips_table=settings.clips_table,
            transitions_table=settings.transitions_table,
        )

    async def _call(self, what: str, fn, *args, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except PersistenceFailure:
            raise
        except Exception as e:
            raise PersistenceFailure(f"{what} failed: {e}") from e

    # === Storage ===

    def _upload_sync(self, path: Path, name: str, content_type: str) -> str:
        bucket = self.client.storage.from_(self.bucket)
        bucket.upload(name, path.read_bytes(), file_options={"content-type": content_type})
        return bucket.get_public_url(name).rstrip("?")

    async def upload(self, path: Union[str, Path]) -> str:
        """Upload a local file under a fresh name keeping its extension. Returns the public URL."""
        path = Path(path)
        extension = file_extension(path)
        name = f"{uuid.uuid4()}.{extension}" if extension else str(uuid.uuid4())
        content_type = mimetypes.guess_type(path.name)[0] or "audio/mpeg"

        logger.info(f"Uploading {path.name} as {name}")
        url = await self._call(f"Upload of {path.name}", self._upload_sync, path, name, content_type)
        logger.info(f"Uploaded {path.name}: {url}")
        return url

    # === Episodes ===

    def _insert_sync(self, table: str, row: dict) -> list[dict]:
        result = self.client.table(table).insert(row).execute()
        return result.data or []

    async def record_episode(self, title: str, description: str) -> EpisodeId:
        """Insert the episode row with length 0 and return its id."""
        episode = Episode(title=title, description=description, length=0)
        rows = await self._call(
            "Episode insert",
            self._insert_sync,
            self.episodes_table,
            episode.model_dump(include={"title", "description", "length"}),
        )
        if not rows or "id" not in rows[0]:
            raise PersistenceFailure("Episode insert returned no id")

        episode_id = rows[0]["id"]
        logger.info(f"Created episode {episode_id}: {title}")
        return episode_id

    def _update_sync(self, episode_id: EpisodeId, updates: dict):
        return self.client.table(self.episodes_table).update(updates).eq("id", episode_id).execute()

    async def finalize_episode(self, episode_id: EpisodeId, audio_url: str, length: float):
        """Set the final audio URL and measured length."""
        await self._call(
            "Episode update",
            self._update_sync,
            episode_id,
            {"audio_url": audio_url, "length": length},
        )
        logger.info(f"Finalized episode {episode_id}: {length:.1f}s")

    async def get_episode(self, episode_id: EpisodeId) -> Optional[Episode]:
        def fetch():
            return self.client.table(self.episodes_table).select("*").eq("id", episode_id).execute()

        result = await self._call("Episode lookup", fetch)
        if not result.data:
            return None
        return Episode(**result.data[0])

    # === Segments ===

    async def _record(self, table: str, record: SegmentRecord):
        await self._call(f"{table} insert", self._insert_sync, table, record.to_row())
        logger.info(f"Recorded {table} row {record.index} for episode {record.episode}")

    async def record_intro(self, record: IntroRecord):
        await self._record(self.intros_table, record)

    async def record_clip(self, record: ClipRecord):
        await self._record(self.clips_table, record)

    async def record_transition(self, record: TransitionRecord) -> bool:
        """Insert a transition row. Index 0 is never stored (the intro plays that role)."""
        if record.index == 0:
            logger.debug(f"Suppressed transition 0 for episode {record.episode}")
            return False
        await self._record(self.transitions_table, record)
        return True

    async def get_episode_segments(self, episode_id: EpisodeId) -> list[dict]:
        """Intro, clip and transition rows of an episode, in playback order."""
        tables = {
            "intro": self.intros_table,
            "clip": self.clips_table,
            "transition": self.transitions_table,
        }

        def fetch(table: str):
            return self.client.table(table).select("*").eq("episode", episode_id).execute()

        rows = []
        for kind, table in tables.items():
            result = await self._call(f"{table} lookup", fetch, table)
            rows.extend({**row, "kind": kind} for row in (result.data or []))

        clip_indices = [r["index"] + 1 for r in rows if r["kind"] == "clip"]
        transition_indices = [r["index"] for r in rows if r["kind"] == "transition"]
        num_topics = max(clip_indices + transition_indices, default=0)

        return playback_order(
            rows,
            num_topics,
            kind_of=lambda r: r["kind"],
            index_of=lambda r: r["index"],
        )
