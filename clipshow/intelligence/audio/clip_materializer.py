"""Turn a chosen segment into a local clip_{i}.mp3 of exact length."""

import logging
from pathlib import Path

from ..models import SourceItem
from ..workspace import RunWorkspace
from .media import MediaToolkit


logger = logging.getLogger(__name__)


class ClipMaterializer:
    def __init__(self, media: MediaToolkit):
        self.media = media

    async def materialize_clip(
        self,
        source_item: SourceItem,
        start_time: float,
        end_time: float,
        index: int,
        workspace: RunWorkspace,
    ) -> Path:
        """
        Extract [start_time, end_time] of the video into the workspace and
        trim it to exactly end_time - start_time seconds.

        Raises MediaFailure if extraction or trimming fails.
        """
        clip_path = workspace.clip_path(index)
        await self.media.stream_trim(source_item.id, start_time, end_time, clip_path)
        await self.media.trim_to_length(
            clip_path, end_time - start_time, workspace.temp_path(clip_path)
        )
        logger.info(f"Materialized clip {index} from {source_item.id}")
        return clip_path
