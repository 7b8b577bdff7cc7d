"""
Concatenator: merges a run's artifacts into output.mp3.

Playback order:
    intro
    clip[0]
    transition[1], clip[1]
    ...
    transition[n-1], clip[n-1]
    transition[n]            (only if one exists)

Skipped topics leave gaps that are simply omitted.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence, TypeVar

from ..errors import MediaFailure
from ..models import Artifact, ArtifactKind, EpisodeAccumulator
from ..workspace import RunWorkspace
from .media import MediaToolkit


logger = logging.getLogger(__name__)

T = TypeVar("T")


def playback_order(
    items: Iterable[T],
    num_topics: int,
    kind_of,
    index_of,
) -> list[T]:
    """
    Order items by the playback rule. `kind_of` and `index_of` read an item's
    kind ("intro", "clip", "transition") and topic index.
    """
    by_key: dict[tuple[str, int], T] = {}
    for item in items:
        by_key.setdefault((str(kind_of(item)), index_of(item)), item)

    def take(kind: ArtifactKind, index: int) -> Optional[T]:
        return by_key.get((kind.value, index))

    ordered = []
    intro = take(ArtifactKind.INTRO, 0)
    if intro is not None:
        ordered.append(intro)

    for i in range(num_topics):
        if i > 0:
            transition = take(ArtifactKind.TRANSITION, i)
            if transition is not None:
                ordered.append(transition)
        clip = take(ArtifactKind.CLIP, i)
        if clip is not None:
            ordered.append(clip)

    trailing = take(ArtifactKind.TRANSITION, num_topics)
    if trailing is not None:
        ordered.append(trailing)

    return ordered


def order_artifacts(artifacts: Sequence[Artifact], num_topics: int) -> list[Artifact]:
    """Artifacts in playback order, dropping any whose file is missing."""
    ordered = playback_order(
        artifacts,
        num_topics,
        kind_of=lambda a: a.kind.value,
        index_of=lambda a: a.index,
    )
    present = []
    for artifact in ordered:
        if Path(artifact.path).exists():
            present.append(artifact)
        else:
            logger.warning(f"Missing {artifact.kind.value} artifact {artifact.path}, omitting")
    return present


class Concatenator:
    def __init__(self, media: MediaToolkit):
        self.media = media

    async def concatenate(
        self,
        accumulator: EpisodeAccumulator,
        num_topics: int,
        workspace: RunWorkspace,
    ) -> Path:
        """Merge the accumulated artifacts into the workspace's output.mp3."""
        ordered = order_artifacts(accumulator.artifacts, num_topics)
        if not ordered:
            raise MediaFailure("No audio artifacts to concatenate")

        logger.info(
            "Concatenation order: " + ", ".join(f"{a.kind.value}_{a.index}" for a in ordered)
        )
        return await self.media.concat_all([a.path for a in ordered], workspace.output_path)
