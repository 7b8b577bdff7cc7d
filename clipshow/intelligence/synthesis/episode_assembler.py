"""
Episode assembler: the state machine that turns one query into a stitched,
persisted episode.

    OUTLINING -> INTRO_PRODUCING -> TOPIC_LOOP -> CONCATENATING -> FINALIZING -> DONE
                                (any state) -> FAILED

The topic loop runs in two phases. Prepare (select + materialize) may run
several topics at once; commit (upload, record, transition) always walks the
outline order, so results never depend on completion order.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional, Union

from ..audio.concatenator import order_artifacts
from ..errors import EpisodeAssemblyError, FailurePolicy, SelectionFailure, SynthesisFailure
from ..models import (
    INTRODUCTION_PLACEHOLDER,
    Artifact,
    ArtifactKind,
    AssemblyState,
    ClipRecord,
    EpisodeAccumulator,
    EpisodeResult,
    IntroRecord,
    Outline,
    SourceItem,
    TopicOutcome,
    TopicStatus,
    TransitionRecord,
)
from ..workspace import RunWorkspace


logger = logging.getLogger(__name__)

INTRO_TITLE = "Intro"
INTRO_DESCRIPTION = "Introduction transition to the episode"
TRANSITION_TITLE = "Transition"


def build_manifest(artifacts: list[Artifact]) -> list[dict]:
    """Ordered segment entries with their start offset in the merged file."""
    manifest = []
    offset = 0.0
    for artifact in artifacts:
        manifest.append({
            "kind": artifact.kind.value,
            "index": artifact.index,
            "title": artifact.title,
            "url": artifact.url,
            "offset": round(offset, 3),
            "duration": round(artifact.length, 3),
        })
        offset += artifact.length
    return manifest


class EpisodeAssembler:
    """
    Orchestrates one episode run. One instance per run; `state` tracks progress.
    """

    def __init__(
        self,
        outline_generator,
        selector,
        materializer,
        narrator,
        composer,
        concatenator,
        persistence,
        media,
        work_dir: Union[str, Path] = "work",
        topic_concurrency: int = 1,
        policy: Optional[FailurePolicy] = None,
        keep_artifacts: bool = False,
    ):
        self.outline_generator = outline_generator
        self.selector = selector
        self.materializer = materializer
        self.narrator = narrator
        self.composer = composer
        self.concatenator = concatenator
        self.persistence = persistence
        self.media = media
        self.work_dir = Path(work_dir)
        self.topic_concurrency = max(1, topic_concurrency)
        self.policy = policy or FailurePolicy()
        self.keep_artifacts = keep_artifacts
        self.state = AssemblyState.OUTLINING

    @classmethod
    def from_settings(cls, settings) -> "EpisodeAssembler":
        """Wire every collaborator from settings."""
        from ...app.database import PersistenceGateway
        from ...tts.elevenlabs_tts import ElevenLabsTTS
        from ..aggregation import YouTubeSearchConnector, YouTubeTranscriptConnector
        from ..audio import ClipMaterializer, Concatenator, MediaToolkit
        from ..selection import SegmentSelector
        from .content_suggester import ContentSuggester
        from .outline_generator import OutlineGenerator
        from .transition_composer import TransitionComposer

        suggester = ContentSuggester.from_settings(settings)
        media = MediaToolkit.from_settings(settings)

        return cls(
            outline_generator=OutlineGenerator(suggester),
            selector=SegmentSelector(
                suggester,
                YouTubeSearchConnector.from_settings(settings),
                YouTubeTranscriptConnector.from_settings(settings),
                queries_per_topic=settings.search_queries_per_topic,
                treat_zero_boundary_as_missing=settings.treat_zero_boundary_as_missing,
            ),
            materializer=ClipMaterializer(media),
            narrator=ElevenLabsTTS.from_settings(settings),
            composer=TransitionComposer(suggester),
            concatenator=Concatenator(media),
            persistence=PersistenceGateway.from_settings(settings),
            media=media,
            work_dir=settings.work_dir,
            topic_concurrency=settings.topic_concurrency,
            policy=FailurePolicy.from_settings(settings),
            keep_artifacts=settings.keep_artifacts,
        )

    def _enter(self, state: AssemblyState):
        logger.info(f"Assembly state: {self.state.value} -> {state.value}")
        self.state = state

    async def create_episode(
        self,
        query: str,
        episode_length: float,
        workspace: Optional[RunWorkspace] = None,
    ) -> EpisodeResult:
        """
        Build, upload and record a full episode for `query`.

        `episode_length` is the requested length in seconds; it sets the
        average clip length the selector aims for. Any unrecoverable error
        moves to FAILED and propagates. Already written rows and uploads are
        left in place.
        """
        workspace = (workspace or RunWorkspace(self.work_dir)).prepare()
        logger.info(
            f"Creating episode for {query} with requested length of "
            f"{int(episode_length // 60)} mins ({workspace})"
        )

        try:
            return await self._assemble(query, episode_length, workspace)
        except Exception:
            self._enter(AssemblyState.FAILED)
            logger.exception(f"Episode assembly failed for '{query}'")
            raise
        finally:
            if not self.keep_artifacts:
                workspace.discard()

    async def _assemble(
        self, query: str, episode_length: float, workspace: RunWorkspace
    ) -> EpisodeResult:
        accumulator = EpisodeAccumulator()

        # OUTLINING
        self.state = AssemblyState.OUTLINING
        outline = await self.outline_generator.get_show_outline(query)
        episode_id = await self.persistence.record_episode(
            outline.episode_title, outline.episode_description
        )
        workspace.topics_path.write_text(json.dumps(list(outline.topics)))

        # INTRO_PRODUCING
        self._enter(AssemblyState.INTRO_PRODUCING)
        await self._produce_intro(query, outline, episode_id, workspace, accumulator)

        # TOPIC_LOOP
        self._enter(AssemblyState.TOPIC_LOOP)
        num_topics = len(outline.topics)
        target = episode_length / num_topics if num_topics else episode_length
        outcomes = await self._prepare_topics(outline, query, target, workspace)

        clips, transitions, skipped = await self._commit_topics(
            outcomes, query, episode_id, workspace, accumulator
        )

        # CONCATENATING
        self._enter(AssemblyState.CONCATENATING)
        output_path = await self.concatenator.concatenate(accumulator, num_topics, workspace)

        # FINALIZING
        self._enter(AssemblyState.FINALIZING)
        audio_url = await self.persistence.upload(output_path)
        length = await self.media.probe_duration(output_path)
        await self.persistence.finalize_episode(episode_id, audio_url, length)

        ordered = order_artifacts(accumulator.artifacts, num_topics)
        manifest = build_manifest(ordered)
        if self.keep_artifacts:
            workspace.manifest_path.write_text(json.dumps({
                "episode_id": episode_id,
                "title": outline.episode_title,
                "audio_url": audio_url,
                "length": length,
                "segments": manifest,
            }, indent=2))

        self._enter(AssemblyState.DONE)
        logger.info(f"Successfully created episode {episode_id} ({length:.1f}s)")

        return EpisodeResult(
            episode_id=episode_id,
            title=outline.episode_title,
            audio_url=audio_url,
            length=length,
            state=self.state,
            accumulated_length=accumulator.total_length,
            clips_recorded=clips,
            transitions_recorded=transitions,
            skipped_topics=skipped,
            artifact_order=[f"{a.kind.value}_{a.index}" for a in ordered],
            segments=manifest,
        )

    async def _produce_intro(
        self,
        query: str,
        outline: Outline,
        episode_id,
        workspace: RunWorkspace,
        accumulator: EpisodeAccumulator,
    ):
        intro_text = await self.outline_generator.introduce_show(query, outline.topics)
        intro_path = await self.narrator.synthesize(workspace.intro_path, intro_text)
        intro_url = await self.persistence.upload(intro_path)
        intro_length = await self.media.probe_duration(intro_path)

        await self.persistence.record_intro(IntroRecord(
            episode=episode_id,
            index=0,
            url=intro_url,
            title=INTRO_TITLE,
            description=INTRO_DESCRIPTION,
            length=intro_length,
        ))
        accumulator.add(Artifact(
            kind=ArtifactKind.INTRO,
            index=0,
            path=intro_path,
            length=intro_length,
            url=intro_url,
            title=INTRO_TITLE,
        ))

    async def _prepare_topics(
        self,
        outline: Outline,
        query: str,
        target_avg_clip_length: float,
        workspace: RunWorkspace,
    ) -> list[TopicOutcome]:
        semaphore = asyncio.Semaphore(self.topic_concurrency)
        abort = asyncio.Event()

        async def prepare(index: int, topic: str) -> TopicOutcome:
            async with semaphore:
                if abort.is_set():
                    return TopicOutcome.abandoned(index, topic)
                outcome = await self.prepare_topic(
                    index, topic, query, target_avg_clip_length, workspace, abort
                )
                if outcome.status == TopicStatus.FATAL:
                    abort.set()
                return outcome

        tasks = [
            asyncio.ensure_future(prepare(i, topic))
            for i, topic in enumerate(outline.topics)
        ]
        try:
            outcomes = await asyncio.gather(*tasks)
        except BaseException:
            # Nothing may keep running once the workspace is discarded
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return sorted(outcomes, key=lambda o: o.index)

    async def prepare_topic(
        self,
        index: int,
        topic: str,
        query: str,
        target_avg_clip_length: float,
        workspace: RunWorkspace,
        abort: Optional[asyncio.Event] = None,
    ) -> TopicOutcome:
        """
        Select and materialize the clip for one topic.

        Never raises: every failure comes back as a skipped or fatal outcome.
        When `abort` is set after selection the clip is not materialized.
        """
        logger.info(f"Preparing topic {index}: {topic}")
        try:
            choice = await self.selector.select_segment(topic, target_avg_clip_length, query)
            if choice is None:
                raise SelectionFailure(f"No usable segment for topic {index} '{topic}'")

            if abort is not None and abort.is_set():
                return TopicOutcome.abandoned(index, topic)

            clip_path = await self.materializer.materialize_clip(
                choice.source_item, choice.start_time, choice.end_time, index, workspace
            )
        except EpisodeAssemblyError as e:
            if self.policy.skips(e):
                logger.warning(f"Skipping topic {index} '{topic}': {e}")
                return TopicOutcome.skipped(index, topic, e)
            logger.error(f"Topic {index} '{topic}' failed: {e}")
            return TopicOutcome.fatal(index, topic, e)
        except Exception as e:
            logger.error(f"Topic {index} '{topic}' failed unexpectedly: {e}")
            return TopicOutcome.fatal(index, topic, e)

        return TopicOutcome.success(index, topic, choice, clip_path)

    async def _commit_topics(
        self,
        outcomes: list[TopicOutcome],
        query: str,
        episode_id,
        workspace: RunWorkspace,
        accumulator: EpisodeAccumulator,
    ) -> tuple[list[int], list[int], list[int]]:
        clips, transitions, skipped = [], [], []
        previous: SourceItem = INTRODUCTION_PLACEHOLDER
        fatal = next((o.error for o in outcomes if o.status == TopicStatus.FATAL), None)

        for outcome in outcomes:
            if outcome.status == TopicStatus.SKIPPED:
                skipped.append(outcome.index)
                continue
            if outcome.status == TopicStatus.FATAL:
                raise outcome.error
            if outcome.status == TopicStatus.ABANDONED:
                raise fatal

            i = outcome.index
            choice = outcome.choice
            video = choice.source_item
            clip_length = choice.length

            clip_url = await self.persistence.upload(outcome.clip_path)
            await self.persistence.record_clip(ClipRecord(
                episode=episode_id,
                index=i,
                url=clip_url,
                title=video.title,
                description=video.description,
                length=clip_length,
                video_id=video.id,
            ))
            accumulator.add(Artifact(
                kind=ArtifactKind.CLIP,
                index=i,
                path=outcome.clip_path,
                length=clip_length,
                url=clip_url,
                title=video.title,
            ))
            clips.append(i)

            # The intro leads into the first clip
            if i > 0:
                try:
                    if await self._produce_transition(
                        i, query, previous, video, episode_id, workspace, accumulator
                    ):
                        transitions.append(i)
                except SynthesisFailure as e:
                    if not self.policy.skips(e):
                        raise
                    logger.warning(f"Transition {i} dropped: {e}")

            previous = video

        return clips, transitions, skipped

    async def _produce_transition(
        self,
        index: int,
        query: str,
        previous: SourceItem,
        next_clip: SourceItem,
        episode_id,
        workspace: RunWorkspace,
        accumulator: EpisodeAccumulator,
    ) -> bool:
        text = await self.composer.compose_transition(query, next_clip)
        path = await self.narrator.synthesize(workspace.transition_path(index), text)
        length = await self.media.probe_duration(path)
        url = await self.persistence.upload(path)

        recorded = await self.persistence.record_transition(TransitionRecord(
            episode=episode_id,
            index=index,
            url=url,
            title=TRANSITION_TITLE,
            description=f"Transition between {previous.title} and {next_clip.title}",
            length=length,
        ))
        accumulator.add(Artifact(
            kind=ArtifactKind.TRANSITION,
            index=index,
            path=path,
            length=length,
            url=url,
            title=TRANSITION_TITLE,
        ))
        return bool(recorded)
