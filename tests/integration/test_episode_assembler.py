"""
Integration tests for the episode assembler state machine.

Every external capability is mocked; the assembler, concatenation ordering,
workspace handling and failure policy run for real.
"""

import asyncio
import json
import pytest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock


TOPICS = ("The Apollo program", "Reusable rockets")


@pytest.fixture
def outline():
    from clipshow.intelligence.models import Outline

    return Outline(
        episode_title="To the Stars",
        episode_description="A tour of space exploration",
        topics=TOPICS,
    )


@pytest.fixture
def choices(make_video):
    from clipshow.intelligence.models import SegmentChoice

    return {
        TOPICS[0]: SegmentChoice(
            source_item=make_video("apollo11", title="Apollo 11 Landing"),
            start_time=30.0, end_time=150.0, reason="Landing audio",
        ),
        TOPICS[1]: SegmentChoice(
            source_item=make_video("falcon9", title="Falcon 9 Landing"),
            start_time=12.0, end_time=132.0, reason="Booster landing",
        ),
    }


def touch(path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"mp3")
    return path


@pytest.fixture
def components(outline, choices, mock_gateway):
    """Mocked collaborators wired like from_settings would."""
    from clipshow.intelligence.audio.concatenator import Concatenator

    outline_generator = MagicMock()
    outline_generator.get_show_outline = AsyncMock(return_value=outline)
    outline_generator.introduce_show = AsyncMock(return_value="Welcome to To the Stars.")

    selector = MagicMock()
    selector.select_segment = AsyncMock(side_effect=lambda topic, target, query: choices.get(topic))

    async def materialize(source_item, start, end, index, workspace):
        return touch(workspace.clip_path(index))

    materializer = MagicMock()
    materializer.materialize_clip = AsyncMock(side_effect=materialize)

    async def synthesize(path, text):
        return touch(path)

    narrator = MagicMock()
    narrator.synthesize = AsyncMock(side_effect=synthesize)

    composer = MagicMock()
    composer.compose_transition = AsyncMock(return_value="Next, the reusable era.")

    async def concat_all(inputs, output_path):
        return touch(output_path)

    async def probe_duration(path):
        return 301.5 if Path(path).name == "output.mp3" else 6.0

    media = MagicMock()
    media.concat_all = AsyncMock(side_effect=concat_all)
    media.probe_duration = AsyncMock(side_effect=probe_duration)

    return {
        "outline_generator": outline_generator,
        "selector": selector,
        "materializer": materializer,
        "narrator": narrator,
        "composer": composer,
        "concatenator": Concatenator(media),
        "persistence": mock_gateway,
        "media": media,
    }


@pytest.fixture
def make_assembler(components, tmp_path):
    from clipshow.intelligence.synthesis.episode_assembler import EpisodeAssembler

    def _make(**kwargs):
        kwargs.setdefault("work_dir", tmp_path / "work")
        return EpisodeAssembler(**components, **kwargs)

    return _make


@pytest.mark.integration
class TestEndToEnd:
    """The "space exploration" request with a two-topic outline."""

    async def test_space_exploration_episode(self, make_assembler, mock_gateway, components):
        from clipshow.intelligence.models import AssemblyState

        assembler = make_assembler()

        result = await assembler.create_episode("space exploration", 300)

        # One episode row created at length 0, then finalized
        mock_gateway.record_episode.assert_awaited_once_with(
            "To the Stars", "A tour of space exploration"
        )
        mock_gateway.finalize_episode.assert_awaited_once()
        episode_id, audio_url, length = mock_gateway.finalize_episode.await_args.args
        assert episode_id == 42
        assert audio_url
        assert length > 0

        # One intro, two clips, one transition (index 0 never produced)
        assert mock_gateway.record_intro.await_count == 1
        intro = mock_gateway.record_intro.await_args.args[0]
        assert (intro.index, intro.title) == (0, "Intro")
        assert intro.description == "Introduction transition to the episode"

        clip_rows = [c.args[0] for c in mock_gateway.record_clip.await_args_list]
        assert [r.index for r in clip_rows] == [0, 1]
        assert clip_rows[0].video_id == "apollo11"
        assert clip_rows[0].length == 120.0

        transition_rows = [c.args[0] for c in mock_gateway.record_transition.await_args_list]
        assert [r.index for r in transition_rows] == [1]
        assert transition_rows[0].description == (
            "Transition between Apollo 11 Landing and Falcon 9 Landing"
        )

        assert result.episode_id == 42
        assert result.state == AssemblyState.DONE
        assert assembler.state == AssemblyState.DONE
        assert result.artifact_order == ["intro_0", "clip_0", "transition_1", "clip_1"]
        assert result.clips_recorded == [0, 1]
        assert result.transitions_recorded == [1]
        assert result.accumulated_length == 6.0 + 120.0 + 6.0 + 120.0

    async def test_target_clip_length_split_across_topics(self, make_assembler, components):
        await make_assembler().create_episode("space exploration", 300)

        targets = [c.args[1] for c in components["selector"].select_segment.await_args_list]
        assert targets == [150.0, 150.0]
        queries = [c.args[2] for c in components["selector"].select_segment.await_args_list]
        assert queries == ["space exploration", "space exploration"]

    async def test_concatenation_order(self, make_assembler, components, tmp_path):
        await make_assembler().create_episode("space exploration", 300)

        inputs, output = components["media"].concat_all.await_args.args
        assert [Path(p).name for p in inputs] == [
            "intro.mp3", "clip_0.mp3", "transition_1.mp3", "clip_1.mp3",
        ]
        assert output.name == "output.mp3"

    async def test_manifest_and_topics_written(self, make_assembler, tmp_path):
        from clipshow.intelligence.workspace import RunWorkspace

        workspace = RunWorkspace(tmp_path / "work", run_id="kept")
        result = await make_assembler(keep_artifacts=True).create_episode(
            "space exploration", 300, workspace=workspace
        )

        manifest = json.loads(workspace.manifest_path.read_text())
        offsets = [(s["kind"], s["offset"]) for s in manifest["segments"]]
        assert offsets == [("intro", 0.0), ("clip", 6.0), ("transition", 126.0), ("clip", 132.0)]
        assert manifest["segments"] == result.segments
        assert json.loads(workspace.topics_path.read_text()) == list(TOPICS)

    async def test_workspace_discarded(self, make_assembler, tmp_path):
        from clipshow.intelligence.workspace import RunWorkspace

        workspace = RunWorkspace(tmp_path / "work", run_id="temp")
        await make_assembler().create_episode("space exploration", 300, workspace=workspace)

        assert not workspace.directory.exists()

    async def test_leftovers_cleaned_before_run(self, make_assembler, tmp_path, components):
        from clipshow.intelligence.workspace import RunWorkspace

        workspace = RunWorkspace(tmp_path / "work", run_id="reused")
        touch(workspace.clip_path(5))
        touch(workspace.transition_path(5))

        await make_assembler().create_episode("space exploration", 300, workspace=workspace)

        inputs, _ = components["media"].concat_all.await_args.args
        assert "clip_5.mp3" not in [Path(p).name for p in inputs]


@pytest.mark.integration
class TestSkippedTopics:
    """Topics without a usable segment are skipped, not fatal."""

    async def test_no_segment_for_first_topic(self, make_assembler, components, mock_gateway, choices):
        components["selector"].select_segment.side_effect = (
            lambda topic, target, query: None if topic == TOPICS[0] else choices[topic]
        )

        result = await make_assembler().create_episode("space exploration", 300)

        assert result.skipped_topics == [0]
        assert [c.args[0].index for c in mock_gateway.record_clip.await_args_list] == [1]
        transition = mock_gateway.record_transition.await_args.args[0]
        assert transition.index == 1
        assert transition.description == "Transition between Introduction and Falcon 9 Landing"
        assert result.artifact_order == ["intro_0", "transition_1", "clip_1"]
        mock_gateway.finalize_episode.assert_awaited_once()

    async def test_skipped_topic_adds_no_length(self, make_assembler, components, choices):
        components["selector"].select_segment.side_effect = (
            lambda topic, target, query: choices[topic] if topic == TOPICS[0] else None
        )

        result = await make_assembler().create_episode("space exploration", 300)

        assert result.accumulated_length == 6.0 + 120.0
        assert result.artifact_order == ["intro_0", "clip_0"]
        assert result.transitions_recorded == []

    async def test_media_failure_skips_topic(self, make_assembler, components, mock_gateway):
        from clipshow.intelligence.errors import MediaFailure

        async def materialize(source_item, start, end, index, workspace):
            if index == 1:
                raise MediaFailure("Video unavailable")
            return touch(workspace.clip_path(index))

        components["materializer"].materialize_clip.side_effect = materialize

        result = await make_assembler().create_episode("space exploration", 300)

        assert result.skipped_topics == [1]
        assert result.clips_recorded == [0]
        mock_gateway.record_transition.assert_not_awaited()

    async def test_media_failure_aborts_when_policy_says_so(self, make_assembler, components, mock_gateway):
        from clipshow.intelligence.errors import FailurePolicy, MediaFailure
        from clipshow.intelligence.models import AssemblyState

        components["materializer"].materialize_clip.side_effect = MediaFailure("Video unavailable")
        assembler = make_assembler(policy=FailurePolicy(skip_on_media_failure=False))

        with pytest.raises(MediaFailure):
            await assembler.create_episode("space exploration", 300)

        assert assembler.state == AssemblyState.FAILED
        mock_gateway.record_clip.assert_not_awaited()


@pytest.mark.integration
class TestFatalFailures:

    async def test_transition_synthesis_failure_aborts(self, make_assembler, components, mock_gateway):
        from clipshow.intelligence.errors import SynthesisFailure
        from clipshow.intelligence.models import AssemblyState

        components["composer"].compose_transition.side_effect = SynthesisFailure("empty")
        assembler = make_assembler()

        with pytest.raises(SynthesisFailure):
            await assembler.create_episode("space exploration", 300)

        assert assembler.state == AssemblyState.FAILED
        # Rows already written stay in place
        assert mock_gateway.record_clip.await_count == 2
        mock_gateway.finalize_episode.assert_not_awaited()

    async def test_transition_failure_skipped_by_policy(self, make_assembler, components, mock_gateway):
        from clipshow.intelligence.errors import FailurePolicy, SynthesisFailure

        components["composer"].compose_transition.side_effect = SynthesisFailure("empty")
        assembler = make_assembler(policy=FailurePolicy(skip_on_synthesis_failure=True))

        result = await assembler.create_episode("space exploration", 300)

        assert result.artifact_order == ["intro_0", "clip_0", "clip_1"]
        mock_gateway.finalize_episode.assert_awaited_once()

    async def test_intro_failure_aborts(self, make_assembler, components, mock_gateway):
        from clipshow.intelligence.errors import SynthesisFailure
        from clipshow.intelligence.models import AssemblyState

        components["narrator"].synthesize.side_effect = SynthesisFailure("401")
        assembler = make_assembler()

        with pytest.raises(SynthesisFailure):
            await assembler.create_episode("space exploration", 300)

        assert assembler.state == AssemblyState.FAILED
        mock_gateway.record_episode.assert_awaited_once()
        components["selector"].select_segment.assert_not_awaited()

    async def test_persistence_failure_aborts(self, make_assembler, mock_gateway):
        from clipshow.intelligence.errors import PersistenceFailure

        mock_gateway.record_clip.side_effect = PersistenceFailure("insert failed")

        with pytest.raises(PersistenceFailure):
            await make_assembler().create_episode("space exploration", 300)

        mock_gateway.finalize_episode.assert_not_awaited()


@pytest.mark.integration
class TestConcurrentPreparation:
    """Prepared topics are committed in outline order regardless of completion order."""

    async def test_out_of_order_completion(self, make_assembler, components, mock_gateway, make_video):
        from clipshow.intelligence.models import Outline, SegmentChoice

        topics = ("first", "second", "third", "fourth")
        components["outline_generator"].get_show_outline.return_value = Outline(
            episode_title="Order", episode_description="", topics=topics,
        )
        delays = {"first": 0.04, "second": 0.03, "third": 0.0, "fourth": 0.01}
        finished = []

        async def select(topic, target, query):
            await asyncio.sleep(delays[topic])
            finished.append(topic)
            return SegmentChoice(
                source_item=make_video(topic, title=topic.title()),
                start_time=10.0, end_time=40.0,
            )

        components["selector"].select_segment.side_effect = select

        result = await make_assembler(topic_concurrency=4).create_episode("ordering", 120)

        assert finished != list(topics)
        assert [c.args[0].index for c in mock_gateway.record_clip.await_args_list] == [0, 1, 2, 3]
        assert [c.args[0].index for c in mock_gateway.record_transition.await_args_list] == [1, 2, 3]
        assert result.artifact_order == [
            "intro_0", "clip_0", "transition_1", "clip_1",
            "transition_2", "clip_2", "transition_3", "clip_3",
        ]

    async def test_fatal_outcome_raised_at_its_index(self, make_assembler, components, mock_gateway, choices):
        from clipshow.intelligence.errors import FailurePolicy, MediaFailure

        async def materialize(source_item, start, end, index, workspace):
            if index == 1:
                raise MediaFailure("broken stream")
            return touch(workspace.clip_path(index))

        components["materializer"].materialize_clip.side_effect = materialize
        assembler = make_assembler(
            topic_concurrency=2, policy=FailurePolicy(skip_on_media_failure=False)
        )

        with pytest.raises(MediaFailure):
            await assembler.create_episode("space exploration", 300)

        # Topic 0 was committed before topic 1 aborted the run
        assert [c.args[0].index for c in mock_gateway.record_clip.await_args_list] == [0]


@pytest.mark.integration
class TestPreparationStopsAfterFailure:
    """Once a topic is fatal no further topic is selected or materialized."""

    async def test_later_topics_not_selected(self, make_assembler, components, mock_gateway):
        from clipshow.intelligence.errors import SuggestionError

        selected = []

        async def select(topic, target, query):
            selected.append(topic)
            if topic == TOPICS[0]:
                raise SuggestionError("malformed ranking")
            return None

        components["selector"].select_segment.side_effect = select

        with pytest.raises(SuggestionError):
            await make_assembler().create_episode("space exploration", 300)

        assert selected == [TOPICS[0]]
        components["materializer"].materialize_clip.assert_not_awaited()
        mock_gateway.record_clip.assert_not_awaited()

    async def test_unexpected_error_leaves_nothing_running(
        self, make_assembler, components, mock_gateway, choices
    ):
        from clipshow.intelligence.models import AssemblyState

        finished = []

        async def select(topic, target, query):
            if topic == TOPICS[0]:
                raise RuntimeError("connection reset")
            await asyncio.sleep(0.01)
            finished.append(topic)
            return choices[topic]

        components["selector"].select_segment.side_effect = select
        assembler = make_assembler(topic_concurrency=2)

        with pytest.raises(RuntimeError, match="connection reset"):
            await assembler.create_episode("space exploration", 300)

        finished_at_return = list(finished)
        await asyncio.sleep(0.05)

        assert finished == finished_at_return
        assert assembler.state == AssemblyState.FAILED
        components["materializer"].materialize_clip.assert_not_awaited()
        mock_gateway.record_clip.assert_not_awaited()

    async def test_cancelled_run_cancels_pending_topics(self, make_assembler, components):
        started, finished = [], []

        async def select(topic, target, query):
            started.append(topic)
            await asyncio.sleep(0.05)
            finished.append(topic)
            return None

        components["selector"].select_segment.side_effect = select
        run = asyncio.ensure_future(
            make_assembler(topic_concurrency=2).create_episode("space exploration", 300)
        )

        while len(started) < 2:
            await asyncio.sleep(0)
        run.cancel()
        with pytest.raises(asyncio.CancelledError):
            await run
        await asyncio.sleep(0.1)

        assert finished == []


@pytest.mark.integration
async def test_manifest_not_written_when_artifacts_discarded(make_assembler, tmp_path):
    from unittest.mock import patch
    from clipshow.intelligence.workspace import RunWorkspace

    workspace = RunWorkspace(tmp_path / "work", run_id="temp")

    with patch.object(RunWorkspace, "discard"):
        result = await make_assembler().create_episode(
            "space exploration", 300, workspace=workspace
        )

    assert workspace.directory.exists()
    assert not workspace.manifest_path.exists()
    assert [s["kind"] for s in result.segments] == ["intro", "clip", "transition", "clip"]
