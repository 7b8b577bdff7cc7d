"""
Unit tests for run workspaces and artifact cleanup.
"""

import pytest


@pytest.mark.unit
class TestCleanupArtifacts:
    """Tests for cleanup_artifacts."""

    def test_removes_every_artifact_pattern(self, tmp_path):
        """Test all leftover artifacts are deleted."""
        from clipshow.intelligence.workspace import cleanup_artifacts

        names = [
            "transition_1.mp3", "clip_0.mp3", "clip_12.mp3", "temp_clip_3.mp3",
            "concat_list.txt", "topics.txt", "video_list.txt", "output.mp3",
            "intro.mp3", "manifest.json",
        ]
        for name in names:
            (tmp_path / name).write_bytes(b"x")

        removed = cleanup_artifacts(tmp_path)

        assert sorted(p.name for p in removed) == sorted(names)
        assert list(tmp_path.iterdir()) == []

    def test_leaves_unrelated_files(self, tmp_path):
        """Test files outside the patterns survive."""
        from clipshow.intelligence.workspace import cleanup_artifacts

        keep = tmp_path / "notes.txt"
        keep.write_text("keep me")
        (tmp_path / "clip_0.mp3").write_bytes(b"x")

        cleanup_artifacts(tmp_path)

        assert keep.exists()

    def test_idempotent(self, tmp_path):
        """Test a second run and a missing directory are no-ops."""
        from clipshow.intelligence.workspace import cleanup_artifacts

        (tmp_path / "intro.mp3").write_bytes(b"x")

        assert len(cleanup_artifacts(tmp_path)) == 1
        assert cleanup_artifacts(tmp_path) == []
        assert cleanup_artifacts(tmp_path / "missing") == []


@pytest.mark.unit
class TestRunWorkspace:
    """Tests for RunWorkspace."""

    def test_fixed_names_inside_run_directory(self, tmp_path):
        from clipshow.intelligence.workspace import RunWorkspace

        ws = RunWorkspace(tmp_path, run_id="abc")

        assert ws.directory == tmp_path / "abc"
        assert ws.intro_path.name == "intro.mp3"
        assert ws.clip_path(3).name == "clip_3.mp3"
        assert ws.transition_path(2).name == "transition_2.mp3"
        assert ws.output_path.name == "output.mp3"
        assert ws.manifest_path.name == "manifest.json"
        assert ws.topics_path.name == "topics.txt"
        assert ws.temp_path(ws.clip_path(1)) == tmp_path / "abc" / "temp_clip_1.mp3"

    def test_runs_do_not_share_directories(self, tmp_path):
        """Test two runs get distinct directories."""
        from clipshow.intelligence.workspace import RunWorkspace

        first = RunWorkspace(tmp_path)
        second = RunWorkspace(tmp_path)

        assert first.directory != second.directory

    def test_prepare_clears_leftovers(self, tmp_path):
        """Test prepare removes artifacts from an earlier attempt."""
        from clipshow.intelligence.workspace import RunWorkspace

        ws = RunWorkspace(tmp_path, run_id="retry")
        ws.directory.mkdir(parents=True)
        ws.clip_path(0).write_bytes(b"stale")
        ws.output_path.write_bytes(b"stale")

        ws.prepare()

        assert ws.directory.is_dir()
        assert not ws.clip_path(0).exists()
        assert not ws.output_path.exists()

    def test_discard_removes_directory(self, tmp_path):
        from clipshow.intelligence.workspace import RunWorkspace

        ws = RunWorkspace(tmp_path, run_id="gone").prepare()
        ws.intro_path.write_bytes(b"x")

        ws.discard()

        assert not ws.directory.exists()
