"""
Run workspace: the directory holding one run's audio artifacts.

Artifacts use fixed names (intro.mp3, clip_{i}.mp3, transition_{i}.mp3,
output.mp3) inside a per-run directory, so two runs never share files.
"""

import logging
import shutil
import uuid
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


ARTIFACT_PATTERNS = (
    "transition_*.mp3",
    "clip_*.mp3",
    "temp_*.mp3",
    "concat_list.txt",
    "topics.txt",
    "video_list.txt",
    "output.mp3",
    "intro.mp3",
    "manifest.json",
)


def cleanup_artifacts(directory: Union[str, Path]) -> list[Path]:
    """
    Delete every file in `directory` matching the artifact patterns.
    Idempotent; missing files and a missing directory are ignored.
    Returns the paths that were removed.
    """
    directory = Path(directory)
    removed = []
    if not directory.is_dir():
        return removed

    for pattern in ARTIFACT_PATTERNS:
        for path in directory.glob(pattern):
            try:
                path.unlink()
                removed.append(path)
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error(f"Error deleting file {path}: {e}")

    if removed:
        logger.info(f"Cleaned up {len(removed)} leftover artifacts in {directory}")
    return removed


class RunWorkspace:
    """Per-run directory with the fixed artifact names."""

    def __init__(self, root: Union[str, Path], run_id: Optional[str] = None):
        self.root = Path(root)
        self.run_id = run_id or uuid.uuid4().hex
        self.directory = self.root / self.run_id

    def prepare(self) -> "RunWorkspace":
        """Create the directory and clear any leftovers from an earlier attempt."""
        self.directory.mkdir(parents=True, exist_ok=True)
        cleanup_artifacts(self.directory)
        return self

    def discard(self):
        """Remove the run directory and everything in it."""
        shutil.rmtree(self.directory, ignore_errors=True)

    @property
    def intro_path(self) -> Path:
        return self.directory / "intro.mp3"

    def clip_path(self, index: int) -> Path:
        return self.directory / f"clip_{index}.mp3"

    def transition_path(self, index: int) -> Path:
        return self.directory / f"transition_{index}.mp3"

    def temp_path(self, path: Path) -> Path:
        return path.with_name(f"temp_{path.name}")

    @property
    def topics_path(self) -> Path:
        return self.directory / "topics.txt"

    @property
    def output_path(self) -> Path:
        return self.directory / "output.mp3"

    @property
    def manifest_path(self) -> Path:
        return self.directory / "manifest.json"

    def __repr__(self) -> str:
        return f"RunWorkspace({str(self.directory)!r})"
