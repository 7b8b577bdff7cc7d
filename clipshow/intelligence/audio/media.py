"""
Media toolkit: yt-dlp and ffmpeg wrappers plus duration measurement.

All subprocess work is blocking and runs through asyncio.to_thread.
Tool failures are translated into MediaFailure.
"""

import asyncio
import logging
import os
import subprocess
from pathlib import Path
from typing import Sequence

from pydub import AudioSegment

from ..errors import MediaFailure


logger = logging.getLogger(__name__)

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


class MediaToolkit:
    """Thin async layer over the ffmpeg and yt-dlp executables."""

    def __init__(
        self,
        ffmpeg_binary: str = "ffmpeg",
        ytdlp_binary: str = "yt-dlp",
        audio_codec: str = "libmp3lame",
    ):
        self.ffmpeg_binary = ffmpeg_binary
        self.ytdlp_binary = ytdlp_binary
        self.audio_codec = audio_codec

    @classmethod
    def from_settings(cls, settings) -> "MediaToolkit":
        return cls(
            ffmpeg_binary=settings.ffmpeg_binary,
            ytdlp_binary=settings.ytdlp_binary,
            audio_codec=settings.audio_codec,
        )

    def _run(self, args: list[str], what: str) -> subprocess.CompletedProcess:
        logger.debug(f"Running {what}: {' '.join(args)}")
        try:
            return subprocess.run(
                args, check=True, capture_output=True, text=True, errors="replace"
            )
        except FileNotFoundError as e:
            raise MediaFailure(f"{what} failed: executable not found ({args[0]})") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise MediaFailure(f"{what} failed (rc={e.returncode}): {stderr[-300:]}") from e

    async def resolve_audio_stream(self, video_id: str) -> str:
        """Direct URL of the best audio-only stream for a video."""
        args = [
            self.ytdlp_binary,
            "--no-playlist",
            "-f", "bestaudio",
            "-g",
            YOUTUBE_WATCH_URL.format(video_id=video_id),
        ]
        result = await asyncio.to_thread(self._run, args, "yt-dlp")
        urls = [line for line in result.stdout.splitlines() if line.strip()]
        if not urls:
            raise MediaFailure(f"yt-dlp returned no audio stream for {video_id}")
        return urls[0]

    async def stream_trim(
        self, video_id: str, start_time: float, end_time: float, output_path: Path
    ) -> Path:
        """Read [start_time, end_time] of a video's audio and encode it to output_path."""
        if end_time <= start_time:
            raise MediaFailure(f"Invalid range {start_time}-{end_time} for {video_id}")

        stream_url = await self.resolve_audio_stream(video_id)
        args = [
            self.ffmpeg_binary, "-y",
            "-ss", f"{start_time:.3f}",
            "-i", stream_url,
            "-t", f"{end_time - start_time:.3f}",
            "-vn",
            "-codec:a", self.audio_codec,
            str(output_path),
        ]
        await asyncio.to_thread(self._run, args, "ffmpeg stream trim")
        logger.info(f"Extracted {video_id} [{start_time:.1f}s - {end_time:.1f}s] -> {output_path.name}")
        return output_path

    async def trim_to_length(self, path: Path, length: float, temp_path: Path) -> Path:
        """Cut `path` to exactly `length` seconds from its start, replacing it in place."""
        args = [
            self.ffmpeg_binary, "-y",
            "-i", str(path),
            "-ss", "0",
            "-t", f"{length:.3f}",
            "-codec:a", self.audio_codec,
            str(temp_path),
        ]
        try:
            await asyncio.to_thread(self._run, args, "ffmpeg trim")
            os.replace(temp_path, path)
        except OSError as e:
            raise MediaFailure(f"Could not replace {path.name}: {e}") from e
        finally:
            if temp_path.exists():
                temp_path.unlink()
        return path

    async def concat_all(self, inputs: Sequence[Path], output_path: Path) -> Path:
        """Merge inputs in order with a single concat filter graph."""
        if not inputs:
            raise MediaFailure("Nothing to concatenate")

        args = [self.ffmpeg_binary, "-y"]
        for path in inputs:
            args.extend(["-i", str(path)])

        streams = "".join(f"[{i}:a]" for i in range(len(inputs)))
        args.extend([
            "-filter_complex", f"{streams}concat=n={len(inputs)}:v=0:a=1[out]",
            "-map", "[out]",
            "-codec:a", self.audio_codec,
            str(output_path),
        ])

        await asyncio.to_thread(self._run, args, "ffmpeg concat")
        logger.info(f"Concatenated {len(inputs)} files into {output_path.name}")
        return output_path

    async def probe_duration(self, path: Path) -> float:
        """Duration of an audio file in seconds."""
        try:
            audio = await asyncio.to_thread(AudioSegment.from_file, str(path))
        except Exception as e:
            raise MediaFailure(f"Could not measure {path}: {e}") from e
        return float(audio.duration_seconds)
