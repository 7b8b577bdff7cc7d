"""
Episode pipeline - build one episode from the command line.

Usage:
    python -m clipshow.intelligence.pipeline --query "space exploration" --length 300
    python -m clipshow.intelligence.pipeline --query "jazz history" --length 600 --keep-artifacts
"""

import asyncio
import argparse
import logging
import json

from ..config import get_settings
from ..utils.logger import configure_logging
from .models import EpisodeResult
from .synthesis.episode_assembler import EpisodeAssembler


logger = logging.getLogger(__name__)


async def run_pipeline(
    query: str,
    episode_length: float = 300,
    keep_artifacts: bool = False,
) -> EpisodeResult:
    """
    Run the complete episode pipeline for one query.

    Returns the EpisodeResult of the run.
    """
    settings = get_settings()
    if keep_artifacts:
        settings = settings.model_copy(update={"keep_artifacts": True})

    assembler = EpisodeAssembler.from_settings(settings)
    result = await assembler.create_episode(query, episode_length)

    print("\n" + "=" * 60)
    print(f"Episode: {result.title} (id {result.episode_id})")
    print(f"Length:  {result.length:.1f}s")
    print(f"Audio:   {result.audio_url}")
    print(f"Order:   {', '.join(result.artifact_order)}")
    if result.skipped_topics:
        print(f"Skipped: topics {result.skipped_topics}")
    print("=" * 60)

    return result


def main():
    parser = argparse.ArgumentParser(description="ClipShow Episode Pipeline")
    parser.add_argument("--query", required=True, help="Main topic of the episode")
    parser.add_argument(
        "--length",
        type=float,
        default=300,
        help="Requested episode length in seconds",
    )
    parser.add_argument(
        "--keep-artifacts",
        action="store_true",
        help="Keep the run workspace after finishing",
    )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")

    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_dir)

    result = asyncio.run(
        run_pipeline(
            query=args.query,
            episode_length=args.length,
            keep_artifacts=args.keep_artifacts,
        )
    )

    if args.json:
        print(json.dumps(result.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    main()
