import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ...config import get_settings
from ...intelligence.synthesis.episode_assembler import EpisodeAssembler
from ..database import PersistenceGateway

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateEpisodeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(min_length=1)
    episode_length: float = Field(alias="episodeLength", gt=0)

    @model_validator(mode="before")
    @classmethod
    def unwrap_legacy_body(cls, data):
        # Older clients send {"req": {...}}
        if isinstance(data, dict) and isinstance(data.get("req"), dict):
            return data["req"]
        return data


def get_assembler_factory() -> Callable[[], EpisodeAssembler]:
    """Builds a fresh assembler per request, so runs never share state."""
    return lambda: EpisodeAssembler.from_settings(get_settings())


def get_gateway() -> PersistenceGateway:
    return PersistenceGateway.from_settings(get_settings())


@router.post("/create_episode")
async def create_episode(
    request: CreateEpisodeRequest,
    assembler_factory: Callable[[], EpisodeAssembler] = Depends(get_assembler_factory),
):
    """
    Build a full episode for the query and return its id.
    Any failure is reported as a generic 500.
    """
    try:
        assembler = assembler_factory()
        result = await assembler.create_episode(request.query, request.episode_length)
    except Exception:
        logger.exception("Error creating episode")
        return JSONResponse(status_code=500, content={"message": "Internal Server Error"})

    return {"message": "Show created successfully!", "episodeId": result.episode_id}


@router.get("/episodes/{episode_id}/segments")
async def episode_segments(
    episode_id: str,
    gateway: PersistenceGateway = Depends(get_gateway),
):
    """Intro, clip and transition rows of an episode in playback order."""
    try:
        episode = await gateway.get_episode(episode_id)
        if episode is None:
            raise HTTPException(status_code=404, detail="Episode not found")
        segments = await gateway.get_episode_segments(episode_id)
    except HTTPException:
        raise
    except Exception:
        logger.exception(f"Error loading segments for episode {episode_id}")
        return JSONResponse(status_code=500, content={"message": "Internal Server Error"})

    return {
        "episode": episode.model_dump(),
        "segments": segments,
    }
