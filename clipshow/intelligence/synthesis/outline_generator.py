"""Show outline and introduction text."""

import json
import logging
from typing import Sequence

from pydantic import BaseModel, Field

from ..errors import SynthesisFailure
from ..models import Outline
from .content_suggester import ContentSuggester


logger = logging.getLogger(__name__)


class PodcastStructure(BaseModel):
    episode_name: str
    episode_description: str = ""
    topics: list[str] = Field(default_factory=list)


class ShowOutlineResponse(BaseModel):
    podcast_structure: PodcastStructure


class IntroductionResponse(BaseModel):
    introduction_text: str = ""


class OutlineGenerator:
    """
    Produces the episode outline and the spoken introduction.
    """

    OUTLINE_EXAMPLE = {
        "podcast_structure": {
            "episode_name": "Episode Name here",
            "episode_description": "Episode Description here",
            "topics": ["first topic", "second topic", "third topic etc etc", "etc"],
        }
    }

    OUTLINE_PROMPT = """You are in charge of creating an episode of a podcast show using podcast clips.
The main topic of the show is "{query}". You must create the structure for the show so that the user can get the appropriate podcast clips to make up the show.
The topic should be broad enough to allow for a variety of clips to be included.
Your response must be in JSON format with the structure: {example}. Return the object directly."""

    INTRO_EXAMPLE = {"introduction_text": "The introduction text for the show."}

    INTRO_PROMPT = """You are in charge of creating a clip show using podcast clips.
The main topic of the show is "{query}".
Your task is to introduce the show to the audience.
The introduction text will be spoken by a voice actor.
Adjectives are unnecessary, do not use them.
The show covers the following topics, in this order. Use them as a guideline for your intro, you do not need to quote them exactly:
{topics}
The response must be in JSON format with the structure: {example}. Return the object directly."""

    def __init__(self, suggester: ContentSuggester):
        self.suggester = suggester

    async def get_show_outline(self, query: str) -> Outline:
        """Ask for the episode title, description and ordered topics."""
        prompt = self.OUTLINE_PROMPT.format(
            query=query, example=json.dumps(self.OUTLINE_EXAMPLE)
        )
        response = await self.suggester.complete(prompt, prompt, ShowOutlineResponse)
        structure = response.podcast_structure

        topics = tuple(t.strip() for t in structure.topics if t and t.strip())
        logger.info(f"Outline '{structure.episode_name}' with {len(topics)} topics")

        return Outline(
            episode_title=structure.episode_name,
            episode_description=structure.episode_description,
            topics=topics,
        )

    async def introduce_show(self, query: str, topics: Sequence[str]) -> str:
        """Ask for the introduction line. Empty text is a synthesis failure."""
        prompt = self.INTRO_PROMPT.format(
            query=query,
            topics=", ".join(topics) if topics else "(no topics)",
            example=json.dumps(self.INTRO_EXAMPLE),
        )
        response = await self.suggester.complete("", prompt, IntroductionResponse)

        text = response.introduction_text.strip()
        if not text:
            raise SynthesisFailure("Content suggester returned an empty introduction")
        return text
