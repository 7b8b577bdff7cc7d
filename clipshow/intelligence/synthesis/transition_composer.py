"""Spoken transitions leading into the next clip."""

import json
import logging

from pydantic import BaseModel

from ..errors import SynthesisFailure
from ..models import SourceItem
from .content_suggester import ContentSuggester


logger = logging.getLogger(__name__)


class TransitionResponse(BaseModel):
    transition_text: str = ""


class TransitionComposer:
    """
    Writes a short lead-in for the next clip. The previous clip is never
    mentioned, so the text works after any clip (or after the intro).
    """

    EXAMPLE = {"transition_text": "The transition text between the two clips."}

    PROMPT = """You are in charge of creating a clip show using podcast clips.
The main topic of the show is "{query}". The previous clip that was chosen has just ended.
You have chosen the following clip to include next in the show:
{clip}.
Your task is to create a brief transition into this next clip.
The transition should be smooth and should flow well from any possible previous clip to the next clip. Do not mention anything to do with the previous clip.
The transition text will be spoken by a voice actor and will be used to transition between the two clips.
Adjectives are unnecessary, do not use them.
The response should be in JSON format with the structure: {example}. Return the object directly."""

    def __init__(self, suggester: ContentSuggester):
        self.suggester = suggester

    async def compose_transition(self, query: str, next_clip: SourceItem) -> str:
        prompt = self.PROMPT.format(
            query=query,
            clip=next_clip.describe(),
            example=json.dumps(self.EXAMPLE),
        )
        response = await self.suggester.complete("", prompt, TransitionResponse)

        text = response.transition_text.strip()
        if not text:
            raise SynthesisFailure(f"Empty transition text for clip {next_clip.id}")

        logger.debug(f"Transition into {next_clip.id}: {text[:60]}")
        return text
