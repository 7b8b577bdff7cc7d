"""Typed JSON requests to Gemini, with one repair retry on malformed output."""

import json
import logging
from typing import Optional, Type, TypeVar

import httpx
from google import genai
from google.genai import errors, types
from pydantic import BaseModel, ValidationError

from ..errors import SuggestionError


logger = logging.getLogger(__name__)

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


REPAIR_PROMPT = """

Your previous response could not be used: {error}
Respond again with ONLY a JSON object in the requested structure. Return the object directly."""


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences around a JSON payload."""
    text = text.strip()

    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]

    return text.strip()


class ContentSuggester:
    """
    The generative-text capability: complete(system, user) -> validated JSON.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-2.0-flash",
        temperature: float = 0.7,
        repair_attempts: int = 1,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.repair_attempts = repair_attempts
        self._client: Optional[genai.Client] = None

    @classmethod
    def from_settings(cls, settings) -> "ContentSuggester":
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            temperature=settings.gemini_temperature,
        )

    @property
    def client(self) -> genai.Client:
        """Lazy load the Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise SuggestionError("GEMINI_API_KEY not set")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        response_model: Type[ResponseModel],
    ) -> ResponseModel:
        """
        Ask for a JSON object and validate it against `response_model`.

        A response that is not JSON or does not validate is re-prompted once
        with the parser error attached; a second failure raises SuggestionError.
        """
        prompt = user_prompt
        last_error: Optional[Exception] = None

        for attempt in range(self.repair_attempts + 1):
            text = await self._generate(system_prompt, prompt)
            try:
                return self._parse(text, response_model)
            except (json.JSONDecodeError, ValidationError) as e:
                last_error = e
                logger.warning(
                    f"Unusable {response_model.__name__} response "
                    f"(attempt {attempt + 1}): {e}"
                )
                prompt = user_prompt + REPAIR_PROMPT.format(error=str(e)[:300])

        raise SuggestionError(
            f"Content suggester returned malformed {response_model.__name__}: {last_error}"
        ) from last_error

    async def _generate(self, system_prompt: str, user_prompt: str) -> str:
        """Generate response from Gemini."""
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=user_prompt,
                config=types.GenerateContentConfig(
                    system_instruction=system_prompt or None,
                    temperature=self.temperature,
                    response_mime_type="application/json",
                ),
            )
        except (errors.APIError, httpx.HTTPError) as e:
            raise SuggestionError(f"Gemini request failed: {e}") from e

        return response.text or ""

    def _parse(self, text: str, response_model: Type[ResponseModel]) -> ResponseModel:
        payload = json.loads(strip_code_fences(text))
        return response_model.model_validate(payload)
