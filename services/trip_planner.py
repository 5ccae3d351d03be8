import json
from typing import Optional

from openai import AsyncOpenAI, OpenAIError

from core.exceptions import GenerationError, ParseError
from core.logging import logger
from schemas.trip import TripParameters, fallback_itinerary
from utils.prompt_builder import create_prompt


def _matching_brace(text: str, start: int) -> Optional[int]:
    """Index of the `}` closing the object opened at `start`, ignoring braces in strings."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def extract_json_object(text: str) -> dict:
    """Pull the JSON object out of a model reply that may have prose around it.

    The candidate runs from the first `{` to its matching `}`; if the braces
    never balance, it runs to the last `}` instead.
    """
    if not text:
        raise ParseError("Empty model reply")

    start = text.find("{")
    if start == -1:
        raise ParseError("No JSON object found in model reply")

    end = _matching_brace(text, start)
    if end is None:
        end = text.rfind("}")
    if end <= start:
        raise ParseError("No JSON object found in model reply")

    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise ParseError(f"Model reply is not valid JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise ParseError("Model reply JSON is not an object")
    return parsed


def parse_itinerary_reply(content: str) -> dict:
    try:
        return extract_json_object(content)
    except ParseError as e:
        logger.error(f"LLM returned unusable itinerary, using fallback: {e}")
        logger.debug(f"Raw content: {content}")
        return fallback_itinerary()


class ItineraryGenerator:
    """Sends the trip prompt to the OpenAI chat API and parses the reply."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        timeout: float = 60.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.temperature = temperature
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    async def complete(self, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI API error: {str(e)}")
            raise GenerationError(f"Itinerary request failed: {e}") from e

        if not response.choices:
            raise GenerationError("OpenAI returned no choices")
        return (response.choices[0].message.content or "").strip()

    async def generate(self, trip: TripParameters) -> dict:
        logger.info(f"Generating itinerary for destination: {trip.destination}")
        prompt = create_prompt(trip)
        logger.debug(f"Prompt: {prompt}")

        content = await self.complete(prompt)
        logger.debug(f"Model reply: {content}")
        return parse_itinerary_reply(content)
