from dataclasses import dataclass
from typing import Optional

from daiary.config import settings
from daiary.core.errors import UpstreamFormatError, ValidationError
from daiary.core.logger import logger
from daiary.llm.model_client import ModelClient, get_model_client
from daiary.llm.prompt_builder import FeedbackKind, Personality, build_prompt
from daiary.llm.response_extractor import extract_json_object

NOT_JSON_MESSAGE = "AI response was not in JSON format"


@dataclass
class Persona:
    personality: Personality = Personality.SUPPORTIVE
    custom_instruction: Optional[str] = None


@dataclass
class DailyFeedback:
    feedback: str
    mood: str


def validate_persona(personality: Optional[str], custom_instruction: Optional[str] = None) -> Persona:
    """Check the persona fields of a request and normalise them.

    The custom instruction is trimmed and kept only for the custom persona.
    """
    if personality is None or personality == "":
        personality = Personality.SUPPORTIVE
    try:
        personality = Personality(personality)
    except ValueError:
        raise ValidationError("invalid personality")

    if personality != Personality.CUSTOM:
        return Persona(personality=personality)

    if not isinstance(custom_instruction, str) or not custom_instruction.strip():
        raise ValidationError("customInstruction is required when personality is custom")
    if len(custom_instruction) > settings.MAX_CUSTOM_INSTRUCTION_LENGTH:
        raise ValidationError(
            f"customInstruction is too long (max {settings.MAX_CUSTOM_INSTRUCTION_LENGTH} characters)"
        )
    return Persona(personality=personality, custom_instruction=custom_instruction.strip())


def validate_content(content) -> str:
    if not isinstance(content, str) or not content.strip():
        raise ValidationError("content is required")
    if len(content) > settings.MAX_CONTENT_LENGTH:
        raise ValidationError(f"content is too long (max {settings.MAX_CONTENT_LENGTH} characters)")
    return content.strip()


def validate_streak(streak) -> int:
    if isinstance(streak, bool) or not isinstance(streak, int) or streak <= 0:
        raise ValidationError("streak is required (number > 0)")
    return streak


def validate_periodic_entries(entries) -> list:
    if not isinstance(entries, list) or not entries:
        raise ValidationError("entries is required (array)")
    if len(entries) > settings.MAX_PERIODIC_ENTRIES:
        raise ValidationError(f"too many entries (max {settings.MAX_PERIODIC_ENTRIES})")
    return entries


class FeedbackService:
    """Prompt, call and parse for the three feedback kinds."""

    def __init__(self, client: ModelClient | None = None):
        self.client = client or get_model_client()

    async def daily(self, content: str, persona) -> DailyFeedback:
        content = validate_content(content)
        prompt = build_prompt(FeedbackKind.DAILY, persona, content)
        data = await self._ask(prompt, "daily")
        mood = data.get("mood")
        return DailyFeedback(
            feedback=data["feedback"],
            mood=mood if isinstance(mood, str) else settings.UNKNOWN_MOOD,
        )

    async def milestone(self, streak: int, persona) -> str:
        streak = validate_streak(streak)
        prompt = build_prompt(FeedbackKind.MILESTONE, persona, streak)
        data = await self._ask(prompt, "milestone")
        return data["feedback"]

    async def periodic(self, entries: list, persona, period: str = "weekly") -> str:
        entries = validate_periodic_entries(entries)
        prompt = build_prompt(FeedbackKind.PERIODIC, persona, (entries, period))
        data = await self._ask(prompt, period)
        return data["feedback"]

    async def _ask(self, prompt: str, label: str) -> dict:
        logger.debug("Requesting {} feedback ({} chars of prompt)", label, len(prompt))
        text = await self.client.generate(prompt)
        data = extract_json_object(text)
        if data is None or not isinstance(data.get("feedback"), str):
            logger.error("{} response not JSON: {}", label, text)
            raise UpstreamFormatError(NOT_JSON_MESSAGE, raw=text)
        return data
