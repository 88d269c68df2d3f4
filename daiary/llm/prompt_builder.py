from enum import Enum

from daiary.core.errors import ValidationError


class Personality(str, Enum):
    SUPPORTIVE = "supportive"
    STRICT = "strict"
    PHILOSOPHICAL = "philosophical"
    CUSTOM = "custom"


class FeedbackKind(str, Enum):
    DAILY = "daily"
    MILESTONE = "milestone"
    PERIODIC = "periodic"


PERSONA_ROLES = {
    Personality.SUPPORTIVE: "supportive close friend",
    Personality.STRICT: "passionate coach",
    Personality.PHILOSOPHICAL: "quiet sage",
}

PERIOD_LABELS = {
    "weekly": ("week", "this week"),
    "monthly": ("month", "this month"),
}

DAILY_TEMPLATE = """{persona}

The user's diary entry:
"{content}"

Reply with an empathetic comment of at most 150 characters.
Answer with ONLY the following JSON object and nothing else:

{{"feedback": "your comment", "mood": "one-word mood of the entry"}}"""

MILESTONE_TEMPLATE = """{persona}

The user has written in their diary {streak} days in a row!

Write a message celebrating this milestone:
- around 200 to 400 characters
- congratulate them on the achievement
- tell them why continuing is worthwhile
- keep it warm and encouraging
- the output must be JSON

{{"feedback": "your message"}}"""

PERIODIC_TEMPLATE = """{persona}

Below is the user's diary log for {period_phrase}. Write a reflection on the past {period_unit} that lifts their motivation:
- around 300 to 600 characters
- recognise the growth and changes of {period_phrase}
- keep it positive and encouraging
- the output must be JSON

Diary log:
{formatted}

{{"feedback": "your reflection"}}"""


def persona_line(personality: str | Personality | None, custom_instruction: str | None = None) -> str:
    try:
        personality = Personality(personality or Personality.SUPPORTIVE)
    except ValueError:
        raise ValidationError("invalid personality")
    if personality == Personality.CUSTOM:
        if not custom_instruction or not custom_instruction.strip():
            raise ValidationError("customInstruction is required when personality is custom")
        return custom_instruction
    return f"You are a {PERSONA_ROLES[personality]}."


def format_entries(entries: list) -> str:
    blocks = []
    for e in entries:
        if isinstance(e, dict):
            date, content = e.get("date", ""), e.get("content", "")
        else:
            date, content = e.date, e.content
        blocks.append(f"[{date}]\n{content}")
    return "\n\n".join(blocks)


def build_prompt(kind: str | FeedbackKind, profile, payload) -> str:
    """Render the prompt for one feedback kind.

    ``profile`` needs ``personality`` and ``custom_instruction`` attributes.
    ``payload`` is the entry text for daily, the streak length for milestone,
    and a ``(entries, period)`` pair for periodic.
    """
    persona = persona_line(profile.personality, getattr(profile, "custom_instruction", None))
    kind = FeedbackKind(kind)

    if kind == FeedbackKind.DAILY:
        return DAILY_TEMPLATE.format(persona=persona, content=payload)

    if kind == FeedbackKind.MILESTONE:
        return MILESTONE_TEMPLATE.format(persona=persona, streak=payload)

    entries, period = payload
    period_unit, period_phrase = PERIOD_LABELS.get(period, PERIOD_LABELS["weekly"])
    return PERIODIC_TEMPLATE.format(
        persona=persona,
        period_unit=period_unit,
        period_phrase=period_phrase,
        formatted=format_entries(entries),
    )
