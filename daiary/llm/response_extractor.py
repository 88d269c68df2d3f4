import json
import re

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")


def _loads_object(text: str) -> dict | None:
    try:
        value = json.loads(text)
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def _balanced_span(text: str, start: int) -> str | None:
    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def extract_json_object(text: str) -> dict | None:
    """Pull the first JSON object out of free-form model output.

    Tries, in order: a ```json fenced block, the span from the first "{" to
    the last "}", then the first brace-balanced span. Returns None when none
    of them parse; never raises.
    """
    if not isinstance(text, str) or not text:
        return None

    match = _FENCED_BLOCK.search(text)
    if match:
        parsed = _loads_object(match.group(1))
        if parsed is not None:
            return parsed

    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last < first:
        return None

    parsed = _loads_object(text[first:last + 1])
    if parsed is not None:
        return parsed

    span = _balanced_span(text, first)
    if span is None:
        return None
    return _loads_object(span)
