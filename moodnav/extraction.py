from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterator, Mapping
from typing import Any

from .capabilities import GenerativeCapability
from .params import MoodTargetParams, coerce_number

_LOGGER = logging.getLogger("moodnav.extraction")
_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)

LLM_TEMPERATURE = 0.2
LLM_MAX_TOKENS = 300

# Placeholder: {input}. The raw, un-normalized mood text goes here.
MOOD_PARSE_PROMPT = """You are a music mood analyzer. Given a mood description, extract musical parameters.

Input: "{input}"

Respond with ONLY a JSON object (no explanation):
{{
  "energy": 0.0-1.0,      // Low=calm, High=intense
  "valence": 0.0-1.0,     // Low=sad/dark, High=happy/bright
  "danceability": 0.0-1.0, // How suitable for dancing
  "tempo": {{"min": 60-200, "max": 60-200}}, // BPM range
  "acousticness": 0.0-1.0, // Acoustic vs electronic (optional)
  "instrumentalness": 0.0-1.0 // No vocals preference (optional)
}}

Guidelines:
- "energetic/pumped" -> high energy (0.7-0.9), high tempo (120-150)
- "sad/melancholic" -> low valence (0.1-0.3), low energy (0.2-0.4)
- "chill/relaxed" -> moderate energy (0.3-0.5), moderate tempo (80-110)
- "party/dance" -> high danceability (0.8-0.9), high energy
- Consider language (English and Turkish descriptions)"""

SYSTEM_PROMPT = "You are a music mood parameter extractor. You only output valid JSON. No explanations."


def build_mood_prompt(text: str) -> str:
    return MOOD_PARSE_PROMPT.format(input=text)


def _balanced_objects(content: str) -> Iterator[str]:
    """Yield the balanced ``{...}`` span opening at each brace, left to right."""
    start = content.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(content)):
            char = content[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    yield content[start : index + 1]
                    break
        start = content.find("{", start + 1)


def _loads_object(candidate: str) -> dict[str, Any] | None:
    try:
        parsed = json.loads(candidate)
    except (json.JSONDecodeError, ValueError):
        return None
    return parsed if isinstance(parsed, dict) else None


def parse_json_response(content: str) -> dict[str, Any] | None:
    """Pull a JSON object out of free-form model output.

    Tries the whole text, then a fenced code block, then the first balanced
    ``{...}`` substring. Returns None when nothing parses.
    """
    if not content or not content.strip():
        return None
    stripped = content.strip()

    direct = _loads_object(stripped)
    if direct is not None:
        return direct

    fenced = _FENCED_BLOCK.search(stripped)
    if fenced:
        parsed = _loads_object(fenced.group(1).strip())
        if parsed is not None:
            return parsed

    for candidate in _balanced_objects(stripped):
        parsed = _loads_object(candidate)
        if parsed is not None:
            return parsed
    return None


def _number(payload: Mapping[str, Any], key: str, default: float | None) -> float | None:
    value = coerce_number(payload.get(key))
    return default if value is None else value


def params_from_payload(payload: Mapping[str, Any]) -> MoodTargetParams:
    """Clamp a loosely-typed model payload into valid target params."""
    tempo_raw = payload.get("tempo")
    tempo: Mapping[str, Any] = tempo_raw if isinstance(tempo_raw, Mapping) else {}
    tempo_min = coerce_number(tempo.get("min"))
    if tempo_min is None:
        tempo_min = _number(payload, "tempo_min", 80.0)
    tempo_max = coerce_number(tempo.get("max"))
    if tempo_max is None:
        tempo_max = _number(payload, "tempo_max", 130.0)

    return MoodTargetParams.clamped(
        energy=_number(payload, "energy", 0.5) or 0.0,
        valence=_number(payload, "valence", 0.5) or 0.0,
        danceability=_number(payload, "danceability", 0.5) or 0.0,
        tempo_min=tempo_min if tempo_min is not None else 80.0,
        tempo_max=tempo_max if tempo_max is not None else 130.0,
        acousticness=_number(payload, "acousticness", None),
        instrumentalness=_number(payload, "instrumentalness", None),
    )


class LocalModelExtractor:
    """Asks a local generative model for target params as JSON."""

    def __init__(
        self,
        model: GenerativeCapability,
        *,
        temperature: float = LLM_TEMPERATURE,
        max_tokens: int = LLM_MAX_TOKENS,
    ) -> None:
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def extract(self, text: str) -> MoodTargetParams | None:
        try:
            response = await self._model.generate(
                build_mood_prompt(text),
                system=SYSTEM_PROMPT,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except Exception as exc:
            _LOGGER.warning("Local model request failed: %s", exc, exc_info=True)
            return None

        payload = parse_json_response(response)
        if payload is None:
            _LOGGER.warning("Local model returned no JSON object: %.200s", response)
            return None
        return params_from_payload(payload)
