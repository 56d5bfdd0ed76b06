"""Hand-authored word lexicon used as the terminal mood fallback."""

from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from .params import MoodTargetParams, TempoRange

# subset of energy/valence/danceability/acousticness/tempo_min/tempo_max
PartialParams = Mapping[str, float]


def _entry(**values: float) -> PartialParams:
    return MappingProxyType(values)


def fold_case(text: str) -> str:
    """Lowercase ``text`` so Turkish dotted and dotless i compare equal to i."""
    return text.lower().replace("i\u0307", "i").replace("\u0131", "i")


MOOD_KEYWORDS: Mapping[str, PartialParams] = MappingProxyType(
    {
        # energy
        "energetic": _entry(energy=0.9, valence=0.8, tempo_min=120, tempo_max=180),
        "hype": _entry(energy=0.95, valence=0.85, danceability=0.9, tempo_min=130, tempo_max=180),
        "pumped": _entry(energy=0.9, valence=0.7, danceability=0.8, tempo_min=120, tempo_max=160),
        "workout": _entry(energy=0.9, valence=0.7, danceability=0.85, tempo_min=125, tempo_max=170),
        "party": _entry(energy=0.85, valence=0.9, danceability=0.9, tempo_min=115, tempo_max=140),
        # calm
        "calm": _entry(energy=0.2, valence=0.5, acousticness=0.6, tempo_min=60, tempo_max=90),
        "peaceful": _entry(energy=0.15, valence=0.6, acousticness=0.7, tempo_min=55, tempo_max=85),
        "relaxed": _entry(energy=0.25, valence=0.6, acousticness=0.5, tempo_min=60, tempo_max=95),
        "chill": _entry(energy=0.3, valence=0.6, danceability=0.4, tempo_min=70, tempo_max=100),
        "sleepy": _entry(energy=0.1, valence=0.4, acousticness=0.7, tempo_min=50, tempo_max=75),
        # happy
        "happy": _entry(energy=0.7, valence=0.9, danceability=0.7, tempo_min=100, tempo_max=140),
        "joyful": _entry(energy=0.75, valence=0.95, danceability=0.7, tempo_min=105, tempo_max=145),
        "cheerful": _entry(energy=0.65, valence=0.85, danceability=0.65, tempo_min=95, tempo_max=130),
        "upbeat": _entry(energy=0.7, valence=0.8, danceability=0.75, tempo_min=110, tempo_max=140),
        "positive": _entry(energy=0.6, valence=0.8, tempo_min=90, tempo_max=130),
        # sad
        "sad": _entry(energy=0.25, valence=0.15, acousticness=0.5, tempo_min=55, tempo_max=85),
        "melancholic": _entry(energy=0.3, valence=0.2, acousticness=0.45, tempo_min=60, tempo_max=90),
        "heartbroken": _entry(energy=0.2, valence=0.1, acousticness=0.5, tempo_min=50, tempo_max=80),
        "nostalgic": _entry(energy=0.35, valence=0.4, acousticness=0.4, tempo_min=65, tempo_max=95),
        "lonely": _entry(energy=0.2, valence=0.2, acousticness=0.5, tempo_min=55, tempo_max=85),
        # angry
        "angry": _entry(energy=0.9, valence=0.2, acousticness=0.1, tempo_min=130, tempo_max=180),
        "aggressive": _entry(energy=0.95, valence=0.15, acousticness=0.05, tempo_min=140, tempo_max=190),
        "frustrated": _entry(energy=0.7, valence=0.25, acousticness=0.2, tempo_min=110, tempo_max=150),
        "intense": _entry(energy=0.85, valence=0.35, acousticness=0.15, tempo_min=120, tempo_max=160),
        # focus
        "focused": _entry(energy=0.5, valence=0.5, danceability=0.3, tempo_min=80, tempo_max=120),
        "productive": _entry(energy=0.55, valence=0.55, danceability=0.35, tempo_min=85, tempo_max=125),
        "studying": _entry(energy=0.35, valence=0.5, acousticness=0.4, tempo_min=70, tempo_max=100),
        "coding": _entry(energy=0.45, valence=0.5, danceability=0.3, tempo_min=75, tempo_max=115),
        "working": _entry(energy=0.5, valence=0.5, danceability=0.3, tempo_min=80, tempo_max=120),
        # romantic
        "romantic": _entry(energy=0.4, valence=0.7, acousticness=0.5, tempo_min=70, tempo_max=110),
        "love": _entry(energy=0.45, valence=0.75, acousticness=0.45, tempo_min=75, tempo_max=115),
        "sensual": _entry(energy=0.35, valence=0.65, acousticness=0.4, tempo_min=65, tempo_max=100),
        # adventure / epic
        "epic": _entry(energy=0.8, valence=0.6, acousticness=0.2, tempo_min=100, tempo_max=150),
        "adventure": _entry(energy=0.75, valence=0.7, acousticness=0.25, tempo_min=95, tempo_max=140),
        "triumphant": _entry(energy=0.85, valence=0.8, acousticness=0.2, tempo_min=110, tempo_max=150),
        # turkish
        "enerjik": _entry(energy=0.9, valence=0.8, tempo_min=120, tempo_max=180),
        "sakin": _entry(energy=0.2, valence=0.5, acousticness=0.6, tempo_min=60, tempo_max=90),
        "mutlu": _entry(energy=0.7, valence=0.9, danceability=0.7, tempo_min=100, tempo_max=140),
        "üzgün": _entry(energy=0.25, valence=0.15, acousticness=0.5, tempo_min=55, tempo_max=85),
        "hüzünlü": _entry(energy=0.3, valence=0.2, acousticness=0.45, tempo_min=60, tempo_max=90),
        "kızgın": _entry(energy=0.9, valence=0.2, acousticness=0.1, tempo_min=130, tempo_max=180),
        "odaklanmış": _entry(energy=0.5, valence=0.5, danceability=0.3, tempo_min=80, tempo_max=120),
        "romantik": _entry(energy=0.4, valence=0.7, acousticness=0.5, tempo_min=70, tempo_max=110),
    }
)

# declaration order is kept; folding yields no duplicate keys
_FOLDED_KEYWORDS: Mapping[str, PartialParams] = MappingProxyType(
    {fold_case(keyword): params for keyword, params in MOOD_KEYWORDS.items()}
)

DEFAULT_KEYWORD_PARAMS = MoodTargetParams(
    energy=0.5,
    valence=0.5,
    danceability=0.5,
    acousticness=0.3,
    tempo=TempoRange(min=80, max=130),
)

_AVERAGED_FIELDS = ("energy", "valence", "danceability", "acousticness", "tempo_min", "tempo_max")


@dataclass(frozen=True, slots=True)
class KeywordMatch:
    params: MoodTargetParams
    matched: int


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _lookup(word: str, min_partial_length: int) -> PartialParams | None:
    direct = _FOLDED_KEYWORDS.get(word)
    if direct is not None:
        return direct
    if len(word) < min_partial_length:
        return None
    # first lexicon key in declaration order wins
    for keyword, params in _FOLDED_KEYWORDS.items():
        if keyword in word or word in keyword:
            return params
    return None


def map_mood_from_keywords(text: str, *, min_partial_length: int = 1) -> KeywordMatch:
    """Average the lexicon entries hit by each word of ``text``.

    Partial matching accepts a word contained in a lexicon key or a key
    contained in the word, so very short words can hit unrelated keys.
    ``min_partial_length`` restricts partial lookups to longer words.
    """
    matches: list[PartialParams] = []
    for word in fold_case(text).split():
        hit = _lookup(word, min_partial_length)
        if hit is not None:
            matches.append(hit)

    if not matches:
        return KeywordMatch(params=DEFAULT_KEYWORD_PARAMS, matched=0)

    defaults: dict[str, float] = {
        "energy": DEFAULT_KEYWORD_PARAMS.energy,
        "valence": DEFAULT_KEYWORD_PARAMS.valence,
        "danceability": DEFAULT_KEYWORD_PARAMS.danceability,
        "acousticness": DEFAULT_KEYWORD_PARAMS.effective_acousticness,
        "tempo_min": DEFAULT_KEYWORD_PARAMS.tempo.min,
        "tempo_max": DEFAULT_KEYWORD_PARAMS.tempo.max,
    }
    averaged: dict[str, float] = {}
    for field in _AVERAGED_FIELDS:
        values = [entry[field] for entry in matches if field in entry]
        averaged[field] = sum(values) / len(values) if values else defaults[field]

    params = MoodTargetParams(
        energy=averaged["energy"],
        valence=averaged["valence"],
        danceability=averaged["danceability"],
        acousticness=averaged["acousticness"],
        tempo=TempoRange(
            min=_round_half_up(averaged["tempo_min"]),
            max=_round_half_up(averaged["tempo_max"]),
        ),
    )
    return KeywordMatch(params=params, matched=len(matches))


def describe_mood(params: MoodTargetParams) -> str:
    descriptions: list[str] = []
    if params.energy > 0.7:
        descriptions.append("energetic")
    elif params.energy < 0.3:
        descriptions.append("calm")

    if params.valence > 0.7:
        descriptions.append("happy")
    elif params.valence < 0.3:
        descriptions.append("melancholic")

    if params.danceability > 0.7:
        descriptions.append("danceable")
    if params.effective_acousticness > 0.6:
        descriptions.append("acoustic")

    return ", ".join(descriptions) if descriptions else "balanced"
