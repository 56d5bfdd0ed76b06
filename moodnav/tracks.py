from __future__ import annotations

from datetime import datetime
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

from .params import MoodTargetParams

CamelotKey = str

# pitch class -> {mode: camelot key}; mode 0 = minor, 1 = major
CAMELOT_WHEEL: Mapping[int, Mapping[int, CamelotKey]] = MappingProxyType(
    {
        0: MappingProxyType({0: "5A", 1: "8B"}),
        1: MappingProxyType({0: "12A", 1: "3B"}),
        2: MappingProxyType({0: "7A", 1: "10B"}),
        3: MappingProxyType({0: "2A", 1: "5B"}),
        4: MappingProxyType({0: "9A", 1: "12B"}),
        5: MappingProxyType({0: "4A", 1: "7B"}),
        6: MappingProxyType({0: "11A", 1: "2B"}),
        7: MappingProxyType({0: "6A", 1: "9B"}),
        8: MappingProxyType({0: "1A", 1: "4B"}),
        9: MappingProxyType({0: "8A", 1: "11B"}),
        10: MappingProxyType({0: "3A", 1: "6B"}),
        11: MappingProxyType({0: "10A", 1: "1B"}),
    }
)


def _build_compatibility() -> Mapping[CamelotKey, tuple[CamelotKey, ...]]:
    table: dict[CamelotKey, tuple[CamelotKey, ...]] = {}
    for number in range(1, 13):
        previous = 12 if number == 1 else number - 1
        following = 1 if number == 12 else number + 1
        for letter, relative in (("A", "B"), ("B", "A")):
            table[f"{number}{letter}"] = (
                f"{number}{letter}",
                f"{number}{relative}",
                f"{previous}{letter}",
                f"{following}{letter}",
            )
    return MappingProxyType(table)


# same key, relative major/minor, and one step either way on the wheel
KEY_COMPATIBILITY: Mapping[CamelotKey, tuple[CamelotKey, ...]] = _build_compatibility()


def camelot_key(key: int | None, mode: int | None) -> CamelotKey | None:
    if key is None or mode is None:
        return None
    by_mode = CAMELOT_WHEEL.get(key)
    if by_mode is None:
        return None
    return by_mode.get(mode)


def camelot_number(label: CamelotKey) -> int:
    return int(label.rstrip("AB"))


class Track(BaseModel):
    """Read-only track as supplied by a library or provider."""

    id: str
    name: str = ""
    artist: str
    duration_ms: int = Field(ge=0)

    energy: float = Field(ge=0, le=1)
    valence: float = Field(ge=0, le=1)
    tempo: float = Field(ge=0)
    danceability: float = Field(ge=0, le=1)
    acousticness: float = Field(default=0.0, ge=0, le=1)
    instrumentalness: float = Field(default=0.0, ge=0, le=1)
    key: int | None = Field(default=None, ge=-1, le=11)
    mode: int | None = Field(default=None, ge=0, le=1)

    intro_end_ms: int | None = Field(default=None, ge=0)
    outro_start_ms: int | None = Field(default=None, ge=0)

    play_count: int = Field(default=0, ge=0)
    last_played: datetime | None = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @property
    def camelot(self) -> CamelotKey | None:
        return camelot_key(self.key, self.mode)


class TrackScore(BaseModel):
    track: Track
    mood_score: float
    transition_score: float
    total_score: float

    model_config = ConfigDict(frozen=True, extra="forbid")


class TransitionPlan(BaseModel):
    from_track: Track
    to_track: Track
    transition_point_ms: int = Field(ge=0)
    seek_point_ms: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")


class MoodDeviation(BaseModel):
    target: MoodTargetParams
    track: Track
    deviation_score: float = Field(ge=0)
    is_significant: bool

    model_config = ConfigDict(frozen=True, extra="forbid")
