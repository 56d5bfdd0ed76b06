from __future__ import annotations

import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

ParseMethod = Literal["preset", "embedding", "llm", "keyword", "default", "none"]

MIN_BPM = 40.0
MAX_BPM = 200.0
DEFAULT_ACOUSTICNESS = 0.3


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def coerce_number(value: object) -> float | None:
    """Return ``value`` as a finite float, or None for anything non-numeric."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        return None
    return number


class TempoRange(BaseModel):
    """BPM window. Reversed bounds are swapped on construction."""

    min: float = Field(ge=0)
    max: float = Field(ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def _order_bounds(cls, data: object) -> object:
        if not isinstance(data, dict):
            return data
        low, high = data.get("min"), data.get("max")
        low_num, high_num = coerce_number(low), coerce_number(high)
        if low_num is not None and high_num is not None and low_num > high_num:
            return {**data, "min": high_num, "max": low_num}
        return data

    def contains(self, bpm: float) -> bool:
        return self.min <= bpm <= self.max


class MoodTargetParams(BaseModel):
    """Quantified musical intent produced by mood resolution."""

    energy: float = Field(ge=0, le=1)
    valence: float = Field(ge=0, le=1)
    danceability: float = Field(ge=0, le=1)
    tempo: TempoRange
    acousticness: float | None = Field(default=None, ge=0, le=1)
    instrumentalness: float | None = Field(default=None, ge=0, le=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def clamped(
        cls,
        *,
        energy: float,
        valence: float,
        danceability: float,
        tempo_min: float,
        tempo_max: float,
        acousticness: float | None = None,
        instrumentalness: float | None = None,
    ) -> MoodTargetParams:
        return cls(
            energy=clamp(energy, 0.0, 1.0),
            valence=clamp(valence, 0.0, 1.0),
            danceability=clamp(danceability, 0.0, 1.0),
            tempo=TempoRange(
                min=clamp(tempo_min, MIN_BPM, MAX_BPM),
                max=clamp(tempo_max, MIN_BPM, MAX_BPM),
            ),
            acousticness=None if acousticness is None else clamp(acousticness, 0.0, 1.0),
            instrumentalness=(
                None if instrumentalness is None else clamp(instrumentalness, 0.0, 1.0)
            ),
        )

    @property
    def effective_acousticness(self) -> float:
        if self.acousticness is None:
            return DEFAULT_ACOUSTICNESS
        return self.acousticness


class ParseResult(BaseModel):
    """Outcome of one mood resolution."""

    params: MoodTargetParams | None
    method: ParseMethod
    confidence: float = Field(ge=0, le=1)
    category: str | None = None
    processing_time_ms: float = Field(default=0.0, ge=0)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _check_method_params(self) -> ParseResult:
        if self.method == "none":
            if self.params is not None:
                raise ValueError("method 'none' must not carry params")
            if self.confidence != 0:
                raise ValueError("method 'none' must have zero confidence")
        elif self.params is None:
            raise ValueError(f"method {self.method!r} requires params")
        return self

    @classmethod
    def no_match(cls, processing_time_ms: float = 0.0) -> ParseResult:
        return cls(
            params=None,
            method="none",
            confidence=0.0,
            processing_time_ms=processing_time_ms,
        )

    @property
    def is_match(self) -> bool:
        return self.params is not None

    def with_timing(self, processing_time_ms: float) -> ParseResult:
        return self.model_copy(update={"processing_time_ms": max(0.0, processing_time_ms)})


class EngineStatus(BaseModel):
    local_model_running: bool
    local_models: tuple[str, ...] = ()
    has_embeddings: bool
    llm_available: bool

    model_config = ConfigDict(frozen=True, extra="forbid")


def params_to_dict(params: MoodTargetParams) -> dict[str, Any]:
    return params.model_dump(exclude_none=True)
