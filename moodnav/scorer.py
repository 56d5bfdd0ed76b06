"""Mood-fit and transition-quality scoring for candidate tracks."""

from __future__ import annotations

from collections.abc import Collection
from types import MappingProxyType
from typing import Mapping

from .params import MoodTargetParams
from .tracks import KEY_COMPATIBILITY, MoodDeviation, Track, TrackScore, camelot_number

MOOD_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {"energy": 0.35, "valence": 0.35, "danceability": 0.15, "acousticness": 0.15}
)
TRANSITION_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {"key_compatibility": 0.35, "bpm_proximity": 0.35, "energy_flow": 0.2, "diversity": 0.1}
)

TEMPO_FALLOFF_BPM = 30.0
UNKNOWN_KEY_SCORE = 0.5
COMPATIBLE_KEY_SCORE = 0.85
KEY_STEP_PENALTY = 0.15
SIGNIFICANT_DEVIATION = 0.3


def tempo_score(bpm: float, target: MoodTargetParams) -> float:
    """1 inside the target window, losing 1 per 30 BPM outside it."""
    window = target.tempo
    if window.contains(bpm):
        return 1.0
    distance = window.min - bpm if bpm < window.min else bpm - window.max
    return max(0.0, 1.0 - distance / TEMPO_FALLOFF_BPM)


def mood_score(track: Track, target: MoodTargetParams) -> float:
    """Weighted descriptor similarity, scaled by tempo fit.

    Tempo acts as a multiplier in [0.5, 1], so a track far outside the
    window keeps half of its descriptor score.
    """
    base = (
        MOOD_WEIGHTS["energy"] * (1 - abs(track.energy - target.energy))
        + MOOD_WEIGHTS["valence"] * (1 - abs(track.valence - target.valence))
        + MOOD_WEIGHTS["danceability"] * (1 - abs(track.danceability - target.danceability))
        + MOOD_WEIGHTS["acousticness"]
        * (1 - abs(track.acousticness - target.effective_acousticness))
    )
    return base * (0.5 + 0.5 * tempo_score(track.tempo, target))


def key_compatibility(current: Track, following: Track) -> float:
    current_key = current.camelot
    next_key = following.camelot
    if current_key is None or next_key is None:
        return UNKNOWN_KEY_SCORE
    if current_key == next_key:
        return 1.0
    if next_key in KEY_COMPATIBILITY.get(current_key, ()):
        return COMPATIBLE_KEY_SCORE
    gap = abs(camelot_number(current_key) - camelot_number(next_key))
    distance = min(gap, 12 - gap)
    return max(0.0, 1.0 - distance * KEY_STEP_PENALTY)


def bpm_proximity(current: Track, following: Track) -> float:
    """Tempo closeness, accepting half-time and double-time pairings."""
    diff = min(
        abs(current.tempo - following.tempo),
        abs(current.tempo - following.tempo * 2),
        abs(current.tempo - following.tempo / 2),
    )
    if diff <= 3:
        return 1.0
    if diff <= 10:
        return 0.9
    if diff <= 20:
        return 0.7
    return max(0.0, 1.0 - diff / 50)


def energy_flow(current: Track, following: Track) -> float:
    delta = following.energy - current.energy
    # gentle build beats steady state, which beats a small drop
    if 0.05 <= delta <= 0.25:
        return 1.0
    if abs(delta) <= 0.1:
        return 0.9
    if -0.2 <= delta < 0:
        return 0.7
    return max(0.0, 1.0 - abs(delta))


def diversity_score(track: Track, recent_artists: Collection[str]) -> float:
    return 0.0 if track.artist in recent_artists else 1.0


def transition_score(
    current: Track,
    following: Track,
    recent_artists: Collection[str] = frozenset(),
) -> float:
    return (
        TRANSITION_WEIGHTS["key_compatibility"] * key_compatibility(current, following)
        + TRANSITION_WEIGHTS["bpm_proximity"] * bpm_proximity(current, following)
        + TRANSITION_WEIGHTS["energy_flow"] * energy_flow(current, following)
        + TRANSITION_WEIGHTS["diversity"] * diversity_score(following, recent_artists)
    )


def score_track(
    track: Track,
    target: MoodTargetParams,
    current: Track | None = None,
    recent_artists: Collection[str] = frozenset(),
    *,
    mood_weight: float = 0.6,
    transition_weight: float = 0.4,
) -> TrackScore:
    mood = mood_score(track, target)
    # the first pick of a session has nothing to transition from
    transition = 1.0 if current is None else transition_score(current, track, recent_artists)
    return TrackScore(
        track=track,
        mood_score=mood,
        transition_score=transition,
        total_score=mood_weight * mood + transition_weight * transition,
    )


def total_score(
    track: Track,
    target: MoodTargetParams,
    current: Track | None = None,
    recent_artists: Collection[str] = frozenset(),
    mood_weight: float = 0.6,
    transition_weight: float = 0.4,
) -> float:
    return score_track(
        track,
        target,
        current,
        recent_artists,
        mood_weight=mood_weight,
        transition_weight=transition_weight,
    ).total_score


def mood_deviation(
    target: MoodTargetParams,
    track: Track,
    *,
    threshold: float = SIGNIFICANT_DEVIATION,
) -> MoodDeviation:
    """How far a track sits from the requested mood, ignoring tempo."""
    score = (
        MOOD_WEIGHTS["energy"] * abs(target.energy - track.energy)
        + MOOD_WEIGHTS["valence"] * abs(target.valence - track.valence)
        + MOOD_WEIGHTS["danceability"] * abs(target.danceability - track.danceability)
        + MOOD_WEIGHTS["acousticness"] * abs(target.effective_acousticness - track.acousticness)
    )
    return MoodDeviation(
        target=target,
        track=track,
        deviation_score=score,
        is_significant=score > threshold,
    )
