"""Next-track selection: repeat filtering, scoring, weighted-random pick."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .params import MoodTargetParams
from .scorer import score_track
from .tracks import Track, TrackScore

_LOGGER = logging.getLogger("moodnav.selector")

RECENT_TRACKS_LIMIT = 20
PRE_FILTER_DESCRIPTOR_SPAN = 0.5
PRE_FILTER_TEMPO_SLACK = 20.0

RandomSource = Callable[[], float]


class SelectionOptions(BaseModel):
    """Inputs for one selection.

    ``include_recommendations`` is read by callers building the pool with
    ``build_candidate_pool``; ``select_next`` scores whatever pool it gets.
    """

    target: MoodTargetParams
    current: Track | None = None
    recent_tracks: tuple[Track, ...] = ()
    include_recommendations: bool = False
    top_n: int = Field(default=5, ge=1)

    model_config = ConfigDict(frozen=True, extra="forbid")


def _weighted_pick(candidates: Sequence[TrackScore], random_source: RandomSource) -> TrackScore:
    total = sum(candidate.total_score for candidate in candidates)
    if total <= 0:
        return candidates[0]
    draw = random_source()
    cumulative = 0.0
    for candidate in candidates:
        cumulative += candidate.total_score / total
        if draw <= cumulative:
            return candidate
    # float drift can leave the last cumulative step just below the draw
    return candidates[0]


def _rank(
    pool: Sequence[Track],
    options: SelectionOptions,
    recent_artists: frozenset[str],
) -> list[TrackScore]:
    scored = [
        score_track(track, options.target, options.current, recent_artists) for track in pool
    ]
    scored.sort(key=lambda item: item.total_score, reverse=True)
    return scored[: options.top_n]


def select_next(
    pool: Sequence[Track],
    options: SelectionOptions,
    *,
    random_source: RandomSource = random.random,
) -> TrackScore | None:
    """Pick the next track from ``pool``.

    Tracks among the last ``RECENT_TRACKS_LIMIT`` plays are skipped unless
    that would leave nothing to play. The winner is drawn from the top
    ``options.top_n`` with probability proportional to total score.
    """
    if not pool:
        return None

    recent_artists = frozenset(track.artist for track in options.recent_tracks)
    recent_ids = {track.id for track in options.recent_tracks[-RECENT_TRACKS_LIMIT:]}
    available = [track for track in pool if track.id not in recent_ids]
    if not available:
        _LOGGER.debug("Every candidate was played recently; allowing repeats")
        available = list(pool)

    candidates = _rank(available, options, recent_artists)
    if not candidates:
        return None
    return _weighted_pick(candidates, random_source)


def build_candidate_pool(
    library: Sequence[Track],
    recommended: Sequence[Track] = (),
    *,
    include_recommendations: bool = False,
    max_library_tracks: int = 500,
    max_recommended_tracks: int = 50,
) -> list[Track]:
    pool: list[Track] = []
    seen: set[str] = set()
    for track in library[:max_library_tracks]:
        if track.id not in seen:
            seen.add(track.id)
            pool.append(track)
    if include_recommendations:
        for track in recommended[:max_recommended_tracks]:
            if track.id not in seen:
                seen.add(track.id)
                pool.append(track)
    return pool


def pre_filter_tracks(tracks: Sequence[Track], target: MoodTargetParams) -> list[Track]:
    """Cheap pass that drops tracks far from the target before full scoring."""
    low = target.tempo.min - PRE_FILTER_TEMPO_SLACK
    high = target.tempo.max + PRE_FILTER_TEMPO_SLACK
    return [
        track
        for track in tracks
        if abs(track.energy - target.energy) <= PRE_FILTER_DESCRIPTOR_SPAN
        and abs(track.valence - target.valence) <= PRE_FILTER_DESCRIPTOR_SPAN
        and low <= track.tempo <= high
    ]


def select_with_diversity(
    pool: Sequence[Track],
    options: SelectionOptions,
    count: int,
    *,
    random_source: RandomSource = random.random,
) -> list[Track]:
    """Chain ``count`` picks, each one becoming the next pick's current track."""
    selected: list[Track] = []
    remaining = list(pool)
    while len(selected) < count and remaining:
        step = options.model_copy(
            update={
                "current": selected[-1] if selected else options.current,
                "recent_tracks": (*options.recent_tracks, *selected),
            }
        )
        result = select_next(remaining, step, random_source=random_source)
        if result is None:
            break
        selected.append(result.track)
        remaining = [track for track in remaining if track.id != result.track.id]
    return selected
