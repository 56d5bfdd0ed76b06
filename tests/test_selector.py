from __future__ import annotations

import random

import pytest

from moodnav.params import MoodTargetParams, TempoRange
from moodnav.selector import (
    RECENT_TRACKS_LIMIT,
    SelectionOptions,
    build_candidate_pool,
    pre_filter_tracks,
    select_next,
    select_with_diversity,
)
from moodnav.tracks import Track

_TARGET = MoodTargetParams(
    energy=0.5, valence=0.5, danceability=0.5, tempo=TempoRange(min=90, max=110)
)


def _track(track_id: str, **overrides: object) -> Track:
    values: dict[str, object] = {
        "id": track_id,
        "artist": f"artist-{track_id}",
        "duration_ms": 180_000,
        "energy": 0.5,
        "valence": 0.5,
        "tempo": 100.0,
        "danceability": 0.5,
        "acousticness": 0.3,
    }
    values.update(overrides)
    return Track.model_validate(values)


def test_empty_pool_returns_none() -> None:
    assert select_next([], SelectionOptions(target=_TARGET)) is None


def test_draw_walks_the_cumulative_distribution() -> None:
    pool = [_track("a"), _track("b"), _track("c")]
    options = SelectionOptions(target=_TARGET)
    # equal scores: each candidate owns a third of the unit interval
    assert select_next(pool, options, random_source=lambda: 0.1).track.id == "a"
    assert select_next(pool, options, random_source=lambda: 0.5).track.id == "b"
    assert select_next(pool, options, random_source=lambda: 0.9).track.id == "c"


def test_identical_scores_spread_across_calls() -> None:
    pool = [_track(str(index)) for index in range(5)]
    options = SelectionOptions(target=_TARGET)
    rng = random.Random(7)
    picks = {select_next(pool, options, random_source=rng.random).track.id for _ in range(50)}
    assert len(picks) > 1


def test_only_top_n_are_candidates() -> None:
    good = [_track(f"good-{index}") for index in range(2)]
    bad = [_track(f"bad-{index}", energy=1.0, valence=0.0, tempo=190) for index in range(3)]
    options = SelectionOptions(target=_TARGET, top_n=2)
    rng = random.Random(3)
    for _ in range(30):
        result = select_next([*bad, *good], options, random_source=rng.random)
        assert result is not None
        assert result.track.id.startswith("good")


def test_recent_tracks_are_excluded() -> None:
    pool = [_track("a"), _track("b"), _track("c")]
    options = SelectionOptions(target=_TARGET, recent_tracks=(pool[0], pool[1]))
    for draw in (0.0, 0.5, 1.0):
        assert select_next(pool, options, random_source=lambda: draw).track.id == "c"


def test_only_the_last_twenty_recent_tracks_block_repeats() -> None:
    old = _track("old")
    filler = [_track(f"f{index}") for index in range(RECENT_TRACKS_LIMIT)]
    options = SelectionOptions(target=_TARGET, recent_tracks=(old, *filler))
    result = select_next([old, filler[0]], options, random_source=lambda: 0.0)
    assert result is not None
    assert result.track.id == "old"


def test_falls_back_to_full_pool_when_everything_is_recent() -> None:
    pool = [_track("a"), _track("b")]
    options = SelectionOptions(target=_TARGET, recent_tracks=tuple(pool))
    result = select_next(pool, options, random_source=lambda: 0.2)
    assert result is not None
    assert result.track.id in {"a", "b"}


def test_degenerate_scores_pick_first_candidate() -> None:
    pool = [_track("a"), _track("b")]
    options = SelectionOptions(target=_TARGET)
    # a draw past the cumulative total lands on the top-ranked candidate
    assert select_next(pool, options, random_source=lambda: 2.0).track.id == "a"


def test_recent_artists_lower_transition_scores() -> None:
    current = _track("now", artist="Same")
    same_artist = _track("x", artist="Same")
    other = _track("y", artist="Other")
    options = SelectionOptions(target=_TARGET, current=current, recent_tracks=(current,), top_n=1)
    result = select_next([same_artist, other], options, random_source=lambda: 0.0)
    assert result is not None
    assert result.track.id == "y"


def test_caller_collections_are_not_mutated() -> None:
    pool = [_track("b"), _track("a", energy=0.9)]
    recent = (_track("z"),)
    snapshot = list(pool)
    select_next(pool, SelectionOptions(target=_TARGET, recent_tracks=recent))
    assert pool == snapshot


def test_build_candidate_pool_dedupes_and_caps() -> None:
    library = [_track("a"), _track("b"), _track("a"), _track("c")]
    recommended = [_track("b"), _track("d"), _track("e")]

    assert [t.id for t in build_candidate_pool(library, recommended)] == ["a", "b", "c"]

    pool = build_candidate_pool(
        library,
        recommended,
        include_recommendations=True,
        max_library_tracks=2,
        max_recommended_tracks=2,
    )
    assert [t.id for t in pool] == ["a", "b", "d"]


def test_recommendation_flag_shapes_the_pool_not_the_pick() -> None:
    library = [_track("a"), _track("b")]
    recommended = [_track("r")]
    options = SelectionOptions(target=_TARGET, include_recommendations=True)

    pool = build_candidate_pool(
        library, recommended, include_recommendations=options.include_recommendations
    )
    assert [t.id for t in pool] == ["a", "b", "r"]

    plain = SelectionOptions(target=_TARGET)
    for draw in (0.1, 0.5, 0.9):
        with_flag = select_next(pool, options, random_source=lambda: draw)
        without = select_next(pool, plain, random_source=lambda: draw)
        assert with_flag.track.id == without.track.id


def test_pre_filter_keeps_nearby_tracks() -> None:
    tracks = [_track("keep"), _track("edge", energy=1.0, tempo=130), _track("fast", tempo=131)]
    kept = [t.id for t in pre_filter_tracks(tracks, _TARGET)]
    assert kept == ["keep", "edge"]


def test_pre_filter_drops_far_descriptors() -> None:
    target = _TARGET.model_copy(update={"energy": 0.2})
    tracks = [_track("far", energy=0.9), _track("ok", energy=0.3)]
    assert [t.id for t in pre_filter_tracks(tracks, target)] == ["ok"]


def test_select_with_diversity_chains_picks() -> None:
    pool = [_track(str(index)) for index in range(4)]
    picks = select_with_diversity(
        pool, SelectionOptions(target=_TARGET), 3, random_source=lambda: 0.0
    )
    assert len(picks) == 3
    assert len({track.id for track in picks}) == 3


def test_select_with_diversity_stops_when_pool_runs_out() -> None:
    pool = [_track("a"), _track("b")]
    picks = select_with_diversity(pool, SelectionOptions(target=_TARGET), 5)
    assert sorted(track.id for track in picks) == ["a", "b"]


@pytest.mark.parametrize("top_n", [0, -1])
def test_top_n_must_be_positive(top_n: int) -> None:
    with pytest.raises(ValueError):
        SelectionOptions(target=_TARGET, top_n=top_n)
