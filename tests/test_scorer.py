from __future__ import annotations

import pytest

from moodnav.params import MoodTargetParams, TempoRange
from moodnav.presets import PresetCatalog
from moodnav.scorer import (
    bpm_proximity,
    diversity_score,
    energy_flow,
    key_compatibility,
    mood_deviation,
    mood_score,
    score_track,
    tempo_score,
    total_score,
    transition_score,
)
from moodnav.tracks import Track


def _track(track_id: str = "t", **overrides: object) -> Track:
    values: dict[str, object] = {
        "id": track_id,
        "artist": "Artist",
        "duration_ms": 200_000,
        "energy": 0.5,
        "valence": 0.5,
        "tempo": 100.0,
        "danceability": 0.5,
        "acousticness": 0.3,
        "key": 0,
        "mode": 1,
    }
    values.update(overrides)
    return Track.model_validate(values)


def _target(**overrides: object) -> MoodTargetParams:
    values: dict[str, object] = {
        "energy": 0.5,
        "valence": 0.5,
        "danceability": 0.5,
        "tempo": TempoRange(min=90, max=110),
    }
    values.update(overrides)
    return MoodTargetParams.model_validate(values)


def test_mood_score_is_one_for_exact_fit() -> None:
    assert mood_score(_track(), _target()) == pytest.approx(1.0)


def test_mood_score_decreases_with_distance() -> None:
    target = _target()
    scores = [mood_score(_track(energy=energy), target) for energy in (0.5, 0.6, 0.8, 1.0)]
    assert scores == sorted(scores, reverse=True)
    assert len(set(scores)) == len(scores)


def test_tempo_score_decays_per_30_bpm() -> None:
    target = _target()
    assert tempo_score(100, target) == 1.0
    assert tempo_score(125, target) == pytest.approx(0.5)
    assert tempo_score(75, target) == pytest.approx(0.5)
    assert tempo_score(200, target) == 0.0


def test_tempo_only_halves_the_mood_score() -> None:
    assert mood_score(_track(tempo=300), _target()) == pytest.approx(0.5)


def test_missing_target_acousticness_scores_as_default() -> None:
    assert mood_score(_track(acousticness=0.3), _target()) == pytest.approx(1.0)
    explicit = _target(acousticness=0.9)
    assert mood_score(_track(acousticness=0.3), explicit) == pytest.approx(1 - 0.15 * 0.6)


def test_preset_params_round_trip_through_scorer() -> None:
    for preset in PresetCatalog.builtin():
        params = preset.params
        track = _track(
            energy=params.energy,
            valence=params.valence,
            danceability=params.danceability,
            acousticness=params.effective_acousticness,
            tempo=(params.tempo.min + params.tempo.max) / 2,
        )
        assert mood_score(track, params) == pytest.approx(1.0)


@pytest.mark.parametrize(
    ("next_key", "next_mode", "expected"),
    [
        (0, 1, 1.0),  # 8B -> 8B
        (9, 0, 0.85),  # 8B -> 8A relative minor
        (7, 1, 0.85),  # 8B -> 9B
        (2, 1, 0.7),  # 8B -> 10B, two steps
        (6, 1, 0.1),  # 8B -> 2B, six steps
        (None, None, 0.5),
    ],
)
def test_key_compatibility(next_key: int | None, next_mode: int | None, expected: float) -> None:
    current = _track(key=0, mode=1)
    following = _track(key=next_key, mode=next_mode)
    assert key_compatibility(current, following) == pytest.approx(expected)


@pytest.mark.parametrize(
    ("current_bpm", "next_bpm", "expected"),
    [(120, 122, 1.0), (120, 128, 0.9), (120, 135, 0.7), (120, 150, 0.4), (140, 70, 1.0)],
)
def test_bpm_proximity_bands(current_bpm: float, next_bpm: float, expected: float) -> None:
    assert bpm_proximity(_track(tempo=current_bpm), _track(tempo=next_bpm)) == pytest.approx(
        expected
    )


def test_half_time_beats_unrelated_gap() -> None:
    half_time = bpm_proximity(_track(tempo=140), _track(tempo=70))
    unrelated = bpm_proximity(_track(tempo=170), _track(tempo=100))
    assert half_time > unrelated + 0.5


@pytest.mark.parametrize(
    ("current_energy", "next_energy", "expected"),
    [(0.5, 0.65, 1.0), (0.5, 0.52, 0.9), (0.5, 0.35, 0.7), (0.2, 0.8, 0.4), (0.9, 0.3, 0.4)],
)
def test_energy_flow(current_energy: float, next_energy: float, expected: float) -> None:
    assert energy_flow(_track(energy=current_energy), _track(energy=next_energy)) == pytest.approx(
        expected
    )


def test_diversity_is_a_hard_penalty() -> None:
    assert diversity_score(_track(artist="Known"), {"Known"}) == 0.0
    assert diversity_score(_track(artist="Fresh"), {"Known"}) == 1.0


def test_smooth_transition_scores_high() -> None:
    current = _track(energy=0.5)
    following = _track(energy=0.6, artist="Other")
    assert transition_score(current, following) > 0.8


def test_recent_artist_lowers_transition() -> None:
    current = _track()
    following = _track(artist="Repeat")
    assert transition_score(current, following, {"Repeat"}) == pytest.approx(
        transition_score(current, following) - 0.1
    )


def test_total_score_without_current_track() -> None:
    track = _track()
    assert total_score(track, _target()) == pytest.approx(0.6 + 0.4)
    scored = score_track(track, _target())
    assert scored.transition_score == 1.0
    assert scored.total_score == pytest.approx(1.0)


def test_total_score_custom_weights() -> None:
    track = _track(tempo=300)
    assert total_score(track, _target(), None, frozenset(), 1.0, 0.0) == pytest.approx(0.5)


def test_mood_deviation_weights_descriptors() -> None:
    deviation = mood_deviation(_target(), _track(energy=1.0, valence=0.0))
    assert deviation.deviation_score == pytest.approx(0.35 * 0.5 + 0.35 * 0.5)
    assert deviation.is_significant

    close = mood_deviation(_target(), _track(energy=0.6))
    assert close.deviation_score == pytest.approx(0.035)
    assert not close.is_significant
