from __future__ import annotations

import pytest

from moodnav.errors import InvalidTransitionError
from moodnav.tracks import Track
from moodnav.transition import (
    energy_path,
    plan_transition,
    should_prepare_next,
    simple_transition,
    time_until_transition,
)


def _track(track_id: str, duration_ms: int = 200_000, **overrides: object) -> Track:
    values: dict[str, object] = {
        "id": track_id,
        "artist": "Artist",
        "duration_ms": duration_ms,
        "energy": 0.5,
        "valence": 0.5,
        "tempo": 120.0,
        "danceability": 0.5,
    }
    values.update(overrides)
    return Track.model_validate(values)


def test_simple_transition_cuts_before_end() -> None:
    plan = simple_transition(_track("a"), _track("b"))
    assert plan.transition_point_ms == 190_000
    assert plan.seek_point_ms == 0
    assert plan.to_track.id == "b"


def test_simple_transition_never_negative() -> None:
    plan = simple_transition(_track("a", duration_ms=4_000), _track("b"))
    assert plan.transition_point_ms == 0


def test_plan_transition_uses_cue_points() -> None:
    current = _track("a", outro_start_ms=170_000)
    following = _track("b", intro_end_ms=8_000)
    plan = plan_transition(current, following)
    assert plan.transition_point_ms == 170_000
    assert plan.seek_point_ms == 8_000


def test_plan_transition_caps_late_outro() -> None:
    current = _track("a", outro_start_ms=198_000)
    plan = plan_transition(current, _track("b"))
    assert plan.transition_point_ms == 190_000
    assert plan.seek_point_ms == 0


def test_plan_transition_without_cues_matches_simple() -> None:
    current, following = _track("a"), _track("b")
    assert plan_transition(current, following) == simple_transition(current, following)


def test_time_until_transition() -> None:
    plan = simple_transition(_track("a"), _track("b"))
    assert time_until_transition(plan, 150_000) == 40_000
    assert time_until_transition(plan, 190_000) is None
    assert time_until_transition(plan, 195_000) is None


@pytest.mark.parametrize(
    ("progress", "duration", "expected"),
    [(100_000, 200_000, False), (170_000, 200_000, True), (185_000, 200_000, True)],
)
def test_should_prepare_next(progress: int, duration: int, expected: bool) -> None:
    assert should_prepare_next(progress, duration) is expected


def test_energy_path_rises_monotonically() -> None:
    path = energy_path(0.3, 0.7, 5)
    assert len(path) == 5
    assert path[0] == 0.3
    assert path[-1] == 0.7
    assert all(a <= b for a, b in zip(path, path[1:]))
    assert path[2] == pytest.approx(0.5)


def test_energy_path_falls_monotonically() -> None:
    path = energy_path(0.7, 0.3, 5)
    assert path[0] == 0.7
    assert path[-1] == 0.3
    assert all(a >= b for a, b in zip(path, path[1:]))


def test_energy_path_eases_in() -> None:
    path = energy_path(0.0, 1.0, 5)
    assert path[1] == pytest.approx(0.125)
    assert path[3] == pytest.approx(0.875)


@pytest.mark.parametrize("steps", [1, 0, -3])
def test_energy_path_rejects_too_few_steps(steps: int) -> None:
    with pytest.raises(InvalidTransitionError):
        energy_path(0.2, 0.8, steps)
    with pytest.raises(ValueError):
        energy_path(0.2, 0.8, steps)
