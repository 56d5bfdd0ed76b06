from __future__ import annotations

from .errors import InvalidTransitionError
from .tracks import Track, TransitionPlan

DEFAULT_BEFORE_END_MS = 10_000
MIN_OUTRO_MS = 10_000
PREPARE_LEAD_MS = 30_000


def simple_transition(
    current: Track,
    following: Track,
    before_end_ms: int = DEFAULT_BEFORE_END_MS,
) -> TransitionPlan:
    return TransitionPlan(
        from_track=current,
        to_track=following,
        transition_point_ms=max(0, current.duration_ms - before_end_ms),
        seek_point_ms=0,
    )


def plan_transition(
    current: Track,
    following: Track,
    *,
    min_outro_ms: int = MIN_OUTRO_MS,
) -> TransitionPlan:
    """Cut on the current track's outro cue and skip the next track's intro.

    Without an outro cue this is ``simple_transition``. The cut never lands
    later than ``min_outro_ms`` before the end.
    """
    if current.outro_start_ms is None:
        plan = simple_transition(current, following, min_outro_ms)
        if following.intro_end_ms is None:
            return plan
        return plan.model_copy(update={"seek_point_ms": following.intro_end_ms})
    latest = current.duration_ms - min_outro_ms
    return TransitionPlan(
        from_track=current,
        to_track=following,
        transition_point_ms=max(0, min(current.outro_start_ms, latest)),
        seek_point_ms=following.intro_end_ms or 0,
    )


def time_until_transition(plan: TransitionPlan, progress_ms: int) -> int | None:
    remaining = plan.transition_point_ms - progress_ms
    if remaining <= 0:
        return None
    return remaining


def should_prepare_next(
    progress_ms: int,
    duration_ms: int,
    lead_ms: int = PREPARE_LEAD_MS,
) -> bool:
    return duration_ms - progress_ms <= lead_ms


def _ease_in_out(t: float) -> float:
    if t < 0.5:
        return 2 * t * t
    return 1 - (-2 * t + 2) ** 2 / 2


def energy_path(from_energy: float, to_energy: float, steps: int) -> list[float]:
    """Eased energy ramp of ``steps`` points from ``from_energy`` to ``to_energy``."""
    if steps < 2:
        raise InvalidTransitionError(f"energy_path needs at least 2 steps, got {steps}")
    delta = to_energy - from_energy
    path = [from_energy + delta * _ease_in_out(i / (steps - 1)) for i in range(steps)]
    path[0] = from_energy
    path[-1] = to_energy
    return path
