from __future__ import annotations

import pytest

from moodnav.keywords import (
    DEFAULT_KEYWORD_PARAMS,
    MOOD_KEYWORDS,
    describe_mood,
    fold_case,
    map_mood_from_keywords,
)
from moodnav.params import MoodTargetParams, TempoRange


def test_direct_hit_uses_lexicon_entry_and_defaults() -> None:
    match = map_mood_from_keywords("happy")
    assert match.matched == 1
    assert match.params.energy == pytest.approx(0.7)
    assert match.params.valence == pytest.approx(0.9)
    assert match.params.acousticness == pytest.approx(0.3)
    assert (match.params.tempo.min, match.params.tempo.max) == (100, 140)


def test_fields_are_averaged_across_matches() -> None:
    match = map_mood_from_keywords("happy sad")
    assert match.matched == 2
    assert match.params.energy == pytest.approx((0.7 + 0.25) / 2)
    # danceability only comes from "happy", acousticness only from "sad"
    assert match.params.danceability == pytest.approx(0.7)
    assert match.params.acousticness == pytest.approx(0.5)
    assert match.params.tempo.min == 78
    assert match.params.tempo.max == 113


def test_matching_is_case_insensitive_and_bilingual() -> None:
    assert map_mood_from_keywords("CALM").params == map_mood_from_keywords("calm").params
    assert map_mood_from_keywords("mutlu").params.valence == pytest.approx(0.9)
    assert map_mood_from_keywords("üzgün").params.valence == pytest.approx(0.15)


def test_partial_match_takes_first_containing_key() -> None:
    # "chilling" contains "chill"
    match = map_mood_from_keywords("chilling")
    assert match.matched == 1
    assert match.params.energy == pytest.approx(MOOD_KEYWORDS["chill"]["energy"])


def test_short_words_over_match_unless_restricted() -> None:
    assert map_mood_from_keywords("a").matched == 1
    assert map_mood_from_keywords("a", min_partial_length=3).matched == 0


def test_no_hits_returns_defaults() -> None:
    match = map_mood_from_keywords("qqq zzz")
    assert match.matched == 0
    assert match.params == DEFAULT_KEYWORD_PARAMS


def _params(energy: float, valence: float, danceability: float = 0.5, acousticness=None):
    return MoodTargetParams(
        energy=energy,
        valence=valence,
        danceability=danceability,
        acousticness=acousticness,
        tempo=TempoRange(min=90, max=120),
    )


@pytest.mark.parametrize(
    ("params", "expected"),
    [
        (_params(0.9, 0.9), "energetic, happy"),
        (_params(0.2, 0.1, acousticness=0.8), "calm, melancholic, acoustic"),
        (_params(0.5, 0.5, danceability=0.9), "danceable"),
        (_params(0.5, 0.5), "balanced"),
    ],
)
def test_describe_mood(params: MoodTargetParams, expected: str) -> None:
    assert describe_mood(params) == expected


def test_fold_case_merges_turkish_i_forms() -> None:
    assert fold_case("KIZGIN") == fold_case("kızgın") == "kizgin"
    assert fold_case("İyi") == "iyi"


def test_upper_case_turkish_word_hits_lexicon() -> None:
    match = map_mood_from_keywords("KIZGIN")
    assert match.matched == 1
    assert match.params.energy == MOOD_KEYWORDS["kızgın"]["energy"]
