from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from .keywords import fold_case
from .params import MoodTargetParams
from .presets import MoodPreset, PresetCatalog

DEFAULT_EMBEDDING_THRESHOLD = 0.75
KEYWORD_MATCH_FLOOR = 0.2


@dataclass(frozen=True, slots=True)
class MatchResult:
    preset: MoodPreset
    similarity: float
    matched_phrase: str | None = None


def normalize_mood_text(text: str) -> str:
    return fold_case(text.strip())


def preset_to_params(preset: MoodPreset) -> MoodTargetParams:
    return preset.params


def find_exact_match(text: str, catalog: PresetCatalog) -> MoodPreset | None:
    normalized = normalize_mood_text(text)
    if not normalized:
        return None
    for preset in catalog:
        if fold_case(preset.category) == normalized:
            return preset
        if any(fold_case(phrase) == normalized for phrase in preset.phrases):
            return preset
    return None


def find_keyword_match(text: str, catalog: PresetCatalog) -> MatchResult | None:
    """Score presets by category/phrase containment and word overlap."""
    normalized = fold_case(text)
    words = normalized.split()
    best: MatchResult | None = None
    best_score = 0

    for preset in catalog:
        score = 0
        matched_phrase: str | None = None
        category = fold_case(preset.category)
        if category in normalized:
            score += 2
            matched_phrase = preset.category
        for phrase in preset.phrases:
            folded = fold_case(phrase)
            if folded in normalized:
                score += 3
                matched_phrase = phrase
                continue
            for word in folded.split():
                if len(word) > 2 and word in words:
                    score += 1
                    if matched_phrase is None:
                        matched_phrase = phrase

        if score > best_score:
            best_score = score
            best = MatchResult(
                preset=preset,
                similarity=min(score / 5, 1.0),
                matched_phrase=matched_phrase,
            )

    if best is not None and best.similarity > KEYWORD_MATCH_FLOOR:
        return best
    return None


def cosine_similarities(
    query: Sequence[float] | NDArray[np.float32],
    matrix: NDArray[np.float32],
) -> NDArray[np.float32]:
    """Cosine similarity of ``query`` against every row of ``matrix``."""
    vector = np.asarray(query, dtype=np.float32)
    if matrix.ndim != 2 or vector.ndim != 1 or matrix.shape[1] != vector.shape[0]:
        raise ValueError(
            f"Vector dimension mismatch: query {vector.shape} vs matrix {matrix.shape}"
        )
    row_norms = np.linalg.norm(matrix, axis=1)
    query_norm = float(np.linalg.norm(vector))
    denom = row_norms * query_norm
    dots = matrix @ vector
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(denom == 0, 0.0, dots / denom)
    return scores.astype(np.float32)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    if len(a) != len(b):
        raise ValueError("Vectors must have the same length")
    other = np.asarray([b], dtype=np.float32)
    return float(cosine_similarities(a, other)[0])


def find_embedding_match(
    vector: Sequence[float],
    catalog: PresetCatalog,
    *,
    threshold: float = DEFAULT_EMBEDDING_THRESHOLD,
) -> MatchResult | None:
    matrix, rows = catalog.embedding_index()
    if not rows:
        return None
    scores = cosine_similarities(vector, matrix)
    best_idx = int(np.argmax(scores))
    similarity = float(scores[best_idx])
    if similarity < threshold:
        return None
    preset, phrase = rows[best_idx]
    # float32 rounding can nudge an exact match a hair above 1
    return MatchResult(preset=preset, similarity=min(1.0, similarity), matched_phrase=phrase)
