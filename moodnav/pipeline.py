"""Tiered mood resolution: exact preset, embedding, local model, keywords."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Protocol, runtime_checkable

from .cache import BoundedCache
from .capabilities import AlwaysAvailable, AvailabilityProbe, EmbeddingCapability
from .extraction import LocalModelExtractor
from .keywords import DEFAULT_KEYWORD_PARAMS, map_mood_from_keywords
from .matchers import (
    DEFAULT_EMBEDDING_THRESHOLD,
    find_embedding_match,
    find_exact_match,
    find_keyword_match,
    normalize_mood_text,
    preset_to_params,
)
from .params import EngineStatus, ParseMethod, ParseResult
from .presets import PresetCatalog, load_catalog
from .providers.ollama import OllamaClient, has_model
from .settings import EngineSettings, load_settings

_LOGGER = logging.getLogger("moodnav.pipeline")

EXACT_CONFIDENCE = 1.0
LLM_CONFIDENCE = 0.8
KEYWORD_CONFIDENCE = 0.5
DEFAULT_CONFIDENCE = 0.3
FALLBACK_CONFIDENCE = 0.3
QUICK_PRESET_FLOOR = 0.3

_QUICK_CACHEABLE: frozenset[ParseMethod] = frozenset({"preset", "keyword", "default"})

Clock = Callable[[], float]


@runtime_checkable
class ResolutionTier(Protocol):
    name: str

    async def attempt(self, text: str) -> ParseResult | None: ...


class ExactMatchTier:
    name = "exact"

    def __init__(self, catalog: PresetCatalog) -> None:
        self._catalog = catalog

    async def attempt(self, text: str) -> ParseResult | None:
        preset = find_exact_match(text, self._catalog)
        if preset is None:
            return None
        return ParseResult(
            params=preset_to_params(preset),
            method="preset",
            confidence=EXACT_CONFIDENCE,
            category=preset.category,
        )


class EmbeddingTier:
    """Nearest preset phrase by cosine similarity of embedding vectors.

    Query vectors are memoized by normalized text. Any error from the
    embedder counts as a miss; anything else (a dimension mismatch, say)
    propagates.
    """

    name = "embedding"

    def __init__(
        self,
        catalog: PresetCatalog,
        embedder: EmbeddingCapability,
        *,
        probe: AvailabilityProbe | None = None,
        threshold: float = DEFAULT_EMBEDDING_THRESHOLD,
        cache: BoundedCache[str, tuple[float, ...]] | None = None,
    ) -> None:
        self._catalog = catalog
        self._embedder = embedder
        self._probe = probe or AlwaysAvailable()
        self._threshold = threshold
        self._cache: BoundedCache[str, tuple[float, ...]] = (
            cache if cache is not None else BoundedCache(500)
        )

    @property
    def threshold(self) -> float:
        return self._threshold

    async def _vector(self, text: str) -> tuple[float, ...] | None:
        key = normalize_mood_text(text)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        try:
            raw = await self._embedder.embed(text.strip().lower())
        except Exception as exc:
            _LOGGER.warning("Embedding request failed: %s", exc, exc_info=True)
            return None
        vector = tuple(float(value) for value in raw)
        self._cache.put(key, vector)
        return vector

    async def attempt(self, text: str) -> ParseResult | None:
        if not self._catalog.has_embeddings:
            return None
        if not await self._probe.is_available():
            _LOGGER.debug("Embedding tier skipped: engine unavailable")
            return None
        vector = await self._vector(text)
        if vector is None:
            return None
        match = find_embedding_match(vector, self._catalog, threshold=self._threshold)
        if match is None:
            return None
        _LOGGER.debug(
            "Embedding match %s via %r (%.3f)",
            match.preset.category,
            match.matched_phrase,
            match.similarity,
        )
        return ParseResult(
            params=preset_to_params(match.preset),
            method="embedding",
            confidence=match.similarity,
            category=match.preset.category,
        )


class LocalModelTier:
    name = "llm"

    def __init__(
        self,
        extractor: LocalModelExtractor,
        *,
        probe: AvailabilityProbe | None = None,
    ) -> None:
        self._extractor = extractor
        self._probe = probe or AlwaysAvailable()

    async def attempt(self, text: str) -> ParseResult | None:
        if not await self._probe.is_available():
            _LOGGER.debug("Local model tier skipped: engine unavailable")
            return None
        params = await self._extractor.extract(text)
        if params is None:
            return None
        return ParseResult(params=params, method="llm", confidence=LLM_CONFIDENCE)


class KeywordTier:
    """Terminal tier; always answers."""

    name = "keyword"

    def __init__(self, *, min_partial_length: int = 1) -> None:
        self._min_partial_length = min_partial_length

    async def attempt(self, text: str) -> ParseResult | None:
        match = map_mood_from_keywords(text, min_partial_length=self._min_partial_length)
        if match.matched == 0:
            return ParseResult(
                params=DEFAULT_KEYWORD_PARAMS,
                method="default",
                confidence=DEFAULT_CONFIDENCE,
            )
        return ParseResult(params=match.params, method="keyword", confidence=KEYWORD_CONFIDENCE)


class MoodPipeline:
    """Resolves free-text moods by trying each tier in order.

    Successful results are memoized by normalized text. ``resolve`` never
    raises: an unexpected error inside a tier yields the keyword heuristic
    at a lower confidence, and that answer is not cached.
    """

    def __init__(
        self,
        tiers: Sequence[ResolutionTier],
        *,
        catalog: PresetCatalog,
        cache: BoundedCache[str, ParseResult] | None = None,
        clock: Clock = time.perf_counter,
        server: OllamaClient | None = None,
        min_partial_length: int = 1,
    ) -> None:
        self._tiers = tuple(tiers)
        self._catalog = catalog
        self._cache: BoundedCache[str, ParseResult] = (
            cache if cache is not None else BoundedCache(100)
        )
        self._clock = clock
        self._server = server
        self._min_partial_length = min_partial_length

    @classmethod
    def from_settings(cls, settings: EngineSettings | None = None) -> MoodPipeline:
        settings = settings or load_settings()
        client = OllamaClient(settings)
        catalog = load_catalog(settings.presets_path)
        tiers: list[ResolutionTier] = [
            ExactMatchTier(catalog),
            EmbeddingTier(
                catalog,
                client,
                probe=client,
                threshold=settings.embed_threshold,
                cache=BoundedCache(settings.embed_cache_size),
            ),
            LocalModelTier(LocalModelExtractor(client), probe=client),
            KeywordTier(),
        ]
        return cls(
            tiers,
            catalog=catalog,
            cache=BoundedCache(settings.cache_size),
            server=client,
        )

    @property
    def tiers(self) -> tuple[ResolutionTier, ...]:
        return self._tiers

    @property
    def catalog(self) -> PresetCatalog:
        return self._catalog

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def clear_cache(self) -> None:
        self._cache.clear()

    def _elapsed_ms(self, start: float) -> float:
        return max(0.0, (self._clock() - start) * 1000.0)

    def _keyword_fallback(self, text: str) -> ParseResult:
        match = map_mood_from_keywords(text, min_partial_length=self._min_partial_length)
        return ParseResult(params=match.params, method="keyword", confidence=FALLBACK_CONFIDENCE)

    async def _run_tiers(self, text: str) -> ParseResult:
        for tier in self._tiers:
            result = await tier.attempt(text)
            if result is not None:
                _LOGGER.debug("Tier %s resolved %r as %s", tier.name, text, result.method)
                return result
            _LOGGER.debug("Tier %s missed %r", tier.name, text)
        return ParseResult.no_match()

    async def resolve(self, text: str) -> ParseResult:
        start = self._clock()
        normalized = normalize_mood_text(text)
        if not normalized:
            return ParseResult.no_match(self._elapsed_ms(start))

        cached = self._cache.get(normalized)
        if cached is not None:
            return cached.with_timing(self._elapsed_ms(start))

        try:
            result = await self._run_tiers(text)
        except Exception as exc:
            _LOGGER.warning(
                "Mood resolution failed for %r; using keyword fallback: %s",
                text,
                exc,
                exc_info=True,
            )
            return self._keyword_fallback(text).with_timing(self._elapsed_ms(start))

        result = result.with_timing(self._elapsed_ms(start))
        if result.is_match:
            self._cache.put(normalized, result)
        return result

    def resolve_quick(self, text: str) -> ParseResult:
        """Network-free resolution from presets and the keyword lexicon only."""
        start = self._clock()
        normalized = normalize_mood_text(text)
        if not normalized:
            return ParseResult.no_match(self._elapsed_ms(start))

        cached = self._cache.get(normalized)
        if cached is not None and cached.method in _QUICK_CACHEABLE:
            return cached.with_timing(self._elapsed_ms(start))

        preset = find_exact_match(normalized, self._catalog)
        if preset is not None:
            result = ParseResult(
                params=preset_to_params(preset),
                method="preset",
                confidence=EXACT_CONFIDENCE,
                category=preset.category,
                processing_time_ms=self._elapsed_ms(start),
            )
            self._cache.put(normalized, result)
            return result

        partial = find_keyword_match(text, self._catalog)
        if partial is not None and partial.similarity > QUICK_PRESET_FLOOR:
            return ParseResult(
                params=preset_to_params(partial.preset),
                method="keyword",
                confidence=partial.similarity,
                category=partial.preset.category,
                processing_time_ms=self._elapsed_ms(start),
            )

        match = map_mood_from_keywords(text, min_partial_length=self._min_partial_length)
        if match.matched > 0:
            return ParseResult(
                params=match.params,
                method="keyword",
                confidence=KEYWORD_CONFIDENCE,
                processing_time_ms=self._elapsed_ms(start),
            )
        return ParseResult.no_match(self._elapsed_ms(start))

    async def status(self) -> EngineStatus:
        if self._server is None:
            return EngineStatus(
                local_model_running=False,
                has_embeddings=self._catalog.has_embeddings,
                llm_available=False,
            )
        running, models = await self._server.status()
        return EngineStatus(
            local_model_running=running,
            local_models=models,
            has_embeddings=self._catalog.has_embeddings,
            llm_available=running and has_model(models, self._server.llm_model),
        )
