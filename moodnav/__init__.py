from __future__ import annotations

from .cache import BoundedCache
from .capabilities import (
    AlwaysAvailable,
    AvailabilityProbe,
    EmbeddingCapability,
    GenerativeCapability,
)
from .errors import (
    InvalidCatalogError,
    InvalidTransitionError,
    LLMInferenceError,
    ModelNotAvailableError,
    MoodNavError,
)
from .extraction import LocalModelExtractor, parse_json_response, params_from_payload
from .keywords import describe_mood, map_mood_from_keywords
from .logging_utils import configure_logging as _configure_logging
from .params import EngineStatus, MoodTargetParams, ParseMethod, ParseResult, TempoRange
from .pipeline import (
    EmbeddingTier,
    ExactMatchTier,
    KeywordTier,
    LocalModelTier,
    MoodPipeline,
    ResolutionTier,
)
from .presets import MoodPreset, PresetCatalog, embed_catalog, load_catalog
from .providers.ollama import OllamaClient
from .scorer import mood_deviation, mood_score, score_track, total_score, transition_score
from .selector import (
    SelectionOptions,
    build_candidate_pool,
    pre_filter_tracks,
    select_next,
    select_with_diversity,
)
from .settings import EngineSettings, load_settings
from .tracks import (
    CAMELOT_WHEEL,
    KEY_COMPATIBILITY,
    MoodDeviation,
    Track,
    TrackScore,
    TransitionPlan,
    camelot_key,
)
from .transition import (
    energy_path,
    plan_transition,
    should_prepare_next,
    simple_transition,
    time_until_transition,
)

__all__ = [
    "CAMELOT_WHEEL",
    "KEY_COMPATIBILITY",
    "AlwaysAvailable",
    "AvailabilityProbe",
    "BoundedCache",
    "EmbeddingCapability",
    "EmbeddingTier",
    "EngineSettings",
    "EngineStatus",
    "ExactMatchTier",
    "GenerativeCapability",
    "InvalidCatalogError",
    "InvalidTransitionError",
    "KeywordTier",
    "LLMInferenceError",
    "LocalModelExtractor",
    "LocalModelTier",
    "ModelNotAvailableError",
    "MoodDeviation",
    "MoodNavError",
    "MoodPipeline",
    "MoodPreset",
    "MoodTargetParams",
    "OllamaClient",
    "ParseMethod",
    "ParseResult",
    "PresetCatalog",
    "ResolutionTier",
    "SelectionOptions",
    "TempoRange",
    "Track",
    "TrackScore",
    "TransitionPlan",
    "build_candidate_pool",
    "camelot_key",
    "describe_mood",
    "embed_catalog",
    "energy_path",
    "load_catalog",
    "load_settings",
    "map_mood_from_keywords",
    "mood_deviation",
    "mood_score",
    "params_from_payload",
    "parse_json_response",
    "plan_transition",
    "pre_filter_tracks",
    "score_track",
    "select_next",
    "select_with_diversity",
    "should_prepare_next",
    "simple_transition",
    "time_until_transition",
    "total_score",
    "transition_score",
]

__version__ = "0.1.0"

_configure_logging()
del _configure_logging
