from __future__ import annotations


class MoodNavError(Exception):
    """Base error for the moodnav library."""


class ModelNotAvailableError(MoodNavError):
    """Raised when the local model engine or its client library is unavailable."""


class LLMInferenceError(MoodNavError):
    """Raised when a model provider fails to produce a response."""


class InvalidCatalogError(MoodNavError):
    """Raised when a preset catalog cannot be parsed or validated."""


class InvalidTransitionError(MoodNavError, ValueError):
    """Raised when a transition plan is requested with invalid arguments."""
