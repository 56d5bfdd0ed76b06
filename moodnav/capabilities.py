from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable


@runtime_checkable
class EmbeddingCapability(Protocol):
    async def embed(self, text: str) -> Sequence[float]: ...


@runtime_checkable
class GenerativeCapability(Protocol):
    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 500,
    ) -> str: ...


@runtime_checkable
class AvailabilityProbe(Protocol):
    async def is_available(self) -> bool: ...


class AlwaysAvailable:
    """Probe for capabilities that need no reachability check."""

    async def is_available(self) -> bool:
        return True
