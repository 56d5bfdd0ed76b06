from __future__ import annotations

import logging
import warnings
from collections.abc import Iterable, Sequence
from typing import Any

import httpx
from pydantic import BaseModel

from ..errors import LLMInferenceError, ModelNotAvailableError
from ..settings import EngineSettings, load_settings

_LOGGER = logging.getLogger("moodnav.providers.ollama")
_MODEL_PREFIX = "ollama/"
_litellm_logging_configured = False


def _import_litellm() -> Any:
    try:
        import litellm  # type: ignore[import]
    except ImportError as exc:
        _LOGGER.warning("LiteLLM not installed: %s", exc)
        raise ModelNotAvailableError("litellm is not installed") from exc
    _configure_litellm_logging(litellm)
    return litellm


def _configure_litellm_logging(litellm_module: Any) -> None:
    global _litellm_logging_configured
    if _litellm_logging_configured:
        return
    _litellm_logging_configured = True
    try:
        litellm_module.turn_off_message_logging = True
        litellm_module.suppress_debug_info = True
    except Exception as exc:
        _LOGGER.info("LiteLLM logging config failed: %s", exc, exc_info=True)
    warnings.filterwarnings("ignore", message="Pydantic serializer warnings")


def _content_snippet(content: str, limit: int = 200) -> str:
    cleaned = content.strip()
    if len(cleaned) <= limit:
        return cleaned
    return f"{cleaned[:limit]}..."


def has_model(models: Sequence[str], name: str) -> bool:
    """True when ``name`` is pulled, ignoring the tag after the colon."""
    base = name.split(":", 1)[0]
    return any(model == name or model.split(":", 1)[0] == base for model in models)


def _prefixed(model: str) -> str:
    return model if model.startswith(_MODEL_PREFIX) else f"{_MODEL_PREFIX}{model}"


def _first_embedding(response: Any) -> list[float]:
    if isinstance(response, dict):
        data = response.get("data")
    else:
        data = getattr(response, "data", None)
    if not data:
        raise LLMInferenceError("Embedding response missing data")
    item = data[0]
    vector = item.get("embedding") if isinstance(item, dict) else getattr(item, "embedding", None)
    if not vector:
        raise LLMInferenceError("Embedding response missing vector")
    return [float(value) for value in vector]


class _CompletionRequest(BaseModel):
    model: str
    messages: list[dict[str, str]]
    temperature: float
    max_tokens: int
    api_base: str
    timeout: float


class OllamaClient:
    """Embedding, generation and reachability against a local Ollama server.

    Requests go through LiteLLM's ``ollama/`` provider; the reachability
    probe hits ``/api/tags`` directly with a short timeout.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or load_settings()
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._settings.ollama_url.rstrip("/")

    @property
    def llm_model(self) -> str:
        return self._settings.llm_model

    @property
    def embed_model(self) -> str:
        return self._settings.embed_model

    async def embed(self, text: str) -> list[float]:
        litellm = _import_litellm()
        try:
            response: Any = await litellm.aembedding(
                model=_prefixed(self.embed_model),
                input=[text],
                api_base=self.base_url,
                timeout=self._settings.request_timeout,
            )
        except Exception as exc:
            _LOGGER.warning("Ollama embedding request failed: %s", exc, exc_info=True)
            raise LLMInferenceError(f"Embedding failed: {exc}") from exc
        return _first_embedding(response)

    async def embed_batch(self, texts: Iterable[str]) -> list[list[float]]:
        return [await self.embed(text) for text in texts]

    async def generate(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 500,
    ) -> str:
        litellm = _import_litellm()
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        request = _CompletionRequest(
            model=_prefixed(self.llm_model),
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            api_base=self.base_url,
            timeout=self._settings.request_timeout,
        ).model_dump()

        try:
            response: Any = await litellm.acompletion(**request)
        except Exception as exc:
            _LOGGER.warning("Ollama generate request failed: %s", exc, exc_info=True)
            raise LLMInferenceError(f"Generation failed: {exc}") from exc

        try:
            raw_content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise LLMInferenceError("LiteLLM response missing choices") from exc
        if not isinstance(raw_content, str) or not raw_content.strip():
            raise LLMInferenceError("LiteLLM returned empty content")
        _LOGGER.debug("Ollama replied: %s", _content_snippet(raw_content))
        return raw_content.strip()

    async def list_models(self) -> tuple[str, ...]:
        """Names of the models the server has pulled.

        Raises ModelNotAvailableError when the server cannot be reached.
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.probe_timeout, transport=self._transport
            ) as client:
                response = await client.get(f"{self.base_url}/api/tags")
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise ModelNotAvailableError(f"Ollama not reachable at {self.base_url}: {exc}") from exc
        models = payload.get("models", []) if isinstance(payload, dict) else []
        return tuple(
            str(entry["name"]) for entry in models if isinstance(entry, dict) and "name" in entry
        )

    async def is_available(self) -> bool:
        try:
            await self.list_models()
        except ModelNotAvailableError as exc:
            _LOGGER.debug("Ollama probe failed: %s", exc)
            return False
        return True

    async def status(self) -> tuple[bool, tuple[str, ...]]:
        try:
            models = await self.list_models()
        except ModelNotAvailableError:
            return False, ()
        return True, models
