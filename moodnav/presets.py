from __future__ import annotations

import functools
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator, Sequence

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .capabilities import EmbeddingCapability
from .errors import InvalidCatalogError
from .params import MoodTargetParams, TempoRange

_LOGGER = logging.getLogger("moodnav.presets")
CATALOG_VERSION = "1.0.0"


class MoodPreset(BaseModel):
    """Named mood category with example phrases and target params."""

    category: str = Field(min_length=1)
    phrases: tuple[str, ...] = ()
    params: MoodTargetParams
    embeddings: tuple[tuple[float, ...], ...] = ()

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="after")
    def _check_embeddings(self) -> MoodPreset:
        if self.embeddings and len(self.embeddings) != len(self.phrases):
            raise ValueError(
                f"preset {self.category!r} has {len(self.embeddings)} embeddings "
                f"for {len(self.phrases)} phrases"
            )
        return self

    @property
    def has_embeddings(self) -> bool:
        return bool(self.embeddings)


class CatalogFile(BaseModel):
    """On-disk catalog layout."""

    version: str = CATALOG_VERSION
    generated_at: str | None = Field(default=None, alias="generatedAt")
    model: str | None = None
    embed_model: str | None = Field(default=None, alias="embedModel")
    presets: tuple[MoodPreset, ...]

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


def _preset(
    category: str,
    phrases: Sequence[str],
    *,
    energy: float,
    valence: float,
    danceability: float,
    tempo: tuple[float, float],
    acousticness: float | None = None,
    instrumentalness: float | None = None,
) -> MoodPreset:
    return MoodPreset(
        category=category,
        phrases=tuple(phrases),
        params=MoodTargetParams(
            energy=energy,
            valence=valence,
            danceability=danceability,
            tempo=TempoRange(min=tempo[0], max=tempo[1]),
            acousticness=acousticness,
            instrumentalness=instrumentalness,
        ),
    )


BUILTIN_PRESETS: tuple[MoodPreset, ...] = (
    # high energy / positive
    _preset(
        "energetic",
        ("energetic", "pumped up", "enerjik", "fired up", "coşkulu"),
        energy=0.85, valence=0.75, danceability=0.80, tempo=(120, 150),
    ),
    _preset(
        "happy",
        ("happy", "joyful", "mutlu", "neşeli", "cheerful"),
        energy=0.70, valence=0.90, danceability=0.75, tempo=(100, 130),
    ),
    _preset(
        "party",
        ("party", "celebration", "parti", "festival", "club vibes"),
        energy=0.90, valence=0.80, danceability=0.90, tempo=(120, 140),
    ),
    _preset(
        "workout",
        ("workout", "gym", "exercise", "spor", "training"),
        energy=0.95, valence=0.65, danceability=0.75, tempo=(130, 160),
    ),
    _preset(
        "confident",
        ("confident", "powerful", "güçlü", "bold", "empowering"),
        energy=0.80, valence=0.70, danceability=0.65, tempo=(100, 130),
    ),
    # medium energy / balanced
    _preset(
        "chill",
        ("chill", "relaxed", "rahat", "laid back", "easygoing"),
        energy=0.40, valence=0.60, danceability=0.50, tempo=(80, 110),
    ),
    _preset(
        "focused",
        ("focused", "concentration", "odaklı", "study", "work mode"),
        energy=0.45, valence=0.50, danceability=0.30, tempo=(90, 120),
        instrumentalness=0.7,
    ),
    _preset(
        "romantic",
        ("romantic", "love", "aşk", "intimate", "tender"),
        energy=0.35, valence=0.65, danceability=0.45, tempo=(70, 100),
    ),
    _preset(
        "groovy",
        ("groovy", "funky", "rhythm", "groove", "smooth"),
        energy=0.65, valence=0.70, danceability=0.85, tempo=(95, 115),
    ),
    _preset(
        "dreamy",
        ("dreamy", "ethereal", "rüya gibi", "floating", "atmospheric"),
        energy=0.30, valence=0.55, danceability=0.35, tempo=(70, 100),
        acousticness=0.6,
    ),
    # low energy / calm
    _preset(
        "calm",
        ("calm", "peaceful", "sakin", "serene", "tranquil"),
        energy=0.20, valence=0.55, danceability=0.25, tempo=(60, 85),
        acousticness=0.7,
    ),
    _preset(
        "sleepy",
        ("sleepy", "bedtime", "uykulu", "lullaby", "night time"),
        energy=0.15, valence=0.45, danceability=0.15, tempo=(50, 75),
        instrumentalness=0.6,
    ),
    _preset(
        "acoustic",
        ("acoustic", "unplugged", "akustik", "organic", "raw"),
        energy=0.35, valence=0.55, danceability=0.40, tempo=(80, 110),
        acousticness=0.85,
    ),
    # emotional / introspective
    _preset(
        "melancholic",
        ("melancholic", "bittersweet", "melankolik", "wistful", "hüzünlü ama güzel"),
        energy=0.30, valence=0.25, danceability=0.30, tempo=(70, 100),
    ),
    _preset(
        "sad",
        ("sad", "heartbroken", "üzgün", "blue", "crying"),
        energy=0.20, valence=0.15, danceability=0.20, tempo=(60, 90),
    ),
    _preset(
        "nostalgic",
        ("nostalgic", "memories", "nostaljik", "throwback", "reminiscing"),
        energy=0.40, valence=0.45, danceability=0.35, tempo=(80, 110),
    ),
    _preset(
        "angry",
        ("angry", "aggressive", "kızgın", "intense", "rage"),
        energy=0.90, valence=0.20, danceability=0.55, tempo=(120, 160),
    ),
    _preset(
        "anxious",
        ("anxious", "tense", "endişeli", "nervous", "restless"),
        energy=0.60, valence=0.25, danceability=0.40, tempo=(100, 140),
    ),
    # activity / context
    _preset(
        "driving",
        ("driving", "road trip", "yolculuk", "highway", "cruising"),
        energy=0.65, valence=0.70, danceability=0.60, tempo=(100, 130),
    ),
    _preset(
        "cooking",
        ("cooking", "kitchen", "yemek yapma", "dinner party", "chef mode"),
        energy=0.55, valence=0.75, danceability=0.65, tempo=(90, 120),
    ),
    _preset(
        "morning",
        ("morning", "wake up", "sabah", "sunrise", "fresh start"),
        energy=0.50, valence=0.70, danceability=0.45, tempo=(90, 115),
    ),
    _preset(
        "late_night",
        ("late night", "midnight", "gece", "after hours", "3am vibes"),
        energy=0.35, valence=0.40, danceability=0.45, tempo=(80, 110),
    ),
    # genre-inspired
    _preset(
        "indie",
        ("indie", "alternative", "alternatif", "underground", "hipster"),
        energy=0.50, valence=0.55, danceability=0.50, tempo=(90, 130),
    ),
    _preset(
        "electronic",
        ("electronic", "synth", "elektronik", "digital", "techno vibes"),
        energy=0.75, valence=0.60, danceability=0.80, tempo=(115, 140),
    ),
    _preset(
        "jazz",
        ("jazz", "swing", "caz", "smooth jazz", "bebop"),
        energy=0.45, valence=0.60, danceability=0.55, tempo=(80, 140),
        instrumentalness=0.5,
    ),
    _preset(
        "classical",
        ("classical", "orchestral", "klasik", "symphony", "chamber"),
        energy=0.40, valence=0.50, danceability=0.20, tempo=(60, 140),
        instrumentalness=0.9,
    ),
    _preset(
        "lofi",
        ("lofi", "lo-fi", "beats to study", "chillhop", "cafe vibes"),
        energy=0.35, valence=0.55, danceability=0.45, tempo=(70, 95),
        instrumentalness=0.7,
    ),
)


class PresetCatalog:
    """Read-only collection of mood presets, loaded once at startup."""

    def __init__(
        self,
        presets: Iterable[MoodPreset],
        *,
        version: str = CATALOG_VERSION,
        embed_model: str | None = None,
    ) -> None:
        self._presets = tuple(presets)
        self.version = version
        self.embed_model = embed_model
        seen: set[str] = set()
        for preset in self._presets:
            if preset.category in seen:
                raise InvalidCatalogError(f"Duplicate preset category: {preset.category!r}")
            seen.add(preset.category)
        self._matrix: NDArray[np.float32] | None = None
        self._rows: tuple[tuple[MoodPreset, str], ...] | None = None

    def __iter__(self) -> Iterator[MoodPreset]:
        return iter(self._presets)

    def __len__(self) -> int:
        return len(self._presets)

    @property
    def presets(self) -> tuple[MoodPreset, ...]:
        return self._presets

    @property
    def has_embeddings(self) -> bool:
        return any(preset.has_embeddings for preset in self._presets)

    def get(self, category: str) -> MoodPreset | None:
        for preset in self._presets:
            if preset.category == category:
                return preset
        return None

    def embedding_index(self) -> tuple[NDArray[np.float32], tuple[tuple[MoodPreset, str], ...]]:
        """Row-normalized phrase vectors and the (preset, phrase) owning each row."""
        if self._matrix is not None and self._rows is not None:
            return self._matrix, self._rows
        rows: list[tuple[MoodPreset, str]] = []
        vectors: list[tuple[float, ...]] = []
        for preset in self._presets:
            for phrase, vector in zip(preset.phrases, preset.embeddings):
                rows.append((preset, phrase))
                vectors.append(vector)
        if not vectors:
            matrix = np.zeros((0, 0), dtype=np.float32)
        else:
            matrix = np.asarray(vectors, dtype=np.float32)
            norms = np.linalg.norm(matrix, axis=1, keepdims=True)
            norms[norms == 0] = 1.0
            matrix = matrix / norms
        self._matrix = matrix
        self._rows = tuple(rows)
        return self._matrix, self._rows

    @classmethod
    def builtin(cls) -> PresetCatalog:
        return cls(BUILTIN_PRESETS)

    @classmethod
    def from_json(cls, path: Path) -> PresetCatalog:
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise InvalidCatalogError(f"Cannot read preset catalog {path}: {exc}") from exc
        try:
            payload = CatalogFile.model_validate_json(raw)
        except ValidationError as exc:
            raise InvalidCatalogError(f"Invalid preset catalog {path}: {exc}") from exc
        _LOGGER.info("Loaded %d presets from %s", len(payload.presets), path)
        return cls(payload.presets, version=payload.version, embed_model=payload.embed_model)

    def to_json(self, path: Path, *, model: str | None = None) -> Path:
        payload = CatalogFile(
            version=self.version,
            generated_at=datetime.now(timezone.utc).isoformat(),
            model=model,
            embed_model=self.embed_model,
            presets=self._presets,
        )
        data: dict[str, Any] = payload.model_dump(mode="json", by_alias=True)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        return path


@functools.lru_cache(maxsize=4)
def load_catalog(path: Path | None = None) -> PresetCatalog:
    """Return the catalog at ``path``, or the built-in one when no path is given.

    A broken catalog file is logged and replaced by the built-in presets.
    """
    if path is None:
        return PresetCatalog.builtin()
    try:
        return PresetCatalog.from_json(path)
    except InvalidCatalogError as exc:
        _LOGGER.warning("Falling back to built-in presets: %s", exc, exc_info=True)
        return PresetCatalog.builtin()


async def embed_catalog(
    catalog: PresetCatalog,
    embedder: EmbeddingCapability,
    *,
    embed_model: str | None = None,
) -> PresetCatalog:
    """Return a copy of ``catalog`` with one vector per phrase."""
    embedded: list[MoodPreset] = []
    for preset in catalog:
        vectors: list[tuple[float, ...]] = []
        for phrase in preset.phrases:
            vector = await embedder.embed(phrase)
            vectors.append(tuple(float(x) for x in vector))
        _LOGGER.debug("Embedded %d phrases for %s", len(vectors), preset.category)
        embedded.append(preset.model_copy(update={"embeddings": tuple(vectors)}))
    return PresetCatalog(embedded, version=catalog.version, embed_model=embed_model)
