"""
Embedding generation (OpenAI) and vector similarity helpers.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

import numpy as np
from openai import OpenAI

from .config import EmbeddingConfig

log = logging.getLogger(__name__)


class KnowledgeError(RuntimeError):
    """Base class for knowledge-base failures."""


class EmbeddingError(KnowledgeError):
    """Embedding generation failed."""


class Embedder:
    """Thin wrapper over the OpenAI embeddings endpoint."""

    def __init__(self, config: EmbeddingConfig, client: Any = None) -> None:
        self._config = config
        self._client = client

    @property
    def dimensions(self) -> int:
        return self._config.dimensions

    def _openai(self) -> Any:
        if self._client is None:
            if not self._config.api_key:
                raise EmbeddingError("OPENAI_API_KEY environment variable is not set")
            self._client = OpenAI(api_key=self._config.api_key)
        return self._client

    def _create(self, inputs: list[str]) -> list[list[float]]:
        try:
            resp = self._openai().embeddings.create(model=self._config.model, input=inputs)
        except EmbeddingError:
            raise
        except Exception as exc:
            log.error("Embedding request failed: %s", exc)
            raise EmbeddingError(f"Failed to generate embeddings: {exc}") from exc

        data = resp.data or []
        if len(data) != len(inputs):
            raise EmbeddingError(
                f"Expected {len(inputs)} embeddings, got {len(data)}"
            )
        return [item.embedding for item in data]

    def embed(self, text: str) -> list[float]:
        """Embed a single non-empty text."""
        if not text or not text.strip():
            raise EmbeddingError("Text cannot be empty")
        return self._create([text.strip()])[0]

    def embed_many(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed texts in batches of ``batch_size``.

        Blank texts are dropped, so the result lines up with the
        non-blank inputs only.
        """
        valid = [t.strip() for t in texts if t and t.strip()]
        vectors: list[list[float]] = []
        size = max(1, self._config.batch_size)
        for i in range(0, len(valid), size):
            vectors.extend(self._create(valid[i:i + size]))
        return vectors


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity in [-1, 1]; 0.0 if either vector is all zeros."""
    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)
    if va.shape != vb.shape:
        raise ValueError("Vectors must have the same length")
    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def is_valid_embedding(vector: Any, dimensions: int) -> bool:
    """True for a list of ``dimensions`` finite numbers."""
    if not isinstance(vector, (list, tuple)) or len(vector) != dimensions:
        return False
    try:
        arr = np.asarray(vector, dtype=float)
    except (TypeError, ValueError):
        return False
    return bool(np.all(np.isfinite(arr)))
