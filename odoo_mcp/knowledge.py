"""
In-process knowledge base.

Stores free-text resources (Odoo how-tos, model notes, query examples),
splits them into chunks, embeds each chunk and answers similarity
searches over all chunks.  Everything lives in memory; resources are
(re)loaded from KNOWLEDGE_DIR on startup.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from .chunking import chunk_sections
from .config import KnowledgeConfig, get_settings
from .embeddings import Embedder, EmbeddingError, KnowledgeError, is_valid_embedding

log = logging.getLogger(__name__)

_KNOWLEDGE_SUFFIXES = (".md", ".markdown", ".txt")


class ResourceNotFoundError(KnowledgeError):
    def __init__(self, resource_id: str) -> None:
        super().__init__(f"Resource not found: {resource_id}")
        self.resource_id = resource_id


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class Resource:
    id: str
    content: str
    source: str | None = None
    created_at: float = field(default_factory=time.time)


@dataclass
class StoredChunk:
    resource_id: str
    content: str
    embedding: np.ndarray  # unit-normalised


@dataclass
class SearchHit:
    content: str
    confidence: float
    resource_id: str


# ---------------------------------------------------------------------------
# Knowledge base
# ---------------------------------------------------------------------------

class KnowledgeBase:
    """Resources plus their chunk embeddings, searchable by similarity."""

    def __init__(self, config: KnowledgeConfig, embedder: Embedder) -> None:
        self._config = config
        self._embedder = embedder
        self._lock = threading.RLock()
        self._resources: dict[str, Resource] = {}
        self._chunks: dict[str, list[StoredChunk]] = {}

    @property
    def config(self) -> KnowledgeConfig:
        return self._config

    # -- Indexing ------------------------------------------------------------

    def _embed_chunks(self, resource_id: str, content: str) -> list[StoredChunk]:
        cfg = self._config.chunks
        chunks = chunk_sections(content, cfg.section_size, cfg.section_overlap)
        if not chunks:
            return []

        vectors = self._embedder.embed_many([c.content for c in chunks])
        if len(vectors) != len(chunks):
            raise EmbeddingError(
                f"Expected {len(chunks)} embeddings, got {len(vectors)}"
            )

        stored = []
        for chunk, vector in zip(chunks, vectors):
            if not is_valid_embedding(vector, self._embedder.dimensions):
                raise EmbeddingError(
                    f"Invalid embedding for chunk {chunk.index} of {resource_id}"
                )
            arr = np.asarray(vector, dtype=float)
            norm = np.linalg.norm(arr)
            stored.append(StoredChunk(
                resource_id=resource_id,
                content=chunk.content,
                embedding=arr / norm if norm else arr,
            ))
        return stored

    def add(self, content: str, source: str | None = None) -> Resource:
        """Add a resource, chunking and embedding its content."""
        if not content or not content.strip():
            raise KnowledgeError("Content cannot be empty")
        resource = Resource(id=uuid.uuid4().hex, content=content, source=source)
        # Embed before taking the lock; the API call is slow
        chunks = self._embed_chunks(resource.id, content)
        with self._lock:
            self._resources[resource.id] = resource
            self._chunks[resource.id] = chunks
        log.info("Added resource %s (%d chunks)", resource.id, len(chunks))
        return resource

    def update(self, resource_id: str, content: str) -> Resource:
        """Replace a resource's content and re-embed it."""
        if not content or not content.strip():
            raise KnowledgeError("Content cannot be empty")
        with self._lock:
            if resource_id not in self._resources:
                raise ResourceNotFoundError(resource_id)
        chunks = self._embed_chunks(resource_id, content)
        with self._lock:
            resource = self._resources.get(resource_id)
            if resource is None:
                raise ResourceNotFoundError(resource_id)
            resource.content = content
            self._chunks[resource_id] = chunks
        log.info("Updated resource %s (%d chunks)", resource_id, len(chunks))
        return resource

    def delete(self, resource_id: str) -> None:
        with self._lock:
            if self._resources.pop(resource_id, None) is None:
                raise ResourceNotFoundError(resource_id)
            self._chunks.pop(resource_id, None)
        log.info("Deleted resource %s", resource_id)

    def get(self, resource_id: str) -> Resource:
        with self._lock:
            resource = self._resources.get(resource_id)
        if resource is None:
            raise ResourceNotFoundError(resource_id)
        return resource

    def list_resources(self) -> list[Resource]:
        with self._lock:
            return sorted(self._resources.values(), key=lambda r: r.created_at)

    def chunk_count(self, resource_id: str | None = None) -> int:
        with self._lock:
            if resource_id is not None:
                return len(self._chunks.get(resource_id, []))
            return sum(len(c) for c in self._chunks.values())

    def load_directory(self, directory: str | Path) -> int:
        """
        Add every .md / .markdown / .txt file under ``directory``.

        Returns the number of resources added.
        """
        root = Path(directory)
        if not root.is_dir():
            raise KnowledgeError(f"Knowledge directory not found: {root}")

        added = 0
        for path in sorted(root.rglob("*")):
            if not path.is_file() or path.suffix.lower() not in _KNOWLEDGE_SUFFIXES:
                continue
            text = path.read_text(encoding="utf-8", errors="replace")
            if not text.strip():
                continue
            self.add(text, source=str(path.relative_to(root)))
            added += 1
        log.info("Loaded %d knowledge resources from %s", added, root)
        return added

    # -- Search --------------------------------------------------------------

    def search(
        self,
        query: str,
        limit: int | None = None,
        threshold: float | None = None,
    ) -> list[SearchHit]:
        """
        Return up to ``limit`` chunks scoring at least ``threshold``.

        The best ``limit * candidate_factor`` chunks are taken as
        candidates before the threshold filter, best match first.
        """
        cfg = self._config
        limit = cfg.default_limit if limit is None else limit
        limit = min(max(1, limit), cfg.max_limit)
        threshold = cfg.threshold if threshold is None else threshold

        query_vec = np.asarray(self._embedder.embed(query), dtype=float)
        norm = np.linalg.norm(query_vec)
        if norm:
            query_vec = query_vec / norm

        with self._lock:
            stored = [c for chunks in self._chunks.values() for c in chunks]
        if not stored:
            return []

        matrix = np.vstack([c.embedding for c in stored])
        scores = matrix @ query_vec
        order = np.argsort(-scores, kind="stable")[: limit * cfg.candidate_factor]

        hits = [
            SearchHit(
                content=stored[i].content,
                confidence=float(scores[i]),
                resource_id=stored[i].resource_id,
            )
            for i in order
            if scores[i] >= threshold
        ]
        return hits[:limit]


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_kb: KnowledgeBase | None = None


def get_knowledge_base() -> KnowledgeBase:
    """Get or create the shared knowledge base."""
    global _kb
    if _kb is None:
        settings = get_settings()
        _kb = KnowledgeBase(settings.knowledge, Embedder(settings.embedding))
    return _kb
