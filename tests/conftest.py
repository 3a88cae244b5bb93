"""
Pytest configuration and shared fixtures.

No test talks to a real Odoo server or to OpenAI: the Odoo client is a
Mock and embeddings come from a fake client that counts keywords.
"""
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from odoo_mcp import config, knowledge, odoo
from odoo_mcp.config import (
    ChunkConfig,
    EmbeddingConfig,
    KnowledgeConfig,
    OdooConfig,
    SearchConfig,
    Settings,
)
from odoo_mcp.embeddings import Embedder
from odoo_mcp.knowledge import KnowledgeBase
from odoo_mcp.odoo import OdooClient


# =============================================================================
# Fake embeddings
# =============================================================================

KEYWORDS = ["partner", "invoice", "sale", "product", "email", "country", "stock", "account"]


def keyword_vector(text):
    """Deterministic embedding: one dimension per keyword occurrence count."""
    lower = text.lower()
    return [float(lower.count(k)) for k in KEYWORDS]


class FakeOpenAI:
    """Stands in for openai.OpenAI; records every embeddings.create call."""

    def __init__(self):
        self.calls = []
        self.embeddings = SimpleNamespace(create=self._create)

    def _create(self, model, input):
        self.calls.append(list(input))
        return SimpleNamespace(
            data=[SimpleNamespace(embedding=keyword_vector(t)) for t in input]
        )


# =============================================================================
# Settings / singletons
# =============================================================================

@pytest.fixture
def settings():
    return Settings(
        odoo=OdooConfig(
            url="http://odoo.test", db="test", username="admin", password="secret",
        ),
        search=SearchConfig(default_limit=20, max_limit=100),
        embedding=EmbeddingConfig(api_key="sk-test", dimensions=len(KEYWORDS), batch_size=2),
        knowledge=KnowledgeConfig(
            default_limit=5,
            max_limit=10,
            threshold=0.7,
            chunks=ChunkConfig(size=200, overlap=20, section_size=300, section_overlap=30),
        ),
    )


@pytest.fixture(autouse=True)
def isolated_singletons(monkeypatch, settings):
    """Install test settings and clear cached clients for every test."""
    monkeypatch.setattr(config, "_settings", settings)
    monkeypatch.setattr(odoo, "_odoo", None)
    monkeypatch.setattr(knowledge, "_kb", None)
    yield


@pytest.fixture
def fake_openai():
    return FakeOpenAI()


@pytest.fixture
def embedder(settings, fake_openai):
    return Embedder(settings.embedding, client=fake_openai)


@pytest.fixture
def kb(settings, embedder, monkeypatch, isolated_singletons):
    """Knowledge base wired to the fake embedder and installed as the singleton."""
    base = KnowledgeBase(settings.knowledge, embedder)
    monkeypatch.setattr(knowledge, "_kb", base)
    return base


@pytest.fixture
def mock_odoo(monkeypatch, isolated_singletons):
    """Mock OdooClient installed as the shared client."""
    client = Mock(spec=OdooClient)
    monkeypatch.setattr(odoo, "_odoo", client)
    return client
