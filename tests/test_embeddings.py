"""
Tests for the OpenAI embedder wrapper and similarity helpers
"""
import math
from types import SimpleNamespace

import pytest

from odoo_mcp.config import EmbeddingConfig
from odoo_mcp.embeddings import (
    Embedder,
    EmbeddingError,
    cosine_similarity,
    is_valid_embedding,
)

from .conftest import keyword_vector


class TestEmbedder:

    def test_embed_single(self, embedder, fake_openai):
        assert embedder.embed("  partner email ") == keyword_vector("partner email")
        assert fake_openai.calls == [["partner email"]]

    def test_embed_empty_raises(self, embedder):
        with pytest.raises(EmbeddingError, match="empty"):
            embedder.embed("   ")

    def test_embed_many_batches_and_skips_blank(self, embedder, fake_openai):
        # batch_size is 2 in the test settings
        vectors = embedder.embed_many(["partner", "", "sale", "invoice", "  "])
        assert len(vectors) == 3
        assert fake_openai.calls == [["partner", "sale"], ["invoice"]]

    def test_embed_many_empty(self, embedder, fake_openai):
        assert embedder.embed_many([]) == []
        assert fake_openai.calls == []

    def test_count_mismatch_raises(self, settings):
        client = SimpleNamespace(embeddings=SimpleNamespace(
            create=lambda model, input: SimpleNamespace(data=[])))
        with pytest.raises(EmbeddingError, match="Expected 1 embeddings, got 0"):
            Embedder(settings.embedding, client=client).embed("partner")

    def test_api_failure_wrapped(self, settings):
        def boom(model, input):
            raise RuntimeError("rate limited")

        client = SimpleNamespace(embeddings=SimpleNamespace(create=boom))
        with pytest.raises(EmbeddingError, match="rate limited"):
            Embedder(settings.embedding, client=client).embed("partner")

    def test_missing_api_key(self):
        with pytest.raises(EmbeddingError, match="OPENAI_API_KEY"):
            Embedder(EmbeddingConfig(api_key="")).embed("partner")


class TestCosineSimilarity:

    def test_identical(self):
        assert cosine_similarity([1, 2, 3], [1, 2, 3]) == pytest.approx(1.0)

    def test_orthogonal(self):
        assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)

    def test_opposite(self):
        assert cosine_similarity([1, 1], [-1, -1]) == pytest.approx(-1.0)

    def test_known_value(self):
        assert cosine_similarity([1, 0], [1, 1]) == pytest.approx(1 / math.sqrt(2))

    def test_zero_vector(self):
        assert cosine_similarity([0, 0], [1, 1]) == 0.0

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            cosine_similarity([1, 2], [1, 2, 3])


class TestIsValidEmbedding:

    def test_valid(self):
        assert is_valid_embedding([0.1] * 4, 4)

    @pytest.mark.parametrize("vector", [[0.1] * 3, "abcd", None, [0.1, float("nan"), 0.1, 0.1], [1, "x", 2, 3]])
    def test_invalid(self, vector):
        assert not is_valid_embedding(vector, 4)
