"""
Tests for the knowledge-base MCP tools
"""
from odoo_mcp.tools.knowledge import (
    add_knowledge,
    delete_knowledge,
    list_knowledge,
    search_knowledge,
    update_knowledge,
)

PARTNER_DOC = "To find a partner by email, search res.partner on the email field."


class TestSearchKnowledge:

    def test_ranked_results(self, kb):
        added = add_knowledge(PARTNER_DOC)
        result = search_knowledge("partner email")
        assert result["success"] is True
        assert result["result_count"] == 1
        hit = result["results"][0]
        assert hit["rank"] == 1
        assert hit["resource_id"] == added["resource_id"]
        assert hit["confidence"] == 1.0

    def test_no_results_message(self, kb):
        result = search_knowledge("stock")
        assert result["success"] is True
        assert result["results"] == []
        assert result["message"] == "No relevant knowledge found"

    def test_empty_query(self, kb):
        result = search_knowledge("  ")
        assert result["success"] is False
        assert result["error"] == "INVALID_QUERY"

    def test_bad_threshold(self, kb):
        assert search_knowledge("partner", threshold=1.5)["error"] == "INVALID_THRESHOLD"

    def test_embedding_failure_reported(self, kb, fake_openai):
        def boom(model, input):
            raise RuntimeError("api down")

        fake_openai.embeddings.create = boom
        result = search_knowledge("partner")
        assert result["success"] is False
        assert "api down" in result["message"]


class TestManageKnowledge:

    def test_add_list_update_delete(self, kb):
        added = add_knowledge(PARTNER_DOC)
        assert added["success"] is True
        assert added["chunk_count"] == 1
        rid = added["resource_id"]

        listing = list_knowledge()
        assert listing["count"] == 1
        assert listing["resources"][0]["preview"] == PARTNER_DOC

        assert update_knowledge(rid, "Sale orders and invoices.")["success"] is True
        assert search_knowledge("sale invoice", threshold=0.5)["result_count"] == 1

        assert delete_knowledge(rid) == {"success": True, "resource_id": rid}
        assert list_knowledge()["count"] == 0

    def test_long_preview_truncated(self, kb):
        add_knowledge("partner " * 100)
        preview = list_knowledge()["resources"][0]["preview"]
        assert preview.endswith("...")
        assert len(preview) == 203

    def test_add_empty(self, kb):
        assert add_knowledge("")["error"] == "ADD_FAILED"

    def test_unknown_resource(self, kb):
        assert update_knowledge("nope", "text")["error"] == "RESOURCE_NOT_FOUND"
        assert delete_knowledge("nope")["error"] == "RESOURCE_NOT_FOUND"
