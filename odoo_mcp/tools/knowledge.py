"""
Knowledge-base tools: search_knowledge, add_knowledge, update_knowledge,
delete_knowledge, list_knowledge.
"""

from __future__ import annotations

import logging
from typing import Any

from ..embeddings import KnowledgeError
from ..knowledge import ResourceNotFoundError, get_knowledge_base
from . import error_result

log = logging.getLogger(__name__)

_PREVIEW_CHARS = 200


def search_knowledge(
    query: str,
    limit: int | None = None,
    threshold: float | None = None,
) -> dict[str, Any]:
    """
    Search the knowledge base for guidance on Odoo models, fields,
    queries and best practices.

    Use this before the Odoo record tools: to learn what a model is,
    which fields it has, how to phrase a search, or how to fix an error.
    Natural-language queries work best ("How to search partners by email?").

    Returns ranked chunks, each with its content, a confidence score (0-1)
    and the id of the source resource.

    Args:
        query: Natural-language question
        limit: Maximum results (1-10, default 5)
        threshold: Minimum similarity score (0-1, default 0.7)
    """
    if not query or not query.strip():
        return error_result("INVALID_QUERY", "Query cannot be empty.", query=query, results=[])
    if threshold is not None and not 0.0 <= threshold <= 1.0:
        return error_result(
            "INVALID_THRESHOLD", "Threshold must be between 0 and 1.", query=query, results=[],
        )

    log.info("Searching knowledge base for %r (limit=%s, threshold=%s)", query, limit, threshold)
    try:
        hits = get_knowledge_base().search(query, limit=limit, threshold=threshold)
    except Exception as e:
        log.error("Knowledge search failed: %s", e)
        return error_result("SEARCH_FAILED", f"Search failed: {e}", query=query, results=[])

    return {
        "success": True,
        "query": query,
        "message": (
            f"Found {len(hits)} relevant results" if hits else "No relevant knowledge found"
        ),
        "result_count": len(hits),
        "results": [
            {
                "rank": rank,
                "content": hit.content,
                "confidence": round(hit.confidence, 4),
                "resource_id": hit.resource_id,
            }
            for rank, hit in enumerate(hits, start=1)
        ],
    }


def add_knowledge(content: str) -> dict[str, Any]:
    """
    Add a document to the knowledge base.

    The text is split into chunks and embedded so it can be found
    by search_knowledge.

    Args:
        content: Document text (markdown headings are used as chunk boundaries)
    """
    kb = get_knowledge_base()
    try:
        resource = kb.add(content)
    except KnowledgeError as e:
        log.error("Failed to add knowledge: %s", e)
        return error_result("ADD_FAILED", str(e))
    return {
        "success": True,
        "resource_id": resource.id,
        "chunk_count": kb.chunk_count(resource.id),
    }


def update_knowledge(resource_id: str, content: str) -> dict[str, Any]:
    """
    Replace the content of a knowledge-base document and re-index it.

    Args:
        resource_id: Id returned by add_knowledge or list_knowledge
        content: New document text
    """
    kb = get_knowledge_base()
    try:
        kb.update(resource_id, content)
    except ResourceNotFoundError as e:
        return error_result("RESOURCE_NOT_FOUND", str(e), resource_id=resource_id)
    except KnowledgeError as e:
        log.error("Failed to update knowledge %s: %s", resource_id, e)
        return error_result("UPDATE_FAILED", str(e), resource_id=resource_id)
    return {
        "success": True,
        "resource_id": resource_id,
        "chunk_count": kb.chunk_count(resource_id),
    }


def delete_knowledge(resource_id: str) -> dict[str, Any]:
    """
    Delete a knowledge-base document and all of its chunks.

    Args:
        resource_id: Id returned by add_knowledge or list_knowledge
    """
    try:
        get_knowledge_base().delete(resource_id)
    except ResourceNotFoundError as e:
        return error_result("RESOURCE_NOT_FOUND", str(e), resource_id=resource_id)
    return {"success": True, "resource_id": resource_id}


def list_knowledge() -> dict[str, Any]:
    """List knowledge-base documents with a short preview of each."""
    kb = get_knowledge_base()
    resources = kb.list_resources()
    return {
        "success": True,
        "count": len(resources),
        "resources": [
            {
                "resource_id": r.id,
                "source": r.source,
                "chunk_count": kb.chunk_count(r.id),
                "preview": (
                    r.content[:_PREVIEW_CHARS] + "..."
                    if len(r.content) > _PREVIEW_CHARS
                    else r.content
                ),
            }
            for r in resources
        ],
    }
