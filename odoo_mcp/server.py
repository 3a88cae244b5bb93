#!/usr/bin/env python3
"""
Odoo MCP Server.

Gives AI agents access to an Odoo ERP instance over JSON-RPC:
field discovery, structured record search, and create / update / delete,
plus a small vector-searchable knowledge base of Odoo guidance.

Transport: stdio
"""

from __future__ import annotations

import logging
import os
import sys

from mcp.server.fastmcp import FastMCP

log = logging.getLogger("odoo_mcp")

# ---------------------------------------------------------------------------
# Create the FastMCP server instance
# ---------------------------------------------------------------------------

mcp = FastMCP(
    "odoo",
    instructions=(
        "Odoo ERP access. "
        "Search the knowledge base with search_knowledge for guidance on "
        "models, fields and query patterns before touching records. "
        "Use get_model_fields to discover a model's fields, then "
        "search_model with a structured query to find records. "
        "create_records, update_record and delete_record modify live data; "
        "delete_record requires explicit user confirmation."
    ),
)

# ---------------------------------------------------------------------------
# Register tools from tool modules
# ---------------------------------------------------------------------------

# Model metadata and record changes
from .tools.records import get_model_fields, create_records, update_record, delete_record

mcp.tool()(get_model_fields)
mcp.tool()(create_records)
mcp.tool()(update_record)
mcp.tool()(delete_record)

# Record search
from .tools.search import search_model

mcp.tool()(search_model)

# Knowledge base
from .tools.knowledge import (
    search_knowledge,
    add_knowledge,
    update_knowledge,
    delete_knowledge,
    list_knowledge,
)

mcp.tool()(search_knowledge)
mcp.tool()(add_knowledge)
mcp.tool()(update_knowledge)
mcp.tool()(delete_knowledge)
mcp.tool()(list_knowledge)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def _level(name: str | None) -> int:
    return getattr(logging, (name or "INFO").upper(), logging.INFO)


def main() -> None:
    """Start the MCP server on stdio transport."""
    from .config import ConfigError, get_settings
    from .knowledge import get_knowledge_base
    from .odoo import get_odoo

    # stderr only: stdout carries the stdio JSON-RPC stream
    logging.basicConfig(
        stream=sys.stderr,
        level=_level(os.environ.get("LOG_LEVEL")),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    log.info("Starting Odoo MCP server (stdio)...")

    try:
        settings = get_settings()
    except ConfigError as exc:
        log.critical("Invalid configuration: %s", exc)
        sys.exit(1)
    # .env may set LOG_LEVEL too
    logging.getLogger().setLevel(_level(settings.log_level))

    # Connect eagerly so bad credentials fail fast
    try:
        get_odoo().connect()
        log.info("Odoo connection: OK")
    except Exception as exc:
        log.critical("Odoo connection failed: %s", exc)
        sys.exit(1)

    if settings.knowledge.directory:
        try:
            count = get_knowledge_base().load_directory(settings.knowledge.directory)
            log.info("Knowledge base: %d resources", count)
        except Exception as exc:
            # Record tools still work without the knowledge base
            log.warning("Knowledge base load failed: %s", exc)

    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
