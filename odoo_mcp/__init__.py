"""Odoo MCP server: expose Odoo ERP records and a knowledge base to AI agents."""

__version__ = "0.1.0"
