"""
MCP tools.  Each tool is a plain function returning a JSON-able dict
with a ``success`` flag; ``server.py`` registers them on FastMCP.
"""

from __future__ import annotations

from typing import Any


def error_result(error: str, message: str | None = None, **extra: Any) -> dict[str, Any]:
    """Build the failure shape shared by every tool."""
    result: dict[str, Any] = {"success": False, "error": error}
    if message:
        result["message"] = message
    result.update(extra)
    return result
