"""
Record search tool: search_model.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..config import get_settings
from ..domain import QueryError, compile_domain, parse_query
from ..odoo import get_odoo
from . import error_result

log = logging.getLogger(__name__)


def search_model(
    model: str,
    query: dict[str, Any],
    fields: list[str] | None = None,
    limit: int | None = None,
    offset: int = 0,
    count_only: bool = False,
) -> dict[str, Any]:
    """
    Search records in any Odoo model using a structured query.

    First use get_model_fields to discover the model's fields, then build
    a query of conditions joined by one logical operator.

    Condition format: {"field": "name", "operator": "=", "value": "John"}
    Operators: =, !=, >, >=, <, <=, like, ilike, not ilike, in, not in
    ("like"/"ilike" use % as wildcard).
    Empty fields: {"field": "email", "operator": "=", "value": false}
    Non-empty fields: {"field": "email", "operator": "!=", "value": false}

    Examples:
        {"logic": "AND", "conditions": [
            {"field": "date_order", "operator": ">=", "value": "2025-06-20"},
            {"field": "date_order", "operator": "<=", "value": "2025-08-28"},
            {"field": "state", "operator": "=", "value": "sale"}]}
        {"logic": "OR", "conditions": [
            {"field": "country_id", "operator": "=", "value": 186},
            {"field": "country_id", "operator": "=", "value": 38}]}

    For relational fields, search the related model first and filter on
    the returned ids.

    Args:
        model: Odoo model name (e.g. "res.partner", "sale.order", "product.product")
        query: {"logic": "AND" | "OR" | "NOT", "conditions": [...]}
        fields: Fields to return (default: all fields)
        limit: Maximum records to return (default 20, max 100)
        offset: Records to skip, for pagination
        count_only: Return only the total count of matching records
    """
    cfg = get_settings().search
    limit = cfg.default_limit if limit is None else limit
    limit = min(max(1, limit), cfg.max_limit)
    offset = max(0, offset)

    log.info("Searching %s: %s (limit=%d, offset=%d)", model, json.dumps(query, default=str), limit, offset)

    try:
        domain = compile_domain(parse_query(query, allow_nested=False))
    except QueryError as e:
        log.warning("Rejected query for %s: %s", model, e)
        return error_result("INVALID_QUERY", str(e), model=model, query=query)

    log.info("Generated domain: %s", json.dumps(domain, default=str))

    try:
        odoo = get_odoo()
        total = odoo.search_count(model, domain)
        records = [] if count_only else odoo.search_read(
            model, domain, fields=fields, offset=offset, limit=limit
        )
    except Exception as e:
        log.error("Search failed for model %s: %s", model, e)
        return error_result("SEARCH_FAILED", str(e), model=model, query=query, domain=domain)

    records = records or []
    log.info("Found %d of %d records in %s", len(records), total, model)

    return {
        "success": True,
        "model": model,
        "records": records,
        "count": len(records),
        "total_count": total,
        "domain": domain,
        "offset": offset,
        "limit": limit,
        "has_more": (not count_only) and offset + len(records) < total,
    }
