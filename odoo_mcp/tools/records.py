"""
Model and record tools: get_model_fields, create_records, update_record,
delete_record.
"""

from __future__ import annotations

import logging
from typing import Any

from ..odoo import get_odoo
from . import error_result

log = logging.getLogger(__name__)

DEFAULT_FIELD_ATTRIBUTES = [
    "string", "type", "relation", "selection", "help", "required", "readonly",
]

_RELATIONAL_TYPES = {"many2one", "one2many", "many2many"}


def _hints(message: str) -> list[str]:
    """Actionable tips for common create/update failures."""
    lower = message.lower()
    tips = []
    if "required" in lower or "mandatory" in lower:
        tips.append(
            "Check that all required fields are provided. "
            "Use get_model_fields to see required fields for this model."
        )
    if "relation" in lower or "foreign key" in lower:
        tips.append(
            "For relational fields use valid numeric ids. "
            "Use search_model to find the correct ids first."
        )
    if "access" in lower or "permission" in lower:
        tips.append("Check that the user has write permissions for this model.")
    return tips


def get_model_fields(
    model: str,
    field_names: list[str] | None = None,
    attributes: list[str] | None = None,
) -> dict[str, Any]:
    """
    Get metadata about the fields of an Odoo model.

    Use this before search_model when unsure of field names, or to plan
    searches on relational fields: many2one / one2many / many2many fields
    are listed separately with the model they point to, so the related
    records can be searched first.

    Args:
        model: Odoo model name (e.g. "res.partner", "sale.order", "account.move")
        field_names: Only describe these fields (default: all fields)
        attributes: Field attributes to return (default: string, type, relation,
            selection, help, required, readonly)
    """
    attributes = attributes or DEFAULT_FIELD_ATTRIBUTES
    try:
        fields = get_odoo().fields_get(model, field_names, attributes)
    except Exception as e:
        log.error("Failed to get fields for model %s: %s", model, e)
        return error_result("FIELDS_FAILED", str(e), model=model)

    relational = [
        {
            "field_name": name,
            "field_type": info.get("type"),
            "relation_model": info.get("relation"),
            "search_field": "name",
        }
        for name, info in sorted(fields.items())
        if info.get("type") in _RELATIONAL_TYPES
    ]
    log.info(
        "Retrieved %d fields for %s (%d relational)",
        len(fields), model, len(relational),
    )
    return {
        "success": True,
        "model": model,
        "fields": fields,
        "field_count": len(fields),
        "relational_fields": relational,
    }


def create_records(
    model: str,
    records: list[dict[str, Any]],
    fields: list[str] | None = None,
) -> dict[str, Any]:
    """
    Create one or more records in an Odoo model.

    Field values: strings for text, true/false for booleans, numbers,
    ISO dates ("2025-01-15"), numeric ids for many2one ("country_id": 233)
    and id lists for many2many ("category_id": [1, 2]).  Find related ids
    with search_model first.

    Args:
        model: Odoo model name (e.g. "res.partner", "product.product")
        records: One dict of field values per record to create
        fields: Fields to read back from the created records (default: all)
    """
    if not records:
        return error_result(
            "NO_RECORDS_SPECIFIED",
            "Provide at least one record to create.",
            model=model,
        )

    log.info("Creating %d record(s) in %s", len(records), model)
    try:
        odoo = get_odoo()
        ids = odoo.create(model, records)
        created = odoo.read(model, ids, fields)
    except Exception as e:
        log.error("Failed to create records in %s: %s", model, e)
        return error_result(
            "CREATE_FAILED", str(e), model=model, hints=_hints(str(e)),
        )

    return {
        "success": True,
        "model": model,
        "created_count": len(ids),
        "created_ids": ids,
        "created_records": created or [],
    }


def update_record(
    model: str,
    record_id: int,
    values: dict[str, Any],
) -> dict[str, Any]:
    """
    Update one existing record by its numeric id.

    This tool does not search: if you only have a name, use search_model
    to find the id, and ask the user to choose when several records match.

    Many2many commands: replace all [[6, 0, [1, 2]]], add [[4, 1]],
    remove [[3, 1]], clear [[5]].

    Args:
        model: Odoo model name (e.g. "res.partner")
        record_id: Numeric id of the record to update
        values: Field-value pairs to write (e.g. {"email": "new@example.com"})
    """
    if not values:
        return error_result(
            "NO_UPDATES_SPECIFIED",
            "No field updates provided. Specify which fields to update and their new values.",
            model=model,
            record_id=record_id,
        )

    log.info("Updating %s #%d: %s", model, record_id, sorted(values))
    try:
        odoo = get_odoo()
        ok = odoo.write(model, [record_id], values)
        if ok is not True:
            return error_result(
                "UPDATE_FAILED",
                f"Odoo write returned {ok!r} for record {record_id}.",
                model=model,
                record_id=record_id,
            )
        rows = odoo.read(model, [record_id], ["id", *values.keys()])
    except Exception as e:
        log.error("Failed to update %s #%d: %s", model, record_id, e)
        return error_result(
            "UPDATE_FAILED", str(e), model=model, record_id=record_id,
            hints=_hints(str(e)),
        )

    return {
        "success": True,
        "model": model,
        "record_id": record_id,
        "updated_fields": list(values.keys()),
        "record": rows[0] if rows else None,
    }


def delete_record(
    model: str,
    record_id: int,
    confirmation: bool = False,
) -> dict[str, Any]:
    """
    Permanently delete one record by its numeric id.

    DELETION CANNOT BE UNDONE.  Only call with confirmation=true after the
    user has explicitly confirmed which record to delete.

    Args:
        model: Odoo model name (e.g. "res.partner")
        record_id: Numeric id of the record to delete
        confirmation: Must be true; the user explicitly confirmed deletion
    """
    if not confirmation:
        return error_result(
            "CONFIRMATION_REQUIRED",
            f"Deletion requires explicit user confirmation. Confirm that record "
            f"{record_id} should be permanently deleted from {model}.",
            suggestion="Ask the user to confirm, then call again with confirmation=true.",
        )

    try:
        odoo = get_odoo()
    except Exception as e:
        return error_result("DELETE_FAILED", str(e), model=model, record_id=record_id)

    details = None
    try:
        rows = odoo.read(model, [record_id], ["id", "display_name"])
        details = rows[0] if rows else None
    except Exception as e:
        # Missing records surface again from unlink below
        log.info("Could not read %s #%d before deletion: %s", model, record_id, e)

    log.info("Deleting %s #%d", model, record_id)
    try:
        ok = odoo.unlink(model, [record_id])
    except Exception as e:
        message = str(e)
        lower = message.lower()
        log.error("Failed to delete %s #%d: %s", model, record_id, message)
        if "does not exist" in lower or "not found" in lower or "missing" in lower:
            return error_result(
                "RECORD_NOT_FOUND",
                f"Record {record_id} does not exist in {model}.",
                suggestion="Use search_model to find the correct id.",
            )
        if "access" in lower or "permission" in lower or "denied" in lower:
            return error_result(
                "ACCESS_DENIED",
                "You don't have permission to delete this record.",
                suggestion="Check the user's delete rights on this model.",
            )
        return error_result("DELETE_FAILED", message, model=model, record_id=record_id)

    if ok is not True:
        return error_result(
            "DELETE_FAILED",
            f"Odoo unlink did not confirm deletion of record {record_id}.",
            model=model,
            record_id=record_id,
        )
    return {
        "success": True,
        "model": model,
        "deleted_record_id": record_id,
        "deleted_record": details,
        "message": f"Record {record_id} has been permanently deleted from {model}.",
    }
