"""
Tests for get_model_fields, create_records, update_record, delete_record
"""
from odoo_mcp.odoo import OdooError
from odoo_mcp.tools.records import (
    DEFAULT_FIELD_ATTRIBUTES,
    create_records,
    delete_record,
    get_model_fields,
    update_record,
)


class TestGetModelFields:

    def test_lists_relational_fields(self, mock_odoo):
        mock_odoo.fields_get.return_value = {
            "name": {"type": "char", "string": "Name"},
            "country_id": {"type": "many2one", "relation": "res.country"},
            "category_id": {"type": "many2many", "relation": "res.partner.category"},
        }
        result = get_model_fields("res.partner")

        mock_odoo.fields_get.assert_called_once_with("res.partner", None, DEFAULT_FIELD_ATTRIBUTES)
        assert result["success"] is True
        assert result["field_count"] == 3
        assert [f["field_name"] for f in result["relational_fields"]] == ["category_id", "country_id"]
        assert result["relational_fields"][1]["relation_model"] == "res.country"

    def test_failure(self, mock_odoo):
        mock_odoo.fields_get.side_effect = OdooError("Object res.nope doesn't exist")
        result = get_model_fields("res.nope")
        assert result == {
            "success": False,
            "error": "FIELDS_FAILED",
            "message": "Object res.nope doesn't exist",
            "model": "res.nope",
        }


class TestCreateRecords:

    def test_creates_and_reads_back(self, mock_odoo):
        mock_odoo.create.return_value = [11, 12]
        mock_odoo.read.return_value = [{"id": 11, "name": "Alice"}, {"id": 12, "name": "Bob"}]
        result = create_records("res.partner", [{"name": "Alice"}, {"name": "Bob"}], fields=["name"])

        mock_odoo.read.assert_called_once_with("res.partner", [11, 12], ["name"])
        assert result["success"] is True
        assert result["created_count"] == 2
        assert result["created_ids"] == [11, 12]

    def test_empty_rejected(self, mock_odoo):
        result = create_records("res.partner", [])
        assert result["error"] == "NO_RECORDS_SPECIFIED"
        mock_odoo.create.assert_not_called()

    def test_failure_has_hints(self, mock_odoo):
        mock_odoo.create.side_effect = OdooError("Missing required field: name")
        result = create_records("res.partner", [{"email": "a@b.c"}])
        assert result["success"] is False
        assert result["error"] == "CREATE_FAILED"
        assert any("get_model_fields" in tip for tip in result["hints"])


class TestUpdateRecord:

    def test_writes_and_reads_updated_fields(self, mock_odoo):
        mock_odoo.write.return_value = True
        mock_odoo.read.return_value = [{"id": 5, "email": "new@example.com"}]
        result = update_record("res.partner", 5, {"email": "new@example.com"})

        mock_odoo.write.assert_called_once_with("res.partner", [5], {"email": "new@example.com"})
        mock_odoo.read.assert_called_once_with("res.partner", [5], ["id", "email"])
        assert result["success"] is True
        assert result["record"] == {"id": 5, "email": "new@example.com"}

    def test_no_values(self, mock_odoo):
        result = update_record("res.partner", 5, {})
        assert result["error"] == "NO_UPDATES_SPECIFIED"
        mock_odoo.write.assert_not_called()

    def test_write_not_confirmed(self, mock_odoo):
        mock_odoo.write.return_value = False
        result = update_record("res.partner", 5, {"name": "X"})
        assert result["error"] == "UPDATE_FAILED"
        mock_odoo.read.assert_not_called()


class TestDeleteRecord:

    def test_requires_confirmation(self, mock_odoo):
        result = delete_record("res.partner", 9)
        assert result["error"] == "CONFIRMATION_REQUIRED"
        mock_odoo.unlink.assert_not_called()

    def test_deletes(self, mock_odoo):
        mock_odoo.read.return_value = [{"id": 9, "display_name": "John"}]
        mock_odoo.unlink.return_value = True
        result = delete_record("res.partner", 9, confirmation=True)

        mock_odoo.unlink.assert_called_once_with("res.partner", [9])
        assert result["success"] is True
        assert result["deleted_record"] == {"id": 9, "display_name": "John"}

    def test_read_failure_does_not_block_delete(self, mock_odoo):
        mock_odoo.read.side_effect = OdooError("boom")
        mock_odoo.unlink.return_value = True
        result = delete_record("res.partner", 9, confirmation=True)
        assert result["success"] is True
        assert result["deleted_record"] is None

    def test_missing_record(self, mock_odoo):
        mock_odoo.read.return_value = []
        mock_odoo.unlink.side_effect = OdooError("Record does not exist or has been deleted.")
        result = delete_record("res.partner", 9, confirmation=True)
        assert result["error"] == "RECORD_NOT_FOUND"

    def test_access_denied(self, mock_odoo):
        mock_odoo.read.return_value = []
        mock_odoo.unlink.side_effect = OdooError("Access Denied")
        result = delete_record("res.partner", 9, confirmation=True)
        assert result["error"] == "ACCESS_DENIED"

    def test_other_failure(self, mock_odoo):
        mock_odoo.read.return_value = []
        mock_odoo.unlink.side_effect = OdooError("Cannot delete a posted entry")
        result = delete_record("account.move", 9, confirmation=True)
        assert result["error"] == "DELETE_FAILED"
        assert "posted" in result["message"]
