"""Unit tests for the form ready-check."""

from datetime import datetime, timezone

from exportdesk.compliance.seeds import load_seed_documents
from exportdesk.domain.compliance.forms import CooForm, InsuranceForm, PhytoForm, PhytoProductLine
from exportdesk.domain.compliance.ready_check import run_ready_check


def seeded(doc_id):
    return next(doc for doc in load_seed_documents() if doc.id == doc_id)


class TestRunReadyCheck:
    """Test completeness rules per document kind"""

    def test_complete_phyto_is_ready(self):
        result = run_ready_check(seeded("doc_phyto_s5005"))
        assert result.is_ready is True
        assert result.missing_fields == []
        assert result.blocking_reasons == []

    def test_incomplete_insurance_lists_missing_fields(self):
        """Test the seeded insurance form without provider and contact"""
        result = run_ready_check(seeded("doc_ins_s5004"))
        assert result.is_ready is False
        assert result.missing_fields == ["provider", "contact"]
        assert "provider missing" in result.blocking_reasons

    def test_phyto_needs_product_lines(self):
        document = seeded("doc_phyto_s5005")
        document = document.model_copy(update={"form": document.form.model_copy(update={"products": ()})})
        result = run_ready_check(document)
        assert result.is_ready is False
        assert "No product lines" in result.blocking_reasons

    def test_phyto_product_line_fields(self):
        document = seeded("doc_phyto_s5005")
        line = PhytoProductLine(id="p1", botanical_name=" ", quantity_value="")
        document = document.model_copy(update={"form": document.form.model_copy(update={"products": (line,)})})
        result = run_ready_check(document)
        assert "Product 1: missing botanical_name" in result.blocking_reasons
        assert "Product 1: missing quantity" in result.blocking_reasons

    def test_wrong_form_type_blocks(self):
        """Test a form that does not match the document kind"""
        document = seeded("doc_coo_s5005").model_copy(update={"form": InsuranceForm()})
        result = run_ready_check(document)
        assert result.is_ready is False
        assert result.blocking_reasons == ["form is InsuranceForm, expected CooForm"]

    def test_whitespace_only_fields_count_as_missing(self):
        document = seeded("doc_coo_s5005")
        form = document.form.model_copy(update={"invoice_number": "   "})
        result = run_ready_check(document.model_copy(update={"form": form}))
        assert result.missing_fields == ["invoice_number"]

    def test_checked_at_stamp(self):
        stamp = datetime(2025, 9, 15, 8, 0, tzinfo=timezone.utc)
        result = run_ready_check(seeded("doc_coo_s5005"), checked_at=stamp)
        assert result.to_dict()["checked_at"] == stamp.isoformat()

    def test_empty_forms_fail(self):
        for form_type, doc_id in ((CooForm, "doc_coo_s5005"), (InsuranceForm, "doc_ins_s5005")):
            document = seeded(doc_id).model_copy(update={"form": form_type()})
            result = run_ready_check(document)
            assert result.is_ready is False
            assert result.missing_fields == list(form_type.required_fields)
