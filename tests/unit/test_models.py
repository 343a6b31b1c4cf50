"""Unit tests for the canonical invoice schema and result models."""

from typing import Any, Dict

import pytest
from pydantic import ValidationError

from einvoice_qc.config import Settings
from einvoice_qc.models import (
    CanonicalInvoice,
    Party,
    ValidationFindings,
    ValidationResult,
)


def _messages(exc: ValidationError) -> Dict[str, str]:
    return {".".join(str(loc) for loc in error["loc"]): error["msg"] for error in exc.errors()}


class TestCanonicalInvoice:
    """Field-level constraints of the canonical schema."""

    def test_valid_invoice_parses(self, canonical_invoice: Dict[str, Any]) -> None:
        invoice = CanonicalInvoice.model_validate(canonical_invoice)

        assert invoice.irn == "INV-2024-0001"
        assert invoice.accounting_supplier_party.tin == "12345678-0001"
        assert len(invoice.invoice_line) == 2
        assert invoice.payment_status == "PENDING"

    def test_business_id_must_be_uuid(self, canonical_invoice: Dict[str, Any]) -> None:
        canonical_invoice["business_id"] = "not-a-uuid"

        with pytest.raises(ValidationError) as exc_info:
            CanonicalInvoice.model_validate(canonical_invoice)

        assert _messages(exc_info.value)["business_id"] == "Business ID must be a valid UUID"

    def test_irn_length_limit(self, canonical_invoice: Dict[str, Any]) -> None:
        canonical_invoice["irn"] = "X" * 51

        with pytest.raises(ValidationError) as exc_info:
            CanonicalInvoice.model_validate(canonical_invoice)

        assert _messages(exc_info.value)["irn"] == "IRN cannot exceed 50 characters"

    @pytest.mark.parametrize("code,message", [
        ("38", "Invoice type code must be a 3-digit number"),
        ("999", "Invalid invoice type code"),
    ])
    def test_invoice_type_code(self, canonical_invoice: Dict[str, Any], code: str, message: str) -> None:
        canonical_invoice["invoice_type_code"] = code

        with pytest.raises(ValidationError) as exc_info:
            CanonicalInvoice.model_validate(canonical_invoice)

        assert _messages(exc_info.value)["invoice_type_code"] == message

    def test_issue_date_format(self, canonical_invoice: Dict[str, Any]) -> None:
        canonical_invoice["issue_date"] = "01/06/2024"

        with pytest.raises(ValidationError) as exc_info:
            CanonicalInvoice.model_validate(canonical_invoice)

        assert _messages(exc_info.value)["issue_date"] == "Date must be in YYYY-MM-DD format"

    def test_impossible_calendar_date(self, canonical_invoice: Dict[str, Any]) -> None:
        canonical_invoice["issue_date"] = "2024-02-30"

        with pytest.raises(ValidationError) as exc_info:
            CanonicalInvoice.model_validate(canonical_invoice)

        assert _messages(exc_info.value)["issue_date"] == "Date must be a valid calendar date"

    def test_amount_with_three_decimals(self, canonical_invoice: Dict[str, Any]) -> None:
        canonical_invoice["legal_monetary_total"]["payable_amount"] = 1343.755

        with pytest.raises(ValidationError) as exc_info:
            CanonicalInvoice.model_validate(canonical_invoice)

        assert "legal_monetary_total.payable_amount" in _messages(exc_info.value)

    def test_negative_amount(self, canonical_invoice: Dict[str, Any]) -> None:
        canonical_invoice["invoice_line"][0]["line_extension_amount"] = -1

        with pytest.raises(ValidationError) as exc_info:
            CanonicalInvoice.model_validate(canonical_invoice)

        assert "invoice_line.0.line_extension_amount" in _messages(exc_info.value)

    def test_empty_lines_rejected(self, canonical_invoice: Dict[str, Any]) -> None:
        canonical_invoice["invoice_line"] = []

        with pytest.raises(ValidationError) as exc_info:
            CanonicalInvoice.model_validate(canonical_invoice)

        assert _messages(exc_info.value)["invoice_line"] == "At least one invoice line is required"

    def test_currencies_default_from_context(self, canonical_invoice: Dict[str, Any]) -> None:
        del canonical_invoice["document_currency_code"]
        del canonical_invoice["tax_currency_code"]
        settings = Settings(_env_file=None, currency_code="USD")

        invoice = CanonicalInvoice.model_validate(canonical_invoice, context={"settings": settings})

        assert invoice.document_currency_code == "USD"
        assert invoice.tax_currency_code == "USD"

    def test_collects_every_field_error(self, canonical_invoice: Dict[str, Any]) -> None:
        canonical_invoice["business_id"] = ""
        canonical_invoice["accounting_supplier_party"]["email"] = "nope"

        with pytest.raises(ValidationError) as exc_info:
            CanonicalInvoice.model_validate(canonical_invoice)

        messages = _messages(exc_info.value)
        assert messages["business_id"] == "Business ID is required"
        assert messages["accounting_supplier_party.email"] == "Invalid email format"


class TestParty:
    """Party-level constraints."""

    def _party(self, **overrides: Any) -> Dict[str, Any]:
        party = {
            "party_name": "Acme",
            "tin": "12345678-0001",
            "email": "a@acme.com",
            "postal_address": {"street_name": "1 Road", "city_name": "Lagos"},
        }
        party.update(overrides)
        return party

    def test_country_defaults_to_operating_country(self) -> None:
        party = Party.model_validate(self._party())

        assert party.postal_address.country == "NG"

    @pytest.mark.parametrize("tin", ["123-456", "12345678-123", "12345678-1234\n", "ABCDEFGH-1234"])
    def test_tin_format(self, tin: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Party.model_validate(self._party(tin=tin))

        assert _messages(exc_info.value)["tin"] == "TIN must be in format: 12345678-1234"

    def test_blank_tin_is_missing(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Party.model_validate(self._party(tin=""))

        assert _messages(exc_info.value)["tin"] == "TIN is required"

    @pytest.mark.parametrize("telephone", ["08012345678", "+234", "+234801234567890123"])
    def test_telephone_format(self, telephone: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Party.model_validate(self._party(telephone=telephone))

        assert "telephone" in _messages(exc_info.value)

    def test_blank_street_is_required(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            Party.model_validate(self._party(postal_address={"street_name": " ", "city_name": "Lagos"}))

        assert _messages(exc_info.value)["postal_address.street_name"] == "Street name is required"


class TestResultModels:
    """Findings collector and camelCase serialization."""

    def test_findings_group_field_errors(self) -> None:
        findings = ValidationFindings()
        findings.add_error("tin: bad", field="tin")
        findings.add_error("general problem")
        findings.add_warning("heads up")

        assert findings.errors == ["tin: bad", "general problem"]
        assert findings.field_errors == {"tin": ["tin: bad"]}
        assert findings.warnings == ["heads up"]
        assert not findings.ok

    def test_result_serializes_camel_case(self) -> None:
        result = ValidationResult(is_valid=True, source_format="legacy")

        data = result.model_dump(by_alias=True)

        assert data["isValid"] is True
        assert data["sourceFormat"] == "legacy"
        assert "businessRuleViolations" in data
        assert "normalizedInvoice" in data

    def test_result_accepts_camel_case_input(self) -> None:
        result = ValidationResult.model_validate({"isValid": False, "errors": ["x"]})

        assert result.is_valid is False
        assert result.errors == ["x"]
