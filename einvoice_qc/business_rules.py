"""
Business rule validation.

Domain rules that sit on top of the schema: code tables, the regional TIN
format (reported again here in wording meant for the submitter), and advisory
thresholds. Reads only the fields that are present and of the expected type.
"""

import logging
from typing import Any, Dict, Optional

from .config import Settings, get_settings
from .models import INVOICE_TYPE_CODES, PAYMENT_MEANS_CODES, TIN_FORMAT_EXAMPLE, TIN_PATTERN, ValidationFindings
from .utils import as_dict, as_list, as_number

logger = logging.getLogger(__name__)

PARTY_ROLES = {
    'accounting_supplier_party': 'supplier',
    'accounting_customer_party': 'customer',
}


class BusinessRuleValidator:
    """Checks code enumerations, TIN formats and advisory limits."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def validate(self, invoice: Dict[str, Any]) -> ValidationFindings:
        findings = ValidationFindings()
        self._check_codes(invoice, findings)
        self._check_tins(invoice, findings)
        self._check_advisories(invoice, findings)
        logger.debug(
            "Business rules found %d violation(s), %d warning(s)",
            len(findings.errors), len(findings.warnings),
        )
        return findings

    def _check_codes(self, invoice: Dict[str, Any], findings: ValidationFindings) -> None:
        type_code = invoice.get('invoice_type_code')
        if type_code and str(type_code) not in INVOICE_TYPE_CODES:
            findings.add_error(
                f"Invalid invoice type code: {type_code}. "
                f"Must be one of: {', '.join(INVOICE_TYPE_CODES)}"
            )

        for index, means in enumerate(as_list(invoice.get('payment_means'))):
            code = as_dict(means).get('payment_means_code')
            number = as_number(code)
            if number is None or not number.is_integer() or int(number) not in PAYMENT_MEANS_CODES:
                findings.add_error(f"Invalid payment means code at index {index}: {code}")

    def _check_tins(self, invoice: Dict[str, Any], findings: ValidationFindings) -> None:
        for key, role in PARTY_ROLES.items():
            party = invoice.get(key)
            if not isinstance(party, dict) or party.get('tin') is None:
                continue
            tin = party['tin']
            if not isinstance(tin, str) or not TIN_PATTERN.fullmatch(tin):
                findings.add_error(
                    f"Invalid {role} TIN (tax ID) format: '{tin}'. "
                    f"Expected format: {TIN_FORMAT_EXAMPLE}"
                )

    def _check_advisories(self, invoice: Dict[str, Any], findings: ValidationFindings) -> None:
        lines = as_list(invoice.get('invoice_line'))
        if len(lines) > self.settings.max_line_items:
            findings.add_warning(
                f"Invoice contains more than {self.settings.max_line_items} line items. "
                "Consider splitting into multiple invoices."
            )

        document_currency = invoice.get('document_currency_code') or self.settings.currency_code
        tax_currency = invoice.get('tax_currency_code') or self.settings.currency_code
        if document_currency != tax_currency:
            findings.add_warning(
                "Document currency and tax currency are different. Ensure this is intentional."
            )
