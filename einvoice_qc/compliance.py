"""
Compliance validation: fields the tax authority mandates beyond the generic
schema (supplier contact details, address completeness, meaningful lines).
"""

import logging
from typing import Any, Dict, Optional

from .config import Settings, get_settings
from .models import EMAIL_PATTERN, ValidationFindings
from .utils import as_dict, as_list, as_number

logger = logging.getLogger(__name__)

MIN_DESCRIPTION_LENGTH = 3


class ComplianceValidator:
    """Checks authority-mandated supplier and line requirements."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def validate(self, invoice: Dict[str, Any]) -> ValidationFindings:
        findings = ValidationFindings()
        self._check_supplier(as_dict(invoice.get('accounting_supplier_party')), findings)
        self._check_lines(as_list(invoice.get('invoice_line')), findings)

        if not invoice.get('tax_total'):
            findings.add_warning(
                "No tax information provided. Ensure tax exemption is properly documented."
            )

        logger.debug("Compliance checks found %d issue(s)", len(findings.errors))
        return findings

    def _check_supplier(self, supplier: Dict[str, Any], findings: ValidationFindings) -> None:
        email = supplier.get('email')
        if not email:
            findings.add_error("Supplier email is mandatory for FIRS compliance")
        elif not isinstance(email, str) or not EMAIL_PATTERN.fullmatch(email):
            findings.add_error("Supplier email format is invalid")

        telephone = supplier.get('telephone')
        if telephone and not str(telephone).startswith('+'):
            findings.add_error("Supplier telephone must include country code (start with +)")

        address = as_dict(supplier.get('postal_address'))
        if not _filled(address.get('street_name')):
            findings.add_error("Supplier street address is required")
        if not _filled(address.get('city_name')):
            findings.add_error("Supplier city is required")

    def _check_lines(self, lines, findings: ValidationFindings) -> None:
        for position, line in enumerate(lines, start=1):
            line = as_dict(line)
            description = as_dict(line.get('item')).get('description')
            if not isinstance(description, str) or len(description.strip()) < MIN_DESCRIPTION_LENGTH:
                findings.add_error(
                    f"Line {position}: Item description must be at least "
                    f"{MIN_DESCRIPTION_LENGTH} characters"
                )

            quantity = as_number(line.get('invoiced_quantity'))
            if quantity is not None and quantity <= 0:
                findings.add_error(f"Line {position}: Quantity must be positive")

            price = as_number(as_dict(line.get('price')).get('price_amount'))
            if price is not None and price <= 0:
                findings.add_error(f"Line {position}: Price must be positive")


def _filled(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())
