"""
Structural validation of canonical invoices.

Field-level constraints (types, formats, required values, enumerations) are
enforced by the pydantic schema in ``models.py``. The cross-field invariants
below are checked separately, directly on the invoice dict, so that a single
pass reports every violation even when some fields fail to parse.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from .config import Settings, get_settings
from .models import CanonicalInvoice, ValidationFindings
from .utils import as_date, as_dict, as_list, as_number

logger = logging.getLogger(__name__)

# Float noise allowance on top of the configured tolerance
_EPSILON = 1e-9


class StructuralValidator:
    """Validates an invoice dict against the canonical schema."""

    def __init__(self, settings: Optional[Settings] = None, today: Optional[Callable[[], date]] = None):
        self.settings = settings or get_settings()
        self.today = today or date.today

    def validate(self, invoice: Dict[str, Any]) -> Tuple[Optional[CanonicalInvoice], ValidationFindings]:
        """
        Run schema and cross-field checks.

        Args:
            invoice: Canonical invoice dict, possibly partially populated

        Returns:
            The parsed CanonicalInvoice (None if any field failed) and the findings,
            with every error scoped to its dotted field path
        """
        findings = ValidationFindings()
        model = None

        try:
            model = CanonicalInvoice.model_validate(invoice, context={'settings': self.settings})
        except PydanticValidationError as e:
            for error in e.errors():
                field = '.'.join(str(loc) for loc in error['loc']) or 'invoice'
                findings.add_error(f"{field}: {error['msg']}", field)

        for field, message in self._cross_field_violations(invoice):
            findings.add_error(f"{field}: {message}", field)

        logger.debug("Structural validation found %d error(s)", len(findings.errors))
        return model, findings

    def _cross_field_violations(self, invoice: Dict[str, Any]):
        tolerance = self.settings.amount_tolerance + _EPSILON

        issue_date = as_date(invoice.get('issue_date'))
        if issue_date is not None and issue_date > self.today():
            yield 'issue_date', "Issue date cannot be in the future"

        due_date = as_date(invoice.get('due_date'))
        if issue_date is not None and due_date is not None and due_date <= issue_date:
            yield 'due_date', "Due date must be after issue date"

        period = invoice.get('invoice_delivery_period')
        if isinstance(period, dict):
            start = as_date(period.get('start_date'))
            end = as_date(period.get('end_date'))
            if start is not None and end is not None and end <= start:
                yield 'invoice_delivery_period.end_date', "Delivery end date must be after start date"

        totals = as_dict(invoice.get('legal_monetary_total'))

        line_amounts = [
            as_number(as_dict(line).get('line_extension_amount'))
            for line in as_list(invoice.get('invoice_line'))
        ]
        expected = as_number(totals.get('line_extension_amount'))
        if expected is not None and None not in line_amounts:
            line_total = round(sum(line_amounts), 2)
            if abs(line_total - round(expected, 2)) > tolerance:
                yield (
                    'legal_monetary_total.line_extension_amount',
                    f"Line extension amount ({expected:.2f}) must equal sum of line amounts ({line_total:.2f})",
                )

        tax_amounts = [
            as_number(as_dict(tax_total).get('tax_amount'))
            for tax_total in as_list(invoice.get('tax_total'))
        ]
        exclusive = as_number(totals.get('tax_exclusive_amount'))
        inclusive = as_number(totals.get('tax_inclusive_amount'))
        if exclusive is not None and inclusive is not None and None not in tax_amounts:
            if abs(exclusive + sum(tax_amounts) - inclusive) > tolerance:
                yield (
                    'legal_monetary_total.tax_inclusive_amount',
                    "Tax inclusive amount must equal tax exclusive amount plus total tax",
                )
