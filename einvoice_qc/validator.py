"""
Validation orchestrator for e-invoice quality control.

Sequences format detection, conversion to the canonical invoice, and the
structural, business-rule and compliance passes, then merges their findings
into a single ValidationResult.
"""

import copy
import logging
import re
from datetime import date
from typing import Any, Callable, Dict, Iterable, Optional, Set

from .business_rules import BusinessRuleValidator
from .compliance import ComplianceValidator
from .config import Settings, get_settings
from .detector import CanonicalPayload, Conversion, InputPayload, LegacyPayload, XmlPayload, detect_format
from .exceptions import ConversionError
from .identifiers import IdentifierFactory
from .legacy_converter import LegacyConverter
from .models import (
    InvoiceSubmission,
    InvoiceValidationResult,
    ValidationReport,
    ValidationResult,
    ValidationSummary,
)
from .structural import StructuralValidator
from .utils import error_key
from .xml_converter import XmlConverter

logger = logging.getLogger(__name__)


class InvoiceValidator:
    """Validates and normalizes invoices submitted as canonical JSON, legacy JSON or XML."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        id_factory: Optional[IdentifierFactory] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        """
        Initialize validator.

        Args:
            settings: Service settings, read from the environment when omitted
            id_factory: Source of synthesized business IDs and IRNs
            today: Clock used for default issue dates and the future-date check
        """
        self.settings = settings or get_settings()
        self.id_factory = id_factory or IdentifierFactory()
        self.today = today or date.today

        self.legacy_converter = LegacyConverter(self.settings, self.id_factory, self.today)
        self.xml_converter = XmlConverter(self.settings, self.id_factory, self.today)
        self.structural = StructuralValidator(self.settings, self.today)
        self.business_rules = BusinessRuleValidator(self.settings)
        self.compliance = ComplianceValidator(self.settings)

        self._converters = {
            CanonicalPayload: lambda detected: Conversion(invoice=copy.deepcopy(detected.data)),
            LegacyPayload: lambda detected: self.legacy_converter.convert(detected.data),
            XmlPayload: lambda detected: self.xml_converter.convert(detected.tree),
        }

    def convert(self, payload: Any, format_hint: str = 'json') -> Conversion:
        """
        Detect the payload's shape and convert it to a canonical invoice dict.

        Raises:
            ConversionError: if the payload cannot be classified or decoded
        """
        return self._convert(detect_format(payload, format_hint))

    def _convert(self, detected: InputPayload) -> Conversion:
        return self._converters[type(detected)](detected)

    def validate(self, payload: Any, format_hint: str = 'json') -> ValidationResult:
        """
        Validate a single invoice payload.

        Args:
            payload: Invoice as a JSON-compatible value, JSON text, or XML text
            format_hint: 'json' or 'xml'

        Returns:
            ValidationResult; normalized_invoice is set whenever conversion succeeded
        """
        try:
            detected = detect_format(payload, format_hint)
            conversion = self._convert(detected)
        except ConversionError as e:
            logger.debug("Conversion failed: %s", e)
            return ValidationResult(is_valid=False, errors=[f"Validation failed: {e}"])

        model, structural = self.structural.validate(conversion.invoice)
        if model is not None:
            invoice = model.model_dump(exclude_none=True)
        else:
            invoice = conversion.invoice

        # Both passes run even when the schema failed; partial data still yields findings
        business = self.business_rules.validate(invoice)
        compliance = self.compliance.validate(invoice)

        warnings = list(conversion.warnings)
        if self.settings.warn_on_defaults:
            warnings.extend(conversion.defaults)
        warnings.extend(business.warnings)
        warnings.extend(compliance.warnings)

        errors = structural.errors + business.errors + compliance.errors

        logger.debug(
            "Validated %s invoice: %d error(s), %d warning(s)",
            detected.source_format, len(errors), len(warnings),
        )
        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            normalized_invoice=invoice,
            field_errors=structural.field_errors,
            business_rule_violations=business.errors,
            compliance_issues=compliance.errors,
            source_format=detected.source_format,
        )

    def validate_batch(self, submissions: Iterable[InvoiceSubmission]) -> ValidationReport:
        """
        Validate a batch of invoices.

        Besides per-invoice validation, IRNs repeated within the batch are
        reported as errors on every occurrence after the first.

        Args:
            submissions: Payloads with their format hints

        Returns:
            ValidationReport with summary and individual results
        """
        results = []
        error_counts: Dict[str, int] = {}
        seen_irns: Set[str] = set()

        for position, submission in enumerate(submissions, start=1):
            result = self.validate(submission.payload, submission.format)
            irn = (result.normalized_invoice or {}).get('irn')

            if isinstance(irn, str) and irn:
                if irn in seen_irns:
                    message = f"duplicate invoice reference number in batch: {irn}"
                    result = result.model_copy(update={
                        'is_valid': False,
                        'errors': result.errors + [message],
                        'business_rule_violations': result.business_rule_violations + [message],
                    })
                seen_irns.add(irn)

            for key in _error_keys(result):
                error_counts[key] = error_counts.get(key, 0) + 1

            results.append(InvoiceValidationResult(
                invoice_id=irn if isinstance(irn, str) and irn else "UNKNOWN",
                source=submission.source or f"#{position}",
                result=result,
            ))

        valid_count = sum(1 for r in results if r.result.is_valid)
        summary = ValidationSummary(
            total_invoices=len(results),
            valid_invoices=valid_count,
            invalid_invoices=len(results) - valid_count,
            error_counts=error_counts,
        )
        logger.info(
            "Validated batch of %d invoice(s): %d valid, %d invalid",
            summary.total_invoices, summary.valid_invoices, summary.invalid_invoices,
        )
        return ValidationReport(summary=summary, results=results)


def _error_keys(result: ValidationResult):
    if result.source_format is None:
        yield "conversion:" + error_key(result.errors[0]) if result.errors else "conversion"
        return
    for field, messages in result.field_errors.items():
        for _ in messages:
            yield "structural:" + re.sub(r"\.\d+(?=\.|$)", "", field)
    for message in result.business_rule_violations:
        yield f"business_rule:{error_key(message)}"
    for message in result.compliance_issues:
        yield f"compliance:{error_key(message)}"


def validate_invoice(payload: Any, format_hint: str = 'json') -> ValidationResult:
    """
    Convenience function to validate one invoice with default settings.

    Args:
        payload: Invoice payload
        format_hint: 'json' or 'xml'

    Returns:
        ValidationResult
    """
    return InvoiceValidator().validate(payload, format_hint)


def validate_invoices(submissions: Iterable[InvoiceSubmission]) -> ValidationReport:
    """
    Convenience function to validate a list of invoices.

    Args:
        submissions: Payloads with their format hints

    Returns:
        ValidationReport with summary and results
    """
    validator = InvoiceValidator()
    return validator.validate_batch(submissions)
