# einvoice_qc/__init__.py
"""
E-Invoice QC Service - Normalize and validate invoices for FIRS e-invoicing.
"""

__version__ = "1.0.0"

from .validator import validate_invoice, validate_invoices, InvoiceValidator
from .detector import detect_format
from .exceptions import ConversionError, UnsupportedFormatError, MalformedPayloadError
from .config import Settings, get_settings
from .identifiers import IdentifierFactory, FixedIdentifierFactory
from .models import (
    CanonicalInvoice,
    Party,
    InvoiceLine,
    TaxTotal,
    LegalMonetaryTotal,
    InvoiceSubmission,
    ValidationResult,
    ValidationReport,
    ValidationSummary,
    InvoiceValidationResult,
    INVOICE_TYPE_CODES,
    PAYMENT_MEANS_CODES,
)

__all__ = [
    'validate_invoice',
    'validate_invoices',
    'InvoiceValidator',
    'detect_format',
    'ConversionError',
    'UnsupportedFormatError',
    'MalformedPayloadError',
    'Settings',
    'get_settings',
    'IdentifierFactory',
    'FixedIdentifierFactory',
    'CanonicalInvoice',
    'Party',
    'InvoiceLine',
    'TaxTotal',
    'LegalMonetaryTotal',
    'InvoiceSubmission',
    'ValidationResult',
    'ValidationReport',
    'ValidationSummary',
    'InvoiceValidationResult',
    'INVOICE_TYPE_CODES',
    'PAYMENT_MEANS_CODES',
]
