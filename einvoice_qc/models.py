"""
Data models for canonical e-invoices and validation results.

The canonical schema mirrors the FIRS UBL invoice format: every accepted input
format (canonical JSON, legacy JSON, UBL-like XML) is converted to this shape
before validation. Field-level constraints live here; cross-field invariants
(monetary consistency, date ordering) are checked in ``structural.py`` so they
run even when individual fields fail.
"""

import math
import re
import uuid
from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from .config import DEFAULT_COUNTRY_CODE, DEFAULT_CURRENCY_CODE


# Invoice Type Codes with descriptions
INVOICE_TYPE_CODES = {
    '380': 'Commercial Invoice',
    '381': 'Credit Note',
    '383': 'Debit Note',
    '384': 'Corrected Invoice',
    '389': 'Self-billed Invoice',
    '390': 'Delcredere Invoice',
    '393': 'Factored Invoice',
    '394': 'Consignment Invoice',
    '395': 'Factored Credit Note',
    '396': 'Commissioned Invoice',
}

# Payment Means Codes
PAYMENT_MEANS_CODES = {
    10: 'In Cash',
    20: 'Cheque',
    30: 'Credit Transfer',
    31: 'Debit Transfer',
    42: 'Payment to bank account',
    43: 'Credit Card',
    44: 'Debit Card',
    45: 'Bank Card',
    46: 'Electronic Fund Transfer',
    47: 'Automated Clearing House',
    48: 'Online Payment Service',
}

TIN_PATTERN = re.compile(r'[0-9]{8}-[0-9]{4}')
TIN_FORMAT_EXAMPLE = '12345678-1234'
EMAIL_PATTERN = re.compile(r'[^\s@]+@[^\s@]+\.[^\s@]+')
TELEPHONE_PATTERN = re.compile(r'\+[0-9]{10,15}')
ISO_DATE_PATTERN = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}')
ISO_TIME_PATTERN = re.compile(r'[0-9]{2}:[0-9]{2}:[0-9]{2}')


def _required(label: str) -> AfterValidator:
    """Reject blank strings with a '<label> is required' message."""
    def check(value: str) -> str:
        if not value.strip():
            raise PydanticCustomError('missing_value', '{label} is required', {'label': label})
        return value
    return AfterValidator(check)


def _check_iso_date(value: str) -> str:
    if not ISO_DATE_PATTERN.fullmatch(value):
        raise PydanticCustomError('date_format', 'Date must be in YYYY-MM-DD format')
    try:
        date.fromisoformat(value)
    except ValueError:
        raise PydanticCustomError('date_value', 'Date must be a valid calendar date')
    return value


def _check_two_decimals(value: float) -> float:
    if not math.isfinite(value):
        raise PydanticCustomError('finite_number', 'Amount must be a finite number')
    cents = value * 100
    if abs(cents - round(cents)) > 1e-6:
        raise PydanticCustomError('decimal_places', 'Amount must have at most 2 decimal places')
    return value


def _check_currency(value: str) -> str:
    if len(value) != 3:
        raise PydanticCustomError('currency_code', 'Currency code must be 3 letters')
    return value


IsoDate = Annotated[str, AfterValidator(_check_iso_date)]
Amount = Annotated[float, Field(ge=0), AfterValidator(_check_two_decimals)]
CurrencyCode = Annotated[str, AfterValidator(_check_currency)]


def _context_default(info: ValidationInfo, attribute: str, fallback: str) -> str:
    """Read an operating-country default from the validation context settings."""
    settings = (info.context or {}).get('settings')
    return getattr(settings, attribute, fallback) if settings is not None else fallback


class PostalAddress(BaseModel):
    """Postal address of a party."""
    street_name: Annotated[str, _required('Street name')] = Field(description="Street and number")
    city_name: Annotated[str, _required('City name')] = Field(description="City")
    postal_zone: Optional[str] = Field(default=None, description="Postal code")
    lga: Optional[str] = Field(default=None, description="Local government area")
    state: Optional[str] = Field(default=None, description="State")
    country: str = Field(default=DEFAULT_COUNTRY_CODE, description="2-letter ISO country code")

    @model_validator(mode='before')
    @classmethod
    def fill_country(cls, data: Any, info: ValidationInfo) -> Any:
        if isinstance(data, dict) and not data.get('country'):
            data = dict(data, country=_context_default(info, 'country_code', DEFAULT_COUNTRY_CODE))
        return data

    @field_validator('country')
    @classmethod
    def validate_country(cls, v):
        if len(v) != 2:
            raise PydanticCustomError('country_code', 'Country must be 2-letter ISO code')
        return v


class Party(BaseModel):
    """A supplier, customer or other invoice party."""
    party_name: Annotated[str, _required('Party name')] = Field(description="Registered name")
    tin: str = Field(description="Tax identification number, 12345678-1234")
    email: str = Field(description="Contact email")
    telephone: Optional[str] = Field(default=None, description="International phone number")
    business_description: Optional[str] = Field(default=None, description="Business description")
    postal_address: PostalAddress

    @field_validator('tin')
    @classmethod
    def validate_tin(cls, v):
        if not v.strip():
            raise PydanticCustomError('missing_value', 'TIN is required')
        if not TIN_PATTERN.fullmatch(v):
            raise PydanticCustomError(
                'tin_format', 'TIN must be in format: {example}', {'example': TIN_FORMAT_EXAMPLE}
            )
        return v

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if not v.strip():
            raise PydanticCustomError('missing_value', 'Email is required')
        if not EMAIL_PATTERN.fullmatch(v):
            raise PydanticCustomError('email_format', 'Invalid email format')
        return v

    @field_validator('telephone')
    @classmethod
    def validate_telephone(cls, v):
        if v is not None and not TELEPHONE_PATTERN.fullmatch(v):
            raise PydanticCustomError(
                'telephone_format', 'Telephone must start with + and contain 10-15 digits'
            )
        return v


class DocumentReference(BaseModel):
    """Reference to another invoice or document."""
    irn: Annotated[str, _required('IRN')]
    issue_date: IsoDate


class InvoiceDeliveryPeriod(BaseModel):
    start_date: IsoDate
    end_date: IsoDate


class PaymentMeans(BaseModel):
    payment_means_code: int = Field(ge=1, description="Payment means code, see PAYMENT_MEANS_CODES")
    payment_due_date: IsoDate


class AllowanceCharge(BaseModel):
    charge_indicator: bool = Field(description="True for a charge, False for an allowance")
    amount: Amount


class TaxCategory(BaseModel):
    id: Annotated[str, _required('Tax category ID')]
    percent: float = Field(ge=0, le=100, description="Tax rate in percent")


class TaxSubtotal(BaseModel):
    taxable_amount: Amount
    tax_amount: Amount
    tax_category: TaxCategory


class TaxTotal(BaseModel):
    tax_amount: Amount
    tax_subtotal: List[TaxSubtotal]

    @field_validator('tax_subtotal')
    @classmethod
    def validate_not_empty(cls, v):
        if not v:
            raise PydanticCustomError('too_short', 'At least one tax subtotal is required')
        return v


class LegalMonetaryTotal(BaseModel):
    """Document-level monetary totals."""
    line_extension_amount: Amount
    tax_exclusive_amount: Amount
    tax_inclusive_amount: Amount
    payable_amount: Amount


class InvoiceItem(BaseModel):
    description: Annotated[str, _required('Item description')]
    name: Annotated[str, _required('Item name')]
    sellers_item_identification: Optional[str] = None
    buyers_item_identification: Optional[str] = None
    standard_item_identification: Optional[str] = None
    classified_tax_category: Optional[List[TaxCategory]] = None


class Price(BaseModel):
    price_amount: Amount
    base_quantity: Optional[float] = Field(default=None, ge=0.01)


class InvoiceLine(BaseModel):
    """A single invoice line."""
    id: Annotated[str, _required('Line ID')]
    invoiced_quantity: float = Field(ge=0, description="Quantity invoiced")
    line_extension_amount: Amount
    item: InvoiceItem
    price: Price
    allowance_charge: Optional[List[AllowanceCharge]] = None


class CanonicalInvoice(BaseModel):
    """The normalized invoice every input format converges to."""

    # Mandatory fields
    business_id: str = Field(description="Business ID (UUID)")
    irn: str = Field(description="Invoice Reference Number")
    issue_date: IsoDate
    invoice_type_code: str = Field(description="Document type, see INVOICE_TYPE_CODES")
    document_currency_code: CurrencyCode = DEFAULT_CURRENCY_CODE
    tax_currency_code: CurrencyCode = DEFAULT_CURRENCY_CODE
    accounting_supplier_party: Party
    tax_total: List[TaxTotal]
    legal_monetary_total: LegalMonetaryTotal
    invoice_line: List[InvoiceLine]

    # Optional fields
    due_date: Optional[IsoDate] = None
    issue_time: Optional[str] = None
    payment_status: Optional[Literal['PENDING', 'PAID', 'PARTIAL']] = 'PENDING'
    note: Optional[str] = Field(default=None, max_length=1000)
    tax_point_date: Optional[IsoDate] = None
    accounting_cost: Optional[str] = Field(default=None, max_length=100)
    buyer_reference: Optional[str] = Field(default=None, max_length=100)
    invoice_delivery_period: Optional[InvoiceDeliveryPeriod] = None
    order_reference: Optional[str] = Field(default=None, max_length=100)
    billing_reference: Optional[List[DocumentReference]] = None
    dispatch_document_reference: Optional[DocumentReference] = None
    receipt_document_reference: Optional[DocumentReference] = None
    originator_document_reference: Optional[DocumentReference] = None
    contract_document_reference: Optional[List[DocumentReference]] = None
    additional_document_reference: Optional[List[DocumentReference]] = None
    accounting_customer_party: Optional[Party] = None
    payee_party: Optional[Party] = None
    bill_party: Optional[Party] = None
    ship_party: Optional[Party] = None
    tax_representative_party: Optional[Party] = None
    actual_delivery_date: Optional[IsoDate] = None
    payment_means: Optional[List[PaymentMeans]] = None
    payment_terms_note: Optional[str] = Field(default=None, max_length=500)
    allowance_charge: Optional[List[AllowanceCharge]] = None

    @model_validator(mode='before')
    @classmethod
    def fill_currencies(cls, data: Any, info: ValidationInfo) -> Any:
        """Apply the operating currency to absent currency codes."""
        if isinstance(data, dict):
            currency = _context_default(info, 'currency_code', DEFAULT_CURRENCY_CODE)
            data = dict(data)
            for key in ('document_currency_code', 'tax_currency_code'):
                if data.get(key) is None:
                    data[key] = currency
        return data

    @field_validator('business_id')
    @classmethod
    def validate_business_id(cls, v):
        if not v.strip():
            raise PydanticCustomError('missing_value', 'Business ID is required')
        try:
            uuid.UUID(v)
        except ValueError:
            raise PydanticCustomError('uuid_format', 'Business ID must be a valid UUID')
        return v

    @field_validator('irn')
    @classmethod
    def validate_irn(cls, v):
        if not v.strip():
            raise PydanticCustomError('missing_value', 'IRN (Invoice Reference Number) is required')
        if len(v) > 50:
            raise PydanticCustomError('too_long', 'IRN cannot exceed 50 characters')
        return v

    @field_validator('invoice_type_code')
    @classmethod
    def validate_invoice_type_code(cls, v):
        if not re.fullmatch(r'[0-9]{3}', v):
            raise PydanticCustomError('type_code_format', 'Invoice type code must be a 3-digit number')
        if v not in INVOICE_TYPE_CODES:
            raise PydanticCustomError('type_code_value', 'Invalid invoice type code')
        return v

    @field_validator('issue_time')
    @classmethod
    def validate_issue_time(cls, v):
        if v is not None and not ISO_TIME_PATTERN.fullmatch(v):
            raise PydanticCustomError('time_format', 'Issue time must be in HH:MM:SS format')
        return v

    @field_validator('invoice_line', 'tax_total')
    @classmethod
    def validate_not_empty(cls, v, info: ValidationInfo):
        if not v:
            label = 'invoice line' if info.field_name == 'invoice_line' else 'tax total'
            raise PydanticCustomError(
                'too_short', 'At least one {label} is required', {'label': label}
            )
        return v


class CamelModel(BaseModel):
    """Base for result models exchanged with the web frontend (camelCase JSON)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ValidationFindings(CamelModel):
    """Errors and warnings produced by a single validation pass."""
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    field_errors: Dict[str, List[str]] = Field(default_factory=dict)

    def add_error(self, message: str, field: Optional[str] = None) -> None:
        self.errors.append(message)
        if field is not None:
            self.field_errors.setdefault(field, []).append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    @property
    def ok(self) -> bool:
        return not self.errors


class ValidationResult(CamelModel):
    """Outcome of validating one invoice payload."""
    is_valid: bool = Field(description="True when no pass reported an error")
    errors: List[str] = Field(default_factory=list, description="Structural, business and compliance errors")
    warnings: List[str] = Field(default_factory=list, description="Advisory findings, never affect is_valid")
    normalized_invoice: Optional[Dict[str, Any]] = Field(
        default=None, description="Canonical invoice, present whenever conversion succeeded"
    )
    field_errors: Dict[str, List[str]] = Field(
        default_factory=dict, description="Structural error messages grouped by field path"
    )
    business_rule_violations: List[str] = Field(default_factory=list)
    compliance_issues: List[str] = Field(default_factory=list)
    source_format: Optional[Literal['canonical', 'legacy', 'xml']] = Field(
        default=None, description="Detected input shape"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "isValid": False,
                "errors": [
                    "accounting_supplier_party.tin: TIN must be in format: 12345678-1234",
                    "Invalid supplier TIN (tax ID) format: '123-456'. Expected format: 12345678-1234",
                ],
                "warnings": ["invoice_type_code not provided; defaulted to 381 (Credit Note)"],
                "normalizedInvoice": {"irn": "INV-20240110-7KQ2M9XA"},
                "fieldErrors": {
                    "accounting_supplier_party.tin": ["TIN must be in format: 12345678-1234"]
                },
                "businessRuleViolations": [
                    "Invalid supplier TIN (tax ID) format: '123-456'. Expected format: 12345678-1234"
                ],
                "complianceIssues": [],
                "sourceFormat": "legacy",
            }
        }
    )


class InvoiceSubmission(CamelModel):
    """A raw invoice payload together with its declared format."""
    payload: Any = Field(description="JSON object, JSON text, or XML text")
    format: str = Field(default='json', description="Format hint: json or xml")
    source: Optional[str] = Field(default=None, description="Where the payload came from")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "payload": {
                    "invoiceNumber": "INV-001",
                    "supplier": {"taxId": "12345678-0001", "name": "Acme", "email": "a@acme.com"},
                    "lineItems": [
                        {"description": "Widget", "quantity": 2, "unitPrice": 500, "totalPrice": 1000}
                    ],
                    "total": {"subtotal": 1000, "taxTotal": 75, "amount": 1075},
                },
                "format": "json",
            }
        }
    )


class InvoiceValidationResult(CamelModel):
    """Validation result for one invoice of a batch."""
    invoice_id: str = Field(description="IRN of the invoice, or UNKNOWN")
    source: Optional[str] = Field(default=None, description="File name or batch position")
    result: ValidationResult


class ValidationSummary(CamelModel):
    """Summary statistics for batch validation."""
    total_invoices: int = Field(description="Total number of invoices processed")
    valid_invoices: int = Field(description="Number of valid invoices")
    invalid_invoices: int = Field(description="Number of invalid invoices")
    error_counts: Dict[str, int] = Field(default_factory=dict, description="Count of each error type")


class ValidationReport(CamelModel):
    """Complete validation report with summary and individual results."""
    summary: ValidationSummary
    results: List[InvoiceValidationResult]
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
