"""
Conversion of legacy flat invoice JSON into the canonical invoice shape.

Legacy payloads look like::

    {
        "invoiceNumber": "INV-001",
        "invoiceDate": "2024-01-10",
        "supplier": {"taxId": "12345678-0001", "name": "Acme", "email": "a@acme.com"},
        "buyer": {...},
        "lineItems": [{"description": "Widget", "quantity": 2, "unitPrice": 500, "totalPrice": 1000}],
        "total": {"subtotal": 1000, "taxTotal": 75, "amount": 1075},
        "currency": "NGN"
    }

Both naming generations are accepted (taxId/tin, phone/telephone,
taxRate/vatRate, taxTotal/vatTotal). Conversion never fails on missing
optional data: defaults are substituted and recorded so the validators and
the caller can see what was filled in.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .config import Settings, get_settings
from .detector import Conversion
from .exceptions import MalformedPayloadError
from .identifiers import IdentifierFactory
from .models import INVOICE_TYPE_CODES

logger = logging.getLogger(__name__)


class _LegacyModel(BaseModel):
    model_config = ConfigDict(extra='ignore', coerce_numbers_to_str=True)


class LegacyAddress(_LegacyModel):
    street: Optional[str] = Field(default=None, validation_alias=AliasChoices('street', 'streetName'))
    city: Optional[str] = Field(default=None, validation_alias=AliasChoices('city', 'cityName'))
    postal_zone: Optional[str] = Field(default=None, validation_alias=AliasChoices('postalZone', 'postalCode'))
    state: Optional[str] = None
    country: Optional[str] = None


class LegacyParty(_LegacyModel):
    tin: Optional[str] = Field(default=None, validation_alias=AliasChoices('taxId', 'tin'))
    name: Optional[str] = None
    address: Union[LegacyAddress, str, None] = None
    email: Optional[str] = None
    telephone: Optional[str] = Field(default=None, validation_alias=AliasChoices('phone', 'telephone'))


class LegacyLineItem(_LegacyModel):
    id: Optional[str] = None
    description: Optional[str] = None
    name: Optional[str] = None
    quantity: Optional[float] = None
    unit_price: Optional[float] = Field(default=None, validation_alias='unitPrice')
    total_price: Optional[float] = Field(default=None, validation_alias='totalPrice')
    tax_rate: Optional[float] = Field(default=None, validation_alias=AliasChoices('taxRate', 'vatRate'))


class LegacyTotal(_LegacyModel):
    subtotal: Optional[float] = None
    tax_total: Optional[float] = Field(default=None, validation_alias=AliasChoices('taxTotal', 'vatTotal'))
    amount: Optional[float] = None


class LegacyInvoice(_LegacyModel):
    """The flat invoice shape submitted by older integrations."""
    business_id: Optional[str] = Field(default=None, validation_alias='businessId')
    invoice_number: Optional[str] = Field(
        default=None, validation_alias=AliasChoices('invoiceNumber', 'invoiceReferenceNumber', 'irn')
    )
    invoice_date: Optional[str] = Field(default=None, validation_alias='invoiceDate')
    due_date: Optional[str] = Field(default=None, validation_alias='dueDate')
    invoice_type_code: Optional[str] = Field(default=None, validation_alias='invoiceTypeCode')
    currency: Optional[str] = None
    note: Optional[str] = None
    supplier: Optional[LegacyParty] = None
    buyer: Optional[LegacyParty] = None
    line_items: Optional[List[LegacyLineItem]] = Field(default=None, validation_alias='lineItems')
    total: Optional[LegacyTotal] = None


class LegacyConverter:
    """Maps legacy invoice JSON onto the canonical invoice shape."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        id_factory: Optional[IdentifierFactory] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.settings = settings or get_settings()
        self.id_factory = id_factory or IdentifierFactory()
        self.today = today or date.today

    def convert(self, data: Dict[str, Any]) -> Conversion:
        """
        Convert a legacy payload.

        Args:
            data: Decoded legacy JSON object

        Returns:
            Conversion holding the canonical invoice dict and applied defaults

        Raises:
            MalformedPayloadError: if a present field has an unusable type
        """
        try:
            legacy = LegacyInvoice.model_validate(data)
        except PydanticValidationError as e:
            raise MalformedPayloadError(f"Legacy invoice payload is malformed: {e}") from e

        settings = self.settings
        defaults: List[str] = []
        warnings: List[str] = []

        business_id = legacy.business_id
        if not business_id:
            business_id = self.id_factory.business_id()
            defaults.append("business_id not provided; generated a new identifier")

        irn = legacy.invoice_number
        if not irn:
            irn = self.id_factory.irn(self.today())
            defaults.append("invoiceNumber not provided; generated a new IRN")

        issue_date = legacy.invoice_date
        if not issue_date:
            issue_date = self.today().isoformat()
            defaults.append(f"invoiceDate not provided; defaulted to {issue_date}")

        type_code = legacy.invoice_type_code
        if not type_code:
            type_code = settings.default_invoice_type_code
            label = INVOICE_TYPE_CODES.get(type_code, 'unknown')
            defaults.append(f"invoice_type_code not provided; defaulted to {type_code} ({label})")

        currency = legacy.currency
        if not currency:
            currency = settings.currency_code
            defaults.append(f"currency not provided; defaulted to {currency}")

        items = legacy.line_items or []
        lines = [
            self._convert_line(item, index, defaults, warnings)
            for index, item in enumerate(items, start=1)
        ]
        rates = [item.tax_rate for item in items]
        if any(rate is None for rate in rates):
            missing = sum(1 for rate in rates if rate is None)
            defaults.append(
                f"tax rate not provided for {missing} line item(s); "
                f"defaulted to {settings.standard_vat_rate}%"
            )
        first_rate = rates[0] if rates and rates[0] is not None else settings.standard_vat_rate

        total = legacy.total or LegacyTotal()
        if legacy.total is None:
            defaults.append("total not provided; monetary totals defaulted to 0")
        subtotal = total.subtotal or 0
        tax_amount = total.tax_total or 0
        amount = total.amount or 0

        invoice: Dict[str, Any] = {
            'business_id': business_id,
            'irn': irn,
            'issue_date': issue_date,
            'due_date': legacy.due_date or None,
            'invoice_type_code': type_code,
            'document_currency_code': currency,
            'tax_currency_code': currency,
            'note': legacy.note,
            'accounting_supplier_party': self._convert_party(
                legacy.supplier or LegacyParty(), 'supplier', defaults
            ),
            'invoice_line': lines,
            'tax_total': [{
                'tax_amount': tax_amount,
                'tax_subtotal': [{
                    'taxable_amount': subtotal,
                    'tax_amount': tax_amount,
                    'tax_category': {
                        'id': settings.tax_category_id,
                        'percent': first_rate,
                    },
                }],
            }],
            'legal_monetary_total': {
                'line_extension_amount': subtotal,
                'tax_exclusive_amount': subtotal,
                'tax_inclusive_amount': amount,
                'payable_amount': amount,
            },
        }
        if legacy.buyer is not None:
            invoice['accounting_customer_party'] = self._convert_party(legacy.buyer, 'buyer', defaults)

        logger.debug("Converted legacy invoice with %d line(s)", len(lines))
        return Conversion(invoice=invoice, defaults=defaults, warnings=warnings)

    def _convert_party(self, party: LegacyParty, role: str, defaults: List[str]) -> Dict[str, Any]:
        address = party.address
        if isinstance(address, str):
            address = LegacyAddress(street=address)
        elif address is None:
            address = LegacyAddress()

        street = address.street
        if not street:
            street = self.settings.default_street
            defaults.append(f"{role} street address not provided; defaulted to '{street}'")
        city = address.city
        if not city:
            city = self.settings.default_city
            defaults.append(f"{role} city not provided; defaulted to '{city}'")

        return {
            'party_name': party.name or '',
            'tin': party.tin or '',
            'email': party.email or '',
            'telephone': party.telephone or None,
            'postal_address': {
                'street_name': street,
                'city_name': city,
                'postal_zone': address.postal_zone,
                'state': address.state,
                'country': address.country or self.settings.country_code,
            },
        }

    def _convert_line(
        self, item: LegacyLineItem, index: int, defaults: List[str], warnings: List[str]
    ) -> Dict[str, Any]:
        quantity = item.quantity if item.quantity is not None else 0
        unit_price = item.unit_price if item.unit_price is not None else 0

        line_amount = item.total_price
        if line_amount is None:
            line_amount = round(quantity * unit_price, 2)
            defaults.append(f"line {index}: totalPrice not provided; computed as {line_amount}")
        elif abs(quantity * unit_price - line_amount) > self.settings.amount_tolerance:
            warnings.append(
                f"line {index}: totalPrice {line_amount} differs from quantity x unitPrice "
                f"({round(quantity * unit_price, 2)})"
            )

        description = item.description or item.name
        if not description:
            description = f"Item {index}"
            defaults.append(f"line {index}: description not provided; defaulted to '{description}'")

        rate = item.tax_rate if item.tax_rate is not None else self.settings.standard_vat_rate
        return {
            'id': item.id or f"line-{index}",
            'invoiced_quantity': quantity,
            'line_extension_amount': line_amount,
            'item': {
                'description': description,
                'name': item.name or description,
                'classified_tax_category': [{'id': self.settings.tax_category_id, 'percent': rate}],
            },
            'price': {
                'price_amount': unit_price,
                'base_quantity': 1,
            },
        }
