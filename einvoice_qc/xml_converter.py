"""
Conversion of UBL-like XML invoices into the canonical invoice shape.

Works on the dict tree produced by ``xml_tree.parse_xml``. Extraction is
driven by field -> element path tables and never raises: missing optional
elements are left out, missing mandatory ones come through as empty strings
or zeros so the validators report them.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from .config import Settings, get_settings
from .detector import Conversion
from .identifiers import IdentifierFactory
from .models import INVOICE_TYPE_CODES
from .xml_tree import as_list, find, number, optional_text, text

logger = logging.getLogger(__name__)


# Optional header fields copied as text when present
HEADER_FIELDS = {
    'due_date': 'DueDate',
    'issue_time': 'IssueTime',
    'note': 'Note',
    'tax_point_date': 'TaxPointDate',
    'accounting_cost': 'AccountingCost',
    'buyer_reference': 'BuyerReference',
    'order_reference': 'OrderReference.ID',
    'actual_delivery_date': 'Delivery.ActualDeliveryDate',
    'payment_terms_note': 'PaymentTerms.Note',
}

PARTY_FIELDS = {
    'party_name': 'PartyName.Name',
    'tin': 'PartyTaxScheme.CompanyID',
    'email': 'Contact.ElectronicMail',
}

ADDRESS_FIELDS = {
    'street_name': 'PostalAddress.StreetName',
    'city_name': 'PostalAddress.CityName',
}

OPTIONAL_ADDRESS_FIELDS = {
    'postal_zone': 'PostalAddress.PostalZone',
    'state': 'PostalAddress.CountrySubentity',
}

# Canonical party key -> UBL party element
PARTY_ELEMENTS = {
    'accounting_customer_party': 'AccountingCustomerParty',
    'payee_party': 'PayeeParty',
    'ship_party': 'Delivery.DeliveryParty',
    'tax_representative_party': 'TaxRepresentativeParty',
}

MONETARY_FIELDS = {
    'line_extension_amount': 'LineExtensionAmount',
    'tax_exclusive_amount': 'TaxExclusiveAmount',
    'tax_inclusive_amount': 'TaxInclusiveAmount',
    'payable_amount': 'PayableAmount',
}


class XmlConverter:
    """Extracts canonical invoice fields from a parsed UBL-like document."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        id_factory: Optional[IdentifierFactory] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.settings = settings or get_settings()
        self.id_factory = id_factory or IdentifierFactory()
        self.today = today or date.today

    def convert(self, tree: Dict[str, Any]) -> Conversion:
        """
        Convert a parsed XML tree.

        Args:
            tree: Dict tree as returned by parse_xml, rooted at the document element

        Returns:
            Conversion holding the canonical invoice dict and applied defaults
        """
        root = find(tree, 'Invoice')
        invoice_node = root if isinstance(root, dict) else tree
        settings = self.settings
        defaults: List[str] = []

        business_id = text(invoice_node, 'BusinessID')
        if not business_id:
            business_id = self.id_factory.business_id()
            defaults.append("BusinessID not provided; generated a new identifier")

        irn = text(invoice_node, 'ID')
        if not irn:
            irn = self.id_factory.irn(self.today())
            defaults.append("ID not provided; generated a new IRN")

        type_code = text(invoice_node, 'InvoiceTypeCode')
        if not type_code:
            type_code = settings.default_invoice_type_code
            label = INVOICE_TYPE_CODES.get(type_code, 'unknown')
            defaults.append(f"InvoiceTypeCode not provided; defaulted to {type_code} ({label})")

        currencies = {}
        for key, element in (('document_currency_code', 'DocumentCurrencyCode'),
                             ('tax_currency_code', 'TaxCurrencyCode')):
            currencies[key] = text(invoice_node, element)
            if not currencies[key]:
                currencies[key] = settings.currency_code
                defaults.append(f"{element} not provided; defaulted to {settings.currency_code}")

        invoice: Dict[str, Any] = {
            'business_id': business_id,
            'irn': irn,
            'issue_date': text(invoice_node, 'IssueDate'),
            'invoice_type_code': type_code,
            **currencies,
            'accounting_supplier_party': self._extract_party(
                find(invoice_node, 'AccountingSupplierParty')
            ),
            'invoice_line': self._extract_lines(invoice_node),
            'tax_total': self._extract_tax_totals(invoice_node, defaults),
            'legal_monetary_total': self._extract_monetary_total(invoice_node),
        }

        for key, path in HEADER_FIELDS.items():
            value = optional_text(invoice_node, path)
            if value is not None:
                invoice[key] = value

        for key, element in PARTY_ELEMENTS.items():
            node = find(invoice_node, element)
            if node is not None:
                invoice[key] = self._extract_party(node)

        period = find(invoice_node, 'InvoicePeriod')
        if period is not None:
            invoice['invoice_delivery_period'] = {
                'start_date': text(period, 'StartDate'),
                'end_date': text(period, 'EndDate'),
            }

        payment_means = as_list(find(invoice_node, 'PaymentMeans'))
        if payment_means:
            invoice['payment_means'] = [
                {
                    'payment_means_code': int(number(node, 'PaymentMeansCode')),
                    'payment_due_date': (
                        text(node, 'PaymentDueDate') or text(invoice_node, 'DueDate')
                    ),
                }
                for node in payment_means
            ]

        logger.debug("Converted XML invoice with %d line(s)", len(invoice['invoice_line']))
        return Conversion(invoice=invoice, defaults=defaults)

    def _extract_party(self, node: Any) -> Dict[str, Any]:
        """Build a party record; an absent element yields an all-empty party."""
        party = find(node, 'Party')
        if party is None:
            party = node

        record: Dict[str, Any] = {key: text(party, path) for key, path in PARTY_FIELDS.items()}
        record['telephone'] = optional_text(party, 'Contact.Telephone')
        address = {key: text(party, path) for key, path in ADDRESS_FIELDS.items()}
        for key, path in OPTIONAL_ADDRESS_FIELDS.items():
            address[key] = optional_text(party, path)
        address['country'] = text(
            party, 'PostalAddress.Country.IdentificationCode', self.settings.country_code
        )
        record['postal_address'] = address
        return record

    def _extract_lines(self, invoice_node: Any) -> List[Dict[str, Any]]:
        lines = []
        for index, line in enumerate(as_list(find(invoice_node, 'InvoiceLine')), start=1):
            lines.append({
                'id': text(line, 'ID', f"line-{index}"),
                'invoiced_quantity': number(line, 'InvoicedQuantity'),
                'line_extension_amount': number(line, 'LineExtensionAmount'),
                'item': {
                    'description': text(line, 'Item.Description'),
                    'name': text(line, 'Item.Name'),
                },
                'price': {
                    'price_amount': number(line, 'Price.PriceAmount'),
                    'base_quantity': number(line, 'Price.BaseQuantity', 1.0),
                },
            })
        return lines

    def _extract_tax_totals(self, invoice_node: Any, defaults: List[str]) -> List[Dict[str, Any]]:
        totals = []
        for tax_total in as_list(find(invoice_node, 'TaxTotal')):
            subtotals = []
            for subtotal in as_list(find(tax_total, 'TaxSubtotal')):
                category_id = text(subtotal, 'TaxCategory.ID')
                if not category_id:
                    category_id = self.settings.tax_category_id
                    defaults.append(f"TaxCategory ID not provided; defaulted to {category_id}")
                if text(subtotal, 'TaxCategory.Percent'):
                    percent = number(subtotal, 'TaxCategory.Percent', self.settings.standard_vat_rate)
                else:
                    percent = self.settings.standard_vat_rate
                    defaults.append(f"TaxCategory Percent not provided; defaulted to {percent}%")
                subtotals.append({
                    'taxable_amount': number(subtotal, 'TaxableAmount'),
                    'tax_amount': number(subtotal, 'TaxAmount'),
                    'tax_category': {'id': category_id, 'percent': percent},
                })
            totals.append({
                'tax_amount': number(tax_total, 'TaxAmount'),
                'tax_subtotal': subtotals,
            })
        return totals

    def _extract_monetary_total(self, invoice_node: Any) -> Dict[str, Any]:
        monetary = find(invoice_node, 'LegalMonetaryTotal')
        if monetary is None:
            return {}
        return {key: number(monetary, path) for key, path in MONETARY_FIELDS.items()}
