"""Shared fixtures for e-invoice QC tests."""

import copy
from datetime import date
from typing import Any, Dict

import pytest

from einvoice_qc.config import Settings
from einvoice_qc.identifiers import FixedIdentifierFactory
from einvoice_qc.validator import InvoiceValidator

TODAY = date(2024, 6, 30)
BUSINESS_ID = "6f1c2a9e-3b4d-4c5e-8f70-1a2b3c4d5e6f"
FIXED_IRN = "INV-20240630-TEST0001"

_CANONICAL_INVOICE: Dict[str, Any] = {
    "business_id": BUSINESS_ID,
    "irn": "INV-2024-0001",
    "issue_date": "2024-06-01",
    "due_date": "2024-07-31",
    "invoice_type_code": "380",
    "document_currency_code": "NGN",
    "tax_currency_code": "NGN",
    "accounting_supplier_party": {
        "party_name": "Acme Supplies Ltd",
        "tin": "12345678-0001",
        "email": "billing@acme.ng",
        "telephone": "+2348012345678",
        "postal_address": {
            "street_name": "12 Marina Road",
            "city_name": "Lagos",
            "country": "NG",
        },
    },
    "accounting_customer_party": {
        "party_name": "Globex Nigeria",
        "tin": "87654321-0002",
        "email": "accounts@globex.ng",
        "postal_address": {
            "street_name": "4 Adeola Odeku Street",
            "city_name": "Lagos",
            "country": "NG",
        },
    },
    "invoice_line": [
        {
            "id": "1",
            "invoiced_quantity": 2,
            "line_extension_amount": 1000.0,
            "item": {"description": "Office chair", "name": "Chair"},
            "price": {"price_amount": 500.0, "base_quantity": 1},
        },
        {
            "id": "2",
            "invoiced_quantity": 1,
            "line_extension_amount": 250.0,
            "item": {"description": "Desk lamp", "name": "Lamp"},
            "price": {"price_amount": 250.0},
        },
    ],
    "tax_total": [
        {
            "tax_amount": 93.75,
            "tax_subtotal": [
                {
                    "taxable_amount": 1250.0,
                    "tax_amount": 93.75,
                    "tax_category": {"id": "VAT", "percent": 7.5},
                }
            ],
        }
    ],
    "legal_monetary_total": {
        "line_extension_amount": 1250.0,
        "tax_exclusive_amount": 1250.0,
        "tax_inclusive_amount": 1343.75,
        "payable_amount": 1343.75,
    },
}

_LEGACY_INVOICE: Dict[str, Any] = {
    "supplier": {"taxId": "12345678-0001", "name": "Acme", "email": "a@acme.com"},
    "lineItems": [{"quantity": 2, "unitPrice": 500, "totalPrice": 1000}],
    "total": {"subtotal": 1000, "taxTotal": 75, "amount": 1075},
}

XML_INVOICE = f"""<?xml version="1.0" encoding="UTF-8"?>
<Invoice xmlns="urn:oasis:names:specification:ubl:schema:xsd:Invoice-2"
         xmlns:cac="urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2"
         xmlns:cbc="urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2">
  <cbc:BusinessID>{BUSINESS_ID}</cbc:BusinessID>
  <cbc:ID>INV-XML-0001</cbc:ID>
  <cbc:IssueDate>2024-06-01</cbc:IssueDate>
  <cbc:DueDate>2024-07-31</cbc:DueDate>
  <cbc:InvoiceTypeCode>380</cbc:InvoiceTypeCode>
  <cbc:Note>Thank you for your business</cbc:Note>
  <cbc:DocumentCurrencyCode>NGN</cbc:DocumentCurrencyCode>
  <cbc:TaxCurrencyCode>NGN</cbc:TaxCurrencyCode>
  <cac:AccountingSupplierParty>
    <cac:Party>
      <cac:PartyName><cbc:Name>Acme Supplies Ltd</cbc:Name></cac:PartyName>
      <cac:PostalAddress>
        <cbc:StreetName>12 Marina Road</cbc:StreetName>
        <cbc:CityName>Lagos</cbc:CityName>
        <cbc:PostalZone>101241</cbc:PostalZone>
        <cac:Country><cbc:IdentificationCode>NG</cbc:IdentificationCode></cac:Country>
      </cac:PostalAddress>
      <cac:PartyTaxScheme><cbc:CompanyID>12345678-0001</cbc:CompanyID></cac:PartyTaxScheme>
      <cac:Contact>
        <cbc:Telephone>+2348012345678</cbc:Telephone>
        <cbc:ElectronicMail>billing@acme.ng</cbc:ElectronicMail>
      </cac:Contact>
    </cac:Party>
  </cac:AccountingSupplierParty>
  <cac:AccountingCustomerParty>
    <cac:Party>
      <cac:PartyName><cbc:Name>Globex Nigeria</cbc:Name></cac:PartyName>
      <cac:PostalAddress>
        <cbc:StreetName>4 Adeola Odeku Street</cbc:StreetName>
        <cbc:CityName>Lagos</cbc:CityName>
      </cac:PostalAddress>
      <cac:PartyTaxScheme><cbc:CompanyID>87654321-0002</cbc:CompanyID></cac:PartyTaxScheme>
      <cac:Contact><cbc:ElectronicMail>accounts@globex.ng</cbc:ElectronicMail></cac:Contact>
    </cac:Party>
  </cac:AccountingCustomerParty>
  <cac:PaymentMeans>
    <cbc:PaymentMeansCode>30</cbc:PaymentMeansCode>
  </cac:PaymentMeans>
  <cac:TaxTotal>
    <cbc:TaxAmount currencyID="NGN">93.75</cbc:TaxAmount>
    <cac:TaxSubtotal>
      <cbc:TaxableAmount currencyID="NGN">1250.00</cbc:TaxableAmount>
      <cbc:TaxAmount currencyID="NGN">93.75</cbc:TaxAmount>
      <cac:TaxCategory>
        <cbc:ID>VAT</cbc:ID>
        <cbc:Percent>7.5</cbc:Percent>
      </cac:TaxCategory>
    </cac:TaxSubtotal>
  </cac:TaxTotal>
  <cac:LegalMonetaryTotal>
    <cbc:LineExtensionAmount currencyID="NGN">1250.00</cbc:LineExtensionAmount>
    <cbc:TaxExclusiveAmount currencyID="NGN">1250.00</cbc:TaxExclusiveAmount>
    <cbc:TaxInclusiveAmount currencyID="NGN">1343.75</cbc:TaxInclusiveAmount>
    <cbc:PayableAmount currencyID="NGN">1343.75</cbc:PayableAmount>
  </cac:LegalMonetaryTotal>
  <cac:InvoiceLine>
    <cbc:ID>1</cbc:ID>
    <cbc:InvoicedQuantity unitCode="EA">2</cbc:InvoicedQuantity>
    <cbc:LineExtensionAmount currencyID="NGN">1000.00</cbc:LineExtensionAmount>
    <cac:Item>
      <cbc:Description>Office chair</cbc:Description>
      <cbc:Name>Chair</cbc:Name>
    </cac:Item>
    <cac:Price><cbc:PriceAmount currencyID="NGN">500.00</cbc:PriceAmount></cac:Price>
  </cac:InvoiceLine>
  <cac:InvoiceLine>
    <cbc:ID>2</cbc:ID>
    <cbc:InvoicedQuantity unitCode="EA">1</cbc:InvoicedQuantity>
    <cbc:LineExtensionAmount currencyID="NGN">250.00</cbc:LineExtensionAmount>
    <cac:Item>
      <cbc:Description>Desk lamp</cbc:Description>
      <cbc:Name>Lamp</cbc:Name>
    </cac:Item>
    <cac:Price><cbc:PriceAmount currencyID="NGN">250.00</cbc:PriceAmount></cac:Price>
  </cac:InvoiceLine>
</Invoice>
"""


@pytest.fixture
def settings() -> Settings:
    """Default settings, isolated from any local .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def id_factory() -> FixedIdentifierFactory:
    return FixedIdentifierFactory(business_id=BUSINESS_ID, irn=FIXED_IRN)


@pytest.fixture
def validator(settings: Settings, id_factory: FixedIdentifierFactory) -> InvoiceValidator:
    """Validator with a fixed clock and deterministic identifiers."""
    return InvoiceValidator(settings, id_factory=id_factory, today=lambda: TODAY)


@pytest.fixture
def canonical_invoice() -> Dict[str, Any]:
    """A canonical invoice that passes every validation pass."""
    return copy.deepcopy(_CANONICAL_INVOICE)


@pytest.fixture
def legacy_invoice() -> Dict[str, Any]:
    """Minimal legacy invoice: supplier, one line and totals only."""
    return copy.deepcopy(_LEGACY_INVOICE)


@pytest.fixture
def xml_invoice() -> str:
    """A UBL invoice equivalent to the canonical_invoice fixture."""
    return XML_INVOICE
