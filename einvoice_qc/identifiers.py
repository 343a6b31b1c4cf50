"""
Identifier generation for invoices that arrive without a business ID or IRN.
"""

import secrets
import string
import uuid
from datetime import date


_IRN_ALPHABET = string.ascii_uppercase + string.digits


class IdentifierFactory:
    """Generates business IDs and invoice reference numbers.

    Subclass or replace this in tests to make synthesized identifiers
    deterministic.
    """

    def business_id(self) -> str:
        """Return a fresh UUID4 string."""
        return str(uuid.uuid4())

    def irn(self, on: date) -> str:
        """Return an IRN of the form INV-YYYYMMDD-XXXXXXXX."""
        suffix = "".join(secrets.choice(_IRN_ALPHABET) for _ in range(8))
        return f"INV-{on.strftime('%Y%m%d')}-{suffix}"


class FixedIdentifierFactory(IdentifierFactory):
    """Always hands out the same identifiers."""

    def __init__(self, business_id: str, irn: str):
        self._business_id = business_id
        self._irn = irn

    def business_id(self) -> str:
        return self._business_id

    def irn(self, on: date) -> str:
        return self._irn
