"""
Format detection.

Classifies a raw payload, given its declared format hint, into one of three
variants that the validator converts with a dedicated converter each.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

from .exceptions import MalformedPayloadError, UnsupportedFormatError
from .xml_tree import parse_xml

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ('json', 'xml')

#: Top-level keys (and their expected types) that mark a payload as canonical.
CANONICAL_MARKERS = {
    'business_id': str,
    'irn': str,
    'accounting_supplier_party': dict,
    'invoice_line': list,
}


@dataclass(frozen=True)
class CanonicalPayload:
    """A JSON payload already in canonical shape; passed through unchanged."""
    data: Dict[str, Any]
    source_format = 'canonical'


@dataclass(frozen=True)
class LegacyPayload:
    """A flat legacy JSON payload (supplier/buyer/lineItems/total)."""
    data: Dict[str, Any]
    source_format = 'legacy'


@dataclass(frozen=True)
class XmlPayload:
    """A UBL-like XML document, already parsed into a dict tree."""
    tree: Dict[str, Any]
    source_format = 'xml'


InputPayload = Union[CanonicalPayload, LegacyPayload, XmlPayload]


@dataclass
class Conversion:
    """A converted canonical invoice, the defaults applied to build it and any
    advisory findings noticed along the way."""
    invoice: Dict[str, Any]
    defaults: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def is_canonical(data: Dict[str, Any]) -> bool:
    """True when every canonical marker key is present with the expected type."""
    return all(isinstance(data.get(key), kind) for key, kind in CANONICAL_MARKERS.items())


def detect_format(payload: Any, format_hint: str) -> InputPayload:
    """
    Decide the conversion path for a payload.

    Args:
        payload: JSON-compatible value, JSON text, XML text/bytes or a parsed XML tree
        format_hint: 'json' or 'xml' (case-insensitive)

    Returns:
        The classified payload variant

    Raises:
        UnsupportedFormatError: for any other hint
        MalformedPayloadError: if the payload cannot be decoded
    """
    hint = format_hint.strip().lower() if isinstance(format_hint, str) else format_hint
    if hint not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(format_hint)

    if hint == 'xml':
        if isinstance(payload, dict):
            return XmlPayload(tree=payload)
        if isinstance(payload, (str, bytes)):
            return XmlPayload(tree=parse_xml(payload))
        raise MalformedPayloadError(
            f"XML payload must be a string or a parsed tree, got {type(payload).__name__}"
        )

    data = _decode_json(payload)
    if is_canonical(data):
        logger.debug("Detected canonical invoice payload")
        return CanonicalPayload(data=data)
    logger.debug("Detected legacy invoice payload")
    return LegacyPayload(data=data)


def _decode_json(payload: Any) -> Dict[str, Any]:
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise MalformedPayloadError(f"JSON parsing failed: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedPayloadError(
            f"Invoice payload must be a JSON object, got {type(payload).__name__}"
        )
    return payload
