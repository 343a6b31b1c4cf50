"""
XML document tree helpers.

Raw XML is parsed with lxml into plain nested dicts (the shape xml2js produces
with ``explicitArray: false``): element keys keep the prefix they were written
with (``cbc:ID``), repeated siblings collapse into lists, text-only elements
become strings, and attributes are stored under ``"$"`` with the element text
under ``"_"``.

Lookups are tolerant: each path segment is tried bare and with every known
namespace prefix, and a missing segment yields ``None`` or a default instead of
raising.
"""

import math
from typing import Any, Dict, List, Optional, Union

from lxml import etree

from .exceptions import MalformedPayloadError


#: Prefixes tried for every element name. UBL documents use cac/cbc, some
#: exporters qualify everything with ubl.
NAMESPACE_PREFIXES = ('cac', 'cbc', 'ubl')

TEXT_KEY = '_'
ATTRIBUTES_KEY = '$'


def parse_xml(data: Union[str, bytes]) -> Dict[str, Any]:
    """
    Parse an XML document into a nested dict tree.

    Args:
        data: UTF-8 XML as str or bytes

    Returns:
        Dict with a single key, the root element name, mapped to its content

    Raises:
        MalformedPayloadError: if the document is not well-formed
    """
    if isinstance(data, str):
        data = data.encode('utf-8')
    if not data.strip():
        raise MalformedPayloadError("XML parsing failed: empty document")
    # lxml parser instances must not be shared between threads
    parser = etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )
    try:
        root = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise MalformedPayloadError(f"XML parsing failed: {e}") from e
    if root is None:
        raise MalformedPayloadError("XML parsing failed: empty document")
    return {_element_key(root): _element_to_node(root)}


def _element_key(element) -> str:
    localname = etree.QName(element).localname
    return f"{element.prefix}:{localname}" if element.prefix else localname


def _attributes(element) -> Dict[str, str]:
    return {etree.QName(name).localname: value for name, value in element.attrib.items()}


def _element_to_node(element) -> Any:
    children = [child for child in element if isinstance(child.tag, str)]
    text = (element.text or '').strip()
    attributes = _attributes(element)

    if not children:
        if attributes:
            node = {ATTRIBUTES_KEY: attributes}
            if text:
                node[TEXT_KEY] = text
            return node
        return text

    node: Dict[str, Any] = {}
    if attributes:
        node[ATTRIBUTES_KEY] = attributes
    for child in children:
        key = _element_key(child)
        value = _element_to_node(child)
        if key not in node:
            node[key] = value
        elif isinstance(node[key], list):
            node[key].append(value)
        else:
            node[key] = [node[key], value]
    return node


def aliases(name: str) -> List[str]:
    """All keys an element name may appear under."""
    return [name] + [f"{prefix}:{name}" for prefix in NAMESPACE_PREFIXES]


def find(node: Any, path: str) -> Any:
    """
    Walk a dotted path through a tree, trying each segment's aliases in order.

    Lists met along the way are narrowed to their first element, so
    ``find(line, 'Item.Name')`` works whether ``Item`` repeats or not.

    Returns:
        The node at the path, or None when any segment is missing
    """
    current = node
    for segment in path.split('.'):
        if isinstance(current, list):
            current = current[0] if current else None
        if not isinstance(current, dict):
            return None
        current = next((current[key] for key in aliases(segment) if key in current), None)
    return current


def text(node: Any, path: str, default: str = '') -> str:
    """Text content at a path, or the default when absent."""
    value = find(node, path)
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get(TEXT_KEY)
    if value is None:
        return default
    value = str(value).strip()
    return value if value else default


def optional_text(node: Any, path: str) -> Optional[str]:
    """Text content at a path, or None when absent or blank."""
    return text(node, path) or None


def number(node: Any, path: str, default: float = 0.0) -> float:
    """Numeric content at a path; non-numeric or missing content yields the default."""
    raw = text(node, path)
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


def as_list(value: Any) -> List[Any]:
    """Normalize a single element or repeated elements to a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]
