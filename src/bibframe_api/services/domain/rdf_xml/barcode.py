#!/usr/bin/env python3
"""Barcode structure repair for bf:Item holdings.

Item barcodes arrive through several editor paths (typed field, imported
holdings, copy/paste) and not all of them produce the canonical shape::

    <bf:identifiedBy>
      <bf:Barcode>
        <rdf:value>39031031234567</rdf:value>
      </bf:Barcode>
    </bf:identifiedBy>

:func:`repair_barcodes` runs a fixed sequence of string and tree passes.
Each pass that re-parses falls back to the last good result instead of
raising, so a document always comes out the other end.
"""

import logging
import re

from .nodes import XmlElement, XmlParseError, XmlText, escape_text, parse_document, serialize
from .namespaces import BF

logger = logging.getLogger(__name__)

# bf:Barcode carrying its value as an attribute instead of a child element
_ATTRIBUTE_VALUE = re.compile(r'<bf:Barcode\b([^>]*?)\s+rdf:value="([^"]*)"([^>]*?)(/?)>')

_ARTIFACTS = [
    # Placeholder divs left by browser-side element construction
    re.compile(r"<div\b[^>]*/>"),
    re.compile(r"<div\b[^>]*>.*?</div>", re.DOTALL),
    re.compile(r"<rdf:value\s*/>"),
    re.compile(r"<rdf:value>\s*</rdf:value>"),
    re.compile(r"<bf:Barcode(?:\s[^>]*)?/>"),
    re.compile(r"<bf:Barcode(?:\s[^>]*)?>\s*</bf:Barcode>"),
    re.compile(r"<bf:identifiedBy\s*/>"),
    re.compile(r"<bf:identifiedBy>\s*</bf:identifiedBy>"),
]

_ITEM_BLOCK = re.compile(r"(<bf:Item\b[^>]*(?<!/)>)(.*?)(</bf:Item>)", re.DOTALL)
_BARCODE_VALUE = re.compile(r"<bf:Barcode\b[^>]*>.*?<rdf:value\b[^>]*>([^<]*)</rdf:value>", re.DOTALL)
_BARCODE_IDENTIFIER = re.compile(
    r"<bf:identifiedBy\b[^>]*>\s*<bf:Barcode\b.*?</bf:Barcode>\s*</bf:identifiedBy>", re.DOTALL
)
_BARCODE_ELEMENT = re.compile(r"<bf:Barcode\b(?:[^>]*/>|.*?</bf:Barcode>)", re.DOTALL)
_ITEM_OF = re.compile(r"<bf:itemOf\b(?:[^>]*/>|[^>]*>.*?</bf:itemOf>)", re.DOTALL)
_ABOUT = re.compile(r'rdf:about="([^"]*)"')

_EMPTY_VALUE = re.compile(r"<rdf:value\s*/>|<rdf:value>\s*</rdf:value>")


def barcode_block(escaped_value: str) -> str:
    return (
        "<bf:identifiedBy><bf:Barcode><rdf:value>"
        f"{escaped_value}"
        "</rdf:value></bf:Barcode></bf:identifiedBy>"
    )


def fix_attribute_values(xml: str) -> str:
    """Move ``rdf:value`` attributes on bf:Barcode into a child element."""

    def _replace(match: re.Match) -> str:
        before, value, after, self_closing = match.groups()
        opening = f"<bf:Barcode{before}{after}>"
        child = f"<rdf:value>{value}</rdf:value>"
        return f"{opening}{child}</bf:Barcode>" if self_closing else f"{opening}{child}"

    return _ATTRIBUTE_VALUE.sub(_replace, xml)


def strip_artifacts(xml: str) -> str:
    """Remove known-bad fragments: stray divs, empty values, empty barcodes."""
    previous = None
    # Removing an empty Barcode can empty its identifiedBy, so repeat until stable
    while previous != xml:
        previous = xml
        for pattern in _ARTIFACTS:
            xml = pattern.sub("", xml)
    return xml


def rebuild_item_blocks(xml: str, focused_barcode: str | None = None) -> str:
    """Rewrite every Item that still holds a Barcode with one canonical barcode.

    The barcode text comes from the Item's own rdf:value, else from the
    barcode input currently focused in the editor. The first bf:itemOf link
    is kept and duplicates are dropped.
    """

    def _rebuild(match: re.Match) -> str:
        start, body, end = match.groups()
        if "<bf:Barcode" not in body:
            return match.group(0)

        value_match = _BARCODE_VALUE.search(body)
        value = value_match.group(1).strip() if value_match else ""
        if not value and focused_barcode:
            value = escape_text(focused_barcode.strip())

        item_of = _ITEM_OF.search(body)
        body = _BARCODE_IDENTIFIER.sub("", body)
        body = _BARCODE_ELEMENT.sub("", body)
        body = _ITEM_OF.sub("", body)

        about = _ABOUT.search(start)
        logger.debug(f"Rebuilt barcode for Item {about.group(1) if about else '(no URI)'}")

        parts = [start, body]
        if value:
            parts.append(barcode_block(value))
        if item_of:
            parts.append(item_of.group(0))
        parts.append(end)
        return "".join(parts)

    return _ITEM_BLOCK.sub(_rebuild, xml)


def find_items(root: XmlElement) -> list[XmlElement]:
    """Find Item elements by tag, as bf:hasItem objects, and by rdf:type."""
    found: list[XmlElement] = []

    def _add(element: XmlElement) -> None:
        if not any(element is existing for existing in found):
            found.append(element)

    for element in root.iter("bf:Item"):
        _add(element)

    for element in root.iter():
        if element.tag == "bf:hasItem":
            for obj in element.element_children():
                _add(obj)
        if element.tag == "rdf:Description":
            for type_el in element.find_all("rdf:type"):
                if type_el.get("rdf:resource") == f"{BF}Item":
                    _add(element)
    return found


def _barcode_value(barcode: XmlElement) -> str | None:
    value = barcode.find("rdf:value")
    text = value.text_content() if value is not None else barcode.text_content()
    text = text.strip()
    return text or None


def repair_item_barcodes(root: XmlElement, focused_barcode: str | None = None) -> int:
    """Tree pass: leave each barcode-holding Item with one well-formed barcode.

    Returns:
        Number of Items repaired
    """
    repaired = 0
    for item in find_items(root):
        barcodes = list(item.iter_descendants("bf:Barcode"))
        if not barcodes:
            continue

        value = None
        for barcode in barcodes:
            value = value or _barcode_value(barcode)
        value = value or (focused_barcode.strip() if focused_barcode else None)

        for barcode in barcodes:
            holder = barcode.parent
            barcode.detach()
            if holder is not None and holder is not item and holder.tag == "bf:identifiedBy" and not holder.element_children():
                holder.detach()

        if value:
            identified_by = item.append(XmlElement("bf:identifiedBy"))
            identified_by.append(XmlElement("bf:Barcode")).append(XmlElement("rdf:value")).append(XmlText(value))
        repaired += 1
    return repaired


def repair_barcodes(root: XmlElement, focused_barcode: str | None = None) -> XmlElement:
    """Run the full barcode repair sequence over a document.

    1. string fixes: attribute-borne values, known artifacts
    2. string rebuild of every Item still holding a Barcode
    3. re-parse, falling back to the untouched original
    4. tree pass over Items found by several lookup strategies
    5. final removal of empty rdf:value and one more re-parse

    Args:
        root: Document root (normally rdf:RDF)
        focused_barcode: Barcode typed in the editor, used only when an Item
            has a Barcode element without a value

    Returns:
        The repaired document; never raises on malformed intermediate text
    """
    original = serialize(root)

    xml = strip_artifacts(fix_attribute_values(original))
    xml = rebuild_item_blocks(xml, focused_barcode)

    try:
        document = parse_document(xml)
    except XmlParseError as e:
        logger.warning(f"Barcode string repair produced invalid XML, using original: {e}")
        try:
            document = parse_document(original)
        except XmlParseError as original_error:
            logger.error(f"Original document does not re-parse, skipping barcode repair: {original_error}")
            return root

    repair_item_barcodes(document, focused_barcode)

    final_xml = _EMPTY_VALUE.sub("", serialize(document))
    try:
        return parse_document(final_xml)
    except XmlParseError as e:
        logger.warning(f"Final barcode cleanup produced invalid XML, keeping previous tree: {e}")
        return document
