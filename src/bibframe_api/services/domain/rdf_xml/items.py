#!/usr/bin/env python3
"""Holdings location cleanup for bf:Item roots.

Location fields reach an Item in several shapes depending on how they were
entered or imported (plain text, rdf:resource references, doubly nested
physicalLocation elements). After an Item is built its locations are
consolidated to one canonical element each::

    <bf:physicalLocation>vanp</bf:physicalLocation>
    <bf:sublocation><bf:Sublocation><rdfs:label>stor</rdfs:label></bf:Sublocation></bf:sublocation>
"""

import logging
import re

from .nodes import XmlElement, XmlText

logger = logging.getLogger(__name__)

_ALMA_LIBRARY = re.compile(r"alma:library:([^:]+)")


def label_from_location_id(location_id: str, known_labels: dict[str, str] | None = None) -> str:
    """Derive a display label from a location identifier.

    Example:
        >>> label_from_location_id("alma:library:VanPeltLib")
        'VanPeltLib'
        >>> label_from_location_id("local:sublocation:stor")
        'stor'
    """
    if known_labels and location_id in known_labels:
        return known_labels[location_id]
    match = _ALMA_LIBRARY.search(location_id)
    if match:
        return match.group(1)
    return location_id.split(":")[-1] or location_id


def _outermost(root: XmlElement, tag: str) -> list[XmlElement]:
    """Elements with tag under root that are not nested inside another one."""
    found = []
    for element in root.iter_descendants(tag):
        ancestor = element.parent
        nested = False
        while ancestor is not None and ancestor is not root:
            if ancestor.tag == tag:
                nested = True
                break
            ancestor = ancestor.parent
        if not nested:
            found.append(element)
    return found


def _direct_text(element: XmlElement) -> str | None:
    if element.element_children():
        return None
    text = element.text_content().strip()
    return text or None


def consolidate_physical_location(item: XmlElement, known_labels: dict[str, str] | None = None) -> None:
    """Replace every bf:physicalLocation on item with one plain-text element."""
    locations = _outermost(item, "bf:physicalLocation")
    if not locations:
        return

    label = None
    for location in locations:
        text = _direct_text(location)
        if text:
            label = text
            break
        if label:
            continue

        resource = location.get("rdf:resource")
        if not resource:
            for candidate in location.iter_descendants("rdfs:label"):
                resource = candidate.get("rdf:resource")
                if resource:
                    break
                if candidate.text_content().strip():
                    label = candidate.text_content().strip()
                    break
        if resource and not label:
            label = label_from_location_id(resource, known_labels)

    for location in locations:
        location.detach()

    if label is None:
        logger.warning("Could not determine a physicalLocation label, dropping the field")
        return

    item.append(XmlElement("bf:physicalLocation")).append(XmlText(label))
    logger.debug(f"Consolidated {len(locations)} physicalLocation element(s) to {label!r}")


def consolidate_sublocation(item: XmlElement, known_labels: dict[str, str] | None = None) -> None:
    """Replace every bf:sublocation on item with one labelled bf:Sublocation."""
    sublocations = _outermost(item, "bf:sublocation")
    if not sublocations:
        return

    label = None
    for sublocation in sublocations:
        labels = list(sublocation.iter_descendants("rdfs:label"))
        text_labels = [l for l in labels if l.get("rdf:resource") is None and l.text_content().strip()]
        if text_labels:
            label = text_labels[0].text_content().strip()
            break
        if label:
            continue

        resource = sublocation.get("rdf:resource")
        for candidate in labels:
            resource = resource or candidate.get("rdf:resource")
        if resource:
            label = label_from_location_id(resource, known_labels)
        elif _direct_text(sublocation):
            label = _direct_text(sublocation)

    for sublocation in sublocations:
        sublocation.detach()

    if label is None:
        logger.warning("Could not determine a sublocation label, dropping the field")
        return

    node = item.append(XmlElement("bf:sublocation")).append(XmlElement("bf:Sublocation"))
    node.append(XmlElement("rdfs:label")).append(XmlText(label))


def clean_item(item: XmlElement, known_labels: dict[str, str] | None = None) -> XmlElement:
    """Normalize the holdings location fields of a bf:Item in place."""
    consolidate_physical_location(item, known_labels)
    consolidate_sublocation(item, known_labels)
    return item
