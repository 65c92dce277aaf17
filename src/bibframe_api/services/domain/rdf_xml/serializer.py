#!/usr/bin/env python3
"""Output document assembly and cleanup.

Three document trees leave the assembler: the primary document, the basic
document (Works, Instances and Items as siblings with URI links) and the
MARC subset. Each passes through the same cleanup before it is serialized:

1. redundant inherited xmlns declarations are removed
2. bf:AdminMetadata assigners are deduplicated and repaired
3. MARC subset only: well-known organizations get an rdfs:label
4. barcode repair
"""

import logging
from dataclasses import dataclass, field

from .admin_metadata import AdminMetadataSynthesizer, ensure_organization_labels
from .barcode import repair_barcodes
from .namespaces import root_declarations
from .nodes import XmlElement, format_xml, serialize

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT = "<rdf:RDF/>"
MARC_ROOT_TAGS = ("bf:Work", "bf:Instance", "bf:Item")


@dataclass
class XmlBuildResult:
    """Everything one build produces."""

    xml_dom: XmlElement | None
    xml_string_formatted: str
    xml_string: str
    bf2marc: str
    xml_string_basic: str
    void_title: str = ""
    void_contributor: str = ""
    component_xml_lookup: dict[str, str] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> "XmlBuildResult":
        """The valid result for a profile with nothing to export."""
        return cls(
            xml_dom=XmlElement("rdf:RDF"),
            xml_string_formatted=EMPTY_DOCUMENT,
            xml_string=EMPTY_DOCUMENT,
            bf2marc=EMPTY_DOCUMENT,
            xml_string_basic=EMPTY_DOCUMENT,
        )


def new_document() -> XmlElement:
    """An empty rdf:RDF root declaring every registered namespace."""
    return XmlElement("rdf:RDF", root_declarations())


def strip_redundant_namespaces(element: XmlElement, inherited: dict[str, str] | None = None) -> int:
    """Remove xmlns declarations that repeat one already in scope.

    Returns:
        Number of declarations removed
    """
    in_scope = dict(inherited or {})
    removed = 0
    for name, value in list(element.attributes.items()):
        if name != "xmlns" and not name.startswith("xmlns:"):
            continue
        prefix = name.split(":", 1)[1] if ":" in name else ""
        if in_scope.get(prefix) == value:
            element.pop(name)
            removed += 1
        else:
            in_scope[prefix] = value

    for child in element.element_children():
        removed += strip_redundant_namespaces(child, in_scope)
    return removed


def build_marc_subset(basic: XmlElement) -> XmlElement:
    """Copy the top-level Works, Instances and Items of the basic document."""
    subset = new_document()
    for tag in MARC_ROOT_TAGS:
        for root in basic.find_all(tag):
            subset.append(root.deep_copy())
    return subset


def clean_document(
    root: XmlElement,
    synthesizer: AdminMetadataSynthesizer,
    marc: bool = False,
    focused_barcode: str | None = None,
) -> XmlElement:
    """Run the cleanup sequence over one document tree.

    Returns:
        The cleaned tree. Barcode repair re-parses the document, so this is
        usually a new tree rather than root itself.
    """
    removed = strip_redundant_namespaces(root)
    if removed:
        logger.debug(f"Removed {removed} redundant namespace declarations")

    synthesizer.dedupe_document(root)
    for assigner in root.iter("bf:assigner"):
        synthesizer.clean_assigner(assigner)

    if marc:
        added = ensure_organization_labels(root)
        if added:
            logger.debug(f"Added {added} organization labels to the MARC subset")

    return repair_barcodes(root, focused_barcode)


def finalize(
    primary: XmlElement,
    basic: XmlElement,
    synthesizer: AdminMetadataSynthesizer,
    focused_barcode: str | None = None,
) -> tuple[XmlElement, XmlElement, XmlElement]:
    """Build the MARC subset and clean all three documents.

    Returns:
        (primary, basic, marc) cleaned trees
    """
    marc = build_marc_subset(basic)
    primary = clean_document(primary, synthesizer, focused_barcode=focused_barcode)
    basic = clean_document(basic, synthesizer, focused_barcode=focused_barcode)
    marc = clean_document(marc, synthesizer, marc=True, focused_barcode=focused_barcode)
    return primary, basic, marc


def to_result(
    primary: XmlElement,
    basic: XmlElement,
    marc: XmlElement,
    void_title: str = "",
    void_contributor: str = "",
    component_xml_lookup: dict[str, str] | None = None,
) -> XmlBuildResult:
    xml_string = serialize(primary)
    return XmlBuildResult(
        xml_dom=primary,
        xml_string_formatted=format_xml(xml_string),
        xml_string=xml_string,
        bf2marc=serialize(marc),
        xml_string_basic=serialize(basic),
        void_title=void_title,
        void_contributor=void_contributor,
        component_xml_lookup=dict(component_xml_lookup or {}),
    )
