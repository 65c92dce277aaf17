"""
Assertion helpers for RDF/XML output.

Output strings are parsed back with the package's own parser so assertions
can talk about prefixed tags instead of Clark notation.
"""

from bibframe_api.services.domain.rdf_xml.nodes import XmlElement, parse_document


def parse(xml: str) -> XmlElement:
    return parse_document(xml)


def tags(element: XmlElement) -> list[str]:
    """Tags of the direct element children, in order."""
    return [child.tag for child in element.element_children()]


def count(element: XmlElement, tag: str) -> int:
    """Number of elements with tag anywhere under element, element included."""
    return sum(1 for _ in element.iter(tag))


def type_resources(element: XmlElement) -> list[str]:
    """rdf:resource values of the direct rdf:type children."""
    return [t.get("rdf:resource") for t in element.find_all("rdf:type")]


def assert_single(element: XmlElement, tag: str) -> XmlElement:
    """Assert exactly one direct child with tag exists and return it."""
    matches = element.find_all(tag)
    assert len(matches) == 1, f"Expected one <{tag}> under <{element.tag}>, found {len(matches)}: {tags(element)}"
    return matches[0]
