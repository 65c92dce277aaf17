#!/usr/bin/env python3
"""
Unit tests for barcode repair: the string passes, the tree pass, and the
full sequence with its parse-failure fallbacks.
"""

from unittest.mock import patch

import pytest

from bibframe_api.services.domain.rdf_xml import barcode
from bibframe_api.services.domain.rdf_xml.barcode import (
    find_items,
    fix_attribute_values,
    rebuild_item_blocks,
    repair_barcodes,
    repair_item_barcodes,
    strip_artifacts,
)
from bibframe_api.services.domain.rdf_xml.namespaces import root_declarations
from bibframe_api.services.domain.rdf_xml.nodes import XmlElement, parse_document, parse_fragment, serialize

INSTANCE = "http://id.loc.gov/resources/instances/1"
CANONICAL = "<bf:identifiedBy><bf:Barcode><rdf:value>{}</rdf:value></bf:Barcode></bf:identifiedBy>"


def document(body: str) -> XmlElement:
    declarations = "".join(f' {name}="{uri}"' for name, uri in root_declarations().items())
    return parse_document(f"<rdf:RDF{declarations}>{body}</rdf:RDF>")


def barcodes(root: XmlElement) -> list[str]:
    return [b.find("rdf:value").text_content() for b in root.iter("bf:Barcode")]


@pytest.mark.unit
class TestStringPasses:
    """Test suite for the string-level repairs"""

    def test_attribute_value_moved_to_child(self):
        assert fix_attribute_values('<bf:Barcode rdf:value="123"/>') == (
            "<bf:Barcode><rdf:value>123</rdf:value></bf:Barcode>"
        )

    def test_attribute_value_on_open_tag(self):
        xml = '<bf:Barcode rdf:value="123"><rdfs:label>x</rdfs:label></bf:Barcode>'

        assert fix_attribute_values(xml) == (
            "<bf:Barcode><rdf:value>123</rdf:value><rdfs:label>x</rdfs:label></bf:Barcode>"
        )

    def test_artifacts_stripped_until_stable(self):
        xml = '<bf:Item><div class="x"/><bf:identifiedBy><bf:Barcode><rdf:value/></bf:Barcode></bf:identifiedBy></bf:Item>'

        assert strip_artifacts(xml) == "<bf:Item></bf:Item>"

    def test_rebuild_uses_own_value_and_keeps_first_item_of(self):
        xml = (
            '<bf:Item rdf:about="http://example.org/i1">'
            "<bf:identifiedBy><bf:Barcode><rdf:value>111</rdf:value></bf:Barcode></bf:identifiedBy>"
            f'<bf:itemOf rdf:resource="{INSTANCE}"/>'
            "<bf:Barcode><rdf:value>222</rdf:value></bf:Barcode>"
            f'<bf:itemOf rdf:resource="{INSTANCE}"/>'
            "</bf:Item>"
        )

        assert rebuild_item_blocks(xml) == (
            '<bf:Item rdf:about="http://example.org/i1">'
            + CANONICAL.format("111")
            + f'<bf:itemOf rdf:resource="{INSTANCE}"/>'
            "</bf:Item>"
        )

    def test_rebuild_falls_back_to_focused_barcode(self):
        xml = "<bf:Item><bf:identifiedBy><bf:Barcode><rdfs:label>x</rdfs:label></bf:Barcode></bf:identifiedBy></bf:Item>"

        assert rebuild_item_blocks(xml, "39031 & co") == (
            "<bf:Item>" + CANONICAL.format("39031 &amp; co") + "</bf:Item>"
        )

    def test_items_without_barcode_untouched(self):
        xml = f'<bf:Item><bf:itemOf rdf:resource="{INSTANCE}"/></bf:Item>'

        assert rebuild_item_blocks(xml) == xml


@pytest.mark.unit
class TestTreePass:
    """Test suite for the tree-level repair"""

    def test_find_items_by_all_strategies(self):
        root = document(
            "<bf:Instance>"
            "<bf:hasItem><bf:Item/></bf:hasItem>"
            '<bf:hasItem><rdf:Description rdf:about="http://example.org/i2"/></bf:hasItem>'
            "</bf:Instance>"
            "<rdf:Description><rdf:type rdf:resource=\"http://id.loc.gov/ontologies/bibframe/Item\"/></rdf:Description>"
        )

        items = find_items(root)

        assert [i.tag for i in items] == ["bf:Item", "rdf:Description", "rdf:Description"]

    def test_one_barcode_per_item(self):
        item = parse_fragment(
            "<bf:Item>"
            "<bf:identifiedBy><bf:Barcode><rdf:value>111</rdf:value></bf:Barcode></bf:identifiedBy>"
            "<bf:identifiedBy><bf:Barcode><rdf:value>222</rdf:value></bf:Barcode></bf:identifiedBy>"
            "</bf:Item>"
        )[0]

        assert repair_item_barcodes(item) == 1
        assert serialize(item) == "<bf:Item>" + CANONICAL.format("111") + "</bf:Item>"

    def test_empty_barcode_without_focus_removed(self):
        item = parse_fragment("<bf:Item><bf:identifiedBy><bf:Barcode/></bf:identifiedBy></bf:Item>")[0]

        repair_item_barcodes(item)

        assert serialize(item) == "<bf:Item/>"


@pytest.mark.unit
class TestRepairBarcodes:
    """Test suite for the full repair sequence"""

    def test_primary_document_shape(self):
        root = document(
            "<bf:Instance><bf:hasItem><bf:Item>"
            '<bf:identifiedBy><bf:Barcode rdf:value="39031031234567"/></bf:identifiedBy>'
            f'<bf:itemOf rdf:resource="{INSTANCE}"/>'
            "</bf:Item></bf:hasItem></bf:Instance>"
        )

        repaired = repair_barcodes(root)

        assert barcodes(repaired) == ["39031031234567"]
        item = next(repaired.iter("bf:Item"))
        assert len(item.find_all("bf:itemOf")) == 1
        assert "<rdf:value/>" not in serialize(repaired)

    def test_focused_barcode_fills_empty_value(self):
        root = document("<bf:Item><bf:identifiedBy><bf:Barcode><rdfs:label>x</rdfs:label></bf:Barcode></bf:identifiedBy></bf:Item>")

        repaired = repair_barcodes(root, focused_barcode="39031099999999")

        assert barcodes(repaired) == ["39031099999999"]

    def test_documents_without_items_unchanged(self):
        root = document("<bf:Work><bf:title><bf:Title><bf:mainTitle>x</bf:mainTitle></bf:Title></bf:title></bf:Work>")

        assert serialize(repair_barcodes(root)) == serialize(root)

    def test_string_pass_failure_falls_back_to_original(self):
        root = document("<bf:Item><bf:identifiedBy><bf:Barcode><rdf:value>1</rdf:value></bf:Barcode></bf:identifiedBy></bf:Item>")

        with patch.object(barcode, "rebuild_item_blocks", return_value="<broken"):
            repaired = repair_barcodes(root)

        assert barcodes(repaired) == ["1"]

    def test_never_raises_on_unparseable_documents(self):
        root = XmlElement("rdf:RDF")
        root.append(XmlElement("undeclared:Thing"))

        assert repair_barcodes(root) is root
