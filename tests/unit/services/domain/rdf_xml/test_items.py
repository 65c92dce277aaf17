#!/usr/bin/env python3

import pytest

from bibframe_api.services.domain.rdf_xml.items import (
    clean_item,
    consolidate_physical_location,
    consolidate_sublocation,
    label_from_location_id,
)
from bibframe_api.services.domain.rdf_xml.nodes import parse_fragment, serialize


def item(body: str):
    return parse_fragment(f"<bf:Item>{body}</bf:Item>")[0]


@pytest.mark.unit
class TestLocationLabels:
    """Test suite for label_from_location_id"""

    def test_alma_library(self):
        assert label_from_location_id("alma:library:VanPeltLib") == "VanPeltLib"

    def test_last_segment(self):
        assert label_from_location_id("local:sublocation:stor") == "stor"

    def test_known_label_wins(self):
        assert label_from_location_id("alma:library:VanPeltLib", {"alma:library:VanPeltLib": "Van Pelt"}) == "Van Pelt"


@pytest.mark.unit
class TestItemCleanup:
    """Test suite for holdings location consolidation"""

    def test_physical_location_text_kept(self):
        element = item("<bf:physicalLocation>vanp</bf:physicalLocation>")

        consolidate_physical_location(element)

        assert serialize(element) == "<bf:Item><bf:physicalLocation>vanp</bf:physicalLocation></bf:Item>"

    def test_nested_physical_location_flattened(self):
        element = item(
            "<bf:physicalLocation><bf:physicalLocation>"
            '<rdfs:label rdf:resource="alma:library:FisherFAL"/>'
            "</bf:physicalLocation></bf:physicalLocation>"
        )

        consolidate_physical_location(element)

        assert serialize(element) == "<bf:Item><bf:physicalLocation>FisherFAL</bf:physicalLocation></bf:Item>"

    def test_resource_physical_location(self):
        element = item('<bf:physicalLocation rdf:resource="alma:library:VanPeltLib"/>')

        consolidate_physical_location(element, {"alma:library:VanPeltLib": "Van Pelt Library"})

        assert element.find("bf:physicalLocation").text_content() == "Van Pelt Library"

    def test_sublocation_from_resource(self):
        element = item('<bf:sublocation rdf:resource="local:sublocation:stor"/>')

        consolidate_sublocation(element)

        assert serialize(element) == (
            "<bf:Item><bf:sublocation><bf:Sublocation><rdfs:label>stor</rdfs:label>"
            "</bf:Sublocation></bf:sublocation></bf:Item>"
        )

    def test_duplicate_sublocations_merged(self):
        element = item(
            "<bf:sublocation><bf:Sublocation><rdfs:label>stacks</rdfs:label></bf:Sublocation></bf:sublocation>"
            '<bf:sublocation rdf:resource="local:sublocation:stor"/>'
        )

        consolidate_sublocation(element)

        sublocations = element.find_all("bf:sublocation")
        assert len(sublocations) == 1
        assert sublocations[0].text_content() == "stacks"

    def test_unlabelled_location_dropped(self):
        element = item("<bf:physicalLocation><bf:Place/></bf:physicalLocation>")

        clean_item(element)

        assert element.find("bf:physicalLocation") is None

    def test_item_without_locations_untouched(self):
        element = item('<bf:itemOf rdf:resource="http://example.org/i"/>')

        assert serialize(clean_item(element)) == '<bf:Item><bf:itemOf rdf:resource="http://example.org/i"/></bf:Item>'
