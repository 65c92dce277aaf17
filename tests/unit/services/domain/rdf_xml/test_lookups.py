#!/usr/bin/env python3
"""
Unit tests for the type oracle and the policy lookup service.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from bibframe_api.clients.ontology_client import OntologyClient, OntologyLookupError
from bibframe_api.clients.policy_client import PolicyClient, PolicyLookupError
from bibframe_api.services.domain.rdf_xml.policy import UNKNOWN_POLICY, PolicyLookupService, entry_label, policy_kind
from bibframe_api.services.domain.rdf_xml.type_oracle import DATETIME_RANGE, TypeOracle

BF = "http://id.loc.gov/ontologies/bibframe/"
RDFS_LITERAL = "http://www.w3.org/2000/01/rdf-schema#Literal"
AUTHORITATIVE_LABEL = "http://www.loc.gov/mads/rdf/v1#authoritativeLabel"
ACCESS_POLICY = f"{BF}AccessPolicy"


def vocabulary_entry(policy_id: str, text: str) -> dict:
    return {"@id": policy_id, AUTHORITATIVE_LABEL: [{"@value": text}]}


@pytest.mark.unit
class TestTypeOracle:
    """Test suite for TypeOracle"""

    def test_known_ranges_skip_network(self):
        client = AsyncMock(spec=OntologyClient)
        oracle = TypeOracle(client)

        result = asyncio.run(oracle.suggest_type("http://www.w3.org/2000/01/rdf-schema#label"))

        assert result == RDFS_LITERAL
        client.fetch_range.assert_not_awaited()

    def test_component_list_is_a_list(self):
        result = asyncio.run(TypeOracle().suggest_type("http://www.loc.gov/mads/rdf/v1#componentList"))

        assert result == "http://www.w3.org/1999/02/22-rdf-syntax-ns#List"

    def test_offline_oracle_has_no_opinion(self):
        assert asyncio.run(TypeOracle().suggest_type(f"{BF}extent")) is None

    def test_range_from_ontology(self):
        client = AsyncMock(spec=OntologyClient)
        client.fetch_range.return_value = f"{BF}Extent"

        assert asyncio.run(TypeOracle(client).suggest_type(f"{BF}extent")) == f"{BF}Extent"

    def test_datetime_range_is_literal(self):
        client = AsyncMock(spec=OntologyClient)
        client.fetch_range.return_value = DATETIME_RANGE

        assert asyncio.run(TypeOracle(client).suggest_type(f"{BF}originDate")) == RDFS_LITERAL

    def test_lookup_failure_is_no_opinion(self):
        client = AsyncMock(spec=OntologyClient)
        client.fetch_range.side_effect = OntologyLookupError("down")

        assert asyncio.run(TypeOracle(client).suggest_type(f"{BF}extent")) is None


@pytest.mark.unit
class TestPolicyLookupService:
    """Test suite for PolicyLookupService"""

    @pytest.fixture
    def client(self):
        client = Mock(spec=PolicyClient)
        client.enabled = True
        client.fetch_policies = AsyncMock(return_value=[
            vocabulary_entry("http://id.loc.gov/vocabulary/accesspolicy/open", "Open access"),
        ])
        return client

    def test_policy_kind(self):
        assert policy_kind(ACCESS_POLICY) == "access"
        assert policy_kind(f"{BF}UsePolicy") == "use"

    def test_entry_label(self):
        assert entry_label(vocabulary_entry("x", "Label")) == "Label"
        assert entry_label({"@id": "x"}) is None
        assert entry_label(None) is None

    def test_vocabulary_hit(self, client):
        service = PolicyLookupService(client=client)

        label = asyncio.run(service.resolve("http://id.loc.gov/vocabulary/accesspolicy/open", ACCESS_POLICY))

        assert label == "Open access"
        client.fetch_policies.assert_awaited_once_with("access")

    def test_vocabulary_fetched_once(self, client):
        service = PolicyLookupService(client=client)

        asyncio.run(service.resolve("http://id.loc.gov/vocabulary/accesspolicy/open", ACCESS_POLICY))
        asyncio.run(service.resolve("local:accessPolicy2", ACCESS_POLICY))

        assert client.fetch_policies.await_count == 1

    def test_request_services_share_vocabulary_cache(self, client):
        shared = PolicyLookupService(client=client)

        for _ in range(3):
            service = shared.for_request({})
            asyncio.run(service.resolve("http://id.loc.gov/vocabulary/accesspolicy/open", ACCESS_POLICY))

        assert client.fetch_policies.await_count == 1

    def test_request_service_searches_its_own_templates(self):
        shared = PolicyLookupService(local_labels={})
        templates = {"lc:profile:bf2:Item": {"rt": {"lc:RT:bf2:Item": {"pt": {"policy": {
            "propertyURI": f"{BF}usageAndAccessPolicy",
            "valueConstraint": {"useValuesFrom": [{"data": [vocabulary_entry("local:vault", "Vault only")]}]},
        }}}}}}

        assert asyncio.run(shared.for_request(templates).resolve("local:vault", ACCESS_POLICY)) == "Vault only"
        assert asyncio.run(shared.for_request({}).resolve("local:vault", ACCESS_POLICY)) is UNKNOWN_POLICY

    def test_template_lookup_data(self):
        templates = {
            "lc:profile:bf2:Item": {
                "rt": {
                    "lc:RT:bf2:Item": {
                        "pt": {
                            "policy": {
                                "propertyURI": f"{BF}usageAndAccessPolicy",
                                "valueConstraint": {"useValuesFrom": [{"data": [
                                    vocabulary_entry("local:specialCollections", "Special collections only"),
                                ]}]},
                            }
                        }
                    }
                }
            }
        }
        service = PolicyLookupService(template_profiles=templates)

        assert asyncio.run(service.resolve("local:specialCollections", ACCESS_POLICY)) == "Special collections only"

    def test_local_labels(self):
        service = PolicyLookupService(local_labels={"local:x": "Local X"})

        assert asyncio.run(service.resolve("local:x", f"{BF}UsePolicy")) == "Local X"

    def test_unknown(self, client):
        client.fetch_policies.side_effect = PolicyLookupError("down")
        service = PolicyLookupService(client=client)

        assert asyncio.run(service.resolve("local:nothing", ACCESS_POLICY)) is UNKNOWN_POLICY

    def test_missing_id_or_type(self):
        service = PolicyLookupService()

        assert asyncio.run(service.resolve(None, ACCESS_POLICY)) is UNKNOWN_POLICY
        assert asyncio.run(service.resolve("local:accessPolicy1", None)) is UNKNOWN_POLICY
