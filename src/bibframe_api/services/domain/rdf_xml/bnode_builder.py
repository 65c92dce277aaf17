#!/usr/bin/env python3
"""Recursive builder for blank-node shaped user values.

A blank-node value is a JSON-LD-like object::

    {
        "@type": "http://id.loc.gov/ontologies/bibframe/Title",
        "http://id.loc.gov/ontologies/bibframe/mainTitle": [
            {"http://id.loc.gov/ontologies/bibframe/mainTitle": "Moby Dick"}
        ]
    }

and compiles to the RDF/XML striped form::

    <bf:title>
      <bf:Title>
        <bf:mainTitle>Moby Dick</bf:mainTitle>
      </bf:Title>
    </bf:title>

A handful of properties have shapes the generic walk cannot express and are
built by dedicated methods (agents, MADS note types, geographic coverage,
usage and access policies, Hub references).
"""

import logging
import re
from typing import Any

from .classifier import as_list, has_usable_value, is_absolute_uri, is_blank_node, is_primitive, type_list
from .element_factory import make_element, make_text
from .literals import build_literal, unwrap_value
from .namespaces import BF, BFLC, MADSRDF, RDF_TYPE, RDFS_LABEL
from .nodes import XmlElement
from .policy import UNKNOWN_POLICY, USAGE_AND_ACCESS_POLICY, PolicyLookupService

logger = logging.getLogger(__name__)

AGENT = f"{BF}agent"
GEOGRAPHIC_COVERAGE = f"{BF}geographicCoverage"
# Never built by the generic walk, even when the dedicated shape comes out empty
SHAPED_PROPERTIES = {AGENT, GEOGRAPHIC_COVERAGE}
COMPONENT_LIST = f"{MADSRDF}componentList"
AUTHORITATIVE_LABEL = f"{MADSRDF}authoritativeLabel"
MADS_CODE = f"{MADSRDF}code"
MARC_KEY = f"{BFLC}marcKey"
HUB = f"{BF}Hub"

NOTE_TYPE_VOCABULARY = "id.loc.gov/vocabulary/mnotetype"
GAC_DATATYPE = "http://id.loc.gov/datatypes/codes/gac"

FALLBACK_TYPES = {
    f"{BF}mainTitle": "bf:Title",
    f"{BF}title": "bf:Title",
    f"{BFLC}nonSortNum": "bf:Title",
    f"{BF}Barcode": "bf:Barcode",
    f"{BF}barcode": "bf:Barcode",
    RDFS_LABEL: "bf:Label",
    "rdfs:label": "bf:Label",
}
PLACEHOLDER_TYPE = "bf:Resource"

# MARC tag at the start of a marcKey decides the agent class
MARC_KEY_AGENT_TYPES = {
    "100": f"{BF}Person",
    "110": f"{BF}Organization",
    "111": f"{BF}Meeting",
}

TYPE_KEYS = (RDF_TYPE, "rdf:type")
LABEL_KEYS = (RDFS_LABEL, "rdfs:label", AUTHORITATIVE_LABEL, "label")


def is_blank_id(identifier: Any) -> bool:
    return isinstance(identifier, str) and identifier.startswith("_:")


def resource_id(value: dict) -> str | None:
    """Return the node's @id when it names a real resource."""
    identifier = value.get("@id")
    if isinstance(identifier, str) and identifier and not is_blank_id(identifier):
        return identifier
    return None


def first_text(values: Any, *keys: str) -> str | None:
    """First non-empty text found in a list of literal-shaped values.

    Each entry may be a string, ``{'@value': ...}``, or an object holding the
    text under one of keys.
    """
    for item in as_list(values):
        item = unwrap_value(item)
        if is_primitive(item) and str(item).strip():
            return str(item).strip()
        if isinstance(item, dict):
            for key in keys:
                found = first_text(item.get(key), *keys) if key in item else None
                if found:
                    return found
    return None


def label_text(value: dict) -> str | None:
    for key in LABEL_KEYS:
        if key in value:
            found = first_text(value[key], *LABEL_KEYS)
            if found:
                return found
    return None


def rdf_type(uri: str) -> XmlElement:
    return XmlElement("rdf:type", {"rdf:resource": uri})


def rdfs_label(text: str) -> XmlElement:
    label = XmlElement("rdfs:label")
    label.append(make_text(text))
    return label


def _has_structure(value: dict) -> bool:
    """True when an untyped object nests further predicate values."""
    for key, child in value.items():
        if not is_absolute_uri(key):
            continue
        if any(isinstance(item, dict) for item in as_list(child)):
            return True
    return False


class BnodeBuilder:
    """Compiles user values into predicate/object element pairs."""

    def __init__(self, policy_service: PolicyLookupService | None = None):
        self.policy_service = policy_service or PolicyLookupService()

    async def build_predicate(self, property_uri: str, value: Any):
        """Build the predicate element for one value of property_uri.

        Args:
            property_uri: Predicate URI
            value: Blank-node or literal-shaped user value

        Returns:
            The predicate element (or an inert text node for numeric
            property names), or None when the value yields nothing
        """
        if value is None:
            return None

        special = await self.build_special(property_uri, value)
        if special is not None or (isinstance(value, dict) and property_uri in SHAPED_PROPERTIES):
            return special

        if isinstance(value, dict) and (is_blank_node(value) or (_has_structure(value) and "@id" not in value)):
            return await self._build_bnode_predicate(property_uri, value)

        return build_literal(property_uri, value)

    async def build_special(self, property_uri: str, value: Any) -> XmlElement | None:
        """Build one of the hand-shaped properties, or return None."""
        if not isinstance(value, dict):
            return None

        types = type_list(value)
        if property_uri == AGENT:
            return self._wrap(property_uri, self.build_agent(value), require_content=True)
        if property_uri == GEOGRAPHIC_COVERAGE:
            return self._wrap(property_uri, self.build_geographic_coverage(value), require_content=True)
        if property_uri == USAGE_AND_ACCESS_POLICY and types:
            policy = await self.build_policy(value)
            if policy is not None:
                return self._wrap(property_uri, policy)
            return None
        if any(NOTE_TYPE_VOCABULARY in t for t in types):
            return self._wrap(property_uri, self.build_note(value))
        if HUB in types and resource_id(value):
            return self._wrap(property_uri, self.build_hub_reference(value))
        return None

    # -- special cases -----------------------------------------------------

    def build_agent(self, value: dict) -> XmlElement:
        """bf:Agent with its specific class and bf:Agent as rdf:type.

        Only the authority URI, the label and the MARC key are carried; any
        other predicates nested in the agent value are dropped. An agent with
        none of the three is omitted by the caller.
        """
        agent = XmlElement("bf:Agent")
        identifier = resource_id(value)
        if identifier:
            agent.set("rdf:about", identifier)

        marc_key = first_text(value.get(MARC_KEY), MARC_KEY, "marcKey")
        types = type_list(value)
        if not types and marc_key:
            inferred = MARC_KEY_AGENT_TYPES.get(marc_key[:3])
            if inferred:
                logger.debug(f"Inferred agent type {inferred} from marcKey {marc_key[:3]}")
                types = [inferred]

        agent_class = f"{BF}Agent"
        for type_uri in types:
            if type_uri != agent_class:
                agent.append(rdf_type(type_uri))
        agent.append(rdf_type(agent_class))

        label = label_text(value)
        if label:
            agent.append(rdfs_label(label))
        if marc_key:
            agent.append(XmlElement("bflc:marcKey")).append(make_text(marc_key))
        return agent

    def build_note(self, value: dict) -> XmlElement:
        """bf:Note typed by a MADS note-type vocabulary term."""
        note = XmlElement("bf:Note")
        identifier = resource_id(value)
        if identifier:
            note.set("rdf:about", identifier)
        for type_uri in type_list(value):
            note.append(rdf_type(type_uri))
        for item in as_list(value.get(RDFS_LABEL)):
            text = first_text([item], RDFS_LABEL)
            if text:
                note.append(rdfs_label(text))
        return note

    def build_geographic_coverage(self, value: dict) -> XmlElement:
        """bf:GeographicCoverage keeping its authority URI, label, code and MARC key.

        Blank-node coverage (no authority URI) keeps only the label.
        """
        coverage = XmlElement("bf:GeographicCoverage")
        identifier = resource_id(value)
        if identifier:
            coverage.set("rdf:about", identifier)

        label = label_text(value)
        if label:
            coverage.append(rdfs_label(label))

        if identifier:
            code = first_text(value.get(MADS_CODE), MADS_CODE, "code")
            if code:
                code_el = XmlElement("madsrdf:code", {"rdf:datatype": GAC_DATATYPE})
                code_el.append(make_text(code))
                coverage.append(code_el)
            marc_key = first_text(value.get(MARC_KEY), MARC_KEY, "marcKey")
            if marc_key:
                coverage.append(XmlElement("bflc:marcKey")).append(make_text(marc_key))
        return coverage

    async def build_policy(self, value: dict) -> XmlElement | None:
        """Policy class element labelled through the policy lookup service."""
        policy_type = type_list(value)[0]
        labels = as_list(value.get(RDFS_LABEL))
        policy_id = None
        if labels and isinstance(labels[0], dict):
            policy_id = labels[0].get("@id")
        policy_id = policy_id or value.get("@id")

        label = await self.policy_service.resolve(policy_id, policy_type)
        if label is UNKNOWN_POLICY:
            return None

        policy = make_element(policy_type)
        if not isinstance(policy, XmlElement) or policy.is_fallback:
            return None
        policy.append(rdfs_label(label))
        return policy

    def build_hub_reference(self, value: dict) -> XmlElement:
        """bf:Hub reference: identity, label and MARC key only."""
        hub = XmlElement("bf:Hub", {"rdf:about": resource_id(value)})
        label = label_text(value)
        if label:
            hub.append(rdfs_label(label))
        marc_key = first_text(value.get(MARC_KEY), MARC_KEY, "marcKey")
        if marc_key:
            hub.append(XmlElement("bflc:marcKey")).append(make_text(marc_key))
        return hub

    # -- generic walk ------------------------------------------------------

    async def _build_bnode_predicate(self, property_uri: str, value: dict) -> XmlElement | None:
        if not has_usable_value(value):
            logger.debug(f"Omitting {property_uri}: no usable value", extra={"property_uri": property_uri})
            return None

        predicate = make_element(property_uri)
        if not isinstance(predicate, XmlElement) or predicate.is_fallback:
            return None

        obj = await self.build_object(property_uri, value)
        if obj is None:
            return None
        predicate.append(obj)
        return predicate

    async def build_object(self, property_uri: str, value: dict) -> XmlElement | None:
        """Build the object element for a blank-node value and walk its keys.

        Returns:
            The object element, or None when it would carry no content
        """
        obj = self.object_element(property_uri, value)
        has_content = obj.get("rdf:about") is not None

        for key, child in value.items():
            if not isinstance(key, str) or key.startswith("@"):
                continue

            if key in TYPE_KEYS:
                for type_el in self._type_children(child):
                    obj.append(type_el)
                continue

            if not (is_absolute_uri(key) or re.match(r"^[A-Za-z][\w.-]*:[A-Za-z_]", key)):
                logger.debug(f"Skipping non-predicate key {key!r} under {property_uri}")
                continue

            if key == COMPONENT_LIST:
                collection = await self._build_collection(key, child)
                if collection is not None:
                    obj.append(collection)
                    has_content = True
                continue

            for item in as_list(child):
                built = await self.build_predicate(key, item)
                if built is not None:
                    obj.append(built)
                    has_content = True

        if not has_content:
            logger.debug(f"Omitting empty {obj.tag} under {property_uri}")
            return None
        return obj

    def object_element(self, property_uri: str, value: dict) -> XmlElement:
        """Create the typed object element, with rdf:type for list-valued @type."""
        types = type_list(value)
        raw_types = value.get("@type")

        if not types:
            tag = FALLBACK_TYPES.get(property_uri, PLACEHOLDER_TYPE)
            if tag == PLACEHOLDER_TYPE:
                logger.warning(f"No @type for value of {property_uri}, using {PLACEHOLDER_TYPE}")
            obj = XmlElement(tag)
        else:
            obj = make_element(types[0])
            if not isinstance(obj, XmlElement) or obj.is_fallback:
                obj = XmlElement("rdf:Description")
                # The class could not name the element, so every type goes in rdf:type
                raw_types = list(types)

        identifier = resource_id(value)
        if identifier:
            obj.set("rdf:about", identifier)
        if value.get("@parseType"):
            obj.set("rdf:parseType", value["@parseType"])

        if isinstance(raw_types, list):
            for type_uri in types:
                obj.append(rdf_type(type_uri))
        return obj

    def _type_children(self, child: Any) -> list[XmlElement]:
        """Elements for the reserved rdf:type key."""
        elements = []
        for item in as_list(child):
            if isinstance(item, dict) and isinstance(item.get("@id"), str):
                elements.append(rdf_type(item["@id"]))
            elif isinstance(item, dict):
                text = first_text(item.get(RDFS_LABEL, item.get("rdfs:label")), RDFS_LABEL, "rdfs:label")
                if text:
                    elements.append(_inline_type(text))
            elif is_absolute_uri(item):
                elements.append(rdf_type(item))
        return elements

    async def _build_collection(self, key: str, child: Any) -> XmlElement | None:
        collection = make_element(key)
        if not isinstance(collection, XmlElement) or collection.is_fallback:
            return None
        collection.set("rdf:parseType", "Collection")

        for item in as_list(child):
            if not isinstance(item, dict):
                continue
            obj = await self.build_object(key, item)
            if obj is not None:
                collection.append(obj)

        if not collection.element_children():
            return None
        return collection

    def _wrap(self, property_uri: str, obj: XmlElement | None, require_content: bool = False) -> XmlElement | None:
        if obj is None:
            return None
        if require_content and _is_bare(obj):
            logger.debug(f"Omitting empty {obj.tag} under {property_uri}", extra={"property_uri": property_uri})
            return None
        predicate = make_element(property_uri)
        if not isinstance(predicate, XmlElement) or predicate.is_fallback:
            return None
        predicate.append(obj)
        return predicate


def _is_bare(obj: XmlElement) -> bool:
    """True when obj names no resource and holds nothing but rdf:type."""
    if obj.get("rdf:about"):
        return False
    return all(child.tag == "rdf:type" for child in obj.element_children())


def _inline_type(text: str) -> XmlElement:
    type_el = XmlElement("rdf:type")
    type_el.append(make_text(text))
    return type_el
