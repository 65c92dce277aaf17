#!/usr/bin/env python3
"""Top-level entity assembly: Works, Instances, Items and Hubs.

The assembler walks the profile's resource templates in ``rtOrder``, builds
one root element per top-level entity, and afterwards links the roots into
the primary and basic document shapes. Links between entities (instanceOf,
hasItem, itemOf) are never copied from user data; they are rebuilt here from
the rt-level ``instanceOf`` and ``itemOf`` fields so the graph shape does not
depend on how the editor stored them.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from .bnode_builder import BnodeBuilder, rdf_type
from .classifier import as_list, has_usable_value, is_blank_node, select_user_value
from .element_factory import make_element
from .items import clean_item
from .literals import build_literal
from .namespaces import BF, RDFS_LITERAL
from .nodes import XmlElement, XmlParseError, XmlText, format_xml, parse_fragment, parse_xml, serialize
from .serializer import new_document
from .type_oracle import TypeOracle

logger = logging.getLogger(__name__)

IGNORED_PROPERTIES = {
    f"{BF}instanceOf",
    f"{BF}hasItem",
    f"{BF}itemOf",
    f"{BF}hasInstance",
    f"{BF}Work",
}

WORK = "Work"
INSTANCE = "Instance"
ITEM = "Item"
HUB = "Hub"


def root_kind(rt_id: str) -> str | None:
    """Classify a resource template id as a top-level entity kind.

    Example:
        >>> root_kind("lc:RT:bf2:Monograph:Instance")
        'Instance'
        >>> root_kind("lc:RT:bf2:Title:AbbrTitle") is None
        True
    """
    if not isinstance(rt_id, str):
        return None
    if ":Work" in rt_id:
        return WORK
    if ":Instance" in rt_id:
        return INSTANCE
    if ":Item" in rt_id:
        return ITEM
    if rt_id.endswith(":Hub"):
        return HUB
    return None


def is_update_mode(profile: dict) -> bool:
    """True when the profile is being saved as an update of an existing record."""
    return "update" in str(profile.get("procInfo") or "")


def _text_field(rt: dict, key: str) -> str | None:
    value = rt.get(key)
    return value if isinstance(value, str) and value else None


@dataclass
class RootEntry:
    """One built top-level entity."""

    kind: str
    rt_id: str
    uri: str | None
    element: XmlElement
    item_of: str | None = None
    instance_of: str | None = None


@dataclass
class AssembledProfile:
    """Roots and bookkeeping collected while walking a profile."""

    entries: list[RootEntry] = field(default_factory=list)
    lookup: dict[str, dict[str, RootEntry]] = field(
        default_factory=lambda: {WORK: {}, INSTANCE: {}, ITEM: {}, HUB: {}}
    )
    component_xml_lookup: dict[str, str] = field(default_factory=dict)
    rts_used: list[str] = field(default_factory=list)
    profile_types: list[str] = field(default_factory=list)
    external_ids: list[str] = field(default_factory=list)

    def of_kind(self, kind: str) -> list[RootEntry]:
        return [entry for entry in self.entries if entry.kind == kind]


def ensure_item_of(item: XmlElement, instance_uri: str | None) -> XmlElement:
    """Leave exactly one bf:itemOf on item, pointing at instance_uri when given."""
    links = item.find_all("bf:itemOf")
    keep = None
    for link in links:
        if instance_uri and link.get("rdf:resource") == instance_uri:
            keep = link
            break
    if keep is None and links and not instance_uri:
        keep = links[0]

    for link in links:
        if link is not keep:
            link.detach()

    if keep is None and instance_uri:
        item.append(XmlElement("bf:itemOf", {"rdf:resource": instance_uri}))
    return item


class EntityAssembler:
    """Builds top-level entity roots and links them into documents."""

    def __init__(
        self,
        bnode_builder: BnodeBuilder,
        type_oracle: TypeOracle,
        location_labels: dict[str, str] | None = None,
    ):
        self.bnode_builder = bnode_builder
        self.type_oracle = type_oracle
        self.location_labels = location_labels or {}

    # -- roots ---------------------------------------------------------------

    async def build_roots(self, profile: dict, original_profile: dict | None = None) -> AssembledProfile:
        """Build every top-level root of a (deep-copied) profile.

        Args:
            profile: Working copy of the profile, may be transformed
            original_profile: Caller's profile, read only for leftover XML

        Returns:
            AssembledProfile holding the roots in rtOrder
        """
        original_profile = original_profile or profile
        assembled = AssembledProfile()
        templates = profile.get("rt") or {}
        original_templates = original_profile.get("rt") or {}

        if not isinstance(templates, dict):
            templates = {}
        if not isinstance(original_templates, dict):
            original_templates = {}

        for rt_id in profile.get("rtOrder") or []:
            if not isinstance(rt_id, str):
                logger.warning(f"Skipping malformed rtOrder entry {rt_id!r}")
                continue
            rt = templates.get(rt_id)
            if not isinstance(rt, dict):
                logger.warning(f"rtOrder names {rt_id!r} but the profile has no such resource template")
                continue

            kind = root_kind(rt_id)
            if kind is None:
                logger.debug(f"Skipping non top-level resource template {rt_id}")
                continue
            if rt.get("noData"):
                logger.debug(f"Skipping {rt_id}: no data")
                continue
            if not isinstance(rt.get("ptOrder") or [], list):
                logger.warning(f"Skipping {rt_id}: ptOrder is not a list", extra={"rt_id": rt_id})
                continue

            original_rt = original_templates.get(rt_id)
            unused_xml = original_rt.get("unusedXml") if isinstance(original_rt, dict) else None
            element = await self.build_root(rt_id, rt, kind, assembled, unused_xml)

            uri = _text_field(rt, "URI")
            entry = RootEntry(
                kind=kind,
                rt_id=rt_id,
                uri=uri,
                element=element,
                item_of=_text_field(rt, "itemOf"),
                instance_of=_text_field(rt, "instanceOf"),
            )
            assembled.entries.append(entry)
            assembled.lookup[kind][uri or rt_id] = entry
            assembled.rts_used.append(rt_id)

        return assembled

    async def build_root(
        self,
        rt_id: str,
        rt: dict,
        kind: str,
        assembled: AssembledProfile,
        unused_xml: str | None = None,
    ) -> XmlElement:
        root = XmlElement(f"bf:{kind}")
        uri = _text_field(rt, "URI")
        if uri:
            root.set("rdf:about", uri)
            assembled.external_ids.append(uri)

        for type_uri in as_list(rt.get("@type")):
            if isinstance(type_uri, str) and type_uri:
                root.append(rdf_type(type_uri))
                assembled.profile_types.append(type_uri)

        properties = rt.get("pt")
        if not isinstance(properties, dict):
            properties = {}
        for pt_id in rt.get("ptOrder") or []:
            if not isinstance(pt_id, str):
                continue
            pt = properties.get(pt_id)
            if not isinstance(pt, dict) or pt.get("deleted"):
                continue

            nodes = await self.compile_property(rt_id, pt)
            for node in nodes:
                root.append(node)
            if nodes:
                assembled.component_xml_lookup[f"{rt_id}-{pt_id}"] = "".join(
                    format_xml(serialize(node)) if isinstance(node, XmlElement) else serialize(node)
                    for node in nodes
                )

        if isinstance(unused_xml, str) and unused_xml:
            self.reattach_unused_xml(root, unused_xml, rt_id)

        if kind == ITEM:
            clean_item(root, self.location_labels)

        logger.debug(f"Built {kind} root for {rt_id}", extra={"rt_id": rt_id})
        return root

    def reattach_unused_xml(self, root: XmlElement, unused_xml: str, rt_id: str) -> int:
        """Append leftover imported XML to root, minus superseded labels.

        Returns:
            Number of elements reattached
        """
        try:
            container = parse_xml(unused_xml)
        except XmlParseError:
            try:
                fragments = parse_fragment(unused_xml)
            except XmlParseError as e:
                logger.warning(f"Dropping unparseable leftover XML on {rt_id}: {e}", extra={"rt_id": rt_id})
                return 0
            if not fragments:
                return 0
            container = fragments[0]

        count = 0
        for child in container.element_children():
            if child.tag == "rdfs:label":
                continue
            child.detach()
            root.append(child)
            count += 1
        return count

    # -- properties ----------------------------------------------------------

    async def compile_property(self, rt_id: str, pt: dict) -> list[XmlElement | XmlText]:
        """Compile one property template into zero or more nodes."""
        property_uri = pt.get("propertyURI")

        if pt.get("deepHierarchy"):
            return self._deep_hierarchy(rt_id, pt)

        if property_uri in IGNORED_PROPERTIES:
            logger.debug(f"Not emitting structural property {property_uri} from user data", extra={"property_uri": property_uri})
            return []

        user_value, siblings = select_user_value(pt)
        if not has_usable_value(user_value):
            return []

        values = list(user_value) if isinstance(user_value, list) else [user_value, *siblings]
        nodes = []
        for value in values:
            if not has_usable_value(value):
                continue
            node = await self.compile_value(property_uri, value)
            if node is not None:
                nodes.append(node)
        return nodes

    async def compile_value(self, property_uri: str, value: Any):
        """Compile one top-level value, asking the type oracle for untyped ones."""
        if is_blank_node(value):
            return await self.bnode_builder.build_predicate(property_uri, value)

        special = await self.bnode_builder.build_special(property_uri, value)
        if special is not None:
            return special

        suggested = await self.type_oracle.suggest_type(property_uri)
        if suggested == RDFS_LITERAL:
            return build_literal(property_uri, value)

        if isinstance(value, dict) and isinstance(value.get("@id"), str) and value["@id"]:
            element = make_element(property_uri)
            if isinstance(element, XmlElement) and not element.is_fallback:
                return element.set("rdf:resource", value["@id"])
            return None

        return await self.bnode_builder.build_predicate(property_uri, value)

    def _deep_hierarchy(self, rt_id: str, pt: dict) -> list[XmlElement]:
        xml_source = pt.get("xmlSource")
        if not xml_source:
            return []
        try:
            fragments = parse_fragment(xml_source)
        except XmlParseError as e:
            logger.warning(f"Dropping unparseable deep hierarchy XML on {rt_id}: {e}", extra={"rt_id": rt_id})
            return []
        return fragments[:1]

    # -- linking -------------------------------------------------------------

    def _items_for(self, assembled: AssembledProfile, instance: RootEntry) -> list[RootEntry]:
        if not instance.uri:
            return []
        return [item for item in assembled.lookup[ITEM].values() if item.item_of == instance.uri]

    def _work_for(self, assembled: AssembledProfile, instance: RootEntry) -> RootEntry | None:
        works = assembled.lookup[WORK]
        if instance.instance_of and instance.instance_of in works:
            return works[instance.instance_of]
        return next(iter(works.values()), None)

    def link_primary(self, assembled: AssembledProfile, update_mode: bool = False) -> XmlElement:
        """Build the primary document.

        Instances are the document roots: each embeds its Items under
        bf:hasItem and its Work under bf:instanceOf (a URI reference in
        update mode). Items that belong to no Instance and all Hubs follow as
        top-level siblings.
        """
        document = new_document()
        instances = assembled.of_kind(INSTANCE)
        embedded: set[int] = set()

        if instances:
            for instance in instances:
                element = instance.element.deep_copy()
                for item in self._items_for(assembled, instance):
                    has_item = element.append(XmlElement("bf:hasItem"))
                    has_item.append(ensure_item_of(item.element.deep_copy(), instance.uri))
                    embedded.add(id(item))

                work = self._work_for(assembled, instance)
                if work is not None:
                    instance_of = element.append(XmlElement("bf:instanceOf"))
                    if update_mode and work.uri:
                        instance_of.set("rdf:resource", work.uri)
                    else:
                        instance_of.append(work.element.deep_copy())
                document.append(element)
        else:
            works = assembled.of_kind(WORK)
            if update_mode:
                works = works[:1]
            for work in works:
                document.append(work.element.deep_copy())

        for item in assembled.of_kind(ITEM):
            if id(item) not in embedded:
                document.append(ensure_item_of(item.element.deep_copy(), item.item_of))

        for hub in assembled.of_kind(HUB):
            document.append(hub.element.deep_copy())
        return document

    def link_basic(self, assembled: AssembledProfile) -> XmlElement:
        """Build the basic document: every entity top-level, linked by URI."""
        document = new_document()

        for work in assembled.of_kind(WORK):
            document.append(work.element.deep_copy())

        for instance in assembled.of_kind(INSTANCE):
            element = instance.element.deep_copy()
            for item in self._items_for(assembled, instance):
                if item.uri:
                    element.append(XmlElement("bf:hasItem", {"rdf:resource": item.uri}))
            work = self._work_for(assembled, instance)
            if work is not None and work.uri:
                element.append(XmlElement("bf:instanceOf", {"rdf:resource": work.uri}))
            document.append(element)

        for item in assembled.of_kind(ITEM):
            document.append(ensure_item_of(item.element.deep_copy(), item.item_of))

        for hub in assembled.of_kind(HUB):
            document.append(hub.element.deep_copy())
        return document
