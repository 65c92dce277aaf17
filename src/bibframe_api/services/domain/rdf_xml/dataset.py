#!/usr/bin/env python3
"""Dataset description: the summary fields the record store indexes.

The values are read from the "basic" document, where Works, Instances and
Items sit side by side as top-level resources, and packaged in a
``void:DatasetDescription`` carried at the end of the primary document.
"""

import logging
from dataclasses import dataclass, field

from .namespaces import BFLC
from .nodes import XmlElement, XmlText

logger = logging.getLogger(__name__)

PRIMARY_CONTRIBUTION = f"{BFLC}PrimaryContribution"
CANCELLED_STATUS_SUFFIXES = ("/mstatus/cancinv", "/mstatus/cancelled")
CANCELLED_STATUS_LABELS = ("canceled or invalid", "cancelled or invalid", "invalid", "canceled", "cancelled")


@dataclass
class DatasetDescription:
    """Values for the void:DatasetDescription element."""

    rts_used: list[str] = field(default_factory=list)
    profile_types: list[str] = field(default_factory=list)
    title: str = ""
    contributor: str = ""
    lccn: str = ""
    user: str = ""
    status: str = ""
    eid: str = ""
    type_id: str = ""
    proc_info: str = ""
    external_ids: list[str] = field(default_factory=list)

    def to_element(self) -> XmlElement:
        description = XmlElement("void:DatasetDescription")

        def _add(tag: str, value) -> None:
            description.append(XmlElement(tag)).append(XmlText("" if value is None else str(value)))

        for rt_id in self.rts_used:
            _add("lclocal:rtsused", rt_id)
        for profile_type in self.profile_types:
            _add("lclocal:profiletypes", profile_type)
        _add("lclocal:title", self.title)
        _add("lclocal:contributor", self.contributor)
        _add("lclocal:lccn", self.lccn)
        _add("lclocal:user", self.user)
        _add("lclocal:status", self.status)
        _add("lclocal:eid", self.eid)
        _add("lclocal:typeid", self.type_id)
        _add("lclocal:procinfo", self.proc_info)
        for external_id in self.external_ids:
            _add("lclocal:externalid", external_id)
        return description


def _text(element: XmlElement | None) -> str:
    return element.text_content().strip() if element is not None else ""


def _roots(document: XmlElement, *tags: str) -> list[XmlElement]:
    return [child for child in document.element_children() if child.tag in tags]


def extract_title(document: XmlElement) -> str:
    """Main title of the first Work or Instance that has one.

    Falls back to the title's rdfs:label, then to the resource's own label.
    """
    fallback = ""
    for root in _roots(document, "bf:Work") + _roots(document, "bf:Instance"):
        for title_property in root.find_all("bf:title"):
            for title in title_property.element_children():
                main_title = _text(title.find("bf:mainTitle"))
                if main_title:
                    return main_title
                fallback = fallback or _text(title.find("rdfs:label"))
        fallback = fallback or _text(root.find("rdfs:label"))
    return fallback


def _is_primary(contribution: XmlElement) -> bool:
    if contribution.tag == "bflc:PrimaryContribution":
        return True
    return any(t.get("rdf:resource") == PRIMARY_CONTRIBUTION for t in contribution.find_all("rdf:type"))


def extract_contributor(document: XmlElement) -> str:
    """Label of the primary contribution's agent on the first Work that has one."""
    for root in _roots(document, "bf:Work"):
        for contribution_property in root.find_all("bf:contribution"):
            for contribution in contribution_property.element_children():
                if not _is_primary(contribution):
                    continue
                for agent_property in contribution.find_all("bf:agent"):
                    for agent in agent_property.element_children():
                        label = _text(agent.find("rdfs:label"))
                        if label:
                            return label
    return ""


def _is_cancelled(identifier: XmlElement) -> bool:
    for status_property in identifier.find_all("bf:status"):
        for status in status_property.element_children():
            about = status.get("rdf:about") or ""
            if about.endswith(CANCELLED_STATUS_SUFFIXES):
                return True
            if _text(status.find("rdfs:label")).lower() in CANCELLED_STATUS_LABELS:
                return True
    return False


def extract_lccn(document: XmlElement) -> str:
    """First LCCN that is not marked cancelled or invalid."""
    for root in _roots(document, "bf:Instance", "bf:Work"):
        for lccn in root.iter_descendants("bf:Lccn"):
            if _is_cancelled(lccn):
                logger.debug(f"Skipping cancelled LCCN {_text(lccn.find('rdf:value'))!r}")
                continue
            value = _text(lccn.find("rdf:value")) or _text(lccn)
            if value:
                return value
    return ""
