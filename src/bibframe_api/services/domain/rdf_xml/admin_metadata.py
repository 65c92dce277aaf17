#!/usr/bin/env python3
"""Administrative metadata synthesis and assigner repair.

Every Work and Instance leaves the pipeline with a ``bf:AdminMetadata``
holding exactly one ``bf:assigner``::

    <bf:adminMetadata>
      <bf:AdminMetadata>
        <bf:date>2026-10-19T14:03:11+00:00</bf:date>
        <bflc:catalogerId>abc</bflc:catalogerId>
        <bf:assigner>
          <bf:Organization rdf:about="http://id.loc.gov/vocabulary/organizations/pu">
            <rdfs:label>University of Pennsylvania, Van Pelt-Dietrich Library</rdfs:label>
          </bf:Organization>
        </bf:assigner>
        <bf:status>
          <bf:Status rdf:about="http://id.loc.gov/vocabulary/mstatus/c">
            <rdfs:label>changed</rdfs:label>
          </bf:Status>
        </bf:status>
      </bf:AdminMetadata>
    </bf:adminMetadata>
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Iterable

from ....core.config import DEFAULT_ASSIGNER_LABEL, DEFAULT_ASSIGNER_URI
from .nodes import XmlElement, XmlText

logger = logging.getLogger(__name__)

ORGANIZATIONS = "http://id.loc.gov/vocabulary/organizations/"
STATUS_CHANGED = "http://id.loc.gov/vocabulary/mstatus/c"

ORGANIZATION_LABELS = {
    f"{ORGANIZATIONS}dlc": "United States, Library of Congress",
    f"{ORGANIZATIONS}dlcmrc": "United States, Library of Congress, Network Development and MARC Standards Office",
    f"{ORGANIZATIONS}pu": DEFAULT_ASSIGNER_LABEL,
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _label_element(text: str) -> XmlElement:
    label = XmlElement("rdfs:label")
    label.append(XmlText(text))
    return label


def _is_blank_text(node) -> bool:
    return isinstance(node, XmlText) and node.text.strip() in ("", "0")


def _organization_label(element: XmlElement) -> str | None:
    label = element.find("rdfs:label")
    if label is None:
        return None
    text = label.text_content().strip()
    return text or None


def ensure_organization_labels(root: XmlElement) -> int:
    """Add rdfs:label to well-known bf:Organization elements that lack one.

    MARC conversion needs the organization name as text.

    Returns:
        Number of labels added
    """
    added = 0
    for organization in root.iter("bf:Organization"):
        if organization.find("rdfs:label") is not None:
            continue
        label = ORGANIZATION_LABELS.get(organization.get("rdf:about") or "")
        if label:
            organization.append(_label_element(label))
            added += 1
    return added


class AdminMetadataSynthesizer:
    """Builds, attaches and deduplicates bf:AdminMetadata."""

    def __init__(
        self,
        cataloger_code: str = "",
        assigner_uri: str = DEFAULT_ASSIGNER_URI,
        assigner_label: str = DEFAULT_ASSIGNER_LABEL,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.cataloger_code = cataloger_code
        self.assigner_uri = assigner_uri
        self.assigner_label = assigner_label
        self.clock = clock

    def build_default_assigner(self) -> XmlElement:
        assigner = XmlElement("bf:assigner")
        organization = assigner.append(XmlElement("bf:Organization", {"rdf:about": self.assigner_uri}))
        organization.append(_label_element(self.assigner_label))
        return assigner

    def build_template(self) -> XmlElement:
        """Build the bf:adminMetadata property attached to Works and Instances."""
        admin_metadata = XmlElement("bf:adminMetadata")
        container = admin_metadata.append(XmlElement("bf:AdminMetadata"))

        container.append(XmlElement("bf:date")).append(XmlText(self.clock().isoformat(timespec="seconds")))
        if self.cataloger_code:
            container.append(XmlElement("bflc:catalogerId")).append(XmlText(self.cataloger_code))
        container.append(self.build_default_assigner())

        status = container.append(XmlElement("bf:status")).append(
            XmlElement("bf:Status", {"rdf:about": STATUS_CHANGED})
        )
        status.append(_label_element("changed"))

        self.dedupe_assigners(container)
        return admin_metadata

    def attach(self, roots: Iterable[XmlElement], template: XmlElement | None = None) -> int:
        """Attach a deep copy of the template to every root lacking admin metadata.

        Returns:
            Number of roots that received admin metadata
        """
        template = template if template is not None else self.build_template()
        attached = 0
        for root in roots:
            if root.find("bf:adminMetadata") is not None:
                continue
            root.append(template.deep_copy())
            attached += 1
        return attached

    def clean_assigner(self, assigner: XmlElement) -> None:
        """Repair one bf:assigner in place.

        Moves an rdf:resource reference or a misplaced nested rdf:about into a
        proper bf:Organization, drops stray whitespace or "0" text, and makes
        sure the organization carries a non-empty rdfs:label.
        """
        resource = assigner.pop("rdf:resource")
        if resource and assigner.find("bf:Organization") is None:
            assigner.append(XmlElement("bf:Organization", {"rdf:about": resource}))

        for node in list(assigner.children):
            if _is_blank_text(node):
                assigner.remove(node)

        for organization in assigner.find_all("bf:Organization"):
            about = organization.get("rdf:about")
            for nested in list(organization.iter_descendants("rdf:about")):
                about = about or nested.text_content().strip() or None
                nested.detach()
            organization.set("rdf:about", about or self.assigner_uri)
            about = organization.get("rdf:about")

            for node in list(organization.children):
                if _is_blank_text(node):
                    organization.remove(node)

            label = organization.find("rdfs:label")
            fallback = ORGANIZATION_LABELS.get(about) or (
                self.assigner_label if about == self.assigner_uri else about.rstrip("/").split("/")[-1]
            )
            if label is None:
                organization.append(_label_element(fallback))
            elif not label.text_content().strip():
                label.set_text(fallback)

    def dedupe_assigners(self, admin: XmlElement) -> XmlElement:
        """Leave exactly one clean bf:assigner on a bf:AdminMetadata element.

        The first assigner naming an organization with both rdf:about and a
        label wins; otherwise the first one is repaired. With none left, the
        configured default assigner is added.
        """
        assigners = admin.find_all("bf:assigner")
        best = None
        for assigner in assigners:
            organization = assigner.find("bf:Organization")
            if organization is not None and organization.get("rdf:about") and _organization_label(organization):
                best = assigner
                break
        if best is None and assigners:
            best = assigners[0]

        for assigner in assigners:
            if assigner is not best:
                assigner.detach()

        if best is not None:
            self.clean_assigner(best)
            if best.find("bf:Organization") is None:
                logger.warning("Assigner without an organization replaced by the default assigner")
                index = admin.children.index(best)
                best.detach()
                admin.insert(index, self.build_default_assigner())
        else:
            admin.append(self.build_default_assigner())
        return admin

    def dedupe_document(self, root: XmlElement) -> int:
        """Run assigner deduplication on every bf:AdminMetadata under root.

        Returns:
            Number of bf:AdminMetadata elements processed
        """
        count = 0
        for admin in list(root.iter("bf:AdminMetadata")):
            self.dedupe_assigners(admin)
            count += 1
        return count
