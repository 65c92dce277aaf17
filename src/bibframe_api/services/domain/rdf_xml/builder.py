#!/usr/bin/env python3
"""
Profile to RDF/XML compiler.

Orchestrates one build: top-level roots are assembled from the profile,
admin metadata is attached, the roots are linked into the primary and basic
documents, a dataset description is added, and all output documents are
cleaned and serialized into an :class:`XmlBuildResult`.

Can also be run from the command line to export a saved profile::

    python -m bibframe_api.services.domain.rdf_xml.builder profile.json -o record.xml
"""

import argparse
import asyncio
import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ....clients.ontology_client import OntologyClient
from ....clients.policy_client import PolicyClient
from ....core.config import export_config
from ....core.logging import setup_logging
from .admin_metadata import AdminMetadataSynthesizer
from .assembler import INSTANCE, WORK, EntityAssembler, is_update_mode
from .bnode_builder import BnodeBuilder
from .dataset import DatasetDescription, extract_contributor, extract_lccn, extract_title
from .policy import PolicyLookupService
from .serializer import XmlBuildResult, finalize, to_result
from .type_oracle import TypeOracle

logger = logging.getLogger(__name__)


@dataclass
class BuildContext:
    """Per-request values that are not part of the profile itself."""

    cataloger_code: str = ""
    cataloger_initials: str = ""
    focused_barcode: str | None = None
    location_labels: dict[str, str] = field(default_factory=dict)
    # Loaded profile templates, searched for policy lookup data
    template_profiles: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_config(cls, **overrides) -> "BuildContext":
        """Context with the configured cataloger identity, overridden where given."""
        values = {
            "cataloger_code": export_config.CATALOGER_CODE,
            "cataloger_initials": export_config.CATALOGER_INITIALS,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


def is_buildable(profile: Any) -> bool:
    return (
        isinstance(profile, dict)
        and isinstance(profile.get("rt"), dict)
        and isinstance(profile.get("rtOrder"), list)
        and bool(profile["rtOrder"])
    )


class ProfileXmlBuilder:
    """Compiles one profile into the full set of RDF/XML outputs."""

    def __init__(
        self,
        bnode_builder: BnodeBuilder | None = None,
        type_oracle: TypeOracle | None = None,
        synthesizer: AdminMetadataSynthesizer | None = None,
        context: BuildContext | None = None,
    ):
        self.context = context or BuildContext()
        self.bnode_builder = bnode_builder or BnodeBuilder(
            PolicyLookupService(template_profiles=self.context.template_profiles)
        )
        self.type_oracle = type_oracle or TypeOracle()
        self.synthesizer = synthesizer or AdminMetadataSynthesizer(
            cataloger_code=self.context.cataloger_code,
            assigner_uri=export_config.DEFAULT_ASSIGNER_URI,
            assigner_label=export_config.DEFAULT_ASSIGNER_LABEL,
        )
        self.assembler = EntityAssembler(self.bnode_builder, self.type_oracle, self.context.location_labels)

    @classmethod
    def from_config(
        cls,
        context: BuildContext | None = None,
        offline: bool = False,
        type_oracle: TypeOracle | None = None,
        policy_service: PolicyLookupService | None = None,
    ) -> "ProfileXmlBuilder":
        """Builder wired to the configured ontology and policy services.

        Args:
            context: Per-request values
            offline: Skip all network lookups (fixed type table and local
                policy labels only)
            type_oracle: Long-lived oracle to reuse instead of a new one
            policy_service: Long-lived policy service whose vocabulary cache
                the build shares
        """
        context = context or BuildContext()
        if type_oracle is None:
            type_oracle = TypeOracle(None if offline else OntologyClient())
        if policy_service is None:
            policy_service = PolicyLookupService(client=None if offline else PolicyClient())
        return cls(
            bnode_builder=BnodeBuilder(policy_service.for_request(context.template_profiles)),
            type_oracle=type_oracle,
            context=context,
        )

    async def build(self, profile: Any) -> XmlBuildResult:
        """Compile a profile.

        The caller's profile is never modified; the build works on a deep
        copy and reads leftover import XML from the caller's profile.

        Returns:
            XmlBuildResult; the empty bundle when the profile holds nothing
            to export
        """
        if not is_buildable(profile):
            logger.info("Profile has no resource templates to export, returning empty document")
            return XmlBuildResult.empty()

        working = copy.deepcopy(profile)
        assembled = await self.assembler.build_roots(working, profile)
        if not assembled.entries:
            logger.info("Profile has no top-level resources with data, returning empty document")
            return XmlBuildResult.empty()

        attached = self.synthesizer.attach(
            entry.element for entry in assembled.entries if entry.kind in (WORK, INSTANCE)
        )
        logger.debug(f"Attached admin metadata to {attached} roots")

        update_mode = is_update_mode(profile)
        primary = self.assembler.link_primary(assembled, update_mode)
        basic = self.assembler.link_basic(assembled)

        description = DatasetDescription(
            rts_used=assembled.rts_used,
            profile_types=assembled.profile_types,
            title=extract_title(basic),
            contributor=extract_contributor(basic),
            lccn=extract_lccn(basic),
            user=f"{self.context.cataloger_initials} ({self.context.cataloger_code})",
            status=profile.get("status") or "",
            eid=profile.get("eId") or "",
            type_id=profile.get("id") or "",
            proc_info=profile.get("procInfo") or "",
            external_ids=assembled.external_ids,
        )
        primary.append(description.to_element())

        primary, basic, marc = finalize(primary, basic, self.synthesizer, self.context.focused_barcode)

        logger.info(
            f"Built {len(assembled.entries)} resources "
            f"({'update' if update_mode else 'default'} mode), title={description.title!r}"
        )
        return to_result(
            primary,
            basic,
            marc,
            void_title=description.title,
            void_contributor=description.contributor,
            component_xml_lookup=assembled.component_xml_lookup,
        )


def load_profile(path: Path) -> Any:
    """Load a saved profile from JSON or YAML."""
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        return yaml.safe_load(text)
    return json.loads(text)


def main():
    """Command-line interface for exporting a saved profile."""
    parser = argparse.ArgumentParser(description="Compile a BIBFRAME editor profile to RDF/XML")
    parser.add_argument("profile", help="Path to the profile (.json, .yaml or .yml)")
    parser.add_argument("-o", "--out", help="Output file (default: stdout)")
    parser.add_argument("--basic", action="store_true", help="Write the basic document instead of the primary one")
    parser.add_argument("--marc", action="store_true", help="Write the MARC conversion subset")
    parser.add_argument("--offline", action="store_true", help="Do not contact the ontology or policy services")
    parser.add_argument("--cataloger-code", default=None, help="Cataloger code for admin metadata")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    args = parser.parse_args()

    setup_logging(args.log_level, stream="ext://sys.stderr")

    profile = load_profile(Path(args.profile))
    context = BuildContext.from_config(cataloger_code=args.cataloger_code)
    builder = ProfileXmlBuilder.from_config(context, offline=args.offline)
    result = asyncio.run(builder.build(profile))

    if args.marc:
        output = result.bf2marc
    elif args.basic:
        output = result.xml_string_basic
    else:
        output = result.xml_string_formatted

    if args.out:
        Path(args.out).write_text(output, encoding="utf-8")
        print(f"OK: wrote RDF/XML to {args.out}")  # noqa: T201
    else:
        print(output)  # noqa: T201


if __name__ == "__main__":
    main()
