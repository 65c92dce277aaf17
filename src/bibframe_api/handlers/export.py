#!/usr/bin/env python3
"""
Handler for profile export requests.

Turns an ExportRequest into a build on the shared ExportService and maps the
outcome onto the HTTP response.
"""

import logging

from fastapi import HTTPException

from ..models.models import ExportRequest, ExportResponse
from ..services.domain.rdf_xml.builder import BuildContext
from ..services.domain.rdf_xml.serializer import XmlBuildResult
from ..services.export_service import ExportService

logger = logging.getLogger(__name__)


def to_response(result: XmlBuildResult) -> ExportResponse:
    return ExportResponse(
        xmlStringFormatted=result.xml_string_formatted,
        xlmString=result.xml_string,
        bf2Marc=result.bf2marc,
        xlmStringBasic=result.xml_string_basic,
        voidTitle=result.void_title,
        voidContributor=result.void_contributor,
        componentXmlLookup=result.component_xml_lookup,
    )


async def handle_export(request: ExportRequest, service: ExportService) -> ExportResponse:
    """Build RDF/XML for the submitted profile.

    Args:
        request: Profile plus per-request cataloger values
        service: Export service holding the last-known-good snapshot

    Returns:
        ExportResponse with all serialized documents

    Raises:
        HTTPException: 500 when the build failed and was recovered
    """
    context = BuildContext.from_config(
        cataloger_code=request.catalogerCode,
        cataloger_initials=request.catalogerInitials,
        focused_barcode=request.focusedBarcode,
        template_profiles=request.templateProfiles,
        location_labels=request.locationLabels,
    )
    logger.info(f"Export requested for {request.profile.get('eId') or 'unsaved record'}")

    result = await service.build_xml(request.profile, context)
    if result is None:
        raise HTTPException(
            status_code=500,
            detail="Export failed; the error has been reported and the last saved version kept"
        )
    return to_response(result)
