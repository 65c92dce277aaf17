#!/usr/bin/env python3

from typing import Any

from pydantic import BaseModel

# Pydantic Models


class ExportRequest(BaseModel):
    profile: dict[str, Any]
    focusedBarcode: str | None = None  # Barcode input focused in the editor, used to repair empty barcodes
    catalogerCode: str | None = None  # Falls back to CATALOGER_CODE
    catalogerInitials: str | None = None  # Falls back to CATALOGER_INITIALS
    templateProfiles: dict[str, Any] | None = None  # Loaded profile templates, keyed by profile id
    locationLabels: dict[str, str] | None = None  # Location code to display label


class ExportResponse(BaseModel):
    xmlStringFormatted: str
    xlmString: str  # Field names match the editor's existing save payload
    bf2Marc: str
    xlmStringBasic: str
    voidTitle: str = ""
    voidContributor: str = ""
    componentXmlLookup: dict[str, str] = {}
