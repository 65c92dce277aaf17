#!/usr/bin/env python3
"""
HTTP clients for the export pipeline's external collaborators.

Clients are thin wrappers over httpx with no export logic of their own:
- ontology_client: property range lookups backing the type oracle
- policy_client: usage and access policy vocabularies
- error_report_client: delivery of build failure reports
"""

from .error_report_client import ErrorReportClient, ErrorReportError
from .ontology_client import OntologyClient, OntologyLookupError
from .policy_client import PolicyClient, PolicyLookupError

__all__ = [
    "ErrorReportClient",
    "ErrorReportError",
    "OntologyClient",
    "OntologyLookupError",
    "PolicyClient",
    "PolicyLookupError",
]
