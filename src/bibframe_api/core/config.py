#!/usr/bin/env python3
"""
Configuration for the RDF/XML export pipeline.

Every value can be overridden through environment variables so that a
deployment for another institution only needs a different .env file.
"""

import logging

from .env_utils import getenv_bool, getenv_clean, getenv_int, getenv_list

logger = logging.getLogger(__name__)

DEFAULT_ASSIGNER_URI = "http://id.loc.gov/vocabulary/organizations/pu"
DEFAULT_ASSIGNER_LABEL = "University of Pennsylvania, Van Pelt-Dietrich Library"


class ExportConfig:
    """Export pipeline configuration.

    Values are read when the instance is created, so tests that patch the
    environment should build a fresh ExportConfig rather than reuse the
    module singleton.
    """

    def __init__(self):
        # Developer mode lets build exceptions propagate instead of recovering
        self.DEV_MODE = getenv_bool("BIBFRAME_DEV_MODE", False)

        # Institution credited as bf:assigner in synthesized admin metadata
        self.DEFAULT_ASSIGNER_URI = getenv_clean("DEFAULT_ASSIGNER_URI", DEFAULT_ASSIGNER_URI)
        self.DEFAULT_ASSIGNER_LABEL = getenv_clean("DEFAULT_ASSIGNER_LABEL", DEFAULT_ASSIGNER_LABEL)

        # Cataloger identity used when the request does not carry one
        self.CATALOGER_CODE = getenv_clean("CATALOGER_CODE", "") or ""
        self.CATALOGER_INITIALS = getenv_clean("CATALOGER_INITIALS", "") or ""

        # Ontology range lookups (type oracle)
        self.ONTOLOGY_CACHE_TTL = getenv_int("ONTOLOGY_CACHE_TTL", 86400)
        self.ONTOLOGY_TIMEOUT = getenv_int("ONTOLOGY_TIMEOUT", 10)

        # Usage/access policy lists; unset means only the built-in labels are used
        self.POLICY_BASE_URL = getenv_clean("POLICY_BASE_URL", "") or ""

        # Error report collector; unset disables remote reporting
        self.ERROR_REPORT_URL = getenv_clean("ERROR_REPORT_URL", "") or ""

        self.CORS_ORIGINS = getenv_list("CORS_ORIGINS", ["http://localhost:3000"])
        self.APP_VERSION = getenv_clean("APP_VERSION", "unknown")

    def summary(self) -> dict:
        """Return a loggable view of the configuration."""
        return {
            "dev_mode": self.DEV_MODE,
            "default_assigner": self.DEFAULT_ASSIGNER_URI,
            "ontology_cache_ttl": self.ONTOLOGY_CACHE_TTL,
            "policy_lookup": bool(self.POLICY_BASE_URL),
            "error_reporting": bool(self.ERROR_REPORT_URL),
        }


# Singleton instance
export_config = ExportConfig()
