#!/usr/bin/env python3
"""Client for the usage and access policy vocabularies.

Both vocabularies are JSON arrays of MADS authorities:
``[{"@id": ..., "http://www.loc.gov/mads/rdf/v1#authoritativeLabel": [{"@value": ...}]}]``.
"""

import logging

import httpx

from ..core.config import export_config

logger = logging.getLogger(__name__)

POLICY_FILES = {
    "access": "accessPolicies.json",
    "use": "usePolicies.json",
}


class PolicyLookupError(Exception):
    """Raised when a policy vocabulary cannot be fetched."""
    pass


class PolicyClient:
    """Fetches policy vocabularies from a base URL."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url if base_url is not None else export_config.POLICY_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    async def fetch_policies(self, kind: str) -> list[dict]:
        """Fetch one vocabulary.

        Args:
            kind: 'access' or 'use'

        Returns:
            List of policy entries

        Raises:
            PolicyLookupError: On unknown kind, HTTP failure or a non-list payload
        """
        if kind not in POLICY_FILES:
            raise PolicyLookupError(f"Unknown policy list: {kind}")
        if not self.enabled:
            raise PolicyLookupError("POLICY_BASE_URL is not configured")

        url = f"{self.base_url}/{POLICY_FILES[kind]}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(url)
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise PolicyLookupError(f"Failed to fetch {kind} policies from {url}: {e}") from e

        if not isinstance(payload, list):
            raise PolicyLookupError(f"Expected a JSON array from {url}, got {type(payload).__name__}")
        logger.debug(f"Fetched {len(payload)} {kind} policies")
        return payload
