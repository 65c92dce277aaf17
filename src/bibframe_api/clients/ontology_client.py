#!/usr/bin/env python3
"""Client for ontology property descriptions published as RDF/XML.

Each ontology property is served at ``<property URI>.rdf``. The client reads
its ``rdfs:range`` and keeps answers in a time-limited in-memory cache.
"""

import logging
import time
from typing import Callable

import defusedxml.ElementTree as ET
import httpx
from defusedxml.common import DefusedXmlException

from ..core.config import export_config

logger = logging.getLogger(__name__)

RDF_NS = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
RDFS_NS = "http://www.w3.org/2000/01/rdf-schema#"


class OntologyLookupError(Exception):
    """Raised when an ontology document cannot be fetched or parsed."""
    pass


class OntologyClient:
    """Fetches property ranges from the published ontology."""

    def __init__(
        self,
        timeout: float | None = None,
        cache_ttl: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._timeout = timeout if timeout is not None else export_config.ONTOLOGY_TIMEOUT
        self._cache_ttl = cache_ttl if cache_ttl is not None else export_config.ONTOLOGY_CACHE_TTL
        self._transport = transport
        self._clock = clock
        self._cache: dict[str, tuple[float, str | None]] = {}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport, follow_redirects=True)

    def cached(self, property_uri: str) -> tuple[bool, str | None]:
        """Return (hit, range) from the cache, dropping expired entries."""
        entry = self._cache.get(property_uri)
        if entry is None:
            return False, None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._cache[property_uri]
            return False, None
        return True, value

    async def fetch_range(self, property_uri: str) -> str | None:
        """Return the rdfs:range of a property, or None if it declares none.

        Args:
            property_uri: Absolute ontology property URI

        Returns:
            Range URI or None

        Raises:
            OntologyLookupError: If the document cannot be retrieved or parsed
        """
        hit, value = self.cached(property_uri)
        if hit:
            return value

        url = f"{property_uri}.rdf"
        try:
            async with self._client() as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise OntologyLookupError(f"Failed to fetch ontology document {url}: {e}") from e

        range_uri = parse_range(response.text)
        self._cache[property_uri] = (self._clock() + self._cache_ttl, range_uri)
        logger.debug(f"Ontology range for {property_uri}: {range_uri}")
        return range_uri


def parse_range(rdf_xml: str) -> str | None:
    """Extract the first rdfs:range/@rdf:resource from an RDF/XML document.

    Raises:
        OntologyLookupError: If the document is not well-formed XML
    """
    try:
        root = ET.fromstring(rdf_xml)
    except (ET.ParseError, DefusedXmlException) as e:
        raise OntologyLookupError(f"Ontology document is not valid XML: {e}") from e

    for range_el in root.iter(f"{{{RDFS_NS}}}range"):
        resource = range_el.get(f"{{{RDF_NS}}}resource")
        if resource:
            return resource
    return None
