#!/usr/bin/env python3
"""Type oracle: decides whether an untyped property takes a literal or a resource.

Well-known annotation properties answer from a fixed table; everything else
asks the ontology for the property's ``rdfs:range``.
"""

import logging

from ....clients.ontology_client import OntologyClient, OntologyLookupError
from .namespaces import BFLC, MADSRDF, RDF, RDF_VALUE, RDFS_LABEL, RDFS_LITERAL

logger = logging.getLogger(__name__)

BFSIMPLE = "http://id.loc.gov/ontologies/bfsimple/"
DATETIME_RANGE = "http://www.loc.gov/standards/datetime/pre-submission.html"

KNOWN_RANGES = {
    RDFS_LABEL: RDFS_LITERAL,
    f"{MADSRDF}authoritativeLabel": RDFS_LITERAL,
    RDF_VALUE: RDFS_LITERAL,
    f"{MADSRDF}componentList": f"{RDF}List",
    # Not yet published in the ontologies
    f"{BFSIMPLE}prefTitle": RDFS_LITERAL,
    f"{BFSIMPLE}variantTitle": RDFS_LITERAL,
    f"{BFSIMPLE}transTitle": RDFS_LITERAL,
    f"{BFLC}date": RDFS_LITERAL,
    f"{BFLC}aap-normalized": RDFS_LITERAL,
    f"{BFLC}aap": RDFS_LITERAL,
    f"{BFLC}simplePlace": RDFS_LITERAL,
    f"{BFLC}simpleAgent": RDFS_LITERAL,
    f"{BFLC}simpleDate": RDFS_LITERAL,
}

# Ranges that are serialized as plain literals
LITERAL_RANGES = {f"{BFLC}date", DATETIME_RANGE}


class TypeOracle:
    """Suggests the range type of a property."""

    def __init__(self, client: OntologyClient | None = None):
        self._client = client

    async def suggest_type(self, property_uri: str) -> str | None:
        """Return the suggested range URI for property_uri, or None if unknown."""
        if property_uri in KNOWN_RANGES:
            return KNOWN_RANGES[property_uri]
        if self._client is None:
            return None

        try:
            range_uri = await self._client.fetch_range(property_uri)
        except OntologyLookupError as e:
            logger.warning(f"Type lookup failed for {property_uri}: {e}")
            return None

        if range_uri in LITERAL_RANGES:
            return RDFS_LITERAL
        if range_uri is None:
            logger.info(f"No range declared for {property_uri}")
        return range_uri
