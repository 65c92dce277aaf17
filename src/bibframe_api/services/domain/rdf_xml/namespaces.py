#!/usr/bin/env python3
"""Namespace registry for BIBFRAME RDF/XML output.

A fixed, read-only prefix to URI table. Every element the export pipeline
emits must resolve through this table, so that output documents can declare
all namespaces once on the rdf:RDF root.
"""

import re

NAMESPACES: dict[str, str] = {
    "bflc": "http://id.loc.gov/ontologies/bflc/",
    "bf": "http://id.loc.gov/ontologies/bibframe/",
    "bfsimple": "http://id.loc.gov/ontologies/bfsimple/",
    "madsrdf": "http://www.loc.gov/mads/rdf/v1#",
    "rdfs": "http://www.w3.org/2000/01/rdf-schema#",
    "rdf": "http://www.w3.org/1999/02/22-rdf-syntax-ns#",
    "lclocal": "http://id.loc.gov/ontologies/lclocal/",
    "pmo": "http://performedmusicontology.org/ontology/",
    "datatypes": "http://id.loc.gov/datatypes/",
    "xsd": "http://www.w3.org/2001/XMLSchema#",
    "mstatus": "http://id.loc.gov/vocabulary/mstatus/",
    "mnotetype": "http://id.loc.gov/vocabulary/mnotetype/",
    "dcterms": "http://purl.org/dc/terms/",
    "owl": "http://www.w3.org/2002/07/owl#",
    "void": "http://rdfs.org/ns/void#",
    "lcc": "http://id.loc.gov/ontologies/lcc#",
    "skos": "http://www.w3.org/2004/02/skos/core#",
    "foaf": "http://xmlns.com/foaf/0.1/",
}

# Reserved by XML itself, never declared
XML_NS = "http://www.w3.org/XML/1998/namespace"

BF = NAMESPACES["bf"]
BFLC = NAMESPACES["bflc"]
RDF = NAMESPACES["rdf"]
RDFS = NAMESPACES["rdfs"]
MADSRDF = NAMESPACES["madsrdf"]
LCLOCAL = NAMESPACES["lclocal"]
VOID = NAMESPACES["void"]

RDFS_LITERAL = f"{RDFS}Literal"
RDFS_RESOURCE = f"{RDFS}Resource"
RDFS_LABEL = f"{RDFS}label"
RDF_VALUE = f"{RDF}value"
RDF_TYPE = f"{RDF}type"

_PREFIXED_NAME = re.compile(r"^([A-Za-z_][A-Za-z0-9_.-]*):([A-Za-z_][A-Za-z0-9_.-]*)$")


def prefix_for_namespace(namespace_uri: str) -> str | None:
    """Return the registered prefix for an exact namespace URI."""
    for prefix, uri in NAMESPACES.items():
        if uri == namespace_uri:
            return prefix
    return None


def split_uri(uri: str) -> tuple[str, str] | None:
    """Split an absolute URI into (prefix, local name) by longest namespace match.

    Args:
        uri: Absolute URI such as http://id.loc.gov/ontologies/bibframe/Work

    Returns:
        (prefix, local) tuple, or None when no registered namespace matches
        or the remainder is not a valid XML local name
    """
    best_prefix = None
    best_length = 0
    for prefix, namespace_uri in NAMESPACES.items():
        if uri.startswith(namespace_uri) and len(namespace_uri) > best_length:
            best_prefix = prefix
            best_length = len(namespace_uri)

    if best_prefix is None:
        return None

    local = uri[best_length:]
    if not is_ncname(local):
        return None
    return best_prefix, local


def qualify(uri: str) -> str | None:
    """Return prefix:local for an absolute URI, or None if it cannot be qualified."""
    parts = split_uri(uri)
    if parts is None:
        return None
    return f"{parts[0]}:{parts[1]}"


def split_qname(qname: str) -> tuple[str, str] | None:
    """Split prefix:local into its parts without checking the registry."""
    match = _PREFIXED_NAME.match(qname)
    if not match:
        return None
    return match.group(1), match.group(2)


def is_ncname(name: str) -> bool:
    """True if name is usable as an XML local name."""
    return bool(re.match(r"^[A-Za-z_][A-Za-z0-9_.-]*$", name or ""))


def root_declarations() -> dict[str, str]:
    """Return xmlns attributes declaring every registered namespace."""
    return {f"xmlns:{prefix}": uri for prefix, uri in NAMESPACES.items()}


def parse_ns(xml_text: str) -> dict[str, str]:
    """Collect prefixed namespace declarations from raw XML text.

    Args:
        xml_text: XML fragment or document

    Returns:
        Dictionary mapping prefixes to namespace URIs, first declaration wins
    """
    ns_map: dict[str, str] = {}
    for prefix, uri in re.findall(r'xmlns:([A-Za-z0-9_.-]+)\s*=\s*"([^"]+)"', xml_text):
        ns_map.setdefault(prefix, uri)
    return ns_map
