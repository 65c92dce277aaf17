#!/usr/bin/env python3
"""Element factory: the single fail-safe entry point for building elements.

Names arrive from user data in many shapes (absolute URIs, prefixed names,
stray list indexes). :func:`make_element` turns any of them into a
namespace-qualified :class:`XmlElement`, or into a logged
:class:`FallbackNode` that is never serialized. It never raises.
"""

import logging
import re

from .namespaces import BF, MADSRDF, NAMESPACES, prefix_for_namespace, qualify, split_qname, is_ncname
from .nodes import FallbackNode, XmlElement, XmlText

logger = logging.getLogger(__name__)

# Names that always resolve, bypassing general resolution
ALWAYS_KNOWN = {
    "Barcode": "bf:Barcode",
    "bf:Barcode": "bf:Barcode",
    f"{BF}Barcode": "bf:Barcode",
}

_NUMERIC = re.compile(r"^\d[\d\s]*$")


def make_element(spec, local_name: str | None = None, attributes: dict[str, str] | None = None):
    """Build a namespace-qualified element from a URI or qualified name.

    Args:
        spec: Absolute URI, prefixed name (``bf:title``), or a namespace URI
            when local_name is given
        local_name: Local name for the two-argument form
        attributes: Optional attributes to set on the new element

    Returns:
        XmlElement on success; XmlText for a purely numeric single-argument
        spec; FallbackNode for anything that cannot be qualified

    Example:
        >>> make_element("http://id.loc.gov/ontologies/bibframe/title").tag
        'bf:title'
        >>> make_element("bf:Work").tag
        'bf:Work'
    """
    if spec is None:
        return _fallback("missing element name")

    if local_name is None and isinstance(spec, str) and spec.strip() in ALWAYS_KNOWN:
        return XmlElement(ALWAYS_KNOWN[spec.strip()], attributes)

    if local_name is not None:
        return _from_namespace_pair(str(spec), str(local_name), attributes)

    if isinstance(spec, (int, float)) and not isinstance(spec, bool):
        spec = str(spec)
    if not isinstance(spec, str):
        return _fallback(f"unsupported element name type {type(spec).__name__}")

    name = re.sub(r"\s+", "", spec)
    if _NUMERIC.match(spec.strip() or "x"):
        # List indexes leaking into a name position
        return XmlText(spec.strip())

    if "://" in name:
        return _from_uri(name, spec, attributes)

    if ":" in name:
        parts = split_qname(name)
        if parts is None or parts[0] not in NAMESPACES:
            return _fallback(f"unregistered or malformed prefixed name {spec!r}")
        return XmlElement(name, attributes)

    return _fallback(f"unqualified element name {spec!r}")


def make_text(value) -> XmlText:
    """Build a text node from any scalar."""
    return XmlText("" if value is None else str(value))


def normalize_uri(uri: str) -> str:
    """Normalize the URI quirks seen in editor data before prefix matching."""
    uri = re.sub(r"\s+", "", uri)
    if uri.startswith("https://"):
        uri = "http://" + uri[len("https://"):]
    if uri == MADSRDF:
        uri = f"{MADSRDF}Authority"
    return uri


def _from_uri(name: str, original: str, attributes):
    uri = normalize_uri(name)
    tag = qualify(uri)
    if tag is None:
        return _fallback(f"no registered namespace for {original!r}")
    return XmlElement(tag, attributes)


def _from_namespace_pair(namespace_uri: str, local_name: str, attributes):
    prefix = prefix_for_namespace(namespace_uri) or prefix_for_namespace(normalize_uri(namespace_uri))
    if prefix is None:
        return _fallback(f"unregistered namespace {namespace_uri!r}")
    if not is_ncname(local_name):
        return _fallback(f"invalid local name {local_name!r} in {namespace_uri}")
    return XmlElement(f"{prefix}:{local_name}", attributes)


def _fallback(reason: str) -> FallbackNode:
    logger.warning(f"Element factory fallback: {reason}")
    return FallbackNode(reason)
