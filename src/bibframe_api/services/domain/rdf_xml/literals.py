#!/usr/bin/env python3
"""Literal builder: turns literal-shaped user values into predicate elements.

A literal-shaped value is anything without an ``@type``: a bare string or
number, ``{'@value': ...}``, or an object keyed by its own predicate. The
builder finds the value, then emits either text content or an
``rdf:resource`` reference.
"""

import logging
import re
from typing import Any

from .classifier import is_absolute_uri, is_primitive
from .element_factory import make_element
from .namespaces import BF, RDF_VALUE
from .nodes import XmlElement, XmlText

logger = logging.getLogger(__name__)

_NUMERIC = re.compile(r"^\d[\d\s]*$")

BARCODE_KEYS = ("bf:Barcode", f"{BF}Barcode", "rdf:value", RDF_VALUE)


def is_barcode_property(property_uri: Any) -> bool:
    if not isinstance(property_uri, str):
        return False
    return property_uri.endswith("Barcode") or "barcode" in property_uri.lower()


def build_barcode(raw_value: Any) -> XmlElement | None:
    """Normalize any barcode value shape to ``bf:Barcode > rdf:value``.

    Returns:
        The bf:Barcode element, or None when no barcode text can be found
    """
    value = extract_barcode_value(raw_value)
    if value is None:
        logger.debug(f"No barcode value in {raw_value!r}")
        return None

    barcode = XmlElement("bf:Barcode")
    barcode.append(XmlElement("rdf:value")).append(XmlText(value))
    return barcode


def extract_barcode_value(raw_value: Any) -> str | None:
    if is_primitive(raw_value):
        text = str(raw_value).strip()
        return text or None

    if isinstance(raw_value, list):
        for item in raw_value:
            found = extract_barcode_value(item)
            if found:
                return found
        return None

    if not isinstance(raw_value, dict):
        return None

    if "@value" in raw_value:
        return extract_barcode_value(raw_value["@value"])

    for key in BARCODE_KEYS:
        if key in raw_value:
            found = extract_barcode_value(raw_value[key])
            if found:
                return found

    for key, value in raw_value.items():
        if not str(key).startswith("@") and is_primitive(value):
            return extract_barcode_value(value)
    return None


def unwrap_value(value: Any) -> Any:
    """Reduce ``{'@value': x}`` and single-entry lists to the scalar inside."""
    while True:
        if isinstance(value, list) and len(value) == 1:
            value = value[0]
        elif isinstance(value, dict) and "@value" in value:
            value = value["@value"]
        else:
            return value


def build_literal(property_uri: Any, raw_value: Any):
    """Build a predicate element holding a literal or resource reference.

    Lookup order for object values: ``raw[property]``, ``raw['rdf:value']``,
    ``raw['@id']`` (emitted as rdf:resource), then the first key that is
    neither ``@``-prefixed nor a URI and holds a string or number.

    Args:
        property_uri: Predicate URI or prefixed name
        raw_value: Literal-shaped user value

    Returns:
        XmlElement, an inert XmlText for numeric property names, or None
        when no value can be extracted
    """
    if property_uri is None or raw_value is None:
        return None

    if is_barcode_property(property_uri):
        return build_barcode(raw_value)

    if isinstance(property_uri, (int, float)) or _NUMERIC.match(str(property_uri).strip() or "x"):
        value = unwrap_value(raw_value)
        return XmlText(str(value)) if is_primitive(value) else None

    element = make_element(property_uri)
    if not isinstance(element, XmlElement) or element.is_fallback:
        logger.warning(f"Skipping literal for unresolvable property {property_uri!r}")
        return None

    text, resource = _find_value(property_uri, raw_value)
    if resource is not None:
        element.set("rdf:resource", resource)
    elif text is not None:
        element.append(XmlText(text))
    else:
        logger.debug(f"No literal value for {property_uri} in {raw_value!r}")
        return None

    if isinstance(raw_value, dict):
        _copy_literal_attributes(raw_value, element)
    return element


def _find_value(property_uri: str, raw_value: Any) -> tuple[str | None, str | None]:
    """Return (text, resource) for a raw literal value."""
    value = unwrap_value(raw_value)
    if is_primitive(value):
        return str(value), None
    if not isinstance(value, dict):
        return None, None

    for key in (property_uri, "rdf:value", RDF_VALUE):
        if key in value:
            found = unwrap_value(value[key])
            if is_primitive(found):
                return str(found), None
            if isinstance(found, dict) and isinstance(found.get("@id"), str):
                return None, found["@id"]

    if isinstance(value.get("@id"), str) and value["@id"]:
        return None, value["@id"]

    for key, candidate in value.items():
        if str(key).startswith("@") or is_absolute_uri(key):
            continue
        candidate = unwrap_value(candidate)
        if is_primitive(candidate):
            return str(candidate), None

    return None, None


def _copy_literal_attributes(raw_value: dict, element: XmlElement) -> None:
    if raw_value.get("@language"):
        element.set("xml:lang", raw_value["@language"])
    if raw_value.get("@datatype") and element.get("rdf:resource") is None:
        element.set("rdf:datatype", raw_value["@datatype"])
    if raw_value.get("@parseType"):
        element.set("rdf:parseType", raw_value["@parseType"])
