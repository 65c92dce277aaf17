#!/usr/bin/env python3
"""Value classification for profile user values."""

from typing import Any

PRIMITIVE_TYPES = (str, int, float)


def is_primitive(value: Any) -> bool:
    return isinstance(value, PRIMITIVE_TYPES) and not isinstance(value, bool)


def is_absolute_uri(value: Any) -> bool:
    return isinstance(value, str) and (value.startswith("http://") or value.startswith("https://"))


def is_blank_node(node: Any) -> bool:
    """True if node is an object carrying a truthy @type."""
    return isinstance(node, dict) and bool(node.get("@type"))


def has_usable_value(node: Any) -> bool:
    """Decide whether a user value holds anything worth emitting.

    An object qualifies when it has an ``@id`` key or a key that is an
    absolute URI (a nested predicate). A list qualifies only when it is
    non-empty and every element qualifies; mixed lists are rejected.
    """
    if isinstance(node, dict):
        return any(key == "@id" or is_absolute_uri(key) for key in node)
    if isinstance(node, list):
        return bool(node) and all(isinstance(item, dict) and has_usable_value(item) for item in node)
    return False


def type_list(node: Any) -> list[str]:
    """Return a node's @type values as an ordered list of strings."""
    if not isinstance(node, dict):
        return []
    types = node.get("@type")
    if not types:
        return []
    if isinstance(types, list):
        return [t for t in types if isinstance(t, str) and t]
    return [types] if isinstance(types, str) else []


def as_list(value: Any) -> list:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


def select_user_value(pt: dict) -> tuple[Any, list]:
    """Pick the value to compile for one property template.

    Values are stored under the property URI inside ``userValue``. When that
    holds a list, the first entry is the value and the rest are siblings,
    except for flat literal groups: if the first entry has exactly one key
    not starting with ``@``, that key holds a primitive, and the list has
    more than one entry, the whole list is returned as the value.

    Returns:
        (user_value, siblings)
    """
    user_value = pt.get("userValue") or {}
    property_uri = pt.get("propertyURI")
    values = user_value.get(property_uri) if isinstance(user_value, dict) else None

    if isinstance(values, list) and values:
        first = values[0]
        if isinstance(first, dict):
            plain_keys = [key for key in first if not str(key).startswith("@")]
            if len(plain_keys) == 1 and is_primitive(first[plain_keys[0]]) and len(values) > 1:
                return values, []
        return first, values[1:]

    if isinstance(values, dict):
        return values, []

    return user_value, []
