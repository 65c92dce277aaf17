#!/usr/bin/env python3
"""Lightweight XML node model used to assemble RDF/XML documents.

Elements carry prefixed tag names (``bf:Work``) and ordered attributes. The
model is independent of any live DOM: documents are built in memory,
serialized with :func:`serialize`, and raw XML is brought back in with
:func:`parse_xml` / :func:`parse_fragment` (defusedxml underneath).

Ownership is strict: a node belongs to at most one parent. Appending a node
that is already attached elsewhere raises :class:`XmlOwnershipError`; use
:meth:`XmlElement.deep_copy` to place the same content in two places.
"""

import itertools
import logging
import re
from typing import Iterator, Union
from xml.etree.ElementTree import Element
from xml.sax.saxutils import escape

# Use defusedxml for secure XML parsing (prevents XXE attacks)
import defusedxml.ElementTree as ET
from defusedxml.common import DefusedXmlException

from .namespaces import NAMESPACES, XML_NS, parse_ns, prefix_for_namespace, root_declarations

logger = logging.getLogger(__name__)

# Characters XML 1.0 cannot carry at all
_INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


class XmlOwnershipError(ValueError):
    """Raised when a node would end up with two parents."""
    pass


class XmlParseError(ValueError):
    """Raised when raw XML text cannot be parsed into nodes."""
    pass


class XmlText:
    """A text child of an element."""

    is_fallback = False

    def __init__(self, text: str):
        self.text = "" if text is None else str(text)
        self.parent: "XmlElement | None" = None

    def deep_copy(self) -> "XmlText":
        return XmlText(self.text)

    def __repr__(self) -> str:
        return f"XmlText({self.text!r})"


class XmlElement:
    """An element with a prefixed tag, ordered attributes and ordered children."""

    is_fallback = False

    def __init__(self, tag: str, attributes: dict[str, str] | None = None):
        self.tag = tag
        self.attributes: dict[str, str] = dict(attributes or {})
        self.children: list[Union["XmlElement", XmlText]] = []
        self.parent: "XmlElement | None" = None

    def __repr__(self) -> str:
        return f"XmlElement({self.tag!r}, children={len(self.children)})"

    # -- names -------------------------------------------------------------

    @property
    def prefix(self) -> str:
        return self.tag.split(":", 1)[0] if ":" in self.tag else ""

    @property
    def local_name(self) -> str:
        return self.tag.split(":", 1)[1] if ":" in self.tag else self.tag

    # -- attributes --------------------------------------------------------

    def get(self, name: str, default: str | None = None) -> str | None:
        return self.attributes.get(name, default)

    def set(self, name: str, value: str) -> "XmlElement":
        self.attributes[name] = "" if value is None else str(value)
        return self

    def pop(self, name: str) -> str | None:
        return self.attributes.pop(name, None)

    # -- tree mutation -----------------------------------------------------

    def append(self, child: Union["XmlElement", XmlText]) -> Union["XmlElement", XmlText]:
        """Attach child as the last child and return it.

        Raises:
            XmlOwnershipError: If child already has a parent or is this element
        """
        self._adopt(child)
        self.children.append(child)
        return child

    def insert(self, index: int, child: Union["XmlElement", XmlText]) -> Union["XmlElement", XmlText]:
        self._adopt(child)
        self.children.insert(index, child)
        return child

    def remove(self, child: Union["XmlElement", XmlText]) -> None:
        self.children.remove(child)
        child.parent = None

    def detach(self) -> "XmlElement":
        """Remove this element from its parent, if it has one."""
        if self.parent is not None:
            self.parent.remove(self)
        return self

    def clear_children(self) -> None:
        for child in self.children:
            child.parent = None
        self.children = []

    def set_text(self, text: str) -> "XmlElement":
        """Replace all children with a single text node."""
        self.clear_children()
        self.append(XmlText(text))
        return self

    def _adopt(self, child) -> None:
        if not isinstance(child, (XmlElement, XmlText)):
            raise TypeError(f"Cannot append {type(child).__name__} to <{self.tag}>")
        if child.parent is not None:
            raise XmlOwnershipError(f"<{getattr(child, 'tag', '#text')}> already belongs to <{child.parent.tag}>")
        if child is self:
            raise XmlOwnershipError(f"<{self.tag}> cannot contain itself")
        child.parent = self

    # -- queries -----------------------------------------------------------

    def element_children(self) -> list["XmlElement"]:
        return [c for c in self.children if isinstance(c, XmlElement) and not c.is_fallback]

    def find(self, tag: str) -> "XmlElement | None":
        """First direct child element with the given tag."""
        for child in self.element_children():
            if child.tag == tag:
                return child
        return None

    def find_all(self, tag: str) -> list["XmlElement"]:
        """Direct child elements with the given tag."""
        return [c for c in self.element_children() if c.tag == tag]

    def iter(self, tag: str | None = None) -> Iterator["XmlElement"]:
        """Depth-first walk over this element and its descendants."""
        if tag is None or self.tag == tag:
            yield self
        for child in self.element_children():
            yield from child.iter(tag)

    def iter_descendants(self, tag: str | None = None) -> Iterator["XmlElement"]:
        for child in self.element_children():
            yield from child.iter(tag)

    def text_content(self) -> str:
        parts = []
        for child in self.children:
            if isinstance(child, XmlText):
                parts.append(child.text)
            elif not child.is_fallback:
                parts.append(child.text_content())
        return "".join(parts)

    def deep_copy(self) -> "XmlElement":
        """Return an unattached copy of this subtree."""
        clone = XmlElement(self.tag, self.attributes)
        for child in self.children:
            if child.is_fallback:
                continue
            clone.append(child.deep_copy())
        return clone


class FallbackNode(XmlElement):
    """Placeholder for input that could not become a namespace-valid element.

    Fallback nodes can be held and appended like any element, but they are
    invisible to queries and are never serialized.
    """

    is_fallback = True

    def __init__(self, reason: str):
        super().__init__("fallback")
        self.reason = reason

    def deep_copy(self) -> "FallbackNode":
        return FallbackNode(self.reason)


XmlNode = Union[XmlElement, XmlText]


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def _clean_chars(value: str) -> str:
    return _INVALID_XML_CHARS.sub("", value)


def escape_text(value: str) -> str:
    return escape(_clean_chars(value))


def escape_attribute(value: str) -> str:
    return escape(_clean_chars(value), {'"': "&quot;"})


def serialize(node: XmlNode) -> str:
    """Serialize a node tree to compact XML text (no XML declaration)."""
    parts: list[str] = []
    _write(node, parts)
    return "".join(parts)


def _write(node: XmlNode, out: list[str]) -> None:
    if isinstance(node, XmlText):
        out.append(escape_text(node.text))
        return
    if node.is_fallback:
        return

    attrs = "".join(f' {name}="{escape_attribute(value)}"' for name, value in node.attributes.items())
    visible = [c for c in node.children if not c.is_fallback]
    if not visible:
        out.append(f"<{node.tag}{attrs}/>")
        return

    out.append(f"<{node.tag}{attrs}>")
    for child in visible:
        _write(child, out)
    out.append(f"</{node.tag}>")


def format_xml(xml: str, tab: str = "\t", nl: str = "\n") -> str:
    """Pretty-print serialized XML, one tag per line.

    Works on the text produced by :func:`serialize`, where ``<`` and ``>``
    only occur as markup. Text inside a leaf element stays on the element's
    line exactly as serialized, whitespace-only text included; whitespace
    between tags is replaced by the indentation.

    Example:
        >>> format_xml("<a><b>x</b></a>")
        '<a>\\n\\t<b>x</b>\\n</a>\\n'
        >>> format_xml("<a><b> </b></a>")
        '<a>\\n\\t<b> </b>\\n</a>\\n'
    """
    xml = xml.strip()
    if not xml:
        return ""

    formatted: list[str] = []
    indent = ""
    tokens = re.findall(r"<[^>]*>|[^<]+", xml)
    position = 0
    while position < len(tokens):
        token = tokens[position]
        position += 1

        if not token.startswith("<"):
            # Text between tags that is not the whole content of a leaf
            if token.strip():
                formatted.append(f"{indent}{token.strip()}{nl}")
            continue

        if token.startswith("<?") or token.endswith("/>"):
            formatted.append(f"{indent}{token}{nl}")
        elif token.startswith("</"):
            indent = indent[len(tab):]
            formatted.append(f"{indent}{token}{nl}")
        elif (
            position + 1 < len(tokens)
            and not tokens[position].startswith("<")
            and tokens[position + 1].startswith("</")
        ):
            formatted.append(f"{indent}{token}{tokens[position]}{tokens[position + 1]}{nl}")
            position += 2
        else:
            formatted.append(f"{indent}{token}{nl}")
            indent += tab

    return "".join(formatted)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_xml(xml_text: str) -> XmlElement:
    """Parse a complete XML document into an XmlElement tree.

    Registered namespaces map back to their registry prefixes. Any other
    namespace keeps the prefix declared in the text (or a generated one) and
    is re-declared with an xmlns attribute on each element that uses it.

    Raises:
        XmlParseError: If the text is not well-formed or is rejected by defusedxml
    """
    try:
        root = ET.fromstring(xml_text)
    except (ET.ParseError, DefusedXmlException) as e:
        raise XmlParseError(f"Could not parse XML: {e}") from e

    declared = {uri: prefix for prefix, uri in parse_ns(xml_text).items()}
    counter = itertools.count()
    return _convert(root, declared, counter)


def parse_document(xml_text: str) -> XmlElement:
    """Parse a serialized RDF/XML document and restore its root declarations.

    ElementTree consumes xmlns attributes while parsing; the registry
    declarations are put back on the root so the tree serializes to a
    self-contained document again.

    Raises:
        XmlParseError: If the text is not well-formed
    """
    root = parse_xml(xml_text)
    declarations = root_declarations()
    # Declarations first, in registry order, then the root's own attributes
    for name, value in root.attributes.items():
        if name not in declarations:
            declarations[name] = value
    root.attributes = declarations
    return root


def parse_fragment(xml_text: str) -> list[XmlElement]:
    """Parse one or more sibling elements that rely on registry prefixes.

    The fragment is wrapped in an element declaring every registered
    namespace, so fragments such as ``<bf:note>...</bf:note>`` parse without
    their own declarations.

    Raises:
        XmlParseError: If the fragment is not well-formed
    """
    declarations = "".join(f' {name}="{uri}"' for name, uri in root_declarations().items())
    wrapper = parse_xml(f"<rdf:RDF{declarations}>{xml_text}</rdf:RDF>")
    elements = wrapper.element_children()
    for element in elements:
        element.detach()
    return elements


def _split_clark(name: str) -> tuple[str | None, str]:
    if name.startswith("{"):
        uri, local = name[1:].split("}", 1)
        return uri, local
    return None, name


def _prefixed(name: str, declared: dict[str, str], counter, needed: dict[str, str]) -> str:
    uri, local = _split_clark(name)
    if uri is None:
        return local
    if uri == XML_NS:
        return f"xml:{local}"

    prefix = prefix_for_namespace(uri)
    if prefix is None:
        prefix = declared.get(uri)
        if prefix is None or prefix in NAMESPACES:
            prefix = f"ns{next(counter)}"
            declared[uri] = prefix
        needed[prefix] = uri
    return f"{prefix}:{local}"


def _convert(source: Element, declared: dict[str, str], counter) -> XmlElement:
    needed: dict[str, str] = {}
    tag = _prefixed(source.tag, declared, counter, needed)

    attributes: dict[str, str] = {}
    for name, value in source.attrib.items():
        attributes[_prefixed(name, declared, counter, needed)] = value

    element = XmlElement(tag)
    for prefix, uri in needed.items():
        element.set(f"xmlns:{prefix}", uri)
    for name, value in attributes.items():
        element.set(name, value)

    has_elements = len(source) > 0
    if source.text and (not has_elements or source.text.strip()):
        element.append(XmlText(source.text))

    for child in source:
        # Comments and processing instructions have non-string tags
        if isinstance(child.tag, str):
            element.append(_convert(child, declared, counter))
        if child.tail and child.tail.strip():
            element.append(XmlText(child.tail))

    return element
