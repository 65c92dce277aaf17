"""
Profile to RDF/XML Domain

Compiles BIBFRAME editor profiles into RDF/XML documents: the primary
record, the basic (flat, URI-linked) record and the MARC conversion subset.
"""

from .builder import BuildContext, ProfileXmlBuilder
from .serializer import XmlBuildResult

__all__ = ["BuildContext", "ProfileXmlBuilder", "XmlBuildResult"]
