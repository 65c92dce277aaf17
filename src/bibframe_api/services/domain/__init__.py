"""
Domain Layer

This package contains business logic organized by domain area.
Domain services implement core algorithms and workflows but should not
directly handle external I/O (use clients layer for that).

Domains:
- rdf_xml: editor profile to BIBFRAME RDF/XML compilation
"""
