#!/usr/bin/env python3
"""BIBFRAME export API: compiles editor profiles into RDF/XML."""
