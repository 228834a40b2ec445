"""Persistence module.

Exports ``GraphSerializer`` (graph ⇄ records, JSON, YAML),
``XmlGraphCodec`` (schema-validated XML data file), and the schema
helpers.
"""
from __future__ import annotations

from museum_tours.persistence.codec import XmlGraphCodec
from museum_tours.persistence.schema import SCHEMA_XSD, SchemaValidator, ensure_schema_file
from museum_tours.persistence.serializer import GraphSerializer

__all__ = [
    "GraphSerializer",
    "XmlGraphCodec",
    "SchemaValidator",
    "SCHEMA_XSD",
    "ensure_schema_file",
]
