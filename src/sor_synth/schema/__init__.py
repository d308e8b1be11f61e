"""
Schema module: loading definitions and resolving relationship endpoints.
"""

from sor_synth.schema.parser import SchemaError, load_definition, parse_definition
from sor_synth.schema.resolver import AttributeResolver

__all__ = [
    "AttributeResolver",
    "SchemaError",
    "load_definition",
    "parse_definition",
]
