"""
Generator module for producing relationally consistent rows.

Handles cardinality classification, unique value allocation, relationship
consistency and the generation session that drives them.
"""

from sor_synth.generator.cardinality import CardinalityClassifier, NamePatterns
from sor_synth.generator.consistency import ConsistencyEnforcer
from sor_synth.generator.fields import FieldType, FieldValueGenerator, detect_field_type
from sor_synth.generator.generator import Generator
from sor_synth.generator.unique import UniqueValueAllocator, is_identifier_like

__all__ = [
    "CardinalityClassifier",
    "ConsistencyEnforcer",
    "FieldType",
    "FieldValueGenerator",
    "Generator",
    "NamePatterns",
    "UniqueValueAllocator",
    "detect_field_type",
    "is_identifier_like",
]
