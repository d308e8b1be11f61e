"""
SOR Synth - Relational CSV Generator for System-of-Record Definitions

Generates test data for every entity of a YAML system-of-record definition
so that declared relationships resolve and unique attributes stay unique.

Features:
- Alias and qualified relationship endpoint resolution
- Dependency-ordered generation with cycle-safe edge insertion
- Cardinality inference from uniqueness and attribute naming
- Collision-free unique value allocation per session
- Referential integrity and uniqueness validation of generated or loaded CSVs
"""

__version__ = "0.4.0"
__author__ = "DDG Team"

from sor_synth.models import (
    Attribute,
    Cardinality,
    Diagnostic,
    Entity,
    EntityData,
    GenerationConfig,
    Relationship,
    RelationshipLink,
    SORDefinition,
    entity_file_name,
)

from sor_synth.schema import AttributeResolver, SchemaError, load_definition, parse_definition
from sor_synth.graph import DependencyCycleError, DependencyGraph, build_dependency_graph
from sor_synth.generator import CardinalityClassifier, Generator, UniqueValueAllocator
from sor_synth.validation import RelationshipValidator
from sor_synth.output import CSVWriter, load_entity_data

__all__ = [
    # Core models
    "Attribute",
    "Cardinality",
    "Diagnostic",
    "Entity",
    "EntityData",
    "GenerationConfig",
    "Relationship",
    "RelationshipLink",
    "SORDefinition",
    "entity_file_name",
    # Schema
    "AttributeResolver",
    "SchemaError",
    "load_definition",
    "parse_definition",
    # Graph
    "DependencyCycleError",
    "DependencyGraph",
    "build_dependency_graph",
    # Generation
    "CardinalityClassifier",
    "Generator",
    "UniqueValueAllocator",
    # Validation and output
    "RelationshipValidator",
    "CSVWriter",
    "load_entity_data",
]
