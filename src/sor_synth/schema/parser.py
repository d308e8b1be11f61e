"""
YAML loader for system-of-record definitions.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from sor_synth.models import Entity, Relationship, SORDefinition

logger = logging.getLogger(__name__)


class SchemaError(ValueError):
    """Raised when a definition is structurally unusable."""


def load_definition(path: Union[str, Path]) -> SORDefinition:
    """Load and parse a YAML definition file."""
    path = Path(path)
    if not path.exists():
        raise SchemaError(f"Definition file not found: {path}")

    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SchemaError(f"Invalid YAML in {path}: {e}") from e

    definition = parse_definition(data)
    logger.info(
        f"Loaded {len(definition.entities)} entities and "
        f"{len(definition.relationships)} relationships from {path}"
    )
    return definition


def parse_definition(data: Any) -> SORDefinition:
    """Build a SORDefinition from an already-parsed mapping."""
    if not isinstance(data, dict):
        raise SchemaError("Definition must be a mapping")

    raw_entities = data.get("entities") or {}
    if not isinstance(raw_entities, dict) or not raw_entities:
        raise SchemaError("Definition must declare at least one entity")

    entities: Dict[str, Entity] = {}
    for entity_id, raw in raw_entities.items():
        entities[str(entity_id)] = _parse_entity(str(entity_id), raw)

    raw_relationships = data.get("relationships") or {}
    if not isinstance(raw_relationships, dict):
        raise SchemaError("'relationships' must be a mapping")

    relationships: Dict[str, Relationship] = {}
    for rel_id, raw in raw_relationships.items():
        if not isinstance(raw, dict):
            raise SchemaError(f"Relationship {rel_id} must be a mapping")
        relationship = Relationship.from_dict(raw)
        if not relationship.path and not (relationship.from_attribute and relationship.to_attribute):
            raise SchemaError(
                f"Relationship {rel_id} needs both fromAttribute and toAttribute, or a path"
            )
        relationships[str(rel_id)] = relationship

    return SORDefinition(
        display_name=str(data.get("displayName") or ""),
        description=str(data.get("description") or ""),
        entities=entities,
        relationships=relationships,
    )


def _parse_entity(entity_id: str, raw: Any) -> Entity:
    if not isinstance(raw, dict):
        raise SchemaError(f"Entity {entity_id} must be a mapping")
    if not raw.get("externalId"):
        raise SchemaError(f"Entity {entity_id} is missing externalId")

    attributes = raw.get("attributes")
    if not isinstance(attributes, list) or not attributes:
        raise SchemaError(f"Entity {entity_id} must declare at least one attribute")

    seen = set()
    for attr in attributes:
        if not isinstance(attr, dict) or not attr.get("externalId"):
            raise SchemaError(f"Entity {entity_id} has an attribute without externalId")
        ext_id = str(attr["externalId"])
        if ext_id in seen:
            raise SchemaError(f"Entity {entity_id} declares attribute {ext_id} more than once")
        seen.add(ext_id)

    return Entity.from_dict(raw)
