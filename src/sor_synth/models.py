"""
Core data models for the sor_synth package.

Defines the schema definition structures (entities, attributes, declared
relationships), the resolved relationship links used during generation,
the per-entity row tables, and the generation configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd


class Cardinality(str, Enum):
    """Multiplicity classification of a relationship link."""
    ONE_TO_ONE = "1:1"
    ONE_TO_MANY = "1:N"
    MANY_TO_ONE = "N:1"


@dataclass
class Attribute:
    """A single attribute (column) of an entity."""
    name: str
    external_id: str
    type: str = "String"  # Advisory only
    description: str = ""
    unique_id: bool = False
    attribute_alias: str = ""
    indexed: bool = False
    is_list: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "externalId": self.external_id,
            "type": self.type,
            "description": self.description,
            "uniqueId": self.unique_id,
            "attributeAlias": self.attribute_alias,
            "indexed": self.indexed,
            "list": self.is_list,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Attribute:
        """Create from dictionary (YAML field names)."""
        external_id = str(data["externalId"])
        return cls(
            name=str(data.get("name") or external_id),
            external_id=external_id,
            type=str(data.get("type") or "String"),
            description=str(data.get("description") or ""),
            unique_id=bool(data.get("uniqueId", False)),
            attribute_alias=str(data.get("attributeAlias") or ""),
            indexed=bool(data.get("indexed", False)),
            is_list=bool(data.get("list", False)),
        )


@dataclass
class Entity:
    """A schema-defined record type that generates into one table."""
    external_id: str
    display_name: str = ""
    description: str = ""
    attributes: List[Attribute] = field(default_factory=list)

    @property
    def headers(self) -> List[str]:
        """Column order for every row of this entity."""
        return [a.external_id for a in self.attributes]

    @property
    def unique_attributes(self) -> List[str]:
        """External ids of attributes declared unique."""
        return [a.external_id for a in self.attributes if a.unique_id]

    def get_attribute(self, external_id: str) -> Optional[Attribute]:
        """Get attribute by external id (exact match)."""
        for attr in self.attributes:
            if attr.external_id == external_id:
                return attr
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "displayName": self.display_name,
            "externalId": self.external_id,
            "description": self.description,
            "attributes": [a.to_dict() for a in self.attributes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Entity:
        """Create from dictionary (YAML field names)."""
        external_id = str(data["externalId"])
        return cls(
            external_id=external_id,
            display_name=str(data.get("displayName") or external_id),
            description=str(data.get("description") or ""),
            attributes=[Attribute.from_dict(a) for a in data.get("attributes") or []],
        )


@dataclass
class RelationshipPath:
    """One hop of a multi-hop relationship."""
    relationship: str
    direction: str = ""


@dataclass
class Relationship:
    """A declared relationship between two entity attributes."""
    name: str = ""
    display_name: str = ""
    from_attribute: str = ""  # Alias token or "EntityExternalId.AttributeExternalId"
    to_attribute: str = ""
    path: List[RelationshipPath] = field(default_factory=list)

    @property
    def is_multi_hop(self) -> bool:
        return len(self.path) > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: Dict[str, Any] = {
            "name": self.name,
            "displayName": self.display_name,
        }
        if self.from_attribute:
            data["fromAttribute"] = self.from_attribute
        if self.to_attribute:
            data["toAttribute"] = self.to_attribute
        if self.path:
            data["path"] = [
                {"relationship": p.relationship, "direction": p.direction}
                for p in self.path
            ]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Relationship:
        """Create from dictionary (YAML field names)."""
        return cls(
            name=str(data.get("name") or ""),
            display_name=str(data.get("displayName") or ""),
            from_attribute=str(data.get("fromAttribute") or ""),
            to_attribute=str(data.get("toAttribute") or ""),
            path=[
                RelationshipPath(
                    relationship=str(p.get("relationship") or ""),
                    direction=str(p.get("direction") or ""),
                )
                for p in data.get("path") or []
            ],
        )


@dataclass
class SORDefinition:
    """A system-of-record definition: entities plus declared relationships."""
    display_name: str = ""
    description: str = ""
    entities: Dict[str, Entity] = field(default_factory=dict)
    relationships: Dict[str, Relationship] = field(default_factory=dict)

    def entity_by_external_id(self, external_id: str) -> Optional[Entity]:
        for entity in self.entities.values():
            if entity.external_id == external_id:
                return entity
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "displayName": self.display_name,
            "description": self.description,
            "entities": {k: e.to_dict() for k, e in self.entities.items()},
            "relationships": {k: r.to_dict() for k, r in self.relationships.items()},
        }


@dataclass(frozen=True)
class ResolvedAttribute:
    """A relationship endpoint resolved to a concrete entity attribute."""
    entity_id: str
    attribute: str  # Attribute external id, i.e. the column header
    is_unique: bool


@dataclass(frozen=True)
class RelationshipLink:
    """Resolved, directional link between two entity attributes."""
    relationship_id: str
    from_entity: str
    from_attribute: str
    from_is_unique: bool
    to_entity: str
    to_attribute: str
    to_is_unique: bool

    @classmethod
    def from_endpoints(
        cls,
        relationship_id: str,
        source: ResolvedAttribute,
        target: ResolvedAttribute,
    ) -> RelationshipLink:
        return cls(
            relationship_id=relationship_id,
            from_entity=source.entity_id,
            from_attribute=source.attribute,
            from_is_unique=source.is_unique,
            to_entity=target.entity_id,
            to_attribute=target.attribute,
            to_is_unique=target.is_unique,
        )

    def __str__(self) -> str:
        return f"{self.from_entity}.{self.from_attribute} -> {self.to_entity}.{self.to_attribute}"


def entity_file_name(external_id: str) -> str:
    """
    Return the CSV file name for an entity external id.

    Namespaced ids ("KeystoneV1/User") use the part after the last "/".
    """
    if "/" in external_id:
        return external_id.rsplit("/", 1)[-1] + ".csv"
    return external_id + ".csv"


@dataclass
class EntityData:
    """Generated (or loaded) row table for one entity."""
    entity_id: str
    external_id: str
    entity_name: str = ""
    headers: List[str] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)

    @property
    def file_name(self) -> str:
        return entity_file_name(self.external_id)

    def column_index(self, header: str) -> int:
        """Index of a header by exact name, or -1."""
        try:
            return self.headers.index(header)
        except ValueError:
            return -1

    def column_values(self, index: int) -> List[str]:
        """Values of one column, "" where a row is short."""
        return [row[index] if index < len(row) else "" for row in self.rows]

    def to_frame(self) -> pd.DataFrame:
        """Return the rows as a string DataFrame with the entity's headers."""
        return pd.DataFrame(self.rows, columns=self.headers, dtype=str)


@dataclass
class Diagnostic:
    """A non-fatal anomaly recorded while building or generating."""
    kind: str
    message: str
    entity_id: Optional[str] = None

    def __str__(self) -> str:
        return f"[{self.kind}] {self.message}"


@dataclass
class GenerationConfig:
    """Configuration for a generation run."""
    output_dir: Path = field(default_factory=lambda: Path("output"))
    data_volume: int = 100
    auto_cardinality: bool = False
    seed: Optional[int] = None

    # Row count overrides keyed by entity external id
    entity_row_counts: Dict[str, int] = field(default_factory=dict)

    show_progress: bool = False

    # Dates are drawn from the two years before this day
    reference_date: Optional[date] = None

    def __post_init__(self):
        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)
        if self.data_volume < 1:
            raise ValueError(f"data_volume must be a positive integer, got {self.data_volume}")

    def row_count_for(self, external_id: str) -> int:
        """Rows to generate for an entity."""
        count = self.entity_row_counts.get(external_id)
        if not count:
            return self.data_volume
        return count
