"""
Generator session for producing relationally consistent CSV data.

Handles:
- Relationship endpoint resolution
- Dependency graph construction and topological generation order
- Row synthesis with unique value allocation
- Cardinality-aware relationship consistency
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple, Union

import numpy as np
from tqdm import tqdm

from sor_synth.generator.cardinality import CardinalityClassifier
from sor_synth.generator.consistency import ConsistencyEnforcer
from sor_synth.generator.fields import FieldValueGenerator
from sor_synth.generator.unique import UniqueValueAllocator
from sor_synth.graph import DependencyGraph, build_dependency_graph
from sor_synth.models import (
    Cardinality,
    Diagnostic,
    EntityData,
    GenerationConfig,
    RelationshipLink,
    SORDefinition,
)
from sor_synth.schema import AttributeResolver, load_definition

logger = logging.getLogger(__name__)


class Generator:
    """
    One generation session over one schema.

    The generator:
    1. Resolves relationship endpoints into links
    2. Builds the dependency graph and its topological order
    3. Generates each entity's rows in that order
    4. Makes every link whose "from" side is that entity consistent
    5. Exposes the rows for writing and validation

    All mutable state (rows, used unique values, random streams,
    diagnostics) belongs to the instance.
    """

    def __init__(
        self,
        config: Optional[GenerationConfig] = None,
        classifier: Optional[CardinalityClassifier] = None,
    ):
        """
        Initialize generator.

        Args:
            config: Generation configuration
            classifier: Cardinality classifier (default name patterns if omitted)
        """
        self.config = config or GenerationConfig()
        self.classifier = classifier or CardinalityClassifier()

        # Seeded streams for reproducibility
        self.rng = np.random.default_rng(self.config.seed)
        self.allocator = UniqueValueAllocator(self.rng)
        self.fields = FieldValueGenerator(
            seed=self.config.seed,
            rng=self.rng,
            reference_date=self.config.reference_date,
        )

        self.definition: Optional[SORDefinition] = None
        self.entity_data: Dict[str, EntityData] = {}
        self.unique_attributes: Dict[str, List[str]] = {}
        self.links: List[RelationshipLink] = []
        self.cardinalities: Dict[RelationshipLink, Cardinality] = {}
        self.graph: Optional[DependencyGraph] = None
        self.generation_order: List[str] = []
        self.diagnostics: List[Diagnostic] = []

        self._reference_columns: Dict[str, Set[str]] = {}
        self._enforcer: Optional[ConsistencyEnforcer] = None

    @classmethod
    def from_definition_path(
        cls,
        path: Union[str, Path],
        config: Optional[GenerationConfig] = None,
    ) -> Generator:
        """Create and set up a generator from a YAML definition file."""
        generator = cls(config)
        generator.setup(load_definition(path))
        return generator

    def setup(self, definition: SORDefinition) -> List[str]:
        """
        Prepare entity tables, links and the generation order.

        Returns:
            Entity ids in generation order

        Raises:
            DependencyCycleError: if no safe generation order exists
        """
        self.definition = definition

        for entity_id, entity in definition.entities.items():
            self.entity_data[entity_id] = EntityData(
                entity_id=entity_id,
                external_id=entity.external_id,
                entity_name=entity.display_name,
                headers=entity.headers,
            )
            self.unique_attributes[entity_id] = entity.unique_attributes

        resolver = AttributeResolver(definition.entities)
        self.links, diagnostics = resolver.resolve_links(definition.relationships)
        self.diagnostics.extend(diagnostics)

        self.graph, diagnostics = build_dependency_graph(definition.entities.keys(), self.links)
        self.diagnostics.extend(diagnostics)

        self.cardinalities = {link: self.classifier.classify(link) for link in self.links}

        self._enforcer = ConsistencyEnforcer(
            self.entity_data,
            self.allocator,
            rng=self.rng,
            auto_cardinality=self.config.auto_cardinality,
            unique_attributes=self.unique_attributes,
        )

        self.generation_order = self.graph.topological_sort()
        logger.info(f"Generation order: {self.generation_order}")

        self._reference_columns = self._find_reference_columns()
        return self.generation_order

    def _find_reference_columns(self) -> Dict[str, Set[str]]:
        """Non-unique columns that relationship consistency will fill in."""
        columns: Dict[str, Set[str]] = {entity_id: set() for entity_id in self.entity_data}

        for link, cardinality in self.cardinalities.items():
            if cardinality == Cardinality.ONE_TO_MANY:
                if not link.to_is_unique:
                    columns.setdefault(link.to_entity, set()).add(link.to_attribute)
            elif not link.from_is_unique:
                columns.setdefault(link.from_entity, set()).add(link.from_attribute)
        return columns

    def links_from(self, entity_id: str) -> List[RelationshipLink]:
        """
        Links whose "from" side is the given entity.

        ONE_TO_MANY links come first so that row expansion happens before
        the entity's other references are filled in.
        """
        links = [link for link in self.links if link.from_entity == entity_id]
        return sorted(links, key=lambda link: self.cardinalities.get(link) != Cardinality.ONE_TO_MANY)

    def _is_mirrored(self, link: RelationshipLink) -> bool:
        """True when another link ties the same two columns in reverse."""
        return any(
            other.from_entity == link.to_entity
            and other.from_attribute == link.to_attribute
            and other.to_entity == link.from_entity
            and other.to_attribute == link.from_attribute
            for other in self.links
        )

    def generate(self) -> Dict[str, EntityData]:
        """
        Generate rows for every entity in dependency order.

        Returns:
            Dictionary mapping entity ids to their row tables
        """
        if self.graph is None or self._enforcer is None:
            raise RuntimeError("setup() must be called before generate()")

        generated: Set[str] = set()
        deferred: List[RelationshipLink] = []

        for entity_id in tqdm(
            self.generation_order,
            desc="Generating entities",
            disable=not self.config.show_progress,
        ):
            data = self.entity_data[entity_id]
            num_rows = self.config.row_count_for(data.external_id)

            logger.info(f"Generating {num_rows} rows for {data.entity_name}")
            data.rows = [self._generate_row(entity_id, i) for i in range(num_rows)]
            generated.add(entity_id)

            deferred.extend(self._make_consistent_for_entity(entity_id, generated))

        # Links whose dependency edge was rejected, now that both sides exist
        for link in deferred:
            if self._is_mirrored(link):
                logger.debug(f"Skipping {link}: columns already tied by the reverse link")
                continue
            self._enforce(link, expand_rows=False)

        self.diagnostics.extend(self.allocator.diagnostics)
        self.allocator.diagnostics.clear()

        return self.entity_data

    def _generate_row(self, entity_id: str, index: int) -> List[str]:
        data = self.entity_data[entity_id]
        unique = self.unique_attributes.get(entity_id, [])
        references = self._reference_columns.get(entity_id, set())

        row = []
        for header in data.headers:
            if header in unique:
                candidate = self.fields.generate(data.entity_name, header, index)
                row.append(self.allocator.allocate(entity_id, header, candidate))
            elif header in references:
                row.append("")
            else:
                row.append(self.fields.generate(data.entity_name, header, index))
        return row

    def _make_consistent_for_entity(
        self,
        entity_id: str,
        generated: Set[str],
    ) -> List[RelationshipLink]:
        """
        Enforce the entity's outgoing links.

        Returns:
            Links postponed because their "to" entity has no rows yet
        """
        deferred = []
        for link in self.links_from(entity_id):
            if link.to_entity not in generated:
                logger.debug(f"Deferring {link}: {link.to_entity} not generated yet")
                deferred.append(link)
                continue
            self._enforce(link)
        return deferred

    def _enforce(self, link: RelationshipLink, expand_rows: Optional[bool] = None) -> None:
        from_name = self.entity_data[link.from_entity].entity_name
        to_name = self.entity_data[link.to_entity].entity_name
        cardinality = self.cardinalities[link]
        logger.info(
            f"Linking {from_name}.{link.from_attribute} -> "
            f"{to_name}.{link.to_attribute} ({cardinality.value})"
        )
        self.diagnostics.extend(self._enforcer.enforce(link, cardinality, expand_rows=expand_rows))

    def load_existing(self, directory: Optional[Union[str, Path]] = None) -> int:
        """
        Replace entity rows with CSV files already on disk.

        Returns:
            Number of entity files loaded
        """
        from sor_synth.output import load_entity_data

        if not self.entity_data:
            raise RuntimeError("setup() must be called before load_existing()")

        loaded = load_entity_data(directory or self.config.output_dir, self.entity_data)
        self.allocator.rebuild(self.entity_data, self.unique_attributes)
        return loaded

    def validate(self) -> Tuple[list, list]:
        """
        Check referential integrity and uniqueness of the current rows.

        Returns:
            Tuple of (relationship results with errors, unique value errors)
        """
        from sor_synth.validation import RelationshipValidator

        validator = RelationshipValidator(self.entity_data, self.links, self.unique_attributes)
        return validator.validate_relationships(), validator.validate_unique_values()

    def get_generated_data(self) -> Dict[str, EntityData]:
        """Return all generated data."""
        return self.entity_data
