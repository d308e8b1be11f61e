"""
Relationship consistency enforcement.

Rewrites the referencing column of already-generated rows so that every
reference resolves to a value present in the referenced entity, using a
strategy that matches the link's cardinality.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set

import numpy as np

from sor_synth.generator.unique import UniqueValueAllocator
from sor_synth.models import Cardinality, Diagnostic, EntityData, RelationshipLink

logger = logging.getLogger(__name__)


def collect_non_empty_values(rows: List[List[str]], index: int) -> List[str]:
    """Non-empty values of one column, in row order."""
    return [row[index] for row in rows if index < len(row) and row[index] != ""]


class ConsistencyEnforcer:
    """
    Applies per-cardinality strategies to a link's columns.

    - ONE_TO_ONE: "from" rows take "to" values, distinct and in order when
      the "from" attribute is unique, uniformly random otherwise.
    - MANY_TO_ONE: "from" rows are partitioned into contiguous clusters,
      one "to" value per cluster.
    - ONE_TO_MANY: "to" rows are spread evenly over the "from" values; with
      auto cardinality the "from" rows are first replicated 1-3 times.

    A link whose entity data or columns cannot be found is left untouched.
    """

    def __init__(
        self,
        entity_data: Dict[str, EntityData],
        allocator: UniqueValueAllocator,
        rng: Optional[np.random.Generator] = None,
        auto_cardinality: bool = False,
        unique_attributes: Optional[Dict[str, Iterable[str]]] = None,
    ):
        self.entity_data = entity_data
        self.allocator = allocator
        self.rng = rng if rng is not None else np.random.default_rng()
        self.auto_cardinality = auto_cardinality
        self.unique_attributes: Dict[str, List[str]] = {
            k: list(v) for k, v in (unique_attributes or {}).items()
        }
        self._expanded: Set[str] = set()

    def enforce(
        self,
        link: RelationshipLink,
        cardinality: Cardinality,
        expand_rows: Optional[bool] = None,
    ) -> List[Diagnostic]:
        """
        Make one link consistent.

        Args:
            link: Resolved relationship link
            cardinality: Classification of the link
            expand_rows: Use the row-expansion path for ONE_TO_MANY
                (defaults to ``auto_cardinality``)

        Returns:
            Diagnostics; empty when the link was processed normally
        """
        from_data = self.entity_data.get(link.from_entity)
        to_data = self.entity_data.get(link.to_entity)

        if from_data is None or to_data is None:
            missing = link.from_entity if from_data is None else link.to_entity
            logger.warning(f"Skipping {link}: no data for entity {missing}")
            return [Diagnostic(
                kind="missing_entity",
                message=f"Skipping {link}: no data for entity {missing}",
                entity_id=link.from_entity,
            )]

        from_index = from_data.column_index(link.from_attribute)
        to_index = to_data.column_index(link.to_attribute)

        if from_index == -1 or to_index == -1:
            logger.warning(f"Skipping {link}: attribute column not found")
            return [Diagnostic(
                kind="missing_column",
                message=f"Skipping {link}: attribute column not found "
                        f"(from: {from_index != -1}, to: {to_index != -1})",
                entity_id=link.from_entity,
            )]

        if cardinality == Cardinality.ONE_TO_MANY:
            if expand_rows is None:
                expand_rows = self.auto_cardinality
            return self._one_to_many(link, from_data, to_data, from_index, to_index, expand_rows)
        if cardinality == Cardinality.MANY_TO_ONE:
            return self._many_to_one(link, from_data, to_data, from_index, to_index)
        return self._one_to_one(link, from_data, to_data, from_index, to_index)

    def _no_values(self, link: RelationshipLink, entity_id: str, attribute: str) -> List[Diagnostic]:
        logger.warning(f"Skipping {link}: {entity_id}.{attribute} has no values to reference")
        return [Diagnostic(
            kind="no_reference_values",
            message=f"Skipping {link}: {entity_id}.{attribute} has no values to reference",
            entity_id=link.from_entity,
        )]

    def _write(
        self,
        row: List[str],
        index: int,
        value: str,
        entity_id: str,
        attribute: str,
        is_unique: bool,
    ) -> None:
        if is_unique:
            value = self.allocator.claim(entity_id, attribute, value)
        if index >= len(row):
            row.extend([""] * (index + 1 - len(row)))
        row[index] = value

    def _one_to_one(
        self,
        link: RelationshipLink,
        from_data: EntityData,
        to_data: EntityData,
        from_index: int,
        to_index: int,
    ) -> List[Diagnostic]:
        to_values = collect_non_empty_values(to_data.rows, to_index)
        if not to_values:
            return self._no_values(link, link.to_entity, link.to_attribute)

        if link.from_is_unique:
            distinct = list(dict.fromkeys(to_values))
            for i, row in enumerate(from_data.rows):
                if i < len(distinct):
                    self._write(row, from_index, distinct[i],
                                link.from_entity, link.from_attribute, True)
                else:
                    # Target values exhausted
                    fresh = self.allocator.allocate(
                        link.from_entity, link.from_attribute, distinct[i % len(distinct)]
                    )
                    self._write(row, from_index, fresh, link.from_entity, link.from_attribute, False)

            unmatched = len(from_data.rows) - len(distinct)
            if unmatched > 0:
                message = (
                    f"{link}: {unmatched} of {len(from_data.rows)} rows have no distinct "
                    f"{link.to_entity}.{link.to_attribute} value left and reference nothing"
                )
                logger.warning(message)
                return [Diagnostic(
                    kind="reference_values_exhausted",
                    message=message,
                    entity_id=link.from_entity,
                )]
        else:
            for row in from_data.rows:
                value = to_values[int(self.rng.integers(len(to_values)))]
                self._write(row, from_index, value, link.from_entity, link.from_attribute, False)

        return []

    def _many_to_one(
        self,
        link: RelationshipLink,
        from_data: EntityData,
        to_data: EntityData,
        from_index: int,
        to_index: int,
    ) -> List[Diagnostic]:
        to_values = list(dict.fromkeys(collect_non_empty_values(to_data.rows, to_index)))
        if not to_values:
            return self._no_values(link, link.to_entity, link.to_attribute)

        num_clusters = len(to_values)
        cluster_values = to_values

        # Fewer clusters make the grouping visibly skewed
        if self.auto_cardinality and num_clusters > 2:
            num_clusters = 2 + int(self.rng.integers(2))
            picked = sorted(self.rng.choice(len(to_values), size=num_clusters, replace=False))
            cluster_values = [to_values[int(i)] for i in picked]

        cluster_size = max(len(from_data.rows) // num_clusters, 1)

        for i, row in enumerate(from_data.rows):
            cluster_index = min(i // cluster_size, num_clusters - 1)
            self._write(row, from_index, cluster_values[cluster_index],
                        link.from_entity, link.from_attribute, link.from_is_unique)

        return []

    def _one_to_many(
        self,
        link: RelationshipLink,
        from_data: EntityData,
        to_data: EntityData,
        from_index: int,
        to_index: int,
        expand_rows: bool,
    ) -> List[Diagnostic]:
        if not collect_non_empty_values(from_data.rows, from_index):
            return self._no_values(link, link.from_entity, link.from_attribute)

        if expand_rows:
            self._expand_rows(link.from_entity, from_data)

        from_values = collect_non_empty_values(from_data.rows, from_index)

        for i, row in enumerate(to_data.rows):
            self._write(row, to_index, from_values[i % len(from_values)],
                        link.to_entity, link.to_attribute, link.to_is_unique)

        return []

    def _expand_rows(self, entity_id: str, data: EntityData) -> None:
        """Replicate every row 1-3 times, reallocating unique attributes."""
        if entity_id in self._expanded:
            return
        self._expanded.add(entity_id)

        unique_columns = [
            (data.column_index(attr), attr)
            for attr in self.unique_attributes.get(entity_id, [])
            if data.column_index(attr) != -1
        ]

        expanded: List[List[str]] = []
        for row in data.rows:
            expanded.append(row)
            for _ in range(int(self.rng.integers(1, 4))):
                clone = list(row)
                for index, attribute in unique_columns:
                    clone[index] = self.allocator.allocate(entity_id, attribute, row[index])
                expanded.append(clone)

        logger.debug(f"Expanded {entity_id} from {len(data.rows)} to {len(expanded)} rows")
        data.rows[:] = expanded
