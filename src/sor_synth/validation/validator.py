"""
Referential integrity and uniqueness checks over entity row tables.

The validator never modifies rows. Findings are returned as data for the
caller to report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sor_synth.models import EntityData, RelationshipLink

logger = logging.getLogger(__name__)

MAX_DUPLICATE_DETAILS = 5
MAX_DISPLAY_ROWS = 5
MAX_DISPLAY_VALUE_LENGTH = 30


@dataclass
class RelationshipValidationResult:
    """Outcome of checking one relationship link."""
    from_entity: str
    to_entity: str
    from_entity_file: str
    to_entity_file: str
    errors: List[str] = field(default_factory=list)
    total_rows: int = 0
    invalid_rows: int = 0

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from_entity": self.from_entity,
            "to_entity": self.to_entity,
            "from_entity_file": self.from_entity_file,
            "to_entity_file": self.to_entity_file,
            "errors": list(self.errors),
            "total_rows": self.total_rows,
            "invalid_rows": self.invalid_rows,
        }


@dataclass
class UniqueValueError:
    """Uniqueness findings for one entity."""
    entity_id: str
    entity_file: str
    messages: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "entity_file": self.entity_file,
            "messages": list(self.messages),
        }


def find_column(headers: List[str], attribute: str) -> Tuple[int, str]:
    """
    Locate an attribute column, case-insensitively, also trying ``attribute + "Id"``.

    Returns:
        Tuple of (index, header) or (-1, "") when not found
    """
    candidates = (attribute.lower(), (attribute + "Id").lower())
    for i, header in enumerate(headers):
        if header.lower() in candidates:
            return i, header
    return -1, ""


def is_primary_key_name(name: str) -> bool:
    lowered = name.lower()
    return name == "id" or lowered.endswith("uuid") or lowered.endswith("guid")


def is_foreign_key_name(name: str) -> bool:
    return name != "id" and "id" in name.lower()


def _cell(row: List[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def _display_value(value: str) -> str:
    if len(value) > MAX_DISPLAY_VALUE_LENGTH:
        return value[:MAX_DISPLAY_VALUE_LENGTH - 3] + "..."
    return value


def _display_rows(row_numbers: List[int]) -> str:
    shown = ", ".join(str(n) for n in row_numbers[:MAX_DISPLAY_ROWS])
    if len(row_numbers) > MAX_DISPLAY_ROWS:
        shown += f"... (and {len(row_numbers) - MAX_DISPLAY_ROWS} more)"
    return shown


class RelationshipValidator:
    """
    Read-only checks for generated or loaded entity data.

    Relationship checks decide a direction from the attribute names: when
    the "from" attribute looks like a primary key (``id``, ``...uuid``,
    ``...guid``) and the "to" attribute like a foreign key, every "to" row
    must reference a "from" value. Otherwise every "from" row must
    reference a "to" value.
    """

    def __init__(
        self,
        entity_data: Dict[str, EntityData],
        links: Iterable[RelationshipLink],
        unique_attributes: Optional[Dict[str, Iterable[str]]] = None,
    ):
        self.entity_data = entity_data
        self.links = list(links)
        self.unique_attributes: Dict[str, List[str]] = {
            k: list(v) for k, v in (unique_attributes or {}).items()
        }

    def _file_name(self, entity_id: str) -> str:
        data = self.entity_data.get(entity_id)
        return data.file_name if data is not None else ""

    def validate_relationships(self, include_valid: bool = False) -> List[RelationshipValidationResult]:
        """
        Check every link.

        Args:
            include_valid: Also return results without errors

        Returns:
            Results in link order
        """
        results = []
        for link in self.links:
            result = self.validate_link(link)
            if result.errors or include_valid:
                results.append(result)

        logger.debug(f"Validated {len(self.links)} relationships, {len(results)} reported")
        return results

    def validate_link(self, link: RelationshipLink) -> RelationshipValidationResult:
        result = RelationshipValidationResult(
            from_entity=link.from_entity,
            to_entity=link.to_entity,
            from_entity_file=self._file_name(link.from_entity),
            to_entity_file=self._file_name(link.to_entity),
        )

        from_data = self.entity_data.get(link.from_entity)
        to_data = self.entity_data.get(link.to_entity)

        if from_data is None or to_data is None:
            result.errors.append(
                f"Missing entity data (from: {link.from_entity}, to: {link.to_entity})"
            )
            return result

        from_index, from_header = find_column(from_data.headers, link.from_attribute)
        to_index, _ = find_column(to_data.headers, link.to_attribute)

        if from_index == -1 or to_index == -1:
            result.errors.append(
                f"Could not find attribute columns "
                f"(from: {link.from_attribute}, to: {link.to_attribute})"
            )
            return result

        # Primary key on the "from" side, foreign key on the "to" side
        if is_primary_key_name(link.from_attribute) and is_foreign_key_name(link.to_attribute):
            source_values = {_cell(row, from_index) for row in from_data.rows}

            result.total_rows = len(to_data.rows)
            for i, row in enumerate(to_data.rows):
                value = _cell(row, to_index)
                if value == "":
                    result.errors.append(f"Row {i} has empty foreign key in {link.to_attribute}")
                    result.invalid_rows += 1
                elif value not in source_values:
                    result.errors.append(
                        f"Row {i} has invalid reference: {link.to_attribute} = {value}"
                    )
                    result.invalid_rows += 1
            return result

        target_values = {_cell(row, to_index) for row in to_data.rows}

        result.total_rows = len(from_data.rows)
        for i, row in enumerate(from_data.rows):
            value = _cell(row, from_index)
            if value == "":
                result.errors.append(f"Row {i} has empty value for attribute {from_header}")
                result.invalid_rows += 1
            elif value not in target_values:
                result.errors.append(f"Row {i} has invalid reference: {from_header} = {value}")
                result.invalid_rows += 1

        return result

    def validate_unique_values(self) -> List[UniqueValueError]:
        """
        Check every unique attribute for empty and repeated values.

        Row numbers in messages are 1-based.
        """
        results = []

        for entity_id, data in self.entity_data.items():
            attributes = self.unique_attributes.get(entity_id, [])
            if not attributes:
                continue

            error = UniqueValueError(entity_id=entity_id, entity_file=data.file_name)
            for attribute in attributes:
                error.messages.extend(self._check_unique_column(data, attribute))

            if error.messages:
                results.append(error)

        return results

    def _check_unique_column(self, data: EntityData, attribute: str) -> List[str]:
        index = data.column_index(attribute)
        if index == -1:
            return [f"Could not find unique attribute {attribute} in headers"]

        messages = []
        occurrences: Dict[str, List[int]] = {}

        for row_number, row in enumerate(data.rows, start=1):
            value = _cell(row, index)
            if value == "":
                messages.append(
                    f"Row {row_number} has empty value for unique attribute {attribute}"
                )
                continue
            occurrences.setdefault(value, []).append(row_number)

        duplicates = {value: rows for value, rows in occurrences.items() if len(rows) > 1}
        if duplicates:
            messages.append(f"Attribute {attribute} has {len(duplicates)} duplicate values")

            # Too many distinct duplicates only get the summary line
            if len(duplicates) <= MAX_DUPLICATE_DETAILS:
                for value, rows in duplicates.items():
                    messages.append(
                        f"  - Value '{_display_value(value)}' appears in rows: {_display_rows(rows)}"
                    )

        return messages
