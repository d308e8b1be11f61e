"""
Per-entity row count configuration.

A count configuration is a flat YAML mapping of entity external id to the
number of rows to generate for that entity:

    User: 500
    KeystoneV1/Group: 20
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import yaml

from sor_synth.models import SORDefinition

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Invalid or unreadable count configuration."""


@dataclass
class CountConfiguration:
    """Row counts keyed by entity external id."""
    entity_counts: Dict[str, Any] = field(default_factory=dict)
    source_file: Optional[Path] = None
    loaded_at: Optional[datetime] = None

    @classmethod
    def load(cls, path: Union[str, Path]) -> CountConfiguration:
        """
        Load a count configuration file.

        Raises:
            ConfigError: if the file is missing, is not valid YAML, or is not a mapping
        """
        path = Path(path)
        if not path.exists():
            raise ConfigError(
                f"Count configuration file not found: {path} "
                f"(generate a template with 'sor-synth init-count-config -f <sor.yaml>')"
            )

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax in {path}: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Count configuration in {path} must be a mapping of entity to count")

        logger.info(f"Loaded row counts for {len(data)} entities from {path}")
        return cls(
            entity_counts={str(k): v for k, v in data.items()},
            source_file=path,
            loaded_at=datetime.now(),
        )

    def validate(self, entity_external_ids: Iterable[str]) -> None:
        """
        Check every configured entity exists and has a positive integer count.

        Raises:
            ConfigError: on the first invalid entry
        """
        valid = list(entity_external_ids)
        known = set(valid)

        for external_id, count in self.entity_counts.items():
            if external_id not in known:
                raise ConfigError(
                    f"Entity '{external_id}' in count configuration not found in definition. "
                    f"Available entities: {', '.join(valid)}"
                )
            if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
                raise ConfigError(
                    f"Invalid count for entity '{external_id}': {count!r} (expected positive integer)"
                )

    def has_entity(self, external_id: str) -> bool:
        return external_id in self.entity_counts

    def get_count(self, external_id: str, default: int) -> int:
        """Configured count, or ``default`` when absent or 0."""
        count = self.entity_counts.get(external_id)
        if not count:
            return default
        return int(count)

    def as_row_counts(self) -> Dict[str, int]:
        """Counts suitable for ``GenerationConfig.entity_row_counts``."""
        return {k: int(v) for k, v in self.entity_counts.items() if v}


def render_count_template(
    definition: SORDefinition,
    default_count: int = 100,
    source_file: Optional[Union[str, Path]] = None,
) -> str:
    """Render a commented count configuration listing every entity."""
    lines = ["# Row count configuration for sor-synth"]
    if source_file is not None:
        lines.append(f"# Generated from: {source_file}")
    lines.extend([
        f"# Last updated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}",
        "#",
        "# Edit the numbers below to specify how many rows to generate for each entity.",
        f"# Entities not listed here will use the default count ({default_count}).",
        "",
    ])

    for entity in definition.entities.values():
        lines.append(f"# Entity: {entity.external_id}")
        if entity.display_name and entity.display_name != entity.external_id:
            lines.append(f"# Name: {entity.display_name}")
        if entity.description:
            lines.append(f"# Description: {' '.join(entity.description.split())}")
        lines.append(yaml.safe_dump({entity.external_id: default_count}).strip())
        lines.append("")

    return "\n".join(lines)
