"""
Attribute resolution for relationship endpoints.

A relationship endpoint is either an attribute alias token or a qualified
"EntityExternalId.AttributeExternalId" string. Endpoints that cannot be
resolved are dropped so partially specified schemas still produce a
best-effort dependency graph.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from sor_synth.models import (
    Diagnostic,
    Entity,
    RelationshipLink,
    Relationship,
    ResolvedAttribute,
)

logger = logging.getLogger(__name__)


class AttributeResolver:
    """
    Maps relationship endpoint references to (entity, attribute, is-unique).

    Resolution order:
    1. Exact match against the attribute alias map
    2. If the reference contains ".", the "extId.attrExtId" map
    """

    def __init__(self, entities: Dict[str, Entity]):
        self.entities = entities
        self._alias_map: Dict[str, ResolvedAttribute] = {}
        self._qualified_map: Dict[str, ResolvedAttribute] = {}

        for entity_id, entity in entities.items():
            for attr in entity.attributes:
                resolved = ResolvedAttribute(
                    entity_id=entity_id,
                    attribute=attr.external_id,
                    is_unique=attr.unique_id,
                )
                if attr.attribute_alias:
                    if attr.attribute_alias in self._alias_map:
                        logger.warning(
                            f"Attribute alias {attr.attribute_alias!r} is declared more than once; "
                            f"keeping the first declaration"
                        )
                    else:
                        self._alias_map[attr.attribute_alias] = resolved
                self._qualified_map.setdefault(
                    f"{entity.external_id}.{attr.external_id}", resolved
                )

    def resolve(self, reference: str) -> Optional[ResolvedAttribute]:
        """Resolve one endpoint reference, or None if it matches nothing."""
        if not reference:
            return None

        resolved = self._alias_map.get(reference)
        if resolved is not None:
            return resolved

        if "." in reference:
            return self._qualified_map.get(reference)

        return None

    def resolve_links(
        self,
        relationships: Dict[str, Relationship],
    ) -> Tuple[List[RelationshipLink], List[Diagnostic]]:
        """
        Resolve declared relationships into links, in declaration order.

        Returns:
            Tuple of (resolved links, diagnostics for skipped relationships)
        """
        links: List[RelationshipLink] = []
        diagnostics: List[Diagnostic] = []

        for rel_id, relationship in relationships.items():
            if relationship.is_multi_hop:
                logger.debug(f"Skipping multi-hop relationship {rel_id}")
                diagnostics.append(Diagnostic(
                    kind="multi_hop_skipped",
                    message=f"Relationship {rel_id} uses a path and is not resolved",
                ))
                continue

            source = self.resolve(relationship.from_attribute)
            target = self.resolve(relationship.to_attribute)

            if source is None or target is None:
                unresolved = [
                    ref for ref, res in (
                        (relationship.from_attribute, source),
                        (relationship.to_attribute, target),
                    ) if res is None
                ]
                logger.warning(
                    f"Dropping relationship {rel_id}: cannot resolve {', '.join(repr(r) for r in unresolved)}"
                )
                diagnostics.append(Diagnostic(
                    kind="unresolved_endpoint",
                    message=f"Relationship {rel_id} dropped: unresolved endpoint(s) "
                            f"{', '.join(repr(r) for r in unresolved)}",
                ))
                continue

            links.append(RelationshipLink.from_endpoints(rel_id, source, target))

        logger.info(f"Resolved {len(links)} of {len(relationships)} relationships")
        return links, diagnostics
