"""
Unique value allocation for attributes declared unique.

Tracks every value issued per (entity, attribute) for the lifetime of one
generator session. The used-value set only grows.
"""

from __future__ import annotations

import logging
import re
import uuid
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set, Tuple

import numpy as np

from sor_synth.models import Diagnostic, EntityData

logger = logging.getLogger(__name__)

MAX_SUFFIX_ATTEMPTS = 1000

_NUMERIC_SUFFIX = re.compile(r"^(.*)_(\d+)$", re.DOTALL)


def is_identifier_like(attribute: str) -> bool:
    """Names containing "uuid" or ending in "id" get opaque tokens."""
    lowered = attribute.lower()
    return "uuid" in lowered or lowered.endswith("id")


class UniqueValueAllocator:
    """
    Issues collision-free values per (entity id, attribute).

    Identifier-like attributes always receive a fresh opaque token.
    Other attributes keep the candidate when it is unused, and otherwise
    get a "_N" suffix (replacing an existing numeric suffix) with N
    counting up from 0.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else np.random.default_rng()
        self._used: Dict[Tuple[str, str], Set[str]] = defaultdict(set)
        self.diagnostics: List[Diagnostic] = []

    def new_token(self) -> str:
        """A random version-4 UUID string drawn from the session RNG."""
        return str(uuid.UUID(bytes=self.rng.bytes(16), version=4))

    def is_used(self, entity_id: str, attribute: str, value: str) -> bool:
        return value in self._used.get((entity_id, attribute), ())

    def used_values(self, entity_id: str, attribute: str) -> Set[str]:
        return set(self._used.get((entity_id, attribute), ()))

    def reserve(self, entity_id: str, attribute: str, value: str) -> bool:
        """
        Record a value as used.

        Returns:
            False if the value had already been issued
        """
        used = self._used[(entity_id, attribute)]
        if value in used:
            return False
        used.add(value)
        return True

    def allocate(self, entity_id: str, attribute: str, candidate: str = "") -> str:
        """Return a value never returned before for this (entity, attribute)."""
        used = self._used[(entity_id, attribute)]

        if is_identifier_like(attribute):
            token = self.new_token()
            while token in used:
                token = self.new_token()
            used.add(token)
            return token

        match = _NUMERIC_SUFFIX.match(candidate)
        stem = match.group(1) if match else candidate

        value = candidate
        attempt = 0
        while value in used and attempt < MAX_SUFFIX_ATTEMPTS:
            value = f"{stem}_{attempt}"
            attempt += 1

        if value in used:
            logger.warning(
                f"Could not find a unique value for {entity_id}.{attribute} "
                f"after {MAX_SUFFIX_ATTEMPTS} attempts; reusing {value!r}"
            )
            self.diagnostics.append(Diagnostic(
                kind="unique_exhausted",
                message=f"{entity_id}.{attribute}: {MAX_SUFFIX_ATTEMPTS} attempts exhausted for {candidate!r}",
                entity_id=entity_id,
            ))

        used.add(value)
        return value

    def claim(self, entity_id: str, attribute: str, preferred: str) -> str:
        """
        Use ``preferred`` if it has not been issued yet, else allocate.

        Relationship rewrites use this so a unique referencing column keeps
        the referenced value whenever that does not collide.
        """
        if preferred and self.reserve(entity_id, attribute, preferred):
            return preferred
        return self.allocate(entity_id, attribute, preferred)

    def rebuild(
        self,
        entity_data: Dict[str, EntityData],
        unique_attributes: Dict[str, Iterable[str]],
    ) -> None:
        """Reconstruct the used-value set from existing rows."""
        self._used.clear()
        for entity_id, attributes in unique_attributes.items():
            data = entity_data.get(entity_id)
            if data is None:
                continue
            for attribute in attributes:
                index = data.column_index(attribute)
                if index == -1:
                    continue
                self._used[(entity_id, attribute)].update(
                    v for v in data.column_values(index) if v != ""
                )
