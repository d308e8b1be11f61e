"""
Cardinality classification for relationship links.

Declared uniqueness is the primary signal. Attribute naming conventions
(plurals, "...Ids" style names) are consulted only when uniqueness is
symmetric.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Tuple

from sor_synth.models import Cardinality, RelationshipLink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamePatterns:
    """Name heuristics table used as the secondary cardinality signal."""

    # Case-insensitive patterns marking a name as referring to many values
    plural_patterns: Tuple[str, ...] = (
        r"(ids|uuids|guids)$",      # deviceIDs, member_uuids
        r"[^s_]s$",                 # members, accounts (not "class")
    )

    # Words that end in "s" but are singular
    singular_exceptions: Tuple[str, ...] = (
        "status", "address", "alias", "bonus", "canvas", "class", "access",
        "process", "analysis", "basis", "axis", "series", "news", "campus",
        "radius", "census", "virus", "focus", "corpus", "is", "has", "was",
    )

    def is_plural(self, name: str) -> bool:
        if not name:
            return False
        lowered = name.lower()
        for word in self.singular_exceptions:
            if lowered.endswith(word):
                return False
        return any(re.search(p, lowered) for p in self.plural_patterns)


DEFAULT_NAME_PATTERNS = NamePatterns()


class CardinalityClassifier:
    """
    Classifies links as one-to-one, one-to-many or many-to-one.

    Rules, in order of precedence:
    1. from unique, to not unique -> ONE_TO_MANY
    2. from not unique, to unique -> MANY_TO_ONE
    3. plural "from" attribute name -> ONE_TO_MANY
    4. plural "to" attribute name -> MANY_TO_ONE
    5. otherwise ONE_TO_ONE
    """

    def __init__(self, name_patterns: NamePatterns = DEFAULT_NAME_PATTERNS):
        self.name_patterns = name_patterns

    def classify_uniqueness(
        self,
        from_is_unique: bool,
        to_is_unique: bool,
        from_attribute: str = "",
        to_attribute: str = "",
    ) -> Cardinality:
        if from_is_unique and not to_is_unique:
            return Cardinality.ONE_TO_MANY
        if not from_is_unique and to_is_unique:
            return Cardinality.MANY_TO_ONE

        if self.name_patterns.is_plural(from_attribute):
            return Cardinality.ONE_TO_MANY
        if self.name_patterns.is_plural(to_attribute):
            return Cardinality.MANY_TO_ONE

        return Cardinality.ONE_TO_ONE

    def classify(self, link: RelationshipLink) -> Cardinality:
        cardinality = self.classify_uniqueness(
            link.from_is_unique,
            link.to_is_unique,
            link.from_attribute,
            link.to_attribute,
        )
        logger.debug(f"Classified {link} as {cardinality.value}")
        return cardinality
