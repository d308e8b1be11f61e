"""
Field value generation for non-key columns.

Values are chosen by pattern-matching the column header and the entity
display name. Every value is returned as a string.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from enum import Enum
from typing import Optional

import numpy as np
from faker import Faker

logger = logging.getLogger(__name__)

# Anchor for date values of seeded sessions
DEFAULT_REFERENCE_DATE = date(2025, 1, 1)


class FieldType(str, Enum):
    """Coarse classification of a column by its header."""
    NAME = "name"
    DESCRIPTION = "description"
    BOOLEAN = "boolean"
    DATE = "date"
    STATUS = "status"
    GENERIC = "generic"


BOOLEAN_WORDS = ("valid", "enabled", "active", "archived", "deleted", "locked", "verified")
DESCRIPTION_WORDS = ("description", "desc", "comment", "summary", "notes")
DATE_WORDS = ("date", "time", "created", "updated", "modified")

STATUSES = [
    "active", "inactive", "pending", "approved", "rejected", "completed",
    "in_progress", "cancelled", "suspended", "archived", "draft",
]

DEPARTMENTS = [
    "Engineering", "Sales", "Marketing", "Finance", "HR", "Operations",
    "IT", "Legal", "Executive", "Support", "Research", "Development",
    "QA", "Product", "Design", "Customer Success", "Administration",
]


def detect_field_type(header: str) -> FieldType:
    """Classify a header; the first matching rule wins."""
    lowered = header.lower()

    if lowered.endswith("name"):
        return FieldType.NAME
    if any(word in lowered for word in DESCRIPTION_WORDS):
        return FieldType.DESCRIPTION
    if any(lowered.endswith(word) for word in BOOLEAN_WORDS):
        return FieldType.BOOLEAN
    # isPrimary, hasAccess
    if (header.startswith("is") and header[2:3].isupper()) or (
        header.startswith("has") and header[3:4].isupper()
    ):
        return FieldType.BOOLEAN
    if any(word in lowered for word in DATE_WORDS):
        return FieldType.DATE
    if lowered.endswith("status"):
        return FieldType.STATUS
    return FieldType.GENERIC


def sanitize_name(name: str) -> str:
    """Replace commas and double quotes."""
    return name.replace(",", "-").replace('"', "'")


class FieldValueGenerator:
    """Faker-backed value source for one generation session."""

    def __init__(
        self,
        seed: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        reference_date: Optional[date] = None,
    ):
        self.faker = Faker()
        if seed is not None:
            self.faker.seed_instance(seed)
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        if reference_date is None:
            reference_date = DEFAULT_REFERENCE_DATE if seed is not None else date.today()
        self.reference_date = reference_date

    def generate(self, entity_name: str, header: str, row_index: int) -> str:
        field_type = detect_field_type(header)

        if field_type == FieldType.NAME:
            return self._name(entity_name)
        if field_type == FieldType.DESCRIPTION:
            return self.faker.sentence(nb_words=int(self.rng.integers(3, 9)))
        if field_type == FieldType.BOOLEAN:
            return "true" if row_index % 2 == 0 else "false"
        if field_type == FieldType.DATE:
            offset = int(self.rng.integers(0, 730))
            return (self.reference_date - timedelta(days=offset)).isoformat()
        if field_type == FieldType.STATUS:
            return STATUSES[row_index % len(STATUSES)]
        return self._generic(header, row_index)

    def _name(self, entity_name: str) -> str:
        entity = entity_name.lower()

        if any(w in entity for w in ("user", "person", "employee", "customer", "member")):
            return sanitize_name(self.faker.name())
        if any(w in entity for w in ("role", "job")):
            return sanitize_name(self.faker.job())
        if any(w in entity for w in ("group", "team", "department")):
            return DEPARTMENTS[int(self.rng.integers(len(DEPARTMENTS)))]
        if any(w in entity for w in ("product", "item")):
            return sanitize_name(self.faker.catch_phrase())
        return sanitize_name(self.faker.company())

    def _generic(self, header: str, row_index: int) -> str:
        lowered = header.lower()

        if "uuid" in lowered or "guid" in lowered:
            return str(self.faker.uuid4())
        if "email" in lowered:
            return self.faker.email()
        if "phone" in lowered:
            return self.faker.phone_number()
        if "url" in lowered or "website" in lowered or "link" in lowered:
            return self.faker.url()
        if "address" in lowered or "street" in lowered:
            return sanitize_name(self.faker.street_address())
        if "city" in lowered:
            return self.faker.city()
        if "country" in lowered:
            return sanitize_name(self.faker.country())
        if "zip" in lowered or "postal" in lowered:
            return self.faker.postcode()
        if "price" in lowered or "cost" in lowered:
            return f"{self.rng.uniform(1, 1000):.2f}"
        if any(w in lowered for w in ("count", "number", "amount", "quantity")):
            return str(int(self.rng.integers(1, 1001)))
        if "percent" in lowered or "rate" in lowered:
            return f"{int(self.rng.integers(1, 101))}%"
        if "code" in lowered:
            return f"{self.faker.lexify('???').upper()}-{1000 + row_index}"
        return f"{self.faker.word()}_{row_index}"
