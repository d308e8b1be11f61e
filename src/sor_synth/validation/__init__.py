"""
Validation module for checking referential integrity and uniqueness.
"""

from sor_synth.validation.validator import (
    RelationshipValidationResult,
    RelationshipValidator,
    UniqueValueError,
)

__all__ = [
    "RelationshipValidationResult",
    "RelationshipValidator",
    "UniqueValueError",
]
