"""
Tests for unique value allocation.
"""

import uuid

import numpy as np
import pytest

from sor_synth.generator import UniqueValueAllocator, is_identifier_like
from sor_synth.generator.unique import MAX_SUFFIX_ATTEMPTS
from sor_synth.models import EntityData


@pytest.mark.parametrize("name,expected", [
    ("id", True),
    ("ID", True),
    ("groupId", True),
    ("uuid", True),
    ("userUuidRef", True),
    ("email", False),
    ("identity", False),
])
def test_is_identifier_like(name, expected):
    assert is_identifier_like(name) == expected


class TestUniqueValueAllocator:
    """Tests for UniqueValueAllocator."""

    @pytest.fixture
    def allocator(self):
        return UniqueValueAllocator(np.random.default_rng(42))

    def test_repeated_candidate_gets_suffix(self, allocator):
        assert allocator.allocate("User", "email", "a@x.com") == "a@x.com"
        assert allocator.allocate("User", "email", "a@x.com") == "a@x.com_0"
        assert allocator.allocate("User", "email", "a@x.com") == "a@x.com_1"

    def test_numeric_suffix_replaced(self, allocator):
        assert allocator.allocate("Group", "name", "team_7") == "team_7"
        assert allocator.allocate("Group", "name", "team_7") == "team_0"

    def test_pairs_are_independent(self, allocator):
        assert allocator.allocate("User", "email", "a") == "a"
        assert allocator.allocate("Group", "email", "a") == "a"
        assert allocator.allocate("User", "login", "a") == "a"

    def test_identifier_like_gets_token(self, allocator):
        values = [allocator.allocate("User", "id", "1") for _ in range(50)]

        assert len(set(values)) == 50
        assert "1" not in values
        assert all(uuid.UUID(v).version == 4 for v in values)

    def test_tokens_follow_seed(self):
        first = UniqueValueAllocator(np.random.default_rng(7))
        second = UniqueValueAllocator(np.random.default_rng(7))

        assert [first.new_token() for _ in range(3)] == [second.new_token() for _ in range(3)]

    def test_exhaustion_returns_last_attempt(self, allocator):
        allocator.reserve("User", "name", "x")
        for i in range(MAX_SUFFIX_ATTEMPTS):
            allocator.reserve("User", "name", f"x_{i}")

        value = allocator.allocate("User", "name", "x")

        assert value == f"x_{MAX_SUFFIX_ATTEMPTS - 1}"
        assert [d.kind for d in allocator.diagnostics] == ["unique_exhausted"]

    def test_claim(self, allocator):
        assert allocator.claim("User", "email", "a@x.com") == "a@x.com"
        assert allocator.claim("User", "email", "a@x.com") == "a@x.com_0"
        assert allocator.is_used("User", "email", "a@x.com_0")

    def test_rebuild_from_rows(self, allocator):
        allocator.allocate("User", "email", "stale")
        data = {
            "User": EntityData(
                entity_id="User",
                external_id="User",
                headers=["id", "email"],
                rows=[["1", "a"], ["2", "b"], ["3", ""]],
            ),
        }

        allocator.rebuild(data, {"User": ["email"], "Missing": ["id"]})

        assert allocator.used_values("User", "email") == {"a", "b"}
        assert allocator.allocate("User", "email", "a") == "a_0"
        assert allocator.allocate("User", "email", "stale") == "stale"
