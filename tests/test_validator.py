"""
Tests for relationship and uniqueness validation.
"""

import pytest

from sor_synth.models import EntityData
from sor_synth.validation import RelationshipValidator


def _table(entity_id, headers, rows, external_id=None):
    return EntityData(
        entity_id=entity_id,
        external_id=external_id or entity_id,
        headers=headers,
        rows=rows,
    )


@pytest.fixture
def membership_data():
    return {
        "Group": _table("Group", ["id", "name"], [["g1", "Admins"], ["g2", "Users"]], "KeystoneV1/Group"),
        "Member": _table("Member", ["id", "groupId"], [["m1", "g1"], ["m2", "g2"], ["m3", "g2"]]),
    }


class TestRelationshipValidation:
    """Tests for validate_relationships."""

    def test_valid_link_reports_nothing(self, membership_data, link_factory):
        link = link_factory("r", "Member", "groupId", False, "Group", "id", True)
        validator = RelationshipValidator(membership_data, [link])

        assert validator.validate_relationships() == []

        results = validator.validate_relationships(include_valid=True)
        assert len(results) == 1
        assert results[0].is_valid
        assert results[0].total_rows == 3
        assert results[0].to_entity_file == "Group.csv"

    def test_invalid_and_empty_references(self, membership_data, link_factory):
        membership_data["Member"].rows[1][1] = "nope"
        membership_data["Member"].rows[2][1] = ""
        link = link_factory("r", "Member", "groupId", False, "Group", "id", True)

        [result] = RelationshipValidator(membership_data, [link]).validate_relationships()

        assert result.from_entity == "Member"
        assert result.invalid_rows == 2
        assert result.errors == [
            "Row 1 has invalid reference: groupId = nope",
            "Row 2 has empty value for attribute groupId",
        ]

    def test_primary_to_foreign_key_checks_referencing_rows(self, link_factory):
        data = {
            "User": _table("User", ["id"], [["u1"], ["u2"]]),
            "Account": _table("Account", ["userId"], [["u1"], ["u9"], [""]]),
        }
        link = link_factory("r", "User", "id", True, "Account", "userId", False)

        [result] = RelationshipValidator(data, [link]).validate_relationships()

        assert result.total_rows == 3
        assert result.invalid_rows == 2
        assert result.errors == [
            "Row 1 has invalid reference: userId = u9",
            "Row 2 has empty foreign key in userId",
        ]

    def test_columns_match_case_insensitively_and_with_id_suffix(self, membership_data, link_factory):
        link = link_factory("r", "Member", "GROUP", False, "Group", "ID", True)

        results = RelationshipValidator(membership_data, [link]).validate_relationships()

        assert results == []

    def test_missing_column(self, membership_data, link_factory):
        link = link_factory("r", "Member", "teamRef", False, "Group", "id", True)

        [result] = RelationshipValidator(membership_data, [link]).validate_relationships()

        assert result.errors == ["Could not find attribute columns (from: teamRef, to: id)"]
        assert result.total_rows == 0

    def test_missing_entity(self, membership_data, link_factory):
        link = link_factory("r", "Member", "groupId", False, "Team", "id", True)

        [result] = RelationshipValidator(membership_data, [link]).validate_relationships()

        assert result.errors == ["Missing entity data (from: Member, to: Team)"]


class TestUniqueValueValidation:
    """Tests for validate_unique_values."""

    def test_unique_values_pass(self, membership_data):
        validator = RelationshipValidator(membership_data, [], {"Group": ["id"], "Member": ["id"]})

        assert validator.validate_unique_values() == []

    def test_empty_and_duplicate_values(self):
        data = {"User": _table("User", ["email"], [["a"], [""], ["a"], ["b"], ["a"]])}

        [error] = RelationshipValidator(data, [], {"User": ["email"]}).validate_unique_values()

        assert error.entity_id == "User"
        assert error.entity_file == "User.csv"
        assert error.messages == [
            "Row 2 has empty value for unique attribute email",
            "Attribute email has 1 duplicate values",
            "  - Value 'a' appears in rows: 1, 3, 5",
        ]

    def test_long_values_and_many_rows_are_abbreviated(self):
        value = "x" * 40
        data = {"User": _table("User", ["token"], [[value] for _ in range(7)])}

        [error] = RelationshipValidator(data, [], {"User": ["token"]}).validate_unique_values()

        assert error.messages[1] == (
            f"  - Value '{'x' * 27}...' appears in rows: 1, 2, 3, 4, 5... (and 2 more)"
        )

    def test_many_duplicates_only_summarized(self):
        rows = [[str(i % 6)] for i in range(12)]
        data = {"User": _table("User", ["code"], rows)}

        [error] = RelationshipValidator(data, [], {"User": ["code"]}).validate_unique_values()

        assert error.messages == ["Attribute code has 6 duplicate values"]

    def test_missing_unique_column(self, membership_data):
        validator = RelationshipValidator(membership_data, [], {"Group": ["email"]})

        [error] = validator.validate_unique_values()

        assert error.messages == ["Could not find unique attribute email in headers"]
