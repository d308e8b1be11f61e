"""
Tests for core data models.
"""

from pathlib import Path

import pytest

from sor_synth.models import (
    Attribute,
    Entity,
    EntityData,
    GenerationConfig,
    Relationship,
    SORDefinition,
    entity_file_name,
)


class TestAttribute:
    """Tests for Attribute."""

    def test_from_dict_uses_yaml_keys(self):
        attr = Attribute.from_dict({
            "name": "Email",
            "externalId": "email",
            "uniqueId": True,
            "attributeAlias": "user-email",
            "list": True,
        })

        assert attr.name == "Email"
        assert attr.external_id == "email"
        assert attr.unique_id
        assert attr.attribute_alias == "user-email"
        assert attr.is_list

    def test_defaults(self):
        attr = Attribute.from_dict({"externalId": "id"})

        assert attr.name == "id"
        assert attr.type == "String"
        assert not attr.unique_id
        assert attr.attribute_alias == ""

    def test_serialization(self):
        attr = Attribute(name="id", external_id="id", unique_id=True)
        restored = Attribute.from_dict(attr.to_dict())

        assert restored == attr


class TestEntity:
    """Tests for Entity."""

    def test_headers_and_unique_attributes(self):
        entity = Entity.from_dict({
            "externalId": "User",
            "attributes": [
                {"externalId": "id", "uniqueId": True},
                {"externalId": "name"},
                {"externalId": "email", "uniqueId": True},
            ],
        })

        assert entity.display_name == "User"
        assert entity.headers == ["id", "name", "email"]
        assert entity.unique_attributes == ["id", "email"]

    def test_get_attribute(self):
        entity = Entity(external_id="User", attributes=[Attribute(name="id", external_id="id")])

        assert entity.get_attribute("id").name == "id"
        assert entity.get_attribute("ID") is None


class TestRelationship:
    """Tests for Relationship."""

    def test_direct_relationship(self):
        rel = Relationship.from_dict({"fromAttribute": "a", "toAttribute": "B.c"})

        assert rel.from_attribute == "a"
        assert rel.to_attribute == "B.c"
        assert not rel.is_multi_hop

    def test_path_relationship(self):
        rel = Relationship.from_dict({
            "name": "user_to_role",
            "path": [
                {"relationship": "user_group", "direction": "Direct"},
                {"relationship": "group_role", "direction": "Direct"},
            ],
        })

        assert rel.is_multi_hop
        assert [p.relationship for p in rel.path] == ["user_group", "group_role"]
        assert Relationship.from_dict(rel.to_dict()) == rel


class TestSORDefinition:
    """Tests for SORDefinition."""

    def test_entity_by_external_id(self, ownership_definition):
        entity = ownership_definition.entity_by_external_id("KeystoneV1/Account")

        assert entity is not None
        assert entity.display_name == "Account"
        assert ownership_definition.entity_by_external_id("Account") is None

    def test_to_dict_round_trip_keeps_order(self, membership_definition):
        data = membership_definition.to_dict()

        assert list(data["entities"]) == ["User", "Group", "GroupMembership"]
        assert list(data["relationships"]) == ["membership_user", "membership_group"]


class TestEntityFileName:
    """Tests for the entity file name rule."""

    @pytest.mark.parametrize("external_id,expected", [
        ("User", "User.csv"),
        ("KeystoneV1/User", "User.csv"),
        ("a/b/Group", "Group.csv"),
    ])
    def test_file_name(self, external_id, expected):
        assert entity_file_name(external_id) == expected


class TestEntityData:
    """Tests for EntityData."""

    def test_column_lookup(self):
        data = EntityData(
            entity_id="User",
            external_id="KeystoneV1/User",
            headers=["id", "name"],
            rows=[["1", "a"], ["2"]],
        )

        assert data.file_name == "User.csv"
        assert data.column_index("name") == 1
        assert data.column_index("Name") == -1
        assert data.column_values(1) == ["a", ""]

    def test_to_frame(self):
        data = EntityData(entity_id="U", external_id="U", headers=["id"], rows=[["007"]])
        df = data.to_frame()

        assert list(df.columns) == ["id"]
        assert df["id"].tolist() == ["007"]


class TestGenerationConfig:
    """Tests for GenerationConfig."""

    def test_defaults(self):
        config = GenerationConfig()

        assert config.output_dir == Path("output")
        assert config.data_volume == 100
        assert not config.auto_cardinality
        assert config.seed is None
        assert config.reference_date is None

    def test_string_output_dir(self):
        assert GenerationConfig(output_dir="data").output_dir == Path("data")

    def test_invalid_volume(self):
        with pytest.raises(ValueError):
            GenerationConfig(data_volume=0)

    def test_row_count_override(self):
        config = GenerationConfig(data_volume=10, entity_row_counts={"User": 3, "Group": 0})

        assert config.row_count_for("User") == 3
        assert config.row_count_for("Group") == 10
        assert config.row_count_for("Other") == 10
