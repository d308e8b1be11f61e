"""
Tests for schema loading and attribute resolution.
"""

import pytest
import yaml

from sor_synth.models import Entity
from sor_synth.schema import AttributeResolver, SchemaError, load_definition, parse_definition


class TestLoadDefinition:
    """Tests for the YAML loader."""

    def test_load_from_file(self, tmp_path, membership_schema):
        path = tmp_path / "sor.yaml"
        path.write_text(yaml.safe_dump(membership_schema, sort_keys=False))

        definition = load_definition(path)

        assert definition.display_name == "Directory"
        assert list(definition.entities) == ["User", "Group", "GroupMembership"]
        assert definition.entities["GroupMembership"].headers == ["id", "userUuid", "groupId"]
        assert definition.relationships["membership_user"].to_attribute == "user-uuid"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SchemaError, match="not found"):
            load_definition(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("entities: [unclosed")

        with pytest.raises(SchemaError, match="Invalid YAML"):
            load_definition(path)


class TestParseDefinition:
    """Tests for structural validation."""

    def test_not_a_mapping(self):
        with pytest.raises(SchemaError):
            parse_definition(["User"])

    def test_no_entities(self):
        with pytest.raises(SchemaError, match="at least one entity"):
            parse_definition({"entities": {}})

    def test_entity_without_external_id(self):
        with pytest.raises(SchemaError, match="externalId"):
            parse_definition({"entities": {"User": {"attributes": [{"externalId": "id"}]}}})

    def test_entity_without_attributes(self):
        with pytest.raises(SchemaError, match="attribute"):
            parse_definition({"entities": {"User": {"externalId": "User", "attributes": []}}})

    def test_duplicate_attribute(self):
        with pytest.raises(SchemaError, match="more than once"):
            parse_definition({"entities": {"User": {
                "externalId": "User",
                "attributes": [{"externalId": "id"}, {"externalId": "id"}],
            }}})

    def test_relationship_without_endpoints(self):
        with pytest.raises(SchemaError, match="fromAttribute"):
            parse_definition({
                "entities": {"User": {"externalId": "User", "attributes": [{"externalId": "id"}]}},
                "relationships": {"broken": {"fromAttribute": "User.id"}},
            })

    def test_unresolvable_endpoint_is_not_a_schema_error(self):
        definition = parse_definition({
            "entities": {"User": {"externalId": "User", "attributes": [{"externalId": "id"}]}},
            "relationships": {"dangling": {"fromAttribute": "User.id", "toAttribute": "Nope.id"}},
        })

        assert "dangling" in definition.relationships


class TestAttributeResolver:
    """Tests for AttributeResolver."""

    @pytest.fixture
    def resolver(self, membership_definition):
        return AttributeResolver(membership_definition.entities)

    def test_resolve_alias(self, resolver):
        resolved = resolver.resolve("user-uuid")

        assert resolved.entity_id == "User"
        assert resolved.attribute == "uuid"
        assert resolved.is_unique

    def test_resolve_qualified(self, resolver):
        resolved = resolver.resolve("GroupMembership.groupId")

        assert resolved.entity_id == "GroupMembership"
        assert resolved.attribute == "groupId"
        assert not resolved.is_unique

    def test_resolution_is_idempotent(self, resolver):
        assert resolver.resolve("user-uuid") == resolver.resolve("user-uuid")

    def test_unresolvable(self, resolver):
        assert resolver.resolve("Unknown.id") is None
        assert resolver.resolve("uuid") is None
        assert resolver.resolve("") is None

    def test_first_alias_declaration_wins(self):
        entities = {
            "A": Entity.from_dict({"externalId": "A", "attributes": [
                {"externalId": "id", "attributeAlias": "shared"},
            ]}),
            "B": Entity.from_dict({"externalId": "B", "attributes": [
                {"externalId": "id", "attributeAlias": "shared"},
            ]}),
        }

        assert AttributeResolver(entities).resolve("shared").entity_id == "A"

    def test_resolve_links(self, membership_definition, resolver):
        links, diagnostics = resolver.resolve_links(membership_definition.relationships)

        assert diagnostics == []
        assert [link.relationship_id for link in links] == ["membership_user", "membership_group"]

        user_link = links[0]
        assert user_link.from_entity == "GroupMembership"
        assert user_link.from_attribute == "userUuid"
        assert not user_link.from_is_unique
        assert user_link.to_entity == "User"
        assert user_link.to_attribute == "uuid"
        assert user_link.to_is_unique

    def test_unresolved_and_multi_hop_relationships_are_skipped(self, membership_schema):
        membership_schema["relationships"]["dangling"] = {
            "fromAttribute": "GroupMembership.userUuid",
            "toAttribute": "Missing.id",
        }
        membership_schema["relationships"]["user_to_group"] = {
            "path": [
                {"relationship": "membership_user", "direction": "Inverse"},
                {"relationship": "membership_group", "direction": "Direct"},
            ],
        }
        definition = parse_definition(membership_schema)

        links, diagnostics = AttributeResolver(definition.entities).resolve_links(definition.relationships)

        assert len(links) == 2
        assert [d.kind for d in diagnostics] == ["unresolved_endpoint", "multi_hop_skipped"]
        assert "Missing.id" in diagnostics[0].message
