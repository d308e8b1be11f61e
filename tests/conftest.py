"""Shared schema fixtures."""

import pytest

from sor_synth.models import RelationshipLink
from sor_synth.schema import parse_definition


def make_link(rel_id, from_entity, from_attr, from_unique, to_entity, to_attr, to_unique):
    """Build a resolved link without going through a schema."""
    return RelationshipLink(
        relationship_id=rel_id,
        from_entity=from_entity,
        from_attribute=from_attr,
        from_is_unique=from_unique,
        to_entity=to_entity,
        to_attribute=to_attr,
        to_is_unique=to_unique,
    )


@pytest.fixture
def membership_schema():
    """Users and groups joined through a membership entity."""
    return {
        "displayName": "Directory",
        "entities": {
            "User": {
                "displayName": "User",
                "externalId": "User",
                "attributes": [
                    {"name": "uuid", "externalId": "uuid", "uniqueId": True, "attributeAlias": "user-uuid"},
                    {"name": "userName", "externalId": "userName"},
                    {"name": "email", "externalId": "email"},
                ],
            },
            "Group": {
                "displayName": "Group",
                "externalId": "Group",
                "attributes": [
                    {"name": "id", "externalId": "id", "uniqueId": True},
                    {"name": "name", "externalId": "name"},
                ],
            },
            "GroupMembership": {
                "displayName": "Group Membership",
                "externalId": "GroupMembership",
                "attributes": [
                    {"name": "id", "externalId": "id", "uniqueId": True},
                    {"name": "userUuid", "externalId": "userUuid"},
                    {"name": "groupId", "externalId": "groupId"},
                ],
            },
        },
        "relationships": {
            "membership_user": {
                "fromAttribute": "GroupMembership.userUuid",
                "toAttribute": "user-uuid",
            },
            "membership_group": {
                "fromAttribute": "GroupMembership.groupId",
                "toAttribute": "Group.id",
            },
        },
    }


@pytest.fixture
def membership_definition(membership_schema):
    return parse_definition(membership_schema)


@pytest.fixture
def ownership_definition():
    """One user owns many accounts."""
    return parse_definition({
        "entities": {
            "User": {
                "externalId": "KeystoneV1/User",
                "displayName": "User",
                "attributes": [
                    {"externalId": "id", "uniqueId": True},
                    {"externalId": "name"},
                ],
            },
            "Account": {
                "externalId": "KeystoneV1/Account",
                "displayName": "Account",
                "attributes": [
                    {"externalId": "id", "uniqueId": True},
                    {"externalId": "userId"},
                    {"externalId": "balance"},
                ],
            },
        },
        "relationships": {
            "user_accounts": {
                "fromAttribute": "KeystoneV1/User.id",
                "toAttribute": "KeystoneV1/Account.userId",
            },
        },
    })


@pytest.fixture
def profile_definition():
    """User and Profile referencing each other through unique attributes."""
    return parse_definition({
        "entities": {
            "User": {
                "externalId": "User",
                "attributes": [
                    {"externalId": "id", "uniqueId": True},
                    {"externalId": "displayName"},
                ],
            },
            "Profile": {
                "externalId": "Profile",
                "attributes": [
                    {"externalId": "userId", "uniqueId": True},
                    {"externalId": "bio"},
                ],
            },
        },
        "relationships": {
            "profile_user": {"fromAttribute": "Profile.userId", "toAttribute": "User.id"},
            "user_profile": {"fromAttribute": "User.id", "toAttribute": "Profile.userId"},
        },
    })


@pytest.fixture
def link_factory():
    return make_link
