"""Tests for ConfigValidator: every invariant, all errors collected in one pass."""

from __future__ import annotations

import pytest

from rolegate.rbac.models import (
    AccessLevel,
    CandidateConfig,
    Category,
    ConnectionType,
    Feature,
    Metadata,
    RBACConfig,
    Role,
    RoleFeatureGrant,
)
from rolegate.rbac.validator import ConfigValidator, Invariant, validate


def _base(**overrides) -> CandidateConfig:
    fields = dict(
        metadata=Metadata(name="Test", description="Test config", version="1"),
        roles=(
            Role(
                id="farmers",
                name="Farmers",
                connection_type="purple",
                features=(RoleFeatureGrant(feature_id="profile", access_level="full"),),
            ),
        ),
        features=(Feature(id="profile", name="Profile", category="core"),),
        access_levels=(
            AccessLevel(id="full", name="Full"),
            AccessLevel(id="no", name="No"),
        ),
        categories=(Category(id="core", name="Core"),),
        connection_types=(ConnectionType(id="purple", name="Purple"),),
    )
    fields.update(overrides)
    return CandidateConfig(**fields)


def _invariants(result) -> list[Invariant]:
    return [e.invariant for e in result.errors]


# ── Valid configs ───────────────────────────────────────────────────


def test_valid_config_is_promoted(candidate):
    result = validate(candidate)
    assert result.valid
    assert result.errors == []
    assert isinstance(result.config, RBACConfig)


def test_promoted_config_keeps_content(candidate):
    config = validate(candidate).config
    assert config.roles == candidate.roles
    assert config.metadata == candidate.metadata
    assert config.no_access_level == "no"


def test_validation_is_deterministic(candidate):
    assert validate(candidate).config == validate(candidate).config


def test_config_refuses_copy_with_updates(rbac_config):
    with pytest.raises(TypeError, match="validate a new candidate"):
        rbac_config.model_copy(update={"roles": ()})


def test_plain_copy_keeps_indexes(rbac_config):
    copy = rbac_config.model_copy()
    assert copy == rbac_config
    assert copy.role("farmers") is not None
    assert copy.feature("analytics").category == "analytics-ai"


def test_unused_access_level_is_fine():
    levels = (
        AccessLevel(id="full", name="Full"),
        AccessLevel(id="audit", name="Audit only"),
        AccessLevel(id="no", name="No"),
    )
    assert validate(_base(access_levels=levels)).valid


def test_empty_collections_are_valid():
    result = validate(_base(roles=(), features=(), categories=(), connection_types=()))
    assert result.valid


# ── Unique ids ──────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "field, items, kind",
    [
        ("categories", (Category(id="core", name="A"), Category(id="core", name="B")), "category"),
        (
            "connection_types",
            (ConnectionType(id="purple", name="A"), ConnectionType(id="purple", name="B")),
            "connection-type",
        ),
        (
            "access_levels",
            (AccessLevel(id="no", name="A"), AccessLevel(id="no", name="B")),
            "access-level",
        ),
    ],
)
def test_duplicate_ids(field, items, kind):
    overrides = {field: items}
    if field == "access_levels":
        # keep "full" resolvable for the base grant
        overrides[field] = items + (AccessLevel(id="full", name="Full"),)
    result = validate(_base(**overrides))
    assert not result.valid
    assert _invariants(result) == [Invariant.unique_ids]
    assert result.errors[0].entity_kind == kind


def test_duplicate_feature_reported_once_per_id():
    features = (
        Feature(id="profile", name="Profile", category="core"),
        Feature(id="profile", name="Profile again", category="core"),
        Feature(id="profile", name="Profile thrice", category="core"),
    )
    result = validate(_base(features=features))
    assert _invariants(result) == [Invariant.unique_ids]
    assert result.errors[0].entity_id == "profile"


def test_duplicate_role():
    role = _base().roles[0]
    result = validate(_base(roles=(role, role)))
    assert _invariants(result) == [Invariant.unique_ids]
    assert "Duplicate role ID: 'farmers'" in result.errors[0].message


# ── References ───────────────────────────────────────────────────────


def test_feature_with_unknown_category():
    features = (Feature(id="profile", name="Profile", category="missing"),)
    result = validate(_base(features=features))
    assert _invariants(result) == [Invariant.feature_category]
    issue = result.errors[0]
    assert issue.entity_kind == "feature"
    assert issue.entity_id == "profile"
    assert "missing" in issue.message


def test_role_with_unknown_connection_type():
    role = _base().roles[0].model_copy(update={"connection_type": "green"})
    result = validate(_base(roles=(role,)))
    assert _invariants(result) == [Invariant.role_connection_type]
    assert result.errors[0].entity_id == "farmers"


def test_grant_for_unknown_feature():
    role = Role(
        id="farmers",
        name="Farmers",
        connection_type="purple",
        features=(RoleFeatureGrant(feature_id="teleport", access_level="full"),),
    )
    result = validate(_base(roles=(role,)))
    assert _invariants(result) == [Invariant.grant_feature]
    assert "teleport" in result.errors[0].message


def test_grant_with_undeclared_access_level():
    role = Role(
        id="farmers",
        name="Farmers",
        connection_type="purple",
        features=(RoleFeatureGrant(feature_id="profile", access_level="superuser"),),
    )
    result = validate(_base(roles=(role,)))
    assert _invariants(result) == [Invariant.grant_access_level]
    assert "superuser" in result.errors[0].message


# ── One grant per feature per role ──────────────────────────────────


def test_duplicate_grant_within_role():
    role = Role(
        id="farmers",
        name="Farmers",
        connection_type="purple",
        features=(
            RoleFeatureGrant(feature_id="profile", access_level="full"),
            RoleFeatureGrant(feature_id="profile", access_level="no"),
        ),
    )
    result = validate(_base(roles=(role,)))
    assert not result.valid
    assert result.config is None
    assert _invariants(result) == [Invariant.unique_grants]
    assert result.errors[0].entity_id == "farmers"


def test_same_feature_in_different_roles_is_fine():
    grant = RoleFeatureGrant(feature_id="profile", access_level="full")
    roles = (
        Role(id="a", name="A", connection_type="purple", features=(grant,)),
        Role(id="b", name="B", connection_type="purple", features=(grant,)),
    )
    assert validate(_base(roles=roles)).valid


# ── No-access level must exist ──────────────────────────────────────


def test_missing_no_access_level():
    result = validate(_base(access_levels=(AccessLevel(id="full", name="Full"),)))
    assert _invariants(result) == [Invariant.no_access_default]
    assert result.errors[0].entity_id == "no"


def test_custom_no_access_level():
    levels = (AccessLevel(id="full", name="Full"), AccessLevel(id="none", name="None"))
    result = ConfigValidator(no_access_level="none").validate(_base(access_levels=levels))
    assert result.valid
    assert result.config.no_access_level == "none"


# ── Completeness ────────────────────────────────────────────────────


def test_collects_every_violation():
    role = Role(
        id="farmers",
        name="Farmers",
        connection_type="green",
        features=(
            RoleFeatureGrant(feature_id="teleport", access_level="full"),
            RoleFeatureGrant(feature_id="profile", access_level="superuser"),
        ),
    )
    features = (Feature(id="profile", name="Profile", category="missing"),)
    result = validate(_base(roles=(role,), features=features))
    assert len(result.errors) == 4
    assert set(_invariants(result)) == {
        Invariant.feature_category,
        Invariant.role_connection_type,
        Invariant.grant_feature,
        Invariant.grant_access_level,
    }
    assert result.config is None


def test_two_independent_violations_give_two_errors():
    role = _base().roles[0].model_copy(update={"connection_type": "green"})
    features = (Feature(id="profile", name="Profile", category="missing"),)
    result = validate(_base(roles=(role,), features=features))
    assert len(result.errors) == 2


def test_invariant_enum_has_seven_members():
    assert len(Invariant) == 7
