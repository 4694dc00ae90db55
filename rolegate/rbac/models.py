"""Typed entities for RBAC configurations."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

DEFAULT_NO_ACCESS_LEVEL = "no"


def _require_text(v: str) -> str:
    if not v.strip():
        raise ValueError("id cannot be empty or whitespace")
    return v


class _Entity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        return _require_text(v)


class AccessLevel(_Entity):
    """A point on the declared access scale (e.g. full, partial, view-only, no)."""

    name: str
    description: str = ""


class Category(_Entity):
    """Groups features for presentation and filtering."""

    name: str
    description: str = ""


class ConnectionType(_Entity):
    """Network/trust class tag attached to a role. Opaque to the engine."""

    name: str
    description: str = ""


class Feature(_Entity):
    name: str
    category: str = Field(min_length=1)
    description: str | None = None


class RoleFeatureGrant(BaseModel):
    """A role's declared access level for one feature."""

    model_config = ConfigDict(frozen=True)

    feature_id: str = Field(min_length=1)
    access_level: str = Field(min_length=1)
    name: str | None = None
    description: str | None = None

    @field_validator("feature_id", "access_level")
    @classmethod
    def validate_ref(cls, v: str) -> str:
        return _require_text(v)


class Role(_Entity):
    name: str
    connection_type: str = Field(min_length=1)
    features: tuple[RoleFeatureGrant, ...] = ()

    def grant_for(self, feature_id: str) -> RoleFeatureGrant | None:
        """Return the grant for *feature_id*, or None if the role has none."""
        for grant in self.features:
            if grant.feature_id == feature_id:
                return grant
        return None


class Metadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    version: str


class CandidateConfig(BaseModel):
    """Structurally typed parse output. No referential checks applied yet."""

    model_config = ConfigDict(frozen=True)

    metadata: Metadata
    roles: tuple[Role, ...] = ()
    features: tuple[Feature, ...] = ()
    access_levels: tuple[AccessLevel, ...] = ()
    categories: tuple[Category, ...] = ()
    connection_types: tuple[ConnectionType, ...] = ()


class RBACConfig(CandidateConfig):
    """Validated, immutable aggregate root.

    Build one through ConfigValidator. Constructing it directly skips the
    referential checks. Id indexes are computed once at construction, so
    ``model_copy(update=...)`` is refused: a changed config must go back
    through validation to get a new instance.
    """

    no_access_level: str = DEFAULT_NO_ACCESS_LEVEL

    _roles_by_id: dict[str, Role] = PrivateAttr(default_factory=dict)
    _features_by_id: dict[str, Feature] = PrivateAttr(default_factory=dict)
    _levels_by_id: dict[str, AccessLevel] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: object) -> None:
        self._roles_by_id = {r.id: r for r in self.roles}
        self._features_by_id = {f.id: f for f in self.features}
        self._levels_by_id = {a.id: a for a in self.access_levels}

    def model_copy(
        self, *, update: Mapping[str, Any] | None = None, deep: bool = False
    ) -> RBACConfig:
        if update:
            raise TypeError(
                "RBACConfig cannot be copied with updates; validate a new candidate instead"
            )
        return super().model_copy(deep=deep)

    def role(self, role_id: str) -> Role | None:
        return self._roles_by_id.get(role_id)

    def feature(self, feature_id: str) -> Feature | None:
        return self._features_by_id.get(feature_id)

    def access_level(self, level_id: str) -> AccessLevel | None:
        return self._levels_by_id.get(level_id)


class AccessDecision(BaseModel):
    """Outcome of a single role/feature access check."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    access_level: str
    reason: str | None = None
