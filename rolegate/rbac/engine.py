"""Access queries against a validated RBACConfig."""

from __future__ import annotations

from collections.abc import Sequence

from rolegate.rbac.errors import UnknownFeatureError, UnknownRoleError
from rolegate.rbac.models import (
    AccessDecision,
    AccessLevel,
    Category,
    ConnectionType,
    Feature,
    RBACConfig,
    Role,
    RoleFeatureGrant,
)

# Lowest to highest.
DEFAULT_LEVEL_ORDER: tuple[str, ...] = ("no", "view-only", "partial", "full")


class AccessEngine:
    """Stateless query layer over one RBACConfig.

    Holds no state beyond the config it was built with, which is itself
    immutable, so an engine can be shared freely between threads.
    """

    def __init__(
        self, config: RBACConfig, level_order: Sequence[str] = DEFAULT_LEVEL_ORDER
    ) -> None:
        self.config = config
        self._ranks = {level: rank for rank, level in enumerate(level_order)}

    @property
    def no_access_level(self) -> str:
        return self.config.no_access_level

    # -- Access checks ---------------------------------------------------------

    def check_access(self, role_id: str, feature_id: str) -> AccessDecision:
        """Resolve the access level *role_id* has on *feature_id*.

        Raises UnknownRoleError / UnknownFeatureError for ids not in the config.
        A feature the role does not grant is denied at the no-access level.
        """
        role = self.config.role(role_id)
        if role is None:
            raise UnknownRoleError(role_id)
        if self.config.feature(feature_id) is None:
            raise UnknownFeatureError(feature_id)

        grant = role.grant_for(feature_id)
        if grant is None:
            return AccessDecision(
                allowed=False,
                access_level=self.no_access_level,
                reason=f"Feature {feature_id} not available to role {role_id}",
            )

        allowed = grant.access_level != self.no_access_level
        return AccessDecision(
            allowed=allowed,
            access_level=grant.access_level,
            reason=None if allowed else "Access denied",
        )

    def has_full_access(self, role_id: str, feature_id: str) -> bool:
        result = self.check_access(role_id, feature_id)
        return result.allowed and result.access_level == "full"

    def can_write(self, role_id: str, feature_id: str) -> bool:
        """Full or partial access."""
        result = self.check_access(role_id, feature_id)
        return result.allowed and result.access_level in ("full", "partial")

    def can_read(self, role_id: str, feature_id: str) -> bool:
        """Any access except the no-access level."""
        return self.check_access(role_id, feature_id).allowed

    def meets_level(self, role_id: str, feature_id: str, minimum: str) -> bool:
        """True if the role's level on the feature ranks at or above *minimum*.

        Raises ValueError if *minimum* is not in the engine's level order.
        """
        if minimum not in self._ranks:
            raise ValueError(
                f"Unknown access level '{minimum}', expected one of: {', '.join(self._ranks)}"
            )
        result = self.check_access(role_id, feature_id)
        if not result.allowed:
            return False
        return self._rank(result.access_level) >= self._ranks[minimum]

    def _rank(self, level: str) -> int:
        # A granted level outside the order ranks with the lowest.
        return self._ranks.get(level, 0)

    # -- Role/feature views ----------------------------------------------------

    def get_role_features(self, role_id: str) -> tuple[RoleFeatureGrant, ...]:
        role = self.config.role(role_id)
        if role is None:
            raise UnknownRoleError(role_id)
        return role.features

    def get_feature_roles(self, feature_id: str) -> list[tuple[str, str]]:
        """(role_id, access_level) for every role with a non-denied grant on the feature."""
        if self.config.feature(feature_id) is None:
            raise UnknownFeatureError(feature_id)
        result = []
        for role in self.config.roles:
            grant = role.grant_for(feature_id)
            if grant is not None and grant.access_level != self.no_access_level:
                result.append((role.id, grant.access_level))
        return result

    def get_features_by_category(
        self, role_id: str, category_id: str
    ) -> list[RoleFeatureGrant]:
        in_category = {f.id for f in self.config.features if f.category == category_id}
        return [g for g in self.get_role_features(role_id) if g.feature_id in in_category]

    # -- Listings --------------------------------------------------------------

    def list_roles(self) -> tuple[Role, ...]:
        return self.config.roles

    def list_features(self) -> tuple[Feature, ...]:
        return self.config.features

    def list_access_levels(self) -> tuple[AccessLevel, ...]:
        return self.config.access_levels

    def list_categories(self) -> tuple[Category, ...]:
        return self.config.categories

    def list_connection_types(self) -> tuple[ConnectionType, ...]:
        return self.config.connection_types

    def get_role(self, role_id: str) -> Role | None:
        return self.config.role(role_id)

    def get_feature(self, feature_id: str) -> Feature | None:
        return self.config.feature(feature_id)


def check_access(config: RBACConfig, role_id: str, feature_id: str) -> AccessDecision:
    """Convenience wrapper around AccessEngine.check_access()."""
    return AccessEngine(config).check_access(role_id, feature_id)
