"""Referential-integrity checks over a parsed CandidateConfig."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, Field

from rolegate.rbac.models import DEFAULT_NO_ACCESS_LEVEL, CandidateConfig, RBACConfig

logger = logging.getLogger(__name__)


class Invariant(str, Enum):
    """The invariants every valid config satisfies."""

    unique_ids = "unique-ids"
    feature_category = "feature-category"
    role_connection_type = "role-connection-type"
    grant_feature = "grant-feature"
    grant_access_level = "grant-access-level"
    unique_grants = "unique-grants"
    no_access_default = "no-access-default"


class ValidationIssue(BaseModel):
    """A single invariant violation."""

    invariant: Invariant
    entity_kind: str
    entity_id: str
    message: str


class ValidationResult(BaseModel):
    """Either a promoted RBACConfig or every violation found. Never both."""

    config: RBACConfig | None = None
    errors: list[ValidationIssue] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def _duplicates(ids: Iterable[str]) -> list[str]:
    """Ids that occur more than once, in first-seen order."""
    counts = Counter(ids)
    return [i for i, n in counts.items() if n > 1]


class ConfigValidator:
    """Runs every invariant against a candidate and collects all violations."""

    def __init__(self, no_access_level: str = DEFAULT_NO_ACCESS_LEVEL) -> None:
        self.no_access_level = no_access_level

    def validate(self, candidate: CandidateConfig) -> ValidationResult:
        errors: list[ValidationIssue] = []

        self._check_unique_ids(candidate, errors)
        self._check_feature_categories(candidate, errors)
        self._check_role_connection_types(candidate, errors)
        self._check_grants(candidate, errors)
        self._check_no_access_level(candidate, errors)

        if errors:
            logger.warning("RBAC config failed validation with %d error(s)", len(errors))
            return ValidationResult(errors=errors)

        config = RBACConfig(
            metadata=candidate.metadata,
            roles=candidate.roles,
            features=candidate.features,
            access_levels=candidate.access_levels,
            categories=candidate.categories,
            connection_types=candidate.connection_types,
            no_access_level=self.no_access_level,
        )
        return ValidationResult(config=config)

    # ------------------------------------------------------------------
    # Individual invariants
    # ------------------------------------------------------------------

    def _check_unique_ids(self, c: CandidateConfig, errors: list[ValidationIssue]) -> None:
        collections = (
            ("role", c.roles),
            ("feature", c.features),
            ("access-level", c.access_levels),
            ("category", c.categories),
            ("connection-type", c.connection_types),
        )
        for kind, items in collections:
            for dup in _duplicates(item.id for item in items):
                errors.append(
                    ValidationIssue(
                        invariant=Invariant.unique_ids,
                        entity_kind=kind,
                        entity_id=dup,
                        message=f"Duplicate {kind} ID: '{dup}'",
                    )
                )

    def _check_feature_categories(self, c: CandidateConfig, errors: list[ValidationIssue]) -> None:
        category_ids = {cat.id for cat in c.categories}
        for feature in c.features:
            if feature.category not in category_ids:
                errors.append(
                    ValidationIssue(
                        invariant=Invariant.feature_category,
                        entity_kind="feature",
                        entity_id=feature.id,
                        message=(
                            f"Feature '{feature.id}' references unknown category: "
                            f"'{feature.category}'"
                        ),
                    )
                )

    def _check_role_connection_types(
        self, c: CandidateConfig, errors: list[ValidationIssue]
    ) -> None:
        type_ids = {t.id for t in c.connection_types}
        for role in c.roles:
            if role.connection_type not in type_ids:
                errors.append(
                    ValidationIssue(
                        invariant=Invariant.role_connection_type,
                        entity_kind="role",
                        entity_id=role.id,
                        message=(
                            f"Role '{role.id}' has unknown connection type: "
                            f"'{role.connection_type}'"
                        ),
                    )
                )

    def _check_grants(self, c: CandidateConfig, errors: list[ValidationIssue]) -> None:
        feature_ids = {f.id for f in c.features}
        level_ids = {a.id for a in c.access_levels}

        for role in c.roles:
            for dup in _duplicates(g.feature_id for g in role.features):
                errors.append(
                    ValidationIssue(
                        invariant=Invariant.unique_grants,
                        entity_kind="role",
                        entity_id=role.id,
                        message=f"Role '{role.id}' has duplicate feature ID: '{dup}'",
                    )
                )

            for grant in role.features:
                if grant.feature_id not in feature_ids:
                    errors.append(
                        ValidationIssue(
                            invariant=Invariant.grant_feature,
                            entity_kind="role",
                            entity_id=role.id,
                            message=(
                                f"Role '{role.id}' references unknown feature: "
                                f"'{grant.feature_id}'"
                            ),
                        )
                    )
                if grant.access_level not in level_ids:
                    errors.append(
                        ValidationIssue(
                            invariant=Invariant.grant_access_level,
                            entity_kind="role",
                            entity_id=role.id,
                            message=(
                                f"Role '{role.id}' feature '{grant.feature_id}' has "
                                f"invalid access level: '{grant.access_level}'"
                            ),
                        )
                    )

    def _check_no_access_level(self, c: CandidateConfig, errors: list[ValidationIssue]) -> None:
        # Ungranted features resolve to this level, so it has to exist.
        if not any(a.id == self.no_access_level for a in c.access_levels):
            errors.append(
                ValidationIssue(
                    invariant=Invariant.no_access_default,
                    entity_kind="access-level",
                    entity_id=self.no_access_level,
                    message=f"Missing required access level: '{self.no_access_level}'",
                )
            )


def validate(
    candidate: CandidateConfig, no_access_level: str = DEFAULT_NO_ACCESS_LEVEL
) -> ValidationResult:
    """Convenience wrapper around ConfigValidator.validate()."""
    return ConfigValidator(no_access_level).validate(candidate)
