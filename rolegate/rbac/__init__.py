"""RBAC config ingestion, validation and access queries."""

from rolegate.rbac.engine import AccessEngine, check_access
from rolegate.rbac.errors import (
    ConfigNotLoadedError,
    ConfigValidationError,
    MalformedDocumentError,
    NoSourceLoadedError,
    RolegateError,
    SourceReadError,
    UnknownFeatureError,
    UnknownRoleError,
)
from rolegate.rbac.models import (
    AccessDecision,
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
from rolegate.rbac.parser import parse, parse_text
from rolegate.rbac.sources import DocumentSource, FileSource, TextSource
from rolegate.rbac.store import ConfigStore, StoreState
from rolegate.rbac.validator import (
    ConfigValidator,
    Invariant,
    ValidationIssue,
    ValidationResult,
    validate,
)

__all__ = [
    "AccessDecision",
    "AccessEngine",
    "AccessLevel",
    "CandidateConfig",
    "Category",
    "ConfigNotLoadedError",
    "ConfigStore",
    "ConfigValidationError",
    "ConfigValidator",
    "ConnectionType",
    "DocumentSource",
    "Feature",
    "FileSource",
    "Invariant",
    "MalformedDocumentError",
    "Metadata",
    "NoSourceLoadedError",
    "RBACConfig",
    "Role",
    "RoleFeatureGrant",
    "RolegateError",
    "SourceReadError",
    "StoreState",
    "TextSource",
    "UnknownFeatureError",
    "UnknownRoleError",
    "ValidationIssue",
    "ValidationResult",
    "check_access",
    "parse",
    "parse_text",
    "validate",
]
