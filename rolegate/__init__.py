"""Rolegate - role-based access-control config engine: parse, validate, query."""

from rolegate.config import RolegateSettings, load_settings
from rolegate.rbac import (
    AccessDecision,
    AccessEngine,
    ConfigStore,
    ConfigValidationError,
    ConfigValidator,
    MalformedDocumentError,
    NoSourceLoadedError,
    RBACConfig,
    UnknownFeatureError,
    UnknownRoleError,
    parse,
    validate,
)

__version__ = "0.1.0"

__all__ = [
    "AccessDecision",
    "AccessEngine",
    "ConfigStore",
    "ConfigValidationError",
    "ConfigValidator",
    "MalformedDocumentError",
    "NoSourceLoadedError",
    "RBACConfig",
    "RolegateSettings",
    "UnknownFeatureError",
    "UnknownRoleError",
    "load_settings",
    "parse",
    "validate",
]
