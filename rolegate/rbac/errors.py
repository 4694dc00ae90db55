"""Error taxonomy for config loading and access queries."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rolegate.rbac.validator import ValidationIssue


class RolegateError(Exception):
    """Base class for every error raised by the engine."""


class MalformedDocumentError(RolegateError):
    """Raised when a raw document cannot be parsed into the expected shape."""

    def __init__(self, message: str, location: str | None = None) -> None:
        self.message = message
        self.location = location
        if location:
            super().__init__(f"{message} (at {location})")
        else:
            super().__init__(message)


class SourceReadError(MalformedDocumentError):
    """Raised when the raw bytes of a document source cannot be read."""

    def __init__(self, source: str, cause: Exception) -> None:
        self.source = source
        super().__init__(f"Failed to read {source}: {cause}")
        self.__cause__ = cause


class ConfigValidationError(RolegateError):
    """A parseable config that violates one or more invariants.

    Carries every violation found, never just the first.
    """

    def __init__(self, errors: list[ValidationIssue]) -> None:
        self.errors = list(errors)
        lines = "\n".join(f"  - {e.message}" for e in self.errors)
        super().__init__(f"Invalid RBAC config ({len(self.errors)} error(s)):\n{lines}")


class UnknownRoleError(RolegateError, LookupError):
    """Query against a role id absent from the config."""

    def __init__(self, role_id: str) -> None:
        self.role_id = role_id
        super().__init__(f"Role '{role_id}' not found")


class UnknownFeatureError(RolegateError, LookupError):
    """Query against a feature id absent from the feature catalog."""

    def __init__(self, feature_id: str) -> None:
        self.feature_id = feature_id
        super().__init__(f"Feature '{feature_id}' not found")


class NoSourceLoadedError(RolegateError):
    """reload() called before any successful load."""

    def __init__(self) -> None:
        super().__init__("No config source set. Call load() first.")


class ConfigNotLoadedError(RolegateError):
    """A query was issued against a store with no current config."""

    def __init__(self) -> None:
        super().__init__("No RBAC config loaded")
