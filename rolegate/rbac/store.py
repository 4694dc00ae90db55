"""Lifecycle owner for the active RBAC configuration."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from rolegate.rbac.engine import DEFAULT_LEVEL_ORDER, AccessEngine
from rolegate.rbac.errors import (
    ConfigNotLoadedError,
    ConfigValidationError,
    NoSourceLoadedError,
    RolegateError,
    SourceReadError,
)
from rolegate.rbac.models import (
    DEFAULT_NO_ACCESS_LEVEL,
    AccessDecision,
    AccessLevel,
    Category,
    ConnectionType,
    Feature,
    RBACConfig,
    Role,
)
from rolegate.rbac.parser import DocumentFormat, parse_text
from rolegate.rbac.sources import DocumentSource, TextSource, as_source
from rolegate.rbac.validator import ConfigValidator

if TYPE_CHECKING:
    from rolegate.config.models import RolegateSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "coffee-platform-roles.xml"


class StoreState(str, Enum):
    empty = "empty"
    loading = "loading"
    ready = "ready"


class _Published(NamedTuple):
    """Config and the engine built on it, swapped as one reference."""

    source: DocumentSource
    config: RBACConfig
    engine: AccessEngine


class ConfigStore:
    """Holds at most one current RBACConfig and manages load/reload/reset.

    Writers (load, load_from_text, reload, reset) are serialized on a lock.
    Readers never take the lock: publication is a single reference swap, so
    they see either the previous config or the new one, never a partial one.

    A failed load or reload leaves the previously published config in place
    and re-raises; the error is also kept in ``last_error``.
    """

    def __init__(
        self,
        default_path: str | Path = DEFAULT_CONFIG_PATH,
        *,
        source_format: DocumentFormat = "auto",
        encoding: str = "utf-8",
        no_access_level: str = DEFAULT_NO_ACCESS_LEVEL,
        level_order: Sequence[str] = DEFAULT_LEVEL_ORDER,
    ) -> None:
        self.default_path = Path(default_path)
        self.source_format = source_format
        self.encoding = encoding
        self.level_order = tuple(level_order)
        self._validator = ConfigValidator(no_access_level)
        self._lock = threading.Lock()
        self._published: _Published | None = None
        self._state = StoreState.empty
        self.last_error: RolegateError | None = None

    @classmethod
    def from_settings(cls, settings: RolegateSettings) -> ConfigStore:
        return cls(
            settings.source.path,
            source_format=settings.source.format,
            encoding=settings.source.encoding,
            no_access_level=settings.access.no_access_level,
            level_order=settings.access.level_order,
        )

    # -- Read side -------------------------------------------------------------

    @property
    def state(self) -> StoreState:
        return self._state

    @property
    def source_key(self) -> str | None:
        published = self._published
        return published.source.key if published else None

    def get_current(self) -> RBACConfig | None:
        """The current config, or None if nothing is loaded."""
        published = self._published
        return published.config if published else None

    def is_loaded(self) -> bool:
        return self._published is not None

    def engine(self) -> AccessEngine:
        """AccessEngine bound to the current config."""
        published = self._published
        if published is None:
            raise ConfigNotLoadedError()
        return published.engine

    def check_access(self, role_id: str, feature_id: str) -> AccessDecision:
        return self.engine().check_access(role_id, feature_id)

    def list_roles(self) -> tuple[Role, ...]:
        return self.engine().list_roles()

    def list_features(self) -> tuple[Feature, ...]:
        return self.engine().list_features()

    def list_access_levels(self) -> tuple[AccessLevel, ...]:
        return self.engine().list_access_levels()

    def list_categories(self) -> tuple[Category, ...]:
        return self.engine().list_categories()

    def list_connection_types(self) -> tuple[ConnectionType, ...]:
        return self.engine().list_connection_types()

    # -- Write side ------------------------------------------------------------

    def load(self, source: str | Path | DocumentSource | None = None) -> RBACConfig:
        """Load from *source* (default: the configured path).

        Returns the cached config without reparsing if the same source is
        already loaded.
        """
        src = as_source(
            source if source is not None else self.default_path,
            fmt=self.source_format,
            encoding=self.encoding,
        )
        with self._lock:
            published = self._published
            if published is not None and published.source.key == src.key:
                logger.debug("RBAC config cache hit for %s", src.key)
                return published.config
            return self._load_locked(src)

    def load_from_text(self, text: str, fmt: DocumentFormat = "auto") -> RBACConfig:
        """Parse and validate an in-memory document. Never served from cache."""
        src = TextSource(text, fmt=fmt)
        with self._lock:
            return self._load_locked(src)

    def reload(self) -> RBACConfig:
        """Force a fresh parse+validate of the last loaded source."""
        with self._lock:
            published = self._published
            if published is None:
                raise NoSourceLoadedError()
            return self._load_locked(published.source)

    def reset(self) -> None:
        with self._lock:
            self._published = None
            self._state = StoreState.empty
            self.last_error = None
            logger.info("RBAC config store reset")

    def _load_locked(self, src: DocumentSource) -> RBACConfig:
        self._state = StoreState.loading
        try:
            candidate = parse_text(_read(src), fmt=src.format)
            result = self._validator.validate(candidate)
            if result.config is None:
                raise ConfigValidationError(result.errors)
            config = result.config
            self._published = _Published(src, config, AccessEngine(config, self.level_order))
            self.last_error = None
        except RolegateError as e:
            self.last_error = e
            logger.warning("Failed to load RBAC config from %s: %s", src.key, e)
            raise
        finally:
            self._state = StoreState.ready if self._published is not None else StoreState.empty

        logger.info(
            "Loaded RBAC config %r v%s from %s (%d roles, %d features)",
            config.metadata.name,
            config.metadata.version,
            src.key,
            len(config.roles),
            len(config.features),
        )
        return config


def _read(src: DocumentSource) -> str:
    """Read raw text; any failure of a custom source is a load failure."""
    try:
        return src.read()
    except RolegateError:
        raise
    except Exception as e:
        raise SourceReadError(src.key, e) from e
