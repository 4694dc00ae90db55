"""Settings discovery for rolegate.yaml.

An explicit ``--settings`` path must exist. Otherwise the first non-empty file
of ``./rolegate.yaml`` and ``~/.rolegate/config.yaml`` wins, falling back to
defaults. ``${VAR}`` and ``${VAR:-fallback}`` are expanded in string values;
an unset variable with no fallback is an error, so a typo never turns into an
empty source path.
"""

import os
import re
from pathlib import Path
from typing import Any

import yaml

from .models import RolegateSettings

LOCAL_SETTINGS = Path("rolegate.yaml")

_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def load_settings(cli_path: str | None = None) -> RolegateSettings:
    """Resolve settings: explicit path > project-local > user-global > defaults.

    Raises ValueError naming the file for a missing explicit path, bad YAML,
    an unset environment variable or a schema violation.
    """
    if cli_path:
        path = Path(cli_path)
        if not path.is_file():
            raise ValueError(f"Settings file not found: {path}")
        candidates = [path]
    else:
        candidates = [LOCAL_SETTINGS, Path.home() / ".rolegate" / "config.yaml"]

    for path in candidates:
        settings = _read_settings(path)
        if settings is not None:
            return settings
    return RolegateSettings()


def _read_settings(path: Path) -> RolegateSettings | None:
    """Parse one settings file; None if it is absent or empty."""
    if not path.is_file():
        return None
    try:
        raw = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid settings in {path}: expected a mapping at the top level")

    try:
        return RolegateSettings.model_validate(_expand_env_vars(raw))
    except ValueError as e:  # includes pydantic ValidationError
        raise ValueError(f"Invalid settings in {path}: {e}") from e


def _expand_env_vars(obj: Any, where: str = "") -> Any:
    """Recursively expand ${VAR} references in string values.

    Raises ValueError naming the variable and the settings key that used it.
    """
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: _lookup(m, where), obj)
    if isinstance(obj, dict):
        return {
            k: _expand_env_vars(v, f"{where}.{k}" if where else str(k)) for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [_expand_env_vars(v, f"{where}[{i}]") for i, v in enumerate(obj)]
    return obj


def _lookup(match: re.Match[str], where: str) -> str:
    name, fallback = match.group(1), match.group(2)
    value = os.environ.get(name)
    if value is not None:
        return value
    if fallback is not None:
        return fallback
    raise ValueError(f"environment variable {name} is not set (used by {where or 'settings'})")


# Default YAML template for `rolegate settings init`
DEFAULT_SETTINGS_TEMPLATE = """\
# rolegate.yaml

# Role declaration document
source:
  path: "coffee-platform-roles.xml"   # or ${ROLEGATE_CONFIG:-roles.xml}
  format: "auto"                      # auto | xml | yaml
  encoding: "utf-8"

# Access scale
access:
  no_access_level: "no"               # level an ungranted feature resolves to
  level_order: ["no", "view-only", "partial", "full"]   # lowest -> highest

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
