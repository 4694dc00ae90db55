from .loader import load_settings
from .models import (
    AccessSettings,
    RolegateSettings,
    SourceSettings,
)

__all__ = [
    "AccessSettings",
    "RolegateSettings",
    "SourceSettings",
    "load_settings",
]
