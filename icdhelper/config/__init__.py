"""Configuration for ICD Helper.

Modules:
    settings: XDG-derived locations plus optional settings.yaml overrides
"""

from .settings import (
    Settings,
    apply_overrides,
    default_settings,
    get_xdg_config_home,
    get_xdg_data_home,
    load_settings,
)

__all__ = [
    "Settings",
    "apply_overrides",
    "default_settings",
    "get_xdg_config_home",
    "get_xdg_data_home",
    "load_settings",
]
