"""Runtime settings: discovery roots, store location and launch environment.

Settings are built once per invocation and passed explicitly to the
scanner, the store and the launcher. Nothing in the engine reads the
process environment or the home directory on its own, so tests can point
every location at a temporary directory.

Defaults follow the XDG base directory convention:
    - store:      $XDG_CONFIG_HOME/ICDHlpr/config.json  (~/.config/...)
    - user ICDs:  $XDG_DATA_HOME/vulkan/icd.d           (~/.local/share/...)
    - system ICDs: /usr/share/vulkan/icd.d

An optional settings.yaml next to the store overrides them:

    system_icd_dir: /usr/share/vulkan/icd.d
    user_icd_dir: ~/.local/share/vulkan/icd.d
    vendor_env:
      AMD_VULKAN_ICD: RADV
    display_candidates: [":0", ":1"]
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from ..exceptions import SettingsError
from ..utils.constants import (
    CONFIG_DIR_NAME,
    DEFAULT_DISPLAY_CANDIDATES,
    DEFAULT_VENDOR_ENV,
    SETTINGS_FILE_NAME,
    STORE_FILE_NAME,
    SYSTEM_ICD_DIR,
    USER_ICD_SUBDIR,
)

logger = logging.getLogger(__name__)

# Keys accepted in settings.yaml
KNOWN_KEYS = {"system_icd_dir", "user_icd_dir", "vendor_env", "display_candidates"}


@dataclass
class Settings:
    """Resolved locations and launch defaults for one invocation.

    Attributes:
        home: User home directory
        system_root: Mandatory system manifest directory
        user_root: Optional per-user manifest directory
        config_dir: Directory holding the store and settings.yaml
        program_name: Name used in help hints ("Use <prog> -l ...")
        vendor_env: Fixed variables added to every launch environment
        display_candidates: X displays probed when $DISPLAY does not work
    """
    home: Path
    system_root: Path
    user_root: Path
    config_dir: Path
    program_name: str = "icdhelper"
    vendor_env: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_VENDOR_ENV))
    display_candidates: list[str] = field(default_factory=lambda: list(DEFAULT_DISPLAY_CANDIDATES))

    @property
    def store_path(self) -> Path:
        return self.config_dir / STORE_FILE_NAME

    @property
    def settings_path(self) -> Path:
        return self.config_dir / SETTINGS_FILE_NAME

    @property
    def roots(self) -> tuple[Path, Path]:
        """Search roots in discovery order (system first)."""
        return (self.system_root, self.user_root)


def get_home(env: Mapping[str, str]) -> Path:
    """Get the user's home directory from $HOME, falling back to the passwd entry."""
    home = env.get("HOME")
    if home:
        return Path(home)
    return Path.home()


def get_xdg_config_home(env: Mapping[str, str], home: Path) -> Path:
    """Get XDG_CONFIG_HOME path (default: ~/.config)."""
    xdg_config = env.get("XDG_CONFIG_HOME")
    if not xdg_config:
        return home / ".config"
    return Path(xdg_config).expanduser()


def get_xdg_data_home(env: Mapping[str, str], home: Path) -> Path:
    """Get XDG_DATA_HOME path (default: ~/.local/share)."""
    xdg_data = env.get("XDG_DATA_HOME")
    if not xdg_data:
        return home / ".local" / "share"
    return Path(xdg_data).expanduser()


def default_settings(program_name: str = "icdhelper", env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from the environment alone, ignoring settings.yaml.

    Args:
        program_name: Name shown in user hints
        env: Environment mapping (default: os.environ)

    Returns:
        Settings with XDG-derived default locations
    """
    if env is None:
        env = os.environ

    home = get_home(env)
    return Settings(
        home=home,
        system_root=Path(SYSTEM_ICD_DIR),
        user_root=get_xdg_data_home(env, home) / USER_ICD_SUBDIR,
        config_dir=get_xdg_config_home(env, home) / CONFIG_DIR_NAME,
        program_name=program_name,
    )


def _expand(value: Any, key: str, home: Path) -> Path:
    if not isinstance(value, str) or not value:
        raise SettingsError(f"{key} must be a non-empty string")
    if value == "~" or value.startswith("~/"):
        return home / value[2:]
    return Path(value)


def apply_overrides(settings: Settings, overrides: dict[str, Any]) -> Settings:
    """Apply a parsed settings.yaml mapping on top of default settings.

    Args:
        settings: Settings to update in place
        overrides: Mapping loaded from settings.yaml

    Returns:
        The updated settings

    Raises:
        SettingsError: On unknown keys or values of the wrong type
    """
    if not isinstance(overrides, dict):
        raise SettingsError("settings.yaml root must be a mapping")

    unknown = sorted(set(overrides) - KNOWN_KEYS)
    if unknown:
        raise SettingsError(
            f"Unknown settings key(s): {', '.join(map(str, unknown))}. "
            f"Valid: {', '.join(sorted(KNOWN_KEYS))}"
        )

    if "system_icd_dir" in overrides:
        settings.system_root = _expand(overrides["system_icd_dir"], "system_icd_dir", settings.home)

    if "user_icd_dir" in overrides:
        settings.user_root = _expand(overrides["user_icd_dir"], "user_icd_dir", settings.home)

    if "vendor_env" in overrides:
        vendor_env = overrides["vendor_env"] or {}
        if not isinstance(vendor_env, dict):
            raise SettingsError("vendor_env must be a mapping of variable names to values")
        for name, value in vendor_env.items():
            if not isinstance(name, str) or not name or "=" in name:
                raise SettingsError(f"Invalid environment variable name in vendor_env: {name!r}")
            if not isinstance(value, (str, int)):
                raise SettingsError(f"vendor_env value for {name} must be a string")
        settings.vendor_env = {name: str(value) for name, value in vendor_env.items()}

    if "display_candidates" in overrides:
        candidates = overrides["display_candidates"] or []
        if not isinstance(candidates, list) or not all(isinstance(c, str) for c in candidates):
            raise SettingsError("display_candidates must be a list of display names")
        settings.display_candidates = list(candidates)

    return settings


def load_settings(program_name: str = "icdhelper", env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from the environment and the optional settings.yaml.

    Args:
        program_name: Name shown in user hints
        env: Environment mapping (default: os.environ)

    Returns:
        Fully resolved Settings

    Raises:
        SettingsError: If settings.yaml cannot be read or is invalid
    """
    import yaml

    settings = default_settings(program_name, env)
    settings_path = settings.settings_path

    if not settings_path.exists():
        return settings

    logger.debug("Loading settings from %s", settings_path)
    try:
        with open(settings_path) as f:
            overrides = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML syntax in {settings_path}: {e}") from e
    except OSError as e:
        raise SettingsError(f"Cannot read {settings_path}: {e}") from e

    if overrides is None:
        return settings

    return apply_overrides(settings, overrides)
