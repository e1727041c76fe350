"""Centralized constants for ICD Helper.

Provides the fixed filesystem locations, environment variable names and
default values used throughout the codebase. Centralizing these values
keeps the discovery roots and the launch environment in one place and
lets settings.yaml override them consistently.
"""

# =============================================================================
# DISCOVERY ROOTS
# =============================================================================

# System-wide ICD manifests installed by the distribution's Mesa/driver packages.
# Must exist on any working Vulkan install.
SYSTEM_ICD_DIR = "/usr/share/vulkan/icd.d"

# Per-user manifests, relative to $XDG_DATA_HOME (default ~/.local/share)
USER_ICD_SUBDIR = "vulkan/icd.d"

# Only files with exactly this suffix are treated as manifests
MANIFEST_SUFFIX = ".json"

# =============================================================================
# CONFIGURATION STORE
# =============================================================================

# Directory under $XDG_CONFIG_HOME (default ~/.config)
CONFIG_DIR_NAME = "ICDHlpr"

# Cached listing and current selection
STORE_FILE_NAME = "config.json"

# Optional user overrides for roots and launch environment
SETTINGS_FILE_NAME = "settings.yaml"

# Store keys
STORE_KEY_ICDS = "ICDs"
STORE_KEY_CURRENT = "current"

# =============================================================================
# LAUNCH ENVIRONMENT
# =============================================================================

# Read by the Vulkan loader: colon-separated list of manifest paths
ICD_FILENAMES_VAR = "VK_ICD_FILENAMES"

DISPLAY_VAR = "DISPLAY"

# Vendor workarounds applied to every launch.
# AMD_VULKAN_ICD picks RADV over AMDVLK when both are installed, and the
# switchable-graphics layer otherwise hides the non-default GPU.
DEFAULT_VENDOR_ENV = {
    "AMD_VULKAN_ICD": "RADV",
    "DISABLE_LAYER_AMD_SWITCHABLE_GRAPHICS_1": "1",
}

# Fallback X displays probed when $DISPLAY is unset or unreachable
DEFAULT_DISPLAY_CANDIDATES = tuple(f":{n}" for n in range(10))

# =============================================================================
# PERMISSION MODES
# =============================================================================

# Store file permissions (owner read/write only)
FILE_MODE = 0o600

# Config directory permissions (owner read/write/execute only)
DIR_MODE = 0o700
