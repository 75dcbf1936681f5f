"""Well-known filesystem locations used by angrr.

Covers the Nix store and GC root defaults, the system generation
links consulted by profile policies, and the configuration files
merged at startup (global /etc file and the XDG user file).
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "angrr"

DEFAULT_STORE = Path("/nix/store")
DEFAULT_GC_ROOT_DIRECTORY = Path("/nix/var/nix/gcroots/auto")

BOOTED_SYSTEM_LINK = Path("/run/booted-system")
CURRENT_SYSTEM_LINK = Path("/run/current-system")

GLOBAL_CONFIG_PATH = Path("/etc/angrr/config.toml")


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the user configuration directory path.

    Returns:
        Path to ~/.config/angrr/ (or XDG_CONFIG_HOME/angrr/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_user_config_path() -> Path:
    """Get the user configuration file path.

    Returns:
        Path to ~/.config/angrr/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_global_config_path() -> Path | None:
    """Get the global configuration file path if it exists.

    Returns:
        Path to /etc/angrr/config.toml, or None when the file is absent.
    """
    if GLOBAL_CONFIG_PATH.exists():
        return GLOBAL_CONFIG_PATH
    return None


def get_user_theme_path() -> Path:
    """Get the user theme configuration path.

    Returns:
        Path to ~/.config/angrr/theme.toml.
    """
    return get_config_dir() / "theme.toml"
