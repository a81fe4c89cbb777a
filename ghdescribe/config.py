"""Configuration for the cache location, the cache TTL and the remote host"""

import configparser
import os
import platform
from typing import Optional, Any

from pathlib import Path

APP_NAME = "gh-git-describe"

_home = os.path.expanduser("~")

xdg_config_home = os.environ.get("XDG_CONFIG_HOME") or os.path.join(_home, ".config")


default_cfg = {
    "cache": {"dir": "", "ttl": str(24 * 60 * 60), "dir_mode": "0750"},
    "remote": {
        "host": "github.com",
        "url_template": "https://{host}/{owner}/{name}.git",
    },
    "log": {"level": "info"},
}

if platform.system() == "Darwin":
    # macOS
    config_dir = Path(f"~/Library/Application Support/{APP_NAME}").expanduser()
else:
    # Linux or others
    config_dir = Path(os.path.join(xdg_config_home, APP_NAME))


def get_config_file():
    return config_dir / f"{APP_NAME}.cfg"


def user_cache_dir() -> Optional[Path]:
    """
    Locate the platform's per-user cache directory.

    Returns:
        The cache directory, or None if it cannot be determined
        (e.g. no home directory and no override in the environment).
    """
    system = platform.system()
    if system == "Windows":
        local_app_data = os.environ.get("LOCALAPPDATA")
        return Path(local_app_data) if local_app_data else None

    xdg_cache_home = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache_home and os.path.isabs(xdg_cache_home):
        return Path(xdg_cache_home)

    home = os.path.expanduser("~")
    if home == "~" or not home:
        return None
    if system == "Darwin":
        return Path(home) / "Library" / "Caches"
    return Path(home) / ".cache"


class ConfigAccessor:
    """
    A dict-like accessor for configuration files.

    This class provides a way to access configuration options with a dictionary-like
    interface while handling missing sections or keys gracefully.

    Usage:
        config = ConfigAccessor()
        value = config.get('cache', 'ttl', default='3600')
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize a ConfigAccessor with an optional config file path.

        Args:
            config_path: Path to the configuration file. If None, uses the default path.
        """
        if config_path is None:
            self.config_path = get_config_file()
        else:
            self.config_path = config_path

        self.config = configparser.ConfigParser()
        if self.config_path.exists():
            self.config.read(self.config_path)

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value from the specified section and key.

        Args:
            section: The configuration section
            key: The configuration key
            default: Value to return if the section or key doesn't exist

        Returns:
            The configuration value if it exists, otherwise the default value
        """
        try:
            return self.config[section][key]
        except (KeyError, configparser.NoSectionError, configparser.NoOptionError):
            return default

    def set(self, section: str, key: str, value: str) -> None:
        if not self.config.has_section(section):
            self.config.add_section(section)

        self.config[section][key] = value

    def save(self) -> None:
        """
        Save the current configuration to the config file.

        Fails gracefully if the file cannot be written (e.g., read-only filesystem).
        """
        import logging

        logger = logging.getLogger(__name__)

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w") as configfile:
                self.config.write(configfile)
        except OSError as e:
            logger.warning(
                f"Could not save configuration to {self.config_path}: {e}. "
                "Configuration changes will not persist."
            )


# Create a global config accessor instance
config = ConfigAccessor()


def _get(section: str, key: str) -> str:
    return config.get(section, key, default_cfg[section][key])


def get_cache_dir() -> str:
    """Configured cache directory; an empty string selects the platform default."""
    return _get("cache", "dir").strip()


def get_cache_ttl() -> float:
    """
    Get the configured cache TTL in seconds.

    Raises:
        ValueError: If the configured value is not a non-negative number
    """
    raw = _get("cache", "ttl")
    ttl = float(raw)
    if ttl < 0:
        raise ValueError(f"cache ttl must not be negative: {raw}")
    return ttl


def get_dir_mode() -> int:
    """Permission mode for cache directories, written in octal (e.g. 0750)."""
    return int(_get("cache", "dir_mode"), 8)


def get_remote_host() -> str:
    return os.environ.get("GH_HOST") or _get("remote", "host")


def get_url_template() -> str:
    return _get("remote", "url_template")


def get_log_level() -> str:
    return _get("log", "level")
