"""
Configuration Module for cohost-bot.

This module provides configuration loading for the cohost-bot client and its
command line front-end. Configuration is loaded from config.yml and the
account password is read from a Docker secret file.

Configuration Format:
    cohost:
      base_url: "https://cohost.org/api/v1/"
      timeout: 30                 # seconds per request
      attachment_api: "rest"      # "rest" or "trpc"
      email: "bot@example.com"
      password_file: "/run/secrets/cohost_password"
      project: "my-bot"
    logging:
      file: "cohost-bot.log"

Usage:
    >>> from cohost.config import load_config, get_cohost_settings
    >>> config = load_config()
    >>> settings = get_cohost_settings(config)
    >>> settings["base_url"]
    'https://cohost.org/api/v1/'
"""
import copy
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional


logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://cohost.org/api/v1/"
DEFAULT_TIMEOUT = 30
ATTACHMENT_APIS = ("rest", "trpc")
DEFAULT_ATTACHMENT_API = "rest"


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from config.yml file.

    Args:
        config_path: Path to config.yml file. If None, looks in current directory
                    and parent directories.

    Returns:
        Dictionary containing configuration settings. Falls back to
        get_default_config() when the file is missing or unreadable.

    Example:
        >>> config = load_config()
        >>> config["cohost"]["attachment_api"]
        'rest'
    """
    if config_path is None:
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            candidate = parent / "config.yml"
            if candidate.exists():
                config_path = str(candidate)
                break

    if config_path is None:
        logger.warning("config.yml not found, using default configuration")
        return get_default_config()

    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
            if not isinstance(config, dict):
                logger.warning("Configuration root must be a mapping, using default configuration")
                return get_default_config()
            config["cohost"] = get_cohost_settings(config)
            logger.info(f"Loaded configuration from {config_path}")
            return config
    except FileNotFoundError:
        logger.warning(f"Configuration file not found: {config_path}")
        return get_default_config()
    except yaml.YAMLError as e:
        logger.error(f"Error parsing configuration file: {e}")
        return get_default_config()


def get_default_config() -> Dict[str, Any]:
    """Return default configuration when config.yml is not available.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "cohost": {
            "base_url": DEFAULT_BASE_URL,
            "timeout": DEFAULT_TIMEOUT,
            "attachment_api": DEFAULT_ATTACHMENT_API,
            "email": None,
            "password_file": "/run/secrets/cohost_password",
            "project": None,
        },
        "logging": {
            "file": "cohost-bot.log",
        },
    }


def get_cohost_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """Return the cohost section of config merged over defaults and validated.

    Unknown attachment APIs and non-positive timeouts fall back to their
    defaults with a warning.
    """
    settings = copy.deepcopy(get_default_config()["cohost"])
    section = config.get("cohost") or {}
    if not isinstance(section, dict):
        logger.warning("Configuration 'cohost' must be a mapping; using defaults")
        section = {}
    settings.update({k: v for k, v in section.items() if v is not None})

    api = settings["attachment_api"]
    if api not in ATTACHMENT_APIS:
        logger.warning(f"Unknown attachment_api {api!r}; falling back to {DEFAULT_ATTACHMENT_API}")
        settings["attachment_api"] = DEFAULT_ATTACHMENT_API

    timeout = settings["timeout"]
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        logger.warning(f"Invalid timeout {timeout!r}; falling back to {DEFAULT_TIMEOUT}")
        settings["timeout"] = DEFAULT_TIMEOUT

    return settings


def read_secret_file(filepath: str) -> Optional[str]:
    """Read a Docker secret from a file.

    Args:
        filepath: Path to the secret file

    Returns:
        Content of the secret file (stripped of whitespace), or None if file doesn't exist

    Example:
        >>> password = read_secret_file("/run/secrets/cohost_password")
    """
    try:
        with open(filepath, "r") as f:
            return f.read().strip()
    except FileNotFoundError:
        logger.debug(f"Secret file not found: {filepath}")
        return None
    except OSError as e:
        logger.error(f"Error reading secret file {filepath}: {e}")
        return None
