"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.zoomnet/config.yaml).
"""

import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import yaml
from dotenv import load_dotenv

from zoomnet.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".zoomnet"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "ZOOMNET_"

# Environment variables that predate the dotted keys
ENV_ALIASES = {
    "zoom.access_token": "ZOOM_ACCESS_TOKEN",
    "zoom.user_id": "ZOOM_USERID",
    "zoom.base_url": "ZOOM_BASE_URL",
    "zoom.proxy": "ZOOM_PROXY",
}

DEFAULTS: Dict[str, Any] = {
    "zoom.base_url": "https://api.zoom.us/v2",
    "http.timeout_seconds": 30.0,
    "runner.max_concurrency": 5,
    "retry.max_retries": 4,
    "retry.default_delay_seconds": 1.0,
    "retry.max_delay_seconds": 5.0,
    "logging.level": "INFO",
    "logging.format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}

# --- Global Configuration Store (Simple Approach) ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None, reload: bool = False) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values (DEFAULTS)

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
        reload: Load again even if configuration was already loaded.
    """
    global _config, _loaded
    if _loaded and not reload:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: ENV VARS take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug(".env file not found at or above current directory.")

    # 3. Environment Variables (Highest priority) are handled in get_config
    _loaded = True
    logger.debug("Configuration loading process completed.")


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turns nested YAML mappings into dotted keys ({'retry': {'max_retries': 2}} -> 'retry.max_retries')."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def _env_keys(key: str):
    normalized = key.upper().replace('.', '_')
    yield f"{ENV_PREFIX}{normalized}"
    if key in ENV_ALIASES:
        yield ENV_ALIASES[key]
    yield normalized


def _coerce(value: str) -> Any:
    # Try to convert common types
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by key.

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (ZOOMNET_<KEY>, legacy alias, <KEY>)
    3. YAML config
    4. DEFAULTS
    5. Default value

    Args:
        key: The configuration key (dotted, e.g. 'retry.max_retries')
        default: Default value if the key is not found

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]

    for env_key in _env_keys(key):
        if env_key in os.environ:
            return _coerce(os.environ[env_key])

    if key in _config:
        return _config[key]

    if key in DEFAULTS:
        return DEFAULTS[key]

    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None

# --- Convenience Functions ---

def get_access_token() -> str:
    """Bearer token used for every API request.

    Raises:
        ConfigurationError: If no token is configured.
    """
    token = get_config('zoom.access_token')
    if not token:
        raise ConfigurationError("No access token configured. Set ZOOM_ACCESS_TOKEN or zoom.access_token.")
    return str(token)


def get_user_id() -> str:
    """User the integration jobs operate on.

    Raises:
        ConfigurationError: If no user id is configured.
    """
    user_id = get_config('zoom.user_id')
    if not user_id:
        raise ConfigurationError("No user id configured. Set ZOOM_USERID or zoom.user_id.")
    return str(user_id)


def get_base_url() -> str:
    return str(get_config('zoom.base_url'))


def get_proxy() -> Optional[str]:
    proxy = get_config('zoom.proxy')
    return str(proxy) if proxy else None


def _get_number(key: str, convert: Callable[[Any], Any]) -> Any:
    """Reads a numeric setting, turning conversion errors into ConfigurationError."""
    value = get_config(key)
    try:
        return convert(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be a number, got {value!r}") from e


def _get_seconds(key: str) -> timedelta:
    seconds = _get_number(key, float)
    if seconds < 0:
        raise ConfigurationError(f"{key} must be >= 0, got {seconds}")
    try:
        return timedelta(seconds=seconds)
    except (ValueError, OverflowError) as e:  # nan, inf
        raise ConfigurationError(f"{key} is out of range: {seconds}") from e


def get_timeout_seconds() -> float:
    return _get_number('http.timeout_seconds', float)


def get_max_concurrency() -> int:
    value = _get_number('runner.max_concurrency', int)
    if value < 1:
        raise ConfigurationError(f"runner.max_concurrency must be >= 1, got {value}")
    return value


def get_retry_settings() -> Dict[str, Any]:
    """Retry policy parameters: max_retries, default_delay, max_delay."""
    max_retries = _get_number('retry.max_retries', int)
    if max_retries < 0:
        raise ConfigurationError(f"retry.max_retries must be >= 0, got {max_retries}")
    return {
        "max_retries": max_retries,
        "default_delay": _get_seconds('retry.default_delay_seconds'),
        "max_delay": _get_seconds('retry.max_delay_seconds'),
    }


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
