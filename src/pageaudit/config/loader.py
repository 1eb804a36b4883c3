"""Configuration loading and merging logic."""

import copy
import logging
import tomllib
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

CONFIG_FILES = [
    "general.toml",
    "run.toml",
]


def _get_config_dir() -> Path:
    """Return the configuration directory path."""
    return Path.home() / ".config" / "pageaudit"


def merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``update`` into ``base`` in place; tables merge, values replace."""
    for k, v in update.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            merge(base[k], v)
        else:
            base[k] = copy.deepcopy(v)
    return base


def load_bundled_config(filename: str) -> Dict[str, Any]:
    """Load one of the TOML files shipped inside the package."""
    resource_path = resources.files("pageaudit.data.config").joinpath(filename)
    with resource_path.open("rb") as f:
        return tomllib.load(f)


def load_toml_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a TOML file, raising ``ConfigurationError`` for unreadable content."""
    from pageaudit.core.exceptions import ConfigurationError

    config_path = Path(path).expanduser()
    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"Invalid configuration file at {config_path}: {e}"
        ) from e


def load_config(config_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from bundled defaults overlaid with user TOML files."""
    config_dir = config_dir or _get_config_dir()

    final_config: Dict[str, Any] = {
        "general": {},
        "telemetry": {},
        "settings": {},
        "passes": [],
        "audits": {},
        "audit_options": {},
        "categories": {},
        "groups": {},
    }

    for filename in CONFIG_FILES:
        try:
            merge(final_config, load_bundled_config(filename))
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning("Failed to load bundled config %s: %s", filename, e)

    for filename in CONFIG_FILES:
        user_file_path = config_dir / filename
        if not user_file_path.exists():
            continue
        try:
            with open(user_file_path, "rb") as f:
                merge(final_config, tomllib.load(f))
            logger.debug("Loaded user config from %s", user_file_path)
        except tomllib.TOMLDecodeError as e:
            logger.warning("Ignoring invalid config file %s: %s", user_file_path, e)

    return final_config
