"""
Configuration management for Shelly-AI.

Config files are stored in ~/.shelly-ai/ (override with SHELLY_HOME):
- ~/.shelly-ai/config.json  - model, credential, request tags, history size
- ~/.shelly-ai/history.json - conversation history
- ~/.shelly-ai/.env         - optional environment file (OPENROUTER_API_KEY)

Settings come from the built-in defaults, overlaid by the config file, then
by command-line flags. The credential falls back to OPENROUTER_API_KEY when
neither the file nor the command line provides one.
"""

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from shelly_cli.models import DEFAULT_MODEL
from shelly_constants import (
    DEFAULT_SITE_NAME,
    DEFAULT_SITE_URL,
    OPENROUTER_API_KEY_ENV,
    SHELLY_HOME_ENV,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "api_key": "",
    "model": DEFAULT_MODEL,
    "site_url": DEFAULT_SITE_URL,
    "site_name": DEFAULT_SITE_NAME,
    "max_history_length": 10,
}


def get_shelly_home() -> Path:
    """Get the Shelly-AI home directory (~/.shelly-ai)."""
    return Path(os.getenv(SHELLY_HOME_ENV, Path.home() / ".shelly-ai"))


def get_config_path() -> Path:
    return get_shelly_home() / "config.json"


def get_history_path() -> Path:
    return get_shelly_home() / "history.json"


def get_env_path() -> Path:
    return get_shelly_home() / ".env"


def get_logs_dir() -> Path:
    return get_shelly_home() / "logs"


def ensure_shelly_home() -> Path:
    """Create the home directory if it doesn't exist."""
    home = get_shelly_home()
    home.mkdir(parents=True, exist_ok=True)
    return home


def load_env() -> None:
    """Load ~/.shelly-ai/.env, then a project .env as fallback.

    Variables already present in the environment are never overridden.
    """
    env_path = get_env_path()
    if env_path.exists():
        try:
            load_dotenv(dotenv_path=env_path, encoding="utf-8")
        except UnicodeDecodeError:
            load_dotenv(dotenv_path=env_path, encoding="latin-1")
        logger.debug("Loaded environment variables from %s", env_path)
    load_dotenv()


def validate_config(config: Dict[str, Any]) -> List[str]:
    """Coerce invalid values back to their defaults.

    Returns one message per value that was replaced.
    """
    problems = []

    max_history = config.get("max_history_length")
    if isinstance(max_history, bool) or not isinstance(max_history, int) or max_history < 1:
        problems.append(
            f"Invalid max_history_length {max_history!r}, using {DEFAULT_CONFIG['max_history_length']}"
        )
        config["max_history_length"] = DEFAULT_CONFIG["max_history_length"]

    if not isinstance(config.get("model"), str) or not config["model"].strip():
        problems.append(f"Invalid model {config.get('model')!r}, using {DEFAULT_MODEL}")
        config["model"] = DEFAULT_MODEL

    for key in ("api_key", "site_url", "site_name"):
        if config.get(key) is None:
            config[key] = DEFAULT_CONFIG[key]
        elif not isinstance(config[key], str):
            problems.append(f"Invalid {key}, using default")
            config[key] = DEFAULT_CONFIG[key]

    return problems


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from the config file, merged over defaults.

    A missing file yields the defaults. An unreadable or corrupt file is
    logged and the defaults are used. The credential environment variable
    is read here, once, if nothing else supplied a key.
    """
    path = Path(config_path) if config_path else get_config_path()
    config = copy.deepcopy(DEFAULT_CONFIG)

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                user_config = json.load(f)
            if not isinstance(user_config, dict):
                raise ValueError("config root must be a JSON object")
            config.update(user_config)
        except (OSError, ValueError) as e:
            logger.error("Error reading config file %s, using defaults: %s", path, e)
            config = copy.deepcopy(DEFAULT_CONFIG)

    for problem in validate_config(config):
        logger.warning("%s (%s)", problem, path)

    if not config.get("api_key"):
        config["api_key"] = os.getenv(OPENROUTER_API_KEY_ENV, "")

    return config


def save_config(config: Dict[str, Any], config_path: Optional[Path] = None) -> bool:
    """Write the persisted subset of ``config`` to disk.

    Returns False (after logging) if the file cannot be written.
    """
    path = Path(config_path) if config_path else get_config_path()
    persisted = {key: config.get(key, default) for key, default in DEFAULT_CONFIG.items()}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(persisted, f, indent=2)
        return True
    except OSError as e:
        logger.error("Error saving config file %s: %s", path, e)
        return False
