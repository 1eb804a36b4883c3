"""Configuration constants and re-exports for pageaudit."""

import os

from pageaudit.config.loader import _get_config_dir, load_config

# --- Initialize Configuration ---
_CONFIG = load_config()

# General
_gen = _CONFIG["general"]
LOG_LEVEL = _gen.get("log_level", "INFO")
LOG_FILE = _gen.get("log_file", "~/.config/pageaudit/logs/pageaudit.log")
DEFAULT_LOCALE = _gen.get("default_locale", "en-US")
ARTIFACTS_DIR_NAME = _gen.get("artifacts_dir_name", "latest-run")
USER_AGENT = _gen.get("user_agent", "pageaudit")
REQUEST_TIMEOUT = _gen.get("request_timeout", 45)

# Telemetry
_telemetry = _CONFIG["telemetry"]
SENTRY_DSN_ENV = _telemetry.get("sentry_dsn_env", "PAGEAUDIT_SENTRY_DSN")
SENTRY_DSN = os.environ.get(SENTRY_DSN_ENV) or _telemetry.get("sentry_dsn", "")
SENTRY_ENVIRONMENT = _telemetry.get("environment", "production")

# Run configuration defaults (settings, passes, audits, categories)
DEFAULT_RUN_CONFIG = {
    key: _CONFIG[key]
    for key in ("settings", "passes", "audits", "audit_options", "categories", "groups")
}

CONFIG_DIR = _get_config_dir()

__all__ = [
    "ARTIFACTS_DIR_NAME",
    "CONFIG_DIR",
    "DEFAULT_LOCALE",
    "DEFAULT_RUN_CONFIG",
    "LOG_FILE",
    "LOG_LEVEL",
    "REQUEST_TIMEOUT",
    "SENTRY_DSN",
    "SENTRY_DSN_ENV",
    "SENTRY_ENVIRONMENT",
    "USER_AGENT",
    "load_config",
]
