"""Consistency check between collection-time and analysis-time settings."""

import json
import logging
from typing import Any, Dict, Mapping, Union

from pageaudit.config.run_config import PER_INVOCATION_SETTINGS, RunSettings
from pageaudit.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _normalize(settings: Union[RunSettings, Mapping[str, Any]]) -> Dict[str, Any]:
    data = settings.to_dict() if isinstance(settings, RunSettings) else dict(settings)
    for name in PER_INVOCATION_SETTINGS:
        data.pop(name, None)
    # Round-trip through JSON so tuples and lists compare equal.
    return json.loads(json.dumps(data, sort_keys=True))


def settings_compatible(
    collected: Union[RunSettings, Mapping[str, Any]],
    current: Union[RunSettings, Mapping[str, Any]],
) -> bool:
    """Return True when both settings agree outside the per-invocation fields."""
    return _normalize(collected) == _normalize(current)


def assert_settings_compatible(
    collected: Union[RunSettings, Mapping[str, Any]],
    current: Union[RunSettings, Mapping[str, Any]],
) -> None:
    """Raise ``ConfigurationError`` when artifacts were collected under other settings."""
    if settings_compatible(collected, current):
        return
    collected_data, current_data = _normalize(collected), _normalize(current)
    changed = sorted(
        key
        for key in set(collected_data) | set(current_data)
        if collected_data.get(key) != current_data.get(key)
    )
    logger.warning("Settings changed between collection and analysis: %s", changed)
    raise ConfigurationError(
        "Cannot change settings between collecting and analyzing "
        f"(changed: {', '.join(changed)})"
    )
