"""Localized message catalogs and message-reference replacement."""

from __future__ import annotations

import dataclasses
import logging
import tomllib
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import resources
from typing import Any, Dict, List, Mapping

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en-US"


@dataclass(frozen=True)
class UIString:
    """Reference to a catalog message, formatted lazily for a target locale."""

    message_id: str
    values: Mapping[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return format_message(self, DEFAULT_LOCALE)


def _read_catalog_file(locale: str) -> Dict[str, Any]:
    resource_path = resources.files("pageaudit.data.locales").joinpath(f"{locale}.toml")
    if not resource_path.is_file():
        return {}
    with resource_path.open("rb") as f:
        return tomllib.load(f)


@lru_cache(maxsize=None)
def load_catalog(locale: str) -> Dict[str, Dict[str, str]]:
    """Return the merged catalog for ``locale``, falling back to en-US entries."""
    catalog: Dict[str, Dict[str, str]] = {"messages": {}, "renderer": {}}
    candidates = [DEFAULT_LOCALE]
    language = (locale or "").split("-", 1)[0]
    if language and language != locale:
        candidates.append(language)
    if locale and locale != DEFAULT_LOCALE:
        candidates.append(locale)

    for candidate in candidates:
        data = _read_catalog_file(candidate)
        for section in ("messages", "renderer"):
            catalog[section].update(data.get(section, {}))
    return catalog


def format_message(message: Any, locale: str = DEFAULT_LOCALE) -> Any:
    """Format a ``UIString`` for ``locale``; other values are returned unchanged."""
    if not isinstance(message, UIString):
        return message
    template = load_catalog(locale or DEFAULT_LOCALE)["messages"].get(message.message_id)
    if template is None:
        logger.warning("Missing message id in catalog: %s", message.message_id)
        return message.message_id
    try:
        return template.format(**dict(message.values))
    except (KeyError, IndexError) as e:
        logger.warning("Message %s is missing value %s", message.message_id, e)
        return template


def get_renderer_formatted_strings(locale: str = DEFAULT_LOCALE) -> Dict[str, str]:
    """Return the strings the report renderer needs for ``locale``."""
    return dict(load_catalog(locale or DEFAULT_LOCALE)["renderer"])


def replace_message_refs(result: Any, locale: str = DEFAULT_LOCALE) -> Dict[str, List[str]]:
    """Replace every ``UIString`` inside ``result`` in place.

    Walks dicts, lists and dataclass instances. Returns a map of message id to
    the dotted paths where that message was substituted.
    """
    paths: Dict[str, List[str]] = {}

    def _record(value: UIString, path: str) -> Any:
        paths.setdefault(value.message_id, []).append(path)
        return format_message(value, locale)

    def _walk(node: Any, path: str) -> None:
        if isinstance(node, dict):
            for key, value in node.items():
                child_path = f"{path}.{key}" if path else str(key)
                if isinstance(value, UIString):
                    node[key] = _record(value, child_path)
                else:
                    _walk(value, child_path)
        elif isinstance(node, list):
            for index, value in enumerate(node):
                child_path = f"{path}[{index}]"
                if isinstance(value, UIString):
                    node[index] = _record(value, child_path)
                else:
                    _walk(value, child_path)
        elif dataclasses.is_dataclass(node) and not isinstance(node, type):
            for data_field in dataclasses.fields(node):
                value = getattr(node, data_field.name)
                child_path = f"{path}.{data_field.name}" if path else data_field.name
                if isinstance(value, UIString):
                    setattr(node, data_field.name, _record(value, child_path))
                else:
                    _walk(value, child_path)

    _walk(result, "")
    return paths
