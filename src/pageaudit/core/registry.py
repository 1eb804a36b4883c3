"""Explicit registries of available audits and gatherers."""

import logging
from typing import Any, Dict, List, Optional

from pageaudit.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "default"


class Registry:
    """Ordered name -> implementation mapping with a category per entry."""

    def __init__(self, kind: str):
        self.kind = kind
        self._items: Dict[str, Any] = {}  # name -> implementation
        self._categories: Dict[str, str] = {}  # name -> category

    def register(
        self,
        implementation: Any,
        *,
        name: Optional[str] = None,
        category: str = DEFAULT_CATEGORY,
    ) -> None:
        """Register an implementation under ``name`` (defaults to its ``id``/``name``)."""
        key = name or getattr(implementation, "id", "") or getattr(implementation, "name", "")
        key = str(key or "").strip()
        if not key:
            raise ValueError(f"{self.kind} implementation has no name: {implementation!r}")
        if key in self._items and self._items[key] is not implementation:
            logger.warning("Replacing registered %s '%s'", self.kind, key)
        self._items[key] = implementation
        self._categories[key] = category

    def resolve(self, name: str) -> Any:
        """Return the implementation registered under ``name``."""
        implementation = self._items.get(name)
        if implementation is None:
            raise ConfigurationError(f"Unknown {self.kind}: {name}")
        return implementation

    def list_available(self, category: Optional[str] = None) -> List[str]:
        """Return registered names, optionally limited to one category, sorted."""
        return sorted(
            name
            for name, item_category in self._categories.items()
            if category is None or item_category == category
        )

    def categories(self) -> List[str]:
        return sorted(set(self._categories.values()))

    def __contains__(self, name: object) -> bool:
        return name in self._items

    def __len__(self) -> int:
        return len(self._items)
