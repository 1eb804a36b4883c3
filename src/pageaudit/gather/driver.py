"""Collection drivers: the boundary that actually talks to the page."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import requests

from pageaudit.config import USER_AGENT
from pageaudit.core.exceptions import NavigationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadedPage:
    """Main-document response observed while loading a page."""

    requested_url: str
    final_url: str
    status_code: int
    headers: Dict[str, str]
    body: str
    redirects: List[str] = field(default_factory=list)
    elapsed_ms: float = 0.0
    resource_size: int = 0


class CollectionDriver(ABC):
    """Capability interface used by gatherers to observe a page."""

    @abstractmethod
    def get_user_agent(self) -> str:
        """Return the user agent the driver presents to the page."""

    @abstractmethod
    def load_page(
        self,
        url: str,
        *,
        timeout_ms: int,
        extra_headers: Optional[Mapping[str, str]] = None,
    ) -> LoadedPage:
        """Load ``url``; raise ``NavigationError`` if nothing could be loaded."""

    def disconnect(self) -> None:
        """Release driver resources."""


class HttpDriver(CollectionDriver):
    """Driver that fetches the main document over a ``requests`` session."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._owns_session = session is None
        self._session = session or requests.Session()
        self._user_agent = user_agent

    def get_user_agent(self) -> str:
        return self._user_agent

    def load_page(
        self,
        url: str,
        *,
        timeout_ms: int,
        extra_headers: Optional[Mapping[str, str]] = None,
    ) -> LoadedPage:
        headers = {"User-Agent": self._user_agent}
        headers.update(extra_headers or {})
        logger.info("Loading page %s", url)
        try:
            response = self._session.get(
                url,
                headers=headers,
                timeout=timeout_ms / 1000,
                allow_redirects=True,
            )
        except requests.Timeout as e:
            raise NavigationError(
                f"Timed out loading {url}", code="PAGE_HUNG"
            ) from e
        except requests.RequestException as e:
            raise NavigationError(f"Failed to load {url}: {e}") from e

        return LoadedPage(
            requested_url=url,
            final_url=response.url,
            status_code=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            body=response.text,
            redirects=[r.url for r in response.history],
            elapsed_ms=response.elapsed.total_seconds() * 1000,
            resource_size=len(response.content),
        )

    def disconnect(self) -> None:
        if self._owns_session:
            self._session.close()


def get_host_user_agent() -> str:
    """User agent of the HTTP client library doing the collection."""
    return requests.utils.default_user_agent()
