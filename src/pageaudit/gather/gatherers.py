"""Built-in gatherers; each produces the artifact named after it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Dict

from pageaudit.core.registry import Registry
from pageaudit.html import parse_page_meta

if TYPE_CHECKING:
    from pageaudit.config.run_config import RunSettings
    from pageaudit.gather.driver import CollectionDriver, LoadedPage


@dataclass(frozen=True)
class PassContext:
    """What a gatherer sees after its pass loaded the page."""

    pass_name: str
    url: str
    page: "LoadedPage"
    settings: "RunSettings"
    driver: "CollectionDriver"


class Gatherer:
    """Base class for artifact producers."""

    name: ClassVar[str] = ""

    def after_pass(self, pass_context: PassContext) -> Any:
        raise NotImplementedError


class MainDocument(Gatherer):
    """Summary of the main document response."""

    name = "MainDocument"

    def after_pass(self, pass_context: PassContext) -> Dict[str, Any]:
        page = pass_context.page
        return {
            "url": page.requested_url,
            "finalUrl": page.final_url,
            "statusCode": page.status_code,
            "mimeType": page.headers.get("content-type", "").split(";", 1)[0].strip(),
            "resourceSize": page.resource_size,
            "redirects": list(page.redirects),
            "elapsedMs": page.elapsed_ms,
        }


class MetaElements(Gatherer):
    """Title, meta tags, canonical link and html lang of the document."""

    name = "MetaElements"

    def after_pass(self, pass_context: PassContext) -> Dict[str, Any]:
        page = pass_context.page
        return parse_page_meta(page.body, base_url=page.final_url)


class ResponseHeaders(Gatherer):
    """Main-document response headers with lower-cased names."""

    name = "ResponseHeaders"

    def after_pass(self, pass_context: PassContext) -> Dict[str, str]:
        return dict(pass_context.page.headers)


BUILTIN_GATHERERS = (MainDocument, MetaElements, ResponseHeaders)


def create_gatherer_registry() -> Registry:
    """Registry of the built-in gatherers."""
    registry = Registry("gatherer")
    for gatherer in BUILTIN_GATHERERS:
        registry.register(gatherer, category="document")
    return registry
